"""Tests for the restoration registry and bulk restore."""

import pytest

import stubkit
from stubkit import RestorationRegistry, default_registry, restore_all, stub


class TestRestorationRegistry:
    """Test registry bookkeeping."""

    def test_register_is_idempotent(self):
        registry = RestorationRegistry()
        action = lambda: None

        registry.register(action)
        registry.register(action)

        assert len(registry) == 1
        assert action in registry

    def test_unregister_missing_is_noop(self):
        registry = RestorationRegistry()

        registry.unregister(lambda: None)

        assert len(registry) == 0

    def test_restore_all_runs_newest_first_and_clears(self):
        registry = RestorationRegistry()
        calls = []
        for i in range(3):
            registry.register(lambda i=i: calls.append(i))

        registry.restore_all()

        assert calls == [2, 1, 0]
        assert len(registry) == 0

    def test_restore_all_on_empty_registry(self):
        RestorationRegistry().restore_all()

    def test_actions_may_touch_registry(self):
        registry = RestorationRegistry()
        calls = []

        def self_removing():
            calls.append("a")
            registry.unregister(self_removing)

        def late():
            calls.append("b")

        registry.register(self_removing)
        registry.register(late)

        registry.restore_all()

        assert calls == ["a", "b"]
        assert len(registry) == 0

    def test_failing_action_does_not_stop_others(self):
        registry = RestorationRegistry()
        calls = []

        def broken():
            raise RuntimeError("cannot restore")

        registry.register(broken)
        registry.register(lambda: calls.append("ran"))

        with pytest.raises(RuntimeError):
            registry.restore_all()

        assert calls == ["ran"]
        assert len(registry) == 0

    def test_active_is_a_snapshot(self):
        registry = RestorationRegistry()
        registry.register(lambda: None)

        snapshot = registry.active()
        snapshot.clear()

        assert len(registry) == 1


class TestStubRegistration:
    """Test how stubs use their registry."""

    def test_stub_registers_and_unregisters(self, service, registry):
        s = stub(service, "get_user", registry=registry)
        assert len(registry) == 1

        s.restore()

        assert len(registry) == 0

    def test_isolated_registry_is_not_default(self, service, registry):
        before = len(default_registry)

        stub(service, "get_user", registry=registry)

        assert len(default_registry) == before

    def test_restore_all_restores_every_stub(self, registry):
        class A:
            def fn(self):
                return "a"

        class B:
            def fn(self):
                return "b"

        a, b = A(), B()
        stub_a = stub(a, "fn", registry=registry).returns("mock a")
        stub_b = stub(b, "fn", registry=registry).returns("mock b")

        assert a.fn() == "mock a"
        assert b.fn() == "mock b"

        registry.restore_all()

        assert a.fn() == "a"
        assert b.fn() == "b"
        assert not stub_a.is_active

        stub_a.restore()
        stub_b.restore()
        assert a.fn() == "a"

    def test_restore_all_unwinds_stacked_stubs(self, service, registry):
        outer = stub(service, "get_user", registry=registry).returns("outer")
        inner = stub(service, "get_user", registry=registry).returns("inner")
        assert service.get_user() == "inner"

        registry.restore_all()

        assert service.get_user(4) == {"id": 4, "source": "real"}
        assert "get_user" not in vars(service)
        assert not outer.is_active
        assert not inner.is_active

    def test_module_level_restore_all(self, service):
        cls = type(service)
        stub(service, "get_user").returns("x")
        stub(cls, "version").returns("stubbed")

        restore_all()

        assert service.get_user()["source"] == "real"
        assert cls.version() == "1.0"
        assert len(default_registry) == 0

    def test_package_exports_restore_all(self):
        assert stubkit.restore_all is restore_all


def test_exit_hook_installed_once(monkeypatch, service):
    from stubkit.config import StubConfig, set_config
    from stubkit.core import registry as registry_module

    registered = []
    monkeypatch.setattr(registry_module, "_exit_hook_installed", False)
    monkeypatch.setattr(registry_module.atexit, "register", registered.append)
    set_config(StubConfig(restore_at_exit=True))

    stub(service, "get_user")
    stub(service, "calc")

    assert registered == [registry_module.restore_all]
