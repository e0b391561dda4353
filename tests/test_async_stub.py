"""Tests for stubbing coroutine methods."""

import asyncio
import inspect

import pytest

from stubkit import UntilExceededError, stub
from stubkit.core.rules import CallingConvention


def run(awaitable):
    return asyncio.run(_await(awaitable))


async def _await(awaitable):
    return await awaitable


class TestAsyncStub:
    """Test that async methods stay async when stubbed."""

    def test_convention_is_detected(self, service):
        s = stub(service, "fetch_user")

        assert s.convention is CallingConvention.ASYNC
        assert inspect.iscoroutinefunction(service.fetch_user)

    def test_resolves(self, service):
        stub(service, "fetch_user").resolves({"id": 100})

        assert run(service.fetch_user(1)) == {"id": 100}

    def test_returns_is_awaitable_too(self, service):
        stub(service, "fetch_user").returns("plain")

        assert run(service.fetch_user()) == "plain"

    def test_default_resolves_none(self, service):
        stub(service, "fetch_user")

        assert run(service.fetch_user()) is None

    def test_with_args_resolves(self, service):
        s = (stub(service, "fetch_user")
             .with_args(1).resolves({"id": 100})
             .with_args(2).resolves({"id": 200})
             .resolves({"id": -1}))

        async def scenario():
            return await asyncio.gather(
                service.fetch_user(1),
                service.fetch_user(2),
                service.fetch_user(999),
            )

        assert asyncio.run(scenario()) == [{"id": 100}, {"id": 200}, {"id": -1}]
        assert s.called() == 3

    def test_throws_rejects_on_await(self, service):
        error = TimeoutError("slow")
        stub(service, "fetch_user").throws(error)

        pending = service.fetch_user()
        with pytest.raises(TimeoutError) as exc_info:
            run(pending)

        assert exc_info.value is error

    def test_rejects(self, service):
        stub(service, "fetch_user").once().rejects(PermissionError("denied")).resolves("ok")

        with pytest.raises(PermissionError):
            run(service.fetch_user())
        assert run(service.fetch_user()) == "ok"

    def test_calls_are_counted_before_await(self, service):
        s = stub(service, "fetch_user").resolves("x")

        first = service.fetch_user(1)
        second = service.fetch_user(2)

        assert s.called() == 2
        assert s.called_args() == [[1], [2]]
        assert run(first) == "x"
        assert run(second) == "x"

    def test_until_exceeded_rejects(self, service):
        s = stub(service, "fetch_user").until(lambda: True, 1).resolves("polling")

        assert run(service.fetch_user()) == "polling"
        pending = service.fetch_user()
        assert s.called() == 2
        with pytest.raises(UntilExceededError):
            run(pending)

    def test_precedence_matches_sync(self, service):
        (stub(service, "fetch_user")
            .on_call(1).resolves("A")
            .once().resolves("B")
            .times(2).resolves("C")
            .resolves("D"))

        async def scenario():
            return [await service.fetch_user() for _ in range(6)]

        assert asyncio.run(scenario()) == ["A", "B", "C", "C", "D", "D"]

    def test_restore(self, service):
        s = stub(service, "fetch_user").resolves("stub")
        s.restore()

        assert run(service.fetch_user(3)) == {"id": 3, "source": "real"}


class TestSyncResolves:
    """Test async outcomes configured on synchronous methods."""

    def test_resolves_returns_awaitable(self, service):
        stub(service, "get_user").resolves({"id": 7})

        result = service.get_user()

        assert inspect.isawaitable(result)
        assert run(result) == {"id": 7}

    def test_rejects_returns_failing_awaitable(self, service):
        stub(service, "get_user").rejects(ValueError("bad"))

        result = service.get_user()

        with pytest.raises(ValueError):
            run(result)

    def test_throws_stays_synchronous(self, service):
        stub(service, "get_user").throws(ValueError("now"))

        with pytest.raises(ValueError):
            service.get_user()


def test_repeated_rejections_do_not_grow_traceback(service):
    error = ConnectionResetError("reset")
    stub(service, "fetch_user").rejects(error)
    depths = []

    for _ in range(3):
        with pytest.raises(ConnectionResetError) as exc_info:
            run(service.fetch_user())
        tb, depth = exc_info.value.__traceback__, 0
        while tb is not None:
            depth += 1
            tb = tb.tb_next
        depths.append(depth)

    assert depths[0] == depths[1] == depths[2]
