"""Shared fixtures for stubkit tests."""

import pytest

import stubkit
from stubkit.config import StubConfig, set_config
from stubkit.core.registry import RestorationRegistry


class Service:
    """Small collaborator with sync and async methods."""

    def __init__(self, name="real"):
        self.name = name

    def get_user(self, user_id=1):
        return {"id": user_id, "source": self.name}

    def calc(self, a, b):
        return a + b

    async def fetch_user(self, user_id=1):
        return {"id": user_id, "source": self.name}

    @staticmethod
    def version():
        return "1.0"

    @classmethod
    def build(cls, name):
        return cls(name)


@pytest.fixture
def service():
    return Service()


@pytest.fixture
def registry():
    """Registry isolated from the process-wide default."""
    reg = RestorationRegistry("test")
    yield reg
    reg.restore_all()


@pytest.fixture(autouse=True)
def _clean_state():
    set_config(StubConfig())
    yield
    stubkit.restore_all()
    set_config(StubConfig())
