"""stubkit - programmable, restorable method stubs for Python tests."""

__version__ = "0.1.0"
__author__ = "Rohan Vinaik"
__email__ = "rohanpvinaik@gmail.com"

from .core import (
    InvalidArgumentError,
    InvalidTargetError,
    RestorationRegistry,
    Stub,
    StubError,
    UntilExceededError,
    default_registry,
    restore_all,
    stub,
    stubbed,
)
from .config import StubConfig, get_config, set_config
from .utils.logging_setup import configure_logging

__all__ = [
    "stub", "stubbed", "Stub", "restore_all",
    "RestorationRegistry", "default_registry",
    "StubError", "InvalidTargetError", "InvalidArgumentError", "UntilExceededError",
    "StubConfig", "get_config", "set_config", "configure_logging",
    "__version__",
]
