"""
Error types raised by stubkit.

Caller-configured failures (``throws``/``rejects``) are never wrapped: the
exception object handed to the stub is raised as-is.
"""

from typing import Any, Dict, Optional


class StubError(Exception):
    """
    Base exception for all stubkit errors.

    Carries a ``details`` mapping for structured error reporting.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidTargetError(StubError, TypeError):
    """Raised when the member to stub is missing or not callable."""

    def __init__(self, message: str, target: Any = None, attribute: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.target = target
        self.attribute = attribute
        self.details.update({
            'target': target.__name__ if isinstance(target, type) else type(target).__name__,
            'attribute': attribute,
        })


class InvalidArgumentError(StubError, ValueError):
    """Raised when a configuration call receives an out-of-range argument."""

    def __init__(self, message: str, operation: str = 'general', value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.operation = operation
        self.value = value
        self.details.update({
            'operation': operation,
            'value': value,
        })


class UntilExceededError(StubError, RuntimeError):
    """
    Raised when an ``until`` rule fires more often than its cap allows.

    Usually points at a polling loop whose condition never turns false.
    """

    def __init__(self, max_calls: int, hits: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"until() exceeded max_calls ({max_calls})", details)
        self.max_calls = max_calls
        self.hits = hits
        self.details.update({
            'max_calls': max_calls,
            'hits': hits,
        })


def is_stub_error(error: Exception) -> bool:
    """Check if an exception originated from stubkit rather than a configured failure."""
    return isinstance(error, StubError)
