"""
Rules: the terminal effects a stub can produce, and exact argument matching.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Sequence, Tuple

from .errors import InvalidArgumentError


class CallingConvention(Enum):
    """How the stubbed method hands results back to its caller."""
    SYNC = "sync"
    ASYNC = "async"


class RuleKind(Enum):
    """Effect produced when a rule fires."""
    RETURNS = "returns"
    THROWS = "throws"
    RESOLVES = "resolves"
    REJECTS = "rejects"


async def settled(value: Any) -> Any:
    """Awaitable that is already resolved with ``value``."""
    return value


async def rejected(error: BaseException) -> Any:
    """Awaitable that is already rejected with ``error``."""
    # Drop frames from earlier raises of the same instance
    raise error.with_traceback(None)


@dataclass(frozen=True)
class Rule:
    """One configured behaviour."""

    kind: RuleKind
    payload: Any = None

    @classmethod
    def returning(cls, value: Any) -> "Rule":
        return cls(RuleKind.RETURNS, value)

    @classmethod
    def throwing(cls, error: BaseException) -> "Rule":
        return cls(RuleKind.THROWS, _check_error(error, "throws"))

    @classmethod
    def resolving(cls, value: Any) -> "Rule":
        return cls(RuleKind.RESOLVES, value)

    @classmethod
    def rejecting(cls, error: BaseException) -> "Rule":
        return cls(RuleKind.REJECTS, _check_error(error, "rejects"))

    def apply(self, convention: CallingConvention) -> Any:
        """
        Produce this rule's outcome under a calling convention.

        Synchronous methods return or raise directly, except that
        ``resolves``/``rejects`` hand back an already-settled awaitable.
        Asynchronous methods always hand back an awaitable, and failures
        surface when it is awaited.
        """
        if convention is CallingConvention.ASYNC:
            if self.kind in (RuleKind.THROWS, RuleKind.REJECTS):
                return rejected(self.payload)
            return settled(self.payload)

        if self.kind is RuleKind.RETURNS:
            return self.payload
        if self.kind is RuleKind.THROWS:
            raise self.payload.with_traceback(None)
        if self.kind is RuleKind.RESOLVES:
            return settled(self.payload)
        return rejected(self.payload)


def _check_error(error: Any, operation: str) -> BaseException:
    # Exception classes are accepted and instantiated, like ``raise ValueError``
    if isinstance(error, type) and issubclass(error, BaseException):
        return error()
    if not isinstance(error, BaseException):
        raise InvalidArgumentError(
            f"expected an exception instance or class, got {type(error).__name__}",
            operation=operation,
            value=error,
        )
    return error


_SCALARS = (int, float, complex, str, bytes)


def same_value(expected: Any, actual: Any) -> bool:
    """
    Exact comparison of one argument.

    Immutable scalars compare by type and value (so ``1`` never matches
    ``True`` or ``1.0``); NaN matches NaN and ``0.0`` does not match ``-0.0``.
    Everything else compares by identity, so two distinct but equal lists
    do not match.
    """
    if expected is actual:
        return True
    if type(expected) is not type(actual) or not isinstance(expected, _SCALARS):
        return False
    if isinstance(expected, float):
        if math.isnan(expected) and math.isnan(actual):
            return True
        if expected == 0.0 and actual == 0.0:
            return math.copysign(1.0, expected) == math.copysign(1.0, actual)
    return expected == actual


def args_match(expected: Sequence[Any], actual: Sequence[Any]) -> bool:
    """Ordered, pairwise ``same_value`` over two argument lists of equal length."""
    return (
        len(expected) == len(actual)
        and all(same_value(e, a) for e, a in zip(expected, actual))
    )


def kwargs_match(expected: Dict[str, Any], actual: Dict[str, Any]) -> bool:
    return (
        expected.keys() == actual.keys()
        and all(same_value(expected[key], actual[key]) for key in expected)
    )


@dataclass(frozen=True)
class ArgRule:
    """A rule that applies when a call's arguments match exactly."""

    args: Tuple[Any, ...]
    rule: Rule
    kwargs: Dict[str, Any] = field(default_factory=dict)

    def matches(self, args: Sequence[Any], kwargs: Dict[str, Any]) -> bool:
        return args_match(self.args, args) and kwargs_match(self.kwargs, kwargs)
