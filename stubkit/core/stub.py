"""
Stub engine: replaces one method with a programmable stand-in.

A stub resolves every call to exactly one configured rule, in this order:

1. ``on_call(n)`` rule for the current call number
2. ``once()`` rule, consumed when it fires
3. ``times(n)`` rule while it has calls left
4. ``until(predicate)`` rule while the predicate holds
5. first ``with_args(...)`` rule whose arguments match exactly
6. the default rule (initially: return None)

Example:
    >>> s = stub(service, "get_user").on_call(1).returns("first").returns("rest")
    >>> service.get_user(), service.get_user()
    ('first', 'rest')
    >>> s.restore()
"""

import inspect
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..config import get_config
from ..utils.logging_setup import get_logger, log_operation
from .errors import InvalidArgumentError, UntilExceededError
from .modes import NO_MODE, OnCallMode, OnceMode, PendingMode, TimesMode, UntilMode
from .registry import RestorationRegistry, default_registry, install_exit_hook
from .rules import ArgRule, CallingConvention, Rule, args_match, kwargs_match, rejected, settled
from .target import MemberAccessor
from .until import UntilState

logger = get_logger(__name__)


def _positive_int(operation: str, n: Any) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        raise InvalidArgumentError(
            f"{operation}(n) expects a positive integer, got {n!r}",
            operation=operation,
            value=n,
        )
    return n


class Stub:
    """
    A programmable replacement for one method.

    Creating a ``Stub`` patches ``target.<attribute>`` immediately and
    registers the stub's restore action with ``registry``. Configuration
    methods return the stub itself so they can be chained.

    The replacement keeps the original's calling convention: if the
    original is a coroutine function, every call returns an awaitable and
    configured failures are raised when it is awaited.
    """

    def __init__(self, target: Any, attribute: str,
                 registry: Optional[RestorationRegistry] = None):
        self._accessor = MemberAccessor(target, attribute)
        self._convention = self._accessor.convention
        self._registry = registry if registry is not None else default_registry
        self._lock = threading.RLock()

        self._call_count = 0
        self._call_args: List[Tuple[Any, ...]] = []
        self._call_kwargs: List[Dict[str, Any]] = []

        self._default: Rule = Rule.returning(None)
        self._once: Optional[Rule] = None
        self._times: Optional[Tuple[int, Rule]] = None
        self._on_call: Dict[int, Rule] = {}
        self._until: Optional[UntilState] = None
        self._arg_rules: List[ArgRule] = []
        self._pending: PendingMode = NO_MODE

        # Everything that can fail happens before the target is touched
        config = get_config()
        self._log_calls = config.log_calls

        self._replacement = self._build_replacement()
        self._accessor.install(self._replacement)
        self._active = True

        self._restore_action = self._restore_target
        self._registry.register(self._restore_action)

        if config.restore_at_exit and self._registry is default_registry:
            install_exit_hook()

        log_operation(logger, "stub created", target=_label(target), attribute=attribute,
                      convention=self._convention.value)

    # ---- interception ----

    def _build_replacement(self) -> Callable[..., Any]:
        if self._convention is CallingConvention.ASYNC:
            def replacement(*args, **kwargs):
                try:
                    rule = self._intercept(args, kwargs)
                except Exception as e:
                    return rejected(e)
                if rule is None:
                    return settled(None)
                return rule.apply(CallingConvention.ASYNC)

            inspect.markcoroutinefunction(replacement)
        else:
            def replacement(*args, **kwargs):
                rule = self._intercept(args, kwargs)
                if rule is None:
                    return None
                return rule.apply(CallingConvention.SYNC)

        replacement.__name__ = self._accessor.attribute
        replacement.__qualname__ = f"Stub({self._accessor.attribute})"
        replacement.__doc__ = getattr(self._accessor.original, "__doc__", None)
        replacement.__stub__ = self
        return replacement

    def _intercept(self, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Optional[Rule]:
        """Record one call and pick the rule that answers it."""
        with self._lock:
            self._call_count += 1
            self._call_args.append(args)
            self._call_kwargs.append(kwargs)
            call = self._call_count

            if self._log_calls:
                logger.debug(f"{self._accessor.attribute} call #{call} args={args!r} kwargs={kwargs!r}")

            rule = self._on_call.get(call)
            if rule is not None:
                return rule

            if self._once is not None:
                rule, self._once = self._once, None
                return rule

            if self._times is not None and self._times[0] > 0:
                remaining, rule = self._times
                self._times = (remaining - 1, rule)
                return rule

            if self._until is not None and self._until.should_apply():
                try:
                    return self._until.apply()
                except UntilExceededError:
                    logger.warning(
                        f"{self._accessor.attribute}: until() exceeded max_calls "
                        f"({self._until.max_calls}) on call #{call}"
                    )
                    raise

            for arg_rule in self._arg_rules:
                if arg_rule.matches(args, kwargs):
                    return arg_rule.rule

            return self._default

    # ---- modifiers ----

    def once(self) -> "Stub":
        """Apply the next behaviour to a single call."""
        with self._lock:
            self._pending = OnceMode()
        return self

    def times(self, n: int) -> "Stub":
        """Apply the next behaviour to the next ``n`` calls."""
        n = _positive_int("times", n)
        with self._lock:
            self._pending = TimesMode(n)
        return self

    def on_call(self, n: int) -> "Stub":
        """Apply the next behaviour to the ``n``-th call (1-based)."""
        n = _positive_int("on_call", n)
        with self._lock:
            self._pending = OnCallMode(n)
        return self

    def until(self, predicate: Callable[[], bool], max_calls: Optional[int] = None) -> "Stub":
        """
        Apply the next behaviour while ``predicate()`` is true.

        Args:
            predicate: zero-argument callable checked on each call
            max_calls: optional cap; the call that goes past it raises
                ``UntilExceededError``
        """
        if not callable(predicate):
            raise InvalidArgumentError(
                f"until() expects a callable predicate, got {type(predicate).__name__}",
                operation="until",
                value=predicate,
            )
        if max_calls is not None:
            max_calls = _positive_int("until", max_calls)
        with self._lock:
            self._until = UntilState(predicate, max_calls)
            self._pending = UntilMode()
        return self

    # ---- terminal behaviours ----

    def returns(self, value: Any) -> "Stub":
        return self._install(Rule.returning(value))

    def throws(self, error: BaseException) -> "Stub":
        return self._install(Rule.throwing(error))

    def resolves(self, value: Any) -> "Stub":
        return self._install(Rule.resolving(value))

    def rejects(self, error: BaseException) -> "Stub":
        return self._install(Rule.rejecting(error))

    def _install(self, rule: Rule) -> "Stub":
        with self._lock:
            pending, self._pending = self._pending, NO_MODE
            if isinstance(pending, OnCallMode):
                self._on_call[pending.index] = rule
            elif isinstance(pending, OnceMode):
                self._once = rule
            elif isinstance(pending, TimesMode):
                self._times = (pending.count, rule)
            elif isinstance(pending, UntilMode):
                self._until.rule = rule
            else:
                self._default = rule
        return self

    def with_args(self, *args: Any, **kwargs: Any) -> "ArgsRuleBuilder":
        """Start a rule that applies only to calls with exactly these arguments."""
        return ArgsRuleBuilder(self, args, kwargs)

    def _add_arg_rule(self, arg_rule: ArgRule) -> "Stub":
        with self._lock:
            self._arg_rules.append(arg_rule)
        return self

    # ---- lifecycle & inspection ----

    def reset(self) -> "Stub":
        """
        Clear call history and consumable behaviours.

        ``with_args`` rules, the default behaviour and the until predicate
        survive; the stub stays installed.
        """
        with self._lock:
            self._call_count = 0
            self._call_args.clear()
            self._call_kwargs.clear()
            self._once = None
            self._times = None
            self._on_call.clear()
            if self._until is not None:
                self._until.reset()
            self._pending = NO_MODE
        log_operation(logger, "stub reset", attribute=self._accessor.attribute)
        return self

    def called(self) -> int:
        """Number of calls since creation or the last ``reset``."""
        with self._lock:
            return self._call_count

    def called_args(self) -> List[List[Any]]:
        """Positional arguments of each call, as an independent copy."""
        with self._lock:
            return [list(args) for args in self._call_args]

    def called_kwargs(self) -> List[Dict[str, Any]]:
        """Keyword arguments of each call, as an independent copy."""
        with self._lock:
            return [dict(kwargs) for kwargs in self._call_kwargs]

    def called_with(self, *args: Any, **kwargs: Any) -> bool:
        """Whether any recorded call matches these arguments exactly."""
        with self._lock:
            return any(
                args_match(args, call_args) and kwargs_match(kwargs, call_kwargs)
                for call_args, call_kwargs in zip(self._call_args, self._call_kwargs)
            )

    def _restore_target(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._accessor.restore()
            self._active = False
        log_operation(logger, "stub restored", attribute=self._accessor.attribute)

    def restore(self) -> None:
        """Put the original method back; calling it again is harmless."""
        self._restore_target()
        self._registry.unregister(self._restore_action)

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def target(self) -> Any:
        return self._accessor.target

    @property
    def attribute(self) -> str:
        return self._accessor.attribute

    @property
    def original(self) -> Callable[..., Any]:
        return self._accessor.original

    @property
    def convention(self) -> CallingConvention:
        return self._convention

    def __enter__(self) -> "Stub":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.restore()

    def __repr__(self) -> str:
        state = "active" if self._active else "restored"
        return (f"<Stub {_label(self._accessor.target)}.{self._accessor.attribute} "
                f"{state} calls={self._call_count}>")


class ArgsRuleBuilder:
    """
    Narrow surface returned by ``Stub.with_args``.

    Each terminal appends one argument rule and hands back the stub. The
    stub's pending ``once``/``times``/``on_call``/``until`` mode is left as is.
    """

    def __init__(self, stub: Stub, args: Tuple[Any, ...], kwargs: Dict[str, Any]):
        self._stub = stub
        self._args = args
        self._kwargs = kwargs

    def returns(self, value: Any) -> Stub:
        return self._stub._add_arg_rule(ArgRule(self._args, Rule.returning(value), self._kwargs))

    def throws(self, error: BaseException) -> Stub:
        return self._stub._add_arg_rule(ArgRule(self._args, Rule.throwing(error), self._kwargs))

    def resolves(self, value: Any) -> Stub:
        return self._stub._add_arg_rule(ArgRule(self._args, Rule.resolving(value), self._kwargs))

    def rejects(self, error: BaseException) -> Stub:
        return self._stub._add_arg_rule(ArgRule(self._args, Rule.rejecting(error), self._kwargs))


def _label(target: Any) -> str:
    if isinstance(target, type):
        return target.__name__
    return getattr(target, "__name__", None) or type(target).__name__


def stub(target: Any, attribute: str, registry: Optional[RestorationRegistry] = None) -> Stub:
    """
    Replace ``target.<attribute>`` with a programmable stub.

    Raises:
        InvalidTargetError: the attribute is missing or not callable
    """
    return Stub(target, attribute, registry=registry)


@contextmanager
def stubbed(target: Any, attribute: str,
            registry: Optional[RestorationRegistry] = None) -> Iterator[Stub]:
    """Context manager yielding a stub that is restored on exit."""
    s = Stub(target, attribute, registry=registry)
    try:
        yield s
    finally:
        s.restore()
