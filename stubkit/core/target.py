"""
Access to the single member a stub replaces.

This is the only place that reads or writes attributes on the stubbed
object. Everything else in the engine works with the captured original and
the calling convention detected from it.
"""

import inspect
from typing import Any, Callable, Mapping, Optional

from .errors import InvalidTargetError
from .rules import CallingConvention

_MISSING = object()


class MemberAccessor:
    """
    Read, replace and restore one callable attribute of an object.

    Instance targets get the replacement as an instance attribute. If the
    original came from the class, restoring deletes that override so
    normal lookup resumes. Class targets get the replacement wrapped in
    ``staticmethod``, so the stub sees exactly the arguments the caller
    passed whether it is reached through the class or an instance.
    """

    def __init__(self, target: Any, attribute: str):
        if not isinstance(attribute, str):
            raise InvalidTargetError(
                f"attribute name must be a string, got {type(attribute).__name__}",
                target=target,
                attribute=repr(attribute),
            )

        current = getattr(target, attribute, _MISSING)
        if current is _MISSING:
            raise InvalidTargetError(
                f"{attribute} does not exist on {_describe(target)}",
                target=target,
                attribute=attribute,
            )
        if not callable(current):
            raise InvalidTargetError(
                f"{attribute} is not a function",
                target=target,
                attribute=attribute,
            )

        self.target = target
        self.attribute = attribute
        self.original: Callable[..., Any] = current
        namespace = _namespace(target)
        self._owned = namespace is None or attribute in namespace
        # Raw stored value: keeps staticmethod/classmethod wrappers intact
        self._stored = current if namespace is None else namespace.get(attribute)

    @property
    def convention(self) -> CallingConvention:
        if inspect.iscoroutinefunction(self.original):
            return CallingConvention.ASYNC
        return CallingConvention.SYNC

    def install(self, replacement: Callable[..., Any]) -> None:
        """Put ``replacement`` in place of the original member."""
        value = staticmethod(replacement) if isinstance(self.target, type) else replacement
        try:
            setattr(self.target, self.attribute, value)
        except (AttributeError, TypeError) as e:
            raise InvalidTargetError(
                f"{self.attribute} cannot be replaced on {_describe(self.target)}: {e}",
                target=self.target,
                attribute=self.attribute,
            ) from e

    def restore(self) -> None:
        """Write the original member back."""
        if self._owned:
            setattr(self.target, self.attribute, self._stored)
        elif self.attribute in (_namespace(self.target) or {}):
            delattr(self.target, self.attribute)


def _namespace(target: Any) -> Optional[Mapping[str, Any]]:
    # None for objects without __dict__; whatever setattr reaches is the member itself
    try:
        return vars(target)
    except TypeError:
        return None


def _describe(target: Any) -> str:
    if isinstance(target, type):
        return f"class {target.__name__}"
    return f"{type(target).__name__} object"
