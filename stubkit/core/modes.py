"""
Pending configuration modes.

A modifier (``once``, ``times``, ``on_call``, ``until``) arms exactly one
mode; the next terminal call (``returns``, ``throws``, ``resolves``,
``rejects``) consumes it.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NoMode:
    """Nothing armed: terminal calls replace the default behaviour."""


@dataclass(frozen=True)
class OnceMode:
    pass


@dataclass(frozen=True)
class TimesMode:
    count: int


@dataclass(frozen=True)
class OnCallMode:
    index: int  # 1-based


@dataclass(frozen=True)
class UntilMode:
    pass


NO_MODE = NoMode()

PendingMode = Union[NoMode, OnceMode, TimesMode, OnCallMode, UntilMode]
