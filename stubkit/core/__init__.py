"""
Core stubbing engine.

Stub resolution and configuration, the restoration registry, rule matching
and the error types surfaced by both.
"""

from .errors import (
    StubError,
    InvalidTargetError,
    InvalidArgumentError,
    UntilExceededError,
    is_stub_error,
)
from .registry import RestorationRegistry, default_registry, restore_all
from .rules import CallingConvention, Rule, RuleKind, args_match, same_value
from .stub import ArgsRuleBuilder, Stub, stub, stubbed

__all__ = [
    # Errors
    "StubError", "InvalidTargetError", "InvalidArgumentError", "UntilExceededError",
    "is_stub_error",
    # Registry
    "RestorationRegistry", "default_registry", "restore_all",
    # Rules
    "CallingConvention", "Rule", "RuleKind", "args_match", "same_value",
    # Engine
    "ArgsRuleBuilder", "Stub", "stub", "stubbed",
]
