"""State for ``until`` rules: a predicate-gated behaviour with an optional cap."""

from dataclasses import dataclass
from typing import Callable, Optional

from .errors import UntilExceededError
from .rules import Rule


@dataclass
class UntilState:
    predicate: Callable[[], bool]
    max_calls: Optional[int] = None
    rule: Optional[Rule] = None
    hits: int = 0

    def should_apply(self) -> bool:
        """Evaluate the predicate for the current call."""
        return bool(self.predicate())

    def apply(self) -> Optional[Rule]:
        """
        Count one hit and return the rule to fire.

        Returns None when no terminal behaviour was configured after
        ``until()``, which makes the call produce None.

        Raises:
            UntilExceededError: the hit count went past ``max_calls``
        """
        self.hits += 1

        if self.max_calls is not None and self.hits > self.max_calls:
            raise UntilExceededError(self.max_calls, self.hits)

        return self.rule

    def reset(self) -> None:
        self.hits = 0
