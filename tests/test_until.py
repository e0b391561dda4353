"""Tests for until() state."""

import pytest

from stubkit.core.errors import UntilExceededError, is_stub_error
from stubkit.core.rules import Rule
from stubkit.core.until import UntilState


class TestUntilState:

    def test_apply_counts_hits(self):
        rule = Rule.returning("x")
        state = UntilState(lambda: True, rule=rule)

        assert state.apply() is rule
        assert state.apply() is rule
        assert state.hits == 2

    def test_cap(self):
        state = UntilState(lambda: True, max_calls=1)

        assert state.apply() is None
        with pytest.raises(UntilExceededError) as exc_info:
            state.apply()

        assert exc_info.value.hits == 2
        assert exc_info.value.details["max_calls"] == 1
        assert is_stub_error(exc_info.value)
        assert not is_stub_error(ValueError())

    def test_reset(self):
        state = UntilState(lambda: True, max_calls=1)
        state.apply()

        state.reset()

        assert state.hits == 0
        assert state.apply() is None

    def test_should_apply_coerces_to_bool(self):
        assert UntilState(lambda: 1).should_apply() is True
        assert UntilState(lambda: []).should_apply() is False
