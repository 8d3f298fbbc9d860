"""Run status state machine transitions."""

from __future__ import annotations

import pytest

from runera.errors import InvalidTransitionError
from runera.runs.state_machine import (
    SUBMITTED,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    VALIDATING,
    validate_transition,
)
from runera.runs.validator import REJECTED, VERIFIED


class TestRunStateMachine:
    def test_valid_transitions_structure(self):
        """All states have defined transitions."""
        assert set(VALID_TRANSITIONS.keys()) == {SUBMITTED, VALIDATING, VERIFIED, REJECTED}

    def test_submitted_to_validating(self):
        validate_transition(SUBMITTED, VALIDATING)

    def test_validating_to_terminal(self):
        validate_transition(VALIDATING, VERIFIED)
        validate_transition(VALIDATING, REJECTED)

    def test_terminal_states_have_no_exits(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == []

    def test_cannot_skip_validating(self):
        with pytest.raises(InvalidTransitionError, match="Invalid transition"):
            validate_transition(SUBMITTED, VERIFIED)

    def test_cannot_repeat_state(self):
        with pytest.raises(InvalidTransitionError):
            validate_transition(VALIDATING, VALIDATING)

    def test_cannot_leave_verified(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(VERIFIED, REJECTED)
        assert exc_info.value.details == {"from": VERIFIED, "to": REJECTED}
        assert exc_info.value.status_code == 409

    def test_unknown_state_rejected(self):
        with pytest.raises(InvalidTransitionError):
            validate_transition("PENDING", VALIDATING)
