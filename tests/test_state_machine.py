"""Tests for the focus-state transition table."""

from __future__ import annotations

import pytest

from driftguard.errors import IntentMissingError, StateTransitionError
from driftguard.session import FocusState
from driftguard.session import state_machine as sm

EXPECTED = {
    sm.PROPOSE_TASK: {FocusState.IDLE},
    sm.BEGIN_STEP: {FocusState.PLANNING, FocusState.IDLE},
    sm.REPORT_INTENT: {FocusState.PLANNING, FocusState.IDLE},
    sm.CHECKPOINT: {FocusState.EXECUTING},
    sm.VERIFY: {FocusState.EXECUTING},
    sm.EXPLAIN_CHANGE: {FocusState.EXECUTING},
    sm.DELEGATE: {FocusState.EXECUTING},
    sm.PANIC: set(FocusState),
}


class TestTransitionTable:
    def test_table_matches_expected(self) -> None:
        assert {k: set(v) for k, v in sm.TRANSITIONS.items()} == EXPECTED

    def test_table_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            sm.TRANSITIONS["dg_new"] = frozenset()  # type: ignore[index]

    @pytest.mark.parametrize("action", sorted(EXPECTED))
    @pytest.mark.parametrize("state", list(FocusState))
    def test_every_pair(self, action: str, state: FocusState) -> None:
        if state in EXPECTED[action]:
            sm.validate_transition(action, state)
        else:
            with pytest.raises(StateTransitionError) as exc_info:
                sm.validate_transition(action, state)
            assert exc_info.value.action == action
            assert exc_info.value.from_state is state

    def test_allowed_states_in_declaration_order(self) -> None:
        assert sm.allowed_states(sm.BEGIN_STEP) == [FocusState.IDLE, FocusState.PLANNING]

    def test_unknown_action(self) -> None:
        with pytest.raises(KeyError):
            sm.allowed_states("dg_fly")

    def test_explicit_allowed_set_overrides_table(self) -> None:
        sm.validate_transition(sm.CHECKPOINT, FocusState.IDLE, allowed_from=[FocusState.IDLE])


class TestErrorMessages:
    def test_state_transition_message(self) -> None:
        with pytest.raises(StateTransitionError) as exc_info:
            sm.validate_transition(sm.CHECKPOINT, FocusState.PLANNING)
        assert str(exc_info.value) == (
            'Invalid Transition: "dg_checkpoint" not allowed from state "PLANNING". '
            "Allowed from: [EXECUTING]"
        )

    def test_intent_missing_is_a_transition_error(self) -> None:
        err = IntentMissingError(FocusState.IDLE, [FocusState.EXECUTING])
        assert isinstance(err, StateTransitionError)
        assert err.action == "dg_checkpoint"
        assert str(err).startswith("PLAN_MISSING_INTENT")
        assert "dg_report_intent" in str(err)
