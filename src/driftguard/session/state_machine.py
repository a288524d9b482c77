"""Focus-state transition rules.

The table only says where an action may start from. Callers validate first
and then perform the mutation themselves.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from driftguard.errors import StateTransitionError
from driftguard.session.schema import FocusState

PROPOSE_TASK = "dg_propose_task"
BEGIN_STEP = "dg_begin_step"
REPORT_INTENT = "dg_report_intent"
CHECKPOINT = "dg_checkpoint"
VERIFY = "dg_verify"
EXPLAIN_CHANGE = "dg_explain_change"
DELEGATE = "dg_delegate"
PANIC = "dg_panic"

# Actions outside the transition table
INIT = "dg_init"
RESET = "reset"
SET_TEST_COMMAND = "dg_set_test_command"
CLAIM_SCOPE = "dg_claim_scope"
ANALYZE_RISK = "dg_analyze_risk"

TRANSITIONS: Mapping[str, frozenset[FocusState]] = MappingProxyType(
    {
        PROPOSE_TASK: frozenset({FocusState.IDLE}),
        BEGIN_STEP: frozenset({FocusState.PLANNING, FocusState.IDLE}),
        REPORT_INTENT: frozenset({FocusState.PLANNING, FocusState.IDLE}),
        CHECKPOINT: frozenset({FocusState.EXECUTING}),
        VERIFY: frozenset({FocusState.EXECUTING}),
        EXPLAIN_CHANGE: frozenset({FocusState.EXECUTING}),
        DELEGATE: frozenset({FocusState.EXECUTING}),
        PANIC: frozenset(FocusState),
    }
)

# Stable ordering for error messages
_STATE_ORDER = list(FocusState)


def allowed_states(action: str) -> list[FocusState]:
    """States ``action`` may start from, in declaration order."""
    try:
        allowed = TRANSITIONS[action]
    except KeyError:
        raise KeyError(f"Unknown action: {action}") from None
    return [state for state in _STATE_ORDER if state in allowed]


def validate_transition(
    action: str,
    current: FocusState,
    allowed_from: Iterable[FocusState] | None = None,
) -> None:
    """Raise StateTransitionError unless ``current`` is an allowed origin.

    Args:
        action: Action name; looked up in TRANSITIONS when ``allowed_from``
            is not given.
        current: The session's focus state.
        allowed_from: Explicit allowed set, overriding the table.
    """
    allowed = list(allowed_from) if allowed_from is not None else allowed_states(action)
    if current not in allowed:
        raise StateTransitionError(action, current, allowed)
