"""Exception types raised by the coordination engine.

Precondition violations are raised immediately and never retried. Scope
conflicts and verification failures are not exceptions; they come back as
ordinary result data.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from driftguard.session.schema import FocusState


class DriftGuardError(Exception):
    """Base class for all engine errors surfaced to callers."""


class StateTransitionError(DriftGuardError):
    """An action was attempted from a state that does not allow it.

    Attributes:
        action: Name of the attempted action (e.g. "dg_checkpoint").
        from_state: The focus state the session was in.
        allowed_from: The states the action is legal from.
    """

    def __init__(
        self,
        action: str,
        from_state: FocusState,
        allowed_from: Iterable[FocusState],
        message: str | None = None,
    ) -> None:
        self.action = action
        self.from_state = from_state
        self.allowed_from = tuple(allowed_from)
        if message is None:
            allowed = ", ".join(s.value for s in self.allowed_from)
            message = (
                f'Invalid Transition: "{action}" not allowed from state '
                f'"{from_state.value}". Allowed from: [{allowed}]'
            )
        super().__init__(message)


class IntentMissingError(StateTransitionError):
    """Checkpoint attempted before an intent was filed.

    Subclasses StateTransitionError: checkpointing without an intent is a
    refused transition, whatever the current focus state is.
    """

    def __init__(
        self,
        from_state: FocusState,
        allowed_from: Iterable[FocusState],
    ) -> None:
        super().__init__(
            "dg_checkpoint",
            from_state,
            allowed_from,
            message=(
                "PLAN_MISSING_INTENT: Cannot checkpoint without filing intent. "
                "Call dg_report_intent before dg_checkpoint."
            ),
        )


class NoActiveTaskError(DriftGuardError):
    """An operation needed an active task and none is set."""

    def __init__(self, hint: str = "Use dg_propose_task first.") -> None:
        super().__init__(f"No active task. {hint}")


class DelegationError(DriftGuardError):
    """A delegated sub-task asked for scope outside its parent's claims."""

    def __init__(self, uncovered: list[str]) -> None:
        self.uncovered = uncovered
        super().__init__(
            "Delegation Failed: Child scope is not contained within Parent's "
            f"active claims (uncovered: {', '.join(uncovered)})."
        )


class RevisionControlError(DriftGuardError):
    """The revision-control collaborator could not answer a history query."""
