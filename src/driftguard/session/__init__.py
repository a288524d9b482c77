"""Session state machine, task registry and persistence."""

from driftguard.session.engine import SessionEngine
from driftguard.session.results import (
    CheckpointResult,
    ExplainResult,
    HandoffPacket,
    HelpPacket,
    InitResult,
    StatusReport,
    StepResult,
    VerifyResult,
)
from driftguard.session.schema import (
    STATE_VERSION,
    ChecklistItem,
    DriftGuardState,
    FocusState,
    LogBuffer,
    LogEntry,
    Session,
    StrictnessLevel,
    Task,
)
from driftguard.session.state_machine import TRANSITIONS, allowed_states, validate_transition
from driftguard.session.storage import StateStore

__all__ = [
    "STATE_VERSION",
    "TRANSITIONS",
    "ChecklistItem",
    "CheckpointResult",
    "DriftGuardState",
    "ExplainResult",
    "FocusState",
    "HandoffPacket",
    "HelpPacket",
    "InitResult",
    "LogBuffer",
    "LogEntry",
    "Session",
    "SessionEngine",
    "StateStore",
    "StatusReport",
    "StepResult",
    "StrictnessLevel",
    "Task",
    "VerifyResult",
    "allowed_states",
    "validate_transition",
]
