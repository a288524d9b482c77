"""Return values of engine operations.

Each result carries ``to_dict`` so the server and CLI can render it without
knowing its fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from driftguard.session.schema import FocusState, LogEntry, StrictnessLevel


@dataclass
class InitResult:
    status: str  # "created" or "exists"
    path: str
    recommended_strictness: StrictnessLevel
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "path": self.path,
            "recommendedStrictness": int(self.recommended_strictness),
            "reason": self.reason,
        }


@dataclass
class StepResult:
    """Outcome of begin_step and report_intent."""

    task_id: str
    step_id: str
    state: FocusState

    def to_dict(self) -> dict[str, Any]:
        return {"taskId": self.task_id, "stepId": self.step_id, "state": self.state.value}


@dataclass
class CheckpointResult:
    task_id: str
    completed_items: int
    total_items: int
    git_note_written: bool
    task_complete: bool
    status: str = "saved"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "taskId": self.task_id,
            "completedItems": self.completed_items,
            "totalItems": self.total_items,
            "gitNoteWritten": self.git_note_written,
            "taskComplete": self.task_complete,
        }


@dataclass
class VerifyResult:
    command: str
    success: bool
    exit_code: int | None
    stdout: str
    stderr: str
    status: str
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "success": self.success,
            "exitCode": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "status": self.status,
            "durationMs": self.duration_ms,
        }


@dataclass
class ExplainResult:
    intent: str
    changes: list[str]
    verification: str  # the command to run, or a note that none is set
    diff_summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "changes": list(self.changes),
            "verification": self.verification,
            "diffSummary": self.diff_summary,
        }


@dataclass
class HelpPacket:
    """Context handed to a human after a panic."""

    goal: str | None
    recent_logs: list[LogEntry]
    reason: str
    state: FocusState

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "recentLogs": [e.to_dict() for e in self.recent_logs],
            "reason": self.reason,
            "state": self.state.value,
        }


@dataclass
class HandoffPacket:
    """Summary another agent needs to pick up the work."""

    task_id: str
    status: str
    plan_summary: str
    active_claims: list[str]
    last_steps: list[str]
    verification_status: str  # "VERIFIED" or "PENDING"

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "status": self.status,
            "planSummary": self.plan_summary,
            "activeClaims": list(self.active_claims),
            "lastSteps": list(self.last_steps),
            "verificationStatus": self.verification_status,
        }


@dataclass
class StatusReport:
    initialized: bool
    state: FocusState
    task_id: str | None = None
    task_title: str | None = None
    step_id: str | None = None
    intent_filed: bool = False
    is_verified: bool = False
    completed_items: int = 0
    total_items: int = 0
    task_count: int = 0
    claim_count: int = 0
    log_count: int = 0
    claims: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "initialized": self.initialized,
            "state": self.state.value,
            "taskId": self.task_id,
            "taskTitle": self.task_title,
            "stepId": self.step_id,
            "intentFiled": self.intent_filed,
            "isVerified": self.is_verified,
            "completedItems": self.completed_items,
            "totalItems": self.total_items,
            "taskCount": self.task_count,
            "claimCount": self.claim_count,
            "logCount": self.log_count,
            "claims": list(self.claims),
        }
