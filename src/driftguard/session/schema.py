"""Data schemas for the session, its tasks and the persisted snapshot.

The snapshot format uses camelCase keys so ``tasks.json`` files written by
earlier DriftGuard releases hydrate unchanged.

Version history:
- 1.x: tasks, checklist, logs
- 2.x: intent, verification flags
- 3.x: scope claims, sub-tasks, risk score, file hash cache
"""

from __future__ import annotations

import time
import uuid
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any

from driftguard.coordination.schema import ScopeClaim

STATE_VERSION = "3.0.0"
MAX_LOG_ENTRIES = 100


def utc_now_iso() -> str:
    """ISO 8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def short_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}"


class FocusState(Enum):
    """Phase of an agent's interaction with the engine.

    - IDLE: no step in progress
    - PLANNING: a task was proposed, no step started
    - EXECUTING: a step is in progress; edits are expected
    - VALIDATING: reserved
    - PANIC: safety stop, left only by an explicit reset
    """

    IDLE = "IDLE"
    PLANNING = "PLANNING"
    EXECUTING = "EXECUTING"
    VALIDATING = "VALIDATING"
    PANIC = "PANIC"


class StrictnessLevel(IntEnum):
    """How much verification a task asks for. Stored, not enforced."""

    VIBE = 1  # Simple logging
    LOGGED = 2  # Requires checklists
    BALANCED = 3  # Intent + basic linting
    ENGINEERED = 4  # Tests must pass before checkpoint
    CRITICAL = 5  # File-level claims + full CI + human approval


@dataclass
class ChecklistItem:
    id: str
    text: str
    status: str = "todo"  # "todo" or "done"

    @property
    def done(self) -> bool:
        return self.status == "done"

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "text": self.text, "status": self.status}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChecklistItem:
        return cls(id=str(data["id"]), text=data.get("text", ""), status=data.get("status", "todo"))


@dataclass
class Task:
    """A task contract: declared scope, goal and checklist for a unit of work."""

    task_id: str
    title: str
    goal: str
    allowed_scopes: list[str] = field(default_factory=lambda: ["**"])
    checklist: list[ChecklistItem] = field(default_factory=list)
    strictness: StrictnessLevel = StrictnessLevel.LOGGED
    test_command: str | None = None
    last_intent: str | None = None
    files_to_touch: list[str] = field(default_factory=list)
    parent_task_id: str | None = None
    sub_task_ids: list[str] = field(default_factory=list)
    claims: list[ScopeClaim] = field(default_factory=list)
    risk_score: int | None = None
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for item in self.checklist:
            if item.id in seen:
                raise ValueError(f"Duplicate checklist id in task {self.task_id}: {item.id}")
            seen.add(item.id)

    @property
    def completed_items(self) -> int:
        return sum(1 for item in self.checklist if item.done)

    @property
    def total_items(self) -> int:
        return len(self.checklist)

    @property
    def all_done(self) -> bool:
        return all(item.done for item in self.checklist)

    def touch(self) -> None:
        self.updated_at = utc_now_iso()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "taskId": self.task_id,
            "title": self.title,
            "goal": self.goal,
            "allowedScopes": list(self.allowed_scopes),
            "checklist": [item.to_dict() for item in self.checklist],
            "strictness": int(self.strictness),
            "subTaskIds": list(self.sub_task_ids),
            "claims": [c.to_dict() for c in self.claims],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.test_command is not None:
            data["testCommand"] = self.test_command
        if self.last_intent is not None:
            data["lastIntent"] = self.last_intent
            data["filesToTouch"] = list(self.files_to_touch)
        if self.parent_task_id is not None:
            data["parentTaskId"] = self.parent_task_id
        if self.risk_score is not None:
            data["riskScore"] = self.risk_score
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        now = utc_now_iso()
        return cls(
            task_id=data["taskId"],
            title=data.get("title", ""),
            goal=data.get("goal", ""),
            allowed_scopes=list(data.get("allowedScopes") or ["**"]),
            checklist=[ChecklistItem.from_dict(i) for i in data.get("checklist", [])],
            strictness=StrictnessLevel(int(data.get("strictness", StrictnessLevel.LOGGED))),
            test_command=data.get("testCommand"),
            last_intent=data.get("lastIntent"),
            files_to_touch=list(data.get("filesToTouch", [])),
            parent_task_id=data.get("parentTaskId"),
            sub_task_ids=list(data.get("subTaskIds", [])),
            claims=[ScopeClaim.from_dict(c) for c in data.get("claims", [])],
            risk_score=data.get("riskScore"),
            created_at=data.get("createdAt", now),
            updated_at=data.get("updatedAt", now),
        )


@dataclass
class Session:
    """The one live session of an engine."""

    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: int = field(default_factory=lambda: int(time.time() * 1000))
    current_state: FocusState = FocusState.IDLE
    active_task_id: str | None = None
    active_step_id: str | None = None
    intent_filed: bool = False
    is_verified: bool = False
    active_claims: list[ScopeClaim] = field(default_factory=list)
    last_known_file_hashes: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sessionId": self.session_id,
            "startTime": self.start_time,
            "currentState": self.current_state.value,
            "intentFiled": self.intent_filed,
            "isVerified": self.is_verified,
            "activeClaims": [c.to_dict() for c in self.active_claims],
            "lastKnownFileHashes": dict(self.last_known_file_hashes),
        }
        if self.active_task_id is not None:
            data["activeTaskId"] = self.active_task_id
        if self.active_step_id is not None:
            data["activeStepId"] = self.active_step_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        return cls(
            session_id=data.get("sessionId") or str(uuid.uuid4()),
            start_time=int(data.get("startTime", 0)),
            current_state=FocusState(data.get("currentState", FocusState.IDLE.value)),
            active_task_id=data.get("activeTaskId"),
            active_step_id=data.get("activeStepId"),
            intent_filed=bool(data.get("intentFiled", False)),
            is_verified=bool(data.get("isVerified", False)),
            active_claims=[ScopeClaim.from_dict(c) for c in data.get("activeClaims", [])],
            last_known_file_hashes=dict(data.get("lastKnownFileHashes") or {}),
        )


@dataclass
class LogEntry:
    action: str
    task_id: str | None = None
    details: str | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": self.timestamp, "action": self.action}
        if self.task_id is not None:
            data["taskId"] = self.task_id
        if self.details is not None:
            data["details"] = self.details
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogEntry:
        return cls(
            action=data["action"],
            task_id=data.get("taskId"),
            details=data.get("details"),
            timestamp=data.get("timestamp", utc_now_iso()),
        )


class LogBuffer:
    """Fixed-capacity log queue; appending past capacity drops the oldest."""

    def __init__(self, entries: Iterable[LogEntry] = (), capacity: int = MAX_LOG_ENTRIES) -> None:
        if capacity < 1:
            raise ValueError("LogBuffer capacity must be >= 1")
        self._entries: deque[LogEntry] = deque(entries, maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or MAX_LOG_ENTRIES

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def recent(self, count: int) -> list[LogEntry]:
        """The last ``count`` entries, oldest first."""
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]


@dataclass
class DriftGuardState:
    """The complete persisted state stored in tasks.json."""

    version: str = STATE_VERSION
    session: Session = field(default_factory=Session)
    tasks: dict[str, Task] = field(default_factory=dict)
    logs: LogBuffer = field(default_factory=LogBuffer)

    def active_task(self) -> Task | None:
        task_id = self.session.active_task_id
        return self.tasks.get(task_id) if task_id else None

    def all_claims(self) -> list[ScopeClaim]:
        return [claim for task in self.tasks.values() for claim in task.claims]

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "session": self.session.to_dict(),
            "tasks": {task_id: task.to_dict() for task_id, task in self.tasks.items()},
            "logs": self.logs.to_list(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], log_capacity: int = MAX_LOG_ENTRIES) -> DriftGuardState:
        tasks = {
            task_id: Task.from_dict(task_data)
            for task_id, task_data in (data.get("tasks") or {}).items()
        }
        session = Session.from_dict(data.get("session") or {})
        if session.active_task_id and session.active_task_id not in tasks:
            session.active_task_id = None
        return cls(
            version=str(data.get("version", "")),
            session=session,
            tasks=tasks,
            logs=LogBuffer(
                (LogEntry.from_dict(e) for e in data.get("logs", [])),
                capacity=log_capacity,
            ),
        )
