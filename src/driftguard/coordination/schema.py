"""Data schemas for scope claims."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ScopeClaim:
    """A glob-pattern lock over file paths, owned by a task."""

    path: str  # Glob pattern, e.g. "src/components/**"
    exclusive: bool
    owner_task_id: str
    created_at: int = field(default_factory=_now_ms)  # Epoch milliseconds

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "exclusive": self.exclusive,
            "ownerTaskId": self.owner_task_id,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScopeClaim:
        return cls(
            path=data["path"],
            exclusive=bool(data.get("exclusive", False)),
            owner_task_id=data["ownerTaskId"],
            created_at=int(data.get("createdAt", 0)),
        )


@dataclass
class ClaimResult:
    """Outcome of a claim request.

    A refused request is data, not an error: the caller can inspect
    ``conflicts`` and negotiate or retry.
    """

    granted: bool
    conflicts: list[ScopeClaim] = field(default_factory=list)
    claimed: list[ScopeClaim] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "granted": self.granted,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "claimed": [c.to_dict() for c in self.claimed],
        }
