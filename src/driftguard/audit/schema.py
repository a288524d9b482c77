"""Audit record schema.

Records are stored as JSON with camelCase keys so notes written by other
DriftGuard implementations stay readable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class AuditRecord:
    """What was done at a checkpoint, attached to the commit it happened on."""

    task_id: str
    title: str
    intent: str
    summary: str
    timestamp: str  # ISO 8601
    files_changed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskId": self.task_id,
            "title": self.title,
            "intent": self.intent,
            "summary": self.summary,
            "timestamp": self.timestamp,
            "filesChanged": list(self.files_changed),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditRecord:
        return cls(
            task_id=str(data["taskId"]),
            title=data.get("title", ""),
            intent=data.get("intent", ""),
            summary=data.get("summary", ""),
            timestamp=data.get("timestamp", ""),
            files_changed=list(data.get("filesChanged") or []),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> AuditRecord:
        """Parse a note body.

        Raises:
            ValueError: The text is not a JSON object with a ``taskId``.
        """
        data = json.loads(text)
        if not isinstance(data, dict) or "taskId" not in data:
            raise ValueError("Not an audit record")
        return cls.from_dict(data)
