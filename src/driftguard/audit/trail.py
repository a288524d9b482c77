"""Audit trail over git notes.

One note per commit, force-overwritten: several checkpoints on the same HEAD
leave only the latest record.
"""

from __future__ import annotations

from driftguard.audit.schema import AuditRecord
from driftguard.logging import get_logger
from driftguard.vcs.protocol import RevisionControl

log = get_logger("audit")


class AuditTrail:
    """Writes and reconstructs audit records through a RevisionControl."""

    def __init__(self, vcs: RevisionControl) -> None:
        self._vcs = vcs

    async def write_note(self, record: AuditRecord) -> bool:
        """Attach ``record`` to HEAD. Returns False if nothing was written."""
        if not await self._vcs.is_repo():
            return False
        head = await self._vcs.head_hash()
        if not head:
            log.debug("No HEAD commit; skipping audit note for %s", record.task_id)
            return False
        written = await self._vcs.write_note(record.to_json(), head)
        if written:
            log.info("Audit note written for %s on %s", record.task_id, head[:8])
        else:
            log.warning("Failed to write audit note for %s", record.task_id)
        return written

    async def reconstruct_history(self) -> list[AuditRecord]:
        """Every readable record, newest first."""
        if not await self._vcs.is_repo():
            return []

        records: list[AuditRecord] = []
        for commit in await self._vcs.list_noted_commits():
            content = await self._vcs.read_note(commit)
            if not content:
                continue
            try:
                records.append(AuditRecord.from_json(content))
            except (ValueError, KeyError, TypeError):
                log.debug("Skipping unparsable note on %s", commit)
        records.sort(key=lambda r: r.timestamp, reverse=True)
        return records

    async def timeline(self, limit: int = 10) -> list[AuditRecord]:
        history = await self.reconstruct_history()
        return history[: max(limit, 0)]
