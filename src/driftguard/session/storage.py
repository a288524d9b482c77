"""Persistence gateway for the session snapshot.

Every mutating operation writes the full snapshot to ``tasks.json`` and then
regenerates ``ACTIVE_PLAN.md`` from it. The snapshot is written to a temp file
and renamed into place under a file lock, so readers never see a partial
file.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from filelock import FileLock

from driftguard.logging import get_logger
from driftguard.session.plan import render_active_plan
from driftguard.session.schema import MAX_LOG_ENTRIES, STATE_VERSION, DriftGuardState

log = get_logger("storage")

STATE_FILE = "tasks.json"
PLAN_FILE = "ACTIVE_PLAN.md"


def atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    """Write JSON to ``path`` via temp file + rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=".tmp_state_",
        suffix=".json",
        text=True,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2)
            handle.write("\n")
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


class StateStore:
    """Reads and writes the snapshot and the derived plan document."""

    def __init__(self, state_dir: str | Path, log_capacity: int = MAX_LOG_ENTRIES) -> None:
        self._dir = Path(state_dir)
        self._log_capacity = log_capacity
        self._lock_path = self._dir / f"{STATE_FILE}.lock"

    @property
    def state_dir(self) -> Path:
        return self._dir

    @property
    def state_file(self) -> Path:
        return self._dir / STATE_FILE

    @property
    def plan_file(self) -> Path:
        return self._dir / PLAN_FILE

    def exists(self) -> bool:
        return self._dir.is_dir()

    def _write(self, payload: dict[str, Any], plan: str) -> None:
        self._dir.mkdir(parents=True, exist_ok=True)
        with FileLock(self._lock_path, timeout=10):
            atomic_write_json(self.state_file, payload)
        self.plan_file.write_text(plan, encoding="utf-8")

    async def save(self, state: DriftGuardState) -> None:
        """Persist ``state``. Serialization happens before the thread hop."""
        payload = state.to_dict()
        plan = render_active_plan(state)
        await asyncio.to_thread(self._write, payload, plan)

    def _read(self) -> dict[str, Any] | None:
        if not self.state_file.exists():
            return None
        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Could not read %s: %s", self.state_file, e)
            return None
        if not isinstance(data, dict):
            log.warning("Ignoring malformed snapshot %s", self.state_file)
            return None
        return data

    async def load(self) -> DriftGuardState | None:
        """Load the snapshot, or None if it is missing or unreadable."""
        data = await asyncio.to_thread(self._read)
        if data is None:
            return None
        try:
            state = DriftGuardState.from_dict(data, log_capacity=self._log_capacity)
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Could not parse %s: %s", self.state_file, e)
            return None
        if state.version != STATE_VERSION:
            log.info(
                "Snapshot version %s differs from %s; loading anyway",
                state.version or "<none>",
                STATE_VERSION,
            )
        return state
