"""Tests for the snapshot store and the derived plan document."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from driftguard.coordination import ScopeClaim
from driftguard.session import (
    ChecklistItem,
    DriftGuardState,
    FocusState,
    LogEntry,
    StateStore,
    Task,
)
from driftguard.session.plan import progress_bar, render_active_plan


def _state() -> DriftGuardState:
    task = Task(
        task_id="task_1",
        title="Add login",
        goal="Users can log in",
        allowed_scopes=["src/auth/**"],
        checklist=[ChecklistItem("1", "Write form", "done"), ChecklistItem("2", "Wire API")],
        claims=[ScopeClaim("src/auth/**", True, "task_1")],
        last_intent="Build the form",
        files_to_touch=["src/auth/form.py"],
    )
    state = DriftGuardState(tasks={"task_1": task})
    state.session.active_task_id = "task_1"
    state.session.current_state = FocusState.EXECUTING
    state.session.intent_filed = True
    for i in range(7):
        state.logs.append(LogEntry(action=f"action_{i}", task_id="task_1"))
    return state


class TestStateStore:
    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / ".driftguard")
        state = _state()
        await store.save(state)

        assert store.state_file.exists()
        assert store.plan_file.exists()
        raw = json.loads(store.state_file.read_text(encoding="utf-8"))
        assert raw["session"]["currentState"] == "EXECUTING"
        assert "task_1" in raw["tasks"]

        loaded = await store.load()
        assert loaded is not None
        assert loaded.tasks == state.tasks
        assert len(loaded.logs) == len(state.logs)

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / ".driftguard")
        await store.save(_state())
        await store.save(_state())
        leftovers = [p.name for p in store.state_dir.iterdir() if p.name.startswith(".tmp_state_")]
        assert leftovers == []

    @pytest.mark.asyncio
    async def test_missing(self, tmp_path: Path) -> None:
        assert await StateStore(tmp_path / ".driftguard").load() is None

    @pytest.mark.asyncio
    async def test_corrupt(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / ".driftguard")
        store.state_dir.mkdir()
        store.state_file.write_text("{not json", encoding="utf-8")
        assert await store.load() is None

    @pytest.mark.asyncio
    async def test_version_mismatch_accepted(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / ".driftguard")
        data = _state().to_dict()
        data["version"] = "2.0.0"
        store.state_dir.mkdir()
        store.state_file.write_text(json.dumps(data), encoding="utf-8")
        loaded = await store.load()
        assert loaded is not None
        assert loaded.version == "2.0.0"

    @pytest.mark.asyncio
    async def test_log_capacity_applied_on_load(self, tmp_path: Path) -> None:
        store = StateStore(tmp_path / ".driftguard", log_capacity=3)
        await store.save(_state())
        loaded = await store.load()
        assert loaded is not None
        assert len(loaded.logs) == 3


class TestActivePlan:
    def test_progress_bar(self) -> None:
        assert progress_bar(1, 2) == "[" + "#" * 10 + "-" * 10 + "] 1/2"
        assert progress_bar(0, 0) == "[" + "-" * 20 + "] 0/0"

    def test_contents(self) -> None:
        plan = render_active_plan(_state())
        assert "**State:** EXECUTING" in plan
        assert "## Add login" in plan
        assert "- [x] Write form" in plan
        assert "- [ ] Wire API" in plan
        assert "`src/auth/**` (exclusive)" in plan
        assert "Build the form" in plan
        assert "- Intent Filed: yes" in plan
        assert "- Verified: no" in plan

    def test_last_five_logs_newest_first(self) -> None:
        plan = render_active_plan(_state())
        shown = [line for line in plan.splitlines() if "`action_" in line]
        assert len(shown) == 5
        assert "action_6" in shown[0]
        assert "action_2" in shown[-1]

    def test_idle(self) -> None:
        plan = render_active_plan(DriftGuardState())
        assert "_No active task._" in plan
