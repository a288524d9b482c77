"""Renders ACTIVE_PLAN.md, the human-readable view of the snapshot."""

from __future__ import annotations

from driftguard.session.schema import DriftGuardState, StrictnessLevel

PROGRESS_CELLS = 20
RECENT_LOGS = 5


def progress_bar(done: int, total: int, cells: int = PROGRESS_CELLS) -> str:
    filled = round(cells * done / total) if total else 0
    return "[" + "#" * filled + "-" * (cells - filled) + f"] {done}/{total}"


def render_active_plan(state: DriftGuardState) -> str:
    session = state.session
    lines = [
        "# DriftGuard Active Plan",
        "",
        f"**State:** {session.current_state.value}",
        "",
    ]

    task = state.active_task()
    if task is None:
        lines += ["_No active task._", ""]
    else:
        level = StrictnessLevel(task.strictness)
        lines += [
            f"## {task.title}",
            "",
            f"**Task:** `{task.task_id}`",
            f"**Goal:** {task.goal}",
            f"**Strictness:** L{int(level)} ({level.name})",
            f"**Scopes:** {', '.join(f'`{s}`' for s in task.allowed_scopes)}",
        ]
        if task.parent_task_id:
            lines.append(f"**Parent:** `{task.parent_task_id}`")
        if task.claims:
            claims = ", ".join(
                f"`{c.path}`" + (" (exclusive)" if c.exclusive else "") for c in task.claims
            )
            lines.append(f"**Claims:** {claims}")
        lines += ["", "### Checklist", ""]
        for item in task.checklist:
            mark = "x" if item.done else " "
            lines.append(f"- [{mark}] {item.text}")
        if not task.checklist:
            lines.append("_Empty._")
        lines += ["", f"**Progress:** {progress_bar(task.completed_items, task.total_items)}", ""]
        if task.last_intent:
            lines += ["### Current Intent", "", task.last_intent, ""]
            if task.files_to_touch:
                lines += [f"- `{f}`" for f in task.files_to_touch]
                lines.append("")

    lines += [
        f"- Intent Filed: {'yes' if session.intent_filed else 'no'}",
        f"- Verified: {'yes' if session.is_verified else 'no'}",
        "",
        "### Recent Activity",
        "",
    ]
    recent = state.logs.recent(RECENT_LOGS)
    for entry in reversed(recent):
        suffix = f": {entry.details}" if entry.details else ""
        lines.append(f"- {entry.timestamp} `{entry.action}`{suffix}")
    if not recent:
        lines.append("_None._")
    lines.append("")
    return "\n".join(lines)
