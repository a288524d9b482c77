"""MCP tool server over stdio.

Each tool is a thin wrapper over one SessionEngine operation: arguments in,
rendered result out. No coordination logic lives here.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, Field

from driftguard.errors import DriftGuardError
from driftguard.logging import get_logger
from driftguard.server.render import render_error, render_result
from driftguard.session import SessionEngine

log = get_logger("server")

SERVER_NAME = "driftguard"


class ChecklistItemInput(BaseModel):
    """One checklist entry supplied by the agent."""

    id: str = Field(description="Identifier, unique within the task")
    text: str = Field(description="What has to be done")


async def _call(operation: Awaitable[Any]) -> str:
    try:
        return render_result(await operation)
    except (DriftGuardError, ValueError) as e:
        log.info("Tool refused: %s", e)
        return render_error(e)
    except Exception as e:
        log.exception("Tool failed")
        return render_error(e)


def create_server(engine: SessionEngine) -> FastMCP:
    """Build a FastMCP server whose tools drive ``engine``."""
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool()
    async def dg_init(project_path: str | None = None) -> str:
        """Initialize DriftGuard in the project and recommend a strictness level."""
        return await _call(engine.initialize(project_path))

    @mcp.tool()
    async def dg_propose_task(
        title: str,
        goal: str,
        allowed_scopes: list[str] | None = None,
        checklist: list[ChecklistItemInput] | None = None,
        strictness: int | None = None,
    ) -> str:
        """Propose a task contract. Only allowed while IDLE."""

        async def propose() -> Any:
            if not engine.initialized:
                await engine.initialize()
            return await engine.propose_task(
                title,
                goal,
                allowed_scopes=allowed_scopes,
                checklist=[item.model_dump() for item in checklist or []],
                strictness=strictness,
            )

        return await _call(propose())

    @mcp.tool()
    async def dg_begin_step(step_id: str | None = None) -> str:
        """Start an execution step for the active task."""
        return await _call(engine.begin_step(step_id))

    @mcp.tool()
    async def dg_report_intent(intent: str, files_to_touch: list[str] | None = None) -> str:
        """File the intent for the next step. Required before dg_checkpoint."""
        return await _call(engine.report_intent(intent, files_to_touch))

    @mcp.tool()
    async def dg_checkpoint(summary: str, completed_checklist_ids: list[str] | None = None) -> str:
        """Close the current step, mark checklist items done and release claims."""
        return await _call(engine.checkpoint(summary, completed_checklist_ids))

    @mcp.tool()
    async def dg_verify() -> str:
        """Run the active task's test command."""
        return await _call(engine.verify())

    @mcp.tool()
    async def dg_explain_change() -> str:
        """Summarize the working-tree changes against the filed intent."""
        return await _call(engine.explain_change())

    @mcp.tool()
    async def dg_set_test_command(command: str) -> str:
        """Set the command dg_verify runs for the active task."""
        return await _call(engine.set_test_command(command))

    @mcp.tool()
    async def dg_claim_scope(paths: list[str], exclusive: bool = False) -> str:
        """Claim glob patterns for the active task. All or nothing."""
        return await _call(engine.claim_scope(paths, exclusive))

    @mcp.tool()
    async def dg_delegate(title: str, goal: str, sub_scope: list[str]) -> str:
        """Create a sub-task inside the active task's claimed scope."""
        return await _call(engine.delegate_task(title, goal, sub_scope))

    @mcp.tool()
    async def dg_analyze_risk(path: str) -> str:
        """Score how risky it is to edit a path from its recent history."""
        return await _call(engine.analyze_risk(path))

    @mcp.tool()
    async def dg_health_check() -> str:
        """Report files under active claims that changed since they were claimed."""
        return await _call(engine.health_check())

    @mcp.tool()
    async def dg_generate_handoff() -> str:
        """Summarize the session for another agent."""
        return await _call(engine.generate_handoff())

    @mcp.tool()
    async def dg_get_timeline(limit: int = 10) -> str:
        """List audit records from git notes, newest first."""
        return await _call(engine.get_timeline(limit))

    @mcp.tool()
    async def dg_status() -> str:
        """Show the current focus state and active task."""

        async def status() -> Any:
            return engine.status()

        return await _call(status())

    @mcp.tool()
    async def dg_panic(reason: str) -> str:
        """Stop all work and ask for human help."""
        return await _call(engine.panic(reason))

    @mcp.tool()
    async def dg_reset() -> str:
        """Discard the session, including a PANIC stop."""
        return await _call(engine.reset())

    return mcp


async def serve(project_path: str | None = None) -> None:
    """Hydrate an engine for ``project_path`` and serve it over stdio."""
    engine = SessionEngine(project_path)
    if await engine.hydrate():
        log.info("Resumed existing session in %s", engine.project_path)
    else:
        log.info("No saved session in %s; waiting for dg_init", engine.project_path)
    server = create_server(engine)
    await server.run_stdio_async()
