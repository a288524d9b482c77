"""Entry point for DriftGuard.

Usage:
    python -m driftguard            # MCP server on stdio
    driftguard status
    driftguard timeline --limit 5
    driftguard health
    driftguard risk src/app.py

The read-only subcommands load the saved session from ``.driftguard/`` in
the project directory and print it; they never write state.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from driftguard import __version__
from driftguard.config import load_config
from driftguard.integrity import HealthStatus
from driftguard.logging import get_logger, setup_logging
from driftguard.risk import RiskScorer
from driftguard.session import SessionEngine
from driftguard.vcs import GitAdapter

log = get_logger()
console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="driftguard",
        description="DriftGuard - coordinate coding agents working in one project",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-C", "--project",
        default=None,
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (can be repeated)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")
    subparsers.add_parser("serve", help="Run the MCP server on stdio (default)")
    subparsers.add_parser("status", help="Show the saved session state")

    timeline_parser = subparsers.add_parser("timeline", help="Show audit records from git notes")
    timeline_parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of records to show (default: 10)",
    )

    subparsers.add_parser("health", help="Check claimed files for out-of-band edits")

    risk_parser = subparsers.add_parser("risk", help="Score edit risk for a path")
    risk_parser.add_argument("path", help="Path relative to the project")

    return parser


async def _load_engine(project: str | None) -> SessionEngine:
    engine = SessionEngine(project)
    if not await engine.hydrate():
        console.print("[yellow]No saved session found; showing a fresh one.[/yellow]")
    return engine


async def _cmd_status(project: str | None) -> int:
    engine = await _load_engine(project)
    report = engine.status()

    table = Table(title="DriftGuard Status")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("State", report.state.value)
    table.add_row("Task", f"{report.task_title} ({report.task_id})" if report.task_id else "-")
    table.add_row("Step", report.step_id or "-")
    table.add_row("Progress", f"{report.completed_items}/{report.total_items}")
    table.add_row("Intent filed", "yes" if report.intent_filed else "no")
    table.add_row("Verified", "yes" if report.is_verified else "no")
    table.add_row("Tasks", str(report.task_count))
    table.add_row("Claims", ", ".join(report.claims) or "-")
    table.add_row("Log entries", str(report.log_count))
    console.print(table)
    return 0


async def _cmd_timeline(project: str | None, limit: int) -> int:
    engine = SessionEngine(project)
    records = await engine.get_timeline(limit)
    if not records:
        console.print("No audit records.")
        return 0

    table = Table(title="Audit Timeline")
    table.add_column("Time")
    table.add_column("Task", style="bold")
    table.add_column("Title")
    table.add_column("Summary")
    table.add_column("Files", justify="right")
    for record in records:
        table.add_row(
            record.timestamp,
            record.task_id,
            record.title,
            record.summary,
            str(len(record.files_changed)),
        )
    console.print(table)
    return 0


async def _cmd_health(project: str | None) -> int:
    engine = await _load_engine(project)
    report = await engine.health_check()
    if report.status is HealthStatus.DIRTY:
        table = Table(title="Drifted Files")
        table.add_column("Path")
        table.add_column("Change", style="red")
        for path, kind in report.findings:
            table.add_row(path, kind.value)
        console.print(table)
        return 1
    console.print(f"[green]{report.status.value}[/green]")
    return 0


async def _cmd_risk(project: str | None, path: str) -> int:
    # Scored directly; analyze_risk would record the score in the session
    config = load_config(project_root=project)
    vcs = GitAdapter(project or os.getcwd(), notes_ref=config.audit.notes_ref)
    scorer = RiskScorer(vcs, window_days=config.risk.window_days, max_commits=config.risk.max_commits)
    result = await scorer.calculate_risk(path)
    table = Table(title=f"Risk: {path}")
    table.add_column("Score", justify="right")
    table.add_column("Reason")
    style = "red" if result.score > 70 else "yellow" if result.score > 40 else "green"
    table.add_row(f"[{style}]{result.score}[/{style}]", result.reason)
    console.print(table)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run DriftGuard."""
    from driftguard.server import serve

    parser = create_parser()
    args = parser.parse_args(argv)

    config = load_config(project_root=args.project)
    if args.verbose:
        config.logging.verbose = args.verbose
    setup_logging(config.logging)

    command = args.command or "serve"
    log.debug("Running %s (project=%s)", command, args.project or ".")

    if command == "serve":
        asyncio.run(serve(args.project))
        return 0
    if command == "status":
        return asyncio.run(_cmd_status(args.project))
    if command == "timeline":
        return asyncio.run(_cmd_timeline(args.project, args.limit))
    if command == "health":
        return asyncio.run(_cmd_health(args.project))
    if command == "risk":
        return asyncio.run(_cmd_risk(args.project, args.path))

    parser.error(f"Unknown command: {command}")
    return 2


if __name__ == "__main__":
    sys.exit(main())
