"""Process executor protocol for running verification commands."""

from __future__ import annotations

from typing import Protocol

from driftguard.terminal.result import ProcessResult


class ProcessExecutor(Protocol):
    """Runs a shell command with bounded time and output.

    Implementations never raise for command failure; timeouts, non-zero
    exits and missing binaries all come back as a ProcessResult.
    """

    async def execute(
        self,
        command: str,
        cwd: str | None = None,
        timeout: float | None = 60.0,
        output_limit: int = 1024 * 1024,
    ) -> ProcessResult:
        """Execute a shell command.

        Args:
            command: Shell command line (e.g., "pytest -q").
            cwd: Working directory. If None, uses executor's default.
            timeout: Timeout in seconds. None means no timeout.
            output_limit: Maximum bytes captured per stream.
        """
        ...
