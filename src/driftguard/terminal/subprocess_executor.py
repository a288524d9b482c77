"""Subprocess-based executor for verification commands."""

from __future__ import annotations

import asyncio
import os
import time

from driftguard.logging import get_logger
from driftguard.terminal.result import ProcessResult

log = get_logger("terminal")

_TRUNCATION_MARK = "\n... (output truncated)"


def _decode(data: bytes, limit: int) -> tuple[str, bool]:
    truncated = len(data) > limit
    if truncated:
        data = data[:limit]
    text = data.decode("utf-8", errors="replace")
    return (text + _TRUNCATION_MARK if truncated else text), truncated


class SubprocessExecutor:
    """Execute shell commands using asyncio subprocess."""

    def __init__(self, default_cwd: str = ".") -> None:
        self._default_cwd = default_cwd

    async def execute(
        self,
        command: str,
        cwd: str | None = None,
        timeout: float | None = 60.0,
        output_limit: int = 1024 * 1024,
    ) -> ProcessResult:
        """Run ``command`` through the shell.

        Args:
            command: Shell command line.
            cwd: Working directory. Uses default_cwd if None.
            timeout: Timeout in seconds. None for no timeout.
            output_limit: Maximum bytes captured per stream.

        Returns:
            ProcessResult; never raises for command failure.
        """
        start_time = time.perf_counter()
        working_dir = cwd or self._default_cwd

        def elapsed() -> float:
            return (time.perf_counter() - start_time) * 1000

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_dir,
                env=os.environ.copy(),
            )
        except OSError as e:
            log.warning("Could not start %r: %s", command, e)
            return ProcessResult(
                command=command,
                exit_code=127,
                stdout="",
                stderr=f"OS error: {e}",
                truncated=False,
                status="error",
                duration_ms=elapsed(),
            )

        try:
            if timeout is not None:
                stdout_data, stderr_data = await asyncio.wait_for(
                    process.communicate(), timeout=timeout
                )
            else:
                stdout_data, stderr_data = await process.communicate()
        except asyncio.TimeoutError:
            try:
                process.kill()
                await process.wait()
            except ProcessLookupError:
                pass  # Already gone
            log.info("Command timed out after %ss: %s", timeout, command)
            return ProcessResult(
                command=command,
                exit_code=None,
                stdout="",
                stderr=f"Command timed out after {timeout}s",
                truncated=False,
                status="timeout",
                duration_ms=elapsed(),
            )

        stdout, out_truncated = _decode(stdout_data, output_limit)
        stderr, err_truncated = _decode(stderr_data, output_limit)
        exit_code = process.returncode

        return ProcessResult(
            command=command,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            truncated=out_truncated or err_truncated,
            status="ok" if exit_code == 0 else "error",
            duration_ms=elapsed(),
        )
