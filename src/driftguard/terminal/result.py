"""Process execution result dataclass."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ProcessResult:
    """Result of running a verification command.

    Attributes:
        command: The shell command that was executed.
        exit_code: Process exit code (0 = success), or None if killed on timeout.
        stdout: Captured standard output (may be truncated).
        stderr: Captured standard error (may be truncated).
        truncated: True if either stream hit the output limit.
        status: "ok", "error" or "timeout".
        duration_ms: Execution duration in milliseconds.
    """

    command: str
    exit_code: int | None
    stdout: str
    stderr: str
    truncated: bool
    status: str
    duration_ms: float

    @property
    def success(self) -> bool:
        """True if command completed with exit code 0."""
        return self.exit_code == 0

    def __repr__(self) -> str:
        if self.success:
            return f"<ProcessResult ok, {self.duration_ms:.0f}ms>"
        return f"<ProcessResult {self.status}, exit={self.exit_code}>"
