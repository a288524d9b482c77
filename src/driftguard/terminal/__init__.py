"""Process execution for verification commands."""

from driftguard.terminal.protocol import ProcessExecutor
from driftguard.terminal.result import ProcessResult
from driftguard.terminal.subprocess_executor import SubprocessExecutor

__all__ = [
    "ProcessExecutor",
    "ProcessResult",
    "SubprocessExecutor",
]
