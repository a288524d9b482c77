"""Revision-control adapter protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CommitInfo:
    """One history entry touching a path."""

    sha: str
    author_email: str


class RevisionControl(Protocol):
    """What the engine needs from the project's revision control.

    Apart from ``log_entries`` every method degrades to a neutral value
    (False, None, empty) when the project is not a repository or the command
    fails. ``log_entries`` raises RevisionControlError so callers can report
    why history was unavailable.
    """

    async def is_repo(self) -> bool: ...

    async def head_hash(self) -> str | None: ...

    async def diff_stat(self) -> str: ...

    async def diff_detailed(self) -> str: ...

    async def changed_files(self) -> list[str]: ...

    async def list_files(self, patterns: list[str]) -> list[str]:
        """Tracked plus untracked-but-not-ignored files matching any pattern."""
        ...

    async def write_note(self, content: str, commit: str) -> bool:
        """Attach ``content`` to ``commit``, replacing any existing note."""
        ...

    async def read_note(self, commit: str) -> str | None: ...

    async def list_noted_commits(self) -> list[str]: ...

    async def log_entries(self, path: str, since_days: int, max_count: int) -> list[CommitInfo]: ...
