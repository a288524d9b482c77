"""Git implementation of the revision-control adapter.

GitPython calls are blocking; every public coroutine hands the work to a
thread so the event loop keeps serving other requests.
"""

from __future__ import annotations

import asyncio

from git import Git, Repo
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError

from driftguard.config.schema import DEFAULT_NOTES_REF
from driftguard.errors import RevisionControlError
from driftguard.logging import get_logger
from driftguard.vcs.protocol import CommitInfo

log = get_logger("git")


def _unquote(path: str) -> str:
    if len(path) >= 2 and path[0] == path[-1] == '"':
        return path[1:-1]
    return path


def parse_porcelain(output: str) -> list[str]:
    """Changed paths from ``git status --porcelain`` (untracked excluded).

    Renames report the destination path. Order is preserved, duplicates
    dropped.
    """
    files: list[str] = []
    seen: set[str] = set()
    for line in output.splitlines():
        if len(line) < 4:
            continue
        code, path = line[:2], line[3:]
        if code in ("??", "!!"):
            continue
        if "R" in code or "C" in code:
            path = path.split(" -> ", 1)[-1]
        path = _unquote(path)
        if path not in seen:
            seen.add(path)
            files.append(path)
    return files


class GitAdapter:
    """Revision-control adapter backed by the git CLI through GitPython.

    Commands run with the project path as working directory, so listings are
    relative to the project even when it lives below the repository root.
    """

    def __init__(self, project_path: str, notes_ref: str = DEFAULT_NOTES_REF) -> None:
        self._project_path = str(project_path)
        self._notes_ref = notes_ref
        self._git = Git(self._project_path)
        self._is_repo: bool | None = None

    @property
    def project_path(self) -> str:
        return self._project_path

    @property
    def notes_ref(self) -> str:
        return self._notes_ref

    # Blocking helpers ------------------------------------------------------

    def _detect_repo(self) -> bool:
        if self._is_repo is None:
            try:
                Repo(self._project_path, search_parent_directories=True)
                self._is_repo = True
            except (InvalidGitRepositoryError, NoSuchPathError):
                self._is_repo = False
        return self._is_repo

    def _head_hash(self) -> str | None:
        if not self._detect_repo():
            return None
        try:
            return self._git.rev_parse("HEAD").strip() or None
        except GitError:
            return None

    def _diff(self, *args: str) -> str:
        if not self._detect_repo():
            return "Not a git repository"
        try:
            return self._git.diff(*args) or "No changes detected"
        except GitError as e:
            return f"Error getting diff: {e}"

    def _changed_files(self) -> list[str]:
        if not self._detect_repo():
            return []
        try:
            return parse_porcelain(self._git.status("--porcelain"))
        except GitError as e:
            log.debug("git status failed: %s", e)
            return []

    def _list_files(self, patterns: list[str]) -> list[str]:
        if not patterns or not self._detect_repo():
            return []
        try:
            output = self._git.ls_files("-c", "-o", "--exclude-standard", "--", *patterns)
        except GitError as e:
            log.debug("git ls-files failed: %s", e)
            return []
        # ls-files -c -o can list a path twice during merges
        return list(dict.fromkeys(line for line in output.splitlines() if line.strip()))

    def _write_note(self, content: str, commit: str) -> bool:
        if not self._detect_repo():
            return False
        try:
            self._git.notes("--ref", self._notes_ref, "add", "-f", "-m", content, commit)
        except GitError as e:
            log.warning("Failed to write git note on %s: %s", commit, e)
            return False
        return True

    def _read_note(self, commit: str) -> str | None:
        if not self._detect_repo():
            return None
        try:
            return self._git.notes("--ref", self._notes_ref, "show", commit)
        except GitError:
            return None

    def _list_noted_commits(self) -> list[str]:
        if not self._detect_repo():
            return []
        try:
            output = self._git.notes("--ref", self._notes_ref, "list")
        except GitError:
            return []
        commits: list[str] = []
        # Format: <note-object> <annotated-commit>
        for line in output.splitlines():
            parts = line.split()
            if parts:
                commits.append(parts[1] if len(parts) > 1 else parts[0])
        return commits

    def _log_entries(self, path: str, since_days: int, max_count: int) -> list[CommitInfo]:
        if not self._detect_repo():
            raise RevisionControlError("Not a git repository")
        try:
            output = self._git.log(
                f"--since={since_days} days ago",
                f"--max-count={max_count}",
                "--format=%H%x09%ae",
                "--",
                path,
            )
        except GitError as e:
            raise RevisionControlError(f"git log failed for {path}: {e}") from e
        entries: list[CommitInfo] = []
        for line in output.splitlines():
            sha, _, email = line.partition("\t")
            if sha:
                entries.append(CommitInfo(sha=sha, author_email=email))
        return entries

    # Async API -------------------------------------------------------------

    async def is_repo(self) -> bool:
        return await asyncio.to_thread(self._detect_repo)

    async def head_hash(self) -> str | None:
        return await asyncio.to_thread(self._head_hash)

    async def diff_stat(self) -> str:
        return await asyncio.to_thread(self._diff, "--stat")

    async def diff_detailed(self) -> str:
        return await asyncio.to_thread(self._diff)

    async def changed_files(self) -> list[str]:
        return await asyncio.to_thread(self._changed_files)

    async def list_files(self, patterns: list[str]) -> list[str]:
        return await asyncio.to_thread(self._list_files, list(patterns))

    async def write_note(self, content: str, commit: str) -> bool:
        return await asyncio.to_thread(self._write_note, content, commit)

    async def read_note(self, commit: str) -> str | None:
        return await asyncio.to_thread(self._read_note, commit)

    async def list_noted_commits(self) -> list[str]:
        return await asyncio.to_thread(self._list_noted_commits)

    async def log_entries(self, path: str, since_days: int, max_count: int) -> list[CommitInfo]:
        return await asyncio.to_thread(self._log_entries, path, since_days, max_count)
