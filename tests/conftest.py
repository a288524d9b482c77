"""Root pytest configuration: protocol fakes and throwaway git repositories."""

from __future__ import annotations

import fnmatch
from pathlib import Path

import pytest
from git import Repo

from driftguard.config import Config, reset_config
from driftguard.errors import RevisionControlError
from driftguard.session import SessionEngine
from driftguard.terminal import ProcessResult
from driftguard.vcs import CommitInfo

pytest_plugins = ("pytest_asyncio",)


class FakeRevisionControl:
    """In-memory RevisionControl.

    ``files`` lists the project-relative paths ``list_files`` can return;
    contents come from the real files under ``root`` so hashing works.
    """

    def __init__(self, root: Path | None = None, *, repo: bool = True) -> None:
        self.root = root
        self.repo = repo
        self.head: str | None = "a" * 40 if repo else None
        self.files: list[str] = []
        self.changed: list[str] = []
        self.notes: dict[str, str] = {}
        self.history: dict[str, list[CommitInfo]] = {}
        self.log_error: Exception | None = None
        self.write_fails = False

    async def is_repo(self) -> bool:
        return self.repo

    async def head_hash(self) -> str | None:
        return self.head

    async def diff_stat(self) -> str:
        if not self.changed:
            return "No changes detected"
        return "\n".join(f" {name} | 1 +" for name in self.changed)

    async def diff_detailed(self) -> str:
        return await self.diff_stat()

    async def changed_files(self) -> list[str]:
        return list(self.changed)

    async def list_files(self, patterns: list[str]) -> list[str]:
        names = self.files
        if self.root is not None and not names:
            names = sorted(
                p.relative_to(self.root).as_posix()
                for p in self.root.rglob("*")
                if p.is_file() and ".driftguard" not in p.parts
            )
        return [n for n in names if any(fnmatch.fnmatch(n, pat) for pat in patterns)]

    async def write_note(self, content: str, commit: str) -> bool:
        if self.write_fails or not self.repo:
            return False
        self.notes[commit] = content
        return True

    async def read_note(self, commit: str) -> str | None:
        return self.notes.get(commit)

    async def list_noted_commits(self) -> list[str]:
        return list(self.notes)

    async def log_entries(self, path: str, since_days: int, max_count: int) -> list[CommitInfo]:
        if self.log_error is not None:
            raise RevisionControlError(str(self.log_error))
        return self.history.get(path, [])[:max_count]


class FakeExecutor:
    """ProcessExecutor that records commands and returns a canned result."""

    def __init__(self, exit_code: int | None = 0, status: str | None = None) -> None:
        self.exit_code = exit_code
        self.status = status
        self.calls: list[tuple[str, str | None, float | None, int]] = []

    async def execute(
        self,
        command: str,
        cwd: str | None = None,
        timeout: float | None = 60.0,
        output_limit: int = 1024 * 1024,
    ) -> ProcessResult:
        self.calls.append((command, cwd, timeout, output_limit))
        status = self.status or ("ok" if self.exit_code == 0 else "error")
        return ProcessResult(
            command=command,
            exit_code=self.exit_code,
            stdout="1 passed\n" if self.exit_code == 0 else "",
            stderr="" if self.exit_code == 0 else "1 failed\n",
            truncated=False,
            status=status,
            duration_ms=12.0,
        )


@pytest.fixture(autouse=True)
def _isolated_config():
    """Never let a developer's config leak into a test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def fake_vcs(project: Path) -> FakeRevisionControl:
    return FakeRevisionControl(project)


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def engine(project: Path, fake_vcs: FakeRevisionControl, fake_executor: FakeExecutor) -> SessionEngine:
    return SessionEngine(project, config=Config(), vcs=fake_vcs, executor=fake_executor)


@pytest.fixture
def git_repo(tmp_path: Path) -> Repo:
    """A repository with one commit containing src/app.py and README.md."""
    root = tmp_path / "repo"
    repo = Repo.init(root)
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Test User")
        cw.set_value("user", "email", "test@example.com")
        cw.set_value("commit", "gpgsign", "false")

    (root / "src").mkdir()
    (root / "src" / "app.py").write_text("print('hello')\n", encoding="utf-8")
    (root / "README.md").write_text("# Demo\n", encoding="utf-8")
    repo.index.add(["src/app.py", "README.md"])
    repo.index.commit("Initial commit")
    return repo
