"""Tests for glob-overlap and delegation containment."""

from __future__ import annotations

import pytest

from driftguard.coordination import ScopeClaim, ScopeCoordinator
from driftguard.coordination.scope import normalize_pattern, pattern_covers, patterns_overlap
from driftguard.session import Task


def _tasks(*tasks: Task) -> dict[str, Task]:
    return {t.task_id: t for t in tasks}


class TestPatterns:
    @pytest.mark.parametrize(
        ("a", "b", "expected"),
        [
            ("src/**", "src/**", True),
            ("src/**", "src/auth/login.py", True),
            ("src/auth/login.py", "src/**", True),
            ("src/*.py", "src/app.py", True),
            ("src/**", "docs/**", False),
            ("src/a/*", "src/b/*", False),
        ],
    )
    def test_overlap(self, a: str, b: str, expected: bool) -> None:
        assert patterns_overlap(a, b) is expected

    def test_normalize(self) -> None:
        assert normalize_pattern("./src\\auth\\x.py") == "src/auth/x.py"

    def test_covers_is_directional(self) -> None:
        assert pattern_covers("src/**", "src/auth/**")
        assert not pattern_covers("src/auth/**", "src/**")


class TestCheckConflict:
    def setup_method(self) -> None:
        self.coordinator = ScopeCoordinator()
        self.a = Task(task_id="task_a", title="A", goal="")
        self.b = Task(task_id="task_b", title="B", goal="")

    def test_exclusive_claim_blocks(self) -> None:
        claim = ScopeClaim("src/**", True, "task_a")
        conflict = self.coordinator.check_conflict(
            "src/auth/login.py", "task_b", [claim], _tasks(self.a, self.b)
        )
        assert conflict is claim

    def test_shared_claim_does_not_block(self) -> None:
        claim = ScopeClaim("src/**", False, "task_a")
        assert (
            self.coordinator.check_conflict("src/**", "task_b", [claim], _tasks(self.a, self.b))
            is None
        )

    def test_own_claims_ignored(self) -> None:
        claim = ScopeClaim("src/**", True, "task_b")
        assert self.coordinator.check_conflict("src/**", "task_b", [claim], _tasks(self.b)) is None

    def test_parent_claims_ignored(self) -> None:
        child = Task(task_id="sub_1", title="C", goal="", parent_task_id="task_a")
        claim = ScopeClaim("src/**", True, "task_a")
        assert (
            self.coordinator.check_conflict("src/auth/**", "sub_1", [claim], _tasks(self.a, child))
            is None
        )

    def test_sibling_claims_still_block(self) -> None:
        child = Task(task_id="sub_1", title="C", goal="", parent_task_id="task_a")
        claim = ScopeClaim("src/**", True, "task_b")
        assert (
            self.coordinator.check_conflict(
                "src/x.py", "sub_1", [claim], _tasks(self.a, self.b, child)
            )
            is claim
        )

    def test_non_overlapping(self) -> None:
        claim = ScopeClaim("docs/**", True, "task_a")
        assert (
            self.coordinator.check_conflict("src/**", "task_b", [claim], _tasks(self.a, self.b))
            is None
        )

    def test_find_conflicts_checks_each_path(self) -> None:
        claim = ScopeClaim("src/**", True, "task_a")
        conflicts = self.coordinator.find_conflicts(
            ["docs/readme.md", "src/app.py"], "task_b", [claim], _tasks(self.a, self.b)
        )
        assert conflicts == [claim]


class TestDelegation:
    def setup_method(self) -> None:
        self.coordinator = ScopeCoordinator()

    def test_contained(self) -> None:
        assert self.coordinator.validate_delegation(["src/**"], ["src/auth/**", "src/app.py"])

    def test_identical(self) -> None:
        assert self.coordinator.validate_delegation(["src/*.py"], ["src/*.py"])

    def test_not_contained(self) -> None:
        assert not self.coordinator.validate_delegation(["src/**"], ["docs/**"])
        assert self.coordinator.uncovered_paths(["src/**"], ["src/a.py", "docs/**"]) == ["docs/**"]
