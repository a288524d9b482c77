"""Scope coordinator: conflict detection and delegation containment.

Claims are glob patterns. Two patterns overlap when they are identical or
when either one, used as an fnmatch pattern, accepts the other's literal
text. This catches nested scopes ("src/**" vs "src/auth/login.py") but not
two sibling globs that happen to share a file; it is a heuristic, not a glob
intersection algebra.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Mapping
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from driftguard.coordination.schema import ScopeClaim
from driftguard.logging import get_logger

if TYPE_CHECKING:
    from driftguard.session.schema import Task

log = get_logger("scope")


def normalize_pattern(pattern: str) -> str:
    """Normalize separators so Windows-style input compares equal."""
    normalized = PurePosixPath(pattern.replace("\\", "/")).as_posix()
    return normalized[2:] if normalized.startswith("./") else normalized


def patterns_overlap(pattern_a: str, pattern_b: str) -> bool:
    """Bidirectional containment test between two glob patterns."""
    a = normalize_pattern(pattern_a)
    b = normalize_pattern(pattern_b)
    if a == b:
        return True
    return fnmatch.fnmatch(a, b) or fnmatch.fnmatch(b, a)


def pattern_covers(parent: str, child: str) -> bool:
    """True if ``parent`` contains ``child`` (identical or matched by it)."""
    p = normalize_pattern(parent)
    c = normalize_pattern(child)
    return c == p or fnmatch.fnmatch(c, p)


class ScopeCoordinator:
    """Decides whether scope requests collide with existing claims.

    Stateless: every call receives the active claims and the task map, so the
    caller stays the single owner of session state.
    """

    def check_conflict(
        self,
        requested_path: str,
        requestor_task_id: str,
        active_claims: Iterable[ScopeClaim],
        tasks: Mapping[str, Task],
    ) -> ScopeClaim | None:
        """Return the first active claim that blocks ``requested_path``.

        Rules:
        - Claims owned by the requestor never block it.
        - Claims owned by the requestor's parent task never block it; a
          delegated child works inside the scope its parent claimed.
        - An overlapping claim blocks only if that claim is exclusive.

        Args:
            requested_path: Glob pattern being requested.
            requestor_task_id: Task asking for the scope.
            active_claims: Every claim currently held in the session.
            tasks: All tasks by id, used for the parent lookup.

        Returns:
            The conflicting claim, or None if the path can be granted.
        """
        requestor = tasks.get(requestor_task_id)
        parent_id = requestor.parent_task_id if requestor else None

        for claim in active_claims:
            if claim.owner_task_id == requestor_task_id:
                continue
            if parent_id is not None and claim.owner_task_id == parent_id:
                continue
            if not patterns_overlap(requested_path, claim.path):
                continue
            if claim.exclusive:
                log.debug(
                    "%s blocked for %s by exclusive claim %s (owner %s)",
                    requested_path,
                    requestor_task_id,
                    claim.path,
                    claim.owner_task_id,
                )
                return claim
        return None

    def find_conflicts(
        self,
        paths: Iterable[str],
        requestor_task_id: str,
        active_claims: list[ScopeClaim],
        tasks: Mapping[str, Task],
    ) -> list[ScopeClaim]:
        """Evaluate every path independently and collect blocking claims."""
        conflicts: list[ScopeClaim] = []
        for path in paths:
            conflict = self.check_conflict(path, requestor_task_id, active_claims, tasks)
            if conflict is not None:
                conflicts.append(conflict)
        return conflicts

    def uncovered_paths(self, parent_scope: Iterable[str], child_scope: Iterable[str]) -> list[str]:
        """Child patterns that no parent pattern covers."""
        parents = list(parent_scope)
        return [
            child
            for child in child_scope
            if not any(pattern_covers(parent, child) for parent in parents)
        ]

    def validate_delegation(self, parent_scope: Iterable[str], child_scope: Iterable[str]) -> bool:
        """Every child pattern must be covered by at least one parent pattern."""
        return not self.uncovered_paths(parent_scope, child_scope)
