"""Integrity monitor: detects edits made outside tracked operations.

A baseline of content hashes is taken whenever claims are granted and again
just before they are released at checkpoint. A health check recomputes the
hashes for every actively claimed pattern and reports what changed.
"""

from __future__ import annotations

import asyncio
import fnmatch
import hashlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from driftguard.logging import get_logger
from driftguard.vcs.protocol import RevisionControl

log = get_logger("integrity")

_CHUNK_SIZE = 64 * 1024


class HealthStatus(Enum):
    CLEAN = "CLEAN"
    DIRTY = "DIRTY"
    NO_CLAIMS = "NO_CLAIMS"


class DriftKind(Enum):
    NEW = "NEW"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass
class HealthReport:
    status: HealthStatus
    findings: list[tuple[str, DriftKind]] = field(default_factory=list)

    @property
    def dirty_files(self) -> list[str]:
        """Findings rendered as ``"<path> (<KIND>)"``."""
        return [f"{path} ({kind.value})" for path, kind in self.findings]

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "dirtyFiles": self.dirty_files}


def hash_file(path: Path) -> str:
    """MD5 hex digest of a file's bytes."""
    digest = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatch(path, pattern) for pattern in patterns)


def diff_hashes(
    current: Mapping[str, str],
    known: Mapping[str, str],
    patterns: Iterable[str],
) -> list[tuple[str, DriftKind]]:
    """Compare a fresh hash map against the baseline.

    A path missing from ``current`` counts as DELETED only while some active
    pattern still matches it; files whose claim was released are not reported.
    """
    findings: list[tuple[str, DriftKind]] = []
    for path, digest in current.items():
        baseline = known.get(path)
        if baseline is None:
            findings.append((path, DriftKind.NEW))
        elif baseline != digest:
            findings.append((path, DriftKind.MODIFIED))

    pattern_list = list(patterns)
    for path in known:
        if path in current:
            continue
        if matches_any(path, pattern_list):
            findings.append((path, DriftKind.DELETED))
    return findings


class IntegrityMonitor:
    """Snapshots and diffs content hashes of claimed files."""

    def __init__(self, vcs: RevisionControl, project_path: str) -> None:
        self._vcs = vcs
        self._root = Path(project_path)

    def _hash_all(self, files: list[str]) -> dict[str, str]:
        hashes: dict[str, str] = {}
        for name in files:
            try:
                hashes[name] = hash_file(self._root / name)
            except OSError:
                # Vanished between listing and reading, or a directory entry
                log.debug("Skipping unreadable file %s", name)
        return hashes

    async def calculate_file_hashes(self, patterns: Iterable[str]) -> dict[str, str]:
        """Hash every listed file matching any of ``patterns``.

        Returns:
            Mapping of project-relative path to MD5 hex digest.
        """
        pattern_list = list(patterns)
        if not pattern_list:
            return {}
        files = await self._vcs.list_files(pattern_list)
        return await asyncio.to_thread(self._hash_all, files)

    async def health_check(
        self,
        active_patterns: Iterable[str],
        known_hashes: Mapping[str, str],
    ) -> HealthReport:
        """Compare the current state of claimed files with the baseline."""
        patterns = list(active_patterns)
        if not patterns:
            return HealthReport(status=HealthStatus.NO_CLAIMS)

        current = await self.calculate_file_hashes(patterns)
        findings = diff_hashes(current, known_hashes, patterns)
        if findings:
            log.info("Integrity check found %d drifted file(s)", len(findings))
            return HealthReport(status=HealthStatus.DIRTY, findings=findings)
        return HealthReport(status=HealthStatus.CLEAN)
