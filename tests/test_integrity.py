"""Tests for content-hash drift detection."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from driftguard.integrity import DriftKind, HealthStatus, IntegrityMonitor, diff_hashes, hash_file


class TestDiffHashes:
    def test_new_modified_deleted(self) -> None:
        known = {"src/a.py": "1", "src/b.py": "2", "src/c.py": "3"}
        current = {"src/a.py": "1", "src/b.py": "changed", "src/d.py": "4"}
        findings = diff_hashes(current, known, ["src/**"])
        assert ("src/b.py", DriftKind.MODIFIED) in findings
        assert ("src/d.py", DriftKind.NEW) in findings
        assert ("src/c.py", DriftKind.DELETED) in findings
        assert len(findings) == 3

    def test_deleted_only_under_active_patterns(self) -> None:
        known = {"docs/old.md": "1"}
        assert diff_hashes({}, known, ["src/**"]) == []


class TestHashFile:
    def test_md5(self, tmp_path: Path) -> None:
        path = tmp_path / "f.txt"
        path.write_bytes(b"hello")
        assert hash_file(path) == hashlib.md5(b"hello").hexdigest()


class TestIntegrityMonitor:
    @pytest.fixture
    def monitor(self, project: Path, fake_vcs) -> IntegrityMonitor:
        (project / "src").mkdir()
        (project / "src" / "a.py").write_text("a\n", encoding="utf-8")
        (project / "docs").mkdir()
        (project / "docs" / "x.md").write_text("x\n", encoding="utf-8")
        return IntegrityMonitor(fake_vcs, str(project))

    @pytest.mark.asyncio
    async def test_hashes_only_matching_files(self, monitor: IntegrityMonitor) -> None:
        hashes = await monitor.calculate_file_hashes(["src/**"])
        assert list(hashes) == ["src/a.py"]

    @pytest.mark.asyncio
    async def test_empty_patterns(self, monitor: IntegrityMonitor) -> None:
        assert await monitor.calculate_file_hashes([]) == {}

    @pytest.mark.asyncio
    async def test_vanished_files_skipped(self, monitor: IntegrityMonitor, fake_vcs) -> None:
        fake_vcs.files = ["src/a.py", "src/gone.py"]
        hashes = await monitor.calculate_file_hashes(["src/**"])
        assert list(hashes) == ["src/a.py"]

    @pytest.mark.asyncio
    async def test_no_claims(self, monitor: IntegrityMonitor) -> None:
        report = await monitor.health_check([], {})
        assert report.status is HealthStatus.NO_CLAIMS

    @pytest.mark.asyncio
    async def test_clean_then_dirty(self, monitor: IntegrityMonitor, project: Path) -> None:
        baseline = await monitor.calculate_file_hashes(["src/**"])
        assert (await monitor.health_check(["src/**"], baseline)).status is HealthStatus.CLEAN

        (project / "src" / "a.py").write_text("edited\n", encoding="utf-8")
        report = await monitor.health_check(["src/**"], baseline)
        assert report.status is HealthStatus.DIRTY
        assert report.dirty_files == ["src/a.py (MODIFIED)"]
        assert report.to_dict() == {"status": "DIRTY", "dirtyFiles": ["src/a.py (MODIFIED)"]}
