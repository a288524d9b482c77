"""Tests for the churn-based risk scorer."""

from __future__ import annotations

import pytest

from driftguard.risk import RiskScorer, score_activity
from driftguard.vcs import CommitInfo


def _history(commits: int, authors: int) -> list[CommitInfo]:
    return [CommitInfo(sha=f"{i:040x}", author_email=f"dev{i % authors}@x.io") for i in range(commits)]


class TestScoreActivity:
    @pytest.mark.parametrize(
        ("path", "commits", "authors", "expected"),
        [
            ("src/app.py", 0, 0, 0),
            ("src/app.py", 5, 2, 20),
            ("src/app.py", 40, 10, 100),
            ("tests/test_app.py", 5, 2, 0),
            ("src/app.spec.ts", 20, 2, 30),
            ("src/Testing.py", 3, 1, 0),
            ("tests/test_core.py", 50, 1, 80),
            ("tests/test_core.py", 60, 10, 80),
        ],
    )
    def test_formula(self, path: str, commits: int, authors: int, expected: int) -> None:
        assert score_activity(path, commits, authors) == expected


class TestRiskScorer:
    @pytest.mark.asyncio
    async def test_not_a_repo(self, fake_vcs) -> None:
        fake_vcs.repo = False
        result = await RiskScorer(fake_vcs).calculate_risk("src/app.py")
        assert result.score == 0
        assert result.reason == "Not a git repository"

    @pytest.mark.asyncio
    async def test_git_error(self, fake_vcs) -> None:
        fake_vcs.log_error = RuntimeError("boom")
        result = await RiskScorer(fake_vcs).calculate_risk("src/app.py")
        assert result.score == 0
        assert result.reason == "Error accessing git logs"

    @pytest.mark.asyncio
    async def test_hotspot(self, fake_vcs) -> None:
        fake_vcs.history["src/core.py"] = _history(30, 4)
        result = await RiskScorer(fake_vcs).calculate_risk("src/core.py")
        assert result.score == 80
        assert result.reason == "CRITICAL HOTSPOT: 30 commits, 4 authors"

    @pytest.mark.asyncio
    async def test_high(self, fake_vcs) -> None:
        fake_vcs.history["src/core.py"] = _history(20, 1)
        result = await RiskScorer(fake_vcs).calculate_risk("src/core.py")
        assert result.score == 45
        assert result.reason == "High activity: 20 commits"

    @pytest.mark.asyncio
    async def test_moderate(self, fake_vcs) -> None:
        fake_vcs.history["src/core.py"] = _history(8, 2)
        result = await RiskScorer(fake_vcs).calculate_risk("src/core.py")
        assert result.score == 26
        assert result.reason == "Moderate activity"

    @pytest.mark.asyncio
    async def test_low(self, fake_vcs) -> None:
        result = await RiskScorer(fake_vcs).calculate_risk("src/quiet.py")
        assert result.score == 0
        assert result.reason == "Low activity (0 commits)"

    @pytest.mark.asyncio
    async def test_max_commits_passed_through(self, fake_vcs) -> None:
        fake_vcs.history["src/core.py"] = _history(50, 1)
        result = await RiskScorer(fake_vcs, max_commits=10).calculate_risk("src/core.py")
        assert result.commits == 10
