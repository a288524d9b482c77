"""Risk scorer: churn and author-count heuristic over recent history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from driftguard.errors import RevisionControlError
from driftguard.logging import get_logger
from driftguard.vcs.protocol import RevisionControl

log = get_logger("risk")

COMMIT_WEIGHT = 2
AUTHOR_WEIGHT = 5
TEST_FILE_DISCOUNT = 20
MAX_SCORE = 100


@dataclass
class RiskResult:
    score: int  # 0-100
    reason: str
    commits: int = 0
    authors: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.score, "reason": self.reason}


def looks_like_test(path: str) -> bool:
    lowered = path.lower()
    return "test" in lowered or "spec" in lowered


def score_activity(path: str, commits: int, authors: int) -> int:
    """``min(100, 2c + 5a)``, then discounted by 20 (floored at 0) for test files."""
    score = min(MAX_SCORE, COMMIT_WEIGHT * commits + AUTHOR_WEIGHT * authors)
    if looks_like_test(path):
        score = max(0, score - TEST_FILE_DISCOUNT)
    return score


def describe(score: int, commits: int, authors: int) -> str:
    if score > 70:
        return f"CRITICAL HOTSPOT: {commits} commits, {authors} authors"
    if score > 40:
        return f"High activity: {commits} commits"
    if score > 20:
        return "Moderate activity"
    return f"Low activity ({commits} commits)"


class RiskScorer:
    """Scores how risky it is to edit a path, from its recent churn."""

    def __init__(self, vcs: RevisionControl, window_days: int = 30, max_commits: int = 100) -> None:
        self._vcs = vcs
        self._window_days = window_days
        self._max_commits = max_commits

    async def calculate_risk(self, path: str) -> RiskResult:
        """Score ``path``; never raises for revision-control problems."""
        if not await self._vcs.is_repo():
            return RiskResult(score=0, reason="Not a git repository")

        try:
            entries = await self._vcs.log_entries(path, self._window_days, self._max_commits)
        except RevisionControlError as e:
            log.warning("Error calculating risk for %s: %s", path, e)
            return RiskResult(score=0, reason="Error accessing git logs")

        commits = len(entries)
        authors = len({entry.author_email for entry in entries})
        score = score_activity(path, commits, authors)
        return RiskResult(
            score=score,
            reason=describe(score, commits, authors),
            commits=commits,
            authors=authors,
        )
