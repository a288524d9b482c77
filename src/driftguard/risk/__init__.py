"""Edit-risk heuristics."""

from driftguard.risk.scorer import RiskResult, RiskScorer, looks_like_test, score_activity

__all__ = [
    "RiskResult",
    "RiskScorer",
    "looks_like_test",
    "score_activity",
]
