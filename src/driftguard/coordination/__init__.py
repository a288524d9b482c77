"""Scope claims between tasks.

Tasks claim glob patterns before editing; overlapping exclusive claims held
by unrelated tasks block a request as a whole.
"""

from driftguard.coordination.schema import ClaimResult, ScopeClaim
from driftguard.coordination.scope import (
    ScopeCoordinator,
    normalize_pattern,
    pattern_covers,
    patterns_overlap,
)

__all__ = [
    "ClaimResult",
    "ScopeClaim",
    "ScopeCoordinator",
    "normalize_pattern",
    "pattern_covers",
    "patterns_overlap",
]
