"""Content-hash drift detection over claimed files."""

from driftguard.integrity.monitor import (
    DriftKind,
    HealthReport,
    HealthStatus,
    IntegrityMonitor,
    diff_hashes,
    hash_file,
    matches_any,
)

__all__ = [
    "DriftKind",
    "HealthReport",
    "HealthStatus",
    "IntegrityMonitor",
    "diff_hashes",
    "hash_file",
    "matches_any",
]
