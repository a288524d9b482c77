"""Configuration schema dataclasses for DriftGuard.

Defines the structure of configuration at all levels (system, user, project).
All fields carry defaults so partial configs merge together cleanly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEFAULT_NOTES_REF = "refs/notes/driftguard"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, wins over level
    file: str | None = None  # Log file path


@dataclass
class VerifyConfig:
    """Verification command execution limits.

    Example config.yaml:
        verify:
          timeout: 120
          output_limit: 2097152
    """

    timeout: float = 60.0  # Seconds before the command is killed
    output_limit: int = 1024 * 1024  # Bytes captured per stream
    default_command: str = 'echo "No test command configured"'


@dataclass
class RiskConfig:
    """Churn window used by the risk scorer."""

    window_days: int = 30
    max_commits: int = 100


@dataclass
class StorageConfig:
    """Where state lives and how much history is kept."""

    state_dir: str = ".driftguard"
    max_log_entries: int = 100


@dataclass
class AuditConfig:
    """Git notes namespace for audit records."""

    notes_ref: str = DEFAULT_NOTES_REF


@dataclass
class Config:
    """Root configuration object."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    audit: AuditConfig = field(default_factory=AuditConfig)

    # Unknown top-level sections are kept, not rejected
    extra: dict[str, Any] = field(default_factory=dict)
