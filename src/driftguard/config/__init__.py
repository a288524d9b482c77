"""Configuration management for DriftGuard.

Layered YAML configuration: system, user, project (``.driftguard/config.yaml``)
and finally DG_* environment variables.

Example usage:
    from driftguard.config import load_config

    config = load_config(project_root="/path/to/project")
    print(config.verify.timeout)
"""

from driftguard.config.loader import (
    deep_merge,
    get_config,
    load_config,
    reset_config,
)
from driftguard.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_system_config_path,
    get_user_config_path,
)
from driftguard.config.schema import (
    AuditConfig,
    Config,
    LoggingConfig,
    RiskConfig,
    StorageConfig,
    VerifyConfig,
)

__all__ = [
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "deep_merge",
    "AuditConfig",
    "LoggingConfig",
    "RiskConfig",
    "StorageConfig",
    "VerifyConfig",
    "get_config_paths",
    "get_project_config_path",
    "get_system_config_path",
    "get_user_config_path",
]
