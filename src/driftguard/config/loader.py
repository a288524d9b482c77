"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Deep merging of system, user and project layers
- Environment variable overrides
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from driftguard.config.paths import get_config_paths
from driftguard.config.schema import (
    AuditConfig,
    Config,
    LoggingConfig,
    RiskConfig,
    StorageConfig,
    VerifyConfig,
)

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("driftguard.config")

_cached_config: Config | None = None

_KNOWN_SECTIONS = {"logging", "verify", "risk", "storage", "audit"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning an empty dict if missing or invalid."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.debug("Cannot read %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` onto ``base`` without mutating either.

    Nested dicts merge recursively, lists and scalars are replaced, and a
    None in ``override`` leaves the base value in place.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def env_overrides() -> dict[str, Any]:
    """Build a config dict from DG_* environment variables."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("DG_LOG")
    log_level = os.environ.get("DG_LOG_LEVEL")
    if log_path or log_level:
        overrides["logging"] = {"file": log_path, "level": log_level}

    timeout = os.environ.get("DG_VERIFY_TIMEOUT")
    if timeout:
        try:
            overrides["verify"] = {"timeout": float(timeout)}
        except ValueError:
            _log.warning("Ignoring non-numeric DG_VERIFY_TIMEOUT=%r", timeout)

    return overrides


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert a merged dict to the typed Config dataclass."""
    log_data = data.get("logging") or {}
    verify_data = data.get("verify") or {}
    risk_data = data.get("risk") or {}
    storage_data = data.get("storage") or {}
    audit_data = data.get("audit") or {}

    defaults = Config()

    return Config(
        logging=LoggingConfig(
            level=log_data.get("level"),
            verbose=log_data.get("verbose"),
            file=log_data.get("file"),
        ),
        verify=VerifyConfig(
            timeout=float(verify_data.get("timeout", defaults.verify.timeout)),
            output_limit=int(verify_data.get("output_limit", defaults.verify.output_limit)),
            default_command=verify_data.get("default_command", defaults.verify.default_command),
        ),
        risk=RiskConfig(
            window_days=int(risk_data.get("window_days", defaults.risk.window_days)),
            max_commits=int(risk_data.get("max_commits", defaults.risk.max_commits)),
        ),
        storage=StorageConfig(
            state_dir=storage_data.get("state_dir", defaults.storage.state_dir),
            max_log_entries=int(
                storage_data.get("max_log_entries", defaults.storage.max_log_entries)
            ),
        ),
        audit=AuditConfig(notes_ref=audit_data.get("notes_ref", defaults.audit.notes_ref)),
        extra={k: v for k, v in data.items() if k not in _KNOWN_SECTIONS},
    )


def load_config(project_root: str | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables (DG_LOG, DG_LOG_LEVEL, DG_VERIFY_TIMEOUT)
    2. Project config (<project_root>/.driftguard/config.yaml)
    3. User config
    4. System config

    Only the global (project-less) config is cached.
    """
    global _cached_config

    if _cached_config is not None and not reload and project_root is None:
        return _cached_config

    merged: dict[str, Any] = {}
    for path in get_config_paths(project_root):
        layer = load_yaml_file(path)
        if layer:
            _log.debug("Loaded config from %s", path)
            merged = deep_merge(merged, layer)
    merged = deep_merge(merged, env_overrides())

    config = dict_to_config(merged)
    if project_root is None:
        _cached_config = config
    return config


def get_config() -> Config:
    """Get the cached global config, loading it on first use."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Drop the cached config (tests, forced reloads)."""
    global _cached_config
    _cached_config = None
