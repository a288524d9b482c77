"""Platform-aware configuration path resolution.

- Windows: %PROGRAMDATA% (system), %APPDATA% (user)
- Unix: /etc/driftguard/ (system), $XDG_CONFIG_HOME, ~/.config/driftguard/ or ~/.driftguard/ (user)
- Project: <project_root>/.driftguard/
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
APP_NAME = "driftguard"
STATE_DIR_NAME = ".driftguard"


def get_system_config_path() -> Path | None:
    if sys.platform == "win32":
        program_data = os.environ.get("PROGRAMDATA")
        if program_data:
            return Path(program_data) / APP_NAME / CONFIG_FILENAME
        return None
    return Path("/etc") / APP_NAME / CONFIG_FILENAME


def get_user_config_path() -> Path | None:
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    home = Path.home()
    if (home / ".config").exists():
        return home / ".config" / APP_NAME / CONFIG_FILENAME
    return home / STATE_DIR_NAME / CONFIG_FILENAME


def get_project_config_path(project_root: str) -> Path:
    """Project config sits next to the state snapshot."""
    return Path(project_root) / STATE_DIR_NAME / CONFIG_FILENAME


def get_config_paths(project_root: str | None = None) -> list[Path]:
    """Get all config paths in merge order (lowest priority first)."""
    paths: list[Path] = []
    for candidate in (get_system_config_path(), get_user_config_path()):
        if candidate:
            paths.append(candidate)
    if project_root:
        paths.append(get_project_config_path(project_root))
    return paths
