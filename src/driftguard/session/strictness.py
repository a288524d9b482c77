"""Recommends a strictness level from what the project already has."""

from __future__ import annotations

import json
from pathlib import Path

from driftguard.logging import get_logger
from driftguard.session.schema import StrictnessLevel

log = get_logger("strictness")

MANIFESTS = ("package.json", "pyproject.toml", "setup.cfg", "setup.py")
TEST_CONFIGS = ("pytest.ini", "tox.ini")
CI_CONFIGS = (".github/workflows", ".gitlab-ci.yml", "Jenkinsfile")
NPM_PLACEHOLDER = "no test specified"


def _npm_has_tests(path: Path) -> bool:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return False
    script = (data.get("scripts") or {}).get("test") if isinstance(data, dict) else None
    return bool(script) and NPM_PLACEHOLDER not in script


def _pyproject_has_tests(path: Path) -> bool:
    try:
        return "[tool.pytest" in path.read_text(encoding="utf-8")
    except OSError:
        return False


def scan_for_strictness(project_path: str | Path) -> tuple[StrictnessLevel, str]:
    """Return a recommended level and the reason for it.

    CI config wins over test config, which wins over a bare manifest.
    """
    root = Path(project_path)

    for name in CI_CONFIGS:
        if (root / name).exists():
            return StrictnessLevel.ENGINEERED, f"Detected CI configuration ({name})"

    if (root / "package.json").is_file() and _npm_has_tests(root / "package.json"):
        return StrictnessLevel.BALANCED, "Detected test script in package.json"
    if (root / "pyproject.toml").is_file() and _pyproject_has_tests(root / "pyproject.toml"):
        return StrictnessLevel.BALANCED, "Detected pytest configuration in pyproject.toml"
    for name in TEST_CONFIGS:
        if (root / name).is_file():
            return StrictnessLevel.BALANCED, f"Detected test configuration ({name})"

    for name in MANIFESTS:
        if (root / name).is_file():
            return StrictnessLevel.LOGGED, f"Detected project manifest ({name})"

    log.debug("No manifest found under %s", root)
    return StrictnessLevel.VIBE, "No project manifest found"
