"""Turns engine results and errors into tool response text."""

from __future__ import annotations

import json
from typing import Any

from driftguard.errors import DriftGuardError


def to_jsonable(value: Any) -> Any:
    """Recursively convert results (anything with ``to_dict``) to JSON data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def render_result(value: Any) -> str:
    if value is None:
        return "OK"
    if isinstance(value, str):
        return value
    return json.dumps(to_jsonable(value), indent=2)


def render_error(exc: BaseException) -> str:
    """Engine errors keep their message; anything else is reported generically."""
    if isinstance(exc, (DriftGuardError, ValueError)):
        return f"Error: {exc}"
    return f"Internal error: {type(exc).__name__}"
