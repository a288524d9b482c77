"""Logging setup for DriftGuard.

All modules log through children of the ``driftguard`` logger. Output goes to
a file (``logging.file`` in config, or DG_LOG) and otherwise to stderr, but
only when stderr is a terminal: under an MCP client stdout carries protocol
traffic and stderr is often captured.

Verbosity runs from 0 (errors) to 4 (trace) and overrides a named level.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from driftguard.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("driftguard")

# Index is the verbosity count; anything higher means TRACE
_VERBOSITY_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

_initialized = False


def level_from_name(name: str) -> int:
    """Numeric level for a name such as "debug" or "verbose"; INFO if unknown."""
    upper = name.strip().upper()
    if upper == "WARN":
        upper = "WARNING"
    level = logging.getLevelName(upper)
    return level if isinstance(level, int) else logging.INFO


def level_from_verbosity(count: int) -> int:
    if count < 0:
        return logging.ERROR
    if count >= len(_VERBOSITY_LEVELS):
        return TRACE
    return _VERBOSITY_LEVELS[count]


def resolve_level(config: LoggingConfig | None) -> int:
    """Map a LoggingConfig to a numeric level."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return level_from_verbosity(config.verbose)
    if config.level:
        return level_from_name(config.level)
    return logging.INFO


def _build_handlers(log_path: str | None) -> list[logging.Handler]:
    if log_path:
        try:
            return [logging.FileHandler(os.path.expanduser(log_path), mode="a", encoding="utf-8")]
        except OSError as e:
            if sys.stderr.isatty():
                print(f"[driftguard] cannot open log file {log_path}: {e}", file=sys.stderr)
    if sys.stderr.isatty():
        return [logging.StreamHandler(sys.stderr)]
    return []


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the package logger. Only the first call has effect."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    log_path = config.file if config and config.file else os.environ.get("DG_LOG")
    formatter = logging.Formatter(_FORMAT, datefmt="%H:%M:%S")
    for handler in _build_handlers(log_path):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if not logger.handlers:
        # Keep library warnings from reaching the root logger's lastResort handler
        logger.addHandler(logging.NullHandler())


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the ``driftguard`` logger, or the package logger itself."""
    if name:
        return logger.getChild(name)
    return logger
