"""Application-wide logger writing to platformdirs user_log_dir."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "tasktree_cli"
_LOG_FILE = "tasktree.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

_logger: logging.Logger | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger, initialising it on first call.

    Args:
        name: Optional child name (e.g. "cascade"), logged as tasktree_cli.<name>
    """
    global _logger
    if _logger is None:
        _logger = _init_logger()
    if name:
        return _logger.getChild(name)
    return _logger


def set_level(level: str) -> None:
    """Change the application log level (from config ``logging.level``)."""
    get_logger().setLevel(getattr(logging, level.upper(), logging.INFO))


def _init_logger() -> logging.Logger:
    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    if logger.handlers:
        return logger

    try:
        log_dir = Path(user_log_dir(_APP_NAME))
        log_dir.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            log_dir / _LOG_FILE,
            maxBytes=_MAX_BYTES,
            backupCount=_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        # Read-only home directory; logging must never break a command
        handler = logging.NullHandler()

    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )
    logger.addHandler(handler)
    return logger
