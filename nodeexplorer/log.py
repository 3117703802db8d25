"""Logging setup for the nodeexplorer package.

Every module logs through ``logging.getLogger(__name__)`` under the
``nodeexplorer`` namespace. ``configure_logging`` attaches handlers once.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "nodeexplorer"
CONSOLE_FORMAT = "%(levelname)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 2 * 1024 * 1024
LOG_FILE_BACKUP_COUNT = 3

_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}
_HANDLER_TAG = "_nodeexplorer_handler"


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def _is_ours(handler: logging.Handler) -> bool:
    return bool(getattr(handler, _HANDLER_TAG, False))


def level_from_name(name: str) -> int:
    """Map a level name to its ``logging`` constant, defaulting to WARNING."""
    return _LEVELS.get(name.strip().upper(), logging.WARNING)


def configure_logging(level: str = "WARNING", log_file: Path | None = None) -> logging.Logger:
    """Install stderr (and optional rotating file) handlers on the package logger.

    Calling it again replaces the handlers it installed earlier and leaves
    handlers added by anyone else alone.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if _is_ours(handler):
            logger.removeHandler(handler)
            handler.close()

    logger.setLevel(level_from_name(level))

    console = _tag(logging.StreamHandler())
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = _tag(
            RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUP_COUNT,
                encoding="utf-8",
            )
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
