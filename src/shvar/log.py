"""Structured logging setup.

Modules log through structlog on top of the standard ``logging`` tree, so
nothing is printed unless a caller attaches a handler with
``configure_logging``.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

MAX_LOG_BYTES = 5 * 1024 * 1024
BACKUP_LOG_FILES = 5
_ROOT_LOGGER_NAME = "shvar"

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def configure_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """Attach a handler to the ``shvar`` logger tree.

    Logs go to *log_file* (rotated) when given, otherwise to stderr.  Calling
    this again replaces the previous handler.
    """
    logger = logging.getLogger(_ROOT_LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    handler: logging.Handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=MAX_LOG_BYTES,
            backupCount=BACKUP_LOG_FILES,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False
    return logger
