# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Logging configuration for PMPulse."""

import logging
import sys
from typing import TextIO

from src.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level() -> int:
    """Get logging level from settings.

    Returns:
        Logging level constant, INFO for unknown names.
    """
    return LEVELS.get(get_settings().log_level.upper(), logging.INFO)


def setup_logging(
    level: int | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure application logging.

    Replaces any handlers already attached to the root logger so repeated
    calls (CLI commands, app restarts in tests) do not duplicate output.

    Args:
        level: Logging level. Defaults to settings value.
        stream: Output stream. Defaults to stderr.
    """
    if level is None:
        level = get_log_level()
    if stream is None:
        stream = sys.stderr

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(handler)

    _configure_library_loggers(level)


def _configure_library_loggers(app_level: int) -> None:
    """Configure third-party library log levels.

    Args:
        app_level: Application log level.
    """
    # SQLAlchemy echoes every statement at INFO
    sqlalchemy_level = logging.DEBUG if app_level == logging.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sqlalchemy_level)

    uvicorn_level = max(app_level, logging.INFO)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(uvicorn_level)

    # aiosqlite logs every cursor operation at DEBUG
    for name in ("apscheduler", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("alembic").setLevel(max(app_level, logging.INFO))


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name, typically __name__.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
