# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Logging configuration for the hotel PMS service."""

import logging
import sys
from typing import TextIO

from hotel_pms.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Characters of a secret left visible when masking
VISIBLE_SECRET_CHARS = 4

_LEVEL_MAP = {
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
    return _LEVEL_MAP.get(get_settings().log_level.upper(), logging.INFO)


def setup_logging(
    level: int | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure application logging.

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

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    _configure_library_loggers(level)


def _configure_library_loggers(app_level: int) -> None:
    """Configure third-party library log levels.

    Args:
        app_level: Application log level.
    """
    sqlalchemy_level = logging.DEBUG if app_level == logging.DEBUG else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(sqlalchemy_level)

    uvicorn_level = max(app_level, logging.INFO)
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(name).setLevel(uvicorn_level)

    for name in ("apscheduler", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def mask_secret(value: str | None) -> str:
    """Mask a secret for log output.

    Args:
        value: Secret such as an API key.

    Returns:
        Masked representation keeping only the last few characters.
    """
    if not value:
        return "<unset>"
    if len(value) <= VISIBLE_SECRET_CHARS:
        return "*" * len(value)
    return "*" * (len(value) - VISIBLE_SECRET_CHARS) + value[-VISIBLE_SECRET_CHARS:]
