"""Logging configuration helpers for the quiz service."""

from __future__ import annotations

import logging
from logging import Logger
import os

LOG_LEVEL_ENV_VAR = "QUIZDECK_LOG_LEVEL"
_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def resolve_log_level(raw_level: str | None) -> int:
    """Map a level name such as ``debug`` to its numeric value; INFO otherwise."""
    if not raw_level:
        return logging.INFO
    level = logging.getLevelName(raw_level.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None) -> Logger:
    """Configure root logging once and return the ``quizdeck`` logger.

    Without an explicit level, ``QUIZDECK_LOG_LEVEL`` decides.
    """
    if level is None:
        level = resolve_log_level(os.environ.get(LOG_LEVEL_ENV_VAR))
    logging.basicConfig(level=level, format=_LOG_FORMAT)
    logger = logging.getLogger("quizdeck")
    logger.setLevel(level)
    return logger
