"""Logging configuration helpers for the trivia application."""

from __future__ import annotations

import logging
from logging import Logger


def configure_logging(level: str | int = logging.INFO) -> Logger:
    """Configure basic logging for the application and return the package logger."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # httpx logs every request at INFO; keep backend chatter at warnings.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLogger("trivia_app")
