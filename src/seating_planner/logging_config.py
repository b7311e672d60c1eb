"""
Logging setup for the command line and the Streamlit app.

Format: 2026-01-06T14:05:52Z [seating] LEVEL message

The level comes from the ``level`` argument, else ``LOG_LEVEL``, else INFO.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

ROOT_LOGGER = "seating_planner"


class ISO8601Formatter(logging.Formatter):
    """Formatter producing ISO8601 timestamps in UTC."""

    def __init__(self, source: str = "seating"):
        self.source = source
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{timestamp} [{self.source}] {record.levelname} {message}"


def configure_logging(level: Optional[str] = None, source: str = "seating") -> logging.Logger:
    """Install one stderr handler on the package logger. Safe to call twice."""
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_seating_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ISO8601Formatter(source))
    handler._seating_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.propagate = False
    return logger
