"""Logging helpers for the sync server."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Union

LOGGER_NAME = "spectra_sync"
TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(level: Union[str, int] = logging.INFO, structured: bool = False) -> logging.Logger:
    """Configure the ``spectra_sync`` logger with a single console handler.

    Calling it again replaces the handler instead of stacking another one.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if structured else logging.Formatter(TEXT_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    _reset_handlers(logger)
    logger.setLevel(_resolve_level(level))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return int(level)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
