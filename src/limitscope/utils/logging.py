"""Logging configuration for limitscope.

Library modules only create ``logging.getLogger(__name__)`` loggers. An
application that wants to see accounting diagnostics (fallback provider
failures, unreadable cgroup files, discarded rate samples) calls
``setup_logging`` once; handlers are attached to the ``limitscope`` logger so
the host application's root logging is left alone.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from rich.logging import RichHandler

PACKAGE_LOGGER = "limitscope"

_TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Emit each record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def _console_handler(level: str, rich_console: bool, json_format: bool) -> logging.Handler:
    if json_format:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        return handler
    if rich_console:
        return RichHandler(level=level, rich_tracebacks=True, markup=False, show_path=False)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    rich_console: bool = True,
    json_format: bool = False,
) -> logging.Logger:
    """Attach handlers to the limitscope logger.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        log_file: Also write plain-text records to this file
        rich_console: Pretty console output via rich
        json_format: JSON lines on the console (takes precedence over rich_console)

    Returns:
        The configured package logger
    """
    level = level.upper()
    logger = logging.getLogger(PACKAGE_LOGGER)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.addHandler(_console_handler(level, rich_console, json_format))
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
        logger.addHandler(file_handler)

    logger.setLevel(getattr(logging, level))
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. ``get_logger(__name__)``."""
    return logging.getLogger(name)
