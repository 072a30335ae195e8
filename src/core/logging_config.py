"""Structured logging configuration.

This module initializes structlog loggers with a stable structured format.
Rendered events are handed to standard logging so that hosts and tests
control handlers and levels in one place.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with JSON structured output.
    """
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(name)


def enable_console_logging(level: int = logging.INFO) -> None:
    """Send structured log lines to stderr at the given level.

    Args:
        level: Minimum standard logging level to emit.
    """
    root_logger = logging.getLogger()
    if not any(getattr(handler, "_stash_console", False) for handler in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler._stash_console = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)
    root_logger.setLevel(level)
