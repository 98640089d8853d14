"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Loader modules log snake_case events with keyword fields.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

_CONFIGURED = False


def configure_logging(level: int = logging.INFO) -> None:
    """Configure structlog processors and minimum level.

    Args:
        level: Minimum stdlib logging level to emit.
    """
    global _CONFIGURED
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
    _CONFIGURED = True


def _stderr_logger(*args: Any) -> Any:
    # sys.stderr is looked up per logger so redirected streams are honored
    return structlog.PrintLogger(file=sys.stderr)


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    if not _CONFIGURED:
        configure_logging()
    return structlog.get_logger(name)
