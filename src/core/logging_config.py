"""Structured logging configuration.

This module initializes structlog with a stable JSON event format.
Events go to stderr so command output on stdout stays machine readable.
The minimum level comes from the runtime config through configure_logging.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from core.constants import DEFAULT_LOG_LEVEL

_log_level = DEFAULT_LOG_LEVEL


def configure_logging(log_level: str) -> None:
    """Set the minimum level for all Sluice loggers.

    Args:
        log_level: Validated level name, such as ``SluiceConfig.log_level``.
    """
    global _log_level
    _log_level = log_level
    _configure_structlog()


def get_logger(name: str) -> Any:
    """Return a module logger instance.

    Args:
        name: Logger name, usually __name__.

    Returns:
        A structlog logger with structured output.
    """
    _configure_structlog()
    return structlog.get_logger(name)


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(_log_level)
        ),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    """Bind output to the stderr stream active at call time."""
    return structlog.PrintLogger(sys.stderr)
