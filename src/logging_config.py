"""Structured logging setup.

The logger is built once at process start and handed to every component
that logs. Output always goes to stderr because stdout carries the stdio
protocol stream.
"""

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import FilteringBoundLogger

DEFAULT_LOG_LEVEL = "warn"

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def resolve_log_level(name: str | None) -> int:
    """Map a LOG_LEVEL setting onto a stdlib level number.

    Unknown or empty values fall back to ``warn``.
    """
    key = (name or "").strip().lower()
    return LOG_LEVELS.get(key, LOG_LEVELS[DEFAULT_LOG_LEVEL])


def configure_logging(level_name: str | None, stream: TextIO | None = None) -> FilteringBoundLogger:
    """Create the process logger.

    Args:
        level_name: One of error, warn, info, debug.
        stream: Output stream (defaults to stderr).

    Returns:
        A level-filtering structlog logger.
    """
    return structlog.wrap_logger(
        structlog.PrintLogger(file=stream or sys.stderr),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(level_name)),
    )
