"""
SellerOps Logging

structlog setup for command-line entry points. Their stdout carries the
command's JSON output, so log lines go to stderr.
"""

import logging
import sys
from typing import Any

import structlog


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # resolved per call so a swapped sys.stderr (pytest capture) is honoured
    return structlog.PrintLogger(sys.stderr)


def configure_logging(level: str = "info") -> None:
    """Route structlog output to stderr at `level` and above."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level.upper())),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
