"""
Logging configuration using structlog for structured logging.

This module provides centralized logging setup for the worker, with support
for contextual logging and either JSON (for CI logs) or console output.
Log lines go to stderr so that stdout stays free for command output.
"""

import logging
import sys
from typing import Any

import structlog


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structured logging.

    Sets up structlog with a pipeline of processors that include timestamps,
    log levels, stack traces, and contextual information.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines if True, human-readable lines otherwise
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
