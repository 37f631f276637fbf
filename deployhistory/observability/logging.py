"""Structured logging configuration using structlog.

Services log JSON lines; the CLI switches to the console renderer so that
diagnostics stay readable next to its plain-text output.
"""

from __future__ import annotations

import logging
import sys

import structlog


def setup_logging(level: str = "info", *, console: bool = False) -> None:
    """Configure structlog to write to stderr at *level*."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: structlog.types.Processor
    if console:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

