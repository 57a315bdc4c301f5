"""Structured logging configuration using structlog.

Pipeline components never configure logging themselves.  Each one accepts an
optional bound logger and falls back to ``get_logger(<component>)``, so a
host service can route collector diagnostics through its own processors.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Anything with structlog's bound-logger methods (debug/info/warning/error).
Logger = Any


def setup_logging(level: str = "info", json_output: bool = True) -> None:
    """Configure structlog for JSON (or human readable) output to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]


def resolve_logger(logger: Logger | None, component: str) -> Logger:
    """Return the injected *logger*, or the default one for *component*."""
    if logger is not None:
        return logger
    return get_logger(component)
