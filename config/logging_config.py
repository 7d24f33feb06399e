"""Structured JSON logging shared by the API, the query engine and the producer."""

import logging
import sys

import structlog

_configured_level: int | None = None


def configure_logging(component: str, level: str = "INFO") -> structlog.BoundLogger:
    """Configure structlog once per level and return a logger bound to the component.

    Every module asks for its own logger through here, so the processor chain is
    only rebuilt when the requested level changes.
    """
    global _configured_level
    numeric = getattr(logging, level.upper(), logging.INFO)
    if _configured_level != numeric:
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.dev.set_exc_info,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(numeric),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
            cache_logger_on_first_use=False,
        )
        _configured_level = numeric
    return structlog.get_logger(component=component)
