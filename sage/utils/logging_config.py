"""
Logging configuration using structlog for structured, JSON-based logging.

This module provides centralized logging setup for the service, with support
for request-scoped context (request IDs, product names) via contextvars.
"""

import sys
from typing import Any

import structlog


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging with JSON output.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level.upper()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_context(**kwargs: Any) -> None:
    """Bind values to the logging context of the current task or thread.

    Example:
        >>> bind_context(request_id="abc123", product="ops-manager")
        >>> log.info("plan_built")  # includes request_id and product
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Remove all values bound with bind_context."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str | None = None) -> Any:
    """Get a logger instance.

    Args:
        name: Optional logger name (typically __name__ from calling module)

    Returns:
        A structlog logger instance
    """
    return structlog.get_logger(name)
