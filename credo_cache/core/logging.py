"""
Logging configuration for the Credo cache adapter.
Provides structured logging for cache operations and store connection events.
"""

import logging
import sys
from typing import Any, Dict, Optional
import structlog
from structlog.stdlib import LoggerFactory

from credo_cache.core.config import is_development, is_production, settings


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure structured logging for the adapter.

    Args:
        level: Log level name, defaults to the LOG_LEVEL setting
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _get_processor(),
        ],
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
    )

    # redis-py logs every reconnect attempt itself; the cache reports those
    logging.getLogger("redis").setLevel(logging.WARNING)


def _get_processor():
    """
    Pick the final renderer: JSON lines in production, console otherwise.

    Colours are only used in development so staging logs stay plain text.
    """
    if is_production():
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=is_development())


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        structlog.stdlib.BoundLogger: Configured logger instance
    """
    return structlog.get_logger(name)


class LoggerMixin:
    """Mixin class to add logging capabilities to any class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Get logger instance for this class."""
        return get_logger(self.__class__.__module__ + "." + self.__class__.__name__)


def log_cache_operation(
    source: str,
    operation: str,
    duration: float,
    success: bool = True,
    logger: Optional[Any] = None,
    **kwargs
) -> None:
    """
    Log a completed store call (the cache "trace" event).

    Args:
        source: Cache name the call was issued by
        operation: Operation type (get, set, clear, execute)
        duration: Elapsed time in milliseconds
        success: Whether the store call succeeded
        logger: Logger to write to, defaults to the "cache.operation" logger
        **kwargs: Additional context
    """
    logger = logger or get_logger("cache.operation")
    logger.debug(
        "Cache operation",
        source=source,
        operation=operation,
        duration_ms=round(duration, 3),
        success=success,
        **kwargs
    )


def log_error(error: Exception, context: Dict[str, Any] = None) -> None:
    """
    Log an error with context.

    Args:
        error: Exception instance
        context: Additional context information
    """
    logger = get_logger("error")
    logger.error(
        "An error occurred",
        error=str(error),
        error_type=type(error).__name__,
        context=context or {},
        exc_info=error,
    )
