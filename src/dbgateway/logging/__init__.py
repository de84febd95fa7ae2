"""dbgateway structured logging.

Structured logging on structlog with request-scoped context and
operation timing.

Example:
    >>> from dbgateway.logging import get_logger, get_performance_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Listing tables", engine="postgresql")
    >>>
    >>> perf = get_performance_logger("adapters")
    >>> with perf.measure("list_tables"):
    ...     pass
"""

from .factory import (
    LoggerConfig,
    LoggerFactory,
    configure_logging,
    get_factory,
    get_logger,
    get_performance_logger,
)
from .formatters import JSONFormatter, TextFormatter, get_formatter
from .handlers import ConsoleHandler, RotatingFileHandler
from .performance import PerformanceLogger, TimingContext
from .structured import StructuredLogger

__all__ = [
    # Factory and configuration
    "LoggerConfig",
    "LoggerFactory",
    "configure_logging",
    "get_factory",
    "get_logger",
    "get_performance_logger",

    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "get_formatter",

    # Handlers
    "ConsoleHandler",
    "RotatingFileHandler",

    # Performance logging
    "PerformanceLogger",
    "TimingContext",

    # Structured logging
    "StructuredLogger",
]
