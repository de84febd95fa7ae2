"""Structured logging implementation for dbgateway.

This module wraps structlog loggers with the keyword-argument interface
used throughout the gateway, plus request-scoped context that is safe
across concurrently running asyncio tasks.

Classes:
    StructuredLogger: Main structured logging interface

Example:
    >>> logger = StructuredLogger("dbgateway.registry")
    >>> with logger.context(engine="postgresql", request_id="r-12"):
    ...     logger.info("Pool created", max_size=5)
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator, Optional

import structlog

from ..core.exceptions import GatewayException


class StructuredLogger:
    """Structured logger with bound and request-scoped context.

    Bound context (``bind``) belongs to one logger instance. Scoped
    context (``context``) is stored in ``structlog.contextvars`` and
    is seen by every logger inside the current task until the block
    exits.

    Attributes:
        name: Logger name
    """

    def __init__(self, name: str, *, level: Optional[str] = None, _logger: Any = None) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (typically module name)
            level: Optional level override for the underlying stdlib logger
        """
        self.name = name
        self._logger = _logger if _logger is not None else structlog.get_logger(name)
        self._stdlib_logger = logging.getLogger(name)
        if level is not None:
            self.set_level(level)

    @contextmanager
    def context(self, **context_data: Any) -> Generator[None, None, None]:
        """Add context data to every event logged inside the block.

        Example:
            >>> with logger.context(engine="mysql"):
            ...     logger.info("Listing tables")
        """
        with structlog.contextvars.bound_contextvars(**context_data):
            yield

    def bind(self, **context_data: Any) -> "StructuredLogger":
        """Create new logger instance with bound context.

        Example:
            >>> pool_logger = logger.bind(engine="oracle", pool_size=5)
            >>> pool_logger.info("Pool ready")
        """
        return StructuredLogger(self.name, _logger=self._logger.bind(**context_data))

    def get_context(self) -> Dict[str, Any]:
        """Return the request-scoped context visible to this task."""
        return structlog.contextvars.get_contextvars()

    def set_level(self, level: str) -> None:
        """Set logging level.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

        Raises:
            GatewayException: If the level is unknown
        """
        log_level = logging.getLevelName(level.upper())
        if not isinstance(log_level, int):
            raise GatewayException(
                f"Unknown log level: {level}",
                code="UNKNOWN_LOG_LEVEL",
            )
        self._stdlib_logger.setLevel(log_level)

    def get_level(self) -> str:
        return logging.getLevelName(self._stdlib_logger.getEffectiveLevel())

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._logger.critical(message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an error with the active exception's traceback."""
        self._logger.error(message, exc_info=True, **kwargs)

    def __repr__(self) -> str:
        return f"StructuredLogger(name={self.name!r}, level={self.get_level()!r})"
