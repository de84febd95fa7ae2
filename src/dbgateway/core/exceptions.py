"""dbgateway exception hierarchy.

This module defines the structured exceptions raised across the gateway.
Every exception carries an error code, optional context and an optional
cause so that the HTTP layer can render a clean message while logs keep
the full picture.

Classes:
    GatewayException: Base exception for all gateway operations
    ConfigurationError: Configuration related errors
    ValidationError: Connection configuration failed validation
    UnsupportedEngineError: Engine is not in the adapter table
    DriverUnavailableError: Native driver for an engine cannot be imported
    GatewayConnectionError: Base for connection and pool errors
    ConnectFailedError: Network, auth or engine-side failure during connect
    ConnectionPoolError: Pool registry or pool lifecycle errors
    ReleaseFailedError: Returning a connection to its pool failed
    QueryError: Statement execution errors
    CatalogQueryFailedError: Catalog introspection query failed

Example:
    >>> try:
    ...     handle = await adapter.connect(entry)
    ... except ConnectFailedError as e:
    ...     logger.error("Connection failed", error_code=e.code, context=e.context)
"""

from typing import Any, Dict, Iterable, Optional


class GatewayException(Exception):
    """Base exception for all dbgateway operations.

    Attributes:
        message: Human-readable error description, safe to show to API callers
        code: Unique error code for categorization
        context: Additional context information about the error
        cause: Original exception that caused this error (if any)

    Example:
        >>> raise GatewayException(
        ...     "Operation failed",
        ...     code="OPERATION_FAILED",
        ...     context={"engine": "postgresql"}
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        """Initialize gateway exception.

        Args:
            message: Human-readable error description
            code: Unique error code for categorization (defaults to class name)
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message: str = message
        self.code: str = code or self.__class__.__name__
        self.context: Dict[str, Any] = context or {}
        self.cause: Optional[BaseException] = cause

    def __str__(self) -> str:
        """Return formatted error message with code."""
        return f"{self.code}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"context={self.context!r}, "
            f"cause={self.cause!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(GatewayException):
    """Configuration related errors.

    Raised when gateway settings or a connection configuration cannot be
    loaded or processed.
    """
    pass


class ValidationError(ConfigurationError):
    """Connection configuration failed validation.

    Raised before any network I/O is attempted. The message is the
    engine-specific reason produced by the validator.
    """
    pass


class UnsupportedEngineError(ConfigurationError):
    """Requested engine is not in the adapter table."""

    def __init__(
        self,
        engine: str,
        supported: Iterable[str],
        **kwargs: Any,
    ) -> None:
        supported_list = sorted(supported)
        super().__init__(
            f"Unsupported database engine '{engine}'. "
            f"Supported engines: {', '.join(supported_list)}",
            code=kwargs.pop("code", ErrorCodes.ENGINE_UNSUPPORTED),
            context={"engine": engine, "supported_engines": supported_list},
            **kwargs,
        )
        self.engine = engine
        self.supported = supported_list


class DriverUnavailableError(GatewayException):
    """An adapter exists but its native driver is not installed or loadable."""
    pass


class GatewayConnectionError(GatewayException):
    """Base class for connection and pool errors."""
    pass


class ConnectFailedError(GatewayConnectionError):
    """Connection establishment or liveness probe failed.

    The message always includes the underlying engine error text.
    """
    pass


class ConnectionPoolError(GatewayConnectionError):
    """Pool registry or pool lifecycle errors.

    Raised when a pool is used after shutdown or cannot hand out a
    connection within the acquire timeout.
    """
    pass


class ReleaseFailedError(GatewayConnectionError):
    """Returning a connection to its pool failed.

    Handles log this error and never propagate it to the caller.
    """
    pass


class QueryError(GatewayException):
    """SQL statement execution errors."""
    pass


class CatalogQueryFailedError(QueryError):
    """Catalog introspection failed on an otherwise healthy connection."""
    pass


class ErrorCodes:
    """Standard error codes for dbgateway exceptions."""

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"
    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_VALIDATION_FAILED = "CONFIG_VALIDATION_FAILED"
    ENGINE_UNSUPPORTED = "ENGINE_UNSUPPORTED"

    # Driver errors
    DRIVER_UNAVAILABLE = "DRIVER_UNAVAILABLE"

    # Connection errors
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"
    CONNECTION_REFUSED = "CONNECTION_REFUSED"
    AUTH_FAILED = "AUTH_FAILED"
    PROBE_FAILED = "PROBE_FAILED"
    POOL_CLOSED = "POOL_CLOSED"
    POOL_EXHAUSTED = "POOL_EXHAUSTED"
    RELEASE_FAILED = "RELEASE_FAILED"

    # Query errors
    CATALOG_QUERY_FAILED = "CATALOG_QUERY_FAILED"
    QUERY_EXECUTION_FAILED = "QUERY_EXECUTION_FAILED"

    # Request errors
    BAD_REQUEST = "BAD_REQUEST"
    INTERNAL_ERROR = "INTERNAL_ERROR"
