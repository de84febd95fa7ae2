"""Core primitives shared by every dbgateway component.

The base component classes live in :mod:`dbgateway.core.base` and are
imported from there directly to keep this package free of logging
imports.
"""

from .exceptions import (
    CatalogQueryFailedError,
    ConfigurationError,
    ConnectFailedError,
    ConnectionPoolError,
    DriverUnavailableError,
    ErrorCodes,
    GatewayConnectionError,
    GatewayException,
    QueryError,
    ReleaseFailedError,
    UnsupportedEngineError,
    ValidationError,
)
from .utils import ValidationUtils, first_present, measure_time, safe_int

__all__ = [
    # Exceptions
    "GatewayException",
    "ConfigurationError",
    "ValidationError",
    "UnsupportedEngineError",
    "DriverUnavailableError",
    "GatewayConnectionError",
    "ConnectFailedError",
    "ConnectionPoolError",
    "ReleaseFailedError",
    "QueryError",
    "CatalogQueryFailedError",
    "ErrorCodes",

    # Utilities
    "ValidationUtils",
    "first_present",
    "measure_time",
    "safe_int",
]
