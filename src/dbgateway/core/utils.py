"""Utility functions for dbgateway operations.

This module provides the small validation, conversion and timing helpers
shared by the validators, adapters and normalizer.

Functions:
    measure_time: Context manager for measuring execution time
    safe_int: Best-effort integer coercion that keeps unset values unset
    first_present: Return the first mapping value found under a list of keys

Example:
    >>> with measure_time() as timer:
    ...     rows = await adapter.run_query(handle, "SELECT 1")
    >>> print(f"Query took {timer.duration:.3f}s")
"""

import re
import time
from contextlib import contextmanager
from typing import Any, Generator, Iterable, Mapping, Optional, Tuple


class ValidationUtils:
    """Utility class for validation operations."""

    SCHEMA_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$#]*$")
    HOSTNAME_PATTERN = re.compile(
        r"^(?=.{1,253}$)[A-Za-z0-9](?:[A-Za-z0-9_-]{0,61}[A-Za-z0-9])?"
        r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9_-]{0,61}[A-Za-z0-9])?)*\.?$"
    )
    IPV6_PATTERN = re.compile(r"^\[?[0-9A-Fa-f:.]{2,45}\]?$")

    @classmethod
    def validate_schema_name(cls, schema: Any) -> bool:
        """Validate a schema name supplied in a connection config."""
        return isinstance(schema, str) and bool(cls.SCHEMA_PATTERN.match(schema))

    @classmethod
    def validate_host(cls, host: Any) -> bool:
        """Validate a hostname, IPv4 or IPv6 address.

        Only a conservative character class is accepted so that malformed
        connection strings never reach a native driver.

        Args:
            host: Host value to validate

        Returns:
            True if host is acceptable
        """
        if not isinstance(host, str) or not host:
            return False
        if cls.HOSTNAME_PATTERN.match(host):
            return True
        return ":" in host and bool(cls.IPV6_PATTERN.match(host))

    @classmethod
    def parse_port(cls, port: Any) -> Tuple[bool, Optional[int]]:
        """Parse a port number.

        Args:
            port: Port number as int or numeric string

        Returns:
            Tuple of (is_valid, parsed_port)
        """
        if isinstance(port, bool):
            return False, None
        if isinstance(port, int):
            value = port
        elif isinstance(port, str) and port.strip().isdigit():
            value = int(port.strip())
        else:
            return False, None
        return 1 <= value <= 65535, value

    @staticmethod
    def is_blank(value: Any) -> bool:
        """Return True if value is missing or an empty string."""
        return value is None or (isinstance(value, str) and not value.strip())


class TimerContext:
    """Context manager for measuring execution time."""

    def __init__(self) -> None:
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    @property
    def duration(self) -> Optional[float]:
        """Get duration in seconds.

        Returns:
            Duration in seconds or None if not started
        """
        if self.start_time is None:
            return None

        end_time = self.end_time or time.perf_counter()
        return end_time - self.start_time

    def __enter__(self) -> "TimerContext":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.end_time = time.perf_counter()


@contextmanager
def measure_time() -> Generator[TimerContext, None, None]:
    """Context manager for measuring execution time.

    Yields:
        TimerContext instance for accessing duration
    """
    timer = TimerContext()
    with timer:
        yield timer


def safe_int(value: Any) -> Optional[int]:
    """Coerce a driver value to int, keeping missing values as None.

    Example:
        >>> safe_int("12")
        12
        >>> safe_int(None) is None
        True
        >>> safe_int("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        try:
            return int(float(value))
        except (ValueError, TypeError):
            return None


def first_present(data: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the value of the first key present in data and not None.

    Args:
        data: Mapping to search
        keys: Candidate keys in priority order

    Returns:
        First non-None value or None
    """
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None
