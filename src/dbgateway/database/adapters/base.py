"""Engine adapter base class.

An adapter hides one engine's native driver behind the gateway's async
contract: build a pool, lease a probed connection, run catalog queries
and caller SQL. Adapters are stateless; the pools they create are owned
by the pool registry.

Classes:
    EngineAdapter: Abstract base for all engine adapters

Functions:
    split_type_modifiers: Split ``VARCHAR(255)``/``NUMERIC(10,2)`` style types
"""

import asyncio
import functools
import importlib
import importlib.util
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Sequence, Tuple, Union

from ...config.models import PoolConfig
from ...core.exceptions import (
    CatalogQueryFailedError,
    ConnectFailedError,
    ConnectionPoolError,
    DriverUnavailableError,
    ErrorCodes,
    GatewayException,
    QueryError,
)
from ...core.utils import measure_time
from ...logging import get_logger, get_performance_logger
from ..engines import Engine, EngineInfo, get_engine_info
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, QueryResult, TableDescriptor, encode_cell

if TYPE_CHECKING:
    from ..registry import PoolEntry

Params = Optional[Union[Sequence[Any], Dict[str, Any]]]
Rows = List[Dict[str, Any]]

_TYPE_MODIFIERS = re.compile(r"^\s*([^(]+?)\s*\(\s*(\d+)\s*(?:,\s*(-?\d+)\s*)?\)")
_NUMERIC_TYPES = {"numeric", "decimal", "dec", "number"}

# Lowercased driver message fragments that indicate rejected credentials
_AUTH_MARKERS = (
    "authentication failed",
    "password authentication",
    "login failed",
    "access denied",
    "invalid username",
    "invalid user",
    "ora-01017",
)


def split_type_modifiers(type_name: Optional[str]) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Extract length, precision and scale from a declared type.

    Example:
        >>> split_type_modifiers("VARCHAR(255)")
        (255, None, None)
        >>> split_type_modifiers("NUMERIC(10,2)")
        (None, 10, 2)
    """
    if not type_name:
        return None, None, None
    match = _TYPE_MODIFIERS.match(str(type_name))
    if match is None:
        return None, None, None

    base, first, second = match.groups()
    if second is not None or base.strip().lower() in _NUMERIC_TYPES:
        return None, int(first), int(second) if second is not None else None
    return int(first), None, None


class EngineAdapter(ABC):
    """Abstract base for engine adapters.

    Subclasses provide the native pool operations (``_create_pool``,
    ``close_pool``, ``_acquire``, ``_release``), one fetch primitive
    (``_fetch``) and the two catalog queries. Everything else (timeouts,
    probing, error mapping, timing) lives here.

    Attributes:
        engine: Engine this adapter serves
        probe_sql: Liveness probe run on every leased connection
        quote_chars: Opening and closing identifier quote characters
        limit_style: Row limiting syntax for previews (limit, top, fetch, first)
        pool_bounds_acquire: The pool enforces its own acquire and connect timeouts
    """

    engine: ClassVar[Engine]
    probe_sql: ClassVar[str] = "SELECT 1"
    quote_chars: ClassVar[Tuple[str, str]] = ('"', '"')
    limit_style: ClassVar[str] = "limit"
    pool_bounds_acquire: ClassVar[bool] = False

    def __init__(self) -> None:
        self.logger = get_logger(f"dbgateway.adapters.{self.engine.value}")
        self.perf_logger = get_performance_logger(f"adapters.{self.engine.value}")

    @property
    def info(self) -> EngineInfo:
        return get_engine_info(self.engine)

    # Driver loading

    def driver_available(self) -> bool:
        """Whether the native driver can be imported, without importing it."""
        try:
            return importlib.util.find_spec(self.info.driver_module) is not None
        except (ImportError, ValueError):
            return False

    def load_driver(self) -> Any:
        """Import and return the native driver module.

        Raises:
            DriverUnavailableError: If the driver is not installed
        """
        try:
            return importlib.import_module(self.info.driver_module)
        except ImportError as e:
            raise DriverUnavailableError(
                f"{self.info.display_name} driver is not available. "
                f"Install it with: pip install {self.info.driver_package}",
                code=ErrorCodes.DRIVER_UNAVAILABLE,
                context={"engine": self.engine.value, "driver": self.info.driver_package},
                cause=e,
            ) from e

    # Pool lifecycle

    async def create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        """Create a native pool bounded by ``pool_config``.

        Raises:
            ConnectFailedError: If the pool or its first connection cannot be opened
        """
        try:
            with self.perf_logger.measure("create_pool", engine=self.engine.value):
                return await asyncio.wait_for(
                    self._create_pool(settings, pool_config),
                    timeout=pool_config.connect_timeout,
                )
        except GatewayException:
            raise
        except asyncio.TimeoutError as e:
            raise ConnectFailedError(
                f"{self.info.display_name} connection timed out after {pool_config.connect_timeout}s",
                code=ErrorCodes.CONNECTION_TIMEOUT,
                context=self._error_context(settings),
                cause=e,
            ) from e
        except Exception as e:
            raise self._connect_error(e, settings) from e

    @abstractmethod
    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        """Build the native pool and open its first connection."""

    @abstractmethod
    async def close_pool(self, pool: Any) -> None:
        """Close a native pool created by this adapter."""

    @abstractmethod
    async def _acquire(self, pool: Any) -> Any:
        """Check one native connection out of a pool."""

    @abstractmethod
    async def _release(self, pool: Any, connection: Any, discard: bool) -> None:
        """Return a native connection to its pool, closing it when ``discard``."""

    @abstractmethod
    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        """Execute one statement and return column names and dict rows."""

    # Connections

    async def connect(self, entry: "PoolEntry") -> ConnectionHandle:
        """Lease a connection from a registry entry and probe it.

        Raises:
            ConnectionPoolError: If no connection frees up within the acquire timeout
            ConnectFailedError: If the connection cannot be opened or fails the probe
        """
        try:
            if self.pool_bounds_acquire:
                connection = await self._acquire(entry.pool)
            else:
                connection = await asyncio.wait_for(self._acquire(entry.pool), timeout=entry.acquire_timeout)
        except GatewayException:
            raise
        except asyncio.TimeoutError as e:
            raise ConnectionPoolError(
                f"No {self.info.display_name} connection available after {entry.acquire_timeout}s",
                code=ErrorCodes.POOL_EXHAUSTED,
                context={"engine": self.engine.value},
                cause=e,
            ) from e
        except Exception as e:
            raise self._connect_error(e, entry.settings) from e

        handle = ConnectionHandle(
            connection,
            engine=self.engine,
            settings=entry.settings,
            pool_key=entry.key,
            release_callback=functools.partial(self._release, entry.pool),
        )

        try:
            await self._fetch(handle, self.probe_sql, None)
        except Exception as e:
            await handle.release(discard=True)
            self.logger.warning("Liveness probe failed", pool_key=entry.key, error=str(e))
            raise ConnectFailedError(
                f"{self.info.display_name} liveness probe failed: {e}",
                code=ErrorCodes.PROBE_FAILED,
                context=self._error_context(entry.settings),
                cause=e,
            ) from e

        return handle

    def classify_connect_error(self, error: BaseException) -> Optional[str]:
        """Map a driver exception to an error code; None keeps the default."""
        text = str(error).lower()
        if any(marker in text for marker in _AUTH_MARKERS):
            return ErrorCodes.AUTH_FAILED
        if isinstance(error, ConnectionRefusedError) or "connection refused" in text:
            return ErrorCodes.CONNECTION_REFUSED
        if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
            return ErrorCodes.CONNECTION_TIMEOUT
        return None

    def _connect_error(self, error: BaseException, settings: ConnectionSettings) -> ConnectFailedError:
        return ConnectFailedError(
            f"Failed to connect to {self.info.display_name}: {error}",
            code=self.classify_connect_error(error),
            context=self._error_context(settings),
            cause=error,
        )

    def _error_context(self, settings: ConnectionSettings) -> Dict[str, Any]:
        return {
            "engine": self.engine.value,
            "host": settings.host,
            "port": settings.port,
            "database": settings.database,
        }

    # Catalog

    @abstractmethod
    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        """Catalog query listing tables and views, honouring ``settings.schema``."""

    @abstractmethod
    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        """Catalog query listing the columns of one table."""

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Decode engine-specific column encodings before normalization."""
        return row

    async def list_tables(self, handle: ConnectionHandle) -> Rows:
        """Raw catalog rows describing tables and views.

        Raises:
            CatalogQueryFailedError: If the catalog query fails
        """
        sql, params = self.tables_query(handle.settings)
        rows = await self._catalog_fetch(handle, "list_tables", sql, params)
        self.logger.debug("Tables listed", table_count=len(rows), schema=handle.settings.schema)
        return rows

    async def list_columns(self, handle: ConnectionHandle, table: TableDescriptor) -> Rows:
        """Raw catalog rows describing the columns of one table.

        Raises:
            CatalogQueryFailedError: If the catalog query fails
        """
        sql, params = self.columns_query(handle.settings, table)
        rows = await self._catalog_fetch(
            handle, "list_columns", sql, params,
            schema=table.schema_name, table=table.table_name,
        )
        return [self.shape_column_row(row) for row in rows]

    async def _catalog_fetch(self, handle: ConnectionHandle, operation: str, sql: str,
                             params: Params, **context: Any) -> Rows:
        try:
            with self.perf_logger.measure(operation, engine=self.engine.value, **context):
                _, rows = await self._fetch(handle, sql, params)
        except GatewayException:
            raise
        except Exception as e:
            raise CatalogQueryFailedError(
                f"{self.info.display_name} catalog query failed: {e}",
                code=ErrorCodes.CATALOG_QUERY_FAILED,
                context={"engine": self.engine.value, "operation": operation, **context},
                cause=e,
            ) from e
        return rows

    # Queries

    async def run_query(self, handle: ConnectionHandle, sql: str, params: Params = None) -> QueryResult:
        """Execute caller SQL on a leased connection.

        Raises:
            QueryError: If the statement fails
        """
        try:
            with measure_time() as timer:
                columns, rows = await self._fetch(handle, sql, params)
        except GatewayException:
            raise
        except Exception as e:
            raise QueryError(
                f"{self.info.display_name} query failed: {e}",
                code=ErrorCodes.QUERY_EXECUTION_FAILED,
                context={"engine": self.engine.value},
                cause=e,
            ) from e

        rows = [{column: encode_cell(value) for column, value in row.items()} for row in rows]
        return QueryResult(
            rows=rows,
            row_count=len(rows),
            columns=columns,
            execution_time=timer.duration or 0.0,
        )

    def quote_identifier(self, name: str) -> str:
        opening, closing = self.quote_chars
        return f"{opening}{str(name).replace(closing, closing * 2)}{closing}"

    def preview_sql(self, schema: Optional[str], table: str, limit: int) -> str:
        """Build the single-table preview statement with native row limiting."""
        limit = int(limit)
        target = self.quote_identifier(table)
        if schema:
            target = f"{self.quote_identifier(schema)}.{target}"

        if self.limit_style == "top":
            return f"SELECT TOP {limit} * FROM {target}"
        if self.limit_style == "first":
            return f"SELECT FIRST {limit} * FROM {target}"
        if self.limit_style == "fetch":
            return f"SELECT * FROM {target} FETCH FIRST {limit} ROWS ONLY"
        return f"SELECT * FROM {target} LIMIT {limit}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(engine={self.engine.value!r})"
