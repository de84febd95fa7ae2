"""Adapter base for blocking DB-API 2.0 drivers.

Connections are opened and used in worker threads via ``asyncio.to_thread``
and pooled by the package ``ConnectionPool``.
"""

import asyncio
from abc import abstractmethod
from typing import Any, ClassVar, List, Tuple

from ...config.models import PoolConfig
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, TableDescriptor
from ..pool import ConnectionPool
from .base import EngineAdapter, Params, Rows


class DbApiAdapter(EngineAdapter):
    """Threaded adapter for synchronous drivers.

    Subclasses implement ``_connect_sync`` and the catalog queries; all
    catalog queries use the ``?`` placeholder unless ``placeholder`` says
    otherwise.
    """

    placeholder: ClassVar[str] = "?"
    reuse_connections: ClassVar[bool] = True
    pool_bounds_acquire = True

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> ConnectionPool:
        driver = self.load_driver()

        async def opener() -> Any:
            return await asyncio.to_thread(self._connect_sync, driver, settings, pool_config)

        pool = ConnectionPool(
            self.engine.value,
            opener,
            self._close_connection,
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
            connect_timeout=pool_config.connect_timeout,
            acquire_timeout=pool_config.acquire_timeout,
            idle_timeout=pool_config.idle_timeout,
            reuse=self.reuse_connections,
        )
        await pool.initialize()
        return pool

    @abstractmethod
    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        """Open one native connection; runs in a worker thread."""

    async def _close_connection(self, connection: Any) -> None:
        await asyncio.to_thread(connection.close)

    async def close_pool(self, pool: ConnectionPool) -> None:
        await pool.close()

    async def _acquire(self, pool: ConnectionPool) -> Any:
        return await pool.acquire()

    async def _release(self, pool: ConnectionPool, connection: Any, discard: bool) -> None:
        await pool.release(connection, discard=discard)

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        return await asyncio.to_thread(self._fetch_sync, handle.connection, sql, params)

    def _fetch_sync(self, connection: Any, sql: str, params: Params) -> Tuple[List[str], Rows]:
        cursor = connection.cursor()
        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
            if cursor.description is None:
                return [], []
            columns = [column[0] for column in cursor.description]
            rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            return columns, rows
        finally:
            cursor.close()

    def schema_filter(self, column: str, settings: ConnectionSettings) -> Tuple[str, List[Any]]:
        """SQL fragment restricting a catalog query to the configured schema."""
        if not settings.schema:
            return "", []
        return f" AND {column} = {self.placeholder}", [settings.schema]

    def table_params(self, table: TableDescriptor) -> List[Any]:
        return [table.schema_name, table.table_name]
