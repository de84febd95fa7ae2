"""SQLite adapter (aiosqlite).

SQLite has no server-side pooling concept, so connections are not
reused: every release closes the file handle.
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple

from ...config.models import PoolConfig
from ...core.exceptions import ConnectFailedError, ErrorCodes
from ..engines import Engine
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, TableDescriptor
from ..pool import ConnectionPool
from .base import EngineAdapter, Params, Rows, split_type_modifiers

SCHEMA_NAME = "main"

TABLES_SQL = """
SELECT 'main' AS schemaname,
       name AS tablename,
       type AS tabletype
FROM sqlite_master
WHERE type IN ('table', 'view')
  AND name NOT LIKE 'sqlite_%'
ORDER BY name
"""

COLUMNS_SQL = 'SELECT name, type, "notnull", dflt_value, pk FROM pragma_table_info(?)'


class SQLiteAdapter(EngineAdapter):
    """File-backed adapter with unpooled connections."""

    engine = Engine.SQLITE
    pool_bounds_acquire = True

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> ConnectionPool:
        aiosqlite = self.load_driver()
        path = settings.database or ""
        if path != ":memory:" and not Path(path).is_file():
            raise ConnectFailedError(
                f"SQLite database file not found: {path}",
                code=ErrorCodes.CONNECTION_REFUSED,
                context={"engine": self.engine.value, "filename": path},
            )

        async def opener() -> Any:
            return await aiosqlite.connect(path)

        pool = ConnectionPool(
            self.engine.value,
            opener,
            self._close_connection,
            max_size=pool_config.max_size,
            connect_timeout=pool_config.connect_timeout,
            acquire_timeout=pool_config.acquire_timeout,
            idle_timeout=pool_config.idle_timeout,
            reuse=False,
        )
        # Open once so an unreadable file fails at pool creation
        await self._close_connection(await opener())
        return pool

    async def _close_connection(self, connection: Any) -> None:
        await connection.close()

    async def close_pool(self, pool: ConnectionPool) -> None:
        await pool.close()

    async def _acquire(self, pool: ConnectionPool) -> Any:
        return await pool.acquire()

    async def _release(self, pool: ConnectionPool, connection: Any, discard: bool) -> None:
        await pool.release(connection, discard=discard)

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        async with handle.connection.execute(sql, params or ()) as cursor:
            records = await cursor.fetchall()
            columns = [column[0] for column in cursor.description or ()]
        return columns, [dict(zip(columns, record)) for record in records]

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        return TABLES_SQL, None

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, [table.table_name]

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        declared = row.get("type") or None
        length, precision, scale = split_type_modifiers(declared)
        return {
            "column_name": row["name"],
            "data_type": declared,
            "length": length,
            "precision": precision,
            "scale": scale,
            "is_nullable": not row.get("notnull"),
            "column_default": row.get("dflt_value"),
        }

    def preview_sql(self, schema: Any, table: str, limit: int) -> str:
        # ``main`` is the only schema a single-file connection sees
        if schema == SCHEMA_NAME:
            schema = None
        return super().preview_sql(schema, table, limit)
