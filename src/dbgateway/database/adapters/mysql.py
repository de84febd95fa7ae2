"""MySQL adapter (aiomysql)."""

from typing import Any, List, Optional, Tuple

from ...config.models import PoolConfig
from ...core.exceptions import ErrorCodes
from ..engines import Engine
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, TableDescriptor
from .base import EngineAdapter, Params, Rows

TABLES_SQL = """
SELECT TABLE_SCHEMA AS schemaname,
       TABLE_NAME AS tablename,
       TABLE_TYPE AS tabletype
FROM information_schema.TABLES
WHERE TABLE_SCHEMA = COALESCE(%s, DATABASE())
ORDER BY TABLE_SCHEMA, TABLE_NAME
"""

COLUMNS_SQL = """
SELECT COLUMN_NAME AS column_name,
       DATA_TYPE AS data_type,
       CHARACTER_MAXIMUM_LENGTH AS character_maximum_length,
       NUMERIC_PRECISION AS numeric_precision,
       NUMERIC_SCALE AS numeric_scale,
       IS_NULLABLE AS is_nullable,
       COLUMN_DEFAULT AS column_default
FROM information_schema.COLUMNS
WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s
ORDER BY ORDINAL_POSITION
"""

# Client error numbers reported in exception args[0]
_ACCESS_DENIED = 1045
_CANNOT_CONNECT = 2003


class MySQLAdapter(EngineAdapter):
    """aiomysql pools with dict cursors."""

    engine = Engine.MYSQL
    quote_chars = ("`", "`")

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        aiomysql = self.load_driver()
        return await aiomysql.create_pool(
            host=settings.host,
            port=settings.port,
            user=settings.user,
            password=settings.password or "",
            db=settings.database,
            minsize=pool_config.min_size,
            maxsize=pool_config.max_size,
            connect_timeout=pool_config.connect_timeout,
            pool_recycle=int(pool_config.idle_timeout),
            autocommit=True,
            charset="utf8mb4",
            cursorclass=aiomysql.DictCursor,
        )

    async def close_pool(self, pool: Any) -> None:
        pool.close()
        await pool.wait_closed()

    async def _acquire(self, pool: Any) -> Any:
        return await pool.acquire()

    async def _release(self, pool: Any, connection: Any, discard: bool) -> None:
        if discard:
            connection.close()
        await pool.release(connection)

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        async with handle.connection.cursor() as cursor:
            await cursor.execute(sql, params or None)
            rows = await cursor.fetchall()
            columns = [column[0] for column in cursor.description or ()]
        return columns, [dict(row) for row in rows or ()]

    def classify_connect_error(self, error: BaseException) -> Optional[str]:
        errno = error.args[0] if error.args else None
        if errno == _ACCESS_DENIED:
            return ErrorCodes.AUTH_FAILED
        if errno == _CANNOT_CONNECT:
            return ErrorCodes.CONNECTION_REFUSED
        return super().classify_connect_error(error)

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        return TABLES_SQL, [settings.schema]

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, [table.schema_name, table.table_name]
