"""PostgreSQL adapter (asyncpg)."""

from typing import Any, List, Optional, Tuple

from ...config.models import PoolConfig
from ...core.exceptions import ErrorCodes
from ..engines import Engine
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, TableDescriptor
from .base import EngineAdapter, Params, Rows

TABLES_SQL = """
SELECT n.nspname AS schemaname,
       c.relname AS tablename,
       c.relkind AS relkind
FROM pg_catalog.pg_class c
JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
WHERE c.relkind IN ('r', 'v', 'm', 'f', 'p')
  AND n.nspname NOT IN ('pg_catalog', 'information_schema', 'pg_toast')
  AND n.nspname NOT LIKE 'pg_temp_%'
  AND ($1::text IS NULL OR n.nspname = $1::text)
ORDER BY n.nspname, c.relname
"""

COLUMNS_SQL = """
SELECT column_name,
       data_type,
       character_maximum_length,
       numeric_precision,
       numeric_scale,
       is_nullable,
       column_default
FROM information_schema.columns
WHERE table_schema = $1 AND table_name = $2
ORDER BY ordinal_position
"""


class PostgreSQLAdapter(EngineAdapter):
    """asyncpg pools, one per pool key."""

    engine = Engine.POSTGRESQL

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        asyncpg = self.load_driver()
        return await asyncpg.create_pool(
            host=settings.host,
            port=settings.port,
            database=settings.database,
            user=settings.user,
            password=settings.password,
            min_size=pool_config.min_size,
            max_size=pool_config.max_size,
            timeout=pool_config.connect_timeout,
            max_inactive_connection_lifetime=pool_config.idle_timeout,
            server_settings={"application_name": "dbgateway"},
        )

    async def close_pool(self, pool: Any) -> None:
        await pool.close()

    async def _acquire(self, pool: Any) -> Any:
        return await pool.acquire()

    async def _release(self, pool: Any, connection: Any, discard: bool) -> None:
        if discard:
            connection.terminate()
        await pool.release(connection)

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        statement = await handle.connection.prepare(sql)
        records = await statement.fetch(*(params or ()))
        columns = [attribute.name for attribute in statement.get_attributes()]
        return columns, [dict(record) for record in records]

    def classify_connect_error(self, error: BaseException) -> Optional[str]:
        asyncpg = self.load_driver()
        if isinstance(error, asyncpg.InvalidAuthorizationSpecificationError):
            return ErrorCodes.AUTH_FAILED
        if isinstance(error, asyncpg.InvalidCatalogNameError):
            return ErrorCodes.CONFIG_INVALID
        return super().classify_connect_error(error)

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        return TABLES_SQL, [settings.schema]

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, [table.schema_name, table.table_name]
