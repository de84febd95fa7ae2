"""Adapter base for engines reached through ODBC (aioodbc)."""

from typing import Any, ClassVar, Dict, List, Tuple

from ...config.models import PoolConfig
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, TableDescriptor
from .base import EngineAdapter, Params, Rows


def odbc_value(value: Any) -> str:
    """Brace-quote a connection string value."""
    return "{" + str(value).replace("}", "}}") + "}"


class OdbcAdapter(EngineAdapter):
    """aioodbc-backed adapter.

    The ODBC driver name defaults to ``odbc_driver`` and can be overridden
    per request with a ``driver`` config key. Entries of an ``options``
    mapping are appended to the connection string verbatim.
    """

    odbc_driver: ClassVar[str]

    def connection_attributes(self, settings: ConnectionSettings) -> Dict[str, Any]:
        """Engine-specific connection string attributes, in order."""
        return {
            "SERVER": f"{settings.host},{settings.port}",
            "DATABASE": settings.database,
        }

    def build_dsn(self, settings: ConnectionSettings) -> str:
        attributes: Dict[str, Any] = {"DRIVER": settings.extra.get("driver") or self.odbc_driver}
        attributes.update(self.connection_attributes(settings))
        attributes["UID"] = settings.user
        attributes["PWD"] = settings.password
        attributes.update(settings.extra.get("options") or {})
        return ";".join(
            f"{key}={odbc_value(value)}" for key, value in attributes.items() if value is not None
        )

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        aioodbc = self.load_driver()
        return await aioodbc.create_pool(
            dsn=self.build_dsn(settings),
            minsize=pool_config.min_size,
            maxsize=pool_config.max_size,
            pool_recycle=int(pool_config.idle_timeout),
            timeout=int(pool_config.connect_timeout),
            autocommit=True,
        )

    async def close_pool(self, pool: Any) -> None:
        pool.close()
        await pool.wait_closed()

    async def _acquire(self, pool: Any) -> Any:
        return await pool.acquire()

    async def _release(self, pool: Any, connection: Any, discard: bool) -> None:
        if discard:
            await connection.close()
        await pool.release(connection)

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        async with handle.connection.cursor() as cursor:
            await cursor.execute(sql, *(params or ()))
            if cursor.description is None:
                return [], []
            columns = [column[0] for column in cursor.description]
            rows = [dict(zip(columns, row)) for row in await cursor.fetchall()]
        return columns, rows

    def schema_filter(self, column: str, settings: ConnectionSettings) -> Tuple[str, List[Any]]:
        if not settings.schema:
            return "", []
        return f" AND {column} = ?", [settings.schema]

    def table_params(self, table: TableDescriptor) -> List[Any]:
        return [table.schema_name, table.table_name]
