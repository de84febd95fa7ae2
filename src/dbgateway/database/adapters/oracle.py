"""Oracle adapter (python-oracledb async pools)."""

from typing import Any, Dict, List, Optional, Tuple

from ...config.models import PoolConfig
from ...core.exceptions import ErrorCodes
from ..engines import Engine
from ..handle import ConnectionHandle
from ..models import ConnectionSettings, TableDescriptor
from .base import EngineAdapter, Params, Rows

SYSTEM_OWNERS = ("SYS", "SYSTEM", "XDB", "CTXSYS", "MDSYS", "OUTLN", "DBSNMP",
                 "ORDSYS", "WMSYS", "OLAPSYS", "APPQOSSYS", "AUDSYS", "GSMADMIN_INTERNAL")

_OWNER_LIST = ", ".join(f"'{owner}'" for owner in SYSTEM_OWNERS)

TABLES_SQL = f"""
SELECT owner AS schemaname, table_name AS tablename, 'table' AS tabletype
FROM all_tables
WHERE owner NOT IN ({_OWNER_LIST})
  AND (:schema_name IS NULL OR owner = :schema_name)
UNION ALL
SELECT owner AS schemaname, view_name AS tablename, 'view' AS tabletype
FROM all_views
WHERE owner NOT IN ({_OWNER_LIST})
  AND (:schema_name IS NULL OR owner = :schema_name)
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT column_name, data_type, data_length, data_precision, data_scale,
       nullable, data_default
FROM all_tab_columns
WHERE owner = :owner AND table_name = :table_name
ORDER BY column_id
"""


class OracleAdapter(EngineAdapter):
    """oracledb thin-mode async pools.

    The DSN is built as ``host:port/service``; ``sid`` configs are passed
    in the same position, which works for listeners that register the SID
    as a service name.
    """

    engine = Engine.ORACLE
    probe_sql = "SELECT 1 FROM DUAL"
    limit_style = "fetch"

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        oracledb = self.load_driver()
        pool = oracledb.create_pool_async(
            user=settings.user,
            password=settings.password,
            dsn=f"{settings.host}:{settings.port}/{settings.database}",
            min=pool_config.min_size,
            max=pool_config.max_size,
            increment=1,
            timeout=int(pool_config.idle_timeout),
        )
        try:
            connection = await pool.acquire()
            await pool.release(connection)
        except BaseException:
            await pool.close(force=True)
            raise
        return pool

    async def close_pool(self, pool: Any) -> None:
        await pool.close(force=True)

    async def _acquire(self, pool: Any) -> Any:
        return await pool.acquire()

    async def _release(self, pool: Any, connection: Any, discard: bool) -> None:
        if discard:
            await pool.drop(connection)
        else:
            await pool.release(connection)

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        with handle.connection.cursor() as cursor:
            await cursor.execute(sql, params or {})
            if cursor.description is None:
                return [], []
            columns = [column[0] for column in cursor.description]
            rows = [dict(zip(columns, row)) for row in await cursor.fetchall()]
        return columns, rows

    def classify_connect_error(self, error: BaseException) -> Optional[str]:
        if "ORA-01017" in str(error):
            return ErrorCodes.AUTH_FAILED
        if "DPY-6005" in str(error) or "ORA-12541" in str(error):
            return ErrorCodes.CONNECTION_REFUSED
        return super().classify_connect_error(error)

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Dict[str, Any]]:
        return TABLES_SQL, {"schema_name": settings.schema}

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Dict[str, Any]]:
        return COLUMNS_SQL, {"owner": table.schema_name, "table_name": table.table_name}

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        shaped = dict(row)
        # data_length is the byte size for every type; only character types carry a length
        data_type = str(row.get("DATA_TYPE") or "").upper()
        if "CHAR" not in data_type and "RAW" not in data_type:
            shaped["DATA_LENGTH"] = None
        return shaped
