"""SAP HANA adapter (hdbcli)."""

from typing import Any, Dict, Tuple

from ...config.models import PoolConfig
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .dbapi import DbApiAdapter

SYSTEM_SCHEMAS = ("SYS", "_SYS_BI", "_SYS_BIC", "_SYS_EPM", "_SYS_REPO", "_SYS_STATISTICS")
_SCHEMA_LIST = ", ".join(f"'{schema}'" for schema in SYSTEM_SCHEMAS)

TABLES_SQL = f"""
SELECT SCHEMA_NAME AS schemaname, TABLE_NAME AS tablename, 'table' AS tabletype
FROM SYS.TABLES
WHERE IS_SYSTEM_TABLE = 'FALSE'
  AND SCHEMA_NAME NOT IN ({_SCHEMA_LIST}){{schema_filter}}
UNION ALL
SELECT SCHEMA_NAME AS schemaname, VIEW_NAME AS tablename, 'view' AS tabletype
FROM SYS.VIEWS
WHERE SCHEMA_NAME NOT IN ({_SCHEMA_LIST}){{schema_filter}}
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT COLUMN_NAME, DATA_TYPE_NAME, LENGTH, SCALE, IS_NULLABLE, DEFAULT_VALUE, POSITION
FROM SYS.TABLE_COLUMNS
WHERE SCHEMA_NAME = ? AND TABLE_NAME = ?
UNION ALL
SELECT COLUMN_NAME, DATA_TYPE_NAME, LENGTH, SCALE, IS_NULLABLE, DEFAULT_VALUE, POSITION
FROM SYS.VIEW_COLUMNS
WHERE SCHEMA_NAME = ? AND VIEW_NAME = ?
ORDER BY POSITION
"""

_EXACT_NUMERIC = ("DECIMAL", "SMALLDECIMAL")


class HanaAdapter(DbApiAdapter):
    engine = Engine.SAP_HANA
    probe_sql = "SELECT 1 FROM DUMMY"

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        options = {}
        if settings.schema:
            options["currentSchema"] = settings.schema
        return driver.connect(
            address=settings.host,
            port=settings.port,
            user=settings.user,
            password=settings.password,
            connectTimeout=int(pool_config.connect_timeout * 1000),
            **options,
        )

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("SCHEMA_NAME", settings)
        return TABLES_SQL.format(schema_filter=clause), params * 2

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table) * 2

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        shaped = dict(row)
        shaped.pop("POSITION", None)
        if str(row.get("DATA_TYPE_NAME") or "").upper() in _EXACT_NUMERIC:
            shaped["NUMERIC_PRECISION"] = shaped.pop("LENGTH", None)
        return shaped
