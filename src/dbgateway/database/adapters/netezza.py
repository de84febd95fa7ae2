"""IBM Netezza adapter (nzpy)."""

from typing import Any, Dict, Tuple

from ...config.models import PoolConfig
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params, split_type_modifiers
from .dbapi import DbApiAdapter

TABLES_SQL = """
SELECT SCHEMA AS schemaname, TABLENAME AS tablename, 'table' AS tabletype
FROM _V_TABLE
WHERE DATABASE = CURRENT_CATALOG AND OBJTYPE = 'TABLE'{schema_filter}
UNION ALL
SELECT SCHEMA AS schemaname, VIEWNAME AS tablename, 'view' AS tabletype
FROM _V_VIEW
WHERE DATABASE = CURRENT_CATALOG AND OBJTYPE = 'VIEW'{schema_filter}
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT ATTNAME, FORMAT_TYPE, ATTNOTNULL, COLDEFAULT
FROM _V_RELATION_COLUMN
WHERE SCHEMA = ? AND NAME = ?
ORDER BY ATTNUM
"""


class NetezzaAdapter(DbApiAdapter):
    engine = Engine.NETEZZA

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        return driver.connect(
            user=settings.user,
            password=settings.password,
            host=settings.host,
            port=settings.port,
            database=settings.database,
            timeout=int(pool_config.connect_timeout),
            logLevel=0,
        )

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("SCHEMA", settings)
        return TABLES_SQL.format(schema_filter=clause), params * 2

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table)

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        lowered = {str(key).lower(): value for key, value in row.items()}
        declared = lowered.get("format_type")
        length, precision, scale = split_type_modifiers(declared)
        not_null = lowered.get("attnotnull")
        return {
            "column_name": lowered.get("attname"),
            "data_type": declared,
            "length": length,
            "precision": precision,
            "scale": scale,
            "is_nullable": None if not_null is None else not not_null,
            "column_default": lowered.get("coldefault"),
        }
