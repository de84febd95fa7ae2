"""Vertica adapter (vertica-python)."""

from typing import Any, Dict, Tuple

from ...config.models import PoolConfig
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .dbapi import DbApiAdapter

TABLES_SQL = """
SELECT table_schema AS schemaname, table_name AS tablename, 'table' AS tabletype
FROM v_catalog.tables
WHERE NOT is_system_table{schema_filter}
UNION ALL
SELECT table_schema AS schemaname, table_name AS tablename, 'view' AS tabletype
FROM v_catalog.views
WHERE NOT is_system_view{schema_filter}
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT column_name, data_type, character_maximum_length, numeric_precision,
       numeric_scale, is_nullable, column_default, ordinal_position
FROM v_catalog.columns
WHERE table_schema = %s AND table_name = %s
UNION ALL
SELECT column_name, data_type, character_maximum_length, numeric_precision,
       numeric_scale, NULL, NULL, ordinal_position
FROM v_catalog.view_columns
WHERE table_schema = %s AND table_name = %s
ORDER BY ordinal_position
"""


class VerticaAdapter(DbApiAdapter):
    engine = Engine.VERTICA
    placeholder = "%s"

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        return driver.connect(
            host=settings.host,
            port=settings.port,
            user=settings.user,
            password=settings.password or "",
            database=settings.database or "",
            connection_timeout=pool_config.connect_timeout,
            autocommit=True,
        )

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("table_schema", settings)
        return TABLES_SQL.format(schema_filter=clause), params * 2

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table) * 2

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        shaped = dict(row)
        shaped.pop("ordinal_position", None)
        return shaped
