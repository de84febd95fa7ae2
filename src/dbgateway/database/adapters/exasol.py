"""Exasol adapter (pyexasol).

pyexasol formats parameters client-side with ``{name}`` placeholders and
quotes the substituted values itself.
"""

from typing import Any, Dict, List, Tuple

from ...config.models import PoolConfig
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params, Rows
from .dbapi import DbApiAdapter

TABLES_SQL = """
SELECT TABLE_SCHEMA AS schemaname, TABLE_NAME AS tablename, 'table' AS tabletype
FROM EXA_ALL_TABLES{table_filter}
UNION ALL
SELECT VIEW_SCHEMA AS schemaname, VIEW_NAME AS tablename, 'view' AS tabletype
FROM EXA_ALL_VIEWS{view_filter}
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT COLUMN_NAME AS column_name,
       COLUMN_TYPE AS data_type,
       COLUMN_MAXSIZE AS length,
       COLUMN_NUM_PREC AS numeric_precision,
       COLUMN_NUM_SCALE AS numeric_scale,
       COLUMN_IS_NULLABLE AS is_nullable,
       COLUMN_DEFAULT AS column_default
FROM EXA_ALL_COLUMNS
WHERE COLUMN_SCHEMA = {schema} AND COLUMN_TABLE = {table}
ORDER BY COLUMN_ORDINAL_POSITION
"""


class ExasolAdapter(DbApiAdapter):
    engine = Engine.EXASOL

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        return driver.connect(
            dsn=f"{settings.host}:{settings.port}",
            user=settings.user,
            password=settings.password or "",
            schema=settings.schema or "",
            connection_timeout=int(pool_config.connect_timeout),
            fetch_dict=True,
            autocommit=True,
        )

    def _fetch_sync(self, connection: Any, sql: str, params: Params) -> Tuple[List[str], Rows]:
        statement = connection.execute(sql, params or None)
        try:
            if statement.result_type != "resultSet":
                return [], []
            return list(statement.column_names()), [dict(row) for row in statement.fetchall()]
        finally:
            statement.close()

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Dict[str, Any]]:
        if not settings.schema:
            return TABLES_SQL.format(table_filter="", view_filter=""), {}
        sql = TABLES_SQL.format(
            table_filter=" WHERE TABLE_SCHEMA = {schema}",
            view_filter=" WHERE VIEW_SCHEMA = {schema}",
        )
        return sql, {"schema": settings.schema}

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Dict[str, Any]]:
        return COLUMNS_SQL, {"schema": table.schema_name, "table": table.table_name}
