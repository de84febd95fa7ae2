"""Microsoft SQL Server adapter (aioodbc)."""

from typing import Tuple

from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .odbc import OdbcAdapter

TABLES_SQL = """
SELECT TABLE_SCHEMA AS schemaname,
       TABLE_NAME AS tablename,
       TABLE_TYPE AS tabletype
FROM INFORMATION_SCHEMA.TABLES
WHERE 1 = 1{schema_filter}
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
FROM INFORMATION_SCHEMA.COLUMNS
WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?
ORDER BY ORDINAL_POSITION
"""


class MSSQLAdapter(OdbcAdapter):
    engine = Engine.MSSQL
    odbc_driver = "ODBC Driver 18 for SQL Server"
    quote_chars = ("[", "]")
    limit_style = "top"

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("TABLE_SCHEMA", settings)
        return TABLES_SQL.format(schema_filter=clause), params

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table)
