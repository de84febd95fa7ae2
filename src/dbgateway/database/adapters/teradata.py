"""Teradata adapter (teradatasql)."""

from typing import Any, Dict, Tuple

from ...config.models import PoolConfig
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .dbapi import DbApiAdapter

SYSTEM_DATABASES = (
    "DBC", "SYSLIB", "SystemFe", "SYSUDTLIB", "SYSSPATIAL", "TD_SYSFNLIB",
    "SYSBAR", "SYSJDBC", "SYSXML", "Sys_Calendar", "TDStats", "TD_SYSXML",
    "TDQCD", "TDMaps", "SYSUIF", "TD_SERVER_DB", "TD_SYSGPL", "dbcmngr",
    "LockLogShredder", "SQLJ", "External_AP", "Crashdumps", "All", "Default", "PUBLIC",
)
_DATABASE_LIST = ", ".join(f"'{name}'" for name in SYSTEM_DATABASES)

TABLES_SQL = f"""
SELECT TRIM(DatabaseName) AS schemaname,
       TRIM(TableName) AS tablename,
       TableKind AS tablekind
FROM DBC.TablesV
WHERE TableKind IN ('T', 'O', 'V')
  AND DatabaseName NOT IN ({_DATABASE_LIST}){{schema_filter}}
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT TRIM(ColumnName) AS column_name,
       ColumnType AS column_type,
       ColumnLength AS column_length,
       DecimalTotalDigits AS numeric_precision,
       DecimalFractionalDigits AS numeric_scale,
       Nullable AS nullable,
       DefaultValue AS column_default
FROM DBC.ColumnsV
WHERE DatabaseName = ? AND TableName = ?
ORDER BY ColumnId
"""

COLUMN_TYPE_NAMES = {
    "CF": "CHAR", "CV": "VARCHAR", "CO": "CLOB", "I1": "BYTEINT",
    "I2": "SMALLINT", "I": "INTEGER", "I8": "BIGINT", "D": "DECIMAL",
    "F": "FLOAT", "N": "NUMBER", "DA": "DATE", "AT": "TIME",
    "TS": "TIMESTAMP", "TZ": "TIME WITH TIME ZONE", "SZ": "TIMESTAMP WITH TIME ZONE",
    "BF": "BYTE", "BV": "VARBYTE", "BO": "BLOB", "JN": "JSON", "XM": "XML",
}
_CHARACTER_TYPES = {"CF", "CV", "CO", "BF", "BV", "BO"}
_EXACT_NUMERIC = {"D", "N"}


class TeradataAdapter(DbApiAdapter):
    engine = Engine.TERADATA
    limit_style = "top"

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        params = {
            "host": settings.host,
            "user": settings.user,
            "password": settings.password or "",
            "dbs_port": str(settings.port),
            "connect_timeout": str(int(pool_config.connect_timeout * 1000)),
        }
        if settings.database:
            params["database"] = settings.database
        return driver.connect(**params)

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("DatabaseName", settings)
        return TABLES_SQL.format(schema_filter=clause), params

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table)

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row = {str(key).lower(): value for key, value in row.items()}
        code = str(row.get("column_type") or "").strip() or None
        exact = code in _EXACT_NUMERIC
        return {
            "column_name": row.get("column_name"),
            "data_type": COLUMN_TYPE_NAMES.get(code, code) if code else None,
            "length": row.get("column_length") if code in _CHARACTER_TYPES else None,
            "precision": row.get("numeric_precision") if exact else None,
            "scale": row.get("numeric_scale") if exact else None,
            "nullable": row.get("nullable"),
            "column_default": row.get("column_default"),
        }
