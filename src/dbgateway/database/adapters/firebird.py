"""Firebird adapter (firebird-driver)."""

from typing import Any, Dict, Tuple

from ...config.models import PoolConfig
from ...core.utils import safe_int
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .dbapi import DbApiAdapter

TABLES_SQL = """
SELECT TRIM(r.RDB$OWNER_NAME) AS schemaname,
       TRIM(r.RDB$RELATION_NAME) AS tablename,
       CASE WHEN r.RDB$VIEW_BLR IS NULL THEN 'table' ELSE 'view' END AS tabletype
FROM RDB$RELATIONS r
WHERE COALESCE(r.RDB$SYSTEM_FLAG, 0) = 0{schema_filter}
ORDER BY 2
"""

COLUMNS_SQL = """
SELECT TRIM(rf.RDB$FIELD_NAME) AS column_name,
       f.RDB$FIELD_TYPE AS field_type,
       f.RDB$FIELD_SUB_TYPE AS field_sub_type,
       f.RDB$CHARACTER_LENGTH AS character_length,
       f.RDB$FIELD_PRECISION AS field_precision,
       f.RDB$FIELD_SCALE AS field_scale,
       rf.RDB$NULL_FLAG AS null_flag,
       rf.RDB$DEFAULT_SOURCE AS default_source
FROM RDB$RELATION_FIELDS rf
JOIN RDB$FIELDS f ON rf.RDB$FIELD_SOURCE = f.RDB$FIELD_NAME
WHERE TRIM(rf.RDB$RELATION_NAME) = ?
ORDER BY rf.RDB$FIELD_POSITION
"""

FIELD_TYPE_NAMES = {
    7: "SMALLINT", 8: "INTEGER", 10: "FLOAT", 12: "DATE", 13: "TIME",
    14: "CHAR", 16: "BIGINT", 23: "BOOLEAN", 27: "DOUBLE PRECISION",
    35: "TIMESTAMP", 37: "VARCHAR", 261: "BLOB",
}
# Integer storage types whose sub type marks NUMERIC (1) or DECIMAL (2)
_EXACT_NUMERIC_SUBTYPES = {1: "NUMERIC", 2: "DECIMAL"}


class FirebirdAdapter(DbApiAdapter):
    """Firebird has no schemas; the relation owner is reported instead."""

    engine = Engine.FIREBIRD
    probe_sql = "SELECT 1 FROM RDB$DATABASE"
    limit_style = "first"

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        return driver.connect(
            f"{settings.host}/{settings.port}:{settings.database}",
            user=settings.user,
            password=settings.password,
        )

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("TRIM(r.RDB$OWNER_NAME)", settings)
        return TABLES_SQL.format(schema_filter=clause), params

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, [table.table_name]

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row = {str(key).lower(): value for key, value in row.items()}
        field_type = safe_int(row.get("field_type"))
        sub_type = safe_int(row.get("field_sub_type"))
        type_name = FIELD_TYPE_NAMES.get(field_type, str(field_type) if field_type is not None else None)

        precision = scale = None
        if field_type in (7, 8, 16) and sub_type in _EXACT_NUMERIC_SUBTYPES:
            type_name = _EXACT_NUMERIC_SUBTYPES[sub_type]
            precision = safe_int(row.get("field_precision"))
            raw_scale = safe_int(row.get("field_scale"))
            scale = -raw_scale if raw_scale is not None else None

        default = row.get("default_source")
        if isinstance(default, str):
            default = default.strip()
            if default.upper().startswith("DEFAULT "):
                default = default[len("DEFAULT "):].strip()

        return {
            "column_name": row.get("column_name"),
            "data_type": type_name,
            "length": safe_int(row.get("character_length")),
            "precision": precision,
            "scale": scale,
            "is_nullable": row.get("null_flag") != 1,
            "column_default": default,
        }
