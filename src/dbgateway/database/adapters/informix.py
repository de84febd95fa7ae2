"""IBM Informix adapter over the Informix ODBC driver."""

from typing import Any, Dict, Tuple

from ...core.utils import safe_int
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .odbc import OdbcAdapter

TABLES_SQL = """
SELECT TRIM(owner) AS schemaname,
       TRIM(tabname) AS tablename,
       tabtype AS tabletype
FROM systables
WHERE tabid >= 100
  AND tabtype IN ('T', 'V'){schema_filter}
ORDER BY 1, 2
"""

COLUMNS_SQL = """
SELECT TRIM(c.colname) AS column_name,
       c.coltype AS coltype,
       c.collength AS collength,
       d.default AS column_default
FROM syscolumns c
JOIN systables t ON c.tabid = t.tabid
LEFT JOIN sysdefaults d ON d.tabid = c.tabid AND d.colno = c.colno
WHERE TRIM(t.owner) = ? AND t.tabname = ?
ORDER BY c.colno
"""

# syscolumns.coltype base codes; 256 is added for NOT NULL columns
COLTYPE_NAMES = {
    0: "CHAR", 1: "SMALLINT", 2: "INTEGER", 3: "FLOAT", 4: "SMALLFLOAT",
    5: "DECIMAL", 6: "SERIAL", 7: "DATE", 8: "MONEY", 10: "DATETIME",
    11: "BYTE", 12: "TEXT", 13: "VARCHAR", 14: "INTERVAL", 15: "NCHAR",
    16: "NVARCHAR", 17: "INT8", 18: "SERIAL8", 40: "LVARCHAR", 45: "BOOLEAN",
    52: "BIGINT", 53: "BIGSERIAL",
}
_NOT_NULL = 256
_DECIMAL_CODES = {5, 8}
_CHARACTER_CODES = {0, 13, 15, 16, 40}


class InformixAdapter(OdbcAdapter):
    """Informix over onsoctcp; the ``server`` key names the instance."""

    engine = Engine.INFORMIX
    odbc_driver = "IBM INFORMIX ODBC DRIVER"
    probe_sql = "SELECT FIRST 1 1 FROM systables"
    limit_style = "first"

    def connection_attributes(self, settings: ConnectionSettings) -> Dict[str, Any]:
        return {
            "HOST": settings.host,
            "SERVICE": settings.port,
            "SERVER": settings.extra.get("server"),
            "DATABASE": settings.database,
            "PROTOCOL": "onsoctcp",
        }

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("TRIM(owner)", settings)
        return TABLES_SQL.format(schema_filter=clause), params

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table)

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        row = {str(key).lower(): value for key, value in row.items()}
        coltype = safe_int(row.get("coltype"))
        collength = safe_int(row.get("collength"))
        base = coltype % _NOT_NULL if coltype is not None else None

        length = precision = scale = None
        if base in _DECIMAL_CODES and collength is not None:
            precision, scale = collength // 256, collength % 256
            if scale == 255:
                scale = None
        elif base in _CHARACTER_CODES:
            length = collength

        return {
            "column_name": row.get("column_name"),
            "data_type": COLTYPE_NAMES.get(base, str(base)) if base is not None else None,
            "length": length,
            "precision": precision,
            "scale": scale,
            "is_nullable": coltype < _NOT_NULL if coltype is not None else None,
            "column_default": row.get("column_default"),
        }
