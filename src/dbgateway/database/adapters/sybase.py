"""SAP ASE (Sybase) adapter over FreeTDS ODBC."""

from typing import Any, Dict, Tuple

from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .odbc import OdbcAdapter

TABLES_SQL = """
SELECT u.name AS schemaname,
       o.name AS tablename,
       RTRIM(o.type) AS tabletype
FROM sysobjects o
JOIN sysusers u ON o.uid = u.uid
WHERE o.type IN ('U', 'V')
  AND o.name NOT LIKE 'sys%'{schema_filter}
ORDER BY u.name, o.name
"""

COLUMNS_SQL = """
SELECT c.name AS column_name,
       t.name AS data_type,
       c.length AS length,
       c.prec AS numeric_precision,
       c.scale AS numeric_scale,
       CASE WHEN c.status & 8 = 8 THEN 1 ELSE 0 END AS is_nullable,
       com.text AS column_default
FROM syscolumns c
JOIN systypes t ON c.usertype = t.usertype
JOIN sysobjects o ON c.id = o.id
JOIN sysusers u ON o.uid = u.uid
LEFT JOIN syscomments com ON c.cdefault = com.id
WHERE u.name = ? AND o.name = ?
ORDER BY c.colid
"""


class SybaseAdapter(OdbcAdapter):
    """ASE through FreeTDS; ``tds_version`` overrides the protocol version."""

    engine = Engine.SYBASE
    odbc_driver = "FreeTDS"
    quote_chars = ("[", "]")
    limit_style = "top"

    def connection_attributes(self, settings: ConnectionSettings) -> Dict[str, Any]:
        return {
            "SERVER": settings.host,
            "PORT": settings.port,
            "DATABASE": settings.database,
            "TDS_Version": settings.extra.get("tds_version", "5.0"),
        }

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("u.name", settings)
        return TABLES_SQL.format(schema_filter=clause), params

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table)
