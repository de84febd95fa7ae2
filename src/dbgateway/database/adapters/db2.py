"""IBM Db2 adapter (ibm_db_dbi)."""

from typing import Any, Dict, Tuple

from ...config.models import PoolConfig
from ..engines import Engine
from ..models import ConnectionSettings, TableDescriptor
from .base import Params
from .dbapi import DbApiAdapter
from .odbc import odbc_value

TABLES_SQL = """
SELECT RTRIM(TABSCHEMA) AS TABSCHEMA, TABNAME, TYPE
FROM SYSCAT.TABLES
WHERE TYPE IN ('T', 'V')
  AND TABSCHEMA NOT LIKE 'SYS%'{schema_filter}
ORDER BY TABSCHEMA, TABNAME
"""

COLUMNS_SQL = """
SELECT COLNAME, TYPENAME, LENGTH, SCALE, NULLS, DEFAULT
FROM SYSCAT.COLUMNS
WHERE TABSCHEMA = ? AND TABNAME = ?
ORDER BY COLNO
"""


class Db2Adapter(DbApiAdapter):
    engine = Engine.DB2
    probe_sql = "SELECT 1 FROM SYSIBM.SYSDUMMY1"
    limit_style = "fetch"

    def build_dsn(self, settings: ConnectionSettings, pool_config: PoolConfig) -> str:
        # ibm_db_dbi appends connect() credentials unquoted; keep them in the quoted DSN
        attributes = {
            "DATABASE": settings.database,
            "HOSTNAME": settings.host,
            "PORT": settings.port,
            "PROTOCOL": "TCPIP",
            "UID": settings.user,
            "PWD": settings.password or "",
            "CONNECTTIMEOUT": int(pool_config.connect_timeout),
        }
        return ";".join(f"{key}={odbc_value(value)}" for key, value in attributes.items()) + ";"

    def _connect_sync(self, driver: Any, settings: ConnectionSettings, pool_config: PoolConfig) -> Any:
        return driver.connect(self.build_dsn(settings, pool_config), "", "")

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        clause, params = self.schema_filter("TABSCHEMA", settings)
        return TABLES_SQL.format(schema_filter=clause), params

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return COLUMNS_SQL, self.table_params(table)

    def shape_column_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        shaped = dict(row)
        # LENGTH holds the precision for decimal columns
        if str(row.get("TYPENAME") or "").upper() in ("DECIMAL", "NUMERIC", "DECFLOAT"):
            shaped["NUMERIC_PRECISION"] = shaped.pop("LENGTH", None)
        return shaped
