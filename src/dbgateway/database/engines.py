"""Supported database engines and their static metadata.

Classes:
    Engine: Closed enumeration of supported engines
    EngineInfo: Display name, driver and defaults for one engine

Functions:
    parse_engine: Resolve a user-supplied engine name, accepting aliases
    get_engine_info: Metadata for an engine
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from ..core.exceptions import UnsupportedEngineError


class Engine(str, Enum):
    """Database engines the gateway can talk to."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    MSSQL = "mssql"
    ORACLE = "oracle"
    SQLITE = "sqlite"
    DB2 = "db2"
    INFORMIX = "informix"
    FIREBIRD = "firebird"
    SAP_HANA = "sap_hana"
    SYBASE = "sybase"
    NETEZZA = "netezza"
    VERTICA = "vertica"
    TERADATA = "teradata"
    EXASOL = "exasol"

    def __str__(self) -> str:
        return self.value


ENGINE_ALIASES: Dict[str, Engine] = {
    "postgres": Engine.POSTGRESQL,
    "pg": Engine.POSTGRESQL,
    "sqlserver": Engine.MSSQL,
    "sql_server": Engine.MSSQL,
    "hana": Engine.SAP_HANA,
    "sap-hana": Engine.SAP_HANA,
    "saphana": Engine.SAP_HANA,
    "ase": Engine.SYBASE,
    "sqlite3": Engine.SQLITE,
}


@dataclass(frozen=True)
class EngineInfo:
    """Static metadata for one engine.

    Attributes:
        engine: Engine this entry describes
        display_name: Human-readable product name
        driver_module: Importable Python module of the native driver
        driver_package: Distribution name to install for the driver
        default_port: Port used when a config omits it (None for file engines)
        example_config: Minimal working connection config for discovery UIs
    """
    engine: Engine
    display_name: str
    driver_module: str
    driver_package: str
    default_port: Optional[int]
    example_config: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine.value,
            "display_name": self.display_name,
            "driver": self.driver_package,
            "default_port": self.default_port,
            "example_config": dict(self.example_config),
        }


def _example(port: Optional[int], **fields: Any) -> Dict[str, Any]:
    config: Dict[str, Any] = {"host": "localhost"}
    if port is not None:
        config["port"] = port
    config.update(fields)
    config.setdefault("user", "user")
    config.setdefault("password", "password")
    return config


ENGINE_INFO: Dict[Engine, EngineInfo] = {
    Engine.POSTGRESQL: EngineInfo(
        Engine.POSTGRESQL, "PostgreSQL", "asyncpg", "asyncpg", 5432,
        _example(5432, dbname="postgres", user="postgres", schema="public"),
    ),
    Engine.MYSQL: EngineInfo(
        Engine.MYSQL, "MySQL", "aiomysql", "aiomysql", 3306,
        _example(3306, dbname="mysql", user="root"),
    ),
    Engine.MSSQL: EngineInfo(
        Engine.MSSQL, "Microsoft SQL Server", "aioodbc", "aioodbc", 1433,
        _example(1433, dbname="master", user="sa", schema="dbo"),
    ),
    Engine.ORACLE: EngineInfo(
        Engine.ORACLE, "Oracle Database", "oracledb", "oracledb", 1521,
        _example(1521, service_name="ORCLPDB1", user="system"),
    ),
    Engine.SQLITE: EngineInfo(
        Engine.SQLITE, "SQLite", "aiosqlite", "aiosqlite", None,
        {"filename": "/path/to/database.db"},
    ),
    Engine.DB2: EngineInfo(
        Engine.DB2, "IBM Db2", "ibm_db_dbi", "ibm-db", 50000,
        _example(50000, dbname="SAMPLE", user="db2inst1"),
    ),
    Engine.INFORMIX: EngineInfo(
        Engine.INFORMIX, "IBM Informix", "aioodbc", "aioodbc", 9088,
        _example(9088, dbname="stores_demo", server="informix", user="informix"),
    ),
    Engine.FIREBIRD: EngineInfo(
        Engine.FIREBIRD, "Firebird", "firebird.driver", "firebird-driver", 3050,
        _example(3050, dbname="/var/lib/firebird/data/employee.fdb", user="SYSDBA"),
    ),
    Engine.SAP_HANA: EngineInfo(
        Engine.SAP_HANA, "SAP HANA", "hdbcli.dbapi", "hdbcli", 30015,
        _example(30015, user="SYSTEM"),
    ),
    Engine.SYBASE: EngineInfo(
        Engine.SYBASE, "SAP ASE (Sybase)", "aioodbc", "aioodbc", 5000,
        _example(5000, dbname="master", user="sa"),
    ),
    Engine.NETEZZA: EngineInfo(
        Engine.NETEZZA, "IBM Netezza", "nzpy", "nzpy", 5480,
        _example(5480, dbname="system", user="admin"),
    ),
    Engine.VERTICA: EngineInfo(
        Engine.VERTICA, "Vertica", "vertica_python", "vertica-python", 5433,
        _example(5433, dbname="vmart", user="dbadmin"),
    ),
    Engine.TERADATA: EngineInfo(
        Engine.TERADATA, "Teradata", "teradatasql", "teradatasql", 1025,
        _example(1025, user="dbc"),
    ),
    Engine.EXASOL: EngineInfo(
        Engine.EXASOL, "Exasol", "pyexasol", "pyexasol", 8563,
        _example(8563, user="sys"),
    ),
}


def supported_engines() -> list:
    return [engine.value for engine in Engine]


def parse_engine(name: Union[str, Engine]) -> Engine:
    """Resolve an engine name, accepting case variants and aliases.

    Args:
        name: Engine name as given by a caller

    Returns:
        Matching Engine member

    Raises:
        UnsupportedEngineError: If no engine matches
    """
    if isinstance(name, Engine):
        return name
    key = str(name).strip().lower()
    try:
        return Engine(key)
    except ValueError:
        pass
    if key in ENGINE_ALIASES:
        return ENGINE_ALIASES[key]
    raise UnsupportedEngineError(str(name), supported_engines())


def get_engine_info(engine: Engine) -> EngineInfo:
    return ENGINE_INFO[engine]


def check_exhaustive(table: Dict[Engine, Any], table_name: str) -> None:
    """Fail at import time when a dispatch table misses an engine."""
    missing = set(Engine) - set(table)
    if missing:
        raise RuntimeError(
            f"{table_name} is missing engines: {', '.join(sorted(e.value for e in missing))}"
        )


check_exhaustive(ENGINE_INFO, "ENGINE_INFO")
