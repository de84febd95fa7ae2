"""Engine adapters and the engine dispatch table.

``ADAPTERS`` maps every ``Engine`` to one adapter instance; a missing
engine fails at import time.
"""

from typing import Dict, Union

from ..engines import Engine, check_exhaustive, parse_engine
from .base import EngineAdapter, split_type_modifiers
from .db2 import Db2Adapter
from .dbapi import DbApiAdapter
from .exasol import ExasolAdapter
from .firebird import FirebirdAdapter
from .hana import HanaAdapter
from .informix import InformixAdapter
from .mssql import MSSQLAdapter
from .mysql import MySQLAdapter
from .netezza import NetezzaAdapter
from .odbc import OdbcAdapter
from .oracle import OracleAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .sybase import SybaseAdapter
from .teradata import TeradataAdapter
from .vertica import VerticaAdapter

ADAPTERS: Dict[Engine, EngineAdapter] = {
    adapter.engine: adapter
    for adapter in (
        PostgreSQLAdapter(),
        MySQLAdapter(),
        MSSQLAdapter(),
        OracleAdapter(),
        SQLiteAdapter(),
        Db2Adapter(),
        InformixAdapter(),
        FirebirdAdapter(),
        HanaAdapter(),
        SybaseAdapter(),
        NetezzaAdapter(),
        VerticaAdapter(),
        TeradataAdapter(),
        ExasolAdapter(),
    )
}

check_exhaustive(ADAPTERS, "ADAPTERS")


def get_adapter(engine: Union[str, Engine]) -> EngineAdapter:
    return ADAPTERS[parse_engine(engine)]


__all__ = [
    "ADAPTERS",
    "DbApiAdapter",
    "Db2Adapter",
    "EngineAdapter",
    "ExasolAdapter",
    "FirebirdAdapter",
    "HanaAdapter",
    "InformixAdapter",
    "MSSQLAdapter",
    "MySQLAdapter",
    "NetezzaAdapter",
    "OdbcAdapter",
    "OracleAdapter",
    "PostgreSQLAdapter",
    "SQLiteAdapter",
    "SybaseAdapter",
    "TeradataAdapter",
    "VerticaAdapter",
    "get_adapter",
    "split_type_modifiers",
]
