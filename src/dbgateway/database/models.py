"""Canonical data models for the database layer."""

import base64
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

from ..core.utils import ValidationUtils, first_present
from .engines import Engine, get_engine_info

DATABASE_KEYS = ("dbname", "database", "db")
USER_KEYS = ("user", "username")
ORACLE_DATABASE_KEYS = ("service_name", "sid", "dbname", "database")
FILE_KEYS = ("filename", "path", "database", "dbname")
# Keys consumed by ConnectionSettings; everything else is passed through in ``extra``
_CORE_KEYS = {"host", "port", "password", "schema", *DATABASE_KEYS, *USER_KEYS,
              *ORACLE_DATABASE_KEYS, *FILE_KEYS}


def encode_cell(value: Any) -> Any:
    """Binary values become base64 text; everything else is returned as is."""
    if isinstance(value, memoryview):
        value = value.tobytes()
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    return value


@dataclass
class ValidationResult:
    """Outcome of validating a connection config."""
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, reason: str) -> "ValidationResult":
        return cls(valid=False, reason=reason)

    def __bool__(self) -> bool:
        return self.valid


@dataclass(frozen=True)
class ConnectionSettings:
    """Connection config resolved against engine defaults.

    Built from an already validated config. ``database`` holds the
    database name, Oracle service name/SID, or SQLite file path.
    """
    engine: Engine
    host: str
    port: Optional[int]
    database: Optional[str]
    user: Optional[str]
    password: Optional[str] = field(default=None, repr=False)
    schema: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_config(cls, engine: Engine, config: Mapping[str, Any]) -> "ConnectionSettings":
        info = get_engine_info(engine)

        if engine is Engine.SQLITE:
            database = first_present(config, FILE_KEYS)
            host = ""
        else:
            keys = ORACLE_DATABASE_KEYS if engine is Engine.ORACLE else DATABASE_KEYS
            database = first_present(config, keys)
            host = str(config.get("host") or "localhost")

        _, port = ValidationUtils.parse_port(config.get("port"))
        if port is None:
            port = info.default_port

        user = first_present(config, USER_KEYS)
        password = config.get("password")
        return cls(
            engine=engine,
            host=host,
            port=port,
            database=str(database) if database is not None else None,
            user=str(user) if user is not None else None,
            password=str(password) if password is not None else None,
            schema=config.get("schema") or None,
            extra={k: v for k, v in config.items() if k not in _CORE_KEYS},
        )

    @property
    def pool_key(self) -> str:
        """Deterministic pool identity: engine:host:port:database:user.

        Each component is percent-encoded, so a ':' inside a database or
        user name cannot make two different configs collide.
        """
        parts = [self.engine.value, self.host, self.port, self.database, self.user]
        return ":".join(quote("" if part is None else str(part), safe="/") for part in parts)


class TableType(str, Enum):
    """Canonical table kinds."""
    TABLE = "table"
    VIEW = "view"
    MATERIALIZED_VIEW = "materialized_view"
    FOREIGN_TABLE = "foreign_table"
    PARTITIONED_TABLE = "partitioned_table"
    UNKNOWN = "unknown"


@dataclass
class TableDescriptor:
    """Engine-independent table identity."""
    schema_name: str
    table_name: str
    table_type: TableType = TableType.TABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_name": self.schema_name,
            "table_name": self.table_name,
            "table_type": self.table_type.value,
        }


@dataclass
class ColumnDescriptor:
    """Engine-independent column description.

    Attributes left as None were not reported by the engine.
    """
    name: str
    type: Optional[str]
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: Optional[bool] = None
    default_value: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TableSchema:
    """A table with its columns, as produced by the normalizer."""
    table: TableDescriptor
    columns: List[ColumnDescriptor] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def num_columns(self) -> int:
        return len(self.columns)

    def to_dict(self) -> Dict[str, Any]:
        data = self.table.to_dict()
        data["columns"] = [column.to_dict() for column in self.columns]
        data["num_columns"] = self.num_columns
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class QueryResult:
    """Standardized query result across all engines."""
    rows: List[Dict[str, Any]]
    row_count: int
    columns: List[str]
    execution_time: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
