"""Schema normalization.

Maps raw catalog rows from any engine onto ``TableDescriptor`` and
``ColumnDescriptor``. Each canonical field has one ordered list of
candidate keys, matched case-insensitively; the first present key wins.
"""

from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..core.utils import safe_int
from ..logging import get_logger
from .engines import Engine
from .models import ColumnDescriptor, TableDescriptor, TableSchema, TableType

ColumnFetcher = Callable[[TableDescriptor], Awaitable[List[Dict[str, Any]]]]

SCHEMA_KEYS = ("schemaname", "schema_name", "table_schema", "tabschema", "owner")
TABLE_KEYS = ("tablename", "table_name", "tabname", "name", "relation_name")
TABLE_TYPE_KEYS = ("tabletype", "table_type", "relkind", "type", "tabtype", "tablekind")

COLUMN_NAME_KEYS = ("column_name", "name", "colname", "field_name", "attname")
COLUMN_TYPE_KEYS = ("data_type", "type", "typename", "type_name", "data_type_name", "format_type")
LENGTH_KEYS = ("character_maximum_length", "length", "data_length", "char_length", "collength")
PRECISION_KEYS = ("numeric_precision", "precision", "data_precision")
SCALE_KEYS = ("numeric_scale", "scale", "data_scale")
NULLABLE_KEYS = ("is_nullable", "nullable", "nulls")
DEFAULT_KEYS = ("column_default", "default_value", "default", "data_default", "dflt_value")

TABLE_TYPE_MAP = {
    "r": TableType.TABLE,
    "t": TableType.TABLE,
    "u": TableType.TABLE,
    "o": TableType.TABLE,
    "table": TableType.TABLE,
    "base table": TableType.TABLE,
    "v": TableType.VIEW,
    "view": TableType.VIEW,
    "m": TableType.MATERIALIZED_VIEW,
    "materialized view": TableType.MATERIALIZED_VIEW,
    "materialized_view": TableType.MATERIALIZED_VIEW,
    "f": TableType.FOREIGN_TABLE,
    "foreign table": TableType.FOREIGN_TABLE,
    "foreign_table": TableType.FOREIGN_TABLE,
    "external table": TableType.FOREIGN_TABLE,
    "p": TableType.PARTITIONED_TABLE,
    "partitioned table": TableType.PARTITIONED_TABLE,
    "partitioned_table": TableType.PARTITIONED_TABLE,
}

_TRUE_VALUES = {"yes", "y", "t", "true", "1"}
_FALSE_VALUES = {"no", "n", "f", "false", "0"}

logger = get_logger(__name__)


def _lower_keys(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in row.items()}


def _resolve(row: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_nullable(value: Any) -> Optional[bool]:
    """Interpret the nullability encodings used by catalog views.

    Example:
        >>> coerce_nullable("YES"), coerce_nullable("N"), coerce_nullable(None)
        (True, False, None)
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def coerce_table_type(value: Any) -> TableType:
    if value is None:
        return TableType.TABLE
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    return TABLE_TYPE_MAP.get(str(value).strip().lower(), TableType.UNKNOWN)


class SchemaNormalizer:
    """Turns raw catalog rows into the canonical schema model."""

    def __init__(self) -> None:
        self.logger = logger

    def normalize_table(self, row: Mapping[str, Any]) -> TableDescriptor:
        lowered = _lower_keys(row)
        return TableDescriptor(
            schema_name=_text(_resolve(lowered, SCHEMA_KEYS)) or "",
            table_name=_text(_resolve(lowered, TABLE_KEYS)) or "",
            table_type=coerce_table_type(_resolve(lowered, TABLE_TYPE_KEYS)),
        )

    def normalize_column(self, row: Mapping[str, Any]) -> ColumnDescriptor:
        lowered = _lower_keys(row)
        return ColumnDescriptor(
            name=_text(_resolve(lowered, COLUMN_NAME_KEYS)) or "",
            type=_text(_resolve(lowered, COLUMN_TYPE_KEYS)),
            length=safe_int(_resolve(lowered, LENGTH_KEYS)),
            precision=safe_int(_resolve(lowered, PRECISION_KEYS)),
            scale=safe_int(_resolve(lowered, SCALE_KEYS)),
            nullable=coerce_nullable(_resolve(lowered, NULLABLE_KEYS)),
            default_value=_resolve(lowered, DEFAULT_KEYS),
        )

    def normalize_tables(self, rows: Iterable[Mapping[str, Any]]) -> List[TableDescriptor]:
        return [self.normalize_table(row) for row in rows]

    def normalize_columns(self, rows: Iterable[Mapping[str, Any]]) -> List[ColumnDescriptor]:
        return [self.normalize_column(row) for row in rows]

    async def normalize(
        self,
        engine: Union[str, Engine],
        raw_tables: Iterable[Mapping[str, Any]],
        fetch_columns: ColumnFetcher,
    ) -> List[TableSchema]:
        """Normalize tables and fetch each table's columns.

        A table whose column fetch fails is still returned, with no
        columns and the failure message in ``error``; the remaining
        tables are processed normally.

        Args:
            engine: Engine the rows came from (used for logging)
            raw_tables: Raw table rows from ``list_tables``
            fetch_columns: Coroutine returning raw column rows for a table

        Returns:
            One TableSchema per raw table row, in input order
        """
        schemas: List[TableSchema] = []
        for table in self.normalize_tables(raw_tables):
            try:
                columns = self.normalize_columns(await fetch_columns(table))
            except Exception as e:
                message = getattr(e, "message", None) or str(e) or e.__class__.__name__
                self.logger.warning(
                    "Column retrieval failed",
                    engine=str(engine),
                    schema=table.schema_name,
                    table=table.table_name,
                    error=message,
                )
                schemas.append(TableSchema(table=table, columns=[], error=message))
                continue
            schemas.append(TableSchema(table=table, columns=columns))
        return schemas
