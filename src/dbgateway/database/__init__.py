"""Multi-engine connection pooling and schema normalization."""

from .adapters import ADAPTERS, EngineAdapter, get_adapter
from .engines import ENGINE_ALIASES, ENGINE_INFO, Engine, EngineInfo, get_engine_info, parse_engine, supported_engines
from .gateway import DatabaseGateway
from .handle import ConnectionHandle
from .lifecycle import LifecycleManager
from .models import (
    ColumnDescriptor,
    ConnectionSettings,
    QueryResult,
    TableDescriptor,
    TableSchema,
    TableType,
    ValidationResult,
)
from .normalizer import SchemaNormalizer
from .pool import ConnectionPool
from .registry import PoolEntry, PoolRegistry
from .validators import validate_config

__all__ = [
    "ADAPTERS",
    "ColumnDescriptor",
    "ConnectionHandle",
    "ConnectionPool",
    "ConnectionSettings",
    "DatabaseGateway",
    "ENGINE_ALIASES",
    "ENGINE_INFO",
    "Engine",
    "EngineAdapter",
    "EngineInfo",
    "LifecycleManager",
    "PoolEntry",
    "PoolRegistry",
    "QueryResult",
    "SchemaNormalizer",
    "TableDescriptor",
    "TableSchema",
    "TableType",
    "ValidationResult",
    "get_adapter",
    "get_engine_info",
    "parse_engine",
    "supported_engines",
    "validate_config",
]
