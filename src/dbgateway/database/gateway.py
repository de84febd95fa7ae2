"""Database gateway facade.

``DatabaseGateway`` is the one object request handlers talk to. It owns
the pool registry, the normalizer and the lifecycle manager, and turns
each request into validate, acquire, query, normalize and release.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Tuple, Union

from ..config.models import GatewayConfig
from ..core.exceptions import ErrorCodes, ValidationError
from ..logging import get_logger
from .adapters import EngineAdapter
from .engines import ENGINE_INFO, Engine, parse_engine
from .handle import ConnectionHandle
from .lifecycle import LifecycleManager
from .models import ColumnDescriptor, QueryResult, TableDescriptor, TableSchema, ValidationResult
from .normalizer import SchemaNormalizer
from .registry import PoolRegistry
from .validators import validate_config

EngineName = Union[str, Engine]


class DatabaseGateway:
    """Uniform async access to every supported engine.

    Example:
        >>> gateway = DatabaseGateway(GatewayConfig())
        >>> tables = await gateway.describe_schema("sqlite", {"filename": "app.db"})
        >>> await gateway.shutdown()
    """

    def __init__(
        self,
        config: Optional[GatewayConfig] = None,
        *,
        adapters: Optional[Mapping[Engine, EngineAdapter]] = None,
        registry: Optional[PoolRegistry] = None,
    ) -> None:
        self.config = config or GatewayConfig()
        self.registry = registry or PoolRegistry(self.config.pool, adapters=adapters)
        self.normalizer = SchemaNormalizer()
        self.lifecycle = LifecycleManager(self.registry)
        self.logger = get_logger("dbgateway.gateway")

    # Lifecycle

    async def startup(self) -> None:
        await self.registry.initialize()

    async def shutdown(self, reason: str = "requested") -> Dict[str, int]:
        return await self.lifecycle.shutdown(reason=reason)

    # Core contract

    def validate_config(self, engine: EngineName, config: Any) -> ValidationResult:
        return validate_config(engine, config)

    def _prepare(self, engine: EngineName, config: Any) -> Tuple[Engine, EngineAdapter]:
        """Resolve and validate before any resource is touched.

        Raises:
            UnsupportedEngineError: If the engine is unknown
            ValidationError: If the config is invalid
            DriverUnavailableError: If the driver cannot be imported
        """
        resolved = parse_engine(engine)
        result = validate_config(resolved, config)
        if not result.valid:
            raise ValidationError(
                result.reason or "Invalid connection configuration",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"engine": resolved.value},
            )
        adapter = self.registry.adapter_for(resolved)
        adapter.load_driver()
        return resolved, adapter

    @asynccontextmanager
    async def acquire(self, engine: EngineName, config: Mapping[str, Any]) -> AsyncIterator[ConnectionHandle]:
        """Lease a probed connection for the duration of the block."""
        resolved, _ = self._prepare(engine, config)
        async with self.registry.acquire(resolved, config) as handle:
            yield handle

    async def list_tables(self, handle: ConnectionHandle) -> List[TableDescriptor]:
        adapter = self.registry.adapter_for(handle.engine)
        return self.normalizer.normalize_tables(await adapter.list_tables(handle))

    async def list_columns(self, handle: ConnectionHandle, table: TableDescriptor) -> List[ColumnDescriptor]:
        adapter = self.registry.adapter_for(handle.engine)
        return self.normalizer.normalize_columns(await adapter.list_columns(handle, table))

    async def run_query(self, handle: ConnectionHandle, sql: str, params: Any = None) -> QueryResult:
        adapter = self.registry.adapter_for(handle.engine)
        return await adapter.run_query(handle, sql, params)

    async def release(self, handle: ConnectionHandle) -> None:
        await handle.release()

    # Composite operations

    async def describe_schema(self, engine: EngineName, config: Mapping[str, Any]) -> List[TableSchema]:
        """All tables with their columns; per-table failures are reported inline."""
        resolved, adapter = self._prepare(engine, config)
        async with self.registry.acquire(resolved, config) as handle:
            raw_tables = await adapter.list_tables(handle)

            async def fetch_columns(table: TableDescriptor) -> List[Dict[str, Any]]:
                return await adapter.list_columns(handle, table)

            schemas = await self.normalizer.normalize(resolved, raw_tables, fetch_columns)

        self.logger.info(
            "Schema described",
            engine=resolved.value,
            table_count=len(schemas),
            failed_tables=sum(1 for schema in schemas if schema.error),
        )
        return schemas

    def clamp_limit(self, limit: Any) -> int:
        preview = self.config.preview
        if limit is None or isinstance(limit, bool):
            return preview.default_limit
        try:
            value = int(limit)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                "Limit must be a number",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
                context={"limit": str(limit)},
            ) from e
        return max(1, min(value, preview.max_limit))

    async def preview_table(
        self,
        engine: EngineName,
        config: Mapping[str, Any],
        table: str,
        schema: Optional[str] = None,
        limit: Any = None,
    ) -> QueryResult:
        """First rows of one table, using the engine's row limiting syntax."""
        if not table or not isinstance(table, str):
            raise ValidationError(
                "Preview requires a 'table' name",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
            )
        resolved, adapter = self._prepare(engine, config)
        sql = adapter.preview_sql(schema or config.get("schema"), table, self.clamp_limit(limit))
        async with self.registry.acquire(resolved, config) as handle:
            return await adapter.run_query(handle, sql)

    async def execute_query(
        self,
        engine: EngineName,
        config: Mapping[str, Any],
        sql: Any,
        params: Any = None,
    ) -> QueryResult:
        """Run caller SQL on a leased connection, releasing it afterwards.

        The statement is passed to the driver unchanged.
        """
        if not isinstance(sql, str) or not sql.strip():
            raise ValidationError(
                "Query requires a non-empty 'sql' string",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
            )
        if params is not None and not isinstance(params, (list, dict)):
            raise ValidationError(
                "Query 'params' must be a list or an object",
                code=ErrorCodes.CONFIG_VALIDATION_FAILED,
            )
        resolved, adapter = self._prepare(engine, config)
        async with self.registry.acquire(resolved, config) as handle:
            result = await adapter.run_query(handle, sql, params)

        self.logger.info(
            "Query executed",
            engine=resolved.value,
            row_count=result.row_count,
            execution_time_ms=result.execution_time * 1000,
        )
        return result

    async def test_connection(self, engine: EngineName, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate, connect and probe."""
        resolved, adapter = self._prepare(engine, config)
        async with self.registry.acquire(resolved, config):
            pass
        return {
            "database_type": resolved.value,
            "message": f"Successfully connected to {adapter.info.display_name}",
        }

    # Discovery

    def list_databases(self) -> List[Dict[str, Any]]:
        return [info.to_dict() for info in ENGINE_INFO.values()]

    def health(self) -> Dict[str, Any]:
        drivers = {engine.value: self.registry.adapter_for(engine).driver_available() for engine in Engine}
        return {
            "status": "shutting_down" if self.lifecycle.is_shutting_down else "ok",
            "drivers": drivers,
            "active_pools": self.registry.pool_count,
            "registry": self.registry.get_health_status(),
        }

    def engine_health(self, engine: EngineName) -> Dict[str, Any]:
        resolved = parse_engine(engine)
        adapter = self.registry.adapter_for(resolved)
        available = adapter.driver_available()
        return {
            "engine": resolved.value,
            "status": "ok" if available else "unavailable",
            "driver_available": available,
            "operations": adapter.perf_logger.get_metrics(),
        }
