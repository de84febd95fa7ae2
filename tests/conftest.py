"""Pytest configuration and shared fixtures.

This module provides pytest configuration and shared fixtures for all tests
in the dbgateway test suite, including an in-memory adapter that stands in
for a real engine so registry, normalizer and gateway behaviour can be
tested without a database server.
"""

import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional, Set, Tuple
from unittest.mock import MagicMock

import pytest
import structlog

from dbgateway.config.models import GatewayConfig, PoolConfig
from dbgateway.database.adapters.base import EngineAdapter, Params, Rows
from dbgateway.database.engines import Engine
from dbgateway.database.handle import ConnectionHandle
from dbgateway.database.models import ConnectionSettings, TableDescriptor


def configure_test_logging(capture: structlog.testing.LogCapture) -> None:
    """Route structlog events into ``capture`` instead of the console."""
    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars, capture],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.testing.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# Configure test logging to suppress noise during tests
configure_test_logging(structlog.testing.LogCapture())


class FakePool:
    """Stand-in for an engine-native pool."""

    def __init__(self, settings: ConnectionSettings):
        self.settings = settings
        self.close_count = 0
        self.checked_out: Set[int] = set()
        self.released: List[Tuple[int, bool]] = []
        self._next_id = 0

    def checkout(self) -> "FakeConnection":
        self._next_id += 1
        connection = FakeConnection(self._next_id)
        self.checked_out.add(connection.connection_id)
        return connection


class FakeConnection:
    def __init__(self, connection_id: int):
        self.connection_id = connection_id


class FakeAdapter(EngineAdapter):
    """In-memory adapter with scripted catalog rows and failures.

    Args:
        engine: Engine to impersonate
        tables: Raw table rows returned by ``list_tables``
        columns: Raw column rows per table name
        failing_tables: Table names whose column query raises
        fail_create: Exception raised by pool creation
        create_delay: Seconds pool creation sleeps (to widen race windows)
        fail_probe: Make the liveness probe fail
    """

    def __init__(
        self,
        engine: Engine = Engine.POSTGRESQL,
        *,
        tables: Optional[Rows] = None,
        columns: Optional[Dict[str, Rows]] = None,
        failing_tables: Optional[Set[str]] = None,
        fail_create: Optional[BaseException] = None,
        create_delay: float = 0.0,
        fail_probe: bool = False,
    ):
        self.engine = engine
        super().__init__()
        self.tables = tables or []
        self.columns = columns or {}
        self.failing_tables = failing_tables or set()
        self.fail_create = fail_create
        self.create_delay = create_delay
        self.fail_probe = fail_probe
        self.pools_created: List[FakePool] = []
        self.pools_closed: List[FakePool] = []

    def load_driver(self) -> Any:
        return None

    def driver_available(self) -> bool:
        return True

    async def _create_pool(self, settings: ConnectionSettings, pool_config: PoolConfig) -> FakePool:
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.fail_create is not None:
            raise self.fail_create
        pool = FakePool(settings)
        self.pools_created.append(pool)
        return pool

    async def close_pool(self, pool: FakePool) -> None:
        pool.close_count += 1
        self.pools_closed.append(pool)

    async def _acquire(self, pool: FakePool) -> FakeConnection:
        return pool.checkout()

    async def _release(self, pool: FakePool, connection: FakeConnection, discard: bool) -> None:
        pool.checked_out.discard(connection.connection_id)
        pool.released.append((connection.connection_id, discard))

    async def _fetch(self, handle: ConnectionHandle, sql: str, params: Params) -> Tuple[List[str], Rows]:
        if sql == self.probe_sql:
            if self.fail_probe:
                raise RuntimeError("server closed the connection unexpectedly")
            return ["?column?"], [{"?column?": 1}]
        if sql == "TABLES":
            return ["schemaname", "tablename", "tabletype"], list(self.tables)
        if sql.startswith("COLUMNS:"):
            table_name = sql.split(":", 1)[1]
            if table_name in self.failing_tables:
                raise RuntimeError(f'permission denied for table "{table_name}"')
            return ["column_name"], list(self.columns.get(table_name, []))
        rows = [{"sql": sql, "params": params}]
        return ["sql", "params"], rows

    def tables_query(self, settings: ConnectionSettings) -> Tuple[str, Params]:
        return "TABLES", None

    def columns_query(self, settings: ConnectionSettings, table: TableDescriptor) -> Tuple[str, Params]:
        return f"COLUMNS:{table.table_name}", None


@pytest.fixture(autouse=True)
def log_output() -> structlog.testing.LogCapture:
    """Fresh structlog capture for every test; read events from ``entries``."""
    capture = structlog.testing.LogCapture()
    configure_test_logging(capture)
    return capture


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def mock_logger():
    """Mock structured logger for testing."""
    logger = MagicMock()
    logger.bind.return_value = logger
    return logger


@pytest.fixture
def postgres_config() -> Dict[str, Any]:
    """Valid PostgreSQL connection config."""
    return {
        "host": "db.internal",
        "port": 5432,
        "dbname": "analytics",
        "user": "reporting",
        "password": "s3cret",
    }


@pytest.fixture
def pool_config() -> PoolConfig:
    return PoolConfig(min_size=1, max_size=3, connect_timeout=2, acquire_timeout=1, shutdown_timeout=1)


@pytest.fixture
def gateway_config(pool_config: PoolConfig) -> GatewayConfig:
    return GatewayConfig(pool=pool_config)


@pytest.fixture
def sample_tables() -> Rows:
    return [
        {"schemaname": "public", "tablename": "customers", "relkind": "r"},
        {"schemaname": "public", "tablename": "orders", "relkind": "r"},
        {"schemaname": "public", "tablename": "order_totals", "relkind": "v"},
    ]


@pytest.fixture
def sample_columns() -> Dict[str, Rows]:
    return {
        "customers": [
            {"column_name": "id", "data_type": "integer", "numeric_precision": 32,
             "numeric_scale": 0, "is_nullable": "NO", "column_default": None},
            {"column_name": "email", "data_type": "character varying",
             "character_maximum_length": 255, "is_nullable": "YES", "column_default": None},
        ],
        "orders": [
            {"column_name": "id", "data_type": "integer", "is_nullable": "NO"},
        ],
        "order_totals": [
            {"column_name": "customer_id", "data_type": "integer", "is_nullable": "YES"},
            {"column_name": "total", "data_type": "numeric", "numeric_precision": 12,
             "numeric_scale": 2, "is_nullable": "YES"},
        ],
    }


@pytest.fixture
def fake_adapter(sample_tables: Rows, sample_columns: Dict[str, Rows]) -> FakeAdapter:
    return FakeAdapter(Engine.POSTGRESQL, tables=sample_tables, columns=sample_columns)


@pytest.fixture
def adapter_factory():
    """The FakeAdapter class, for tests that script their own failures."""
    return FakeAdapter


@pytest.fixture
def fake_adapters(fake_adapter: FakeAdapter) -> Dict[Engine, EngineAdapter]:
    """Dispatch table with the scripted adapter for PostgreSQL and empty fakes elsewhere."""
    adapters: Dict[Engine, EngineAdapter] = {engine: FakeAdapter(engine) for engine in Engine}
    adapters[Engine.POSTGRESQL] = fake_adapter
    return adapters


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (slower, real dependencies)"
    )
    config.addinivalue_line(
        "markers", "database: marks tests that exercise the database layer"
    )
    config.addinivalue_line(
        "markers", "api: marks tests of the HTTP surface"
    )


# Auto-mark tests based on their location
def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(config.rootdir) / "tests")

        if test_path.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)
        elif test_path.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)

        if "database" in test_path.parts or "adapters" in test_path.parts:
            item.add_marker(pytest.mark.database)
        if "api" in test_path.parts:
            item.add_marker(pytest.mark.api)
