"""Unit tests for engine adapters that do not need a live server."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from dbgateway.config.models import PoolConfig
from dbgateway.core.exceptions import (
    CatalogQueryFailedError,
    ConnectFailedError,
    DriverUnavailableError,
    ErrorCodes,
    QueryError,
)
from dbgateway.database.adapters import (
    ADAPTERS,
    MSSQLAdapter,
    PostgreSQLAdapter,
    VerticaAdapter,
    get_adapter,
    split_type_modifiers,
)
from dbgateway.database.engines import Engine, EngineInfo
from dbgateway.database.models import ConnectionSettings, TableDescriptor
from dbgateway.database.normalizer import SchemaNormalizer


def _settings(engine, **config):
    return ConnectionSettings.from_config(engine, config)


class _MissingDriverAdapter(VerticaAdapter):
    @property
    def info(self):
        return EngineInfo(Engine.VERTICA, "Vertica", "dbgateway_no_such_driver", "vertica-python", 5433)


class TestDispatchTable:
    def test_every_engine_has_adapter(self):
        assert set(ADAPTERS) == set(Engine)
        for engine, adapter in ADAPTERS.items():
            assert adapter.engine is engine

    def test_get_adapter_accepts_alias(self):
        assert isinstance(get_adapter("sqlserver"), MSSQLAdapter)


class TestDriverLoading:
    def test_missing_driver_raises(self):
        adapter = _MissingDriverAdapter()

        with pytest.raises(DriverUnavailableError) as exc_info:
            adapter.load_driver()

        assert exc_info.value.code == ErrorCodes.DRIVER_UNAVAILABLE
        assert "pip install vertica-python" in exc_info.value.message

    def test_missing_driver_not_available(self):
        assert _MissingDriverAdapter().driver_available() is False


class TestSplitTypeModifiers:
    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("VARCHAR(255)", (255, None, None)),
            ("character varying(40)", (40, None, None)),
            ("NUMERIC(10,2)", (None, 10, 2)),
            ("DECIMAL(18, 4)", (None, 18, 4)),
            ("numeric(12)", (None, 12, None)),
            ("INTEGER", (None, None, None)),
            ("", (None, None, None)),
            (None, (None, None, None)),
        ],
    )
    def test_split(self, declared, expected):
        assert split_type_modifiers(declared) == expected


class TestPreviewSql:
    @pytest.mark.parametrize(
        "engine, schema, expected",
        [
            (Engine.POSTGRESQL, "public", 'SELECT * FROM "public"."orders" LIMIT 10'),
            (Engine.MYSQL, "shop", "SELECT * FROM `shop`.`orders` LIMIT 10"),
            (Engine.MSSQL, "dbo", "SELECT TOP 10 * FROM [dbo].[orders]"),
            (Engine.SYBASE, None, "SELECT TOP 10 * FROM [orders]"),
            (Engine.TERADATA, "sales", 'SELECT TOP 10 * FROM "sales"."orders"'),
            (Engine.ORACLE, "HR", 'SELECT * FROM "HR"."orders" FETCH FIRST 10 ROWS ONLY'),
            (Engine.DB2, "DB2INST1", 'SELECT * FROM "DB2INST1"."orders" FETCH FIRST 10 ROWS ONLY'),
            (Engine.INFORMIX, "informix", 'SELECT FIRST 10 * FROM "informix"."orders"'),
            (Engine.FIREBIRD, None, 'SELECT FIRST 10 * FROM "orders"'),
            (Engine.SQLITE, "main", 'SELECT * FROM "orders" LIMIT 10'),
        ],
    )
    def test_native_row_limiting(self, engine, schema, expected):
        assert ADAPTERS[engine].preview_sql(schema, "orders", 10) == expected

    def test_identifiers_are_escaped(self):
        assert ADAPTERS[Engine.POSTGRESQL].quote_identifier('we"ird') == '"we""ird"'
        assert ADAPTERS[Engine.MSSQL].quote_identifier("a]b") == "[a]]b]"
        assert ADAPTERS[Engine.MYSQL].quote_identifier("a`b") == "`a``b`"


class TestCatalogQueries:
    def test_postgresql_schema_parameter(self):
        adapter = ADAPTERS[Engine.POSTGRESQL]

        _, params = adapter.tables_query(_settings(Engine.POSTGRESQL, dbname="d", user="u"))
        _, filtered = adapter.tables_query(_settings(Engine.POSTGRESQL, dbname="d", user="u", schema="sales"))

        assert params == [None]
        assert filtered == ["sales"]

    def test_mssql_schema_filter(self):
        adapter = ADAPTERS[Engine.MSSQL]

        sql, params = adapter.tables_query(_settings(Engine.MSSQL, dbname="d", user="u", schema="dbo"))

        assert "= ?" in sql
        assert params == ["dbo"]

    def test_columns_query_binds_table(self):
        table = TableDescriptor("HR", "EMPLOYEES")

        _, params = ADAPTERS[Engine.ORACLE].columns_query(
            _settings(Engine.ORACLE, service_name="X", user="u"), table
        )

        assert params == {"owner": "HR", "table_name": "EMPLOYEES"}

    def test_exasol_schema_placeholders(self):
        sql, params = ADAPTERS[Engine.EXASOL].tables_query(
            _settings(Engine.EXASOL, host="exa", user="sys", schema="RETAIL")
        )

        assert "TABLE_SCHEMA = {schema}" in sql
        assert params == {"schema": "RETAIL"}


class TestShapeColumnRow:
    normalizer = SchemaNormalizer()

    def _normalize(self, engine, row):
        return self.normalizer.normalize_column(ADAPTERS[engine].shape_column_row(row))

    def test_informix_decimal_not_null(self):
        column = self._normalize(Engine.INFORMIX, {
            "column_name": "price", "coltype": 5 + 256, "collength": 10 * 256 + 2,
        })

        assert column.type == "DECIMAL"
        assert (column.precision, column.scale) == (10, 2)
        assert column.nullable is False

    def test_informix_varchar(self):
        column = self._normalize(Engine.INFORMIX, {"column_name": "name", "coltype": 13, "collength": 40})

        assert column.type == "VARCHAR"
        assert column.length == 40
        assert column.nullable is True

    def test_firebird_uppercase_keys(self):
        column = self._normalize(Engine.FIREBIRD, {
            "COLUMN_NAME": "AMOUNT", "FIELD_TYPE": 8, "FIELD_SUB_TYPE": 2,
            "FIELD_PRECISION": 9, "FIELD_SCALE": -2, "NULL_FLAG": 1,
            "DEFAULT_SOURCE": "DEFAULT 0", "CHARACTER_LENGTH": None,
        })

        assert column.name == "AMOUNT"
        assert column.type == "DECIMAL"
        assert (column.precision, column.scale) == (9, 2)
        assert column.nullable is False
        assert column.default_value == "0"

    def test_firebird_varchar(self):
        column = self._normalize(Engine.FIREBIRD, {
            "COLUMN_NAME": "NAME", "FIELD_TYPE": 37, "CHARACTER_LENGTH": 50, "NULL_FLAG": None,
        })

        assert column.type == "VARCHAR"
        assert column.length == 50
        assert column.nullable is True

    def test_teradata_codes(self):
        column = self._normalize(Engine.TERADATA, {
            "column_name": "city", "column_type": "CV", "column_length": 100,
            "numeric_precision": None, "nullable": "Y",
        })

        assert column.type == "VARCHAR"
        assert column.length == 100
        assert column.nullable is True

    def test_oracle_length_only_for_character_types(self):
        column = self._normalize(Engine.ORACLE, {
            "COLUMN_NAME": "ID", "DATA_TYPE": "NUMBER", "DATA_LENGTH": 22,
            "DATA_PRECISION": 10, "DATA_SCALE": 0, "NULLABLE": "N",
        })

        assert column.length is None
        assert column.precision == 10
        assert column.nullable is False

    def test_sqlite_pragma_row(self):
        column = self._normalize(Engine.SQLITE, {
            "name": "total", "type": "NUMERIC(10,2)", "notnull": 1, "dflt_value": "0", "pk": 0,
        })

        assert (column.precision, column.scale) == (10, 2)
        assert column.nullable is False
        assert column.default_value == "0"


class TestOdbcDsn:
    def test_mssql_dsn(self):
        settings = _settings(
            Engine.MSSQL, host="sql.local", dbname="master", user="sa", password="p}w",
            options={"Encrypt": "no"},
        )

        dsn = ADAPTERS[Engine.MSSQL].build_dsn(settings)

        assert dsn == (
            "DRIVER={ODBC Driver 18 for SQL Server};SERVER={sql.local,1433};DATABASE={master};"
            "UID={sa};PWD={p}}w};Encrypt={no}"
        )

    def test_driver_override(self):
        settings = _settings(Engine.MSSQL, host="h", dbname="d", user="u", driver="FreeTDS")

        assert ADAPTERS[Engine.MSSQL].build_dsn(settings).startswith("DRIVER={FreeTDS};")


class TestDb2Dsn:
    def test_credentials_with_separators_stay_quoted(self):
        settings = _settings(Engine.DB2, host="db2.local", dbname="SAMPLE", user="db2inst1", password="a;PWD=x}")
        driver = MagicMock()

        ADAPTERS[Engine.DB2]._connect_sync(driver, settings, PoolConfig(connect_timeout=5))

        dsn, user, password = driver.connect.call_args.args
        assert dsn == (
            "DATABASE={SAMPLE};HOSTNAME={db2.local};PORT={50000};PROTOCOL={TCPIP};"
            "UID={db2inst1};PWD={a;PWD=x}}};CONNECTTIMEOUT={5};"
        )
        assert (user, password) == ("", "")

    def test_missing_password_is_empty(self):
        settings = _settings(Engine.DB2, host="h", dbname="d", user="u")

        assert "PWD={};" in ADAPTERS[Engine.DB2].build_dsn(settings, PoolConfig())


class TestDbApiFetch:
    def test_fetch_sync_builds_dict_rows(self):
        cursor = MagicMock()
        cursor.description = [("ID",), ("NAME",)]
        cursor.fetchall.return_value = [(1, "a"), (2, "b")]
        connection = MagicMock()
        connection.cursor.return_value = cursor

        columns, rows = ADAPTERS[Engine.DB2]._fetch_sync(connection, "SELECT ID, NAME FROM T WHERE X = ?", [5])

        assert columns == ["ID", "NAME"]
        assert rows == [{"ID": 1, "NAME": "a"}, {"ID": 2, "NAME": "b"}]
        cursor.execute.assert_called_once_with("SELECT ID, NAME FROM T WHERE X = ?", [5])
        cursor.close.assert_called_once()

    def test_fetch_sync_without_result_set(self):
        cursor = MagicMock()
        cursor.description = None
        connection = MagicMock()
        connection.cursor.return_value = cursor

        assert ADAPTERS[Engine.SAP_HANA]._fetch_sync(connection, "SET SCHEMA X", None) == ([], [])


def _fake_asyncpg(pool):
    auth_error = type("InvalidAuthorizationSpecificationError", (Exception,), {})
    catalog_error = type("InvalidCatalogNameError", (Exception,), {})
    return SimpleNamespace(
        create_pool=AsyncMock(return_value=pool),
        InvalidAuthorizationSpecificationError=auth_error,
        InvalidCatalogNameError=catalog_error,
    )


class TestPostgreSQLAdapter:
    @pytest.fixture
    def adapter(self):
        return PostgreSQLAdapter()

    @pytest.fixture
    def settings(self, postgres_config):
        return ConnectionSettings.from_config(Engine.POSTGRESQL, postgres_config)

    @pytest.mark.asyncio
    async def test_create_pool_passes_limits(self, adapter, settings, monkeypatch):
        driver = _fake_asyncpg(pool=object())
        monkeypatch.setattr(adapter, "load_driver", lambda: driver)

        await adapter.create_pool(settings, PoolConfig(min_size=2, max_size=7, connect_timeout=3))

        kwargs = driver.create_pool.await_args.kwargs
        assert kwargs["host"] == "db.internal"
        assert kwargs["database"] == "analytics"
        assert kwargs["min_size"] == 2
        assert kwargs["max_size"] == 7
        assert kwargs["timeout"] == 3

    @pytest.mark.asyncio
    async def test_auth_failure_classified(self, adapter, settings, monkeypatch):
        driver = _fake_asyncpg(pool=None)
        driver.create_pool.side_effect = driver.InvalidAuthorizationSpecificationError(
            'password authentication failed for user "reporting"'
        )
        monkeypatch.setattr(adapter, "load_driver", lambda: driver)

        with pytest.raises(ConnectFailedError) as exc_info:
            await adapter.create_pool(settings, PoolConfig())

        assert exc_info.value.code == ErrorCodes.AUTH_FAILED
        assert "password authentication failed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_connect_timeout(self, adapter, settings, monkeypatch):
        driver = _fake_asyncpg(pool=None)

        async def hang(**kwargs):
            await asyncio.sleep(10)

        driver.create_pool = hang
        monkeypatch.setattr(adapter, "load_driver", lambda: driver)

        with pytest.raises(ConnectFailedError) as exc_info:
            await adapter.create_pool(settings, PoolConfig(connect_timeout=0.05))

        assert exc_info.value.code == ErrorCodes.CONNECTION_TIMEOUT

    @pytest.mark.asyncio
    async def test_release_terminates_discarded_connection(self, adapter):
        pool = MagicMock()
        pool.release = AsyncMock()
        connection = MagicMock()

        await adapter._release(pool, connection, discard=True)

        connection.terminate.assert_called_once()
        pool.release.assert_awaited_once_with(connection)


class TestErrorWrapping:
    @pytest.mark.asyncio
    async def test_catalog_failure(self, fake_adapter, postgres_config, pool_config):
        handle = MagicMock()
        handle.settings = ConnectionSettings.from_config(Engine.POSTGRESQL, postgres_config)
        fake_adapter._fetch = AsyncMock(side_effect=RuntimeError("relation does not exist"))

        with pytest.raises(CatalogQueryFailedError) as exc_info:
            await fake_adapter.list_tables(handle)

        assert exc_info.value.code == ErrorCodes.CATALOG_QUERY_FAILED
        assert "relation does not exist" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_query_failure(self, fake_adapter):
        fake_adapter._fetch = AsyncMock(side_effect=RuntimeError("syntax error"))

        with pytest.raises(QueryError) as exc_info:
            await fake_adapter.run_query(MagicMock(), "SELEC 1")

        assert exc_info.value.code == ErrorCodes.QUERY_EXECUTION_FAILED

    @pytest.mark.asyncio
    async def test_query_result(self, fake_adapter):
        result = await fake_adapter.run_query(MagicMock(), "SELECT 2", [1])

        assert result.row_count == 1
        assert result.columns == ["sql", "params"]
        assert result.execution_time >= 0
