"""Connection config validation.

Each engine has one pure validator that checks required fields and the
format of host, port and schema before any network I/O happens.
Validators never raise: malformed input is an expected condition and is
reported through ``ValidationResult``.

Example:
    >>> validate_config("postgresql", {})
    ValidationResult(valid=False, reason="PostgreSQL requires 'dbname' and 'user'")
"""

from typing import Any, Callable, Dict, Mapping, Sequence, Tuple, Union

from ..core.exceptions import UnsupportedEngineError
from ..core.utils import ValidationUtils
from .engines import Engine, check_exhaustive, get_engine_info, parse_engine
from .models import (
    DATABASE_KEYS,
    FILE_KEYS,
    ORACLE_DATABASE_KEYS,
    USER_KEYS,
    ValidationResult,
)

Validator = Callable[[Mapping[str, Any]], ValidationResult]

# A requirement is a display label plus the config keys that satisfy it
Requirement = Tuple[str, Sequence[str]]

DBNAME: Requirement = ("dbname", DATABASE_KEYS)
USER: Requirement = ("user", USER_KEYS)
HOST: Requirement = ("host", ("host",))
SERVER: Requirement = ("server", ("server",))
SERVICE: Requirement = ("service_name", ORACLE_DATABASE_KEYS)
FILENAME: Requirement = ("filename", FILE_KEYS)


def _missing(config: Mapping[str, Any], requirements: Sequence[Requirement]) -> list:
    return [
        label for label, keys in requirements
        if all(ValidationUtils.is_blank(config.get(key)) for key in keys)
    ]


def _quote_join(labels: Sequence[str]) -> str:
    quoted = [f"'{label}'" for label in labels]
    if len(quoted) == 1:
        return quoted[0]
    return ", ".join(quoted[:-1]) + " and " + quoted[-1]


def check_common(engine: Engine, config: Mapping[str, Any]) -> ValidationResult:
    """Checks shared by every networked engine: host, port and schema format."""
    host = config.get("host")
    if not ValidationUtils.is_blank(host) and not ValidationUtils.validate_host(host):
        return ValidationResult.fail(
            f"Invalid host for {get_engine_info(engine).display_name}: "
            "only letters, digits, '.', '-', '_' and IPv6 addresses are allowed"
        )

    port = config.get("port")
    if not ValidationUtils.is_blank(port):
        parsed, value = ValidationUtils.parse_port(port)
        if value is None:
            return ValidationResult.fail("Port must be a valid number")
        if not parsed:
            return ValidationResult.fail("Port must be between 1 and 65535")

    schema = config.get("schema")
    if not ValidationUtils.is_blank(schema) and not ValidationUtils.validate_schema_name(schema):
        return ValidationResult.fail(f"Invalid schema name: {schema!r}")

    return ValidationResult.ok()


def requires(engine: Engine, *requirements: Requirement) -> Validator:
    """Build a validator for an engine from its required fields."""
    display_name = get_engine_info(engine).display_name

    def validate(config: Mapping[str, Any]) -> ValidationResult:
        missing = _missing(config, requirements)
        if missing:
            labels = [label for label, _ in requirements]
            return ValidationResult.fail(f"{display_name} requires {_quote_join(labels)}")
        return check_common(engine, config)

    validate.__name__ = f"validate_{engine.value}"
    return validate


def validate_sqlite(config: Mapping[str, Any]) -> ValidationResult:
    if not _missing(config, [FILENAME]):
        return ValidationResult.ok()
    return ValidationResult.fail("SQLite requires 'filename' (path to the database file)")


VALIDATORS: Dict[Engine, Validator] = {
    Engine.POSTGRESQL: requires(Engine.POSTGRESQL, DBNAME, USER),
    Engine.MYSQL: requires(Engine.MYSQL, DBNAME, USER),
    Engine.MSSQL: requires(Engine.MSSQL, DBNAME, USER),
    Engine.ORACLE: requires(Engine.ORACLE, SERVICE, USER),
    Engine.SQLITE: validate_sqlite,
    Engine.DB2: requires(Engine.DB2, DBNAME, USER),
    Engine.INFORMIX: requires(Engine.INFORMIX, DBNAME, USER, SERVER),
    Engine.FIREBIRD: requires(Engine.FIREBIRD, DBNAME, USER),
    Engine.SAP_HANA: requires(Engine.SAP_HANA, HOST, USER),
    Engine.SYBASE: requires(Engine.SYBASE, HOST, USER),
    Engine.NETEZZA: requires(Engine.NETEZZA, HOST, USER),
    Engine.VERTICA: requires(Engine.VERTICA, HOST, USER),
    Engine.TERADATA: requires(Engine.TERADATA, HOST, USER),
    Engine.EXASOL: requires(Engine.EXASOL, HOST, USER),
}

check_exhaustive(VALIDATORS, "VALIDATORS")


def validate_config(engine: Union[str, Engine], config: Any) -> ValidationResult:
    """Validate a connection config for an engine.

    Args:
        engine: Engine or engine name (aliases accepted)
        config: Connection config mapping

    Returns:
        ValidationResult; never raises
    """
    try:
        resolved = parse_engine(engine)
    except UnsupportedEngineError as e:
        return ValidationResult.fail(e.message)

    if not isinstance(config, Mapping):
        return ValidationResult.fail("Connection configuration must be an object")

    return VALIDATORS[resolved](config)
