"""Configuration models for dbgateway.

This module defines the Pydantic models for gateway-wide settings. Per
request connection configurations are deliberately not modelled here:
they are validated by the engine validators, which report problems as
results instead of raising.

Classes:
    BaseConfig: Base configuration class
    PoolConfig: Connection pool sizing and timeouts
    LoggingConfig: Logging configuration
    ServerConfig: HTTP server settings
    PreviewConfig: Table preview limits
    GatewayConfig: Top-level gateway configuration

Example:
    >>> config = GatewayConfig.from_file("gateway.yaml")
    >>> config.pool.max_size
    5
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ConfigurationError, ErrorCodes

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _resolve_env(value: Any) -> Any:
    """Resolve ${VAR} and ${VAR:default} references recursively."""
    if isinstance(value, str):
        def replace_env_var(match: "re.Match[str]") -> str:
            var_spec = match.group(1)
            if ":" in var_spec:
                var_name, default = var_spec.split(":", 1)
            else:
                var_name, default = var_spec, ""
            return os.getenv(var_name, default)

        return _ENV_PATTERN.sub(replace_env_var, value)
    elif isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env(item) for item in value]
    return value


class BaseConfig(BaseModel):
    """Base configuration class with environment variable resolution.

    Example:
        >>> class MyConfig(BaseConfig):
        ...     name: str
        ...     value: int = 42
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def resolve_environment_variables(cls, values: Any) -> Any:
        """Resolve environment variables in configuration values.

        Supports ${VAR_NAME} and ${VAR_NAME:default_value} syntax.
        """
        if isinstance(values, dict):
            return _resolve_env(values)
        return values

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class PoolConfig(BaseConfig):
    """Connection pool configuration.

    Attributes:
        min_size: Connections opened when a pool is created
        max_size: Ceiling of concurrent connections per pool
        connect_timeout: Seconds allowed for establishing a connection
        acquire_timeout: Seconds a request may wait for a free connection
        idle_timeout: Seconds an idle connection may stay in a pool
        shutdown_timeout: Seconds each pool may take to close on shutdown
    """

    min_size: int = Field(1, ge=0, description="Connections opened on pool creation")
    max_size: int = Field(5, ge=1, le=100, description="Maximum connections per pool")
    connect_timeout: float = Field(10.0, gt=0, description="Connect timeout in seconds")
    acquire_timeout: float = Field(30.0, gt=0, description="Pool checkout timeout in seconds")
    idle_timeout: float = Field(300.0, gt=0, description="Idle connection lifetime in seconds")
    shutdown_timeout: float = Field(10.0, gt=0, description="Per-pool close timeout in seconds")

    @model_validator(mode="after")
    def validate_sizes(self) -> "PoolConfig":
        """Ensure max_size >= min_size."""
        if self.max_size < self.min_size:
            raise ValueError(f"max_size ({self.max_size}) must be >= min_size ({self.min_size})")
        return self


class LoggingConfig(BaseConfig):
    """Logging configuration.

    Attributes:
        level: Log level
        format: Log format (json, text)
        file_path: Log file path
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
        console_output: Enable console output
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Logging level"
    )
    format: Literal["json", "text"] = Field("json", description="Log format")
    file_path: Optional[Path] = Field(None, description="Log file path")
    max_file_size: int = Field(10485760, gt=0, description="Max file size in bytes (10MB)")
    backup_count: int = Field(5, ge=0, description="Number of backup files")
    console_output: bool = Field(True, description="Enable console output")


class ServerConfig(BaseConfig):
    """HTTP server configuration."""

    host: str = Field("0.0.0.0", description="Bind address")
    port: int = Field(3000, ge=1, le=65535, description="Bind port")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], description="Allowed CORS origins")


class PreviewConfig(BaseConfig):
    """Row limits for table previews."""

    default_limit: int = Field(100, ge=1, description="Rows returned when no limit is given")
    max_limit: int = Field(1000, ge=1, description="Upper bound on requested limits")

    @model_validator(mode="after")
    def validate_limits(self) -> "PreviewConfig":
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit must not exceed max_limit")
        return self


class GatewayConfig(BaseConfig):
    """Top-level gateway configuration.

    Example:
        >>> config = GatewayConfig(pool={"max_size": 3}, logging={"level": "DEBUG"})
        >>> config.pool.max_size
        3
    """

    pool: PoolConfig = Field(default_factory=PoolConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        """Build a configuration, converting pydantic errors.

        Raises:
            ConfigurationError: If the data is invalid
        """
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid gateway configuration: {e.error_count()} error(s)",
                code=ErrorCodes.CONFIG_INVALID,
                context={"errors": e.errors(include_url=False)},
                cause=e,
            ) from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "GatewayConfig":
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML file

        Returns:
            Parsed configuration

        Raises:
            ConfigurationError: If the file is missing, unparsable or invalid
        """
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                code=ErrorCodes.CONFIG_NOT_FOUND,
                context={"path": str(config_path)},
            )

        try:
            with config_path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Cannot parse configuration file {config_path}: {e}",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(config_path)},
                cause=e,
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {config_path} must contain a mapping",
                code=ErrorCodes.CONFIG_INVALID,
                context={"path": str(config_path)},
            )

        return cls.from_dict(data)
