"""Unit tests for gateway configuration models."""

from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from dbgateway.config.models import (
    GatewayConfig,
    LoggingConfig,
    PoolConfig,
    PreviewConfig,
    ServerConfig,
)
from dbgateway.core.exceptions import ConfigurationError, ErrorCodes


class TestPoolConfig:
    def test_defaults(self):
        config = PoolConfig()

        assert config.min_size == 1
        assert config.max_size == 5
        assert config.connect_timeout == 10.0
        assert config.acquire_timeout == 30.0
        assert config.idle_timeout == 300.0
        assert config.shutdown_timeout == 10.0

    def test_max_size_must_cover_min_size(self):
        with pytest.raises(PydanticValidationError, match="max_size"):
            PoolConfig(min_size=6, max_size=2)

    def test_timeouts_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            PoolConfig(connect_timeout=0)

    def test_unknown_fields_rejected(self):
        with pytest.raises(PydanticValidationError):
            PoolConfig(maxsize=3)


class TestEnvironmentResolution:
    def test_env_variable_is_substituted(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_PORT", "8080")

        config = ServerConfig(port="${GATEWAY_PORT}")

        assert config.port == 8080

    def test_env_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("GATEWAY_LOG_LEVEL", raising=False)

        config = LoggingConfig(level="${GATEWAY_LOG_LEVEL:DEBUG}")

        assert config.level == "DEBUG"

    def test_nested_sections_resolved(self, monkeypatch):
        monkeypatch.setenv("POOL_MAX", "9")

        config = GatewayConfig.from_dict({"pool": {"max_size": "${POOL_MAX}"}})

        assert config.pool.max_size == 9


class TestGatewayConfig:
    def test_defaults(self):
        config = GatewayConfig()

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 3000
        assert config.server.cors_origins == ["*"]
        assert config.preview.default_limit == 100
        assert config.preview.max_limit == 1000
        assert config.logging.format == "json"

    def test_from_dict_invalid_raises_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            GatewayConfig.from_dict({"server": {"port": 70000}})

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID
        assert exc_info.value.context["errors"]

    def test_preview_default_cannot_exceed_max(self):
        with pytest.raises(PydanticValidationError):
            PreviewConfig(default_limit=50, max_limit=10)

    def test_to_dict_is_json_safe(self):
        data = GatewayConfig(logging={"file_path": "/tmp/gw.log"}).to_dict()

        assert data["logging"]["file_path"] == "/tmp/gw.log"
        assert data["pool"]["max_size"] == 5


class TestFromFile:
    def test_loads_yaml(self, temp_dir: Path):
        path = temp_dir / "gateway.yaml"
        path.write_text(
            "pool:\n  max_size: 8\n  acquire_timeout: 5\n"
            "server:\n  port: 4000\n"
            "logging:\n  level: DEBUG\n  format: text\n",
            encoding="utf-8",
        )

        config = GatewayConfig.from_file(path)

        assert config.pool.max_size == 8
        assert config.pool.acquire_timeout == 5.0
        assert config.server.port == 4000
        assert config.logging.format == "text"

    def test_empty_file_gives_defaults(self, temp_dir: Path):
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert GatewayConfig.from_file(path) == GatewayConfig()

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(ConfigurationError) as exc_info:
            GatewayConfig.from_file(temp_dir / "absent.yaml")

        assert exc_info.value.code == ErrorCodes.CONFIG_NOT_FOUND

    def test_unparsable_yaml(self, temp_dir: Path):
        path = temp_dir / "broken.yaml"
        path.write_text("pool: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            GatewayConfig.from_file(path)

        assert exc_info.value.code == ErrorCodes.CONFIG_INVALID

    def test_non_mapping_document(self, temp_dir: Path):
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            GatewayConfig.from_file(path)
