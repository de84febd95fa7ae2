"""Tests for logger factory module."""

import json
import logging

import pytest

from dbgateway.logging import (
    ConsoleHandler,
    JSONFormatter,
    RotatingFileHandler,
    TextFormatter,
    configure_logging,
    get_factory,
    get_formatter,
    get_logger,
    get_performance_logger,
)
from dbgateway.logging.factory import LoggerConfig
from dbgateway.logging.performance import PerformanceLogger
from dbgateway.logging.structured import StructuredLogger


class TestLoggerConfig:
    def test_defaults(self):
        config = LoggerConfig()

        assert config.level == "INFO"
        assert config.format == "json"
        assert config.console_output is True
        assert config.file_path is None


class TestLoggerFactory:
    def test_loggers_are_cached(self, logger_factory):
        first = logger_factory.get_logger("dbgateway.registry")
        second = logger_factory.get_logger("dbgateway.registry")

        assert isinstance(first, StructuredLogger)
        assert first is second
        assert logger_factory.get_logger("dbgateway.registry", level="DEBUG") is not first

    def test_performance_loggers_are_cached(self, logger_factory):
        perf = logger_factory.get_performance_logger("adapters.mysql")

        assert isinstance(perf, PerformanceLogger)
        assert perf is logger_factory.get_performance_logger("adapters.mysql")
        assert perf.logger.name == "perf.adapters.mysql"

    def test_configure_from_config(self, logger_factory, sample_logging_config, temp_log_file):
        logger_factory.configure_from_config(sample_logging_config)

        assert logger_factory.initialized
        assert logger_factory.config.file_path == str(temp_log_file)
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RotatingFileHandler)
        assert logging.getLogger().level == logging.INFO

    def test_file_output_is_json(self, logger_factory, sample_logging_config, temp_log_file):
        logger_factory.configure_from_config(sample_logging_config)

        logger_factory.get_logger("dbgateway.test.file").info("Pool created", engine="sqlite")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [line for line in temp_log_file.read_text(encoding="utf-8").splitlines() if line]
        record = json.loads(lines[-1])
        assert record["event"] == "Pool created"
        assert record["engine"] == "sqlite"
        assert record["level"] == "info"

    def test_console_handler_added(self, logger_factory):
        logger_factory.configure_from_dict({"level": "DEBUG", "format": "text", "bogus": 1})

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], ConsoleHandler)
        assert isinstance(handlers[0].formatter, TextFormatter)
        assert not hasattr(logger_factory.config, "bogus")

    def test_repr(self, logger_factory):
        assert "initialized=False" in repr(logger_factory)


class TestFormatters:
    def test_get_formatter(self):
        assert isinstance(get_formatter("JSON"), JSONFormatter)
        assert isinstance(get_formatter("text"), TextFormatter)

    def test_unknown_formatter(self):
        with pytest.raises(ValueError, match="Unsupported formatter type"):
            get_formatter("xml")


class TestHandlers:
    def test_rotating_handler_creates_directory(self, temp_dir):
        path = temp_dir / "nested" / "logs" / "gateway.log"

        handler = RotatingFileHandler(path, maxBytes=1024, backupCount=1)
        try:
            assert path.parent.is_dir()
            assert handler.maxBytes == 1024
        finally:
            handler.close()

    def test_console_handler_routes_errors_to_stderr(self, capsys):
        handler = ConsoleHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))

        handler.emit(logging.makeLogRecord({"msg": "fine", "levelno": logging.INFO}))
        handler.emit(logging.makeLogRecord({"msg": "broken", "levelno": logging.ERROR}))

        captured = capsys.readouterr()
        assert "fine" in captured.out
        assert "broken" in captured.err


class TestModuleFunctions:
    def test_global_helpers_share_factory(self):
        assert get_logger("dbgateway.test.global") is get_factory().get_logger("dbgateway.test.global")
        assert get_performance_logger("test.global") is get_factory().get_performance_logger("test.global")

    def test_configure_logging(self):
        configure_logging(level="WARNING", format="text")

        assert get_factory().initialized
        assert get_factory().config.level == "WARNING"
        assert logging.getLogger().level == logging.WARNING
