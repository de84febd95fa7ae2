"""Unit tests for dbgateway base classes.

This module tests the base component classes including lifecycle
management and configuration handling.
"""

import asyncio

import pytest

from dbgateway.core.base import AsyncComponent, BaseComponent
from dbgateway.core.exceptions import ConfigurationError, GatewayException, ValidationError


# Test configuration class - NOT a test class (no Test prefix)
class ComponentTestConfig:
    """Test configuration for component testing."""
    def __init__(self, name: str = "test", value: int = 42):
        self.name = name
        self.value = value


class _TestableBaseComponent(BaseComponent[ComponentTestConfig]):
    component_name = "TestComponent"
    version = "1.0.0"


class _RejectingComponent(BaseComponent[ComponentTestConfig]):
    component_name = "RejectingComponent"

    def validate_config(self) -> bool:
        return self.config.value > 0


class _TestableAsyncComponent(AsyncComponent[ComponentTestConfig]):
    component_name = "TestAsyncComponent"

    def __init__(self, config: ComponentTestConfig, fail_init: bool = False, fail_cleanup: bool = False):
        super().__init__(config)
        self.fail_init = fail_init
        self.fail_cleanup = fail_cleanup
        self.init_calls = 0
        self.cleanup_calls = 0

    async def _async_initialize(self) -> None:
        self.init_calls += 1
        await asyncio.sleep(0)
        if self.fail_init:
            raise RuntimeError("init exploded")

    async def _async_cleanup(self) -> None:
        self.cleanup_calls += 1
        if self.fail_cleanup:
            raise RuntimeError("cleanup exploded")


class TestBaseComponent:
    def test_initialization(self):
        config = ComponentTestConfig()
        component = _TestableBaseComponent(config)

        assert component.config is config
        assert component.component_name == "TestComponent"
        assert not component.is_initialized
        assert component.uptime >= 0

    def test_none_config_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _TestableBaseComponent(None)
        assert exc_info.value.code == "CONFIG_NULL"

    def test_invalid_config_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            _RejectingComponent(ComponentTestConfig(value=-1))
        assert exc_info.value.code == "CONFIG_INVALID"

    def test_health_status(self):
        status = _TestableBaseComponent(ComponentTestConfig()).get_health_status()

        assert status["component"] == "TestComponent"
        assert status["status"] == "not_initialized"
        assert status["initialized"] is False

    def test_repr(self):
        text = repr(_TestableBaseComponent(ComponentTestConfig()))
        assert "name='TestComponent'" in text
        assert "initialized=False" in text


class TestAsyncComponent:
    @pytest.mark.asyncio
    async def test_initialize_and_cleanup(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        await component.initialize()
        assert component.is_initialized
        assert component.get_health_status()["status"] == "healthy"

        await component.cleanup()
        assert not component.is_initialized
        assert component.cleanup_calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_initialize_runs_once(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        await asyncio.gather(*(component.initialize() for _ in range(5)))

        assert component.init_calls == 1

    @pytest.mark.asyncio
    async def test_cleanup_without_initialize_is_noop(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        await component.cleanup()

        assert component.cleanup_calls == 0

    @pytest.mark.asyncio
    async def test_initialize_failure_is_wrapped(self):
        component = _TestableAsyncComponent(ComponentTestConfig(), fail_init=True)

        with pytest.raises(GatewayException) as exc_info:
            await component.initialize()

        assert exc_info.value.code == "INIT_FAILED"
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert not component.is_initialized

    @pytest.mark.asyncio
    async def test_cleanup_failure_is_logged_not_raised(self):
        component = _TestableAsyncComponent(ComponentTestConfig(), fail_cleanup=True)
        await component.initialize()

        await component.cleanup()

        assert not component.is_initialized

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        component = _TestableAsyncComponent(ComponentTestConfig())

        async with component as entered:
            assert entered is component
            assert component.is_initialized

        assert not component.is_initialized

