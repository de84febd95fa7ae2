"""Base classes for dbgateway components.

This module provides the abstract base classes that long-lived gateway
components (the pool registry) inherit from, ensuring a consistent
configuration, logging, health and lifecycle interface.

Classes:
    BaseComponent: Generic base class for configured components
    AsyncComponent: Base class for components with async initialize/cleanup

Example:
    >>> class PoolRegistry(AsyncComponent[PoolConfig]):
    ...     async def _async_initialize(self) -> None:
    ...         self._closed = False
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Generic, TypeVar

from .exceptions import ConfigurationError, GatewayException, ValidationError
from ..logging import get_logger

T = TypeVar("T")  # Configuration type


class BaseComponent(Generic[T], ABC):
    """Base class for all dbgateway components.

    Type Parameters:
        T: Type of configuration object this component accepts

    Attributes:
        component_name: Name of the component for logging and identification
        version: Component version reported in health output
    """

    component_name: ClassVar[str] = "BaseComponent"
    version: ClassVar[str] = "1.0.0"

    def __init__(self, config: T) -> None:
        """Initialize base component.

        Args:
            config: Configuration object for this component

        Raises:
            ValidationError: If configuration is missing
            ConfigurationError: If configuration is invalid
        """
        if config is None:
            raise ValidationError(
                "Configuration cannot be None",
                code="CONFIG_NULL",
                context={"component": self.component_name},
            )

        self._config: T = config
        self._initialized: bool = False
        self._creation_time: float = time.time()
        self._logger = get_logger(f"dbgateway.{self.component_name}")

        if not self.validate_config():
            raise ConfigurationError(
                f"Invalid configuration for {self.component_name}",
                code="CONFIG_INVALID",
                context={"component": self.component_name},
            )

    @property
    def config(self) -> T:
        return self._config

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def uptime(self) -> float:
        """Seconds since component creation."""
        return time.time() - self._creation_time

    def validate_config(self) -> bool:
        """Validate component configuration.

        Subclasses override this to add component-specific checks.

        Returns:
            True if configuration is valid
        """
        return self._config is not None

    def get_health_status(self) -> Dict[str, Any]:
        """Get component health status.

        Returns:
            Dictionary containing component health information
        """
        return {
            "component": self.component_name,
            "version": self.version,
            "initialized": self._initialized,
            "uptime_seconds": self.uptime,
            "status": "healthy" if self._initialized else "not_initialized",
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"name={self.component_name!r}, "
            f"initialized={self._initialized}, "
            f"uptime={self.uptime:.2f}s)"
        )


class AsyncComponent(BaseComponent[T]):
    """Base class for async-capable components.

    Initialization and cleanup are each guarded by a lock so concurrent
    callers never run them twice.
    """

    def __init__(self, config: T) -> None:
        super().__init__(config)
        self._initialization_lock = asyncio.Lock()
        self._cleanup_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Initialize component asynchronously.

        Raises:
            GatewayException: If initialization fails
        """
        async with self._initialization_lock:
            if self._initialized:
                return

            self._logger.info("Initializing component", component=self.component_name)

            try:
                await self._async_initialize()
            except Exception as e:
                self._logger.error(
                    "Component initialization failed",
                    component=self.component_name,
                    error=str(e),
                )
                raise GatewayException(
                    f"Failed to initialize {self.component_name}",
                    code="INIT_FAILED",
                    context={"component": self.component_name},
                    cause=e,
                ) from e

            self._initialized = True
            self._logger.info("Component initialized", component=self.component_name)

    async def cleanup(self) -> None:
        """Clean up component resources.

        Errors are logged and not raised so cleanup never masks the
        error that triggered it.
        """
        async with self._cleanup_lock:
            if not self._initialized:
                return

            self._logger.info("Cleaning up component", component=self.component_name)

            try:
                await self._async_cleanup()
            except Exception as e:
                self._logger.error(
                    "Component cleanup failed",
                    component=self.component_name,
                    error=str(e),
                )
            finally:
                self._initialized = False

    @abstractmethod
    async def _async_initialize(self) -> None:
        """Perform async initialization work."""

    async def _async_cleanup(self) -> None:
        """Perform async cleanup work."""

    async def __aenter__(self) -> "AsyncComponent[T]":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.cleanup()
