"""Gateway configuration models."""

from .models import (
    BaseConfig,
    GatewayConfig,
    LoggingConfig,
    PoolConfig,
    PreviewConfig,
    ServerConfig,
)

__all__ = [
    "BaseConfig",
    "GatewayConfig",
    "LoggingConfig",
    "PoolConfig",
    "PreviewConfig",
    "ServerConfig",
]
