"""dbgateway: multi-engine database connection pooling and schema normalization.

Example:
    >>> from dbgateway import DatabaseGateway
    >>> gateway = DatabaseGateway()
    >>> async with gateway.acquire("postgresql", {"dbname": "app", "user": "app"}) as handle:
    ...     tables = await gateway.list_tables(handle)
"""

__version__ = "1.0.0"

from .config import GatewayConfig  # noqa: E402
from .core.exceptions import GatewayException  # noqa: E402
from .database import DatabaseGateway, Engine, validate_config  # noqa: E402

__all__ = [
    "DatabaseGateway",
    "Engine",
    "GatewayConfig",
    "GatewayException",
    "__version__",
    "validate_config",
]
