"""Log formatters for the dbgateway logging system.

structlog renders gateway events itself; these formatters make records
from third-party loggers (uvicorn, asyncpg, aiomysql) go through the same
renderer so that one process writes one consistent log format.

Functions:
    get_formatter: Build a formatter for 'json' or 'text' output
    shared_processors: Processors applied to both structlog and stdlib records

Example:
    >>> handler.setFormatter(get_formatter("json"))
"""

import logging
from typing import Any, List

import structlog


def shared_processors() -> List[Any]:
    """Processors applied to every event before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


class JSONFormatter(structlog.stdlib.ProcessorFormatter):
    """JSON formatter for structured log output.

    Example:
        {"event": "Pool created", "engine": "postgresql", "max_size": 5,
         "logger": "dbgateway.registry", "level": "info",
         "timestamp": "2024-05-02T10:30:45.123456Z"}
    """

    def __init__(self) -> None:
        super().__init__(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(default=str),
            ],
            foreign_pre_chain=shared_processors(),
        )


class TextFormatter(structlog.stdlib.ProcessorFormatter):
    """Human-readable formatter for development.

    Example:
        2024-05-02T10:30:45Z [info     ] Pool created   engine=postgresql max_size=5
    """

    def __init__(self, *, colors: bool = False) -> None:
        super().__init__(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=colors),
            ],
            foreign_pre_chain=shared_processors(),
        )


def get_formatter(format_type: str, **kwargs: Any) -> logging.Formatter:
    """Get formatter instance by type.

    Args:
        format_type: Formatter type ('json' or 'text')
        **kwargs: Additional formatter arguments

    Returns:
        Logging formatter instance

    Raises:
        ValueError: If format_type is not supported
    """
    format_type = format_type.lower()

    if format_type == "json":
        return JSONFormatter(**kwargs)
    elif format_type == "text":
        return TextFormatter(**kwargs)
    else:
        raise ValueError(f"Unsupported formatter type: {format_type}")
