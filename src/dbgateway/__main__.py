"""Command line entry point: ``python -m dbgateway``."""

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from .api import create_app
from .config import GatewayConfig
from .core.exceptions import ConfigurationError
from .database.gateway import DatabaseGateway
from .logging import get_factory, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dbgateway", description="Multi-engine database gateway")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--host", help="Bind address (overrides server.host)")
    parser.add_argument("--port", type=int, help="Bind port (overrides server.port)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides logging.level)",
    )
    return parser


def load_config(args: argparse.Namespace) -> GatewayConfig:
    config = GatewayConfig.from_file(args.config) if args.config else GatewayConfig()
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.log_level:
        config.logging.level = args.log_level
    return config


async def serve(config: GatewayConfig) -> None:
    """Run uvicorn until it exits or the gateway has shut down on a signal."""
    gateway = DatabaseGateway(config)
    server = uvicorn.Server(
        uvicorn.Config(
            create_app(gateway=gateway, handle_signals=True),
            host=config.server.host,
            port=config.server.port,
            log_config=None,
        )
    )

    async def stop_when_drained() -> None:
        await gateway.lifecycle.wait_stopped()
        server.should_exit = True

    watcher = asyncio.ensure_future(stop_when_drained())
    try:
        await server.serve()
    finally:
        watcher.cancel()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args)
    except ConfigurationError as e:
        print(f"dbgateway: {e}", file=sys.stderr)
        return 2

    get_factory().configure_from_config(config.logging)
    get_logger("dbgateway").info("Starting dbgateway", host=config.server.host, port=config.server.port)

    asyncio.run(serve(config))
    return 0


if __name__ == "__main__":
    sys.exit(main())
