"""FastAPI application factory."""

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Tuple, Type

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config.models import GatewayConfig
from ..core.exceptions import (
    ConfigurationError,
    ConnectFailedError,
    DriverUnavailableError,
    ErrorCodes,
    GatewayException,
)
from ..database.gateway import DatabaseGateway
from ..logging import get_logger
from .routes import health, schema

logger = get_logger("dbgateway.api")

# First match wins; anything else is a 500
STATUS_CODES: Tuple[Tuple[Type[GatewayException], int], ...] = (
    (ConfigurationError, 400),
    (DriverUnavailableError, 503),
    (ConnectFailedError, 502),
)


def status_for(error: GatewayException) -> int:
    for error_type, status in STATUS_CODES:
        if isinstance(error, error_type):
            return status
    return 500


def error_body(message: str, code: str) -> dict:
    return {"success": False, "error": message, "code": code}


async def handle_gateway_exception(request: Request, exc: GatewayException) -> JSONResponse:
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.warning
    log("Request failed", path=request.url.path, status=status, error_code=exc.code, error=exc.message)
    return JSONResponse(status_code=status, content=error_body(exc.message, exc.code))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = "; ".join(str(error.get("msg")) for error in exc.errors())
    return JSONResponse(
        status_code=400,
        content=error_body(f"Invalid request body: {messages}", ErrorCodes.BAD_REQUEST),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_body("Internal server error", ErrorCodes.INTERNAL_ERROR),
    )


def create_app(
    gateway: Optional[DatabaseGateway] = None,
    config: Optional[GatewayConfig] = None,
    *,
    handle_signals: bool = False,
) -> FastAPI:
    """Build the HTTP application around one gateway.

    The lifespan starts the gateway and drains every pool on exit. With
    ``handle_signals`` the gateway's own SIGTERM/SIGINT handlers are
    installed once the server has started, replacing the server's.
    """
    config = config or (gateway.config if gateway is not None else GatewayConfig())
    gateway = gateway or DatabaseGateway(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await gateway.startup()
        if handle_signals:
            gateway.lifecycle.install_signal_handlers()
        logger.info("Gateway started", host=config.server.host, port=config.server.port)
        try:
            yield
        finally:
            gateway.lifecycle.remove_signal_handlers()
            await gateway.shutdown(reason="lifespan")

    app = FastAPI(title="dbgateway", version=__version__, lifespan=lifespan)
    app.state.gateway = gateway

    app.include_router(schema.router)
    app.include_router(health.router)

    app.add_exception_handler(GatewayException, handle_gateway_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next: Any) -> Any:
        with logger.context(request_id=uuid.uuid4().hex[:12], path=request.url.path):
            return await call_next(request)

    return app
