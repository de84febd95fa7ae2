from fastapi import Request

from ..database.gateway import DatabaseGateway


def get_gateway(request: Request) -> DatabaseGateway:
    return request.app.state.gateway
