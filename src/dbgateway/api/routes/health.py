from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends

from ...database.gateway import DatabaseGateway
from ..dependencies import get_gateway

router = APIRouter()

Gateway = Annotated[DatabaseGateway, Depends(get_gateway)]


@router.get("/health")
async def health_check(gateway: Gateway) -> Dict[str, Any]:
    return gateway.health()


@router.get("/health/{engine}")
async def engine_health(engine: str, gateway: Gateway) -> Dict[str, Any]:
    return gateway.engine_health(engine)


@router.get("/databases")
async def list_databases(gateway: Gateway) -> List[Dict[str, Any]]:
    return gateway.list_databases()
