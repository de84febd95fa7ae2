from typing import Annotated, Any, Dict

from fastapi import APIRouter, Body, Depends

from ...database.engines import parse_engine
from ...database.gateway import DatabaseGateway
from ..dependencies import get_gateway

router = APIRouter()

Gateway = Annotated[DatabaseGateway, Depends(get_gateway)]
ConnectionBody = Annotated[Dict[str, Any], Body()]


@router.post("/schema/{engine}")
async def describe_schema(engine: str, config: ConnectionBody, gateway: Gateway) -> Dict[str, Any]:
    schemas = await gateway.describe_schema(engine, config)
    return {
        "success": True,
        "database_type": parse_engine(engine).value,
        "data": [schema.to_dict() for schema in schemas],
        "summary": {
            "total_tables": len(schemas),
            "total_columns": sum(schema.num_columns for schema in schemas),
        },
    }


@router.post("/preview/{engine}")
async def preview_table(engine: str, body: ConnectionBody, gateway: Gateway) -> Dict[str, Any]:
    config = dict(body)
    table = config.pop("table", None)
    limit = config.pop("limit", None)
    result = await gateway.preview_table(engine, config, table, schema=config.get("schema"), limit=limit)
    return {
        "success": True,
        "data": result.rows,
        "columns": result.columns,
        "row_count": result.row_count,
    }


@router.post("/test-connection/{engine}")
async def test_connection(engine: str, config: ConnectionBody, gateway: Gateway) -> Dict[str, Any]:
    result = await gateway.test_connection(engine, config)
    return {"success": True, **result}


@router.post("/query/{engine}")
async def run_query(engine: str, body: ConnectionBody, gateway: Gateway) -> Dict[str, Any]:
    config = dict(body)
    sql = config.pop("sql", None)
    params = config.pop("params", None)
    result = await gateway.execute_query(engine, config, sql, params)
    return {
        "success": True,
        "data": result.rows,
        "columns": result.columns,
        "row_count": result.row_count,
        "execution_time": result.execution_time,
    }
