"""Exchanges router - /api/exchanges."""

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from rigwatch.deps import get_owner_id, get_server
from rigwatch.models import ExchangeConnectionRequest

router = APIRouter()


@router.get("/api/exchanges")
async def list_connections(request: Request, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    return await srv.exchanges.list_connections(owner_id)


@router.post("/api/exchanges")
async def save_connection(
    request: Request,
    req: ExchangeConnectionRequest,
    owner_id: str = Depends(get_owner_id),
):
    srv = get_server(request)
    try:
        return await srv.exchanges.save_connection(
            owner_id,
            req.exchange,
            is_connected=req.is_connected,
            api_key_id=req.api_key_id,
            settings=req.settings,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
