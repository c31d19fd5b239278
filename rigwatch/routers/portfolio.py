"""Portfolio router - /api/portfolio and /api/transactions."""

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from rigwatch.deps import get_owner_id, get_server, query_limit
from rigwatch.models import BalanceSetRequest

router = APIRouter()


@router.get("/api/portfolio")
async def list_balances(request: Request, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    return await srv.portfolio.list_balances(owner_id)


@router.post("/api/portfolio")
async def set_balance(request: Request, req: BalanceSetRequest, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    try:
        return await srv.portfolio.set_balance(owner_id, req.cryptocurrency, req.amount)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/transactions")
async def list_transactions(
    request: Request,
    limit: int = Depends(query_limit),
    owner_id: str = Depends(get_owner_id),
):
    srv = get_server(request)
    return await srv.portfolio.list_transactions(owner_id, limit=limit)
