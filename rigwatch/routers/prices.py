"""Prices router - /api/prices, /api/calculate-profitability, /api/health."""

import time

from fastapi import APIRouter, HTTPException
from starlette.requests import Request

from rigwatch.deps import get_server
from rigwatch.models import ProfitabilityRequest
from rigwatch.profitability import calculate_profitability

router = APIRouter()


@router.get("/api/prices")
async def get_prices(request: Request):
    srv = get_server(request)
    return srv.prices.snapshot.to_dict()


@router.post("/api/calculate-profitability")
async def calculate(request: Request, req: ProfitabilityRequest):
    srv = get_server(request)
    required = (req.cryptocurrency, req.hash_rate, req.power_consumption, req.electricity_cost)
    if any(v is None for v in required) or not req.cryptocurrency:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    snapshot = srv.prices.snapshot
    try:
        price = snapshot.usd_price(req.cryptocurrency)
        return calculate_profitability(
            cryptocurrency=req.cryptocurrency,
            hash_rate=req.hash_rate,
            hash_rate_unit=req.hash_rate_unit,
            power_consumption=req.power_consumption,
            electricity_cost=req.electricity_cost,
            price_usd=price,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/health")
async def health(request: Request):
    srv = get_server(request)
    snapshot = srv.prices.snapshot
    return {
        "status": "ok",
        "subscribers": srv.hub.client_count,
        "prices_fetched_at": snapshot.fetched_at,
        "prices_age_sec": round(time.time() - snapshot.fetched_at, 1) if snapshot.fetched_at else None,
        "last_price_error": srv.prices.last_error,
    }
