"""Payments router - /api/payments[/{id}]."""

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from rigwatch.deps import get_owner_id, get_server, query_limit
from rigwatch.models import PaymentCreateRequest, PaymentStatusRequest

router = APIRouter()


@router.get("/api/payments")
async def list_payments(
    request: Request,
    limit: int = Depends(query_limit),
    owner_id: str = Depends(get_owner_id),
):
    srv = get_server(request)
    return await srv.payments.list_payments(owner_id, limit=limit)


@router.post("/api/payments")
async def create_payment(request: Request, req: PaymentCreateRequest, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    try:
        return await srv.payments.create_payment(
            owner_id=owner_id,
            network=req.network,
            amount=req.amount,
            currency=req.currency,
            from_address=req.from_address,
            transaction_hash=req.transaction_hash,
            status=req.status,
            purpose=req.purpose,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/api/payments/{payment_id}")
async def update_payment_status(
    request: Request,
    payment_id: str,
    req: PaymentStatusRequest,
    owner_id: str = Depends(get_owner_id),
):
    srv = get_server(request)
    try:
        payment = await srv.payments.update_status(
            owner_id, payment_id, req.status, transaction_hash=req.transaction_hash,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if payment is None:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment
