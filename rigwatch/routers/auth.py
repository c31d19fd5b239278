"""Auth router - /api/auth/* endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from rigwatch.auth import public_user
from rigwatch.deps import get_owner_id, get_server
from rigwatch.models import LoginRequest, RegisterRequest

router = APIRouter()


@router.post("/api/auth/register")
async def auth_register(request: Request, req: RegisterRequest):
    srv = get_server(request)
    try:
        user = await srv.auth.register(
            user_id=req.user_id,
            email=req.email,
            first_name=req.first_name,
            last_name=req.last_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {**public_user(user), "apiKey": user["api_key"]}


@router.post("/api/auth/login")
async def auth_login(request: Request, req: LoginRequest):
    srv = get_server(request)
    try:
        token = await srv.auth.login(req.user_id, req.api_key)
    except PermissionError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"id": req.user_id, "token": token}


@router.get("/api/auth/user")
async def auth_user(request: Request, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    user = await srv.storage.users.get(owner_id)
    if user is None:
        # admin key identity has no users row
        return {"id": owner_id}
    return public_user(user)
