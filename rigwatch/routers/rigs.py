"""Mining rigs router - /api/mining-rigs[/{id}] CRUD, scoped to the caller."""

from fastapi import APIRouter, Depends, HTTPException
from starlette.requests import Request

from rigwatch.deps import get_owner_id, get_server
from rigwatch.models import RigCreateRequest, RigUpdateRequest

router = APIRouter()


@router.get("/api/mining-rigs")
async def list_rigs(request: Request, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    return await srv.rigs.list_rigs(owner_id)


@router.get("/api/mining-rigs/{rig_id}")
async def get_rig(request: Request, rig_id: str, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    rig = await srv.rigs.get_rig(owner_id, rig_id)
    if rig is None:
        raise HTTPException(status_code=404, detail="Mining rig not found")
    return rig


@router.post("/api/mining-rigs")
async def create_rig(request: Request, req: RigCreateRequest, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    try:
        return await srv.rigs.create_rig(
            owner_id=owner_id,
            name=req.name,
            model=req.model,
            cryptocurrency=req.cryptocurrency,
            hash_rate=req.hash_rate,
            hash_rate_unit=req.hash_rate_unit,
            power_consumption=req.power_consumption,
            is_active=req.is_active,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/api/mining-rigs/{rig_id}")
async def update_rig(
    request: Request,
    rig_id: str,
    req: RigUpdateRequest,
    owner_id: str = Depends(get_owner_id),
):
    srv = get_server(request)
    updates = req.model_dump(exclude_unset=True, by_alias=True)
    try:
        rig = await srv.rigs.update_rig(owner_id, rig_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if rig is None:
        raise HTTPException(status_code=404, detail="Mining rig not found")
    return rig


@router.delete("/api/mining-rigs/{rig_id}")
async def delete_rig(request: Request, rig_id: str, owner_id: str = Depends(get_owner_id)):
    srv = get_server(request)
    if not await srv.rigs.delete_rig(owner_id, rig_id):
        raise HTTPException(status_code=404, detail="Mining rig not found")
    return {"success": True}
