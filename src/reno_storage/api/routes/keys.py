from fastapi import APIRouter, Request

from ..rate_limit import limiter
from ..schemas import CodePointOut, InspectResponse, NameRequest, StoragePathRequest
from ...utils.object_keys import build_storage_path, describe_code_points, sanitize_key

router = APIRouter(prefix="/api/keys", tags=["keys"])


@router.post("/sanitize")
@limiter.limit("120/minute")
async def sanitize(request: Request, req: NameRequest):
    return {"name": req.name, "key": sanitize_key(req.name)}


@router.post("/path")
@limiter.limit("120/minute")
async def storage_path(request: Request, req: StoragePathRequest):
    return {"path": build_storage_path(req.owner_id, req.name, req.index)}


@router.post("/inspect", response_model=InspectResponse)
@limiter.limit("60/minute")
async def inspect(request: Request, req: NameRequest):
    infos = list(describe_code_points(req.name))
    return InspectResponse(
        name=req.name,
        length=len(infos),
        code_points=[CodePointOut(**info._asdict()) for info in infos],
        problematic=sum(1 for info in infos if info.is_problematic),
    )
