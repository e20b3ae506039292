import logging
from typing import List

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile

from ..rate_limit import limiter
from ..schemas import RemovePhotosRequest
from ...integrations.base import StorageError
from ...models import PhotoRecord, PhotoUpload
from ...services.photo_service import PhotoService, PhotoValidationError

router = APIRouter(prefix="/api/inspirations", tags=["photos"])
logger = logging.getLogger(__name__)


def _photo_service(request: Request) -> PhotoService:
    service = getattr(request.app.state, "photo_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Photo storage unavailable")
    return service


@router.post("/{inspiration_id}/photos", response_model=List[PhotoRecord])
@limiter.limit("30/minute")
async def upload_photos(
    request: Request,
    inspiration_id: str,
    files: List[UploadFile] = File(...),
    start_order: int = Form(0),
):
    service = _photo_service(request)
    # One byte past the limit is enough for validation to reject the file.
    read_limit = request.app.state.settings.uploads.max_photo_bytes + 1
    photos = [
        PhotoUpload(
            filename=upload.filename or "",
            content_type=upload.content_type or "application/octet-stream",
            content=await upload.read(read_limit),
        )
        for upload in files
    ]
    try:
        return await service.upload_photos(inspiration_id, photos, start_order=start_order)
    except PhotoValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageError as exc:
        logger.error("Photo upload for %s failed: %s", inspiration_id, exc)
        raise HTTPException(status_code=502, detail="Failed to store photos") from exc


@router.delete("/{inspiration_id}/photos")
@limiter.limit("30/minute")
async def remove_photos(request: Request, inspiration_id: str, req: RemovePhotosRequest):
    service = _photo_service(request)
    try:
        deleted = await service.remove_photos(req.photo_ids)
    except StorageError as exc:
        logger.error("Removing photos of %s failed: %s", inspiration_id, exc)
        raise HTTPException(status_code=502, detail="Failed to remove photos") from exc
    return {"deleted": deleted}
