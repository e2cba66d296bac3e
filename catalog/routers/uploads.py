"""Uploads router — store a poster/thumbnail image and return its URL."""

from fastapi import APIRouter, Depends, File, Request, UploadFile

from catalog.config import Settings
from catalog.errors import InvalidArgument
from catalog.routers.auth import get_settings, require_identity
from catalog.schemas.entry import UploadOut
from catalog.services.blob_store import BlobStore, image_extension
from catalog.services.identity import Identity

router = APIRouter(prefix="/api/v1/uploads", tags=["uploads"])


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


@router.post("", response_model=UploadOut)
async def upload_image(
    file: UploadFile = File(...),
    identity: Identity = Depends(require_identity),
    blob_store: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
):
    content_type = file.content_type or ""
    if image_extension(content_type) is None:
        raise InvalidArgument("Only PNG, JPEG, GIF or WebP images are accepted")

    data = await file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        raise InvalidArgument(f"File exceeds {settings.MAX_UPLOAD_BYTES} bytes")
    if not data:
        raise InvalidArgument("Empty file")

    url = await blob_store.put(data, content_type, file.filename)
    return UploadOut(url=url)
