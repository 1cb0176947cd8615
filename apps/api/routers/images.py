"""Social share image upload and format rendering."""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from routers.auth_scope import AuthContext, get_optional_auth_context
from routers.rate_limit import rate_limit
from services.ingestion import IncomingFile, measure_stream
from services.social_share import render_formats, upload_image

router = APIRouter()


@router.post("/image-upload")
async def upload_social_image(
    file: Optional[UploadFile] = File(None),
    _rate_limit: None = Depends(rate_limit("image_upload", limit=60, window_seconds=3600)),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
):
    """Upload a source image for social share formatting."""
    incoming = None
    if file is not None:
        size = file.size if file.size is not None else measure_stream(file.file)
        incoming = IncomingFile(
            filename=file.filename or "image",
            content_type=file.content_type or "",
            size=int(size),
            stream=file.file,
        )
    try:
        public_id = await upload_image(auth.user_id if auth else None, incoming)
    finally:
        if file is not None:
            await file.close()
    return {"publicId": public_id}


@router.get("/images/{public_id:path}/formats")
async def get_social_formats(public_id: str):
    """Transformed URL and download name for every social format."""
    return {"publicId": public_id, "formats": render_formats(public_id)}
