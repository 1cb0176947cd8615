"""
Video upload, listing, gallery and download endpoints.
"""

import logging
from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import AuthContext, get_auth_context, get_optional_auth_context
from routers.rate_limit import rate_limit
from services.delivery import download_filename, download_url
from services.gallery import build_gallery, gallery_error
from services.ingestion import IncomingFile, IngestionError, ingest_video, measure_stream
from services.ingestion.store import get_video, list_videos, list_videos_for_user

router = APIRouter()
logger = logging.getLogger(__name__)

UPLOAD_SUCCESS_MESSAGE = "Video uploaded successfully with compression applied"
LIST_ERROR_MESSAGE = "Error fetching videos"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class VideoResponse(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    public_id: str
    original_size: int
    compressed_size: int
    duration: float = 0
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    ai_preview_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    high_quality_url: Optional[str] = None
    original_quality_url: Optional[str] = None
    key_moments: List[str] = []
    compression_ratio: Optional[float] = None
    preview_duration: Optional[int] = None


class CompressionInfo(CamelModel):
    original_size_mb: str
    compressed_size_mb: str
    savings_mb: str
    grew: bool
    signed_change_percentage: int

    model_config = ConfigDict(
        alias_generator=lambda name: to_camel(name).replace("Mb", "MB"),
        populate_by_name=True,
    )


class UploadVideoResponse(CamelModel):
    success: bool = True
    video: VideoResponse
    compression_percentage: int
    original_size_bytes: int
    compressed_size_bytes: int
    message: str = UPLOAD_SUCCESS_MESSAGE
    compression_info: CompressionInfo


class DownloadResponse(BaseModel):
    url: str
    filename: str
    variant: str


async def _incoming_file(file: Optional[UploadFile]) -> Optional[IncomingFile]:
    if file is None:
        return None
    size = file.size if file.size is not None else measure_stream(file.file)
    return IncomingFile(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        size=int(size),
        stream=file.file,
    )


@router.post("/video-upload", response_model=UploadVideoResponse)
async def upload_video(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    original_size: Optional[str] = Form(None, alias="originalSize"),
    _rate_limit: None = Depends(rate_limit("video_upload", limit=30, window_seconds=3600)),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Upload a video to Cloudinary, derive its variants and store the record."""
    try:
        outcome = await ingest_video(
            db,
            user_id=auth.user_id if auth else None,
            file=await _incoming_file(file),
            title=title,
            description=description,
            original_size=original_size,
        )
    except IngestionError:
        raise
    except Exception as exc:
        logger.exception("Upload video failed")
        raise IngestionError(details=str(exc)) from exc
    finally:
        if file is not None:
            await file.close()

    summary = outcome.compression
    return UploadVideoResponse(
        video=VideoResponse.model_validate(outcome.video),
        compression_percentage=summary.percentage,
        original_size_bytes=outcome.original_size_bytes,
        compressed_size_bytes=outcome.compressed_size_bytes,
        compression_info=CompressionInfo(
            original_size_mb=summary.original_size_mb,
            compressed_size_mb=summary.compressed_size_mb,
            savings_mb=summary.savings_mb,
            grew=summary.grew,
            signed_change_percentage=summary.signed_change_percentage,
        ),
    )


@router.get("/video-upload")
async def upload_status(auth: AuthContext = Depends(get_auth_context)):
    """Report that the upload API is running, with credentials masked."""
    return {
        "message": "Video upload API is running",
        "config": {
            "cloud_name": settings.CLOUDINARY_CLOUD_NAME or None,
            "api_key": "***" if settings.CLOUDINARY_API_KEY else "missing",
            "api_secret": "***" if settings.CLOUDINARY_API_SECRET else "missing",
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/videos", response_model=List[VideoResponse])
async def get_videos(db: AsyncSession = Depends(get_db)):
    """All videos, newest first."""
    try:
        videos = await list_videos(db)
    except Exception:
        logger.exception("Error fetching videos")
        return JSONResponse(status_code=500, content={"error": LIST_ERROR_MESSAGE})
    return [VideoResponse.model_validate(video) for video in videos]


@router.get("/videos/mine", response_model=List[VideoResponse])
async def get_my_videos(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Videos owned by the signed-in user, newest first."""
    try:
        videos = await list_videos_for_user(db, auth.user_id)
    except Exception:
        logger.exception("Error fetching videos for %s", auth.user_id)
        return JSONResponse(status_code=500, content={"error": LIST_ERROR_MESSAGE})
    return [VideoResponse.model_validate(video) for video in videos]


@router.get("/videos/gallery")
async def get_gallery(db: AsyncSession = Depends(get_db)):
    """Card view model for the gallery page."""
    try:
        videos = await list_videos(db)
    except Exception:
        logger.exception("Gallery fetch failed")
        return JSONResponse(status_code=500, content=gallery_error())
    return build_gallery(videos)


@router.get("/videos/{video_id}/download", response_model=DownloadResponse)
async def get_download(
    video_id: str,
    variant: Literal["original", "compressed"] = Query(default="original"),
    db: AsyncSession = Depends(get_db),
):
    """Resolve the asset URL the browser should fetch directly."""
    video = await get_video(db, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")

    url = download_url(video, variant)
    if not url:
        raise HTTPException(status_code=404, detail=f"No {variant} download available for this video")
    return DownloadResponse(url=url, filename=download_filename(video.title), variant=variant)
