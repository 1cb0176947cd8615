"""Video ingestion: validate, upload to Cloudinary, normalize, persist."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models.video import Video
from services.ingestion.errors import IngestionError
from services.ingestion.normalize import CompressionSummary, normalize
from services.ingestion.provider import build_video_recipe, delete_asset, upload_video
from services.ingestion.store import create_video
from services.ingestion.validation import IncomingFile, validate_upload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionOutcome:
    video: Video
    compression: CompressionSummary
    original_size_bytes: int
    compressed_size_bytes: int


async def ingest_video(
    db: AsyncSession,
    *,
    user_id: Optional[str],
    file: Optional[IncomingFile],
    title: Optional[str],
    description: Optional[str],
    original_size: Optional[str],
) -> IngestionOutcome:
    upload = validate_upload(
        user_id=user_id,
        file=file,
        title=title,
        description=description,
        original_size=original_size,
    )
    logger.info(
        "Processing video upload file=%s type=%s size=%d user=%s",
        upload.filename,
        upload.content_type,
        upload.size,
        upload.user_id,
    )

    result = await upload_video(upload.stream, build_video_recipe())
    normalized = normalize(result, upload)

    try:
        video = await create_video(db, normalized)
    except IngestionError:
        logger.warning(
            "Cloudinary asset %s has no database record after a failed save",
            result.public_id,
        )
        if settings.CLOUDINARY_DELETE_ORPHANS:
            deleted = await delete_asset(result.public_id)
            logger.info("Orphaned asset %s delete confirmed=%s", result.public_id, deleted)
        raise

    return IngestionOutcome(
        video=video,
        compression=normalized.compression,
        original_size_bytes=normalized.original_size,
        compressed_size_bytes=normalized.compressed_size,
    )
