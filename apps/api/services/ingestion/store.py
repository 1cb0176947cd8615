"""Video persistence: the single write of the ingestion flow and the listing reads."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Sequence

from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.video import Video
from services.ingestion.errors import PersistenceRejected, PersistenceUnreachable
from services.ingestion.normalize import NormalizedVideo

logger = logging.getLogger(__name__)

UNREACHABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    ConnectionError,
    OSError,
    asyncio.TimeoutError,
)
WRITE_ERRORS = (SQLAlchemyError,) + UNREACHABLE_ERRORS


async def _safe_rollback(db: AsyncSession) -> None:
    try:
        await db.rollback()
    except Exception as exc:
        logger.warning("Rollback after failed video insert also failed: %s", exc)


def is_unreachable(exc: BaseException) -> bool:
    """Whether a write failure means the database could not be reached."""
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return isinstance(exc, UNREACHABLE_ERRORS)


async def create_video(db: AsyncSession, normalized: NormalizedVideo) -> Video:
    """Insert one Video row, classifying failures as unreachable or rejected.

    The commit is the only failure boundary. Every column is populated on the
    client, so nothing is read back once the row is durable.
    """
    video = Video(**normalized.to_record_fields(), updated_at=None)
    try:
        db.add(video)
        await db.commit()
    except WRITE_ERRORS as exc:
        await _safe_rollback(db)
        if is_unreachable(exc):
            logger.exception("Database unreachable while saving video public_id=%s", normalized.public_id)
            raise PersistenceUnreachable(details=str(exc)) from exc
        logger.exception("Database rejected video public_id=%s", normalized.public_id)
        raise PersistenceRejected(details=str(exc)) from exc

    logger.info("Video saved to database id=%s public_id=%s", video.id, video.public_id)
    return video


async def list_videos(db: AsyncSession) -> Sequence[Video]:
    """Every stored video, newest first."""
    result = await db.execute(select(Video).order_by(Video.created_at.desc(), Video.id.desc()))
    return result.scalars().all()


async def list_videos_for_user(db: AsyncSession, user_id: str) -> List[Video]:
    result = await db.execute(
        select(Video)
        .where(Video.user_id == user_id)
        .order_by(Video.created_at.desc(), Video.id.desc())
    )
    return list(result.scalars().all())


async def get_video(db: AsyncSession, video_id: str) -> Video | None:
    result = await db.execute(select(Video).where(Video.id == video_id))
    return result.scalar_one_or_none()
