"""Cloudinary client for uploads with eager derived variants."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Tuple

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

from config import settings
from services.ingestion.errors import ProviderFailure, ProviderTimeout

logger = logging.getLogger(__name__)

COMPRESSED_VARIANT = "compressed"
PREVIEW_VARIANT = "preview"
THUMBNAIL_VARIANT = "thumbnail"


@dataclass(frozen=True)
class EagerVariant:
    name: str
    transformation: Dict[str, Any]


@dataclass(frozen=True)
class UploadRecipe:
    """Everything Cloudinary needs to ingest a video and derive its variants."""

    folder: str
    transformation: Dict[str, Any]
    variants: Tuple[EagerVariant, ...]
    resource_type: str = "video"
    eager_async: bool = False

    def to_options(self) -> Dict[str, Any]:
        return {
            "resource_type": self.resource_type,
            "folder": self.folder,
            "transformation": [dict(self.transformation)],
            "eager": [dict(variant.transformation) for variant in self.variants],
            "eager_async": self.eager_async,
        }


@dataclass(frozen=True)
class ProviderResult:
    public_id: str
    bytes: int
    duration: Optional[float]
    secure_url: Optional[str]
    eager: Dict[str, Optional[str]] = field(default_factory=dict)


def build_video_recipe(
    folder: Optional[str] = None,
    preview_seconds: Optional[int] = None,
) -> UploadRecipe:
    """Compressed mp4, short hover preview and a 400x225 thumbnail, in that order."""
    seconds = int(preview_seconds if preview_seconds is not None else settings.PREVIEW_CLIP_SECONDS)
    return UploadRecipe(
        folder=folder or settings.CLOUDINARY_UPLOAD_FOLDER,
        transformation={
            "quality": "auto:low",
            "fetch_format": "mp4",
            "video_codec": "auto",
            "bit_rate": "auto",
        },
        variants=(
            EagerVariant(
                COMPRESSED_VARIANT,
                {
                    "quality": "auto:low",
                    "fetch_format": "mp4",
                    "video_codec": "auto",
                    "bit_rate": "auto",
                    "audio_codec": "aac",
                    "audio_quality": "low",
                },
            ),
            EagerVariant(
                PREVIEW_VARIANT,
                {
                    "quality": "auto:low",
                    "fetch_format": "mp4",
                    "video_codec": "auto",
                    "effect": f"preview:duration_{seconds}",
                },
            ),
            EagerVariant(
                THUMBNAIL_VARIANT,
                {
                    "fetch_format": "jpg",
                    "crop": "fill",
                    "gravity": "auto",
                    "width": 400,
                    "height": 225,
                    "quality": "auto:low",
                },
            ),
        ),
    )


def map_eager_results(recipe: UploadRecipe, eager: Optional[List[Mapping[str, Any]]]) -> Dict[str, Optional[str]]:
    """Key Cloudinary's positional eager list by the variant names of the recipe.

    Cloudinary echoes eager results in request order without labels, so the
    recipe's variant tuple is the single source of that order. Slots the
    provider did not return resolve to None.
    """
    entries = list(eager or [])
    mapped: Dict[str, Optional[str]] = {}
    for index, variant in enumerate(recipe.variants):
        entry = entries[index] if index < len(entries) else None
        url = entry.get("secure_url") if isinstance(entry, Mapping) else None
        mapped[variant.name] = url or None
    return mapped


def configure_cloudinary() -> None:
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )


def _upload_blocking(stream: BinaryIO, options: Dict[str, Any]) -> Dict[str, Any]:
    configure_cloudinary()
    stream.seek(0)
    return cloudinary.uploader.upload(stream, **options)


async def upload_asset(
    stream: BinaryIO,
    options: Dict[str, Any],
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Upload to Cloudinary, giving up after ``timeout`` seconds.

    The SDK call runs in a worker thread. On timeout only the caller stops
    waiting; the upload already sent to Cloudinary is not cancelled.
    """
    deadline = float(timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS)
    try:
        response = await asyncio.wait_for(asyncio.to_thread(_upload_blocking, stream, options), timeout=deadline)
    except asyncio.TimeoutError as exc:
        logger.error("Cloudinary upload exceeded %.0fs deadline", deadline)
        raise ProviderTimeout(details=f"Upload timeout after {deadline:.0f} seconds") from exc
    except cloudinary.exceptions.Error as exc:
        logger.error("Cloudinary upload error: %s", exc)
        raise ProviderFailure(str(exc) or None, details=str(exc)) from exc
    except Exception as exc:
        logger.exception("Cloudinary upload failed unexpectedly")
        raise ProviderFailure(details=str(exc)) from exc

    if not isinstance(response, Mapping) or not response.get("public_id"):
        raise ProviderFailure(details="Cloudinary response did not include a public_id")
    return dict(response)


async def upload_video(
    stream: BinaryIO,
    recipe: UploadRecipe,
    timeout: Optional[float] = None,
) -> ProviderResult:
    """Upload a video and return its locator, size and keyed derived URLs."""
    response = await upload_asset(stream, recipe.to_options(), timeout=timeout)
    eager = map_eager_results(recipe, response.get("eager"))
    logger.info(
        "Cloudinary upload succeeded public_id=%s bytes=%s eager=%d/%d",
        response["public_id"],
        response.get("bytes"),
        sum(1 for url in eager.values() if url),
        len(recipe.variants),
    )

    duration = response.get("duration")
    return ProviderResult(
        public_id=str(response["public_id"]),
        bytes=int(response.get("bytes") or 0),
        duration=float(duration) if duration is not None else None,
        secure_url=response.get("secure_url") or None,
        eager=eager,
    )


async def delete_asset(public_id: str, resource_type: str = "video") -> bool:
    """Best-effort remote delete; returns whether Cloudinary confirmed it."""

    def _destroy() -> Dict[str, Any]:
        configure_cloudinary()
        return cloudinary.uploader.destroy(public_id, resource_type=resource_type, invalidate=True)

    try:
        response = await asyncio.to_thread(_destroy)
    except Exception as exc:
        logger.warning("Could not delete Cloudinary asset %s: %s", public_id, exc)
        return False
    return str((response or {}).get("result", "")) == "ok"
