"""Cloudinary delivery URLs and download naming for stored videos."""

from __future__ import annotations

import re
from typing import Any, Optional

from cloudinary.utils import cloudinary_url

from config import settings
from models.video import Video

DEFAULT_DOWNLOAD_NAME = "video"
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/\x00-\x1f\x7f<>:"|?*]+')


def build_url(public_id: str, resource_type: str = "video", **transformation: Any) -> Optional[str]:
    """Signed-free delivery URL, or None when no cloud name is configured."""
    cloud_name = (settings.CLOUDINARY_CLOUD_NAME or "").strip()
    if not cloud_name or not public_id:
        return None
    url, _options = cloudinary_url(
        public_id,
        resource_type=resource_type,
        cloud_name=cloud_name,
        secure=True,
        **transformation,
    )
    return url


def thumbnail_url(public_id: str) -> Optional[str]:
    return build_url(
        public_id,
        width=400,
        height=225,
        crop="fill",
        gravity="auto",
        format="jpg",
        quality="auto",
    )


def full_video_url(public_id: str) -> Optional[str]:
    return build_url(public_id, width=1920, height=1080, crop="limit")


def preview_url(video: Video) -> Optional[str]:
    """Stored hover preview if Cloudinary derived one, else a low-quality rendition."""
    if video.ai_preview_url:
        return video.ai_preview_url
    return build_url(video.public_id, width=400, height=225, crop="fill", quality="auto:low")


def download_filename(title: Optional[str], extension: str = "mp4") -> str:
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", str(title or "")).strip(" ._")
    return f"{cleaned or DEFAULT_DOWNLOAD_NAME}.{extension}"


def download_url(video: Video, variant: str = "original") -> Optional[str]:
    """Asset URL the browser fetches directly for the requested variant."""
    if variant == "compressed":
        return video.high_quality_url or None
    return full_video_url(video.public_id) or video.original_quality_url
