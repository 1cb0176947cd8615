"""Social media image formats rendered through Cloudinary transformations."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, List, Optional

from config import settings
from services.delivery import build_url
from services.ingestion.errors import FileTooLarge, InvalidField, InvalidFileType, MissingFile
from services.ingestion.provider import upload_asset
from services.ingestion.validation import IncomingFile, require_cloudinary_credentials, require_user

logger = logging.getLogger(__name__)

IMAGE_MIME_PREFIX = "image/"
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class SocialFormat:
    label: str
    width: int
    height: int
    aspect_ratio: str

    @property
    def download_filename(self) -> str:
        stem = _WHITESPACE.sub("_", self.label).lower()
        return f"{stem}.png"


SOCIAL_FORMATS: Dict[str, SocialFormat] = {
    fmt.label: fmt
    for fmt in (
        SocialFormat("Instagram Square (1:1)", 1080, 1080, "1:1"),
        SocialFormat("Instagram Portrait (4:5)", 1080, 1350, "4:5"),
        SocialFormat("Twitter Post (16:9)", 1200, 675, "16:9"),
        SocialFormat("Twitter Header (3:1)", 1500, 500, "3:1"),
        SocialFormat("Facebook Cover (205:78)", 820, 312, "205:78"),
    )
}


def format_url(public_id: str, fmt: SocialFormat) -> Optional[str]:
    return build_url(
        public_id,
        resource_type="image",
        width=fmt.width,
        height=fmt.height,
        crop="fill",
        gravity="auto",
        format="png",
    )


def render_formats(public_id: str) -> List[Dict[str, Any]]:
    return [
        {
            "label": fmt.label,
            "width": fmt.width,
            "height": fmt.height,
            "aspectRatio": fmt.aspect_ratio,
            "url": format_url(public_id, fmt),
            "filename": fmt.download_filename,
        }
        for fmt in SOCIAL_FORMATS.values()
    ]


async def upload_image(user_id: Optional[str], file: Optional[IncomingFile]) -> str:
    """Validate and upload a social-share source image; returns its public id."""
    require_user(user_id)
    require_cloudinary_credentials()
    if file is None:
        raise MissingFile()
    if not (file.content_type or "").lower().startswith(IMAGE_MIME_PREFIX):
        raise InvalidFileType("Invalid file type. Please upload an image file.")
    if file.size > int(settings.MAX_IMAGE_UPLOAD_BYTES):
        raise FileTooLarge(
            f"File size too large. Maximum size is {int(settings.MAX_IMAGE_UPLOAD_BYTES) // (1024 * 1024)}MB."
        )
    if file.size == 0:
        raise InvalidField("Uploaded image is empty.")

    stream: BinaryIO = file.stream
    response = await upload_asset(
        stream,
        {"resource_type": "image", "folder": settings.CLOUDINARY_IMAGE_FOLDER},
    )
    logger.info("Social share image uploaded public_id=%s user=%s", response["public_id"], user_id)
    return str(response["public_id"])
