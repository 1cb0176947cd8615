"""Request validation for video ingestion.

Every check here is pure: nothing touches the network or the database, so a
rejected upload never reaches Cloudinary.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import BinaryIO, Optional

from config import cloudinary_credentials_present, settings
from services.ingestion.errors import (
    FileTooLarge,
    InvalidField,
    InvalidFileType,
    Misconfigured,
    MissingFile,
    Unauthenticated,
)

logger = logging.getLogger(__name__)

VIDEO_MIME_PREFIX = "video/"


@dataclass(frozen=True)
class IncomingFile:
    filename: str
    content_type: str
    size: int
    stream: BinaryIO


@dataclass(frozen=True)
class ValidatedUpload:
    user_id: str
    title: str
    description: Optional[str]
    original_size: int
    filename: str
    content_type: str
    size: int
    stream: BinaryIO


def measure_stream(stream: BinaryIO) -> int:
    """Size of a seekable stream in bytes; the read position is restored to 0."""
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _format_limit(limit_bytes: int) -> str:
    gib = 1024 * 1024 * 1024
    if limit_bytes >= gib and limit_bytes % gib == 0:
        return f"{limit_bytes // gib}GB"
    return f"{limit_bytes // (1024 * 1024)}MB"


def _parse_original_size(raw: Optional[str]) -> int:
    text = str(raw or "").strip()
    if not text:
        raise InvalidField("originalSize is required.")
    try:
        value = int(text)
    except ValueError as exc:
        raise InvalidField("originalSize must be a whole number of bytes.") from exc
    if value <= 0:
        raise InvalidField("originalSize must be greater than zero.")
    return value


def require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise Unauthenticated()
    return user_id


def require_cloudinary_credentials() -> None:
    present = cloudinary_credentials_present()
    if not all(present.values()):
        logger.error("Missing Cloudinary credentials: %s", present)
        raise Misconfigured()


def validate_upload(
    *,
    user_id: Optional[str],
    file: Optional[IncomingFile],
    title: Optional[str],
    description: Optional[str],
    original_size: Optional[str],
    max_bytes: Optional[int] = None,
) -> ValidatedUpload:
    """Run the ingestion checks in order and return the accepted payload."""
    user_id = require_user(user_id)
    require_cloudinary_credentials()

    if file is None:
        raise MissingFile()

    content_type = (file.content_type or "").lower()
    if not content_type.startswith(VIDEO_MIME_PREFIX):
        raise InvalidFileType()

    limit = int(max_bytes if max_bytes is not None else settings.MAX_VIDEO_UPLOAD_BYTES)
    if file.size > limit:
        raise FileTooLarge(f"File size too large. Maximum size is {_format_limit(limit)}.")

    clean_title = str(title or "").strip()
    if not clean_title:
        raise InvalidField("Title is required.")

    clean_description = str(description).strip() if description is not None else None

    return ValidatedUpload(
        user_id=user_id,
        title=clean_title,
        description=clean_description or None,
        original_size=_parse_original_size(original_size),
        filename=file.filename,
        content_type=content_type,
        size=file.size,
        stream=file.stream,
    )
