"""Turn a Cloudinary upload result into the fields stored and reported."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import settings
from services.ingestion.provider import (
    COMPRESSED_VARIANT,
    PREVIEW_VARIANT,
    THUMBNAIL_VARIANT,
    ProviderResult,
)
from services.ingestion.validation import ValidatedUpload

BYTES_PER_MB = 1024 * 1024


def round_half_up(value: float) -> int:
    """Round .5 towards positive infinity, as browsers' Math.round does."""
    return int(math.floor(value + 0.5))


def compression_percentage(original_bytes: int, compressed_bytes: int) -> int:
    """Magnitude of the size change as a whole percentage of the original.

    Growth is reported with the same positive sign as shrinkage; callers that
    need direction use ``signed_change_percentage``.
    """
    if original_bytes <= 0:
        return 0
    if original_bytes > compressed_bytes:
        return round_half_up((original_bytes - compressed_bytes) / original_bytes * 100)
    return round_half_up((compressed_bytes - original_bytes) / original_bytes * 100)


def signed_change_percentage(original_bytes: int, compressed_bytes: int) -> int:
    """Saving as a positive percentage, growth as a negative one."""
    if original_bytes <= 0:
        return 0
    return round_half_up((original_bytes - compressed_bytes) / original_bytes * 100)


def compression_ratio(original_bytes: int, compressed_bytes: int) -> Optional[float]:
    if original_bytes <= 0:
        return None
    return compressed_bytes / original_bytes


def format_mb(num_bytes: int) -> str:
    return f"{num_bytes / BYTES_PER_MB:.2f}"


@dataclass(frozen=True)
class CompressionSummary:
    percentage: int
    ratio: Optional[float]
    original_size_mb: str
    compressed_size_mb: str
    savings_mb: str
    grew: bool
    signed_change_percentage: int

    def to_payload(self) -> Dict[str, Any]:
        return {
            "originalSizeMB": self.original_size_mb,
            "compressedSizeMB": self.compressed_size_mb,
            "savingsMB": self.savings_mb,
            "grew": self.grew,
            "signedChangePercentage": self.signed_change_percentage,
        }


def summarize_compression(original_bytes: int, compressed_bytes: int) -> CompressionSummary:
    return CompressionSummary(
        percentage=compression_percentage(original_bytes, compressed_bytes),
        ratio=compression_ratio(original_bytes, compressed_bytes),
        original_size_mb=format_mb(original_bytes),
        compressed_size_mb=format_mb(compressed_bytes),
        savings_mb=format_mb(original_bytes - compressed_bytes),
        grew=compressed_bytes >= original_bytes,
        signed_change_percentage=signed_change_percentage(original_bytes, compressed_bytes),
    )


@dataclass(frozen=True)
class NormalizedVideo:
    user_id: str
    title: str
    description: Optional[str]
    public_id: str
    original_size: int
    compressed_size: int
    duration: float
    ai_preview_url: Optional[str]
    thumbnail_url: Optional[str]
    high_quality_url: Optional[str]
    original_quality_url: Optional[str]
    compression_ratio: Optional[float]
    preview_duration: int
    compression: CompressionSummary
    key_moments: List[str] = field(default_factory=list)

    def to_record_fields(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "public_id": self.public_id,
            "original_size": self.original_size,
            "compressed_size": self.compressed_size,
            "duration": self.duration,
            "ai_preview_url": self.ai_preview_url,
            "thumbnail_url": self.thumbnail_url,
            "high_quality_url": self.high_quality_url,
            "original_quality_url": self.original_quality_url,
            "key_moments": list(self.key_moments),
            "compression_ratio": self.compression_ratio,
            "preview_duration": self.preview_duration,
        }


def normalize(result: ProviderResult, upload: ValidatedUpload) -> NormalizedVideo:
    """Combine the provider result with the validated form into a record payload."""
    summary = summarize_compression(upload.original_size, result.bytes)
    return NormalizedVideo(
        user_id=upload.user_id,
        title=upload.title,
        description=upload.description,
        public_id=result.public_id,
        original_size=upload.original_size,
        compressed_size=result.bytes,
        duration=max(float(result.duration or 0), 0.0),
        ai_preview_url=result.eager.get(PREVIEW_VARIANT),
        thumbnail_url=result.eager.get(THUMBNAIL_VARIANT),
        high_quality_url=result.eager.get(COMPRESSED_VARIANT),
        original_quality_url=result.secure_url,
        compression_ratio=summary.ratio,
        preview_duration=int(settings.PREVIEW_DURATION_SECONDS),
        compression=summary,
    )
