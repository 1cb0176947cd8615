"""Gallery view model: what each video card shows and which states the page has."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Sequence

from models.video import Video
from services.delivery import download_filename, download_url, preview_url, thumbnail_url
from services.ingestion.normalize import round_half_up

GalleryState = Literal["loading", "empty", "populated", "error"]

GALLERY_PLACEHOLDER_COUNT = 6
KEY_MOMENTS_SHOWN = 3
FETCH_ERROR_MESSAGE = "Failed to fetch videos"

_SIZE_UNITS = ("B", "kB", "MB", "GB", "TB", "PB")

# (upper bound in seconds, unit seconds, singular label, plural template)
_RELATIVE_STEPS = (
    (45, 1, "a few seconds", None),
    (90, 60, "a minute", None),
    (45 * 60, 60, None, "{n} minutes"),
    (90 * 60, 3600, "an hour", None),
    (22 * 3600, 3600, None, "{n} hours"),
    (36 * 3600, 86400, "a day", None),
    (26 * 86400, 86400, None, "{n} days"),
    (46 * 86400, 30 * 86400, "a month", None),
    (320 * 86400, 30 * 86400, None, "{n} months"),
    (548 * 86400, 365 * 86400, "a year", None),
)


def format_size(num_bytes: Optional[int]) -> str:
    """Decimal-unit size with at most two decimals, e.g. ``265.32 kB``."""
    value = float(num_bytes or 0)
    exponent = 0
    while value >= 1000 and exponent < len(_SIZE_UNITS) - 1:
        value /= 1000
        exponent += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[exponent]}"


def format_duration(seconds: Optional[float]) -> str:
    total = max(float(seconds or 0), 0.0)
    minutes = int(total // 60)
    remainder = round_half_up(total % 60)
    if remainder == 60:
        minutes, remainder = minutes + 1, 0
    return f"{minutes}:{remainder:02d}"


def format_relative(moment: Optional[datetime], now: Optional[datetime] = None) -> str:
    if moment is None:
        return ""
    now = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    delta = (now - moment).total_seconds()
    future = delta < 0
    elapsed = abs(delta)

    phrase = None
    for bound, unit, singular, plural in _RELATIVE_STEPS:
        if elapsed < bound:
            phrase = singular or plural.format(n=max(round_half_up(elapsed / unit), 2))
            break
    if phrase is None:
        years = max(round_half_up(elapsed / (365 * 86400)), 2)
        phrase = f"{years} years"
    return f"in {phrase}" if future else f"{phrase} ago"


def card_compression_percentage(video: Video) -> Optional[int]:
    original = int(video.original_size or 0)
    if original <= 0:
        return None
    return round_half_up((1 - int(video.compressed_size or 0) / original) * 100)


def _download_options(video: Video) -> List[Dict[str, Any]]:
    filename = download_filename(video.title)
    options = [{"variant": "original", "label": "Download Original", "url": download_url(video, "original"), "filename": filename}]
    if video.high_quality_url:
        options.append(
            {"variant": "compressed", "label": "Download Compressed", "url": video.high_quality_url, "filename": filename}
        )
    return options


def build_card(video: Video, now: Optional[datetime] = None) -> Dict[str, Any]:
    moments = list(video.key_moments or [])
    ratio = video.compression_ratio
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "publicId": video.public_id,
        "durationLabel": format_duration(video.duration),
        "originalSizeLabel": format_size(video.original_size),
        "compressedSizeLabel": format_size(video.compressed_size),
        "uploadedLabel": format_relative(video.created_at, now=now),
        "compressionPercentage": card_compression_percentage(video),
        "compressionRatioLabel": f"{ratio * 100:.1f}%" if ratio else None,
        "previewDuration": video.preview_duration,
        "thumbnailUrl": video.thumbnail_url or thumbnail_url(video.public_id),
        "previewUrl": preview_url(video),
        "hasAiPreview": bool(video.ai_preview_url),
        "keyMoments": moments[:KEY_MOMENTS_SHOWN],
        "moreKeyMoments": max(len(moments) - KEY_MOMENTS_SHOWN, 0),
        "downloads": _download_options(video),
    }


def build_gallery(videos: Sequence[Video], now: Optional[datetime] = None) -> Dict[str, Any]:
    cards = [build_card(video, now=now) for video in videos]
    state: GalleryState = "populated" if cards else "empty"
    return {"state": state, "placeholders": GALLERY_PLACEHOLDER_COUNT, "cards": cards, "error": None}


def gallery_error(message: str = FETCH_ERROR_MESSAGE) -> Dict[str, Any]:
    return {"state": "error", "placeholders": GALLERY_PLACEHOLDER_COUNT, "cards": [], "error": message}
