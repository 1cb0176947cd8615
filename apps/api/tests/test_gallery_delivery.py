from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from config import settings
from models.video import Video
from services.delivery import build_url, download_filename, download_url, preview_url, thumbnail_url
from services.gallery import build_card, build_gallery, format_duration, format_relative, format_size


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _video(**overrides):
    fields = {
        "id": "video-1",
        "title": "Harbour walk",
        "public_id": "video-uploads/harbour",
        "original_size": 10_000_000,
        "compressed_size": 6_000_000,
        "duration": 0,
        "user_id": "user_a",
        "created_at": NOW - timedelta(hours=3),
        "key_moments": [],
    }
    fields.update(overrides)
    return Video(**fields)


@pytest.mark.parametrize(
    "num_bytes,expected",
    [(0, "0 B"), (999, "999 B"), (1000, "1 kB"), (265_318, "265.32 kB"), (10_000_000, "10 MB"), (1_500_000_000, "1.5 GB")],
)
def test_format_size(num_bytes, expected):
    assert format_size(num_bytes) == expected


@pytest.mark.parametrize("seconds,expected", [(0, "0:00"), (9.4, "0:09"), (75, "1:15"), (119.6, "2:00"), (3600, "60:00")])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize(
    "delta,expected",
    [
        (timedelta(seconds=10), "a few seconds ago"),
        (timedelta(minutes=1), "a minute ago"),
        (timedelta(minutes=30), "30 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=1), "a day ago"),
        (timedelta(days=10), "10 days ago"),
        (timedelta(days=60), "2 months ago"),
        (timedelta(days=400), "a year ago"),
        (timedelta(days=1000), "3 years ago"),
    ],
)
def test_format_relative(delta, expected):
    assert format_relative(NOW - delta, now=NOW) == expected


def test_format_relative_future_and_naive():
    assert format_relative(NOW + timedelta(hours=3), now=NOW) == "in 3 hours"
    assert format_relative(datetime(2026, 10, 19, 11, 30), now=NOW) == "30 minutes ago"
    assert format_relative(None, now=NOW) == ""


@pytest.mark.parametrize(
    "title,expected",
    [("Harbour walk", "Harbour walk.mp4"), ("a/b\\c", "a_b_c.mp4"), ("", "video.mp4"), (None, "video.mp4"), ("...", "video.mp4")],
)
def test_download_filename(title, expected):
    assert download_filename(title) == expected


def test_urls_need_a_cloud_name():
    with patch.object(settings, "CLOUDINARY_CLOUD_NAME", ""):
        assert build_url("video-uploads/harbour") is None
        assert thumbnail_url("video-uploads/harbour") is None


def test_thumbnail_url_uses_card_dimensions(cloudinary_configured):
    url = thumbnail_url("video-uploads/harbour")
    assert url.startswith("https://res.cloudinary.com/demo/video/upload/")
    assert "w_400" in url
    assert "h_225" in url
    assert "c_fill" in url
    assert url.endswith("video-uploads/harbour.jpg")


def test_preview_prefers_stored_variant(cloudinary_configured):
    assert preview_url(_video(ai_preview_url="https://cdn/preview.mp4")) == "https://cdn/preview.mp4"
    fallback = preview_url(_video())
    assert "q_auto:low" in fallback


def test_download_url_falls_back_to_stored_original():
    video = _video(original_quality_url="https://cdn/original.mp4")
    with patch.object(settings, "CLOUDINARY_CLOUD_NAME", ""):
        assert download_url(video, "original") == "https://cdn/original.mp4"
    assert download_url(video, "compressed") is None


def test_card_without_original_size_has_no_percentage(cloudinary_configured):
    card = build_card(_video(original_size=0, compressed_size=0), now=NOW)
    assert card["compressionPercentage"] is None
    assert card["compressionRatioLabel"] is None
    assert card["uploadedLabel"] == "3 hours ago"
    assert card["hasAiPreview"] is False
    assert [option["variant"] for option in card["downloads"]] == ["original"]


def test_card_growth_shows_negative_percentage(cloudinary_configured):
    card = build_card(_video(original_size=5_000_000, compressed_size=6_000_000), now=NOW)
    assert card["compressionPercentage"] == -20


def test_gallery_keeps_input_order(cloudinary_configured):
    gallery = build_gallery([_video(id="b", title="B"), _video(id="a", title="A")], now=NOW)
    assert gallery["state"] == "populated"
    assert [card["id"] for card in gallery["cards"]] == ["b", "a"]
