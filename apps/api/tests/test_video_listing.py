import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from models.video import Video


BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def _video(title, user_id, minutes, **overrides):
    fields = {
        "title": title,
        "public_id": f"video-uploads/{title.lower().replace(' ', '-')}",
        "original_size": 10_000_000,
        "compressed_size": 6_000_000,
        "duration": 75.0,
        "user_id": user_id,
        "created_at": BASE_TIME + timedelta(minutes=minutes),
        "original_quality_url": f"https://res.cloudinary.com/demo/video/upload/{title}.mp4",
        "key_moments": [],
    }
    fields.update(overrides)
    return Video(**fields)


async def _seed(session_maker, *videos):
    async with session_maker() as session:
        session.add_all(videos)
        await session.commit()


@pytest.mark.asyncio
async def test_empty_library_lists_nothing(api_client):
    response = await api_client.get("/api/videos")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_videos_listed_newest_first(api_client, session_maker):
    await _seed(
        session_maker,
        _video("Oldest", "user_a", 0),
        _video("Newest", "user_b", 20),
        _video("Middle", "user_a", 10),
    )

    response = await api_client.get("/api/videos")

    assert response.status_code == 200
    payload = response.json()
    assert [item["title"] for item in payload] == ["Newest", "Middle", "Oldest"]
    assert payload[0]["publicId"] == "video-uploads/newest"
    assert payload[0]["originalSize"] == 10_000_000
    assert "public_id" not in payload[0]


@pytest.mark.asyncio
async def test_listing_failure_returns_fixed_error(api_client):
    outage = OperationalError("SELECT", {}, ConnectionRefusedError("connection refused"))
    with patch("routers.videos.list_videos", AsyncMock(side_effect=outage)):
        response = await api_client.get("/api/videos")

    assert response.status_code == 500
    assert response.json() == {"error": "Error fetching videos"}


@pytest.mark.asyncio
async def test_my_videos_requires_session(api_client):
    response = await api_client.get("/api/videos/mine")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_my_videos_only_returns_owned(api_client, session_maker, signed_in):
    await _seed(
        session_maker,
        _video("Mine early", signed_in, 0),
        _video("Someone else", "user_other", 5),
        _video("Mine late", signed_in, 10),
    )

    response = await api_client.get("/api/videos/mine")

    assert response.status_code == 200
    assert [item["title"] for item in response.json()] == ["Mine late", "Mine early"]


@pytest.mark.asyncio
async def test_gallery_states(api_client, session_maker, cloudinary_configured):
    response = await api_client.get("/api/videos/gallery")
    assert response.status_code == 200
    assert response.json() == {"state": "empty", "placeholders": 6, "cards": [], "error": None}

    await _seed(
        session_maker,
        _video(
            "Harbour walk",
            "user_a",
            0,
            key_moments=["intro", "bridge", "boats", "sunset"],
            compression_ratio=0.6,
            high_quality_url="https://cdn/compressed.mp4",
        ),
    )
    response = await api_client.get("/api/videos/gallery")
    payload = response.json()
    assert payload["state"] == "populated"
    card = payload["cards"][0]
    assert card["durationLabel"] == "1:15"
    assert card["compressionPercentage"] == 40
    assert card["compressionRatioLabel"] == "60.0%"
    assert card["keyMoments"] == ["intro", "bridge", "boats"]
    assert card["moreKeyMoments"] == 1
    assert [option["variant"] for option in card["downloads"]] == ["original", "compressed"]


@pytest.mark.asyncio
async def test_gallery_error_state(api_client):
    with patch("routers.videos.list_videos", AsyncMock(side_effect=OSError("db down"))):
        response = await api_client.get("/api/videos/gallery")

    assert response.status_code == 500
    assert response.json()["state"] == "error"
    assert response.json()["error"] == "Failed to fetch videos"


@pytest.mark.asyncio
async def test_download_resolves_original_and_compressed(api_client, session_maker, cloudinary_configured):
    video = _video("Harbour: walk?", "user_a", 0, high_quality_url="https://cdn/compressed.mp4")
    await _seed(session_maker, video)

    response = await api_client.get(f"/api/videos/{video.id}/download")
    assert response.status_code == 200
    payload = response.json()
    assert payload["variant"] == "original"
    assert payload["filename"] == "Harbour_ walk.mp4"
    assert payload["url"].startswith("https://res.cloudinary.com/demo/video/upload/")
    assert "w_1920" in payload["url"]

    response = await api_client.get(f"/api/videos/{video.id}/download", params={"variant": "compressed"})
    assert response.status_code == 200
    assert response.json()["url"] == "https://cdn/compressed.mp4"


@pytest.mark.asyncio
async def test_download_missing_video_or_variant(api_client, session_maker, cloudinary_configured):
    response = await api_client.get("/api/videos/does-not-exist/download")
    assert response.status_code == 404

    video = _video("No compressed", "user_a", 0)
    await _seed(session_maker, video)
    response = await api_client.get(f"/api/videos/{video.id}/download", params={"variant": "compressed"})
    assert response.status_code == 404
    assert response.json()["detail"] == "No compressed download available for this video"


@pytest.mark.asyncio
async def test_download_rejects_unknown_variant(api_client, session_maker):
    video = _video("Any", "user_a", 0)
    await _seed(session_maker, video)
    response = await api_client.get(f"/api/videos/{video.id}/download", params={"variant": "raw"})
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/videos", "/api/videos/mine"])
async def test_pool_timeout_still_returns_error_object(api_client, signed_in, path):
    with (
        patch("routers.videos.list_videos", AsyncMock(side_effect=asyncio.TimeoutError())),
        patch("routers.videos.list_videos_for_user", AsyncMock(side_effect=asyncio.TimeoutError())),
    ):
        response = await api_client.get(path)

    assert response.status_code == 500
    assert response.json() == {"error": "Error fetching videos"}
