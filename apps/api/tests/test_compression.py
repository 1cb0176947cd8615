import io

import pytest

from services.ingestion.normalize import (
    compression_percentage,
    compression_ratio,
    normalize,
    round_half_up,
    signed_change_percentage,
    summarize_compression,
)
from services.ingestion.provider import ProviderResult
from services.ingestion.validation import ValidatedUpload


def _upload(original_size=10_000_000):
    return ValidatedUpload(
        user_id="user_1",
        title="Harbour walk",
        description=None,
        original_size=original_size,
        filename="harbour.mp4",
        content_type="video/mp4",
        size=original_size,
        stream=io.BytesIO(b""),
    )


def test_shrinking_upload_reports_saving_and_ratio():
    assert compression_percentage(10_000_000, 6_000_000) == 40
    assert compression_ratio(10_000_000, 6_000_000) == pytest.approx(0.6)


def test_growth_is_reported_as_positive_magnitude():
    assert compression_percentage(5_000_000, 6_000_000) == 20
    assert signed_change_percentage(5_000_000, 6_000_000) == -20


def test_equal_sizes_report_zero():
    assert compression_percentage(4_000, 4_000) == 0
    assert compression_ratio(4_000, 4_000) == 1.0


def test_rounding_matches_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(-2.5) == -2
    # 1/8 = 12.5%
    assert compression_percentage(8, 7) == 13


def test_summary_strings_use_mebibytes_with_two_decimals():
    summary = summarize_compression(10_000_000, 6_000_000)
    assert summary.original_size_mb == "9.54"
    assert summary.compressed_size_mb == "5.72"
    assert summary.savings_mb == "3.81"
    assert summary.grew is False
    assert summary.to_payload()["savingsMB"] == "3.81"


def test_summary_savings_negative_on_growth():
    summary = summarize_compression(5_000_000, 6_000_000)
    assert summary.percentage == 20
    assert summary.savings_mb == "-0.95"
    assert summary.grew is True


def test_normalize_maps_keyed_variants_and_defaults():
    result = ProviderResult(
        public_id="video-uploads/harbour",
        bytes=6_000_000,
        duration=None,
        secure_url="https://res.cloudinary.com/demo/video/upload/v1/video-uploads/harbour.mp4",
        eager={"compressed": "https://cdn/compressed.mp4", "preview": None, "thumbnail": "https://cdn/thumb.jpg"},
    )

    normalized = normalize(result, _upload())

    assert normalized.high_quality_url == "https://cdn/compressed.mp4"
    assert normalized.ai_preview_url is None
    assert normalized.thumbnail_url == "https://cdn/thumb.jpg"
    assert normalized.original_quality_url == result.secure_url
    assert normalized.duration == 0.0
    assert normalized.key_moments == []
    assert normalized.preview_duration == 15
    assert normalized.compression_ratio == pytest.approx(0.6)
    assert normalized.compression.percentage == 40

    fields = normalized.to_record_fields()
    assert fields["original_size"] == 10_000_000
    assert fields["compressed_size"] == 6_000_000
    assert fields["user_id"] == "user_1"
