"""Tests for domain models."""

import pytest
from pydantic import ValidationError

from cosmicdaily.constants import RECORD_CACHE_TTL_SECONDS
from cosmicdaily.domain.models import DailyRecord, DailyRecordList, RecordCacheEntry
from cosmicdaily.enums import MediaType


class TestDailyRecord:
    """Test decoding and serialization of daily records."""

    def test_decodes_api_payload(self, apod_payload):
        record = DailyRecord.model_validate(apod_payload)
        assert record.date == "2024-01-15"
        assert record.id == "2024-01-15"
        assert record.media_type == MediaType.Image
        assert record.hd_url == apod_payload["hdurl"]
        assert record.service_version == "v1"

    def test_wire_round_trip(self, sample_record):
        wire = sample_record.to_wire()
        assert wire["hdurl"] == sample_record.hd_url
        assert "hd_url" not in wire
        assert DailyRecord.model_validate(wire) == sample_record

    def test_optional_fields_default(self):
        record = DailyRecord.model_validate(
            {"date": "2024-01-15", "title": "t", "url": "https://x/y.jpg"}
        )
        assert record.explanation == ""
        assert record.hd_url is None
        assert record.copyright is None
        assert record.media_type == MediaType.Image

    def test_unknown_media_type_maps_to_other(self, apod_payload):
        apod_payload["media_type"] = "interactive"
        record = DailyRecord.model_validate(apod_payload)
        assert record.media_type == MediaType.Other
        assert record.image_url is None

    def test_missing_required_field_rejected(self, apod_payload):
        del apod_payload["title"]
        with pytest.raises(ValidationError):
            DailyRecord.model_validate(apod_payload)

    def test_image_url_prefers_hd(self, sample_record):
        assert sample_record.image_url == sample_record.hd_url

    def test_image_url_falls_back_to_url(self, apod_payload):
        del apod_payload["hdurl"]
        record = DailyRecord.model_validate(apod_payload)
        assert record.image_url == apod_payload["url"]

    def test_video_has_no_image_url(self, video_record):
        assert not video_record.is_image
        assert video_record.image_url is None

    def test_records_are_immutable(self, sample_record):
        with pytest.raises(ValidationError):
            sample_record.title = "Changed"

    def test_list_adapter(self, apod_payload, video_record):
        records = DailyRecordList.validate_python([apod_payload, video_record.to_wire()])
        assert [r.date for r in records] == ["2024-01-15", "2024-01-16"]


class TestRecordCacheEntry:
    """Test TTL arithmetic of cache entries."""

    def test_valid_at_ttl_boundary(self, sample_record):
        entry = RecordCacheEntry(record=sample_record, fetched_at=1000.0)
        assert entry.is_valid(1000.0 + RECORD_CACHE_TTL_SECONDS)

    def test_invalid_past_ttl(self, sample_record):
        entry = RecordCacheEntry(record=sample_record, fetched_at=1000.0)
        assert not entry.is_valid(1000.0 + RECORD_CACHE_TTL_SECONDS + 1)

    def test_age(self, sample_record):
        entry = RecordCacheEntry(record=sample_record, fetched_at=1000.0)
        assert entry.age(1250.0) == 250.0
