"""Tests for the daily record cache."""

import json

import pytest

from cosmicdaily.application.cache.record_cache import RecordCache
from cosmicdaily.constants import (
    RECORD_CACHE_KEY,
    RECORD_CACHE_TIME_KEY,
    RECORD_CACHE_TTL_SECONDS,
)


@pytest.fixture
def record_cache(tmp_path, clock) -> RecordCache:
    return RecordCache(tmp_path, clock=clock)


class TestRecordCache:
    """Test cases for RecordCache."""

    @pytest.mark.anyio
    async def test_empty_cache(self, record_cache):
        assert await record_cache.get() is None
        assert await record_cache.is_valid() is False
        assert await record_cache.size_bytes() == 0

    @pytest.mark.anyio
    async def test_put_then_get(self, record_cache, sample_record, clock):
        assert await record_cache.put(sample_record) is True
        entry = await record_cache.get()
        assert entry is not None
        assert entry.record == sample_record
        assert entry.fetched_at == clock.now
        assert await record_cache.is_valid()

    @pytest.mark.anyio
    async def test_ttl_boundary(self, record_cache, sample_record, clock):
        await record_cache.put(sample_record)
        clock.advance(RECORD_CACHE_TTL_SECONDS)
        assert await record_cache.is_valid() is True
        clock.advance(1)
        assert await record_cache.is_valid() is False
        # stale entries are still returned
        entry = await record_cache.get()
        assert entry is not None
        assert entry.record == sample_record

    @pytest.mark.anyio
    async def test_durable_entry_survives_new_instance(
        self, tmp_path, record_cache, sample_record, clock
    ):
        await record_cache.put(sample_record)
        reopened = RecordCache(tmp_path, clock=clock)
        entry = await reopened.get()
        assert entry is not None
        assert entry.record == sample_record
        assert reopened._memory is not None

    @pytest.mark.anyio
    async def test_stale_durable_entry_not_promoted(
        self, tmp_path, record_cache, sample_record, clock
    ):
        await record_cache.put(sample_record)
        clock.advance(RECORD_CACHE_TTL_SECONDS + 1)
        reopened = RecordCache(tmp_path, clock=clock)
        entry = await reopened.get()
        assert entry is not None
        assert reopened._memory is None

    @pytest.mark.anyio
    async def test_durable_layout(self, record_cache, sample_record, clock):
        await record_cache.put(sample_record)
        payload = json.loads(record_cache.path.read_text(encoding="utf-8"))
        assert payload[RECORD_CACHE_TIME_KEY] == clock.now
        assert payload[RECORD_CACHE_KEY]["hdurl"] == sample_record.hd_url
        assert payload[RECORD_CACHE_KEY]["date"] == "2024-01-15"
        assert not record_cache.path.with_name(record_cache.path.name + ".tmp").exists()

    @pytest.mark.anyio
    async def test_corrupt_file_is_discarded(self, tmp_path, clock):
        cache = RecordCache(tmp_path, clock=clock)
        cache.path.write_text("{not json", encoding="utf-8")
        assert await cache.get() is None
        assert not cache.path.exists()

    @pytest.mark.anyio
    async def test_schema_mismatch_is_discarded(self, tmp_path, clock):
        cache = RecordCache(tmp_path, clock=clock)
        cache.path.write_text(
            json.dumps({RECORD_CACHE_KEY: {"date": "2024-01-15"}, RECORD_CACHE_TIME_KEY: 1}),
            encoding="utf-8",
        )
        assert await cache.get() is None
        assert await cache.is_valid() is False
        assert not cache.path.exists()

    @pytest.mark.anyio
    async def test_last_write_wins(self, record_cache, sample_record, video_record):
        assert await record_cache.put(video_record, fetched_at=2000.0)
        assert await record_cache.put(sample_record, fetched_at=1000.0) is False
        entry = await record_cache.get()
        assert entry.record == video_record
        assert entry.fetched_at == 2000.0

    @pytest.mark.anyio
    async def test_newer_write_replaces(self, record_cache, sample_record, video_record):
        await record_cache.put(sample_record, fetched_at=1000.0)
        await record_cache.put(video_record, fetched_at=1500.0)
        entry = await record_cache.get()
        assert entry.record == video_record

    @pytest.mark.anyio
    async def test_clear_is_idempotent(self, record_cache, sample_record):
        await record_cache.put(sample_record)
        assert await record_cache.size_bytes() > 0
        await record_cache.clear()
        await record_cache.clear()
        assert await record_cache.get() is None
        assert await record_cache.is_valid() is False
        assert not record_cache.path.exists()
