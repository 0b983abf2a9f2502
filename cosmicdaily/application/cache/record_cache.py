"""Single-slot cache for the daily astronomy record."""

import json
import time
from pathlib import Path
from typing import Callable, Optional, Union

import anyio
from asyncer import asyncify
from pydantic import ValidationError

from ...constants import (
    RECORD_CACHE_FILE_NAME,
    RECORD_CACHE_KEY,
    RECORD_CACHE_TIME_KEY,
    RECORD_CACHE_TTL_SECONDS,
)
from ...domain.models import DailyRecord, RecordCacheEntry
from ...logging import debug, info, warning, LogRecord, LogEvent


class RecordCache:
    """
    Memory slot backed by a JSON file holding the current day's record.

    Reads never raise: missing, unreadable or corrupt durable data is treated
    as a miss (corrupt files are discarded). Writes are last-write-wins by
    ``fetched_at`` so an older refresh finishing late cannot replace a newer
    entry.
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        ttl_seconds: int = RECORD_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._path = anyio.Path(Path(cache_dir) / RECORD_CACHE_FILE_NAME)
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._memory: Optional[RecordCacheEntry] = None
        self._lock = anyio.Lock()

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    @property
    def path(self) -> Path:
        return Path(self._path)

    async def put(self, record: DailyRecord, fetched_at: Optional[float] = None) -> bool:
        """
        Store ``record`` in memory and on disk, replacing any prior entry.

        Args:
            record: The record to cache
            fetched_at: Fetch timestamp, defaults to now

        Returns:
            False if a newer entry is already stored and the write was skipped
        """
        entry = RecordCacheEntry(
            record=record,
            fetched_at=self._clock() if fetched_at is None else fetched_at,
        )
        async with self._lock:
            current = self._memory or await self._read_durable()
            if current is not None and current.fetched_at > entry.fetched_at:
                debug(
                    LogRecord(
                        event=LogEvent.RECORD_CACHE_EVENT.value,
                        message="Skipped record write older than cached entry",
                        key=record.date,
                        data={
                            "cached_fetched_at": current.fetched_at,
                            "incoming_fetched_at": entry.fetched_at,
                        },
                    )
                )
                return False

            self._memory = entry
            try:
                await self._write_durable(entry)
            except OSError as e:
                warning(
                    LogRecord(
                        event=LogEvent.RECORD_CACHE_EVENT.value,
                        message="Failed to persist record",
                        key=record.date,
                    ),
                    exc=e,
                )

        info(
            LogRecord(
                event=LogEvent.RECORD_CACHE_EVENT.value,
                message="Record cached",
                key=record.date,
                data={"media_type": record.media_type.value},
            )
        )
        return True

    async def get(self) -> Optional[RecordCacheEntry]:
        """
        Return the cached entry, valid or not.

        Memory is checked first. On a memory miss the durable store is read
        and, if still within the TTL, promoted into memory.
        """
        entry = self._memory
        if entry is not None:
            return entry

        async with self._lock:
            entry = await self._read_durable()
            if entry is not None and entry.is_valid(self._clock(), self._ttl_seconds):
                self._memory = entry
        return entry

    async def is_valid(self) -> bool:
        """True iff a durable entry exists and is not older than the TTL."""
        async with self._lock:
            entry = await self._read_durable()
        return entry is not None and entry.is_valid(self._clock(), self._ttl_seconds)

    async def clear(self) -> None:
        """Remove memory and durable entries. Safe to call repeatedly."""
        async with self._lock:
            self._memory = None
            await self._discard_durable()

        info(
            LogRecord(
                event=LogEvent.CACHE_CLEARED.value,
                message="Record cache cleared",
            )
        )

    async def size_bytes(self) -> int:
        try:
            return (await self._path.stat()).st_size
        except OSError:
            return 0

    async def _read_durable(self) -> Optional[RecordCacheEntry]:
        try:
            if not await self._path.exists():
                return None
            raw = await self._path.read_text(encoding="utf-8")
        except OSError as e:
            warning(
                LogRecord(
                    event=LogEvent.RECORD_CACHE_EVENT.value,
                    message="Failed to read cached record",
                ),
                exc=e,
            )
            return None

        try:
            payload = await asyncify(json.loads)(raw)
            record = DailyRecord.model_validate(payload[RECORD_CACHE_KEY])
            fetched_at = float(payload[RECORD_CACHE_TIME_KEY])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            warning(
                LogRecord(
                    event=LogEvent.RECORD_CACHE_EVENT.value,
                    message="Discarding corrupt cached record",
                ),
                exc=e,
            )
            await self._discard_durable()
            return None

        return RecordCacheEntry(record=record, fetched_at=fetched_at)

    async def _write_durable(self, entry: RecordCacheEntry) -> None:
        payload = {
            RECORD_CACHE_KEY: entry.record.to_wire(),
            RECORD_CACHE_TIME_KEY: entry.fetched_at,
        }
        content = await asyncify(json.dumps)(payload, ensure_ascii=False)

        await self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        await tmp_path.write_text(content, encoding="utf-8")
        await tmp_path.replace(self._path)

    async def _discard_durable(self) -> None:
        try:
            await self._path.unlink(missing_ok=True)
        except OSError as e:
            warning(
                LogRecord(
                    event=LogEvent.RECORD_CACHE_EVENT.value,
                    message="Failed to remove cached record",
                ),
                exc=e,
            )
