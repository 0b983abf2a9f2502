"""Stale-while-revalidate fetching of the daily record."""

import time
from typing import Any, Awaitable, Callable, List, Optional, Protocol

import anyio
from anyio.abc import TaskGroup

from .cache import BlobCache, RecordCache
from .single_flight import SingleFlight
from ..constants import ERROR_RECORD_UNAVAILABLE, TODAY_RECORD_FLIGHT_KEY
from ..domain.exceptions import (
    CosmicDailyException,
    RecordDecodeError,
    RecordUnavailableError,
    UpstreamError,
)
from ..domain.models import DailyRecord, FetchResult, RecordCacheEntry
from ..enums import FetchSource, FetchState
from ..logging import debug, error, info, warning, LogRecord, LogEvent

Listener = Callable[[FetchResult], None]


class RecordSource(Protocol):
    async def fetch_today(self) -> DailyRecord: ...

    async def fetch_bytes(self, url: str) -> bytes: ...


class FetchOrchestrator:
    """
    Serves the daily record from cache and keeps it fresh.

    A cached entry, valid or stale, is returned immediately; a stale one also
    triggers a background refresh. Without a cached entry (or when forced)
    the record is fetched from the network. A failed network fetch falls back
    to whatever the cache holds, and only raises
    :class:`RecordUnavailableError` when there is nothing cached at all.

    Background refreshes and image pre-fetches run in the orchestrator's task
    group, so it must be entered with ``async with`` before use.
    """

    def __init__(
        self,
        record_cache: RecordCache,
        blob_cache: BlobCache,
        source: RecordSource,
        clock: Callable[[], float] = time.time,
    ):
        self._record_cache = record_cache
        self._blob_cache = blob_cache
        self._source = source
        self._clock = clock
        self._flights = SingleFlight()
        self._listeners: List[Listener] = []
        self._task_group: Optional[TaskGroup] = None
        self.state = FetchState.Idle
        self.current: Optional[FetchResult] = None

    async def __aenter__(self) -> "FetchOrchestrator":
        task_group = anyio.create_task_group()
        await task_group.__aenter__()
        self._task_group = task_group
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        task_group, self._task_group = self._task_group, None
        if task_group is not None:
            # errors raised by the caller propagate unwrapped
            await task_group.__aexit__(None, None, None)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def fetch_record(self, force_refresh: bool = False) -> FetchResult:
        """
        Get the daily record.

        Args:
            force_refresh: Skip the cache and go to the network

        Returns:
            The surfaced result, from cache or network

        Raises:
            RecordUnavailableError: Network failed and nothing is cached
        """
        info(
            LogRecord(
                event=LogEvent.FETCH_START.value,
                message="Fetching daily record",
                data={"force_refresh": force_refresh},
            )
        )

        if not force_refresh:
            entry = await self._record_cache.get()
            if entry is not None:
                valid = await self._record_cache.is_valid()
                result = FetchResult(
                    record=entry.record,
                    source=FetchSource.Cache,
                    state=FetchState.ServingCache,
                    fetched_at=entry.fetched_at,
                    is_stale=not valid,
                )
                self._surface(result)
                if not valid:
                    self._spawn(self._background_refresh)
                return result

        return await self._refresh()

    async def load_image_bytes(self, url: str) -> bytes:
        """
        Get image bytes from the blob cache, downloading them on a miss.

        Raises:
            UpstreamError: The download failed
        """
        data = await self._blob_cache.get(url)
        if data is not None:
            return data
        return await self._flights.do(f"image:{url}", self._download_image, url)

    def get_cached_image_bytes(self, url: str) -> Optional[bytes]:
        return self._blob_cache.get_cached(url)

    async def clear_all_caches(self) -> int:
        """Clear the record and blob caches; returns the number of blob files removed."""
        await self._record_cache.clear()
        removed = await self._blob_cache.clear()
        self.current = None
        self.state = FetchState.Idle
        info(
            LogRecord(
                event=LogEvent.CACHE_CLEARED.value,
                message="All caches cleared",
                data={"removed_files": removed},
            )
        )
        return removed

    async def _refresh(self) -> FetchResult:
        self.state = FetchState.Refreshing
        try:
            entry: RecordCacheEntry = await self._flights.do(
                TODAY_RECORD_FLIGHT_KEY, self._fetch_and_store
            )
        except (UpstreamError, RecordDecodeError) as e:
            return await self._fall_back_to_cache(e)

        result = FetchResult(
            record=entry.record,
            source=FetchSource.Network,
            state=FetchState.Idle,
            fetched_at=entry.fetched_at,
        )
        self._surface(result)
        info(
            LogRecord(
                event=LogEvent.FETCH_COMPLETED.value,
                message="Daily record fetched",
                key=entry.record.date,
                data={"media_type": entry.record.media_type},
            )
        )
        return result

    async def _fetch_and_store(self) -> RecordCacheEntry:
        record = await self._source.fetch_today()
        fetched_at = self._clock()
        entry = RecordCacheEntry(record=record, fetched_at=fetched_at)
        if not await self._record_cache.put(record, fetched_at=fetched_at):
            # a newer entry landed first; surface what the cache holds
            entry = await self._record_cache.get() or entry

        image_url = entry.record.image_url
        if image_url:
            self._spawn(self._prefetch_image, image_url)
        return entry

    async def _fall_back_to_cache(self, exc: CosmicDailyException) -> FetchResult:
        self.state = FetchState.Failed
        warning(
            LogRecord(
                event=LogEvent.FETCH_FAILURE.value,
                message="Network fetch of daily record failed",
            ),
            exc=exc,
        )

        entry = await self._record_cache.get()
        if entry is None:
            error(
                LogRecord(
                    event=LogEvent.FETCH_FAILURE.value,
                    message=ERROR_RECORD_UNAVAILABLE,
                ),
                exc=exc,
            )
            raise RecordUnavailableError(
                ERROR_RECORD_UNAVAILABLE, details={"cause": str(exc)}
            ) from exc

        result = FetchResult(
            record=entry.record,
            source=FetchSource.Cache,
            state=FetchState.Failed,
            fetched_at=entry.fetched_at,
            is_stale=not entry.is_valid(self._clock(), self._record_cache.ttl_seconds),
            offline=True,
            error=exc,
        )
        self._surface(result)
        info(
            LogRecord(
                event=LogEvent.FETCH_OFFLINE_FALLBACK.value,
                message="Serving cached record while offline",
                key=entry.record.date,
                data={"is_stale": result.is_stale},
            )
        )
        return result

    async def _background_refresh(self) -> None:
        info(
            LogRecord(
                event=LogEvent.BACKGROUND_REFRESH.value,
                message="Refreshing stale record in background",
            )
        )
        try:
            await self._refresh()
        except Exception as e:
            # nothing cached to fall back to, or the refresh itself broke
            warning(
                LogRecord(
                    event=LogEvent.BACKGROUND_REFRESH.value,
                    message="Background refresh failed",
                ),
                exc=e,
            )

    async def _prefetch_image(self, url: str) -> None:
        try:
            data = await self.load_image_bytes(url)
        except Exception as e:
            warning(
                LogRecord(
                    event=LogEvent.IMAGE_PREFETCH.value,
                    message="Image pre-fetch failed",
                    key=url,
                ),
                exc=e,
            )
            return

        debug(
            LogRecord(
                event=LogEvent.IMAGE_PREFETCH.value,
                message="Image pre-fetched",
                key=url,
                data={"size_bytes": len(data)},
            )
        )

    async def _download_image(self, url: str) -> bytes:
        data = await self._source.fetch_bytes(url)
        await self._blob_cache.put(url, data)
        return data

    def _surface(self, result: FetchResult) -> None:
        self.state = result.state
        self.current = result
        for listener in list(self._listeners):
            try:
                listener(result)
            except Exception as e:
                warning(
                    LogRecord(
                        event=LogEvent.FETCH_COMPLETED.value,
                        message="Fetch listener raised",
                        key=result.record.date,
                    ),
                    exc=e,
                )

    def _spawn(self, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        if self._task_group is None:
            raise RuntimeError(
                "FetchOrchestrator must be entered with 'async with' before use"
            )
        self._task_group.start_soon(func, *args)
