"""Composition root wiring configuration, caches and upstream clients."""

import time
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Any, Callable, List, Optional

import httpx

from ..application.cache import BlobCache, RecordCache, TranslationCache
from ..application.fetch_orchestrator import FetchOrchestrator, Listener
from ..config import Settings
from ..constants import SUPPORTED_LANGUAGES
from ..domain.models import DailyRecord, FetchResult, Language
from ..infrastructure.providers.apod_client import ApodClient
from ..infrastructure.providers.http_client_factory import HttpClientFactory
from ..infrastructure.providers.translation_client import TranslationClient
from ..logging import info, LogRecord, LogEvent


class CosmicDailyApp:
    """
    Owns one instance of each cache and client and exposes the operations
    presentation code calls.

    Use as an async context manager; leaving it waits for background work,
    drains pending image writes and closes the HTTP client.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self._owns_http_client = http_client is None
        self._http_client = http_client or HttpClientFactory.create_client(settings)

        cache_dir = Path(settings.cache_dir).expanduser()
        self.record_cache = RecordCache(cache_dir, clock=clock)
        self.blob_cache = BlobCache(
            cache_dir,
            max_entries=settings.blob_cache_max_entries,
            max_memory_mb=settings.blob_cache_max_memory_mb,
        )
        self.apod_client = ApodClient(
            self._http_client, settings.nasa_api_key, settings.apod_base_url
        )
        self.translation_client = TranslationClient(
            self._http_client, settings.translate_endpoint
        )
        self.translation_cache = TranslationCache(self.translation_client.translate)
        self.orchestrator = FetchOrchestrator(
            self.record_cache, self.blob_cache, self.apod_client, clock=clock
        )
        self._exit_stack: Optional[AsyncExitStack] = None

    async def __aenter__(self) -> "CosmicDailyApp":
        stack = AsyncExitStack()
        await stack.__aenter__()
        try:
            if self._owns_http_client:
                stack.push_async_callback(
                    HttpClientFactory.close_client, self._http_client
                )
            await stack.enter_async_context(self.blob_cache)
            await stack.enter_async_context(self.orchestrator)
        except BaseException:
            await stack.aclose()
            raise
        self._exit_stack = stack

        info(
            LogRecord(
                event=LogEvent.CONFIGURATION.value,
                message=f"{self.settings.app_name} {self.settings.app_version} started",
                data={"cache_dir": self.settings.cache_dir},
            )
        )
        return self

    async def __aexit__(self, *exc_info: Any) -> Optional[bool]:
        stack, self._exit_stack = self._exit_stack, None
        if stack is None:
            return None
        return await stack.__aexit__(*exc_info)

    async def fetch_record(self, force_refresh: bool = False) -> FetchResult:
        return await self.orchestrator.fetch_record(force_refresh=force_refresh)

    def get_cached_image_bytes(self, url: str) -> Optional[bytes]:
        return self.orchestrator.get_cached_image_bytes(url)

    async def load_image_bytes(self, url: str) -> bytes:
        return await self.orchestrator.load_image_bytes(url)

    async def clear_all_caches(self) -> int:
        return await self.orchestrator.clear_all_caches()

    async def translate(self, text: str, target_language: str) -> str:
        return await self.translation_cache.translate(text, target_language)

    def clear_translations(self) -> int:
        return self.translation_cache.clear()

    async def fetch_recent(self, count: int) -> List[DailyRecord]:
        return await self.apod_client.fetch_recent(count)

    async def fetch_for_date(self, date: str) -> DailyRecord:
        return await self.apod_client.fetch_for_date(date)

    async def cache_size_bytes(self) -> int:
        """Bytes used on disk by the record file and cached images."""
        return await self.record_cache.size_bytes() + await self.blob_cache.disk_usage_bytes()

    @staticmethod
    def supported_languages() -> List[Language]:
        return [
            Language(code=code, name=name, english_name=english)
            for code, name, english in SUPPORTED_LANGUAGES
        ]

    def add_listener(self, listener: Listener) -> None:
        self.orchestrator.add_listener(listener)

    def remove_listener(self, listener: Listener) -> None:
        self.orchestrator.remove_listener(listener)


def create_app(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
) -> CosmicDailyApp:
    """Build the application; enter it with ``async with`` before use."""
    return CosmicDailyApp(settings, http_client=http_client, clock=clock)
