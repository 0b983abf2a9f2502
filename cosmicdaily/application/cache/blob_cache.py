"""Two-tier cache for image bytes keyed by source URL."""

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import quote

import aiofiles  # type: ignore[import-untyped]
import anyio
from anyio.abc import TaskGroup
from asyncer import asyncify

from .memory_manager import CacheMemoryManager
from .models import CachedBlob
from .statistics import CacheStatistics
from ...constants import (
    BLOB_CACHE_DIR_NAME,
    BLOB_FILE_NAME_MAX_LENGTH,
    BLOB_FILE_SUFFIX,
    DEFAULT_BLOB_CACHE_MAX_ENTRIES,
    DEFAULT_BLOB_CACHE_MAX_MEMORY_MB,
)
from ...logging import debug, info, warning, LogRecord, LogEvent


def blob_file_name(key: str) -> str:
    """Map a source URL to a file name.

    Every character outside ``[A-Za-z0-9_~-]`` is percent-escaped, so the
    mapping is injective. Names longer than the filesystem comfortably allows
    keep a readable prefix and end with the key's SHA-256 digest.
    """
    escaped = quote(key, safe="").replace(".", "%2E")
    if len(escaped) > BLOB_FILE_NAME_MAX_LENGTH:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        prefix = escaped[: BLOB_FILE_NAME_MAX_LENGTH - len(digest) - 1]
        escaped = f"{prefix}_{digest}"
    return escaped + BLOB_FILE_SUFFIX


class BlobCache:
    """
    Image cache with a bounded memory tier and an unbounded disk tier.

    Writes land in memory immediately. When the cache is running
    (``async with blob_cache``) disk writes are scheduled in its task group
    and the caller does not wait for them; otherwise they are awaited inline.
    All disk I/O goes through one lock so a write to a key has fully landed
    before a later read of that key touches the file.
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        max_entries: int = DEFAULT_BLOB_CACHE_MAX_ENTRIES,
        max_memory_mb: int = DEFAULT_BLOB_CACHE_MAX_MEMORY_MB,
        max_memory_bytes: Optional[int] = None,
    ):
        self._directory = Path(cache_dir) / BLOB_CACHE_DIR_NAME
        self._memory_manager = CacheMemoryManager(
            max_memory_mb=max_memory_mb,
            max_size=max_entries,
            max_memory_bytes=max_memory_bytes,
        )
        self._statistics = CacheStatistics()
        self._disk_lock = anyio.Lock()
        self._pending: Dict[str, bytes] = {}
        self._pending_writes = 0
        self._drained: Optional[anyio.Event] = None
        self._task_group: Optional[TaskGroup] = None

    async def __aenter__(self) -> "BlobCache":
        task_group = anyio.create_task_group()
        await task_group.__aenter__()
        self._task_group = task_group
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        task_group, self._task_group = self._task_group, None
        if task_group is not None:
            # errors raised by the caller propagate unwrapped
            await task_group.__aexit__(None, None, None)

    @property
    def directory(self) -> Path:
        return self._directory

    def file_path(self, key: str) -> Path:
        return self._directory / blob_file_name(key)

    async def put(self, key: str, data: bytes) -> None:
        """
        Store ``data`` under ``key``.

        Args:
            key: Source URL of the payload
            data: Raw bytes
        """
        data = bytes(data)
        self._memory_manager.add(key, CachedBlob(data=data, key=key))

        if self._task_group is None:
            await self._persist(key, data)
            return

        self._pending[key] = data
        if self._pending_writes == 0:
            self._drained = anyio.Event()
        self._pending_writes += 1
        self._task_group.start_soon(self._persist_scheduled, key, data)

    async def get(self, key: str) -> Optional[bytes]:
        """
        Look up ``key`` in memory, then disk.

        Disk hits are promoted into memory. Read failures count as misses.
        """
        blob = self._memory_manager.get(key)
        if blob is not None:
            self._statistics.record_memory_hit()
            return blob.data

        data = self._pending.get(key)
        if data is None:
            data = await self._read_file(key)
        if data is None:
            self._statistics.record_miss()
            return None

        self._statistics.record_disk_hit()
        self._memory_manager.add(key, CachedBlob(data=data, key=key))
        return data

    def get_cached(self, key: str) -> Optional[bytes]:
        """Memory-tier lookup that never touches the disk."""
        blob = self._memory_manager.get(key)
        if blob is None:
            return None
        self._statistics.record_memory_hit()
        return blob.data

    def in_memory(self, key: str) -> bool:
        return self._memory_manager.contains(key)

    async def flush(self) -> None:
        """Wait until every scheduled disk write has landed."""
        if self._pending_writes and self._drained is not None:
            await self._drained.wait()

    async def clear(self) -> int:
        """
        Drop all memory entries and delete every file in the cache directory.

        Returns:
            Number of files removed from disk
        """
        await self.flush()
        async with self._disk_lock:
            # reads served from pending writes during flush may have refilled memory
            self._memory_manager.clear()
            self._pending.clear()
            removed = await asyncify(self._remove_all_files)()

        info(
            LogRecord(
                event=LogEvent.CACHE_CLEARED.value,
                message=f"Image cache cleared - removed {removed} files",
                data={"removed_files": removed},
            )
        )
        return removed

    async def disk_usage_bytes(self) -> int:
        return await asyncify(self._directory_size)()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics including the memory tier."""
        stats = self._statistics.get_stats()
        stats.update(self._memory_manager.get_stats())
        stats["pending_writes"] = self._pending_writes
        return stats

    async def _persist_scheduled(self, key: str, data: bytes) -> None:
        try:
            await self._persist(key, data)
        finally:
            if self._pending.get(key) is data:
                del self._pending[key]
            self._pending_writes -= 1
            if self._pending_writes == 0 and self._drained is not None:
                self._drained.set()

    async def _persist(self, key: str, data: bytes) -> None:
        try:
            async with self._disk_lock:
                await self._write_file(key, data)
        except OSError as e:
            self._statistics.record_disk_failure()
            warning(
                LogRecord(
                    event=LogEvent.BLOB_CACHE_EVENT.value,
                    message="Failed to persist blob",
                    key=key,
                ),
                exc=e,
            )
            return

        self._statistics.record_disk_write()
        debug(
            LogRecord(
                event=LogEvent.BLOB_CACHE_EVENT.value,
                message="Blob persisted",
                key=key,
                data={"size_bytes": len(data)},
            )
        )

    async def _write_file(self, key: str, data: bytes) -> None:
        await anyio.Path(self._directory).mkdir(parents=True, exist_ok=True)
        path = self.file_path(key)
        tmp_path = path.with_name(path.name + ".tmp")
        async with aiofiles.open(tmp_path, "wb") as f:
            await f.write(data)
        await anyio.Path(tmp_path).replace(path)

    async def _read_file(self, key: str) -> Optional[bytes]:
        path = self.file_path(key)
        try:
            async with self._disk_lock:
                async with aiofiles.open(path, "rb") as f:
                    return await f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            self._statistics.record_disk_failure()
            warning(
                LogRecord(
                    event=LogEvent.BLOB_CACHE_EVENT.value,
                    message="Failed to read cached blob",
                    key=key,
                ),
                exc=e,
            )
            return None

    def _remove_all_files(self) -> int:
        if not self._directory.is_dir():
            return 0
        removed = 0
        for path in self._directory.iterdir():
            if not path.is_file():
                continue
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                self._statistics.record_disk_failure()
                warning(
                    LogRecord(
                        event=LogEvent.BLOB_CACHE_EVENT.value,
                        message="Failed to remove cached blob file",
                        key=path.name,
                    ),
                    exc=e,
                )
        return removed

    def _directory_size(self) -> int:
        if not self._directory.is_dir():
            return 0
        total = 0
        for entry in os.scandir(self._directory):
            try:
                if entry.is_file():
                    total += entry.stat().st_size
            except OSError:
                continue
        return total
