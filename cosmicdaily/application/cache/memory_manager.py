"""Memory management for the blob cache with LRU eviction."""

import threading
from typing import Any, Dict, List, Optional
from collections import OrderedDict

from .models import CachedBlob
from ...constants import DEFAULT_BLOB_CACHE_MAX_ENTRIES, DEFAULT_BLOB_CACHE_MAX_MEMORY_MB
from ...logging import debug, LogRecord, LogEvent


class CacheMemoryManager:
    """
    Manages the memory tier of the blob cache.

    Implements LRU eviction bounded by entry count and total payload size.
    Operations are synchronous and guarded by a thread lock so that the
    memory fast path can be served without awaiting.
    """

    def __init__(
        self,
        max_memory_mb: int = DEFAULT_BLOB_CACHE_MAX_MEMORY_MB,
        max_size: int = DEFAULT_BLOB_CACHE_MAX_ENTRIES,
        max_memory_bytes: Optional[int] = None,
    ):
        """Initialize memory manager.

        ``max_memory_bytes`` overrides ``max_memory_mb`` when given.

        Raises:
            ValueError: If either bound is below one
        """
        self.max_memory_bytes = (
            max_memory_bytes
            if max_memory_bytes is not None
            else max_memory_mb * 1024 * 1024
        )
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        if self.max_memory_bytes < 1:
            raise ValueError(
                f"max_memory_bytes must be at least 1, got {self.max_memory_bytes}"
            )
        self.max_size = max_size
        self.memory_usage_bytes = 0
        self.cache: OrderedDict[str, CachedBlob] = OrderedDict()
        self.lock = threading.Lock()
        self.eviction_count = 0

    def add(self, key: str, blob: CachedBlob) -> bool:
        """
        Add a blob to the memory tier, evicting LRU entries to make room.

        Args:
            key: Cache key (source URL)
            blob: Payload to add

        Returns:
            True if added, False if the blob alone exceeds the memory bound
        """
        with self.lock:
            if blob.size_bytes > self.max_memory_bytes:
                debug(
                    LogRecord(
                        event=LogEvent.BLOB_CACHE_EVENT.value,
                        message="Blob too large for memory tier",
                        key=key,
                        data={
                            "size_bytes": blob.size_bytes,
                            "max_memory_bytes": self.max_memory_bytes,
                        },
                    )
                )
                self._discard(key)
                return False

            self._discard(key)
            self._evict_if_needed(blob.size_bytes)

            self.cache[key] = blob
            self.memory_usage_bytes += blob.size_bytes
            return True

    def get(self, key: str) -> Optional[CachedBlob]:
        """
        Get a blob and mark it most recently used.

        Args:
            key: Cache key

        Returns:
            Cached blob if found, None otherwise
        """
        with self.lock:
            blob = self.cache.get(key)
            if blob is None:
                return None
            self.cache.move_to_end(key)
            blob.update_access()
            return blob

    def contains(self, key: str) -> bool:
        with self.lock:
            return key in self.cache

    def remove(self, key: str) -> Optional[CachedBlob]:
        """Remove a blob from the memory tier."""
        with self.lock:
            return self._discard(key)

    def _discard(self, key: str) -> Optional[CachedBlob]:
        blob = self.cache.pop(key, None)
        if blob is not None:
            self.memory_usage_bytes -= blob.size_bytes
        return blob

    def _evict_if_needed(self, required_bytes: int):
        """
        Evict entries if needed to make room for a new entry.

        Args:
            required_bytes: Bytes needed for new entry
        """
        while self.cache and len(self.cache) >= self.max_size:
            self._evict_lru()

        while self.memory_usage_bytes + required_bytes > self.max_memory_bytes:
            if not self.cache:
                break
            self._evict_lru()

    def _evict_lru(self):
        """Evict the least recently used entry."""
        if not self.cache:
            return

        key, blob = self.cache.popitem(last=False)
        self.memory_usage_bytes -= blob.size_bytes
        self.eviction_count += 1

        debug(
            LogRecord(
                event=LogEvent.BLOB_CACHE_EVENT.value,
                message="Evicted LRU blob from memory",
                key=key,
                data={
                    "size_bytes": blob.size_bytes,
                    "access_count": blob.access_count,
                },
            )
        )

    def clear(self):
        """Clear all entries from the memory tier."""
        with self.lock:
            self.cache.clear()
            self.memory_usage_bytes = 0

    def get_memory_usage_mb(self) -> float:
        """Get current memory usage in MB."""
        return self.memory_usage_bytes / (1024 * 1024)

    def get_size(self) -> int:
        """Get number of cached entries."""
        return len(self.cache)

    def get_keys(self) -> List[str]:
        """Get all cache keys, least recently used first."""
        with self.lock:
            return list(self.cache.keys())

    def get_stats(self) -> Dict[str, Any]:
        """Get memory manager statistics."""
        return {
            "cache_size": len(self.cache),
            "memory_usage_mb": round(self.get_memory_usage_mb(), 2),
            "max_memory_mb": self.max_memory_bytes / (1024 * 1024),
            "max_size": self.max_size,
            "eviction_count": self.eviction_count,
        }
