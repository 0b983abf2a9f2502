"""Cache statistics tracking and reporting."""

from typing import Dict, Any
import time


class CacheStatistics:
    """Tracks and manages cache performance statistics."""

    def __init__(self):
        """Initialize cache statistics."""
        self.reset()

    def record_memory_hit(self):
        """Record a hit served from memory."""
        self.memory_hits += 1

    def record_disk_hit(self):
        """Record a hit served from the durable tier."""
        self.disk_hits += 1

    def record_miss(self):
        """Record a cache miss."""
        self.cache_misses += 1

    def record_disk_write(self):
        self.disk_writes += 1

    def record_disk_failure(self):
        """Record a durable read or write that failed and was absorbed."""
        self.disk_failures += 1

    @property
    def cache_hits(self) -> int:
        return self.memory_hits + self.disk_hits

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return self.cache_hits / total

    @property
    def uptime_seconds(self) -> float:
        """Get cache uptime in seconds."""
        return time.time() - self.start_time

    def get_stats(self) -> Dict[str, Any]:
        """Get all statistics as a dictionary."""
        return {
            "cache_hits": self.cache_hits,
            "memory_hits": self.memory_hits,
            "disk_hits": self.disk_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": round(self.hit_rate, 3),
            "disk_writes": self.disk_writes,
            "disk_failures": self.disk_failures,
            "uptime_seconds": round(self.uptime_seconds, 1),
        }

    def reset(self):
        """Reset all statistics."""
        self.memory_hits = 0
        self.disk_hits = 0
        self.cache_misses = 0
        self.disk_writes = 0
        self.disk_failures = 0
        self.start_time = time.time()
