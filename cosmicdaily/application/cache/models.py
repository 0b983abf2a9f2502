"""Data models for the cache module."""

import time
from dataclasses import dataclass, field


@dataclass
class CachedBlob:
    """Represents a cached binary payload with access metadata."""

    data: bytes
    key: str
    timestamp: float = field(default_factory=time.time)
    access_count: int = 0
    last_accessed: float = field(default_factory=time.time)

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def update_access(self):
        """Update access count and timestamp."""
        self.access_count += 1
        self.last_accessed = time.time()
