"""Cache module for daily records, image blobs and translations."""

from .record_cache import RecordCache
from .blob_cache import BlobCache, blob_file_name
from .translation_cache import TranslationCache
from .models import CachedBlob
from .statistics import CacheStatistics

__all__ = [
    "RecordCache",
    "BlobCache",
    "blob_file_name",
    "TranslationCache",
    "CachedBlob",
    "CacheStatistics",
]
