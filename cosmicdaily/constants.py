"""Constants module for Cosmic Daily.

Contains the constant values used throughout the package including API
endpoints, cache layout keys, cache bounds and the translation language list.
"""

from typing import Tuple, FrozenSet

# ============================================================================
# API/Protocol Constants
# ============================================================================

DEFAULT_APOD_BASE_URL = "https://api.nasa.gov/planetary/apod"
DEFAULT_NASA_API_KEY = "DEMO_KEY"
DEFAULT_TRANSLATE_ENDPOINT = "https://translate.googleapis.com/translate_a/single"

# Allowed hosts for the APOD base URL
DEFAULT_ALLOWED_BASE_URL_HOSTS = ["api.nasa.gov"]

# Number of records requested by the batch endpoint
DEFAULT_RECENT_COUNT = 7
MAX_RECENT_COUNT = 100

APOD_DATE_FORMAT = "%Y-%m-%d"

# ============================================================================
# Cache Configuration Constants
# ============================================================================

# Record cache (single slot, current day's record)
RECORD_CACHE_TTL_SECONDS = 3600  # Validity of the cached daily record (1 hour)
RECORD_CACHE_FILE_NAME = "record_cache.json"
RECORD_CACHE_KEY = "CachedAPOD"
RECORD_CACHE_TIME_KEY = "CachedAPODTime"

# Blob cache (image bytes keyed by source URL)
DEFAULT_BLOB_CACHE_MAX_ENTRIES = 50  # Maximum images held in memory
DEFAULT_BLOB_CACHE_MAX_MEMORY_MB = 100  # Maximum memory usage in MB
BLOB_CACHE_DIR_NAME = "CachedImages"
BLOB_FILE_SUFFIX = ".jpg"
BLOB_FILE_NAME_MAX_LENGTH = 200  # Leaves room for suffix and temp markers

DEFAULT_CACHE_DIR = ".cosmicdaily/cache"

# Single-flight key for the daily record
TODAY_RECORD_FLIGHT_KEY = "today"

# ============================================================================
# HTTP/Network Configuration Constants
# ============================================================================

HTTP_MAX_CONNECTIONS = 20
HTTP_MAX_KEEPALIVE_CONNECTIONS = 10
HTTP_KEEPALIVE_EXPIRY_SECONDS = 30

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_READ_TIMEOUT_SECONDS = 30.0
DEFAULT_WRITE_TIMEOUT_SECONDS = 10.0
DEFAULT_POOL_TIMEOUT_SECONDS = 10.0

DEFAULT_USER_AGENT = "cosmicdaily/1.0"

# ============================================================================
# Logging Constants
# ============================================================================

DEFAULT_LOG_FILE_PATH = "log.jsonl"
DEFAULT_ERROR_LOG_FILE_PATH = "error.jsonl"
LOG_STRING_MAX_LENGTH = 5000  # Maximum string length before truncation

# ============================================================================
# Translation Constants
# ============================================================================

# (code, native name, english name)
SUPPORTED_LANGUAGES: Tuple[Tuple[str, str, str], ...] = (
    ("tr", "Türkçe", "Turkish"),
    ("es", "Español", "Spanish"),
    ("fr", "Français", "French"),
    ("de", "Deutsch", "German"),
    ("it", "Italiano", "Italian"),
    ("pt", "Português", "Portuguese"),
    ("ru", "Русский", "Russian"),
    ("ja", "日本語", "Japanese"),
    ("zh", "中文", "Chinese"),
    ("ko", "한국어", "Korean"),
    ("hi", "हिन्दी", "Hindi"),
)

SUPPORTED_LANGUAGE_CODES: FrozenSet[str] = frozenset(
    code for code, _, _ in SUPPORTED_LANGUAGES
)

# ============================================================================
# Error Messages
# ============================================================================

ERROR_RECORD_UNAVAILABLE = "No astronomy record available: network failed and cache is empty"
ERROR_UPSTREAM_TIMEOUT = "Upstream service timeout"
ERROR_RECORD_DECODE = "Failed to decode astronomy record"
ERROR_TRANSLATION_EMPTY = "Translation returned empty result"
ERROR_TRANSLATION_PARSE = "Failed to parse translation response"
ERROR_TRANSLATION_RESPONSE = "Invalid response from translation service"
