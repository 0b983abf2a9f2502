"""Custom exception hierarchy for Cosmic Daily.

This module defines specific exception types for the failure modes of the
fetch-and-cache layer, replacing generic Exception handling with more
granular error types.
"""

from typing import Optional, Dict, Any


class CosmicDailyException(Exception):
    """Base exception for all Cosmic Daily specific exceptions."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(CosmicDailyException):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.config_key = config_key


class UpstreamError(CosmicDailyException):
    """Raised when a call to the APOD API or an image host fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.url = url


class UpstreamTimeoutError(UpstreamError):
    """Raised when an upstream call times out."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, None, url, details)


class RateLimitError(UpstreamError):
    """Raised when the API key's rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, 429, url, details)
        self.retry_after = retry_after


class AuthenticationError(UpstreamError):
    """Raised when the API rejects the configured key."""

    def __init__(
        self,
        message: str,
        status_code: int = 403,
        url: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, status_code, url, details)


class RecordDecodeError(CosmicDailyException):
    """Raised when an APOD payload is malformed or does not match the schema."""

    def __init__(
        self,
        message: str,
        payload_excerpt: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.payload_excerpt = payload_excerpt


class RecordUnavailableError(CosmicDailyException):
    """Raised when neither the network nor the cache can supply a record."""

    pass


class CacheError(CosmicDailyException):
    """Base exception for cache storage failures.

    Never propagated past the cache layer; converted to a miss there.
    """

    pass


class TranslationError(CosmicDailyException):
    """Raised when translating text fails."""

    def __init__(
        self,
        message: str,
        target_language: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.target_language = target_language
        self.status_code = status_code


class TranslationParseError(TranslationError):
    """Raised when the translation response cannot be parsed."""

    pass


class EmptyTranslationError(TranslationError):
    """Raised when the translation service returns no text."""

    pass
