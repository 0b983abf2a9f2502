from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices, field_validator
from typing import Optional, List, Union, Any

from urllib.parse import urlparse

from cosmicdaily.constants import (
    DEFAULT_APOD_BASE_URL,
    DEFAULT_NASA_API_KEY,
    DEFAULT_TRANSLATE_ENDPOINT,
    DEFAULT_ALLOWED_BASE_URL_HOSTS,
    DEFAULT_CACHE_DIR,
    DEFAULT_BLOB_CACHE_MAX_ENTRIES,
    DEFAULT_BLOB_CACHE_MAX_MEMORY_MB,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_READ_TIMEOUT_SECONDS,
    DEFAULT_WRITE_TIMEOUT_SECONDS,
    DEFAULT_POOL_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    HTTP_MAX_CONNECTIONS,
    HTTP_MAX_KEEPALIVE_CONNECTIONS,
    HTTP_KEEPALIVE_EXPIRY_SECONDS,
    DEFAULT_LOG_FILE_PATH,
    DEFAULT_ERROR_LOG_FILE_PATH,
)
from cosmicdaily.domain.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
        populate_by_name=True,
    )

    nasa_api_key: str = Field(
        default=DEFAULT_NASA_API_KEY,
        validation_alias=AliasChoices("NASA_API_KEY"),
    )
    apod_base_url: str = Field(
        default=DEFAULT_APOD_BASE_URL,
        validation_alias=AliasChoices("APOD_BASE_URL"),
    )
    translate_endpoint: str = Field(
        default=DEFAULT_TRANSLATE_ENDPOINT,
        validation_alias=AliasChoices("TRANSLATE_ENDPOINT"),
    )

    app_name: str = "CosmicDaily"
    app_version: str = "1.0.0"
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_file_path: Optional[str] = Field(
        default=DEFAULT_LOG_FILE_PATH, validation_alias=AliasChoices("LOG_FILE_PATH")
    )
    error_log_file_path: Optional[str] = Field(
        default=DEFAULT_ERROR_LOG_FILE_PATH,
        validation_alias=AliasChoices("ERROR_LOG_FILE_PATH"),
    )
    log_pretty_console: bool = Field(
        default=False, validation_alias=AliasChoices("LOG_PRETTY_CONSOLE")
    )

    redact_log_fields: Union[List[str], str] = Field(
        default_factory=lambda: ["nasa_api_key", "api_key", "authorization"],
        validation_alias=AliasChoices("REDACT_LOG_FIELDS"),
    )

    restrict_base_url: bool = Field(
        default=False, validation_alias=AliasChoices("RESTRICT_BASE_URL")
    )
    allowed_base_url_hosts: Union[List[str], str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_BASE_URL_HOSTS),
        validation_alias=AliasChoices("ALLOWED_BASE_URL_HOSTS"),
    )

    # Cache configuration
    cache_dir: str = Field(
        default=DEFAULT_CACHE_DIR, validation_alias=AliasChoices("CACHE_DIR")
    )
    blob_cache_max_entries: int = Field(
        default=DEFAULT_BLOB_CACHE_MAX_ENTRIES,
        validation_alias=AliasChoices("BLOB_CACHE_MAX_ENTRIES"),
    )
    blob_cache_max_memory_mb: int = Field(
        default=DEFAULT_BLOB_CACHE_MAX_MEMORY_MB,
        validation_alias=AliasChoices("BLOB_CACHE_MAX_MEMORY_MB"),
    )

    # Connection pool configuration
    pool_max_keepalive_connections: int = Field(
        default=HTTP_MAX_KEEPALIVE_CONNECTIONS,
        validation_alias=AliasChoices("POOL_MAX_KEEPALIVE_CONNECTIONS"),
    )
    pool_max_connections: int = Field(
        default=HTTP_MAX_CONNECTIONS, validation_alias=AliasChoices("POOL_MAX_CONNECTIONS")
    )
    pool_keepalive_expiry: int = Field(
        default=HTTP_KEEPALIVE_EXPIRY_SECONDS,
        validation_alias=AliasChoices("POOL_KEEPALIVE_EXPIRY"),
    )

    # HTTP timeout configuration
    http_connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT_SECONDS,
        validation_alias=AliasChoices("HTTP_CONNECT_TIMEOUT"),
    )
    http_read_timeout: float = Field(
        default=DEFAULT_READ_TIMEOUT_SECONDS,
        validation_alias=AliasChoices("HTTP_READ_TIMEOUT"),
    )
    http_write_timeout: float = Field(
        default=DEFAULT_WRITE_TIMEOUT_SECONDS,
        validation_alias=AliasChoices("HTTP_WRITE_TIMEOUT"),
    )
    http_pool_timeout: float = Field(
        default=DEFAULT_POOL_TIMEOUT_SECONDS,
        validation_alias=AliasChoices("HTTP_POOL_TIMEOUT"),
    )

    @field_validator(
        "allowed_base_url_hosts",
        "redact_log_fields",
    )
    @classmethod
    def parse_comma_separated(cls, v: Union[List[str], str]) -> List[str]:
        """Parse comma-separated string values into lists for configuration fields.

        Handles both string inputs (splitting by commas) and already-list inputs.
        Empty strings are converted to empty lists.

        Args:
            v: Input value which can be a string or list

        Returns:
            List of stripped, non-empty items
        """
        if isinstance(v, str):
            if v.strip() == "":
                return []
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings object and perform validation.

        Args:
            **kwargs: Keyword arguments for settings initialization

        Raises:
            ConfigurationError: If required settings are missing or invalid
        """
        super().__init__(**kwargs)
        self._validate_required()
        self._validate_cache_bounds()
        self._validate_security()

    def _validate_required(self) -> None:
        """Validate that the API key and endpoints are configured."""
        if not (self.nasa_api_key and self.nasa_api_key.strip()):
            raise ConfigurationError(
                "API key is required. Set NASA_API_KEY in your environment or .env "
                f"(use {DEFAULT_NASA_API_KEY} for the shared demo key).",
                config_key="NASA_API_KEY",
            )

        for key, value in (
            ("APOD_BASE_URL", self.apod_base_url),
            ("TRANSLATE_ENDPOINT", self.translate_endpoint),
        ):
            parsed = urlparse(value or "")
            if parsed.scheme.lower() not in ("http", "https") or not parsed.hostname:
                raise ConfigurationError(f"{key} is not a valid URL.", config_key=key)

    def _validate_cache_bounds(self) -> None:
        """Validate memory tier bounds for the blob cache."""
        if self.blob_cache_max_entries < 1:
            raise ConfigurationError(
                "BLOB_CACHE_MAX_ENTRIES must be at least 1.",
                config_key="BLOB_CACHE_MAX_ENTRIES",
            )
        if self.blob_cache_max_memory_mb < 1:
            raise ConfigurationError(
                "BLOB_CACHE_MAX_MEMORY_MB must be at least 1.",
                config_key="BLOB_CACHE_MAX_MEMORY_MB",
            )

    def _validate_security(self) -> None:
        """Validates the APOD base URL when RESTRICT_BASE_URL is enabled.

        Checks that APOD_BASE_URL uses HTTPS and the host is in ALLOWED_BASE_URL_HOSTS.
        """
        if not self.restrict_base_url:
            return
        errors = []
        parsed = urlparse(self.apod_base_url)
        if parsed.scheme.lower() != "https":
            errors.append("APOD_BASE_URL must use https when RESTRICT_BASE_URL is enabled.")
        host = parsed.hostname or ""
        if host not in set(self.allowed_base_url_hosts or []):
            errors.append("APOD_BASE_URL host is not in ALLOWED_BASE_URL_HOSTS.")
        if errors:
            raise ConfigurationError("\n".join(errors), config_key="APOD_BASE_URL")
