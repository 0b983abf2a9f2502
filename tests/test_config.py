"""Tests for settings loading and validation."""

import pytest

from cosmicdaily.config import Settings
from cosmicdaily.constants import DEFAULT_APOD_BASE_URL, DEFAULT_NASA_API_KEY
from cosmicdaily.domain.exceptions import ConfigurationError


def make_settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSettings:
    """Test Settings defaults, env loading and validation."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("NASA_API_KEY", raising=False)
        monkeypatch.delenv("BLOB_CACHE_MAX_ENTRIES", raising=False)
        monkeypatch.delenv("BLOB_CACHE_MAX_MEMORY_MB", raising=False)
        settings = make_settings()
        assert settings.nasa_api_key == DEFAULT_NASA_API_KEY
        assert settings.apod_base_url == DEFAULT_APOD_BASE_URL
        assert settings.blob_cache_max_entries == 50
        assert settings.blob_cache_max_memory_mb == 100

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("NASA_API_KEY", "env-key")
        monkeypatch.setenv("BLOB_CACHE_MAX_ENTRIES", "12")
        settings = make_settings()
        assert settings.nasa_api_key == "env-key"
        assert settings.blob_cache_max_entries == 12

    def test_blank_api_key_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            make_settings(nasa_api_key="   ")
        assert exc_info.value.config_key == "NASA_API_KEY"

    def test_invalid_base_url_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            make_settings(apod_base_url="not a url")
        assert exc_info.value.config_key == "APOD_BASE_URL"

    def test_invalid_translate_endpoint_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            make_settings(translate_endpoint="ftp://example.com/translate")
        assert exc_info.value.config_key == "TRANSLATE_ENDPOINT"

    def test_cache_bounds_must_be_positive(self):
        with pytest.raises(ConfigurationError):
            make_settings(blob_cache_max_entries=0)
        with pytest.raises(ConfigurationError):
            make_settings(blob_cache_max_memory_mb=0)

    def test_comma_separated_fields(self):
        settings = make_settings(
            redact_log_fields="api_key, authorization",
            allowed_base_url_hosts="",
        )
        assert settings.redact_log_fields == ["api_key", "authorization"]
        assert settings.allowed_base_url_hosts == []

    def test_restrict_base_url_requires_https(self):
        with pytest.raises(ConfigurationError):
            make_settings(
                restrict_base_url=True,
                apod_base_url="http://api.nasa.gov/planetary/apod",
            )

    def test_restrict_base_url_requires_allowed_host(self):
        with pytest.raises(ConfigurationError):
            make_settings(
                restrict_base_url=True,
                apod_base_url="https://apod.example.com/planetary/apod",
            )

    def test_restrict_base_url_accepts_allowed_host(self):
        settings = make_settings(restrict_base_url=True)
        assert settings.restrict_base_url is True
