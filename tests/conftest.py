from typing import Any, Dict, Iterator

from unittest.mock import MagicMock, patch
import pytest

from cosmicdaily.config import Settings
from cosmicdaily.domain.models import DailyRecord


# Configure anyio to only use asyncio backend
@pytest.fixture
def anyio_backend() -> str:
    """Force tests to use asyncio backend only."""
    return "asyncio"


@pytest.fixture(autouse=True, scope="session")
def mock_logger() -> Iterator[MagicMock]:
    with patch("cosmicdaily.logging._logger", MagicMock()) as mock_logger:
        mock_logger.log.return_value = None
        yield mock_logger


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def apod_payload() -> Dict[str, Any]:
    """A daily record as returned by the APOD API."""
    return {
        "date": "2024-01-15",
        "title": "The Horsehead Nebula",
        "explanation": "One of the most identifiable nebulae in the sky.",
        "media_type": "image",
        "url": "https://apod.nasa.gov/apod/image/2401/horsehead_1024.jpg",
        "hdurl": "https://apod.nasa.gov/apod/image/2401/horsehead_4096.jpg",
        "copyright": "Jane Doe",
        "service_version": "v1",
    }


@pytest.fixture
def sample_record(apod_payload: Dict[str, Any]) -> DailyRecord:
    return DailyRecord.model_validate(apod_payload)


@pytest.fixture
def video_record() -> DailyRecord:
    return DailyRecord.model_validate(
        {
            "date": "2024-01-16",
            "title": "Total Solar Eclipse",
            "explanation": "A time-lapse of totality.",
            "media_type": "video",
            "url": "https://www.youtube.com/embed/abc123",
            "service_version": "v1",
        }
    )


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Create test settings writing caches under a temporary directory."""
    return Settings(
        _env_file=None,
        nasa_api_key="test-key",
        apod_base_url="https://api.nasa.gov/planetary/apod",
        cache_dir=str(tmp_path / "cache"),
        log_file_path=None,
        error_log_file_path=None,
        log_level="INFO",
    )
