from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..constants import RECORD_CACHE_TTL_SECONDS
from ..enums import FetchSource, FetchState, MediaType


class DailyRecord(BaseModel):
    """One Astronomy Picture of the Day entry.

    Attributes:
        date (str): Calendar date ``YYYY-MM-DD``; identifies the record.
        title (str): Title of the picture or video.
        explanation (str): Scientific explanation (empty when the feed omits it).
        media_type (MediaType): Kind of media at ``url``; unknown values map to ``other``.
        url (str): Standard-resolution media URL.
        hd_url (Optional[str]): High-resolution image URL (wire name ``hdurl``).
        copyright (Optional[str]): Attribution, when the media is not public domain.
        service_version (str): Opaque version tag from the API, passed through.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    date: str
    title: str
    explanation: str = ""
    media_type: MediaType = Field(default=MediaType.Image, alias="media_type")
    url: str
    hd_url: Optional[str] = Field(default=None, alias="hdurl")
    copyright: Optional[str] = None
    service_version: str = Field(default="", alias="service_version")

    @field_validator("media_type", mode="before")
    @classmethod
    def coerce_media_type(cls, v: Any) -> Any:
        """Map media types outside the known set to ``other``."""
        if isinstance(v, MediaType):
            return v
        if isinstance(v, str) and v.lower() in {m.value for m in MediaType}:
            return v.lower()
        return MediaType.Other

    @property
    def id(self) -> str:
        return self.date

    @property
    def is_image(self) -> bool:
        return self.media_type == MediaType.Image

    @property
    def image_url(self) -> Optional[str]:
        """URL to cache and display as an image, ``None`` for non-image media."""
        if not self.is_image:
            return None
        return self.hd_url or self.url

    def to_wire(self) -> dict:
        """Serialize using the API's field names."""
        return self.model_dump(mode="json", by_alias=True)


DailyRecordList = TypeAdapter(List[DailyRecord])


@dataclass(frozen=True)
class RecordCacheEntry:
    """A cached daily record and the time it was fetched (epoch seconds)."""

    record: DailyRecord
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def is_valid(self, now: float, ttl_seconds: int = RECORD_CACHE_TTL_SECONDS) -> bool:
        return self.age(now) <= ttl_seconds


@dataclass(frozen=True)
class FetchResult:
    """Outcome surfaced to presentation collaborators by the orchestrator.

    Attributes:
        record: The record to display.
        source: Whether the record came from the cache or the network.
        state: Orchestrator state at the time the result was surfaced.
        fetched_at: When the record was fetched from the network.
        is_stale: True when the record is older than the cache TTL.
        offline: True when a network refresh failed and cached data is shown.
        error: The failure that caused an offline fallback.
    """

    record: DailyRecord
    source: FetchSource
    state: FetchState
    fetched_at: float
    is_stale: bool = False
    offline: bool = False
    error: Optional[Exception] = None


@dataclass(frozen=True)
class Language:
    """A translation target offered to the user."""

    code: str
    name: str
    english_name: str
