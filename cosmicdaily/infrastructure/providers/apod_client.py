"""Client for the Astronomy Picture of the Day API and image hosts."""

import time
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ...constants import (
    APOD_DATE_FORMAT,
    DEFAULT_APOD_BASE_URL,
    DEFAULT_RECENT_COUNT,
    ERROR_RECORD_DECODE,
    ERROR_UPSTREAM_TIMEOUT,
    MAX_RECENT_COUNT,
)
from ...domain.exceptions import (
    AuthenticationError,
    RateLimitError,
    RecordDecodeError,
    UpstreamError,
    UpstreamTimeoutError,
)
from ...domain.models import DailyRecord, DailyRecordList
from ...logging import debug, warning, LogRecord, LogEvent

_PAYLOAD_EXCERPT_LENGTH = 200


class ApodClient:
    """
    Fetches daily records and image bytes.

    Transport failures and non-2xx responses raise :class:`UpstreamError`
    subclasses; payloads that are not valid records raise
    :class:`RecordDecodeError`. The API key is sent as a query parameter and
    never logged.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = DEFAULT_APOD_BASE_URL,
    ):
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url

    async def fetch_today(self) -> DailyRecord:
        """Fetch the current day's record."""
        payload = await self._get_json({})
        return self._decode_record(payload)

    async def fetch_for_date(self, date: str) -> DailyRecord:
        """
        Fetch the record for a specific day.

        Args:
            date: Calendar date in ``YYYY-MM-DD`` form

        Raises:
            ValueError: If ``date`` is not a valid date string
        """
        datetime.strptime(date, APOD_DATE_FORMAT)
        payload = await self._get_json({"date": date})
        return self._decode_record(payload)

    async def fetch_recent(self, count: int = DEFAULT_RECENT_COUNT) -> List[DailyRecord]:
        """
        Fetch a batch of records, newest first.

        Args:
            count: Number of records to request (1-100)
        """
        if not 1 <= count <= MAX_RECENT_COUNT:
            raise ValueError(f"count must be between 1 and {MAX_RECENT_COUNT}")

        payload = await self._get_json({"count": count})
        try:
            records = DailyRecordList.validate_python(payload)
        except ValidationError as e:
            raise RecordDecodeError(
                ERROR_RECORD_DECODE,
                payload_excerpt=_excerpt(payload),
                details={"errors": e.error_count()},
            ) from e
        return sorted(records, key=lambda r: r.date, reverse=True)

    async def fetch_bytes(self, url: str) -> bytes:
        """Download raw bytes, typically an image."""
        response = await self._send(url)
        return response.content

    async def _get_json(self, params: Dict[str, Any]) -> Any:
        query = {"api_key": self._api_key, **params}
        response = await self._send(self._base_url, query)
        try:
            return response.json()
        except ValueError as e:
            raise RecordDecodeError(
                ERROR_RECORD_DECODE,
                payload_excerpt=response.text[:_PAYLOAD_EXCERPT_LENGTH],
            ) from e

    def _decode_record(self, payload: Any) -> DailyRecord:
        if not isinstance(payload, dict):
            raise RecordDecodeError(
                f"{ERROR_RECORD_DECODE}: expected an object",
                payload_excerpt=_excerpt(payload),
            )
        try:
            return DailyRecord.model_validate(payload)
        except ValidationError as e:
            raise RecordDecodeError(
                ERROR_RECORD_DECODE,
                payload_excerpt=_excerpt(payload),
                details={"errors": e.error_count()},
            ) from e

    async def _send(
        self, url: str, params: Optional[Dict[str, Any]] = None
    ) -> httpx.Response:
        start = time.monotonic()
        debug(
            LogRecord(
                event=LogEvent.UPSTREAM_REQUEST.value,
                message="Upstream request",
                key=url,
            )
        )
        try:
            response = await self._http.get(url, params=params)
        except httpx.TimeoutException as e:
            warning(
                LogRecord(
                    event=LogEvent.UPSTREAM_FAILURE.value,
                    message=ERROR_UPSTREAM_TIMEOUT,
                    key=url,
                ),
                exc=e,
            )
            raise UpstreamTimeoutError(ERROR_UPSTREAM_TIMEOUT, url=url) from e
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            warning(
                LogRecord(
                    event=LogEvent.UPSTREAM_FAILURE.value,
                    message="Upstream transport error",
                    key=url,
                ),
                exc=e,
            )
            raise UpstreamError(f"Request failed: {type(e).__name__}", url=url) from e

        debug(
            LogRecord(
                event=LogEvent.UPSTREAM_RESPONSE.value,
                message="Upstream response",
                key=url,
                data={
                    "status_code": response.status_code,
                    "duration_ms": round((time.monotonic() - start) * 1000, 1),
                    "size_bytes": len(response.content),
                },
            )
        )

        if not response.is_success:
            raise self._status_error(response, url)
        return response

    @staticmethod
    def _status_error(response: httpx.Response, url: str) -> UpstreamError:
        status = response.status_code
        message = _error_message(response) or f"HTTP {status}"

        if status == 429:
            retry_after: Optional[float] = None
            header = response.headers.get("retry-after")
            if header:
                try:
                    retry_after = float(header)
                except ValueError:
                    retry_after = None
            return RateLimitError(message, retry_after=retry_after, url=url)
        if status in (401, 403):
            return AuthenticationError(message, status_code=status, url=url)
        return UpstreamError(message, status_code=status, url=url)


def _error_message(response: httpx.Response) -> Optional[str]:
    """Extract the API's error message from ``{"error": {...}}`` or ``{"msg": ...}`` bodies."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    nested = body.get("error")
    if isinstance(nested, dict) and isinstance(nested.get("message"), str):
        return nested["message"]
    for key in ("msg", "message"):
        if isinstance(body.get(key), str):
            return body[key]
    return None


def _excerpt(payload: Any) -> str:
    return repr(payload)[:_PAYLOAD_EXCERPT_LENGTH]
