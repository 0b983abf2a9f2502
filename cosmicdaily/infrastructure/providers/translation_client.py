"""Client for the public machine-translation endpoint."""

from typing import Any, Optional

import httpx

from ...constants import (
    DEFAULT_TRANSLATE_ENDPOINT,
    ERROR_TRANSLATION_EMPTY,
    ERROR_TRANSLATION_PARSE,
    ERROR_TRANSLATION_RESPONSE,
)
from ...domain.exceptions import (
    EmptyTranslationError,
    TranslationError,
    TranslationParseError,
)
from ...logging import warning, LogRecord, LogEvent


def parse_translation_payload(payload: Any, target_language: Optional[str] = None) -> str:
    """
    Join the translated segments of a ``translate_a/single`` response.

    The response is a nested array whose first element lists segments; the
    first item of each segment is the translated text.

    Raises:
        TranslationParseError: If the payload does not have that shape
        EmptyTranslationError: If no text was produced
    """
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        raise TranslationParseError(ERROR_TRANSLATION_PARSE, target_language)

    parts = []
    for segment in payload[0]:
        if isinstance(segment, list) and segment and isinstance(segment[0], str):
            parts.append(segment[0])

    text = "".join(parts)
    if not text:
        raise EmptyTranslationError(ERROR_TRANSLATION_EMPTY, target_language)
    return text


class TranslationClient:
    """Translates text with automatic source-language detection."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        endpoint: str = DEFAULT_TRANSLATE_ENDPOINT,
    ):
        self._http = http_client
        self._endpoint = endpoint

    async def translate(self, text: str, target_language: str) -> str:
        params = {
            "client": "gtx",
            "sl": "auto",
            "tl": target_language,
            "dt": "t",
            "q": text,
        }
        try:
            response = await self._http.get(self._endpoint, params=params)
        except httpx.HTTPError as e:
            warning(
                LogRecord(
                    event=LogEvent.TRANSLATION_EVENT.value,
                    message="Translation request failed",
                    key=target_language,
                ),
                exc=e,
            )
            raise TranslationError(
                f"Translation request failed: {type(e).__name__}", target_language
            ) from e

        if response.status_code != 200:
            raise TranslationError(
                ERROR_TRANSLATION_RESPONSE,
                target_language,
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TranslationParseError(ERROR_TRANSLATION_PARSE, target_language) from e

        return parse_translation_payload(payload, target_language)
