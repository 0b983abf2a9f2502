"""Tests for the translation client."""

import httpx
import pytest
import respx
from httpx import Response

from cosmicdaily.domain.exceptions import (
    EmptyTranslationError,
    TranslationError,
    TranslationParseError,
)
from cosmicdaily.infrastructure.providers.translation_client import (
    TranslationClient,
    parse_translation_payload,
)

ENDPOINT = "https://translate.googleapis.com/translate_a/single"

TRANSLATION_RESPONSE = [
    [
        ["Merhaba ", "Hello ", None, None, 10],
        ["dünya", "world", None, None, 10],
    ],
    None,
    "en",
]


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def translation_client(http_client) -> TranslationClient:
    return TranslationClient(http_client, ENDPOINT)


class TestParseTranslationPayload:
    """Test response parsing."""

    def test_joins_segments(self):
        assert parse_translation_payload(TRANSLATION_RESPONSE) == "Merhaba dünya"

    def test_rejects_wrong_shape(self):
        with pytest.raises(TranslationParseError):
            parse_translation_payload({"sentences": []})
        with pytest.raises(TranslationParseError):
            parse_translation_payload([])
        with pytest.raises(TranslationParseError):
            parse_translation_payload([None, None, "en"])

    def test_empty_result(self):
        with pytest.raises(EmptyTranslationError):
            parse_translation_payload([[], None, "en"])


class TestTranslationClient:
    """Test requests and error mapping."""

    @pytest.mark.anyio
    @respx.mock
    async def test_translate(self, translation_client):
        route = respx.get(ENDPOINT).mock(
            return_value=Response(200, json=TRANSLATION_RESPONSE)
        )

        result = await translation_client.translate("Hello world", "tr")

        assert result == "Merhaba dünya"
        params = route.calls.last.request.url.params
        assert params["client"] == "gtx"
        assert params["sl"] == "auto"
        assert params["tl"] == "tr"
        assert params["dt"] == "t"
        assert params["q"] == "Hello world"

    @pytest.mark.anyio
    @respx.mock
    async def test_non_200(self, translation_client):
        respx.get(ENDPOINT).mock(return_value=Response(503))
        with pytest.raises(TranslationError) as exc_info:
            await translation_client.translate("Hello", "tr")
        assert exc_info.value.status_code == 503
        assert exc_info.value.target_language == "tr"

    @pytest.mark.anyio
    @respx.mock
    async def test_unparsable_body(self, translation_client):
        respx.get(ENDPOINT).mock(return_value=Response(200, text="not json"))
        with pytest.raises(TranslationParseError):
            await translation_client.translate("Hello", "tr")

    @pytest.mark.anyio
    @respx.mock
    async def test_empty_translation(self, translation_client):
        respx.get(ENDPOINT).mock(return_value=Response(200, json=[[["", "Hello"]]]))
        with pytest.raises(EmptyTranslationError):
            await translation_client.translate("Hello", "tr")

    @pytest.mark.anyio
    @respx.mock
    async def test_transport_error(self, translation_client):
        respx.get(ENDPOINT).mock(side_effect=httpx.ConnectError("unreachable"))
        with pytest.raises(TranslationError):
            await translation_client.translate("Hello", "tr")
