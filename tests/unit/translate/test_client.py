"""Tests for the HTTP translation client."""

from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest

from keysync.config.schema import TranslationServiceConfig
from keysync.core.exceptions import TranslationServiceError
from keysync.translate.batch import TranslationBatch
from keysync.translate.client import (
    TranslationClient,
    build_system_prompt,
    parse_translated_strings,
)

Handler = Callable[[httpx.Request], httpx.Response]

BATCH = TranslationBatch(batch_id=3, language="fr", strings=["Hello {{name}}", "<b>Bye</b>"])


def _message(text: str) -> dict[str, object]:
    return {"content": [{"type": "text", "text": text}]}


async def _translate(handler: Handler) -> list[str]:
    client = TranslationClient(
        TranslationServiceConfig(), "test-key", transport=httpx.MockTransport(handler)
    )
    async with client:
        return await client.translate_batch(BATCH, "Français")


class TestParseTranslatedStrings:
    """Test decoding of model output."""

    def test_plain_array(self) -> None:
        """A bare JSON array is accepted."""
        assert parse_translated_strings('["a", "b"]', 2) == ["a", "b"]

    def test_code_fence(self) -> None:
        """Markdown code fences around the array are stripped."""
        assert parse_translated_strings('```json\n["a"]\n```', 1) == ["a"]

    @pytest.mark.parametrize(
        "text",
        ['["a"]', "not json", '{"a": "b"}', '["a", 1]'],
    )
    def test_rejected(self, text: str) -> None:
        """Wrong length, invalid JSON and non-string items are errors."""
        with pytest.raises(ValueError):
            _ = parse_translated_strings(text, 2)

    def test_prompt_mentions_count_and_language(self) -> None:
        """The system prompt carries the target language and element count."""
        prompt = build_system_prompt("Français", 7)
        assert "Français" in prompt
        assert "exactly 7 elements" in prompt


class TestTranslationClient:
    """Test requests against a mocked transport."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        """The request carries credentials and the strings, the reply is decoded."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_message('["Bonjour {{name}}", "<b>Au revoir</b>"]'))

        assert await _translate(handler) == ["Bonjour {{name}}", "<b>Au revoir</b>"]

        request = seen[0]
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(request.content)  # pyright: ignore[reportAny]
        assert body["model"] == "claude-haiku-4-5-20251001"
        assert json.loads(body["messages"][0]["content"]) == BATCH.strings  # pyright: ignore[reportAny]

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        """A non-success status fails the batch with its identity."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(529, text="overloaded")

        with pytest.raises(TranslationServiceError) as exc_info:
            _ = await _translate(handler)
        assert exc_info.value.language == "fr"
        assert exc_info.value.batch_id == 3
        assert "529" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_wrong_length(self) -> None:
        """A reply with a different element count is rejected."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_message('["only one"]'))

        with pytest.raises(TranslationServiceError, match="Expected 2 items"):
            _ = await _translate(handler)

    @pytest.mark.asyncio
    async def test_malformed_body(self) -> None:
        """A reply without content blocks is rejected."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"unexpected": True})

        with pytest.raises(TranslationServiceError, match="missing content"):
            _ = await _translate(handler)

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Connection failures become service errors."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TranslationServiceError, match="Request failed"):
            _ = await _translate(handler)

    @pytest.mark.asyncio
    async def test_requires_context_manager(self) -> None:
        """Using the client outside its context is an error."""
        client = TranslationClient(TranslationServiceConfig(), "key")
        with pytest.raises(RuntimeError):
            _ = await client.translate_batch(BATCH, "Français")
