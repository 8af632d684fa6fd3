"""
Async client for the external batch translation service.

One request is made per batch. The service receives the batch's strings as
a JSON array and must answer with an array of the same length and order,
with ``{{placeholders}}`` and markup tags left verbatim.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, cast

import httpx

from ..config.schema import TranslationServiceConfig
from ..core.exceptions import TranslationServiceError

if TYPE_CHECKING:
    from types import TracebackType

    from .batch import TranslationBatch

logger = logging.getLogger(__name__)

CODE_FENCE_START = re.compile(r"^```(?:json)?\n?", re.MULTILINE)
CODE_FENCE_END = re.compile(r"\n?```$", re.MULTILINE)


def build_system_prompt(language_label: str, count: int, source_label: str = "English") -> str:
    """Instructions sent with every batch."""
    return (
        f"You are a professional translator. Translate from {source_label} to {language_label}. "
        f"Return ONLY a valid JSON array with exactly {count} elements. "
        "Preserve {{variable}} placeholders and <tag> HTML tags exactly as-is. "
        "Do not add or remove elements."
    )


def parse_translated_strings(text: str, expected: int) -> list[str]:
    """
    Decode the array of translated strings returned by the model.

    Raises:
        ValueError: If the text is not a JSON array of ``expected`` strings
    """
    cleaned = CODE_FENCE_END.sub("", CODE_FENCE_START.sub("", text.strip())).strip()
    try:
        decoded: object = json.loads(cleaned)  # pyright: ignore[reportAny]
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in response: {cleaned[:200]}") from e

    if not isinstance(decoded, list):
        raise ValueError(f"Expected a JSON array, got {type(decoded).__name__}")

    items = cast(list[object], decoded)
    if len(items) != expected:
        raise ValueError(f"Expected {expected} items, got {len(items)}")
    if not all(isinstance(item, str) for item in items):
        raise ValueError("Expected an array of strings")

    return cast(list[str], items)


class TranslationClient:
    """Translates batches of strings through a Messages-style HTTP API."""

    def __init__(
        self,
        settings: TranslationServiceConfig,
        api_key: str,
        source_label: str = "English",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client with service settings and credentials."""
        self.settings: TranslationServiceConfig = settings
        self.api_key: str = api_key
        self.source_label: str = source_label
        self._transport: httpx.AsyncBaseTransport | None = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> TranslationClient:
        """Enter async context and initialize HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self.settings.timeout,
            transport=self._transport,
            headers={
                "content-type": "application/json",
                "x-api-key": self.api_key,
                "anthropic-version": self.settings.anthropic_version,
            },
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and cleanup HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_payload(self, batch: TranslationBatch, language_label: str) -> dict[str, object]:
        """Request body for one batch."""
        return {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "system": build_system_prompt(language_label, len(batch.strings), self.source_label),
            "messages": [
                {"role": "user", "content": json.dumps(batch.strings, ensure_ascii=False)}
            ],
        }

    async def translate_batch(self, batch: TranslationBatch, language_label: str) -> list[str]:
        """
        Translate one batch.

        Args:
            batch: The strings to translate and their batch identity
            language_label: Human readable name of the target language

        Returns:
            The translated strings, in the order of ``batch.strings``

        Raises:
            TranslationServiceError: On a non-success status or an unusable response
        """
        if self._client is None:
            raise RuntimeError("TranslationClient not initialized. Use as async context manager.")

        try:
            response = await self._client.post(
                self.settings.api_url, json=self.build_payload(batch, language_label)
            )
        except httpx.HTTPError as e:
            raise TranslationServiceError(
                f"Request failed: {e}", language=batch.language, batch_id=batch.batch_id
            ) from e

        if not response.is_success:
            raise TranslationServiceError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                language=batch.language,
                batch_id=batch.batch_id,
            )

        try:
            text = self._response_text(response)
            return parse_translated_strings(text, len(batch.strings))
        except ValueError as e:
            raise TranslationServiceError(
                str(e), language=batch.language, batch_id=batch.batch_id
            ) from e

    @staticmethod
    def _response_text(response: httpx.Response) -> str:
        data: object = response.json()  # pyright: ignore[reportAny]
        if not isinstance(data, dict):
            raise ValueError("Invalid response format: expected an object")

        content = cast(dict[str, object], data).get("content")
        if not isinstance(content, list) or not content:
            raise ValueError("Invalid response format: missing content")

        first = cast(list[object], content)[0]
        if not isinstance(first, dict):
            raise ValueError("Invalid response format: malformed content block")

        text = cast(dict[str, object], first).get("text")
        if not isinstance(text, str):
            raise ValueError("Invalid response format: missing text")
        return text
