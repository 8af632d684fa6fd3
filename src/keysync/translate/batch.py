"""
Batch completion of missing translations.

A run has two phases that both derive the list of untranslated items from
durable state (the hash snapshot and the documents on disk) in the same
deterministic order:

1. Build: flatten every item into its string leaves, concatenate them per
   language and cut the result into fixed-size batches. Every batch of every
   language is sent to the translation service at once and all outcomes are
   awaited, successful or not.
2. Apply: re-collect the items, recompute their offsets and place the
   strings of each successful batch at ``batch_id * batch_size``. Only items
   whose every string came back are written; the others are picked up again
   by the next run.

No index bookkeeping is carried between the phases, so a partial failure
never misplaces a translation.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol, cast

from ..config.schema import KeySyncConfig, LanguageConfig
from ..core.exceptions import ConfigurationError
from ..core.types import TranslationValue, split_full_key
from ..core.values import get_nested_value, set_nested_value
from ..storage.documents import DocumentStore
from ..sync.status import is_translated, snapshot_namespaces
from .client import TranslationClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UntranslatedItem:
    """A key whose value in a target language still needs a translation."""

    namespace: str
    key_path: str
    default_value: TranslationValue


@dataclass(frozen=True, slots=True)
class TranslationBatch:
    """A contiguous chunk of one language's flattened strings."""

    batch_id: int
    language: str
    strings: list[str]


@dataclass(slots=True)
class BatchOutcome:
    """Settled result of one batch: its strings, or the error it failed with."""

    batch: TranslationBatch
    strings: list[str] | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.strings is not None


@dataclass(slots=True)
class TranslateResult:
    """Outcome of a translate run."""

    planned: dict[str, int] = field(default_factory=dict)
    applied: dict[str, int] = field(default_factory=dict)
    failed_batches: list[tuple[str, int]] = field(default_factory=list)
    batch_count: int = 0

    @property
    def failed_count(self) -> int:
        return len(self.failed_batches)

    def __str__(self) -> str:
        return (
            f"Translation Results: {sum(self.applied.values())} keys applied, "
            f"{self.batch_count} batches, {self.failed_count} failed"
        )


class BatchTranslatorClient(Protocol):
    """What the batch translator needs from a translation client."""

    async def translate_batch(self, batch: TranslationBatch, language_label: str) -> list[str]: ...


def flatten_strings(value: TranslationValue) -> list[str]:
    """
    List the string leaves of a value in traversal order.

    Lists are walked by position and mappings in key order. The order must
    stay identical to :func:`apply_strings`.
    """
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [string for item in value for string in flatten_strings(item)]
    if isinstance(value, dict):
        return [string for item in value.values() for string in flatten_strings(item)]
    return []


def apply_strings(value: TranslationValue, strings: Iterator[str]) -> TranslationValue:
    """
    Rebuild a value with its string leaves replaced from ``strings``.

    Mirrors the traversal of :func:`flatten_strings`; numbers and booleans
    are kept as they are.
    """
    if isinstance(value, str):
        return next(strings, value)
    if isinstance(value, list):
        return [apply_strings(item, strings) for item in value]
    if isinstance(value, dict):
        return {key: apply_strings(item, strings) for key, item in value.items()}
    return value


def collect_untranslated(store: DocumentStore, language: str) -> list[UntranslatedItem]:
    """
    Collect the untranslated items of a language in deterministic order.

    Namespaces come from the snapshot, sorted; within a namespace keys are
    sorted by full identity.
    """
    hashes = store.load_hashes()
    items: list[UntranslatedItem] = []

    for namespace in snapshot_namespaces(hashes):
        document = store.load_document(language, namespace)
        for full_key in sorted(hashes):
            key_namespace, key_path = split_full_key(full_key)
            if key_namespace != namespace:
                continue
            default_value = hashes[full_key].get("defaultValue", "")
            if not is_translated(get_nested_value(document, key_path), default_value):
                items.append(UntranslatedItem(namespace, key_path, default_value))

    return items


def compute_offsets(items: list[UntranslatedItem]) -> tuple[list[tuple[int, int]], int]:
    """
    Position of each item's strings in the flat per-language array.

    Returns:
        ``(offset, count)`` per item and the total number of strings
    """
    spans: list[tuple[int, int]] = []
    total = 0
    for item in items:
        count = len(flatten_strings(item.default_value))
        spans.append((total, count))
        total += count
    return spans, total


def build_batches(language: str, strings: list[str], batch_size: int) -> list[TranslationBatch]:
    """Cut a flat string array into fixed-size batches numbered from 0."""
    return [
        TranslationBatch(
            batch_id=index,
            language=language,
            strings=strings[start : start + batch_size],
        )
        for index, start in enumerate(range(0, len(strings), batch_size))
    ]


def reassemble(
    items: list[UntranslatedItem],
    outcomes: list[BatchOutcome],
    batch_size: int,
) -> dict[int, TranslationValue]:
    """
    Rebuild translated values from successful batches.

    Returns:
        Translated value by item index, for items whose strings all arrived
    """
    spans, total = compute_offsets(items)
    slots: list[str | None] = [None] * total

    for outcome in outcomes:
        if outcome.strings is None:
            continue
        start = outcome.batch.batch_id * batch_size
        for local_index, string in enumerate(outcome.strings):
            if start + local_index < total:
                slots[start + local_index] = string

    translated: dict[int, TranslationValue] = {}
    for index, (item, (offset, count)) in enumerate(zip(items, spans, strict=True)):
        window = slots[offset : offset + count]
        if any(slot is None for slot in window):
            continue
        translated[index] = apply_strings(item.default_value, iter(cast(list[str], window)))
    return translated


class BatchTranslator:
    """Fills missing translations through the external translation service."""

    def __init__(
        self,
        config: KeySyncConfig,
        store: DocumentStore | None = None,
        client: BatchTranslatorClient | None = None,
    ) -> None:
        """
        Initialize the translator.

        Args:
            config: Loaded configuration with resolved paths
            store: Document store to use (created from the configuration if omitted)
            client: Translation client to use instead of the HTTP client
        """
        self.config: KeySyncConfig = config
        self.store: DocumentStore = store or DocumentStore(config.paths)
        self.client: BatchTranslatorClient | None = client
        self.batch_size: int = config.translation.batch_size

    def resolve_targets(self, language: str | None = None) -> list[LanguageConfig]:
        """Target languages of a run; an unknown or source language yields none."""
        if language is None:
            return self.config.target_languages
        return [target for target in self.config.target_languages if target.value == language]

    def build_payloads(
        self, targets: list[LanguageConfig], result: TranslateResult
    ) -> list[TranslationBatch]:
        """First phase: collect, flatten and batch every target language."""
        batches: list[TranslationBatch] = []
        for target in targets:
            items = collect_untranslated(self.store, target.value)
            if not items:
                logger.info(f"{target.value} ({target.display_label}): nothing to translate")
                continue

            strings = [string for item in items for string in flatten_strings(item.default_value)]
            language_batches = build_batches(target.value, strings, self.batch_size)
            batches.extend(language_batches)
            result.planned[target.value] = len(items)
            logger.info(
                f"{target.value} ({target.display_label}): {len(strings)} strings "
                f"-> {len(language_batches)} batch(es)"
            )
        return batches

    async def dispatch(
        self,
        client: BatchTranslatorClient,
        batches: list[TranslationBatch],
        labels: dict[str, str],
    ) -> list[BatchOutcome]:
        """
        Send every batch concurrently and wait for all of them to settle.

        A failing batch neither cancels nor delays the others.
        """
        results = await asyncio.gather(
            *(client.translate_batch(batch, labels[batch.language]) for batch in batches),
            return_exceptions=True,
        )

        outcomes: list[BatchOutcome] = []
        for batch, settled in zip(batches, results, strict=True):
            if isinstance(settled, BaseException):
                logger.warning(f"Batch {batch.language}#{batch.batch_id} failed: {settled}")
                outcomes.append(BatchOutcome(batch=batch, error=settled))
            else:
                outcomes.append(BatchOutcome(batch=batch, strings=settled))
        return outcomes

    def apply(self, language: str, outcomes: list[BatchOutcome]) -> int:
        """
        Second phase: write the fully translated items of one language.

        Returns:
            Number of items written
        """
        items = collect_untranslated(self.store, language)
        if not items:
            return 0

        translated = reassemble(items, outcomes, self.batch_size)
        changes: dict[str, dict[str, TranslationValue]] = {}
        for index, value in translated.items():
            item = items[index]
            changes.setdefault(item.namespace, {})[item.key_path] = value

        for namespace in sorted(changes):
            document = self.store.load_document(language, namespace)
            for key_path, value in changes[namespace].items():
                set_nested_value(document, key_path, value)
            _ = self.store.save_document(language, namespace, document)

        # documents may be new for a language added since the last extract
        if changes:
            _ = self.store.update_index_file(language, self.store.get_namespaces(language))

        return len(translated)

    def _api_key(self) -> str:
        api_key = os.environ.get(self.config.translation.api_key_env, "")
        if not api_key:
            raise ConfigurationError(
                f"{self.config.translation.api_key_env} environment variable is not set"
            )
        return api_key

    async def run(self, language: str | None = None) -> TranslateResult:
        """
        Translate every untranslated key of the target languages.

        Args:
            language: Restrict the run to one target language

        Returns:
            Items applied per language and the batches that failed

        Raises:
            ConfigurationError: If no client was given and the API key is missing
        """
        result = TranslateResult()
        if not self.store.load_hashes():
            logger.warning("No keys found, run extract first")
            return result

        targets = self.resolve_targets(language)
        if not targets:
            logger.warning("No target languages to translate")
            return result

        client = self.client
        api_key = self._api_key() if client is None else ""

        batches = self.build_payloads(targets, result)
        result.batch_count = len(batches)
        if not batches:
            return result

        labels = {target.value: target.display_label for target in targets}
        logger.info(f"Sending {len(batches)} batch(es) concurrently")

        if client is None:
            source = self.config.get_language(self.config.default_language)
            source_label = source.display_label if source else "English"
            async with TranslationClient(
                self.config.translation, api_key, source_label=source_label
            ) as http_client:
                outcomes = await self.dispatch(http_client, batches, labels)
        else:
            outcomes = await self.dispatch(client, batches, labels)

        by_language: dict[str, list[BatchOutcome]] = {}
        for outcome in outcomes:
            by_language.setdefault(outcome.batch.language, []).append(outcome)
            if not outcome.ok:
                result.failed_batches.append((outcome.batch.language, outcome.batch.batch_id))

        for target in targets:
            if target.value not in by_language:
                continue
            applied = self.apply(target.value, by_language[target.value])
            result.applied[target.value] = applied
            logger.info(f"{target.value}: {applied} key(s) translated")

        if result.failed_batches:
            logger.warning(
                f"{result.failed_count} batch(es) failed, run translate again to retry skipped keys"
            )
        return result
