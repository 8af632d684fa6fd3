"""
Extraction run: scan source, detect changes, update every language.

The source language documents receive the default values from code when a
key is new, changed or missing. Documents of the other languages are
re-merged on every run against a seed value (the skeleton, or the default
text when ``fill_policy`` is ``default``) so their structure follows the
code while existing translations are kept. Nothing is written when the
result is identical to what is on disk, which makes repeated runs
idempotent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ..config.schema import KeySyncConfig
from ..core.types import ExtractedKey, HashEntry, Snapshot, TranslationValue
from ..core.values import (
    canonical_json,
    generate_skeleton,
    get_nested_value,
    merge_deep,
    quick_hash,
    set_nested_value,
)
from ..scanner.extractor import scan_all_files
from ..storage.documents import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChangeSet:
    """Classification of freshly extracted keys against the previous snapshot."""

    added: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    snapshot: Snapshot = field(default_factory=dict)


@dataclass(slots=True)
class ExtractionResult:
    """Outcome of an extraction run."""

    keys: dict[str, ExtractedKey]
    added: list[str]
    changed: list[str]
    modified_files: list[Path] = field(default_factory=list)

    @property
    def namespaces(self) -> list[str]:
        return sorted({key.namespace for key in self.keys.values()})

    def __str__(self) -> str:
        return (
            f"Extraction Results: {len(self.keys)} keys, "
            f"{len(self.added)} added, {len(self.changed)} changed, "
            f"{len(self.modified_files)} files written"
        )


def classify_changes(keys: dict[str, ExtractedKey], previous: Snapshot) -> ChangeSet:
    """
    Hash every extracted key and compare it with the previous snapshot.

    Args:
        keys: Freshly extracted keys by full identity
        previous: Snapshot persisted by the previous run

    Returns:
        The classification together with the new snapshot to persist
    """
    changes = ChangeSet()
    for full_key, extracted in keys.items():
        digest = quick_hash(extracted.default_value)
        changes.snapshot[full_key] = HashEntry(hash=digest, defaultValue=extracted.default_value)

        old_entry = previous.get(full_key)
        if old_entry is None:
            changes.added.append(full_key)
        elif old_entry.get("hash") != digest:
            changes.changed.append(full_key)
        else:
            changes.unchanged.append(full_key)
    return changes


def seed_value(config: KeySyncConfig, default_value: TranslationValue) -> TranslationValue:
    """Value merged into non-source documents for a key."""
    if config.behavior.fill_policy == "default":
        return default_value
    return generate_skeleton(default_value)


def run_extract(config: KeySyncConfig, store: DocumentStore | None = None) -> ExtractionResult:
    """
    Scan the source tree and synchronize every language document.

    Args:
        config: Loaded configuration with resolved paths
        store: Document store to use (created from the configuration if omitted)

    Returns:
        The extracted keys and what changed on disk
    """
    store = store or DocumentStore(config.paths)
    keys = scan_all_files(config.paths, config.scan)
    changes = classify_changes(keys, store.load_hashes())
    refresh = set(changes.added) | set(changes.changed)
    strict = config.behavior.sync_translations_strictly

    namespaces = sorted({key.namespace for key in keys.values()})
    keys_by_namespace: dict[str, list[ExtractedKey]] = {namespace: [] for namespace in namespaces}
    for full_key in sorted(keys):
        extracted = keys[full_key]
        keys_by_namespace[extracted.namespace].append(extracted)

    modified: list[Path] = []

    for language in config.language_codes:
        is_source = language == config.default_language

        for namespace in namespaces:
            if store.ensure_namespace_file(language, namespace):
                modified.append(store.document_path(language, namespace))

        all_namespaces = sorted(set(store.get_namespaces(language)) | set(namespaces))
        if store.update_index_file(language, all_namespaces):
            modified.append(store.index_path(language))

        for namespace in namespaces:
            document = store.load_document(language, namespace)
            document_modified = False

            for extracted in keys_by_namespace[namespace]:
                existing = get_nested_value(document, extracted.key_path)

                if is_source:
                    if extracted.full_key in refresh or existing is None:
                        set_nested_value(document, extracted.key_path, extracted.default_value)
                        document_modified = True
                    continue

                merged = merge_deep(
                    existing, seed_value(config, extracted.default_value), strict=strict
                )
                if canonical_json(existing) != canonical_json(merged):
                    set_nested_value(document, extracted.key_path, merged)
                    document_modified = True

            if document_modified and store.save_document(language, namespace, document):
                path = store.document_path(language, namespace)
                if path not in modified:
                    modified.append(path)

    if store.save_hashes(changes.snapshot):
        modified.append(store.hash_file)

    if changes.added:
        logger.info(f"{len(changes.added)} keys added")
    if changes.changed:
        logger.info(f"{len(changes.changed)} keys changed")

    return ExtractionResult(
        keys=keys,
        added=changes.added,
        changed=changes.changed,
        modified_files=modified,
    )
