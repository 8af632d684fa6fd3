"""
Removal of translation keys that no longer exist in source code.

Every persisted document is flattened into full key identities, compared
with a fresh scan and pruned. Parents left empty are collapsed, documents
left empty are deleted (or kept as ``{}``) and the namespace index and hash
snapshot are brought back in line.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

from ..config.schema import KeySyncConfig
from ..core.types import KEY_SEPARATOR, JsonDocument, make_full_key, split_full_key
from ..core.values import remove_nested_key
from ..scanner.extractor import scan_all_files
from ..storage.documents import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CleanResult:
    """Outcome of a clean run."""

    skipped: bool = False
    removed: dict[Path, list[str]] = field(default_factory=dict)
    deleted_files: list[Path] = field(default_factory=list)
    emptied_files: list[Path] = field(default_factory=list)
    pruned_hashes: list[str] = field(default_factory=list)

    @property
    def removed_count(self) -> int:
        return sum(len(keys) for keys in self.removed.values())

    def __str__(self) -> str:
        if self.skipped:
            return "Cleanup skipped: clean_unused_keys is disabled"
        return (
            f"Cleanup Results: {self.removed_count} unused keys removed, "
            f"{len(self.deleted_files)} empty files deleted"
        )


def flatten_document_keys(
    document: JsonDocument,
    namespace: str,
    valid_keys: set[str],
    prefix: str = "",
) -> list[str]:
    """
    Flatten a document into full key identities.

    A node is a leaf when its path is a known valid key (its value may be a
    composite default) or when it is not a mapping.

    Args:
        document: The persisted document, or a nested mapping within it
        namespace: Namespace of the document
        valid_keys: Identities currently present in source code
        prefix: Dotted path of ``document`` within the full document

    Returns:
        Full key identities in document order
    """
    keys: list[str] = []
    for key, value in document.items():
        current_path = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else key
        full_key = make_full_key(namespace, current_path)

        if full_key not in valid_keys and isinstance(value, dict):
            keys.extend(
                flatten_document_keys(
                    cast(JsonDocument, value), namespace, valid_keys, current_path
                )
            )
        else:
            keys.append(full_key)
    return keys


def prune_document(document: JsonDocument, stale_keys: list[str]) -> JsonDocument:
    """Remove every stale key from a document, collapsing emptied parents."""
    for full_key in stale_keys:
        _, key_path = split_full_key(full_key)
        document = remove_nested_key(document, key_path)
    return document


def run_clean(
    config: KeySyncConfig,
    store: DocumentStore | None = None,
    valid_keys: set[str] | None = None,
) -> CleanResult:
    """
    Remove keys that are no longer used in source code.

    Args:
        config: Loaded configuration with resolved paths
        store: Document store to use (created from the configuration if omitted)
        valid_keys: Identities to keep; a fresh scan is performed if omitted

    Returns:
        What was removed
    """
    result = CleanResult()
    if not config.behavior.clean_unused_keys:
        logger.warning("Cleanup is disabled in config (clean_unused_keys: false), skipping")
        result.skipped = True
        return result

    store = store or DocumentStore(config.paths)
    if valid_keys is None:
        valid_keys = set(scan_all_files(config.paths, config.scan))

    for language in config.language_codes:
        for namespace in store.get_namespaces(language):
            document = store.load_document(language, namespace)
            stale_keys = [
                full_key
                for full_key in flatten_document_keys(document, namespace, valid_keys)
                if full_key not in valid_keys
            ]
            if not stale_keys:
                continue

            path = store.document_path(language, namespace)
            document = prune_document(document, stale_keys)
            result.removed[path] = stale_keys
            for full_key in stale_keys:
                logger.info(f"Removed {full_key} from {language}/{namespace}.json")

            if document:
                _ = store.save_document(language, namespace, document)
            elif config.behavior.remove_empty_files:
                if store.delete_document(language, namespace):
                    result.deleted_files.append(path)
                    logger.info(f"Deleted empty document {path}")
            else:
                _ = store.save_document(language, namespace, {})
                result.emptied_files.append(path)
                logger.info(f"Kept empty document {path}")

        _ = store.update_index_file(language, store.get_namespaces(language))

    hashes = store.load_hashes()
    result.pruned_hashes = sorted(full_key for full_key in hashes if full_key not in valid_keys)
    if result.pruned_hashes:
        for full_key in result.pruned_hashes:
            del hashes[full_key]
        _ = store.save_hashes(hashes)

    return result
