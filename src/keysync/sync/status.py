"""Read-only translation completion report."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..config.schema import KeySyncConfig
from ..core.types import Snapshot, TranslationValue, split_full_key
from ..core.values import canonical_json, generate_skeleton, get_nested_value, has_string_leaves
from ..storage.documents import DocumentStore


def is_translated(value: object, default_value: TranslationValue) -> bool:
    """
    Decide whether a persisted value holds a translation.

    A value is untranslated when it is missing, a blank string or still
    equal to the skeleton of its default value. Defaults without any string
    leaf have nothing to translate and always count as translated.
    """
    if not has_string_leaves(default_value):
        return True
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return canonical_json(value) != canonical_json(generate_skeleton(default_value))


def snapshot_namespaces(snapshot: Snapshot) -> list[str]:
    """Sorted set of namespaces appearing in the snapshot."""
    return sorted({split_full_key(full_key)[0] for full_key in snapshot})


@dataclass(slots=True)
class LanguageStatus:
    """Completion of one target language."""

    language: str
    label: str
    translated: int
    total: int
    missing_keys: list[str] = field(default_factory=list)

    @property
    def percentage(self) -> int:
        if self.total == 0:
            return 100
        return round(100 * self.translated / self.total)


@dataclass(slots=True)
class StatusReport:
    """Completion of every target language."""

    total_keys: int
    languages: list[LanguageStatus] = field(default_factory=list)


def collect_status(config: KeySyncConfig, store: DocumentStore | None = None) -> StatusReport:
    """
    Compute the translation status of every non-source language.

    The snapshot written by the last extraction is the list of tracked keys.
    Nothing is modified.
    """
    store = store or DocumentStore(config.paths)
    hashes = store.load_hashes()
    report = StatusReport(total_keys=len(hashes))
    if not hashes:
        return report

    namespaces = snapshot_namespaces(hashes)
    for language in config.target_languages:
        status = LanguageStatus(
            language=language.value,
            label=language.display_label,
            translated=0,
            total=len(hashes),
        )
        for namespace in namespaces:
            document = store.load_document(language.value, namespace)
            for full_key in sorted(hashes):
                key_namespace, key_path = split_full_key(full_key)
                if key_namespace != namespace:
                    continue
                value = get_nested_value(document, key_path)
                if is_translated(value, hashes[full_key].get("defaultValue", "")):
                    status.translated += 1
                else:
                    status.missing_keys.append(full_key)
        report.languages.append(status)

    return report
