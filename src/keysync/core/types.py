"""Shared data types for the key synchronization engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias, TypedDict

TranslationValue: TypeAlias = (
    str | int | float | bool | list["TranslationValue"] | dict[str, "TranslationValue"]
)
"""A literal default value: text, number, flag, ordered list or keyed mapping."""

JsonDocument: TypeAlias = dict[str, object]

NAMESPACE_SEPARATOR = ":"
KEY_SEPARATOR = "."


def make_full_key(namespace: str, key_path: str) -> str:
    """Build the identity ``namespace:key.path`` of a translation key."""
    return f"{namespace}{NAMESPACE_SEPARATOR}{key_path}"


def split_full_key(full_key: str) -> tuple[str, str]:
    """Split ``namespace:key.path`` at the first separator."""
    namespace, _, key_path = full_key.partition(NAMESPACE_SEPARATOR)
    return namespace, key_path


@dataclass(frozen=True, slots=True)
class ExtractedKey:
    """A translation key found at a call site during a scan."""

    namespace: str
    key_path: str
    default_value: TranslationValue
    location: str

    @property
    def full_key(self) -> str:
        return make_full_key(self.namespace, self.key_path)


class HashEntry(TypedDict):
    """Snapshot record of an extracted key, persisted between runs."""

    hash: str
    defaultValue: TranslationValue


Snapshot: TypeAlias = dict[str, HashEntry]
