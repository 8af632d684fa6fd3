"""
Value utilities for translation documents.

This module contains the pure functions the rest of the engine is built on:
skeleton generation, deep merging, change hashing and dotted-path access
into nested JSON documents.

Usage Examples:
    Skeleton of a default value:
        >>> generate_skeleton("Hello {{name}}, <b>welcome</b>")
        '{{name}} <b> </b>'

    Merging a fresh value into an existing translation:
        >>> merge_deep({"a": "A!", "c": "C"}, {"a": "", "b": ""}, strict=True)
        {'a': 'A!', 'b': ''}
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Literal, cast

from .types import KEY_SEPARATOR, JsonDocument, TranslationValue

ValueKind = Literal["string", "number", "boolean", "list", "mapping", "other"]

INTERPOLATION_REGEX = re.compile(r"\{\{[^}]+\}\}")
# <b>, </b>, <br/>; an unterminated tag runs to the end of the string
TAG_REGEX = re.compile(r"</?[^>]+(?:>|$)")


def value_kind(value: object) -> ValueKind:
    """Classify a value the way merge and skeleton generation see it."""
    # bool is checked before int, True is an int in Python
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "mapping"
    return "other"


def generate_skeleton(value: TranslationValue) -> TranslationValue:
    """
    Derive a content-free template from a default value.

    Containers keep their shape, numbers and booleans pass through and each
    string is reduced to the placeholders it contains followed by the tags
    it contains, joined with single spaces. The two token kinds are matched
    independently, so a placeholder inside a tag attribute appears both on
    its own and as part of the tag.

    Args:
        value: The default value extracted from source code

    Returns:
        The skeleton of the value
    """
    if isinstance(value, list):
        return [generate_skeleton(item) for item in value]
    if isinstance(value, dict):
        return {key: generate_skeleton(item) for key, item in value.items()}
    if isinstance(value, str):
        tokens = [*INTERPOLATION_REGEX.findall(value), *TAG_REGEX.findall(value)]
        return " ".join(tokens)
    return value


def has_string_leaves(value: object) -> bool:
    """Return True if the value contains at least one translatable string."""
    if isinstance(value, str):
        return True
    if isinstance(value, list):
        return any(has_string_leaves(item) for item in cast(list[object], value))
    if isinstance(value, dict):
        return any(has_string_leaves(item) for item in cast(dict[str, object], value).values())
    return False


def merge_deep(
    existing: object,
    incoming: TranslationValue,
    *,
    strict: bool = True,
) -> TranslationValue:
    """
    Merge a freshly extracted value into an existing persisted value.

    Structure always follows ``incoming``: kind mismatches are overwritten,
    lists take the incoming length and, in strict mode, mapping keys absent
    from ``incoming`` are dropped. String (and other primitive) leaves that
    already exist are kept as they are.

    Args:
        existing: The value currently stored in a document, or None
        incoming: The value derived from source code
        strict: Drop mapping keys that are not present in ``incoming``

    Returns:
        The merged value
    """
    if existing is None:
        return incoming

    if value_kind(existing) != value_kind(incoming):
        return incoming

    if isinstance(incoming, list):
        existing_items = cast(list[object], existing)
        return [
            merge_deep(
                existing_items[index] if index < len(existing_items) else None,
                item,
                strict=strict,
            )
            for index, item in enumerate(incoming)
        ]

    if isinstance(incoming, dict):
        existing_map = cast(dict[str, TranslationValue], existing)
        result: dict[str, TranslationValue] = {} if strict else dict(existing_map)
        for key, item in incoming.items():
            result[key] = merge_deep(existing_map.get(key), item, strict=strict)
        return result

    return cast(TranslationValue, existing)


def canonical_json(value: object) -> str:
    """Serialize a value deterministically for hashing and comparison."""
    return json.dumps(value, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def quick_hash(value: TranslationValue) -> str:
    """
    Short content hash used to detect changed default values between runs.

    Strings are hashed over their raw text. Other values are hashed over
    their kind and canonical JSON, so ``"5"`` and ``5`` hash differently.
    """
    if isinstance(value, str):
        text = value
    else:
        text = f"{value_kind(value)}:{canonical_json(value)}"
    return hashlib.md5(text.encode("utf-8")).hexdigest()[:8]


def get_nested_value(document: JsonDocument, key_path: str) -> object:
    """
    Look up a dotted key path in a nested document.

    Returns:
        The stored value, or None if any segment is missing
    """
    current: object = document
    for segment in key_path.split(KEY_SEPARATOR):
        if not isinstance(current, dict) or segment not in current:
            return None
        current = cast(dict[str, object], current)[segment]
    return current


def set_nested_value(document: JsonDocument, key_path: str, value: object) -> None:
    """Store a value at a dotted key path, replacing non-mapping intermediates."""
    segments = key_path.split(KEY_SEPARATOR)
    current = document
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = cast(JsonDocument, child)
    current[segments[-1]] = value


def remove_nested_key(document: JsonDocument, key_path: str) -> JsonDocument:
    """
    Return a copy of the document without the given key path.

    Parent mappings left empty by the removal are removed as well.
    """
    head, _, rest = key_path.partition(KEY_SEPARATOR)
    result = dict(document)

    if not rest:
        _ = result.pop(head, None)
        return result

    child = result.get(head)
    if isinstance(child, dict):
        updated = remove_nested_key(cast(JsonDocument, child), rest)
        if updated:
            result[head] = updated
        else:
            del result[head]

    return result
