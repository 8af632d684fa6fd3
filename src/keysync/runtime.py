"""
Runtime lookup of synchronized translations.

This module is the consumer side of the persisted documents: it loads every
namespace of a language through the generated index module and resolves
``namespace:key.path`` lookups with context and plural suffixes.

Usage Examples:
    Load a language and translate:
        >>> translator = Translator.from_directory(Path("src/messages"), "fr")
        >>> translator.t("home:title", default_value="Welcome")
        'Bienvenue'

    Interpolation and plurals:
        >>> translator.t("items", count=3, default_value_other="{{count}} items")
        '3 articles'

    Bind a namespace inside a function (also read by the scanner):
        >>> def render(t: TFunction["products"]) -> str:
        ...     return t("empty", default_value="No products")
        >>> def page() -> str:
        ...     t = use_translation("products")
        ...     return t("empty", default_value="No products")
"""

from __future__ import annotations

import importlib.util
import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, cast

from .core.types import JsonDocument, split_full_key
from .core.values import get_nested_value
from .storage.documents import INDEX_FILENAME, load_json_file

logger = logging.getLogger(__name__)

INTERPOLATION_REGEX = re.compile(r"\{\{\s*([^}\s]+)\s*\}\}")
DEFAULT_NAMESPACE = "translation"


class _TranslateFunction(Protocol):
    def __call__(self, key: str, /, **options: object) -> str: ...


class TFunction:
    """
    Annotation marker for a translation function bound to a namespace.

    ``TFunction["products"]`` is what the key scanner reads; at runtime the
    subscription simply returns the callable protocol.
    """

    def __class_getitem__(cls, namespace: object) -> type[_TranslateFunction]:
        return _TranslateFunction


def load_index(messages_dir: Path, language: str) -> tuple[str, ...]:
    """
    Read the namespace list from a language's generated index module.

    Returns:
        The namespaces, or an empty tuple if the index is missing
    """
    index_path = messages_dir / language / INDEX_FILENAME
    if not index_path.exists():
        logger.warning(f"No namespace index for {language}: {index_path}")
        return ()

    spec = importlib.util.spec_from_file_location(f"keysync_index_{language}", index_path)
    if spec is None or spec.loader is None:
        return ()
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return tuple(cast(tuple[str, ...], getattr(module, "NAMESPACES", ())))


def load_language(messages_dir: Path, language: str) -> dict[str, JsonDocument]:
    """Load every namespace document of a language."""
    return {
        namespace: load_json_file(messages_dir / language / f"{namespace}.json")
        for namespace in load_index(messages_dir, language)
    }


def interpolate(template: str, values: dict[str, object]) -> str:
    """Replace ``{{name}}`` placeholders; unknown names are left untouched."""

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        return str(values[name]) if name in values else match.group(0)

    return INTERPOLATION_REGEX.sub(_replace, template)


def plural_suffix(count: int | float) -> str:
    return "one" if count == 1 else "other"


def candidate_keys(key_path: str, context: str | None, count: int | float | None) -> list[str]:
    """Lookup order: key_context_plural, key_context, key_plural, key."""
    plural = plural_suffix(count) if count is not None else None
    candidates: list[str] = []
    if context and plural:
        candidates.append(f"{key_path}_{context}_{plural}")
    if context:
        candidates.append(f"{key_path}_{context}")
    if plural:
        candidates.append(f"{key_path}_{plural}")
    candidates.append(key_path)
    return candidates


class Translator:
    """Resolves keys against the documents of one language."""

    def __init__(
        self,
        language: str,
        documents: dict[str, JsonDocument],
        default_namespace: str = DEFAULT_NAMESPACE,
    ) -> None:
        self.language: str = language
        self.documents: dict[str, JsonDocument] = documents
        self.default_namespace: str = default_namespace

    @classmethod
    def from_directory(
        cls, messages_dir: Path, language: str, default_namespace: str = DEFAULT_NAMESPACE
    ) -> Translator:
        return cls(language, load_language(messages_dir, language), default_namespace)

    def lookup(self, namespace: str, key_path: str) -> object:
        return get_nested_value(self.documents.get(namespace, {}), key_path)

    def t(
        self,
        key: str,
        default_value: str | None = None,
        *,
        namespace: str | None = None,
        context: str | None = None,
        count: int | float | None = None,
        **values: object,
    ) -> str:
        """
        Translate a key.

        Keyword arguments named ``default_value_<suffix>`` provide fallbacks
        for suffixed variants; other keyword arguments are interpolated.
        """
        if ":" in key:
            key_namespace, key_path = split_full_key(key)
        else:
            key_namespace, key_path = namespace or self.default_namespace, key

        variant_defaults = {
            name.removeprefix("default_value"): value
            for name, value in values.items()
            if name.startswith("default_value_")
        }
        params = {name: value for name, value in values.items() if not name.startswith("default_value_")}
        if count is not None:
            params.setdefault("count", count)
        if context is not None:
            params.setdefault("context", context)

        for candidate in candidate_keys(key_path, context, count):
            value = self.lookup(key_namespace, candidate)
            if isinstance(value, str) and value.strip():
                return interpolate(value, params)

        for candidate in candidate_keys("", context, count):
            fallback = variant_defaults.get(candidate)
            if isinstance(fallback, str):
                return interpolate(fallback, params)

        return interpolate(default_value if default_value is not None else key, params)

    def bind(self, namespace: str) -> Callable[..., str]:
        """Return ``t`` with ``namespace`` as its default namespace."""

        def bound(key: str, default_value: str | None = None, **options: object) -> str:
            return self.t(key, default_value, namespace=namespace, **options)  # pyright: ignore[reportArgumentType]

        return bound


_active: Translator | None = None


def activate(translator: Translator) -> None:
    """Make ``translator`` the one used by :func:`use_translation`."""
    global _active
    _active = translator


def use_translation(namespaces: str | list[str] | tuple[str, ...] | None = None) -> Callable[..., str]:
    """
    Return a translation function for the active language.

    The first namespace given becomes the default namespace of the returned
    function. Without an active translator keys fall back to their defaults.
    """
    if isinstance(namespaces, str):
        namespace = namespaces
    elif namespaces:
        namespace = namespaces[0]
    else:
        namespace = None

    translator = _active or Translator("", {})
    return translator.bind(namespace or translator.default_namespace)
