"""Tests for runtime translation lookup."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from keysync import runtime
from keysync.config.schema import KeySyncConfig
from keysync.runtime import (
    Translator,
    activate,
    candidate_keys,
    interpolate,
    load_index,
    use_translation,
)
from keysync.storage.documents import DocumentStore
from keysync.sync.extract import run_extract

SourceWriter = Callable[[str, str], Path]


@pytest.fixture
def translator() -> Translator:
    """A French translator with a few documents."""
    return Translator(
        "fr",
        {
            "translation": {
                "hello": "Bonjour {{name}}",
                "items_one": "{{count}} article",
                "items_other": "{{count}} articles",
                "friend_male": "Un ami",
                "empty": "",
            },
            "home": {"hero": {"title": "Accueil"}},
        },
    )


class TestHelpers:
    """Test lookup helpers."""

    def test_interpolate(self) -> None:
        """Known placeholders are replaced, unknown ones are kept."""
        assert interpolate("{{ a }} and {{b}}", {"a": 1}) == "1 and {{b}}"

    def test_candidate_order(self) -> None:
        """Context and plural variants are tried before the plain key."""
        assert candidate_keys("k", "male", 2) == ["k_male_other", "k_male", "k_other", "k"]
        assert candidate_keys("k", None, 1) == ["k_one", "k"]


class TestTranslator:
    """Test Translator lookups."""

    def test_lookup_and_interpolate(self, translator: Translator) -> None:
        """Stored values are interpolated."""
        assert translator.t("hello", name="Ada") == "Bonjour Ada"
        assert translator.t("home:hero.title") == "Accueil"

    def test_plurals_and_context(self, translator: Translator) -> None:
        """Plural and context suffixes pick the right variant."""
        assert translator.t("items", count=1) == "1 article"
        assert translator.t("items", count=4) == "4 articles"
        assert translator.t("friend", context="male") == "Un ami"

    def test_fallbacks(self, translator: Translator) -> None:
        """Missing or blank values fall back to the defaults given in code."""
        assert translator.t("empty", default_value="Empty") == "Empty"
        assert translator.t("missing", default_value="Hi {{name}}", name="Bo") == "Hi Bo"
        assert translator.t("cart", count=2, default_value_other="{{count}} carts") == "2 carts"
        assert translator.t("unknown") == "unknown"

    def test_bind_and_hook(self, translator: Translator, monkeypatch: pytest.MonkeyPatch) -> None:
        """use_translation binds the first namespace of the active translator."""
        monkeypatch.setattr(runtime, "_active", None)
        assert use_translation("home")("hero.title", "Home") == "Home"

        activate(translator)
        assert use_translation(["home", "common"])("hero.title") == "Accueil"
        assert translator.bind("home")("hero.title") == "Accueil"


class TestLoading:
    """Test loading documents through the generated index."""

    def test_from_directory(
        self, config: KeySyncConfig, store: DocumentStore, write_source: SourceWriter
    ) -> None:
        """Every namespace listed in the index is loaded."""
        _ = write_source(
            "a.py",
            't("home:title", default_value="Home")\nt("common:ok", default_value="OK")\n',
        )
        _ = run_extract(config, store)
        _ = store.save_document("fr", "home", {"title": "Accueil"})

        assert load_index(config.paths.messages_dir, "fr") == ("common", "home")
        translator = Translator.from_directory(config.paths.messages_dir, "fr")
        assert translator.t("home:title") == "Accueil"
        assert translator.t("common:ok", default_value="OK") == "OK"

    def test_missing_index(self, tmp_path: Path) -> None:
        """A language without an index has no namespaces."""
        assert load_index(tmp_path, "de") == ()
