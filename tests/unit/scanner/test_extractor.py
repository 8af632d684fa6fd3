"""Tests for translation key extraction from Python source."""

from __future__ import annotations

import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from keysync.config.schema import KeySyncConfig, ScanConfig
from keysync.core.exceptions import ScanError
from keysync.scanner.extractor import (
    extract_keys_from_file,
    extract_keys_from_source,
    iter_source_files,
    scan_all_files,
    split_namespace,
)


def _extract(code: str) -> dict[str, object]:
    keys = extract_keys_from_source(textwrap.dedent(code), "module.py", ScanConfig())
    return {key.full_key: key.default_value for key in keys}


class TestTranslationCalls:
    """Test extraction of t(...) call sites."""

    def test_default_namespace(self) -> None:
        """Keys without context use the default namespace."""
        assert _extract('t("welcome", default_value="Welcome")') == {
            "translation:welcome": "Welcome"
        }

    def test_explicit_namespace_prefix(self) -> None:
        """A ns: prefix in the key selects the namespace."""
        assert _extract('t("home:hero.title", default_value="Hi")') == {"home:hero.title": "Hi"}

    def test_location_records_line(self) -> None:
        """Each key remembers where it was found."""
        keys = extract_keys_from_source('\n\nt("a", default_value="A")\n', "pkg/view.py", ScanConfig())
        assert keys[0].location == "pkg/view.py:3"
        assert keys[0].namespace == "translation"
        assert keys[0].key_path == "a"

    def test_suffixed_defaults_create_distinct_keys(self) -> None:
        """default_value_<suffix> keywords fold the suffix into the key path."""
        extracted = _extract(
            """
            t(
                "items",
                default_value_one="{{count}} item",
                default_value_other="{{count}} items",
                count=n,
            )
            """
        )
        assert extracted == {
            "translation:items_one": "{{count}} item",
            "translation:items_other": "{{count}} items",
        }

    def test_composite_default_values(self) -> None:
        """Lists and mappings of literals are accepted."""
        extracted = _extract(
            """
            t("features", default_value=["Fast", "Safe"])
            t("card", default_value={"title": "Card", "rank": 1})
            """
        )
        assert extracted["translation:features"] == ["Fast", "Safe"]
        assert extracted["translation:card"] == {"title": "Card", "rank": 1}

    def test_constants_resolve_default_values(self) -> None:
        """Module constants can be used as default values."""
        extracted = _extract(
            """
            STEPS = ["Pick", "Pay"]

            def view():
                return t("steps", default_value=STEPS)
            """
        )
        assert extracted == {"translation:steps": ["Pick", "Pay"]}

    def test_unsupported_expressions_are_skipped(self) -> None:
        """Non-literal defaults and keys produce no extraction."""
        extracted = _extract(
            """
            t("dynamic", default_value=f"Hi {name}")
            t("call", default_value=make())
            t(key_variable, default_value="x")
            t("no_default")
            other("ignored", default_value="x")
            obj.t("attribute", default_value="x")
            """
        )
        assert extracted == {}

    def test_last_call_site_wins(self) -> None:
        """Two call sites with the same identity keep the later default."""
        extracted = _extract(
            """
            t("dup", default_value="First")
            t("dup", default_value="Second")
            """
        )
        assert extracted == {"translation:dup": "Second"}


class TestNamespaceResolution:
    """Test namespace precedence at function boundaries."""

    def test_parameter_annotation(self) -> None:
        """TFunction["ns"] on the t parameter sets the namespace."""
        extracted = _extract(
            """
            def render(t: TFunction["products"]):
                return t("title", default_value="Products")
            """
        )
        assert extracted == {"products:title": "Products"}

    def test_parameter_annotation_with_literal(self) -> None:
        """TFunction[Literal["ns"]] and quoted annotations are understood."""
        extracted = _extract(
            """
            def a(t: TFunction[Literal["shop"]]):
                t("a", default_value="A")

            def b(t: "TFunction['cart']"):
                t("b", default_value="B")
            """
        )
        assert extracted == {"shop:a": "A", "cart:b": "B"}

    def test_hook_call(self) -> None:
        """use_translation("ns") in the function body sets the namespace."""
        extracted = _extract(
            """
            def page():
                t = use_translation("about")
                return t("title", default_value="About")

            async def other():
                t = use_translation(["contact", "common"])
                return t("title", default_value="Contact")
            """
        )
        assert extracted == {"about:title": "About", "contact:title": "Contact"}

    def test_parameter_beats_hook(self) -> None:
        """The annotation wins over a hook in the same function."""
        extracted = _extract(
            """
            def page(t: TFunction["params"]):
                t = use_translation("hook")
                return t("title", default_value="T")
            """
        )
        assert extracted == {"params:title": "T"}

    def test_explicit_prefix_beats_context(self) -> None:
        """An explicit prefix wins over any function context."""
        extracted = _extract(
            """
            def page():
                t = use_translation("about")
                return t("common:ok", default_value="OK")
            """
        )
        assert extracted == {"common:ok": "OK"}

    def test_nested_functions_inherit_and_override(self) -> None:
        """Inner functions inherit the namespace unless they declare their own."""
        extracted = _extract(
            """
            def outer():
                t = use_translation("outer")

                def inherits():
                    return t("a", default_value="A")

                def overrides(t: TFunction["inner"]):
                    return t("b", default_value="B")

                return t("c", default_value="C")

            t("d", default_value="D")
            """
        )
        assert extracted == {
            "outer:a": "A",
            "inner:b": "B",
            "outer:c": "C",
            "translation:d": "D",
        }

    def test_split_namespace(self) -> None:
        """Only the first separator splits the key."""
        assert split_namespace("a:b:c", "x") == ("a", "b:c")
        assert split_namespace("plain", "x") == ("x", "plain")


class TestComponents:
    """Test extraction of Trans(...) component attributes."""

    def test_component_attributes(self) -> None:
        """i18n_key and defaults produce a key in the active namespace."""
        extracted = _extract(
            """
            def page():
                t = use_translation("about")
                return Trans(i18n_key="intro", defaults="Read <b>more</b>")
            """
        )
        assert extracted == {"about:intro": "Read <b>more</b>"}

    def test_component_requires_both_attributes(self) -> None:
        """A component without defaults is ignored."""
        assert _extract('Trans(i18n_key="intro")') == {}


class TestFileScanning:
    """Test scanning files and directories."""

    def test_invalid_syntax_raises_scan_error(self, tmp_path: Path) -> None:
        """A single file that does not parse raises ScanError."""
        path = tmp_path / "broken.py"
        _ = path.write_text("def broken(:\n", encoding="utf-8")
        with pytest.raises(ScanError):
            _ = extract_keys_from_file(path, ScanConfig())

    def test_scan_skips_broken_and_ignored_files(
        self, config: KeySyncConfig, write_source: Callable[[str, str], Path]
    ) -> None:
        """Broken files are skipped with a warning, ignored directories are not read."""
        _ = write_source("app/views.py", 't("home:title", default_value="Home")\n')
        _ = write_source("app/broken.py", "def broken(:\n")
        _ = write_source("messages/en/__init__.py", 't("ignored", default_value="x")\n')
        _ = write_source("notes.txt", 't("txt", default_value="x")\n')

        keys = scan_all_files(config.paths, config.scan)

        assert set(keys) == {"home:title"}
        assert keys["home:title"].location.endswith("views.py:1")

    def test_iter_source_files_is_sorted(
        self, config: KeySyncConfig, write_source: Callable[[str, str], Path]
    ) -> None:
        """Files are visited in sorted order so collisions resolve deterministically."""
        _ = write_source("b.py", "")
        _ = write_source("a/z.py", "")
        _ = write_source("a.py", "")

        files = iter_source_files(config.paths.source_dir, config.scan)
        assert files == sorted(files)
        assert len(files) == 3

    def test_missing_source_dir(self, tmp_path: Path) -> None:
        """A missing source directory yields no files."""
        assert iter_source_files(tmp_path / "missing", ScanConfig()) == []
