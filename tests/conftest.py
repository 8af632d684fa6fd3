"""
Global test configuration fixtures for keysync tests.

This module provides fixtures that build a throw-away project tree (source
directory, messages directory and hash snapshot) together with a matching
KeySyncConfig and DocumentStore.
"""

from __future__ import annotations

import json
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from keysync.config.manager import ConfigManager
from keysync.config.schema import KeySyncConfig, LanguageConfig
from keysync.storage.documents import DocumentStore

SourceWriter = Callable[[str, str], Path]
DocumentReader = Callable[[str, str], dict[str, object]]


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create an empty project with a source directory."""
    _ = (tmp_path / "src").mkdir()
    return tmp_path


@pytest.fixture
def config(project_dir: Path) -> KeySyncConfig:
    """
    Create a configuration rooted at the temporary project.

    Languages: en (source), fr and tr.
    """
    base = KeySyncConfig(
        languages=[
            LanguageConfig(value="en", label="English", default=True),
            LanguageConfig(value="fr", label="Français"),
            LanguageConfig(value="tr", label="Türkçe"),
        ]
    )
    return ConfigManager.resolve_paths(base, project_dir)


@pytest.fixture
def store(config: KeySyncConfig) -> DocumentStore:
    """Create a document store for the temporary project."""
    return DocumentStore(config.paths)


@pytest.fixture
def write_source(config: KeySyncConfig) -> SourceWriter:
    """Return a helper writing a dedented Python file under the source directory."""

    def _write(relative_path: str, code: str) -> Path:
        path = config.paths.source_dir / relative_path
        _ = path.parent.mkdir(parents=True, exist_ok=True)
        _ = path.write_text(textwrap.dedent(code), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_document(config: KeySyncConfig) -> DocumentReader:
    """Return a helper reading a persisted document straight from disk."""

    def _read(language: str, namespace: str) -> dict[str, object]:
        path = config.paths.messages_dir / language / f"{namespace}.json"
        return json.loads(path.read_text(encoding="utf-8"))  # pyright: ignore[reportAny]

    return _read
