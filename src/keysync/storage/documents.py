"""
Persistence of per-language translation documents.

Every (language, namespace) pair maps to one JSON document under the
messages directory. Documents are always written with recursively sorted
keys so that successive runs produce stable, line-level diffs, and a file
is only rewritten when its serialized content actually changes.

Each language directory also carries a generated index module listing the
namespaces that exist for it; the runtime loader reads that module to find
every document of a language.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path
from typing import cast

from ..config.schema import PathsConfig
from ..core.exceptions import StorageError
from ..core.types import JsonDocument, Snapshot

logger = logging.getLogger(__name__)

INDEX_FILENAME = "__init__.py"


def sort_deep(value: object) -> object:
    """Recursively sort mapping keys, leaving list order untouched."""
    if isinstance(value, list):
        return [sort_deep(item) for item in cast(list[object], value)]
    if isinstance(value, dict):
        mapping = cast(dict[str, object], value)
        return {key: sort_deep(mapping[key]) for key in sorted(mapping)}
    return value


def serialize_document(data: object) -> str:
    """Serialize a document the way it is stored on disk."""
    return json.dumps(sort_deep(data), indent=2, ensure_ascii=False) + "\n"


def write_text_if_changed(path: Path, content: str) -> bool:
    """
    Atomically write ``content`` to ``path`` unless it already holds it.

    Returns:
        True if the file was written

    Raises:
        StorageError: If the file cannot be written
    """
    if path.exists():
        try:
            if path.read_text(encoding="utf-8") == content:
                return False
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Could not compare existing {path}, rewriting: {e}")

    temp_file = None
    try:
        _ = path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as temp_file:
            _ = temp_file.write(content)
            temp_file.flush()
            temp_path = Path(temp_file.name)

        _ = temp_path.replace(path)
    except Exception as e:
        if temp_file and Path(temp_file.name).exists():
            Path(temp_file.name).unlink(missing_ok=True)
        raise StorageError(f"Failed to write {path}: {e}", context=path) from e

    return True


def load_json_file(path: Path) -> JsonDocument:
    """
    Load a JSON document, never raising to the caller.

    Returns:
        The parsed mapping, or an empty mapping if the file is missing,
        unreadable, corrupt or does not contain a JSON object
    """
    if not path.exists():
        return {}

    try:
        data: object = json.loads(path.read_text(encoding="utf-8"))  # pyright: ignore[reportAny]
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Treating unreadable document {path} as empty: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(
            f"Treating {path} as empty: expected a JSON object, got {type(data).__name__}"
        )
        return {}

    return cast(JsonDocument, data)


def save_json_file(path: Path, data: object) -> bool:
    """
    Save a JSON document with sorted keys.

    Returns:
        True if the file content changed on disk
    """
    written = write_text_if_changed(path, serialize_document(data))
    if written:
        logger.debug(f"Wrote {path}")
    return written


def render_index_module(language: str, namespaces: list[str]) -> str:
    """Render the namespace index module of a language."""
    entries = "".join(f"    {json.dumps(namespace)},\n" for namespace in sorted(namespaces))
    return (
        f'"""Namespace index for "{language}". Generated by keysync, do not edit."""\n'
        "\n"
        f"NAMESPACES: tuple[str, ...] = (\n{entries})\n"
    )


class DocumentStore:
    """Loads and saves documents, namespace indexes and the hash snapshot."""

    def __init__(self, paths: PathsConfig) -> None:
        self.messages_dir: Path = paths.messages_dir
        self.hash_file: Path = paths.hash_file

    def language_dir(self, language: str) -> Path:
        return self.messages_dir / language

    def document_path(self, language: str, namespace: str) -> Path:
        return self.language_dir(language) / f"{namespace}.json"

    def index_path(self, language: str) -> Path:
        return self.language_dir(language) / INDEX_FILENAME

    def load_document(self, language: str, namespace: str) -> JsonDocument:
        return load_json_file(self.document_path(language, namespace))

    def save_document(self, language: str, namespace: str, data: JsonDocument) -> bool:
        return save_json_file(self.document_path(language, namespace), data)

    def delete_document(self, language: str, namespace: str) -> bool:
        """
        Delete a document from disk.

        Returns:
            True if a file was removed, False if it was already gone
        """
        path = self.document_path(language, namespace)
        if not path.exists():
            return False
        path.unlink(missing_ok=True)
        logger.debug(f"Deleted {path}")
        return True

    def get_namespaces(self, language: str) -> list[str]:
        """List the namespaces that have a document for ``language``, sorted."""
        directory = self.language_dir(language)
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob("*.json") if path.is_file())

    def ensure_namespace_file(self, language: str, namespace: str) -> bool:
        """
        Create an empty document for the namespace if none exists.

        Returns:
            True if a file was created
        """
        path = self.document_path(language, namespace)
        if path.exists():
            return False
        _ = write_text_if_changed(path, "{}\n")
        logger.debug(f"Created {path}")
        return True

    def update_index_file(self, language: str, namespaces: list[str]) -> bool:
        """
        Regenerate the namespace index module of a language.

        Returns:
            True if the index content changed
        """
        content = render_index_module(language, sorted(set(namespaces)))
        return write_text_if_changed(self.index_path(language), content)

    def load_hashes(self) -> Snapshot:
        return cast(Snapshot, load_json_file(self.hash_file))

    def save_hashes(self, hashes: Snapshot) -> bool:
        return save_json_file(self.hash_file, hashes)
