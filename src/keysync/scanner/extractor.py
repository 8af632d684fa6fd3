"""
Extraction of translation keys from Python source code.

This module walks the syntax tree of every eligible source file and records
each translation call site together with its literal default value.

Recognised call sites:
    Translation function:
        >>> t("home:title", default_value="Welcome")
        >>> t("items", default_value_one="{{count}} item", default_value_other="{{count}} items")

    Component attributes:
        >>> Trans(i18n_key="about:intro", defaults="Read <b>more</b>")

The namespace of a key is, in order of precedence: an explicit ``ns:``
prefix in the key, the ``TFunction["ns"]`` annotation of the enclosing
function's ``t`` parameter, the first argument of a ``use_translation``
call in the enclosing function's body, and finally the configured default
namespace.
"""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import TypeAlias

from ..config.schema import PathsConfig, ScanConfig
from ..core.exceptions import ScanError
from ..core.types import NAMESPACE_SEPARATOR, ExtractedKey, TranslationValue
from .resolver import Scope, extract_file_constants, resolve_value

logger = logging.getLogger(__name__)

DEFAULT_VALUE_KEYWORD = "default_value"
COMPONENT_KEY_ATTRIBUTE = "i18n_key"
COMPONENT_DEFAULTS_ATTRIBUTE = "defaults"

FunctionNode: TypeAlias = ast.FunctionDef | ast.AsyncFunctionDef


def split_namespace(raw_key: str, active_namespace: str) -> tuple[str, str]:
    """
    Split a raw key into namespace and key path.

    An explicit ``ns:`` prefix wins over the active namespace.
    """
    if NAMESPACE_SEPARATOR in raw_key:
        namespace, _, key_path = raw_key.partition(NAMESPACE_SEPARATOR)
        return namespace, key_path
    return active_namespace, raw_key


def _string_literal(node: ast.AST | None) -> str | None:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def _callee_name(node: ast.AST) -> str | None:
    if isinstance(node, ast.Name):
        return node.id
    return None


class KeyExtractor:
    """
    Syntax tree walker collecting translation keys from one module.

    The active namespace is passed down the recursion as an argument and
    only replaced at function boundaries, so any subtree can be visited on
    its own with an explicit starting namespace.
    """

    def __init__(self, filename: str, scope: Scope, settings: ScanConfig) -> None:
        """
        Initialize the key extractor.

        Args:
            filename: Name of the file being processed, used in locations
            scope: Module-level constants used to resolve bare names
            settings: Scanner vocabulary and default namespace
        """
        self.filename: str = filename
        self.scope: Scope = scope
        self.settings: ScanConfig = settings
        self.keys: list[ExtractedKey] = []

    def visit(self, node: ast.AST, namespace: str) -> None:
        """Visit a node and its children with the given active namespace."""
        if isinstance(node, FunctionNode):
            namespace = self.function_namespace(node) or namespace

        if isinstance(node, ast.Call):
            callee = _callee_name(node.func)
            if callee == self.settings.translate_function:
                self._extract_translation_call(node, namespace)
            elif callee == self.settings.component:
                self._extract_component(node, namespace)

        for child in ast.iter_child_nodes(node):
            self.visit(child, namespace)

    def function_namespace(self, node: FunctionNode) -> str | None:
        """Namespace declared by a function, from its parameters or its hook call."""
        return self._namespace_from_params(node) or self._namespace_from_hook(node)

    def _namespace_from_params(self, node: FunctionNode) -> str | None:
        arguments = node.args
        for argument in (*arguments.posonlyargs, *arguments.args, *arguments.kwonlyargs):
            if argument.arg != self.settings.translate_function or argument.annotation is None:
                continue
            namespace = self._namespace_from_annotation(argument.annotation)
            if namespace:
                return namespace
        return None

    def _namespace_from_annotation(self, annotation: ast.expr) -> str | None:
        # Quoted annotations: t: "TFunction['products']"
        quoted = _string_literal(annotation)
        if quoted is not None:
            try:
                annotation = ast.parse(quoted, mode="eval").body
            except SyntaxError:
                return None

        match annotation:
            case ast.Subscript(value=ast.Name(id=name) | ast.Attribute(attr=name), slice=argument) if (
                name == self.settings.type_hint
            ):
                # TFunction[Literal["products"]]
                if isinstance(argument, ast.Subscript):
                    argument = argument.slice
                return _string_literal(argument)
            case _:
                return None

    def _namespace_from_hook(self, node: FunctionNode) -> str | None:
        for statement in node.body:
            if not isinstance(statement, ast.Assign | ast.AnnAssign | ast.Expr):
                continue
            call = statement.value
            if not isinstance(call, ast.Call):
                continue
            if _callee_name(call.func) != self.settings.hook_function or not call.args:
                continue

            first = call.args[0]
            if isinstance(first, ast.List | ast.Tuple):
                return _string_literal(first.elts[0]) if first.elts else None
            return _string_literal(first)
        return None

    def _extract_translation_call(self, node: ast.Call, namespace: str) -> None:
        raw_key = _string_literal(node.args[0]) if node.args else None
        if raw_key is None:
            return

        key_namespace, key_path = split_namespace(raw_key, namespace)
        for keyword in node.keywords:
            if keyword.arg is None or not keyword.arg.startswith(DEFAULT_VALUE_KEYWORD):
                continue

            default_value = resolve_value(keyword.value, self.scope)
            if default_value is None:
                continue

            suffix = keyword.arg.removeprefix(DEFAULT_VALUE_KEYWORD)
            self._record(key_namespace, f"{key_path}{suffix}", default_value, node)

    def _extract_component(self, node: ast.Call, namespace: str) -> None:
        attributes = {keyword.arg: keyword.value for keyword in node.keywords if keyword.arg}
        raw_key = _string_literal(attributes.get(COMPONENT_KEY_ATTRIBUTE))
        defaults = _string_literal(attributes.get(COMPONENT_DEFAULTS_ATTRIBUTE))
        if not raw_key or not defaults:
            return

        key_namespace, key_path = split_namespace(raw_key, namespace)
        self._record(key_namespace, key_path, defaults, node)

    def _record(
        self, namespace: str, key_path: str, default_value: TranslationValue, node: ast.Call
    ) -> None:
        extracted = ExtractedKey(
            namespace=namespace,
            key_path=key_path,
            default_value=default_value,
            location=f"{self.filename}:{node.lineno}",
        )
        self.keys.append(extracted)
        logger.debug(f"Found key {extracted.full_key} at {extracted.location}")


def extract_keys_from_source(source: str, filename: str, settings: ScanConfig) -> list[ExtractedKey]:
    """
    Extract translation keys from Python source text.

    Raises:
        SyntaxError: If the source is not valid Python
    """
    tree = ast.parse(source, filename=filename)
    extractor = KeyExtractor(filename, extract_file_constants(tree), settings)
    extractor.visit(tree, settings.default_namespace)
    return extractor.keys


def extract_keys_from_file(filepath: Path, settings: ScanConfig) -> list[ExtractedKey]:
    """
    Extract translation keys from a single source file.

    Args:
        filepath: Path to the file to process
        settings: Scanner vocabulary and default namespace

    Returns:
        Keys in the order their call sites appear

    Raises:
        ScanError: If the file cannot be read or parsed
    """
    try:
        content = filepath.read_text(encoding="utf-8")
        return extract_keys_from_source(content, str(filepath), settings)
    except (OSError, UnicodeDecodeError, SyntaxError, ValueError) as e:
        raise ScanError(f"Cannot scan {filepath}: {e}", context=filepath) from e


def iter_source_files(source_dir: Path, settings: ScanConfig) -> list[Path]:
    """List eligible source files in sorted order, skipping ignored directories."""
    if not source_dir.is_dir():
        logger.warning(f"Source directory does not exist: {source_dir}")
        return []

    ignored = set(settings.ignore_dirs)
    files: set[Path] = set()
    for extension in settings.extensions:
        for filepath in source_dir.rglob(f"*.{extension}"):
            relative_dirs = filepath.relative_to(source_dir).parts[:-1]
            if any(part in ignored for part in relative_dirs) or not filepath.is_file():
                continue
            files.add(filepath)
    return sorted(files)


def scan_all_files(paths: PathsConfig, settings: ScanConfig) -> dict[str, ExtractedKey]:
    """
    Scan every eligible source file for translation keys.

    Files that cannot be parsed are skipped with a warning. When two call
    sites share an identity the later one (in sorted file order, then source
    order) wins.

    Returns:
        Mapping of full key identity (``namespace:key.path``) to its key
    """
    keys: dict[str, ExtractedKey] = {}
    files = iter_source_files(paths.source_dir, settings)

    for filepath in files:
        try:
            extracted = extract_keys_from_file(filepath, settings)
        except ScanError as e:
            logger.warning(f"Skipping file: {e}")
            continue

        for key in extracted:
            previous = keys.get(key.full_key)
            if previous is not None and previous.location != key.location:
                logger.debug(
                    f"Key {key.full_key} at {key.location} overrides {previous.location}"
                )
            keys[key.full_key] = key

    logger.info(f"Scanned {len(files)} files, found {len(keys)} translation keys")
    return keys
