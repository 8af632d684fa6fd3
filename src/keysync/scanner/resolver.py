"""
Resolution of literal expressions into translation values.

Only literal forms are understood: strings, numbers, booleans, lists,
tuples, dict displays, ``dict(key=value)`` calls and names bound to a
module-level constant. Anything else resolves to None, which callers treat
as "nothing to extract" rather than as an error.
"""

from __future__ import annotations

import ast
from collections.abc import Mapping
from types import MappingProxyType

from ..core.types import TranslationValue

Scope = Mapping[str, TranslationValue]

EMPTY_SCOPE: Scope = MappingProxyType({})


def resolve_value(node: ast.AST, scope: Scope = EMPTY_SCOPE) -> TranslationValue | None:
    """
    Convert a literal expression node into a translation value.

    Args:
        node: Expression node taken from a parsed module
        scope: Module-level constants available to bare names

    Returns:
        The resolved value, or None if the expression is not a supported literal
    """
    match node:
        case ast.Constant(value=bool() | str() as value):
            return value
        case ast.Constant(value=int() | float() as value):
            return value
        case ast.UnaryOp(
            op=ast.USub(), operand=ast.Constant(value=int() | float() as value)
        ) if not isinstance(value, bool):
            return -value
        case ast.JoinedStr(values=parts) if all(
            isinstance(part, ast.Constant) for part in parts
        ):
            return "".join(str(part.value) for part in parts if isinstance(part, ast.Constant))
        case ast.Name(id=name):
            return scope.get(name)
        case ast.List(elts=elements) | ast.Tuple(elts=elements):
            items = [resolve_value(element, scope) for element in elements]
            return [item for item in items if item is not None]
        case ast.Dict(keys=keys, values=values):
            mapping: dict[str, TranslationValue] = {}
            for key_node, value_node in zip(keys, values, strict=True):
                # None key marks a ** spread
                if not isinstance(key_node, ast.Constant) or not isinstance(key_node.value, str):
                    continue
                value = resolve_value(value_node, scope)
                if value is not None:
                    mapping[key_node.value] = value
            return mapping
        case ast.Call(func=ast.Name(id="dict"), args=[], keywords=keywords):
            mapping = {}
            for keyword in keywords:
                if keyword.arg is None:
                    continue
                value = resolve_value(keyword.value, scope)
                if value is not None:
                    mapping[keyword.arg] = value
            return mapping
        case _:
            return None


def _assignment_targets(statement: ast.stmt) -> tuple[list[str], ast.expr | None]:
    match statement:
        case ast.Assign(targets=targets, value=value):
            return [target.id for target in targets if isinstance(target, ast.Name)], value
        case ast.AnnAssign(target=ast.Name(id=name), value=value) if value is not None:
            return [name], value
        case _:
            return [], None


def extract_file_constants(tree: ast.Module) -> Scope:
    """
    Collect module-level constants whose value is a supported literal.

    Assignments are read in file order, so a constant may refer to one
    defined above it.

    Args:
        tree: Parsed module

    Returns:
        A read-only mapping of constant names to their values
    """
    constants: dict[str, TranslationValue] = {}
    for statement in tree.body:
        names, value_node = _assignment_targets(statement)
        if not names or value_node is None:
            continue
        value = resolve_value(value_node, MappingProxyType(constants))
        if value is None:
            continue
        for name in names:
            constants[name] = value
    return MappingProxyType(constants)
