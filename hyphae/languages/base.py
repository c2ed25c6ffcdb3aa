"""Analyser protocol and shared tree-sitter node helpers."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import tree_sitter

# Wrapper nodes whose payload is the single named child.
_TRANSPARENT_EXPRESSIONS = {
    "parenthesized_expression",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
}


@runtime_checkable
class ArtifactAnalyser(Protocol):
    """Protocol that declaration and source analysers implement."""

    runtime_roots: tuple[str, ...]

    def analyse(
        self, tree: tree_sitter.Tree, source: bytes, file_path: str
    ) -> Any:
        """Extract everything relevant from a parsed document."""
        ...


def node_text(node: tree_sitter.Node | None) -> str:
    """Node text with runs of whitespace collapsed to single spaces."""
    if node is None or node.text is None:
        return ""
    return " ".join(node.text.decode("utf-8", errors="replace").split())


def dotted_text(node: tree_sitter.Node | None) -> str:
    """Node text with all whitespace removed (for dotted identifiers)."""
    return node_text(node).replace(" ", "")


def first_named_child(node: tree_sitter.Node | None) -> tree_sitter.Node | None:
    if node is None:
        return None
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def string_value(node: tree_sitter.Node) -> str | None:
    """Contents of a string literal node, without quotes."""
    if node.type != "string":
        return None
    for c in node.named_children:
        if c.type == "string_fragment":
            return c.text.decode("utf-8")
    text = node_text(node)
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        return text[1:-1]
    return None


def property_name(node: tree_sitter.Node | None) -> str | None:
    """Name of an object/type member key (identifier or string)."""
    if node is None:
        return None
    if node.type in (
        "property_identifier",
        "identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
        "type_identifier",
    ):
        return node.text.decode("utf-8")
    if node.type == "string":
        return string_value(node)
    return None


def unwrap_expression(node: tree_sitter.Node | None) -> tree_sitter.Node | None:
    """Strip parentheses and type-only wrappers (``as``, ``satisfies``, ``!``)."""
    while node is not None and node.type in _TRANSPARENT_EXPRESSIONS:
        node = first_named_child(node)
    return node


def member_path(node: tree_sitter.Node | None) -> str | None:
    """Build the dotted path of an identifier/member chain.

    ``t.core.fs`` -> "t.core.fs", ``t?.db`` -> "t.db", ``t["db"]`` -> "t.db".
    Returns None for anything that is not a plain access chain.
    """
    node = unwrap_expression(node)
    if node is None:
        return None

    if node.type == "identifier":
        return node.text.decode("utf-8")

    if node.type == "member_expression":
        obj = member_path(node.child_by_field_name("object"))
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or prop.type != "property_identifier":
            return None
        return f"{obj}.{prop.text.decode('utf-8')}"

    if node.type == "subscript_expression":
        obj = member_path(node.child_by_field_name("object"))
        index = node.child_by_field_name("index")
        key = string_value(index) if index is not None else None
        if obj is None or not key or not key.isidentifier():
            return None
        return f"{obj}.{key}"

    return None


def line_of(node: tree_sitter.Node) -> int:
    return node.start_point[0] + 1
