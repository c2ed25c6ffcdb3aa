"""Source artifact analyser: finds alias productions for runtime paths."""

from __future__ import annotations

import tree_sitter

from hyphae.config import AliasCandidate, ProductionKind
from hyphae.languages.base import (
    line_of,
    member_path,
    property_name,
    unwrap_expression,
)

_DECLARATION_TYPES = {"lexical_declaration", "variable_declaration"}


class AliasAnalyser:
    """Extracts alias candidates from JavaScript/TypeScript sources.

    Recognised productions:
        const { fetch } = t                 bind-simple
        const { join: pathJoin } = t.core.path  bind-renamed
        const { core: { fs } } = t          bind-nested
        const myFetch = t.fetch             assign-simple
        const db = t.db                     assign-simple (upgraded to
                                            assign-module by the caller)
        export const fetch = t.fetch        assign-export
        const utils = { fetch: t.fetch }    assign-object-property
        db = t.db                           assign-simple

    Candidates whose right-hand side is rooted at something other than a
    runtime root are returned as well; the aliases phase resolves them
    through previously recorded aliases or drops them.
    """

    def __init__(self, runtime_roots: tuple[str, ...] = ("t", "Titan")) -> None:
        self.runtime_roots = tuple(runtime_roots)

    def analyse(
        self, tree: tree_sitter.Tree, source: bytes, file_path: str
    ) -> list[AliasCandidate]:
        candidates: list[AliasCandidate] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in _DECLARATION_TYPES:
                exported = node.parent is not None and node.parent.type == "export_statement"
                for c in node.named_children:
                    if c.type == "variable_declarator":
                        self._visit_declarator(c, exported, file_path, candidates)
            elif node.type == "assignment_expression":
                self._visit_assignment(node, file_path, candidates)
            stack.extend(reversed(node.named_children))
        # A local named like a runtime root would shadow it, not alias it
        return [c for c in candidates if c.name.split(".", 1)[0] not in self.runtime_roots]

    def _visit_declarator(self, node, exported, file_path, out) -> None:
        name_node = node.child_by_field_name("name")
        value = unwrap_expression(node.child_by_field_name("value"))
        if name_node is None or value is None:
            return

        if name_node.type == "identifier":
            alias = name_node.text.decode("utf-8")
            if value.type == "object":
                self._object_properties(alias, value, file_path, out)
                return
            target = member_path(value)
            if target:
                out.append(AliasCandidate(
                    name=alias,
                    target=target,
                    kind=ProductionKind.ASSIGN_EXPORT if exported else ProductionKind.ASSIGN_SIMPLE,
                    file=file_path,
                    line=line_of(node),
                ))
        elif name_node.type == "object_pattern":
            source_path = member_path(value)
            if source_path:
                self._bindings(name_node, source_path, False, file_path, out)

    def _visit_assignment(self, node, file_path, out) -> None:
        """``name = <path>`` and ``({ a } = <path>)`` outside a declaration."""
        left = node.child_by_field_name("left")
        value = unwrap_expression(node.child_by_field_name("right"))
        if left is None or value is None:
            return

        if left.type == "identifier":
            alias = left.text.decode("utf-8")
            if value.type == "object":
                self._object_properties(alias, value, file_path, out)
                return
            target = member_path(value)
            if target:
                out.append(AliasCandidate(
                    name=alias,
                    target=target,
                    kind=ProductionKind.ASSIGN_SIMPLE,
                    file=file_path,
                    line=line_of(node),
                ))
        elif left.type == "object_pattern":
            source_path = member_path(value)
            if source_path:
                self._bindings(left, source_path, False, file_path, out)

    def _bindings(self, pattern, source_path, nested, file_path, out) -> None:
        """Walk an object destructuring pattern bound from ``source_path``."""
        for child in pattern.named_children:
            if child.type == "object_assignment_pattern":
                # { fetch = fallback }
                child = child.child_by_field_name("left")
                if child is None:
                    continue

            if child.type == "shorthand_property_identifier_pattern":
                name = child.text.decode("utf-8")
                out.append(AliasCandidate(
                    name=name,
                    target=f"{source_path}.{name}",
                    kind=ProductionKind.BIND_NESTED if nested else ProductionKind.BIND_SIMPLE,
                    file=file_path,
                    line=line_of(child),
                ))
            elif child.type == "pair_pattern":
                key = property_name(child.child_by_field_name("key"))
                value = child.child_by_field_name("value")
                if not key or value is None:
                    continue
                if value.type == "assignment_pattern":
                    # { join: pathJoin = fallback }
                    value = value.child_by_field_name("left")
                    if value is None:
                        continue
                if value.type == "identifier":
                    out.append(AliasCandidate(
                        name=value.text.decode("utf-8"),
                        target=f"{source_path}.{key}",
                        kind=ProductionKind.BIND_NESTED if nested else ProductionKind.BIND_RENAMED,
                        file=file_path,
                        line=line_of(child),
                    ))
                elif value.type == "object_pattern":
                    self._bindings(value, f"{source_path}.{key}", True, file_path, out)

    def _object_properties(self, object_name, obj, file_path, out) -> None:
        for child in obj.named_children:
            if child.type == "pair":
                key = property_name(child.child_by_field_name("key"))
                target = member_path(child.child_by_field_name("value"))
            elif child.type == "shorthand_property_identifier":
                key = target = child.text.decode("utf-8")
            else:
                continue
            if key and target:
                out.append(AliasCandidate(
                    name=f"{object_name}.{key}",
                    target=target,
                    kind=ProductionKind.ASSIGN_OBJECT_PROPERTY,
                    file=file_path,
                    line=line_of(child),
                ))
