"""Declaration document analyser (.d.ts).

Walks a TypeScript declaration tree and collects runtime method
signatures, named object types, type bindings of runtime paths, and the
alias candidates a ``declare global`` block produces.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import tree_sitter

from hyphae.config import (
    AliasCandidate,
    DeclarationSet,
    GlobalSignature,
    Member,
    MethodDescriptor,
    NamedType,
    ProductionKind,
    TypeBinding,
    TypeReference,
)
from hyphae.languages.base import (
    dotted_text,
    first_named_child,
    line_of,
    node_text,
    property_name,
)

logger = logging.getLogger(__name__)

_NAMESPACE_TYPES = {"internal_module", "module"}
_FUNCTION_TYPES = {"function_signature", "function_declaration"}
_VARIABLE_TYPES = {"lexical_declaration", "variable_declaration"}
_REFERENCE_TYPES = {"type_identifier", "nested_type_identifier", "identifier"}


@dataclass(frozen=True)
class _Scope:
    """Where in the document the walker currently is.

    prefix: canonical path prefix when inside a runtime-rooted scope.
    type_scope: qualifier for named types declared here ("" at top level).
    """
    prefix: str = ""
    type_scope: str = ""
    in_global: bool = False

    @property
    def runtime(self) -> bool:
        return bool(self.prefix)


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


class DeclarationAnalyser:
    """Extracts a DeclarationSet from a parsed declaration document."""

    def __init__(
        self,
        runtime_roots: tuple[str, ...] = ("t", "Titan"),
        async_wrapper: str = "Promise",
    ) -> None:
        self.runtime_roots = tuple(runtime_roots)
        self.async_wrapper = async_wrapper

    def analyse(
        self, tree: tree_sitter.Tree, source: bytes, file_path: str
    ) -> DeclarationSet:
        result = DeclarationSet(file=file_path)
        if tree.root_node.has_error:
            logger.debug(f"Syntax errors in {file_path}, using partial tree")
        self._walk_block(tree.root_node, result, _Scope())
        return result

    # --- Traversal ---

    def _walk_block(self, block, out: DeclarationSet, scope: _Scope) -> None:
        for child in block.named_children:
            for decl in self._declarations(child):
                self._visit(decl, out, scope)

    def _declarations(self, node):
        """Unwrap export/expression/ambient wrappers down to declarations."""
        if node.type == "export_statement":
            decl = node.child_by_field_name("declaration")
            if decl is not None:
                yield from self._declarations(decl)
            return
        if node.type == "expression_statement":
            inner = first_named_child(node)
            if inner is not None and inner.type in _NAMESPACE_TYPES:
                yield inner
            return
        if node.type == "ambient_declaration":
            if any(c.type == "statement_block" for c in node.children):
                # declare global { ... }
                yield node
                return
            for c in node.named_children:
                yield from self._declarations(c)
            return
        yield node

    def _visit(self, decl, out: DeclarationSet, scope: _Scope) -> None:
        kind = decl.type
        if kind in _NAMESPACE_TYPES:
            self._visit_namespace(decl, out, scope)
        elif kind == "ambient_declaration":
            for c in decl.children:
                if c.type == "statement_block":
                    self._walk_block(c, out, replace(scope, in_global=True))
        elif kind in _FUNCTION_TYPES:
            self._visit_function(decl, out, scope)
        elif kind == "interface_declaration":
            self._visit_interface(decl, out, scope)
        elif kind == "type_alias_declaration":
            self._visit_type_alias(decl, out, scope)
        elif kind in _VARIABLE_TYPES:
            for c in decl.named_children:
                if c.type == "variable_declarator":
                    self._visit_variable(c, out, scope)

    def _visit_namespace(self, node, out: DeclarationSet, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return

        if name_node.type == "string":
            # declare module "pkg" { ... } - contents are not qualified
            self._walk_block(body, out, scope)
            return

        name = dotted_text(name_node)
        if scope.runtime:
            prefix = f"{scope.prefix}.{name}"
            inner = replace(scope, prefix=prefix, type_scope=prefix)
        elif not scope.type_scope and name.split(".", 1)[0] in self.runtime_roots:
            inner = replace(scope, prefix=name, type_scope=name)
        else:
            inner = replace(scope, type_scope=_qualify(scope.type_scope, name))
        self._walk_block(body, out, inner)

    def _visit_function(self, node, out: DeclarationSet, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        name = name_node.text.decode("utf-8")
        descriptor = self._signature(node.child_by_field_name("return_type"))

        if scope.runtime:
            out.methods.append((f"{scope.prefix}.{name}", descriptor))
        elif scope.in_global and not scope.type_scope and descriptor.is_async:
            out.global_signatures.append(GlobalSignature(
                name=name, descriptor=descriptor, file=out.file,
            ))

    def _visit_interface(self, node, out: DeclarationSet, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        if name_node is None or body is None:
            return
        qualified = _qualify(scope.type_scope, name_node.text.decode("utf-8"))
        named = self._object_members(body, qualified, scope)

        for c in node.children:
            if c.type in ("extends_type_clause", "extends_clause"):
                for base in c.named_children:
                    ref = self._reference(base, scope)
                    if ref is not None:
                        named.bases.append(ref)
        out.named_types.append(named)

    def _visit_type_alias(self, node, out: DeclarationSet, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        value = node.child_by_field_name("value")
        if name_node is None or value is None:
            return
        qualified = _qualify(scope.type_scope, name_node.text.decode("utf-8"))
        named = NamedType(name=qualified)

        parts = value.named_children if value.type == "intersection_type" else [value]
        for part in parts:
            if part.type == "object_type":
                inline = self._object_members(part, qualified, scope)
                for member_name, member in inline.members.items():
                    _merge_member(named.members, member_name, member)
            else:
                ref = self._reference(part, scope)
                if ref is not None:
                    named.bases.append(ref)

        if named.members or named.bases:
            out.named_types.append(named)

    def _visit_variable(self, node, out: DeclarationSet, scope: _Scope) -> None:
        name_node = node.child_by_field_name("name")
        annotation = node.child_by_field_name("type")
        if name_node is None or name_node.type != "identifier" or annotation is None:
            return
        name = name_node.text.decode("utf-8")
        type_node = _unwrap_type(first_named_child(annotation))
        if type_node is None:
            return

        if type_node.type == "type_query":
            target = dotted_text(first_named_child(type_node))
            if scope.in_global and not scope.runtime and self._is_rooted(target):
                out.typeof_aliases.append(AliasCandidate(
                    name=_qualify(scope.type_scope, name),
                    target=target,
                    kind=ProductionKind.GLOBAL_TYPEOF,
                    file=out.file,
                    line=line_of(node),
                ))
            return

        if scope.runtime:
            path = f"{scope.prefix}.{name}"
        elif not scope.type_scope and name in self.runtime_roots:
            path = name
        else:
            return

        if type_node.type == "function_type":
            out.methods.append((path, self._descriptor(_function_return(type_node))))
        elif type_node.type == "object_type":
            out.bindings.append(TypeBinding(
                path=path,
                type=self._object_members(type_node, path, scope),
                file=out.file,
            ))
        else:
            ref = self._reference(type_node, scope)
            if ref is not None:
                out.bindings.append(TypeBinding(path=path, type=ref, file=out.file))

    # --- Types ---

    def _object_members(self, body, owner: str, scope: _Scope) -> NamedType:
        """Collect the members of an interface body or object type literal."""
        named = NamedType(name=owner)
        for member in body.named_children:
            name = property_name(member.child_by_field_name("name"))
            if not name:
                continue

            if member.type == "method_signature":
                descriptor = self._signature(member.child_by_field_name("return_type"))
                _merge_member(named.members, name, descriptor)
                continue

            if member.type != "property_signature":
                continue
            annotation = member.child_by_field_name("type")
            type_node = _unwrap_type(first_named_child(annotation))
            if type_node is None:
                continue

            if type_node.type == "function_type":
                descriptor = self._descriptor(_function_return(type_node))
                _merge_member(named.members, name, descriptor)
            elif type_node.type == "object_type":
                nested = self._object_members(type_node, f"{owner}.{name}", scope)
                _merge_member(named.members, name, nested)
            else:
                ref = self._reference(type_node, scope)
                if ref is not None:
                    _merge_member(named.members, name, ref)
        return named

    def _reference(self, node, scope: _Scope) -> TypeReference | None:
        """TypeReference for a named type node; None for anything else."""
        node = _unwrap_type(node)
        if node is None:
            return None
        if node.type == "generic_type":
            name_node = node.child_by_field_name("name") or first_named_child(node)
            type_name = dotted_text(name_node)
            if type_name == self.async_wrapper:
                return None
            return TypeReference(name=type_name, scope=scope.type_scope)
        if node.type in _REFERENCE_TYPES:
            return TypeReference(name=dotted_text(node), scope=scope.type_scope)
        return None

    def _signature(self, return_annotation) -> MethodDescriptor:
        """Descriptor from a ``: ReturnType`` annotation (or its absence)."""
        if return_annotation is None:
            return MethodDescriptor(is_async=False, return_type=None)
        if return_annotation.type == "type_annotation":
            return self._descriptor(first_named_child(return_annotation))
        # asserts / type predicate annotations
        return MethodDescriptor(is_async=False, return_type=node_text(return_annotation).lstrip(": "))

    def _descriptor(self, type_node) -> MethodDescriptor:
        if type_node is None:
            return MethodDescriptor(is_async=False, return_type=None)
        return MethodDescriptor(
            is_async=self._is_async_type(type_node),
            return_type=node_text(type_node),
        )

    def _is_async_type(self, type_node) -> bool:
        """True for the ``Promise<T>`` wrapper form, ignoring parentheses."""
        node = _unwrap_type(type_node)
        if node is None or node.type != "generic_type":
            return False
        name_node = node.child_by_field_name("name") or first_named_child(node)
        return dotted_text(name_node) == self.async_wrapper

    def _is_rooted(self, path: str) -> bool:
        return bool(path) and path.split(".", 1)[0] in self.runtime_roots


def _function_return(function_type):
    """Return type node of a ``(...) => T`` function type."""
    node = function_type.child_by_field_name("return_type")
    if node is None and function_type.named_children:
        node = function_type.named_children[-1]
    return node


def _unwrap_type(node):
    while node is not None and node.type == "parenthesized_type":
        node = first_named_child(node)
    return node


def _merge_member(members: dict[str, Member], name: str, member: Member) -> None:
    """First declaration wins, except an async overload replaces a sync one."""
    existing = members.get(name)
    if existing is None:
        members[name] = member
    elif (
        isinstance(existing, MethodDescriptor)
        and isinstance(member, MethodDescriptor)
        and member.is_async
        and not existing.is_async
    ):
        members[name] = member
