"""Declaration registry backed by networkx.DiGraph.

Nodes are canonical paths. A node is either a ``scope`` (has children)
or a ``method`` (carries a MethodDescriptor). Edges run parent -> child.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import networkx as nx

from hyphae.config import MethodDescriptor, NamedType, TypeBinding, TypeReference

logger = logging.getLogger(__name__)

SCOPE = "scope"
METHOD = "method"


class DeclarationRegistry:
    """Canonical path -> MethodDescriptor store plus the named-type table."""

    def __init__(self) -> None:
        self.graph = nx.DiGraph()
        self.named_types: dict[str, NamedType] = {}
        self.pending: list[TypeBinding] = []
        self.unresolved: list[str] = []

    # --- Methods ---

    def add_method(self, path: str, descriptor: MethodDescriptor) -> bool:
        """Record a method signature. Returns True if the entry changed.

        Duplicate policy is first-async-wins: an absent path is set, a
        synchronous entry is replaced by an asynchronous one, and anything
        else keeps the existing entry.
        """
        if self.graph.has_node(path):
            attrs = self.graph.nodes[path]
            if attrs["kind"] == SCOPE:
                logger.debug(f"Ignoring method {path}: already a scope")
                return False
            existing: MethodDescriptor = attrs["descriptor"]
            if descriptor.is_async and not existing.is_async:
                attrs["descriptor"] = descriptor
                return True
            return False

        parts = path.split(".")
        for i in range(1, len(parts)):
            ancestor = ".".join(parts[:i])
            if self.graph.has_node(ancestor) and self.graph.nodes[ancestor]["kind"] == METHOD:
                logger.debug(f"Ignoring method {path}: {ancestor} is a method")
                return False

        parent = None
        for i in range(1, len(parts)):
            ancestor = ".".join(parts[:i])
            if not self.graph.has_node(ancestor):
                self.graph.add_node(ancestor, kind=SCOPE)
            if parent is not None:
                self.graph.add_edge(parent, ancestor)
            parent = ancestor
        self.graph.add_node(path, kind=METHOD, descriptor=descriptor)
        if parent is not None:
            self.graph.add_edge(parent, path)
        return True

    def get_method(self, path: str) -> MethodDescriptor | None:
        if not self.graph.has_node(path):
            return None
        return self.graph.nodes[path].get("descriptor")

    def has_descendants(self, path: str) -> bool:
        """True if any canonical path starts with ``path + "."``."""
        return self.graph.has_node(path) and self.graph.out_degree(path) > 0

    def is_scope(self, path: str) -> bool:
        return self.graph.has_node(path) and self.graph.nodes[path]["kind"] == SCOPE

    def methods(self) -> Iterator[tuple[str, MethodDescriptor]]:
        for node, attrs in self.graph.nodes(data=True):
            if attrs["kind"] == METHOD:
                yield node, attrs["descriptor"]

    def method_count(self) -> int:
        return sum(1 for _ in self.methods())

    def __contains__(self, path: str) -> bool:
        return self.get_method(path) is not None

    # --- Named types ---

    def add_named_type(self, named: NamedType) -> None:
        """Register a named type, merging with an earlier declaration."""
        existing = self.named_types.get(named.name)
        if existing is None:
            self.named_types[named.name] = named
            return
        for member_name, member in named.members.items():
            existing.members.setdefault(member_name, member)
        for base in named.bases:
            if base not in existing.bases:
                existing.bases.append(base)

    def get_named_type(self, name: str) -> NamedType | None:
        return self.named_types.get(name)

    def lookup_type(self, ref: TypeReference) -> NamedType | None:
        """Resolve a reference, innermost enclosing scope first."""
        scope = ref.scope
        while scope:
            found = self.named_types.get(f"{scope}.{ref.name}")
            if found is not None:
                return found
            scope = scope.rpartition(".")[0]
        return self.named_types.get(ref.name)

    # --- Deferred bindings ---

    def bind(self, binding: TypeBinding) -> None:
        """Queue a path whose members come from a type, resolved later."""
        self.pending.append(binding)

    def resolve_bindings(self) -> int:
        """Expand every queued binding into method entries.

        Returns the number of bindings that could not be resolved.
        """
        failures = 0
        pending, self.pending = self.pending, []
        for binding in pending:
            if not self.expand_type(binding.path, binding.type):
                failures += 1
                self.unresolved.append(binding.path)
                logger.debug(f"Unresolved type binding for {binding.path} in {binding.file}")
        return failures

    def expand_type(
        self,
        path: str,
        type_: TypeReference | NamedType,
        _chain: frozenset[str] = frozenset(),
    ) -> bool:
        """Register every method reachable from ``type_`` under ``path``.

        ``_chain`` holds the named types being expanded on the current
        branch; a reference back into it is a cycle and is left unresolved.
        """
        if isinstance(type_, TypeReference):
            named = self.lookup_type(type_)
            if named is None:
                logger.debug(f"Unknown type {type_.name} for {path}")
                return False
        else:
            named = type_

        if named.name in _chain:
            logger.debug(f"Cyclic type reference {named.name} at {path}")
            return False
        chain = _chain | {named.name}

        for base in named.bases:
            self.expand_type(path, base, chain)

        for member_name, member in named.members.items():
            member_path = f"{path}.{member_name}"
            if isinstance(member, MethodDescriptor):
                self.add_method(member_path, member)
            else:
                self.expand_type(member_path, member, chain)
        return True

    # --- Lifecycle ---

    def clear(self) -> None:
        self.graph.clear()
        self.named_types.clear()
        self.pending.clear()
        self.unresolved.clear()

    def snapshot(self) -> dict[str, MethodDescriptor]:
        """Plain dict copy of all method entries."""
        return dict(self.methods())
