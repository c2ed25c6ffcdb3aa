"""Core data types and configuration for Hyphae detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class ProductionKind(str, Enum):
    """How an alias was produced in a source or declaration document."""
    BIND_SIMPLE = "bind-simple"
    BIND_RENAMED = "bind-renamed"
    BIND_NESTED = "bind-nested"
    ASSIGN_SIMPLE = "assign-simple"
    ASSIGN_MODULE = "assign-module"
    ASSIGN_EXPORT = "assign-export"
    ASSIGN_OBJECT_PROPERTY = "assign-object-property"
    GLOBAL_TYPEOF = "global-typeof"
    GLOBAL_SIGNATURE = "global-signature"


class ClassificationSource(str, Enum):
    REGISTRY = "registry"
    FALLBACK = "fallback"
    NONE = "none"


class ArtifactKind(str, Enum):
    DECLARATION = "declaration"
    SOURCE = "source"


@dataclass(frozen=True)
class MethodDescriptor:
    is_async: bool
    return_type: str | None = None


@dataclass(frozen=True)
class TypeReference:
    """A member whose declared type is another named type.

    ``scope`` is the non-runtime namespace the reference was written in,
    used to try qualified lookups before the bare name.
    """
    name: str
    scope: str = ""


@dataclass
class NamedType:
    """A named (or inline anonymous) object type."""
    name: str
    members: dict[str, Member] = field(default_factory=dict)
    bases: list[TypeReference] = field(default_factory=list)


Member = Union[MethodDescriptor, TypeReference, NamedType]


@dataclass(frozen=True)
class AliasDescriptor:
    original_path: str
    kind: ProductionKind
    is_module: bool = False


@dataclass
class AliasCandidate:
    """Raw alias production extracted from a document.

    ``target`` is the member path on the right-hand side. It may be rooted
    at a runtime symbol or at another alias (resolved later).
    """
    name: str
    target: str
    kind: ProductionKind
    file: str
    line: int


@dataclass
class TypeBinding:
    """A canonical path whose members come from a named or inline type."""
    path: str
    type: TypeReference | NamedType
    file: str = ""


@dataclass
class GlobalSignature:
    name: str
    descriptor: MethodDescriptor
    file: str = ""


@dataclass
class DeclarationSet:
    """Everything a single declaration document contributes."""
    file: str
    methods: list[tuple[str, MethodDescriptor]] = field(default_factory=list)
    named_types: list[NamedType] = field(default_factory=list)
    bindings: list[TypeBinding] = field(default_factory=list)
    global_signatures: list[GlobalSignature] = field(default_factory=list)
    typeof_aliases: list[AliasCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class ClassificationResult:
    is_async: bool | None
    source: ClassificationSource
    return_type: str | None = None


@dataclass(frozen=True)
class ResolutionResult:
    resolved_path: str
    was_alias: bool
    is_module: bool


@dataclass(frozen=True)
class AliasLookupResult:
    is_alias: bool
    original_path: str | None = None
    kind: ProductionKind | None = None
    is_module: bool = False


@dataclass
class DetectorConfig:
    runtime_roots: tuple[str, ...] = ("t", "Titan")
    async_wrapper: str = "Promise"
    manifest_name: str = "package.json"
    dependency_dir: str = "node_modules"
    max_depth: int = 10
    max_file_size: int = 1_000_000  # 1MB
    exclude_patterns: list[str] = field(default_factory=list)
    include_dependencies: bool = True
    verbose: bool = False
    quiet: bool = False

    def is_runtime_path(self, path: str | None) -> bool:
        """True if ``path`` is a runtime root or starts with ``<root>.``."""
        if not path:
            return False
        head = path.split(".", 1)[0]
        return head in self.runtime_roots


@dataclass
class ScanReport:
    project_root: str = ""
    declaration_files: int = 0
    dependency_files: int = 0
    source_files: int = 0
    methods: int = 0
    aliases: int = 0
    named_types: int = 0
    unresolved_bindings: int = 0
    phase_timings: dict[str, float] = field(default_factory=dict)
    duration_ms: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "project_root": self.project_root,
            "declaration_files": self.declaration_files,
            "dependency_files": self.dependency_files,
            "source_files": self.source_files,
            "methods": self.methods,
            "aliases": self.aliases,
            "named_types": self.named_types,
            "unresolved_bindings": self.unresolved_bindings,
        }
