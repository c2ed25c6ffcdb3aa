"""Phase 2: Declaration documents -> registry (pass 1).

Dependency declarations are parsed before the project's own, then the
deferred type bindings and global aliases are resolved once the registry
holds every declared method.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from hyphae.config import (
    AliasCandidate,
    AliasDescriptor,
    DetectorConfig,
    GlobalSignature,
    ProductionKind,
)
from hyphae.graph.alias_table import AliasTable
from hyphae.graph.registry import DeclarationRegistry
from hyphae.languages.declarations import DeclarationAnalyser
from hyphae.npm.packages import find_dependency_declarations
from hyphae.phases.parsing import parse_file

logger = logging.getLogger(__name__)


@dataclass
class PendingGlobals:
    """Global-block productions that need a complete registry."""
    signatures: list[GlobalSignature] = field(default_factory=list)
    typeof_aliases: list[AliasCandidate] = field(default_factory=list)


def run_packages_phase(config: DetectorConfig, project_root: str) -> list[str]:
    """Declaration entry points of installed dependencies."""
    if not config.include_dependencies:
        return []
    return find_dependency_declarations(
        project_root, config.dependency_dir, config.manifest_name,
    )


def run_declarations_phase(
    config: DetectorConfig,
    files: list[str],
    registry: DeclarationRegistry,
) -> PendingGlobals:
    """Parse declaration documents in order and populate the registry."""
    analyser = DeclarationAnalyser(config.runtime_roots, config.async_wrapper)
    pending = PendingGlobals()
    seen: set[str] = set()

    for file_path in files:
        real = os.path.realpath(file_path)
        if real in seen:
            continue
        seen.add(real)

        parsed = parse_file(file_path)
        if parsed is None:
            continue
        tree, source = parsed

        try:
            declarations = analyser.analyse(tree, source, file_path)
        except Exception as e:
            logger.warning(f"Failed to extract declarations from {file_path}: {e}")
            continue

        for named in declarations.named_types:
            registry.add_named_type(named)
        for path, descriptor in declarations.methods:
            registry.add_method(path, descriptor)
        for binding in declarations.bindings:
            registry.bind(binding)
        for signature in declarations.global_signatures:
            registry.add_method(f"global.{signature.name}", signature.descriptor)
        pending.signatures.extend(declarations.global_signatures)
        pending.typeof_aliases.extend(declarations.typeof_aliases)

    return pending


def run_bindings_phase(
    config: DetectorConfig,
    registry: DeclarationRegistry,
    aliases: AliasTable,
    pending: PendingGlobals,
) -> int:
    """Expand deferred type bindings, then record global aliases.

    Returns the number of bindings left unresolved.
    """
    unresolved = registry.resolve_bindings()

    for candidate in pending.typeof_aliases:
        aliases.add(candidate.name, AliasDescriptor(
            original_path=candidate.target,
            kind=ProductionKind.GLOBAL_TYPEOF,
            is_module=registry.has_descendants(candidate.target),
        ))

    for signature in pending.signatures:
        target = _guess_root_method(config, registry, signature.name)
        if target is None:
            continue
        aliases.add(signature.name, AliasDescriptor(
            original_path=target,
            kind=ProductionKind.GLOBAL_SIGNATURE,
            is_module=False,
        ), overwrite=False)

    return unresolved


def _guess_root_method(
    config: DetectorConfig, registry: DeclarationRegistry, name: str,
) -> str | None:
    """First ``<root>.<name>`` that is a known root-level method."""
    for root in config.runtime_roots:
        candidate = f"{root}.{name}"
        if registry.get_method(candidate) is not None:
            return candidate
    return None
