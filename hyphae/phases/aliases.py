"""Phase 3: Source artifacts -> alias table (pass 2).

Runs after the registry is complete so that module aliases can be told
apart from leaf aliases.
"""

from __future__ import annotations

import logging

from hyphae.config import AliasCandidate, AliasDescriptor, DetectorConfig, ProductionKind
from hyphae.graph.alias_table import AliasTable
from hyphae.graph.registry import DeclarationRegistry
from hyphae.graph.resolver import PathResolver
from hyphae.languages.aliases import AliasAnalyser
from hyphae.phases.parsing import parse_file

logger = logging.getLogger(__name__)

# Upper bound on alias-of-alias resolution rounds
_MAX_CHAIN_ROUNDS = 8


def run_aliases_phase(
    config: DetectorConfig,
    files: list[str],
    registry: DeclarationRegistry,
    aliases: AliasTable,
) -> None:
    """Extract alias productions from every source file."""
    analyser = AliasAnalyser(config.runtime_roots)
    deferred: list[AliasCandidate] = []

    for file_path in files:
        parsed = parse_file(file_path)
        if parsed is None:
            continue
        tree, source = parsed

        try:
            candidates = analyser.analyse(tree, source, file_path)
        except Exception as e:
            logger.warning(f"Failed to extract aliases from {file_path}: {e}")
            continue

        for candidate in candidates:
            if config.is_runtime_path(candidate.target):
                record_alias(candidate, candidate.target, registry, aliases)
            else:
                deferred.append(candidate)

    if deferred:
        _resolve_chains(config, deferred, registry, aliases)


def record_alias(
    candidate: AliasCandidate,
    target: str,
    registry: DeclarationRegistry,
    aliases: AliasTable,
    overwrite: bool = True,
) -> bool:
    """Store a candidate pointing at canonical ``target``."""
    kind = candidate.kind
    if kind == ProductionKind.ASSIGN_OBJECT_PROPERTY:
        is_module = False
    else:
        is_module = registry.has_descendants(target)
        if kind == ProductionKind.ASSIGN_SIMPLE and is_module:
            kind = ProductionKind.ASSIGN_MODULE

    return aliases.add(
        candidate.name,
        AliasDescriptor(original_path=target, kind=kind, is_module=is_module),
        overwrite=overwrite,
    )


def _resolve_chains(
    config: DetectorConfig,
    deferred: list[AliasCandidate],
    registry: DeclarationRegistry,
    aliases: AliasTable,
) -> None:
    """Resolve candidates that point at other aliases, until nothing changes."""
    resolver = PathResolver(config, aliases)

    for _ in range(_MAX_CHAIN_ROUNDS):
        remaining: list[AliasCandidate] = []
        progress = False
        for candidate in deferred:
            if candidate.name in aliases:
                continue
            resolution = resolver.resolve(candidate.target)
            if resolution.was_alias and config.is_runtime_path(resolution.resolved_path):
                record_alias(candidate, resolution.resolved_path, registry, aliases, overwrite=False)
                progress = True
            else:
                remaining.append(candidate)
        deferred = remaining
        if not progress or not deferred:
            break

    if deferred:
        logger.debug(f"{len(deferred)} alias candidates left unresolved")
