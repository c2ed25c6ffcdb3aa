"""Sequential phase orchestrator with timing."""

from __future__ import annotations

import time

from hyphae.config import DetectorConfig, ScanReport
from hyphae.graph.alias_table import AliasTable
from hyphae.graph.registry import DeclarationRegistry
from hyphae.phases.aliases import run_aliases_phase
from hyphae.phases.declarations import (
    PendingGlobals,
    run_bindings_phase,
    run_declarations_phase,
    run_packages_phase,
)
from hyphae.phases.structure import ProjectTree, run_structure_phase


_PHASE_LABELS = {
    "structure": "Mapping project tree",
    "packages": "Locating dependency declarations",
    "declarations": "Parsing declaration files",
    "bindings": "Resolving type bindings",
    "aliases": "Extracting aliases",
}


def run_pipeline(
    config: DetectorConfig,
    project_root: str,
    registry: DeclarationRegistry,
    aliases: AliasTable,
    progress_callback=None,
) -> ScanReport:
    """Populate ``registry`` and ``aliases`` from the project at ``project_root``.

    Declarations (dependencies first, then the project's own) are fully
    processed before any source file is read.

    Args:
        config: Detector configuration.
        project_root: Directory holding the project manifest.
        registry: Registry to populate; expected to be empty.
        aliases: Alias table to populate; expected to be empty.
        progress_callback: Optional callable(phase_name, label) invoked
            when each phase starts. Used by the CLI for Rich progress.
    """
    timings: dict[str, float] = {}
    total_start = time.monotonic()

    tree = ProjectTree(root=project_root)
    dependency_files: list[str] = []
    pending = PendingGlobals()
    unresolved = 0

    def structure():
        nonlocal tree
        tree = run_structure_phase(config, project_root)

    def packages():
        dependency_files.extend(run_packages_phase(config, project_root))

    def declarations():
        nonlocal pending
        pending = run_declarations_phase(
            config, dependency_files + tree.declaration_files, registry,
        )

    def bindings():
        nonlocal unresolved
        unresolved = run_bindings_phase(config, registry, aliases, pending)

    phases = [
        ("structure", structure),
        ("packages", packages),
        ("declarations", declarations),
        ("bindings", bindings),
        ("aliases", lambda: run_aliases_phase(config, tree.source_files, registry, aliases)),
    ]

    for name, phase_fn in phases:
        if progress_callback:
            progress_callback(name, _PHASE_LABELS.get(name, name))
        start = time.monotonic()
        phase_fn()
        timings[name] = time.monotonic() - start

    return ScanReport(
        project_root=project_root,
        declaration_files=len(tree.declaration_files),
        dependency_files=len(dependency_files),
        source_files=len(tree.source_files),
        methods=registry.method_count(),
        aliases=len(aliases),
        named_types=len(registry.named_types),
        unresolved_bindings=unresolved,
        phase_timings=timings,
        duration_ms=round((time.monotonic() - total_start) * 1000, 1),
    )
