"""Per-project cache state and memoised classification."""

from __future__ import annotations

import logging
from typing import Any

from hyphae.config import (
    AliasDescriptor,
    AliasLookupResult,
    ClassificationResult,
    ClassificationSource,
    DetectorConfig,
    MethodDescriptor,
    ResolutionResult,
    ScanReport,
)
from hyphae.graph.alias_table import AliasTable
from hyphae.graph.registry import DeclarationRegistry
from hyphae.graph.resolver import PathResolver
from hyphae.pipeline import run_pipeline

logger = logging.getLogger(__name__)

NOT_RUNTIME = ClassificationResult(is_async=False, source=ClassificationSource.NONE)
FALLBACK = ClassificationResult(is_async=False, source=ClassificationSource.FALLBACK)


class ProjectCacheState:
    """Registry, named types and aliases for one project root.

    ``initialize`` and ``invalidate`` are the only mutators. Initialising
    for a different root, or after invalidation, is always a full rebuild.
    """

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self.config = config or DetectorConfig()
        self.registry = DeclarationRegistry()
        self.aliases = AliasTable()
        self.initialized = False
        self.project_root: str | None = None
        self.report: ScanReport | None = None

    def initialize(self, project_root: str, progress_callback=None) -> bool:
        """Build the state for ``project_root``. Returns True if a scan ran."""
        if self.initialized and self.project_root == project_root:
            return False

        self.invalidate()
        self.project_root = project_root
        try:
            self.report = run_pipeline(
                self.config, project_root, self.registry, self.aliases,
                progress_callback=progress_callback,
            )
        except Exception as e:
            logger.warning(f"Scan of {project_root} failed: {e}")
            self.registry.clear()
            self.aliases.clear()
            self.report = ScanReport(project_root=project_root)
        self.initialized = True
        return True

    def invalidate(self) -> None:
        self.registry.clear()
        self.aliases.clear()
        self.initialized = False
        self.project_root = None
        self.report = None

    def snapshot(self) -> tuple[dict[str, MethodDescriptor], dict[str, AliasDescriptor]]:
        return self.registry.snapshot(), self.aliases.snapshot()


class ClassificationCache:
    """Resolve -> registry lookup -> permissive fallback, memoised."""

    def __init__(self, state: ProjectCacheState) -> None:
        self.state = state
        self.resolver = PathResolver(state.config, state.aliases)
        self._results: dict[str, ClassificationResult] = {}
        self._hits = 0
        self._misses = 0

    def initialize(self, project_root: str, progress_callback=None) -> bool:
        """Initialise the project state; memoised results are dropped on a rebuild."""
        if self.state.initialize(project_root, progress_callback=progress_callback):
            self._results.clear()
            return True
        return False

    def classify(self, name: str) -> ClassificationResult:
        cached = self._results.get(name)
        if cached is not None:
            self._hits += 1
            return cached
        self._misses += 1

        resolution = self.resolver.resolve(name)
        path = resolution.resolved_path
        cached = self._results.get(path)
        if cached is None:
            cached = self._classify_resolved(path)
            self._results[path] = cached
        if path != name:
            self._results[name] = cached
        return cached

    def _classify_resolved(self, path: str) -> ClassificationResult:
        if not self.state.config.is_runtime_path(path):
            return NOT_RUNTIME
        descriptor = self.state.registry.get_method(path)
        if descriptor is not None:
            return ClassificationResult(
                is_async=descriptor.is_async,
                source=ClassificationSource.REGISTRY,
                return_type=descriptor.return_type,
            )
        return FALLBACK

    def resolve(self, name: str) -> ResolutionResult:
        return self.resolver.resolve(name)

    def lookup_alias(self, name: str) -> AliasLookupResult:
        return self.resolver.lookup_alias(name)

    def invalidate(self) -> None:
        """Drop memoised results and the underlying project state."""
        self._results.clear()
        self._hits = 0
        self._misses = 0
        self.state.invalidate()

    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "project_root": self.state.project_root,
            "initialized": self.state.initialized,
            "methods": self.state.registry.method_count(),
            "named_types": len(self.state.registry.named_types),
            "aliases": len(self.state.aliases),
            "module_aliases": self.state.aliases.module_count(),
            "cached_results": len(self._results),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 2) if total else 0.0,
        }
