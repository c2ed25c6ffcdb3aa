"""Query facade: classification, alias lookup and resolution by project root."""

from __future__ import annotations

import logging
import os
import threading
from typing import Any

from hyphae.cache import FALLBACK, NOT_RUNTIME, ClassificationCache, ProjectCacheState
from hyphae.config import (
    AliasLookupResult,
    ClassificationResult,
    DetectorConfig,
    ResolutionResult,
)
from hyphae.phases.structure import find_project_root

logger = logging.getLogger(__name__)


class AsyncDetector:
    """Classifies runtime calls as sync or async for files in any project.

    One ClassificationCache per project root, each built at most once
    until invalidated. Roots are discovered from a hint (any file or
    directory inside the project). Queries never raise: a hint without a
    project root is served by an empty, never-scanned state.

    Example:
        detector = AsyncDetector()
        detector.classify("db.query", "/repo/src/app.js")
    """

    def __init__(self, config: DetectorConfig | None = None) -> None:
        self.config = config or DetectorConfig()
        self._caches: dict[str, ClassificationCache] = {}
        self._roots: dict[str, str | None] = {}
        self._empty = ClassificationCache(ProjectCacheState(self.config))
        self._lock = threading.Lock()

    # --- Queries ---

    def classify(self, name: str, project_root_hint: str | os.PathLike | None = None) -> ClassificationResult:
        try:
            return self._cache_for(project_root_hint).classify(name)
        except Exception as e:
            logger.warning(f"Classification of {name} failed: {e}")
            return FALLBACK if self.config.is_runtime_path(name) else NOT_RUNTIME

    def is_async(self, name: str, project_root_hint: str | os.PathLike | None = None) -> bool:
        return self.classify(name, project_root_hint).is_async is True

    def is_alias(self, name: str, project_root_hint: str | os.PathLike | None = None) -> AliasLookupResult:
        try:
            return self._cache_for(project_root_hint).lookup_alias(name)
        except Exception as e:
            logger.warning(f"Alias lookup of {name} failed: {e}")
            return AliasLookupResult(is_alias=False)

    def resolve(self, name: str, project_root_hint: str | os.PathLike | None = None) -> ResolutionResult:
        try:
            return self._cache_for(project_root_hint).resolve(name)
        except Exception as e:
            logger.warning(f"Resolution of {name} failed: {e}")
            return ResolutionResult(resolved_path=name, was_alias=False, is_module=False)

    # --- Lifecycle ---

    def cache_for(self, project_root_hint: str | os.PathLike | None) -> ClassificationCache:
        """The (initialised) cache serving ``project_root_hint``."""
        return self._cache_for(project_root_hint)

    def invalidate(self, project_root_hint: str | os.PathLike | None = None) -> None:
        """Forget one project (by hint) or, with no hint, every project."""
        with self._lock:
            if project_root_hint is None:
                for cache in self._caches.values():
                    cache.invalidate()
                self._caches.clear()
                self._roots.clear()
                return
            try:
                root = self._discover_root(project_root_hint)
            except Exception as e:
                logger.warning(f"Invalidation of {project_root_hint} failed: {e}")
                return
            cache = self._caches.pop(root, None) if root else None
            if cache is not None:
                cache.invalidate()

    def stats(self, project_root_hint: str | os.PathLike | None = None) -> dict[str, Any]:
        """Counts for one project, or a summary across all known projects."""
        if project_root_hint is not None:
            try:
                return self._cache_for(project_root_hint).stats()
            except Exception as e:
                logger.warning(f"Stats for {project_root_hint} failed: {e}")
                return self._empty.stats()
        with self._lock:
            per_root = {root: cache.stats() for root, cache in self._caches.items()}
        return {
            "projects": len(per_root),
            "methods": sum(s["methods"] for s in per_root.values()),
            "aliases": sum(s["aliases"] for s in per_root.values()),
            "roots": per_root,
        }

    # --- Internals ---

    def _discover_root(self, hint: str | os.PathLike) -> str | None:
        key = os.fspath(hint)
        if key not in self._roots:
            self._roots[key] = find_project_root(key, self.config.manifest_name)
        return self._roots[key]

    def _cache_for(self, hint: str | os.PathLike | None) -> ClassificationCache:
        if hint is None:
            return self._empty
        with self._lock:
            root = self._discover_root(hint)
            if root is None:
                return self._empty
            cache = self._caches.get(root)
            if cache is None:
                cache = ClassificationCache(ProjectCacheState(self.config))
                self._caches[root] = cache
            if not cache.state.initialized:
                logger.debug(f"Scanning project {root}")
                cache.initialize(root)
            return cache
