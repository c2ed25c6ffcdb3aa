"""Phase 1: Project root discovery and file tree construction."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from hyphae.config import ArtifactKind, DetectorConfig
from hyphae.languages import artifact_kind

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = {
    "node_modules", ".git", ".svn", "dist", "build", "coverage",
    ".next", ".nuxt", ".output", "vendor", "__pycache__", ".cache",
    ".titan", "target",
}


@dataclass
class ProjectTree:
    """Declaration documents and source artifacts found under a root."""
    root: str
    declaration_files: list[str] = field(default_factory=list)
    source_files: list[str] = field(default_factory=list)


def find_project_root(start: str | os.PathLike | None, manifest_name: str = "package.json") -> str | None:
    """Walk upwards from ``start`` to the nearest directory holding a manifest."""
    if not start:
        return None
    path = Path(start).resolve()
    if not path.is_dir():
        path = path.parent

    for candidate in (path, *path.parents):
        if (candidate / manifest_name).is_file():
            return str(candidate)
    return None


def _should_ignore(name: str, ignore_set: set[str]) -> bool:
    """Check if a directory or file name matches ignore patterns."""
    return name in ignore_set or name.startswith(".")


def run_structure_phase(config: DetectorConfig, project_root: str) -> ProjectTree:
    """Walk the project tree, bounded by ``max_depth``, and sort files by kind."""
    tree = ProjectTree(root=project_root)
    root = Path(project_root)
    if not root.is_dir():
        return tree

    ignore_set = set(DEFAULT_IGNORE)
    ignore_set.update(config.exclude_patterns)

    # os.walk skips unreadable directories (onerror=None)
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        depth = 0 if rel_dir == "." else len(Path(rel_dir).parts)

        if depth >= config.max_depth:
            if dirnames:
                logger.debug(f"Depth limit reached at {dirpath}")
            dirnames[:] = []
        else:
            dirnames[:] = [
                d for d in sorted(dirnames)
                if not _should_ignore(d, ignore_set)
            ]

        for filename in sorted(filenames):
            if filename.startswith("."):
                continue
            kind = artifact_kind(filename)
            if kind is None:
                continue

            full_path = os.path.join(dirpath, filename)
            try:
                size = os.path.getsize(full_path)
            except OSError:
                continue
            if size > config.max_file_size:
                logger.debug(f"Skipping {full_path}: {size} bytes")
                continue

            if kind == ArtifactKind.DECLARATION:
                tree.declaration_files.append(full_path)
            else:
                tree.source_files.append(full_path)

    return tree
