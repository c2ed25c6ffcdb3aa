"""Discover installed packages and their declaration documents."""

from __future__ import annotations

import logging
import os

from hyphae.npm.manifest import declaration_entry_point

logger = logging.getLogger(__name__)


def iter_package_dirs(modules_dir: str) -> list[str]:
    """Package directories directly under node_modules, including @scope/name."""
    packages: list[str] = []
    try:
        entries = sorted(os.listdir(modules_dir))
    except OSError:
        return packages

    for entry in entries:
        if entry.startswith("."):
            continue
        entry_path = os.path.join(modules_dir, entry)
        if not os.path.isdir(entry_path):
            continue

        if entry.startswith("@"):
            try:
                scoped = sorted(os.listdir(entry_path))
            except OSError as e:
                logger.debug(f"Cannot list {entry_path}: {e}")
                continue
            for name in scoped:
                scoped_path = os.path.join(entry_path, name)
                if os.path.isdir(scoped_path):
                    packages.append(scoped_path)
        else:
            packages.append(entry_path)
    return packages


def find_dependency_declarations(
    project_root: str,
    dependency_dir: str = "node_modules",
    manifest_name: str = "package.json",
) -> list[str]:
    """Declaration entry points of every installed dependency."""
    modules_dir = os.path.join(project_root, dependency_dir)
    if not os.path.isdir(modules_dir):
        return []

    found: list[str] = []
    for package_dir in iter_package_dirs(modules_dir):
        dts = declaration_entry_point(package_dir, manifest_name)
        if dts is not None:
            found.append(dts)
    return found
