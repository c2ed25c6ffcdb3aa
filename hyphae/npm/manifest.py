"""Parse package.json manifests."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field


@dataclass
class ManifestInfo:
    """Fields of a package.json relevant to declaration discovery."""
    path: str
    name: str = ""
    version: str = ""
    types: str = ""
    typings: str = ""
    export_types: list[str] = field(default_factory=list)


def parse_manifest(manifest_path: str) -> ManifestInfo:
    """Parse a package.json file. Unreadable or invalid JSON yields an empty info."""
    info = ManifestInfo(path=manifest_path)

    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return info
    if not isinstance(data, dict):
        return info

    info.name = _string(data.get("name"))
    info.version = _string(data.get("version"))
    info.types = _string(data.get("types"))
    info.typings = _string(data.get("typings"))

    # "exports": {".": {"types": "./index.d.ts", ...}} or {"types": ...}
    exports = data.get("exports")
    if isinstance(exports, dict):
        entry = exports.get(".", exports)
        if isinstance(entry, dict):
            types = entry.get("types")
            if isinstance(types, str):
                info.export_types.append(types)
            elif isinstance(types, dict):
                info.export_types.extend(v for v in types.values() if isinstance(v, str))

    return info


def declaration_entry_point(package_dir: str, manifest_name: str = "package.json") -> str | None:
    """Locate the declaration document of an installed package.

    Tries, in order: "types", "typings", exports["."].types, index.d.ts,
    dist/index.d.ts.
    """
    manifest_path = os.path.join(package_dir, manifest_name)
    if not os.path.isfile(manifest_path):
        return None
    info = parse_manifest(manifest_path)

    candidates = [info.types, info.typings, *info.export_types]
    candidates += ["index.d.ts", os.path.join("dist", "index.d.ts")]
    for rel in candidates:
        if not rel:
            continue
        full = os.path.normpath(os.path.join(package_dir, rel))
        if os.path.isfile(full):
            return full
    return None


def _string(value) -> str:
    return value.strip() if isinstance(value, str) else ""
