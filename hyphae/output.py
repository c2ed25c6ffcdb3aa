"""JSON serialisation of a scanned project."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from hyphae.cache import ProjectCacheState
from hyphae.config import MethodDescriptor, NamedType, ScanReport


def _member_kind(member) -> str:
    if isinstance(member, MethodDescriptor):
        return "method"
    if isinstance(member, NamedType):
        return "object"
    return "reference"


def build_result(state: ProjectCacheState, report: ScanReport | None = None) -> dict[str, Any]:
    """Build a JSON-ready dict of registry, named types and aliases."""
    report = report or state.report or ScanReport(project_root=state.project_root or "")

    methods = sorted(state.registry.methods())
    return {
        "version": "1.0",
        "metadata": {
            "project_root": state.project_root,
            "scanned_at": datetime.now(timezone.utc).isoformat(),
            "runtime_roots": list(state.config.runtime_roots),
            "async_wrapper": state.config.async_wrapper,
            "scan_duration_ms": report.duration_ms,
            "phase_timings": report.phase_timings,
        },
        "stats": {
            **report.as_dict(),
            "async_methods": sum(1 for _, d in methods if d.is_async),
            "module_aliases": state.aliases.module_count(),
        },
        "methods": [
            {"path": path, "is_async": d.is_async, "return_type": d.return_type}
            for path, d in methods
        ],
        "aliases": [
            {
                "name": name,
                "original_path": a.original_path,
                "kind": a.kind.value,
                "is_module": a.is_module,
            }
            for name, a in state.aliases.items()
        ],
        "named_types": [
            {
                "name": named.name,
                "members": {m: _member_kind(v) for m, v in named.members.items()},
                "bases": [b.name for b in named.bases],
            }
            for named in sorted(state.registry.named_types.values(), key=lambda n: n.name)
        ],
        "unresolved_bindings": list(state.registry.unresolved),
    }


def write_output(result: dict[str, Any], output_path: str) -> None:
    """Write the scan result to a JSON file."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(result, f, indent=2, default=str)
