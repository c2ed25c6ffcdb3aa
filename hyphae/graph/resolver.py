"""Resolves names and alias paths back to canonical runtime paths."""

from __future__ import annotations

from hyphae.config import AliasLookupResult, DetectorConfig, ResolutionResult
from hyphae.graph.alias_table import AliasTable


class PathResolver:
    """Four-step resolution: canonical, direct alias, module alias, unresolved."""

    def __init__(
        self,
        config: DetectorConfig,
        aliases: AliasTable,
    ) -> None:
        self.config = config
        self.aliases = aliases

    def resolve(self, name: str) -> ResolutionResult:
        # 1. Already canonical
        if self.config.is_runtime_path(name):
            return ResolutionResult(resolved_path=name, was_alias=False, is_module=False)

        # 2. Exact alias, including compound object-property keys
        alias = self.aliases.get(name)
        if alias is not None:
            return ResolutionResult(
                resolved_path=alias.original_path,
                was_alias=True,
                is_module=alias.is_module,
            )

        # 3. Head segment is a module alias
        head, sep, rest = name.partition(".")
        if sep and rest:
            module = self.aliases.module_alias(head)
            if module is not None:
                return ResolutionResult(
                    resolved_path=f"{module.original_path}.{rest}",
                    was_alias=True,
                    is_module=True,
                )

        # 4. Unresolved
        return ResolutionResult(resolved_path=name, was_alias=False, is_module=False)

    def lookup_alias(self, name: str) -> AliasLookupResult:
        """Alias provenance for ``name`` (direct or through a module alias)."""
        alias = self.aliases.get(name)
        if alias is not None:
            return AliasLookupResult(
                is_alias=True,
                original_path=alias.original_path,
                kind=alias.kind,
                is_module=alias.is_module,
            )

        head, sep, rest = name.partition(".")
        if sep and rest:
            module = self.aliases.module_alias(head)
            if module is not None:
                return AliasLookupResult(
                    is_alias=True,
                    original_path=f"{module.original_path}.{rest}",
                    kind=module.kind,
                    is_module=True,
                )

        return AliasLookupResult(is_alias=False)
