"""Alias name -> AliasDescriptor table."""

from __future__ import annotations

from collections.abc import Iterator

from hyphae.config import AliasDescriptor


class AliasTable:
    """Maps alias names (``fetch``, ``db``, ``utils.fetch``) to descriptors.

    Compound keys such as ``utils.fetch`` come from object-literal
    properties and are matched as whole strings, never split.
    """

    def __init__(self) -> None:
        self.aliases: dict[str, AliasDescriptor] = {}

    def add(self, name: str, descriptor: AliasDescriptor, overwrite: bool = True) -> bool:
        """Record an alias. Later productions replace earlier ones unless
        ``overwrite`` is False. Returns True if the table changed."""
        if not overwrite and name in self.aliases:
            return False
        self.aliases[name] = descriptor
        return True

    def get(self, name: str) -> AliasDescriptor | None:
        return self.aliases.get(name)

    def module_alias(self, name: str) -> AliasDescriptor | None:
        """The descriptor for ``name`` only if it is a module alias."""
        alias = self.aliases.get(name)
        if alias is not None and alias.is_module:
            return alias
        return None

    def items(self) -> Iterator[tuple[str, AliasDescriptor]]:
        return iter(sorted(self.aliases.items()))

    def module_count(self) -> int:
        return sum(1 for a in self.aliases.values() if a.is_module)

    def clear(self) -> None:
        self.aliases.clear()

    def snapshot(self) -> dict[str, AliasDescriptor]:
        return dict(self.aliases)

    def __contains__(self, name: str) -> bool:
        return name in self.aliases

    def __len__(self) -> int:
        return len(self.aliases)
