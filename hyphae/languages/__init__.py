"""Grammar registry - maps file names to artifact kinds and tree-sitter grammars."""

from __future__ import annotations

import tree_sitter

from hyphae.config import ArtifactKind

DECLARATION_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")

_GRAMMAR_BY_EXT = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
}

_LANGUAGES: dict[str, tree_sitter.Language] = {}


def _load_language(name: str) -> tree_sitter.Language:
    if name in ("typescript", "tsx"):
        import tree_sitter_typescript as ts_typescript
        if name == "tsx":
            return tree_sitter.Language(ts_typescript.language_tsx())
        return tree_sitter.Language(ts_typescript.language_typescript())
    import tree_sitter_javascript as ts_javascript
    return tree_sitter.Language(ts_javascript.language())


def is_declaration_file(file_name: str) -> bool:
    return file_name.lower().endswith(DECLARATION_SUFFIXES)


def artifact_kind(file_name: str) -> ArtifactKind | None:
    """Classify a file name as a declaration document, a source artifact, or neither."""
    if is_declaration_file(file_name):
        return ArtifactKind.DECLARATION
    if grammar_name(file_name) is not None:
        return ArtifactKind.SOURCE
    return None


def grammar_name(file_name: str) -> str | None:
    """Name of the grammar used to parse ``file_name``."""
    if is_declaration_file(file_name):
        return "typescript"
    lower = file_name.lower()
    dot = lower.rfind(".")
    if dot < 0:
        return None
    return _GRAMMAR_BY_EXT.get(lower[dot:])


def get_language(name: str) -> tree_sitter.Language:
    """Get (and cache) the tree-sitter Language for a grammar name."""
    if name not in _LANGUAGES:
        _LANGUAGES[name] = _load_language(name)
    return _LANGUAGES[name]
