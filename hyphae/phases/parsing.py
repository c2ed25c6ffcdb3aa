"""Shared file reading and tree-sitter parsing for the scan phases."""

from __future__ import annotations

import logging

import tree_sitter

from hyphae.languages import get_language, grammar_name

logger = logging.getLogger(__name__)

# Cache parsers per grammar to avoid re-creating
_parsers: dict[str, tree_sitter.Parser] = {}


def _get_parser(grammar: str) -> tree_sitter.Parser | None:
    """Get or create a parser for the given grammar name."""
    if grammar not in _parsers:
        try:
            _parsers[grammar] = tree_sitter.Parser(get_language(grammar))
        except Exception as e:
            logger.warning(f"Failed to initialise parser for {grammar}: {e}")
            return None
    return _parsers[grammar]


def parse_file(file_path: str) -> tuple[tree_sitter.Tree, bytes] | None:
    """Read and parse a file. Returns None if it cannot be read or parsed."""
    grammar = grammar_name(file_path)
    if grammar is None:
        return None

    parser = _get_parser(grammar)
    if parser is None:
        return None

    try:
        with open(file_path, "rb") as f:
            source = f.read()
    except OSError as e:
        logger.warning(f"Failed to read {file_path}: {e}")
        return None

    try:
        tree = parser.parse(source)
    except Exception as e:
        logger.warning(f"Failed to parse {file_path}: {e}")
        return None

    return tree, source
