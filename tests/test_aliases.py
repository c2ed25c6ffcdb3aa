"""Tests for the source alias analyser."""

from __future__ import annotations

from pathlib import Path

import tree_sitter

from hyphae.config import ProductionKind as K
from hyphae.languages import get_language, grammar_name
from hyphae.languages.aliases import AliasAnalyser

FIXTURES = Path(__file__).parent / "fixtures"
SRC = "titan_project/src"


def _parse(fixture_path: str):
    """Parse a fixture file and return (tree, source, file_path)."""
    full = str(FIXTURES / fixture_path)
    source = Path(full).read_bytes()
    parser = tree_sitter.Parser(get_language(grammar_name(full)))
    return parser.parse(source), source, full


def _candidates(fixture_path: str, roots=("t", "Titan")):
    """name -> (target, kind) for every candidate in a fixture."""
    found = AliasAnalyser(roots).analyse(*_parse(fixture_path))
    return {c.name: (c.target, c.kind) for c in found}


def _candidates_text(text: str, grammar: str = "javascript", roots=("t", "Titan")):
    source = text.encode("utf-8")
    tree = tree_sitter.Parser(get_language(grammar)).parse(source)
    found = AliasAnalyser(roots).analyse(tree, source, "inline.js")
    return {c.name: (c.target, c.kind) for c in found}


class TestDestructuring:
    def test_simple_binding(self):
        found = _candidates(f"{SRC}/app.js")
        assert found["fetch"] == ("t.fetch", K.BIND_SIMPLE)
        assert found["readFile"] == ("t.core.fs.readFile", K.BIND_SIMPLE)
        assert found["writeFile"] == ("t.core.fs.writeFile", K.BIND_SIMPLE)

    def test_renamed_binding(self):
        found = _candidates(f"{SRC}/app.js")
        assert found["pathJoin"] == ("t.core.path.join", K.BIND_RENAMED)
        assert "join" not in found

    def test_nested_binding(self):
        found = _candidates(f"{SRC}/app.js")
        assert found["sleep"] == ("t.core.time.sleep", K.BIND_NESTED)
        assert found["clock"] == ("t.core.time.now", K.BIND_NESTED)
        assert "core" not in found
        assert "time" not in found

    def test_default_value_binding(self):
        found = _candidates(f"{SRC}/typed.ts")
        assert found["log"] == ("t.log", K.BIND_SIMPLE)

    def test_renamed_with_default(self):
        found = _candidates_text("const { fetch: get = null } = t;")
        assert found == {"get": ("t.fetch", K.BIND_RENAMED)}

    def test_tsx_binding(self):
        found = _candidates(f"{SRC}/component.tsx")
        assert found == {"kvGet": ("t.kv.get", K.BIND_RENAMED)}


class TestAssignments:
    def test_simple_assignment(self):
        found = _candidates(f"{SRC}/app.js")
        assert found["myFetch"] == ("t.fetch", K.ASSIGN_SIMPLE)
        assert found["db"] == ("t.db", K.ASSIGN_SIMPLE)
        assert found["fs"] == ("t.core.fs", K.ASSIGN_SIMPLE)

    def test_non_access_values_ignored(self):
        found = _candidates(f"{SRC}/app.js")
        assert "rows" not in found
        assert "main" not in found

    def test_type_wrappers_and_subscripts(self):
        found = _candidates(f"{SRC}/typed.ts")
        assert found["store"] == ("t.core.fs", K.ASSIGN_SIMPLE)
        assert found["timeMod"] == ("t.core.time", K.ASSIGN_SIMPLE)

    def test_optional_chain(self):
        found = _candidates_text("const q = t?.db?.query;")
        assert found == {"q": ("t.db.query", K.ASSIGN_SIMPLE)}

    def test_computed_subscript_ignored(self):
        found = _candidates_text("const q = t.db[key];")
        assert found == {}

    def test_exported_assignment(self):
        found = _candidates(f"{SRC}/helpers/exports.mjs")
        assert found["exportedFetch"] == ("t.fetch", K.ASSIGN_EXPORT)

    def test_var_and_let(self):
        found = _candidates_text("var a = t.fetch; let b = t.core;")
        assert found == {
            "a": ("t.fetch", K.ASSIGN_SIMPLE),
            "b": ("t.core", K.ASSIGN_SIMPLE),
        }

    def test_plain_assignment(self):
        found = _candidates_text("let db; db = t.db; later = (t.core.fs);")
        assert found == {
            "db": ("t.db", K.ASSIGN_SIMPLE),
            "later": ("t.core.fs", K.ASSIGN_SIMPLE),
        }

    def test_assignment_targets_ignored(self):
        found = _candidates_text("module.exports = t.fetch; obj[key] = t.db; x += t.core;")
        assert found == {}

    def test_destructuring_assignment(self):
        found = _candidates_text("let fetch, join; ({ fetch, path: { join } } = t.core);")
        assert found == {
            "fetch": ("t.core.fetch", K.BIND_SIMPLE),
            "join": ("t.core.path.join", K.BIND_NESTED),
        }

    def test_assigned_object_literal(self):
        found = _candidates_text("let api; api = { get: t.kv.get };")
        assert found == {"api.get": ("t.kv.get", K.ASSIGN_OBJECT_PROPERTY)}

    def test_nested_scopes_are_visited(self):
        found = _candidates_text("""
            function setup() {
                if (ready) {
                    const inner = t.core.fs;
                }
            }
        """)
        assert found == {"inner": ("t.core.fs", K.ASSIGN_SIMPLE)}


class TestObjectProperties:
    def test_compound_names(self):
        found = _candidates(f"{SRC}/helpers/exports.mjs")
        assert found["utils.fetch"] == ("t.fetch", K.ASSIGN_OBJECT_PROPERTY)
        assert found["utils.read"] == ("t.core.fs.readFile", K.ASSIGN_OBJECT_PROPERTY)
        assert found["utils.join"] == ("t.core.path.join", K.ASSIGN_OBJECT_PROPERTY)
        assert "utils" not in found

    def test_shorthand_property(self):
        found = _candidates_text("const api = { fetch };")
        assert found == {"api.fetch": ("fetch", K.ASSIGN_OBJECT_PROPERTY)}


class TestChainsAndShadowing:
    def test_alias_rooted_targets_returned(self):
        found = _candidates(f"{SRC}/helpers/chains.js")
        assert found["core"] == ("t.core", K.ASSIGN_SIMPLE)
        assert found["crypto"] == ("core.crypto", K.ASSIGN_SIMPLE)
        assert found["hash"] == ("crypto.hash", K.BIND_SIMPLE)
        assert found["viaFs"] == ("fs.readFile", K.ASSIGN_SIMPLE)

    def test_runtime_root_names_dropped(self):
        found = _candidates(f"{SRC}/shadow.js")
        assert found == {"local": ("other.thing", K.ASSIGN_SIMPLE)}

    def test_custom_roots(self):
        found = _candidates_text("const a = rt.fetch; const b = t.fetch;", roots=("rt",))
        assert found["a"] == ("rt.fetch", K.ASSIGN_SIMPLE)
        assert found["b"] == ("t.fetch", K.ASSIGN_SIMPLE)

    def test_candidate_positions(self):
        found = AliasAnalyser().analyse(*_parse(f"{SRC}/app.js"))
        by_name = {c.name: c for c in found}
        assert by_name["fetch"].line == 1
        assert by_name["db"].line == 5
        assert by_name["db"].file.endswith("app.js")


def test_analysers_share_protocol():
    from hyphae.languages.base import ArtifactAnalyser
    from hyphae.languages.declarations import DeclarationAnalyser

    assert isinstance(AliasAnalyser(), ArtifactAnalyser)
    assert isinstance(DeclarationAnalyser(), ArtifactAnalyser)
