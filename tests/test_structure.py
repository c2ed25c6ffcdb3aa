"""Tests for project discovery: root lookup, tree walk and dependency manifests."""

from __future__ import annotations

import json
import os

from hyphae.config import ArtifactKind, DetectorConfig
from hyphae.languages import artifact_kind, grammar_name, is_declaration_file
from hyphae.npm.manifest import declaration_entry_point, parse_manifest
from hyphae.npm.packages import find_dependency_declarations, iter_package_dirs
from hyphae.phases.structure import find_project_root, run_structure_phase

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
PROJECT = os.path.join(FIXTURES_DIR, "titan_project")


def _write(path, content=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def _rel(paths):
    return {os.path.relpath(p, PROJECT).replace(os.sep, "/") for p in paths}


class TestArtifactKinds:
    def test_declaration_suffixes(self):
        assert is_declaration_file("index.d.ts")
        assert is_declaration_file("lib.d.mts")
        assert is_declaration_file("lib.d.cts")
        assert not is_declaration_file("index.ts")

    def test_artifact_kind(self):
        assert artifact_kind("titan.d.ts") == ArtifactKind.DECLARATION
        assert artifact_kind("app.js") == ArtifactKind.SOURCE
        assert artifact_kind("view.tsx") == ArtifactKind.SOURCE
        assert artifact_kind("README.md") is None
        assert artifact_kind("Makefile") is None

    def test_grammar_name(self):
        assert grammar_name("titan.d.ts") == "typescript"
        assert grammar_name("app.mjs") == "javascript"
        assert grammar_name("view.tsx") == "tsx"
        assert grammar_name("APP.TS") == "typescript"


class TestFindProjectRoot:
    def test_from_file(self):
        start = os.path.join(PROJECT, "src", "helpers", "chains.js")
        assert find_project_root(start) == os.path.realpath(PROJECT)

    def test_from_directory(self):
        assert find_project_root(PROJECT) == os.path.realpath(PROJECT)

    def test_nearest_manifest_wins(self, tmp_path):
        _write(tmp_path / "package.json", "{}")
        inner = _write(tmp_path / "packages" / "web" / "package.json", "{}")
        start = _write(tmp_path / "packages" / "web" / "src" / "a.js")
        assert find_project_root(str(start)) == str(inner.parent.resolve())

    def test_custom_manifest_name(self, tmp_path):
        _write(tmp_path / "titan.json", "{}")
        start = _write(tmp_path / "src" / "a.js")
        assert find_project_root(str(start), "titan.json") == str(tmp_path.resolve())

    def test_no_root(self, tmp_path):
        start = _write(tmp_path / "src" / "a.js")
        assert find_project_root(str(start), "no-such-manifest.json") is None

    def test_empty_hint(self):
        assert find_project_root(None) is None
        assert find_project_root("") is None


class TestStructurePhase:
    def test_finds_project_files(self):
        tree = run_structure_phase(DetectorConfig(), PROJECT)
        assert _rel(tree.declaration_files) == {
            "types/globals.d.ts",
            "types/interfaces.d.ts",
            "types/overloads.d.ts",
            "types/path.d.ts",
            "types/titan.d.ts",
        }
        assert _rel(tree.source_files) == {
            "src/app.js",
            "src/component.tsx",
            "src/shadow.js",
            "src/typed.ts",
            "src/helpers/chains.js",
            "src/helpers/exports.mjs",
        }

    def test_skips_ignored_directories(self):
        tree = run_structure_phase(DetectorConfig(), PROJECT)
        for path in tree.declaration_files + tree.source_files:
            parts = _rel([path]).pop().split("/")
            assert "node_modules" not in parts
            assert "dist" not in parts

    def test_declaration_order_is_stable(self):
        first = run_structure_phase(DetectorConfig(), PROJECT)
        second = run_structure_phase(DetectorConfig(), PROJECT)
        assert first.declaration_files == second.declaration_files
        assert first.declaration_files == sorted(first.declaration_files)

    def test_exclude_patterns(self):
        config = DetectorConfig(exclude_patterns=["helpers"])
        tree = run_structure_phase(config, PROJECT)
        assert "src/helpers/chains.js" not in _rel(tree.source_files)
        assert "src/app.js" in _rel(tree.source_files)

    def test_depth_limit(self, tmp_path):
        _write(tmp_path / "package.json", "{}")
        _write(tmp_path / "a" / "one.d.ts")
        _write(tmp_path / "a" / "b" / "two.d.ts")
        _write(tmp_path / "a" / "b" / "c" / "three.d.ts")
        tree = run_structure_phase(DetectorConfig(max_depth=2), str(tmp_path))
        names = {os.path.basename(p) for p in tree.declaration_files}
        assert names == {"one.d.ts", "two.d.ts"}

    def test_skips_hidden_and_large_files(self, tmp_path):
        _write(tmp_path / ".hidden" / "x.d.ts")
        _write(tmp_path / ".eslintrc.js")
        _write(tmp_path / "big.d.ts", "x" * 200)
        _write(tmp_path / "small.d.ts", "x")
        tree = run_structure_phase(DetectorConfig(max_file_size=100), str(tmp_path))
        assert [os.path.basename(p) for p in tree.declaration_files] == ["small.d.ts"]
        assert tree.source_files == []

    def test_missing_root(self, tmp_path):
        tree = run_structure_phase(DetectorConfig(), str(tmp_path / "gone"))
        assert tree.declaration_files == []
        assert tree.source_files == []


class TestManifests:
    def test_types_field(self):
        package = os.path.join(PROJECT, "node_modules", "titan-database")
        info = parse_manifest(os.path.join(package, "package.json"))
        assert info.name == "titan-database"
        assert info.types == "types/index.d.ts"
        assert declaration_entry_point(package) == os.path.join(package, "types", "index.d.ts")

    def test_exports_types(self):
        package = os.path.join(PROJECT, "node_modules", "@titan", "kv")
        info = parse_manifest(os.path.join(package, "package.json"))
        assert info.export_types == ["./lib/kv.d.ts"]
        assert declaration_entry_point(package) == os.path.join(package, "lib", "kv.d.ts")

    def test_index_fallback(self):
        package = os.path.join(PROJECT, "node_modules", "plain-lib")
        assert declaration_entry_point(package) == os.path.join(package, "index.d.ts")

    def test_invalid_json_still_uses_fallback(self):
        package = os.path.join(PROJECT, "node_modules", "broken")
        info = parse_manifest(os.path.join(package, "package.json"))
        assert info.name == ""
        assert declaration_entry_point(package) == os.path.join(package, "index.d.ts")

    def test_typings_and_dist_fallback(self, tmp_path):
        typed = tmp_path / "typed"
        _write(typed / "package.json", json.dumps({"typings": "lib/main.d.ts"}))
        _write(typed / "lib" / "main.d.ts")
        dist = tmp_path / "dist-only"
        _write(dist / "package.json", json.dumps({"name": "dist-only"}))
        _write(dist / "dist" / "index.d.ts")
        assert declaration_entry_point(str(typed)) == str(typed / "lib" / "main.d.ts")
        assert declaration_entry_point(str(dist)) == str(dist / "dist" / "index.d.ts")

    def test_missing_declaration(self, tmp_path):
        _write(tmp_path / "package.json", json.dumps({"types": "missing.d.ts"}))
        assert declaration_entry_point(str(tmp_path)) is None

    def test_no_manifest(self, tmp_path):
        _write(tmp_path / "index.d.ts")
        assert declaration_entry_point(str(tmp_path)) is None

    def test_unreadable_manifest(self, tmp_path):
        info = parse_manifest(str(tmp_path / "package.json"))
        assert info.name == ""
        assert info.export_types == []


class TestPackages:
    def test_iter_package_dirs(self):
        modules = os.path.join(PROJECT, "node_modules")
        names = [os.path.relpath(p, modules).replace(os.sep, "/") for p in iter_package_dirs(modules)]
        assert names == ["@titan/kv", "broken", "plain-lib", "titan-database"]

    def test_find_dependency_declarations(self):
        found = find_dependency_declarations(PROJECT)
        assert _rel(found) == {
            "node_modules/@titan/kv/lib/kv.d.ts",
            "node_modules/broken/index.d.ts",
            "node_modules/plain-lib/index.d.ts",
            "node_modules/titan-database/types/index.d.ts",
        }

    def test_no_node_modules(self, tmp_path):
        assert find_dependency_declarations(str(tmp_path)) == []
