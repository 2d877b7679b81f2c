"""Tests for dependency resolution and impact analysis."""

from incremental_editor.kb.graph import (
    DependencyGraph, build_dependency_graph, find_affected_files,
    resolve_relative_path,
)
from incremental_editor.kb.parser import extract


FILES = {
    "src/app.ts": "import React from 'react';\nimport { helper } from './utils';\n",
    "src/utils.ts": "export function helper() {\n  return 1;\n}\n",
    "src/main.ts": "import { App } from './app';\n",
}


def _contexts():
    return {path: extract(text, "typescript") for path, text in FILES.items()}


class TestResolveRelativePath:
    def test_same_directory(self):
        assert resolve_relative_path("src/a.ts", "./b") == "src/b"

    def test_parent_directory(self):
        assert resolve_relative_path("src/components/App.tsx", "../utils/helpers") == "src/utils/helpers"

    def test_walks_past_root(self):
        assert resolve_relative_path("a.ts", "../../b") == "b"

    def test_python_dotted_relative(self):
        assert resolve_relative_path("pkg/sub/mod.py", ".models") == "pkg/sub/models"
        assert resolve_relative_path("pkg/sub/mod.py", "..core.x") == "pkg/core/x"


class TestBuildDependencyGraph:
    def test_relative_imports_resolved(self):
        graph = build_dependency_graph(_contexts())

        assert graph["src/app.ts"] == ["react", "src/utils"]
        assert graph["src/utils.ts"] == []
        assert graph["src/main.ts"] == ["src/app"]


class TestFindAffectedFiles:
    def test_importer_found(self):
        affected = find_affected_files("src/utils.ts", "helper", _contexts())
        assert affected == ["src/app.ts"]

    def test_target_excluded(self):
        assert "src/app.ts" not in find_affected_files("src/app.ts", "App", _contexts())

    def test_symbol_name_match(self):
        contexts = {
            "a.py": extract("from .b import compute\n", "python"),
            "c.py": extract("import os\n", "python"),
        }
        assert find_affected_files("lib/other.py", "compute", contexts) == ["a.py"]


class TestDependencyGraph:
    def test_edges(self):
        graph = DependencyGraph.from_contexts(_contexts())

        assert sorted(graph.files) == ["src/app.ts", "src/main.ts", "src/utils.ts"]
        assert graph.dependencies_of("src/app.ts") == ["react", "src/utils.ts"]
        assert graph.dependents_of("src/utils.ts") == ["src/app.ts"]

    def test_transitive_impact(self):
        graph = DependencyGraph.from_contexts(_contexts())

        assert graph.impact_analysis("src/utils.ts") == ["src/app.ts", "src/main.ts"]
        assert graph.impact_analysis("unknown.ts") == []

    def test_edges_between(self):
        graph = DependencyGraph.from_contexts(_contexts())
        assert graph.edges_between(["src/app.ts", "src/utils.ts"]) == [
            "src/app.ts -> src/utils.ts"
        ]

    def test_to_dict(self):
        mapping = DependencyGraph.from_contexts(_contexts()).to_dict()
        assert mapping["src/main.ts"] == ["src/app.ts"]
