"""
Dependency analysis over extractor output.

Builds the file → dependency mapping from each file's import list, answers
"which files may be affected by a change to symbol X in file Y", and keeps
a NetworkX graph for transitive impact queries.  All path resolution is
lexical; the filesystem is never consulted.
"""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Any, Optional

import networkx as nx

from .parser import FileContext

logger = logging.getLogger(__name__)

_PYTHON_RELATIVE = re.compile(r"^\.+[\w.]*$")


class NodeKind:
    FILE = "FILE"
    EXTERNAL = "EXTERNAL"


# ---------------------------------------------------------------------------
# Path algebra
# ---------------------------------------------------------------------------

def is_relative_import(dependency: str) -> bool:
    return dependency.startswith(".")


def resolve_relative_path(from_path: str, relative: str) -> str:
    """Resolve *relative* against the directory of *from_path*.

    Handles ``./x`` / ``../x`` path imports and Python's dotted form
    (``.models``, ``..pkg.mod``), where one leading dot is the current
    package and each extra dot walks up one level.
    """
    if "/" not in relative and _PYTHON_RELATIVE.match(relative):
        dots = len(relative) - len(relative.lstrip("."))
        rest = relative[dots:]
        parts = [".."] * (dots - 1) + (rest.split(".") if rest else [])
    else:
        parts = relative.split("/")

    from_parts = from_path.replace("\\", "/").split("/")[:-1]
    for part in parts:
        if part == "..":
            if from_parts:
                from_parts.pop()
        elif part not in (".", ""):
            from_parts.append(part)
    return "/".join(from_parts)


def _strip_ext(path: str) -> str:
    return posixpath.splitext(path.replace("\\", "/"))[0]


def _file_identifier(file_path: str) -> str:
    return posixpath.splitext(posixpath.basename(file_path.replace("\\", "/")))[0]


# ---------------------------------------------------------------------------
# File-level analysis
# ---------------------------------------------------------------------------

def build_dependency_graph(contexts: dict[str, FileContext]) -> dict[str, list[str]]:
    """Map each file to its resolved relative imports and external modules."""
    graph: dict[str, list[str]] = {}
    for file_path, ctx in contexts.items():
        deps: list[str] = []
        for dep in ctx.dependencies:
            if is_relative_import(dep):
                deps.append(resolve_relative_path(file_path, dep))
            else:
                deps.append(dep)
        graph[file_path] = deps
    return graph


def find_affected_files(
    target_file: str,
    symbol_name: str,
    contexts: dict[str, FileContext],
) -> list[str]:
    """Files whose imports mention *symbol_name* or *target_file*.

    Deliberately over-inclusive: a false positive only asks the user to
    review one more file.
    """
    identifier = _file_identifier(target_file)
    target_stem = _strip_ext(target_file)
    affected: list[str] = []

    for file_path, ctx in contexts.items():
        if file_path == target_file:
            continue

        hit = any(
            (symbol_name and symbol_name in imp)
            or target_file in imp
            or (identifier and identifier in imp)
            for imp in ctx.imports
        )
        if not hit:
            hit = any(
                is_relative_import(dep)
                and _strip_ext(resolve_relative_path(file_path, dep)) == target_stem
                for dep in ctx.dependencies
            )
        if hit:
            affected.append(file_path)

    return affected


# ---------------------------------------------------------------------------
# DependencyGraph
# ---------------------------------------------------------------------------

class DependencyGraph:
    """
    Directed graph of file → dependency edges.

    File nodes are the keys of the contexts it was built from; dependencies
    that resolve to one of those files link to it, everything else becomes
    an EXTERNAL node.
    """

    def __init__(self) -> None:
        self._g: nx.DiGraph = nx.DiGraph()

    @classmethod
    def from_contexts(cls, contexts: dict[str, FileContext]) -> "DependencyGraph":
        graph = cls()
        by_stem = {_strip_ext(path): path for path in contexts}
        for file_path in contexts:
            graph._add_node(file_path, kind=NodeKind.FILE)

        for file_path, deps in build_dependency_graph(contexts).items():
            for dep in deps:
                target = _match_file(dep, by_stem, contexts)
                if target is None:
                    graph._add_node(dep, kind=NodeKind.EXTERNAL)
                    target = dep
                if target != file_path:
                    graph._g.add_edge(file_path, target)
        return graph

    def _add_node(self, node_id: str, **attrs: Any) -> None:
        if not self._g.has_node(node_id):
            self._g.add_node(node_id, **attrs)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def files(self) -> list[str]:
        return [n for n, a in self._g.nodes(data=True) if a.get("kind") == NodeKind.FILE]

    def dependencies_of(self, file_path: str) -> list[str]:
        if not self._g.has_node(file_path):
            return []
        return list(self._g.successors(file_path))

    def dependents_of(self, file_path: str) -> list[str]:
        if not self._g.has_node(file_path):
            return []
        return list(self._g.predecessors(file_path))

    def impact_analysis(self, file_path: str) -> list[str]:
        """Every file that depends on *file_path*, directly or transitively."""
        if not self._g.has_node(file_path):
            return []
        return sorted(
            n for n in nx.ancestors(self._g, file_path)
            if self._g.nodes[n].get("kind") == NodeKind.FILE
        )

    def edges_between(self, file_paths: list[str]) -> list[str]:
        """Dependency edges whose endpoints are both in *file_paths*."""
        wanted = set(file_paths)
        return [
            f"{src} -> {dst}"
            for src, dst in self._g.edges()
            if src in wanted and dst in wanted
        ]

    def to_dict(self) -> dict[str, list[str]]:
        return {path: self.dependencies_of(path) for path in self.files}


def _match_file(
    dependency: str,
    by_stem: dict[str, str],
    contexts: dict[str, FileContext],
) -> Optional[str]:
    """Map a resolved dependency onto a known file path, if any."""
    if dependency in contexts:
        return dependency
    for candidate in (
        _strip_ext(dependency),
        posixpath.join(dependency, "index"),
        posixpath.join(dependency, "__init__"),
        dependency.replace(".", "/"),
    ):
        if candidate in by_stem:
            return by_stem[candidate]
    return None
