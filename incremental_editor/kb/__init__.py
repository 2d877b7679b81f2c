"""Symbol extraction and dependency analysis."""

from .parser import FileContext, Symbol, SymbolKind, extract, extract_context
from .graph import (
    DependencyGraph, build_dependency_graph, find_affected_files,
    resolve_relative_path,
)

__all__ = [
    "FileContext", "Symbol", "SymbolKind", "extract", "extract_context",
    "DependencyGraph", "build_dependency_graph", "find_affected_files",
    "resolve_relative_path",
]
