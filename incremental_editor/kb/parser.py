"""
Heuristic symbol extractor for building agent context and cross-file
dependency information.

This is a line/pattern scanner, not a parser: one forward pass per file with
a rule set per language family (brace, indentation, class-oriented) and a
generic fallback.  Results are hints.  Declarations inside strings or
comments can be picked up, and declarations spread over several lines can be
missed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from ..language import (
    FAMILY_BRACE, FAMILY_CLASS, FAMILY_INDENT, language_family,
)

logger = logging.getLogger(__name__)


class SymbolKind:
    FUNCTION = "function"
    CLASS = "class"
    VARIABLE = "variable"
    IMPORT = "import"
    EXPORT = "export"
    INTERFACE = "interface"
    TYPE = "type"


# ---------------------------------------------------------------------------
# Data classes returned by the extractor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Symbol:
    """A declaration found in a file; lines are 1-indexed and inclusive."""
    name: str
    kind: str
    start_line: int
    end_line: int
    source_snippet: str
    enclosing_scope: Optional[str] = None


@dataclass
class FileContext:
    """Everything one extraction pass learned about a file."""
    symbols: list[Symbol] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    exports: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)  # unique, first-seen order
    language: str = ""

    def add_import(self, raw: str, dependency: str) -> None:
        self.imports.append(raw)
        if dependency and dependency not in self.dependencies:
            self.dependencies.append(dependency)

    def symbols_of_kind(self, kind: str) -> list[Symbol]:
        return [s for s in self.symbols if s.kind == kind]


# ---------------------------------------------------------------------------
# Block-end finders
# ---------------------------------------------------------------------------

def find_block_end(lines: list[str], start_index: int) -> int:
    """Return the 1-indexed line where a brace block opened at or after
    *start_index* closes, or ``len(lines)`` if it never does.
    """
    depth = 0
    found_start = False
    for i in range(start_index, len(lines)):
        opens = lines[i].count("{")
        closes = lines[i].count("}")
        depth += opens - closes
        if opens > 0:
            found_start = True
        if found_start and depth <= 0:
            return i + 1
    return len(lines)


def find_indent_block_end(lines: list[str], start_index: int) -> int:
    """Return the last 1-indexed line of the indented block whose header is
    at *start_index*.

    The block ends before the first non-blank line indented at or left of
    the header; trailing blank lines are not part of it.
    """
    start_indent = _indent(lines[start_index])
    last = start_index
    for i in range(start_index + 1, len(lines)):
        if not lines[i].strip():
            continue
        if _indent(lines[i]) <= start_indent:
            break
        last = i
    return last + 1


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _brace_end(lines: list[str], index: int) -> int:
    """Block end for a brace-language declaration; bodiless ones end in place."""
    line = lines[index]
    if "{" not in line and line.rstrip().endswith(";"):
        return index + 1
    return find_block_end(lines, index)


# ---------------------------------------------------------------------------
# Scope tracking for brace languages
# ---------------------------------------------------------------------------

class _ScopeStack:
    """Nearest enclosing class/type, tracked by brace depth."""

    def __init__(self) -> None:
        self.depth = 0
        self._stack: list[list] = []  # [name, depth_at_open, opened]

    @property
    def current(self) -> Optional[str]:
        return self._stack[-1][0] if self._stack else None

    @property
    def member_depth(self) -> int:
        """Brace depth of lines directly inside the current scope."""
        return self._stack[-1][1] + 1 if self._stack else 0

    def push(self, name: str, depth_at_open: int) -> None:
        self._stack.append([name, depth_at_open, False])

    def settle(self) -> None:
        """Update after the current line's braces have been counted."""
        for entry in self._stack:
            if self.depth > entry[1]:
                entry[2] = True
        while self._stack and self._stack[-1][2] and self.depth <= self._stack[-1][1]:
            self._stack.pop()


# ---------------------------------------------------------------------------
# JavaScript / TypeScript
# ---------------------------------------------------------------------------

_JS_IMPORT = re.compile(r"""^\s*import\s+(?:type\s+)?[^'"]*?\bfrom\s+['"]([^'"]+)['"]""")
_JS_SIDE_EFFECT_IMPORT = re.compile(r"""^\s*import\s+['"]([^'"]+)['"]""")
_JS_REEXPORT = re.compile(r"""^\s*export\s+[^'"]*?\bfrom\s+['"]([^'"]+)['"]""")
_JS_REQUIRE = re.compile(r"""\brequire\(\s*['"]([^'"]+)['"]\s*\)""")
_JS_EXPORT = re.compile(r"^\s*export\b")
_JS_FUNCTION = re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*([A-Za-z_$][\w$]*)")
_JS_CLASS = re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+([A-Za-z_$][\w$]*)")
_JS_VARIABLE = re.compile(r"^\s*(?:export\s+)?(?:const|let|var)\s+([A-Za-z_$][\w$]*)")
_JS_FUNCTION_VALUE = re.compile(
    r"=\s*(?:async\s+)?(?:function\b|\([^)]*\)\s*(?::\s*[^=]+)?=>|[A-Za-z_$][\w$]*\s*=>)"
)
_JS_INTERFACE = re.compile(r"^\s*(?:export\s+)?(?:declare\s+)?interface\s+([A-Za-z_$][\w$]*)")
_JS_TYPE = re.compile(r"^\s*(?:export\s+)?(?:declare\s+)?type\s+([A-Za-z_$][\w$]*)\s*(?:<[^>]*>)?\s*=")
_JS_ENUM = re.compile(r"^\s*(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+([A-Za-z_$][\w$]*)")
_JS_METHOD = re.compile(
    r"^\s*(?:(?:public|private|protected|static|readonly|async|get|set|override)\s+)*"
    r"\*?([A-Za-z_$][\w$]*)\s*(?:<[^>]*>)?\([^)]*\)\s*(?::\s*[^{]+)?\{"
)
_CONTROL_KEYWORDS = {
    "if", "for", "while", "switch", "catch", "function", "return", "else",
    "do", "try", "with", "new", "super",
}


def _parse_javascript_like(lines: list[str], ctx: FileContext) -> None:
    scopes = _ScopeStack()

    for index, line in enumerate(lines):
        depth_before = scopes.depth
        scopes.depth += line.count("{") - line.count("}")
        scope = scopes.current
        line_no = index + 1
        trimmed = line.strip()

        # Imports
        for pattern in (_JS_IMPORT, _JS_SIDE_EFFECT_IMPORT, _JS_REEXPORT):
            m = pattern.match(line)
            if m:
                ctx.add_import(m.group(1), m.group(1))
                break
        else:
            for m in _JS_REQUIRE.finditer(line):
                ctx.add_import(m.group(1), m.group(1))

        # Exports
        if _JS_EXPORT.match(line):
            ctx.exports.append(trimmed)

        # Functions
        m = _JS_FUNCTION.match(line)
        if m:
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.FUNCTION, line_no,
                _brace_end(lines, index), line, scope,
            ))

        # Classes
        m = _JS_CLASS.match(line)
        if m:
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.CLASS, line_no,
                _brace_end(lines, index), line, scope,
            ))
            scopes.push(m.group(1), depth_before)

        # Class members
        if scope and depth_before == scopes.member_depth and not m:
            mm = _JS_METHOD.match(line)
            if mm and mm.group(1) not in _CONTROL_KEYWORDS:
                ctx.symbols.append(Symbol(
                    mm.group(1), SymbolKind.FUNCTION, line_no,
                    find_block_end(lines, index), line, scope,
                ))

        # Top-level variables (arrow functions and function expressions
        # count as functions)
        m = _JS_VARIABLE.match(line)
        if m and depth_before == 0 and m.group(1) != "enum":
            if _JS_FUNCTION_VALUE.search(line):
                end = find_block_end(lines, index) if "{" in line else line_no
                ctx.symbols.append(Symbol(
                    m.group(1), SymbolKind.FUNCTION, line_no, end, line, scope,
                ))
            else:
                ctx.symbols.append(Symbol(
                    m.group(1), SymbolKind.VARIABLE, line_no, line_no, line, scope,
                ))

        # Interfaces
        m = _JS_INTERFACE.match(line)
        if m:
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.INTERFACE, line_no,
                find_block_end(lines, index), line, scope,
            ))

        # Type aliases and enums
        m = _JS_TYPE.match(line) or _JS_ENUM.match(line)
        if m:
            end = find_block_end(lines, index) if "{" in line else line_no
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.TYPE, line_no, end, line, scope,
            ))

        scopes.settle()


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------

_PY_IMPORT = re.compile(r"^\s*import\s+(.+)")
_PY_FROM_IMPORT = re.compile(r"^\s*from\s+(\.*[\w.]*)\s+import\s+(.+)")
_PY_FUNCTION = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)")
_PY_CLASS = re.compile(r"^\s*class\s+(\w+)")
_PY_VARIABLE = re.compile(r"^([A-Za-z_]\w*)\s*(?::[^=]*)?=(?!=)")
_PY_ALL_NAMES = re.compile(r"""['"](\w+)['"]""")


def _import_names(clause: str) -> list[str]:
    clause = clause.split("#", 1)[0]
    names = []
    for part in clause.replace("(", " ").replace(")", " ").replace("\\", " ").split(","):
        name = part.strip().split(" as ")[0].strip()
        if name:
            names.append(name)
    return names


def _parse_python(lines: list[str], ctx: FileContext) -> None:
    scopes: list[tuple[str, int]] = []  # (class name, header indent)

    for index, line in enumerate(lines):
        if not line.strip():
            continue
        indent = _indent(line)
        while scopes and indent <= scopes[-1][1]:
            scopes.pop()
        scope = scopes[-1][0] if scopes else None
        line_no = index + 1

        m = _PY_FROM_IMPORT.match(line)
        if m:
            module = m.group(1)
            sep = "" if module.endswith(".") else "."
            for name in _import_names(m.group(2)):
                ctx.add_import(f"{module}{sep}{name}", module)
            continue

        m = _PY_IMPORT.match(line)
        if m:
            for name in _import_names(m.group(1)):
                ctx.add_import(name, name)
            continue

        m = _PY_FUNCTION.match(line)
        if m:
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.FUNCTION, line_no,
                find_indent_block_end(lines, index), line, scope,
            ))

        m = _PY_CLASS.match(line)
        if m:
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.CLASS, line_no,
                find_indent_block_end(lines, index), line, scope,
            ))
            scopes.append((m.group(1), indent))

        m = _PY_VARIABLE.match(line)
        if m:
            ctx.symbols.append(Symbol(
                m.group(1), SymbolKind.VARIABLE, line_no, line_no, line, None,
            ))
            if m.group(1) == "__all__":
                ctx.exports.extend(_PY_ALL_NAMES.findall(line))


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------

_JAVA_IMPORT = re.compile(r"^\s*import\s+(?:static\s+)?([\w.]+(?:\.\*)?)\s*;?")
_JAVA_TYPE_DECL = re.compile(
    r"^\s*(?:(?:public|protected|private|abstract|final|static|sealed|strictfp)\s+)*"
    r"(class|interface|enum|record|@interface)\s+(\w+)"
)
_JAVA_METHOD = re.compile(
    r"^\s*(?:@\w+\s+)*(?:(?:public|private|protected|static|final|abstract|"
    r"synchronized|native|default)\s+)+(?:<[^>]+>\s+)?(?:[\w<>\[\],.?]+\s+)?(\w+)\s*\("
)
_JAVA_FIELD = re.compile(
    r"^\s*(?:(?:public|private|protected|static|final|transient|volatile)\s+)+"
    r"[\w<>\[\],.?]+\s+(\w+)\s*(?:=|;)"
)
_JAVA_KIND = {
    "class": SymbolKind.CLASS,
    "record": SymbolKind.CLASS,
    "interface": SymbolKind.INTERFACE,
    "@interface": SymbolKind.INTERFACE,
    "enum": SymbolKind.TYPE,
}


def _parse_java(lines: list[str], ctx: FileContext) -> None:
    scopes = _ScopeStack()

    for index, line in enumerate(lines):
        depth_before = scopes.depth
        scopes.depth += line.count("{") - line.count("}")
        scope = scopes.current
        line_no = index + 1

        m = _JAVA_IMPORT.match(line)
        if m:
            path = m.group(1)
            ctx.add_import(path, path.split(".")[0])
            scopes.settle()
            continue

        decl = _JAVA_TYPE_DECL.match(line)
        if decl:
            ctx.symbols.append(Symbol(
                decl.group(2), _JAVA_KIND[decl.group(1)], line_no,
                _brace_end(lines, index), line, scope,
            ))
            scopes.push(decl.group(2), depth_before)
            if "public" in line.split(decl.group(1))[0]:
                ctx.exports.append(decl.group(2))
        else:
            m = _JAVA_METHOD.match(line)
            if m and m.group(1) not in _CONTROL_KEYWORDS:
                ctx.symbols.append(Symbol(
                    m.group(1), SymbolKind.FUNCTION, line_no,
                    _brace_end(lines, index), line, scope,
                ))
            else:
                m = _JAVA_FIELD.match(line)
                if m and scope and depth_before == scopes.member_depth:
                    ctx.symbols.append(Symbol(
                        m.group(1), SymbolKind.VARIABLE, line_no, line_no,
                        line, scope,
                    ))

        scopes.settle()


# ---------------------------------------------------------------------------
# Generic fallback
# ---------------------------------------------------------------------------

_GENERIC_FUNCTIONS = [
    re.compile(r"\bfunction\s+(\w+)"),
    re.compile(r"\bdef\s+(\w+)"),
    re.compile(r"\bfn\s+(\w+)"),
    re.compile(r"\bfunc\s+(\w+)"),
]


def _parse_generic(lines: list[str], ctx: FileContext) -> None:
    for index, line in enumerate(lines):
        for pattern in _GENERIC_FUNCTIONS:
            m = pattern.search(line)
            if m:
                ctx.symbols.append(Symbol(
                    m.group(1), SymbolKind.FUNCTION, index + 1, index + 1, line,
                ))
                break


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

_FAMILY_PARSERS = {
    FAMILY_BRACE: _parse_javascript_like,
    FAMILY_INDENT: _parse_python,
    FAMILY_CLASS: _parse_java,
}


def extract(source_text: str, language: str) -> FileContext:
    """Extract symbols, imports, exports and dependencies from *source_text*.

    Never raises for unusual input; unknown languages use a generic scanner
    that only finds common function-declaration spellings.

    Parameters
    ----------
    source_text:
        The file's full text.
    language:
        Language tag such as ``"typescript"`` or ``"python"``.
    """
    ctx = FileContext(language=language)
    lines = source_text.split("\n")
    family = language_family(language)
    _FAMILY_PARSERS.get(family, _parse_generic)(lines, ctx)
    logger.debug(
        "[Extractor] %s: %d symbols, %d imports",
        language, len(ctx.symbols), len(ctx.imports),
    )
    return ctx


def extract_context(
    code: str,
    target_line: int,
    language: str,
    context_lines: int = 20,
) -> str:
    """Render the symbols near *target_line* as a prompt context block."""
    ctx = extract(code, language)
    lines = code.split("\n")

    relevant = [
        s for s in ctx.symbols
        if s.start_line <= target_line + context_lines
        and s.end_line >= target_line - context_lines
    ]

    parts = [
        "// Code Context:",
        f"// Imports: {', '.join(ctx.imports)}",
        f"// Symbols: {', '.join(f'{s.kind} {s.name}' for s in relevant)}",
        "",
    ]
    for symbol in relevant:
        start = max(0, symbol.start_line - 1)
        end = min(len(lines), symbol.end_line)
        parts.append(f"\n// {symbol.kind} {symbol.name}:")
        parts.append("\n".join(lines[start:end]))
    return "\n".join(parts) + "\n"
