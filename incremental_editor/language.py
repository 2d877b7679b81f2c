"""
Language detection — maps file names to the language tags understood by the
symbol extractor and the prompt builder.
"""

import os


# ── Extension → Language mapping ──

EXTENSION_MAP = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".c": "c",
    ".h": "c",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".md": "markdown",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".xml": "xml",
    ".sql": "sql",
    ".sh": "shell",
}

DEFAULT_LANGUAGE = "plaintext"


# ── Extractor families ──

FAMILY_BRACE = "brace"
FAMILY_INDENT = "indent"
FAMILY_CLASS = "class"
FAMILY_GENERIC = "generic"

_FAMILIES = {
    "javascript": FAMILY_BRACE,
    "jsx": FAMILY_BRACE,
    "typescript": FAMILY_BRACE,
    "tsx": FAMILY_BRACE,
    "python": FAMILY_INDENT,
    "java": FAMILY_CLASS,
}


def detect_language(file_path: str) -> str:
    """Return the language tag for *file_path* from its extension."""
    ext = os.path.splitext(file_path)[1].lower()
    return EXTENSION_MAP.get(ext, DEFAULT_LANGUAGE)


def language_family(language: str) -> str:
    """Return the extractor family for a language tag."""
    return _FAMILIES.get((language or "").lower(), FAMILY_GENERIC)
