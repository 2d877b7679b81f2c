"""
Error taxonomy for the edit protocol.

Per-edit failures are caught inside the component that raised them and
reported as structured outcomes; only batch-level problems escape.
"""

from __future__ import annotations


class EditError(Exception):
    """Base class for edit protocol errors."""


class ParseError(EditError):
    """The agent response could not be decoded in any supported encoding."""

    def __init__(self, message: str, response: str = "") -> None:
        super().__init__(message)
        self.response = response


class EditNotFoundError(EditError):
    """An edit's target text could not be located in the current buffer."""

    def __init__(self, message: str, edit=None) -> None:
        super().__init__(message)
        self.edit = edit


class ConflictError(EditError):
    """A multi-file changeset contains overlapping ranges within a file."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Conflicting edits")
        self.errors = list(errors)


class AmbiguousSymbolError(EditError):
    """Marker for the affected-file heuristic's known false positives.

    Never raised: over-inclusive results are a precision trade-off of
    :func:`~incremental_editor.kb.graph.find_affected_files`, not a failure.
    """
