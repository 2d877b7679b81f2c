"""
incremental_editor — verifiable, conflict-safe application of agent-proposed
source edits.

Public API for library usage::

    from incremental_editor import decode, PatchApplier

    edits = decode(agent_response, original_text)
    result = PatchApplier().apply_batch(original_text, edits)
"""

from .editing import (
    ApplyResult, ChangeSetApplier, ConflictError, DiffParser, EditNotFoundError,
    EditOperation, MultiFileChangeSet, ParseError, PatchApplier, PendingEdit,
    PendingEditRegistry, decode, decode_change_set, validate,
)
from .kb import FileContext, Symbol, extract
from .session import EditSession

__all__ = [
    "ApplyResult", "ChangeSetApplier", "ConflictError", "DiffParser",
    "EditNotFoundError", "EditOperation", "MultiFileChangeSet", "ParseError",
    "PatchApplier", "PendingEdit", "PendingEditRegistry", "decode",
    "decode_change_set", "validate",
    "FileContext", "Symbol", "extract",
    "EditSession",
]
