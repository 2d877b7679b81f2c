"""Edit protocol — decode, locate, apply, validate and stage agent edits."""

from .models import (
    EditOperation, PendingEdit, EditStatus, FileEditBatch, MultiFileChangeSet,
)
from .errors import (
    EditError, ParseError, EditNotFoundError, ConflictError, AmbiguousSymbolError,
)
from .diff_parser import DiffParser, EditEncoding, decode, decode_change_set
from .locator import EditLocator, LocatedRange
from .patch_applier import PatchApplier, ApplyResult
from .conflict_validator import (
    ChangeSetApplier, ChangeSetResult, ValidationResult, validate,
)
from .pending import PendingEditRegistry

__all__ = [
    "EditOperation", "PendingEdit", "EditStatus", "FileEditBatch",
    "MultiFileChangeSet",
    "EditError", "ParseError", "EditNotFoundError", "ConflictError",
    "AmbiguousSymbolError",
    "DiffParser", "EditEncoding", "decode", "decode_change_set",
    "EditLocator", "LocatedRange",
    "PatchApplier", "ApplyResult",
    "ChangeSetApplier", "ChangeSetResult", "ValidationResult", "validate",
    "PendingEditRegistry",
]
