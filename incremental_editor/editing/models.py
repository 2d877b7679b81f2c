"""
Canonical edit data model shared by the decoder, applier, validator and
pending-edit registry.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional


class EditStatus:
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class EditOperation:
    """A single positional text mutation.

    Lines are 1-indexed and inclusive.  Columns are 1-indexed with an
    exclusive end; when omitted the edit spans whole lines.  ``old_text`` is
    the author's transcription of the replaced text and is only used for
    verification.
    """
    start_line: int
    end_line: int
    old_text: str = ""
    new_text: str = ""
    start_column: Optional[int] = None
    end_column: Optional[int] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.start_line > self.end_line:
            raise ValueError(
                f"start_line {self.start_line} is after end_line {self.end_line}"
            )

    @property
    def is_whole_line(self) -> bool:
        return self.start_column is None and self.end_column is None

    @property
    def line_range(self) -> tuple[int, int]:
        return self.start_line, self.end_line

    def shifted(self, delta: int) -> "EditOperation":
        """Return a copy moved *delta* lines down (negative moves up)."""
        return replace(
            self,
            start_line=self.start_line + delta,
            end_line=self.end_line + delta,
        )


@dataclass
class PendingEdit(EditOperation):
    """An EditOperation staged for accept/reject by the UI collaborator."""
    id: str = ""
    status: str = EditStatus.PROPOSED

    @classmethod
    def from_operation(cls, op: EditOperation, edit_id: str) -> "PendingEdit":
        return cls(
            start_line=op.start_line,
            end_line=op.end_line,
            old_text=op.old_text,
            new_text=op.new_text,
            start_column=op.start_column,
            end_column=op.end_column,
            description=op.description,
            id=edit_id,
        )

    def to_operation(self) -> EditOperation:
        return EditOperation(
            start_line=self.start_line,
            end_line=self.end_line,
            old_text=self.old_text,
            new_text=self.new_text,
            start_column=self.start_column,
            end_column=self.end_column,
            description=self.description,
        )


@dataclass
class FileEditBatch:
    """All edits proposed for a single file."""
    file_path: str
    original_content: str = ""
    edits: list[EditOperation] = field(default_factory=list)


@dataclass
class MultiFileChangeSet:
    """A coordinated set of per-file batches, validated as a unit."""
    files: list[FileEditBatch] = field(default_factory=list)
    summary: str = ""
    dependency_edges_touched: list[str] = field(default_factory=list)

    @property
    def file_paths(self) -> list[str]:
        return [batch.file_path for batch in self.files]
