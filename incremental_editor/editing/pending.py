"""
Pending edit registry — the proposed → accepted/rejected lifecycle for edits
staged against the buffer currently being edited.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable, Optional

from .models import EditOperation, EditStatus, PendingEdit
from .patch_applier import ApplyResult, PatchApplier

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


class PendingEditRegistry:
    """Session-scoped collection of staged edits for one file.

    Resolved entries (accepted or rejected) are removed immediately, so
    every entry held by the registry is ``proposed``.
    """

    def __init__(
        self,
        applier: Optional[PatchApplier] = None,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._applier = applier or PatchApplier()
        self._id_factory = id_factory
        self._entries: dict[str, PendingEdit] = {}
        self.file_path: Optional[str] = None
        self.buffer: str = ""

    # ------------------------------------------------------------------
    # Active buffer
    # ------------------------------------------------------------------

    def open_file(self, file_path: str, buffer: str) -> None:
        """Make *file_path* the active buffer; switching files clears edits."""
        if file_path != self.file_path and self._entries:
            logger.info(
                "[Registry] Switching to %s, discarding %d pending edits",
                file_path, len(self._entries),
            )
            self._entries.clear()
        self.file_path = file_path
        self.buffer = buffer

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def pending(self) -> list[PendingEdit]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, edit_id: object) -> bool:
        return edit_id in self._entries

    def get(self, edit_id: str) -> Optional[PendingEdit]:
        return self._entries.get(edit_id)

    def highlights(self) -> list[dict]:
        """Id → range mapping handed to the UI collaborator."""
        return [
            {
                "id": edit.id,
                "start_line": edit.start_line,
                "end_line": edit.end_line,
                "start_column": edit.start_column,
                "end_column": edit.end_column,
                "description": edit.description or "",
            }
            for edit in self._entries.values()
        ]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def stage(self, edits: Iterable[EditOperation]) -> list[PendingEdit]:
        """Enter *edits* as ``proposed``, assigning ids where missing."""
        staged: list[PendingEdit] = []
        for edit in edits:
            edit_id = edit.id if isinstance(edit, PendingEdit) and edit.id else ""
            while not edit_id or edit_id in self._entries:
                edit_id = self._id_factory()
            entry = PendingEdit.from_operation(edit, edit_id)
            self._entries[edit_id] = entry
            staged.append(entry)
        logger.debug("[Registry] Staged %d edits for %s", len(staged), self.file_path)
        return staged

    def accept_one(self, edit_id: str) -> ApplyResult:
        """Apply one pending edit to the active buffer and remove it.

        An edit that fails verification stays ``proposed`` so the UI can
        reject it.  Edits entirely below an accepted one are moved by the
        line delta it introduced.
        """
        edit = self._entries.get(edit_id)
        if edit is None:
            return ApplyResult(
                new_buffer=self.buffer,
                failed=[edit_id],
                failures={edit_id: "No pending edit with this id"},
            )

        before = self.buffer.count("\n")
        result = self._applier.apply_batch(self.buffer, [edit])
        if not result.success:
            return result

        edit.status = EditStatus.ACCEPTED
        del self._entries[edit_id]
        self.buffer = result.new_buffer

        delta = self.buffer.count("\n") - before
        if delta:
            for other_id, other in list(self._entries.items()):
                if other.start_line > edit.end_line:
                    self._entries[other_id] = other.shifted(delta)
        return result

    def reject_one(self, edit_id: str) -> bool:
        """Drop one pending edit without touching the buffer."""
        edit = self._entries.pop(edit_id, None)
        if edit is None:
            return False
        edit.status = EditStatus.REJECTED
        return True

    def accept_all(self) -> ApplyResult:
        """Apply every pending edit to the active buffer, then clear."""
        edits = self.pending
        result = self._applier.apply_batch(self.buffer, edits)
        self.buffer = result.new_buffer
        for edit in edits:
            edit.status = (
                EditStatus.ACCEPTED if edit.id in result.succeeded
                else EditStatus.REJECTED
            )
        if result.failed:
            logger.warning(
                "[Registry] %d of %d edits could not be applied",
                len(result.failed), len(edits),
            )
        self._entries.clear()
        return result

    def reject_all(self) -> int:
        """Clear every pending edit; returns how many were dropped."""
        count = len(self._entries)
        for edit in self._entries.values():
            edit.status = EditStatus.REJECTED
        self._entries.clear()
        return count
