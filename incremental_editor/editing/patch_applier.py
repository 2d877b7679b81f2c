"""
Patch applier — applies a batch of canonical edits to an in-memory buffer,
bottom-up so that earlier line numbers stay valid.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .errors import EditNotFoundError
from .locator import EditLocator, LocatedRange
from .models import EditOperation, PendingEdit

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Outcome of applying a batch of edits to one buffer."""
    new_buffer: str = ""
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def applied_count(self) -> int:
        return len(self.succeeded)


def edit_key(edit: EditOperation, index: int) -> str:
    """Identity used in results: the pending id, else the input position."""
    if isinstance(edit, PendingEdit) and edit.id:
        return edit.id
    return str(index)


class PatchApplier:
    """Apply canonical EditOperations to a text buffer.

    A single bad edit never aborts the batch; it is recorded as failed and
    the remaining edits proceed.
    """

    def __init__(
        self,
        fuzzy_match_window: int = 0,
        locator: Optional[EditLocator] = None,
    ) -> None:
        self._locator = locator or EditLocator(fuzzy_match_window=fuzzy_match_window)

    def apply_batch(self, buffer: str, edits: list[EditOperation]) -> ApplyResult:
        """Apply *edits* to *buffer* and report per-edit outcomes.

        Edits are applied in descending ``start_line`` order regardless of
        input order, so an edit that changes the line count never shifts the
        lines targeted by edits above it.

        Parameters
        ----------
        buffer:
            Current text of the file.
        edits:
            Canonical edits whose line numbers refer to *buffer*.

        Returns
        -------
        ApplyResult
            The (possibly partially) transformed buffer and the ids of the
            edits that succeeded and failed.
        """
        result = ApplyResult(new_buffer=buffer)
        if not edits:
            return result

        ordered = sorted(
            enumerate(edits),
            key=lambda pair: _sort_key(pair[1]),
            reverse=True,
        )

        text = buffer
        outcomes: dict[int, Optional[str]] = {}
        for index, edit in ordered:
            try:
                text = self._apply_one(text, edit)
                outcomes[index] = None
            except EditNotFoundError as exc:
                outcomes[index] = str(exc)
                logger.warning(
                    "[Applier] Edit at lines %d-%d failed: %s",
                    edit.start_line, edit.end_line, exc,
                )

        # Report in input order
        for index, edit in enumerate(edits):
            key = edit_key(edit, index)
            reason = outcomes[index]
            if reason is None:
                result.succeeded.append(key)
            else:
                result.failed.append(key)
                result.failures[key] = reason

        result.new_buffer = text
        return result

    def apply_one(self, buffer: str, edit: EditOperation) -> str:
        """Apply a single edit, raising EditNotFoundError when it cannot land."""
        return self._apply_one(buffer, edit)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _apply_one(self, buffer: str, edit: EditOperation) -> str:
        eol = _line_ending(buffer)
        new_text = _with_line_ending(edit.new_text, eol)

        if _appends_past_end(buffer, edit):
            # Insertion after the last line of a buffer without a final newline
            if new_text.endswith(eol):
                new_text = new_text[:-len(eol)]
            return buffer + eol + new_text if new_text else buffer

        located = self._locator.locate(buffer, edit)
        start, end = located.start_offset, located.end_offset
        if edit.is_whole_line and new_text == "":
            start, end = _extend_over_line_break(buffer, located, eol)
        return buffer[:start] + new_text + buffer[end:]


# Whole-line edits sort after any column on their start line, so they are
# applied before a zero-width insertion at that line's start.
_WHOLE_LINE = float("inf")


def _sort_key(edit: EditOperation) -> tuple:
    if edit.is_whole_line:
        return edit.start_line, _WHOLE_LINE
    return edit.start_line, edit.start_column or 1


def _line_ending(buffer: str) -> str:
    """The buffer's line terminator, judged by its first line."""
    index = buffer.find("\n")
    return "\r\n" if index > 0 and buffer[index - 1] == "\r" else "\n"


def _with_line_ending(text: str, eol: str) -> str:
    if eol == "\n":
        return text
    return text.replace("\r\n", "\n").replace("\n", eol)


def _appends_past_end(buffer: str, edit: EditOperation) -> bool:
    """True for a zero-width insertion at the line after the last one."""
    past_end = buffer.count("\n") + 2
    return (
        not edit.old_text
        and edit.start_line == edit.end_line == past_end
        and edit.start_column == 1
        and edit.end_column == 1
    )


def _extend_over_line_break(
    buffer: str,
    located: LocatedRange,
    eol: str,
) -> tuple[int, int]:
    """Widen a whole-line range so deleting it removes the lines entirely."""
    start, end = located.start_offset, located.end_offset
    if end < len(buffer):
        return start, end + (len(eol) if buffer.startswith(eol, end) else 1)
    if start > 0:
        return start - (len(eol) if buffer.endswith(eol, 0, start) else 1), end
    return start, end
