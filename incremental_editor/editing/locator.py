"""
Edit locator — maps an EditOperation's declared range onto the current
buffer and verifies its old text, tolerating whitespace-only drift.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import EditNotFoundError
from .models import EditOperation

logger = logging.getLogger(__name__)


@dataclass
class LocatedRange:
    """The concrete buffer span an edit resolved to."""
    start_offset: int
    end_offset: int
    start_line: int
    end_line: int
    text: str
    relocated: bool = False


def normalize_lines(text: str) -> list[str]:
    """Split *text* into lines, each with surrounding whitespace removed.

    Blank lines are kept, so texts with a different number of lines never
    normalize to the same list.
    """
    return [line.strip() for line in text.split("\n")]


def texts_match(actual: str, expected: str) -> bool:
    """Whitespace-insensitive, line-by-line equality.

    *expected* may carry one extra trailing line terminator; it then ends
    the last line rather than starting a blank one.
    """
    got = normalize_lines(actual)
    wanted = normalize_lines(expected)
    if len(wanted) == len(got) + 1 and wanted[-1] == "":
        wanted.pop()
    return got == wanted


def find_lines(lines: list[str], search_lines: list[str], start: int = 0) -> int:
    """Return the 0-based index of the first window of *lines* matching
    *search_lines* after trimming each line, or -1.
    """
    if not search_lines:
        return -1
    wanted = [s.strip() for s in search_lines]
    last = len(lines) - len(wanted)
    for i in range(max(start, 0), last + 1):
        if all(lines[i + j].strip() == wanted[j] for j in range(len(wanted))):
            return i
    return -1


class EditLocator:
    """Resolve edits to buffer offsets.

    Parameters
    ----------
    fuzzy_match_window:
        When verification at the declared position fails, whole-line edits
        may be relocated up to this many lines above or below.  ``0`` keeps
        the locator strict.
    """

    def __init__(self, fuzzy_match_window: int = 0) -> None:
        self._fuzzy_window = max(0, fuzzy_match_window)

    def locate(self, buffer: str, edit: EditOperation) -> LocatedRange:
        """Return the verified range *edit* targets in *buffer*.

        Raises
        ------
        EditNotFoundError
            If the declared range is outside the buffer or the old text does
            not match there (nor, when fuzzy matching is enabled, nearby).
        """
        lines = buffer.split("\n")
        located = self._range_at(buffer, lines, edit, edit.start_line)

        if not edit.old_text or texts_match(located.text, edit.old_text):
            return located

        if edit.is_whole_line and self._fuzzy_window:
            relocated = self._search_nearby(buffer, lines, edit)
            if relocated is not None:
                return relocated

        raise EditNotFoundError(
            f"Text at lines {edit.start_line}-{edit.end_line} does not match "
            f"the expected old text",
            edit=edit,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _range_at(
        self,
        buffer: str,
        lines: list[str],
        edit: EditOperation,
        start_line: int,
    ) -> LocatedRange:
        end_line = start_line + (edit.end_line - edit.start_line)
        if start_line < 1 or end_line > len(lines):
            raise EditNotFoundError(
                f"Lines {start_line}-{end_line} are outside the buffer "
                f"({len(lines)} lines)",
                edit=edit,
            )

        first = lines[start_line - 1]
        last = lines[end_line - 1]
        start_col = _clamp_column(edit.start_column or 1, first)
        end_col = _clamp_column(
            edit.end_column if edit.end_column is not None else line_width(last) + 1,
            last,
        )
        if start_line == end_line and end_col < start_col:
            raise EditNotFoundError(
                f"Column range {start_col}-{end_col} is inverted on line "
                f"{start_line}",
                edit=edit,
            )

        start = _line_offset(lines, start_line) + start_col - 1
        end = _line_offset(lines, end_line) + end_col - 1
        return LocatedRange(
            start_offset=start,
            end_offset=end,
            start_line=start_line,
            end_line=end_line,
            text=buffer[start:end],
            relocated=start_line != edit.start_line,
        )

    def _search_nearby(
        self,
        buffer: str,
        lines: list[str],
        edit: EditOperation,
    ) -> LocatedRange | None:
        span = edit.end_line - edit.start_line + 1
        for offset in range(1, self._fuzzy_window + 1):
            for try_start in (edit.start_line - offset, edit.start_line + offset):
                if try_start < 1 or try_start + span - 1 > len(lines):
                    continue
                candidate = self._range_at(buffer, lines, edit, try_start)
                if texts_match(candidate.text, edit.old_text):
                    logger.debug(
                        "[Locator] Fuzzy match: edit at line %d matched at %d "
                        "(offset %+d)",
                        edit.start_line, try_start, try_start - edit.start_line,
                    )
                    return candidate
        return None


def _line_offset(lines: list[str], line_number: int) -> int:
    """Offset of the first character of 1-indexed *line_number*."""
    return sum(len(line) + 1 for line in lines[: line_number - 1])


def _clamp_column(column: int, line: str) -> int:
    return max(1, min(column, line_width(line) + 1))


def line_width(line: str) -> int:
    """Length of *line* without the ``\\r`` of a CRLF terminator."""
    return len(line) - 1 if line.endswith("\r") else len(line)
