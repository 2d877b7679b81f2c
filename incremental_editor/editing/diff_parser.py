"""
Diff parser — decodes agent responses written in any of the three supported
edit encodings into canonical EditOperations.

Encodings
---------
``structured``
    A JSON object (optionally fenced) with an ``edits`` array.
``unified_diff``
    ``@@ -a,b +c,d @@`` hunks with ``-``/``+``/context body lines.
``search_replace``
    ``<<<<<<< SEARCH`` / ``=======`` / ``>>>>>>> REPLACE`` blocks located in
    the original content by a whitespace-insensitive line scan.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Iterable, Optional

from .errors import ParseError
from .locator import find_lines
from .models import EditOperation, FileEditBatch, MultiFileChangeSet

logger = logging.getLogger(__name__)


class EditEncoding:
    STRUCTURED = "structured"
    SEARCH_REPLACE = "search_replace"
    UNIFIED_DIFF = "unified_diff"

    ALL = (STRUCTURED, SEARCH_REPLACE, UNIFIED_DIFF)


# Patterns
_FENCE_PATTERN = re.compile(r"```[\w-]*[ \t]*\r?\n(.*?)```", re.DOTALL)
_HUNK_HEADER = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@.*$", re.MULTILINE
)
_SEARCH_REPLACE_BLOCK = re.compile(
    r"^<{7}[ \t]*SEARCH[ \t]*\r?\n(.*?)^={7}[ \t]*\r?\n(.*?)^>{7}[ \t]*REPLACE",
    re.MULTILINE | re.DOTALL,
)
_SEARCH_MARKER = "<<<<<<< SEARCH"


class DiffParser:
    """Decode agent output into canonical EditOperations."""

    def __init__(self, encoding_order: Optional[Iterable[str]] = None) -> None:
        order = tuple(encoding_order or EditEncoding.ALL)
        unknown = [enc for enc in order if enc not in EditEncoding.ALL]
        if unknown:
            raise ValueError(f"Unknown edit encodings: {', '.join(unknown)}")
        self._order = order

    def decode(
        self,
        response: str,
        original_content: str,
        encoding: Optional[str] = None,
    ) -> list[EditOperation]:
        """Decode *response* against *original_content*.

        Parameters
        ----------
        response:
            Raw agent response text.  Treated as untrusted.
        original_content:
            The buffer the agent was shown; line numbers and search text
            refer to it.
        encoding:
            Force a single encoding.  When omitted the structured form is
            tried first and the textual encodings are used as fallbacks, in
            the configured order.

        Raises
        ------
        ParseError
            If no encoding yields a well-formed result.
        """
        if encoding is not None:
            if encoding == EditEncoding.STRUCTURED:
                return self.decode_structured(response)
            if encoding == EditEncoding.SEARCH_REPLACE:
                return self.decode_search_replace(response, original_content)
            if encoding == EditEncoding.UNIFIED_DIFF:
                return self.decode_unified_diff(response)
            raise ValueError(f"Unknown edit encoding: {encoding}")

        for enc in self._order:
            if enc == EditEncoding.STRUCTURED:
                try:
                    return self.decode_structured(response)
                except ParseError as exc:
                    logger.debug("[Decoder] Structured form rejected: %s", exc)
            elif enc == EditEncoding.SEARCH_REPLACE:
                if _SEARCH_MARKER in response:
                    return self.decode_search_replace(response, original_content)
            elif enc == EditEncoding.UNIFIED_DIFF:
                if _HUNK_HEADER.search(response):
                    return self.decode_unified_diff(response)

        logger.warning("[Decoder] Response matched no supported edit encoding")
        raise ParseError(
            "Could not understand the AI response", response=response
        )

    # ------------------------------------------------------------------
    # Structured form
    # ------------------------------------------------------------------

    def decode_structured(self, response: str) -> list[EditOperation]:
        """Decode a JSON ``{"edits": [...]}`` block.

        Items may use the canonical shape (``startLine``, ``endLine``,
        ``oldText``, ``newText``) or the agent shape (``oldStart``,
        ``oldLines``, ``oldCode``, ``newCode``).  Malformed items are skipped.
        """
        data = _load_json_block(response)
        edits = data.get("edits") if isinstance(data, dict) else None
        if not isinstance(edits, list):
            raise ParseError(
                "Invalid response format: missing edits array", response=response
            )
        return _normalize_items(edits)

    def decode_change_set(
        self,
        response: str,
        originals: dict[str, str],
    ) -> MultiFileChangeSet:
        """Decode a multi-file ``{"summary", "files": [...]}`` response.

        Parameters
        ----------
        response:
            Raw agent response.
        originals:
            Mapping of file path → content the agent was shown; becomes each
            batch's ``original_content``.
        """
        data = _load_json_block(response)
        files = data.get("files") if isinstance(data, dict) else None
        if not isinstance(files, list):
            raise ParseError(
                "Invalid response format: missing files array", response=response
            )

        change_set = MultiFileChangeSet(summary=str(data.get("summary") or ""))
        deps = data.get("dependencies")
        if isinstance(deps, list):
            change_set.dependency_edges_touched = [str(d) for d in deps]

        for entry in files:
            if not isinstance(entry, dict):
                logger.warning("[Decoder] Skipping non-object file entry")
                continue
            path = entry.get("filePath") or entry.get("fileName") or entry.get("path")
            items = entry.get("edits")
            if not path or not isinstance(items, list):
                logger.warning("[Decoder] Skipping file entry without path or edits")
                continue
            change_set.files.append(FileEditBatch(
                file_path=str(path),
                original_content=originals.get(str(path), ""),
                edits=_normalize_items(items),
            ))
        return change_set

    # ------------------------------------------------------------------
    # Unified-diff form
    # ------------------------------------------------------------------

    def decode_unified_diff(self, response: str) -> list[EditOperation]:
        """Decode ``@@`` hunks, one EditOperation per hunk.

        Context lines are carried into both the old and the new text so the
        hunk's whole old range ``[oldStart, oldStart + oldCount - 1]`` can be
        replaced verbatim.
        """
        edits: list[EditOperation] = []
        headers = list(_HUNK_HEADER.finditer(response))

        for i, header in enumerate(headers):
            old_start = int(header.group(1))
            old_count = int(header.group(2)) if header.group(2) is not None else 1
            new_count = int(header.group(4)) if header.group(4) is not None else 1

            body_end = headers[i + 1].start() if i + 1 < len(headers) else len(response)
            # Lines past the declared counts are never read, so the split's
            # trailing "" and any prose after the hunk are ignored
            body = response[header.end():body_end].split("\n")[1:]

            old_lines: list[str] = []
            new_lines: list[str] = []
            old_seen = new_seen = 0
            changed = False

            for line in body:
                if old_seen >= old_count and new_seen >= new_count:
                    break
                line = line.rstrip("\r")
                if line.startswith("```"):
                    break
                if line.startswith("\\"):
                    continue  # "\ No newline at end of file"
                if line.startswith("-"):
                    old_lines.append(line[1:])
                    old_seen += 1
                    changed = True
                elif line.startswith("+"):
                    new_lines.append(line[1:])
                    new_seen += 1
                    changed = True
                else:
                    context = line[1:] if line.startswith(" ") else line
                    old_lines.append(context)
                    new_lines.append(context)
                    old_seen += 1
                    new_seen += 1

            if not changed:
                logger.debug("[Decoder] Hunk at line %d has no changes", old_start)
                continue

            if old_count == 0:
                # Pure insertion after line old_start
                at = old_start + 1
                edits.append(EditOperation(
                    start_line=at,
                    end_line=at,
                    new_text=_as_inserted_lines(new_lines),
                    start_column=1,
                    end_column=1,
                ))
                continue

            edits.append(EditOperation(
                start_line=old_start,
                end_line=old_start + old_count - 1,
                old_text="\n".join(old_lines),
                new_text="\n".join(new_lines),
            ))

        return edits

    # ------------------------------------------------------------------
    # Search/replace form
    # ------------------------------------------------------------------

    def decode_search_replace(
        self,
        response: str,
        original_content: str,
    ) -> list[EditOperation]:
        """Decode SEARCH/REPLACE blocks, locating each in *original_content*.

        Each block's search lines are matched against a sliding window of the
        original lines after trimming; the lowest matching line wins.  Blocks
        that match nowhere are dropped.
        """
        edits: list[EditOperation] = []
        lines = original_content.split("\n")

        for match in _SEARCH_REPLACE_BLOCK.finditer(response):
            search_lines = _clean_lines(match.group(1))
            replace_lines = _clean_lines(match.group(2))

            if not search_lines:
                logger.warning("[Decoder] Dropping SEARCH block with empty search text")
                continue

            idx = find_lines(lines, search_lines)
            if idx < 0:
                logger.warning(
                    "[Decoder] SEARCH text not found in original content, "
                    "dropping block: %r",
                    search_lines[0][:80],
                )
                continue

            edits.append(EditOperation(
                start_line=idx + 1,
                end_line=idx + len(search_lines),
                old_text="\n".join(search_lines),
                new_text="\n".join(replace_lines),
            ))

        return edits


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_json_block(response: str) -> Any:
    """Parse the JSON payload of *response*, fenced or bare."""
    text = response.strip()
    fenced = _FENCE_PATTERN.search(text)
    candidates = []
    if fenced:
        candidates.append(fenced.group(1).strip())
    candidates.append(text)
    first, last = text.find("{"), text.rfind("}")
    if 0 <= first < last:
        candidates.append(text[first:last + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ParseError("Response does not contain a well-formed JSON block",
                     response=response)


def _normalize_items(items: list) -> list[EditOperation]:
    edits: list[EditOperation] = []
    for position, item in enumerate(items):
        try:
            op = _normalize_item(item)
        except (TypeError, ValueError) as exc:
            logger.warning("[Decoder] Skipping malformed edit #%d: %s", position, exc)
            continue
        if op is None:
            logger.warning("[Decoder] Skipping edit #%d with no line range", position)
            continue
        edits.append(op)
    return edits


def _normalize_item(item: Any) -> Optional[EditOperation]:
    """Convert one structured item (either shape) to an EditOperation."""
    if not isinstance(item, dict):
        raise TypeError(f"expected an object, got {type(item).__name__}")

    description = item.get("description")
    if description is not None:
        description = str(description)

    if "startLine" in item:
        start = int(item["startLine"])
        end = int(item.get("endLine", start))
        return EditOperation(
            start_line=start,
            end_line=end,
            old_text=_text(item.get("oldText", item.get("oldCode"))),
            new_text=_text(item.get("newText", item.get("newCode"))),
            start_column=_optional_int(item.get("startColumn")),
            end_column=_optional_int(item.get("endColumn")),
            description=description,
        )

    if "oldStart" in item:
        start = int(item["oldStart"])
        old_code = _text(item.get("oldCode"))
        new_code = _text(item.get("newCode"))
        if "oldLines" in item:
            count = int(item["oldLines"])
        else:
            count = len(old_code.split("\n")) if old_code else 0

        if count <= 0:
            return EditOperation(
                start_line=max(start, 1),
                end_line=max(start, 1),
                new_text=_as_inserted_lines(new_code.split("\n")) if new_code else "",
                start_column=1,
                end_column=1,
                description=description,
            )
        return EditOperation(
            start_line=start,
            end_line=start + count - 1,
            old_text=old_code,
            new_text=new_code,
            description=description,
        )

    return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


def _as_inserted_lines(lines: list[str]) -> str:
    """Text for a zero-width insertion at a line start."""
    return "".join(line + "\n" for line in lines)


def _clean_lines(text: str) -> list[str]:
    """Split into lines, dropping leading/trailing blank lines only."""
    lines = [line.rstrip("\r") for line in text.split("\n")]
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


_default_parser = DiffParser()


def decode(
    response: str,
    original_content: str,
    encoding: Optional[str] = None,
) -> list[EditOperation]:
    """Module-level shortcut for :meth:`DiffParser.decode`."""
    return _default_parser.decode(response, original_content, encoding=encoding)


def decode_change_set(response: str, originals: dict[str, str]) -> MultiFileChangeSet:
    """Module-level shortcut for :meth:`DiffParser.decode_change_set`."""
    return _default_parser.decode_change_set(response, originals)
