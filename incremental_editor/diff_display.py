"""
Diff display — previews of pending edits and changesets before anything is
accepted or written.
"""

from __future__ import annotations

import difflib
from typing import Optional

from .editing.models import EditOperation, MultiFileChangeSet
from .editing.patch_applier import PatchApplier


def compute_diff(old_content: str, new_content: str, file_path: str = "file") -> Optional[str]:
    """Return a unified diff of two buffers, or None if they are identical."""
    if old_content == new_content:
        return None

    diff = difflib.unified_diff(
        old_content.splitlines(keepends=True),
        new_content.splitlines(keepends=True),
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
        lineterm="",
    )
    diff_text = "\n".join(line.rstrip("\n") for line in diff)
    return diff_text if diff_text.strip() else None


# Longest prefix first: file headers before single-character markers
_DIFF_STYLES = (
    ("+++", "\033[1m"),
    ("---", "\033[1m"),
    ("@@", "\033[36m"),
    ("+", "\033[32m"),
    ("-", "\033[31m"),
)
_RESET = "\033[0m"


def _style_for(line: str) -> str:
    for prefix, style in _DIFF_STYLES:
        if line.startswith(prefix):
            return style
    return ""


def format_colored_diff(diff_text: str) -> str:
    """Color a unified diff for a terminal.

    Headers are bold, hunk markers cyan, additions green and removals red;
    context lines are left as they are.
    """
    colored = []
    for line in diff_text.splitlines():
        style = _style_for(line)
        colored.append(f"{style}{line}{_RESET}" if style else line)
    return "\n".join(colored)


def preview_buffer(
    original: str,
    edits: list[EditOperation],
    applier: Optional[PatchApplier] = None,
) -> str:
    """Text the batch would produce; *original* is not modified."""
    return (applier or PatchApplier()).apply_batch(original, edits).new_buffer


def create_preview(change_set: MultiFileChangeSet) -> str:
    """Render a markdown preview of a multi-file changeset."""
    parts = ["# Multi-File Changes\n", f"**Summary:** {change_set.summary}\n"]

    if change_set.dependency_edges_touched:
        parts.append(
            f"**Dependencies:** {', '.join(change_set.dependency_edges_touched)}\n"
        )

    parts.append(f"## Files to be modified ({len(change_set.files)}):\n")

    for index, batch in enumerate(change_set.files, start=1):
        parts.append(f"### {index}. {batch.file_path}\n")
        parts.append(f"**Changes:** {len(batch.edits)} edit(s)\n")
        for edit_index, edit in enumerate(batch.edits, start=1):
            old = "\n".join(f"- {line}" for line in edit.old_text.split("\n"))
            new = "\n".join(f"+ {line}" for line in edit.new_text.split("\n"))
            parts.append(
                f"#### Edit {edit_index}: {edit.description or 'Code modification'}\n"
                f"Lines {edit.start_line}-{edit.end_line}\n\n"
                f"```diff\n{old}\n{new}\n```\n"
            )

    return "\n".join(parts)
