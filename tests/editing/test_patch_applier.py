"""Tests for the PatchApplier."""

from itertools import permutations

import pytest

from incremental_editor.editing.errors import EditNotFoundError
from incremental_editor.editing.models import EditOperation, PendingEdit
from incremental_editor.editing.patch_applier import PatchApplier, ApplyResult


SAMPLE_FILE = """\
# header
import os

def foo():
    return 1

def bar():
    return 2
"""

FIVE_LINES = "line1\nline2\nline3\nline4\nline5\n"


class TestApplyBatch:
    def test_empty_batch_returns_buffer_unchanged(self):
        result = PatchApplier().apply_batch(SAMPLE_FILE, [])

        assert isinstance(result, ApplyResult)
        assert result.new_buffer == SAMPLE_FILE
        assert result.succeeded == []
        assert result.failed == []
        assert result.success

    def test_single_line_replacement(self):
        edit = EditOperation(2, 2, "b", "B")
        result = PatchApplier().apply_batch("a\nb\nc\n", [edit])

        assert result.new_buffer == "a\nB\nc\n"
        assert result.succeeded == ["0"]

    def test_two_edits_apply_regardless_of_order(self):
        top = EditOperation(1, 1, "a", "X")
        bottom = EditOperation(3, 3, "c", "Z")
        applier = PatchApplier()

        forward = applier.apply_batch("a\nb\nc\n", [top, bottom])
        backward = applier.apply_batch("a\nb\nc\n", [bottom, top])

        assert forward.new_buffer == "X\nb\nZ\n"
        assert backward.new_buffer == "X\nb\nZ\n"

    def test_growing_edit_does_not_shift_edits_below(self):
        edits = [
            EditOperation(2, 2, "line2", "L2a\nL2b"),
            EditOperation(4, 4, "line4", "L4"),
        ]
        result = PatchApplier().apply_batch(FIVE_LINES, edits)

        assert result.new_buffer == "line1\nL2a\nL2b\nline3\nL4\nline5\n"
        assert result.applied_count == 2

    def test_every_permutation_gives_same_buffer(self):
        edits = [
            EditOperation(1, 1, "line1", "first\nline"),
            EditOperation(3, 3, "line3", ""),
            EditOperation(5, 5, "line5", "end"),
        ]
        applier = PatchApplier()
        buffers = {
            applier.apply_batch(FIVE_LINES, list(order)).new_buffer
            for order in permutations(edits)
        }

        assert buffers == {"first\nline\nline2\nline4\nend\n"}

    def test_failed_edit_does_not_block_others(self):
        edits = [
            EditOperation(1, 1, "a", "X"),
            EditOperation(2, 2, "zzz", "Y"),
        ]
        result = PatchApplier().apply_batch("a\nb\nc\n", edits)

        assert result.new_buffer == "X\nb\nc\n"
        assert result.succeeded == ["0"]
        assert result.failed == ["1"]
        assert "does not match" in result.failures["1"]
        assert not result.success

    def test_out_of_range_edit_fails(self):
        result = PatchApplier().apply_batch("a\nb\n", [EditOperation(10, 12, "", "x")])

        assert result.failed == ["0"]
        assert result.new_buffer == "a\nb\n"

    def test_whitespace_drift_tolerated(self):
        edit = EditOperation(2, 2, "b", "B")
        result = PatchApplier().apply_batch("a\n   b  \nc\n", [edit])
        assert result.new_buffer == "a\nB\nc\n"

    def test_empty_old_text_skips_verification(self):
        result = PatchApplier().apply_batch("a\nb\n", [EditOperation(1, 1, "", "z")])
        assert result.new_buffer == "z\nb\n"

    def test_pending_ids_reported(self):
        edits = [
            PendingEdit(1, 1, "a", "X", id="one"),
            PendingEdit(2, 2, "nope", "Y", id="two"),
        ]
        result = PatchApplier().apply_batch("a\nb\n", edits)

        assert result.succeeded == ["one"]
        assert result.failed == ["two"]


class TestDeletion:
    def test_whole_line_delete_removes_line_break(self):
        result = PatchApplier().apply_batch("a\nb\nc\n", [EditOperation(2, 2, "b", "")])
        assert result.new_buffer == "a\nc\n"

    def test_delete_multiple_lines(self):
        edit = EditOperation(2, 4, "line2\nline3\nline4", "")
        result = PatchApplier().apply_batch(FIVE_LINES, [edit])
        assert result.new_buffer == "line1\nline5\n"

    def test_delete_last_line_without_trailing_newline(self):
        result = PatchApplier().apply_batch("a\nb", [EditOperation(2, 2, "b", "")])
        assert result.new_buffer == "a"


class TestColumns:
    def test_column_range_replacement(self):
        edit = EditOperation(1, 1, "1", "2", start_column=11, end_column=12)
        result = PatchApplier().apply_batch("const x = 1;\n", [edit])
        assert result.new_buffer == "const x = 2;\n"

    def test_missing_end_column_spans_to_line_end(self):
        edit = EditOperation(1, 1, "x = 1;", "y = 2;", start_column=7)
        result = PatchApplier().apply_batch("const x = 1;\n", [edit])
        assert result.new_buffer == "const y = 2;\n"

    def test_zero_width_insertion(self):
        edit = EditOperation(2, 2, "", "x\n", start_column=1, end_column=1)
        result = PatchApplier().apply_batch("a\nb\n", [edit])
        assert result.new_buffer == "a\nx\nb\n"

    def test_same_line_edits_apply_right_to_left(self):
        edits = [
            EditOperation(1, 1, "a", "AAA", start_column=1, end_column=2),
            EditOperation(1, 1, "c", "CCC", start_column=5, end_column=6),
        ]
        result = PatchApplier().apply_batch("a b c\n", edits)
        assert result.new_buffer == "AAA b CCC\n"

    def test_multi_line_column_span(self):
        edit = EditOperation(1, 2, "1,\n  2", "1, 2", start_column=9, end_column=4)
        result = PatchApplier().apply_batch("call(0, 1,\n  2)\n", [edit])
        assert result.new_buffer == "call(0, 1, 2)\n"

    def test_insertion_and_whole_line_edit_on_same_line(self):
        edits = [
            EditOperation(2, 2, "", "x\n", start_column=1, end_column=1),
            EditOperation(2, 2, "b", "B"),
        ]
        for order in (edits, edits[::-1]):
            result = PatchApplier().apply_batch("a\nb\n", order)

            assert result.new_buffer == "a\nx\nB\n"
            assert result.succeeded == ["0", "1"]


class TestFuzzyWindow:
    def test_strict_by_default(self):
        edit = EditOperation(3, 3, "def foo():", "def baz():")
        result = PatchApplier().apply_batch(SAMPLE_FILE, [edit])
        assert result.failed == ["0"]

    def test_relocates_within_window(self):
        edit = EditOperation(3, 3, "def foo():", "def baz():")
        result = PatchApplier(fuzzy_match_window=3).apply_batch(SAMPLE_FILE, [edit])

        assert result.success
        assert "def baz():" in result.new_buffer
        assert "def foo():" not in result.new_buffer

    def test_outside_window_fails(self):
        edit = EditOperation(1, 1, "def bar():", "def baz():")
        result = PatchApplier(fuzzy_match_window=2).apply_batch(SAMPLE_FILE, [edit])
        assert not result.success


class TestAppendPastEnd:
    def test_append_after_last_line_without_trailing_newline(self):
        edit = EditOperation(4, 4, "", "d\n", start_column=1, end_column=1)
        result = PatchApplier().apply_batch("a\nb\nc", [edit])

        assert result.new_buffer == "a\nb\nc\nd"
        assert result.success

    def test_append_after_last_line_with_trailing_newline(self):
        edit = EditOperation(4, 4, "", "d\n", start_column=1, end_column=1)
        result = PatchApplier().apply_batch("a\nb\nc\n", [edit])
        assert result.new_buffer == "a\nb\nc\nd\n"

    def test_whole_line_edit_past_end_still_fails(self):
        result = PatchApplier().apply_batch("a\nb\nc", [EditOperation(4, 4, "", "d")])

        assert result.failed == ["0"]
        assert result.new_buffer == "a\nb\nc"


class TestLineEndings:
    def test_crlf_single_line_replacement(self):
        result = PatchApplier().apply_batch("a\r\nb\r\nc\r\n", [EditOperation(2, 2, "b", "B")])
        assert result.new_buffer == "a\r\nB\r\nc\r\n"

    def test_crlf_multi_line_replacement_uses_buffer_line_ending(self):
        edit = EditOperation(2, 2, "b", "B1\nB2")
        result = PatchApplier().apply_batch("a\r\nb\r\nc\r\n", [edit])
        assert result.new_buffer == "a\r\nB1\r\nB2\r\nc\r\n"

    def test_crlf_whole_line_delete(self):
        result = PatchApplier().apply_batch("a\r\nb\r\nc\r\n", [EditOperation(2, 2, "b", "")])
        assert result.new_buffer == "a\r\nc\r\n"

    def test_crlf_delete_last_line_without_trailing_newline(self):
        result = PatchApplier().apply_batch("a\r\nb", [EditOperation(2, 2, "b", "")])
        assert result.new_buffer == "a"

    def test_crlf_append_past_end(self):
        edit = EditOperation(3, 3, "", "c\n", start_column=1, end_column=1)
        result = PatchApplier().apply_batch("a\r\nb", [edit])
        assert result.new_buffer == "a\r\nb\r\nc"



class TestApplyOne:
    def test_returns_new_buffer(self):
        assert PatchApplier().apply_one("a\nb\n", EditOperation(1, 1, "a", "A")) == "A\nb\n"

    def test_raises_when_not_found(self):
        with pytest.raises(EditNotFoundError):
            PatchApplier().apply_one("a\nb\n", EditOperation(1, 1, "q", "A"))
