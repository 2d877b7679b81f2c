"""Tests for the pending edit registry lifecycle."""

from itertools import count

import pytest

from incremental_editor.editing.models import EditOperation, EditStatus
from incremental_editor.editing.pending import PendingEditRegistry


BUFFER = "a\nb\nc\nd\n"


@pytest.fixture
def registry():
    ids = count(1)
    reg = PendingEditRegistry(id_factory=lambda: f"e{next(ids)}")
    reg.open_file("notes.txt", BUFFER)
    return reg


class TestStage:
    def test_assigns_unique_ids(self, registry):
        staged = registry.stage([
            EditOperation(1, 1, "a", "A"), EditOperation(3, 3, "c", "C"),
        ])

        assert [e.id for e in staged] == ["e1", "e2"]
        assert all(e.status == EditStatus.PROPOSED for e in staged)
        assert len(registry) == 2
        assert "e1" in registry

    def test_highlights(self, registry):
        registry.stage([EditOperation(2, 3, "b\nc", "x", description="merge")])

        assert registry.highlights() == [{
            "id": "e1", "start_line": 2, "end_line": 3,
            "start_column": None, "end_column": None, "description": "merge",
        }]

    def test_switching_files_clears(self, registry):
        registry.stage([EditOperation(1, 1, "a", "A")])
        registry.open_file("other.txt", "z\n")

        assert len(registry) == 0
        assert registry.buffer == "z\n"

    def test_reopening_same_file_keeps_edits(self, registry):
        registry.stage([EditOperation(1, 1, "a", "A")])
        registry.open_file("notes.txt", BUFFER)
        assert len(registry) == 1


class TestAcceptReject:
    def test_accept_one(self, registry):
        registry.stage([EditOperation(2, 2, "b", "B")])
        result = registry.accept_one("e1")

        assert result.success
        assert registry.buffer == "a\nB\nc\nd\n"
        assert len(registry) == 0

    def test_accept_unknown_id(self, registry):
        result = registry.accept_one("missing")

        assert result.failed == ["missing"]
        assert registry.buffer == BUFFER

    def test_failed_accept_keeps_edit_proposed(self, registry):
        registry.stage([EditOperation(2, 2, "nope", "B")])
        result = registry.accept_one("e1")

        assert result.failed == ["e1"]
        assert registry.get("e1").status == EditStatus.PROPOSED
        assert registry.buffer == BUFFER

    def test_accept_shifts_edits_below(self, registry):
        registry.stage([
            EditOperation(1, 1, "a", "a1\na2"),
            EditOperation(3, 3, "c", "C"),
        ])

        registry.accept_one("e1")
        assert registry.get("e2").start_line == 4

        registry.accept_one("e2")
        assert registry.buffer == "a1\na2\nb\nC\nd\n"

    def test_reject_one(self, registry):
        registry.stage([EditOperation(2, 2, "b", "B")])

        assert registry.reject_one("e1")
        assert not registry.reject_one("e1")
        assert registry.buffer == BUFFER

    def test_accept_all(self, registry):
        registry.stage([
            EditOperation(1, 1, "a", "A"), EditOperation(4, 4, "d", "D"),
        ])
        result = registry.accept_all()

        assert result.success
        assert registry.buffer == "A\nb\nc\nD\n"
        assert registry.pending == []

    def test_accept_all_reports_failures_and_clears(self, registry):
        registry.stage([
            EditOperation(1, 1, "a", "A"), EditOperation(4, 4, "zzz", "D"),
        ])
        result = registry.accept_all()

        assert result.failed == ["e2"]
        assert registry.buffer == "A\nb\nc\nd\n"
        assert len(registry) == 0

    def test_reject_all(self, registry):
        registry.stage([EditOperation(1, 1), EditOperation(2, 2)])

        assert registry.reject_all() == 2
        assert len(registry) == 0
        assert registry.buffer == BUFFER
