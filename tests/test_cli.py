"""Tests for the incremental-editor command line."""

import json

import pytest

from incremental_editor.cli import main


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    for key in ("EDIT_ENCODING_ORDER", "FUZZY_MATCH_WINDOW", "ALLOW_PARTIAL_CHANGESET",
                "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class TestSymbols:
    def test_prints_context_json(self, tmp_path, capsys):
        (tmp_path / "mod.py").write_text("import os\n\ndef run():\n    pass\n")

        code = main(["--root", str(tmp_path), "symbols", "mod.py"])

        data = json.loads(capsys.readouterr().out)
        assert code == 0
        assert data["language"] == "python"
        assert data["imports"] == ["os"]
        assert data["symbols"][0]["name"] == "run"

    def test_missing_file(self, tmp_path, capsys):
        assert main(["--root", str(tmp_path), "symbols", "nope.py"]) == 1
        assert "Error:" in capsys.readouterr().err


class TestApply:
    def test_search_replace_written(self, tmp_path, capsys):
        target = tmp_path / "notes.txt"
        target.write_text("a\nb\nc\n")
        response = tmp_path / "response.txt"
        response.write_text("<<<<<<< SEARCH\nb\n=======\nB\n>>>>>>> REPLACE\n")

        code = main(["--root", str(tmp_path), "apply", "notes.txt",
                     str(response), "--write"])

        out = capsys.readouterr().out
        assert code == 0
        assert "1 applied, 0 failed" in out
        assert "+B" in out
        assert target.read_text() == "a\nB\nc\n"

    def test_dry_run_leaves_file(self, tmp_path):
        target = tmp_path / "notes.txt"
        target.write_text("a\nb\nc\n")
        response = tmp_path / "response.txt"
        response.write_text('{"edits": [{"startLine": 1, "endLine": 1, '
                            '"oldText": "a", "newText": "A"}]}')

        assert main(["--root", str(tmp_path), "apply", "notes.txt", str(response)]) == 0
        assert target.read_text() == "a\nb\nc\n"

    def test_failed_edit_exit_code(self, tmp_path, capsys):
        (tmp_path / "notes.txt").write_text("a\nb\n")
        response = tmp_path / "response.txt"
        response.write_text('{"edits": [{"startLine": 1, "endLine": 1, '
                            '"oldText": "zzz", "newText": "A"}]}')

        assert main(["--root", str(tmp_path), "apply", "notes.txt", str(response)]) == 1
        assert "edit 0:" in capsys.readouterr().out

    def test_undecodable_response(self, tmp_path, capsys):
        (tmp_path / "notes.txt").write_text("a\n")
        response = tmp_path / "response.txt"
        response.write_text("nothing useful")

        assert main(["--root", str(tmp_path), "apply", "notes.txt", str(response)]) == 2
        assert "Could not understand" in capsys.readouterr().err


class TestValidate:
    def _write_changeset(self, tmp_path, edits):
        path = tmp_path / "changeset.json"
        path.write_text(json.dumps({
            "summary": "Update",
            "files": [{"filePath": "a.txt", "edits": edits}],
        }))
        return str(path)

    def test_valid_changeset_written(self, tmp_path, capsys):
        (tmp_path / "a.txt").write_text("one\ntwo\n")
        changeset = self._write_changeset(tmp_path, [
            {"startLine": 2, "endLine": 2, "oldCode": "two", "newCode": "TWO"},
        ])

        code = main(["--root", str(tmp_path), "validate", changeset, "--write"])

        out = capsys.readouterr().out
        assert code == 0
        assert "# Multi-File Changes" in out
        assert "Wrote 1 file(s)" in out
        assert (tmp_path / "a.txt").read_text() == "one\nTWO\n"

    def test_conflicts_rejected(self, tmp_path, capsys):
        (tmp_path / "a.txt").write_text("1\n2\n3\n4\n5\n")
        changeset = self._write_changeset(tmp_path, [
            {"startLine": 1, "endLine": 3, "oldCode": "", "newCode": "x"},
            {"startLine": 2, "endLine": 5, "oldCode": "", "newCode": "y"},
        ])

        code = main(["--root", str(tmp_path), "validate", changeset, "--write"])

        assert code == 1
        assert "Conflicting edits in a.txt" in capsys.readouterr().err
        assert (tmp_path / "a.txt").read_text() == "1\n2\n3\n4\n5\n"
