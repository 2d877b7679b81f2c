"""Tests for the agent prompt builders."""

from incremental_editor.kb.parser import extract
from incremental_editor.prompts import (
    EditRequest, build_edit_prompt, build_explain_prompt,
    build_multi_file_prompt, build_optimize_prompt,
)


CODE = """\
import os

def load(path):
    return open(path).read()

def save(path, data):
    open(path, "w").write(data)
"""


def _request(**kwargs):
    return EditRequest(instruction="Add error handling", code=CODE,
                       file_name="io_utils.py", **kwargs)


class TestEditPrompt:
    def test_code_context(self):
        prompt = build_edit_prompt(_request())

        assert "**File**: io_utils.py" in prompt
        assert "**Language**: python" in prompt
        assert "**Imports**: os" in prompt
        assert "**Symbols Found**: 2 (function load, function save)" in prompt
        assert "## USER INSTRUCTION:\n\nAdd error handling" in prompt
        assert f"```python\n{CODE}\n```" in prompt

    def test_structured_format_by_default(self):
        prompt = build_edit_prompt(_request())

        assert '"oldStart"' in prompt
        assert '"fileName": "io_utils.py"' in prompt

    def test_search_replace_format(self):
        prompt = build_edit_prompt(_request(), response_format="search_replace")

        assert "<<<<<<< SEARCH" in prompt
        assert '"oldStart"' not in prompt

    def test_unified_diff_format(self):
        prompt = build_edit_prompt(_request(), response_format="unified_diff")
        assert "Respond with a unified diff of io_utils.py" in prompt

    def test_symbol_list_truncated(self):
        prompt = build_edit_prompt(_request(), max_symbols=1)
        assert "**Symbols Found**: 2 (function load...)" in prompt

    def test_cursor_and_selection(self):
        prompt = build_edit_prompt(_request(cursor_line=4, selected_text="return open(path).read()"))

        assert "**Cursor Position**: Line 4, Column 1" in prompt
        assert "**Selected Code**:\n```python\nreturn open(path).read()\n```" in prompt
        assert "**Surrounding Context**:" in prompt
        assert "// function load:" in prompt

    def test_no_cursor_no_context(self):
        prompt = build_edit_prompt(_request())

        assert "Cursor Position" not in prompt
        assert "Surrounding Context" not in prompt


class TestMultiFilePrompt:
    def test_files_and_dependencies(self):
        files = {
            "src/app.ts": "import { helper } from './utils';\n",
            "src/utils.ts": "export function helper() {}\n",
        }
        contexts = {path: extract(text, "typescript") for path, text in files.items()}

        prompt = build_multi_file_prompt("Rename helper", files, contexts)

        assert "## INSTRUCTION:\nRename helper" in prompt
        assert "### File: src/app.ts" in prompt
        assert "**Symbols:** function helper" in prompt
        assert "## DEPENDENCIES:\n- src/app.ts: src/utils\n" in prompt
        assert '"files": [' in prompt


class TestOtherPrompts:
    def test_explain(self):
        prompt = build_explain_prompt(CODE, "io_utils.py")

        assert prompt.startswith("Explain the following python code")
        assert "**Symbols**: function load, function save" in prompt

    def test_optimize(self):
        prompt = build_optimize_prompt(CODE, "io_utils.py")

        assert "Modern python patterns" in prompt
        assert CODE in prompt
