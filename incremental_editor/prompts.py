"""
Prompt builder — assembles the context and response-format instructions
sent to the text-generating agent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .editing.diff_parser import EditEncoding
from .kb.graph import build_dependency_graph
from .kb.parser import FileContext, extract, extract_context
from .language import detect_language


@dataclass
class EditRequest:
    """A single-file edit instruction from the user."""
    instruction: str
    code: str
    file_name: str
    cursor_line: Optional[int] = None
    cursor_column: Optional[int] = None
    selected_text: Optional[str] = None


_STRUCTURED_FORMAT = """\
Respond with a JSON object in this EXACT format:

```json
{{
  "edits": [
    {{
      "fileName": "{file_name}",
      "description": "Brief description of this change",
      "oldStart": <start_line_number>,
      "oldLines": <number_of_lines_to_replace>,
      "newStart": <start_line_number>,
      "newLines": <number_of_new_lines>,
      "oldCode": "<exact_code_to_replace>",
      "newCode": "<replacement_code>"
    }}
  ],
  "summary": "Overall summary of all changes"
}}
```

RULES:
1. **oldCode** must match EXACTLY (including whitespace) the current code
2. **newCode** contains the replacement
3. Line numbers are 1-indexed
4. Multiple edits can be specified in the array; they must not overlap
5. Keep changes minimal and focused; don't include unchanged code
"""

_SEARCH_REPLACE_FORMAT = """\
Respond with one or more SEARCH/REPLACE blocks:

<<<<<<< SEARCH
<exact lines from the current code>
=======
<replacement lines>
>>>>>>> REPLACE

RULES:
1. The SEARCH section must copy the current code verbatim, whole lines only
2. Include just enough lines to make the SEARCH section unique
3. Use one block per separate change; blocks must not overlap
"""

_UNIFIED_DIFF_FORMAT = """\
Respond with a unified diff of {file_name}:

@@ -<oldStart>,<oldCount> +<newStart>,<newCount> @@
 unchanged context line
-removed line
+added line

RULES:
1. Line numbers are 1-indexed and refer to the CURRENT CODE above
2. Prefix removed lines with "-", added lines with "+", context with a space
3. Counts must include context lines
"""

_FORMATS = {
    EditEncoding.STRUCTURED: _STRUCTURED_FORMAT,
    EditEncoding.SEARCH_REPLACE: _SEARCH_REPLACE_FORMAT,
    EditEncoding.UNIFIED_DIFF: _UNIFIED_DIFF_FORMAT,
}


def _symbol_summary(ctx: FileContext, limit: int) -> str:
    names = [f"{s.kind} {s.name}" for s in ctx.symbols]
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += "..."
    return f"{len(names)} ({shown})"


def build_edit_prompt(
    request: EditRequest,
    response_format: str = EditEncoding.STRUCTURED,
    context_lines: int = 15,
    max_symbols: int = 5,
) -> str:
    """Build the single-file edit prompt for *request*."""
    language = detect_language(request.file_name)
    ctx = extract(request.code, language)

    prompt = f"""You are an expert code editor assistant. Your task is to modify code according to user instructions.

## CRITICAL REQUIREMENTS:

1. **Output Format**: Respond ONLY in the format described under OUTPUT FORMAT
2. **Precision**: Make ONLY the necessary changes - don't rewrite entire files
3. **Context Awareness**: Consider imports, dependencies, and code structure
4. **Safety**: Preserve functionality, don't introduce bugs

## CODE CONTEXT:

**File**: {request.file_name}
**Language**: {language}
**Imports**: {', '.join(ctx.imports) or 'None'}
**Dependencies**: {', '.join(ctx.dependencies) or 'None'}
**Symbols Found**: {_symbol_summary(ctx, max_symbols)}
"""

    if request.cursor_line is not None:
        prompt += (f"\n**Cursor Position**: Line {request.cursor_line}, "
                   f"Column {request.cursor_column or 1}")

    if request.selected_text:
        prompt += f"\n\n**Selected Code**:\n```{language}\n{request.selected_text}\n```\n"

    if request.cursor_line is not None:
        surrounding = extract_context(request.code, request.cursor_line,
                                      language, context_lines)
        prompt += f"\n\n**Surrounding Context**:\n{surrounding}\n"

    prompt += f"\n## CURRENT CODE:\n\n```{language}\n{request.code}\n```\n"
    prompt += f"\n## USER INSTRUCTION:\n\n{request.instruction}\n"

    template = _FORMATS.get(response_format, _STRUCTURED_FORMAT)
    prompt += "\n## OUTPUT FORMAT:\n\n" + template.format(file_name=request.file_name)
    return prompt


def build_multi_file_prompt(
    instruction: str,
    files: dict[str, str],
    contexts: dict[str, FileContext],
) -> str:
    """Build the coordinated multi-file edit prompt."""
    prompt = ("You are modifying multiple files in a codebase. "
              "Analyze dependencies and make coordinated changes.\n\n")
    prompt += f"## INSTRUCTION:\n{instruction}\n\n"

    prompt += "## PROJECT FILES:\n\n"
    for path, content in files.items():
        ctx = contexts.get(path)
        prompt += f"### File: {path}\n"
        if ctx:
            symbols = ", ".join(f"{s.kind} {s.name}" for s in ctx.symbols)
            prompt += f"**Symbols:** {symbols}\n"
            prompt += f"**Imports:** {', '.join(ctx.imports)}\n"
        prompt += f"\n```\n{content}\n```\n\n"

    prompt += "## DEPENDENCIES:\n"
    for path, deps in build_dependency_graph(contexts).items():
        if deps:
            prompt += f"- {path}: {', '.join(deps)}\n"

    prompt += """
## RESPONSE FORMAT:

Respond with JSON:
```json
{
  "summary": "Overall description of changes",
  "files": [
    {
      "filePath": "path/to/file",
      "edits": [
        {
          "startLine": 10,
          "endLine": 15,
          "oldCode": "code to replace",
          "newCode": "replacement code",
          "description": "what this edit does"
        }
      ]
    }
  ]
}
```

Make coordinated changes across files, maintaining consistency of imports, types, and function signatures. Edits within one file must not overlap."""
    return prompt


def build_explain_prompt(code: str, file_name: str) -> str:
    language = detect_language(file_name)
    ctx = extract(code, language)
    symbols = ", ".join(f"{s.kind} {s.name}" for s in ctx.symbols)

    return f"""Explain the following {language} code in detail:

**File**: {file_name}
**Symbols**: {symbols}

```{language}
{code}
```

Provide:
1. Overall purpose and functionality
2. Key components and their roles
3. Important algorithms or patterns used
4. Potential issues or improvements
"""


def build_optimize_prompt(code: str, file_name: str) -> str:
    language = detect_language(file_name)

    return f"""Optimize the following {language} code for performance, readability, and best practices:

**File**: {file_name}

```{language}
{code}
```

Provide optimized code with:
1. Performance improvements
2. Better code structure
3. Modern {language} patterns
4. Comments explaining key changes

Use the same JSON format as code editing with precise diffs.
"""
