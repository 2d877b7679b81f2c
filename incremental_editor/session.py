"""
Edit session — wires the source provider, agent gateway, extractor, decoder
and pending-edit registry into the request → stage → accept/reject flow the
UI drives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .collaborators import AgentGateway, EditView, SourceProvider
from .config import Config
from .editing.conflict_validator import ChangeSetApplier, ChangeSetResult
from .editing.diff_parser import DiffParser
from .editing.errors import ConflictError, ParseError
from .editing.models import MultiFileChangeSet, PendingEdit
from .editing.patch_applier import ApplyResult, PatchApplier
from .editing.pending import PendingEditRegistry
from .kb.graph import DependencyGraph
from .kb.parser import FileContext, extract
from .language import detect_language
from .prompts import EditRequest, build_edit_prompt, build_multi_file_prompt

logger = logging.getLogger(__name__)


@dataclass
class EditOutcome:
    """Result of asking the agent for single-file edits."""
    success: bool = False
    staged: list[PendingEdit] = field(default_factory=list)
    error: str = ""
    response: str = ""


@dataclass
class MultiFileOutcome:
    """Result of asking the agent for a coordinated multi-file change."""
    success: bool = False
    change_set: Optional[MultiFileChangeSet] = None
    result: Optional[ChangeSetResult] = None
    errors: list[str] = field(default_factory=list)
    review_suggestions: list[str] = field(default_factory=list)
    response: str = ""


class EditSession:
    """One user's editing session over a single active file."""

    def __init__(
        self,
        source: SourceProvider,
        gateway: AgentGateway,
        config: Optional[Config] = None,
        view: Optional[EditView] = None,
    ) -> None:
        self._source = source
        self._gateway = gateway
        self._config = config or Config()
        self._view = view

        applier = PatchApplier(fuzzy_match_window=self._config.FUZZY_MATCH_WINDOW)
        self._parser = DiffParser(self._config.ENCODING_ORDER)
        self._changeset_applier = ChangeSetApplier(
            applier, allow_partial=self._config.ALLOW_PARTIAL_CHANGESET
        )
        self.registry = PendingEditRegistry(applier)

    # ------------------------------------------------------------------
    # Single file
    # ------------------------------------------------------------------

    def open_file(self, file_path: str) -> FileContext:
        """Load *file_path* as the active buffer and return its symbols."""
        text = self._source.read(file_path)
        self.registry.open_file(file_path, text)
        self._notify()
        return extract(text, detect_language(file_path))

    def request_edits(
        self,
        instruction: str,
        cursor_line: Optional[int] = None,
        selected_text: Optional[str] = None,
    ) -> EditOutcome:
        """Ask the agent for edits to the active buffer and stage them.

        Any previously staged edits are rejected first.  An undecodable
        response stages nothing and is returned for display.
        """
        file_path = self.registry.file_path
        if file_path is None:
            return EditOutcome(error="No file is open")

        request = EditRequest(
            instruction=instruction,
            code=self.registry.buffer,
            file_name=file_path,
            cursor_line=cursor_line,
            selected_text=selected_text,
        )
        prompt = build_edit_prompt(
            request,
            response_format=self._config.RESPONSE_FORMAT,
            context_lines=self._config.CONTEXT_LINES,
            max_symbols=self._config.MAX_PROMPT_SYMBOLS,
        )
        response = self._gateway.generate_response(prompt)

        try:
            edits = self._parser.decode(response, self.registry.buffer)
        except ParseError as exc:
            logger.warning("[Session] Could not decode agent response: %s", exc)
            return EditOutcome(error=str(exc), response=exc.response)

        self.registry.reject_all()
        staged = self.registry.stage(edits)
        self._notify()
        logger.info("[Session] Staged %d edits for %s", len(staged), file_path)
        return EditOutcome(success=True, staged=staged, response=response)

    def accept_one(self, edit_id: str) -> ApplyResult:
        result = self.registry.accept_one(edit_id)
        if result.succeeded:
            self._write_active()
        self._notify()
        return result

    def reject_one(self, edit_id: str) -> bool:
        removed = self.registry.reject_one(edit_id)
        self._notify()
        return removed

    def accept_all(self) -> ApplyResult:
        result = self.registry.accept_all()
        if result.succeeded:
            self._write_active()
        self._notify()
        return result

    def reject_all(self) -> int:
        count = self.registry.reject_all()
        self._notify()
        return count

    # ------------------------------------------------------------------
    # Multi file
    # ------------------------------------------------------------------

    def request_multi_file_edits(
        self,
        instruction: str,
        file_paths: list[str],
    ) -> MultiFileOutcome:
        """Ask the agent for a coordinated change and apply it as a unit."""
        files = {path: self._source.read(path) for path in file_paths}
        contexts = {
            path: extract(text, detect_language(path))
            for path, text in files.items()
        }
        response = self._gateway.generate_response(
            build_multi_file_prompt(instruction, files, contexts)
        )

        try:
            change_set = self._parser.decode_change_set(response, files)
        except ParseError as exc:
            logger.warning("[Session] Could not decode changeset: %s", exc)
            return MultiFileOutcome(errors=[str(exc)], response=exc.response)

        graph = DependencyGraph.from_contexts(contexts)
        for edge in graph.edges_between(change_set.file_paths):
            if edge not in change_set.dependency_edges_touched:
                change_set.dependency_edges_touched.append(edge)

        outcome = MultiFileOutcome(change_set=change_set, response=response)
        changed = set(change_set.file_paths)
        for path in change_set.file_paths:
            for dependent in graph.impact_analysis(path):
                if dependent not in changed and dependent not in outcome.review_suggestions:
                    outcome.review_suggestions.append(dependent)

        try:
            result = self._changeset_applier.apply(change_set, provider=self._source)
        except ConflictError as exc:
            outcome.errors = exc.errors
            return outcome

        outcome.result = result
        outcome.success = result.success
        if result.error:
            outcome.errors.append(result.error)

        active = self.registry.file_path
        if active in result.files_written:
            self.registry.open_file(active, result.file_results[active].new_buffer)
            self.registry.reject_all()
            self._notify()
        return outcome

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _write_active(self) -> None:
        path = self.registry.file_path
        if path is not None and not self._source.write(path, self.registry.buffer):
            logger.error("[Session] Failed to write %s", path)

    def _notify(self) -> None:
        if self._view is not None:
            self._view.show_pending(self.registry.highlights())
