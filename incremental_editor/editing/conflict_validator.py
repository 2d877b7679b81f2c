"""
Conflict validator — gates a multi-file changeset as a unit.

No file in a changeset is touched unless every file's edits are free of
overlapping ranges.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..collaborators import SourceProvider
from .errors import ConflictError
from .models import EditOperation, MultiFileChangeSet
from .patch_applier import ApplyResult, PatchApplier

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    valid: bool = True
    errors: list[str] = field(default_factory=list)


@dataclass
class ChangeSetResult:
    """Outcome of applying a validated changeset."""
    success: bool = False
    file_results: dict[str, ApplyResult] = field(default_factory=dict)
    files_written: list[str] = field(default_factory=list)
    error: str = ""


def ranges_overlap(first: tuple[int, int], second: tuple[int, int]) -> bool:
    """True if either inclusive range's start falls within the other."""
    return (
        second[0] <= first[0] <= second[1]
        or first[0] <= second[0] <= first[1]
    )


def find_conflicts(file_path: str, edits: list[EditOperation]) -> list[str]:
    """Describe every overlapping pair of edits in one file."""
    errors: list[str] = []
    for i in range(len(edits)):
        for j in range(i + 1, len(edits)):
            a, b = edits[i].line_range, edits[j].line_range
            if ranges_overlap(a, b):
                errors.append(
                    f"Conflicting edits in {file_path}: lines {a[0]}-{a[1]} "
                    f"and {b[0]}-{b[1]}"
                )
    return errors


def validate(change_set: MultiFileChangeSet) -> ValidationResult:
    """Check every file's edits for pairwise range overlap."""
    errors: list[str] = []
    for batch in change_set.files:
        errors.extend(find_conflicts(batch.file_path, batch.edits))

    for message in errors:
        logger.warning("[Validator] %s", message)
    return ValidationResult(valid=not errors, errors=errors)


class ChangeSetApplier:
    """Validate, apply and write a multi-file changeset.

    Parameters
    ----------
    applier:
        The single-buffer applier used for each file.
    allow_partial:
        Write files even when some of their edits failed verification.
    """

    def __init__(
        self,
        applier: Optional[PatchApplier] = None,
        allow_partial: bool = False,
    ) -> None:
        self._applier = applier or PatchApplier()
        self._allow_partial = allow_partial

    def apply(
        self,
        change_set: MultiFileChangeSet,
        provider: Optional[SourceProvider] = None,
    ) -> ChangeSetResult:
        """Apply *change_set*, writing through *provider* when given.

        Raises
        ------
        ConflictError
            If validation fails; nothing has been applied or written.
        """
        report = validate(change_set)
        if not report.valid:
            raise ConflictError(report.errors)

        result = ChangeSetResult()

        # Phase 1: compute every file's new content in memory
        for batch in change_set.files:
            result.file_results[batch.file_path] = self._applier.apply_batch(
                batch.original_content, batch.edits
            )

        failed = [
            path for path, outcome in result.file_results.items()
            if not outcome.success
        ]
        if failed and not self._allow_partial:
            result.error = f"Edits failed verification in: {', '.join(failed)}"
            logger.warning("[Validator] %s; nothing written", result.error)
            return result

        if provider is None:
            result.success = True
            return result

        # Phase 2: write, rolling back already-written files on failure
        originals = {b.file_path: b.original_content for b in change_set.files}
        for path, outcome in result.file_results.items():
            if outcome.new_buffer == originals[path]:
                continue
            try:
                ok = provider.write(path, outcome.new_buffer)
            except OSError as exc:
                logger.error("[Validator] Write failed for %s: %s", path, exc)
                ok = False
            if not ok:
                self._rollback(provider, result.files_written, originals)
                result.error = f"Write failed for {path}"
                result.files_written = []
                return result
            result.files_written.append(path)

        result.success = True
        return result

    @staticmethod
    def _rollback(
        provider: SourceProvider,
        written: list[str],
        originals: dict[str, str],
    ) -> None:
        logger.error("[Validator] Rolling back %d written files", len(written))
        for path in written:
            try:
                if not provider.write(path, originals[path]):
                    logger.error("[Validator] Rollback failed for %s", path)
            except OSError as exc:
                logger.error("[Validator] Rollback failed for %s: %s", path, exc)
