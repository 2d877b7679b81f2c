"""
Contracts for the external collaborators the edit core talks to, plus the
plain implementations used by the CLI and tests.
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)


class SourceProvider(ABC):
    """Reads and writes file text on behalf of the core."""

    @abstractmethod
    def read(self, file_path: str) -> str:
        """Return the current text of *file_path*."""

    @abstractmethod
    def write(self, file_path: str, text: str) -> bool:
        """Replace the text of *file_path*; return False on failure."""


class AgentGateway(ABC):
    """Sends a prompt to the text-generating agent and returns its raw reply.

    The reply is untrusted text and always goes through the decoder.
    """

    @abstractmethod
    def generate_response(self, prompt: str) -> str:
        ...


class EditView(ABC):
    """The UI side: renders pending-edit highlights."""

    @abstractmethod
    def show_pending(self, highlights: list[dict]) -> None:
        """Replace the displayed highlights with *highlights*."""


class FileSourceProvider(SourceProvider):
    """Source provider backed by the local filesystem."""

    def __init__(self, root: Optional[str] = None) -> None:
        self._root = os.path.abspath(root or os.getcwd())

    def _resolve(self, file_path: str) -> str:
        if os.path.isabs(file_path):
            return file_path
        return os.path.join(self._root, file_path)

    def read(self, file_path: str) -> str:
        with open(self._resolve(file_path), "r", encoding="utf-8",
                  errors="replace", newline="") as f:
            return f.read()

    def write(self, file_path: str, text: str) -> bool:
        try:
            _safe_write(self._resolve(file_path), text)
            return True
        except OSError as exc:
            logger.error("[Source] Write failed for %s: %s", file_path, exc)
            return False


class InMemorySourceProvider(SourceProvider):
    """Source provider over a dict of path → text."""

    def __init__(self, files: Optional[dict[str, str]] = None) -> None:
        self.files: dict[str, str] = dict(files or {})

    def read(self, file_path: str) -> str:
        try:
            return self.files[file_path]
        except KeyError:
            raise FileNotFoundError(file_path) from None

    def write(self, file_path: str, text: str) -> bool:
        self.files[file_path] = text
        return True


def _safe_write(file_path: str, text: str) -> None:
    """Write *text* atomically via temp file + replace."""
    directory = os.path.dirname(os.path.abspath(file_path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".incremental_editor_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_path, file_path)
    except OSError:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
