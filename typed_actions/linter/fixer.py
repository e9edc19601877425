import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticLevel

logger = logging.getLogger(__name__)


class Fixer(ABC):
    @abstractmethod
    def edit_source_at_position(
        self, idx: int, old_text: str, new_text: str, diagnostic: Diagnostic, new_desc: str
    ) -> Diagnostic:
        pass

    @abstractmethod
    def flush(self) -> None:
        pass


class BaseFixer(Fixer):
    """Collects text edits for one source file and applies them on flush."""

    file_path: Path
    pending_edits: List[Dict[str, Any]]

    def __init__(self, file_path: Path):
        self.file_path = file_path
        self.pending_edits = []

    def edit_source_at_position(
        self, idx: int, old_text: str, new_text: str, diagnostic: Diagnostic, new_desc: str
    ) -> Diagnostic:
        self.pending_edits.append({"idx": idx, "num_delete": len(old_text), "new_text": new_text})
        diagnostic.level = DiagnosticLevel.NON
        diagnostic.desc = new_desc
        return diagnostic

    def flush(self) -> None:
        """Apply all pending edits, last position first."""
        if not self.pending_edits:
            return

        try:
            content = self.file_path.read_text(encoding="utf-8")
            for edit in sorted(self.pending_edits, key=lambda e: e["idx"], reverse=True):
                idx = edit["idx"]
                if idx < 0 or idx > len(content):
                    continue
                content = content[:idx] + edit["new_text"] + content[idx + edit["num_delete"]:]
            self.file_path.write_text(content, encoding="utf-8")
            self.pending_edits.clear()
        except (OSError, UnicodeError) as e:
            logger.warning(f"File operation error during fix flush: {e}")


class NoFixer(Fixer):
    def edit_source_at_position(
        self, idx: int, old_text: str, new_text: str, diagnostic: Diagnostic, new_desc: str
    ) -> Diagnostic:
        return diagnostic

    def flush(self) -> None:
        pass
