"""
Workflow YAML validation through actionlint.

actionlint runs as a subprocess with JSON output; each reported issue
becomes an error diagnostic positioned at the line and column actionlint
gives.
"""

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, Diagnostics, DiagnosticLevel, error
from typed_actions.globals.pos import Pos

logger = logging.getLogger(__name__)

ACTIONLINT_FORMAT = "{{json .}}"


@dataclass
class ValidationResult:
    """
    Outcome of validating workflow files.

    Attributes:
        files: Files that were checked.
        diagnostics: Issues found, plus any failure to run the validator.
        missing: Files that do not exist.
    """

    files: List[Path] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    missing: List[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.missing and self.diagnostics.max_level != DiagnosticLevel.ERR

    def to_dict(self) -> Dict[str, Any]:
        errors = [d.to_dict() for d in self.diagnostics]
        errors += [{"kind": DiagnosticKind.IO.value, "message": "file not found", "path": str(p)} for p in self.missing]
        return {
            "success": self.success,
            "errors": errors,
            "files": [str(p) for p in self.files],
        }


class ExternalValidator(ABC):
    """Interface for validators of generated workflow files."""

    @abstractmethod
    def validate_file(self, path: Path) -> List[Diagnostic]:
        """
        Check one workflow file.

        Args:
            path: Existing YAML file.

        Returns:
            List[Diagnostic]: One diagnostic per issue; empty when valid.
        """
        pass

    def validate(self, paths: List[Path]) -> ValidationResult:
        result = ValidationResult()
        for path in paths:
            if not path.is_file():
                result.missing.append(path)
                continue
            result.files.append(path)
            result.diagnostics.extend(self.validate_file(path))
        return result


class ActionlintValidator(ExternalValidator):
    """
    Runs the ``actionlint`` executable.

    Args:
        binary: Name or path of the executable.
        timeout: Seconds before the run is abandoned.
    """

    def __init__(self, binary: str = "actionlint", timeout: float = 60) -> None:
        self.binary = binary
        self.timeout = timeout

    def validate_file(self, path: Path) -> List[Diagnostic]:
        command = [self.binary, "-format", ACTIONLINT_FORMAT, str(path)]
        logger.debug("Running %s", " ".join(command))
        try:
            completed = subprocess.run(command, capture_output=True, text=True, timeout=self.timeout, check=False)
        except FileNotFoundError:
            return [error(DiagnosticKind.IO, f"{self.binary} executable not found on PATH", path=str(path))]
        except subprocess.TimeoutExpired:
            return [error(DiagnosticKind.IO, f"{self.binary} timed out after {self.timeout}s", path=str(path))]

        # 0 means no issues, 1 means issues were printed, anything else is a failure to run
        if completed.returncode not in (0, 1):
            message = completed.stderr.strip() or f"exited with status {completed.returncode}"
            return [error(DiagnosticKind.IO, f"{self.binary} failed: {message}", path=str(path))]
        return self.parse(completed.stdout, path)

    @staticmethod
    def parse(output: str, path: Path) -> List[Diagnostic]:
        """Convert actionlint's JSON array into diagnostics."""
        if not output.strip():
            return []
        try:
            issues = json.loads(output)
        except json.JSONDecodeError as e:
            return [error(DiagnosticKind.IO, f"unreadable actionlint output: {e.msg}", path=str(path))]

        problems: List[Diagnostic] = []
        for issue in issues or []:
            line = max(int(issue.get("line", 1)), 1)
            column = max(int(issue.get("column", 1)), 1)
            problems.append(
                Diagnostic(
                    kind=DiagnosticKind.INVARIANT,
                    desc=issue.get("message", ""),
                    path=issue.get("filepath") or str(path),
                    pos=Pos(line - 1, column - 1),
                    rule=issue.get("kind") or None,
                )
            )
        return problems
