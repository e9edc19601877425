"""Runs the style rules over every declaration module in a source tree."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from typed_actions.discover.discoverer import Discoverer, imports_dsl
from typed_actions.globals.diagnostics import DiagnosticKind, DiagnosticLevel, Diagnostics, error
from typed_actions.globals.pos import Pos
from typed_actions.linter.fixer import BaseFixer, Fixer, NoFixer
from typed_actions.linter.rule import Rule, SourceModule
from typed_actions.linter.rules import ALL_RULES

logger = logging.getLogger(__name__)


@dataclass
class LintResult:
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    files: List[str] = field(default_factory=list)

    @property
    def fixed(self) -> int:
        return sum(1 for d in self.diagnostics if d.kind == DiagnosticKind.LINT and d.level == DiagnosticLevel.NON)

    @property
    def success(self) -> bool:
        return self.diagnostics.max_level == DiagnosticLevel.NON

    def to_dict(self) -> Dict[str, Any]:
        issues = [d for d in self.diagnostics if d.level != DiagnosticLevel.NON]
        return {
            "success": self.success,
            "errors": [d.to_dict() for d in issues],
            "files": list(self.files),
            "fixed": self.fixed,
        }


class Linter:
    """
    Applies style rules to source files.

    Args:
        rules: Rule classes to run, all of WAG001 to WAG008 by default.
        fix: Rewrite fixable problems in place.
    """

    def __init__(self, rules: Optional[List[Type[Rule]]] = None, fix: bool = False) -> None:
        self.rules = rules if rules is not None else list(ALL_RULES)
        self.fix = fix

    def lint(self, root: Path) -> LintResult:
        result = LintResult()
        files, problems = Discoverer().source_files(Path(root))
        result.diagnostics.extend(problems)
        for path in files:
            result.diagnostics.extend(self.lint_file(path))
            result.files.append(str(path))
        result.diagnostics.sort()
        logger.info("Linted %d files under %s", len(result.files), root)
        return result

    def lint_file(self, path: Path) -> Diagnostics:
        diagnostics = Diagnostics()
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            diagnostics.append(error(DiagnosticKind.IO, f"cannot read file: {e}", path=str(path)))
            return diagnostics
        try:
            module = SourceModule.parse(str(path), text)
        except SyntaxError as e:
            pos = Pos(max((e.lineno or 1) - 1, 0), max((e.offset or 1) - 1, 0))
            diagnostics.append(error(DiagnosticKind.DISCOVERY, f"syntax error: {e.msg}", path=str(path), pos=pos))
            return diagnostics
        if not imports_dsl(module.tree):
            return diagnostics

        fixer: Fixer = BaseFixer(path) if self.fix else NoFixer()
        for rule_class in self.rules:
            for problem in rule_class(module, fixer).check():
                diagnostics.append(problem)
        fixer.flush()
        return diagnostics


def lint(root: Path, fix: bool = False) -> LintResult:
    return Linter(fix=fix).lint(root)
