"""Import entry point: one YAML or text file in, a Python package out."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLevel, error
from typed_actions.importer.codegen import CodeGenerator
from typed_actions.importer.configs import (
    generate_module,
    parse_codeowners,
    parse_dependabot,
    parse_discussion_template,
    parse_issue_template,
    parse_pr_template,
)
from typed_actions.importer.parser import parse_workflow
from typed_actions.importer.scaffold import package_name, scaffold_files
from typed_actions.model.validation import validate, validate_job_graph
from typed_actions.naming import to_identifier

logger = logging.getLogger(__name__)

IMPORT_TYPES = ("workflow", "dependabot", "codeowners", "issue-template", "discussion-template", "pr-template")


@dataclass
class ImportConfig:
    """
    Settings for one import.

    Attributes:
        kind: Input format, one of IMPORT_TYPES.
        single_file: Generate one module instead of four.
        scaffold: Also generate pyproject.toml, README.md and .gitignore.
        package: Package name override.
    """

    kind: str = "workflow"
    single_file: bool = False
    scaffold: bool = True
    package: Optional[str] = None


@dataclass
class ImportOutcome:
    """Decoded value plus generated files keyed by path relative to the output dir."""

    value: Any = None
    files: Dict[str, str] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    symbol: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None and not any(d.level == DiagnosticLevel.ERR for d in self.diagnostics)


class Importer:
    def __init__(self, config: Optional[ImportConfig] = None) -> None:
        self.config = config or ImportConfig()

    def import_file(self, path: Path) -> ImportOutcome:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            return ImportOutcome(diagnostics=[error(DiagnosticKind.IO, f"cannot read file: {e}", path=str(path))])
        return self.import_text(text, Path(path).stem, str(path))

    def import_text(self, text: str, stem: str, path: Optional[str] = None) -> ImportOutcome:
        match self.config.kind:
            case "workflow":
                outcome = self._workflow(text, stem, path)
            case "dependabot":
                value, problems = parse_dependabot(text, path)
                outcome = self._module(value, problems, "dependabot", "Dependabot", "Dependabot configuration.")
            case "codeowners":
                value, problems = parse_codeowners(text, path)
                outcome = self._module(value, problems, "codeowners", "Owners", "Code owners.")
            case "issue-template":
                value, problems = parse_issue_template(text, path)
                symbol = to_identifier(value.name if value else stem)
                outcome = self._module(value, problems, "templates", symbol, "Issue template.")
            case "discussion-template":
                value, problems = parse_discussion_template(text, path)
                symbol = to_identifier(value.title if value else stem)
                outcome = self._module(value, problems, "templates", symbol, "Discussion template.")
            case "pr-template":
                name = None if stem.upper() == "PULL_REQUEST_TEMPLATE" else stem
                value = parse_pr_template(text, name)
                symbol = to_identifier(name or "pull request") + "Template"
                outcome = self._module(value, [], "templates", symbol, "Pull request template.")
            case _:
                return ImportOutcome(
                    diagnostics=[error(DiagnosticKind.IMPORT, f"unknown import type '{self.config.kind}'", path=path)]
                )

        if outcome.value is None:
            return outcome
        package = self.config.package or package_name(self._label(outcome.value, stem))
        files = {f"{package}/{name}": content for name, content in outcome.files.items()}
        if self.config.scaffold:
            files.update(scaffold_files(package.replace("_", "-"), package))
        outcome.files = files
        logger.info("Imported %s into package %s (%d files)", path or stem, package, len(files))
        return outcome

    def _label(self, value: Any, stem: str) -> str:
        if self.config.kind == "workflow":
            return value.name or stem
        if self.config.kind == "codeowners":
            return "codeowners"
        return stem

    def _workflow(self, text: str, stem: str, path: Optional[str]) -> ImportOutcome:
        result = parse_workflow(text, path)
        problems = list(result.diagnostics)
        if result.workflow is None:
            return ImportOutcome(diagnostics=problems)
        for problem in validate(result.workflow) + validate_job_graph(result.workflow):
            problem.path = path
            problems.append(problem)
        if any(d.level == DiagnosticLevel.ERR for d in problems):
            return ImportOutcome(diagnostics=problems)
        code = CodeGenerator(single_file=self.config.single_file).generate(result.workflow, stem)
        return ImportOutcome(
            value=result.workflow, files=code.files, diagnostics=problems, symbol=code.workflow_symbol
        )

    def _module(self, value: Any, problems: List[Diagnostic], module: str, symbol: str, doc: str) -> ImportOutcome:
        if value is None or any(d.level == DiagnosticLevel.ERR for d in problems):
            return ImportOutcome(diagnostics=problems)
        files = {"__init__.py": "", f"{module}.py": generate_module(value, symbol, doc)}
        return ImportOutcome(value=value, files=files, diagnostics=problems, symbol=symbol)
