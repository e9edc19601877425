"""Build pipeline: discover, evaluate, emit, write."""

import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from typed_actions.discover.discoverer import Decl, DeclKind, Discoverer, DiscoveryResult
from typed_actions.emitter.config_emitter import (
    emit_codeowners,
    emit_dependabot,
    emit_discussion_template,
    emit_issue_template,
    emit_pr_template,
)
from typed_actions.emitter.workflow_emitter import EmitReferences, emit_workflow
from typed_actions.evaluator.evaluator import Evaluator, ExtractionResult, InProcessHarness
from typed_actions.globals.cli_config import BuildConfig
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, Diagnostics, DiagnosticLevel, error
from typed_actions.globals.errors import EmitError
from typed_actions.globals.pos import Pos
from typed_actions.naming import to_filename

logger = logging.getLogger(__name__)

BUILD_KINDS: Dict[str, DeclKind] = {
    "workflow": DeclKind.WORKFLOW,
    "dependabot": DeclKind.DEPENDABOT,
    "codeowners": DeclKind.CODEOWNERS,
    "issue-template": DeclKind.ISSUE_TEMPLATE,
    "discussion-template": DeclKind.DISCUSSION_TEMPLATE,
    "pr-template": DeclKind.PR_TEMPLATE,
}


@dataclass
class BuildOutput:
    """One generated file.

    Attributes:
        filename: Path relative to the output directory.
        content: File bytes.
        symbol: Declaration that produced the file.
        name: Display name of the workflow or template, if any.
    """

    filename: str
    content: bytes
    symbol: str
    name: Optional[str] = None


@dataclass
class BuildResult:
    outputs: List[BuildOutput] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
    written: List[Path] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.outputs) and self.diagnostics.max_level != DiagnosticLevel.ERR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "workflows": [o.name or o.symbol for o in self.outputs],
            "files": [str(p) for p in self.written] or [o.filename for o in self.outputs],
            "errors": [d.to_dict() for d in self.diagnostics.errors()],
            "warnings": [d.to_dict() for d in self.diagnostics if d.level == DiagnosticLevel.WAR],
        }


@dataclass
class LoadResult:
    """Discovery and evaluation output for one source tree."""

    discovery: DiscoveryResult
    extraction: ExtractionResult
    diagnostics: Diagnostics

    @property
    def ok(self) -> bool:
        return self.diagnostics.max_level != DiagnosticLevel.ERR


class Pipeline(ABC):
    """
    Interface for build pipelines.

    Implementations take a BuildConfig and return the generated files plus
    every diagnostic met on the way.
    """

    @abstractmethod
    def process(self, config: BuildConfig, cancel: Optional[threading.Event] = None) -> BuildResult:
        pass


class DefaultPipeline(Pipeline):
    def __init__(self, discoverer: Optional[Discoverer] = None, evaluator: Optional[Evaluator] = None) -> None:
        self.discoverer = discoverer or Discoverer()
        self.evaluator = evaluator or Evaluator()

    @classmethod
    def in_process(cls) -> "DefaultPipeline":
        return cls(evaluator=Evaluator(InProcessHarness()))

    def load(
        self,
        path: Path,
        kinds: Tuple[DeclKind, ...] = (DeclKind.WORKFLOW,),
        cancel: Optional[threading.Event] = None,
    ) -> LoadResult:
        """Discover and evaluate the declarations of ``kinds`` under ``path``."""
        diagnostics = Diagnostics()
        discovery = self.discoverer.discover(path, cancel)
        diagnostics.extend(discovery.errors)
        if any(d.kind == DiagnosticKind.CANCELLED for d in discovery.errors):
            return LoadResult(discovery, ExtractionResult(), diagnostics)

        if not any(d.kind in kinds for d in discovery.all()):
            names = " or ".join(k.value for k in kinds)
            diagnostics.append(error(DiagnosticKind.DISCOVERY, f"no {names} declarations found", path=str(path)))
            return LoadResult(discovery, ExtractionResult(), diagnostics)

        extraction = self.evaluator.extract(discovery, kinds, cancel)
        if extraction.error is not None:
            diagnostics.append(extraction.error)
        diagnostics.extend(extraction.diagnostics)
        return LoadResult(discovery, extraction, diagnostics)

    def process(self, config: BuildConfig, cancel: Optional[threading.Event] = None) -> BuildResult:
        """
        Build every declaration of ``config.kind`` under ``config.path``.

        Workflows that failed evaluation or validation are reported and
        skipped; the rest are still written. Two declarations building the
        same file stop the whole build.

        Args:
            config: Build settings.
            cancel: Set to abandon the build; partial outputs are discarded.

        Returns:
            BuildResult: Outputs, written paths and diagnostics.
        """
        kind = BUILD_KINDS[config.kind]
        loaded = self.load(config.path, (kind,), cancel)
        result = BuildResult(diagnostics=loaded.diagnostics)
        if loaded.extraction.error is not None or (cancel is not None and cancel.is_set()):
            return result

        root = config.path if config.path.is_dir() else config.path.parent
        values = loaded.extraction.workflows if kind == DeclKind.WORKFLOW else loaded.extraction.values
        for key, value in values.items():
            decl = loaded.extraction.decls[key]
            try:
                output = self._emit(kind, decl, value, loaded.discovery, root, config.attribution)
            except EmitError as e:
                e.diagnostic.path = decl.file
                e.diagnostic.pos = Pos(decl.line - 1, decl.col)
                result.diagnostics.append(e.diagnostic)
                continue
            output.symbol = key
            result.outputs.append(output)

        duplicates = self._duplicates(result.outputs, loaded.extraction)
        if duplicates:
            result.diagnostics.extend(duplicates)
            result.outputs = []
            return result

        if not config.dry_run:
            result.diagnostics.extend(self.write(result, config.output_dir()))
        logger.info("Built %d files from %s", len(result.outputs), config.path)
        return result

    def _emit(
        self, kind: DeclKind, decl: Decl, value: Any, discovery: DiscoveryResult, root: Path, attribution: bool
    ) -> BuildOutput:
        match kind:
            case DeclKind.WORKFLOW:
                references = None
                if attribution:
                    references = EmitReferences(
                        symbol=decl.name,
                        source=Path(os.path.relpath(decl.file, root)).as_posix(),
                        names=discovery.references.get(decl.name, []),
                    )
                filename = to_filename(value.name or decl.name) + ".yml"
                return BuildOutput(filename, emit_workflow(value, references), decl.name, value.name)
            case DeclKind.DEPENDABOT:
                return BuildOutput("dependabot.yml", emit_dependabot(value), decl.name)
            case DeclKind.CODEOWNERS:
                return BuildOutput("CODEOWNERS", emit_codeowners(value), decl.name)
            case DeclKind.ISSUE_TEMPLATE:
                filename = to_filename(value.name or decl.name) + ".yml"
                return BuildOutput(filename, emit_issue_template(value), decl.name, value.name)
            case DeclKind.DISCUSSION_TEMPLATE:
                filename = to_filename(value.title or decl.name) + ".yml"
                return BuildOutput(filename, emit_discussion_template(value), decl.name, value.title)
            case DeclKind.PR_TEMPLATE:
                return BuildOutput(value.filename(), emit_pr_template(value), decl.name, value.name)
        raise EmitError(f"cannot build declarations of kind {kind.value}")

    def _duplicates(self, outputs: List[BuildOutput], extraction: ExtractionResult) -> List[Diagnostic]:
        problems: List[Diagnostic] = []
        seen: Dict[str, BuildOutput] = {}
        for output in outputs:
            first = seen.setdefault(output.filename, output)
            if first is output:
                continue
            decl = extraction.decls.get(output.symbol)
            problems.append(
                error(
                    DiagnosticKind.INVARIANT,
                    f"'{output.symbol}' and '{first.symbol}' both build {output.filename}; "
                    "workflow names must be unique",
                    path=decl.file if decl else None,
                    pos=Pos(decl.line - 1, decl.col) if decl else None,
                )
            )
        return problems

    def write(self, result: BuildResult, out_dir: Path) -> List[Diagnostic]:
        """Write the outputs under ``out_dir`` and record the written paths."""
        problems: List[Diagnostic] = []
        for output in result.outputs:
            target = out_dir / output.filename
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(output.content)
            except OSError as e:
                problems.append(error(DiagnosticKind.IO, f"cannot write file: {e.strerror}", path=str(target)))
                continue
            result.written.append(target)
            logger.debug("Wrote %s", target)
        return problems

