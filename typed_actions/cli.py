import ast
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from typed_actions.cli_components.output_formatter import ColoredFormatter, JsonFormatter, OutputFormatter
from typed_actions.cli_components.result_aggregator import (
    EXIT_FAILURE,
    EXIT_OK,
    EXIT_USAGE,
    ResultAggregator,
    StandardResultAggregator,
)
from typed_actions.differ import DiffResult, diff_workflows, render
from typed_actions.discover.discoverer import Decl, Discoverer
from typed_actions.discover.graph import JobGraph
from typed_actions.fetcher import SchemaFetcher, wrapper_source
from typed_actions.globals.cli_config import BuildConfig, CLIConfig, WatchConfig
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticLevel, Diagnostics
from typed_actions.globals.web_fetcher import WebFetcher
from typed_actions.importer.importer import ImportConfig, Importer
from typed_actions.importer.parser import parse_workflow_file
from typed_actions.importer.scaffold import package_name, scaffold_files, starter_files, write_files
from typed_actions.linter.linter import Linter
from typed_actions.model.workflow import Workflow
from typed_actions.pipeline import DefaultPipeline, Pipeline
from typed_actions.validator import ActionlintValidator, ExternalValidator
from typed_actions.watcher import Watcher

YAML_SUFFIXES = (".yml", ".yaml")


class CLI(ABC):
    """Interface for CLI implementations."""

    @abstractmethod
    def run(self) -> int:
        """
        Run the command and return its exit code.

        Returns:
            int: Exit code (0=success, 1=failure, 2=usage or missing input)
        """
        pass


class StandardCLI(CLI):
    """
    Shared plumbing for the subcommands.

    Coordinates pluggable components:
    - OutputFormatter: handles text display formatting
    - ResultAggregator: collects diagnostics and picks the exit code
    JSON payloads go through a JsonFormatter when ``config.output_format``
    is ``json``.
    """

    def __init__(
        self,
        config: CLIConfig,
        formatter: Optional[OutputFormatter] = None,
        aggregator: Optional[ResultAggregator] = None,
    ):
        self.config = config
        self.formatter = formatter or ColoredFormatter()
        self.aggregator = aggregator or StandardResultAggregator()
        self.json_formatter = JsonFormatter()

    @property
    def json_output(self) -> bool:
        return self.config.output_format == "json"

    def pipeline(self) -> Pipeline:
        if self.config.in_process:
            return DefaultPipeline.in_process()
        return DefaultPipeline()

    @contextmanager
    def progress(self, description: str) -> Iterator[None]:
        """Transient spinner on stderr so stdout stays parseable."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=Console(stderr=True),
            transient=True,
        ) as progress:
            progress.add_task(description=description, total=None)
            yield

    def _missing(self, path: Path) -> bool:
        if path.exists():
            return False
        message = f"path not found: {path}"
        if self.json_output:
            print(self.json_formatter.format_payload({"success": False, "errors": [message]}))
        else:
            print(self.formatter.format_status(DiagnosticLevel.ERR, message))
        return True

    def _display_diagnostics(self, diagnostics: List[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            print(self.formatter.format_diagnostic(diagnostic))

    def _display_grouped(self, diagnostics: List[Diagnostic]) -> None:
        """Diagnostics under one header per file, in the order given."""
        current: Optional[str] = None
        for diagnostic in diagnostics:
            if diagnostic.path != current:
                current = diagnostic.path
                print(self.formatter.format_file_header(Path(current or "<input>")))
            print(self.formatter.format_diagnostic(diagnostic))

    def _display_summary(self) -> None:
        print(
            self.formatter.format_summary(
                self.aggregator.get_total_errors(),
                self.aggregator.get_total_warnings(),
                self.aggregator.get_max_level(),
            )
        )

    def _display_failure(self, action: str) -> None:
        kind = self.aggregator.first_failure() if self.aggregator.get_total_errors() else None
        suffix = f" ({kind.value})" if kind else ""
        print(self.formatter.format_status(DiagnosticLevel.ERR, f"{action} failed{suffix}"))


class BuildCLI(StandardCLI):
    """``build``: discover, evaluate and emit, then write or report files."""

    def __init__(self, config: CLIConfig, build: BuildConfig, pipeline: Optional[Pipeline] = None, **components):
        super().__init__(config, **components)
        self.build = build
        self._pipeline = pipeline

    @property
    def json_output(self) -> bool:
        return self.build.output_format == "json"

    def run(self) -> int:
        if self._missing(self.build.path):
            return EXIT_USAGE
        pipeline = self._pipeline or self.pipeline()
        with self.progress(f"Building {self.build.path}..."):
            result = pipeline.process(self.build)

        self.aggregator.add_diagnostics(result.diagnostics)
        exit_code = self.aggregator.get_exit_code()
        if not result.success:
            exit_code = EXIT_FAILURE

        if self.json_output:
            print(self.json_formatter.format_payload(result.to_dict()))
            return exit_code

        self._display_diagnostics(list(result.diagnostics))
        out_dir = self.build.output_dir()
        verb = "would write" if self.build.dry_run else "wrote"
        for output in result.outputs:
            print(self.formatter.format_status(DiagnosticLevel.NON, f"{verb} {out_dir / output.filename}"))
        if exit_code != EXIT_OK:
            self._display_failure("build")
        return exit_code


class ImportCLI(StandardCLI):
    """``import``: YAML or text configuration in, Python package out."""

    def __init__(
        self, config: CLIConfig, source: Path, output: Path, import_config: ImportConfig, **components
    ):
        super().__init__(config, **components)
        self.source = source
        self.output = output
        self.import_config = import_config

    def run(self) -> int:
        if self._missing(self.source):
            return EXIT_USAGE
        outcome = Importer(self.import_config).import_file(self.source)
        problems = list(outcome.diagnostics)
        if outcome.ok:
            problems += write_files(self.output, outcome.files)
        self.aggregator.add_diagnostics(problems)

        if self.json_output:
            payload = {
                "success": self.aggregator.get_exit_code() == EXIT_OK,
                "errors": [d.to_dict() for d in problems],
                "symbol": outcome.symbol,
                "files": [str(self.output / name) for name in outcome.files],
            }
            print(self.json_formatter.format_payload(payload))
            return self.aggregator.get_exit_code()

        self._display_diagnostics(problems)
        if self.aggregator.get_exit_code() != EXIT_OK:
            self._display_failure("import")
            return self.aggregator.get_exit_code()
        for name in outcome.files:
            print(self.formatter.format_status(DiagnosticLevel.NON, f"wrote {self.output / name}"))
        return EXIT_OK


class ValidateCLI(StandardCLI):
    """``validate``: check generated YAML with an external validator."""

    def __init__(
        self, config: CLIConfig, files: List[Path], validator: Optional[ExternalValidator] = None, **components
    ):
        super().__init__(config, **components)
        self.files = files
        self.validator = validator or ActionlintValidator()

    def run(self) -> int:
        with self.progress("Validating..."):
            result = self.validator.validate(self.files)
        self.aggregator.add_diagnostics(result.diagnostics)

        if self.json_output:
            print(self.json_formatter.format_payload(result.to_dict()))
        else:
            for path in result.missing:
                print(self.formatter.format_status(DiagnosticLevel.ERR, f"file not found: {path}"))
            if result.diagnostics:
                self._display_grouped(list(result.diagnostics))
                self._display_summary()
            elif not result.missing:
                print(self.formatter.format_status(DiagnosticLevel.NON, "valid"))

        if result.missing:
            return EXIT_USAGE
        return self.aggregator.get_exit_code()


def job_count(decl: Decl) -> Optional[int]:
    """Jobs in a workflow declaration whose ``jobs`` is a dict literal."""
    if not isinstance(decl.node, ast.Call):
        return None
    for kw in decl.node.keywords:
        if kw.arg == "jobs" and isinstance(kw.value, ast.Dict):
            return len(kw.value.keys)
    return None


class ListCLI(StandardCLI):
    """``list``: discovered workflows with their location and job count."""

    def __init__(self, config: CLIConfig, path: Path, discoverer: Optional[Discoverer] = None, **components):
        super().__init__(config, **components)
        self.path = path
        self.discoverer = discoverer or Discoverer()

    def run(self) -> int:
        if self._missing(self.path):
            return EXIT_USAGE
        discovery = self.discoverer.discover(self.path)
        self.aggregator.add_diagnostics(discovery.errors)
        base = self.path if self.path.is_dir() else self.path.parent
        rows = [
            {
                "name": decl.name,
                "file": os.path.relpath(decl.file, base),
                "line": decl.line,
                "jobs": job_count(decl),
            }
            for decl in discovery.workflows
        ]
        exit_code = self.aggregator.get_exit_code()

        if self.json_output:
            payload = {
                "success": exit_code == EXIT_OK,
                "errors": [d.to_dict() for d in discovery.errors],
                "workflows": rows,
            }
            print(self.json_formatter.format_payload(payload))
            return exit_code

        self._display_diagnostics(discovery.errors)
        if not rows:
            print("No workflows found")
            return exit_code
        print(f"{'WORKFLOW':<20} {'FILE':<30} {'LINE':<6} JOBS")
        for row in rows:
            jobs = "-" if row["jobs"] is None else row["jobs"]
            print(f"{row['name']:<20} {row['file']:<30} {row['line']:<6} {jobs}")
        return exit_code


class LintCLI(StandardCLI):
    """``lint``: style rules WAG001 to WAG008, with optional fixing."""

    def __init__(self, config: CLIConfig, path: Path, fix: bool = False, linter: Optional[Linter] = None, **components):
        components.setdefault("aggregator", StandardResultAggregator(fail_on_warnings=True))
        super().__init__(config, **components)
        self.path = path
        self.linter = linter or Linter(fix=fix)

    def run(self) -> int:
        if self._missing(self.path):
            return EXIT_USAGE
        with self.progress(f"Linting {self.path}..."):
            result = self.linter.lint(self.path)
        self.aggregator.add_diagnostics(result.diagnostics)

        if self.json_output:
            print(self.json_formatter.format_payload(result.to_dict()))
            return self.aggregator.get_exit_code()

        if result.diagnostics:
            self._display_grouped(list(result.diagnostics))
            self._display_summary()
        else:
            print(self.formatter.format_no_problems())
        return self.aggregator.get_exit_code()


def load_workflows(
    path: Path, pipeline: Pipeline, from_yaml: bool = False
) -> Tuple[Dict[str, Workflow], Diagnostics]:
    """
    Workflows of a source tree, or of a YAML file.

    A ``.yml``/``.yaml`` file is always read as YAML, a directory only when
    ``from_yaml`` is set, in which case every YAML file directly inside it is
    read.
    """
    diagnostics = Diagnostics()
    if path.suffix in YAML_SUFFIXES or from_yaml:
        files = [path] if path.is_file() else sorted(p for p in path.iterdir() if p.suffix in YAML_SUFFIXES)
        workflows: Dict[str, Workflow] = {}
        for file in files:
            parsed = parse_workflow_file(file)
            diagnostics.extend(parsed.diagnostics)
            if parsed.workflow is not None:
                workflows[file.stem] = parsed.workflow
        return workflows, diagnostics

    loaded = pipeline.load(path)
    diagnostics.extend(loaded.diagnostics)
    return loaded.extraction.workflows, diagnostics


class DiffCLI(StandardCLI):
    """``diff``: semantic job and dependency changes between two sides."""

    def __init__(
        self,
        config: CLIConfig,
        old: Path,
        new: Path,
        from_yaml: bool = False,
        diff_format: str = "text",
        pipeline: Optional[Pipeline] = None,
        **components,
    ):
        super().__init__(config, **components)
        self.old = old
        self.new = new
        self.from_yaml = from_yaml
        self.diff_format = diff_format
        self._pipeline = pipeline

    def run(self) -> int:
        if self._missing(self.old) or self._missing(self.new):
            return EXIT_USAGE
        pipeline = self._pipeline or self.pipeline()
        old, old_problems = load_workflows(self.old, pipeline, self.from_yaml)
        new, new_problems = load_workflows(self.new, pipeline, self.from_yaml)
        self.aggregator.add_diagnostics(old_problems)
        self.aggregator.add_diagnostics(new_problems)

        if self.aggregator.get_exit_code() != EXIT_OK:
            errors = [str(d) for d in self.aggregator.get_diagnostics() if d.level == DiagnosticLevel.ERR]
            result = DiffResult(success=False, errors=errors)
        else:
            result = diff_workflows(old, new)
        print(render(result, self.diff_format), end="")
        return EXIT_OK if result.success else EXIT_FAILURE


class GraphCLI(StandardCLI):
    """``graph``: the job dependency DAG in DOT, Mermaid or JSON."""

    def __init__(
        self,
        config: CLIConfig,
        path: Path,
        graph_format: str = "dot",
        direction: str = "TB",
        pipeline: Optional[Pipeline] = None,
        **components,
    ):
        super().__init__(config, **components)
        self.path = path
        self.graph_format = graph_format
        self.direction = direction
        self._pipeline = pipeline

    def run(self) -> int:
        if self._missing(self.path):
            return EXIT_USAGE
        workflows, diagnostics = load_workflows(self.path, self._pipeline or self.pipeline())
        self.aggregator.add_diagnostics(diagnostics)
        failed = self.aggregator.get_exit_code() != EXIT_OK or not workflows

        if self.graph_format == "json":
            payload = JobGraph().to_dict() if failed else JobGraph.from_workflows(workflows).to_dict()
            payload["success"] = not failed
            payload["errors"] = [d.to_dict() for d in diagnostics.errors()]
            print(self.json_formatter.format_payload(payload))
            return EXIT_FAILURE if failed else EXIT_OK

        if failed:
            self._display_diagnostics(list(diagnostics))
            if diagnostics.errors():
                self._display_failure("graph")
            else:
                print("No workflows found")
            return EXIT_FAILURE
        print(JobGraph.from_workflows(workflows).render(self.graph_format, self.direction), end="")
        return EXIT_OK


class InitCLI(StandardCLI):
    """``init``: scaffold a new workflow package."""

    def __init__(self, config: CLIConfig, name: str, output: Path, **components):
        super().__init__(config, **components)
        self.name = name
        self.output = output

    def run(self) -> int:
        target = self.output / self.name
        if target.exists():
            message = f"directory already exists: {target}"
            if self.json_output:
                print(self.json_formatter.format_payload({"success": False, "errors": [message]}))
            else:
                print(self.formatter.format_status(DiagnosticLevel.ERR, message))
            return EXIT_FAILURE

        package = package_name(self.name)
        files = scaffold_files(self.name, package)
        files.update({f"{package}/{name}": content for name, content in starter_files(self.name).items()})
        problems = write_files(target, files)
        self.aggregator.add_diagnostics(problems)
        exit_code = self.aggregator.get_exit_code()

        if self.json_output:
            payload = {
                "success": exit_code == EXIT_OK,
                "errors": [d.to_dict() for d in problems],
                "output_dir": str(target),
                "files": sorted(files),
            }
            print(self.json_formatter.format_payload(payload))
            return exit_code

        if problems:
            self._display_diagnostics(problems)
            return exit_code
        print(f"Created project: {target}")
        for name in sorted(files):
            print(f"  {name}")
        print("")
        print("Next steps:")
        print(f"  cd {target}")
        print(f"  typed-actions build {package}")
        return EXIT_OK


def timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


class WatchCLI(StandardCLI):
    """``watch``: rebuild or re-lint whenever the source tree changes."""

    def __init__(
        self,
        config: CLIConfig,
        watch: WatchConfig,
        cancel: Optional[threading.Event] = None,
        **components,
    ):
        super().__init__(config, **components)
        self.watch = watch
        self.cancel = cancel or threading.Event()

    def run(self) -> int:
        if self._missing(self.watch.path):
            return EXIT_USAGE
        print(f"[{timestamp()}] Watching {self.watch.path} for changes (debounce: {self.watch.debounce}s)")
        print("Press Ctrl+C to stop watching")
        self.handle_batch([])

        watcher = Watcher(self.watch.path, self.handle_batch, self.watch.debounce, self.watch.interval)
        try:
            watcher.run(self.cancel)
        except KeyboardInterrupt:
            self.cancel.set()
        print(f"[{timestamp()}] Stopped watching")
        return EXIT_OK

    def handle_batch(self, changed: List[Path]) -> None:
        """Run one independent build or lint for a batch of changes."""
        if changed:
            print(f"[{timestamp()}] {len(changed)} file(s) changed")
        if self.watch.lint_only:
            result = Linter().lint(self.watch.path)
            self._report(result.diagnostics, "Lint passed", "Lint failed", fail_on_warnings=True)
            return
        config = BuildConfig(path=self.watch.path, output=self.watch.output)
        result = self.pipeline().process(config, self.cancel)
        self._report(result.diagnostics, f"Build successful: {config.output_dir()}", "Build failed")

    def _report(self, diagnostics: Diagnostics, passed: str, failed: str, fail_on_warnings: bool = False) -> None:
        aggregator = StandardResultAggregator(fail_on_warnings=fail_on_warnings)
        aggregator.add_diagnostics(diagnostics)
        self._display_diagnostics(list(diagnostics))
        if aggregator.get_exit_code() == EXIT_OK:
            print(f"[{timestamp()}] {passed}")
        else:
            print(f"[{timestamp()}] {failed}")


class FetchCLI(StandardCLI):
    """``fetch``: download schemas and action metadata, or render one wrapper."""

    def __init__(
        self,
        config: CLIConfig,
        output: Path,
        action: Optional[str] = None,
        fetcher: Optional[SchemaFetcher] = None,
        **components,
    ):
        super().__init__(config, **components)
        self.output = output
        self.action = action
        self.fetcher = fetcher or SchemaFetcher(WebFetcher(github_token=config.github_token))

    def run(self) -> int:
        if self.action:
            return self._wrapper()
        with self.progress("Fetching schemas..."):
            result = self.fetcher.fetch_all(self.output)
        self.aggregator.add_diagnostics(result.diagnostics)
        if self.json_output:
            print(self.json_formatter.format_payload(result.to_dict()))
            return self.aggregator.get_exit_code()
        self._display_diagnostics(result.diagnostics)
        for path in result.files:
            print(self.formatter.format_status(DiagnosticLevel.NON, f"wrote {path}"))
        return self.aggregator.get_exit_code()

    def _wrapper(self) -> int:
        try:
            with self.progress(f"Fetching {self.action}..."):
                metadata = self.fetcher.fetch_action(self.action)
        except ValueError as e:
            print(self.formatter.format_status(DiagnosticLevel.ERR, str(e)))
            return EXIT_USAGE
        if metadata is None:
            print(self.formatter.format_status(DiagnosticLevel.ERR, f"cannot fetch action metadata for {self.action}"))
            return EXIT_FAILURE
        reference = self.action if "@" in self.action else f"{self.action}@main"
        print(wrapper_source(metadata, reference), end="")
        return EXIT_OK
