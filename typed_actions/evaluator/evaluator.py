"""
Materializes discovered declarations into IR values.

The user's modules are imported by a harness, either in a child interpreter
(the default, so user code never touches the toolchain process) or in this
process with ``sys.modules`` restored afterwards.
"""

import json
import logging
import os
import subprocess
import sys
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import typed_actions
from typed_actions.discover.discoverer import Decl, DeclKind, DiscoveryResult, module_name
from typed_actions.evaluator import harness
from typed_actions.evaluator.codec import decode
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLevel, error
from typed_actions.globals.pos import Pos
from typed_actions.model.validation import validate, validate_job_graph
from typed_actions.model.workflow import Workflow

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class HarnessCancelled(Exception):
    pass


class HarnessFailure(Exception):
    """The harness itself failed; no value could be produced."""


class Harness(ABC):
    """Runs the extraction request and returns the raw result."""

    @abstractmethod
    def run(self, request: Dict[str, Any], cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        """
        Execute one extraction request.

        Raises:
            HarnessCancelled: The timeout elapsed or ``cancel`` was set.
            HarnessFailure: The harness could not run.
        """
        pass


class SubprocessHarness(Harness):
    """Runs the harness module in a fresh interpreter.

    Args:
        timeout: Seconds before the child is killed.
        python: Interpreter to use, the current one by default.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, python: Optional[str] = None) -> None:
        self.timeout = timeout
        self.python = python or sys.executable

    def run(self, request: Dict[str, Any], cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        toolchain_root = str(Path(typed_actions.__file__).resolve().parent.parent)
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            [toolchain_root] + [p for p in env.get("PYTHONPATH", "").split(os.pathsep) if p]
        )
        env["PYTHONDONTWRITEBYTECODE"] = "1"

        with tempfile.TemporaryDirectory(prefix="typed-actions-") as tmp:
            request_path = Path(tmp) / "request.json"
            result_path = Path(tmp) / "result.json"
            request_path.write_text(json.dumps(request), encoding="utf-8")
            command = [self.python, "-m", harness.__name__, str(request_path), str(result_path)]
            logger.debug("Running %s", " ".join(command))

            stderr_path = Path(tmp) / "stderr.txt"
            with open(stderr_path, "w", encoding="utf-8") as stderr_file:
                process = subprocess.Popen(
                    command,
                    stdout=subprocess.DEVNULL,
                    stderr=stderr_file,
                    env=env,
                    cwd=tmp,
                )
                returncode = self._wait(process, cancel)
            stderr = stderr_path.read_text(encoding="utf-8", errors="replace")

            if returncode != 0 or not result_path.exists():
                lines = [line for line in (stderr or "").splitlines() if line.strip()]
                detail = lines[-1] if lines else f"exit status {returncode}"
                raise HarnessFailure(f"harness failed: {detail}")
            return json.loads(result_path.read_text(encoding="utf-8"))

    def _wait(self, process: subprocess.Popen, cancel: Optional[threading.Event]) -> int:
        deadline = time.monotonic() + self.timeout
        while process.poll() is None:
            if (cancel is not None and cancel.is_set()) or time.monotonic() > deadline:
                process.kill()
                process.wait()
                raise HarnessCancelled("evaluation cancelled")
            if cancel is not None:
                cancel.wait(0.05)
            else:
                time.sleep(0.05)
        return process.returncode


class InProcessHarness(Harness):
    """Imports user modules in this process.

    ``sys.path`` and ``sys.modules`` are restored after each run so that the
    next run sees fresh source.
    """

    def run(self, request: Dict[str, Any], cancel: Optional[threading.Event] = None) -> Dict[str, Any]:
        if cancel is not None and cancel.is_set():
            raise HarnessCancelled("evaluation cancelled")
        saved_path = list(sys.path)
        saved_modules = dict(sys.modules)
        try:
            result = harness.extract(request)
        finally:
            sys.path[:] = saved_path
            for name in list(sys.modules):
                if name not in saved_modules:
                    del sys.modules[name]
        if cancel is not None and cancel.is_set():
            raise HarnessCancelled("evaluation cancelled")
        return result


@dataclass
class ExtractionResult:
    """
    Evaluated declarations.

    Attributes:
        workflows: Valid workflows by symbol name.
        values: Every other evaluated declaration by symbol name.
        error: Fatal problem that stopped evaluation altogether.
        diagnostics: Per-declaration problems. A workflow with an error
            here is absent from ``workflows``.
        decls: Declarations behind the keys of ``workflows`` and ``values``.
    """

    workflows: Dict[str, Workflow] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)
    error: Optional[Diagnostic] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)
    decls: Dict[str, Decl] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and not any(d.level == DiagnosticLevel.ERR for d in self.diagnostics)


class Evaluator:
    """Turns discovered declarations into IR instances.

    Args:
        harness: Execution strategy, a SubprocessHarness by default.
    """

    def __init__(self, harness: Optional[Harness] = None) -> None:
        self.harness = harness or SubprocessHarness()

    def extract(
        self,
        discovery: DiscoveryResult,
        kinds: Iterable[DeclKind] = (DeclKind.WORKFLOW,),
        cancel: Optional[threading.Event] = None,
    ) -> ExtractionResult:
        """
        Evaluate the declarations of the requested kinds.

        Args:
            discovery: Output of the Discoverer.
            kinds: Declaration kinds to materialize.
            cancel: Set to abandon evaluation.

        Returns:
            ExtractionResult: Values plus diagnostics. On cancellation only
            a ``cancelled`` diagnostic is returned.
        """
        wanted = set(kinds)
        decls = [d for d in discovery.all() if d.kind in wanted]
        result = ExtractionResult()
        if not decls:
            return result

        roots: List[str] = []
        targets: List[Dict[str, Any]] = []
        for decl in decls:
            root, module = module_name(Path(decl.file))
            if str(root) not in roots:
                roots.append(str(root))
            key = decl.name if decl.name not in result.decls else f"{module}.{decl.name}"
            result.decls[key] = decl
            targets.append(
                {
                    "key": key,
                    "module": module,
                    "symbol": decl.name,
                    "kind": decl.kind.value,
                    "file": decl.file,
                    "line": decl.line,
                }
            )

        logger.info("Evaluating %d declarations from %d import roots", len(targets), len(roots))
        try:
            raw = self.harness.run({"roots": roots, "targets": targets}, cancel)
        except HarnessCancelled as e:
            return ExtractionResult(diagnostics=[error(DiagnosticKind.CANCELLED, str(e))])
        except (HarnessFailure, OSError, ValueError) as e:
            result.error = error(DiagnosticKind.EVALUATION, str(e))
            return result

        result.diagnostics.extend(Diagnostic.from_dict(d) for d in raw.get("diagnostics", []))
        for key, data in raw.get("values", {}).items():
            decl = result.decls[key]
            pos = Pos(decl.line - 1, decl.col)
            try:
                value = decode(data)
            except (TypeError, ValueError) as e:
                result.diagnostics.append(
                    error(DiagnosticKind.EVALUATION, f"cannot decode '{decl.name}': {e}", path=decl.file, pos=pos)
                )
                continue
            if decl.kind != DeclKind.WORKFLOW:
                result.values[key] = value
                continue
            problems = validate(value) + validate_job_graph(value)
            for problem in problems:
                problem.path = decl.file
                problem.pos = pos
                problem.desc = f"{decl.name}: {problem.desc}"
            result.diagnostics.extend(problems)
            if not any(p.level == DiagnosticLevel.ERR for p in problems):
                result.workflows[key] = value

        logger.info("Evaluated %d workflows and %d other values", len(result.workflows), len(result.values))
        return result


def evaluate(
    discovery: DiscoveryResult,
    kinds: Iterable[DeclKind] = (DeclKind.WORKFLOW,),
    runner: Optional[Harness] = None,
    cancel: Optional[threading.Event] = None,
) -> ExtractionResult:
    return Evaluator(runner).extract(discovery, kinds, cancel)
