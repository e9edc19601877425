"""
Execution harness.

Imports the user's modules, reads the discovered bindings, checks their
runtime types and writes the canonical values as JSON. The evaluator runs
this module in a child interpreter:

    python -m typed_actions.evaluator.harness request.json result.json

or calls ``extract`` directly when evaluating in-process.
"""

import dataclasses
import importlib
import json
import sys
from typing import Any, Dict, List, Optional, Tuple

from typed_actions.evaluator.codec import encode
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error
from typed_actions.globals.pos import Pos
from typed_actions.model.codeowners import Codeowners
from typed_actions.model.dependabot import DependabotConfig
from typed_actions.model.expressions import Expression
from typed_actions.model.templates import DiscussionTemplate, IssueTemplate, PRTemplate
from typed_actions.model.triggers import Triggers
from typed_actions.model.validation import need_id
from typed_actions.model.workflow import Job, Step, StepAction, Workflow

EXPECTED_TYPES: Dict[str, type] = {
    "workflow": Workflow,
    "job": Job,
    "triggers": Triggers,
    "dependabot": DependabotConfig,
    "issue-template": IssueTemplate,
    "discussion-template": DiscussionTemplate,
    "pr-template": PRTemplate,
    "codeowners": Codeowners,
}


class ReferenceProblem(Exception):
    """A value of the wrong type where a model type is required."""


def _is_action(value: Any) -> bool:
    return not isinstance(value, (Expression, Step)) and isinstance(value, StepAction)


def canonical_step(step: Any, where: str) -> Step:
    if isinstance(step, Step):
        return step
    if _is_action(step):
        return Step(uses=step.action_ref(), with_=dict(step.inputs()))
    raise ReferenceProblem(f"{where} is a {type(step).__name__}, not a Step or an action")


def canonical_job(job: Any, job_id: str, workflow: Optional[Workflow] = None) -> Job:
    if not isinstance(job, Job):
        raise ReferenceProblem(f"job '{job_id}' is a {type(job).__name__}, not a Job")
    owner = workflow or Workflow()
    needs = []
    for need in job.needs:
        if not isinstance(need, (str, Job)):
            raise ReferenceProblem(f"needs entry of job '{job_id}' is a {type(need).__name__}")
        needs.append(need_id(owner, need))
    steps = [canonical_step(s, f"step {i + 1} of job '{job_id}'") for i, s in enumerate(job.steps)]
    return dataclasses.replace(job, needs=needs, steps=steps)


def canonical_workflow(workflow: Workflow) -> Workflow:
    if not isinstance(workflow.jobs, dict):
        raise ReferenceProblem(f"jobs is a {type(workflow.jobs).__name__}, not a mapping")
    jobs = {}
    for job_id, job in workflow.jobs.items():
        if not isinstance(job_id, str):
            raise ReferenceProblem(f"job id {job_id!r} is not a string")
        jobs[job_id] = canonical_job(job, job_id, workflow)
    return dataclasses.replace(workflow, jobs=jobs)


def canonicalize(value: Any, kind: str, symbol: str) -> Any:
    """Check ``value`` against its declared kind and normalize it."""
    if kind == "steps":
        if not isinstance(value, (list, tuple)):
            raise ReferenceProblem(f"'{symbol}' is declared as a step list but is a {type(value).__name__}")
        return [canonical_step(s, f"entry {i + 1} of '{symbol}'") for i, s in enumerate(value)]
    expected = EXPECTED_TYPES[kind]
    if not isinstance(value, expected):
        raise ReferenceProblem(
            f"'{symbol}' is declared as {expected.__name__} but evaluates to {type(value).__name__}"
        )
    if kind == "workflow":
        return canonical_workflow(value)
    if kind == "job":
        return canonical_job(value, symbol)
    return value


def _describe(e: BaseException) -> str:
    text = str(e)
    return f"{type(e).__name__}: {text}" if text else type(e).__name__


def extract(request: Dict[str, Any]) -> Dict[str, Any]:
    """
    Materialize the requested bindings.

    Args:
        request: ``roots`` lists import roots to put on ``sys.path``;
            ``targets`` lists mappings with ``key``, ``module``, ``symbol``,
            ``kind``, ``file`` and ``line``.

    Returns:
        Dict[str, Any]: ``values`` maps target keys to encoded values and
        ``diagnostics`` lists per-target problems.
    """
    for root in reversed(request.get("roots", [])):
        if root not in sys.path:
            sys.path.insert(0, root)
    importlib.invalidate_caches()

    values: Dict[str, Any] = {}
    diagnostics: List[Diagnostic] = []
    modules: Dict[str, Tuple[Any, Optional[str]]] = {}

    for target in request.get("targets", []):
        path = target.get("file")
        pos = Pos(max(target.get("line", 1) - 1, 0), 0)
        module_name = target["module"]
        if module_name not in modules:
            try:
                modules[module_name] = (importlib.import_module(module_name), None)
            except (Exception, SystemExit) as e:
                modules[module_name] = (None, _describe(e))
        module, failure = modules[module_name]
        if module is None:
            diagnostics.append(
                error(DiagnosticKind.EVALUATION, f"cannot import {module_name}: {failure}", path=path, pos=pos)
            )
            continue

        symbol = target["symbol"]
        if not hasattr(module, symbol):
            diagnostics.append(
                error(DiagnosticKind.REFERENCE, f"'{symbol}' is not defined after import", path=path, pos=pos)
            )
            continue
        try:
            value = canonicalize(getattr(module, symbol), target["kind"], symbol)
            values[target["key"]] = encode(value)
        except (ReferenceProblem, TypeError) as e:
            diagnostics.append(error(DiagnosticKind.REFERENCE, str(e), path=path, pos=pos))
        except Exception as e:
            diagnostics.append(
                error(DiagnosticKind.EVALUATION, f"cannot evaluate '{symbol}': {_describe(e)}", path=path, pos=pos)
            )

    return {"values": values, "diagnostics": [d.to_dict() for d in diagnostics]}


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("usage: python -m typed_actions.evaluator.harness REQUEST RESULT", file=sys.stderr)
        return 2
    with open(args[0], encoding="utf-8") as f:
        request = json.load(f)
    result = extract(request)
    with open(args[1], "w", encoding="utf-8") as f:
        json.dump(result, f)
    return 0


if __name__ == "__main__":
    sys.exit(main())
