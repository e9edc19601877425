"""
Invariant checks over the workflow IR.

Both checkers are pure functions returning diagnostics. Jobs are visited in
lexicographic order of their ids so the output order is stable.
"""

from typing import Dict, List, Optional, Set, Union

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error
from typed_actions.model.triggers import PullRequestTrigger, PushTrigger, WorkflowRunTrigger
from typed_actions.model.workflow import Job, Matrix, Permissions, Step, Workflow

PERMISSION_LEVELS = ("read", "write", "none")
PERMISSION_PRESETS = ("read-all", "write-all")
RESERVED_MATRIX_KEYS = ("include", "exclude")


def _invariant(desc: str) -> Diagnostic:
    return error(DiagnosticKind.INVARIANT, desc)


def need_id(workflow: Workflow, need: Union[str, Job]) -> str:
    """Resolve a ``needs`` entry to a job id.

    A Job object resolves to the key it is registered under in the same
    workflow; a Job that is not registered falls back to its name.
    """
    if isinstance(need, str):
        return need
    for job_id, job in workflow.jobs.items():
        if job is need:
            return job_id
    return need.name or ""


def validate(workflow: Workflow) -> List[Diagnostic]:
    """Check structural invariants of a single workflow."""
    problems: List[Diagnostic] = []
    problems.extend(_check_triggers(workflow))
    problems.extend(_check_permissions(workflow.permissions, "workflow"))

    for job_id in sorted(workflow.jobs):
        job = workflow.jobs[job_id]
        if not job_id:
            problems.append(_invariant("job id must not be empty"))
            continue
        if not isinstance(job, Job):
            problems.append(
                _invariant(f"job '{job_id}' is a {type(job).__name__}, not a Job")
            )
            continue
        problems.extend(_check_job(job_id, job))
    return problems


def validate_job_graph(workflow: Workflow) -> List[Diagnostic]:
    """Check that every dependency exists and that dependencies are acyclic."""
    problems: List[Diagnostic] = []
    graph = dependency_graph(workflow)

    for job_id in sorted(graph):
        for dep in graph[job_id]:
            if dep not in graph:
                problems.append(
                    _invariant(f"job '{job_id}' needs unknown job '{dep}'")
                )

    for cycle in find_cycles(graph):
        path = " -> ".join(cycle + [cycle[0]])
        problems.append(_invariant(f"dependency cycle between jobs: {path}"))
    return problems


def dependency_graph(workflow: Workflow) -> Dict[str, List[str]]:
    """Job id to the ids it needs, keys sorted."""
    graph: Dict[str, List[str]] = {}
    for job_id in sorted(workflow.jobs):
        job = workflow.jobs[job_id]
        needs = job.needs if isinstance(job, Job) else []
        graph[job_id] = [need_id(workflow, n) for n in needs]
    return graph


def find_cycles(graph: Dict[str, List[str]]) -> List[List[str]]:
    """Return each distinct cycle once, as the list of job ids along it."""
    visited: Set[str] = set()
    seen_cycles: Set[frozenset] = set()
    cycles: List[List[str]] = []

    def visit(node: str, stack: List[str], on_stack: Set[str]) -> None:
        visited.add(node)
        stack.append(node)
        on_stack.add(node)
        for dep in sorted(graph.get(node, [])):
            if dep not in graph:
                continue
            if dep in on_stack:
                cycle = stack[stack.index(dep):]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(list(cycle))
            elif dep not in visited:
                visit(dep, stack, on_stack)
        stack.pop()
        on_stack.discard(node)

    for node in sorted(graph):
        if node not in visited:
            visit(node, [], set())
    return cycles


def _check_job(job_id: str, job: Job) -> List[Diagnostic]:
    problems: List[Diagnostic] = []
    if job.steps and job.uses:
        problems.append(_invariant(f"job '{job_id}' sets both steps and uses"))
    elif not job.steps and not job.uses:
        problems.append(_invariant(f"job '{job_id}' must set steps or uses"))
    if not job.uses and job.runs_on in (None, "", []):
        problems.append(_invariant(f"job '{job_id}' has no runs-on"))
    if isinstance(job.timeout_minutes, int) and job.timeout_minutes < 0:
        problems.append(_invariant(f"job '{job_id}' has a negative timeout-minutes"))
    problems.extend(_check_permissions(job.permissions, f"job '{job_id}'"))

    if job.strategy is not None:
        if job.strategy.max_parallel < 0:
            problems.append(_invariant(f"job '{job_id}' has a negative max-parallel"))
        matrix = job.strategy.matrix
        if isinstance(matrix, Matrix):
            for axis in matrix.values:
                if axis in RESERVED_MATRIX_KEYS:
                    problems.append(
                        _invariant(f"job '{job_id}' uses reserved matrix axis name '{axis}'")
                    )

    step_ids: Set[str] = set()
    for index, step in enumerate(job.steps):
        label = f"step {index + 1} of job '{job_id}'"
        if not isinstance(step, Step):
            problems.append(_invariant(f"{label} is a {type(step).__name__}, not a Step"))
            continue
        problems.extend(_check_step(label, step))
        if step.id:
            if step.id in step_ids:
                problems.append(_invariant(f"{label} reuses step id '{step.id}'"))
            step_ids.add(step.id)
    return problems


def _check_step(label: str, step: Step) -> List[Diagnostic]:
    problems: List[Diagnostic] = []
    if step.uses and step.run:
        problems.append(_invariant(f"{label} sets both uses and run"))
    elif not step.uses and not step.run:
        problems.append(_invariant(f"{label} must set uses or run"))
    if step.with_ and not step.uses:
        problems.append(_invariant(f"{label} sets with without uses"))
    if step.shell and not step.run:
        problems.append(_invariant(f"{label} sets shell without run"))
    if isinstance(step.timeout_minutes, int) and step.timeout_minutes < 0:
        problems.append(_invariant(f"{label} has a negative timeout-minutes"))
    return problems


def _check_triggers(workflow: Workflow) -> List[Diagnostic]:
    problems: List[Diagnostic] = []
    on = workflow.on
    axes = {
        "push": (on.push, ("branches", "tags", "paths")),
        "pull_request": (on.pull_request, ("branches", "paths")),
        "pull_request_target": (on.pull_request_target, ("branches", "paths")),
        "workflow_run": (on.workflow_run, ("branches",)),
    }
    for event, (trigger, names) in axes.items():
        if not isinstance(trigger, (PushTrigger, PullRequestTrigger, WorkflowRunTrigger)):
            continue
        for axis in names:
            if getattr(trigger, axis) and getattr(trigger, f"{axis}_ignore"):
                problems.append(
                    _invariant(f"{event} sets both {axis} and {axis}-ignore")
                )
    return problems


def _check_permissions(permissions: Optional[Permissions], owner: str) -> List[Diagnostic]:
    if permissions is None:
        return []
    problems: List[Diagnostic] = []
    scopes = {
        name: value
        for name, value in vars(permissions).items()
        if name != "preset" and value is not None
    }
    if permissions.preset is not None:
        if permissions.preset not in PERMISSION_PRESETS:
            problems.append(
                _invariant(f"{owner} permissions preset '{permissions.preset}' is not read-all or write-all")
            )
        if scopes:
            problems.append(_invariant(f"{owner} permissions mix a preset with scopes"))
    for scope, level in scopes.items():
        if level not in PERMISSION_LEVELS:
            problems.append(
                _invariant(f"{owner} permission {scope} has invalid level '{level}'")
            )
    return problems
