"""
Semantic comparison of two workflows.

Jobs are compared by id. A job present on both sides is modified when its
emitted form differs; changes to ``needs`` are also reported separately as
dependency changes.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from typed_actions.emitter.workflow_emitter import WorkflowEmitter
from typed_actions.model.validation import dependency_graph
from typed_actions.model.workflow import Workflow

DIFF_FORMATS = ("text", "json", "markdown")


@dataclass
class JobDiff:
    name: str
    changes: List[str] = field(default_factory=list)


@dataclass
class DependencyChange:
    job: str
    added_deps: List[str] = field(default_factory=list)
    removed_deps: List[str] = field(default_factory=list)


@dataclass
class DiffResult:
    success: bool = True
    errors: List[str] = field(default_factory=list)
    added_jobs: List[str] = field(default_factory=list)
    removed_jobs: List[str] = field(default_factory=list)
    modified_jobs: List[JobDiff] = field(default_factory=list)
    dependency_changes: List[DependencyChange] = field(default_factory=list)

    def has_changes(self) -> bool:
        return bool(self.added_jobs or self.removed_jobs or self.modified_jobs or self.dependency_changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "errors": list(self.errors),
            "added_jobs": list(self.added_jobs),
            "removed_jobs": list(self.removed_jobs),
            "modified_jobs": [{"name": j.name, "changes": list(j.changes)} for j in self.modified_jobs],
            "dependency_changes": [
                {"job": d.job, "added_deps": list(d.added_deps), "removed_deps": list(d.removed_deps)}
                for d in self.dependency_changes
            ],
        }


def _job_documents(workflows: Dict[str, Workflow]) -> Dict[str, Dict[str, Any]]:
    prefix = len(workflows) > 1
    jobs: Dict[str, Dict[str, Any]] = {}
    for symbol in sorted(workflows):
        workflow = workflows[symbol]
        emitter = WorkflowEmitter(workflow)
        for job_id, job in workflow.jobs.items():
            jobs[f"{symbol}/{job_id}" if prefix else job_id] = emitter.job(job_id, job)
    return jobs


def _dependencies(workflows: Dict[str, Workflow]) -> Dict[str, List[str]]:
    prefix = len(workflows) > 1
    deps: Dict[str, List[str]] = {}
    for symbol in sorted(workflows):
        for job_id, needs in dependency_graph(workflows[symbol]).items():
            key = f"{symbol}/{job_id}" if prefix else job_id
            deps[key] = needs
    return deps


def _step_label(step: Dict[str, Any], index: int) -> str:
    label = step.get("name") or step.get("uses") or step.get("run") or "unnamed"
    label = str(label).splitlines()[0] if str(label) else "unnamed"
    if len(label) > 30:
        label = label[:27] + "..."
    return f"step[{index}] {label}"


def _job_changes(old: Dict[str, Any], new: Dict[str, Any]) -> List[str]:
    changes: List[str] = []
    for key in list(old) + [k for k in new if k not in old]:
        if key in ("needs", "steps") or old.get(key) == new.get(key):
            continue
        if isinstance(old.get(key), str) and isinstance(new.get(key), str):
            changes.append(f"{key}: {json.dumps(old[key])} -> {json.dumps(new[key])}")
        else:
            changes.append(f"{key} changed")

    old_steps, new_steps = old.get("steps", []), new.get("steps", [])
    if len(old_steps) != len(new_steps):
        changes.append(f"steps count: {len(old_steps)} -> {len(new_steps)}")
    for i, (before, after) in enumerate(zip(old_steps, new_steps)):
        if before != after:
            changes.append(f"{_step_label(after, i)} changed")
    for i in range(len(old_steps), len(new_steps)):
        changes.append(f"{_step_label(new_steps[i], i)} added")
    for i in range(len(new_steps), len(old_steps)):
        changes.append(f"{_step_label(old_steps[i], i)} removed")
    return changes


def diff_workflows(old: Dict[str, Workflow], new: Dict[str, Workflow]) -> DiffResult:
    """
    Compare the jobs of two sets of workflows.

    Args:
        old: Workflows by symbol on the left side.
        new: Workflows by symbol on the right side.

    Returns:
        DiffResult: Added, removed and modified jobs, sorted by id.
    """
    result = DiffResult()
    old_jobs, new_jobs = _job_documents(old), _job_documents(new)
    old_deps, new_deps = _dependencies(old), _dependencies(new)

    result.added_jobs = sorted(j for j in new_jobs if j not in old_jobs)
    result.removed_jobs = sorted(j for j in old_jobs if j not in new_jobs)

    for job_id in sorted(j for j in new_jobs if j in old_jobs):
        changes: List[str] = []
        before, after = set(old_deps.get(job_id, [])), set(new_deps.get(job_id, []))
        added, removed = sorted(after - before), sorted(before - after)
        if added or removed:
            result.dependency_changes.append(DependencyChange(job_id, added, removed))
            if added:
                changes.append(f"added dependencies: {', '.join(added)}")
            if removed:
                changes.append(f"removed dependencies: {', '.join(removed)}")
        changes.extend(_job_changes(old_jobs[job_id], new_jobs[job_id]))
        if changes:
            result.modified_jobs.append(JobDiff(job_id, changes))
    return result


def render_text(result: DiffResult) -> str:
    if not result.success:
        return "\n".join(f"error: {e}" for e in result.errors) + "\n"
    if not result.has_changes():
        return "No differences found.\n"
    lines = ["Workflow Diff", "=============", ""]
    if result.added_jobs:
        lines += ["Added Jobs:"] + [f"  + {j}" for j in result.added_jobs] + [""]
    if result.removed_jobs:
        lines += ["Removed Jobs:"] + [f"  - {j}" for j in result.removed_jobs] + [""]
    if result.modified_jobs:
        lines.append("Modified Jobs:")
        for job in result.modified_jobs:
            lines.append(f"  ~ {job.name}")
            lines.extend(f"    - {c}" for c in job.changes)
        lines.append("")
    if result.dependency_changes:
        lines.append("Dependency Changes:")
        for change in result.dependency_changes:
            lines.append(f"  {change.job}:")
            if change.added_deps:
                lines.append(f"    + {', '.join(change.added_deps)}")
            if change.removed_deps:
                lines.append(f"    - {', '.join(change.removed_deps)}")
        lines.append("")
    return "\n".join(lines)


def render_markdown(result: DiffResult) -> str:
    lines = ["## Workflow Diff", ""]
    if not result.success:
        return "\n".join(lines + [f"**Error:** {e}" for e in result.errors]) + "\n"
    if not result.has_changes():
        return "\n".join(lines + ["No differences found."]) + "\n"
    if result.added_jobs:
        lines += ["### Added Jobs", ""] + [f"- `{j}`" for j in result.added_jobs] + [""]
    if result.removed_jobs:
        lines += ["### Removed Jobs", ""] + [f"- `{j}`" for j in result.removed_jobs] + [""]
    if result.modified_jobs:
        lines += ["### Modified Jobs", ""]
        for job in result.modified_jobs:
            lines += [f"#### `{job.name}`", ""] + [f"- {c}" for c in job.changes] + [""]
    if result.dependency_changes:
        lines += ["### Dependency Changes", ""]
        for change in result.dependency_changes:
            lines += [f"#### `{change.job}`", ""]
            if change.added_deps:
                lines += ["Added dependencies:"] + [f"- `{d}`" for d in change.added_deps]
            if change.removed_deps:
                lines += ["Removed dependencies:"] + [f"- `{d}`" for d in change.removed_deps]
            lines.append("")
    return "\n".join(lines)


def render(result: DiffResult, fmt: str) -> str:
    match fmt:
        case "json":
            return json.dumps(result.to_dict(), indent=2) + "\n"
        case "markdown":
            return render_markdown(result)
        case _:
            return render_text(result)
