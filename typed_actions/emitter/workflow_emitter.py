"""
Workflow IR to canonical YAML.

Keys are written in model field order, which is the fixed GitHub order, and
zero-valued fields are left out. The result is byte-stable for equal input.
"""

import logging
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional

from typed_actions.emitter.yaml_dumper import dump
from typed_actions.globals.errors import EmitError
from typed_actions.model.expressions import Expression, Literal
from typed_actions.model.keys import key_for
from typed_actions.model.triggers import BareTrigger, Triggers
from typed_actions.model.validation import need_id
from typed_actions.model.workflow import Job, Matrix, Permissions, Step, StepAction, Workflow

logger = logging.getLogger(__name__)


@dataclass
class EmitReferences:
    """Where a workflow came from and which named declarations it uses.

    Attributes:
        symbol: Name of the top-level declaration of the workflow.
        source: File that declares it.
        names: Other top-level declarations the workflow refers to.
    """

    symbol: str
    source: Optional[str] = None
    names: List[str] = field(default_factory=list)


def is_zero(value: Any, default: Any = MISSING) -> bool:
    """True for values that are left out of the output."""
    if value is None:
        return True
    if isinstance(value, (str, list, dict, tuple)) and len(value) == 0:
        return True
    if default is not MISSING and not isinstance(value, Expression):
        return type(value) is type(default) and value == default
    return False


def _field_default(f) -> Any:
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:
        return f.default_factory()
    return MISSING


def emit_value(value: Any) -> Any:
    """Convert an IR value into plain YAML data."""
    if isinstance(value, Literal):
        return value.value
    if isinstance(value, Expression):
        return value.render()
    if isinstance(value, (str, bool, int, float)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [emit_value(v) for v in value]
    if isinstance(value, dict):
        return {str(k): emit_value(v) for k, v in value.items()}
    if is_dataclass(value) and not isinstance(value, type):
        return emit_object(value)
    raise EmitError(f"cannot emit value of type {type(value).__name__}")


def emit_object(obj: Any, always: tuple = ()) -> Dict[str, Any]:
    """Emit a model object's non-zero fields under their YAML keys."""
    data: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name not in always and is_zero(value, _field_default(f)):
            continue
        emitted = emit_value(value)
        if f.name not in always and emitted == {}:
            continue
        data[key_for(type(obj), f.name)] = emitted
    return data


class WorkflowEmitter:
    """Builds the ordered document for one workflow and serializes it."""

    def __init__(self, workflow: Workflow) -> None:
        self.workflow = workflow

    def document(self) -> Dict[str, Any]:
        wf = self.workflow
        doc: Dict[str, Any] = {}
        if wf.name:
            doc["name"] = wf.name
        doc["on"] = self.triggers(wf.on)
        if wf.permissions is not None:
            doc["permissions"] = self.permissions(wf.permissions)
        for attr in ("defaults", "concurrency", "env"):
            value = getattr(wf, attr)
            if not is_zero(value):
                emitted = emit_value(value)
                if not is_zero(emitted):
                    doc[attr] = emitted
        if wf.jobs:
            doc["jobs"] = {job_id: self.job(job_id, job) for job_id, job in wf.jobs.items()}
        return doc

    def triggers(self, triggers: Triggers) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for f in fields(triggers):
            trigger = getattr(triggers, f.name)
            if trigger is None:
                continue
            if f.name == "schedule":
                if trigger:
                    data["schedule"] = [{"cron": s.cron} for s in trigger]
                continue
            if isinstance(trigger, BareTrigger):
                data[f.name] = None
                continue
            payload = emit_object(trigger)
            data[f.name] = payload or None
        return data

    def permissions(self, permissions: Permissions) -> Any:
        """A preset string, or a scope mapping that is ``{}`` when every scope is revoked."""
        if permissions.preset:
            return permissions.preset
        data = emit_object(permissions)
        data.pop("preset", None)
        return data

    def job(self, job_id: str, job: Job) -> Dict[str, Any]:
        if not isinstance(job, Job):
            raise EmitError(f"job '{job_id}' is a {type(job).__name__}, not a Job")
        data: Dict[str, Any] = {}
        for f in fields(job):
            value = getattr(job, f.name)
            if is_zero(value, _field_default(f)):
                continue
            key = key_for(Job, f.name)
            match f.name:
                case "needs":
                    data[key] = [need_id(self.workflow, n) for n in value]
                case "permissions":
                    data[key] = self.permissions(value)
                case "strategy":
                    data[key] = self.strategy(value)
                case "steps":
                    data[key] = [self.step(job_id, i, s) for i, s in enumerate(value)]
                case _:
                    emitted = emit_value(value)
                    if emitted != {}:
                        data[key] = emitted
        return data

    def strategy(self, strategy) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if isinstance(strategy.matrix, Matrix):
            matrix = self.matrix(strategy.matrix)
            if matrix:
                data["matrix"] = matrix
        elif strategy.matrix is not None:
            data["matrix"] = emit_value(strategy.matrix)
        if strategy.fail_fast is not None:
            data["fail-fast"] = emit_value(strategy.fail_fast)
        if strategy.max_parallel:
            data["max-parallel"] = emit_value(strategy.max_parallel)
        return data

    def matrix(self, matrix: Matrix) -> Dict[str, Any]:
        data: Dict[str, Any] = {axis: emit_value(values) for axis, values in matrix.values.items()}
        if matrix.include:
            data["include"] = emit_value(matrix.include)
        if matrix.exclude:
            data["exclude"] = emit_value(matrix.exclude)
        return data

    def step(self, job_id: str, index: int, step: Any) -> Dict[str, Any]:
        if isinstance(step, Step):
            return emit_object(step)
        if not isinstance(step, Expression) and isinstance(step, StepAction):
            return emit_object(Step(uses=step.action_ref(), with_=dict(step.inputs())))
        raise EmitError(
            f"step {index + 1} of job '{job_id}' is a {type(step).__name__}, "
            "not a Step or an action"
        )


def workflow_document(workflow: Workflow) -> Dict[str, Any]:
    return WorkflowEmitter(workflow).document()


def emit_workflow(workflow: Workflow, references: Optional[EmitReferences] = None) -> bytes:
    """Serialize a workflow to canonical YAML bytes.

    Args:
        workflow: Validated workflow IR.
        references: Declaration info from discovery. When given, a header
            comment names the source declaration and the named parts it uses.

    Returns:
        bytes: UTF-8 YAML document.

    Raises:
        EmitError: A step or job value has a type the emitter does not know.
    """
    body = dump(workflow_document(workflow))
    if references is None:
        return body
    logger.debug("Emitting %s with %d named references", references.symbol, len(references.names))
    header = f"# Generated by typed-actions from {references.symbol}"
    if references.source:
        header += f" ({references.source})"
    lines = [header + ". Do not edit."]
    if references.names:
        lines.append("# Uses: " + ", ".join(references.names))
    return ("\n".join(lines) + "\n").encode("utf-8") + body
