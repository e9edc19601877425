"""
Workflow YAML to IR.

The decoder is lenient where GitHub is: ``on`` may be a scalar, a list or a
mapping, ``needs`` may be a single id, ``environment`` and ``concurrency``
may be plain strings. Structural problems are collected as diagnostics and
decoding continues with the next job or step.
"""

import logging
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from typed_actions.emitter.yaml_dumper import load
from typed_actions.globals.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticLevel,
    error,
    warning,
)
from typed_actions.globals.pos import Pos
from typed_actions.model.expressions import Raw
from typed_actions.model.keys import attr_for
from typed_actions.model.triggers import (
    EVENT_TYPES,
    BareTrigger,
    ScheduleTrigger,
    Triggers,
    WorkflowCallTrigger,
    WorkflowDispatchTrigger,
    WorkflowInput,
    WorkflowOutput,
    WorkflowSecret,
)
from typed_actions.model.workflow import (
    Concurrency,
    Container,
    Credentials,
    Defaults,
    Environment,
    Job,
    Matrix,
    Permissions,
    RunDefaults,
    Step,
    Strategy,
    Workflow,
)

logger = logging.getLogger(__name__)

_WHOLE_EXPRESSION = re.compile(r"^\$\{\{ (.*) \}\}$", re.DOTALL)
MATRIX_RESERVED = ("include", "exclude")


def decode_expression(value: Any) -> Any:
    """Turn a string that is exactly one ``${{ ... }}`` term into ``Raw``.

    Only strings that ``Raw.render`` reproduces byte for byte are converted.
    """
    if not isinstance(value, str):
        return value
    match = _WHOLE_EXPRESSION.match(value)
    if not match:
        return value
    inner = match.group(1)
    if "}}" in inner or inner != inner.strip() or not inner:
        return value
    return Raw(text=inner)


def _decode_mapping(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(k): decode_expression(v) for k, v in data.items()}


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


@dataclass
class ImportResult:
    """Outcome of decoding one YAML document."""

    workflow: Optional[Workflow] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.workflow is not None and not any(
            d.level == DiagnosticLevel.ERR for d in self.diagnostics
        )


class WorkflowParser:
    """Decodes workflow YAML text into the IR.

    Args:
        path: File name used in diagnostics.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self.diagnostics: List[Diagnostic] = []

    def _error(self, desc: str, pos: Optional[Pos] = None) -> None:
        self.diagnostics.append(error(DiagnosticKind.IMPORT, desc, path=self.path, pos=pos))

    def _warn(self, desc: str) -> None:
        self.diagnostics.append(warning(DiagnosticKind.IMPORT, desc, path=self.path))

    def parse(self, text: str) -> ImportResult:
        self.diagnostics = []
        try:
            data = load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            self._error(f"invalid YAML: {getattr(e, 'problem', None) or e}", Pos.from_mark(mark) if mark else None)
            return ImportResult(diagnostics=self.diagnostics)

        if not isinstance(data, dict):
            self._error("workflow document must be a mapping")
            return ImportResult(diagnostics=self.diagnostics)

        workflow = self.workflow(data)
        logger.debug("Decoded %s: %d jobs, %d diagnostics", self.path or "<input>", len(workflow.jobs), len(self.diagnostics))
        return ImportResult(workflow=workflow, diagnostics=self.diagnostics)

    def workflow(self, data: Dict[str, Any]) -> Workflow:
        kwargs: Dict[str, Any] = {}
        if "on" not in data:
            self._error("workflow has no 'on' triggers")
        for key, value in data.items():
            match key:
                case "name":
                    kwargs["name"] = None if value is None else str(value)
                case "on":
                    kwargs["on"] = self.triggers(value)
                case "permissions":
                    kwargs["permissions"] = self.permissions(value)
                case "defaults":
                    kwargs["defaults"] = self.defaults(value)
                case "concurrency":
                    kwargs["concurrency"] = self.concurrency(value)
                case "env":
                    kwargs["env"] = self.mapping(value, "env")
                case "jobs":
                    kwargs["jobs"] = self.jobs(value)
                case _:
                    self._warn(f"unknown workflow key '{key}' ignored")
        return Workflow(**kwargs)

    def mapping(self, value: Any, where: str) -> Dict[str, Any]:
        if value is None:
            return {}
        if not isinstance(value, dict):
            self._error(f"{where} must be a mapping")
            return {}
        return _decode_mapping(value)

    def triggers(self, value: Any) -> Triggers:
        events: Dict[str, Any] = {}
        if value is None:
            return Triggers()
        if isinstance(value, str):
            value = [value]
        if isinstance(value, list):
            for name in value:
                trigger = self.bare_trigger(str(name))
                if trigger is not None:
                    events[str(name)] = trigger
            return Triggers(**events)
        if not isinstance(value, dict):
            self._error("'on' must be an event name, a list or a mapping")
            return Triggers()

        for name, payload in value.items():
            name = str(name)
            if name not in EVENT_TYPES:
                self._warn(f"unknown event '{name}' ignored")
                continue
            if name == "schedule":
                events[name] = self.schedule(payload)
            elif payload is None:
                trigger = self.bare_trigger(name)
                if trigger is not None:
                    events[name] = trigger
            elif not isinstance(payload, dict):
                self._error(f"event '{name}' must be empty or a mapping")
            elif name in ("workflow_dispatch", "workflow_call"):
                events[name] = self.callable_trigger(name, payload)
            else:
                events[name] = self.trigger_payload(name, payload)
        return Triggers(**events)

    def bare_trigger(self, name: str) -> Optional[Any]:
        cls = EVENT_TYPES.get(name)
        if cls is None:
            self._warn(f"unknown event '{name}' ignored")
            return None
        if cls is ScheduleTrigger:
            self._error("schedule needs a list of cron entries")
            return None
        return cls()

    def schedule(self, payload: Any) -> List[ScheduleTrigger]:
        entries: List[ScheduleTrigger] = []
        for entry in _as_list(payload):
            if isinstance(entry, dict) and "cron" in entry:
                entries.append(ScheduleTrigger(cron=str(entry["cron"])))
            else:
                self._error("schedule entries must be mappings with a cron key")
        return entries

    def trigger_payload(self, name: str, payload: Dict[str, Any]) -> Any:
        cls = EVENT_TYPES[name]
        if issubclass(cls, BareTrigger):
            if payload:
                self._warn(f"event '{name}' takes no configuration")
            return cls()
        kwargs: Dict[str, Any] = {}
        for key, value in payload.items():
            attr = attr_for(cls, str(key))
            if attr is None:
                self._warn(f"unknown key '{key}' in event '{name}' ignored")
                continue
            kwargs[attr] = [str(v) for v in _as_list(value)]
        return cls(**kwargs)

    def callable_trigger(self, name: str, payload: Dict[str, Any]) -> Any:
        kwargs: Dict[str, Any] = {}
        for key, value in payload.items():
            match key:
                case "inputs":
                    kwargs["inputs"] = {
                        str(k): self.model(WorkflowInput, v or {}, f"{name} input '{k}'")
                        for k, v in (value or {}).items()
                    }
                case "outputs" if name == "workflow_call":
                    kwargs["outputs"] = {
                        str(k): self.model(WorkflowOutput, v or {}, f"{name} output '{k}'")
                        for k, v in (value or {}).items()
                    }
                case "secrets" if name == "workflow_call":
                    kwargs["secrets"] = {
                        str(k): self.model(WorkflowSecret, v or {}, f"{name} secret '{k}'")
                        for k, v in (value or {}).items()
                    }
                case _:
                    self._warn(f"unknown key '{key}' in event '{name}' ignored")
        cls = WorkflowDispatchTrigger if name == "workflow_dispatch" else WorkflowCallTrigger
        return cls(**kwargs)

    def model(self, cls: type, data: Any, where: str) -> Any:
        """Decode a flat mapping into a model class by key name."""
        if not isinstance(data, dict):
            self._error(f"{where} must be a mapping")
            data = {}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            attr = attr_for(cls, str(key))
            if attr is None:
                self._warn(f"unknown key '{key}' in {where} ignored")
                continue
            kwargs[attr] = decode_expression(value)
        names = {f.name for f in fields(cls)}
        try:
            return cls(**{k: v for k, v in kwargs.items() if k in names})
        except TypeError as e:
            self._error(f"{where} is incomplete: {e}")
            return None

    def permissions(self, value: Any) -> Optional[Permissions]:
        if value is None:
            return None
        if isinstance(value, str):
            return Permissions(preset=value)
        if not isinstance(value, dict):
            self._error("permissions must be read-all, write-all or a mapping")
            return None
        if "preset" in value:
            self._warn("unknown permission 'preset' ignored")
            value = {k: v for k, v in value.items() if k != "preset"}
        return self.model(Permissions, value, "permissions")

    def defaults(self, value: Any) -> Optional[Defaults]:
        if not isinstance(value, dict):
            self._error("defaults must be a mapping")
            return None
        run = value.get("run")
        if run is None:
            return Defaults()
        return Defaults(run=self.model(RunDefaults, run, "defaults.run"))

    def concurrency(self, value: Any) -> Optional[Concurrency]:
        if isinstance(value, str):
            return Concurrency(group=decode_expression(value))
        return self.model(Concurrency, value, "concurrency")

    def environment(self, value: Any) -> Optional[Environment]:
        if isinstance(value, str):
            return Environment(name=value)
        return self.model(Environment, value, "environment")

    def container(self, value: Any, where: str) -> Optional[Container]:
        if isinstance(value, str):
            return Container(image=decode_expression(value))
        if not isinstance(value, dict):
            self._error(f"{where} must be an image name or a mapping")
            return None
        value = dict(value)
        credentials = value.pop("credentials", None)
        env = value.pop("env", None)
        container = self.model(Container, value, where)
        if container is None:
            return None
        extra: Dict[str, Any] = {}
        if credentials is not None:
            extra["credentials"] = self.model(Credentials, credentials, f"{where} credentials")
        if env is not None:
            extra["env"] = self.mapping(env, f"{where} env")
        return replace(container, ports=_as_list(container.ports), volumes=_as_list(container.volumes), **extra)

    def jobs(self, value: Any) -> Dict[str, Job]:
        if not isinstance(value, dict):
            self._error("jobs must be a mapping")
            return {}
        jobs: Dict[str, Job] = {}
        for job_id, data in value.items():
            job_id = str(job_id)
            if not isinstance(data, dict):
                self._error(f"job '{job_id}' must be a mapping")
                continue
            job = self.job(job_id, data)
            if job is not None:
                jobs[job_id] = job
        return jobs

    def job(self, job_id: str, data: Dict[str, Any]) -> Optional[Job]:
        kwargs: Dict[str, Any] = {}
        where = f"job '{job_id}'"
        for key, value in data.items():
            match key:
                case "name":
                    kwargs["name"] = str(value)
                case "runs-on":
                    kwargs["runs_on"] = decode_expression(value)
                case "needs":
                    kwargs["needs"] = [str(n) for n in _as_list(value)]
                case "if":
                    kwargs["if_"] = decode_expression(value)
                case "permissions":
                    kwargs["permissions"] = self.permissions(value)
                case "environment":
                    kwargs["environment"] = self.environment(value)
                case "concurrency":
                    kwargs["concurrency"] = self.concurrency(value)
                case "outputs":
                    kwargs["outputs"] = self.mapping(value, f"{where} outputs")
                case "env":
                    kwargs["env"] = self.mapping(value, f"{where} env")
                case "defaults":
                    kwargs["defaults"] = self.defaults(value)
                case "strategy":
                    kwargs["strategy"] = self.strategy(value, where)
                case "container":
                    kwargs["container"] = self.container(value, f"{where} container")
                case "services":
                    if isinstance(value, dict):
                        kwargs["services"] = {
                            str(k): self.container(v, f"{where} service '{k}'")
                            for k, v in value.items()
                        }
                    else:
                        self._error(f"{where} services must be a mapping")
                case "steps":
                    kwargs["steps"] = self.steps(value, where)
                case "uses":
                    kwargs["uses"] = str(value)
                case "with":
                    kwargs["with_"] = self.mapping(value, f"{where} with")
                case "secrets":
                    kwargs["secrets"] = value if isinstance(value, str) else self.mapping(value, f"{where} secrets")
                case "timeout-minutes":
                    kwargs["timeout_minutes"] = decode_expression(value)
                case "continue-on-error":
                    kwargs["continue_on_error"] = decode_expression(value)
                case _:
                    self._warn(f"unknown key '{key}' in {where} ignored")
        return Job(**{k: v for k, v in kwargs.items() if v is not None})

    def strategy(self, value: Any, where: str) -> Optional[Strategy]:
        if not isinstance(value, dict):
            self._error(f"{where} strategy must be a mapping")
            return None
        kwargs: Dict[str, Any] = {}
        for key, item in value.items():
            match key:
                case "matrix":
                    kwargs["matrix"] = self.matrix(item)
                case "fail-fast":
                    kwargs["fail_fast"] = decode_expression(item)
                case "max-parallel":
                    kwargs["max_parallel"] = decode_expression(item)
                case _:
                    self._warn(f"unknown key '{key}' in {where} strategy ignored")
        return Strategy(**kwargs)

    def matrix(self, value: Any) -> Any:
        if not isinstance(value, dict):
            return decode_expression(value)
        axes = {str(k): v for k, v in value.items() if k not in MATRIX_RESERVED}
        return Matrix(
            values=axes,
            include=_as_list(value.get("include")),
            exclude=_as_list(value.get("exclude")),
        )

    def steps(self, value: Any, where: str) -> List[Step]:
        if not isinstance(value, list):
            self._error(f"{where} steps must be a list")
            return []
        steps: List[Step] = []
        for index, data in enumerate(value):
            label = f"step {index + 1} of {where}"
            if not isinstance(data, dict):
                self._error(f"{label} must be a mapping")
                continue
            kwargs: Dict[str, Any] = {}
            for key, item in data.items():
                attr = attr_for(Step, str(key))
                if attr is None:
                    self._warn(f"unknown key '{key}' in {label} ignored")
                    continue
                if attr in ("with_", "env"):
                    kwargs[attr] = self.mapping(item, f"{label} {key}")
                elif attr in ("run", "shell", "uses", "id", "name", "working_directory"):
                    kwargs[attr] = None if item is None else str(item)
                else:
                    kwargs[attr] = decode_expression(item)
            steps.append(Step(**kwargs))
        return steps


def parse_workflow(text: str, path: Optional[str] = None) -> ImportResult:
    return WorkflowParser(path).parse(text)


def parse_workflow_file(path: Path) -> ImportResult:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        return ImportResult(diagnostics=[error(DiagnosticKind.IO, f"cannot read file: {e}", path=str(path))])
    return parse_workflow(text, str(path))
