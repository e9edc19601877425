"""
IR to Python declarations.

Jobs, step lists and trigger payloads become top-level symbols so that the
generated package names the same sub-objects a hand-written one would. Two
jobs with identical steps share one step-list symbol.
"""

import json
import logging
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from typing import Any, Dict, List, Optional, Set

import typed_actions.model as model
from typed_actions.emitter.workflow_emitter import WorkflowEmitter, is_zero
from typed_actions.model.expressions import Expression, Literal
from typed_actions.model.triggers import BareTrigger, Triggers
from typed_actions.model.workflow import Step, Workflow
from typed_actions.naming import to_identifier

logger = logging.getLogger(__name__)

LINE_LIMIT = 88
INDENT = "    "
MODEL_NAMES: Set[str] = {name for name in dir(model) if name[:1].isupper()}
SORTED_KEY_FIELDS = {(Step, "with_"), (Step, "env")}


def string_literal(text: str) -> str:
    """Python literal for a string.

    Multi-line text becomes a raw triple-quoted literal when nothing in it
    can terminate one early.
    """
    if "\n" in text and _raw_safe(text):
        return 'r"""' + text + '"""'
    return json.dumps(text, ensure_ascii=False)


def _raw_safe(text: str) -> bool:
    if '"""' in text or "\r" in text:
        return False
    if text.endswith('"') or text.endswith("\\"):
        return False
    return all(c == "\n" or c == "\t" or c.isprintable() for c in text)


class SymbolAllocator:
    """Hands out unique top-level names that do not shadow DSL imports."""

    def __init__(self, taken: Optional[Set[str]] = None) -> None:
        self.used: Set[str] = set(MODEL_NAMES) | {"expr"} | set(taken or ())

    def allocate(self, base: str) -> str:
        name = base
        counter = 2
        while name in self.used:
            name = f"{base}{counter}"
            counter += 1
        self.used.add(name)
        return name


class SourceRenderer:
    """Renders IR values as Python expressions and records the imports used."""

    def __init__(self) -> None:
        self.imports: Set[str] = set()

    def value(self, value: Any, indent: str = "", sort_keys: bool = False) -> str:
        if isinstance(value, Literal):
            return self.value(value.value, indent)
        if isinstance(value, Expression):
            self.imports.add("expr")
            return f"expr({string_literal(value.inner())})"
        if value is None or isinstance(value, (bool, int, float)):
            return repr(value)
        if isinstance(value, str):
            return string_literal(value)
        if isinstance(value, (list, tuple)):
            inner = indent + INDENT
            return wrap("[", [self.value(v, inner) for v in value], "]", indent)
        if isinstance(value, dict):
            inner = indent + INDENT
            keys = sorted(value, key=str) if sort_keys else list(value)
            items = [f"{string_literal(str(k))}: {self.value(value[k], inner)}" for k in keys]
            return wrap("{", items, "}", indent)
        if is_dataclass(value) and not isinstance(value, type):
            return self.call(value, indent)
        raise TypeError(f"cannot generate source for {type(value).__name__}")

    def call(self, obj: Any, indent: str = "", overrides: Optional[Dict[str, str]] = None) -> str:
        """Render ``Class(field=value, ...)`` with default-valued fields left out."""
        cls = type(obj)
        self.imports.add(cls.__name__)
        overrides = overrides or {}
        inner = indent + INDENT
        args: List[str] = []
        for f in fields(obj):
            if f.name in overrides:
                args.append(f"{f.name}={overrides[f.name]}")
                continue
            value = getattr(obj, f.name)
            default = f.default if f.default is not MISSING else MISSING
            if f.default_factory is not MISSING:
                default = f.default_factory()
            if is_zero(value, default):
                continue
            sort_keys = (cls, f.name) in SORTED_KEY_FIELDS
            args.append(f"{f.name}={self.value(value, inner, sort_keys)}")
        return wrap(f"{cls.__name__}(", args, ")", indent)


def wrap(opening: str, items: List[str], closing: str, indent: str) -> str:
    if not items:
        return opening + closing
    flat = opening + ", ".join(items) + closing
    if "\n" not in flat and len(indent) + len(flat) <= LINE_LIMIT:
        return flat
    inner = indent + INDENT
    body = "".join(f"{inner}{item},\n" for item in items)
    return f"{opening}\n{body}{indent}{closing}"


@dataclass
class Declaration:
    symbol: str
    source: str
    section: str
    requires: List[str] = field(default_factory=list)
    imports: Set[str] = field(default_factory=set)


@dataclass
class GeneratedCode:
    """Generated files keyed by relative path, plus the workflow symbol."""

    files: Dict[str, str] = field(default_factory=dict)
    workflow_symbol: str = ""
    symbols: Dict[str, str] = field(default_factory=dict)


SECTIONS = ("steps", "triggers", "jobs", "workflows")
SECTION_DOCS = {
    "steps": "Step lists shared by jobs.",
    "triggers": "Trigger configuration.",
    "jobs": "Job declarations.",
    "workflows": "Workflow declarations.",
}


class CodeGenerator:
    """Generates a Python package declaring an imported workflow.

    Args:
        single_file: Put every declaration in ``workflows.py`` instead of the
            steps/triggers/jobs/workflows convention.
    """

    def __init__(self, single_file: bool = False) -> None:
        self.single_file = single_file

    def generate(self, workflow: Workflow, name: str) -> GeneratedCode:
        """Generate source for ``workflow``.

        Args:
            workflow: Imported workflow.
            name: Fallback label when the workflow has no display name,
                usually the YAML file stem.

        Returns:
            GeneratedCode: Files and the symbol table used.
        """
        allocator = SymbolAllocator()
        emitter = WorkflowEmitter(workflow)
        declarations: List[Declaration] = []
        wf_base = to_identifier(workflow.name or name)

        step_symbols: Dict[str, str] = {}
        job_steps: Dict[str, str] = {}
        job_symbols: Dict[str, str] = {}
        for job_id, job in workflow.jobs.items():
            job_symbols[job_id] = allocator.allocate(to_identifier(job_id))
        for job_id, job in workflow.jobs.items():
            if not job.steps:
                continue
            key = json.dumps(
                [emitter.step(job_id, i, s) for i, s in enumerate(job.steps)],
                sort_keys=True,
                default=str,
            )
            if key in step_symbols:
                job_steps[job_id] = step_symbols[key]
                continue
            symbol = allocator.allocate(to_identifier(f"{job_id} steps"))
            step_symbols[key] = symbol
            job_steps[job_id] = symbol
            renderer = SourceRenderer()
            source = f"{symbol} = {renderer.value(list(job.steps))}\n"
            declarations.append(Declaration(symbol, source, "steps", imports=renderer.imports))

        triggers_symbol = allocator.allocate(f"{wf_base}Triggers")
        declarations.extend(self._triggers(workflow.on, wf_base, triggers_symbol, allocator))

        for job_id, job in workflow.jobs.items():
            overrides: Dict[str, str] = {}
            requires: List[str] = []
            if job_id in job_steps:
                overrides["steps"] = job_steps[job_id]
                requires.append(job_steps[job_id])
            renderer = SourceRenderer()
            symbol = job_symbols[job_id]
            source = f"{symbol} = {renderer.call(job, overrides=overrides)}\n"
            declarations.append(Declaration(symbol, source, "jobs", requires, renderer.imports))

        wf_symbol = allocator.allocate(wf_base)
        jobs_items = [f"{string_literal(job_id)}: {job_symbols[job_id]}" for job_id in workflow.jobs]
        renderer = SourceRenderer()
        overrides = {"on": triggers_symbol, "jobs": wrap("{", jobs_items, "}", INDENT)}
        if not workflow.jobs:
            del overrides["jobs"]
        source = f"{wf_symbol} = {renderer.call(workflow, overrides=overrides)}\n"
        declarations.append(
            Declaration(
                wf_symbol,
                source,
                "workflows",
                [triggers_symbol] + list(job_symbols.values()),
                renderer.imports,
            )
        )

        files = self._assemble(declarations, workflow.name or name)
        logger.debug("Generated %d declarations for %s", len(declarations), wf_symbol)
        symbols = {d.symbol: d.section for d in declarations}
        return GeneratedCode(files=files, workflow_symbol=wf_symbol, symbols=symbols)

    def _triggers(
        self, triggers: Triggers, wf_base: str, triggers_symbol: str, allocator: SymbolAllocator
    ) -> List[Declaration]:
        declarations: List[Declaration] = []
        overrides: Dict[str, str] = {}
        emitted = WorkflowEmitter(Workflow(on=triggers)).triggers(triggers)
        for f in fields(triggers):
            payload = getattr(triggers, f.name)
            if payload is None or payload == [] or f.name not in emitted:
                continue
            if isinstance(payload, BareTrigger) or emitted[f.name] is None:
                continue
            symbol = allocator.allocate(wf_base + to_identifier(f.name))
            renderer = SourceRenderer()
            source = f"{symbol} = {renderer.value(payload)}\n"
            declarations.append(Declaration(symbol, source, "triggers", imports=renderer.imports))
            overrides[f.name] = symbol

        renderer = SourceRenderer()
        source = f"{triggers_symbol} = {renderer.call(triggers, overrides=overrides)}\n"
        declarations.append(
            Declaration(triggers_symbol, source, "triggers", list(overrides.values()), renderer.imports)
        )
        return declarations

    def _assemble(self, declarations: List[Declaration], title: str) -> Dict[str, str]:
        if self.single_file:
            body = "\n\n".join(d.source for d in declarations)
            imports: Set[str] = set()
            for d in declarations:
                imports |= d.imports
            header = f'"""{_docstring(title)} workflow."""\n\n' + import_line(imports) + "\n\n\n"
            return {"__init__.py": "", "workflows.py": header + body}

        files: Dict[str, str] = {"__init__.py": f'"""{_docstring(title)} workflow package."""\n'}
        owner = {d.symbol: d.section for d in declarations}
        for section in SECTIONS:
            section_decls = [d for d in declarations if d.section == section]
            if not section_decls:
                continue
            imports: Set[str] = set()
            local: Dict[str, List[str]] = {}
            for d in section_decls:
                imports |= d.imports
                for req in d.requires:
                    if owner.get(req) and owner[req] != section:
                        local.setdefault(owner[req], [])
                        if req not in local[owner[req]]:
                            local[owner[req]].append(req)
            lines = [f'"""{SECTION_DOCS[section]}"""', ""]
            if imports:
                lines.append(import_line(imports))
            for other in SECTIONS:
                if other in local:
                    lines.append(f"from .{other} import {', '.join(sorted(local[other]))}")
            header = "\n".join(lines) + "\n\n\n"
            files[f"{section}.py"] = header + "\n\n".join(d.source for d in section_decls)
        return files


def _docstring(title: str) -> str:
    return title.replace('"', "'").replace("\\", "/").strip() or "Imported"


def import_line(names: Set[str]) -> str:
    ordered = sorted(names)
    line = f"from typed_actions import {', '.join(ordered)}"
    if len(line) <= LINE_LIMIT:
        return line
    body = "".join(f"{INDENT}{n},\n" for n in ordered)
    return f"from typed_actions import (\n{body})"


def generate(workflow: Workflow, name: str, single_file: bool = False) -> GeneratedCode:
    return CodeGenerator(single_file=single_file).generate(workflow, name)

