"""
Importers for CODEOWNERS, dependabot.yml, issue and discussion forms and PR
templates.

Each parser returns the typed value plus diagnostics; ``generate_module``
renders any of them as a module with one top-level symbol.
"""

from dataclasses import fields
from typing import Any, Dict, List, Optional, Tuple

import yaml

from typed_actions.emitter.yaml_dumper import load
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error, warning
from typed_actions.globals.pos import Pos
from typed_actions.importer.codegen import SourceRenderer, import_line
from typed_actions.model.codeowners import Codeowners, Rule
from typed_actions.model.dependabot import (
    Allow,
    CommitMessage,
    DependabotConfig,
    Group,
    Ignore,
    PullRequestBranchName,
    Registry,
    Schedule,
    Update,
)
from typed_actions.model.keys import attr_for
from typed_actions.model.templates import (
    ELEMENT_TYPES,
    CheckboxOption,
    Checkboxes,
    DiscussionTemplate,
    IssueTemplate,
    PRTemplate,
)


def parse_codeowners(text: str, path: Optional[str] = None) -> Tuple[Codeowners, List[Diagnostic]]:
    """Parse CODEOWNERS text.

    A full-line comment attaches to the next rule; an inline `` #`` comment
    on a rule line wins over a pending full-line one.
    """
    rules: List[Rule] = []
    diagnostics: List[Diagnostic] = []
    pending: Optional[str] = None

    for lineno, line in enumerate(text.splitlines()):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            pending = stripped[1:].strip()
            continue

        comment = None
        marker = stripped.find(" #")
        if marker > 0:
            comment = stripped[marker + 2:].strip()
            stripped = stripped[:marker].strip()
        parts = stripped.split()
        if len(parts) < 2:
            diagnostics.append(
                error(
                    DiagnosticKind.IMPORT,
                    "rule needs a pattern and at least one owner",
                    path=path,
                    pos=Pos(lineno, 0),
                )
            )
            continue
        if comment is None and pending:
            comment = pending
        pending = None
        rules.append(Rule(pattern=parts[0], owners=parts[1:], comment=comment or None))
    return Codeowners(rules=rules), diagnostics


class _ConfigDecoder:
    def __init__(self, path: Optional[str]) -> None:
        self.path = path
        self.diagnostics: List[Diagnostic] = []

    def load(self, text: str) -> Optional[Dict[str, Any]]:
        try:
            data = load(text)
        except yaml.YAMLError as e:
            mark = getattr(e, "problem_mark", None)
            self.diagnostics.append(
                error(
                    DiagnosticKind.IMPORT,
                    f"invalid YAML: {getattr(e, 'problem', None) or e}",
                    path=self.path,
                    pos=Pos.from_mark(mark) if mark else None,
                )
            )
            return None
        if not isinstance(data, dict):
            self.diagnostics.append(error(DiagnosticKind.IMPORT, "document must be a mapping", path=self.path))
            return None
        return data

    def model(self, cls: type, data: Any, where: str, nested: Optional[Dict[str, Any]] = None) -> Any:
        if not isinstance(data, dict):
            self.diagnostics.append(error(DiagnosticKind.IMPORT, f"{where} must be a mapping", path=self.path))
            return None
        nested = nested or {}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            attr = attr_for(cls, str(key))
            if attr is None:
                self.diagnostics.append(
                    warning(DiagnosticKind.IMPORT, f"unknown key '{key}' in {where} ignored", path=self.path)
                )
                continue
            if attr in nested:
                value = nested[attr](value, f"{where} {key}")
            kwargs[attr] = value
        try:
            return cls(**kwargs)
        except TypeError as e:
            self.diagnostics.append(error(DiagnosticKind.IMPORT, f"{where} is incomplete: {e}", path=self.path))
            return None

    def many(self, cls: type, nested: Optional[Dict[str, Any]] = None):
        def decode(value: Any, where: str) -> List[Any]:
            items = [self.model(cls, v, f"{where}[{i}]", nested) for i, v in enumerate(value or [])]
            return [item for item in items if item is not None]

        return decode

    def keyed(self, cls: type):
        def decode(value: Any, where: str) -> Dict[str, Any]:
            items = {str(k): self.model(cls, v, f"{where}.{k}") for k, v in (value or {}).items()}
            return {k: v for k, v in items.items() if v is not None}

        return decode

    def one(self, cls: type):
        return lambda value, where: self.model(cls, value, where)


def parse_dependabot(text: str, path: Optional[str] = None) -> Tuple[Optional[DependabotConfig], List[Diagnostic]]:
    decoder = _ConfigDecoder(path)
    data = decoder.load(text)
    if data is None:
        return None, decoder.diagnostics
    update_fields = {
        "schedule": decoder.one(Schedule),
        "allow": decoder.many(Allow),
        "ignore": decoder.many(Ignore),
        "groups": decoder.keyed(Group),
        "commit_message": decoder.one(CommitMessage),
        "pull_request_branch_name": decoder.one(PullRequestBranchName),
    }
    config = decoder.model(
        DependabotConfig,
        data,
        "dependabot",
        {"updates": decoder.many(Update, update_fields), "registries": decoder.keyed(Registry)},
    )
    return config, decoder.diagnostics


def _element(decoder: _ConfigDecoder, data: Any, where: str) -> Any:
    if not isinstance(data, dict) or data.get("type") not in ELEMENT_TYPES:
        decoder.diagnostics.append(
            error(DiagnosticKind.IMPORT, f"{where} has no known form element type", path=decoder.path)
        )
        return None
    cls = ELEMENT_TYPES[data["type"]]
    flat: Dict[str, Any] = dict(data.get("attributes") or {})
    if data.get("id"):
        flat["id"] = data["id"]
    validations = data.get("validations") or {}
    if validations.get("required") and any(f.name == "required" for f in fields(cls)):
        flat["required"] = True
    if cls is Checkboxes:
        flat["options"] = [
            CheckboxOption(label=str(o.get("label", "")), required=bool(o.get("required", False)))
            for o in flat.get("options") or []
            if isinstance(o, dict)
        ]
    return decoder.model(cls, flat, where)


def _as_list(value: Any, where: str) -> List[str]:
    """A list, or a comma-delimited string of items."""
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value or []]


def _form(
    text: str, path: Optional[str], cls: type, label: str, lists: Tuple[str, ...]
) -> Tuple[Any, List[Diagnostic]]:
    """Decode an issue or discussion form; ``lists`` name the fields that may be comma-delimited."""
    decoder = _ConfigDecoder(path)
    data = decoder.load(text)
    if data is None:
        return None, decoder.diagnostics

    def body(value: Any, where: str) -> List[Any]:
        elements = [_element(decoder, v, f"{where}[{i}]") for i, v in enumerate(value or [])]
        return [e for e in elements if e is not None]

    decoders = {name: _as_list for name in lists}
    decoders["body"] = body
    return decoder.model(cls, data, label, decoders), decoder.diagnostics


def parse_issue_template(text: str, path: Optional[str] = None) -> Tuple[Optional[IssueTemplate], List[Diagnostic]]:
    return _form(text, path, IssueTemplate, "issue template", ("labels", "assignees", "projects"))


def parse_discussion_template(
    text: str, path: Optional[str] = None
) -> Tuple[Optional[DiscussionTemplate], List[Diagnostic]]:
    return _form(text, path, DiscussionTemplate, "discussion template", ("labels",))


def parse_pr_template(content: str, name: Optional[str] = None) -> PRTemplate:
    return PRTemplate(content=content, name=name or None)


def generate_module(value: Any, symbol: str, doc: str) -> str:
    """Source for a module declaring ``symbol = <value>``."""
    renderer = SourceRenderer()
    rendered = renderer.value(value)
    return f'"""{doc}"""\n\n{import_line(renderer.imports)}\n\n\n{symbol} = {rendered}\n'
