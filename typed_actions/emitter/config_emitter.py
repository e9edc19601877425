"""Serializers for the repository files that sit next to workflows."""

from typing import Any, Dict, List

from typed_actions.emitter.workflow_emitter import emit_object, emit_value
from typed_actions.emitter.yaml_dumper import dump
from typed_actions.globals.errors import EmitError
from typed_actions.model.codeowners import Codeowners
from typed_actions.model.dependabot import DependabotConfig
from typed_actions.model.templates import (
    Checkboxes,
    DiscussionTemplate,
    Dropdown,
    Input,
    IssueTemplate,
    Markdown,
    PRTemplate,
    Textarea,
    element_type,
)


def emit_dependabot(config: DependabotConfig) -> bytes:
    data: Dict[str, Any] = {"version": config.version}
    if config.enable_beta_ecosystems:
        data["enable-beta-ecosystems"] = True
    if config.registries:
        data["registries"] = emit_value(config.registries)
    data["updates"] = [emit_object(update, always=("package_ecosystem",)) for update in config.updates]
    return dump(data)


def _element(element: Any) -> Dict[str, Any]:
    try:
        data: Dict[str, Any] = {"type": element_type(element)}
    except TypeError as e:
        raise EmitError(str(e)) from e
    if element.id:
        data["id"] = element.id

    attributes: Dict[str, Any] = {}
    match element:
        case Markdown():
            attributes["value"] = element.value
        case Input() | Textarea():
            attributes["label"] = element.label
            for attr in ("description", "placeholder", "value"):
                if getattr(element, attr):
                    attributes[attr] = getattr(element, attr)
            if isinstance(element, Textarea) and element.render:
                attributes["render"] = element.render
        case Dropdown():
            attributes["label"] = element.label
            if element.description:
                attributes["description"] = element.description
            attributes["options"] = list(element.options)
            if element.multiple:
                attributes["multiple"] = True
            if element.default is not None:
                attributes["default"] = element.default
        case Checkboxes():
            attributes["label"] = element.label
            if element.description:
                attributes["description"] = element.description
            attributes["options"] = [
                {"label": o.label, "required": True} if o.required else {"label": o.label}
                for o in element.options
            ]
    data["attributes"] = attributes

    if getattr(element, "required", False):
        data["validations"] = {"required": True}
    return data


def emit_issue_template(template: IssueTemplate) -> bytes:
    data: Dict[str, Any] = {"name": template.name, "description": template.description}
    if template.title:
        data["title"] = template.title
    for attr in ("labels", "projects", "assignees"):
        if getattr(template, attr):
            data[attr] = list(getattr(template, attr))
    data["body"] = [_element(e) for e in template.body]
    return dump(data)


def emit_discussion_template(template: DiscussionTemplate) -> bytes:
    data: Dict[str, Any] = {"title": template.title, "description": template.description}
    if template.labels:
        data["labels"] = list(template.labels)
    data["body"] = [_element(e) for e in template.body]
    return dump(data)


def emit_codeowners(owners: Codeowners) -> bytes:
    lines: List[str] = []
    for rule in owners.rules:
        if rule.comment:
            lines.extend(f"# {line}".rstrip() for line in rule.comment.splitlines())
        lines.append(" ".join([rule.pattern] + list(rule.owners)))
    return ("\n".join(lines) + "\n").encode("utf-8") if lines else b""


def emit_pr_template(template: PRTemplate) -> bytes:
    content = template.content
    if content and not content.endswith("\n"):
        content += "\n"
    return content.encode("utf-8")

