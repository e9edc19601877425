"""Issue form, discussion form and pull request template carriers.

Form elements are a tagged union keyed by their ``type`` in YAML. Element
attributes live flat on each class and are nested under ``attributes`` and
``validations`` on the way out.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True, kw_only=True)
class Markdown:
    value: str
    id: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Input:
    label: str
    id: Optional[str] = None
    description: Optional[str] = None
    placeholder: Optional[str] = None
    value: Optional[str] = None
    required: bool = False


@dataclass(frozen=True, kw_only=True)
class Textarea:
    label: str
    id: Optional[str] = None
    description: Optional[str] = None
    placeholder: Optional[str] = None
    value: Optional[str] = None
    render: Optional[str] = None
    required: bool = False


@dataclass(frozen=True, kw_only=True)
class Dropdown:
    label: str
    options: List[str] = field(default_factory=list)
    id: Optional[str] = None
    description: Optional[str] = None
    multiple: bool = False
    default: Optional[int] = None
    required: bool = False


@dataclass(frozen=True, kw_only=True)
class CheckboxOption:
    label: str
    required: bool = False


@dataclass(frozen=True, kw_only=True)
class Checkboxes:
    label: str
    options: List[CheckboxOption] = field(default_factory=list)
    id: Optional[str] = None
    description: Optional[str] = None


FormElement = Union[Markdown, Input, Textarea, Dropdown, Checkboxes]

ELEMENT_TYPES = {
    "markdown": Markdown,
    "input": Input,
    "textarea": Textarea,
    "dropdown": Dropdown,
    "checkboxes": Checkboxes,
}


def element_type(element: FormElement) -> str:
    for name, cls in ELEMENT_TYPES.items():
        if type(element) is cls:
            return name
    raise TypeError(f"unknown form element {type(element).__name__}")


@dataclass(frozen=True, kw_only=True)
class IssueTemplate:
    name: str
    description: str
    title: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    projects: List[str] = field(default_factory=list)
    assignees: List[str] = field(default_factory=list)
    body: List[FormElement] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class DiscussionTemplate:
    """Discussion category form. Built to ``DISCUSSION_TEMPLATE/<title>.yml``."""

    title: str
    description: str
    labels: List[str] = field(default_factory=list)
    body: List[FormElement] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class PRTemplate:
    """Raw Markdown pull request template. An unnamed template is the default one."""

    content: str
    name: Optional[str] = None

    def filename(self) -> str:
        if not self.name:
            return "PULL_REQUEST_TEMPLATE.md"
        return f"PULL_REQUEST_TEMPLATE/{self.name}.md"
