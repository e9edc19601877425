"""PyYAML dumper and loader tuned for workflow files.

Only ``true``/``false`` resolve to booleans, so ``on`` stays a plain string
key in both directions. Other YAML 1.1 boolean words are quoted when
dumped as values so that 1.1 readers still see strings. Sequences are
indented under their parent key, ``None`` renders as an empty value and
multi-line strings use literal block style.
"""

import re
from typing import Any

import yaml

BOOL_TAG = "tag:yaml.org,2002:bool"
_BOOL_PATTERN = re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$")
_YAML11_BOOL_PATTERN = re.compile(r"^(?:y|Y|yes|Yes|YES|n|N|no|No|NO|on|On|ON|off|Off|OFF)$")


def _restrict_booleans(cls: type) -> None:
    cls.yaml_implicit_resolvers = {
        first: [(tag, regexp) for tag, regexp in resolvers if tag != BOOL_TAG]
        for first, resolvers in yaml.resolver.Resolver.yaml_implicit_resolvers.items()
    }
    cls.add_implicit_resolver(BOOL_TAG, _BOOL_PATTERN, list("tTfF"))


class WorkflowLoader(yaml.SafeLoader):
    pass


class WorkflowDumper(yaml.SafeDumper):
    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)

    def choose_scalar_style(self) -> str:
        style = super().choose_scalar_style()
        if style == "" and not self.simple_key_context and _YAML11_BOOL_PATTERN.match(self.event.value):
            return "'"
        return style


def _represent_str(dumper: WorkflowDumper, data: str) -> yaml.ScalarNode:
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style="|")
    return dumper.represent_scalar("tag:yaml.org,2002:str", data)


def _represent_none(dumper: WorkflowDumper, data: None) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:null", "")


_restrict_booleans(WorkflowLoader)
_restrict_booleans(WorkflowDumper)
WorkflowDumper.add_representer(str, _represent_str)
WorkflowDumper.add_representer(type(None), _represent_none)


def dump(data: Any) -> bytes:
    """Serialize plain data to UTF-8 YAML with LF line endings."""
    text = yaml.dump(
        data,
        Dumper=WorkflowDumper,
        sort_keys=False,
        default_flow_style=False,
        indent=2,
        width=float("inf"),
        allow_unicode=True,
        line_break="\n",
    )
    return text.encode("utf-8")


def load(text: str) -> Any:
    return yaml.load(text, Loader=WorkflowLoader)
