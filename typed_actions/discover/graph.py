"""Job dependency graph export in DOT, Mermaid and JSON form."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from typed_actions.model.validation import dependency_graph
from typed_actions.model.workflow import Workflow

DIRECTIONS = ("TB", "LR")
FORMATS = ("dot", "mermaid", "json")


@dataclass
class JobGraph:
    """
    Jobs as nodes, ``needs`` as edges.

    Attributes:
        edges: Job to the jobs it needs. Nodes and their dependency lists
            are kept sorted.
    """

    edges: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_workflow(cls, workflow: Workflow, prefix: str = "") -> "JobGraph":
        graph = dependency_graph(workflow)
        return cls(
            edges={prefix + job: sorted(prefix + d for d in deps) for job, deps in sorted(graph.items())}
        )

    @classmethod
    def from_workflows(cls, workflows: Dict[str, Workflow]) -> "JobGraph":
        """Merge several workflows; with more than one, nodes are ``symbol/job``."""
        if len(workflows) == 1:
            return cls.from_workflow(next(iter(workflows.values())))
        edges: Dict[str, List[str]] = {}
        for symbol in sorted(workflows):
            edges.update(cls.from_workflow(workflows[symbol], f"{symbol}/").edges)
        return cls(edges=dict(sorted(edges.items())))

    @property
    def nodes(self) -> List[str]:
        return sorted(self.edges)

    def edge_count(self) -> int:
        return sum(len(deps) for deps in self.edges.values())

    def pairs(self):
        """(dependency, dependent) pairs in sorted order."""
        for node in self.nodes:
            for dep in self.edges[node]:
                yield dep, node

    def to_dot(self, direction: str = "TB") -> str:
        lines = ["digraph workflow {", f"  rankdir={direction};", "  node [shape=box];", ""]
        lines.extend(f"  {_quote(node)};" for node in self.nodes)
        lines.append("")
        lines.extend(f"  {_quote(dep)} -> {_quote(node)};" for dep, node in self.pairs())
        lines.append("}")
        return "\n".join(lines) + "\n"

    def to_mermaid(self, direction: str = "TB") -> str:
        lines = [f"graph {direction}"]
        pairs = list(self.pairs())
        if pairs:
            lines.extend(f"    {_mermaid_node(dep)} --> {_mermaid_node(node)}" for dep, node in pairs)
        else:
            lines.extend(f"    {_mermaid_node(node)}" for node in self.nodes)
        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "errors": [],
            "nodes": self.nodes,
            "edges": [{"from": dep, "to": node} for dep, node in self.pairs()],
        }

    def render(self, fmt: str, direction: str = "TB") -> str:
        match fmt:
            case "dot":
                return self.to_dot(direction)
            case "mermaid":
                return self.to_mermaid(direction)
            case _:
                raise ValueError(f"unknown graph format '{fmt}'")


def _quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _mermaid_node(name: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_]", "_", name)
    if safe == name:
        return name
    return f'{safe}["{name}"]'
