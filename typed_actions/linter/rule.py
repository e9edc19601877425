from __future__ import annotations

import ast
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Generator, List, Optional

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLevel
from typed_actions.globals.pos import Pos
from typed_actions.linter.fixer import Fixer


@dataclass
class SourceModule:
    """A parsed source file plus the helpers rules need to locate nodes."""

    path: str
    text: str
    tree: ast.Module
    parents: Dict[int, ast.AST] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.lines: List[str] = self.text.splitlines(keepends=True)
        self._offsets: List[int] = []
        total = 0
        for line in self.lines:
            self._offsets.append(total)
            total += len(line)
        for node in ast.walk(self.tree):
            for child in ast.iter_child_nodes(node):
                self.parents[id(child)] = node

    @classmethod
    def parse(cls, path: str, text: str) -> "SourceModule":
        return cls(path=path, text=text, tree=ast.parse(text, filename=path))

    def parent(self, node: ast.AST) -> Optional[ast.AST]:
        return self.parents.get(id(node))

    def index(self, lineno: int, col_offset: int) -> int:
        """Character index of an ast position; ``col_offset`` counts UTF-8 bytes."""
        if lineno - 1 >= len(self.lines):
            return len(self.text)
        line = self.lines[lineno - 1]
        chars = len(line.encode("utf-8")[:col_offset].decode("utf-8", errors="ignore"))
        return self._offsets[lineno - 1] + chars

    def segment(self, node: ast.expr) -> tuple:
        """(start index, source text) of ``node``."""
        start = self.index(node.lineno, node.col_offset)
        end = self.index(node.end_lineno, node.end_col_offset)
        return start, self.text[start:end]


def callee(node: ast.AST) -> Optional[str]:
    """Unqualified name of the called class or function."""
    if not isinstance(node, ast.Call):
        return None
    func = node.func
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def keyword(call: ast.Call, name: str) -> Optional[ast.expr]:
    for kw in call.keywords:
        if kw.arg == name:
            return kw.value
    return None


def string_value(node: Optional[ast.AST]) -> Optional[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


class Rule(ABC):
    """A style rule over one source module.

    The fixer can be a NoFixer when only reporting is wanted.
    """

    NAME = ""
    DESCRIPTION = ""
    LEVEL = DiagnosticLevel.WAR

    def __init__(self, module: SourceModule, fixer: Fixer) -> None:
        self.module = module
        self.fixer = fixer

    @abstractmethod
    def check(self) -> Generator[Diagnostic, None, None]:
        """Yield a diagnostic per violation found in the module."""
        pass

    def problem(self, node: ast.AST, desc: str, level: Optional[DiagnosticLevel] = None) -> Diagnostic:
        return Diagnostic(
            kind=DiagnosticKind.LINT,
            desc=desc,
            level=level or self.LEVEL,
            path=self.module.path,
            pos=Pos.from_node(node) if hasattr(node, "lineno") else Pos(0, 0),
            rule=self.NAME,
        )
