"""Style rules WAG001 to WAG008."""

import ast
import keyword as py_keyword
import re
from typing import Dict, Generator, List, Optional, Set

from typed_actions.actions import wrapper_for
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticLevel
from typed_actions.linter.rule import Rule, callee, keyword, string_value

CONTEXT_ROOTS = ("github", "env", "vars", "secrets", "inputs", "matrix", "needs", "steps", "runner", "job", "strategy")
EXPRESSION_MODULE = "typed_actions.model.expressions"

SECRET_PATTERNS = [
    (re.compile(r"AKIA[0-9A-Z]{16}"), "AWS access key"),
    (re.compile(r"gh[pousr]_[A-Za-z0-9]{36,}"), "GitHub token"),
    (re.compile(r"github_pat_[A-Za-z0-9_]{22,}"), "GitHub fine-grained token"),
    (re.compile(r"-----BEGIN ([A-Z]+ )?PRIVATE KEY( BLOCK)?-----"), "private key"),
    (re.compile(r"[sr]k_(live|test)_[A-Za-z0-9]{20,}"), "Stripe key"),
    (re.compile(r"xox[baprs]-[0-9]{10,}-[0-9]{10,}-[A-Za-z0-9]{20,}"), "Slack token"),
    (re.compile(r"AIza[A-Za-z0-9_-]{35}"), "Google API key"),
    (re.compile(r"SG\.[A-Za-z0-9_-]{22}\.[A-Za-z0-9_-]{43}"), "SendGrid API key"),
    (re.compile(r"npm_[A-Za-z0-9]{36,}"), "npm token"),
    (re.compile(r"pypi-[A-Za-z0-9_-]{50,}"), "PyPI token"),
    (re.compile(r"eyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]*"), "JWT"),
]

EXPRESSION_LITERAL = re.compile(r"^\$\{\{\s*(.*?)\s*\}\}$", re.DOTALL)
CONTEXT_PATH = re.compile(r"^(%s)((\.[A-Za-z_][A-Za-z0-9_-]*)+)$" % "|".join(CONTEXT_ROOTS))
IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _strings(tree: ast.AST) -> Generator[ast.Constant, None, None]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str):
            yield node


class RawUses(Rule):
    """Flags ``Step(uses="...")`` for actions that have a typed wrapper."""

    NAME = "WAG001"
    DESCRIPTION = "Use typed action wrappers instead of raw uses strings"

    def check(self) -> Generator[Diagnostic, None, None]:
        for node in ast.walk(self.module.tree):
            if callee(node) != "Step":
                continue
            uses = string_value(keyword(node, "uses"))
            if uses is None:
                continue
            wrapper = wrapper_for(uses)
            if wrapper is not None:
                yield self.problem(
                    node, f"use {wrapper.__name__}(...).as_step() instead of uses='{uses}'"
                )


class RawCondition(Rule):
    """Flags string conditions passed to ``if_``."""

    NAME = "WAG002"
    DESCRIPTION = "Use condition builders instead of raw expression strings"

    def check(self) -> Generator[Diagnostic, None, None]:
        for node in ast.walk(self.module.tree):
            if not isinstance(node, ast.Call):
                continue
            condition = keyword(node, "if_")
            if string_value(condition) is not None:
                yield self.problem(condition, "condition is a raw string; build it from expression helpers")


class HardcodedSecret(Rule):
    NAME = "WAG003"
    DESCRIPTION = "Use the secrets context instead of hardcoded credentials"
    LEVEL = DiagnosticLevel.ERR

    def check(self) -> Generator[Diagnostic, None, None]:
        for node in _strings(self.module.tree):
            for pattern, label in SECRET_PATTERNS:
                if pattern.search(node.value):
                    yield self.problem(node, f"string looks like a hardcoded {label}; use secrets.<NAME> instead")
                    break


class InlineMatrix(Rule):
    """Flags ``Strategy(matrix={...})``."""

    NAME = "WAG004"
    DESCRIPTION = "Use Matrix(...) instead of an inline dict"

    def check(self) -> Generator[Diagnostic, None, None]:
        for node in ast.walk(self.module.tree):
            if callee(node) != "Strategy":
                continue
            matrix = keyword(node, "matrix")
            if isinstance(matrix, ast.Dict):
                yield self.problem(matrix, "matrix is an inline dict; use Matrix(values=...)")


class InlineJob(Rule):
    """Flags ``Job(...)`` written directly inside a workflow's jobs mapping."""

    NAME = "WAG005"
    DESCRIPTION = "Extract inline jobs to named top-level declarations"

    def check(self) -> Generator[Diagnostic, None, None]:
        for node in ast.walk(self.module.tree):
            if callee(node) != "Workflow":
                continue
            jobs = keyword(node, "jobs")
            if not isinstance(jobs, ast.Dict):
                continue
            for key, value in zip(jobs.keys, jobs.values):
                if callee(value) == "Job":
                    label = string_value(key) or "?"
                    yield self.problem(value, f"job '{label}' is declared inline; bind it to a top-level name")


class DuplicateWorkflowName(Rule):
    NAME = "WAG006"
    DESCRIPTION = "Workflow display names must be unique"

    def check(self) -> Generator[Diagnostic, None, None]:
        seen: Dict[str, int] = {}
        calls = [n for n in ast.walk(self.module.tree) if callee(n) == "Workflow"]
        for node in sorted(calls, key=lambda n: (n.lineno, n.col_offset)):
            name = string_value(keyword(node, "name"))
            if name is None:
                continue
            if name in seen:
                yield self.problem(node, f"workflow name '{name}' is already used on line {seen[name]}")
            else:
                seen[name] = node.lineno


class OversizedFile(Rule):
    NAME = "WAG007"
    DESCRIPTION = "Split files that declare too many jobs"
    MAX_JOBS = 10

    def check(self) -> Generator[Diagnostic, None, None]:
        jobs = [n for n in ast.walk(self.module.tree) if callee(n) == "Job"]
        if len(jobs) > self.MAX_JOBS:
            yield self.problem(
                self.module.tree,
                f"file declares {len(jobs)} jobs (more than {self.MAX_JOBS}); split it into several modules",
            )


class ExpressionLiteral(Rule):
    """Flags ``${{ ... }}`` text in string literals.

    A literal that is exactly one context access, such as
    ``"${{ github.sha }}"``, is rewritten to ``github.sha`` when fixing.
    """

    NAME = "WAG008"
    DESCRIPTION = "Avoid hardcoded expression strings"

    def check(self) -> Generator[Diagnostic, None, None]:
        fixes: List[tuple] = []
        for node in _strings(self.module.tree):
            if "${{" not in node.value or self._skipped(node):
                continue
            problem = self.problem(node, "hardcoded expression string; build it from expression helpers")
            replacement = self.replacement(node)
            if replacement is None:
                yield problem
                continue
            fixes.append((node, replacement, problem))

        if not fixes:
            return
        roots = {r.split(".")[0].split("[")[0] for _, r, _ in fixes}
        if not self._can_import(roots):
            for _, _, problem in fixes:
                yield problem
            return
        for node, replacement, problem in fixes:
            start, text = self.module.segment(node)
            yield self.fixer.edit_source_at_position(
                start, text, replacement, problem, f"replaced {text} with {replacement}"
            )
        self._add_import(roots)

    def _skipped(self, node: ast.Constant) -> bool:
        parent = self.module.parent(node)
        if isinstance(parent, ast.JoinedStr):
            return True
        # docstrings
        if isinstance(parent, ast.Expr):
            return True
        return isinstance(parent, ast.Call) and callee(parent) == "expr"

    @staticmethod
    def replacement(node: ast.Constant) -> Optional[str]:
        """Builder source for a pure context access literal."""
        match = EXPRESSION_LITERAL.match(node.value)
        if not match or not CONTEXT_PATH.match(match.group(1)):
            return None
        root, *parts = match.group(1).split(".")
        text = root
        for part in parts:
            if IDENTIFIER.match(part) and not py_keyword.iskeyword(part) and not part.startswith("_"):
                text += f".{part}"
            else:
                text += f'["{part}"]'
        return text

    def _can_import(self, roots: Set[str]) -> bool:
        for stmt in self.module.tree.body:
            if isinstance(stmt, ast.ImportFrom) and stmt.module == EXPRESSION_MODULE:
                continue
            targets: List[str] = []
            match stmt:
                case ast.Assign(targets=assigned):
                    targets = [t.id for t in assigned if isinstance(t, ast.Name)]
                case ast.AnnAssign(target=ast.Name(id=name)):
                    targets = [name]
                case ast.FunctionDef(name=name) | ast.ClassDef(name=name):
                    targets = [name]
                case ast.Import(names=aliases) | ast.ImportFrom(names=aliases):
                    targets = [a.asname or a.name.split(".")[0] for a in aliases]
            if roots & set(targets):
                return False
        return True

    def _add_import(self, roots: Set[str]) -> None:
        imported: Set[str] = set()
        last_import = None
        for stmt in self.module.tree.body:
            if isinstance(stmt, (ast.Import, ast.ImportFrom)):
                last_import = stmt
                if isinstance(stmt, ast.ImportFrom) and stmt.module == EXPRESSION_MODULE:
                    imported |= {a.asname or a.name for a in stmt.names}
        missing = sorted(roots - imported)
        if not missing:
            return
        line = f"from {EXPRESSION_MODULE} import {', '.join(missing)}\n"
        if last_import is not None:
            idx = self.module.index(last_import.end_lineno + 1, 0)
        else:
            idx = 0
            body = self.module.tree.body
            if body and isinstance(body[0], ast.Expr) and string_value(body[0].value) is not None:
                idx = self.module.index(body[0].end_lineno + 1, 0)
        if idx > 0 and not self.module.text[:idx].endswith("\n"):
            line = "\n" + line
        self.fixer.edit_source_at_position(idx, "", line, self.problem(self.module.tree, ""), "")


ALL_RULES = [
    RawUses,
    RawCondition,
    HardcodedSecret,
    InlineMatrix,
    InlineJob,
    DuplicateWorkflowName,
    OversizedFile,
    ExpressionLiteral,
]
