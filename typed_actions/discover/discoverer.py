"""
Static discovery of typed-actions declarations.

Source files are parsed with ``ast`` and never executed. A top-level
binding is a declaration when its annotation, or failing that the class it
calls, is one of the DSL types. While walking each initializer the names of
other top-level symbols are collected into a reference graph.
"""

import ast
import builtins
import logging
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error, warning
from typed_actions.globals.pos import Pos

logger = logging.getLogger(__name__)

DSL_PACKAGE = "typed_actions"
BUILTIN_NAMES: Set[str] = set(dir(builtins)) | {"__name__", "__file__", "__doc__"}


class DeclKind(Enum):
    WORKFLOW = "workflow"
    JOB = "job"
    TRIGGERS = "triggers"
    STEPS = "steps"
    DEPENDABOT = "dependabot"
    ISSUE_TEMPLATE = "issue-template"
    DISCUSSION_TEMPLATE = "discussion-template"
    PR_TEMPLATE = "pr-template"
    CODEOWNERS = "codeowners"


TYPE_KINDS: Dict[str, DeclKind] = {
    "Workflow": DeclKind.WORKFLOW,
    "Job": DeclKind.JOB,
    "Triggers": DeclKind.TRIGGERS,
    "DependabotConfig": DeclKind.DEPENDABOT,
    "IssueTemplate": DeclKind.ISSUE_TEMPLATE,
    "DiscussionTemplate": DeclKind.DISCUSSION_TEMPLATE,
    "PRTemplate": DeclKind.PR_TEMPLATE,
    "Codeowners": DeclKind.CODEOWNERS,
}
SEQUENCE_TYPES = {"List", "list", "Sequence", "Tuple", "tuple"}
STEP_TYPES = {"Step", "StepAction"}
STEP_CALLEES = {
    "Step",
    "Checkout",
    "SetupPython",
    "SetupNode",
    "SetupGo",
    "SetupJava",
    "Cache",
    "UploadArtifact",
    "DownloadArtifact",
}


@dataclass
class Decl:
    """A discovered top-level declaration.

    Attributes:
        name: Symbol name.
        kind: Declared DSL type.
        file: Source file path.
        line: One-based line of the binding.
        node: Initializer expression in the parsed tree.
        package: Directory of the file, which is the Python package.
    """

    name: str
    kind: DeclKind
    file: str
    line: int
    node: ast.expr = field(repr=False)
    package: str = ""
    col: int = 0


@dataclass
class DiscoveryResult:
    workflows: List[Decl] = field(default_factory=list)
    jobs: List[Decl] = field(default_factory=list)
    others: List[Decl] = field(default_factory=list)
    errors: List[Diagnostic] = field(default_factory=list)
    references: Dict[str, List[str]] = field(default_factory=dict)

    def all(self) -> List[Decl]:
        return self.workflows + self.jobs + self.others

    def find(self, name: str) -> Optional[Decl]:
        for decl in self.all():
            if decl.name == name:
                return decl
        return None


def _dotted_tail(node: ast.expr) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def annotation_kind(annotation: ast.expr) -> Optional[DeclKind]:
    """Classify a PEP 526 annotation."""
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        try:
            annotation = ast.parse(annotation.value, mode="eval").body
        except SyntaxError:
            return None
    name = _dotted_tail(annotation)
    if name in TYPE_KINDS:
        return TYPE_KINDS[name]
    if isinstance(annotation, ast.Subscript) and _dotted_tail(annotation.value) in SEQUENCE_TYPES:
        inner = annotation.slice
        candidates: Iterable[ast.expr] = [inner]
        if isinstance(inner, ast.Tuple):
            candidates = inner.elts
        for candidate in candidates:
            if isinstance(candidate, ast.Subscript) and _dotted_tail(candidate.value) == "Union":
                sub = candidate.slice
                candidates = sub.elts if isinstance(sub, ast.Tuple) else [sub]
                break
            if isinstance(candidate, ast.BinOp):
                candidates = [candidate.left, candidate.right]
                break
        if any(_dotted_tail(c) in STEP_TYPES for c in candidates):
            return DeclKind.STEPS
    return None


def _is_step_entry(node: ast.expr) -> bool:
    if isinstance(node, ast.Starred):
        return True
    if not isinstance(node, ast.Call):
        return False
    callee = node.func
    if isinstance(callee, ast.Attribute) and callee.attr == "as_step":
        return True
    return _dotted_tail(callee) in STEP_CALLEES


def value_kind(value: ast.expr) -> Optional[DeclKind]:
    """Classify an unannotated initializer by the class it calls."""
    if isinstance(value, ast.Call):
        name = _dotted_tail(value.func)
        if name in TYPE_KINDS:
            return TYPE_KINDS[name]
        return None
    if isinstance(value, (ast.List, ast.Tuple)) and value.elts:
        if all(_is_step_entry(e) for e in value.elts) and any(
            isinstance(e, ast.Call) for e in value.elts
        ):
            return DeclKind.STEPS
    return None


class _ReferenceCollector(ast.NodeVisitor):
    """Collects loaded names that are not bound inside the expression itself."""

    def __init__(self) -> None:
        self.loads: List[Tuple[str, ast.Name]] = []
        self.local: Set[str] = set()

    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, ast.Load):
            self.loads.append((node.id, node))
        else:
            self.local.add(node.id)

    def visit_Lambda(self, node: ast.Lambda) -> None:
        args = node.args
        for arg in args.posonlyargs + args.args + args.kwonlyargs:
            self.local.add(arg.arg)
        if args.vararg:
            self.local.add(args.vararg.arg)
        if args.kwarg:
            self.local.add(args.kwarg.arg)
        self.generic_visit(node)

    def collect(self, node: ast.expr) -> List[Tuple[str, ast.Name]]:
        self.visit(node)
        return [(name, n) for name, n in self.loads if name not in self.local]


def _top_level_names(tree: ast.Module) -> Set[str]:
    names: Set[str] = set()
    for stmt in tree.body:
        match stmt:
            case ast.Assign(targets=targets):
                for target in targets:
                    for node in ast.walk(target):
                        if isinstance(node, ast.Name):
                            names.add(node.id)
            case ast.AnnAssign(target=ast.Name(id=name)):
                names.add(name)
            case ast.FunctionDef(name=name) | ast.AsyncFunctionDef(name=name) | ast.ClassDef(name=name):
                names.add(name)
            case ast.Import(names=aliases) | ast.ImportFrom(names=aliases):
                for alias in aliases:
                    names.add(alias.asname or alias.name.split(".")[0])
    return names


def imports_dsl(tree: ast.Module) -> bool:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            if any(a.name.split(".")[0] == DSL_PACKAGE for a in node.names):
                return True
        elif isinstance(node, ast.ImportFrom):
            if node.level == 0 and node.module and node.module.split(".")[0] == DSL_PACKAGE:
                return True
    return False


def is_source_file(path: Path) -> bool:
    name = path.name
    if path.suffix != ".py":
        return False
    return not (name.startswith("test_") or name.endswith("_test.py") or name == "conftest.py")


def module_name(path: Path) -> Tuple[Path, str]:
    """Import root and dotted module name of a source file.

    The root is the first ancestor directory that is not a package.
    """
    path = path.resolve()
    parts = [path.stem] if path.stem != "__init__" else []
    directory = path.parent
    while (directory / "__init__.py").exists() and directory.parent != directory:
        parts.insert(0, directory.name)
        directory = directory.parent
    return directory, ".".join(parts)


class Discoverer:
    """Scans a source tree for declarations without importing it."""

    def discover(self, root: Path, cancel: Optional[threading.Event] = None) -> DiscoveryResult:
        """
        Discover declarations under ``root``.

        Args:
            root: Directory to scan, or a single source file.
            cancel: Set to abandon the scan; the result then holds only a
                cancellation diagnostic.

        Returns:
            DiscoveryResult: Declarations, references and any problems.
        """
        result = DiscoveryResult()
        root = Path(root)
        files, walk_errors = self.source_files(root)
        result.errors.extend(walk_errors)

        seen: Dict[Tuple[str, str], Decl] = {}
        file_names: Dict[str, Set[str]] = {}
        pending: List[Tuple[Decl, List[Tuple[str, ast.Name]]]] = []

        for path in files:
            if cancel is not None and cancel.is_set():
                return DiscoveryResult(errors=[error(DiagnosticKind.CANCELLED, "discovery cancelled", path=str(root))])
            tree = self._parse(path, result)
            if tree is None or not imports_dsl(tree):
                continue
            file_names[str(path)] = _top_level_names(tree)
            for decl in self._declarations(path, tree):
                key = (decl.package, decl.name)
                if key in seen:
                    first = seen[key]
                    result.errors.append(
                        error(
                            DiagnosticKind.DISCOVERY,
                            f"'{decl.name}' is already declared in {first.file}:{first.line}",
                            path=decl.file,
                            pos=Pos(decl.line - 1, decl.col),
                        )
                    )
                    continue
                seen[key] = decl
                match decl.kind:
                    case DeclKind.WORKFLOW:
                        result.workflows.append(decl)
                    case DeclKind.JOB:
                        result.jobs.append(decl)
                    case _:
                        result.others.append(decl)
                pending.append((decl, _ReferenceCollector().collect(decl.node)))

        declared = {decl.name for decl in result.all()}
        for decl, loads in pending:
            refs: List[str] = []
            known = file_names.get(decl.file, set()) | declared | BUILTIN_NAMES
            for name, node in loads:
                if name in declared and name != decl.name and name not in refs:
                    refs.append(name)
                elif name not in known:
                    result.errors.append(
                        warning(
                            DiagnosticKind.REFERENCE,
                            f"'{decl.name}' refers to unknown name '{name}'",
                            path=decl.file,
                            pos=Pos.from_node(node),
                        )
                    )
            result.references[decl.name] = refs

        logger.info(
            "Discovered %d workflows, %d jobs and %d other declarations in %s",
            len(result.workflows),
            len(result.jobs),
            len(result.others),
            root,
        )
        return result

    def source_files(self, root: Path) -> Tuple[List[Path], List[Diagnostic]]:
        problems: List[Diagnostic] = []
        if root.is_file():
            return [root], problems
        if not root.is_dir():
            problems.append(error(DiagnosticKind.DISCOVERY, "directory does not exist or is unreadable", path=str(root)))
            return [], problems

        def on_error(e: OSError) -> None:
            problems.append(error(DiagnosticKind.DISCOVERY, f"cannot read directory: {e.strerror}", path=e.filename))

        files: List[Path] = []
        for directory, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d != "__pycache__")
            for filename in sorted(filenames):
                path = Path(directory) / filename
                if is_source_file(path):
                    files.append(path)
        return files, problems

    def _parse(self, path: Path, result: DiscoveryResult) -> Optional[ast.Module]:
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            result.errors.append(error(DiagnosticKind.IO, f"cannot read file: {e}", path=str(path)))
            return None
        try:
            return ast.parse(source, filename=str(path))
        except SyntaxError as e:
            if DSL_PACKAGE not in source:
                logger.debug("Skipping unparsable file without DSL imports: %s", path)
                return None
            pos = Pos(max((e.lineno or 1) - 1, 0), max((e.offset or 1) - 1, 0))
            result.errors.append(
                error(DiagnosticKind.DISCOVERY, f"syntax error: {e.msg}", path=str(path), pos=pos)
            )
            return None

    def _declarations(self, path: Path, tree: ast.Module) -> List[Decl]:
        decls: List[Decl] = []
        for stmt in tree.body:
            name: Optional[str] = None
            kind: Optional[DeclKind] = None
            value: Optional[ast.expr] = None
            match stmt:
                case ast.AnnAssign(target=ast.Name(id=target), annotation=annotation, value=init) if init is not None:
                    name, value = target, init
                    kind = annotation_kind(annotation) or value_kind(init)
                case ast.Assign(targets=[ast.Name(id=target)], value=init):
                    name, value = target, init
                    kind = value_kind(init)
            if name is None or kind is None or value is None:
                continue
            decls.append(
                Decl(
                    name=name,
                    kind=kind,
                    file=str(path),
                    line=stmt.lineno,
                    col=stmt.col_offset,
                    node=value,
                    package=str(path.parent),
                )
            )
        return decls


def discover(root: Path, cancel: Optional[threading.Event] = None) -> DiscoveryResult:
    return Discoverer().discover(root, cancel)
