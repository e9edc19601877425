from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from typed_actions.globals.pos import Pos


class DiagnosticLevel(Enum):
    NON = 0
    WAR = 1
    ERR = 2


class DiagnosticKind(Enum):
    """Failure classes reported by the toolchain."""

    DISCOVERY = "discovery-error"
    REFERENCE = "reference-error"
    EVALUATION = "evaluation-error"
    INVARIANT = "invariant-error"
    EMIT = "emit-error"
    IMPORT = "import-error"
    IO = "io-error"
    CANCELLED = "cancelled"
    LINT = "lint"


@dataclass
class Diagnostic:
    """A single reported problem.

    Attributes:
        kind: Failure class of the problem.
        desc: Human readable message.
        level: Severity, errors by default.
        path: File the problem belongs to, if any.
        pos: Zero-based position inside ``path``, if known.
        rule: Lint rule identifier for style problems.
    """

    kind: DiagnosticKind
    desc: str
    level: DiagnosticLevel = DiagnosticLevel.ERR
    path: Optional[str] = None
    pos: Optional[Pos] = None
    rule: Optional[str] = None

    def location(self) -> str:
        if not self.path:
            return ""
        if self.pos is None:
            return self.path
        return f"{self.path}:{self.pos.line + 1}:{self.pos.col + 1}"

    def __str__(self) -> str:
        tag = self.rule or self.kind.value
        location = self.location()
        if location:
            return f"{location}: {self.desc} [{tag}]"
        return f"{self.desc} [{tag}]"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind.value,
            "level": self.level.name.lower(),
            "message": self.desc,
        }
        if self.path:
            data["path"] = self.path
        if self.pos is not None:
            data["line"] = self.pos.line + 1
            data["col"] = self.pos.col + 1
        if self.rule:
            data["rule"] = self.rule
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Diagnostic":
        pos = None
        if "line" in data:
            pos = Pos(data["line"] - 1, data.get("col", 1) - 1)
        return cls(
            kind=DiagnosticKind(data["kind"]),
            desc=data["message"],
            level=DiagnosticLevel[data.get("level", "err").upper()],
            path=data.get("path"),
            pos=pos,
            rule=data.get("rule"),
        )


@dataclass
class Diagnostics:
    """Ordered collection of diagnostics with running counters."""

    diagnostics: List[Diagnostic] = field(default_factory=list)
    max_level: DiagnosticLevel = DiagnosticLevel.NON
    n_error: int = 0
    n_warning: int = 0

    def append(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)
        self.max_level = DiagnosticLevel(max(self.max_level.value, diagnostic.level.value))
        match diagnostic.level:
            case DiagnosticLevel.ERR:
                self.n_error += 1
            case DiagnosticLevel.WAR:
                self.n_warning += 1

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        for diagnostic in diagnostics:
            self.append(diagnostic)

    def sort(self) -> None:
        self.diagnostics.sort(
            key=lambda d: (
                d.path or "",
                d.pos.line if d.pos else -1,
                d.pos.col if d.pos else -1,
            )
        )

    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.level == DiagnosticLevel.ERR]

    def __iter__(self):
        return iter(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __bool__(self) -> bool:
        return bool(self.diagnostics)


def error(kind: DiagnosticKind, desc: str, path: Optional[str] = None, pos: Optional[Pos] = None) -> Diagnostic:
    return Diagnostic(kind=kind, desc=desc, level=DiagnosticLevel.ERR, path=path, pos=pos)


def warning(kind: DiagnosticKind, desc: str, path: Optional[str] = None, pos: Optional[Pos] = None) -> Diagnostic:
    return Diagnostic(kind=kind, desc=desc, level=DiagnosticLevel.WAR, path=path, pos=pos)
