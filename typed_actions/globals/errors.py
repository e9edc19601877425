from typing import Optional

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error
from typed_actions.globals.pos import Pos


class TypedActionsError(Exception):
    """Base error carrying the diagnostic that describes it."""

    kind = DiagnosticKind.EVALUATION

    def __init__(self, desc: str, path: Optional[str] = None, pos: Optional[Pos] = None) -> None:
        super().__init__(desc)
        self.diagnostic: Diagnostic = error(self.kind, desc, path=path, pos=pos)


class EmitError(TypedActionsError):
    """An IR value the emitter does not know how to serialize."""

    kind = DiagnosticKind.EMIT
