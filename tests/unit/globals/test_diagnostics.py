"""Unit tests for diagnostic reporting."""

from typed_actions.globals.diagnostics import (
    Diagnostic,
    DiagnosticKind,
    DiagnosticLevel,
    Diagnostics,
    error,
    warning,
)
from typed_actions.globals.errors import EmitError
from typed_actions.globals.pos import Pos


class TestDiagnostic:
    """Single diagnostics."""

    def test_defaults_to_error(self):
        diagnostic = Diagnostic(kind=DiagnosticKind.IO, desc="cannot read")
        assert diagnostic.level == DiagnosticLevel.ERR
        assert str(diagnostic) == "cannot read [io-error]"

    def test_location_is_one_based(self):
        diagnostic = error(DiagnosticKind.INVARIANT, "bad", path="wf.py", pos=Pos(4, 2))
        assert diagnostic.location() == "wf.py:5:3"
        assert str(diagnostic) == "wf.py:5:3: bad [invariant-error]"

    def test_rule_replaces_kind_tag(self):
        diagnostic = Diagnostic(kind=DiagnosticKind.LINT, desc="x", path="a.py", rule="WAG001")
        assert str(diagnostic) == "a.py: x [WAG001]"

    def test_dict_round_trip(self):
        diagnostic = Diagnostic(
            kind=DiagnosticKind.LINT,
            desc="raw uses",
            level=DiagnosticLevel.WAR,
            path="a.py",
            pos=Pos(0, 4),
            rule="WAG001",
        )
        data = diagnostic.to_dict()
        assert data == {
            "kind": "lint",
            "level": "war",
            "message": "raw uses",
            "path": "a.py",
            "line": 1,
            "col": 5,
            "rule": "WAG001",
        }
        assert Diagnostic.from_dict(data) == diagnostic


class TestDiagnostics:
    """Collections of diagnostics."""

    def test_counters(self):
        diagnostics = Diagnostics()
        assert diagnostics.max_level == DiagnosticLevel.NON
        diagnostics.append(warning(DiagnosticKind.REFERENCE, "w"))
        assert diagnostics.max_level == DiagnosticLevel.WAR
        diagnostics.extend([error(DiagnosticKind.IO, "e1"), error(DiagnosticKind.IO, "e2")])
        assert diagnostics.max_level == DiagnosticLevel.ERR
        assert diagnostics.n_error == 2
        assert diagnostics.n_warning == 1
        assert len(diagnostics.errors()) == 2

    def test_sort_by_location(self):
        diagnostics = Diagnostics()
        diagnostics.extend(
            [
                error(DiagnosticKind.IO, "b", path="b.py", pos=Pos(0, 0)),
                error(DiagnosticKind.IO, "a2", path="a.py", pos=Pos(3, 0)),
                error(DiagnosticKind.IO, "a1", path="a.py", pos=Pos(1, 0)),
            ]
        )
        diagnostics.sort()
        assert [d.desc for d in diagnostics] == ["a1", "a2", "b"]

    def test_empty_is_falsy(self):
        assert not Diagnostics()


class TestErrors:
    """Exceptions carrying diagnostics."""

    def test_emit_error(self):
        e = EmitError("cannot emit", path="wf.py")
        assert e.diagnostic.kind == DiagnosticKind.EMIT
        assert str(e) == "cannot emit"
