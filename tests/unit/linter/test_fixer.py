"""Unit tests for lint fixes and the linter driver."""

import textwrap

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLevel
from typed_actions.linter import Linter
from typed_actions.linter.fixer import BaseFixer

SOURCE = '''
"""Release workflows."""

from typed_actions import Job, Step

Build = Job(runs_on="ubuntu-latest", steps=[Step(run="make", env={"SHA": "${{ github.sha }}"})])
'''

FIXED = '''
"""Release workflows."""

from typed_actions import Job, Step
from typed_actions.model.expressions import github

Build = Job(runs_on="ubuntu-latest", steps=[Step(run="make", env={"SHA": github.sha})])
'''


class TestBaseFixer:
    """Batched text edits."""

    def test_edits_apply_last_first(self, tmp_path):
        path = tmp_path / "a.py"
        path.write_text("one two three\n")
        fixer = BaseFixer(path)
        problem = Diagnostic(kind=DiagnosticKind.LINT, desc="x")
        fixer.edit_source_at_position(0, "one", "1", problem, "fixed one")
        fixer.edit_source_at_position(8, "three", "3", problem, "fixed three")
        assert path.read_text() == "one two three\n"
        fixer.flush()
        assert path.read_text() == "1 two 3\n"

    def test_edit_marks_problem_fixed(self, tmp_path):
        fixer = BaseFixer(tmp_path / "a.py")
        problem = Diagnostic(kind=DiagnosticKind.LINT, desc="x")
        fixed = fixer.edit_source_at_position(0, "", "", problem, "done")
        assert fixed.level == DiagnosticLevel.NON
        assert fixed.desc == "done"


class TestLinter:
    """Linting source trees."""

    def test_clean_package(self, ci_package):
        result = Linter().lint(ci_package)
        assert result.success
        assert len(result.files) == 2

    def test_warnings_fail(self, tmp_path):
        path = tmp_path / "workflows.py"
        path.write_text(textwrap.dedent(SOURCE).lstrip())
        result = Linter().lint(tmp_path)
        assert not result.success
        assert [d.rule for d in result.diagnostics] == ["WAG008"]
        assert result.diagnostics.n_warning == 1

    def test_fix_rewrites_context_literal(self, tmp_path):
        path = tmp_path / "workflows.py"
        path.write_text(textwrap.dedent(SOURCE).lstrip())
        result = Linter(fix=True).lint(tmp_path)
        assert result.success
        assert result.fixed == 1
        assert path.read_text() == textwrap.dedent(FIXED).lstrip()
        assert Linter().lint(tmp_path).success

    def test_fix_skipped_when_name_is_taken(self, tmp_path):
        source = 'from typed_actions import Step\n\ngithub = 3\nS = Step(run="x", env={"A": "${{ github.sha }}"})\n'
        path = tmp_path / "workflows.py"
        path.write_text(source)
        result = Linter(fix=True).lint(tmp_path)
        assert result.fixed == 0
        assert path.read_text() == source

    def test_files_without_dsl_import(self, tmp_path):
        (tmp_path / "other.py").write_text('X = "${{ github.sha }}"\n')
        result = Linter().lint(tmp_path)
        assert result.success
        assert result.files == [str(tmp_path / "other.py")]

    def test_syntax_error(self, tmp_path):
        (tmp_path / "bad.py").write_text("def (\n")
        result = Linter().lint(tmp_path)
        assert result.diagnostics.errors()[0].kind == DiagnosticKind.DISCOVERY

    def test_to_dict(self, tmp_path):
        (tmp_path / "workflows.py").write_text(textwrap.dedent(SOURCE).lstrip())
        data = Linter().lint(tmp_path).to_dict()
        assert data["success"] is False
        assert data["errors"][0]["rule"] == "WAG008"
        assert data["fixed"] == 0
