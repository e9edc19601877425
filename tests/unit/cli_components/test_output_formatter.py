"""Unit tests for output formatting."""

import json
from pathlib import Path

from typed_actions.cli_components.output_formatter import ColoredFormatter, JsonFormatter
from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, DiagnosticLevel
from typed_actions.globals.pos import Pos


class TestColoredFormatter:
    """Unit tests for ColoredFormatter output formatting."""

    def test_format_file_header(self):
        """File header formatting includes underline and path."""
        header = ColoredFormatter(color=True).format_file_header(Path("/test/workflows.py"))
        assert "/test/workflows.py" in header
        assert "\033[4m" in header
        assert "\033[0m" in header

    def test_format_diagnostic_error(self):
        """Errors are printed as path:line:col: message [kind] after a red sign."""
        diagnostic = Diagnostic(
            kind=DiagnosticKind.INVARIANT,
            desc="job 'build' has no runs-on",
            path="workflows.py",
            pos=Pos(10, 5),
        )
        formatted = ColoredFormatter(color=True).format_diagnostic(diagnostic)
        assert "workflows.py:11:6: job 'build' has no runs-on [invariant-error]" in formatted
        assert "\033[31m" in formatted

    def test_format_diagnostic_warning_uses_rule(self):
        diagnostic = Diagnostic(
            kind=DiagnosticKind.LINT, desc="raw uses", level=DiagnosticLevel.WAR, path="a.py", pos=Pos(0, 0), rule="WAG001"
        )
        formatted = ColoredFormatter(color=True).format_diagnostic(diagnostic)
        assert "a.py:1:1: raw uses [WAG001]" in formatted
        assert "\033[33m" in formatted

    def test_plain_output_has_no_escape_codes(self):
        formatter = ColoredFormatter(color=False)
        diagnostic = Diagnostic(kind=DiagnosticKind.IO, desc="cannot read", path="a.py")
        assert formatter.format_diagnostic(diagnostic) == "✗ error: a.py: cannot read [io-error]"
        assert "\033" not in formatter.format_summary(1, 2, DiagnosticLevel.ERR)

    def test_format_summary(self):
        summary = ColoredFormatter(color=False).format_summary(2, 1, DiagnosticLevel.ERR)
        assert summary == "\n✗ 3 problems (2 errors, 1 warnings)"

    def test_format_no_problems(self):
        assert "All checks passed" in ColoredFormatter(color=False).format_no_problems()

    def test_format_status(self):
        status = ColoredFormatter(color=False).format_status(DiagnosticLevel.NON, "wrote ci.yml")
        assert status == "✓ wrote ci.yml"


class TestJsonFormatter:
    """JSON payloads."""

    def test_format_payload(self):
        text = JsonFormatter().format_payload({"success": True, "errors": [], "files": ["ci.yml"]})
        assert json.loads(text) == {"success": True, "errors": [], "files": ["ci.yml"]}
        assert "\n  " in text
