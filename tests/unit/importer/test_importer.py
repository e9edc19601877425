"""Unit tests for the import entry point."""

import ast

from typed_actions.globals.diagnostics import DiagnosticKind
from typed_actions.importer.importer import ImportConfig, Importer
from typed_actions.importer.scaffold import package_name, starter_files, write_files

CI = """\
name: CI
on: push
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - run: make
"""


class TestImporter:
    """Import of each supported file type."""

    def test_workflow_package(self):
        outcome = Importer().import_text(CI, "ci")
        assert outcome.ok
        assert outcome.symbol == "CI"
        assert sorted(outcome.files) == [
            ".gitignore",
            "README.md",
            "ci/__init__.py",
            "ci/jobs.py",
            "ci/steps.py",
            "ci/triggers.py",
            "ci/workflows.py",
            "pyproject.toml",
        ]

    def test_no_scaffold_and_package_override(self):
        outcome = Importer(ImportConfig(scaffold=False, package="pipelines")).import_text(CI, "ci")
        assert all(name.startswith("pipelines/") for name in outcome.files)

    def test_invalid_workflow_produces_no_files(self):
        text = "on: push\njobs:\n  a:\n    runs-on: x\n    needs: b\n    steps: [{run: a}]\n"
        outcome = Importer().import_text(text, "broken", "broken.yml")
        assert not outcome.ok
        assert outcome.files == {}
        assert outcome.diagnostics[0].kind == DiagnosticKind.INVARIANT
        assert outcome.diagnostics[0].path == "broken.yml"

    def test_codeowners(self):
        outcome = Importer(ImportConfig(kind="codeowners", scaffold=False)).import_text("* @a\n", "CODEOWNERS")
        assert outcome.ok
        assert sorted(outcome.files) == ["codeowners/__init__.py", "codeowners/codeowners.py"]

    def test_pr_template(self):
        outcome = Importer(ImportConfig(kind="pr-template", scaffold=False)).import_text(
            "## Summary\n", "PULL_REQUEST_TEMPLATE"
        )
        assert outcome.symbol == "PullRequestTemplate"
        assert outcome.value.name is None

    def test_discussion_template(self):
        text = "title: Ideas\ndescription: Share an idea\nbody:\n  - type: markdown\n    attributes:\n      value: Hi\n"
        outcome = Importer(ImportConfig(kind="discussion-template", scaffold=False)).import_text(text, "ideas")
        assert outcome.ok
        assert outcome.symbol == "Ideas"
        assert sorted(outcome.files) == ["ideas/__init__.py", "ideas/templates.py"]
        assert "Ideas = DiscussionTemplate(" in outcome.files["ideas/templates.py"]

    def test_unknown_kind(self):
        outcome = Importer(ImportConfig(kind="gitlab")).import_text("", "x")
        assert not outcome.ok
        assert outcome.diagnostics[0].kind == DiagnosticKind.IMPORT

    def test_missing_file(self, tmp_path):
        outcome = Importer().import_file(tmp_path / "absent.yml")
        assert outcome.diagnostics[0].kind == DiagnosticKind.IO


class TestScaffold:
    """Project scaffolding."""

    def test_package_name(self):
        assert package_name("C/C++ CI") == "c_c_ci"
        assert package_name("2024 release") == "workflows_2024_release"

    def test_starter_files_parse(self):
        files = starter_files("my-project")
        tree = ast.parse(files["workflows.py"])
        names = [n.targets[0].id for n in tree.body if hasattr(n, "targets")]
        assert "MyProject" in names

    def test_write_files(self, tmp_path):
        problems = write_files(tmp_path, {"pkg/__init__.py": "", "pkg/a.py": "x = 1\n"})
        assert problems == []
        assert (tmp_path / "pkg" / "a.py").read_text() == "x = 1\n"
