"""Unit tests for static declaration discovery."""

import ast
import threading

import pytest

from conftest import write_package
from typed_actions.discover.discoverer import (
    DeclKind,
    Discoverer,
    annotation_kind,
    imports_dsl,
    is_source_file,
    module_name,
    value_kind,
)
from typed_actions.globals.diagnostics import DiagnosticKind, DiagnosticLevel


def expression(source: str) -> ast.expr:
    return ast.parse(source, mode="eval").body


class TestDiscoverer:
    """Scanning packages."""

    def test_minimal_ci(self, ci_package):
        result = Discoverer().discover(ci_package)
        assert [d.name for d in result.workflows] == ["CI"]
        assert [d.name for d in result.jobs] == ["Build"]
        assert result.errors == []

    def test_declaration_positions(self, ci_package):
        decl = Discoverer().discover(ci_package).find("CI")
        assert decl.file.endswith("workflows.py")
        assert decl.line == 5
        assert decl.package == str(ci_package)

    def test_references(self, diamond_package):
        result = Discoverer().discover(diamond_package)
        assert result.references["Release"] == ["Build", "Test", "Deploy"]
        assert result.references["Deploy"] == ["Build", "Test"]
        assert result.references["Build"] == []

    def test_annotated_declarations(self, tmp_path):
        source = """
        from typing import List
        from typed_actions import Job, Step, Workflow

        SharedSteps: List[Step] = make_steps()
        Built: Job = build_job()
        Main: Workflow = build_workflow()
        """
        write_package(tmp_path, "pkg", {"decls.py": source})
        result = Discoverer().discover(tmp_path / "pkg")
        kinds = {d.name: d.kind for d in result.all()}
        assert kinds == {"SharedSteps": DeclKind.STEPS, "Built": DeclKind.JOB, "Main": DeclKind.WORKFLOW}

    def test_files_without_dsl_import_are_ignored(self, tmp_path):
        write_package(tmp_path, "pkg", {"other.py": "from mylib import Workflow\nX = Workflow()\n"})
        assert Discoverer().discover(tmp_path / "pkg").all() == []

    def test_test_files_are_skipped(self, tmp_path):
        source = "from typed_actions import Workflow\nX = Workflow()\n"
        write_package(tmp_path, "pkg", {"test_x.py": source, "x_test.py": source, "conftest.py": source})
        assert Discoverer().discover(tmp_path / "pkg").all() == []

    def test_duplicate_in_package(self, tmp_path):
        source = "from typed_actions import Workflow\nCI = Workflow()\n"
        write_package(tmp_path, "pkg", {"a.py": source, "b.py": source})
        result = Discoverer().discover(tmp_path / "pkg")
        assert len(result.workflows) == 1
        assert result.errors[0].kind == DiagnosticKind.DISCOVERY
        assert "already declared" in result.errors[0].desc

    def test_same_name_in_different_packages(self, tmp_path):
        source = "from typed_actions import Workflow\nCI = Workflow()\n"
        write_package(tmp_path, "one", {"a.py": source})
        write_package(tmp_path, "two", {"a.py": source})
        result = Discoverer().discover(tmp_path)
        assert len(result.workflows) == 2
        assert result.errors == []

    def test_unknown_reference_is_a_warning(self, tmp_path):
        source = "from typed_actions import Workflow\nCI = Workflow(jobs={'a': Missing})\n"
        write_package(tmp_path, "pkg", {"a.py": source})
        result = Discoverer().discover(tmp_path / "pkg")
        assert [e.level for e in result.errors] == [DiagnosticLevel.WAR]
        assert result.errors[0].kind == DiagnosticKind.REFERENCE
        assert "'Missing'" in result.errors[0].desc

    def test_syntax_error(self, tmp_path):
        write_package(tmp_path, "pkg", {"a.py": "from typed_actions import Workflow\nCI = Workflow(\n"})
        result = Discoverer().discover(tmp_path / "pkg")
        assert result.errors[0].kind == DiagnosticKind.DISCOVERY
        assert result.errors[0].desc.startswith("syntax error")

    def test_unparsable_file_without_dsl_mention_is_ignored(self, tmp_path):
        write_package(tmp_path, "pkg", {"scratch.py": "def broken(:\n"})
        result = Discoverer().discover(tmp_path / "pkg")
        assert result.errors == []

    def test_missing_directory(self, tmp_path):
        result = Discoverer().discover(tmp_path / "absent")
        assert result.errors[0].kind == DiagnosticKind.DISCOVERY

    def test_cancelled(self, ci_package):
        cancel = threading.Event()
        cancel.set()
        result = Discoverer().discover(ci_package, cancel)
        assert result.all() == []
        assert result.errors[0].kind == DiagnosticKind.CANCELLED


class TestClassification:
    """Annotation and initializer kinds."""

    @pytest.mark.parametrize(
        "annotation, kind",
        [
            ("Workflow", DeclKind.WORKFLOW),
            ("typed_actions.Job", DeclKind.JOB),
            ("'Triggers'", DeclKind.TRIGGERS),
            ("List[Step]", DeclKind.STEPS),
            ("list[Union[Step, StepAction]]", DeclKind.STEPS),
            ("List[Step | StepAction]", DeclKind.STEPS),
            ("Codeowners", DeclKind.CODEOWNERS),
            ("DiscussionTemplate", DeclKind.DISCUSSION_TEMPLATE),
            ("List[str]", None),
            ("int", None),
        ],
    )
    def test_annotation_kind(self, annotation, kind):
        assert annotation_kind(expression(annotation)) == kind

    @pytest.mark.parametrize(
        "value, kind",
        [
            ("Workflow(name='x')", DeclKind.WORKFLOW),
            ("DiscussionTemplate(title='Ideas')", DeclKind.DISCUSSION_TEMPLATE),
            ("ta.Job()", DeclKind.JOB),
            ("[Checkout(), Step(run='make')]", DeclKind.STEPS),
            ("[Checkout().as_step(name='c'), *Common]", DeclKind.STEPS),
            ("[*Common]", None),
            ("make()", None),
            ("[1, 2]", None),
        ],
    )
    def test_value_kind(self, value, kind):
        assert value_kind(expression(value)) == kind

    def test_imports_dsl(self):
        assert imports_dsl(ast.parse("import typed_actions"))
        assert imports_dsl(ast.parse("from typed_actions.actions import Checkout"))
        assert not imports_dsl(ast.parse("from .typed_actions import x"))

    def test_is_source_file(self, tmp_path):
        assert is_source_file(tmp_path / "workflows.py")
        assert not is_source_file(tmp_path / "test_workflows.py")
        assert not is_source_file(tmp_path / "README.md")

    def test_module_name(self, ci_package):
        root, name = module_name(ci_package / "workflows.py")
        assert root == ci_package.parent.resolve()
        assert name == "ci_workflows.workflows"
        assert module_name(ci_package / "__init__.py")[1] == "ci_workflows"
