"""Unit tests for Python source generation from imported workflows."""

import ast

from typed_actions.importer.codegen import CodeGenerator, SymbolAllocator, import_line, string_literal
from typed_actions.importer.parser import parse_workflow

CPP_WORKFLOW = """\
name: C/C++ CI
on:
  push:
    branches: [main]
jobs:
  type:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - run: make
  check:
    runs-on: ubuntu-latest
    needs: type
    steps:
      - uses: actions/checkout@v4
      - run: make
"""


def generate(text: str, name: str = "ci", single_file: bool = False):
    result = parse_workflow(text)
    assert result.ok
    return CodeGenerator(single_file=single_file).generate(result.workflow, name)


class TestCodeGenerator:
    """Package layout and symbol naming."""

    def test_symbols(self):
        code = generate(CPP_WORKFLOW)
        assert code.workflow_symbol == "CCppCI"
        assert "TypeJob" in code.symbols
        assert code.symbols["CCppCI"] == "workflows"

    def test_four_module_layout(self):
        code = generate(CPP_WORKFLOW)
        assert sorted(code.files) == ["__init__.py", "jobs.py", "steps.py", "triggers.py", "workflows.py"]

    def test_single_file_layout(self):
        code = generate(CPP_WORKFLOW, single_file=True)
        assert sorted(code.files) == ["__init__.py", "workflows.py"]
        assert "CCppCI = Workflow(" in code.files["workflows.py"]

    def test_generated_sources_parse(self):
        for source in generate(CPP_WORKFLOW).files.values():
            ast.parse(source)

    def test_identical_step_lists_are_shared(self):
        """Jobs with the same steps refer to one step-list declaration."""
        code = generate(CPP_WORKFLOW)
        steps = code.files["steps.py"]
        assert steps.count(" = [") == 1
        jobs = code.files["jobs.py"]
        assert jobs.count("steps=TypeSteps") == 2
        assert "from .steps import TypeSteps" in jobs

    def test_needs_reference_job_ids(self):
        jobs = generate(CPP_WORKFLOW).files["jobs.py"]
        assert 'needs=["type"]' in jobs

    def test_workflow_imports_sections(self):
        workflows = generate(CPP_WORKFLOW).files["workflows.py"]
        assert "from .jobs import Check, TypeJob" in workflows
        assert "from .triggers import CCppCITriggers" in workflows
        assert '"type": TypeJob' in workflows

    def test_expressions_use_expr(self):
        text = "on: push\njobs:\n  a:\n    runs-on: ${{ matrix.os }}\n    steps: [{run: a}]\n"
        jobs = generate(text).files["jobs.py"]
        assert 'runs_on=expr("matrix.os")' in jobs
        assert "expr" in jobs.splitlines()[2]

    def test_name_falls_back_to_file_stem(self):
        code = generate("on: push\njobs:\n  a:\n    runs-on: x\n    steps: [{run: a}]\n", name="nightly-build")
        assert code.workflow_symbol == "NightlyBuild"


class TestHelpers:
    """String literals, imports and symbol allocation."""

    def test_string_literal(self):
        assert string_literal("hello") == '"hello"'
        assert string_literal('say "hi"') == '"say \\"hi\\""'

    def test_multiline_string_literal(self):
        assert string_literal("make\nmake test\n") == 'r"""make\nmake test\n"""'

    def test_multiline_with_quotes_at_end_is_escaped(self):
        assert string_literal('a\nb"') == '"a\\nb\\""'

    def test_import_line_wraps(self):
        names = {f"Name{i}" for i in range(20)}
        line = import_line(names)
        assert line.startswith("from typed_actions import (\n")
        assert line.endswith(")")

    def test_allocator_avoids_dsl_names_and_duplicates(self):
        allocator = SymbolAllocator()
        assert allocator.allocate("Build") == "Build"
        assert allocator.allocate("Build") == "Build2"
        assert allocator.allocate("Workflow") == "Workflow2"
