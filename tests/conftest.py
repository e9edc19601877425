"""Shared test configuration and fixtures for typed-actions tests."""

import textwrap
from pathlib import Path
from typing import Dict

import pytest

from typed_actions.model import Job, PushTrigger, Step, Triggers, Workflow

CI_SOURCE = '''
from typed_actions import Job, PushTrigger, Step, Triggers, Workflow

Build = Job(runs_on="ubuntu-latest", steps=[Step(run="echo hello")])

CI = Workflow(name="CI", on=Triggers(push=PushTrigger(branches=["main"])), jobs={"build": Build})
'''

DIAMOND_SOURCE = '''
from typed_actions import Job, PushTrigger, Step, Triggers, Workflow

Build = Job(runs_on="ubuntu-latest", steps=[Step(run="make")])
Test = Job(runs_on="ubuntu-latest", needs=[Build], steps=[Step(run="make test")])
Deploy = Job(runs_on="ubuntu-latest", needs=[Build, Test], steps=[Step(run="make deploy")])

Release = Workflow(
    name="Release",
    on=Triggers(push=PushTrigger(branches=["main"])),
    jobs={"build": Build, "test": Test, "deploy": Deploy},
)
'''

CYCLE_SOURCE = '''
from typed_actions import Job, PushTrigger, Step, Triggers, Workflow

A = Job(runs_on="ubuntu-latest", needs=["b"], steps=[Step(run="echo a")])
B = Job(runs_on="ubuntu-latest", needs=["a"], steps=[Step(run="echo b")])

Loop = Workflow(name="Loop", on=Triggers(push=PushTrigger()), jobs={"a": A, "b": B})
'''

MATRIX_WORKFLOW = """\
name: Matrix
on:
  push:
    branches:
      - main
  pull_request:
jobs:
  test:
    runs-on: ${{ matrix.os }}
    strategy:
      matrix:
        os:
          - ubuntu-latest
          - macos-latest
        python:
          - '3.11'
          - '3.12'
        include:
          - os: ubuntu-latest
            python: '3.13'
      fail-fast: false
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-python@v5
        with:
          python-version: ${{ matrix.python }}
      - run: pytest
"""


def write_package(root: Path, name: str, files: Dict[str, str]) -> Path:
    """Write a package directory with an ``__init__.py`` and the given modules."""
    package = root / name
    package.mkdir(parents=True, exist_ok=True)
    (package / "__init__.py").write_text("")
    for filename, source in files.items():
        (package / filename).write_text(textwrap.dedent(source).lstrip())
    return package


@pytest.fixture
def ci_package(tmp_path):
    """Package declaring the minimal CI workflow."""
    return write_package(tmp_path, "ci_workflows", {"workflows.py": CI_SOURCE})


@pytest.fixture
def diamond_package(tmp_path):
    """Package with build, test and deploy jobs in a diamond."""
    return write_package(tmp_path, "release_workflows", {"workflows.py": DIAMOND_SOURCE})


@pytest.fixture
def cycle_package(tmp_path):
    """Package whose two jobs need each other."""
    return write_package(tmp_path, "loop_workflows", {"workflows.py": CYCLE_SOURCE})


@pytest.fixture
def matrix_workflow():
    """Workflow YAML with a matrix, an action input and two triggers."""
    return MATRIX_WORKFLOW


@pytest.fixture
def ci_workflow():
    """The minimal CI workflow as IR."""
    build = Job(runs_on="ubuntu-latest", steps=[Step(run="echo hello")])
    return Workflow(name="CI", on=Triggers(push=PushTrigger(branches=["main"])), jobs={"build": build})
