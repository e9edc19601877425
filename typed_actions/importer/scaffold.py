"""Project scaffolding for imported and newly initialised workflow packages."""

import logging
from pathlib import Path
from typing import Dict, List

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error
from typed_actions.naming import to_identifier, to_snake

logger = logging.getLogger(__name__)

GITIGNORE = """__pycache__/
*.py[cod]
*.egg-info/
.venv/
build/
dist/
"""


def package_name(name: str) -> str:
    """Importable package name for a project label."""
    snake = to_snake(name)
    if not snake or not snake[0].isalpha():
        snake = "workflows_" + snake if snake else "workflows"
    return snake


def manifest(project: str, package: str) -> str:
    return f"""[build-system]
requires = ["setuptools>=68"]
build-backend = "setuptools.build_meta"

[project]
name = "{project}"
version = "0.1.0"
dependencies = ["typed-actions"]

[tool.setuptools]
packages = ["{package}"]
"""


def readme(project: str, package: str) -> str:
    return f"""# {project}

GitHub Actions workflows declared in Python with typed-actions.

## Build

```
typed-actions build {package} -o .github/workflows
```

## Check

```
typed-actions lint {package}
typed-actions graph {package}
```
"""


def scaffold_files(project: str, package: str) -> Dict[str, str]:
    return {
        "pyproject.toml": manifest(project, package),
        "README.md": readme(project, package),
        ".gitignore": GITIGNORE,
    }


def starter_files(name: str) -> Dict[str, str]:
    """Package files for ``typed-actions init``."""
    symbol = to_identifier(name)
    workflows = f'''"""{name} workflow."""

from typed_actions import Job, PushTrigger, PullRequestTrigger, Step, Triggers, Workflow
from typed_actions.actions import Checkout

BuildSteps = [
    Checkout().as_step(name="Checkout"),
    Step(name="Build", run="echo build"),
]

Build = Job(runs_on="ubuntu-latest", steps=BuildSteps)

{symbol}Triggers = Triggers(
    push=PushTrigger(branches=["main"]),
    pull_request=PullRequestTrigger(branches=["main"]),
)

{symbol} = Workflow(name={name!r}, on={symbol}Triggers, jobs={{"build": Build}})
'''
    return {"__init__.py": "", "workflows.py": workflows}


def write_files(root: Path, files: Dict[str, str]) -> List[Diagnostic]:
    """Write ``files`` under ``root``, creating directories as needed."""
    problems: List[Diagnostic] = []
    for relative, content in files.items():
        target = root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
            logger.debug("Wrote %s", target)
        except OSError as e:
            problems.append(error(DiagnosticKind.IO, f"cannot write file: {e}", path=str(target)))
    return problems
