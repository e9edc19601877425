import logging
import os
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import typer

from typed_actions.cli import (
    CLI,
    BuildCLI,
    DiffCLI,
    FetchCLI,
    GraphCLI,
    ImportCLI,
    InitCLI,
    LintCLI,
    ListCLI,
    ValidateCLI,
    WatchCLI,
)
from typed_actions.differ import DIFF_FORMATS
from typed_actions.discover.graph import DIRECTIONS, FORMATS
from typed_actions.globals.cli_config import BUILD_TYPES, BuildConfig, CLIConfig, WatchConfig
from typed_actions.importer.importer import IMPORT_TYPES, ImportConfig

app = typer.Typer(help="Declare GitHub Actions workflows in typed Python and build them to YAML.")

DURATION = re.compile(r"^(\d+(?:\.\d+)?)(ms|s)?$")


def choice(value: str, allowed: Sequence[str], option: str) -> str:
    if value not in allowed:
        raise typer.BadParameter(f"must be one of {', '.join(allowed)}", param_hint=option)
    return value


def parse_duration(value: str) -> float:
    """Seconds from ``500ms``, ``2s`` or a bare number of seconds."""
    match = DURATION.match(value.strip())
    if not match:
        raise typer.BadParameter(f"invalid duration '{value}'", param_hint="--debounce")
    amount = float(match.group(1))
    return amount / 1000 if match.group(2) == "ms" else amount


def execute(cli: CLI) -> None:
    sys.exit(cli.run())


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    in_process: bool = typer.Option(
        False, "--in-process", help="Evaluate workflow modules in this process instead of a child interpreter"
    ),
):
    """Main CLI entry point for typed-actions.

    Environment Variables:
        GH_TOKEN: GitHub token for the fetcher (optional, raises rate limits)

    Examples:
        Build every workflow of a package:
            $ typed-actions build ci_workflows

        Convert an existing workflow:
            $ typed-actions import .github/workflows/ci.yml -o .

        Check style:
            $ typed-actions lint ci_workflows --fix
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = CLIConfig(github_token=os.getenv("GH_TOKEN"), verbose=verbose, in_process=in_process)


def _config(ctx: typer.Context, output_format: str = "text") -> CLIConfig:
    base: CLIConfig = ctx.obj or CLIConfig(github_token=os.getenv("GH_TOKEN"))
    return CLIConfig(
        output_format=output_format,
        github_token=base.github_token,
        verbose=base.verbose,
        in_process=base.in_process,
    )


@app.command()
def build(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Package or module declaring workflows"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be written without writing"),
    output_format: str = typer.Option("yaml", "--format", help="Report format: yaml or json"),
    kind: str = typer.Option("workflow", "--type", help="Declarations to build: " + ", ".join(BUILD_TYPES)),
    no_header: bool = typer.Option(False, "--no-header", help="Omit the source attribution header"),
):
    """Discover, evaluate and emit workflows as YAML."""
    config = BuildConfig(
        path=path,
        output=output,
        dry_run=dry_run,
        output_format=choice(output_format, ("yaml", "json"), "--format"),
        kind=choice(kind, BUILD_TYPES, "--type"),
        attribution=not no_header,
    )
    execute(BuildCLI(_config(ctx), config))


@app.command("import")
def import_(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Workflow YAML, dependabot.yml, CODEOWNERS or template file"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Directory to write the package into"),
    single_file: bool = typer.Option(False, "--single-file", help="Generate one module instead of four"),
    no_scaffold: bool = typer.Option(False, "--no-scaffold", help="Skip pyproject.toml, README.md and .gitignore"),
    kind: str = typer.Option("workflow", "--type", help="Input format: " + ", ".join(IMPORT_TYPES)),
    package: Optional[str] = typer.Option(None, "--package", help="Package name for the generated code"),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
):
    """Convert an existing configuration file into typed declarations."""
    import_config = ImportConfig(
        kind=choice(kind, IMPORT_TYPES, "--type"),
        single_file=single_file,
        scaffold=not no_scaffold,
        package=package,
    )
    config = _config(ctx, choice(output_format, ("text", "json"), "--format"))
    execute(ImportCLI(config, file, output, import_config))


@app.command()
def validate(
    ctx: typer.Context,
    files: List[Path] = typer.Argument(..., help="Workflow YAML files"),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
):
    """Validate workflow YAML with actionlint."""
    config = _config(ctx, choice(output_format, ("text", "json"), "--format"))
    execute(ValidateCLI(config, files))


@app.command("list")
def list_(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Source tree to scan"),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
):
    """List discovered workflows and their job counts."""
    config = _config(ctx, choice(output_format, ("text", "json"), "--format"))
    execute(ListCLI(config, path))


@app.command()
def lint(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Source tree to check"),
    fix: bool = typer.Option(False, "--fix", help="Automatically fix some problems"),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
):
    """Check workflow declarations against the style rules WAG001 to WAG008."""
    config = _config(ctx, choice(output_format, ("text", "json"), "--format"))
    execute(LintCLI(config, path, fix=fix))


@app.command()
def diff(
    ctx: typer.Context,
    old: Path = typer.Argument(..., help="Left side: source tree or YAML"),
    new: Path = typer.Argument(..., help="Right side: source tree or YAML"),
    from_yaml: bool = typer.Option(False, "--yaml", help="Read both sides as workflow YAML"),
    output_format: str = typer.Option("text", "--format", help="Output format: text, json or markdown"),
):
    """Show job and dependency changes between two workflows."""
    diff_format = choice(output_format, DIFF_FORMATS, "--format")
    execute(DiffCLI(_config(ctx), old, new, from_yaml=from_yaml, diff_format=diff_format))


@app.command()
def graph(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Source tree or workflow YAML"),
    output_format: str = typer.Option("dot", "--format", help="Output format: dot, mermaid or json"),
    direction: str = typer.Option("TB", "--direction", help="Layout direction: TB or LR"),
):
    """Print the job dependency graph."""
    graph_format = choice(output_format, FORMATS, "--format")
    config = _config(ctx, "json" if graph_format == "json" else "text")
    execute(GraphCLI(config, path, graph_format, choice(direction, DIRECTIONS, "--direction")))


@app.command()
def init(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Project name"),
    output: Path = typer.Option(Path("."), "--output", "-o", help="Parent directory of the new project"),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
):
    """Scaffold a new typed workflow package."""
    config = _config(ctx, choice(output_format, ("text", "json"), "--format"))
    execute(InitCLI(config, name, output))


@app.command()
def watch(
    ctx: typer.Context,
    path: Path = typer.Argument(Path("."), help="Source tree to watch"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory for rebuilt workflows"),
    debounce: str = typer.Option("500ms", "--debounce", "-d", help="Quiet period before rebuilding, e.g. 300ms"),
    lint_only: bool = typer.Option(False, "--lint-only", help="Only lint on changes, don't rebuild"),
):
    """Rebuild workflows whenever their source changes."""
    config = WatchConfig(path=path, output=output, debounce=parse_duration(debounce), lint_only=lint_only)
    execute(WatchCLI(_config(ctx), config))


@app.command()
def fetch(
    ctx: typer.Context,
    output: Path = typer.Option(Path("specs"), "--output", "-o", help="Directory for downloaded files"),
    action: Optional[str] = typer.Option(
        None, "--action", help="Print a typed wrapper for owner/repo[@ref] instead"
    ),
    output_format: str = typer.Option("text", "--format", help="Output format: text or json"),
):
    """Download workflow schemas and action metadata."""
    config = _config(ctx, choice(output_format, ("text", "json"), "--format"))
    execute(FetchCLI(config, output, action))
