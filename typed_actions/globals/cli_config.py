from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BUILD_TYPES = ("workflow", "dependabot", "codeowners", "issue-template", "discussion-template", "pr-template")

DEFAULT_OUTPUTS = {
    "workflow": Path(".github/workflows"),
    "dependabot": Path(".github"),
    "codeowners": Path(".github"),
    "issue-template": Path(".github/ISSUE_TEMPLATE"),
    "discussion-template": Path(".github/DISCUSSION_TEMPLATE"),
    "pr-template": Path(".github"),
}


@dataclass
class CLIConfig:
    """
    Settings shared by every command.

    Attributes:
        output_format: ``text`` or ``json`` for diagnostics output.
        github_token: Token for the fetcher, read from GH_TOKEN.
        verbose: Log at DEBUG level.
        in_process: Evaluate user modules in this process instead of a child
            interpreter.
    """

    output_format: str = "text"
    github_token: Optional[str] = None
    verbose: bool = False
    in_process: bool = False


@dataclass
class BuildConfig:
    """
    Settings for ``build``.

    Attributes:
        path: Source tree to build.
        output: Output directory, the default for ``kind`` when unset.
        dry_run: Report the files without writing them.
        output_format: ``yaml`` prints the build report as text, ``json``
            as a JSON payload.
        kind: Declaration type to build, one of BUILD_TYPES.
        attribution: Prefix workflows with a header naming their source.
    """

    path: Path
    output: Optional[Path] = None
    dry_run: bool = False
    output_format: str = "yaml"
    kind: str = "workflow"
    attribution: bool = True

    def output_dir(self) -> Path:
        return self.output if self.output is not None else DEFAULT_OUTPUTS[self.kind]


@dataclass
class WatchConfig:
    """
    Settings for ``watch``.

    Attributes:
        path: Source tree to watch.
        output: Output directory for rebuilt workflows.
        debounce: Seconds of quiet after a change before rebuilding.
        lint_only: Lint instead of building.
        interval: Seconds between polls of the file tree.
    """

    path: Path
    output: Optional[Path] = None
    debounce: float = 0.5
    lint_only: bool = False
    interval: float = 0.2
