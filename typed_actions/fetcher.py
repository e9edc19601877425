"""
Upstream schemas and action metadata.

Downloads the JSON schemas the emitted files must conform to and the
``action.yml`` of actions, and renders a typed wrapper class for an action
from its metadata.
"""

import json
import keyword
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from typed_actions.globals.diagnostics import Diagnostic, DiagnosticKind, error
from typed_actions.globals.web_fetcher import IWebFetcher, WebFetcher
from typed_actions.importer.codegen import string_literal
from typed_actions.naming import to_identifier, to_snake

logger = logging.getLogger(__name__)

SCHEMA_URLS: Dict[str, str] = {
    "workflow": "https://json.schemastore.org/github-workflow.json",
    "dependabot": "https://json.schemastore.org/dependabot-2.0.json",
    "issue-forms": "https://json.schemastore.org/github-issue-forms.json",
}

POPULAR_ACTIONS: Dict[str, Tuple[str, str]] = {
    "checkout": ("actions", "checkout"),
    "setup-go": ("actions", "setup-go"),
    "setup-node": ("actions", "setup-node"),
    "setup-python": ("actions", "setup-python"),
    "setup-java": ("actions", "setup-java"),
    "cache": ("actions", "cache"),
    "upload-artifact": ("actions", "upload-artifact"),
    "download-artifact": ("actions", "download-artifact"),
}

BOOLEAN_DEFAULTS = ("true", "false")


def action_url(owner: str, repo: str, ref: str = "main", filename: str = "action.yml") -> str:
    return f"https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{filename}"


def split_action(reference: str) -> Tuple[str, str, str]:
    """
    Split ``owner/repo[@ref]`` into its parts.

    Raises:
        ValueError: If the reference has no owner or repository.
    """
    path, _, ref = reference.partition("@")
    parts = path.split("/")
    if len(parts) < 2 or not all(parts[:2]):
        raise ValueError(f"invalid action reference '{reference}', expected owner/repo[@ref]")
    return parts[0], parts[1], ref or "main"


@dataclass
class ActionInput:
    name: str
    description: str = ""
    required: bool = False
    default: Optional[str] = None
    deprecation_message: Optional[str] = None


@dataclass
class ActionOutput:
    name: str
    description: str = ""


@dataclass
class ActionSpec:
    """Parsed ``action.yml``.

    Attributes:
        name: Display name of the action.
        description: One-line description.
        using: Runtime from ``runs.using`` (node20, docker, composite, ...).
        inputs: Inputs in file order.
        outputs: Outputs in file order.
    """

    name: str = ""
    description: str = ""
    author: str = ""
    using: str = ""
    inputs: List[ActionInput] = field(default_factory=list)
    outputs: List[ActionOutput] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "ActionSpec":
        """
        Parse an ``action.yml`` document.

        Raises:
            ValueError: If the document is not a YAML mapping.
        """
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid action metadata: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("action metadata must be a mapping")

        inputs = []
        for name, entry in (data.get("inputs") or {}).items():
            entry = entry or {}
            default = entry.get("default")
            if isinstance(default, bool):
                default = str(default).lower()
            inputs.append(
                ActionInput(
                    name=str(name),
                    description=str(entry.get("description") or ""),
                    required=str(entry.get("required", False)).lower() == "true",
                    default=None if default is None else str(default),
                    deprecation_message=entry.get("deprecationMessage"),
                )
            )
        outputs = [
            ActionOutput(name=str(name), description=str((entry or {}).get("description") or ""))
            for name, entry in (data.get("outputs") or {}).items()
        ]
        runs = data.get("runs") or {}
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            author=str(data.get("author") or ""),
            using=str(runs.get("using") or "") if isinstance(runs, dict) else "",
            inputs=inputs,
            outputs=outputs,
        )


def _field_name(input_name: str) -> str:
    name = to_snake(input_name.replace("-", "_"))
    if keyword.iskeyword(name) or name in ("ref", "as_step", "inputs", "action_ref"):
        name += "_"
    return name


def wrapper_source(spec: ActionSpec, reference: str) -> str:
    """
    Render a typed wrapper class for an action.

    Inputs whose default is ``true``/``false`` become ``bool`` fields, all
    others optional strings or expressions. Fields whose Python name differs
    from the input name carry the input name as metadata.

    Args:
        spec: Parsed action metadata.
        reference: ``owner/repo@ref`` the wrapper points at.

    Returns:
        str: Module source defining one ``Action`` subclass.
    """
    class_name = to_identifier(spec.name or reference.split("@")[0].split("/")[-1])
    lines = [
        f'"""Typed wrapper for {reference}."""',
        "",
        "from dataclasses import dataclass, field",
        "from typing import ClassVar",
        "",
        "from typed_actions.actions import Action, Input",
        "",
        "",
        "@dataclass(frozen=True, kw_only=True)",
        f"class {class_name}(Action):",
    ]
    if spec.description:
        lines.append(f"    {string_literal(spec.description.strip().splitlines()[0])}")
        lines.append("")
    lines.append(f"    ref: ClassVar[str] = {string_literal(reference)}")
    if spec.inputs:
        lines.append("")
    for action_input in spec.inputs:
        name = _field_name(action_input.name)
        kind, default = "Input", "None"
        if action_input.default in BOOLEAN_DEFAULTS:
            kind, default = "bool", "False"
        if name.rstrip("_").replace("_", "-") != action_input.name:
            default = f'field(default={default}, metadata={{"key": {string_literal(action_input.name)}}})'
        lines.append(f"    {name}: {kind} = {default}")
    return "\n".join(lines) + "\n"


@dataclass
class FetchResult:
    """Files written by ``fetch_all`` plus any download failures."""

    files: List[Path] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.diagnostics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "errors": [d.to_dict() for d in self.diagnostics],
            "files": [str(p) for p in self.files],
        }


class SchemaFetcher:
    """
    Downloads schemas and action metadata through an IWebFetcher.

    Args:
        web_fetcher: HTTP client; a WebFetcher by default.
    """

    def __init__(self, web_fetcher: Optional[IWebFetcher] = None) -> None:
        self.web_fetcher = web_fetcher or WebFetcher()

    def fetch_schema(self, schema_type: str) -> Optional[Dict[str, Any]]:
        """
        Download one JSON schema.

        Raises:
            KeyError: If ``schema_type`` is not one of SCHEMA_URLS.
        """
        response = self.web_fetcher.fetch(SCHEMA_URLS[schema_type])
        if response is None:
            return None
        return response.json()

    def fetch_action_text(self, reference: str) -> Optional[str]:
        """Raw ``action.yml`` (or ``action.yaml``) of ``owner/repo[@ref]``."""
        owner, repo, ref = split_action(reference)
        for filename in ("action.yml", "action.yaml"):
            response = self.web_fetcher.fetch(action_url(owner, repo, ref, filename))
            if response is not None:
                return response.text
        return None

    def fetch_action(self, reference: str) -> Optional[ActionSpec]:
        text = self.fetch_action_text(reference)
        if text is None:
            return None
        return ActionSpec.parse(text)

    def fetch_all(self, out_dir: Path) -> FetchResult:
        """
        Download every schema and the metadata of every popular action.

        Writes ``<type>.json`` per schema, ``<name>.yml`` per action and a
        ``manifest.json`` listing the sources. A failed download is reported
        and the rest continue.
        """
        result = FetchResult()
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            result.diagnostics.append(error(DiagnosticKind.IO, f"cannot create directory: {e.strerror}", path=str(out_dir)))
            return result

        manifest: Dict[str, Any] = {
            "version": "1.0",
            "schemas": [],
            "actions": [],
            "fetched_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        for schema_type, url in SCHEMA_URLS.items():
            response = self.web_fetcher.fetch(url)
            if response is None:
                result.diagnostics.append(error(DiagnosticKind.IO, f"cannot fetch {schema_type} schema from {url}"))
                continue
            filename = f"{schema_type}.json"
            self._write(out_dir / filename, response.text, result)
            manifest["schemas"].append({"type": schema_type, "url": url, "file": filename})

        for name, (owner, repo) in POPULAR_ACTIONS.items():
            text = self.fetch_action_text(f"{owner}/{repo}")
            if text is None:
                result.diagnostics.append(error(DiagnosticKind.IO, f"cannot fetch action metadata for {owner}/{repo}"))
                continue
            filename = f"{name}.yml"
            self._write(out_dir / filename, text, result)
            manifest["actions"].append(
                {"name": name, "owner": owner, "repo": repo, "url": action_url(owner, repo), "file": filename}
            )

        self._write(out_dir / "manifest.json", json.dumps(manifest, indent=2) + "\n", result)
        logger.info("Fetched %d files into %s", len(result.files), out_dir)
        return result

    @staticmethod
    def _write(path: Path, text: str, result: FetchResult) -> None:
        try:
            path.write_text(text, encoding="utf-8", newline="\n")
        except OSError as e:
            result.diagnostics.append(error(DiagnosticKind.IO, f"cannot write file: {e.strerror}", path=str(path)))
            return
        result.files.append(path)
