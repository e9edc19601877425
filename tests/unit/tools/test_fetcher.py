"""Unit tests for schema and action metadata fetching."""

import ast
import json
from typing import Dict, Optional
from unittest.mock import MagicMock

import pytest

from typed_actions.fetcher import (
    POPULAR_ACTIONS,
    SCHEMA_URLS,
    ActionSpec,
    SchemaFetcher,
    action_url,
    split_action,
    wrapper_source,
)
from typed_actions.globals.diagnostics import DiagnosticKind
from typed_actions.globals.web_fetcher import IWebFetcher

ACTION_YML = """
name: Setup Widget
description: |
  Install the widget toolchain.
  Caches downloads.
inputs:
  widget-version:
    description: Version to install
    required: true
  cache:
    description: Cache downloads
    default: true
  if:
    description: Odd name
outputs:
  path:
    description: Install location
runs:
  using: node20
  main: dist/index.js
"""


class FakeWebFetcher(IWebFetcher):
    """Serves canned responses keyed by URL."""

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.requested = []

    def fetch(self, url: str) -> Optional[MagicMock]:
        self.requested.append(url)
        if url not in self.pages:
            return None
        response = MagicMock()
        response.text = self.pages[url]
        response.json.return_value = json.loads(self.pages[url]) if url.endswith(".json") else None
        return response

    def clear_cache(self) -> None:
        pass


class TestActionSpec:
    """Parsing action metadata."""

    def test_parse(self):
        spec = ActionSpec.parse(ACTION_YML)
        assert spec.name == "Setup Widget"
        assert spec.using == "node20"
        assert [i.name for i in spec.inputs] == ["widget-version", "cache", "if"]
        assert spec.inputs[0].required is True
        assert spec.inputs[1].default == "true"
        assert [o.name for o in spec.outputs] == ["path"]

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            ActionSpec.parse("- a\n")


class TestWrapperSource:
    """Rendering wrapper classes."""

    def test_wrapper(self):
        source = wrapper_source(ActionSpec.parse(ACTION_YML), "acme/setup-widget@v2")
        ast.parse(source)
        assert "class SetupWidget(Action):" in source
        assert 'ref: ClassVar[str] = "acme/setup-widget@v2"' in source
        assert '"Install the widget toolchain."' in source
        assert "widget_version: Input = None" in source
        assert "cache: bool = False" in source
        assert "if_: Input = None" in source

    def test_name_falls_back_to_repo(self):
        source = wrapper_source(ActionSpec(), "acme/do-thing@v1")
        assert "class DoThing(Action):" in source


class TestSchemaFetcher:
    """Downloads through an IWebFetcher."""

    def test_split_action(self):
        assert split_action("actions/checkout@v4") == ("actions", "checkout", "v4")
        assert split_action("actions/cache") == ("actions", "cache", "main")
        with pytest.raises(ValueError):
            split_action("checkout")

    def test_fetch_schema(self):
        fetcher = SchemaFetcher(FakeWebFetcher({SCHEMA_URLS["workflow"]: '{"title": "wf"}'}))
        assert fetcher.fetch_schema("workflow") == {"title": "wf"}
        assert fetcher.fetch_schema("dependabot") is None

    def test_action_yaml_fallback(self):
        url = action_url("acme", "widget", "v1", "action.yaml")
        web = FakeWebFetcher({url: ACTION_YML})
        spec = SchemaFetcher(web).fetch_action("acme/widget@v1")
        assert spec.name == "Setup Widget"
        assert web.requested == [action_url("acme", "widget", "v1"), url]

    def test_fetch_all(self, tmp_path):
        pages = {url: "{}" for url in SCHEMA_URLS.values()}
        pages.update({action_url(owner, repo): ACTION_YML for owner, repo in POPULAR_ACTIONS.values()})
        result = SchemaFetcher(FakeWebFetcher(pages)).fetch_all(tmp_path)
        assert result.success
        assert (tmp_path / "workflow.json").exists()
        assert (tmp_path / "checkout.yml").read_text() == ACTION_YML
        manifest = json.loads((tmp_path / "manifest.json").read_text())
        assert len(manifest["schemas"]) == len(SCHEMA_URLS)
        assert len(manifest["actions"]) == len(POPULAR_ACTIONS)

    def test_fetch_all_reports_failures(self, tmp_path):
        result = SchemaFetcher(FakeWebFetcher({})).fetch_all(tmp_path)
        assert not result.success
        assert all(d.kind == DiagnosticKind.IO for d in result.diagnostics)
        assert len(result.diagnostics) == len(SCHEMA_URLS) + len(POPULAR_ACTIONS)
        assert result.files == [tmp_path / "manifest.json"]
