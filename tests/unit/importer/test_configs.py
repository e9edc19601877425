"""Unit tests for decoding dependabot, CODEOWNERS, issue and discussion forms and PR templates."""

from typed_actions.emitter.config_emitter import emit_codeowners, emit_dependabot
from typed_actions.globals.diagnostics import DiagnosticLevel
from typed_actions.importer.configs import (
    generate_module,
    parse_codeowners,
    parse_dependabot,
    parse_discussion_template,
    parse_issue_template,
    parse_pr_template,
)
from typed_actions.model import Checkboxes, Dropdown, Input, Markdown, Rule, Schedule

DEPENDABOT = """\
version: 2
updates:
  - package-ecosystem: pip
    directory: /
    schedule:
      interval: weekly
    groups:
      dev:
        patterns:
          - pytest*
"""

ISSUE_FORM = """\
name: Bug report
description: File a bug
labels: bug, triage
body:
  - type: markdown
    attributes:
      value: Thanks!
  - type: dropdown
    id: os
    attributes:
      label: OS
      options: [Linux, macOS]
    validations:
      required: true
  - type: checkboxes
    attributes:
      label: Terms
      options:
        - label: I agree
          required: true
"""


DISCUSSION_FORM = """\
title: Ideas
description: Share an idea
labels: idea, feedback
body:
  - type: input
    id: summary
    attributes:
      label: Summary
    validations:
      required: true
"""


class TestCodeowners:
    """CODEOWNERS text."""

    def test_rules_and_comments(self):
        text = "# Default owners\n* @org/team\n\n/docs/ @alice @bob # docs team\n"
        owners, problems = parse_codeowners(text)
        assert problems == []
        assert owners.rules == [
            Rule(pattern="*", owners=["@org/team"], comment="Default owners"),
            Rule(pattern="/docs/", owners=["@alice", "@bob"], comment="docs team"),
        ]

    def test_inline_comment_wins(self):
        owners, _ = parse_codeowners("# full line\n*.py @py # inline\n")
        assert owners.rules[0].comment == "inline"

    def test_rule_without_owner(self):
        owners, problems = parse_codeowners("* @a\n/lonely\n")
        assert len(owners.rules) == 1
        assert problems[0].pos.line == 1

    def test_emit_round_trip(self):
        text = "# Default owners\n* @org/team\n/docs/ @alice @bob\n"
        owners, _ = parse_codeowners(text)
        assert emit_codeowners(owners).decode("utf-8") == text


class TestDependabot:
    """dependabot.yml."""

    def test_nested_models(self):
        config, problems = parse_dependabot(DEPENDABOT)
        assert problems == []
        update = config.updates[0]
        assert update.package_ecosystem == "pip"
        assert update.schedule == Schedule(interval="weekly")
        assert update.groups["dev"].patterns == ["pytest*"]

    def test_emit_matches_input(self):
        config, _ = parse_dependabot(DEPENDABOT)
        assert emit_dependabot(config).decode("utf-8") == DEPENDABOT

    def test_unknown_key_is_a_warning(self):
        config, problems = parse_dependabot("version: 2\nupdates: []\nextra: 1\n")
        assert config is not None
        assert [p.level for p in problems] == [DiagnosticLevel.WAR]

    def test_missing_required_field(self):
        config, problems = parse_dependabot("version: 2\nupdates:\n  - directory: /\n")
        assert config.updates == []
        assert problems[0].level == DiagnosticLevel.ERR

    def test_not_a_mapping(self):
        config, problems = parse_dependabot("- 1\n")
        assert config is None
        assert problems[0].desc == "document must be a mapping"


class TestIssueTemplate:
    """Issue forms."""

    def test_elements(self):
        template, problems = parse_issue_template(ISSUE_FORM)
        assert problems == []
        assert template.labels == ["bug", "triage"]
        markdown, dropdown, checkboxes = template.body
        assert markdown == Markdown(value="Thanks!")
        assert dropdown == Dropdown(id="os", label="OS", options=["Linux", "macOS"], required=True)
        assert isinstance(checkboxes, Checkboxes)
        assert checkboxes.options[0].required

    def test_unknown_element_type(self):
        template, problems = parse_issue_template("name: x\ndescription: y\nbody:\n  - type: slider\n")
        assert template.body == []
        assert "no known form element type" in problems[0].desc


class TestDiscussionTemplate:
    """Discussion forms."""

    def test_title_labels_and_body(self):
        template, problems = parse_discussion_template(DISCUSSION_FORM)
        assert problems == []
        assert template.title == "Ideas"
        assert template.labels == ["idea", "feedback"]
        assert template.body == [Input(id="summary", label="Summary", required=True)]

    def test_missing_title(self):
        template, problems = parse_discussion_template("description: y\nbody: []\n", "ideas.yml")
        assert template is None
        assert problems[0].level == DiagnosticLevel.ERR
        assert problems[0].path == "ideas.yml"


class TestGeneratedModules:
    """Source for config declarations."""

    def test_codeowners_module(self):
        owners, _ = parse_codeowners("* @a\n")
        source = generate_module(owners, "Owners", "Code owners.")
        assert source.startswith('"""Code owners."""\n\nfrom typed_actions import Codeowners, Rule\n')
        assert 'Owners = Codeowners(rules=[Rule(pattern="*", owners=["@a"])])' in source

    def test_pr_template(self):
        template = parse_pr_template("## Summary\n", "feature")
        assert template.name == "feature"
        assert parse_pr_template("x", "").name is None
