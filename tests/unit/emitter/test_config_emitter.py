"""Unit tests for the dependabot, issue and discussion form, CODEOWNERS and PR template emitters."""

import pytest

from typed_actions.emitter.config_emitter import (
    emit_codeowners,
    emit_dependabot,
    emit_discussion_template,
    emit_issue_template,
    emit_pr_template,
)
from typed_actions.emitter.yaml_dumper import load
from typed_actions.globals.errors import EmitError
from typed_actions.model import (
    CheckboxOption,
    Checkboxes,
    Codeowners,
    DependabotConfig,
    DiscussionTemplate,
    Dropdown,
    Input,
    IssueTemplate,
    Markdown,
    PRTemplate,
    Rule,
    Schedule,
    Update,
)


class TestDependabot:
    """dependabot.yml output."""

    def test_version_and_updates(self):
        config = DependabotConfig(
            updates=[
                Update(package_ecosystem="pip", directory="/", schedule=Schedule(interval="weekly"), labels=["deps"]),
            ]
        )
        data = load(emit_dependabot(config).decode("utf-8"))
        assert data == {
            "version": 2,
            "updates": [
                {
                    "package-ecosystem": "pip",
                    "directory": "/",
                    "schedule": {"interval": "weekly"},
                    "labels": ["deps"],
                }
            ],
        }

    def test_version_comes_first(self):
        text = emit_dependabot(DependabotConfig(updates=[Update(package_ecosystem="npm")])).decode("utf-8")
        assert text.startswith("version: 2\nupdates:\n")


class TestIssueTemplate:
    """Issue form output."""

    def test_elements(self):
        template = IssueTemplate(
            name="Bug report",
            description="File a bug",
            labels=["bug"],
            body=[
                Markdown(value="Thanks for reporting!"),
                Input(id="version", label="Version", required=True),
                Dropdown(label="OS", options=["Linux", "macOS"]),
                Checkboxes(label="Terms", options=[CheckboxOption(label="I agree", required=True)]),
            ],
        )
        data = load(emit_issue_template(template).decode("utf-8"))
        assert data["name"] == "Bug report"
        assert data["labels"] == ["bug"]
        assert data["body"] == [
            {"type": "markdown", "attributes": {"value": "Thanks for reporting!"}},
            {"type": "input", "id": "version", "attributes": {"label": "Version"}, "validations": {"required": True}},
            {"type": "dropdown", "attributes": {"label": "OS", "options": ["Linux", "macOS"]}},
            {"type": "checkboxes", "attributes": {"label": "Terms", "options": [{"label": "I agree", "required": True}]}},
        ]

    def test_unknown_element(self):
        template = IssueTemplate(name="x", description="y", body=["free text"])
        with pytest.raises(EmitError):
            emit_issue_template(template)


class TestDiscussionTemplate:
    """Discussion form output."""

    def test_title_labels_and_body(self):
        template = DiscussionTemplate(
            title="Ideas",
            description="Share an idea",
            labels=["idea"],
            body=[Markdown(value="Be kind."), Input(id="summary", label="Summary")],
        )
        text = emit_discussion_template(template).decode("utf-8")
        assert text.startswith("title: Ideas\ndescription: Share an idea\nlabels:\n")
        assert load(text)["body"] == [
            {"type": "markdown", "attributes": {"value": "Be kind."}},
            {"type": "input", "id": "summary", "attributes": {"label": "Summary"}},
        ]

    def test_labels_omitted_when_empty(self):
        template = DiscussionTemplate(title="Q&A", description="Ask", labels=[], body=[Markdown(value="Hi")])
        assert "labels" not in load(emit_discussion_template(template).decode("utf-8"))


class TestCodeowners:
    """CODEOWNERS output."""

    def test_rules_with_comments(self):
        owners = Codeowners(
            rules=[
                Rule(pattern="*", owners=["@org/team"], comment="Default owners"),
                Rule(pattern="/docs/", owners=["@alice", "@bob"]),
            ]
        )
        assert emit_codeowners(owners) == b"# Default owners\n* @org/team\n/docs/ @alice @bob\n"

    def test_empty(self):
        assert emit_codeowners(Codeowners()) == b""


class TestPRTemplate:
    """Pull request template output."""

    def test_content_ends_with_newline(self):
        assert emit_pr_template(PRTemplate(content="## Summary")) == b"## Summary\n"

    def test_filenames(self):
        assert PRTemplate(content="").filename() == "PULL_REQUEST_TEMPLATE.md"
        assert PRTemplate(content="", name="feature").filename() == "PULL_REQUEST_TEMPLATE/feature.md"
