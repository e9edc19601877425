from typed_actions.model.codeowners import Codeowners, Rule
from typed_actions.model.dependabot import (
    Allow,
    CommitMessage,
    DependabotConfig,
    Group,
    Ignore,
    PullRequestBranchName,
    Registry,
    Schedule,
    Update,
)
from typed_actions.model.templates import (
    CheckboxOption,
    Checkboxes,
    DiscussionTemplate,
    Dropdown,
    Input,
    IssueTemplate,
    Markdown,
    PRTemplate,
    Textarea,
)
from typed_actions.model.triggers import *  # noqa: F401,F403
from typed_actions.model.validation import validate, validate_job_graph
from typed_actions.model.workflow import (
    Concurrency,
    Container,
    Credentials,
    Defaults,
    Environment,
    Job,
    Matrix,
    Permissions,
    RunDefaults,
    Step,
    StepAction,
    Strategy,
    Workflow,
)
