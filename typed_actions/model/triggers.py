"""Trigger (``on:``) entities.

Every event kind has its own class. Bare events carry no fields, types-only
events carry a ``types`` list and the push family carries include/ignore
filter lists.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, kw_only=True)
class BareTrigger:
    pass


@dataclass(frozen=True, kw_only=True)
class TypesTrigger:
    types: List[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class PushTrigger:
    branches: List[str] = field(default_factory=list)
    branches_ignore: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    tags_ignore: List[str] = field(default_factory=list)
    paths: List[str] = field(default_factory=list)
    paths_ignore: List[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class PullRequestTrigger:
    types: List[str] = field(default_factory=list)
    branches: List[str] = field(default_factory=list)
    branches_ignore: List[str] = field(default_factory=list)
    paths: List[str] = field(default_factory=list)
    paths_ignore: List[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class PullRequestTargetTrigger(PullRequestTrigger):
    pass


@dataclass(frozen=True, kw_only=True)
class ScheduleTrigger:
    cron: str


@dataclass(frozen=True, kw_only=True)
class WorkflowInput:
    description: Optional[str] = None
    required: bool = False
    default: Any = None
    type: Optional[str] = None
    options: List[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class WorkflowOutput:
    description: Optional[str] = None
    value: Any = None


@dataclass(frozen=True, kw_only=True)
class WorkflowSecret:
    description: Optional[str] = None
    required: bool = False


@dataclass(frozen=True, kw_only=True)
class WorkflowDispatchTrigger:
    inputs: Dict[str, WorkflowInput] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class WorkflowCallTrigger:
    inputs: Dict[str, WorkflowInput] = field(default_factory=dict)
    outputs: Dict[str, WorkflowOutput] = field(default_factory=dict)
    secrets: Dict[str, WorkflowSecret] = field(default_factory=dict)


@dataclass(frozen=True, kw_only=True)
class WorkflowRunTrigger:
    workflows: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)
    branches: List[str] = field(default_factory=list)
    branches_ignore: List[str] = field(default_factory=list)


class RepositoryDispatchTrigger(TypesTrigger):
    pass


class ReleaseTrigger(TypesTrigger):
    pass


class IssuesTrigger(TypesTrigger):
    pass


class IssueCommentTrigger(TypesTrigger):
    pass


class LabelTrigger(TypesTrigger):
    pass


class MilestoneTrigger(TypesTrigger):
    pass


class ProjectTrigger(TypesTrigger):
    pass


class ProjectCardTrigger(TypesTrigger):
    pass


class ProjectColumnTrigger(TypesTrigger):
    pass


class PullRequestReviewTrigger(TypesTrigger):
    pass


class PullRequestReviewCommentTrigger(TypesTrigger):
    pass


class WatchTrigger(TypesTrigger):
    pass


class CheckRunTrigger(TypesTrigger):
    pass


class CheckSuiteTrigger(TypesTrigger):
    pass


class DiscussionTrigger(TypesTrigger):
    pass


class DiscussionCommentTrigger(TypesTrigger):
    pass


class MergeGroupTrigger(TypesTrigger):
    pass


class CreateTrigger(BareTrigger):
    pass


class DeleteTrigger(BareTrigger):
    pass


class ForkTrigger(BareTrigger):
    pass


class GollumTrigger(BareTrigger):
    pass


class PublicTrigger(BareTrigger):
    pass


class PageBuildTrigger(BareTrigger):
    pass


class StatusTrigger(BareTrigger):
    pass


@dataclass(frozen=True, kw_only=True)
class Triggers:
    """The ``on:`` block. Attribute names are the event names."""

    push: Optional[PushTrigger] = None
    pull_request: Optional[PullRequestTrigger] = None
    pull_request_target: Optional[PullRequestTargetTrigger] = None
    schedule: List[ScheduleTrigger] = field(default_factory=list)
    workflow_dispatch: Optional[WorkflowDispatchTrigger] = None
    workflow_call: Optional[WorkflowCallTrigger] = None
    workflow_run: Optional[WorkflowRunTrigger] = None
    repository_dispatch: Optional[RepositoryDispatchTrigger] = None
    release: Optional[ReleaseTrigger] = None
    issues: Optional[IssuesTrigger] = None
    issue_comment: Optional[IssueCommentTrigger] = None
    create: Optional[CreateTrigger] = None
    delete: Optional[DeleteTrigger] = None
    fork: Optional[ForkTrigger] = None
    gollum: Optional[GollumTrigger] = None
    public: Optional[PublicTrigger] = None
    page_build: Optional[PageBuildTrigger] = None
    status: Optional[StatusTrigger] = None
    label: Optional[LabelTrigger] = None
    milestone: Optional[MilestoneTrigger] = None
    project: Optional[ProjectTrigger] = None
    project_card: Optional[ProjectCardTrigger] = None
    project_column: Optional[ProjectColumnTrigger] = None
    pull_request_review: Optional[PullRequestReviewTrigger] = None
    pull_request_review_comment: Optional[PullRequestReviewCommentTrigger] = None
    watch: Optional[WatchTrigger] = None
    check_run: Optional[CheckRunTrigger] = None
    check_suite: Optional[CheckSuiteTrigger] = None
    discussion: Optional[DiscussionTrigger] = None
    discussion_comment: Optional[DiscussionCommentTrigger] = None
    merge_group: Optional[MergeGroupTrigger] = None

    def events(self) -> List[str]:
        """Names of the events that are present, in declaration order."""
        present = []
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None and value != []:
                present.append(f.name)
        return present


EVENT_TYPES: Dict[str, type] = {
    "push": PushTrigger,
    "pull_request": PullRequestTrigger,
    "pull_request_target": PullRequestTargetTrigger,
    "schedule": ScheduleTrigger,
    "workflow_dispatch": WorkflowDispatchTrigger,
    "workflow_call": WorkflowCallTrigger,
    "workflow_run": WorkflowRunTrigger,
    "repository_dispatch": RepositoryDispatchTrigger,
    "release": ReleaseTrigger,
    "issues": IssuesTrigger,
    "issue_comment": IssueCommentTrigger,
    "create": CreateTrigger,
    "delete": DeleteTrigger,
    "fork": ForkTrigger,
    "gollum": GollumTrigger,
    "public": PublicTrigger,
    "page_build": PageBuildTrigger,
    "status": StatusTrigger,
    "label": LabelTrigger,
    "milestone": MilestoneTrigger,
    "project": ProjectTrigger,
    "project_card": ProjectCardTrigger,
    "project_column": ProjectColumnTrigger,
    "pull_request_review": PullRequestReviewTrigger,
    "pull_request_review_comment": PullRequestReviewCommentTrigger,
    "watch": WatchTrigger,
    "check_run": CheckRunTrigger,
    "check_suite": CheckSuiteTrigger,
    "discussion": DiscussionTrigger,
    "discussion_comment": DiscussionCommentTrigger,
    "merge_group": MergeGroupTrigger,
}

__all__ = [
    "BareTrigger",
    "EVENT_TYPES",
    "ScheduleTrigger",
    "Triggers",
    "TypesTrigger",
    "WorkflowInput",
    "WorkflowOutput",
    "WorkflowSecret",
] + sorted({cls.__name__ for cls in EVENT_TYPES.values()} - {"ScheduleTrigger"})
