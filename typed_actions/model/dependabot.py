"""Typed ``dependabot.yml`` configuration."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True, kw_only=True)
class Schedule:
    interval: str
    day: Optional[str] = None
    time: Optional[str] = None
    timezone: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Allow:
    dependency_name: Optional[str] = None
    dependency_type: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Ignore:
    dependency_name: Optional[str] = None
    versions: List[str] = field(default_factory=list)
    update_types: List[str] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class CommitMessage:
    prefix: Optional[str] = None
    prefix_development: Optional[str] = None
    include: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class PullRequestBranchName:
    separator: str


@dataclass(frozen=True, kw_only=True)
class Group:
    patterns: List[str] = field(default_factory=list)
    dependency_type: Optional[str] = None
    update_types: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    applies_to: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Registry:
    type: str
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    key: Optional[str] = None
    organization: Optional[str] = None
    replaces_base: bool = False


@dataclass(frozen=True, kw_only=True)
class Update:
    package_ecosystem: str
    directory: Optional[str] = None
    directories: List[str] = field(default_factory=list)
    schedule: Optional[Schedule] = None
    allow: List[Allow] = field(default_factory=list)
    ignore: List[Ignore] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    assignees: List[str] = field(default_factory=list)
    reviewers: List[str] = field(default_factory=list)
    milestone: int = 0
    open_pull_requests_limit: int = 0
    rebase_strategy: Optional[str] = None
    versioning_strategy: Optional[str] = None
    vendor: bool = False
    target_branch: Optional[str] = None
    registries: Any = None
    groups: Dict[str, Group] = field(default_factory=dict)
    commit_message: Optional[CommitMessage] = None
    pull_request_branch_name: Optional[PullRequestBranchName] = None
    insecure_external_code_execution: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class DependabotConfig:
    version: int = 2
    enable_beta_ecosystems: bool = False
    updates: List[Update] = field(default_factory=list)
    registries: Dict[str, Registry] = field(default_factory=dict)
