"""Workflow, job and step entities.

These classes are both the declaration surface users write and the
intermediate representation the emitter and importer exchange. Instances
are immutable once built.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from typed_actions.model.expressions import Expression
from typed_actions.model.triggers import Triggers

Value = Union[str, int, float, bool, Expression]
Condition = Union[str, bool, Expression]


@runtime_checkable
class StepAction(Protocol):
    """Anything usable as a step that references a reusable action."""

    def action_ref(self) -> str:
        ...

    def inputs(self) -> Dict[str, Any]:
        ...


@dataclass(frozen=True, kw_only=True)
class Step:
    id: Optional[str] = None
    name: Optional[str] = None
    if_: Optional[Condition] = None
    uses: Optional[str] = None
    with_: Dict[str, Any] = field(default_factory=dict)
    run: Optional[str] = None
    shell: Optional[str] = None
    env: Dict[str, Any] = field(default_factory=dict)
    working_directory: Optional[str] = None
    continue_on_error: Union[bool, str, Expression] = False
    timeout_minutes: int = 0


@dataclass(frozen=True, kw_only=True)
class Matrix:
    """Axis values plus verbatim include/exclude entries.

    The cross product is never expanded here.
    """

    values: Dict[str, Any] = field(default_factory=dict)
    include: List[Dict[str, Any]] = field(default_factory=list)
    exclude: List[Dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True, kw_only=True)
class Strategy:
    matrix: Optional[Union[Matrix, Expression]] = None
    fail_fast: Optional[Union[bool, Expression]] = None
    max_parallel: int = 0


@dataclass(frozen=True, kw_only=True)
class Permissions:
    """Scope to level (read, write or none). Unset scopes inherit.

    ``preset`` holds ``read-all`` or ``write-all`` and excludes scopes.
    """

    preset: Optional[str] = None
    actions: Optional[str] = None
    attestations: Optional[str] = None
    checks: Optional[str] = None
    contents: Optional[str] = None
    deployments: Optional[str] = None
    discussions: Optional[str] = None
    id_token: Optional[str] = None
    issues: Optional[str] = None
    models: Optional[str] = None
    packages: Optional[str] = None
    pages: Optional[str] = None
    pull_requests: Optional[str] = None
    repository_projects: Optional[str] = None
    security_events: Optional[str] = None
    statuses: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Environment:
    name: str
    url: Optional[Union[str, Expression]] = None


@dataclass(frozen=True, kw_only=True)
class Concurrency:
    group: Union[str, Expression]
    cancel_in_progress: Optional[Union[bool, Expression]] = None


@dataclass(frozen=True, kw_only=True)
class RunDefaults:
    shell: Optional[str] = None
    working_directory: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Defaults:
    run: Optional[RunDefaults] = None


@dataclass(frozen=True, kw_only=True)
class Credentials:
    username: Union[str, Expression]
    password: Union[str, Expression]


@dataclass(frozen=True, kw_only=True)
class Container:
    image: Union[str, Expression]
    credentials: Optional[Credentials] = None
    env: Dict[str, Any] = field(default_factory=dict)
    ports: List[Union[int, str]] = field(default_factory=list)
    volumes: List[str] = field(default_factory=list)
    options: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class Job:
    name: Optional[str] = None
    runs_on: Optional[Union[str, List[str], Expression]] = None
    needs: List[Union[str, "Job"]] = field(default_factory=list)
    if_: Optional[Condition] = None
    permissions: Optional[Permissions] = None
    environment: Optional[Environment] = None
    concurrency: Optional[Concurrency] = None
    outputs: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, Any] = field(default_factory=dict)
    defaults: Optional[Defaults] = None
    strategy: Optional[Strategy] = None
    container: Optional[Container] = None
    services: Dict[str, Container] = field(default_factory=dict)
    steps: List[Union[Step, StepAction]] = field(default_factory=list)
    uses: Optional[str] = None
    with_: Dict[str, Any] = field(default_factory=dict)
    secrets: Optional[Union[str, Dict[str, Any]]] = None
    timeout_minutes: int = 0
    continue_on_error: Union[bool, str, Expression] = False


@dataclass(frozen=True, kw_only=True)
class Workflow:
    name: Optional[str] = None
    on: Triggers = field(default_factory=Triggers)
    permissions: Optional[Permissions] = None
    defaults: Optional[Defaults] = None
    concurrency: Optional[Concurrency] = None
    env: Dict[str, Any] = field(default_factory=dict)
    jobs: Dict[str, Job] = field(default_factory=dict)
