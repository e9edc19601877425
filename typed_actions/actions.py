"""
Typed wrappers for popular actions.

Each wrapper is a ``StepAction``: it knows its action reference and turns
its non-empty fields into the ``with:`` inputs. Wrap one in a named step
with ``as_step``:

    Checkout(fetch_depth=0).as_step(name="Checkout")
"""

from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Optional, Union

from typed_actions.model.expressions import Expression
from typed_actions.model.keys import to_key
from typed_actions.model.workflow import Step

Input = Optional[Union[str, Expression]]


@dataclass(frozen=True, kw_only=True)
class Action:
    ref: ClassVar[str] = ""

    def action_ref(self) -> str:
        return self.ref

    def inputs(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value is False or value == "":
                continue
            result[f.metadata.get("key", to_key(f.name))] = value
        return result

    def as_step(self, **step_fields: Any) -> Step:
        return Step(uses=self.action_ref(), with_=self.inputs(), **step_fields)


@dataclass(frozen=True, kw_only=True)
class Checkout(Action):
    ref: ClassVar[str] = "actions/checkout@v4"

    repository: Input = None
    git_ref: Input = field(default=None, metadata={"key": "ref"})
    token: Input = None
    ssh_key: Input = None
    ssh_known_hosts: Input = None
    ssh_strict: bool = False
    persist_credentials: bool = False
    path: Input = None
    clean: bool = False
    filter: Input = None
    sparse_checkout: Input = None
    sparse_checkout_cone_mode: bool = False
    fetch_depth: Optional[int] = None
    fetch_tags: bool = False
    show_progress: bool = False
    lfs: bool = False
    submodules: Input = None
    set_safe_directory: bool = False
    github_server_url: Input = None


@dataclass(frozen=True, kw_only=True)
class SetupPython(Action):
    ref: ClassVar[str] = "actions/setup-python@v5"

    python_version: Input = None
    python_version_file: Input = None
    cache: Input = None
    architecture: Input = None
    token: Input = None
    cache_dependency_path: Input = None
    update_environment: bool = False
    allow_prereleases: bool = False


@dataclass(frozen=True, kw_only=True)
class SetupNode(Action):
    ref: ClassVar[str] = "actions/setup-node@v4"

    node_version: Input = None
    node_version_file: Input = None
    architecture: Input = None
    registry_url: Input = None
    scope: Input = None
    token: Input = None
    cache: Input = None
    cache_dependency_path: Input = None
    always_auth: bool = False


@dataclass(frozen=True, kw_only=True)
class SetupGo(Action):
    ref: ClassVar[str] = "actions/setup-go@v5"

    go_version: Input = None
    go_version_file: Input = None
    token: Input = None
    cache: bool = False
    cache_dependency_path: Input = None
    architecture: Input = None


@dataclass(frozen=True, kw_only=True)
class SetupJava(Action):
    ref: ClassVar[str] = "actions/setup-java@v4"

    java_version: Input = None
    distribution: Input = None
    java_version_file: Input = None
    java_package: Input = None
    architecture: Input = None
    jdk_file: Input = None
    server_id: Input = None
    server_username: Input = None
    server_password: Input = None
    settings_path: Input = None
    overwrite_settings: bool = False
    gpg_private_key: Input = None
    gpg_passphrase: Input = None
    cache: Input = None
    cache_dependency_path: Input = None
    token: Input = None
    mvn_toolchain_id: Input = None
    mvn_toolchain_vendor: Input = None


@dataclass(frozen=True, kw_only=True)
class Cache(Action):
    ref: ClassVar[str] = "actions/cache@v4"

    path: Input = None
    key: Input = None
    restore_keys: Input = None
    upload_chunk_size: Optional[int] = None
    enable_cross_os_archive: bool = field(default=False, metadata={"key": "enableCrossOsArchive"})
    fail_on_cache_miss: bool = False
    lookup_only: bool = False
    save_always: bool = False


@dataclass(frozen=True, kw_only=True)
class UploadArtifact(Action):
    ref: ClassVar[str] = "actions/upload-artifact@v4"

    name: Input = None
    path: Input = None
    if_no_files_found: Input = None
    retention_days: Optional[int] = None
    compression_level: Optional[int] = None
    overwrite: bool = False
    include_hidden_files: bool = False


@dataclass(frozen=True, kw_only=True)
class DownloadArtifact(Action):
    ref: ClassVar[str] = "actions/download-artifact@v4"

    name: Input = None
    path: Input = None
    pattern: Input = None
    merge_multiple: bool = False
    github_token: Input = None
    repository: Input = None
    run_id: Input = None


WRAPPERS = (
    Checkout,
    SetupPython,
    SetupNode,
    SetupGo,
    SetupJava,
    Cache,
    UploadArtifact,
    DownloadArtifact,
)


def wrapper_for(uses: str) -> Optional[type]:
    """The wrapper class for an action reference, ignoring the version."""
    name = uses.split("@", 1)[0]
    for wrapper in WRAPPERS:
        if wrapper.ref.split("@", 1)[0] == name:
            return wrapper
    return None
