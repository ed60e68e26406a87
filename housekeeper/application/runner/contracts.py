from dataclasses import dataclass, field
from typing import Callable, Sequence

from housekeeper.application.ports import HostingClient, Keep, VersionControl
from housekeeper.domain.errors import configuration_error
from housekeeper.domain.filters import IdentifierFilter
from housekeeper.domain.models import Change


DEFAULT_BRANCH = "master"
HOUSEKEEPER_LABEL = "automation:gitlab-housekeeper-authored"


def _noop_observe_change(_: Change, __: str, ___: str) -> None:
    return None


def _noop_observe_step(_: str, __: str, ___: str | None = None) -> None:
    return None


@dataclass(frozen=True)
class RunnerConfig:
    max_mrs: int
    keeps: Sequence[Keep]
    source_project_id: str
    target_project_id: str
    filter_identifiers: IdentifierFilter | None = None
    target_branch: str = DEFAULT_BRANCH
    base_branch: str = DEFAULT_BRANCH
    dry_run: bool = False

    def __post_init__(self) -> None:
        if self.max_mrs < 1:
            raise configuration_error(f"max_mrs must be a positive integer, got {self.max_mrs}")
        if not self.source_project_id:
            raise configuration_error("source project id is required")
        if not self.target_project_id:
            raise configuration_error("target project id is required")
        if not self.target_branch or not self.base_branch:
            raise configuration_error("target and base branch names must be non-empty")


@dataclass(frozen=True)
class RunnerDependencies:
    git: VersionControl
    hosting_client: HostingClient | None = None
    observe_change: Callable[[Change, str, str], None] = _noop_observe_change
    observe_step: Callable[[str, str, str | None], None] = _noop_observe_step


@dataclass
class RunnerResult:
    created_count: int = 0
    merge_request_urls: list[str] = field(default_factory=list)
    failed_changes: list[tuple[str, ...]] = field(default_factory=list)
    failed_keeps: list[str] = field(default_factory=list)
