import logging
import os

from housekeeper.application.runner import RunnerConfig, RunnerDependencies
from housekeeper.domain.filters import IdentifierFilter
from housekeeper.infrastructure.config.keep_loader import load_keeps
from housekeeper.infrastructure.config.settings import HousekeeperSettings
from housekeeper.infrastructure.gitlab import GitLabClient
from housekeeper.infrastructure.observability.logging_utils import log_event, register_sensitive_values
from housekeeper.infrastructure.observability.runner_observer import (
    observe_change_details,
    observe_runner_step,
)
from housekeeper.infrastructure.repo.git import Git


logger = logging.getLogger(__name__)


def build_runner_config(settings: HousekeeperSettings) -> RunnerConfig:
    filter_identifiers = (
        IdentifierFilter.from_strings(settings.filter_identifiers)
        if settings.filter_identifiers
        else None
    )
    return RunnerConfig(
        max_mrs=settings.max_mrs,
        keeps=load_keeps(settings.keeps),
        source_project_id=settings.source_project_id,
        target_project_id=settings.target_project_id,
        filter_identifiers=filter_identifiers,
        target_branch=settings.target_branch,
        base_branch=settings.base_branch,
        dry_run=settings.dry_run,
    )


def build_runner_dependencies(settings: HousekeeperSettings) -> RunnerDependencies:
    hosting_client = None
    if settings.dry_run:
        log_event(logger, logging.INFO, "housekeeper.dry_run.enabled")
    else:
        register_sensitive_values(os.getenv("HOUSEKEEPER_GITLAB_API_TOKEN"))
        hosting_client = GitLabClient.from_env()
        log_event(logger, logging.INFO, "housekeeper.gitlab.selected", api_url=hosting_client.base)

    return RunnerDependencies(
        git=Git(remote=settings.remote),
        hosting_client=hosting_client,
        observe_change=observe_change_details,
        observe_step=observe_runner_step,
    )
