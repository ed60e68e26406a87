from contextlib import closing

from housekeeper.application.ports import Keep
from housekeeper.application.runner.contracts import (
    HOUSEKEEPER_LABEL,
    RunnerConfig,
    RunnerDependencies,
    RunnerResult,
)
from housekeeper.application.runner.steps import (
    iterate_keep_changes,
    keep_name,
    publish_merge_request,
    push_branch,
    reconcile_remote_state,
    show_change_details,
)
from housekeeper.domain.errors import (
    HostingApiError,
    KeepGenerationError,
    VersionControlError,
    configuration_error,
)
from housekeeper.domain.filters import is_selected
from housekeeper.domain.models import Change


def _describe(change: Change) -> str:
    return ": ".join(change.identifiers)


class Runner:
    """Turns the changes produced by each keep into pushed branches and merge requests.

    Processing is strictly sequential: the working tree is held on the base branch
    for the whole run and every change is committed, published and torn down
    before the next one is pulled from its keep.
    """

    def __init__(self, config: RunnerConfig, dependencies: RunnerDependencies) -> None:
        if dependencies.hosting_client is None and not config.dry_run:
            raise configuration_error("a hosting client is required unless running in dry-run mode")
        self.config = config
        self.dependencies = dependencies

    def run(self) -> RunnerResult:
        result = RunnerResult()
        observe_step = self.dependencies.observe_step

        observe_step("run", "start", f"max_mrs={self.config.max_mrs}")
        with self.dependencies.git.with_branch_from_branch(self.config.base_branch):
            for keep in self.config.keeps:
                if self._limit_reached(result):
                    break
                self._run_keep(keep, result)
        observe_step("run", "success", f"created_count={result.created_count}")
        return result

    def _limit_reached(self, result: RunnerResult) -> bool:
        return result.created_count >= self.config.max_mrs

    def _run_keep(self, keep: Keep, result: RunnerResult) -> None:
        name = keep_name(keep)
        observe_step = self.dependencies.observe_step
        observe_step("keep", "start", name)
        try:
            with closing(iterate_keep_changes(keep)) as changes:
                for change in changes:
                    self._process_change(change, result)
                    if self._limit_reached(result):
                        break
        except KeepGenerationError as error:
            result.failed_keeps.append(name)
            observe_step("keep", "error", str(error))
            return
        observe_step("keep", "success", name)

    def _process_change(self, change: Change, result: RunnerResult) -> None:
        observe_step = self.dependencies.observe_step
        if not change.is_valid():
            observe_step("change", "ignored", f"invalid change: {change.identifiers!r}")
            return

        try:
            branch = self.dependencies.git.commit_in_branch(change)
            change.add_label(HOUSEKEEPER_LABEL)

            if not is_selected(self.config.filter_identifiers, change.identifiers):
                observe_step(
                    "change",
                    "filtered",
                    f"{_describe(change)} committed to {branch} but not pushed",
                )
                return

            show_change_details(self.config, self.dependencies, change, branch)

            if self.config.dry_run:
                observe_step("publish", "skipped", f"dry run: {branch}")
            else:
                flags = reconcile_remote_state(self.config, self.dependencies, branch)
                push_branch(self.dependencies, branch, flags)
                merge_request = publish_merge_request(
                    self.config,
                    self.dependencies,
                    change,
                    branch,
                    flags,
                )
                if change.mr_web_url:
                    result.merge_request_urls.append(change.mr_web_url)
                observe_step("publish", "success", merge_request.get("web_url"))
        except (VersionControlError, HostingApiError) as error:
            result.failed_changes.append(tuple(change.identifiers))
            observe_step("change", "error", f"{_describe(change)}: {error}")
            return

        result.created_count += 1
