from typing import Any, Iterator

from housekeeper.application.ports import Keep
from housekeeper.application.runner.contracts import RunnerConfig, RunnerDependencies
from housekeeper.domain.errors import keep_error
from housekeeper.domain.models import Change, UpdateFlags
from housekeeper.domain.reconciliation import derive_update_flags, to_remote_change_state


def keep_name(keep: Keep) -> str:
    return type(keep).__name__


def iterate_keep_changes(keep: Keep) -> Iterator[Change]:
    # Consome o gerador da keep um item por vez; falhas de scan viram KeepGenerationError.
    name = keep_name(keep)
    try:
        changes = iter(keep.each_change())
    except Exception as error:
        raise keep_error(name, str(error)) from error

    try:
        while True:
            try:
                change = next(changes)
            except StopIteration:
                return
            except Exception as error:
                raise keep_error(name, str(error)) from error
            yield change
    finally:
        # Parada antecipada (max_mrs) fecha o gerador da keep sem exauri-lo.
        close = getattr(changes, "close", None)
        if close is not None:
            close()


def show_change_details(
    config: RunnerConfig,
    dependencies: RunnerDependencies,
    change: Change,
    branch: str,
) -> None:
    # Diff restrito aos arquivos da change, para o operador revisar o que sera publicado.
    diff = dependencies.git.diff(config.base_branch, branch, change.changed_files)
    dependencies.observe_change(change, branch, diff)


def reconcile_remote_state(
    config: RunnerConfig,
    dependencies: RunnerDependencies,
    branch: str,
) -> UpdateFlags:
    # Campos editados manualmente no MR nao sao sobrescritos pela automacao.
    non_housekeeper_changes = dependencies.hosting_client.non_housekeeper_changes(
        source_project_id=config.source_project_id,
        source_branch=branch,
        target_branch=config.target_branch,
        target_project_id=config.target_project_id,
    )
    return derive_update_flags(to_remote_change_state(non_housekeeper_changes))


def push_branch(
    dependencies: RunnerDependencies,
    branch: str,
    flags: UpdateFlags,
) -> None:
    # Codigo alterado por humano na branch: nao faz force-push por cima.
    if not flags.push_code:
        dependencies.observe_step("push", "skipped", f"{branch} has non-housekeeper commits")
        return
    dependencies.git.push(branch)
    dependencies.observe_step("push", "success", branch)


def publish_merge_request(
    config: RunnerConfig,
    dependencies: RunnerDependencies,
    change: Change,
    branch: str,
    flags: UpdateFlags,
) -> dict[str, Any]:
    merge_request = dependencies.hosting_client.create_or_update_merge_request(
        change=change,
        source_project_id=config.source_project_id,
        source_branch=branch,
        target_branch=config.target_branch,
        target_project_id=config.target_project_id,
        update_title=flags.update_title,
        update_description=flags.update_description,
        update_labels=flags.update_labels,
        update_reviewers=flags.update_reviewers,
    )
    change.mr_web_url = merge_request.get("web_url")
    return merge_request
