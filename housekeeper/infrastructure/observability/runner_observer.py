import logging

from housekeeper.domain.models import Change
from housekeeper.infrastructure.observability.logging_utils import log_event, safe_message


logger = logging.getLogger(__name__)

_ERROR_STATUSES = {"error"}
_WARNING_STATUSES = {"ignored", "skipped"}


def observe_change_details(change: Change, branch: str, diff: str) -> None:
    log_event(
        logger,
        logging.INFO,
        "housekeeper.change.details",
        identifiers=": ".join(change.identifiers),
        branch=branch,
        merge_request_url=change.mr_web_url or "(known after create)",
        title=change.title,
        labels=", ".join(change.labels) or None,
        reviewers=", ".join(change.reviewers) or None,
        files_count=len(change.changed_files),
    )
    if diff.strip():
        # Diff colorido vai cru para o log, sem escape, para leitura humana.
        logger.info("%s", safe_message(diff))
    else:
        log_event(logger, logging.INFO, "housekeeper.change.empty_diff", branch=branch)


def observe_runner_step(step: str, status: str, detail: str | None = None) -> None:
    if status in _ERROR_STATUSES:
        level = logging.ERROR
    elif status in _WARNING_STATUSES:
        level = logging.WARNING
    else:
        level = logging.INFO
    log_event(
        logger,
        level,
        "housekeeper.step",
        step=step,
        status=status,
        detail=detail,
    )


def log_configuration_error(error_message: str) -> None:
    log_event(
        logger,
        logging.ERROR,
        "housekeeper.configuration.failed",
        error=error_message,
    )
