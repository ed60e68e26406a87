import argparse
import logging
import sys
import uuid
from typing import Sequence

from dotenv import load_dotenv

from housekeeper.application.runner import DEFAULT_BRANCH, Runner
from housekeeper.domain.errors import ConfigurationError
from housekeeper.infrastructure.config import (
    build_runner_config,
    build_runner_dependencies,
    load_settings,
)
from housekeeper.infrastructure.observability.context import reset_run_id, set_run_id
from housekeeper.infrastructure.observability.logging_utils import configure_logging, log_event
from housekeeper.infrastructure.observability.runner_observer import log_configuration_error


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="housekeeper",
        description="Turn keep-generated changes into branches and merge requests.",
    )
    parser.add_argument(
        "-k",
        "--keeps",
        action="append",
        required=True,
        metavar="IMPORT_PATH",
        help="Keep class to run, as package.module:ClassName (repeatable)",
    )
    parser.add_argument("-m", "--max-mrs", type=int, default=1, help="Maximum merge requests to create or update")
    parser.add_argument(
        "-f",
        "--filter-identifiers",
        action="append",
        metavar="REGEX",
        help="Only publish changes with an identifier matching this pattern (repeatable)",
    )
    parser.add_argument(
        "-b",
        "--target-branch",
        default=DEFAULT_BRANCH,
        help=f"Branch merge requests target and branches are created from (default: {DEFAULT_BRANCH})",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Commit locally and show diffs without pushing or touching merge requests",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    configure_logging()
    arguments = build_parser().parse_args(argv)

    token = set_run_id(uuid.uuid4().hex[:12])
    try:
        log_event(logger, logging.INFO, "cli.housekeeper.start")
        try:
            settings = load_settings(
                keeps=arguments.keeps,
                max_mrs=arguments.max_mrs,
                filter_identifiers=arguments.filter_identifiers,
                target_branch=arguments.target_branch,
                base_branch=arguments.target_branch,
                dry_run=arguments.dry_run,
            )
            runner = Runner(build_runner_config(settings), build_runner_dependencies(settings))
        except ConfigurationError as error:
            log_configuration_error(str(error))
            return 1

        result = runner.run()
        log_event(
            logger,
            logging.INFO,
            "cli.housekeeper.end",
            created_count=result.created_count,
            merge_request_urls=", ".join(result.merge_request_urls) or None,
            failed_changes=len(result.failed_changes),
            failed_keeps=", ".join(result.failed_keeps) or None,
        )
        return 0
    finally:
        reset_run_id(token)


if __name__ == "__main__":
    sys.exit(main())
