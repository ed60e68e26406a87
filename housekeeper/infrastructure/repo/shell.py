import logging
import subprocess
from pathlib import Path
from typing import Sequence

from housekeeper.infrastructure.observability.logging_utils import log_event, safe_message


logger = logging.getLogger(__name__)


class ShellCommandError(RuntimeError):
    def __init__(self, message: str, *, exit_code: int, stderr: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


def _execute_command(command: Sequence[str], cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    return subprocess.run(command, cwd=cwd, capture_output=True, text=True)


def execute(*command: str, cwd: Path | None = None) -> str:
    log_event(logger, logging.DEBUG, "shell.command.run", command=list(command), cwd=str(cwd) if cwd else None)
    try:
        result = _execute_command(command, cwd=cwd)
    except OSError as error:
        raise ShellCommandError(
            safe_message(f"Command could not be started: {' '.join(command)}: {error}"),
            exit_code=-1,
        ) from error

    if result.returncode != 0:
        stdout = safe_message(result.stdout.strip()) if result.stdout else ""
        stderr = safe_message(result.stderr.strip()) if result.stderr else ""
        if stdout:
            log_event(logger, logging.ERROR, "shell.command.stdout", output=stdout)
        if stderr:
            log_event(logger, logging.ERROR, "shell.command.stderr", output=stderr)
        raise ShellCommandError(
            safe_message(
                f"Command failed (exit_code={result.returncode}): {' '.join(command)}"
            ),
            exit_code=result.returncode,
            stderr=stderr,
        )
    return result.stdout
