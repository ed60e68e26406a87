import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator

from housekeeper.domain.branch_naming import branch_name
from housekeeper.domain.errors import version_control_error
from housekeeper.domain.models import Change
from housekeeper.infrastructure.observability.logging_utils import log_event
from housekeeper.infrastructure.repo import shell
from housekeeper.infrastructure.repo.shell import ShellCommandError


logger = logging.getLogger(__name__)

HOUSEKEEPER_REMOTE = "housekeeper"
_STASH_REF = "refs/stash"

ShellExecutor = Callable[..., str]


class Git:
    """Branch lifecycle over a single shared working tree.

    Only one ``with_branch_from_branch`` scope may be open at a time; every
    command failure is raised as ``VersionControlError``.
    """

    def __init__(
        self,
        *,
        remote: str = HOUSEKEEPER_REMOTE,
        repository_directory: Path | None = None,
        execute: ShellExecutor = shell.execute,
    ) -> None:
        self.remote = remote
        self.repository_directory = repository_directory
        self.execute = execute
        self._scope_active = False

    def _git(self, *args: str) -> str:
        try:
            return self.execute("git", *args, cwd=self.repository_directory)
        except ShellCommandError as error:
            raise version_control_error(str(error)) from error

    def _try_rev_parse(self, revision: str) -> str | None:
        try:
            output = self.execute(
                "git",
                "rev-parse",
                "--verify",
                "--quiet",
                revision,
                cwd=self.repository_directory,
            )
        except ShellCommandError:
            return None
        return output.strip() or None

    def current_branch(self) -> str:
        branch = self._git("branch", "--show-current").strip()
        if branch:
            return branch
        # Detached HEAD: restore to the commit itself.
        return self._git("rev-parse", "HEAD").strip()

    @contextmanager
    def with_branch_from_branch(self, base: str) -> Iterator[None]:
        if self._scope_active:
            raise version_control_error("a branch scope is already active on this working tree")

        self._scope_active = True
        try:
            current_branch = self.current_branch()
            stash_before = self._try_rev_parse(_STASH_REF)
            self._git("stash")
            stashed = self._try_rev_parse(_STASH_REF) != stash_before
            log_event(
                logger,
                logging.INFO,
                "git.scope.enter",
                base_branch=base,
                previous_branch=current_branch,
                stashed=stashed,
            )
            try:
                self._git("checkout", base)
                yield
            finally:
                self._git("checkout", current_branch)
                if stashed:
                    self._git("stash", "pop")
                log_event(logger, logging.INFO, "git.scope.exit", restored_branch=current_branch)
        finally:
            self._scope_active = False

    def commit_in_branch(self, change: Change) -> str:
        name = branch_name(change.identifiers)
        current_branch = self.current_branch()
        previous_tip = self._try_rev_parse(f"refs/heads/{name}")
        base_tip = self._git("rev-parse", "HEAD").strip()

        try:
            committed = self._commit_on_branch(name, change, previous_tip, base_tip)
        except Exception:
            self._discard_change(current_branch, change.changed_files)
            raise

        self._git("checkout", current_branch)
        if not committed and previous_tip:
            # checkout -B moved the branch to the base; put back what was already pushed.
            self._git("branch", "-f", name, previous_tip)
        return name

    def _commit_on_branch(
        self,
        name: str,
        change: Change,
        previous_tip: str | None,
        base_tip: str,
    ) -> bool:
        self._git("checkout", "-B", name)
        self._git("add", "--", *change.changed_files)
        if not self._has_staged_changes(change.changed_files):
            log_event(logger, logging.INFO, "git.commit.nothing_to_commit", branch=name)
            return False

        self._git("commit", "-m", change.commit_message, "--", *change.changed_files)
        if previous_tip and self._is_same_commit_content(previous_tip, base_tip):
            # Same content on the same base: keep the history already pushed.
            self._git("reset", "--soft", previous_tip)
            log_event(logger, logging.INFO, "git.commit.unchanged", branch=name, commit=previous_tip)
        else:
            log_event(logger, logging.INFO, "git.commit.created", branch=name)
        return True

    def _discard_change(self, current_branch: str, paths: list[str]) -> None:
        # Local modifications were stashed when the scope opened, so whatever is
        # left in the tree belongs to the failed change.
        log_event(
            logger,
            logging.WARNING,
            "git.commit.discarded",
            restored_branch=current_branch,
            files=",".join(paths),
        )
        self._git("checkout", "-f", current_branch)
        self._git("reset", "--hard", "--quiet")
        self._git("clean", "-f", "-d", "--", *paths)

    def _has_staged_changes(self, paths: Iterable[str]) -> bool:
        try:
            self.execute(
                "git",
                "diff",
                "--cached",
                "--quiet",
                "--",
                *paths,
                cwd=self.repository_directory,
            )
        except ShellCommandError as error:
            if error.exit_code == 1:
                return True
            raise version_control_error(str(error)) from error
        return False

    def _is_same_commit_content(self, previous_tip: str, base_tip: str) -> bool:
        if self._try_rev_parse(f"{previous_tip}^") != base_tip:
            return False
        try:
            self.execute("git", "diff", "--quiet", previous_tip, "HEAD", cwd=self.repository_directory)
        except ShellCommandError:
            return False
        return True

    def diff(self, base: str, branch: str, paths: Iterable[str]) -> str:
        return self._git("--no-pager", "diff", "--color=always", base, branch, "--", *paths)

    def push(self, branch: str) -> None:
        log_event(logger, logging.INFO, "git.push", remote=self.remote, branch=branch)
        self._git("push", "-f", self.remote, f"{branch}:{branch}")
