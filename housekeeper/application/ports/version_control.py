from contextlib import AbstractContextManager
from typing import Iterable, Protocol

from housekeeper.domain.models import Change


class VersionControl(Protocol):
    def with_branch_from_branch(self, base: str) -> AbstractContextManager[None]:
        """Hold the working tree on base and restore it on exit."""

    def commit_in_branch(self, change: Change) -> str:
        """Commit the change's files into its own branch and return the branch name."""

    def diff(self, base: str, branch: str, paths: Iterable[str]) -> str:
        """Return a human-readable diff between base and branch restricted to paths."""

    def push(self, branch: str) -> None:
        """Force-push branch to the housekeeper remote."""
