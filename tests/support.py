from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from housekeeper.domain.errors import hosting_api_error, version_control_error
from housekeeper.domain.models import Change


def create_change(
    identifiers: Iterable[str] = ("the", "identifier"),
    title: str = "The change title",
    description: str = "The change description",
    changed_files: Iterable[str] = ("change1.txt", "change2.txt"),
    labels: Iterable[str] = ("some-label-1", "some-label-2"),
    reviewers: Iterable[str] = ("thegitlabreviewer",),
) -> Change:
    return Change(
        identifiers=list(identifiers),
        title=title,
        description=description,
        changed_files=list(changed_files),
        labels=list(labels),
        reviewers=list(reviewers),
    )


class ListKeep:
    """Keep that yields a fixed list of changes and records how far it got."""

    def __init__(self, changes: list[Change] | None = None, fail_after: int | None = None) -> None:
        self.changes = changes or []
        self.fail_after = fail_after
        self.yielded = 0
        self.closed = False
        self.finished = False

    def each_change(self) -> Iterator[Change]:
        try:
            for index, change in enumerate(self.changes):
                if self.fail_after is not None and index == self.fail_after:
                    raise RuntimeError("scan failed")
                self.yielded += 1
                yield change
            self.finished = True
        except GeneratorExit:
            self.closed = True
            raise


class MisconfiguredKeep:
    def __init__(self) -> None:
        raise RuntimeError("keep settings are missing")

    def each_change(self) -> Iterator[Change]:
        return iter(())


class FakeGit:
    def __init__(self, branch_names: dict[int, str] | None = None) -> None:
        self.branch_names = branch_names or {}
        self.calls: list[tuple[Any, ...]] = []
        self.scope_entered = 0
        self.scope_bases: list[str] = []
        self.scope_exited = 0
        self.failing_commits: set[int] = set()
        self.failing_pushes: set[str] = set()

    @contextmanager
    def with_branch_from_branch(self, base: str) -> Iterator[None]:
        self.scope_entered += 1
        self.scope_bases.append(base)
        try:
            yield
        finally:
            self.scope_exited += 1

    def commit_in_branch(self, change: Change) -> str:
        self.calls.append(("commit_in_branch", change))
        if id(change) in self.failing_commits:
            raise version_control_error("commit failed")
        return self.branch_names.get(id(change), "the-branch-should-not-be-pushed")

    def diff(self, base: str, branch: str, paths: Iterable[str]) -> str:
        self.calls.append(("diff", base, branch, tuple(paths)))
        return f"diff --git a/{branch}"

    def push(self, branch: str) -> None:
        self.calls.append(("push", branch))
        if branch in self.failing_pushes:
            raise version_control_error("push failed")

    def committed(self) -> list[Change]:
        return [call[1] for call in self.calls if call[0] == "commit_in_branch"]

    def pushed(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "push"]

    def diffs(self) -> list[tuple[Any, ...]]:
        return [call[1:] for call in self.calls if call[0] == "diff"]


class FakeHostingClient:
    def __init__(self, non_housekeeper_changes: dict[str, list[str]] | None = None) -> None:
        self.non_housekeeper_changes_by_branch = non_housekeeper_changes or {}
        self.queries: list[dict[str, Any]] = []
        self.merge_requests: list[dict[str, Any]] = []
        self.failing_branches: set[str] = set()

    def non_housekeeper_changes(self, **kwargs: Any) -> list[str]:
        self.queries.append(kwargs)
        return self.non_housekeeper_changes_by_branch.get(kwargs["source_branch"], [])

    def create_or_update_merge_request(self, **kwargs: Any) -> dict[str, Any]:
        if kwargs["source_branch"] in self.failing_branches:
            raise hosting_api_error("merge request creation failed")
        self.merge_requests.append(kwargs)
        return {"iid": len(self.merge_requests), "web_url": "https://example.com"}


class FakeShell:
    """Records git invocations and answers them from a table of canned outputs."""

    def __init__(self, outputs: dict[tuple[str, ...], Any] | None = None) -> None:
        self.outputs = outputs or {}
        self.commands: list[tuple[str, ...]] = []

    def __call__(self, *command: str, cwd: Any = None) -> str:
        self.commands.append(command)
        output = self.outputs.get(command, "")
        if isinstance(output, list):
            output = output.pop(0) if len(output) > 1 else output[0]
        if isinstance(output, Exception):
            raise output
        return output
