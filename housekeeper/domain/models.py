from dataclasses import dataclass, field
from enum import Enum


HOUSEKEEPER_FOOTER = (
    "This change was generated by "
    "[gitlab-housekeeper](https://gitlab.com/gitlab-org/gitlab/-/tree/master/gems/gitlab-housekeeper)"
)
DEFAULT_CHANGELOG_TYPE = "other"


class FieldKind(str, Enum):
    TITLE = "title"
    DESCRIPTION = "description"
    CODE = "code"
    LABELS = "labels"
    REVIEWERS = "reviewers"


RemoteChangeState = frozenset[FieldKind]


@dataclass(eq=False)
class Change:
    identifiers: list[str] = field(default_factory=list)
    title: str = ""
    description: str = ""
    changed_files: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    reviewers: list[str] = field(default_factory=list)
    changelog_type: str | None = None
    mr_web_url: str | None = None

    def is_valid(self) -> bool:
        return bool(self.identifiers and self.title and self.description and self.changed_files)

    @property
    def mr_description(self) -> str:
        return f"{self.description}\n\n{HOUSEKEEPER_FOOTER}\n"

    @property
    def commit_message(self) -> str:
        changelog_type = self.changelog_type or DEFAULT_CHANGELOG_TYPE
        return f"{self.title}\n\n{self.mr_description}\nChangelog: {changelog_type}\n"

    def add_label(self, label: str) -> None:
        if label not in self.labels:
            self.labels.append(label)


@dataclass(frozen=True)
class UpdateFlags:
    update_title: bool
    update_description: bool
    update_labels: bool
    update_reviewers: bool
    push_code: bool
