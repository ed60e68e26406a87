from typing import Any, Protocol

from housekeeper.domain.models import Change, RemoteChangeState


class HostingClient(Protocol):
    def non_housekeeper_changes(
        self,
        *,
        source_project_id: str,
        source_branch: str,
        target_branch: str,
        target_project_id: str,
    ) -> RemoteChangeState:
        """Report which merge request fields were edited by someone else."""

    def create_or_update_merge_request(
        self,
        *,
        change: Change,
        source_project_id: str,
        source_branch: str,
        target_branch: str,
        target_project_id: str,
        update_title: bool,
        update_description: bool,
        update_labels: bool,
        update_reviewers: bool,
    ) -> dict[str, Any]:
        """Create the merge request, or update only the flagged fields of an existing one."""
