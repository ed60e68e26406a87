from housekeeper.domain.branch_naming import branch_name
from housekeeper.domain.errors import (
    ConfigurationError,
    HostingApiError,
    HousekeeperError,
    KeepGenerationError,
    VersionControlError,
)
from housekeeper.domain.filters import IdentifierFilter, is_selected
from housekeeper.domain.models import Change, FieldKind, RemoteChangeState, UpdateFlags
from housekeeper.domain.reconciliation import derive_update_flags, to_remote_change_state

__all__ = [
    "Change",
    "ConfigurationError",
    "FieldKind",
    "HostingApiError",
    "HousekeeperError",
    "IdentifierFilter",
    "KeepGenerationError",
    "RemoteChangeState",
    "UpdateFlags",
    "VersionControlError",
    "branch_name",
    "derive_update_flags",
    "is_selected",
    "to_remote_change_state",
]
