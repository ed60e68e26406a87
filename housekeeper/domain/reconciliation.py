from typing import Iterable

from housekeeper.domain.models import FieldKind, RemoteChangeState, UpdateFlags


def to_remote_change_state(field_kinds: Iterable[FieldKind | str]) -> RemoteChangeState:
    return frozenset(FieldKind(field_kind) for field_kind in field_kinds)


def derive_update_flags(non_housekeeper_changes: RemoteChangeState) -> UpdateFlags:
    """Withhold automated overwrites of anything a human changed since the last run.

    Labels are always reconciled, everything else is only written when nobody
    else has touched it.
    """
    return UpdateFlags(
        update_title=FieldKind.TITLE not in non_housekeeper_changes,
        update_description=FieldKind.DESCRIPTION not in non_housekeeper_changes,
        update_labels=True,
        update_reviewers=FieldKind.REVIEWERS not in non_housekeeper_changes,
        push_code=FieldKind.CODE not in non_housekeeper_changes,
    )
