from typing import Set

from ..exceptions import InvariantViolation

UNINITIALIZED = "uninitialized"
SYNCING = "syncing"
SYNCED = "synced"

# A template left in "syncing" by a failed run may be synced again.
ALLOWED_SYNC_TRANSITIONS: dict[str, Set[str]] = {
    UNINITIALIZED: {SYNCING},
    SYNCING: {SYNCING, SYNCED},
    SYNCED: {SYNCING},
}


def assert_sync_transition(*, from_status: str, to_status: str) -> None:
    """
    Guards template sync state changes.
    Single source of truth for sync status.
    """
    allowed = ALLOWED_SYNC_TRANSITIONS.get(from_status or UNINITIALIZED, set())

    if to_status not in allowed:
        raise InvariantViolation(
            f"Illegal template sync transition: {from_status} → {to_status}"
        )
