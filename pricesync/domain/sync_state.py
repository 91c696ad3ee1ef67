"""Sync state vocabulary and the single transition function for product sync status."""

from enum import Enum
from typing import Optional, Union

from pricesync.core.exceptions import InvalidSyncTransition


class SyncStatus(str, Enum):
    NEVER = "never"
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    FAILED = "failed"


class SyncEvent(str, Enum):
    LOCAL_EDIT = "local_edit"
    PUSH_STARTED = "push_started"
    PUSH_SUCCEEDED = "push_succeeded"
    PUSH_FAILED = "push_failed"
    PULL_IMPORTED = "pull_imported"


class SyncDirection(str, Enum):
    PUSH = "push"
    PULL = "pull"


class OriginSystem(str, Enum):
    LOCAL = "local"
    ODOO = "odoo"


class SyncOperation(str, Enum):
    COST_UPDATE = "cost_update"
    IMPORT_CREATE = "import_create"
    IMPORT_UPDATE = "import_update"
    IMPORT_TOUCH = "import_touch"


class LogStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


_ANY = frozenset(SyncStatus)

# event -> (states it may fire from, resulting state)
TRANSITIONS: dict[SyncEvent, tuple[frozenset, SyncStatus]] = {
    SyncEvent.LOCAL_EDIT: (_ANY, SyncStatus.PENDING),
    # at-least-once dispatch may re-run a push left in processing
    SyncEvent.PUSH_STARTED: (_ANY, SyncStatus.PROCESSING),
    SyncEvent.PUSH_SUCCEEDED: (frozenset({SyncStatus.PROCESSING}), SyncStatus.SUCCESS),
    SyncEvent.PUSH_FAILED: (frozenset({SyncStatus.PROCESSING}), SyncStatus.FAILED),
    SyncEvent.PULL_IMPORTED: (_ANY, SyncStatus.SUCCESS),
}


def transition(current: Optional[Union[SyncStatus, str]], event: SyncEvent) -> SyncStatus:
    """Return the status reached by applying ``event`` to ``current``.

    ``None`` is read as ``never`` (a row that has not been flushed yet).
    Raises InvalidSyncTransition for pairs outside the table.
    """
    state = SyncStatus(current) if current is not None else SyncStatus.NEVER
    allowed, target = TRANSITIONS[event]
    if state not in allowed:
        raise InvalidSyncTransition(
            f"Cannot apply {event.value} to a product in state {state.value}.",
            details={"state": state.value, "event": event.value},
        )
    return target
