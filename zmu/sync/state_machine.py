"""Per-configuration sync state of a remote."""

from __future__ import annotations

from enum import Enum, auto

from loguru import logger


class SyncState(Enum):
    UNSYNCED = auto()
    AWAITING_UPDATE = auto()
    SYNCED = auto()


class SyncEvent(Enum):
    REQUEST_SENT = auto()
    UPDATE_RECEIVED = auto()


# No timeout or retry: AWAITING_UPDATE may be terminal.
_TRANSITIONS = {
    SyncState.UNSYNCED: {
        SyncEvent.REQUEST_SENT: SyncState.AWAITING_UPDATE,
        SyncEvent.UPDATE_RECEIVED: SyncState.SYNCED,
    },
    SyncState.AWAITING_UPDATE: {
        SyncEvent.UPDATE_RECEIVED: SyncState.SYNCED,
    },
    SyncState.SYNCED: {
        SyncEvent.UPDATE_RECEIVED: SyncState.SYNCED,
    },
}


class SyncStateMachine:
    def __init__(self, config_name: str = ""):
        self.config_name = config_name
        self.state = SyncState.UNSYNCED

    def transition(self, event: SyncEvent) -> SyncState:
        allowed = _TRANSITIONS.get(self.state, {})
        if event not in allowed:
            logger.warning(
                f"Invalid sync transition for {self.config_name}: "
                f"{self.state} --{event}--> (ignored)"
            )
            return self.state
        self.state = allowed[event]
        return self.state
