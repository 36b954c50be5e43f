"""
Configuration Sync Module.

Lets remotes pull settings from the authoritative host and receive pushed
updates over an abstract command channel:
- requestConfig: remote -> host, no payload.
- updateSettings (and legacy updateConfig): host -> remote, full settings.
"""

from zmu.sync.commands import Envelope, SyncCommand
from zmu.sync.host import ConfigSyncHost
from zmu.sync.remote import ConfigSyncRemote
from zmu.sync.state_machine import SyncEvent, SyncState, SyncStateMachine
from zmu.sync.transport import (
    HOST_ID,
    LoopbackEndpoint,
    LoopbackNetwork,
    Transport,
    TransportError,
)

__all__ = [
    "HOST_ID",
    "ConfigSyncHost",
    "ConfigSyncRemote",
    "Envelope",
    "LoopbackEndpoint",
    "LoopbackNetwork",
    "SyncCommand",
    "SyncEvent",
    "SyncState",
    "SyncStateMachine",
    "Transport",
    "TransportError",
]
