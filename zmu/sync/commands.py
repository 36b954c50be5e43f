"""Sync command names and the message envelope carried by transports."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

Payload = Optional[Dict[str, Any]]


class SyncCommand(Enum):
    """Commands exchanged between host and remotes."""

    REQUEST_CONFIG = "requestConfig"     # remote -> host, no payload
    UPDATE_SETTINGS = "updateSettings"   # host -> remote, full settings
    UPDATE_CONFIG = "updateConfig"       # host -> remote, legacy name

    @classmethod
    def parse(cls, command: Any) -> Optional["SyncCommand"]:
        """Return the matching command, or None for names this library does not handle."""
        if isinstance(command, cls):
            return command
        try:
            return cls(command)
        except ValueError:
            return None


UPDATE_COMMANDS = frozenset({SyncCommand.UPDATE_SETTINGS, SyncCommand.UPDATE_CONFIG})


@dataclass(frozen=True)
class Envelope:
    """
    One message in flight.

    Attributes:
        config_name: Configuration the command is about.
        command: Command name as sent on the wire.
        sender_id: Endpoint that sent the message.
        target_id: Endpoint that receives it.
        payload: Optional key -> value mapping.
    """

    config_name: str
    command: str
    sender_id: str
    target_id: str
    payload: Payload = None
