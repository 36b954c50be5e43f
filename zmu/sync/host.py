"""
Host side of configuration sync.

Answers ``requestConfig`` with the full current settings of the named
configuration and can push later changes to every remote that asked.
"""

from __future__ import annotations

from typing import Dict, List, Set

from loguru import logger

from zmu.config.registry import ConfigRegistry
from zmu.sync.commands import Payload, SyncCommand
from zmu.sync.transport import Transport


class ConfigSyncHost:
    """
    Authoritative sync endpoint.

    Usage::

        host = ConfigSyncHost(registry, network.host_endpoint())
        ...
        config.set("BoolTest", False)
        host.push("ZMU")   # send the new settings to every subscribed remote
    """

    def __init__(self, registry: ConfigRegistry, transport: Transport) -> None:
        self.registry = registry
        self.transport = transport
        self._subscribers: Dict[str, Set[str]] = {}
        transport.set_handler(self.handle_command)

    def handle_command(self, config_name: str, command: str, sender_id: str, payload: Payload) -> None:
        """Inbound dispatch for commands sent by remotes."""
        if SyncCommand.parse(command) is not SyncCommand.REQUEST_CONFIG:
            return
        config = self.registry.get(config_name)
        if config is None:
            logger.debug(f"Sync request from '{sender_id}' for unknown config '{config_name}' ignored")
            return

        self._subscribers.setdefault(config_name, set()).add(sender_id)
        config.logger.debug("Sending config settings to %s", sender_id)
        self._send_settings(sender_id, config_name, config.settings_table())

    def push(self, config_name: str) -> int:
        """
        Send the current settings of ``config_name`` to every remote that has
        requested it.

        Returns:
            Number of remotes the settings were sent to.
        """
        config = self.registry.get(config_name)
        if config is None:
            logger.warning(f"Cannot push unknown config '{config_name}'")
            return 0

        targets = sorted(self._subscribers.get(config_name, ()))
        for target_id in targets:
            self._send_settings(target_id, config_name, config.settings_table())
        config.logger.debug("Pushed config settings to %d remote(s)", len(targets))
        return len(targets)

    def subscribers(self, config_name: str) -> List[str]:
        """Remotes that have requested ``config_name``."""
        return sorted(self._subscribers.get(config_name, ()))

    def _send_settings(self, target_id: str, config_name: str, settings: Payload) -> None:
        self.transport.send_to_remote(
            target_id,
            config_name,
            SyncCommand.UPDATE_SETTINGS.value,
            dict(settings or {}),
        )
