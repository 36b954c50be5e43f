"""
Remote side of configuration sync.

A remote asks the host once for the settings of every locally registered
configuration, one tick after ``start`` so that registration has finished,
and applies whatever the host sends as a temporary override. Its own
persisted settings stay underneath and come back with
``Configuration.remove_temp``. There is no polling, timeout or retry.
"""

from __future__ import annotations

from typing import Dict, Optional

from loguru import logger

from zmu.config.configuration import Role
from zmu.config.registry import ConfigRegistry
from zmu.scheduler import TickScheduler
from zmu.sync.commands import UPDATE_COMMANDS, Payload, SyncCommand
from zmu.sync.state_machine import SyncEvent, SyncState, SyncStateMachine
from zmu.sync.transport import Transport


class ConfigSyncRemote:
    """
    Non-authoritative sync endpoint.

    Usage::

        registry = ConfigRegistry(role=Role.REMOTE)
        remote = ConfigSyncRemote(registry, network.remote_endpoint("p1"), scheduler)
        remote.start()
        scheduler.tick()   # requestConfig sent for every configuration
    """

    def __init__(
        self,
        registry: ConfigRegistry,
        transport: Transport,
        scheduler: TickScheduler,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.scheduler = scheduler
        self._machines: Dict[str, SyncStateMachine] = {}
        self._requested = False
        if registry.role is not Role.REMOTE:
            logger.warning(
                f"ConfigSyncRemote attached to a registry with role '{registry.role.value}'; "
                f"switching it to '{Role.REMOTE.value}' so host settings are never saved locally"
            )
            registry.role = Role.REMOTE
        transport.set_handler(self.handle_command)

    def start(self) -> None:
        """Schedule the one-time settings request for the next tick."""
        if self._requested:
            return
        self.scheduler.add(self.request_settings)

    def request_settings(self, tick: Optional[int] = None) -> int:
        """
        Send ``requestConfig`` for every registered configuration and stop
        requesting.

        Returns:
            Number of requests sent.
        """
        self.scheduler.remove(self.request_settings)
        if self._requested:
            return 0
        self._requested = True

        sent = 0
        for config in self.registry:
            config.logger.debug("Requesting config settings from host")
            self.transport.send_to_host(config.name, SyncCommand.REQUEST_CONFIG.value, None)
            self._machine(config.name).transition(SyncEvent.REQUEST_SENT)
            sent += 1
        return sent

    def handle_command(self, config_name: str, command: str, sender_id: str, payload: Payload) -> None:
        """Inbound dispatch for commands sent by the host."""
        if SyncCommand.parse(command) not in UPDATE_COMMANDS:
            return
        config = self.registry.get(config_name)
        if config is None:
            logger.debug(f"Settings for unknown config '{config_name}' ignored")
            return

        config.logger.debug("Received config settings from host")
        config.apply_temp(payload or {})
        self._machine(config_name).transition(SyncEvent.UPDATE_RECEIVED)

    def state(self, config_name: str) -> SyncState:
        """Sync state of ``config_name`` (UNSYNCED if never requested)."""
        machine = self._machines.get(config_name)
        return SyncState.UNSYNCED if machine is None else machine.state

    @property
    def requested(self) -> bool:
        return self._requested

    def _machine(self, config_name: str) -> SyncStateMachine:
        machine = self._machines.get(config_name)
        if machine is None:
            machine = SyncStateMachine(config_name)
            self._machines[config_name] = machine
        return machine
