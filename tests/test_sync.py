"""
Tests for host/remote configuration sync over the loopback transport.

Covers:
- SyncCommand parsing and the remote state machine.
- LoopbackNetwork routing, queuing and JSON payload round trip.
- Full request/update exchange, legacy command name, push.
- Lost messages leave the remote awaiting an update.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

import pytest

from zmu.config import ConfigRegistry, Configuration, Role
from zmu.logger import Logger
from zmu.scheduler import TickScheduler
from zmu.sync import (
    HOST_ID,
    ConfigSyncHost,
    ConfigSyncRemote,
    LoopbackNetwork,
    SyncCommand,
    SyncEvent,
    SyncState,
    SyncStateMachine,
    Transport,
    TransportError,
)

from tests.conftest import declare_demo_options

pytestmark = pytest.mark.sync


@pytest.fixture
def host_registry() -> ConfigRegistry:
    registry = ConfigRegistry(role=Role.HOST)
    config = declare_demo_options(registry.create("ZMU", Logger("ZMU", Logger.DEBUG, callback=lambda line: None)))
    config.set("BoolTest", False)
    return registry


@pytest.fixture
def remote_registry() -> ConfigRegistry:
    registry = ConfigRegistry(role=Role.REMOTE)
    declare_demo_options(registry.create("ZMU", Logger("ZMU", Logger.WARN, callback=lambda line: None)))
    return registry


@pytest.fixture
def host(host_registry: ConfigRegistry, network: LoopbackNetwork) -> ConfigSyncHost:
    return ConfigSyncHost(host_registry, network.host_endpoint())


@pytest.fixture
def remote(remote_registry: ConfigRegistry, network: LoopbackNetwork,
           scheduler: TickScheduler) -> ConfigSyncRemote:
    return ConfigSyncRemote(remote_registry, network.remote_endpoint("player1"), scheduler)


# ---------------------------------------------------------------------------
# Commands / State Machine Tests
# ---------------------------------------------------------------------------


class TestSyncCommand:
    """Tests for command name parsing."""

    def test_wire_names(self) -> None:
        assert SyncCommand.parse("requestConfig") is SyncCommand.REQUEST_CONFIG
        assert SyncCommand.parse("updateSettings") is SyncCommand.UPDATE_SETTINGS
        assert SyncCommand.parse("updateConfig") is SyncCommand.UPDATE_CONFIG

    def test_unknown_command(self) -> None:
        assert SyncCommand.parse("somethingElse") is None


class TestSyncStateMachine:
    """Tests for the per-configuration remote state machine."""

    def test_request_then_update(self) -> None:
        machine = SyncStateMachine("ZMU")
        assert machine.state is SyncState.UNSYNCED
        assert machine.transition(SyncEvent.REQUEST_SENT) is SyncState.AWAITING_UPDATE
        assert machine.transition(SyncEvent.UPDATE_RECEIVED) is SyncState.SYNCED

    def test_unsolicited_update_syncs(self) -> None:
        machine = SyncStateMachine("ZMU")
        assert machine.transition(SyncEvent.UPDATE_RECEIVED) is SyncState.SYNCED

    def test_invalid_transition_keeps_state(self) -> None:
        machine = SyncStateMachine("ZMU")
        machine.transition(SyncEvent.REQUEST_SENT)
        assert machine.transition(SyncEvent.REQUEST_SENT) is SyncState.AWAITING_UPDATE


# ---------------------------------------------------------------------------
# Transport Tests
# ---------------------------------------------------------------------------


class TestLoopbackNetwork:
    """Tests for routing and delivery."""

    def test_endpoints_satisfy_protocol(self, network: LoopbackNetwork) -> None:
        assert isinstance(network.host_endpoint(), Transport)
        assert isinstance(network.remote_endpoint("p1"), Transport)

    def test_remote_endpoint_is_reused(self, network: LoopbackNetwork) -> None:
        assert network.remote_endpoint("p1") is network.remote_endpoint("p1")

    def test_host_id_reserved(self, network: LoopbackNetwork) -> None:
        with pytest.raises(TransportError):
            network.remote_endpoint(HOST_ID)

    def test_host_cannot_send_to_host(self, network: LoopbackNetwork) -> None:
        with pytest.raises(TransportError):
            network.host_endpoint().send_to_host("ZMU", "requestConfig")

    def test_remote_cannot_send_to_remote(self, network: LoopbackNetwork) -> None:
        network.remote_endpoint("p2")
        with pytest.raises(TransportError):
            network.remote_endpoint("p1").send_to_remote("p2", "ZMU", "updateSettings")

    def test_unknown_remote(self, network: LoopbackNetwork) -> None:
        with pytest.raises(TransportError, match="ghost"):
            network.host_endpoint().send_to_remote("ghost", "ZMU", "updateSettings")

    def test_messages_wait_for_flush(self, network: LoopbackNetwork) -> None:
        received: List[Tuple] = []
        network.host_endpoint().set_handler(lambda *args: received.append(args))

        network.remote_endpoint("p1").send_to_host("ZMU", "requestConfig")
        assert network.pending == 1
        assert received == []

        assert network.flush() == 1
        assert received == [("ZMU", "requestConfig", "p1", None)]
        assert network.delivered[0].target_id == HOST_ID

    def test_payload_is_copied(self, network: LoopbackNetwork) -> None:
        received: List[Tuple] = []
        network.remote_endpoint("p1").set_handler(lambda *args: received.append(args))
        payload = {"IntTest": 5, "FloatTest": 0.5, "BoolTest": True}

        network.host_endpoint().send_to_remote("p1", "ZMU", "updateSettings", payload)
        payload["IntTest"] = 99
        network.flush()

        assert received[0][3] == {"IntTest": 5, "FloatTest": 0.5, "BoolTest": True}

    def test_flush_limit_and_drop(self, network: LoopbackNetwork) -> None:
        endpoint = network.remote_endpoint("p1")
        for _ in range(3):
            endpoint.send_to_host("ZMU", "requestConfig")

        assert network.flush(max_messages=1) == 1
        assert network.drop_pending() == 2
        assert network.pending == 0

    def test_no_handler_drops_message(self, network: LoopbackNetwork) -> None:
        network.remote_endpoint("p1").send_to_host("ZMU", "requestConfig")
        assert network.flush() == 1


# ---------------------------------------------------------------------------
# Host / Remote Exchange Tests
# ---------------------------------------------------------------------------


class TestSyncExchange:
    """End-to-end request/update exchange."""

    def test_remote_receives_host_settings(self, host: ConfigSyncHost, remote: ConfigSyncRemote,
                                           remote_registry: ConfigRegistry, scheduler: TickScheduler,
                                           network: LoopbackNetwork, tmp_path: Path) -> None:
        config = remote_registry.get("ZMU")
        settings_file = tmp_path / "remote.ini"
        settings_file.write_text("BoolTest = true\nIntTest = 20\n", encoding="utf-8")
        config.load(settings_file)
        config.set("BoolTest", True)

        remote.start()
        scheduler.tick()
        network.flush()

        assert remote.state("ZMU") is SyncState.SYNCED
        assert config.has_temp
        assert config.get("BoolTest") is False
        assert config.get("IntTest") == 50
        assert config.get("LogLevel") == Logger.DEBUG
        assert config.logger.level == Logger.DEBUG

        config.remove_temp()
        assert config.get("BoolTest") is True
        assert config.get("IntTest") == 20
        assert config.logger.level == Logger.WARN

    def test_request_deferred_one_tick_and_sent_once(self, remote: ConfigSyncRemote,
                                                     scheduler: TickScheduler,
                                                     network: LoopbackNetwork) -> None:
        remote.start()
        assert network.pending == 0
        assert remote.state("ZMU") is SyncState.UNSYNCED

        scheduler.tick()
        assert remote.requested
        assert network.pending == 1
        assert remote.request_settings not in scheduler

        scheduler.tick()
        remote.start()
        scheduler.tick()
        assert network.pending == 1

    def test_request_for_every_config(self, remote_registry: ConfigRegistry, remote: ConfigSyncRemote,
                                      network: LoopbackNetwork) -> None:
        remote_registry.create("Other")
        assert remote.request_settings() == 2
        assert network.pending == 2

    def test_lost_response_leaves_remote_waiting(self, host: ConfigSyncHost, remote: ConfigSyncRemote,
                                                 remote_registry: ConfigRegistry, scheduler: TickScheduler,
                                                 network: LoopbackNetwork) -> None:
        remote.start()
        scheduler.tick()
        network.flush(max_messages=1)
        network.drop_pending()

        assert remote.state("ZMU") is SyncState.AWAITING_UPDATE
        assert not remote_registry.get("ZMU").has_temp

    def test_unflushed_request_leaves_remote_waiting(self, remote: ConfigSyncRemote,
                                                     scheduler: TickScheduler) -> None:
        remote.start()
        scheduler.tick()
        scheduler.tick()
        assert remote.state("ZMU") is SyncState.AWAITING_UPDATE

    def test_legacy_update_command(self, remote: ConfigSyncRemote, remote_registry: ConfigRegistry,
                                   network: LoopbackNetwork) -> None:
        network.host_endpoint().send_to_remote("player1", "ZMU", "updateConfig", {"IntTest": 7})
        network.flush()

        assert remote_registry.get("ZMU").get("IntTest") == 7
        assert remote.state("ZMU") is SyncState.SYNCED

    def test_update_for_unknown_config_ignored(self, remote: ConfigSyncRemote,
                                               network: LoopbackNetwork) -> None:
        network.host_endpoint().send_to_remote("player1", "Missing", "updateSettings", {"IntTest": 7})
        network.flush()
        assert remote.state("Missing") is SyncState.UNSYNCED

    def test_host_ignores_unknown_config(self, host: ConfigSyncHost, network: LoopbackNetwork) -> None:
        network.remote_endpoint("p1").send_to_host("Missing", "requestConfig")
        network.flush()

        assert network.pending == 0
        assert host.subscribers("Missing") == []

    def test_host_ignores_other_commands(self, host: ConfigSyncHost, network: LoopbackNetwork) -> None:
        network.remote_endpoint("p1").send_to_host("ZMU", "updateSettings", {"IntTest": 1})
        network.flush()

        assert host.registry.get("ZMU").get("IntTest") == 50
        assert network.pending == 0

    def test_push_to_subscribers(self, host: ConfigSyncHost, host_registry: ConfigRegistry,
                                 remote: ConfigSyncRemote, remote_registry: ConfigRegistry,
                                 network: LoopbackNetwork) -> None:
        remote.request_settings()
        network.flush()
        assert host.subscribers("ZMU") == ["player1"]

        host_registry.get("ZMU").set("IntTest", 99)
        assert host.push("ZMU") == 1
        network.flush()

        assert remote_registry.get("ZMU").get("IntTest") == 99

    def test_push_unknown_config(self, host: ConfigSyncHost) -> None:
        assert host.push("Missing") == 0

    def test_remote_on_host_registry_never_saves(self, host: ConfigSyncHost, network: LoopbackNetwork,
                                                 scheduler: TickScheduler, tmp_path: Path) -> None:
        local_registry = ConfigRegistry(role=Role.HOST)
        declare_demo_options(local_registry.create("ZMU", Logger("ZMU", Logger.WARN, callback=lambda line: None)))

        remote = ConfigSyncRemote(local_registry, network.remote_endpoint("p9"), scheduler)
        assert local_registry.role is Role.REMOTE

        remote.request_settings()
        network.flush()
        config = local_registry.get("ZMU")
        assert config.get("BoolTest") is False

        target = tmp_path / "local.ini"
        assert config.save(target) is False
        assert not target.exists()


def _remote_config(registry: ConfigRegistry) -> Configuration:
    return registry.get("ZMU")


class TestRemotePersistence:
    """A synced remote never writes host settings to its own file."""

    def test_remote_save_refused(self, host: ConfigSyncHost, remote: ConfigSyncRemote,
                                 remote_registry: ConfigRegistry, network: LoopbackNetwork,
                                 tmp_path: Path) -> None:
        remote.request_settings()
        network.flush()

        target = tmp_path / "remote.ini"
        assert _remote_config(remote_registry).save(target) is False
        assert not target.exists()
