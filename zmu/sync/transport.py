"""
Sync Transport.

The sync endpoints only need a small capability from the host's
client/server command channel, described by the ``Transport`` protocol.
``LoopbackNetwork`` implements it in-process: one host endpoint and any
number of remote endpoints exchanging queued messages, delivered when the
network is flushed. It backs the test suite and single-process setups.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Protocol, runtime_checkable

from loguru import logger

from zmu.sync.commands import Envelope, Payload

CommandHandler = Callable[[str, str, str, Payload], None]

HOST_ID = "host"


class TransportError(Exception):
    """Raised when a message cannot be routed."""

    pass


@runtime_checkable
class Transport(Protocol):
    """Request/response channel between the host and remotes."""

    def send_to_host(self, config_name: str, command: str, payload: Payload = None) -> None:
        """Send a command from a remote to the host."""

    def send_to_remote(
        self, target_id: str, config_name: str, command: str, payload: Payload = None
    ) -> None:
        """Send a command from the host to one remote."""

    def set_handler(self, handler: Optional[CommandHandler]) -> None:
        """Install the inbound callback ``(config_name, command, sender_id, payload)``."""


class LoopbackEndpoint:
    """One side of a LoopbackNetwork (the host or a single remote)."""

    def __init__(self, network: "LoopbackNetwork", endpoint_id: str, is_host: bool) -> None:
        self.network = network
        self.endpoint_id = endpoint_id
        self.is_host = is_host
        self.handler: Optional[CommandHandler] = None

    def send_to_host(self, config_name: str, command: str, payload: Payload = None) -> None:
        if self.is_host:
            raise TransportError("The host cannot send to itself")
        self.network.post(self.endpoint_id, HOST_ID, config_name, command, payload)

    def send_to_remote(
        self, target_id: str, config_name: str, command: str, payload: Payload = None
    ) -> None:
        if not self.is_host:
            raise TransportError(
                f"Remote '{self.endpoint_id}' cannot send to remote '{target_id}'"
            )
        self.network.post(self.endpoint_id, target_id, config_name, command, payload)

    def set_handler(self, handler: Optional[CommandHandler]) -> None:
        self.handler = handler

    def receive(self, envelope: Envelope) -> None:
        if self.handler is None:
            logger.debug(
                f"Endpoint '{self.endpoint_id}' has no handler, dropping {envelope.command}"
            )
            return
        self.handler(envelope.config_name, envelope.command, envelope.sender_id, envelope.payload)

    def __repr__(self) -> str:
        return f"LoopbackEndpoint(id={self.endpoint_id!r}, host={self.is_host})"


class LoopbackNetwork:
    """
    In-process message bus connecting one host with many remotes.

    Messages are queued by ``post`` and delivered by ``flush``, so a request
    and its response can land on different ticks. Payloads go through a
    JSON round trip, as they would on a real wire.

    Usage::

        network = LoopbackNetwork()
        host = network.host_endpoint()
        remote = network.remote_endpoint("player1")
        ...
        network.flush()
    """

    def __init__(self) -> None:
        self._host = LoopbackEndpoint(self, HOST_ID, is_host=True)
        self._remotes: Dict[str, LoopbackEndpoint] = {}
        self._queue: Deque[Envelope] = deque()
        self.delivered: List[Envelope] = []

    def host_endpoint(self) -> LoopbackEndpoint:
        return self._host

    def remote_endpoint(self, remote_id: str) -> LoopbackEndpoint:
        """Return the endpoint for ``remote_id``, creating it on first use."""
        if remote_id == HOST_ID:
            raise TransportError(f"'{HOST_ID}' is reserved for the host endpoint")
        endpoint = self._remotes.get(remote_id)
        if endpoint is None:
            endpoint = LoopbackEndpoint(self, remote_id, is_host=False)
            self._remotes[remote_id] = endpoint
            logger.debug(f"Loopback remote connected: {remote_id}")
        return endpoint

    def post(
        self,
        sender_id: str,
        target_id: str,
        config_name: str,
        command: str,
        payload: Payload = None,
    ) -> None:
        """Queue a message for delivery on the next ``flush``."""
        if target_id != HOST_ID and target_id not in self._remotes:
            raise TransportError(f"Unknown remote '{target_id}'")
        wire_payload = None if payload is None else json.loads(json.dumps(payload))
        self._queue.append(
            Envelope(
                config_name=config_name,
                command=command,
                sender_id=sender_id,
                target_id=target_id,
                payload=wire_payload,
            )
        )

    @property
    def pending(self) -> int:
        return len(self._queue)

    def flush(self, max_messages: Optional[int] = None) -> int:
        """
        Deliver queued messages, including replies queued while flushing.

        Args:
            max_messages: Stop after this many deliveries (None: until empty).

        Returns:
            Number of messages delivered.
        """
        delivered = 0
        while self._queue and (max_messages is None or delivered < max_messages):
            envelope = self._queue.popleft()
            target = self._host if envelope.target_id == HOST_ID else self._remotes[envelope.target_id]
            target.receive(envelope)
            self.delivered.append(envelope)
            delivered += 1
        return delivered

    def drop_pending(self) -> int:
        """Discard every queued message, as a lossy link would."""
        dropped = len(self._queue)
        self._queue.clear()
        return dropped
