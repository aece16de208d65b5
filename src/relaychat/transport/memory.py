"""In-process relay and transport.

Implements the relay side of the wire contract for tests and local
development:

- ``join_room`` adds the connection to the named room.
- ``send_message`` is broadcast as ``receive_message`` to every connection
  in the payload's room, the sender included.
"""

import logging
from collections.abc import Mapping
from typing import Any

from relaychat import protocol
from relaychat.transport.base import EventChannel

logger = logging.getLogger(__name__)

REFUSED_REASON = "connection refused"
SERVER_DISCONNECT_REASON = "io server disconnect"


class InMemoryRelay:
    """A relay service living in the current process.

    Example:
        relay = InMemoryRelay()
        async with ChatSession(config, transport_factory=relay.transport) as s:
            await s.connect()
    """

    def __init__(self) -> None:
        self.accepting = True
        """When False, new connections are refused with ``connect_error``."""

        self.received: list[tuple[str, Any]] = []
        """Every (event, payload) pair sent by a connected client."""

        self._connections: list[InMemoryTransport] = []
        self._rooms: dict[str, list[InMemoryTransport]] = {}
        self._endpoints: list[str] = []

    def transport(self) -> "InMemoryTransport":
        """Create a new, unopened transport bound to this relay."""
        return InMemoryTransport(self)

    @property
    def connections(self) -> list["InMemoryTransport"]:
        return list(self._connections)

    @property
    def endpoints(self) -> list[str]:
        """Endpoints passed to every successful open(), in order."""
        return list(self._endpoints)

    def members(self, room: str) -> list["InMemoryTransport"]:
        return list(self._rooms.get(room, ()))

    def emitted(self, event: str) -> list[Any]:
        """Payloads received from clients for one event name."""
        return [payload for name, payload in self.received if name == event]

    async def broadcast(self, room: str, payload: Any) -> int:
        """Deliver a ``receive_message`` to every member of a room.

        Returns the number of connections reached.
        """
        members = self.members(room)
        for connection in members:
            connection._deliver(protocol.RECEIVE_MESSAGE, payload)
        return len(members)

    async def drop(self, connection: "InMemoryTransport | None" = None) -> None:
        """Disconnect one connection, or all of them, from the server side."""
        targets = [connection] if connection is not None else self.connections
        for target in targets:
            if target in self._connections:
                self._detach(target)
                target._server_disconnected(SERVER_DISCONNECT_REASON)

    def _attach(self, connection: "InMemoryTransport", endpoint: str) -> bool:
        if not self.accepting:
            return False
        self._connections.append(connection)
        self._endpoints.append(endpoint)
        return True

    def _detach(self, connection: "InMemoryTransport") -> None:
        if connection in self._connections:
            self._connections.remove(connection)
        for members in self._rooms.values():
            if connection in members:
                members.remove(connection)

    async def _handle(
        self,
        connection: "InMemoryTransport",
        event: str,
        payload: Any,
    ) -> None:
        self.received.append((event, payload))

        if event == protocol.JOIN_ROOM and isinstance(payload, str):
            members = self._rooms.setdefault(payload, [])
            if connection not in members:
                members.append(connection)
        elif event == protocol.SEND_MESSAGE and isinstance(payload, Mapping):
            room = payload.get("room")
            if isinstance(room, str):
                await self.broadcast(room, dict(payload))


class InMemoryTransport(EventChannel):
    """Transport connected to an InMemoryRelay. Single-use."""

    def __init__(self, relay: InMemoryRelay) -> None:
        super().__init__()
        self._relay = relay
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    async def open(
        self,
        endpoint: str,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        if self._closed:
            msg = "Transport is closed"
            raise RuntimeError(msg)
        if self._connected:
            return

        if not self._relay._attach(self, endpoint):
            logger.warning("Relay refused connection to %s", endpoint)
            self._deliver(protocol.CONNECT_ERROR, REFUSED_REASON)
            return

        self._connected = True
        self._deliver(protocol.CONNECT)

    async def close(self) -> None:
        if self._connected:
            self._connected = False
            self._relay._detach(self)
        if not self._closed:
            self._stop_dispatch()

    async def emit(self, event: str, payload: Any = None) -> None:
        if not self._connected:
            logger.warning("Dropping %r: transport is not connected", event)
            return
        await self._relay._handle(self, event, payload)

    def _server_disconnected(self, reason: str) -> None:
        self._connected = False
        self._deliver(protocol.DISCONNECT, reason)
