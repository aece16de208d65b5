"""Socket.IO transport built on python-socketio's AsyncClient."""

import logging
from collections.abc import Mapping
from typing import Any

import socketio
import socketio.exceptions

from relaychat import protocol
from relaychat.transport.base import EventChannel

logger = logging.getLogger(__name__)

CATCH_ALL = "*"


class SocketIOTransport(EventChannel):
    """Transport over a Socket.IO connection.

    The client is created with reconnection disabled: losing the connection
    is reported as a ``disconnect`` event and reconnecting is left to the
    session. ``connect``, ``disconnect`` and every named server event are
    forwarded into the ordered dispatch loop. Requires the asyncio backend.

    Example:
        transport = SocketIOTransport()
        transport.on("receive_message", on_message)
        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await transport.open("http://localhost:5002", {"transports": ["websocket"]})
    """

    def __init__(
        self,
        client: socketio.AsyncClient | None = None,
        **client_options: Any,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Preconfigured AsyncClient. Built from ``client_options``
                when omitted.
            client_options: Keyword arguments for socketio.AsyncClient.
        """
        super().__init__()
        client_options.setdefault("reconnection", False)
        self._client = client or socketio.AsyncClient(**client_options)
        self._opening = False

        self._client.on(protocol.CONNECT, self._on_connect)
        self._client.on(protocol.DISCONNECT, self._on_disconnect)
        self._client.on(CATCH_ALL, self._on_event)

    @property
    def client(self) -> socketio.AsyncClient:
        return self._client

    @property
    def connected(self) -> bool:
        return bool(self._client.connected)

    async def open(
        self,
        endpoint: str,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        if self._closed:
            msg = "Transport is closed"
            raise RuntimeError(msg)
        if self._opening or self._client.connected:
            return

        self._opening = True
        try:
            await self._client.connect(endpoint, **dict(options or {}))
        except socketio.exceptions.ConnectionError as e:
            logger.warning("Could not connect to %s: %s", endpoint, e)
            self._deliver(protocol.CONNECT_ERROR, str(e))
        finally:
            self._opening = False

    async def close(self) -> None:
        if self._client.connected:
            await self._client.disconnect()
        if not self._closed:
            self._stop_dispatch()

    async def emit(self, event: str, payload: Any = None) -> None:
        if not self._client.connected:
            logger.warning("Dropping %r: transport is not connected", event)
            return
        try:
            await self._client.emit(event, payload)
        except socketio.exceptions.SocketIOError as e:
            logger.warning("Failed to emit %r: %s", event, e)

    async def _on_connect(self) -> None:
        self._deliver(protocol.CONNECT)

    async def _on_disconnect(self, *args: Any) -> None:
        reason = args[0] if args else None
        self._deliver(protocol.DISCONNECT, reason)

    async def _on_event(self, event: str, *args: Any) -> None:
        if len(args) == 1:
            payload: Any = args[0]
        else:
            payload = list(args) or None
        self._deliver(event, payload)
