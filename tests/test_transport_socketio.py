"""Tests for SocketIOTransport against a fake AsyncClient."""

from collections.abc import Callable
from typing import Any

import anyio
import pytest
import socketio.exceptions
from helpers import settle, wait_until

from relaychat import protocol
from relaychat.transport import SocketIOTransport
from relaychat.transport.socketio_client import CATCH_ALL

pytestmark = pytest.mark.anyio

ENDPOINT = "http://relay.test:5002"
CLIENT_DISCONNECT = "client disconnect"


class FakeAsyncClient:
    """Just enough of socketio.AsyncClient to drive the transport."""

    def __init__(self, *, refuse: bool = False) -> None:
        self.refuse = refuse
        self.connected = False
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.connect_calls: list[tuple[str, dict[str, Any]]] = []
        self.emitted: list[tuple[str, Any]] = []
        self.emit_error: Exception | None = None

    def on(self, event: str, handler: Callable[..., Any] | None = None) -> Any:
        if handler is None:

            def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
                self.handlers[event] = fn
                return fn

            return decorator
        self.handlers[event] = handler
        return None

    async def connect(self, url: str, **kwargs: Any) -> None:
        self.connect_calls.append((url, kwargs))
        if self.refuse:
            msg = "Connection refused by the server"
            raise socketio.exceptions.ConnectionError(msg)
        self.connected = True
        await self.handlers[protocol.CONNECT]()

    async def emit(self, event: str, data: Any = None) -> None:
        if self.emit_error is not None:
            raise self.emit_error
        self.emitted.append((event, data))

    async def disconnect(self) -> None:
        self.connected = False
        await self.handlers[protocol.DISCONNECT](CLIENT_DISCONNECT)

    async def server_event(self, event: str, *args: Any) -> None:
        await self.handlers[CATCH_ALL](event, *args)

    async def server_drop(self, reason: str = "transport close") -> None:
        self.connected = False
        await self.handlers[protocol.DISCONNECT](reason)


class Collector:
    def __init__(self) -> None:
        self.payloads: list[Any] = []

    async def __call__(self, payload: Any) -> None:
        self.payloads.append(payload)


@pytest.fixture
def client() -> FakeAsyncClient:
    return FakeAsyncClient()


@pytest.fixture
def transport(client: FakeAsyncClient) -> SocketIOTransport:
    return SocketIOTransport(client=client)  # type: ignore[arg-type]


class TestSocketIOTransport:
    async def test_registers_client_handlers(self, client: FakeAsyncClient) -> None:
        SocketIOTransport(client=client)  # type: ignore[arg-type]
        assert set(client.handlers) == {protocol.CONNECT, protocol.DISCONNECT, CATCH_ALL}

    async def test_default_client_has_reconnection_disabled(self) -> None:
        transport = SocketIOTransport()
        assert isinstance(transport.client, socketio.AsyncClient)
        assert transport.client.reconnection is False
        assert not transport.connected

    async def test_open_forwards_endpoint_and_options(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        connects = Collector()
        transport.on(protocol.CONNECT, connects)

        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await transport.open(ENDPOINT, {"transports": ["websocket"]})
            await wait_until(lambda: len(connects.payloads) == 1)
            assert transport.connected
            await transport.close()

        assert client.connect_calls == [(ENDPOINT, {"transports": ["websocket"]})]

    async def test_open_when_connected_is_noop(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        await transport.open(ENDPOINT)
        await transport.open(ENDPOINT)
        assert len(client.connect_calls) == 1
        await transport.close()

    async def test_connection_error_becomes_connect_error_event(self) -> None:
        client = FakeAsyncClient(refuse=True)
        transport = SocketIOTransport(client=client)  # type: ignore[arg-type]
        errors = Collector()
        transport.on(protocol.CONNECT_ERROR, errors)

        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await transport.open(ENDPOINT)
            await wait_until(lambda: len(errors.payloads) == 1)
            await transport.close()

        assert "refused" in errors.payloads[0]
        assert not transport.connected

    async def test_server_events_forwarded_in_order(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        messages = Collector()
        transport.on(protocol.RECEIVE_MESSAGE, messages)
        payloads = [{"n": i} for i in range(5)]

        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await transport.open(ENDPOINT)
            for payload in payloads:
                await client.server_event(protocol.RECEIVE_MESSAGE, payload)
            await wait_until(lambda: len(messages.payloads) == len(payloads))
            await transport.close()

        assert messages.payloads == payloads

    async def test_multi_argument_event_payload_is_list(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        received = Collector()
        transport.on("custom", received)

        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await client.server_event("custom", 1, 2)
            await client.server_event("custom")
            await wait_until(lambda: len(received.payloads) == 2)  # noqa: PLR2004
            await transport.close()

        assert received.payloads == [[1, 2], None]

    async def test_server_drop_delivers_disconnect(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        disconnects = Collector()
        transport.on(protocol.DISCONNECT, disconnects)

        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await transport.open(ENDPOINT)
            await client.server_drop("transport close")
            await wait_until(lambda: disconnects.payloads == ["transport close"])
            assert not transport.connected
            await transport.close()

    async def test_emit_forwards_to_client(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        await transport.open(ENDPOINT)
        await transport.emit(protocol.JOIN_ROOM, "lobby")
        assert client.emitted == [(protocol.JOIN_ROOM, "lobby")]
        await transport.close()

    async def test_emit_when_disconnected_is_dropped(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        await transport.emit(protocol.JOIN_ROOM, "lobby")
        assert client.emitted == []
        await transport.close()

    async def test_emit_error_is_logged_not_raised(
        self,
        client: FakeAsyncClient,
        transport: SocketIOTransport,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        await transport.open(ENDPOINT)
        client.emit_error = socketio.exceptions.BadNamespaceError("/ is not connected")
        await transport.emit(protocol.JOIN_ROOM, "lobby")
        assert "Failed to emit" in caplog.text
        await transport.close()

    async def test_close_disconnects_and_stops_dispatch(
        self, client: FakeAsyncClient, transport: SocketIOTransport
    ) -> None:
        async with anyio.create_task_group() as tg:
            await tg.start(transport.run)
            await transport.open(ENDPOINT)
            await transport.close()
            await transport.close()

        assert not client.connected
        await settle()
        with pytest.raises(RuntimeError, match="Transport is closed"):
            await transport.open(ENDPOINT)
