"""Chat session controller.

Orchestrates connect → subscribe → join room → send/receive → disconnect →
unsubscribe, and is the only writer of the session state.
"""

import logging
from collections.abc import Callable
from contextlib import AsyncExitStack
from functools import partial
from types import TracebackType
from typing import Any

import anyio
import anyio.abc

from relaychat import protocol
from relaychat.config import SessionConfig
from relaychat.models import ChatMessage, ConnectionStatus
from relaychat.persistence import FileSnapshotStore, PersistenceAdapter
from relaychat.state import SessionSnapshot, SessionState, StateListener
from relaychat.timestamps import utc_now
from relaychat.transport import EventHandler, SocketIOTransport, Transport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]


class ChatSession:
    """Client-side session with a message relay.

    The session owns at most one transport, built by ``transport_factory``
    on connect() and discarded when the connection ends. Persisted state is
    restored when the context is entered, before any connection attempt,
    and saved after every change to the room, identity or history.

    Usage:
        relay = InMemoryRelay()
        async with ChatSession(config, transport_factory=relay.transport) as session:
            await session.join_room("lobby")
            await session.connect()
            ...
            await session.send_message("hello")
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        transport_factory: TransportFactory = SocketIOTransport,
        persistence: PersistenceAdapter | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Session configuration. Read from the environment when
                omitted.
            transport_factory: Zero-argument callable returning a new,
                unopened transport.
            persistence: Adapter for the durable snapshot. Defaults to a
                file store in ``config.storage_dir``.
        """
        self._config = config or SessionConfig.from_env()
        self._transport_factory = transport_factory
        self._persistence = persistence or PersistenceAdapter(
            FileSnapshotStore(self._config.storage_dir),
            self._config.storage_name,
        )
        self._state = SessionState()
        self._transport: Transport | None = None
        self._handlers: list[tuple[str, EventHandler]] = []
        self._joined_room: str | None = None
        # Serializes connect() with teardown
        self._lifecycle_lock = anyio.Lock()
        self._task_group: anyio.abc.TaskGroup | None = None
        self._exit_stack: AsyncExitStack | None = None
        self._detach_persistence: Callable[[], None] | None = None

    # State reads

    @property
    def config(self) -> SessionConfig:
        return self._config

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def connected(self) -> bool:
        return self._state.status is ConnectionStatus.CONNECTED

    @property
    def room(self) -> str:
        return self._state.room

    @property
    def identity(self) -> str:
        return self._state.identity

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._state.messages

    @property
    def transport(self) -> Transport | None:
        """The live transport, if any."""
        return self._transport

    def snapshot(self) -> SessionSnapshot:
        return self._state.snapshot()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Observe state changes. Returns a callable that unsubscribes."""
        return self._state.subscribe(listener)

    # Intents

    async def connect(self) -> None:
        """Open a connection to the relay.

        No-op while connecting or connected. The outcome is observed
        through ``status``. Waits for a teardown in progress to finish
        first.
        """
        if self._task_group is None:
            msg = "Session is not open; use 'async with ChatSession(...)'"
            raise RuntimeError(msg)

        async with self._lifecycle_lock:
            if self._transport is not None:
                logger.debug("connect() ignored: session is %s", self._state.status)
                return

            transport = self._transport_factory()
            self._transport = transport
            self._handlers = self._subscriptions(transport)
            for event, handler in self._handlers:
                transport.on(event, handler)
            await self._task_group.start(transport.run)

            await self._state.set_status(ConnectionStatus.CONNECTING)
            logger.info("Connecting to relay at %s", self._config.endpoint)
            await transport.open(self._config.endpoint, self._config.transport_options)

    async def disconnect(self) -> None:
        """Close the connection.

        Handlers are removed before the transport is closed, so no event
        reaches the session once this returns. A connect() in progress is
        allowed to finish and is then closed.
        """
        async with self._lifecycle_lock:
            if self._transport is None:
                return
            await self._close_transport()
        logger.info("Disconnected from relay")

    async def join_room(self, room: str) -> None:
        """Switch to ``room``.

        The relay is told right away when connected, otherwise as soon as
        the connection is established.
        """
        if not room.strip():
            logger.warning("Ignoring blank room name")
            return
        await self._state.set_room(room)
        if self._state.status is ConnectionStatus.CONNECTED:
            await self._join_current_room()

    async def set_identity(self, name: str) -> None:
        """Change the display name used for the next sent message."""
        await self._state.set_identity(name)

    async def send_message(self, text: str) -> ChatMessage | None:
        """Send ``text`` to the current room.

        Returns the message handed to the transport, or None when the text
        is blank or the session is not connected. Nothing is queued and the
        history is not touched; the relay echoes messages back.
        """
        if not text.strip():
            logger.debug("Ignoring blank message")
            return None
        if self._state.status is not ConnectionStatus.CONNECTED:
            logger.info("Dropping message: session is %s", self._state.status)
            return None

        message = ChatMessage(
            room=self._state.room,
            user=self._state.identity,
            text=text,
            timestamp=utc_now(),
        )
        await self._emit(protocol.SEND_MESSAGE, protocol.encode_message(message))
        return message

    # Transport events

    def _subscriptions(self, transport: Transport) -> list[tuple[str, EventHandler]]:
        """Handlers bound to one transport, so stale events can be told apart."""
        return [
            (protocol.CONNECT, partial(self._on_connect, transport)),
            (protocol.DISCONNECT, partial(self._on_disconnect, transport)),
            (protocol.CONNECT_ERROR, partial(self._on_connect_error, transport)),
            (protocol.RECEIVE_MESSAGE, partial(self._on_receive_message, transport)),
        ]

    async def _on_connect(self, transport: Transport, _payload: Any) -> None:
        if self._transport is not transport:
            return
        if self._state.status is ConnectionStatus.CONNECTED:
            return
        await self._state.set_status(ConnectionStatus.CONNECTED)
        logger.info("Connected to relay at %s", self._config.endpoint)
        if self._transport is transport:
            await self._join_current_room()

    async def _on_disconnect(self, transport: Transport, reason: Any) -> None:
        logger.info("Relay connection lost (%s)", reason or "no reason given")
        await self._teardown(transport)

    async def _on_connect_error(self, transport: Transport, error: Any) -> None:
        logger.warning(
            "Could not connect to relay at %s: %s",
            self._config.endpoint,
            error,
        )
        await self._teardown(transport)

    async def _on_receive_message(self, transport: Transport, payload: Any) -> None:
        if self._transport is not transport:
            return
        try:
            message = protocol.decode_message(payload)
        except protocol.InvalidPayloadError as e:
            logger.warning("Dropping malformed message payload: %s", e)
            return

        if not message.has_valid_timestamp:
            logger.warning(
                "Message from %r in %r has an invalid timestamp",
                message.user,
                message.room,
            )
        await self._state.append_message(message)

    async def _join_current_room(self) -> None:
        """Tell the relay about the current room unless it already knows."""
        room = self._state.room
        if room == self._joined_room:
            return
        self._joined_room = room
        await self._emit(protocol.JOIN_ROOM, protocol.encode_room(room))

    async def _emit(self, event: str, payload: Any) -> None:
        if self._transport is not None:
            await self._transport.emit(event, payload)

    async def _teardown(self, transport: Transport) -> None:
        """Close ``transport`` if it is still the session's live transport."""
        async with self._lifecycle_lock:
            if self._transport is not transport:
                return
            await self._close_transport()

    async def _close_transport(self) -> None:
        # Caller holds the lifecycle lock
        transport, handlers = self._transport, self._handlers
        self._transport, self._handlers, self._joined_room = None, [], None
        if transport is None:
            return
        for event, handler in handlers:
            transport.off(event, handler)
        await transport.close()
        await self._state.set_status(ConnectionStatus.DISCONNECTED)

    # Lifecycle

    async def __aenter__(self) -> "ChatSession":
        if self._exit_stack is not None:
            msg = "Session is already open"
            raise RuntimeError(msg)

        stack = AsyncExitStack()
        self._task_group = await stack.enter_async_context(anyio.create_task_group())
        self._exit_stack = stack
        try:
            snapshot = await self._persistence.load()
            self._state.restore(
                room=snapshot.room,
                identity=snapshot.identity,
                messages=snapshot.messages,
            )
            self._detach_persistence = self._persistence.attach(self._state)
        except BaseException:
            self._task_group = None
            self._exit_stack = None
            await stack.aclose()
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            with anyio.CancelScope(shield=True):
                await self.disconnect()
        finally:
            if self._detach_persistence is not None:
                self._detach_persistence()
                self._detach_persistence = None
            stack, self._exit_stack = self._exit_stack, None
            self._task_group = None
            if stack is not None:
                await stack.aclose()
