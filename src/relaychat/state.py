"""Observable session state: connection status, room, identity, history."""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from relaychat.config import DEFAULT_IDENTITY, DEFAULT_ROOM
from relaychat.models import ChatMessage, ConnectionStatus
from relaychat.store import MessageStore

logger = logging.getLogger(__name__)

STATUS = "status"
ROOM = "room"
IDENTITY = "identity"
MESSAGES = "messages"

PERSISTED_FIELDS = frozenset({ROOM, IDENTITY, MESSAGES})


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time read of a session."""

    status: ConnectionStatus
    room: str
    identity: str
    messages: tuple[ChatMessage, ...]


StateListener = Callable[[SessionSnapshot, frozenset[str]], Awaitable[None]]


class SessionState:
    """Plain state container with explicit subscribe/notify.

    Listeners are awaited in subscription order after every mutation that
    changes a value, with the new snapshot and the names of the changed
    fields. A failing listener is logged and does not stop the others.
    """

    def __init__(
        self,
        *,
        room: str = DEFAULT_ROOM,
        identity: str = DEFAULT_IDENTITY,
        messages: Iterable[ChatMessage] = (),
    ) -> None:
        self._status = ConnectionStatus.DISCONNECTED
        self._room = room
        self._identity = identity
        self._store = MessageStore(messages)
        self._listeners: list[StateListener] = []

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def room(self) -> str:
        return self._room

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._store.snapshot()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            status=self._status,
            room=self._room,
            identity=self._identity,
            messages=self._store.snapshot(),
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def restore(
        self,
        *,
        room: str,
        identity: str,
        messages: Iterable[ChatMessage],
    ) -> None:
        """Hydrate persisted fields without notifying listeners."""
        self._room = room
        self._identity = identity
        self._store.replace(messages)

    async def set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        logger.debug("Session status %s -> %s", self._status, status)
        self._status = status
        await self._notify(STATUS)

    async def set_room(self, room: str) -> None:
        if room == self._room:
            return
        self._room = room
        await self._notify(ROOM)

    async def set_identity(self, identity: str) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        await self._notify(IDENTITY)

    async def append_message(self, message: ChatMessage) -> int:
        """Append to the history and return the new length."""
        length = self._store.append(message)
        await self._notify(MESSAGES)
        return length

    async def _notify(self, *changed: str) -> None:
        snapshot = self.snapshot()
        fields = frozenset(changed)
        for listener in list(self._listeners):
            try:
                await listener(snapshot, fields)
            except Exception:
                logger.exception("State listener %r failed", listener)
