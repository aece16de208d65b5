"""Transport protocol and the event dispatch shared by implementations."""

import logging
import math
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

import anyio
import anyio.abc

logger = logging.getLogger(__name__)

EventHandler = Callable[[Any], Awaitable[None]]


class Transport(Protocol):
    """One live connection to the relay service.

    Owns no chat semantics. Inbound events are delivered to registered
    handlers by ``run()``, one at a time and in arrival order.
    """

    @property
    def connected(self) -> bool:
        """Whether the connection is currently usable."""
        ...

    async def open(
        self,
        endpoint: str,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Establish the connection.

        No-op if already open. Connection failures are reported as a
        ``connect_error`` event, not raised.
        """
        ...

    async def close(self) -> None:
        """Tear down the connection and stop dispatch. Always safe to call."""
        ...

    def on(self, event: str, handler: EventHandler) -> None:
        """Register a handler for an inbound event."""
        ...

    def off(self, event: str, handler: EventHandler | None = None) -> None:
        """Remove one handler, or every handler for the event."""
        ...

    async def emit(self, event: str, payload: Any = None) -> None:
        """Send an event to the relay. Dropped with a warning if not connected."""
        ...

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        """Dispatch inbound events until the transport is closed.

        Meant for ``TaskGroup.start()``: reports started once it is ready to
        take events.
        """
        ...


class EventChannel:
    """Handler registry and ordered dispatch loop.

    Implementations push inbound events with ``_deliver()``; ``run()`` hands
    them to handlers sequentially. Handlers are looked up when an event is
    dispatched, so removing a handler also hides events still queued.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = {}
        self._send_stream, self._receive_stream = anyio.create_memory_object_stream[
            tuple[str, Any]
        ](math.inf)
        self._closed = False

    def on(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.setdefault(event, [])
        if handler not in handlers:
            handlers.append(handler)

    def off(self, event: str, handler: EventHandler | None = None) -> None:
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)
        if not handlers:
            self._handlers.pop(event, None)

    def handler_count(self, event: str) -> int:
        """Number of handlers registered for an event."""
        return len(self._handlers.get(event, ()))

    def _deliver(self, event: str, payload: Any = None) -> None:
        """Queue an inbound event for dispatch."""
        try:
            self._send_stream.send_nowait((event, payload))
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            logger.debug("Discarding %r event on closed transport", event)

    def _stop_dispatch(self) -> None:
        """Let ``run()`` finish once the queued events are handled."""
        self._closed = True
        self._send_stream.close()

    async def run(
        self,
        *,
        task_status: anyio.abc.TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        async with self._receive_stream:
            task_status.started()
            async for event, payload in self._receive_stream:
                for handler in list(self._handlers.get(event, ())):
                    # Removed by an earlier handler for the same event
                    if handler not in self._handlers.get(event, ()):
                        continue
                    try:
                        await handler(payload)
                    except Exception:
                        logger.exception(
                            "Handler %r failed for %r event", handler, event
                        )
