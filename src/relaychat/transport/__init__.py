"""Transport bindings to the relay service."""

from relaychat.transport.base import EventChannel, EventHandler, Transport
from relaychat.transport.memory import InMemoryRelay, InMemoryTransport
from relaychat.transport.socketio_client import SocketIOTransport

__all__ = [
    "EventChannel",
    "EventHandler",
    "InMemoryRelay",
    "InMemoryTransport",
    "SocketIOTransport",
    "Transport",
]
