"""relaychat: client-side chat session manager for a real-time message relay."""

from relaychat.config import ConfigError, SessionConfig
from relaychat.models import ChatMessage, ConnectionStatus
from relaychat.persistence import (
    FileSnapshotStore,
    InMemorySnapshotStore,
    PersistedSnapshot,
    PersistenceAdapter,
    PersistenceError,
    SnapshotStore,
    SQLiteSnapshotStore,
)
from relaychat.protocol import InvalidPayloadError
from relaychat.session import ChatSession
from relaychat.state import SessionSnapshot, SessionState
from relaychat.store import MessageStore
from relaychat.transport import (
    InMemoryRelay,
    InMemoryTransport,
    SocketIOTransport,
    Transport,
)

__version__ = "0.1.0"

__all__ = [
    # session
    "ChatSession",
    "SessionConfig",
    "ConfigError",
    # state
    "ChatMessage",
    "ConnectionStatus",
    "MessageStore",
    "SessionSnapshot",
    "SessionState",
    "InvalidPayloadError",
    # transport
    "Transport",
    "InMemoryRelay",
    "InMemoryTransport",
    "SocketIOTransport",
    # persistence
    "PersistenceAdapter",
    "PersistedSnapshot",
    "PersistenceError",
    "SnapshotStore",
    "InMemorySnapshotStore",
    "FileSnapshotStore",
    "SQLiteSnapshotStore",
]
