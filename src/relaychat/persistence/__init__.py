"""Session persistence: adapter and snapshot stores."""

from relaychat.persistence.adapter import (
    SNAPSHOT_VERSION,
    PersistedSnapshot,
    PersistenceAdapter,
)
from relaychat.persistence.base import PersistenceError, SnapshotStore
from relaychat.persistence.file import FileSnapshotStore
from relaychat.persistence.memory import InMemorySnapshotStore
from relaychat.persistence.sqlite import SQLiteSnapshotStore

__all__ = [
    "SNAPSHOT_VERSION",
    "FileSnapshotStore",
    "InMemorySnapshotStore",
    "PersistedSnapshot",
    "PersistenceAdapter",
    "PersistenceError",
    "SQLiteSnapshotStore",
    "SnapshotStore",
]
