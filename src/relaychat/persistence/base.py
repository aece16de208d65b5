"""Snapshot storage protocol."""

from typing import Protocol


class PersistenceError(Exception):
    """Raised by snapshot stores when reading or writing fails."""


class SnapshotStore(Protocol):
    """Durable key/value storage for serialized session snapshots."""

    async def read(self, name: str) -> str | None:
        """Return the stored record, or None if there is none."""
        ...

    async def write(self, name: str, data: str) -> None:
        """Create or replace the record."""
        ...
