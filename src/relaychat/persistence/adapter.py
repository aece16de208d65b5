"""Persist and restore the durable part of a session."""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from relaychat.config import DEFAULT_IDENTITY, DEFAULT_ROOM, DEFAULT_STORAGE_NAME
from relaychat.models import ChatMessage
from relaychat.persistence.base import PersistenceError, SnapshotStore
from relaychat.state import PERSISTED_FIELDS, SessionSnapshot, SessionState

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class PersistedSnapshot(BaseModel):
    """Durable record of a session.

    Connection status and transport handles are never part of it.
    """

    version: int = SNAPSHOT_VERSION
    messages: list[ChatMessage] = []
    room: str = DEFAULT_ROOM
    identity: str = DEFAULT_IDENTITY

    @field_validator("messages", mode="before")
    @classmethod
    def _drop_invalid_messages(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        kept: list[ChatMessage] = []
        for raw in value:
            try:
                kept.append(ChatMessage.model_validate(raw))
            except ValidationError:
                logger.warning("Dropping unreadable persisted message: %r", raw)
        return kept

    @classmethod
    def from_session(cls, snapshot: SessionSnapshot) -> "PersistedSnapshot":
        return cls(
            messages=list(snapshot.messages),
            room=snapshot.room,
            identity=snapshot.identity,
        )


class PersistenceAdapter:
    """Loads and saves PersistedSnapshot records through a SnapshotStore.

    Never fails the caller: unreadable or corrupt records load as defaults,
    failed writes are logged.
    """

    def __init__(
        self,
        store: SnapshotStore,
        name: str = DEFAULT_STORAGE_NAME,
    ) -> None:
        self._store = store
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    async def load(self) -> PersistedSnapshot:
        try:
            raw = await self._store.read(self._name)
        except PersistenceError:
            logger.warning("Could not read snapshot %r, using defaults", self._name)
            return PersistedSnapshot()

        if raw is None:
            return PersistedSnapshot()

        try:
            snapshot = PersistedSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(
                "Corrupt snapshot %r, using defaults: %s",
                self._name,
                e.errors(include_url=False),
            )
            return PersistedSnapshot()

        if snapshot.version != SNAPSHOT_VERSION:
            logger.warning(
                "Snapshot %r has unsupported version %d, using defaults",
                self._name,
                snapshot.version,
            )
            return PersistedSnapshot()

        logger.debug(
            "Restored %d messages from snapshot %r",
            len(snapshot.messages),
            self._name,
        )
        return snapshot

    async def save(self, snapshot: SessionSnapshot | PersistedSnapshot) -> None:
        if isinstance(snapshot, SessionSnapshot):
            snapshot = PersistedSnapshot.from_session(snapshot)
        try:
            await self._store.write(self._name, snapshot.model_dump_json())
        except PersistenceError:
            logger.exception("Could not save snapshot %r", self._name)

    def attach(self, state: SessionState) -> Callable[[], None]:
        """Save ``state`` after every change to a persisted field.

        Returns a callable that detaches the adapter.
        """

        async def save_on_change(
            snapshot: SessionSnapshot,
            changed: frozenset[str],
        ) -> None:
            if changed & PERSISTED_FIELDS:
                await self.save(snapshot)

        return state.subscribe(save_on_change)
