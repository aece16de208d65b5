"""Shared fixtures for relaychat tests."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from relaychat import (
    ChatSession,
    InMemoryRelay,
    InMemorySnapshotStore,
    PersistenceAdapter,
    SessionConfig,
)

TEST_ENDPOINT = "http://relay.test:5002"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def relay() -> InMemoryRelay:
    return InMemoryRelay()


@pytest.fixture
def snapshot_store() -> InMemorySnapshotStore:
    return InMemorySnapshotStore()


@pytest.fixture
def persistence(snapshot_store: InMemorySnapshotStore) -> PersistenceAdapter:
    return PersistenceAdapter(snapshot_store)


@pytest.fixture
def config(tmp_path: Path) -> SessionConfig:
    return SessionConfig(endpoint=TEST_ENDPOINT, storage_dir=tmp_path)


@pytest.fixture
def make_session(
    config: SessionConfig,
    relay: InMemoryRelay,
    persistence: PersistenceAdapter,
) -> Callable[..., ChatSession]:
    """Build sessions wired to the in-memory relay and snapshot store."""

    def factory(**kwargs: Any) -> ChatSession:
        kwargs.setdefault("transport_factory", relay.transport)
        kwargs.setdefault("persistence", persistence)
        return ChatSession(config, **kwargs)

    return factory
