"""SQLite snapshot store using aiosqlite."""

from collections.abc import Sequence
from typing import Any

import aiosqlite

from relaychat.persistence.base import PersistenceError

DEFAULT_TABLE_NAME = "relaychat_snapshots"


def _quote(name: str) -> str:
    """Quote identifier for SQLite."""
    return '"' + name.replace('"', '""') + '"'


class SQLiteSnapshotStore:
    """Key/value table of snapshot records.

    The connection is owned by the caller; the table is created on first use.
    """

    def __init__(
        self,
        connection: aiosqlite.Connection,
        table_name: str = DEFAULT_TABLE_NAME,
    ) -> None:
        """Initialize the store.

        Args:
            connection: Open aiosqlite connection.
            table_name: Table holding the records.
        """
        self._connection = connection
        self._table = _quote(table_name)
        self._table_created = False

    async def _ensure_table(self) -> None:
        if self._table_created:
            return
        await self._connection.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self._table} (
                name TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )
        await self._connection.commit()
        self._table_created = True

    async def _execute(self, query: str, params: Sequence[Any] = ()) -> Any:
        try:
            await self._ensure_table()
            return await self._connection.execute(query, params)
        except aiosqlite.Error as e:
            msg = f"SQLite snapshot query failed: {e}"
            raise PersistenceError(msg) from e

    async def read(self, name: str) -> str | None:
        cursor = await self._execute(
            f"SELECT data FROM {self._table} WHERE name = ?", (name,)
        )
        try:
            row = await cursor.fetchone()
        finally:
            await cursor.close()
        return None if row is None else row[0]

    async def write(self, name: str, data: str) -> None:
        await self._execute(
            f"""
            INSERT INTO {self._table} (name, data) VALUES (?, ?)
            ON CONFLICT(name) DO UPDATE
            SET data = excluded.data, updated_at = datetime('now')
            """,
            (name, data),
        )
        try:
            await self._connection.commit()
        except aiosqlite.Error as e:
            msg = f"SQLite snapshot commit failed: {e}"
            raise PersistenceError(msg) from e
