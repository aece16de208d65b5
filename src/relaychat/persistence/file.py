"""File-based snapshot store."""

from pathlib import Path

import anyio

from relaychat.persistence.base import PersistenceError

SUFFIX = ".json"


class FileSnapshotStore:
    """Stores each record as ``<directory>/<name>.json``.

    Writes go to a temporary file that then replaces the record, so a
    crash mid-write leaves the previous record intact.
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = anyio.Path(directory)

    def path_for(self, name: str) -> anyio.Path:
        return self._directory / f"{name}{SUFFIX}"

    async def read(self, name: str) -> str | None:
        path = self.path_for(name)
        try:
            return await path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            msg = f"Could not read {path}: {e}"
            raise PersistenceError(msg) from e

    async def write(self, name: str, data: str) -> None:
        path = self.path_for(name)
        tmp = path.with_name(f"{path.name}.tmp")
        try:
            await self._directory.mkdir(parents=True, exist_ok=True)
            await tmp.write_text(data, encoding="utf-8")
            await tmp.replace(path)
        except OSError as e:
            msg = f"Could not write {path}: {e}"
            raise PersistenceError(msg) from e
