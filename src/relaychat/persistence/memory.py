"""In-memory snapshot store."""


class InMemorySnapshotStore:
    """Dict-backed store. Survives session restarts, not process restarts."""

    def __init__(self, records: dict[str, str] | None = None) -> None:
        self.records: dict[str, str] = dict(records or {})

    async def read(self, name: str) -> str | None:
        return self.records.get(name)

    async def write(self, name: str, data: str) -> None:
        self.records[name] = data
