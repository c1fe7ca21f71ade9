"""Port interface for log store adapters.

The HTTP adapters depend only on this protocol, not on the SQLite
implementation, so tests and alternative backends can be swapped in.
"""

from typing import Any, Protocol, runtime_checkable

from loglite.core.models import (
    BackupResult,
    LevelStats,
    LogEntry,
    LogQuery,
    SessionSummary,
)


@runtime_checkable
class LogStorePort(Protocol):
    """Port for log store operations.

    Examples: SQLiteLogStore.
    """

    async def open(self) -> None:
        """Open the backing store and ensure the schema exists."""
        ...

    async def insert(
        self, level: str, message: str, meta: dict[str, Any] | None = None
    ) -> int:
        """Persist a new entry and return its identifier."""
        ...

    async def query(self, filters: LogQuery | None = None) -> list[LogEntry]:
        """Return entries matching every present filter, newest first."""
        ...

    async def stats(self) -> list[LevelStats]:
        """Return per-level counts and time spans, most frequent first."""
        ...

    async def sessions(self) -> list[SessionSummary]:
        """Return per-session counts and time spans, most recently active first."""
        ...

    async def backup(
        self,
        destination: str,
        before: str,
        delete_after_backup: bool = False,
    ) -> BackupResult:
        """Export entries at or before a cutoff to a JSON file."""
        ...

    async def close(self) -> None:
        """Release the underlying connection."""
        ...
