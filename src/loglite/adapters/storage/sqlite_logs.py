"""SQLite log store."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from types import TracebackType
from typing import Any

from loglite.adapters.storage.sqlite_base import AsyncConnectionManager
from loglite.core.encoding.json_codec import (
    decode_meta,
    encode_entries,
    encode_meta,
    format_timestamp,
    meta_value_text,
)
from loglite.core.exceptions import StorageError, ValidationError
from loglite.core.models import (
    BackupResult,
    LevelStats,
    LogEntry,
    LogQuery,
    SessionSummary,
)

logger = logging.getLogger(__name__)

_LOGS_SCHEMA = """
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
    level TEXT,
    message TEXT,
    meta TEXT,
    session_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON logs(timestamp);
CREATE INDEX IF NOT EXISTS idx_logs_session_id ON logs(session_id);
"""

_INSERT_LOG = """
INSERT INTO logs (timestamp, level, message, meta, session_id)
VALUES (COALESCE(?, CURRENT_TIMESTAMP), ?, ?, ?, ?)
"""

_SELECT_LOGS = """
SELECT id, timestamp, level, message, meta, session_id
FROM logs
WHERE 1=1
"""

_COUNT_LOGS = """
SELECT COUNT(*) FROM logs
"""

_LEVEL_STATS = """
SELECT level, COUNT(*) AS count,
       MIN(timestamp) AS earliest, MAX(timestamp) AS latest
FROM logs
GROUP BY level
ORDER BY count DESC, level ASC
"""

_SESSION_SUMMARIES = """
SELECT session_id, COUNT(*) AS count,
       MIN(timestamp) AS first_ts, MAX(timestamp) AS last_ts
FROM logs
WHERE session_id IS NOT NULL
GROUP BY session_id
ORDER BY last_ts DESC, session_id ASC
LIMIT ?
"""

_DELETE_LOGS_UNTIL = """
DELETE FROM logs WHERE timestamp <= ?
"""

MAX_SESSIONS = 100


def _meta_path(key: str) -> str:
    """Build a JSON path selecting a top-level key, quoted so dots stay literal."""
    escaped = key.replace("\\", "\\\\").replace('"', '\\"')
    return f'$."{escaped}"'


def build_select(filters: LogQuery) -> tuple[str, list[Any]]:
    """Translate a LogQuery into SQL text and bound parameters.

    Raises:
        ValidationError: If the limit is negative or a metadata value is None.
    """
    sql = _SELECT_LOGS
    params: list[Any] = []

    if filters.level:
        sql += " AND level = ?"
        params.append(filters.level)
    if filters.start_time:
        sql += " AND timestamp >= ?"
        params.append(format_timestamp(filters.start_time))
    if filters.end_time:
        sql += " AND timestamp <= ?"
        params.append(format_timestamp(filters.end_time))
    if filters.session_id:
        sql += " AND session_id = ?"
        params.append(filters.session_id)
    if filters.meta:
        for key, value in filters.meta.items():
            if value is None:
                raise ValidationError(f"Metadata filter for '{key}' must not be None")
            # json_valid keeps rows with corrupt metadata from failing the query
            sql += (
                " AND json_valid(meta)"
                " AND CAST(json_extract(meta, ?) AS TEXT) = ?"
            )
            params.extend([_meta_path(str(key)), meta_value_text(value)])

    sql += " ORDER BY timestamp DESC, id DESC"

    if filters.limit is not None and filters.limit < 0:
        raise ValidationError(f"limit must not be negative, got {filters.limit}")
    if filters.limit:
        sql += " LIMIT ?"
        params.append(filters.limit)
    return sql, params


def _entry_from_row(row: Any) -> LogEntry:
    return LogEntry(
        id=row[0],
        timestamp=row[1],
        level=row[2],
        message=row[3],
        meta=decode_meta(row[4]),
        session_id=row[5],
    )


class SQLiteLogStore:
    """SQLite implementation of LogStorePort.

    Holds one shared aiosqlite connection for its whole lifetime. The store
    is constructed without I/O; the database is opened on first use or via
    ``open()``, and released by ``close()``, which must be called exactly
    once. Usable as an async context manager.

    Entries inserted without an explicit ``session_id`` carry the store's
    current session id (None unless one was given or set).
    """

    def __init__(self, db_path: str, session_id: str | None = None) -> None:
        self._manager = AsyncConnectionManager(db_path, _LOGS_SCHEMA)
        self._session_id = session_id

    @property
    def db_path(self) -> str:
        return self._manager.db_path

    @property
    def is_open(self) -> bool:
        return self._manager.is_open

    @property
    def session_id(self) -> str | None:
        """Session id attached to inserts that do not name one."""
        return self._session_id

    def set_session_id(self, session_id: str | None) -> str | None:
        """Switch the current session id and return it."""
        self._session_id = session_id
        return session_id

    async def open(self) -> None:
        """Open the database and create the ``logs`` table if missing.

        Raises:
            StorageError: If the database cannot be opened or initialized.
        """
        await self._manager.open()

    async def close(self) -> None:
        """Release the connection. A second call raises StorageError."""
        await self._manager.close()

    async def __aenter__(self) -> "SQLiteLogStore":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # --- Writes ---

    async def insert(
        self,
        level: str,
        message: str,
        meta: dict[str, Any] | None = None,
        *,
        session_id: str | None = None,
        timestamp: str | datetime | None = None,
    ) -> int:
        """Persist a new entry and return its identifier.

        Args:
            level: Level name, stored verbatim.
            message: The log message.
            meta: JSON-serializable metadata; defaults to {}.
            session_id: Overrides the store's current session id.
            timestamp: Explicit timestamp (string or datetime). Defaults to
                the database's current UTC time.

        Raises:
            SerializationError: If ``meta`` cannot be encoded.
            StorageError: If the write fails.
        """
        encoded = encode_meta(meta)
        stamp = format_timestamp(timestamp) if timestamp is not None else None
        session = session_id if session_id is not None else self._session_id
        async with self._manager.connection() as db:
            cursor = await db.execute(
                _INSERT_LOG, (stamp, level, message, encoded, session)
            )
            await db.commit()
            row_id = cursor.lastrowid
        if row_id is None:
            raise StorageError("Insert did not return a row id")
        return row_id

    async def info(
        self, message: str, meta: dict[str, Any] | None = None, **kwargs: Any
    ) -> int:
        """Insert an ``info`` entry."""
        return await self.insert("info", message, meta, **kwargs)

    async def warn(
        self, message: str, meta: dict[str, Any] | None = None, **kwargs: Any
    ) -> int:
        """Insert a ``warn`` entry."""
        return await self.insert("warn", message, meta, **kwargs)

    async def error(
        self, message: str, meta: dict[str, Any] | None = None, **kwargs: Any
    ) -> int:
        """Insert an ``error`` entry."""
        return await self.insert("error", message, meta, **kwargs)

    async def debug(
        self, message: str, meta: dict[str, Any] | None = None, **kwargs: Any
    ) -> int:
        """Insert a ``debug`` entry."""
        return await self.insert("debug", message, meta, **kwargs)

    # --- Reads ---

    async def query(self, filters: LogQuery | None = None) -> list[LogEntry]:
        """Return entries matching every present filter, newest first.

        Metadata that fails to parse is returned as {} for that row.

        Raises:
            ValidationError: If the filter's limit is negative.
            StorageError: If the query fails to execute.
        """
        sql, params = build_select(filters or LogQuery())
        async with self._manager.connection() as db:
            async with db.execute(sql, params) as cursor:
                return [_entry_from_row(row) async for row in cursor]

    async def count(self) -> int:
        """Return total number of entries in the store."""
        async with self._manager.connection() as db:
            async with db.execute(_COUNT_LOGS) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def stats(self) -> list[LevelStats]:
        """Return count and earliest/latest timestamp per level, most frequent first."""
        async with self._manager.connection() as db:
            async with db.execute(_LEVEL_STATS) as cursor:
                return [
                    LevelStats(
                        level=row[0], count=row[1], earliest=row[2], latest=row[3]
                    )
                    async for row in cursor
                ]

    async def sessions(self) -> list[SessionSummary]:
        """Return up to 100 sessions with counts, most recently active first."""
        async with self._manager.connection() as db:
            async with db.execute(_SESSION_SUMMARIES, (MAX_SESSIONS,)) as cursor:
                return [
                    SessionSummary(
                        session_id=row[0],
                        count=row[1],
                        first_timestamp=row[2],
                        last_timestamp=row[3],
                    )
                    async for row in cursor
                ]

    # --- Maintenance ---

    async def delete_until(self, before: str | datetime) -> int:
        """Delete entries with timestamp <= ``before`` and return the row count."""
        async with self._manager.connection() as db:
            cursor = await db.execute(_DELETE_LOGS_UNTIL, (format_timestamp(before),))
            deleted = cursor.rowcount
            await db.commit()
            return deleted

    async def reclaim_space(self) -> None:
        """Run VACUUM to shrink the database file.

        Raises:
            StorageError: If the engine rejects or fails the operation.
        """
        async with self._manager.connection() as db:
            await db.execute("VACUUM")

    async def backup(
        self,
        destination: str | Path,
        before: str | datetime,
        delete_after_backup: bool = False,
    ) -> BackupResult:
        """Export entries with timestamp <= ``before`` to a JSON file.

        The file at ``destination`` is overwritten. When nothing matches, no
        file is written and the result has ``backup_file=None``.

        With ``delete_after_backup`` the delete re-evaluates the cutoff, so
        qualifying rows inserted after the export was read are removed too.
        A failed VACUUM after the delete is logged and does not affect the
        result.

        Raises:
            StorageError: If reading, writing the file or deleting fails.
        """
        cutoff = format_timestamp(before)
        entries = await self.query(LogQuery(end_time=cutoff, limit=0))
        if not entries:
            logger.info("No log entries at or before %s to back up", cutoff)
            return BackupResult(backup_file=None, backed_up_count=0, deleted_count=0)

        path = Path(destination)
        payload = encode_entries(entries)
        try:
            await asyncio.to_thread(path.write_text, payload, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Could not write backup file {path}: {exc}") from exc
        logger.info("Backed up %d log entries to %s", len(entries), path)

        deleted = 0
        if delete_after_backup:
            deleted = await self.delete_until(cutoff)
            logger.info("Deleted %d log entries at or before %s", deleted, cutoff)
            try:
                await self.reclaim_space()
            except StorageError as exc:
                logger.warning("VACUUM after backup failed: %s", exc)

        return BackupResult(
            backup_file=str(destination),
            backed_up_count=len(entries),
            deleted_count=deleted,
        )
