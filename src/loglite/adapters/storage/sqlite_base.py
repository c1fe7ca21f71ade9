"""Connection management for the SQLite log store."""

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from loglite.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class AsyncConnectionManager:
    """Owns the single shared aiosqlite connection of a store.

    The connection is opened lazily on first use (or explicitly via
    ``open``) and the schema is applied once. aiosqlite runs every
    statement on one worker thread, so concurrent callers sharing the
    connection are serialized by the engine rather than by this class.
    Once closed, the manager refuses further use.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._init_lock: asyncio.Lock | None = None
        self._conn: aiosqlite.Connection | None = None
        self._closed = False

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the initialization lock (lazy to avoid event loop issues)."""
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> aiosqlite.Connection:
        """Connect and ensure the schema exists.

        Raises:
            StorageError: If the manager was closed or the database cannot be
                opened or initialized. The failure is logged and a later call
                may retry.
        """
        if self._closed:
            raise StorageError("Log store is closed")
        if self._conn is not None:
            return self._conn
        async with self._get_lock():
            if self._conn is not None:
                return self._conn
            conn: aiosqlite.Connection | None = None
            try:
                conn = await aiosqlite.connect(self._db_path)
                if self._db_path != ":memory:":
                    await conn.execute("PRAGMA journal_mode=WAL")
                await conn.executescript(self._schema)
                await conn.commit()
            except (sqlite3.Error, OSError) as exc:
                logger.error("Could not open log database %s: %s", self._db_path, exc)
                if conn is not None:
                    await conn.close()
                raise StorageError(
                    f"Could not open log database {self._db_path}: {exc}"
                ) from exc
            self._conn = conn
            logger.info("Connected to log database %s", self._db_path)
            return conn

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the shared connection, translating engine errors.

        Any ``sqlite3.Error`` raised inside the block is re-raised as
        ``StorageError``.
        """
        conn = await self.open()
        try:
            yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    async def close(self) -> None:
        """Close the shared connection.

        Raises:
            StorageError: If called on an already closed manager or if the
                engine fails to close.
        """
        if self._closed:
            raise StorageError("Log store is already closed")
        self._closed = True
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.close()
        except sqlite3.Error as exc:
            raise StorageError(f"Could not close log database: {exc}") from exc
        logger.info("Closed log database %s", self._db_path)
