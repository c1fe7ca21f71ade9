"""Storage adapters implementing core ports."""

from loglite.adapters.storage.sqlite_base import AsyncConnectionManager
from loglite.adapters.storage.sqlite_logs import SQLiteLogStore

__all__ = [
    "AsyncConnectionManager",
    "SQLiteLogStore",
]
