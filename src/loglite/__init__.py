"""loglite - a minimal structured log store on SQLite with an HTTP viewer."""

from loglite.adapters.storage.sqlite_logs import SQLiteLogStore
from loglite.core.exceptions import (
    LogStoreError,
    SerializationError,
    StorageError,
    ValidationError,
)
from loglite.core.models import (
    BackupResult,
    LevelStats,
    LogEntry,
    LogQuery,
    SessionSummary,
)
from loglite.core.ports import LogStorePort

__all__ = [
    "BackupResult",
    "LevelStats",
    "LogEntry",
    "LogQuery",
    "LogStoreError",
    "LogStorePort",
    "SQLiteLogStore",
    "SerializationError",
    "SessionSummary",
    "StorageError",
    "ValidationError",
]
