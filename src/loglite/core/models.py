"""Core domain models for the log store."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class LogEntry:
    """A persisted log record.

    Attributes:
        id: Row identifier, assigned on insert and strictly increasing.
        timestamp: UTC time as "YYYY-MM-DD HH:MM:SS".
        level: Free-form level name ("info", "warn", "error", "debug" by convention).
        message: The log message.
        meta: Arbitrary JSON-serializable key-value annotations.
        session_id: Caller-chosen identifier grouping entries from one run.
    """

    id: int
    timestamp: str
    level: str
    message: str
    meta: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape used by the HTTP API and backup files."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "level": self.level,
            "message": self.message,
            "meta": self.meta,
            "session_id": self.session_id,
        }


@dataclass(frozen=True)
class LogQuery:
    """Filter for LogStore.query. Every present field adds an AND predicate.

    Attributes:
        level: Exact level match.
        start_time: Inclusive lower timestamp bound.
        end_time: Inclusive upper timestamp bound.
        meta: Metadata key -> expected value, compared as text.
        session_id: Exact session match.
        limit: Maximum rows returned. None or 0 means no limit.
    """

    level: str | None = None
    start_time: str | datetime | None = None
    end_time: str | datetime | None = None
    meta: dict[str, Any] | None = None
    session_id: str | None = None
    limit: int | None = None


@dataclass(frozen=True)
class LevelStats:
    """Row count and time span for one level."""

    level: str
    count: int
    earliest: str
    latest: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "count": self.count,
            "earliest": self.earliest,
            "latest": self.latest,
        }


@dataclass(frozen=True)
class SessionSummary:
    """Row count and time span for one session."""

    session_id: str
    count: int
    first_timestamp: str
    last_timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "count": self.count,
            "first_timestamp": self.first_timestamp,
            "last_timestamp": self.last_timestamp,
        }


@dataclass(frozen=True)
class BackupResult:
    """Outcome of LogStore.backup.

    Attributes:
        backup_file: Path written, or None when nothing matched the cutoff.
        backed_up_count: Number of entries written to the file.
        deleted_count: Rows removed from the store (0 unless deletion was requested).
    """

    backup_file: str | None
    backed_up_count: int
    deleted_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "backup_file": self.backup_file,
            "backed_up_count": self.backed_up_count,
            "deleted_count": self.deleted_count,
        }
