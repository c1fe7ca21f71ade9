"""JSON encoding for entry metadata, timestamps and backup files."""

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from loglite.core.exceptions import SerializationError
from loglite.core.models import LogEntry

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_DATE_LENGTH = len("YYYY-MM-DD")


def format_timestamp(value: str | datetime) -> str:
    """Normalize a timestamp to the stored "YYYY-MM-DD HH:MM:SS" UTC form.

    Strings carrying a time of day are parsed as ISO-8601, so "T" separators
    and "Z" or offset suffixes compare correctly against stored values.
    Bare dates ("2024-01-01") and strings that do not parse are passed
    through unchanged. Naive values are treated as UTC.
    """
    if isinstance(value, str):
        if len(value) <= _DATE_LENGTH:
            return value
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return value
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(TIMESTAMP_FORMAT)


def encode_meta(meta: dict[str, Any] | None) -> str:
    """Serialize metadata for the ``meta`` column.

    Raises:
        SerializationError: If a value is not JSON-serializable.
    """
    try:
        return json.dumps(meta or {})
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"Metadata is not JSON-serializable: {exc}") from exc


def decode_meta(data: str | None) -> dict[str, Any]:
    """Parse a stored ``meta`` value, returning {} when it is not a JSON object."""
    if data is None:
        return {}
    try:
        result = json.loads(data)
    except (json.JSONDecodeError, TypeError):
        return {}
    if not isinstance(result, dict):
        return {}
    return result


def meta_value_text(value: Any) -> str:
    """Render an expected metadata value the way SQLite casts json_extract output."""
    if isinstance(value, bool):
        return str(int(value))
    return str(value)


def encode_entries(entries: Iterable[LogEntry]) -> str:
    """Encode entries as a pretty-printed JSON array."""
    return json.dumps(
        [entry.to_dict() for entry in entries], indent=2, ensure_ascii=False
    )
