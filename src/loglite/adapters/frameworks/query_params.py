"""Shared request parsing utilities for framework adapters.

This module turns the JSON body of a log query request into a LogQuery.
Both the ASGI and FastAPI adapters use it so they reject the same inputs.
"""

import json
from typing import Any

from loglite.core.exceptions import ValidationError
from loglite.core.models import LogQuery

# Body keys accepted for each LogQuery field (the viewer page sends camelCase)
_FIELD_ALIASES = {
    "level": ("level",),
    "start_time": ("start_time", "startTime"),
    "end_time": ("end_time", "endTime"),
    "session_id": ("session_id", "sessionId"),
}


def _first_present(body: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = body.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_text_param(body: dict[str, Any], field: str) -> str | None:
    value = _first_present(body, _FIELD_ALIASES[field])
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"'{field}' must be a string")
    return value


def _parse_meta_param(value: Any) -> dict[str, Any] | None:
    """Parse the 'meta' filter, which may arrive as an object or a JSON string.

    Returns:
        The metadata mapping, or None when absent or empty.

    Raises:
        ValidationError: If a string value is not JSON, does not decode
            to an object, or holds a null expected value.
    """
    if value in (None, ""):
        return None
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValidationError(
                "Malformed metadata filter, expected a JSON object"
            ) from exc
    if not isinstance(value, dict):
        raise ValidationError("Malformed metadata filter, expected a JSON object")
    if any(expected is None for expected in value.values()):
        raise ValidationError("Metadata filter values must not be null")
    return value or None


def _parse_limit_param(value: Any) -> int | None:
    """Parse the 'limit' field. Absent, empty and 0 all mean no limit."""
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValidationError("'limit' must be an integer")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError("'limit' must be an integer")
    try:
        limit = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("'limit' must be an integer") from exc
    if limit < 0:
        raise ValidationError("'limit' must not be negative")
    return limit


def parse_body(raw: bytes) -> Any:
    """Decode a request body as JSON. An empty body decodes to {}.

    Raises:
        ValidationError: If the body is not valid UTF-8 JSON.
    """
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationError("Request body must be valid JSON") from exc


def parse_log_query(body: Any) -> LogQuery:
    """Build a LogQuery from a decoded request body.

    Args:
        body: Decoded JSON body, expected to be an object.

    Returns:
        LogQuery with every recognised field populated.

    Raises:
        ValidationError: If the body or any field is malformed.
    """
    if body is None:
        return LogQuery()
    if not isinstance(body, dict):
        raise ValidationError("Query body must be a JSON object")
    return LogQuery(
        level=_parse_text_param(body, "level"),
        start_time=_parse_text_param(body, "start_time"),
        end_time=_parse_text_param(body, "end_time"),
        meta=_parse_meta_param(body.get("meta")),
        session_id=_parse_text_param(body, "session_id"),
        limit=_parse_limit_param(body.get("limit")),
    )
