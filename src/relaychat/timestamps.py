"""Timestamp normalization for chat messages.

Timestamps arrive as ISO-8601 strings from the relay, as epoch numbers from
some clients, and as text from persisted snapshots. They are normalized to
timezone-aware datetimes; anything unparseable becomes ``None``, the invalid
sentinel.
"""

from datetime import UTC, datetime

from pydantic import TypeAdapter, ValidationError

_DATETIME = TypeAdapter(datetime)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime, truncated to milliseconds."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def normalize_timestamp(value: object) -> datetime | None:
    """Normalize a raw timestamp to an aware datetime.

    Naive values are taken as UTC. Returns None for missing or unparseable
    input instead of raising.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        if isinstance(value, str) and not value.strip():
            return None
        try:
            parsed = _DATETIME.validate_python(value)
        except ValidationError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)

    # Must stay representable in UTC to be serialized
    try:
        parsed.astimezone(UTC)
    except (OverflowError, ValueError):
        return None
    return parsed


def format_wire_timestamp(value: datetime | None) -> str | None:
    """Serialize a timestamp the way the relay expects it.

    ISO-8601 in UTC with millisecond precision and a ``Z`` suffix.
    The invalid sentinel serializes to None.
    """
    if value is None:
        return None
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")
