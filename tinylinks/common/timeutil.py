"""Timestamp helpers for URL records."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Return ``dt`` as aware UTC. Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso(dt: datetime) -> str:
    """Serialize a datetime without losing sub-second precision.

    Args:
        dt: Datetime to serialize

    Returns:
        ISO-8601 string with UTC offset and microseconds
    """
    return as_utc(dt).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 timestamp written by :func:`to_iso` or a browser.

    Browsers write a trailing ``Z`` which older interpreters don't accept.

    Raises:
        ValueError: If the value is not a timestamp
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO timestamp string, got {type(value).__name__}")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))
