"""
Timestamp parsing and epoch helpers.

Provider logs write ISO-8601 strings (with or without an offset) or epoch
milliseconds. Everything is normalized to timezone-aware UTC datetimes; naive
values are assumed to be UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pydantic

__all__ = [
    'epoch_millis',
    'now_utc',
    'parse_timestamp',
]

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MILLISECOND = timedelta(milliseconds=1)

# Cached adapter for performance
_DATETIME_ADAPTER = pydantic.TypeAdapter(datetime)


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse a raw timestamp into an aware UTC datetime.

    Numbers are epoch milliseconds. Returns None for missing, empty, boolean or
    unparsable values - the caller drops the record.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int | float):
        try:
            return _EPOCH + timedelta(milliseconds=value)
        except (OverflowError, ValueError):
            return None

    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = _DATETIME_ADAPTER.validate_python(value.strip())
    except pydantic.ValidationError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def epoch_millis(moment: datetime) -> int:
    """Whole milliseconds since the Unix epoch."""
    return (moment - _EPOCH) // _ONE_MILLISECOND


def now_utc() -> datetime:
    return datetime.now(UTC)
