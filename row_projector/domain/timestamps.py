"""
Timestamp rendering and interval parsing shared by the loader and projector.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

from row_projector.errors import InvalidIntervalError

TimestampLike = Union[datetime, int]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_datetime(value: TimestampLike) -> datetime:
    """
    Normalize a record timestamp to an aware datetime.

    Integers are epoch milliseconds; naive datetimes are taken as UTC.
    """
    if isinstance(value, bool):
        raise TypeError("Timestamp must be a datetime or epoch milliseconds, got bool")
    if isinstance(value, int):
        return _EPOCH + timedelta(milliseconds=value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError(
        f"Timestamp must be a datetime or epoch milliseconds, got {type(value).__name__}"
    )


def format_timestamp(value: TimestampLike) -> str:
    """
    Render a timestamp as ISO-8601 with millisecond precision.

    UTC renders with a 'Z' suffix (2024-01-01T00:00:00.000Z); any other offset
    keeps its '+HH:MM' form.
    """
    dt = to_datetime(value)
    text = dt.isoformat(timespec="milliseconds")
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def _parse_instant(text: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(text.strip())
    except ValueError as exc:
        raise InvalidIntervalError(f"Invalid ISO-8601 instant '{text}'") from exc
    return to_datetime(parsed)


@dataclass(frozen=True)
class Interval:
    """Half-open time interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise InvalidIntervalError(
                f"Interval end {format_timestamp(self.end)} precedes start "
                f"{format_timestamp(self.start)}"
            )

    @classmethod
    def parse(cls, text: str) -> "Interval":
        """Parse 'start/end' ISO-8601 text."""
        parts = text.split("/")
        if len(parts) != 2 or not all(p.strip() for p in parts):
            raise InvalidIntervalError(f"Interval must look like 'start/end', got '{text}'")
        return cls(start=_parse_instant(parts[0]), end=_parse_instant(parts[1]))

    def contains(self, value: TimestampLike) -> bool:
        return self.start <= to_datetime(value) < self.end

    def __str__(self) -> str:
        return f"{format_timestamp(self.start)}/{format_timestamp(self.end)}"


__all__ = ["Interval", "TimestampLike", "format_timestamp", "to_datetime"]
