"""
Interfaces at the boundary between the projector and the native record source.

The storage engine's reader is an external collaborator; the projector only
needs a pull interface over records that expose a timestamp, multi-valued
dimension lookup and raw metric lookup.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from row_projector.domain.timestamps import TimestampLike


@runtime_checkable
class NativeRecord(Protocol):
    """
    A timestamped record read from a segment.

    Attributes
    ----------
    timestamp : datetime | int
        Record time; integers are epoch milliseconds.
    """

    @property
    def timestamp(self) -> TimestampLike:
        ...

    def get_dimension(self, name: str) -> Optional[Sequence[str]]:
        """Return zero or more values for a dimension, or None if absent."""
        ...

    def get_raw(self, name: str) -> Any:
        """Return the raw metric value (primitive or opaque object), or None."""
        ...


@runtime_checkable
class RecordReader(Protocol):
    """
    Pull interface over a native record source.

    `read_next` may raise InterruptedError; the projector turns that into a
    fatal ReadInterruptedError rather than retrying.
    """

    def has_next(self) -> bool:
        """Advance the source; return False once no records remain."""
        ...

    def read_next(self) -> NativeRecord:
        """Return the record the last successful `has_next` advanced to."""
        ...


__all__ = ["NativeRecord", "RecordReader"]
