"""
Native record sources used by the CLI and tests.

InputRow is a map-backed NativeRecord. IterableRecordReader adapts any iterable
of records to the RecordReader pull interface; JsonLinesRecordReader streams
records from a JSON-lines dump, one object per line:

    {"timestamp": "2024-01-01T00:00:00Z", "dimensions": {"country": ["US"]},
     "metrics": {"clicks": 7}}

When given an interval, JsonLinesRecordReader only yields records whose
timestamp falls inside it, the way a segment input format only reads segments
covering the requested interval.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import (
    Any,
    Dict,
    Generator,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    TextIO,
    Union,
)

from row_projector.domain.timestamps import Interval, TimestampLike
from row_projector.projection.abstract import NativeRecord
from row_projector.utils.logging import get_logger

log = get_logger(__name__)


def _dimension_list(name: str, value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(
        f"Dimension '{name}' must be a string or a list of strings, got {value!r}"
    )


@dataclass(frozen=True)
class InputRow:
    """
    Map-backed native record.
    """

    timestamp: TimestampLike
    dimensions: Mapping[str, Sequence[str]] = field(default_factory=dict)
    metrics: Mapping[str, Any] = field(default_factory=dict)

    def get_dimension(self, name: str) -> Optional[Sequence[str]]:
        return self.dimensions.get(name)

    def get_raw(self, name: str) -> Any:
        return self.metrics.get(name)

    @classmethod
    def from_dict(cls, data: Any) -> "InputRow":
        """
        Build a row from a decoded JSON object.

        String timestamps are ISO-8601; numeric timestamps are epoch millis.
        Scalar dimension values are wrapped as single-value lists.

        Raises
        ------
        ValueError
            The object does not have the native record shape.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Record must be a JSON object, got {type(data).__name__}")

        raw_ts = data.get("timestamp")
        if isinstance(raw_ts, str):
            timestamp: TimestampLike = datetime.fromisoformat(raw_ts)
        elif isinstance(raw_ts, int) and not isinstance(raw_ts, bool):
            timestamp = raw_ts
        else:
            raise ValueError(
                f"Record timestamp must be ISO-8601 text or epoch millis, got {raw_ts!r}"
            )

        raw_dimensions = data.get("dimensions") or {}
        if not isinstance(raw_dimensions, Mapping):
            raise ValueError("Record 'dimensions' must be a JSON object")
        dimensions: Dict[str, List[str]] = {
            name: _dimension_list(name, value)
            for name, value in raw_dimensions.items()
            if value is not None
        }

        raw_metrics = data.get("metrics") or {}
        if not isinstance(raw_metrics, Mapping):
            raise ValueError("Record 'metrics' must be a JSON object")

        return cls(timestamp=timestamp, dimensions=dimensions, metrics=dict(raw_metrics))


class IterableRecordReader:
    """
    RecordReader over an in-memory iterable of native records.
    """

    def __init__(self, records: Iterable[NativeRecord]) -> None:
        self._iterator: Iterator[NativeRecord] = iter(records)
        self._current: Optional[NativeRecord] = None

    def has_next(self) -> bool:
        try:
            self._current = next(self._iterator)
        except StopIteration:
            self._current = None
            return False
        return True

    def read_next(self) -> NativeRecord:
        if self._current is None:
            raise RuntimeError("read_next() called without a successful has_next()")
        return self._current


class JsonLinesRecordReader(IterableRecordReader):
    """
    Stream native records from a JSON-lines file without loading it whole.

    The file is opened on the first `has_next()` and closed on exhaustion or
    `close()`. Usable as a context manager.
    """

    def __init__(self, path: Union[str, Path], interval: Optional[Interval] = None) -> None:
        self.path = Path(path)
        self.interval = interval
        self.skipped = 0
        self._file: Optional[TextIO] = None
        self._records = self._read_records()
        log.debug("Opening native record file", extra={"path": str(self.path)})
        super().__init__(self._records)

    def _read_records(self) -> Generator[InputRow, None, None]:
        with self.path.open("r", encoding="utf-8") as f:
            self._file = f
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    row = InputRow.from_dict(json.loads(line))
                except ValueError as exc:
                    raise ValueError(
                        f"{self.path}:{line_no}: invalid native record: {exc}"
                    ) from exc
                if self.interval is not None and not self.interval.contains(row.timestamp):
                    self.skipped += 1
                    continue
                yield row

    def close(self) -> None:
        self._records.close()

    def __enter__(self) -> "JsonLinesRecordReader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["InputRow", "IterableRecordReader", "JsonLinesRecordReader"]
