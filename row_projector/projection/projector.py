"""
Row projector: native segment records to positional output records.

`project` is the pure per-record transformation. `RowProjector` wraps it with
the pull loop a framework worker drives: it holds one active reader and hands
back one OutputRecord per call until the reader is exhausted.

Usage:
    projector = RowProjector(spec, registry)
    projector.prepare_to_read(reader)
    while (record := projector.get_next()) is not None:
        emit(record)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from row_projector.codecs.registry import CodecRegistry, default_registry
from row_projector.domain.models import LoadSpec
from row_projector.domain.schema import OutputSchema
from row_projector.domain.timestamps import format_timestamp
from row_projector.errors import ReadInterruptedError
from row_projector.projection.abstract import NativeRecord, RecordReader
from row_projector.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class OutputRecord:
    """
    Positional record matching an OutputSchema field-for-field.
    """

    schema: OutputSchema
    values: Tuple[Any, ...]

    def __post_init__(self) -> None:
        if len(self.values) != len(self.schema):
            raise ValueError(
                f"Record has {len(self.values)} values but schema has {len(self.schema)} fields"
            )

    def __len__(self) -> int:
        return len(self.values)

    def __getitem__(self, key: Union[int, str]) -> Any:
        """Value by position, or by column name."""
        if isinstance(key, str):
            try:
                key = self.schema.names.index(key)
            except ValueError:
                raise KeyError(key) from None
        return self.values[key]

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def as_list(self) -> List[Any]:
        return list(self.values)

    def as_dict(self) -> Dict[str, Any]:
        return dict(zip(self.schema.names, self.values))


def _dimension_values(values: Optional[Sequence[str]]) -> Optional[List[str]]:
    if not values:
        return None
    if isinstance(values, str):
        return [values]
    return list(values)


def project(
    record: NativeRecord,
    spec: LoadSpec,
    registry: Optional[CodecRegistry] = None,
    schema: Optional[OutputSchema] = None,
) -> OutputRecord:
    """
    Project one native record onto the spec's output schema.

    Parameters
    ----------
    record : NativeRecord
        Source record.
    spec : LoadSpec
        Dimensions and metrics to emit, in order.
    registry : CodecRegistry, optional
        Codecs for complex metrics. Defaults to the process-wide registry.
    schema : OutputSchema, optional
        Pre-derived schema for `spec`; derived on the fly when omitted.

    Raises
    ------
    MissingCodecError
        A complex metric has a value but no codec is registered for its type.
    """
    registry = registry if registry is not None else default_registry()
    schema = schema if schema is not None else spec.derive_schema()

    values: List[Any] = [format_timestamp(record.timestamp)]
    for name in spec.dimensions:
        values.append(_dimension_values(record.get_dimension(name)))

    for metric in spec.metrics:
        raw = record.get_raw(metric.name)
        if not metric.is_complex or raw is None:
            values.append(raw)
            continue
        codec = registry.lookup(metric.type)
        values.append(bytes(codec.to_bytes(raw)))

    return OutputRecord(schema=schema, values=tuple(values))


class ReaderState(str, Enum):
    IDLE = "idle"
    OPEN = "open"
    EXHAUSTED = "exhausted"


class RowProjector:
    """
    Pull-based projector over a single native record reader.

    States: IDLE until `prepare_to_read`, OPEN while the reader has records,
    EXHAUSTED once it reports none left; from then on `get_next` keeps
    returning None.
    """

    def __init__(self, spec: LoadSpec, registry: Optional[CodecRegistry] = None) -> None:
        self.spec = spec
        self.schema = spec.derive_schema()
        self._registry = registry
        self._reader: Optional[RecordReader] = None
        self.state = ReaderState.IDLE
        self.rows_projected = 0

    @property
    def registry(self) -> CodecRegistry:
        if self._registry is None:
            self._registry = default_registry()
        return self._registry

    def prepare_to_read(self, reader: RecordReader) -> None:
        self._reader = reader
        self.state = ReaderState.OPEN
        self.rows_projected = 0

    def get_next(self) -> Optional[OutputRecord]:
        """
        Advance the reader and project the next record.

        Returns None once the reader is exhausted.

        Raises
        ------
        ReadInterruptedError
            The reader was interrupted while advancing or reading.
        """
        if self.state is ReaderState.IDLE or self._reader is None:
            raise RuntimeError("prepare_to_read() must be called before get_next()")
        if self.state is ReaderState.EXHAUSTED:
            return None

        try:
            if not self._reader.has_next():
                self.state = ReaderState.EXHAUSTED
                log.debug("Reader exhausted", extra={"rows": self.rows_projected})
                return None
            record = self._reader.read_next()
        except InterruptedError as exc:
            raise ReadInterruptedError("Failed to read records from reader") from exc

        projected = project(record, self.spec, self.registry, self.schema)
        self.rows_projected += 1
        return projected

    def __iter__(self) -> Iterator[OutputRecord]:
        while True:
            record = self.get_next()
            if record is None:
                return
            yield record


__all__ = ["OutputRecord", "ReaderState", "RowProjector", "project"]
