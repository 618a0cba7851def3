"""
Projection package for the segment row projector.

Re-exports the record source interfaces, the concrete readers and the
projector so downstream code can import from `row_projector.projection`.
"""

from row_projector.projection.abstract import NativeRecord, RecordReader
from row_projector.projection.projector import OutputRecord, ReaderState, RowProjector, project
from row_projector.projection.readers import InputRow, IterableRecordReader, JsonLinesRecordReader

__all__ = [
    # Interfaces
    "NativeRecord",
    "RecordReader",
    # Projection
    "OutputRecord",
    "ReaderState",
    "RowProjector",
    "project",
    # Sources
    "InputRow",
    "IterableRecordReader",
    "JsonLinesRecordReader",
]
