"""
Domain package for the segment row projector.

Exports the load spec model, the output schema types and the timestamp
helpers. Keep this package focused on data definitions and validation concerns.
"""

from row_projector.domain.models import IngestionSpec, LoadSpec, Metric
from row_projector.domain.schema import (
    TIMESTAMP_COLUMN,
    FieldKind,
    FieldSchema,
    OutputSchema,
    kind_for_metric_type,
)
from row_projector.domain.timestamps import Interval, format_timestamp

__all__ = [
    "IngestionSpec",
    "LoadSpec",
    "Metric",
    "TIMESTAMP_COLUMN",
    "FieldKind",
    "FieldSchema",
    "OutputSchema",
    "kind_for_metric_type",
    "Interval",
    "format_timestamp",
]
