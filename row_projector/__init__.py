"""
Segment row projector - typed segment records to schema-described generic rows.

This package adapts records read from a segmented, columnar storage engine to
the positional rows a distributed query framework consumes:

- LoadSpec model: ordered dimensions and typed metrics, parsed from JSON
- Deterministic output schema derivation (with Arrow export)
- Row projection with multi-valued dimensions, nulls and complex metric codecs
- Planning/worker handoff through an explicit, serializable task config
- Local or distributed-filesystem schema document resolution
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from row_projector.codecs.registry import CodecRegistry, ComplexMetricCodec, default_registry
from row_projector.config import Settings, get_settings
from row_projector.domain.models import IngestionSpec, LoadSpec, Metric
from row_projector.domain.schema import FieldKind, FieldSchema, OutputSchema
from row_projector.errors import (
    ColumnConflictError,
    MalformedSpecError,
    MissingCodecError,
    ReadInterruptedError,
    RowProjectorError,
    SpecNotFoundError,
)
from row_projector.loader import LoadTaskConfig, SegmentLoader
from row_projector.projection import (
    InputRow,
    IterableRecordReader,
    OutputRecord,
    RowProjector,
    project,
)
from row_projector.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Model
    "IngestionSpec",
    "LoadSpec",
    "Metric",
    "FieldKind",
    "FieldSchema",
    "OutputSchema",
    # Codecs
    "CodecRegistry",
    "ComplexMetricCodec",
    "default_registry",
    # Projection
    "InputRow",
    "IterableRecordReader",
    "OutputRecord",
    "RowProjector",
    "project",
    # Loader
    "LoadTaskConfig",
    "SegmentLoader",
    # Errors
    "RowProjectorError",
    "MalformedSpecError",
    "ColumnConflictError",
    "SpecNotFoundError",
    "MissingCodecError",
    "ReadInterruptedError",
    # Logging
    "configure_logging",
    "get_logger",
]
