"""
Segment loader: planning-phase and worker-phase entry points.

The planning phase resolves the schema-spec document, derives the output
schema and produces a LoadTaskConfig. That config is passed by value to each
distributed task (as a JSON blob or, for frameworks that only offer a string
property channel, as three signature-scoped properties). Workers rebuild the
loader from it without touching the filesystem and re-derive the identical
schema.

Usage (planning):
    loader = SegmentLoader("/specs/wikipedia.json", "2024-01-01/2024-02-01")
    config = loader.set_location("wikipedia")
    blob = config.to_json()

Usage (worker):
    loader = SegmentLoader.from_task_config(blob)
    loader.prepare_to_read(reader)
    while (record := loader.get_next()) is not None:
        ...
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from row_projector.codecs.registry import CodecRegistry
from row_projector.domain.models import IngestionSpec, LoadSpec
from row_projector.domain.schema import OutputSchema
from row_projector.domain.timestamps import Interval
from row_projector.errors import MalformedSpecError
from row_projector.infrastructure.spec_resolver import SpecResolver
from row_projector.projection.abstract import RecordReader
from row_projector.projection.projector import OutputRecord, RowProjector
from row_projector.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA_LOCATION_KEY = "schemaLocation"
INTERVAL_KEY = "interval"
SPECS_KEY = "specs"


class LoadTaskConfig(BaseModel):
    """
    Everything a worker needs to project one data source's records.
    """

    data_source: str = Field(..., description="Data source name.")
    schema_location: str = Field(..., description="Where the spec document was read from.")
    interval: str = Field(..., description="ISO-8601 'start/end' interval.")
    spec: LoadSpec

    model_config = {
        "frozen": True,
    }

    @field_validator("interval")
    @classmethod
    def _interval_parses(cls, value: str) -> str:
        Interval.parse(value)
        return value

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, blob: Union[str, bytes]) -> "LoadTaskConfig":
        try:
            return cls.model_validate_json(blob)
        except ValidationError as exc:
            raise MalformedSpecError(f"Invalid load task config: {exc}") from exc

    def to_properties(self, signature: str) -> Dict[str, str]:
        """Render as signature-scoped string properties."""
        return {
            signature + SCHEMA_LOCATION_KEY: self.schema_location,
            signature + INTERVAL_KEY: self.interval,
            signature + SPECS_KEY: self.spec.to_json(),
        }

    @classmethod
    def from_properties(
        cls, properties: Mapping[str, str], signature: str, data_source: str
    ) -> "LoadTaskConfig":
        try:
            schema_location = properties[signature + SCHEMA_LOCATION_KEY]
            interval = properties[signature + INTERVAL_KEY]
            specs = properties[signature + SPECS_KEY]
        except KeyError as exc:
            raise MalformedSpecError(f"Missing task property {exc.args[0]!r}") from exc
        spec = LoadSpec.parse(specs)
        try:
            return cls(
                data_source=data_source,
                schema_location=schema_location,
                interval=interval,
                spec=spec,
            )
        except ValidationError as exc:
            raise MalformedSpecError(f"Invalid task properties: {exc}") from exc


class SegmentLoader:
    """
    Loads projected rows for one data source over one interval.
    """

    def __init__(
        self,
        schema_location: str,
        interval: str,
        resolver: Optional[SpecResolver] = None,
        registry: Optional[CodecRegistry] = None,
    ) -> None:
        self.schema_location = schema_location
        self.interval = interval
        self.data_source: Optional[str] = None
        self._resolver = resolver
        self._registry = registry
        self._spec: Optional[LoadSpec] = None
        self._projector: Optional[RowProjector] = None

    @classmethod
    def from_task_config(
        cls,
        config: Union[LoadTaskConfig, str, bytes],
        registry: Optional[CodecRegistry] = None,
    ) -> "SegmentLoader":
        if not isinstance(config, LoadTaskConfig):
            config = LoadTaskConfig.from_json(config)
        loader = cls(config.schema_location, config.interval, registry=registry)
        loader.data_source = config.data_source
        loader._spec = config.spec
        return loader

    @property
    def spec(self) -> LoadSpec:
        if self._spec is None:
            resolver = self._resolver or SpecResolver()
            self._spec = resolver.load_spec(self.schema_location)
            log.info(
                "Loaded schema spec",
                extra={
                    "location": self.schema_location,
                    "dimensions": len(self._spec.dimensions),
                    "metrics": len(self._spec.metrics),
                },
            )
        return self._spec

    def set_location(self, data_source: str) -> LoadTaskConfig:
        """Planning phase: bind the data source and produce the task config."""
        Interval.parse(self.interval)
        self.data_source = data_source
        return LoadTaskConfig(
            data_source=data_source,
            schema_location=self.schema_location,
            interval=self.interval,
            spec=self.spec,
        )

    def get_schema(self) -> OutputSchema:
        return self.spec.derive_schema()

    def ingestion_target(self) -> IngestionSpec:
        if self.data_source is None:
            raise RuntimeError("set_location() must be called before ingestion_target()")
        return self.spec.compile_ingestion_target(self.data_source, [self.interval])

    def prepare_to_read(self, reader: RecordReader) -> None:
        if self._projector is None:
            self._projector = RowProjector(self.spec, self._registry)
        self._projector.prepare_to_read(reader)

    def get_next(self) -> Optional[OutputRecord]:
        if self._projector is None:
            raise RuntimeError("prepare_to_read() must be called before get_next()")
        return self._projector.get_next()

    @property
    def rows_projected(self) -> int:
        return self._projector.rows_projected if self._projector else 0


__all__ = [
    "LoadTaskConfig",
    "SegmentLoader",
    "SCHEMA_LOCATION_KEY",
    "INTERVAL_KEY",
    "SPECS_KEY",
]
