"""
Domain models for the segment row projector.

LoadSpec is the immutable description of a data source's logical schema: the
ordered dimension names and ordered (name, type) metric declarations a load
reads. It is parsed once from a JSON document at planning time, serialized for
transport to workers, and re-parsed there byte-for-byte.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from row_projector.domain.schema import (
    PRIMITIVE_METRIC_TYPES,
    TIMESTAMP_COLUMN,
    FieldKind,
    FieldSchema,
    OutputSchema,
    kind_for_metric_type,
)
from row_projector.domain.timestamps import Interval
from row_projector.errors import ColumnConflictError, MalformedSpecError


class Metric(BaseModel):
    """
    A metric column declaration.
    """

    name: str = Field(..., description="Metric column name.")
    type: str = Field(..., description="'float', 'long' or a complex type identifier.")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise MalformedSpecError(f"Invalid metric declaration: {exc}") from exc

    @field_validator("name", "type")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @property
    def is_complex(self) -> bool:
        return self.type not in PRIMITIVE_METRIC_TYPES


class LoadSpec(BaseModel):
    """
    Dimensions and metrics to read from a data source, in output column order.
    """

    dimensions: Tuple[str, ...] = Field(..., description="Ordered dimension names.")
    metrics: Tuple[Metric, ...] = Field(..., description="Ordered metric declarations.")

    model_config = {
        "frozen": True,
        "extra": "ignore",
    }

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise MalformedSpecError(f"Invalid schema spec: {exc}") from exc

    @field_validator("dimensions")
    @classmethod
    def _dimension_names_not_blank(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        for name in value:
            if not name.strip():
                raise ValueError("dimension names must not be blank")
        return value

    @model_validator(mode="after")
    def _check_column_names(self) -> "LoadSpec":
        # ColumnConflictError is not a ValueError, so pydantic lets it propagate.
        seen = {TIMESTAMP_COLUMN}
        for name in self.column_names[1:]:
            if name in seen:
                raise ColumnConflictError(f"Duplicate output column name '{name}'")
            seen.add(name)
        return self

    @property
    def column_names(self) -> List[str]:
        return [TIMESTAMP_COLUMN, *self.dimensions, *(m.name for m in self.metrics)]

    @property
    def column_count(self) -> int:
        return 1 + len(self.dimensions) + len(self.metrics)

    @classmethod
    def parse(cls, document: Union[bytes, str]) -> "LoadSpec":
        """
        Deserialize a schema-spec JSON document.

        Raises
        ------
        MalformedSpecError
            If the document is not valid JSON or does not have the expected shape.
        ColumnConflictError
            If two output columns would share a name.
        """
        try:
            return cls.model_validate_json(document)
        except ValidationError as exc:
            raise MalformedSpecError(f"Invalid schema spec document: {exc}") from exc

    def to_json(self) -> str:
        """Canonical serialization; `parse(spec.to_json()) == spec`."""
        return self.model_dump_json()

    def derive_schema(self) -> OutputSchema:
        """
        Derive the positional output schema.

        Column 0 is the timestamp as text, then one list-of-text column per
        dimension, then one column per metric typed by the metric type mapping.
        """
        fields = [FieldSchema(TIMESTAMP_COLUMN, FieldKind.TEXT)]
        fields.extend(FieldSchema(name, FieldKind.TEXT_LIST) for name in self.dimensions)
        fields.extend(FieldSchema(m.name, kind_for_metric_type(m.type)) for m in self.metrics)
        return OutputSchema(fields=tuple(fields))

    def compile_ingestion_target(
        self,
        data_source: str,
        intervals: Iterable[Union[Interval, str]],
    ) -> "IngestionSpec":
        """
        Build the ingestion spec handed to the input-format collaborator.
        """
        if not data_source or not data_source.strip():
            raise ValueError("data_source must not be empty")
        resolved = [
            str(interval if isinstance(interval, Interval) else Interval.parse(interval))
            for interval in intervals
        ]
        if not resolved:
            raise ValueError("at least one interval is required")
        return IngestionSpec(
            data_source=data_source,
            intervals=tuple(resolved),
            dimensions=self.dimensions,
            metrics=tuple(m.name for m in self.metrics),
        )


class IngestionSpec(BaseModel):
    """
    Document consumed by the input-format collaborator to select segments.
    """

    data_source: str = Field(..., alias="dataSource")
    intervals: Tuple[str, ...] = Field(..., description="ISO-8601 'start/end' intervals.")
    dimensions: Tuple[str, ...] = Field(default=())
    metrics: Tuple[str, ...] = Field(default=(), description="Metric column names.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


__all__ = ["Metric", "LoadSpec", "IngestionSpec"]
