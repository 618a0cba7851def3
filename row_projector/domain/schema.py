"""
Output schema types for projected rows.

An OutputSchema is the framework-facing description of every projected record:
one timestamp column, one list-of-text column per dimension and one column per
metric. Field kinds form a closed set shared by schema derivation, projection
and Arrow export.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Tuple

import pyarrow as pa

TIMESTAMP_COLUMN = "druid_timestamp"

FLOAT_METRIC = "float"
LONG_METRIC = "long"
PRIMITIVE_METRIC_TYPES = frozenset({FLOAT_METRIC, LONG_METRIC})


class FieldKind(str, Enum):
    """Kinds of output fields."""

    TEXT = "chararray"
    TEXT_LIST = "tuple"
    INT64 = "long"
    FLOAT32 = "float"
    BYTES = "bytearray"


_ARROW_TYPES: Dict[FieldKind, pa.DataType] = {
    FieldKind.TEXT: pa.string(),
    FieldKind.TEXT_LIST: pa.list_(pa.string()),
    FieldKind.INT64: pa.int64(),
    FieldKind.FLOAT32: pa.float32(),
    FieldKind.BYTES: pa.binary(),
}


def kind_for_metric_type(metric_type: str) -> FieldKind:
    """Map a declared metric type to its output field kind."""
    if metric_type == FLOAT_METRIC:
        return FieldKind.FLOAT32
    if metric_type == LONG_METRIC:
        return FieldKind.INT64
    return FieldKind.BYTES


def arrow_type(kind: FieldKind) -> pa.DataType:
    return _ARROW_TYPES[kind]


@dataclass(frozen=True)
class FieldSchema:
    name: str
    kind: FieldKind

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.kind.value}


@dataclass(frozen=True)
class OutputSchema:
    """
    Ordered, immutable sequence of output field descriptors.

    Two schemas derived from equal LoadSpecs compare equal and serialize to the
    same canonical JSON, which is what lets planning and worker phases agree
    without exchanging the schema itself.
    """

    fields: Tuple[FieldSchema, ...]

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[FieldSchema]:
        return iter(self.fields)

    def __getitem__(self, index: int) -> FieldSchema:
        return self.fields[index]

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field(self, name: str) -> FieldSchema:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {"fields": [f.to_dict() for f in self.fields]}

    def to_json(self) -> str:
        """Canonical JSON rendering (stable key order, no whitespace)."""
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

    def to_arrow(self) -> pa.Schema:
        """Export as a pyarrow schema for downstream operator planning."""
        # The timestamp column is the only one that is never null.
        return pa.schema(
            [
                pa.field(f.name, arrow_type(f.kind), nullable=f.kind is not FieldKind.TEXT)
                for f in self.fields
            ]
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "OutputSchema":
        raw_fields = data.get("fields", [])
        return cls(
            fields=tuple(
                FieldSchema(name=str(f["name"]), kind=FieldKind(f["type"]))  # type: ignore[index]
                for f in raw_fields  # type: ignore[union-attr]
            )
        )


__all__ = [
    "TIMESTAMP_COLUMN",
    "FLOAT_METRIC",
    "LONG_METRIC",
    "PRIMITIVE_METRIC_TYPES",
    "FieldKind",
    "FieldSchema",
    "OutputSchema",
    "arrow_type",
    "kind_for_metric_type",
]
