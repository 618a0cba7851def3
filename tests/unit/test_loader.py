from __future__ import annotations

import json
from pathlib import Path

import pytest

from row_projector.codecs.registry import CodecRegistry
from row_projector.errors import InvalidIntervalError, MalformedSpecError
from row_projector.infrastructure.spec_resolver import SpecResolver
from row_projector.loader import (
    INTERVAL_KEY,
    SCHEMA_LOCATION_KEY,
    SPECS_KEY,
    LoadTaskConfig,
    SegmentLoader,
)
from row_projector.projection.readers import InputRow, IterableRecordReader

INTERVAL = "2024-01-01T00:00:00Z/2024-02-01T00:00:00Z"
SIGNATURE = "wiki_0."


def _unreachable_filesystem(uri: str):
    raise AssertionError(f"worker must not touch the filesystem ({uri})")


@pytest.fixture
def planning_loader(spec_file: Path) -> SegmentLoader:
    resolver = SpecResolver(search_paths=[], filesystem_factory=_unreachable_filesystem)
    return SegmentLoader(str(spec_file), INTERVAL, resolver=resolver)


def test_set_location_builds_task_config(planning_loader: SegmentLoader, spec_file: Path) -> None:
    config = planning_loader.set_location("wikipedia")

    assert config.data_source == "wikipedia"
    assert config.schema_location == str(spec_file)
    assert config.interval == INTERVAL
    assert config.spec.column_names[0] == "druid_timestamp"
    assert planning_loader.data_source == "wikipedia"


def test_worker_schema_matches_planning_schema(
    planning_loader: SegmentLoader, spec_file: Path, registry: CodecRegistry
) -> None:
    blob = planning_loader.set_location("wikipedia").to_json()
    spec_file.unlink()

    worker = SegmentLoader.from_task_config(blob, registry=registry)

    assert worker.get_schema() == planning_loader.get_schema()
    assert worker.get_schema().to_json() == planning_loader.get_schema().to_json()
    assert worker.data_source == "wikipedia"


def test_worker_projects_records(
    planning_loader: SegmentLoader, registry: CodecRegistry, sample_row: InputRow
) -> None:
    worker = SegmentLoader.from_task_config(
        planning_loader.set_location("wikipedia"), registry=registry
    )
    assert worker.rows_projected == 0

    worker.prepare_to_read(IterableRecordReader([sample_row]))
    record = worker.get_next()

    assert record is not None
    assert record["druid_timestamp"] == "2024-01-01T00:00:00.000Z"
    assert worker.get_next() is None
    assert worker.rows_projected == 1


def test_get_next_requires_prepare(planning_loader: SegmentLoader) -> None:
    with pytest.raises(RuntimeError, match="prepare_to_read"):
        planning_loader.get_next()


def test_invalid_interval_is_rejected_at_planning(spec_file: Path) -> None:
    loader = SegmentLoader(str(spec_file), "2024-02-01/2024-01-01")
    with pytest.raises(InvalidIntervalError):
        loader.set_location("wikipedia")


def test_ingestion_target_after_set_location(planning_loader: SegmentLoader) -> None:
    with pytest.raises(RuntimeError, match="set_location"):
        planning_loader.ingestion_target()

    planning_loader.set_location("wikipedia")
    document = json.loads(planning_loader.ingestion_target().to_json())

    assert document["dataSource"] == "wikipedia"
    assert document["intervals"] == ["2024-01-01T00:00:00.000Z/2024-02-01T00:00:00.000Z"]
    assert document["dimensions"] == ["country", "page"]
    assert document["metrics"] == ["clicks", "revenue", "users"]


def test_task_config_property_round_trip(planning_loader: SegmentLoader) -> None:
    config = planning_loader.set_location("wikipedia")
    properties = config.to_properties(SIGNATURE)

    assert set(properties) == {
        SIGNATURE + SCHEMA_LOCATION_KEY,
        SIGNATURE + INTERVAL_KEY,
        SIGNATURE + SPECS_KEY,
    }
    assert LoadTaskConfig.from_properties(properties, SIGNATURE, "wikipedia") == config


def test_task_config_properties_are_signature_scoped(planning_loader: SegmentLoader) -> None:
    properties = planning_loader.set_location("wikipedia").to_properties(SIGNATURE)
    with pytest.raises(MalformedSpecError, match="other.schemaLocation"):
        LoadTaskConfig.from_properties(properties, "other.", "wikipedia")


def test_task_config_from_json_rejects_garbage() -> None:
    with pytest.raises(MalformedSpecError):
        LoadTaskConfig.from_json('{"data_source": "x"}')


def test_task_config_properties_reject_bad_interval(planning_loader: SegmentLoader) -> None:
    properties = planning_loader.set_location("wikipedia").to_properties(SIGNATURE)
    properties[SIGNATURE + INTERVAL_KEY] = "2024-02-01/2024-01-01"

    with pytest.raises(MalformedSpecError, match="Invalid task properties"):
        LoadTaskConfig.from_properties(properties, SIGNATURE, "wikipedia")
