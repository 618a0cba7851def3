from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from row_projector.domain.timestamps import Interval
from row_projector.projection.abstract import NativeRecord, RecordReader
from row_projector.projection.readers import InputRow, IterableRecordReader, JsonLinesRecordReader

EXPECTED_ROWS = 3


def _drain(reader: IterableRecordReader) -> list:
    records = []
    while reader.has_next():
        records.append(reader.read_next())
    return records


def test_input_row_satisfies_native_record_protocol(sample_row: InputRow) -> None:
    assert isinstance(sample_row, NativeRecord)
    assert sample_row.get_dimension("country") == ["US"]
    assert sample_row.get_dimension("missing") is None
    assert sample_row.get_raw("clicks") == 42
    assert sample_row.get_raw("missing") is None


def test_input_row_from_dict_normalizes_values() -> None:
    row = InputRow.from_dict(
        {
            "timestamp": "2024-01-01T00:00:00Z",
            "dimensions": {"country": "US", "tags": ["a", "b"], "gone": None},
            "metrics": {"clicks": 1},
        }
    )
    assert row.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert row.get_dimension("country") == ["US"]
    assert row.get_dimension("tags") == ["a", "b"]
    assert row.get_dimension("gone") is None


@pytest.mark.parametrize("timestamp", [None, 1.5, True, {"at": 1}])
def test_input_row_from_dict_rejects_bad_timestamps(timestamp: object) -> None:
    with pytest.raises(ValueError):
        InputRow.from_dict({"timestamp": timestamp})


def test_iterable_reader_pull_contract(sample_row: InputRow) -> None:
    reader = IterableRecordReader([sample_row])
    assert isinstance(reader, RecordReader)

    with pytest.raises(RuntimeError):
        reader.read_next()

    assert reader.has_next() is True
    assert reader.read_next() is sample_row
    assert reader.has_next() is False
    assert reader.has_next() is False


def test_json_lines_reader_streams_records(rows_file: Path) -> None:
    records = _drain(JsonLinesRecordReader(rows_file))

    assert len(records) == EXPECTED_ROWS
    assert records[0].get_dimension("page") == ["home", "home"]
    assert records[1].get_dimension("country") == ["DE"]
    assert records[2].timestamp == 1704067202000


def test_json_lines_reader_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "rows.jsonl"
    path.write_text('\n{"timestamp": 0}\n\n', encoding="utf-8")
    assert len(_drain(JsonLinesRecordReader(path))) == 1


def test_json_lines_reader_reports_bad_line(tmp_path: Path) -> None:
    path = tmp_path / "rows.jsonl"
    path.write_text('{"timestamp": 0}\n{oops\n', encoding="utf-8")
    reader = JsonLinesRecordReader(path)

    assert reader.has_next() is True
    with pytest.raises(ValueError, match=r"rows\.jsonl:2"):
        reader.has_next()


@pytest.mark.parametrize(
    "record",
    [
        {"timestamp": 0, "dimensions": {"n": 5}},
        {"timestamp": 0, "dimensions": {"n": ["a", 1]}},
        {"timestamp": 0, "dimensions": ["country"]},
        {"timestamp": 0, "metrics": [["clicks", 1]]},
        ["not", "an", "object"],
    ],
)
def test_input_row_from_dict_rejects_malformed_shapes(record: object) -> None:
    with pytest.raises(ValueError):
        InputRow.from_dict(record)


def test_json_lines_reader_reports_malformed_shape_with_line(tmp_path: Path) -> None:
    path = tmp_path / "rows.jsonl"
    path.write_text('{"timestamp": 0}\n{"timestamp": 0, "dimensions": {"n": 5}}\n', "utf-8")
    reader = JsonLinesRecordReader(path)

    assert reader.has_next() is True
    with pytest.raises(ValueError, match=r"rows\.jsonl:2: invalid native record: Dimension 'n'"):
        reader.has_next()


def test_json_lines_reader_filters_by_interval(rows_file: Path) -> None:
    interval = Interval.parse("2024-01-01T00:00:00Z/2024-01-01T00:00:01Z")
    reader = JsonLinesRecordReader(rows_file, interval=interval)

    records = _drain(reader)

    assert len(records) == 1
    assert records[0].get_dimension("country") == ["US"]
    assert reader.skipped == EXPECTED_ROWS - 1


def test_json_lines_reader_close_releases_file(rows_file: Path) -> None:
    with JsonLinesRecordReader(rows_file) as reader:
        assert reader.has_next() is True
        handle = reader._file
        assert handle is not None
        assert handle.closed is False

    assert handle.closed is True
    assert reader.has_next() is False
