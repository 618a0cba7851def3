"""
Pytest configuration for the segment row projector.

Provides fixtures for:
- Schema-spec documents and parsed LoadSpecs
- Codec registries with recording test codecs
- Settings isolation between tests
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

import pytest

from row_projector.codecs.registry import CodecRegistry
from row_projector.config import get_settings
from row_projector.domain.models import LoadSpec
from row_projector.projection.readers import InputRow

SKETCH_TYPE = "thetaSketch"


class RecordingCodec:
    """Encodes values as UTF-8 JSON and remembers every value it saw."""

    def __init__(self) -> None:
        self.calls: list[Any] = []

    def to_bytes(self, value: Any) -> bytes:
        self.calls.append(value)
        return json.dumps(value, sort_keys=True).encode("utf-8")


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """
    Drop cached settings so env overrides in one test never leak into another.
    """
    for name in (
        "APP_ENV",
        "LOG_LEVEL",
        "LOG_JSON",
        "SCHEMA_SEARCH_PATHS",
        "DEFAULT_FILESYSTEM_URI",
        "SPEC_FETCH_ATTEMPTS",
        "CODEC_ENTRY_POINT_GROUP",
        "RESULTS_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def spec_document() -> dict:
    return {
        "dimensions": ["country", "page"],
        "metrics": [
            {"name": "clicks", "type": "long"},
            {"name": "revenue", "type": "float"},
            {"name": "users", "type": SKETCH_TYPE},
        ],
    }


@pytest.fixture
def load_spec(spec_document: dict) -> LoadSpec:
    return LoadSpec.parse(json.dumps(spec_document))


@pytest.fixture
def spec_file(tmp_path: Path, spec_document: dict) -> Path:
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(spec_document), encoding="utf-8")
    return path


@pytest.fixture
def codec() -> RecordingCodec:
    return RecordingCodec()


@pytest.fixture
def registry(codec: RecordingCodec) -> CodecRegistry:
    reg = CodecRegistry()
    reg.register(SKETCH_TYPE, codec)
    return reg


@pytest.fixture
def sample_row() -> InputRow:
    return InputRow(
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        dimensions={"country": ["US"], "page": ["home", "search", "home"]},
        metrics={"clicks": 42, "revenue": 3.14, "users": {"estimate": 12}},
    )


@pytest.fixture
def rows_file(tmp_path: Path) -> Path:
    """
    Three native records covering multi-valued, missing and null fields.
    """
    records = [
        {
            "timestamp": "2024-01-01T00:00:00Z",
            "dimensions": {"country": ["US"], "page": ["home", "home"]},
            "metrics": {"clicks": 7, "revenue": 1.5, "users": [1, 2]},
        },
        {
            "timestamp": "2024-01-01T00:00:01Z",
            "dimensions": {"country": "DE"},
            "metrics": {"clicks": 3, "revenue": None, "users": None},
        },
        {
            "timestamp": 1704067202000,
            "dimensions": {"country": [], "page": ["search"]},
            "metrics": {"clicks": 0},
        },
    ]
    path = tmp_path / "rows.jsonl"
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path
