"""
End-to-end tests for the row projector CLI.

These tests drive the typer app against a spec document and a native record
file on local disk and verify that:
1. The schema command derives the output schema without reading data
2. The plan command emits a task config and ingestion spec
3. The run command projects every record and writes Parquet
4. Configuration failures exit with a non-zero code
"""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow.parquet as pq
import pytest
from typer.testing import CliRunner

from row_projector.config import get_settings
from row_projector.main import app
from scripts import generate_rows

DEFAULT_ROWS = 25
DEFAULT_SEED = 123
INTERVAL = "2024-01-01/2024-01-02"
EXPECTED_COLUMNS = 6

pytestmark = pytest.mark.integration

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep log lines out of the captured stdout that tests parse as JSON."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    get_settings.cache_clear()


@pytest.fixture
def generated(tmp_path: Path) -> Path:
    """Spec document plus native records written by the generator script."""
    result = runner.invoke(
        generate_rows.app,
        ["--output-dir", str(tmp_path), "--rows", str(DEFAULT_ROWS), "--seed", str(DEFAULT_SEED)],
    )
    assert result.exit_code == 0, result.output
    return tmp_path


class TestSchemaCommand:
    """Schema derivation from the CLI."""

    def test_schema_json_is_canonical(self, generated: Path):
        """Verify --json prints the ordered column list."""
        result = runner.invoke(app, ["schema", str(generated / "spec.json"), "--json"])

        assert result.exit_code == 0, result.output
        fields = json.loads(result.stdout)["fields"]
        assert len(fields) == EXPECTED_COLUMNS
        assert fields[0] == {"name": "druid_timestamp", "type": "chararray"}

    def test_schema_table_renders(self, generated: Path):
        """Verify the default rich table output."""
        result = runner.invoke(app, ["schema", str(generated / "spec.json")])

        assert result.exit_code == 0, result.output
        assert "druid_timestamp" in result.stdout

    def test_missing_spec_exits_with_error(self, tmp_path: Path):
        """Verify an unknown location reports SpecNotFound and exits 1."""
        result = runner.invoke(app, ["schema", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "Schema spec not found" in result.output


class TestPlanCommand:
    """Planning phase from the CLI."""

    def test_plan_prints_task_and_ingestion_spec(self, generated: Path):
        """Verify both documents are emitted."""
        result = runner.invoke(
            app, ["plan", "wikipedia", "-s", str(generated / "spec.json"), "-i", INTERVAL]
        )

        assert result.exit_code == 0, result.output
        document = json.loads(result.stdout)
        assert document["task_config"]["interval"] == INTERVAL
        assert document["ingestion_spec"]["dataSource"] == "wikipedia"

    def test_plan_rejects_bad_interval(self, generated: Path):
        """Verify an unparseable interval exits 1."""
        result = runner.invoke(
            app, ["plan", "wikipedia", "-s", str(generated / "spec.json"), "-i", "yesterday"]
        )

        assert result.exit_code == 1


class TestRunCommand:
    """Full plan, hand-off and projection from the CLI."""

    def test_run_writes_parquet(self, generated: Path, tmp_path: Path):
        """Verify every generated record lands in the Parquet output."""
        output = tmp_path / "projected.parquet"
        result = runner.invoke(
            app,
            [
                "run",
                "wikipedia",
                "-s",
                str(generated / "spec.json"),
                "-i",
                INTERVAL,
                "--input",
                str(generated / "rows.jsonl"),
                "--output",
                str(output),
                "--no-persist",
            ],
        )

        assert result.exit_code == 0, result.output
        table = pq.read_table(output)
        assert table.num_rows == DEFAULT_ROWS
        assert table.column_names[0] == "druid_timestamp"

    def test_run_reports_malformed_record(self, generated: Path):
        """Verify a badly shaped native record exits 1 with its file and line."""
        rows = generated / "bad.jsonl"
        rows.write_text('{"timestamp": 0, "dimensions": {"n": 5}}\n', encoding="utf-8")
        result = runner.invoke(
            app,
            [
                "run",
                "wikipedia",
                "-s",
                str(generated / "spec.json"),
                "-i",
                "1970-01-01/1970-01-02",
                "--input",
                str(rows),
                "--no-persist",
            ],
        )

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "bad.jsonl:1" in result.output


def test_info_prints_configuration():
    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0
    assert "default_fs=file:///" in result.stdout
