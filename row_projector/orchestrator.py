"""
Orchestrator for end-to-end projection runs.

A run mirrors how a distributed framework drives the loader: the planning
phase resolves the spec and serializes a task config, a worker-phase loader is
rebuilt from that config alone, and every native record from the input file is
projected through it. The run is profiled and summarized.

Usage (example from CLI):
    from row_projector.orchestrator import RunConfig, run_projection

    summary = run_projection(
        RunConfig(
            schema_location="specs/wikipedia.json",
            interval="2024-01-01/2024-02-01",
            data_source="wikipedia",
            input_path="rows.jsonl",
        )
    )

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pyarrow as pa
import pyarrow.parquet as pq

from row_projector.codecs.registry import CodecRegistry
from row_projector.config import get_settings
from row_projector.domain.schema import OutputSchema
from row_projector.domain.timestamps import Interval
from row_projector.infrastructure.spec_resolver import SpecResolver
from row_projector.loader import LoadTaskConfig, SegmentLoader
from row_projector.projection.readers import JsonLinesRecordReader
from row_projector.utils.logging import get_logger
from row_projector.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)


@dataclass(frozen=True)
class RunConfig:
    schema_location: str
    interval: str
    data_source: str
    input_path: Path | str
    output_path: Optional[Path | str] = None
    results_dir: Optional[Path | str] = None
    persist: bool = True
    batch_size: int = 10_000


def _round_float(value: float, decimals: int = 2) -> float:
    """Round a float to specified decimal places for human-readable output."""
    return round(value, decimals)


def plan(
    schema_location: str,
    interval: str,
    data_source: str,
    resolver: Optional[SpecResolver] = None,
) -> LoadTaskConfig:
    """
    Planning phase: resolve the spec document and build the task config.
    """
    loader = SegmentLoader(schema_location, interval, resolver=resolver)
    config = loader.set_location(data_source)
    log.info(
        "[PLAN] Task config ready",
        extra={
            "data_source": data_source,
            "interval": interval,
            "columns": config.spec.column_count,
        },
    )
    return config


class _ParquetSink:
    """Writes projected rows to Parquet in fixed-size batches."""

    def __init__(self, path: Path, schema: OutputSchema, batch_size: int) -> None:
        self._arrow_schema = schema.to_arrow()
        self._names = schema.names
        self._batch_size = batch_size
        self._rows: List[Dict[str, Any]] = []
        path.parent.mkdir(parents=True, exist_ok=True)
        self._writer = pq.ParquetWriter(str(path), self._arrow_schema)

    def write(self, row: Dict[str, Any]) -> None:
        self._rows.append(row)
        if len(self._rows) >= self._batch_size:
            self._flush()

    def _flush(self) -> None:
        if self._rows:
            self._writer.write_table(pa.Table.from_pylist(self._rows, schema=self._arrow_schema))
            self._rows.clear()

    def close(self) -> None:
        self._flush()
        self._writer.close()


def _project_all(worker: SegmentLoader, config: RunConfig) -> Tuple[int, int]:
    reader = JsonLinesRecordReader(config.input_path, interval=Interval.parse(config.interval))
    worker.prepare_to_read(reader)
    sink = (
        _ParquetSink(Path(config.output_path), worker.get_schema(), config.batch_size)
        if config.output_path
        else None
    )
    try:
        while (record := worker.get_next()) is not None:
            if sink is not None:
                sink.write(record.as_dict())
    finally:
        reader.close()
        if sink is not None:
            sink.close()
    return worker.rows_projected, reader.skipped


def _summarize(
    config: RunConfig,
    task: LoadTaskConfig,
    schema: OutputSchema,
    rows: int,
    skipped: int,
    stats: ProfileStats,
) -> dict:
    ingestion = task.spec.compile_ingestion_target(task.data_source, [task.interval])
    return {
        "data_source": task.data_source,
        "interval": task.interval,
        "schema_location": task.schema_location,
        "input_path": str(config.input_path),
        "output_path": str(config.output_path) if config.output_path else None,
        "rows": rows,
        "rows_outside_interval": skipped,
        "duration_seconds": _round_float(stats.duration_seconds, 3),
        "throughput_rows_per_sec": _round_float(stats.throughput(rows)),
        "peak_rss_bytes": stats.peak_rss_bytes,
        "cpu_percent": _round_float(stats.cpu_percent, 1) if stats.cpu_percent else None,
        "schema": schema.to_dict()["fields"],
        "ingestion_spec": json.loads(ingestion.to_json()),
    }


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def run_projection(
    config: RunConfig,
    registry: Optional[CodecRegistry] = None,
    resolver: Optional[SpecResolver] = None,
) -> dict:
    """
    Run planning and worker phases for one data source and summarize the run.

    Returns
    -------
    dict
        Run summary: rows, duration, throughput, memory/CPU, schema and the
        compiled ingestion spec.
    """
    task = plan(config.schema_location, config.interval, config.data_source, resolver=resolver)
    planned_schema = task.spec.derive_schema()

    # Workers only see the serialized config.
    worker = SegmentLoader.from_task_config(task.to_json(), registry=registry)
    worker_schema = worker.get_schema()
    if worker_schema != planned_schema:
        raise RuntimeError("Worker schema differs from planning schema")

    log.info(f"[PROJECT START] {config.data_source}", extra={"input": str(config.input_path)})
    with profile_block(config.data_source) as stats:
        try:
            rows, skipped = _project_all(worker, config)
        except Exception:
            log.exception(
                f"[PROJECT FAILED] {config.data_source}",
                extra={"rows": worker.rows_projected},
            )
            raise
    log.info(
        f"[PROJECT SUCCESS] {config.data_source}",
        extra={
            "rows": rows,
            "skipped": skipped,
            "duration": _round_float(stats.duration_seconds, 3),
        },
    )

    payload = _summarize(config, task, worker_schema, rows, skipped, stats)
    payload["timestamp"] = datetime.now(timezone.utc).isoformat()

    if config.persist:
        results_dir = config.results_dir or get_settings().results_dir
        _persist_results(payload, Path(results_dir))

    return payload


__all__ = ["RunConfig", "plan", "run_projection"]
