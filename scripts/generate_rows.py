"""
Synthetic native-record generator for the segment row projector.

Writes a schema-spec JSON document and a JSON-lines file of native records with
deterministic pseudo-random content, including multi-valued and missing
dimensions and null metrics, to exercise the projector end to end.
"""

from __future__ import annotations

import json
import random
import sys
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

import typer

app = typer.Typer(help="Generate a schema spec and synthetic native records (JSON lines).")

DIMENSIONS = ["country", "page", "tags"]
METRICS = [
    {"name": "clicks", "type": "long"},
    {"name": "revenue", "type": "float"},
]
COUNTRIES = ["US", "DE", "FR", "JP", "BR"]
PAGES = ["home", "search", "checkout", "profile"]
TAGS = ["new", "returning", "mobile", "desktop", "promo"]


def _schema_document() -> dict:
    return {"dimensions": DIMENSIONS, "metrics": METRICS}


def _generate_rows_jsonl(
    rows_path: Path, rows: int, batch_size: int, seed: int, start: datetime
) -> None:
    rng = random.Random(seed)

    with rows_path.open("w", encoding="utf-8") as f:
        buffer: list[str] = []
        for i in range(rows):
            dimensions: dict[str, list[str]] = {"country": [rng.choice(COUNTRIES)]}
            if rng.random() > 0.1:
                dimensions["page"] = [rng.choice(PAGES)]
            # multi-valued, duplicates allowed
            dimensions["tags"] = [rng.choice(TAGS) for _ in range(rng.randint(0, 3))]
            record = {
                "timestamp": (start + timedelta(seconds=i)).isoformat(),
                "dimensions": dimensions,
                "metrics": {
                    "clicks": rng.randint(0, 100),
                    "revenue": None if rng.random() < 0.2 else round(rng.uniform(0, 500), 2),
                },
            }
            buffer.append(json.dumps(record))
            if len(buffer) >= batch_size:
                f.write("\n".join(buffer) + "\n")
                buffer.clear()
        if buffer:
            f.write("\n".join(buffer) + "\n")


@app.command()
def main(
    output_dir: Path = typer.Option(
        Path("data"),
        "--output-dir",
        "-o",
        help="Directory receiving spec.json and rows.jsonl.",
    ),
    rows: int = typer.Option(
        10_000,
        "--rows",
        "-r",
        help="Number of native records to generate.",
    ),
    batch_size: int = typer.Option(
        1_000,
        "--batch-size",
        "-b",
        help="Lines buffered between writes.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
) -> None:
    """
    Generate a schema spec document and native records.
    """
    start_time = time.perf_counter()
    output_dir.mkdir(parents=True, exist_ok=True)
    spec_path = output_dir / "spec.json"
    rows_path = output_dir / "rows.jsonl"

    spec_path.write_text(json.dumps(_schema_document(), indent=2), encoding="utf-8")
    typer.echo(f"Wrote schema spec -> {spec_path}")

    typer.echo(f"Generating {rows:,} rows -> {rows_path} (batch={batch_size}, seed={seed})")
    _generate_rows_jsonl(
        rows_path,
        rows=rows,
        batch_size=batch_size,
        seed=seed,
        start=datetime(2024, 1, 1, tzinfo=UTC),
    )
    duration = time.perf_counter() - start_time
    rate = rows / duration if duration > 0 else 0.0
    typer.echo(f"Generation completed in {duration:.2f}s ({rate:,.0f} rows/s)")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
