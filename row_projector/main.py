from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from row_projector.config import get_settings
from row_projector.errors import RowProjectorError
from row_projector.infrastructure.spec_resolver import SpecResolver
from row_projector.orchestrator import RunConfig, plan, run_projection
from row_projector.reporter import print_run_summary, print_schema
from row_projector.utils.logging import configure_logging

app = typer.Typer(help="Segment row projector CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    search = ", ".join(settings.schema_search_paths) or "<cwd>"
    typer.echo(
        f"env={settings.app_env} log_level={settings.log_level} | "
        f"search_paths={search} default_fs={settings.default_filesystem_uri} | "
        f"codec_group={settings.codec_entry_point_group} results={settings.results_dir}"
    )


@app.command()
def schema(
    schema_location: str = typer.Argument(..., help="Local path or filesystem URI of the spec."),
    as_json: bool = typer.Option(False, "--json", help="Print canonical JSON instead of a table."),
) -> None:
    """
    Derive and print the output schema without reading any data.
    """
    _setup_logging()
    try:
        output_schema = SpecResolver().load_spec(schema_location).derive_schema()
    except RowProjectorError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if as_json:
        typer.echo(output_schema.to_json())
    else:
        print_schema(output_schema)


@app.command(name="plan")
def plan_command(
    data_source: str = typer.Argument(..., help="Data source name."),
    schema_location: str = typer.Option(..., "--schema", "-s", help="Spec document location."),
    interval: str = typer.Option(..., "--interval", "-i", help="ISO-8601 'start/end' interval."),
) -> None:
    """
    Run the planning phase and print the task config and ingestion spec.
    """
    _setup_logging()
    try:
        task = plan(schema_location, interval, data_source)
        ingestion = task.spec.compile_ingestion_target(data_source, [interval])
    except (RowProjectorError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(
        json.dumps(
            {
                "task_config": json.loads(task.to_json()),
                "ingestion_spec": json.loads(ingestion.to_json()),
            },
            indent=2,
        )
    )


@app.command()
def run(
    data_source: str = typer.Argument(..., help="Data source name."),
    schema_location: str = typer.Option(..., "--schema", "-s", help="Spec document location."),
    interval: str = typer.Option(..., "--interval", "-i", help="ISO-8601 'start/end' interval."),
    input_path: Path = typer.Option(
        ..., "--input", help="JSON-lines file of native records.", exists=True, dir_okay=False
    ),
    output_path: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Optional Parquet output path."
    ),
    no_persist: bool = typer.Option(False, "--no-persist", help="Skip writing results JSON."),
) -> None:
    """
    Plan, hand off and project every native record, then report the run.
    """
    _setup_logging()
    config = RunConfig(
        schema_location=schema_location,
        interval=interval,
        data_source=data_source,
        input_path=input_path,
        output_path=output_path,
        persist=not no_persist,
    )
    try:
        summary = run_projection(config)
    except (RowProjectorError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    print_run_summary(summary)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
