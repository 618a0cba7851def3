from __future__ import annotations

from typing import Any, Dict, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from row_projector.domain.schema import FieldKind, OutputSchema

_KIND_STYLES = {
    FieldKind.TEXT: "cyan",
    FieldKind.TEXT_LIST: "magenta",
    FieldKind.INT64: "green",
    FieldKind.FLOAT32: "green",
    FieldKind.BYTES: "yellow",
}


def print_schema(
    schema: OutputSchema, title: str = "Output Schema", console: Optional[Console] = None
) -> None:
    """
    Render an output schema as a rich table, one row per column.
    """
    console = console or Console()
    table = Table(title=title, box=box.ROUNDED, caption=f"{len(schema)} columns")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Column", style="bold", no_wrap=True)
    table.add_column("Type")
    table.add_column("Arrow Type", style="dim")

    arrow_schema = schema.to_arrow()
    for index, f in enumerate(schema):
        style = _KIND_STYLES[f.kind]
        table.add_row(
            str(index),
            f.name,
            f"[{style}]{f.kind.value}[/{style}]",
            str(arrow_schema.field(index).type),
        )

    console.print(table)


def print_run_summary(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """
    Render a projection run summary as a rich table.
    """
    console = console or Console()

    if not summary:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(title="Projection Run", box=box.ROUNDED, show_header=False)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    mem_bytes = summary.get("peak_rss_bytes") or 0
    cpu = summary.get("cpu_percent") or 0.0

    table.add_row("Data source", str(summary.get("data_source", "Unknown")))
    table.add_row("Interval", str(summary.get("interval", "")))
    table.add_row("Rows", f"{summary.get('rows', 0):,}")
    table.add_row("Duration (s)", f"{summary.get('duration_seconds', 0.0):.3f}")
    throughput = summary.get("throughput_rows_per_sec", 0.0)
    table.add_row("Throughput (rows/s)", f"[bold green]{throughput:,.2f}[/bold green]")
    table.add_row("Peak Memory (MB)", f"{mem_bytes / (1024 * 1024):.2f}")
    table.add_row("CPU %", f"{cpu:.1f}")
    if summary.get("output_path"):
        table.add_row("Output", str(summary["output_path"]))

    console.print(table)


__all__ = ["print_schema", "print_run_summary"]
