"""CLI entry point for the timetable engine."""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import load_config
from .constants import SLOTS_PER_HOUR
from .exceptions import SchedulingError
from .exporters import get_exporter
from .loader import load_schedule_request, load_schedule_result
from .models import ScheduleResult
from .scheduler import run_from_request
from .travel import TravelTimeService
from .validators import validate_request

app = typer.Typer(
    name="timetable-engine",
    help="Assign shared-room timetable slots to members",
    add_completion=False,
)
console = Console()


class OutputFormat(str, Enum):
    """Output format options."""

    json = "json"
    csv = "csv"
    excel = "excel"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


@app.command()
def schedule(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to the request JSON file", exists=True, readable=True),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Output file or directory path"),
    ] = None,
    format: Annotated[
        OutputFormat,
        typer.Option("-f", "--format", help="Output format"),
    ] = OutputFormat.json,
    config_file: Annotated[
        Optional[Path],
        typer.Option("-c", "--config", help="Engine config JSON (directions API key, cache)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Show detailed output"),
    ] = False,
) -> None:
    """Run the auto-scheduler on a request file."""
    _setup_logging(verbose)

    try:
        request = load_schedule_request(input_file)
        travel_service = None
        if request.settings.travel_enabled:
            travel_service = TravelTimeService.from_config(load_config(config_file))
        with console.status("[bold green]Scheduling..."):
            result = run_from_request(request, travel_service=travel_service)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _show_summary(result)

    if result.warnings:
        console.print(f"\n[bold yellow]Warnings ({len(result.warnings)}):[/bold yellow]")
        for warning in result.warnings:
            console.print(f"  [yellow]• {warning}[/yellow]")

    if output:
        exporter = get_exporter(format.value)

        if format == OutputFormat.csv:
            # CSV exports to directory
            output_path = output if output.is_dir() else output.parent / output.stem
        else:
            suffix = ".xlsx" if format == OutputFormat.excel else ".json"
            output_path = output if output.suffix else output.with_suffix(suffix)

        with console.status(f"[bold green]Exporting to {format.value}..."):
            exporter.export(result, output_path)

        console.print(f"\n[bold green]✓[/bold green] Exported to: {output_path}")
    elif verbose:
        _show_slots(result)


@app.command()
def validate(
    input_file: Annotated[
        Path,
        typer.Argument(help="Path to the request JSON file"),
    ],
) -> None:
    """Validate a request file without scheduling."""
    if not input_file.exists():
        console.print(f"[bold red]Error:[/bold red] File not found: {input_file}")
        raise typer.Exit(1)

    try:
        request = load_schedule_request(input_file)
        validate_request(request)
    except SchedulingError as e:
        console.print(f"[bold red]✗ Request is invalid:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"\n[bold]Validation Results for:[/bold] {input_file.name}")
    console.print("[bold green]✓ Request is valid[/bold green]")
    console.print(f"  Members: {len(request.members)}")
    console.print(f"  Week start: {request.week_start.isoformat()}")
    console.print(f"  Weeks: {request.settings.num_weeks}")
    mode = request.settings.transport_mode
    console.print(f"  Transport mode: {mode.value if mode else 'normal'}")


@app.command()
def stats(
    result_file: Annotated[
        Path,
        typer.Argument(help="Path to a result JSON file"),
    ],
) -> None:
    """Show statistics for a previously exported result."""
    if not result_file.exists():
        console.print(f"[bold red]Error:[/bold red] File not found: {result_file}")
        raise typer.Exit(1)

    try:
        result = load_schedule_result(result_file)
    except SchedulingError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    overview_table = Table(title="Overview", show_header=False)
    overview_table.add_column("Metric", style="cyan")
    overview_table.add_column("Value", style="green")
    slot_stats = result.timetable.stats()
    overview_table.add_row("Week start", result.week_start.isoformat() if result.week_start else "-")
    overview_table.add_row("Weeks", str(result.num_weeks))
    overview_table.add_row("Members", str(len(result.assignments)))
    overview_table.add_row("Slots", str(slot_stats["total_slots"]))
    overview_table.add_row("Assigned slots", str(slot_stats["assigned_slots"]))
    overview_table.add_row("Members short", str(len(result.unassigned_members_info)))
    overview_table.add_row("Needing intervention", str(len(result.members_needing_intervention)))
    console.print(overview_table)

    _show_summary(result)


def _show_summary(result: ScheduleResult) -> None:
    """Show per-member quota table."""
    table = Table(title="Assignments")
    table.add_column("Member", style="cyan")
    table.add_column("Assigned (h)", style="green")
    table.add_column("Required (h)", style="blue")
    table.add_column("Short (h)", style="red")
    table.add_column("Intervention", style="magenta")

    for member_id, a in result.assignments.items():
        table.add_row(
            member_id,
            f"{a.assigned_hours:g}",
            f"{a.required_slots / SLOTS_PER_HOUR:g}",
            f"{a.deficit_slots / SLOTS_PER_HOUR:g}" if a.deficit_slots else "",
            "yes" if a.needs_intervention else "",
        )

    console.print(table)


def _show_slots(result: ScheduleResult) -> None:
    """Show every assigned time range."""
    table = Table(title="Slots")
    table.add_column("Member", style="cyan")
    table.add_column("Date", style="blue")
    table.add_column("Day")
    table.add_column("Time", style="green")
    table.add_column("Subject", style="magenta")

    for member_id, a in result.assignments.items():
        for slot in sorted(a.slots, key=lambda s: s.sort_key):
            table.add_row(
                member_id,
                slot.date.isoformat(),
                slot.day,
                f"{slot.start_time}-{slot.end_time}",
                slot.subject,
            )

    console.print(table)


if __name__ == "__main__":
    app()
