"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.firestore_repository import FirestoreShowingRepository
from ..adapters.json_repository import JsonShowingRepository
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ShowingSlotsError
from ..domain.grouping import group_slots_by_part_of_day
from ..domain.models import CandidateSlot
from ..domain.timezones import get_long_timezone_name, get_short_timezone_name, get_timezone_for_state
from ..services.showing_scheduler import ShowingSchedulerService

app = typer.Typer(
    name="showingslots",
    help="Generate bookable showing slots from an agent's working hours",
    add_completion=False
)

console = Console()


def _load_config(config_file: Optional[Path]) -> Tuple[AppConfig, Path]:
    """Load the YAML config, falling back to defaults when none exists."""
    config_path = config_file or get_default_config_path()
    if config_file is None and not config_path.exists():
        return AppConfig(), config_path
    return AppConfig.load_from_yaml(config_path), config_path


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_service(
    config: AppConfig,
    config_path: Path,
    data_file: Optional[Path],
    now: Optional[str],
    property_id: str,
):
    """
    Wire the repository and clock selected by config and options.

    A --now value without an offset is read in the property's timezone.
    """
    if data_file is None and config.firestore is not None:
        repository = FirestoreShowingRepository(
            project_id=config.firestore.project_id,
            access_token=config.firestore.get_access_token(),
            database=config.firestore.database,
        )
    else:
        repository = JsonShowingRepository(data_file or config.resolve_data_file(config_path))

    clock = None
    if now:
        zone = repository.get_property(property_id).timezone
        try:
            fixed = pendulum.parse(now, tz=zone)
        except ValueError as e:
            console.print(f"[red]Error parsing --now: {e}[/red]")
            raise typer.Exit(1)
        if not isinstance(fixed, pendulum.DateTime):
            console.print(f"[red]--now must include a time of day: {now}[/red]")
            raise typer.Exit(1)
        clock = lambda: fixed  # noqa: E731

    return ShowingSchedulerService(repository=repository, clock=clock)


def _format_slots(slots: List[CandidateSlot], available_only: bool) -> str:
    parts = []
    for slot in slots:
        if slot.available:
            parts.append(slot.display_time)
        elif not available_only:
            parts.append(f"[dim strike]{slot.display_time}[/dim strike]")
    return ", ".join(parts) or "-"


@app.command()
def slots(
    property_id: Annotated[str, typer.Argument(help="Property id")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", help="JSON data file (overrides config)")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Evaluate as of this ISO 8601 instant (no offset: property timezone)")] = None,
    days: Annotated[Optional[int], typer.Option("--days", "-d", help="Override the agent's booking window")] = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Only show this date (YYYY-MM-DD)")] = None,
    exclude: Annotated[Optional[str], typer.Option("--exclude", help="Showing id to ignore (rescheduling)")] = None,
    available_only: Annotated[bool, typer.Option("--available-only", help="Hide booked and past slots")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
):
    """
    Show the slots a client could book for a property.

    Examples:

        showingslots slots prop-1 --data showings.json

        showingslots slots prop-1 --now 2024-12-23T08:00 --days 7 --available-only
    """
    try:
        config, config_path = _load_config(config_file)
        _configure_logging("DEBUG" if verbose else config.log_level)

        service = _build_service(config, config_path, data_file, now, property_id)
        groups = service.available_slots(property_id, exclude_booking_id=exclude, days_ahead=days)

        if date:
            groups = [group for group in groups if group.date_key == date]

        if not groups:
            console.print("[yellow]⚠ No showing slots in the booking window.[/yellow]")
            return

        first_slot = groups[0].slots[0].start
        zone = first_slot.timezone_name
        table = Table(
            title=f"Showing slots for {property_id} ({get_short_timezone_name(zone, first_slot)})",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Date", style="bold yellow", no_wrap=True)
        table.add_column("Morning")
        table.add_column("Afternoon")
        table.add_column("Evening")

        total_available = 0
        for group in groups:
            parts = group_slots_by_part_of_day(group.slots)
            total_available += len(group.available_slots)
            table.add_row(
                group.date_label,
                _format_slots(parts.morning, available_only),
                _format_slots(parts.afternoon, available_only),
                _format_slots(parts.evening, available_only),
            )

        console.print()
        console.print(table)
        console.print(f"\n[bold green]✓ {total_available} available slot(s)[/bold green]\n")

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except ShowingSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def week_count(
    property_id: Annotated[str, typer.Argument(help="Property id")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file")] = None,
    data_file: Annotated[Optional[Path], typer.Option("--data", help="JSON data file (overrides config)")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Evaluate as of this ISO 8601 instant (no offset: property timezone)")] = None,
):
    """
    Count showings booked in the current Sunday-to-Saturday week.
    """
    try:
        config, config_path = _load_config(config_file)
        _configure_logging(config.log_level)

        service = _build_service(config, config_path, data_file, now, property_id)
        count = service.bookings_this_week(property_id)
        console.print(f"[bold]{count}[/bold] showing(s) this week for {property_id}")

    except (FileNotFoundError, ShowingSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def timezone(
    state: Annotated[str, typer.Argument(help="Two-letter US state code")],
):
    """
    Show the timezone used for properties in a US state.
    """
    zone = get_timezone_for_state(state)
    console.print(
        f"[bold]{state.upper()}[/bold] → {zone} "
        f"({get_short_timezone_name(zone)}, {get_long_timezone_name(zone)})"
    )


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]showingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
