"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters import build_store
from ..config import AppConfig, get_default_config_path
from ..domain.models import ServiceRequest
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="slotsearch",
    help="Find bookable time slots for a business's services",
    add_completion=False
)

console = Console()

DATE_FORMAT = "YYYY-MM-DD"
DATETIME_FORMAT = "YYYY-MM-DD HH:mm"

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
SnapshotOption = Annotated[
    Optional[Path],
    typer.Option("--snapshot", "-s", help="Read business data from this YAML/JSON snapshot."),
]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Pretend the current time is 'YYYY-MM-DD HH:mm' (business timezone)."),
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]
ServiceOption = Annotated[
    List[str],
    typer.Option("--service", help="Service ID, optionally with quantity: 12 or 12x2. Repeatable."),
]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the given config file, the default one if present, or defaults."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)
    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _configure_logging(config: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=False)],
        force=True,
    )


def _build_service(
    config_file: Optional[Path],
    snapshot: Optional[Path],
    verbose: bool,
) -> AvailabilityService:
    config = _load_config(config_file)
    _configure_logging(config, verbose)
    store = build_store(config, snapshot_path=snapshot)
    return AvailabilityService(store, config)


def parse_service_option(value: str) -> ServiceRequest:
    """
    Parse ``ID`` or ``IDxQTY`` into a ServiceRequest.

    Raises:
        typer.BadParameter: If the value is malformed
    """
    raw_id, _, raw_quantity = value.strip().lower().partition("x")
    try:
        service_id = int(raw_id)
        quantity = int(raw_quantity) if raw_quantity else 1
    except ValueError:
        raise typer.BadParameter(f"Invalid service '{value}'. Use ID or IDxQTY, e.g. 12x2.")
    if quantity < 1:
        raise typer.BadParameter(f"Quantity must be at least 1 in '{value}'.")
    return ServiceRequest(service_id=service_id, quantity=quantity)


def _parse_date(value: Optional[str], tz: str):
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, DATE_FORMAT, tz=tz).date()
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date '{value}', expected {DATE_FORMAT}: {e}")


def _parse_datetime(value: Optional[str], tz: str):
    if value is None:
        return None
    try:
        return pendulum.from_format(value, DATETIME_FORMAT, tz=tz)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid time '{value}', expected {DATETIME_FORMAT}: {e}")


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _slot_table(title: str, slots) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold yellow")
    table.add_column("End")
    table.add_column("Employees", justify="right")
    table.add_column("Owners", justify="right")
    for slot in slots:
        table.add_row(
            slot.start_time.format("ddd DD.MM. HH:mm"),
            slot.end_time.format("HH:mm"),
            str(slot.available_employee_count),
            str(slot.available_owner_count),
        )
    return table


@app.command()
def slots(
    slug: Annotated[str, typer.Argument(help="Business slug")],
    services: ServiceOption,
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day to search (YYYY-MM-DD). Defaults to today.")] = None,
    interval: Annotated[Optional[int], typer.Option("--interval", "-i", help="Slot step in minutes")] = None,
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    List every start time at which the requested services fit.

    Examples:
        slotsearch slots glow-salon --service 1 --date 2025-03-10
        slotsearch slots glow-salon --service 1x2 --service 4 -s snapshot.yaml
    """
    try:
        service = _build_service(config_file, snapshot, verbose)
        tz = asyncio.run(service.business_timezone(slug))
        requests = [parse_service_option(s) for s in services]
        day = _parse_date(date, tz)

        result = asyncio.run(service.search_slots(
            slug,
            day,
            requests,
            granularity_minutes=interval,
            now=_parse_datetime(now, tz),
        ))
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)

    console.print()
    if not result.slots:
        console.print(
            f"[yellow]⚠ No slots found for {day} ({result.reason.value}).[/yellow]\n"
            "Try another day or fewer services."
        )
    else:
        console.print(f"[bold green]✓ {len(result.slots)} slot(s) found:[/bold green]\n")
        console.print(_slot_table(f"{slug} on {day}", result.slots))
    console.print()


@app.command()
def summary(
    slug: Annotated[str, typer.Argument(help="Business slug")],
    category: Annotated[str, typer.Option("--category", help="Service category")] = "general",
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Day to check (YYYY-MM-DD). Defaults to today.")] = None,
    roster_only: Annotated[bool, typer.Option("--roster-only", help="Ignore attendance and count the roster.")] = False,
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Show whether a category can take bookings on a day.
    """
    try:
        service = _build_service(config_file, snapshot, verbose)
        tz = asyncio.run(service.business_timezone(slug))
        day = _parse_date(date, tz)
        result = asyncio.run(service.summarize_category(
            slug,
            day,
            category,
            enforce_attendance=not roster_only,
            now=_parse_datetime(now, tz),
        ))
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)

    hours = "closed"
    if result.business_hours is not None and not result.business_hours.is_closed:
        hours = f"{result.business_hours.open_time} - {result.business_hours.close_time}"

    console.print(Panel.fit(
        f"[bold]Hours:[/bold] {hours}\n"
        f"[bold]Has hours:[/bold] {'yes' if result.has_hours else 'no'}\n"
        f"[bold]Hours passed:[/bold] {'yes' if result.hours_already_passed else 'no'}\n"
        f"[bold]Available providers:[/bold] {result.qualified_available_provider_count} "
        f"({result.source.value.lower()})\n"
        f"[bold]Owner available:[/bold] {'yes' if result.owner_available else 'no'}",
        title=f"{slug} / {category} on {day}",
    ))


@app.command()
def providers(
    slug: Annotated[str, typer.Argument(help="Business slug")],
    start: Annotated[str, typer.Option("--start", help="Window start (YYYY-MM-DD HH:mm)")],
    end: Annotated[str, typer.Option("--end", help="Window end (YYYY-MM-DD HH:mm)")],
    categories: Annotated[Optional[List[str]], typer.Option("--category", help="Service category. Repeatable.")] = None,
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    List qualified employees and whether each is free for a window.
    """
    try:
        service = _build_service(config_file, snapshot, verbose)
        tz = asyncio.run(service.business_timezone(slug))
        listing = asyncio.run(service.list_available_providers(
            slug,
            _parse_datetime(start, tz),
            _parse_datetime(end, tz),
            categories or [],
            now=_parse_datetime(now, tz),
        ))
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)

    if not listing:
        console.print("[yellow]No qualified employees for this window.[/yellow]")
        return

    table = Table(title=f"Employees for {start} - {end}", show_header=True, header_style="bold cyan")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="bold yellow")
    table.add_column("Specialties", style="dim")
    table.add_column("Available")
    for provider in listing:
        table.add_row(
            str(provider.id),
            provider.name,
            ", ".join(provider.specialties) or "all",
            "[green]yes[/green]" if provider.available else "[red]no[/red]",
        )
    console.print()
    console.print(table)
    console.print()


@app.command()
def alternatives(
    slug: Annotated[str, typer.Argument(help="Business slug")],
    at: Annotated[str, typer.Option("--at", help="Requested start (YYYY-MM-DD HH:mm)")],
    services: ServiceOption,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum number of slots")] = 6,
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Suggest the next slots after a requested start time.
    """
    try:
        service = _build_service(config_file, snapshot, verbose)
        tz = asyncio.run(service.business_timezone(slug))
        requests = [parse_service_option(s) for s in services]
        found = asyncio.run(service.list_alternative_slots(
            slug,
            _parse_datetime(at, tz),
            requests,
            limit,
            now=_parse_datetime(now, tz),
        ))
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)

    if not found:
        console.print("[yellow]⚠ No alternative slots found.[/yellow]")
        return
    console.print()
    console.print(_slot_table(f"Alternatives after {at}", found))
    console.print()


@app.command()
def check(
    slug: Annotated[str, typer.Argument(help="Business slug")],
    at: Annotated[str, typer.Option("--at", help="Chosen start (YYYY-MM-DD HH:mm)")],
    services: ServiceOption,
    config_file: ConfigOption = None,
    snapshot: SnapshotOption = None,
    now: NowOption = None,
    verbose: VerboseOption = False,
):
    """
    Check whether a chosen start time can still be booked.
    """
    try:
        service = _build_service(config_file, snapshot, verbose)
        tz = asyncio.run(service.business_timezone(slug))
        requests = [parse_service_option(s) for s in services]
        outcome = asyncio.run(service.validate_start_time(
            slug,
            _parse_datetime(at, tz),
            requests,
            now=_parse_datetime(now, tz),
        ))
    except typer.BadParameter:
        raise
    except Exception as e:
        _fail(e)

    if outcome.ok:
        console.print(f"[bold green]✓ {at} is available.[/bold green]")
        return

    console.print(f"[bold red]✗ {at} cannot be booked:[/bold red] {outcome.code}")
    if outcome.alternatives:
        console.print(_slot_table("Alternatives", outcome.alternatives))
    raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotsearch[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
