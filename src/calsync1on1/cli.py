"""
Command-line interface for calsync1on1.
"""

import logging
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from calsync1on1.config import DEFAULT_CONFIG
from calsync1on1.config import build_config
from calsync1on1.config import load_config_file
from calsync1on1.config import write_default_config
from calsync1on1.dates import sync_window
from calsync1on1.models import CalendarSyncError
from calsync1on1.models import SyncConfig
from calsync1on1.models import SyncResult
from calsync1on1.sync import CalendarSynchronizer

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Mirror 1:1 meetings from a work calendar into a personal calendar via EDS.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_path: Path = field(default_factory=lambda: DEFAULT_CONFIG)
    verbose: bool = False


state = _State()


@app.callback()
def _global(
    config: Annotated[
        Path,
        typer.Option("--config", "-c", help=f"Config file path (default: {DEFAULT_CONFIG})"),
    ] = DEFAULT_CONFIG,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_path = config
    state.verbose = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _make_store():
    """Return the calendar store; gi is only imported when a command needs EDS."""
    from calsync1on1.eds_client import EDSCalendarStore

    return EDSCalendarStore()


def _build_config(**overrides) -> SyncConfig:
    try:
        return build_config(
            load_config_file(state.config_path),
            verbose=state.verbose,
            **overrides,
        )
    except CalendarSyncError as e:
        console.print(f"[bold red]Configuration error:[/] {e}")
        raise typer.Exit(1) from None


def _print_results(result: SyncResult, dry_run: bool) -> None:
    results = Table.grid(padding=(0, 2))
    results.add_column(style="bold")
    results.add_column(justify="right")
    results.add_row("Created", str(result.created))
    results.add_row("Updated", str(result.updated))
    results.add_row("Deleted", str(result.deleted))
    results.add_row("Skipped", str(result.skipped))
    error_val = Text(str(len(result.errors)))
    if not result.errors:
        error_val.append(" ✓", style="green")
    else:
        error_val.stylize("bold red")
    results.add_row("Errors", error_val)

    title = "[bold]Results (dry run)[/bold]" if dry_run else "[bold]Results[/bold]"
    console.print(Panel(results, title=title, expand=False))

    for message in result.errors:
        console.print(f"  [red]✗[/] {message}")


def _run_sync(cfg: SyncConfig) -> None:
    """Core sync runner: preflight, display panel, confirm, run, show results."""
    from calsync1on1.preflight import run_preflight_checks

    store = _make_store()
    if not run_preflight_checks(cfg, store, console):
        raise typer.Exit(1)

    start, end = sync_window(None, cfg.weeks, cfg.start_offset)

    def _calendar_display(name: str, account: str | None) -> str:
        return name + (f" ({account})" if account else "")

    # -- Info panel ----------------------------------------------------------
    info = Text()
    info.append("  Source:      ", style="bold")
    info.append(f"{_calendar_display(cfg.source_calendar, cfg.source_account)}\n")
    info.append("  Destination: ", style="bold")
    info.append(f"{_calendar_display(cfg.destination_calendar, cfg.destination_account)}\n")
    info.append("  Owner:       ", style="bold")
    if cfg.owner:
        info.append(f"{cfg.owner}\n")
    else:
        info.append("source account name\n", style="dim")
    info.append("  Window:      ", style="bold")
    info.append(f"{start:%Y-%m-%d} → {end:%Y-%m-%d} ({cfg.weeks} weeks)\n")
    info.append("  Title:       ", style="bold")
    info.append(cfg.title_template)
    if cfg.dry_run:
        info.append("\n  Mode:        ")
        info.append("DRY RUN", style="bold magenta")

    console.print(Panel(info, title="[bold]1:1 Calendar Sync[/bold]"))

    # -- Confirmation --------------------------------------------------------
    if not cfg.yes and not cfg.dry_run:
        typer.confirm("Proceed?", abort=True)

    # -- Run -----------------------------------------------------------------
    try:
        result = CalendarSynchronizer(cfg, store=store).run()
    except CalendarSyncError as e:
        console.print(f"[bold red]Sync failed:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e

    _print_results(result, cfg.dry_run)

    if result.has_errors:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Subcommand: sync
# ---------------------------------------------------------------------------

_SOURCE_OPT = Annotated[
    str | None,
    typer.Option("--source", "-s", help="Source calendar display name (overrides config)"),
]
_DEST_OPT = Annotated[
    str | None,
    typer.Option("--destination", "-d", help="Destination calendar display name (overrides config)"),
]
_OWNER_OPT = Annotated[
    str | None,
    typer.Option("--owner", help="Your email address as seen in invitations (overrides config)"),
]
_DRY_RUN = Annotated[bool, typer.Option("--dry-run", "-n", help="Preview changes without applying")]
_YES = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")]


@app.command()
def sync(
    source: _SOURCE_OPT = None,
    destination: _DEST_OPT = None,
    owner: _OWNER_OPT = None,
    dry_run: _DRY_RUN = False,
    yes: _YES = False,
) -> None:
    """Mirror 1:1 meetings from the source calendar into the destination calendar."""
    _run_sync(
        _build_config(
            source_calendar=source,
            destination_calendar=destination,
            owner=owner,
            dry_run=dry_run,
            yes=yes,
        )
    )


# ---------------------------------------------------------------------------
# Subcommand: calendars
# ---------------------------------------------------------------------------


@app.command()
def calendars() -> None:
    """List all configured EDS calendars."""
    from calsync1on1.debug import list_calendars as _list_calendars

    store = _make_store()
    if not store.request_access():
        console.print("[bold red]Error:[/] Evolution Data Server is not reachable")
        raise typer.Exit(1)
    _list_calendars(store, console)


# ---------------------------------------------------------------------------
# Subcommand: analyze
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    source: _SOURCE_OPT = None,
    owner: _OWNER_OPT = None,
) -> None:
    """Explain, event by event, which meetings a sync would mirror and why."""
    from calsync1on1.debug import analyze_events
    from calsync1on1.debug import diagnose

    cfg = _build_config(source_calendar=source, owner=owner)
    store = _make_store()
    if not store.request_access():
        console.print("[bold red]Error:[/] Evolution Data Server is not reachable")
        raise typer.Exit(1)

    try:
        calendar = store.find_calendar_by_name(cfg.source_calendar, cfg.source_account)
        if calendar is None:
            console.print(f"[bold red]Error:[/] Source calendar '{cfg.source_calendar}' not found")
            raise typer.Exit(1)
        if not cfg.owner:
            cfg.owner = store.account_name(calendar)
        start, end = sync_window(None, cfg.weeks, cfg.start_offset)
        meetings = store.fetch_events(calendar, start, end)
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None

    console.print(
        f"[bold]{calendar.name}[/]: {len(meetings)} events "
        f"[dim]({start:%Y-%m-%d} → {end:%Y-%m-%d})[/dim]"
    )
    analyze_events(meetings, cfg, console)
    diagnose(meetings, cfg, console)


# ---------------------------------------------------------------------------
# Subcommand: init
# ---------------------------------------------------------------------------


@app.command()
def init(
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing config file")] = False,
) -> None:
    """Write a default configuration file."""
    try:
        path = write_default_config(state.config_path, force=force)
    except CalendarSyncError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    except OSError as e:
        console.print(f"[bold red]Error:[/] Cannot write {state.config_path}: {e}")
        raise typer.Exit(1) from None

    console.print(f"[green]✓[/] Wrote default configuration to [cyan]{path}[/]")
    console.print("  Edit it, then run [cyan]calsync1on1 calendars[/] to check calendar names.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
