"""
Inspect tools: calendar listing and a per-event 1:1 analysis.

Importable functions:
  list_calendars(store, console): render a Rich table of all calendars
  analyze_events(meetings, config, console): explain what a sync would do with each event
  diagnose(meetings, config, console): hints when nothing would be synced
"""

from dataclasses import dataclass

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from calsync1on1.analyzer import describe_matching
from calsync1on1.analyzer import is_one_on_one
from calsync1on1.analyzer import name_from_identifier
from calsync1on1.analyzer import other_person_name
from calsync1on1.analyzer import owner_variants
from calsync1on1.dates import format_date
from calsync1on1.filters import check_filters
from calsync1on1.models import CalendarSyncError
from calsync1on1.models import Event
from calsync1on1.models import SyncConfig

MAX_ATTENDEES_SHOWN = 5


@dataclass
class EventStats:
    total: int = 0
    all_day: int = 0
    with_participants: int = 0
    two_participants: int = 0
    recurring: int = 0
    passing_filters: int = 0
    one_on_one: int = 0


def _percent(count: int, total: int) -> str:
    if not total:
        return "0%"
    return f"{count * 100 / total:.0f}%"


def list_calendars(store, console: Console) -> None:
    """Render all configured calendars as a Rich table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Display Name", style="bold")
    table.add_column("Account")
    table.add_column("Mode")
    table.add_column("UID", style="dim")

    for calendar in store.list_calendars():
        try:
            writable = store.is_writable(calendar)
            mode = "Read-write" if writable else "Read-only"
            mode_style = "green" if writable else "yellow"
        except CalendarSyncError:
            mode = "Unknown"
            mode_style = "red"

        table.add_row(calendar.name, calendar.account, Text(mode, style=mode_style), calendar.uid)

    console.print(table)


def event_stats(meetings: list[Event], config: SyncConfig) -> EventStats:
    owner = config.owner or ""
    stats = EventStats(total=len(meetings))
    for meeting in meetings:
        stats.all_day += meeting.all_day
        stats.with_participants += bool(meeting.participants)
        stats.two_participants += len(meeting.participants) == 2
        stats.recurring += meeting.is_recurring
        passes, _ = check_filters(meeting, config)
        if passes:
            stats.passing_filters += 1
            stats.one_on_one += is_one_on_one(meeting, owner)
    return stats


def _event_panel(index: int, meeting: Event, config: SyncConfig) -> Panel:
    owner = config.owner or ""
    lines = Text()

    def row(label: str, value, style: str = "") -> None:
        lines.append(f"  {label:<13}: ", style="bold cyan")
        lines.append(f"{value}\n", style=style)

    row("When", f"{format_date(meeting.start)} - {format_date(meeting.end)}")
    row("All-day", meeting.all_day)
    if meeting.is_recurring:
        row("RRULE", meeting.recurrence_rule)
    row("Participants", len(meeting.participants))
    for i, participant in enumerate(meeting.participants[:MAX_ATTENDEES_SHOWN], 1):
        name = participant.name or name_from_identifier(participant.identifier)
        lines.append(f"    [{i}] {name} <{participant.identifier}>\n")
    hidden = len(meeting.participants) - MAX_ATTENDEES_SHOWN
    if hidden > 0:
        lines.append(f"    ... and {hidden} more\n", style="dim")

    passes, reasons = check_filters(meeting, config)
    row("Filters", "pass" if passes else f"fail ({', '.join(reasons)})",
        "green" if passes else "yellow")

    if len(meeting.participants) == 2 and not meeting.all_day:
        for line in describe_matching(meeting, owner):
            lines.append(f"    {line}\n", style="dim")
        if is_one_on_one(meeting, owner):
            title = config.render_title(other_person_name(meeting, owner))
            row("1:1", f"yes → '{title}'", "bold green")
        else:
            row("1:1", "no (owner not among participants)", "yellow")
    else:
        row("1:1", f"skipped ({len(meeting.participants)} participants, "
                   f"all-day: {meeting.all_day})", "dim")

    title = meeting.title or "Untitled"
    return Panel(lines, title=f"[bold]{index}. {title}[/bold]", expand=False)


def analyze_events(meetings: list[Event], config: SyncConfig, console: Console) -> EventStats:
    """Print a panel per event and a statistics table; return the statistics."""
    console.print(
        f"[bold]Owner patterns:[/] {', '.join(owner_variants(config.owner or '')) or '(none)'}"
    )
    for index, meeting in enumerate(meetings, 1):
        console.print(_event_panel(index, meeting, config))

    stats = event_stats(meetings, config)
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(justify="right")
    table.add_column(justify="right", style="dim")
    table.add_row("Events", str(stats.total), "")
    for label, count in (
        ("All-day", stats.all_day),
        ("With participants", stats.with_participants),
        ("Exactly 2 participants", stats.two_participants),
        ("Recurring", stats.recurring),
        ("Pass filters", stats.passing_filters),
        ("1:1 meetings", stats.one_on_one),
    ):
        table.add_row(label, str(count), _percent(count, stats.total))
    console.print(Panel(table, title="[bold]Statistics[/bold]", expand=False))
    return stats


def diagnose(meetings: list[Event], config: SyncConfig, console: Console) -> list[str]:
    """Print (and return) hints explaining why no 1:1 meetings would be synced."""
    hints: list[str] = []
    stats = event_stats(meetings, config)

    if stats.total == 0:
        hints.append("No events found in the sync window.")
        hints.append(f"Verify the source calendar: '{config.source_calendar}'")
        hints.append(f"Expand the sync window beyond {config.weeks} weeks")
    elif stats.one_on_one == 0:
        if stats.passing_filters == 0:
            hints.append("All events were filtered out.")
        else:
            hints.append(
                f"{stats.passing_filters} events passed filters but none detected as 1:1."
            )
            owner = config.owner or ""
            if "@" not in owner:
                hints.append(
                    f"Owner '{owner}' doesn't look like an email address; "
                    f"set owner_email in the configuration."
                )

    if hints:
        body = Text("\n".join(f"  • {hint}" for hint in hints), style="yellow")
        console.print(Panel(body, title="[bold yellow]Diagnostics[/bold yellow]", expand=False))
    return hints
