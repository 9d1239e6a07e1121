"""
Preflight checks run before sync to catch common misconfigurations early.
"""

import logging

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from calsync1on1.models import CalendarSyncError
from calsync1on1.models import SyncConfig

logger = logging.getLogger(__name__)

_OFFLINE_KEYWORDS = frozenset(
    {
        "offline",
        "network",
        "transport",
        "unreachable",
        "not connected",
        "no route",
        "authentication failed",
        "connection refused",
        "temporary failure",
    }
)


def collect_issues(cfg: SyncConfig, store) -> list[tuple[str, str, str]]:
    """Return ``(label, detail, hint)`` for every problem found."""
    issues: list[tuple[str, str, str]] = []

    # 1. Calendar store reachable
    if not store.request_access():
        issues.append(
            (
                "Calendar access",
                "Evolution Data Server registry unreachable",
                "Is evolution-data-server running?",
            )
        )
        return issues

    # 2. Both calendars exist
    found = {}
    for role, name, account in (
        ("Source", cfg.source_calendar, cfg.source_account),
        ("Destination", cfg.destination_calendar, cfg.destination_account),
    ):
        calendar = store.find_calendar_by_name(name, account)
        if calendar is None:
            where = f" in account '{account}'" if account else ""
            logger.error(f"{role} calendar not found: {name}{where}")
            issues.append(
                (
                    f"{role} calendar",
                    f"'{name}' not found{where}",
                    "Run: calsync1on1 calendars",
                )
            )
            continue
        found[role] = calendar

    source = found.get("Source")
    destination = found.get("Destination")
    if source and destination and source.uid == destination.uid:
        issues.append(
            (
                "Calendars",
                f"source and destination are the same calendar ('{source.name}')",
                "Choose a different destination calendar",
            )
        )
        return issues

    # 3. Destination connectable and writable
    if destination is not None:
        try:
            writable = store.is_writable(destination)
        except CalendarSyncError as e:
            msg = str(e)
            logger.error(f"Cannot connect to destination calendar: {msg}")
            if any(kw in msg.lower() for kw in _OFFLINE_KEYWORDS):
                account = destination.account
                if account:
                    hint = f"Account '{account}' appears offline, check GNOME Online Accounts"
                else:
                    hint = "Calendar appears offline, check GNOME Online Accounts"
            else:
                hint = msg
            issues.append(("Destination calendar", f"Connection failed: {msg}", hint))
        else:
            if not writable:
                issues.append(
                    (
                        "Destination calendar",
                        f"'{destination.name}' is read-only",
                        "Choose a writable calendar with --destination",
                    )
                )

    return issues


def run_preflight_checks(cfg: SyncConfig, store, console: Console) -> bool:
    """Return True if sync may proceed; print issues and return False otherwise."""
    issues = collect_issues(cfg, store)
    if issues:
        _print_issues(issues, console)
        return False
    return True


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
