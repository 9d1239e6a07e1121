"""
Reporting port for per-item sync outcomes.

The engine never decides how outcomes are shown; it calls a reporter.  The
default reporter writes log records, which the CLI renders through Rich.
"""

import logging
from typing import Protocol

from calsync1on1.dates import format_date
from calsync1on1.models import Event


class SyncReporter(Protocol):
    def progress(self, done: int, total: int) -> None: ...

    def created(self, title: str, meeting: Event) -> None: ...

    def updated(self, title: str, meeting: Event) -> None: ...

    def skipped(self, meeting: Event, reasons: list[str]) -> None: ...

    def deleted(self, mirror: Event) -> None: ...

    def failed(self, message: str) -> None: ...

    def no_identifier(self, meeting: Event) -> None: ...


def _series(event: Event) -> str:
    return " recurring series" if event.is_recurring else ""


def _when(event: Event) -> str:
    return ("starting " if event.is_recurring else "at ") + format_date(event.start)


class LoggingReporter:
    """SyncReporter that writes every outcome to a logger."""

    def __init__(self, logger: logging.Logger | None = None, dry_run: bool = False):
        self.logger = logger or logging.getLogger(__name__)
        self.dry_run = dry_run

    def progress(self, done: int, total: int) -> None:
        self.logger.info(f"Progress: {done}/{total} events processed ({done * 100 // total}%)")

    def created(self, title: str, meeting: Event) -> None:
        verb = "Would create" if self.dry_run else "Created"
        self.logger.info(f"{verb}{_series(meeting)}: '{title}' {_when(meeting)}")

    def updated(self, title: str, meeting: Event) -> None:
        verb = "Would update" if self.dry_run else "Updated"
        self.logger.info(f"{verb}{_series(meeting)}: '{title}' {_when(meeting)}")

    def skipped(self, meeting: Event, reasons: list[str]) -> None:
        self.logger.debug(f"Skipped '{meeting.title or 'Untitled'}': {', '.join(reasons)}")

    def deleted(self, mirror: Event) -> None:
        verb = "Would delete" if self.dry_run else "Deleted"
        self.logger.info(
            f"{verb} orphaned{_series(mirror)}: '{mirror.title or 'Untitled'}' {_when(mirror)}"
        )

    def failed(self, message: str) -> None:
        self.logger.error(message)

    def no_identifier(self, meeting: Event) -> None:
        self.logger.info(
            f"Event '{meeting.title or 'Untitled'}' has no identifier, creating new synced event"
        )
