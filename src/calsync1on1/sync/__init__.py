"""
CalendarSynchronizer: thin orchestrator around the sync engine.
"""

import logging
from datetime import datetime

from calsync1on1.dates import sync_window
from calsync1on1.models import CalendarNotFoundError
from calsync1on1.models import PermissionDeniedError
from calsync1on1.models import SyncConfig
from calsync1on1.models import SyncResult
from calsync1on1.reporting import LoggingReporter
from calsync1on1.reporting import SyncReporter
from calsync1on1.sync.engine import run_sync


class CalendarSynchronizer:
    """Main synchronization entry point."""

    def __init__(self, config: SyncConfig, store=None, reporter: SyncReporter | None = None):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.result = SyncResult()
        self.store = store
        self.reporter = reporter or LoggingReporter(dry_run=config.dry_run)

    def _find_calendar(self, name: str, account: str | None, label: str):
        calendar = self.store.find_calendar_by_name(name, account)
        if calendar is None:
            where = f" in account '{account}'" if account else ""
            raise CalendarNotFoundError(f"{label} calendar '{name}' not found{where}")
        return calendar

    def run(self, now: datetime | None = None) -> SyncResult:
        """Execute the synchronization process."""
        if self.store is None:
            from calsync1on1.eds_client import EDSCalendarStore

            self.logger.info("Connecting to Evolution Data Server...")
            self.store = EDSCalendarStore()

        if not self.store.request_access():
            raise PermissionDeniedError("Calendar access denied")

        source = self._find_calendar(
            self.config.source_calendar, self.config.source_account, "Source"
        )
        destination = self._find_calendar(
            self.config.destination_calendar, self.config.destination_account, "Destination"
        )

        # Config-file / CLI owner takes precedence over the account name.
        if not self.config.owner:
            detected = self.store.account_name(source)
            if detected:
                self.logger.debug(f"Using source account name as owner: {detected}")
            self.config.owner = detected

        start, end = sync_window(now, self.config.weeks, self.config.start_offset)
        self.logger.info(
            f"Syncing '{source.name}' → '{destination.name}' "
            f"({start:%Y-%m-%d} to {end:%Y-%m-%d})"
        )
        meetings = self.store.fetch_events(source, start, end)
        self.logger.info(f"Found {len(meetings)} events in source calendar")

        return run_sync(
            self.config,
            self.result,
            self.reporter,
            self.store,
            destination,
            meetings,
            now=now,
        )
