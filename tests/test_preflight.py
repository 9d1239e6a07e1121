"""
Tests for the preflight checks.
"""

import io

from rich.console import Console

from calsync1on1.models import CalendarSyncError
from calsync1on1.preflight import collect_issues
from calsync1on1.preflight import run_preflight_checks
from tests.conftest import DEST_CAL
from tests.conftest import SOURCE_CAL
from tests.fake_store import FakeStore


def _store() -> FakeStore:
    return FakeStore([SOURCE_CAL, DEST_CAL])


def test_healthy_setup_passes(sync_config):
    assert collect_issues(sync_config, _store()) == []


def test_unreachable_store_stops_early(sync_config):
    store = _store()
    store.access = False

    issues = collect_issues(sync_config, store)

    assert [label for label, _, _ in issues] == ["Calendar access"]


def test_missing_calendars_are_both_reported(sync_config):
    sync_config.source_calendar = "Work"
    sync_config.destination_calendar = "Home"

    issues = collect_issues(sync_config, _store())

    assert [label for label, _, _ in issues] == ["Source calendar", "Destination calendar"]
    assert issues[0][2] == "Run: calsync1on1 calendars"


def test_same_source_and_destination_is_rejected(sync_config):
    sync_config.destination_calendar = SOURCE_CAL.name

    issues = collect_issues(sync_config, _store())

    assert issues[0][0] == "Calendars"


def test_read_only_destination_is_rejected(sync_config):
    store = _store()
    store.readonly.add(DEST_CAL.uid)

    issues = collect_issues(sync_config, store)

    assert issues == [
        (
            "Destination calendar",
            f"'{DEST_CAL.name}' is read-only",
            "Choose a writable calendar with --destination",
        )
    ]


def test_offline_destination_gets_account_hint(sync_config):
    store = _store()

    def _offline(calendar):
        raise CalendarSyncError("Failed to connect: Network is unreachable")

    store.is_writable = _offline

    issues = collect_issues(sync_config, store)

    assert issues[0][2].startswith(f"Account '{DEST_CAL.account}' appears offline")


def test_issues_are_printed_in_a_panel(sync_config):
    buf = io.StringIO()
    console = Console(file=buf, width=120, color_system=None)
    store = _store()
    store.access = False

    assert run_preflight_checks(sync_config, store, console) is False
    assert "Preflight checks failed" in buf.getvalue()
