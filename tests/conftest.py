"""
Shared pytest fixtures and event factories.
"""

import logging
from datetime import datetime
from datetime import timedelta
from datetime import timezone

import pytest

from calsync1on1.models import CalendarInfo
from calsync1on1.models import Event
from calsync1on1.models import Participant
from calsync1on1.models import SyncConfig
from calsync1on1.models import SyncResult

OWNER = "jordan.owner@work.com"

SOURCE_CAL = CalendarInfo(uid="source-calendar-test", name="Calendar", account=OWNER)
DEST_CAL = CalendarInfo(uid="personal-calendar-test", name="Personal", account="Personal")

# Wednesday; every window in the tests is computed relative to this instant.
NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def make_meeting(
    uid: str | None = "M1",
    title: str = "Weekly sync",
    attendees=(OWNER, "alice@work.com"),
    start: datetime | None = None,
    minutes: int = 30,
    all_day: bool = False,
    rrule: str | None = None,
    notes: str | None = None,
    calendar_uid: str = SOURCE_CAL.uid,
) -> Event:
    """Return a source meeting.

    ``attendees`` items are either plain addresses or ``(address, name)``
    pairs; addresses are stored with a ``mailto:`` scheme as EDS reports them.
    """
    participants = []
    for attendee in attendees:
        if isinstance(attendee, tuple):
            address, name = attendee
        else:
            address, name = attendee, None
        participants.append(Participant(uri=f"mailto:{address}", name=name))

    start = start or NOW.replace(hour=10, minute=0) + timedelta(days=1)
    return Event(
        uid=uid,
        title=title,
        start=start,
        end=start + timedelta(minutes=minutes),
        all_day=all_day,
        participants=participants,
        recurrence_rule=rrule,
        notes=notes,
        calendar_uid=calendar_uid,
    )


@pytest.fixture
def sync_config():
    return SyncConfig(owner=OWNER)


@pytest.fixture
def sync_result():
    return SyncResult()


@pytest.fixture
def sync_logger():
    return logging.getLogger("test_sync")
