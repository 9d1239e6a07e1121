"""
Pure data models, no EDS imports.
"""

import enum
from dataclasses import dataclass
from dataclasses import field
from datetime import datetime

DEFAULT_TITLE_TEMPLATE = "1:1 with {{otherPerson}}"
PERSON_PLACEHOLDER = "{{otherPerson}}"
UNKNOWN_PERSON = "Unknown"


class CalendarSyncError(Exception):
    """Base exception for calendar sync errors."""

    pass


class PermissionDeniedError(CalendarSyncError):
    """Calendar access was refused before the sync could start."""


class CalendarNotFoundError(CalendarSyncError):
    """A configured calendar does not exist in the calendar store."""


class ConfigError(CalendarSyncError):
    """The configuration file or command-line overrides are invalid."""


class Span(enum.Enum):
    """How far a write or delete reaches into a recurring series."""

    SINGLE = "single"
    THIS_AND_FUTURE = "this-and-future"


@dataclass
class Participant:
    """A meeting attendee as seen by the classifier."""

    uri: str
    name: str | None = None

    @property
    def identifier(self) -> str:
        """The attendee address with any ``mailto:`` scheme stripped."""
        if self.uri[:7].lower() == "mailto:":
            return self.uri[7:]
        return self.uri


@dataclass
class Event:
    """A calendar appointment, either a source meeting or one of our mirrors."""

    uid: str | None
    title: str | None
    start: datetime
    end: datetime
    all_day: bool = False
    participants: list[Participant] = field(default_factory=list)
    recurrence_rule: str | None = None
    notes: str | None = None
    calendar_uid: str | None = None

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_rule)


# Source meetings are read-only; mirrors live in the destination calendar and
# carry a LinkRecord in their notes.  Both are plain Events.
SourceMeeting = Event
MirroredEvent = Event


@dataclass(frozen=True)
class LinkRecord:
    """Back-reference from a mirror to the source meeting it was created from."""

    source_event_id: str
    version: int = 1


@dataclass(frozen=True)
class CalendarInfo:
    """A calendar as listed by the calendar store."""

    uid: str
    name: str
    account: str = ""
    writable: bool | None = None


@dataclass(frozen=True)
class InstanceException:
    """A single overridden occurrence of a recurring series.

    Never produced yet: recurring 1:1s are synced as whole series.
    """

    original_start: datetime
    override: Event


@dataclass
class SeriesAnalysis:
    """Recurrence classification of a representative meeting instance."""

    is_recurring: bool
    is_one_on_one_series: bool
    recurrence_rule: str | None
    should_sync_as_series: bool
    exceptions: list[InstanceException] = field(default_factory=list)


@dataclass
class SyncConfig:
    """Configuration for a sync run."""

    source_calendar: str = "Calendar"
    destination_calendar: str = "Personal"
    source_account: str | None = None
    destination_account: str | None = None
    owner: str | None = None
    title_template: str = DEFAULT_TITLE_TEMPLATE
    exclude_all_day: bool = True
    exclude_keywords: list[str] = field(default_factory=lambda: ["standup", "all-hands"])
    weeks: int = 2
    start_offset: int = 0
    lookback_weeks: int = 1  # link lookup / cleanup window
    lookahead_months: int = 1
    dry_run: bool = False
    verbose: bool = False
    yes: bool = False  # Auto-confirm without prompting

    def render_title(self, other_person: str) -> str:
        return self.title_template.replace(PERSON_PLACEHOLDER, other_person)


@dataclass
class SyncResult:
    """Aggregate outcome of one sync batch."""

    created: int = 0
    updated: int = 0
    deleted: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def total(self) -> int:
        return self.created + self.updated + self.deleted + self.skipped
