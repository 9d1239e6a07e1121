"""
Evolution Data Server calendar store.

Wraps ECal/EDataServer/ICalGLib behind the plain models in ``models`` so the
sync core never touches gi objects.
"""

import logging
import uuid
from datetime import datetime
from datetime import timezone
from typing import Optional

import gi
gi.require_version('EDataServer', '1.2')
gi.require_version('ECal', '2.0')
gi.require_version('ICalGLib', '3.0')
from gi.repository import EDataServer, ECal, ICalGLib, GLib

from .models import CalendarInfo
from .models import CalendarSyncError
from .models import Event
from .models import Participant
from .models import Span

logger = logging.getLogger(__name__)

# Mirrors and source meetings are always series masters (detached instances
# are dropped on fetch), so "this and future" on a master is the whole series.
_MOD_TYPES = {
    Span.SINGLE: ECal.ObjModType.THIS,
    Span.THIS_AND_FUTURE: ECal.ObjModType.ALL,
}


def parse_component(obj) -> Optional[ICalGLib.Component]:
    """Return the VEVENT from a string, VCALENDAR or VEVENT returned by EDS."""
    comp = ICalGLib.Component.new_from_string(obj) if isinstance(obj, str) else obj
    if comp is not None and comp.isa() == ICalGLib.ComponentKind.VCALENDAR_COMPONENT:
        comp = comp.get_first_component(ICalGLib.ComponentKind.VEVENT_COMPONENT)
    return comp


def to_datetime(t) -> tuple[Optional[datetime], bool]:
    """Convert an ICalGLib.Time to an aware datetime; also report all-day."""
    if t is None or t.is_null_time():
        return None, False
    if t.is_date():
        return datetime(t.get_year(), t.get_month(), t.get_day()).astimezone(), True
    zone = t.get_timezone()
    if t.is_utc() or zone is not None:
        ts = t.as_timet_with_zone(zone)
        return datetime.fromtimestamp(ts, tz=timezone.utc), False
    # Floating time: interpret in the local zone
    naive = datetime(
        t.get_year(), t.get_month(), t.get_day(),
        t.get_hour(), t.get_minute(), t.get_second(),
    )
    return naive.astimezone(), False


def to_ical_time(value: datetime) -> ICalGLib.Time:
    return ICalGLib.Time.new_from_timet_with_zone(
        int(value.timestamp()), 0, ICalGLib.Timezone.get_utc_timezone()
    )


def time_range_sexp(start: datetime, end: datetime) -> str:
    def fmt(value: datetime) -> str:
        return value.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    return f'(occur-in-time-range? (make-time "{fmt(start)}") (make-time "{fmt(end)}"))'


def _common_name(prop) -> Optional[str]:
    param = prop.get_first_parameter(ICalGLib.ParameterKind.CN_PARAMETER)
    if not param:
        return None
    return param.get_cn() or None


def component_participants(comp: ICalGLib.Component) -> list[Participant]:
    """Attendees in document order, then the organizer if not already listed."""
    participants = []
    seen = set()

    prop = comp.get_first_property(ICalGLib.PropertyKind.ATTENDEE_PROPERTY)
    while prop:
        uri = prop.get_attendee() or ''
        if uri:
            participant = Participant(uri=uri, name=_common_name(prop))
            participants.append(participant)
            seen.add(participant.identifier.lower())
        prop = comp.get_next_property(ICalGLib.PropertyKind.ATTENDEE_PROPERTY)

    organizer = comp.get_first_property(ICalGLib.PropertyKind.ORGANIZER_PROPERTY)
    if organizer:
        uri = organizer.get_organizer() or ''
        if uri:
            participant = Participant(uri=uri, name=_common_name(organizer))
            if participant.identifier.lower() not in seen:
                participants.append(participant)

    return participants


def component_to_event(obj, calendar_uid: Optional[str] = None) -> Optional[Event]:
    """Convert an EDS object to an Event; None for components without DTSTART."""
    comp = parse_component(obj)
    if comp is None:
        return None

    start, all_day = to_datetime(comp.get_dtstart())
    if start is None:
        return None
    end, _ = to_datetime(comp.get_dtend())

    rrule = comp.get_first_property(ICalGLib.PropertyKind.RRULE_PROPERTY)
    return Event(
        uid=comp.get_uid() or None,
        title=comp.get_summary(),
        start=start,
        end=end or start,
        all_day=all_day,
        participants=component_participants(comp),
        recurrence_rule=rrule.get_value_as_string() if rrule else None,
        notes=comp.get_description(),
        calendar_uid=calendar_uid,
    )


def _set_recurrence(comp: ICalGLib.Component, rule: Optional[str]) -> None:
    prop = comp.get_first_property(ICalGLib.PropertyKind.RRULE_PROPERTY)
    while prop:
        comp.remove_property(prop)
        prop = comp.get_first_property(ICalGLib.PropertyKind.RRULE_PROPERTY)
    if rule:
        comp.add_property(
            ICalGLib.Property.new_rrule(ICalGLib.Recurrence.new_from_string(rule))
        )


def build_component(
    uid: str,
    title: str,
    start: datetime,
    end: datetime,
    recurrence_rule: Optional[str] = None,
    notes: Optional[str] = None,
) -> ICalGLib.Component:
    """Build a bare VEVENT: no attendees, no alarms, no location."""
    comp = ICalGLib.Component.new_vevent()
    comp.set_uid(uid)
    comp.set_summary(title)
    comp.set_dtstart(to_ical_time(start))
    comp.set_dtend(to_ical_time(end))
    if notes:
        comp.set_description(notes)
    _set_recurrence(comp, recurrence_rule)
    return comp


class EDSCalendarStore:
    """Calendar store backed by Evolution Data Server."""

    def __init__(self, registry: Optional[EDataServer.SourceRegistry] = None, timeout: int = 10):
        self.registry = registry
        self.timeout = timeout
        self._clients: dict[str, ECal.Client] = {}

    # -- Registry / calendars ----------------------------------------------

    def request_access(self) -> bool:
        """Connect to the EDS source registry; False if it is unreachable."""
        if self.registry is not None:
            return True
        try:
            self.registry = EDataServer.SourceRegistry.new_sync(None)
        except GLib.Error as e:
            logger.error(f"EDS registry unreachable: {e.message}")
            return False
        return True

    def _registry(self) -> EDataServer.SourceRegistry:
        if self.registry is None and not self.request_access():
            raise CalendarSyncError("Evolution Data Server is not reachable")
        return self.registry

    def _source(self, calendar_uid: str):
        source = self._registry().ref_source(calendar_uid)
        if not source:
            raise CalendarSyncError(f"Calendar with UID '{calendar_uid}' not found in EDS")
        return source

    def _account_of(self, source) -> str:
        parent_uid = source.get_parent()
        if not parent_uid:
            return ""
        parent_source = self._registry().ref_source(parent_uid)
        if not parent_source:
            return ""
        return parent_source.get_display_name() or ""

    def list_calendars(self) -> list[CalendarInfo]:
        sources = self._registry().list_sources(EDataServer.SOURCE_EXTENSION_CALENDAR)
        return [
            CalendarInfo(
                uid=source.get_uid() or "",
                name=source.get_display_name() or "(unnamed)",
                account=self._account_of(source),
            )
            for source in sources
        ]

    def find_calendar_by_name(self, name: str, account: Optional[str] = None) -> Optional[CalendarInfo]:
        """Exact display-name match, optionally restricted to one account."""
        matches = [
            cal for cal in self.list_calendars()
            if cal.name == name and (account is None or cal.account == account)
        ]
        if not matches:
            return None
        if len(matches) > 1:
            accounts = ", ".join(repr(cal.account) for cal in matches)
            logger.warning(
                f"Several calendars are named '{name}' (accounts: {accounts}); "
                f"using the first. Set the account option to choose."
            )
        return matches[0]

    def account_name(self, calendar: CalendarInfo) -> str:
        if calendar.account:
            return calendar.account
        return self._account_of(self._source(calendar.uid))

    def is_writable(self, calendar: CalendarInfo) -> bool:
        return not self._client(calendar.uid).is_readonly()

    # -- Events ------------------------------------------------------------

    def _client(self, calendar_uid: str) -> ECal.Client:
        client = self._clients.get(calendar_uid)
        if client is not None:
            return client

        source = self._source(calendar_uid)
        try:
            client = ECal.Client.connect_sync(
                source,
                ECal.ClientSourceType.EVENTS,
                self.timeout,
                None
            )
        except GLib.Error as e:
            raise CalendarSyncError(
                f"Failed to connect to calendar {calendar_uid}: {e.message}"
            )
        self._clients[calendar_uid] = client
        return client

    def fetch_events(self, calendar: CalendarInfo, start: datetime, end: datetime) -> list[Event]:
        """Return series masters and single events occurring in ``[start, end)``."""
        client = self._client(calendar.uid)
        try:
            _, objects = client.get_object_list_sync(time_range_sexp(start, end), None)
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to fetch events from '{calendar.name}': {e.message}")

        events = []
        for obj in objects or []:
            comp = parse_component(obj)
            if comp is None:
                continue
            # Detached instances of a series are not modelled
            if comp.get_first_property(ICalGLib.PropertyKind.RECURRENCEID_PROPERTY):
                continue
            event = component_to_event(comp, calendar.uid)
            if event is not None:
                events.append(event)
        logger.debug(f"Fetched {len(events)} events from '{calendar.name}'")
        return events

    def create_event(
        self,
        title: str,
        start: datetime,
        end: datetime,
        calendar: CalendarInfo,
        recurrence_rule: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Event:
        client = self._client(calendar.uid)
        comp = build_component(str(uuid.uuid4()), title, start, end, recurrence_rule, notes)
        try:
            success, out_uid = client.create_object_sync(
                comp,
                ECal.OperationFlags.NONE,
                None
            )
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to create event: {e.message}")
        if not success:
            raise CalendarSyncError("Failed to create event")

        return Event(
            uid=out_uid or comp.get_uid(),
            title=title,
            start=start,
            end=end,
            recurrence_rule=recurrence_rule,
            notes=notes,
            calendar_uid=calendar.uid,
        )

    def _get_component(self, client: ECal.Client, uid: str) -> ICalGLib.Component:
        try:
            success, obj = client.get_object_sync(uid, None, None)
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to read event {uid}: {e.message}")
        comp = parse_component(obj) if success and obj else None
        if comp is None:
            raise CalendarSyncError(f"Event {uid} not found")
        return comp

    def update_event(
        self,
        event: Event,
        title: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        recurrence_rule: Optional[str] = None,
        span: Span = Span.SINGLE,
    ) -> None:
        """Rewrite an existing event in place.

        ``None`` leaves a field unchanged; ``recurrence_rule=""`` removes the
        rule.  ``event.notes`` is always written back as the description.
        """
        if not event.uid or not event.calendar_uid:
            raise CalendarSyncError("Cannot update an event that was never stored")

        client = self._client(event.calendar_uid)
        comp = self._get_component(client, event.uid)

        if title is not None:
            comp.set_summary(title)
        if start is not None:
            comp.set_dtstart(to_ical_time(start))
        if end is not None:
            comp.set_dtend(to_ical_time(end))
        if recurrence_rule is not None:
            _set_recurrence(comp, recurrence_rule)
        comp.set_description(event.notes or "")

        try:
            success = client.modify_object_sync(
                comp,
                _MOD_TYPES[span],
                ECal.OperationFlags.NONE,
                None
            )
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to modify event {event.uid}: {e.message}")
        if not success:
            raise CalendarSyncError(f"Failed to modify event {event.uid}")

        if title is not None:
            event.title = title
        if start is not None:
            event.start = start
        if end is not None:
            event.end = end
        if recurrence_rule is not None:
            event.recurrence_rule = recurrence_rule or None

    def delete_event(self, event: Event, span: Span = Span.SINGLE) -> None:
        if not event.uid or not event.calendar_uid:
            raise CalendarSyncError("Cannot delete an event that was never stored")

        client = self._client(event.calendar_uid)
        try:
            success = client.remove_object_sync(
                event.uid,
                None,  # rid (recurrence-id)
                _MOD_TYPES[span],
                ECal.OperationFlags.NONE,
                None  # cancellable
            )
        except GLib.Error as e:
            raise CalendarSyncError(f"Failed to remove event {event.uid}: {e.message}")
        if not success:
            raise CalendarSyncError(f"Failed to remove event {event.uid}")
