"""
Mirror ↔ source linkage stored inside the mirror's notes.

A mirror carries a single line of the form::

    [CalSync1on1-Metadata] {"sourceEventId": "...", "version": 1}

appended after whatever the user wrote in the notes.  This is the only
persisted sync state; there is no database to fall out of step with the
destination calendar.
"""

import json
import logging
from datetime import datetime

from calsync1on1.dates import lookup_window
from calsync1on1.models import CalendarInfo
from calsync1on1.models import Event
from calsync1on1.models import LinkRecord

DEFAULT_SENTINEL = "[CalSync1on1-Metadata]"
LINK_VERSION = 1

_logger = logging.getLogger(__name__)


class LinkCodec:
    """Encodes and decodes LinkRecords in an event's free-text notes."""

    def __init__(self, sentinel: str = DEFAULT_SENTINEL):
        self.sentinel = sentinel

    def encode(self, source_event_id: str) -> str:
        payload = json.dumps(
            {"sourceEventId": source_event_id, "version": LINK_VERSION}, ensure_ascii=False
        )
        return f"{self.sentinel} {payload}"

    def add_link(self, mirror: Event, source_event_id: str) -> None:
        """Append a link to the mirror's notes unless one is already present."""
        notes = mirror.notes
        if notes and self.sentinel in notes:
            return
        line = self.encode(source_event_id)
        mirror.notes = f"{notes}\n\n{line}" if notes else line

    def get_link(self, mirror: Event) -> LinkRecord | None:
        notes = mirror.notes
        if not notes:
            return None
        idx = notes.find(self.sentinel)
        if idx < 0:
            return None

        text = notes[idx + len(self.sentinel) :].strip()
        try:
            # raw_decode tolerates anything a user typed after the JSON object
            data, _ = json.JSONDecoder().raw_decode(text)
        except ValueError:
            _logger.debug(f"Unparseable link metadata on '{mirror.title}': {text!r}")
            return None

        if not isinstance(data, dict) or not isinstance(data.get("sourceEventId"), str):
            return None
        version = data.get("version", LINK_VERSION)
        if version != LINK_VERSION:
            _logger.debug(f"Unsupported link version {version!r} on '{mirror.title}'")
            return None
        return LinkRecord(source_event_id=data["sourceEventId"], version=version)

    def remove_link(self, mirror: Event) -> None:
        """Strip the link line (and anything after it) from the mirror's notes."""
        notes = mirror.notes
        if not notes:
            return
        idx = notes.find(self.sentinel)
        if idx < 0:
            return
        remaining = notes[:idx].rstrip()
        mirror.notes = remaining or None

    def is_linked(self, mirror: Event) -> bool:
        return self.get_link(mirror) is not None

    def linked_mirrors(self, mirrors: list[Event]) -> list[tuple[Event, LinkRecord]]:
        """Return ``(mirror, link)`` pairs for every mirror that carries a link."""
        pairs = []
        for mirror in mirrors:
            link = self.get_link(mirror)
            if link is not None:
                pairs.append((mirror, link))
        return pairs

    def find_by_source_id(
        self,
        source_event_id: str,
        calendar: CalendarInfo,
        store,
        now: datetime | None = None,
        mirrors: list[Event] | None = None,
        lookback_weeks: int = 1,
        lookahead_months: int = 1,
    ) -> Event | None:
        """Return the first mirror in the lookup window linked to ``source_event_id``.

        Only mirrors between ``lookback_weeks`` ago and ``lookahead_months``
        ahead are considered.  Pass ``mirrors`` to search an already fetched
        window instead of querying the store again.
        """
        if mirrors is None:
            start, end = lookup_window(now, lookback_weeks, lookahead_months)
            mirrors = store.fetch_events(calendar, start, end)
        for mirror in mirrors:
            link = self.get_link(mirror)
            if link is not None and link.source_event_id == source_event_id:
                return mirror
        return None
