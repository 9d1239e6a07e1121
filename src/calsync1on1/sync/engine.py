"""
Source → destination 1:1 mirroring: classify, diff against linked mirrors,
apply, then clean up orphans.
"""

import logging
from datetime import datetime

from calsync1on1.analyzer import is_one_on_one
from calsync1on1.analyzer import other_person_name
from calsync1on1.dates import lookup_window
from calsync1on1.filters import check_filters
from calsync1on1.link import LinkCodec
from calsync1on1.models import CalendarInfo
from calsync1on1.models import CalendarSyncError
from calsync1on1.models import Event
from calsync1on1.models import Span
from calsync1on1.models import SyncConfig
from calsync1on1.models import SyncResult
from calsync1on1.reporting import LoggingReporter
from calsync1on1.reporting import SyncReporter

logger = logging.getLogger(__name__)

NOT_ONE_ON_ONE = "not a 1:1 meeting"
DUPLICATE_OCCURRENCE = "duplicate occurrence of series"


def _rule_parts(rule: str | None) -> frozenset[str]:
    """Split an RRULE value into order-independent ``KEY=VALUE`` parts."""
    if not rule:
        return frozenset()
    if rule.upper().startswith("RRULE:"):
        rule = rule[6:]
    return frozenset(part.strip().upper() for part in rule.split(";") if part.strip())


def _recurrence_differs(mirror: Event, meeting: Event) -> bool:
    if not (meeting.is_recurring or mirror.is_recurring):
        return False
    return _rule_parts(mirror.recurrence_rule) != _rule_parts(meeting.recurrence_rule)


def _needs_update(mirror: Event, meeting: Event, expected_title: str) -> bool:
    if mirror.title != expected_title:
        return True
    if mirror.start != meeting.start or mirror.end != meeting.end:
        return True
    return _recurrence_differs(mirror, meeting)


def _span_for(event: Event) -> Span:
    return Span.THIS_AND_FUTURE if event.is_recurring else Span.SINGLE


def _kind(event: Event) -> str:
    return "recurring series" if event.is_recurring else "event"


def _record_failure(result: SyncResult, reporter: SyncReporter, message: str) -> None:
    result.errors.append(message)
    reporter.failed(message)


def _process_create(
    config: SyncConfig,
    result: SyncResult,
    reporter: SyncReporter,
    store,
    destination: CalendarInfo,
    meeting: Event,
    title: str,
    codec: LinkCodec,
) -> Event | None:
    """Create a new mirror for ``meeting``; return it (None on dry run or failure)."""
    mirror = Event(
        uid=None,
        title=title,
        start=meeting.start,
        end=meeting.end,
        recurrence_rule=meeting.recurrence_rule,
        calendar_uid=destination.uid,
    )
    if meeting.uid:
        codec.add_link(mirror, meeting.uid)

    if config.dry_run:
        result.created += 1
        reporter.created(title, meeting)
        return None

    try:
        created = store.create_event(
            title,
            meeting.start,
            meeting.end,
            destination,
            recurrence_rule=meeting.recurrence_rule,
            notes=mirror.notes,
        )
    except CalendarSyncError as e:
        _record_failure(result, reporter, f"Failed to create {_kind(meeting)} '{title}': {e}")
        return None

    result.created += 1
    reporter.created(title, meeting)
    return created


def _process_update(
    config: SyncConfig,
    result: SyncResult,
    reporter: SyncReporter,
    store,
    mirror: Event,
    meeting: Event,
    title: str,
    codec: LinkCodec,
):
    """Bring a linked mirror back in line with its source meeting, or skip it."""
    if not _needs_update(mirror, meeting, title):
        result.skipped += 1
        reporter.skipped(meeting, ["up to date"])
        return

    if config.dry_run:
        result.updated += 1
        reporter.updated(title, meeting)
        return

    rule = None
    if _recurrence_differs(mirror, meeting):
        # "" asks the store to drop a rule the source no longer has
        rule = meeting.recurrence_rule or ""
    span = Span.THIS_AND_FUTURE if (mirror.is_recurring or meeting.is_recurring) else Span.SINGLE

    # update_event writes notes back; keep the link on the rewritten mirror
    codec.add_link(mirror, meeting.uid)
    try:
        store.update_event(
            mirror,
            title=title,
            start=meeting.start,
            end=meeting.end,
            recurrence_rule=rule,
            span=span,
        )
    except CalendarSyncError as e:
        _record_failure(result, reporter, f"Failed to update {_kind(meeting)} '{title}': {e}")
        return

    result.updated += 1
    reporter.updated(title, meeting)


def _process_cleanup(
    config: SyncConfig,
    result: SyncResult,
    reporter: SyncReporter,
    store,
    destination: CalendarInfo,
    valid_ids: set[str],
    kept: dict[str, str | None],
    codec: LinkCodec,
    now: datetime | None,
):
    """Delete linked mirrors whose source id is no longer valid, plus duplicates."""
    start, end = lookup_window(now, config.lookback_weeks, config.lookahead_months)
    mirrors = store.fetch_events(destination, start, end)

    for mirror, link in codec.linked_mirrors(mirrors):
        source_id = link.source_event_id
        if source_id in valid_ids:
            keep_uid = kept.get(source_id)
            if keep_uid is None or mirror.uid == keep_uid:
                continue
            logger.debug(
                f"Duplicate mirror {mirror.uid} for source {source_id} (keeping {keep_uid})"
            )

        if config.dry_run:
            result.deleted += 1
            reporter.deleted(mirror)
            continue

        try:
            store.delete_event(mirror, _span_for(mirror))
        except CalendarSyncError as e:
            _record_failure(
                result,
                reporter,
                f"Failed to delete orphaned {_kind(mirror)} '{mirror.title or 'Untitled'}': {e}",
            )
            continue

        result.deleted += 1
        reporter.deleted(mirror)


def run_sync(
    config: SyncConfig,
    result: SyncResult,
    reporter: SyncReporter | None,
    store,
    destination: CalendarInfo,
    meetings: list[Event],
    now: datetime | None = None,
    codec: LinkCodec | None = None,
    cleanup: bool = True,
) -> SyncResult:
    """Mirror every 1:1 in ``meetings`` into ``destination``.

    ``meetings`` must be the complete batch for the sync window: the cleanup
    pass deletes every linked mirror whose source is not a valid 1:1 in this
    batch.  Pass ``cleanup=False`` when syncing a partial batch.
    """
    reporter = reporter or LoggingReporter(dry_run=config.dry_run)
    codec = codec or LinkCodec()
    owner = config.owner or ""

    start, end = lookup_window(now, config.lookback_weeks, config.lookahead_months)
    mirrors = store.fetch_events(destination, start, end)

    valid_ids: set[str] = set()
    kept: dict[str, str | None] = {}

    total = len(meetings)
    for done, meeting in enumerate(meetings, 1):
        if total > 10 and (done % max(1, total // 10) == 0 or done == total):
            reporter.progress(done, total)

        passes, reasons = check_filters(meeting, config)
        if not passes:
            result.skipped += 1
            reporter.skipped(meeting, reasons)
            continue

        if not is_one_on_one(meeting, owner):
            result.skipped += 1
            reporter.skipped(meeting, [NOT_ONE_ON_ONE])
            continue

        title = config.render_title(other_person_name(meeting, owner))

        if not meeting.uid:
            # Unlinkable: a rerun will create another copy.
            reporter.no_identifier(meeting)
            _process_create(config, result, reporter, store, destination, meeting, title, codec)
            continue

        if meeting.uid in valid_ids:
            # expanded occurrences share the series uid; the first one wins
            result.skipped += 1
            reporter.skipped(meeting, [DUPLICATE_OCCURRENCE])
            continue

        valid_ids.add(meeting.uid)
        existing = codec.find_by_source_id(meeting.uid, destination, store, mirrors=mirrors)
        if existing is None:
            created = _process_create(
                config, result, reporter, store, destination, meeting, title, codec
            )
            kept[meeting.uid] = created.uid if created else None
        else:
            kept[meeting.uid] = existing.uid
            _process_update(config, result, reporter, store, existing, meeting, title, codec)

    if cleanup:
        _process_cleanup(
            config, result, reporter, store, destination, valid_ids, kept, codec, now
        )

    return result
