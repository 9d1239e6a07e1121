"""
Date windows used by the sync: which source meetings to fetch, and how far
around "now" to look for existing mirrors.
"""

from datetime import datetime
from datetime import timedelta

from dateutil.relativedelta import relativedelta


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    if now.tzinfo is None:
        return now.astimezone()
    return now


def week_start(now: datetime | None = None, start_offset: int = 0) -> datetime:
    """Return local midnight on the Monday of the week ``start_offset`` weeks from now."""
    shifted = _now(now) + timedelta(weeks=start_offset)
    monday = shifted - timedelta(days=shifted.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def sync_window(
    now: datetime | None = None, weeks: int = 2, start_offset: int = 0
) -> tuple[datetime, datetime]:
    """Return the ``[start, end)`` range of source meetings considered by a run."""
    start = week_start(now, start_offset)
    return start, start + timedelta(weeks=weeks)


def lookup_window(
    now: datetime | None = None, lookback_weeks: int = 1, lookahead_months: int = 1
) -> tuple[datetime, datetime]:
    """Return the range searched for existing mirrors.

    Mirrors outside this range are invisible to both link lookup and orphan
    cleanup.
    """
    now = _now(now)
    return now - timedelta(weeks=lookback_weeks), now + relativedelta(months=lookahead_months)


def format_date(value: datetime) -> str:
    return value.astimezone().strftime("%a %Y-%m-%d %H:%M")


def format_date_long(value: datetime) -> str:
    return value.astimezone().strftime("%A, %B %d, %Y")
