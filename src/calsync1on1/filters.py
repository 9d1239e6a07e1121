"""
Eligibility filters applied before 1:1 classification.
"""

import logging

from calsync1on1.models import Event
from calsync1on1.models import SyncConfig

_logger = logging.getLogger(__name__)


def check_filters(meeting: Event, config: SyncConfig) -> tuple[bool, list[str]]:
    """Return ``(passes, reasons)`` for a candidate meeting.

    Every rule is evaluated independently, so several reasons may be reported
    for one meeting.  The meeting passes only when no rule produced a reason.
    """
    reasons: list[str] = []

    if config.exclude_all_day and meeting.all_day:
        reasons.append("all-day event excluded")

    title = (meeting.title or "").lower()
    for keyword in config.exclude_keywords:
        needle = keyword.strip().lower()
        if needle and needle in title:
            reasons.append(f"contains excluded keyword '{keyword}'")

    return (not reasons, reasons)


def apply_filters(meetings: list[Event], config: SyncConfig, logger=None) -> list[Event]:
    """Return the meetings that pass all filters, preserving order."""
    logger = logger or _logger
    kept = []
    for meeting in meetings:
        passes, reasons = check_filters(meeting, config)
        if passes:
            kept.append(meeting)
        else:
            logger.debug(f"Skipping '{meeting.title or 'Untitled'}': {', '.join(reasons)}")
    return kept
