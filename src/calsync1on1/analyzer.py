"""
1:1 meeting classification and counterpart naming.

The owner of the source calendar is identified heuristically.  The configured
owner identifier is sometimes an email address and sometimes just the account's
display name, so it is expanded into several variants and compared against
attendee addresses with a deliberately permissive match:

* exact (case-insensitive) equality,
* either string containing the other,
* equal local parts (the text before ``@``).

The last two rules let ``john@personal.com`` match ``john@work.com``, but a
short or common local part can also match people who are not the owner.
"""

from calsync1on1.models import UNKNOWN_PERSON
from calsync1on1.models import Event
from calsync1on1.models import SeriesAnalysis

# Appended to display-name style owner identifiers to guess an address.
FALLBACK_MAIL_DOMAIN = "gmail.com"


def _local_part(address: str) -> str:
    return address.split("@", 1)[0]


def owner_variants(identifier: str) -> list[str]:
    """Expand the owner identifier into the strings attendees are matched against."""
    if not identifier:
        return []

    variants = [identifier]
    if "@" in identifier:
        variants.append(_local_part(identifier))
    else:
        lowered = identifier.lower()
        variants.append(f"{lowered.replace(' ', '')}@{FALLBACK_MAIL_DOMAIN}")
        variants.append(f"{lowered.replace(' ', '.')}@{FALLBACK_MAIL_DOMAIN}")

    unique: list[str] = []
    for variant in variants:
        if variant not in unique:
            unique.append(variant)
    return unique


def matches_owner(candidate: str, owner_variant: str) -> bool:
    """Return True if an attendee identifier plausibly belongs to the owner."""
    candidate = candidate.lower()
    owner_variant = owner_variant.lower()

    if candidate == owner_variant:
        return True
    if candidate in owner_variant or owner_variant in candidate:
        return True
    return _local_part(candidate) == _local_part(owner_variant)


def is_owner(identifier: str, variants: list[str]) -> bool:
    return any(matches_owner(identifier, variant) for variant in variants)


def is_one_on_one(meeting: Event, owner: str) -> bool:
    """Return True if the meeting has exactly two participants, one being the owner."""
    if meeting.all_day:
        return False

    if len(meeting.participants) != 2:
        return False

    variants = owner_variants(owner)
    return any(is_owner(p.identifier, variants) for p in meeting.participants)


def name_from_identifier(identifier: str) -> str:
    """Derive a display name from an address, e.g. ``jane_m.doe@x.com`` → ``Jane M Doe``."""
    local = _local_part(identifier)
    words = local.replace(".", " ").replace("_", " ").split(" ")
    return " ".join(word.capitalize() for word in words)


def other_person_name(meeting: Event, owner: str) -> str:
    """Return the display name of the first participant who is not the owner."""
    variants = owner_variants(owner)
    for participant in meeting.participants:
        identifier = participant.identifier
        if is_owner(identifier, variants):
            continue
        if participant.name:
            return participant.name
        return name_from_identifier(identifier)
    return UNKNOWN_PERSON


def analyze_series(meeting: Event, owner: str) -> SeriesAnalysis:
    """Classify recurring-series membership of a representative meeting instance."""
    one_on_one = is_one_on_one(meeting, owner)
    return SeriesAnalysis(
        is_recurring=meeting.is_recurring,
        is_one_on_one_series=meeting.is_recurring and one_on_one,
        recurrence_rule=meeting.recurrence_rule,
        should_sync_as_series=one_on_one,
        exceptions=[],  # TODO: track overridden occurrences once EDS detached instances are synced
    )


def describe_matching(meeting: Event, owner: str) -> list[str]:
    """Explain, participant by participant, how the owner match was decided."""
    variants = owner_variants(owner)
    lines = []
    for participant in meeting.participants:
        identifier = participant.identifier
        matched = [v for v in variants if matches_owner(identifier, v)]
        if matched:
            lines.append(f"'{identifier}' matches owner via {matched[0]!r}")
        else:
            lines.append(f"'{identifier}' does not match owner")
    return lines
