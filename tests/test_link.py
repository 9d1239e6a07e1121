"""
Unit tests for the notes-embedded mirror link.
"""

import json
from datetime import timedelta

from calsync1on1.link import DEFAULT_SENTINEL
from calsync1on1.link import LinkCodec
from calsync1on1.models import Event
from calsync1on1.models import LinkRecord
from tests.conftest import DEST_CAL
from tests.conftest import NOW
from tests.fake_store import FakeStore


def _mirror(notes=None, days=1) -> Event:
    start = NOW + timedelta(days=days)
    return Event(
        uid=None,
        title="1:1 with Alice",
        start=start,
        end=start + timedelta(minutes=30),
        notes=notes,
        calendar_uid=DEST_CAL.uid,
    )


def test_encode_uses_sentinel_and_json():
    line = LinkCodec().encode("abc-123")

    assert line.startswith(DEFAULT_SENTINEL + " ")
    payload = json.loads(line[len(DEFAULT_SENTINEL) :])
    assert payload["sourceEventId"] == "abc-123"


def test_link_is_written_to_empty_notes():
    codec = LinkCodec()
    mirror = _mirror()

    codec.add_link(mirror, "abc-123")

    assert mirror.notes == codec.encode("abc-123")
    assert codec.get_link(mirror) == LinkRecord(source_event_id="abc-123")


def test_link_is_appended_after_user_notes():
    codec = LinkCodec()
    mirror = _mirror(notes="Bring laptop")

    codec.add_link(mirror, "abc-123")

    assert mirror.notes.startswith("Bring laptop\n\n")
    assert codec.get_link(mirror).source_event_id == "abc-123"


def test_existing_link_is_not_duplicated():
    codec = LinkCodec()
    mirror = _mirror()
    codec.add_link(mirror, "first")

    codec.add_link(mirror, "second")

    assert mirror.notes.count(DEFAULT_SENTINEL) == 1
    assert codec.get_link(mirror).source_event_id == "first"


def test_text_typed_after_link_is_tolerated():
    codec = LinkCodec()
    mirror = _mirror(notes=codec.encode("abc") + "\nsee you there")

    assert codec.get_link(mirror).source_event_id == "abc"


def test_unlinked_and_corrupt_notes_have_no_link():
    codec = LinkCodec()

    assert codec.get_link(_mirror()) is None
    assert codec.get_link(_mirror(notes="Just a note")) is None
    assert codec.get_link(_mirror(notes=f"{DEFAULT_SENTINEL} {{not json")) is None
    assert codec.get_link(_mirror(notes=f'{DEFAULT_SENTINEL} {{"other": 1}}')) is None
    assert not codec.is_linked(_mirror(notes="Just a note"))


def test_unknown_version_is_rejected():
    codec = LinkCodec()
    notes = f'{DEFAULT_SENTINEL} {{"sourceEventId": "abc", "version": 2}}'

    assert codec.get_link(_mirror(notes=notes)) is None


def test_remove_link_keeps_user_notes():
    codec = LinkCodec()
    mirror = _mirror(notes="Bring laptop")
    codec.add_link(mirror, "abc")

    codec.remove_link(mirror)

    assert mirror.notes == "Bring laptop"


def test_remove_only_link_clears_notes():
    codec = LinkCodec()
    mirror = _mirror()
    codec.add_link(mirror, "abc")

    codec.remove_link(mirror)

    assert mirror.notes is None


def test_custom_sentinel_ignores_default_links():
    default = LinkCodec()
    custom = LinkCodec(sentinel="[Other-Tool]")
    mirror = _mirror()
    default.add_link(mirror, "abc")

    assert custom.get_link(mirror) is None


def test_find_by_source_id_searches_lookup_window():
    codec = LinkCodec()
    store = FakeStore([DEST_CAL])
    near = _mirror(days=3)
    codec.add_link(near, "near")
    far = _mirror(days=60)
    codec.add_link(far, "far")
    store.add(near)
    store.add(far)

    assert codec.find_by_source_id("near", DEST_CAL, store, now=NOW).title == "1:1 with Alice"
    assert codec.find_by_source_id("far", DEST_CAL, store, now=NOW) is None
    assert codec.find_by_source_id("far", DEST_CAL, store, now=NOW, lookahead_months=3) is not None


def test_find_by_source_id_uses_prefetched_mirrors():
    codec = LinkCodec()
    store = FakeStore([DEST_CAL])
    mirror = _mirror()
    codec.add_link(mirror, "abc")

    found = codec.find_by_source_id("abc", DEST_CAL, store, mirrors=[mirror])

    assert found is mirror
    assert store.fetches == 0


def test_linked_mirrors_pairs_each_link():
    codec = LinkCodec()
    linked = _mirror()
    codec.add_link(linked, "abc")

    pairs = codec.linked_mirrors([linked, _mirror(notes="plain")])

    assert pairs == [(linked, LinkRecord(source_event_id="abc"))]
