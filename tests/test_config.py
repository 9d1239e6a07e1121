"""
Unit tests for configuration file handling.
"""

import pytest

from calsync1on1.config import build_config
from calsync1on1.config import load_config_file
from calsync1on1.config import write_default_config
from calsync1on1.models import DEFAULT_TITLE_TEMPLATE
from calsync1on1.models import ConfigError
from calsync1on1.models import SyncConfig


def _write(tmp_path, body: str):
    path = tmp_path / "calsync1on1.conf"
    path.write_text(body)
    return path


def test_missing_file_gives_defaults(tmp_path):
    values = load_config_file(tmp_path / "absent.conf")

    assert values == {}
    assert build_config(values) == SyncConfig()


def test_file_without_section_gives_defaults(tmp_path):
    path = _write(tmp_path, "[something-else]\nweeks = 5\n")

    assert load_config_file(path) == {}


def test_file_values_are_parsed(tmp_path):
    path = _write(
        tmp_path,
        "[calsync1on1]\n"
        "source_calendar = Work\n"
        "destination_calendar = Home\n"
        "owner_email = me@corp.com\n"
        "title_template = Chat: {{otherPerson}}\n"
        "exclude_all_day = no\n"
        "exclude_keywords = standup, town hall ,\n"
        "weeks = 4\n"
        "start_offset = -1\n"
        "lookahead_months = 2\n",
    )

    cfg = build_config(load_config_file(path))

    assert cfg.source_calendar == "Work"
    assert cfg.destination_calendar == "Home"
    assert cfg.owner == "me@corp.com"
    assert cfg.title_template == "Chat: {{otherPerson}}"
    assert cfg.exclude_all_day is False
    assert cfg.exclude_keywords == ["standup", "town hall"]
    assert cfg.weeks == 4
    assert cfg.start_offset == -1
    assert cfg.lookback_weeks == 1
    assert cfg.lookahead_months == 2


def test_cli_overrides_take_precedence():
    cfg = build_config(
        {"source_calendar": "Work", "weeks": "3"},
        source_calendar="Other",
        destination_calendar=None,
        dry_run=True,
    )

    assert cfg.source_calendar == "Other"
    assert cfg.destination_calendar == "Personal"
    assert cfg.weeks == 3
    assert cfg.dry_run is True


@pytest.mark.parametrize(
    "template",
    ["1:1", "{{otherPerson}} and {{otherPerson}}", "{otherPerson}"],
)
def test_template_must_contain_placeholder_once(template):
    with pytest.raises(ConfigError, match="exactly once"):
        build_config({"title_template": template})


@pytest.mark.parametrize(
    "values, match",
    [
        ({"weeks": "0"}, "at least 1"),
        ({"weeks": "two"}, "expected an integer"),
        ({"exclude_all_day": "maybe"}, "expected a boolean"),
    ],
)
def test_invalid_values_raise_config_error(values, match):
    with pytest.raises(ConfigError, match=match):
        build_config(values)


@pytest.mark.parametrize(
    "raw, expected",
    [("On", True), (" yes ", True), ("1", True), ("off", False), ("No", False)],
)
def test_boolean_values_follow_configparser_spellings(raw, expected):
    assert build_config({"exclude_all_day": raw}).exclude_all_day is expected


def test_invalid_override_raises_config_error():
    with pytest.raises(ConfigError):
        build_config({}, weeks=0)


def test_default_config_round_trips(tmp_path):
    path = tmp_path / "nested" / "calsync1on1.conf"

    write_default_config(path)
    cfg = build_config(load_config_file(path))

    assert cfg == SyncConfig()
    assert cfg.title_template == DEFAULT_TITLE_TEMPLATE


def test_default_config_does_not_overwrite_without_force(tmp_path):
    path = _write(tmp_path, "[calsync1on1]\nweeks = 9\n")

    with pytest.raises(ConfigError, match="already exists"):
        write_default_config(path)
    assert "weeks = 9" in path.read_text()

    write_default_config(path, force=True)
    assert build_config(load_config_file(path)).weeks == 2
