"""
INI configuration file: loading, validation, and the default template.
"""

import logging
from configparser import ConfigParser
from pathlib import Path

from calsync1on1.models import PERSON_PLACEHOLDER
from calsync1on1.models import ConfigError
from calsync1on1.models import SyncConfig

DEFAULT_CONFIG = Path.home() / ".config/calsync1on1.conf"
SECTION = "calsync1on1"

_KNOWN_KEYS = frozenset(
    {
        "source_calendar",
        "source_account",
        "destination_calendar",
        "destination_account",
        "owner_email",
        "title_template",
        "exclude_all_day",
        "exclude_keywords",
        "weeks",
        "start_offset",
        "lookback_weeks",
        "lookahead_months",
    }
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_TEXT = f"""\
# calsync1on1 configuration
#
# Mirrors 1:1 meetings from a source calendar into a destination calendar.
# Command-line options override the values below.

[{SECTION}]
# Calendar display names as shown by `calsync1on1 calendars`.
source_calendar = Calendar
destination_calendar = Personal

# Disambiguate when several accounts have a calendar with the same name.
# source_account =
# destination_account =

# Your address as it appears in meeting invitations.  Defaults to the
# source calendar's account name.
# owner_email =

# {PERSON_PLACEHOLDER} is replaced with the other attendee's name.
title_template = 1:1 with {PERSON_PLACEHOLDER}

exclude_all_day = true
exclude_keywords = standup, all-hands

# Sync window: `weeks` weeks starting on Monday of this week + start_offset.
weeks = 2
start_offset = 0

# How far around today to look for existing mirrors.
lookback_weeks = 1
lookahead_months = 1
"""


def load_config_file(config_path: Path) -> dict[str, str]:
    if not config_path.exists():
        return {}
    parser = ConfigParser(interpolation=None)
    parser.read(config_path)
    if SECTION not in parser:
        return {}
    return dict(parser[SECTION])


def _parse_bool(key: str, value: str) -> bool:
    try:
        return ConfigParser.BOOLEAN_STATES[value.strip().lower()]
    except KeyError:
        raise ConfigError(f"{key}: expected a boolean, got {value!r}") from None


def _parse_int(key: str, value: str, minimum: int | None = None) -> int:
    try:
        number = int(value.strip())
    except ValueError:
        raise ConfigError(f"{key}: expected an integer, got {value!r}") from None
    if minimum is not None and number < minimum:
        raise ConfigError(f"{key}: must be at least {minimum}, got {number}")
    return number


def _parse_keywords(value: str) -> list[str]:
    return [kw.strip() for kw in value.split(",") if kw.strip()]


def validate_title_template(template: str) -> str:
    count = template.count(PERSON_PLACEHOLDER)
    if count != 1:
        raise ConfigError(
            f"title_template must contain {PERSON_PLACEHOLDER} exactly once "
            f"(found {count}): {template!r}"
        )
    return template


def build_config(values: dict[str, str], **overrides) -> SyncConfig:
    """Build a SyncConfig from config-file ``values`` plus CLI ``overrides``.

    Overrides that are ``None`` fall through to the file, then to the
    SyncConfig defaults.
    """
    cfg = SyncConfig()

    for key in ("source_calendar", "destination_calendar"):
        if values.get(key):
            setattr(cfg, key, values[key].strip())
    for key in ("source_account", "destination_account"):
        if values.get(key):
            setattr(cfg, key, values[key].strip())
    if values.get("owner_email"):
        cfg.owner = values["owner_email"].strip()
    if "title_template" in values:
        cfg.title_template = values["title_template"].strip()
    if "exclude_all_day" in values:
        cfg.exclude_all_day = _parse_bool("exclude_all_day", values["exclude_all_day"])
    if "exclude_keywords" in values:
        cfg.exclude_keywords = _parse_keywords(values["exclude_keywords"])
    if "weeks" in values:
        cfg.weeks = _parse_int("weeks", values["weeks"], minimum=1)
    if "start_offset" in values:
        cfg.start_offset = _parse_int("start_offset", values["start_offset"])
    if "lookback_weeks" in values:
        cfg.lookback_weeks = _parse_int("lookback_weeks", values["lookback_weeks"], minimum=0)
    if "lookahead_months" in values:
        cfg.lookahead_months = _parse_int(
            "lookahead_months", values["lookahead_months"], minimum=0
        )

    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(cfg, key):
            raise ConfigError(f"Unknown configuration option: {key}")
        setattr(cfg, key, value)

    validate_title_template(cfg.title_template)
    if cfg.weeks < 1:
        raise ConfigError(f"weeks: must be at least 1, got {cfg.weeks}")

    unknown = set(values) - _KNOWN_KEYS
    for key in sorted(unknown):
        logger.warning(f"Ignoring unknown config key '{key}'")

    return cfg


def write_default_config(path: Path, force: bool = False) -> Path:
    """Write the commented default config; refuse to overwrite unless ``force``."""
    if path.exists() and not force:
        raise ConfigError(f"{path} already exists (use --force to overwrite)")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TEXT)
    return path
