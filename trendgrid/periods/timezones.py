"""Timezone primitives — instant ↔ civil time conversion on ``zoneinfo``.

Every boundary in the period calculator goes through these helpers:
project an instant into a zone, take the civil date there, and convert a
civil date/time back to a UTC instant.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

UTC = timezone.utc


@dataclass(frozen=True)
class DisplayTimezone:
    """A timezone the dashboard can be viewed in."""

    value: str
    label: str
    abbreviation: str


DISPLAY_TIMEZONES: list[DisplayTimezone] = [
    DisplayTimezone("UTC", "UTC (Coordinated Universal Time)", "UTC"),
    DisplayTimezone("America/New_York", "New York (Eastern)", "EST/EDT"),
    DisplayTimezone("Europe/London", "London (Greenwich)", "GMT/BST"),
    DisplayTimezone("Asia/Tokyo", "Tokyo (Japan)", "JST"),
    DisplayTimezone("Australia/Sydney", "Sydney (Australian Eastern)", "AEST/AEDT"),
    DisplayTimezone("Europe/Berlin", "Berlin / Frankfurt (Central European)", "CET/CEST"),
    DisplayTimezone("Asia/Hong_Kong", "Hong Kong", "HKT"),
    DisplayTimezone("Asia/Singapore", "Singapore", "SGT"),
]

DEFAULT_DISPLAY_TIMEZONE = "UTC"

_DISPLAY_VALUES = {tz.value for tz in DISPLAY_TIMEZONES}


def resolve_display_timezone(name: Optional[str]) -> str:
    """Return *name* if it is a supported display timezone, else ``"UTC"``."""
    if isinstance(name, str) and name.strip() in _DISPLAY_VALUES:
        return name.strip()
    return DEFAULT_DISPLAY_TIMEZONE


def get_zone(name: str) -> tzinfo:
    """Load an IANA zone; unknown or malformed names resolve to UTC."""
    if not isinstance(name, str) or not name or name.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return UTC


def ensure_utc(instant: datetime) -> datetime:
    """Normalise *instant* to an aware UTC datetime (naive = already UTC)."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC)


def now_utc() -> datetime:
    return datetime.now(UTC)


def to_zone(instant: datetime, tz_name: str) -> datetime:
    """Project *instant* into *tz_name*, returning an aware local datetime."""
    return ensure_utc(instant).astimezone(get_zone(tz_name))


def civil_to_instant(day: date, tz_name: str, at_time: time = time.min) -> datetime:
    """Convert the civil date/time *day* + *at_time* in *tz_name* to UTC."""
    local = datetime.combine(day, at_time).replace(tzinfo=get_zone(tz_name))
    return local.astimezone(UTC)


def is_sunday_in_timezone(instant: datetime, tz_name: str) -> bool:
    """True if *instant* falls on a Sunday in the display timezone *tz_name*."""
    return to_zone(instant, resolve_display_timezone(tz_name)).weekday() == 6


def parse_instant(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 override instant. ``None`` and ``""`` pass through as ``None``.

    Raises ``ValueError`` for strings that are not ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))
