"""Calendar-day keys and clock-time parsing.

Every comparison in the engine goes through a canonical YYYY-MM-DD key derived
once from the caller's date. Nothing here consults the local timezone: a
datetime contributes its own calendar date, as given.
"""

import re
from datetime import date, datetime, time

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?\s*$")

MINUTES_PER_DAY = 24 * 60


def parse_day(value: date | datetime | str | None) -> date | None:
    """Parse a calendar day leniently.

    Accepts a date, a datetime (its own calendar date is used), a
    "YYYY-MM-DD" string or any longer ISO timestamp starting with one.

    Returns:
        The calendar date, or None if the value cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) < 10:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def day_key(value: date | datetime | str) -> str:
    """Return the canonical YYYY-MM-DD key for a day.

    Raises:
        ValueError: If the value is not a recognizable calendar day.
    """
    parsed = parse_day(value)
    if parsed is None:
        raise ValueError(f"Not a calendar day: {value!r}")
    return parsed.isoformat()


def days_between(start: date, end: date) -> int:
    """Signed number of whole days from start to end."""
    return (end - start).days


def parse_minutes(value: str | None) -> int | None:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight.

    "24:00" is accepted as end-of-day. Returns None for anything else that
    does not look like a wall-clock time.
    """
    if not value:
        return None
    match = _TIME_RE.match(str(value))
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes > 59 or hours > 24 or (hours == 24 and minutes):
        return None
    return hours * 60 + minutes


def normalize_time(value: str | None) -> str | None:
    """Truncate "HH:MM:SS" to "HH:MM"; pass through None and short values."""
    if not value:
        return None
    text = str(value).strip()
    return text[:5] if len(text) > 5 else text


def minute_of_day(value: int | time | datetime | str) -> int:
    """Coerce a clock reading to minutes since midnight.

    Raises:
        ValueError: If a string is not a valid "HH:MM" time.
    """
    if isinstance(value, datetime):
        return value.hour * 60 + value.minute
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if isinstance(value, int):
        return value
    minutes = parse_minutes(value)
    if minutes is None:
        raise ValueError(f"Not a clock time: {value!r}")
    return minutes
