from __future__ import annotations

import re

DAY_OFF_TIME = "00:00"
MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(value: str) -> int:
    """Return minutes after midnight for a 24h ``HH:MM`` wall-clock string.

    Raises ``ValueError`` for anything that is not a valid time of day.
    """
    match = _HHMM_RE.match(value.strip()) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"Invalid time format: {value!r}")
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * MINUTES_PER_HOUR + minutes


def normalize_hhmm(value: str) -> str:
    total = parse_hhmm(value)
    return f"{total // MINUTES_PER_HOUR:02d}:{total % MINUTES_PER_HOUR:02d}"


def is_day_off(start_time: str, end_time: str) -> bool:
    return start_time == DAY_OFF_TIME and end_time == DAY_OFF_TIME


def minutes_between(start_time: str, end_time: str) -> int:
    # No overnight wrap: end before start yields a negative span.
    return parse_hhmm(end_time) - parse_hhmm(start_time)


def entry_minutes(start_time: str, end_time: str) -> int:
    """Worked minutes contributed by one entry; day-off entries contribute 0."""
    if is_day_off(start_time, end_time):
        return 0
    return minutes_between(start_time, end_time)


def format_duration(total_minutes: int) -> str:
    """Render minutes as ``"8h 30m"``, omitting a zero part (``"8h"``, ``"45m"``)."""
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(total_minutes), MINUTES_PER_HOUR)
    if hours and minutes:
        return f"{sign}{hours}h {minutes}m"
    if hours:
        return f"{sign}{hours}h"
    return f"{sign}{minutes}m"


def format_signed_duration(total_minutes: int) -> str:
    """Render minutes as ``"H:MM"``, prefixed with ``-`` when negative."""
    sign = "-" if total_minutes < 0 else ""
    hours, minutes = divmod(abs(total_minutes), MINUTES_PER_HOUR)
    return f"{sign}{hours}:{minutes:02d}"
