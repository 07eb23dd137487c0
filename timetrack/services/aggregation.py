from __future__ import annotations

from calendar import monthrange
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Protocol

from timetrack.services.durations import MINUTES_PER_HOUR, entry_minutes, is_day_off

DEFAULT_WORK_DAYS = frozenset({1, 2, 3, 4, 5})


class EntryLike(Protocol):
    date: date
    start_time: str
    end_time: str


@dataclass(frozen=True)
class MonthAggregate:
    worked_minutes: int
    days_worked: int
    entry_count: int
    day_off_count: int


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Return ``(first_day, first_day_of_next_month)`` for a calendar month."""
    start = date(year, month, 1)
    end = start + timedelta(days=monthrange(year, month)[1])
    return start, end


def parse_work_days(raw: str | Iterable[int] | None) -> frozenset[int]:
    """Parse the stored ``"1,2,3,4,5"`` weekday list (Monday=1, Sunday=7)."""
    if raw is None:
        return DEFAULT_WORK_DAYS
    if isinstance(raw, str):
        parts = [part.strip() for part in raw.split(",")]
        values = [int(part) for part in parts if part]
    else:
        values = [int(item) for item in raw]
    invalid = sorted(value for value in values if value < 1 or value > 7)
    if invalid:
        raise ValueError(f"Weekday numbers must be within 1..7, got {invalid}")
    return frozenset(values)


def serialize_work_days(work_days: Iterable[int]) -> str:
    return ",".join(str(day) for day in sorted(set(work_days)))


def count_work_days(year: int, month: int, work_days: Iterable[int]) -> int:
    allowed = set(work_days)
    start, end = month_bounds(year, month)
    count = 0
    day = start
    while day < end:
        if day.isoweekday() in allowed:
            count += 1
        day += timedelta(days=1)
    return count


def target_minutes_for(work_days_count: int, work_hours_per_day: int) -> int:
    return work_days_count * work_hours_per_day * MINUTES_PER_HOUR


def worked_dates(entries: Iterable[EntryLike]) -> list[date]:
    """Distinct calendar dates with at least one non day-off entry, ascending."""
    return sorted({entry.date for entry in entries if not is_day_off(entry.start_time, entry.end_time)})


def aggregate_entries(entries: Iterable[EntryLike]) -> MonthAggregate:
    """Sum worked minutes and count distinct worked dates for a month slice.

    Day-off entries (``00:00``-``00:00``) are excluded from both totals by an
    explicit check, not by their zero duration.
    """
    worked_minutes = 0
    entry_count = 0
    day_off_count = 0
    days: set[date] = set()
    for entry in entries:
        entry_count += 1
        if is_day_off(entry.start_time, entry.end_time):
            day_off_count += 1
            continue
        worked_minutes += entry_minutes(entry.start_time, entry.end_time)
        days.add(entry.date)

    return MonthAggregate(
        worked_minutes=worked_minutes,
        days_worked=len(days),
        entry_count=entry_count,
        day_off_count=day_off_count,
    )
