from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Literal, Protocol

from timetrack.errors import ApiError
from timetrack.models import User
from timetrack.services.aggregation import EntryLike, month_bounds, worked_dates
from timetrack.services.durations import format_duration, format_signed_duration, minutes_between
from timetrack.services.reports import MonthlyReportReconciler, reconcile_user_reports
from timetrack.services.storage import TimeEntryStore

logger = logging.getLogger("timetrack.metrics")

OvertimeSign = Literal["overtime", "undertime", "even"]


class RatedEntry(EntryLike, Protocol):
    hourly_rate: int


class ReportTotals(Protocol):
    worked_minutes: int
    target_minutes: int


@dataclass(frozen=True)
class StreakStats:
    current: int
    best: int
    this_week: int
    this_month: int


SUMMARY_WINDOWS = (3, 6, 12)


@dataclass(frozen=True)
class PeriodSummary:
    months: int
    period_start: date
    period_end: date
    report_count: int
    total_worked_minutes: int
    total_target_minutes: int
    total_worked_hours: float
    efficiency_percentage: float
    total_entries: int
    unique_days: int


def progress_percentage(worked_minutes: int, target_minutes: int) -> float:
    if target_minutes <= 0:
        return 0.0
    percentage = worked_minutes / target_minutes * 100
    return min(max(percentage, 0.0), 100.0)


def efficiency_percentage(reports: Iterable[ReportTotals]) -> float:
    """Cumulative worked/target ratio over several months; may exceed 100."""
    worked_total = 0
    target_total = 0
    for report in reports:
        worked_total += report.worked_minutes
        target_total += report.target_minutes
    if target_total == 0:
        return 0.0
    return worked_total / target_total * 100


def overtime_sign(overtime_minutes: int) -> OvertimeSign:
    if overtime_minutes > 0:
        return "overtime"
    if overtime_minutes < 0:
        return "undertime"
    return "even"


def entry_payment(entry: RatedEntry) -> int:
    # Half-up rounding of minutes / 60 * rate, in integer arithmetic.
    minutes = minutes_between(entry.start_time, entry.end_time)
    return (2 * minutes * entry.hourly_rate + 60) // 120


def total_payment_for_entries(entries: Iterable[RatedEntry]) -> int:
    return sum(entry_payment(entry) for entry in entries)


def longest_streak(dates: Iterable[date]) -> int:
    best = 0
    run = 0
    previous: date | None = None
    for day in sorted(set(dates)):
        if previous is not None and day - previous == timedelta(days=1):
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = day
    return best


def current_streak(dates: Iterable[date], *, today: date) -> int:
    """Consecutive worked days ending today, or yesterday when today is not yet logged."""
    worked = set(dates)
    anchor = today if today in worked else today - timedelta(days=1)
    count = 0
    day = anchor
    while day in worked:
        count += 1
        day -= timedelta(days=1)
    return count


def compute_streaks(dates: Iterable[date], *, today: date, recorded_best: int = 0) -> StreakStats:
    worked = sorted(set(dates))
    current = current_streak(worked, today=today)
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)
    return StreakStats(
        current=current,
        best=max(recorded_best, longest_streak(worked), current),
        this_week=sum(1 for day in worked if week_start <= day <= today),
        this_month=sum(1 for day in worked if month_start <= day <= today),
    )


def record_best_streak(store: TimeEntryStore, user: User, stats: StreakStats) -> int:
    """Persist the best streak; the stored value never decreases."""
    if stats.best <= user.best_streak:
        return user.best_streak
    previous = user.best_streak
    user.best_streak = stats.best
    store.save(user)
    logger.info(
        "best_streak_recorded",
        extra={"user_id": user.id, "previous_best": previous, "best_streak": user.best_streak},
    )
    return user.best_streak


def build_streak_stats(store: TimeEntryStore, user: User, *, today: date) -> StreakStats:
    entries = store.list_entries(user.id)
    stats = compute_streaks(worked_dates(entries), today=today, recorded_best=user.best_streak)
    record_best_streak(store, user, stats)
    return stats


def build_monthly_metrics(
    store: TimeEntryStore,
    user: User,
    *,
    year: int,
    month: int,
    today: date,
) -> dict[str, object]:
    result = MonthlyReportReconciler(store).reconcile(user, year, month)
    report = result.report
    aggregate = result.aggregate
    entries = store.list_entries_for_month(user.id, year, month)
    streaks = build_streak_stats(store, user, today=today)

    return {
        "report": report,
        "days_worked": aggregate.days_worked,
        "day_off_count": aggregate.day_off_count,
        "progress_percentage": progress_percentage(report.worked_minutes, report.target_minutes),
        "overtime_sign": overtime_sign(report.overtime_minutes),
        "total_payment": total_payment_for_entries(entries),
        "worked_label": format_duration(report.worked_minutes),
        "target_label": format_duration(report.target_minutes),
        "overtime_label": format_signed_duration(report.overtime_minutes),
        "efficiency_percentage": efficiency_percentage(reconcile_user_reports(store, user)),
        "streaks": streaks,
    }


def _shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def build_period_summary(store: TimeEntryStore, user: User, *, months: int, today: date) -> PeriodSummary:
    """Totals over the last ``months`` calendar months, the current month included.

    Only months that already have a stored report count towards the worked and
    target totals; those reports are reconciled first. Entries are counted over
    the same calendar window.
    """
    if months not in SUMMARY_WINDOWS:
        raise ApiError(
            status_code=422,
            code="VALIDATION_ERROR",
            message=f"Summary window must be one of {', '.join(map(str, SUMMARY_WINDOWS))} months.",
        )

    first_year, first_month = _shift_month(today.year, today.month, -(months - 1))
    period_start, _ = month_bounds(first_year, first_month)
    _, period_end = month_bounds(today.year, today.month)

    reports = [
        report
        for report in reconcile_user_reports(store, user, since=(first_year, first_month))
        if (report.year, report.month) <= (today.year, today.month)
    ]
    entries = store.list_entries_between(user.id, period_start, period_end)
    worked_minutes = sum(report.worked_minutes for report in reports)

    return PeriodSummary(
        months=months,
        period_start=period_start,
        period_end=period_end - timedelta(days=1),
        report_count=len(reports),
        total_worked_minutes=worked_minutes,
        total_target_minutes=sum(report.target_minutes for report in reports),
        total_worked_hours=round(worked_minutes / 60, 2),
        efficiency_percentage=efficiency_percentage(reports),
        total_entries=len(entries),
        unique_days=len(worked_dates(entries)),
    )
