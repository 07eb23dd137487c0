from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from timetrack.errors import ApiError
from timetrack.models import MonthlyReport, User
from timetrack.schemas import MonthlyReportAdjust
from timetrack.services.aggregation import (
    MonthAggregate,
    aggregate_entries,
    count_work_days,
    parse_work_days,
    target_minutes_for,
)
from timetrack.services.entries import ensure_valid_month
from timetrack.services.storage import TimeEntryStore

logger = logging.getLogger("timetrack.reports")

ReconcileOutcome = Literal["created", "reconciled", "fresh"]


@dataclass(frozen=True)
class ReconcileResult:
    report: MonthlyReport
    aggregate: MonthAggregate
    outcome: ReconcileOutcome


def build_report_defaults(user: User, *, year: int, month: int, worked_minutes: int) -> dict[str, Any]:
    work_days = count_work_days(year, month, parse_work_days(user.work_days))
    target_minutes = target_minutes_for(work_days, user.work_hours_per_day)
    return {
        "user_id": user.id,
        "year": year,
        "month": month,
        "work_days": work_days,
        "worked_minutes": worked_minutes,
        "target_minutes": target_minutes,
        "overtime_minutes": worked_minutes - target_minutes,
        "vacation_days": 0,
        "carried_from_minutes": 0,
        "carried_to_minutes": 0,
    }


class MonthlyReportReconciler:
    """Keeps the stored monthly report in step with the month's entries.

    Reports are a cache over entries. Every read recomputes the month from
    its entries, so any entry write since the last read surfaces here as a
    stale report and is patched before returning. ``target_minutes`` and
    ``work_days`` are fixed when the report is first created.
    """

    def __init__(self, store: TimeEntryStore):
        self.store = store

    def reconcile(self, user: User, year: int, month: int) -> ReconcileResult:
        ensure_valid_month(year, month)
        entries = self.store.list_entries_for_month(user.id, year, month)
        aggregate = aggregate_entries(entries)
        outcome: ReconcileOutcome = "fresh"

        report = self.store.get_report_for_month(user.id, year, month)
        if report is None:
            values = build_report_defaults(user, year=year, month=month, worked_minutes=aggregate.worked_minutes)
            created = self.store.insert_report_if_absent(values)
            report = self.store.get_report_for_month(user.id, year, month)
            if report is None:
                raise RuntimeError(f"Monthly report {user.id}/{year}-{month:02d} missing after upsert")
            if created:
                outcome = "created"
                logger.info(
                    "monthly_report_created",
                    extra={
                        "user_id": user.id,
                        "year": year,
                        "month": month,
                        "report_id": report.id,
                        "work_days": report.work_days,
                        "target_minutes": report.target_minutes,
                        "worked_minutes": report.worked_minutes,
                    },
                )

        if report.worked_minutes != aggregate.worked_minutes:
            previous_worked = report.worked_minutes
            report.worked_minutes = aggregate.worked_minutes
            report.overtime_minutes = aggregate.worked_minutes - report.target_minutes
            self.store.save(report)
            outcome = "reconciled"
            logger.info(
                "monthly_report_reconciled",
                extra={
                    "user_id": user.id,
                    "year": year,
                    "month": month,
                    "report_id": report.id,
                    "previous_worked_minutes": previous_worked,
                    "worked_minutes": report.worked_minutes,
                    "overtime_minutes": report.overtime_minutes,
                },
            )

        return ReconcileResult(report=report, aggregate=aggregate, outcome=outcome)

    def get_or_reconcile(self, user: User, year: int, month: int) -> MonthlyReport:
        return self.reconcile(user, year, month).report


def reconcile_user_reports(
    store: TimeEntryStore,
    user: User,
    *,
    since: tuple[int, int] | None = None,
) -> list[MonthlyReport]:
    """Bring every stored report of ``user`` up to date, newest first.

    ``since`` is an inclusive ``(year, month)`` lower bound. Months without a
    stored report are not created here.
    """
    reconciler = MonthlyReportReconciler(store)
    reports: list[MonthlyReport] = []
    for stored in store.list_reports(user.id):
        if since is not None and (stored.year, stored.month) < since:
            continue
        reports.append(reconciler.get_or_reconcile(user, stored.year, stored.month))
    return reports


def list_reports(store: TimeEntryStore, *, user_id: int) -> list[MonthlyReport]:
    return store.list_reports(user_id)


def adjust_report(
    store: TimeEntryStore,
    *,
    user_id: int,
    report_id: int,
    patch: MonthlyReportAdjust,
) -> MonthlyReport:
    report = store.get_report(report_id)
    if report is None:
        raise ApiError(status_code=404, code="REPORT_NOT_FOUND", message="Monthly report not found.")
    if report.user_id != user_id:
        raise ApiError(status_code=403, code="FORBIDDEN", message="Monthly report belongs to another user.")

    changes = patch.changes()
    for field_name, value in changes.items():
        setattr(report, field_name, value)
    store.save(report)
    logger.info(
        "monthly_report_adjusted",
        extra={
            "user_id": user_id,
            "report_id": report.id,
            "fields": sorted(changes),
        },
    )
    return report


def reconcile_all_reports(store: TimeEntryStore) -> dict[str, int]:
    """Reconcile every stored report; used by the maintenance script."""
    reconciler = MonthlyReportReconciler(store)
    counts = {"checked": 0, "reconciled": 0, "skipped": 0}
    for report in store.list_all_reports():
        user = store.get_user(report.user_id)
        if user is None:
            counts["skipped"] += 1
            continue
        result = reconciler.reconcile(user, report.year, report.month)
        counts["checked"] += 1
        if result.outcome == "reconciled":
            counts["reconciled"] += 1
    return counts
