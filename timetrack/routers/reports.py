from datetime import date

from fastapi import APIRouter, Depends, Path, Query, Response

from timetrack.models import MonthlyReport, User
from timetrack.routers.deps import get_store
from timetrack.schemas import (
    ExportFormat,
    MonthlyMetricsRead,
    MonthlyReportAdjust,
    MonthlyReportRead,
    PeriodSummaryRead,
    StreakStatsRead,
)
from timetrack.security import require_user
from timetrack.services.exports import (
    CSV_MEDIA_TYPE,
    XLSX_MEDIA_TYPE,
    ExportOptions,
    build_report_csv_text,
    build_report_xlsx_bytes,
)
from timetrack.services.metrics import build_monthly_metrics, build_period_summary, build_streak_stats
from timetrack.services.reports import MonthlyReportReconciler, adjust_report, list_reports
from timetrack.services.storage import TimeEntryStore
from timetrack.settings import get_settings

router = APIRouter(tags=["reports"])


def _today() -> date:
    return date.today()


@router.get("/api/monthly-reports", response_model=list[MonthlyReportRead])
def get_reports(
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> list[MonthlyReport]:
    return list_reports(store, user_id=user.id)


@router.get("/api/monthly-reports/{year}/{month}", response_model=MonthlyReportRead)
def get_monthly_report(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> MonthlyReport:
    return MonthlyReportReconciler(store).get_or_reconcile(user, year, month)


@router.patch("/api/monthly-reports/{report_id}", response_model=MonthlyReportRead)
def patch_monthly_report(
    payload: MonthlyReportAdjust,
    report_id: int = Path(..., ge=1),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> MonthlyReport:
    return adjust_report(store, user_id=user.id, report_id=report_id, patch=payload)


@router.get("/api/metrics/{year}/{month}", response_model=MonthlyMetricsRead)
def get_monthly_metrics(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> MonthlyMetricsRead:
    metrics = build_monthly_metrics(store, user, year=year, month=month, today=_today())
    metrics["report"] = MonthlyReportRead.model_validate(metrics["report"])
    metrics["streaks"] = StreakStatsRead.model_validate(metrics["streaks"])
    return MonthlyMetricsRead(**metrics)


@router.get("/api/statistics/streaks", response_model=StreakStatsRead)
def get_streaks(
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> StreakStatsRead:
    return StreakStatsRead.model_validate(build_streak_stats(store, user, today=_today()))


@router.get("/api/statistics/summary", response_model=PeriodSummaryRead)
def get_period_summary(
    months: int = Query(6),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> PeriodSummaryRead:
    return PeriodSummaryRead.model_validate(build_period_summary(store, user, months=months, today=_today()))


@router.get("/api/exports/{year}/{month}")
def export_month(
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
    export_format: ExportFormat = Query("xlsx", alias="format"),
    include_profile: bool = Query(True, alias="includeProfile"),
    include_notes: bool = Query(True, alias="includeNotes"),
    include_salary: bool = Query(True, alias="includeSalary"),
    user: User = Depends(require_user),
    store: TimeEntryStore = Depends(get_store),
) -> Response:
    report = MonthlyReportReconciler(store).get_or_reconcile(user, year, month)
    entries = store.list_entries_for_month(user.id, year, month)
    options = ExportOptions(
        include_profile=include_profile,
        include_notes=include_notes,
        include_salary=include_salary,
    )
    currency = get_settings().currency
    filename = f"vykaz-prace-{year}-{month:02d}"

    if export_format == "csv":
        content = build_report_csv_text(user, entries, report, options, currency=currency)
        return Response(
            content=content.encode("utf-8-sig"),
            media_type=CSV_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}.csv"'},
        )

    payload = build_report_xlsx_bytes(user, entries, report, options, currency=currency)
    return Response(
        content=payload,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}.xlsx"'},
    )
