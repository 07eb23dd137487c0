from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine


@dataclass(frozen=True, slots=True)
class SchemaGuardResult:
    ok: bool
    checked_at_utc: datetime
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "checked_at_utc": self.checked_at_utc.isoformat(),
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "issue_count": len(self.issues),
            "warning_count": len(self.warnings),
        }


REQUIRED_TABLE_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "username", "password_hash", "work_hours_per_day", "work_days", "best_streak"},
    "time_entries": {"id", "user_id", "date", "start_time", "end_time", "hourly_rate"},
    "monthly_reports": {
        "id",
        "user_id",
        "year",
        "month",
        "work_days",
        "worked_minutes",
        "target_minutes",
        "overtime_minutes",
    },
    "alembic_version": {"version_num"},
}

# One report per user and month is what makes concurrent creation safe.
REQUIRED_UNIQUE_COLUMNS: dict[str, tuple[str, ...]] = {
    "monthly_reports": ("user_id", "year", "month"),
}


def verify_runtime_schema(engine: Engine) -> SchemaGuardResult:
    issues: list[str] = []
    warnings: list[str] = []
    checked_at_utc = datetime.now(timezone.utc)
    inspector = inspect(engine)
    table_names = set(inspector.get_table_names())

    for table_name, required_columns in REQUIRED_TABLE_COLUMNS.items():
        if table_name not in table_names:
            issues.append(f"MISSING_TABLE:{table_name}")
            continue
        column_names = {str(item.get("name")) for item in inspector.get_columns(table_name)}
        missing_columns = sorted(item for item in required_columns if item not in column_names)
        if missing_columns:
            issues.append(f"MISSING_COLUMNS:{table_name}:{','.join(missing_columns)}")

    for table_name, unique_columns in REQUIRED_UNIQUE_COLUMNS.items():
        if table_name not in table_names:
            continue
        column_sets = [
            tuple(item.get("column_names") or ())
            for item in inspector.get_unique_constraints(table_name)
        ]
        column_sets.extend(
            tuple(item.get("column_names") or ())
            for item in inspector.get_indexes(table_name)
            if item.get("unique")
        )
        if not any(set(columns) == set(unique_columns) for columns in column_sets):
            issues.append(f"MISSING_UNIQUE:{table_name}:{','.join(unique_columns)}")

    if "alembic_version" in table_names:
        with engine.connect() as connection:
            row = connection.execute(text("SELECT version_num FROM alembic_version LIMIT 1")).scalar()
        version = str(row).strip() if row is not None else ""
        if not version:
            issues.append("ALEMBIC_VERSION_EMPTY")
    else:
        warnings.append("ALEMBIC_VERSION_SKIPPED")

    return SchemaGuardResult(
        ok=len(issues) == 0,
        checked_at_utc=checked_at_utc,
        issues=issues,
        warnings=warnings,
    )
