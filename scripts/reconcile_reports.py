#!/usr/bin/env python
from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from sqlalchemy import text

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from timetrack.db import SessionLocal, engine
from timetrack.services.reports import reconcile_all_reports
from timetrack.services.schema_guard import verify_runtime_schema
from timetrack.services.storage import TimeEntryStore
from timetrack.settings import get_settings


@dataclass(slots=True)
class CheckResult:
    name: str
    status: str
    details: dict[str, Any]


def _check_jwt_secret() -> CheckResult:
    secret_set = bool(get_settings().jwt_secret.strip())
    return CheckResult(
        name="jwt_secret_configured",
        status="ok" if secret_set else "fail",
        details={"jwt_secret_set": secret_set},
    )


def _check_schema() -> CheckResult:
    result = verify_runtime_schema(engine)
    return CheckResult(
        name="database_schema_guard",
        status="ok" if result.ok else "fail",
        details=result.to_dict(),
    )


def _check_orphan_reports() -> CheckResult:
    with engine.connect() as connection:
        rows = connection.execute(
            text(
                """
                select r.id
                from monthly_reports r
                left join users u on u.id = r.user_id
                where u.id is null
                limit 20
                """
            )
        ).fetchall()
    return CheckResult(
        name="monthly_report_orphan_user",
        status="warn" if rows else "ok",
        details={"sample_ids": [row[0] for row in rows]},
    )


def _reconcile() -> CheckResult:
    with SessionLocal() as db:
        counts = reconcile_all_reports(TimeEntryStore(db))
    return CheckResult(
        name="monthly_report_reconcile",
        status="ok",
        details=counts,
    )


def main() -> int:
    checks = [_check_jwt_secret(), _check_schema()]
    if checks[-1].status == "ok":
        checks.append(_check_orphan_reports())
        checks.append(_reconcile())

    failed_checks = [check for check in checks if check.status == "fail"]
    summary = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "ok": len(failed_checks) == 0,
        "checks": [
            {
                "name": check.name,
                "status": check.status,
                "details": check.details,
            }
            for check in checks
        ],
    }
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0 if len(failed_checks) == 0 else 1


if __name__ == "__main__":
    raise SystemExit(main())
