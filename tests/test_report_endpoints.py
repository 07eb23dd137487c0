from __future__ import annotations

import unittest
from datetime import date
from io import BytesIO
from unittest.mock import patch

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from timetrack.db import get_db
from timetrack.main import app
from timetrack.security import create_access_token

from tests.support import add_entry, make_session, make_user, override_get_db


class MonthlyReportEndpointTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.user = make_user(self.db)
        self.other = make_user(self.db, username="petr")
        app.dependency_overrides[get_db] = override_get_db(self.db)
        self.client = TestClient(app)
        token, _ = create_access_token(self.user)
        self.headers = {"Authorization": f"Bearer {token}"}

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()

    def test_monthly_report_follows_entry_writes(self) -> None:
        created = self.client.post(
            "/api/time-entries",
            headers=self.headers,
            json={"date": "2024-01-10", "startTime": "08:00", "endTime": "18:00", "hourlyRate": 190},
        ).json()

        report = self.client.get("/api/monthly-reports/2024/1", headers=self.headers).json()
        self.assertEqual(report["workedMinutes"], 600)
        self.assertEqual(report["workDays"], 23)
        self.assertEqual(report["targetMinutes"], 11040)
        self.assertEqual(report["overtimeMinutes"], 600 - 11040)

        self.client.delete(f"/api/time-entries/{created['id']}", headers=self.headers)
        report_after = self.client.get("/api/monthly-reports/2024/1", headers=self.headers).json()

        self.assertEqual(report_after["id"], report["id"])
        self.assertEqual(report_after["workedMinutes"], 0)
        self.assertEqual(report_after["overtimeMinutes"], -11040)

    def test_list_reports(self) -> None:
        self.client.get("/api/monthly-reports/2024/1", headers=self.headers)
        self.client.get("/api/monthly-reports/2024/2", headers=self.headers)

        response = self.client.get("/api/monthly-reports", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual([(item["year"], item["month"]) for item in response.json()], [(2024, 2), (2024, 1)])

    def test_adjust_report(self) -> None:
        report = self.client.get("/api/monthly-reports/2024/1", headers=self.headers).json()

        response = self.client.patch(
            f"/api/monthly-reports/{report['id']}",
            headers=self.headers,
            json={"vacationDays": 3, "carriedFromMinutes": 120},
        )

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["vacationDays"], 3)
        self.assertEqual(body["carriedFromMinutes"], 120)
        self.assertEqual(body["carriedToMinutes"], 0)

    def test_adjust_rejects_worked_minutes(self) -> None:
        report = self.client.get("/api/monthly-reports/2024/1", headers=self.headers).json()

        response = self.client.patch(
            f"/api/monthly-reports/{report['id']}",
            headers=self.headers,
            json={"workedMinutes": 99999},
        )

        self.assertEqual(response.status_code, 422)

    def test_adjust_other_users_report_is_forbidden(self) -> None:
        other_token, _ = create_access_token(self.other)
        other_headers = {"Authorization": f"Bearer {other_token}"}
        report = self.client.get("/api/monthly-reports/2024/1", headers=other_headers).json()

        response = self.client.patch(
            f"/api/monthly-reports/{report['id']}",
            headers=self.headers,
            json={"vacationDays": 1},
        )

        self.assertEqual(response.status_code, 403)

    @patch("timetrack.routers.reports._today", return_value=date(2024, 1, 11))
    def test_metrics(self, _mock_today) -> None:
        add_entry(self.db, self.user, date(2024, 1, 10), "08:00", "18:00", hourly_rate=190)
        add_entry(self.db, self.user, date(2024, 1, 11), "00:00", "00:00", notes="Volný den")

        response = self.client.get("/api/metrics/2024/1", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["report"]["workedMinutes"], 600)
        self.assertEqual(body["daysWorked"], 1)
        self.assertEqual(body["dayOffCount"], 1)
        self.assertEqual(body["totalPayment"], 1900)
        self.assertEqual(body["overtimeSign"], "undertime")
        self.assertEqual(body["workedLabel"], "10h")
        self.assertEqual(body["streaks"]["current"], 1)
        self.assertEqual(body["streaks"]["thisMonth"], 1)

    @patch("timetrack.routers.reports._today", return_value=date(2024, 3, 6))
    def test_streaks(self, _mock_today) -> None:
        for day in (4, 5, 6):
            add_entry(self.db, self.user, date(2024, 3, day))

        response = self.client.get("/api/statistics/streaks", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"current": 3, "best": 3, "thisWeek": 3, "thisMonth": 3})

    @patch("timetrack.routers.reports._today", return_value=date(2024, 3, 13))
    def test_period_summary(self, _mock_today) -> None:
        add_entry(self.db, self.user, date(2023, 12, 29))
        add_entry(self.db, self.user, date(2024, 1, 10), "08:00", "18:00")
        self.client.get("/api/monthly-reports/2023/12", headers=self.headers)
        self.client.get("/api/monthly-reports/2024/1", headers=self.headers)
        add_entry(self.db, self.user, date(2024, 1, 11), "08:00", "12:00")

        response = self.client.get("/api/statistics/summary?months=3", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["months"], 3)
        self.assertEqual(body["periodStart"], "2024-01-01")
        self.assertEqual(body["periodEnd"], "2024-03-31")
        self.assertEqual(body["reportCount"], 1)
        self.assertEqual(body["totalWorkedMinutes"], 840)
        self.assertEqual(body["totalWorkedHours"], 14.0)
        self.assertEqual(body["totalEntries"], 2)
        self.assertEqual(body["uniqueDays"], 2)

    @patch("timetrack.routers.reports._today", return_value=date(2024, 3, 13))
    def test_period_summary_rejects_unsupported_window(self, _mock_today) -> None:
        response = self.client.get("/api/statistics/summary?months=5", headers=self.headers)

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"]["code"], "VALIDATION_ERROR")

    def test_xlsx_export(self) -> None:
        add_entry(self.db, self.user, date(2024, 1, 10), "08:00", "18:00", hourly_rate=190, notes="Montáž")

        response = self.client.get("/api/exports/2024/1", headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertIn("spreadsheetml", response.headers["content-type"])
        self.assertIn("vykaz-prace-2024-01.xlsx", response.headers["content-disposition"])
        workbook = load_workbook(BytesIO(response.content))
        values = [cell for row in workbook.active.iter_rows(values_only=True) for cell in row if cell is not None]
        self.assertIn("Leden 2024", values)
        self.assertIn("Montáž", values)
        self.assertIn("1900 CZK", values)

    def test_csv_export_without_salary(self) -> None:
        add_entry(self.db, self.user, date(2024, 1, 10), "08:00", "18:00", hourly_rate=190)

        response = self.client.get(
            "/api/exports/2024/1",
            headers=self.headers,
            params={"format": "csv", "includeSalary": "false"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        text = response.content.decode("utf-8-sig")
        self.assertIn("10.01.2024", text)
        self.assertNotIn("Sazba", text)
        self.assertNotIn("CZK", text)

    def test_export_rejects_unknown_format(self) -> None:
        response = self.client.get("/api/exports/2024/1", headers=self.headers, params={"format": "pdf"})

        self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
