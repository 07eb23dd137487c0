from __future__ import annotations

import csv
import unittest
from datetime import date
from io import BytesIO, StringIO

from openpyxl import load_workbook

from timetrack.services.exports import (
    DAY_OFF_LABEL,
    ExportOptions,
    build_report_csv_text,
    build_report_xlsx_bytes,
    month_title,
)
from timetrack.services.reports import MonthlyReportReconciler
from timetrack.services.storage import TimeEntryStore

from tests.support import add_entry, make_session, make_user


class ExportTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.store = TimeEntryStore(self.db)
        self.user = make_user(self.db)
        add_entry(self.db, self.user, date(2024, 1, 10), "08:00", "18:00", hourly_rate=190, notes="Montáž")
        add_entry(self.db, self.user, date(2024, 1, 11), "00:00", "00:00")
        add_entry(self.db, self.user, date(2024, 1, 12), "08:00", "08:45", hourly_rate=190, notes="soukromé")
        self.report = MonthlyReportReconciler(self.store).get_or_reconcile(self.user, 2024, 1)
        self.entries = self.store.list_entries_for_month(self.user.id, 2024, 1)

    def tearDown(self) -> None:
        self.db.close()

    def _csv_rows(self, options: ExportOptions) -> list[list[str]]:
        text = build_report_csv_text(self.user, self.entries, self.report, options, currency="CZK")
        return list(csv.reader(StringIO(text)))

    def test_month_title(self) -> None:
        self.assertEqual(month_title(self.report), "Leden 2024")

    def test_csv_lists_entries_with_payment(self) -> None:
        rows = self._csv_rows(ExportOptions())

        self.assertEqual(rows[0], ["Výkaz práce", "Leden 2024"])
        self.assertEqual(rows[1], ["Datum", "Název akce", "Od", "Do", "Hodiny", "Sazba", "Částka"])
        self.assertEqual(rows[2], ["10.01.2024", "Montáž", "08:00", "18:00", "10.00", "190 CZK", "1900 CZK"])
        self.assertEqual(rows[3][1], DAY_OFF_LABEL)
        self.assertEqual(rows[3][4], "0.00")
        self.assertEqual(rows[4][6], "143 CZK")
        self.assertIn(["Celková částka:", "2043 CZK"], rows)
        self.assertIn(["Celkem odpracováno:", "10:45"], rows)
        self.assertIn(["Jméno:", "Jana Nováková"], rows)

    def test_csv_respects_options(self) -> None:
        rows = self._csv_rows(ExportOptions(include_profile=False, include_notes=False, include_salary=False))

        self.assertEqual(rows[1], ["Datum", "Název akce", "Od", "Do", "Hodiny"])
        self.assertEqual(rows[2][1], "")
        self.assertEqual(rows[3][1], DAY_OFF_LABEL)
        flat = [cell for row in rows for cell in row]
        self.assertNotIn("Jméno:", flat)
        self.assertNotIn("Celková částka:", flat)
        self.assertNotIn("soukromé", flat)

    def test_xlsx_contains_summary(self) -> None:
        payload = build_report_xlsx_bytes(self.user, self.entries, self.report, ExportOptions(), currency="CZK")

        sheet = load_workbook(BytesIO(payload)).active
        rows = [row for row in sheet.iter_rows(values_only=True)]
        values = [cell for row in rows for cell in row if cell is not None]

        self.assertEqual(sheet.title, "Výkaz práce")
        self.assertIn("Jméno:", values)
        self.assertIn("Montáž", values)
        self.assertIn("2043 CZK", values)
        self.assertIn(str(self.report.work_days), values)
        self.assertIsNotNone(sheet.freeze_panes)


if __name__ == "__main__":
    unittest.main()
