from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timetrack.models import MonthlyReport, TimeEntry, User
from timetrack.services.aggregation import month_bounds

logger = logging.getLogger("timetrack.storage")

_REPORT_KEY_COLUMNS = ("user_id", "year", "month")


class TimeEntryStore:
    """Persistence handle for entries and monthly reports over one session."""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_entry(self, entry_id: int) -> TimeEntry | None:
        return self.db.get(TimeEntry, entry_id)

    def list_entries(self, user_id: int) -> list[TimeEntry]:
        return list(
            self.db.scalars(
                select(TimeEntry)
                .where(TimeEntry.user_id == user_id)
                .order_by(TimeEntry.date.asc(), TimeEntry.id.asc())
            ).all()
        )

    def list_entries_for_month(self, user_id: int, year: int, month: int) -> list[TimeEntry]:
        start, end = month_bounds(year, month)
        return self.list_entries_between(user_id, start, end)

    def list_entries_between(self, user_id: int, start: date, end: date) -> list[TimeEntry]:
        """Entries with ``start <= date < end``, date ascending."""
        return list(
            self.db.scalars(
                select(TimeEntry)
                .where(
                    TimeEntry.user_id == user_id,
                    TimeEntry.date >= start,
                    TimeEntry.date < end,
                )
                .order_by(TimeEntry.date.asc(), TimeEntry.id.asc())
            ).all()
        )

    def add_entry(self, entry: TimeEntry) -> TimeEntry:
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def save(self, obj: TimeEntry | MonthlyReport | User) -> None:
        self.db.commit()
        self.db.refresh(obj)

    def delete_entry(self, entry: TimeEntry) -> bool:
        self.db.delete(entry)
        self.db.commit()
        return True

    def get_report(self, report_id: int) -> MonthlyReport | None:
        return self.db.get(MonthlyReport, report_id)

    def get_report_for_month(self, user_id: int, year: int, month: int) -> MonthlyReport | None:
        return self.db.scalar(
            select(MonthlyReport).where(
                MonthlyReport.user_id == user_id,
                MonthlyReport.year == year,
                MonthlyReport.month == month,
            )
        )

    def list_reports(self, user_id: int) -> list[MonthlyReport]:
        return list(
            self.db.scalars(
                select(MonthlyReport)
                .where(MonthlyReport.user_id == user_id)
                .order_by(MonthlyReport.year.desc(), MonthlyReport.month.desc())
            ).all()
        )

    def list_all_reports(self) -> list[MonthlyReport]:
        return list(
            self.db.scalars(
                select(MonthlyReport).order_by(
                    MonthlyReport.user_id.asc(),
                    MonthlyReport.year.asc(),
                    MonthlyReport.month.asc(),
                )
            ).all()
        )

    def insert_report_if_absent(self, values: dict[str, Any]) -> bool:
        """Insert a report row unless ``(user_id, year, month)`` already exists.

        Returns ``True`` when this call created the row. A concurrent creator
        winning the race is not an error; the caller re-reads the row.
        """
        dialect_name = self.db.get_bind().dialect.name
        if dialect_name == "postgresql":
            stmt = postgresql.insert(MonthlyReport).values(**values).on_conflict_do_nothing(
                index_elements=list(_REPORT_KEY_COLUMNS)
            )
        elif dialect_name == "sqlite":
            stmt = sqlite.insert(MonthlyReport).values(**values).on_conflict_do_nothing(
                index_elements=list(_REPORT_KEY_COLUMNS)
            )
        else:
            try:
                self.db.execute(insert(MonthlyReport).values(**values))
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.info(
                    "monthly_report_insert_conflict",
                    extra={key: values.get(key) for key in _REPORT_KEY_COLUMNS},
                )
                return False
            return True

        result = self.db.execute(stmt)
        self.db.commit()
        created = bool(result.rowcount)
        if not created:
            logger.info(
                "monthly_report_insert_conflict",
                extra={key: values.get(key) for key in _REPORT_KEY_COLUMNS},
            )
        return created
