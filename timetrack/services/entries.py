from __future__ import annotations

import logging

from timetrack.errors import ApiError
from timetrack.models import TimeEntry
from timetrack.schemas import TimeEntryCreate, TimeEntryPatch
from timetrack.services.durations import is_day_off, parse_hhmm
from timetrack.services.storage import TimeEntryStore

logger = logging.getLogger("timetrack.entries")


def _validate_span(start_time: str, end_time: str) -> None:
    try:
        start_minutes = parse_hhmm(start_time)
        end_minutes = parse_hhmm(end_time)
    except ValueError as exc:
        raise ApiError(status_code=422, code="INVALID_TIME", message=str(exc)) from exc

    if is_day_off(start_time, end_time):
        return
    if end_minutes < start_minutes:
        raise ApiError(
            status_code=422,
            code="VALIDATION_ERROR",
            message="endTime must be greater than or equal to startTime",
        )


def ensure_valid_month(year: int, month: int) -> None:
    if year < 2000 or year > 2100 or month < 1 or month > 12:
        raise ApiError(status_code=422, code="VALIDATION_ERROR", message="Invalid year or month.")


def get_owned_entry(store: TimeEntryStore, *, user_id: int, entry_id: int) -> TimeEntry:
    entry = store.get_entry(entry_id)
    if entry is None:
        raise ApiError(status_code=404, code="ENTRY_NOT_FOUND", message="Time entry not found.")
    if entry.user_id != user_id:
        raise ApiError(status_code=403, code="FORBIDDEN", message="Time entry belongs to another user.")
    return entry


def list_entries(store: TimeEntryStore, *, user_id: int, year: int, month: int) -> list[TimeEntry]:
    ensure_valid_month(year, month)
    return store.list_entries_for_month(user_id, year, month)


def list_all_entries(store: TimeEntryStore, *, user_id: int) -> list[TimeEntry]:
    return store.list_entries(user_id)


def create_entry(store: TimeEntryStore, *, user_id: int, payload: TimeEntryCreate) -> TimeEntry:
    _validate_span(payload.start_time, payload.end_time)
    day_off = is_day_off(payload.start_time, payload.end_time)

    entry = TimeEntry(
        user_id=user_id,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        # Day-off rows never carry a rate so they cannot contribute earnings.
        hourly_rate=0 if day_off else payload.hourly_rate,
        notes=payload.notes,
        mood_rating=payload.mood_rating,
        energy_level=payload.energy_level,
    )
    store.add_entry(entry)
    logger.info(
        "time_entry_created",
        extra={
            "user_id": user_id,
            "entry_id": entry.id,
            "entry_date": entry.date.isoformat(),
            "day_off": day_off,
        },
    )
    return entry


def update_entry(
    store: TimeEntryStore,
    *,
    user_id: int,
    entry_id: int,
    patch: TimeEntryPatch,
) -> TimeEntry:
    entry = get_owned_entry(store, user_id=user_id, entry_id=entry_id)
    changes = patch.changes()
    previous_date = entry.date

    start_time = changes.get("start_time", entry.start_time)
    end_time = changes.get("end_time", entry.end_time)
    _validate_span(start_time, end_time)

    for field_name, value in changes.items():
        setattr(entry, field_name, value)
    if is_day_off(entry.start_time, entry.end_time):
        entry.hourly_rate = 0

    store.save(entry)
    logger.info(
        "time_entry_updated",
        extra={
            "user_id": user_id,
            "entry_id": entry.id,
            "fields": sorted(changes),
            "previous_date": previous_date.isoformat(),
            "entry_date": entry.date.isoformat(),
        },
    )
    return entry


def delete_entry(store: TimeEntryStore, *, user_id: int, entry_id: int) -> bool:
    entry = get_owned_entry(store, user_id=user_id, entry_id=entry_id)
    entry_date = entry.date
    deleted = store.delete_entry(entry)
    logger.info(
        "time_entry_deleted",
        extra={
            "user_id": user_id,
            "entry_id": entry_id,
            "entry_date": entry_date.isoformat(),
        },
    )
    return deleted
