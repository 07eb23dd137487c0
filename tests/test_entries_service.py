from __future__ import annotations

import unittest
from datetime import date

from pydantic import ValidationError

from timetrack.errors import ApiError
from timetrack.schemas import TimeEntryCreate, TimeEntryPatch
from timetrack.services.entries import (
    create_entry,
    delete_entry,
    get_owned_entry,
    list_all_entries,
    list_entries,
    update_entry,
)
from timetrack.services.storage import TimeEntryStore

from tests.support import add_entry, make_session, make_user


class EntrySchemaTests(unittest.TestCase):
    def test_create_normalizes_times(self) -> None:
        payload = TimeEntryCreate.model_validate(
            {"date": "2024-03-04", "startTime": "8:00", "endTime": "16:30", "hourlyRate": 190}
        )
        self.assertEqual(payload.start_time, "08:00")
        self.assertEqual(payload.end_time, "16:30")
        self.assertEqual(payload.date, date(2024, 3, 4))

    def test_create_rejects_end_before_start(self) -> None:
        with self.assertRaises(ValidationError):
            TimeEntryCreate.model_validate({"date": "2024-03-04", "startTime": "18:00", "endTime": "08:00"})

    def test_create_rejects_bad_ranges(self) -> None:
        invalid_payloads = [
            {"date": "2024-03-04", "startTime": "25:00", "endTime": "26:00"},
            {"date": "2024-03-04", "startTime": "08:00", "endTime": "09:00", "hourlyRate": -1},
            {"date": "2024-03-04", "startTime": "08:00", "endTime": "09:00", "moodRating": 6},
            {"date": "2024-03-04", "startTime": "08:00", "endTime": "09:00", "energyLevel": 0},
        ]
        for payload in invalid_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    TimeEntryCreate.model_validate(payload)

    def test_patch_tracks_only_sent_fields(self) -> None:
        patch = TimeEntryPatch.model_validate({"notes": None, "endTime": "17:00"})
        self.assertEqual(patch.changes(), {"notes": None, "end_time": "17:00"})

    def test_patch_rejects_null_times_and_unknown_fields(self) -> None:
        with self.assertRaises(ValidationError):
            TimeEntryPatch.model_validate({"startTime": None})
        with self.assertRaises(ValidationError):
            TimeEntryPatch.model_validate({"userId": 7})


class EntryServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.db = make_session()
        self.store = TimeEntryStore(self.db)
        self.user = make_user(self.db)
        self.other = make_user(self.db, username="petr")

    def tearDown(self) -> None:
        self.db.close()

    def test_create_entry_persists_fields(self) -> None:
        payload = TimeEntryCreate.model_validate(
            {
                "date": "2024-03-04",
                "startTime": "08:00",
                "endTime": "18:00",
                "hourlyRate": 190,
                "notes": "Montáž",
                "moodRating": 4,
            }
        )

        entry = create_entry(self.store, user_id=self.user.id, payload=payload)

        self.assertIsNotNone(entry.id)
        self.assertEqual(entry.user_id, self.user.id)
        self.assertEqual(entry.hourly_rate, 190)
        self.assertEqual(entry.notes, "Montáž")
        self.assertEqual(entry.mood_rating, 4)

    def test_day_off_entry_is_stored_without_rate(self) -> None:
        payload = TimeEntryCreate.model_validate(
            {"date": "2024-03-05", "startTime": "00:00", "endTime": "00:00", "hourlyRate": 190, "notes": "Volný den"}
        )

        entry = create_entry(self.store, user_id=self.user.id, payload=payload)

        self.assertTrue(entry.is_day_off)
        self.assertEqual(entry.hourly_rate, 0)
        self.assertEqual(entry.notes, "Volný den")

    def test_update_validates_merged_span(self) -> None:
        entry = add_entry(self.db, self.user, date(2024, 3, 4), "08:00", "12:00")
        patch = TimeEntryPatch.model_validate({"startTime": "13:00"})

        with self.assertRaises(ApiError) as ctx:
            update_entry(self.store, user_id=self.user.id, entry_id=entry.id, patch=patch)

        self.assertEqual(ctx.exception.status_code, 422)
        self.assertEqual(self.store.get_entry(entry.id).start_time, "08:00")

    def test_update_to_day_off_clears_rate(self) -> None:
        entry = add_entry(self.db, self.user, date(2024, 3, 4), "08:00", "12:00", hourly_rate=200)
        patch = TimeEntryPatch.model_validate({"startTime": "00:00", "endTime": "00:00"})

        updated = update_entry(self.store, user_id=self.user.id, entry_id=entry.id, patch=patch)

        self.assertTrue(updated.is_day_off)
        self.assertEqual(updated.hourly_rate, 0)

    def test_update_can_clear_notes(self) -> None:
        entry = add_entry(self.db, self.user, date(2024, 3, 4), notes="old")
        patch = TimeEntryPatch.model_validate({"notes": None})

        updated = update_entry(self.store, user_id=self.user.id, entry_id=entry.id, patch=patch)

        self.assertIsNone(updated.notes)
        self.assertEqual(updated.start_time, "08:00")

    def test_other_users_entry_is_forbidden(self) -> None:
        entry = add_entry(self.db, self.other, date(2024, 3, 4))

        with self.assertRaises(ApiError) as ctx:
            get_owned_entry(self.store, user_id=self.user.id, entry_id=entry.id)
        self.assertEqual(ctx.exception.status_code, 403)

        with self.assertRaises(ApiError):
            delete_entry(self.store, user_id=self.user.id, entry_id=entry.id)
        self.assertIsNotNone(self.store.get_entry(entry.id))

    def test_missing_entry(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            get_owned_entry(self.store, user_id=self.user.id, entry_id=404)
        self.assertEqual(ctx.exception.code, "ENTRY_NOT_FOUND")

    def test_list_entries_filters_by_month_and_orders_by_date(self) -> None:
        add_entry(self.db, self.user, date(2024, 3, 20))
        add_entry(self.db, self.user, date(2024, 3, 2))
        add_entry(self.db, self.user, date(2024, 4, 1))
        add_entry(self.db, self.user, date(2024, 2, 29))
        add_entry(self.db, self.other, date(2024, 3, 3))

        march = list_entries(self.store, user_id=self.user.id, year=2024, month=3)

        self.assertEqual([entry.date for entry in march], [date(2024, 3, 2), date(2024, 3, 20)])
        self.assertEqual(len(list_all_entries(self.store, user_id=self.user.id)), 4)

    def test_delete_entry(self) -> None:
        entry = add_entry(self.db, self.user, date(2024, 3, 4))

        self.assertTrue(delete_entry(self.store, user_id=self.user.id, entry_id=entry.id))
        self.assertIsNone(self.store.get_entry(entry.id))


if __name__ == "__main__":
    unittest.main()
