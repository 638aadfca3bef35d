"""Record ↔ Reminder conversion tests."""

from datetime import date, datetime, time
import logging
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from clearcue.data_builders import (
    RecordValidationError,
    build_reminder,
    reminder_to_record,
)
from clearcue.models import (
    CustomMode,
    EndCondition,
    Frequency,
    NotificationTiming,
    RecurrenceWindow,
    ReminderStatus,
    TimingKind,
)

UTC = ZoneInfo("UTC")


def full_record(**overrides: Any) -> dict[str, Any]:
    """Stored record with every field set."""
    record: dict[str, Any] = {
        "id": "rem-42",
        "title": "Team standup",
        "description": "Daily sync",
        "user_id": "user-1",
        "due_date": "2025-01-15",
        "due_time": "09:30",
        "is_recurring": True,
        "repeat_pattern": "weekly",
        "custom_interval": 2,
        "repeat_days": [1, 3],
        "recurring_start_date": "2025-01-01",
        "recurring_window_end_date": "2025-06-30",
        "recurring_end_date": "2025-12-31",
        "has_notification": True,
        "notification_timings": [
            {"type": "before", "value": 15},
            {"type": "exact", "value": 0},
        ],
        "status": "pending",
        "completed": False,
        "assigned_to": ["ann", "bob"],
        "created_at": "2025-01-01T08:00:00+00:00",
    }
    record.update(overrides)
    return record


class TestBuildReminder:
    """Stored record → Reminder."""

    def test_full_record(self) -> None:
        reminder = build_reminder(full_record(), UTC)

        assert reminder.reminder_id == "rem-42"
        assert reminder.owner_id == "user-1"
        assert reminder.anchor is not None
        assert reminder.anchor.date == date(2025, 1, 15)
        assert reminder.anchor.time == time(9, 30)
        assert reminder.is_recurring

        rule = reminder.recurrence
        assert rule is not None
        assert rule.frequency == Frequency.WEEKLY
        assert rule.interval == 2
        assert rule.days_of_week == frozenset({1, 3})
        assert rule.end_date == date(2025, 12, 31)
        assert rule.end_condition == EndCondition.ON_DATE
        assert rule.end_after_occurrences is None
        assert rule.window == RecurrenceWindow(date(2025, 1, 1), date(2025, 6, 30))

        assert reminder.notifications is not None
        assert reminder.notifications.enabled
        assert reminder.notifications.timings == (
            NotificationTiming(TimingKind.BEFORE, 15),
            NotificationTiming(TimingKind.EXACT, 0),
        )
        assert reminder.assigned_to == ("ann", "bob")
        assert reminder.created_at == datetime(2025, 1, 1, 8, 0, tzinfo=UTC)

    def test_minimal_record(self) -> None:
        reminder = build_reminder({"id": "r", "title": "Buy milk"})

        assert reminder.anchor is None
        assert not reminder.is_recurring
        assert reminder.recurrence is None
        assert reminder.status == ReminderStatus.PENDING
        assert reminder.notifications is not None
        assert not reminder.notifications.enabled

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("firstMondayOfMonth", Frequency.FIRST_MONDAY),
            ("lastFridayOfMonth", Frequency.LAST_FRIDAY),
            ("weekends", Frequency.WEEKENDS),
        ],
    )
    def test_frequency_aliases(self, raw: str, expected: Frequency) -> None:
        reminder = build_reminder(full_record(repeat_pattern=raw))
        assert reminder.recurrence is not None
        assert reminder.recurrence.frequency == expected

    def test_due_date_converted_to_local_day(self) -> None:
        berlin = ZoneInfo("Europe/Berlin")
        reminder = build_reminder(
            full_record(due_date="2025-01-15T23:30:00+00:00"), berlin
        )
        assert reminder.anchor is not None
        assert reminder.anchor.date == date(2025, 1, 16)

    def test_structural_problems_survive(self) -> None:
        """Interval 0 and day 7 reach the validator instead of being fixed."""
        reminder = build_reminder(
            full_record(
                custom_interval=0,
                repeat_days=[7],
                recurring_end_after=5,
                recurring_end_date=None,
            )
        )
        rule = reminder.recurrence
        assert rule is not None
        assert rule.interval == 0
        assert rule.days_of_week == frozenset({7})
        assert rule.end_after_occurrences == 5
        assert rule.end_condition == EndCondition.AFTER_OCCURRENCES

    def test_scalar_list_fields(self) -> None:
        reminder = build_reminder(full_record(repeat_days="2", assigned_to="ann"))
        assert reminder.recurrence is not None
        assert reminder.recurrence.days_of_week == frozenset({2})
        assert reminder.assigned_to == ("ann",)

    def test_custom_mode(self) -> None:
        reminder = build_reminder(
            full_record(repeat_pattern="custom", custom_mode="interval")
        )
        assert reminder.recurrence is not None
        assert reminder.recurrence.custom_mode == CustomMode.INTERVAL

    def test_string_values_coerced(self) -> None:
        reminder = build_reminder(
            full_record(
                custom_interval="3",
                notification_timings=[{"type": "BEFORE", "value": "30"}],
                status="COMPLETED",
            )
        )
        assert reminder.recurrence is not None
        assert reminder.recurrence.interval == 3
        assert reminder.notifications is not None
        assert reminder.notifications.timings == (
            NotificationTiming(TimingKind.BEFORE, 30),
        )
        assert reminder.status == ReminderStatus.COMPLETED


class TestLenientBuild:
    """Corrupted fields are dropped and logged."""

    def test_unknown_frequency(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="clearcue"):
            reminder = build_reminder(full_record(repeat_pattern="fortnightly"))

        assert reminder.is_recurring
        assert reminder.recurrence is None
        assert "repeat_pattern" in caplog.text

    def test_non_string_frequency(self) -> None:
        assert build_reminder(full_record(repeat_pattern=5)).recurrence is None

    def test_bad_entries_dropped(self) -> None:
        reminder = build_reminder(
            full_record(
                repeat_days=[1, "x", 3],
                notification_timings=[
                    {"type": "before", "value": 15},
                    {"type": "sometime", "value": 5},
                    {"value": 3},
                    "15",
                ],
                custom_mode="sometimes",
                status="archived",
            )
        )

        assert reminder.recurrence is not None
        assert reminder.recurrence.days_of_week == frozenset({1, 3})
        assert reminder.recurrence.custom_mode is None
        assert reminder.notifications is not None
        assert reminder.notifications.timings == (
            NotificationTiming(TimingKind.BEFORE, 15),
        )
        assert reminder.status == ReminderStatus.PENDING

    def test_unparseable_values_become_absent(self) -> None:
        reminder = build_reminder(
            full_record(
                due_date="not-a-date",
                due_time="25:00",
                recurring_end_date="soon",
                custom_interval="often",
            )
        )

        assert reminder.anchor is None
        assert reminder.recurrence is not None
        assert reminder.recurrence.end_date is None
        assert reminder.recurrence.interval == 1

    @pytest.mark.parametrize("raw", [5, ["notes"], {"text": "notes"}])
    def test_non_string_description_dropped(
        self, raw: object, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="clearcue"):
            reminder = build_reminder(full_record(description=raw))

        assert reminder.description is None
        assert "description" in caplog.text

    def test_bad_time_keeps_date(self) -> None:
        reminder = build_reminder(full_record(due_time="noon"))
        assert reminder.anchor is not None
        assert reminder.anchor.time is None


class TestStrictBuild:
    """strict=True raises on the first malformed field."""

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"repeat_pattern": "fortnightly"}, "repeat_pattern"),
            ({"repeat_days": [1, "x"]}, "repeat_days"),
            ({"notification_timings": [{"type": "soon"}]}, "notification_timings"),
            ({"custom_interval": "often"}, "custom_interval"),
            ({"status": "archived"}, "status"),
            ({"description": 5}, "description"),
        ],
    )
    def test_raises(self, overrides: dict[str, Any], field: str) -> None:
        with pytest.raises(RecordValidationError) as err:
            build_reminder(full_record(**overrides), strict=True)
        assert err.value.field == field

    def test_valid_record_builds(self) -> None:
        assert build_reminder(full_record(), strict=True).reminder_id == "rem-42"


class TestReminderToRecord:
    """Reminder → stored record."""

    def test_record_shape(self) -> None:
        record = reminder_to_record(build_reminder(full_record(), UTC))

        assert record["due_date"] == "2025-01-15"
        assert record["due_time"] == "09:30"
        assert record["repeat_pattern"] == "weekly"
        assert record["repeat_days"] == [1, 3]
        assert record["recurring_start_date"] == "2025-01-01"
        assert record["recurring_window_end_date"] == "2025-06-30"
        assert record["recurring_end_date"] == "2025-12-31"
        assert record["recurring_end_after"] is None
        assert record["notification_timings"] == [
            {"type": "before", "value": 15},
            {"type": "exact", "value": 0},
        ]
        assert record["status"] == "pending"
        assert record["created_at"] == "2025-01-01T08:00:00+00:00"

    def test_rebuild_matches(self) -> None:
        reminder = build_reminder(full_record(), UTC)
        assert build_reminder(reminder_to_record(reminder), UTC) == reminder

    def test_single_reminder(self) -> None:
        record = reminder_to_record(build_reminder({"id": "r", "title": "Buy milk"}))
        assert record["repeat_pattern"] is None
        assert record["repeat_days"] == []
        assert record["due_time"] is None
