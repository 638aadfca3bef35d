"""Type definitions for persisted ClearCue reminder records.

Records arrive from the backing store as plain dictionaries. The TypedDicts
below describe the keys the engine reads; every key is optional because stored
data may be partial or corrupted. Runtime values are not trusted, so the
annotations document intent rather than guarantees.

IMPORTANT: This file must NOT import from engines or data_builders.
Only import from typing.
"""

from __future__ import annotations

from typing import Any, TypedDict


class NotificationTimingRecord(TypedDict, total=False):
    """One stored notification timing, e.g. {"type": "before", "value": 15}."""

    type: str
    value: int


class ReminderRecord(TypedDict, total=False):
    """A reminder as persisted by the host application."""

    id: str
    title: str
    description: str | None
    user_id: str

    # Scheduling
    due_date: str | None
    due_time: str | None
    start_date: str | None
    end_date: str | None

    # Recurrence
    is_recurring: bool
    repeat_pattern: str | None
    custom_interval: int | None
    custom_mode: str | None
    repeat_days: list[int]
    recurring_start_date: str | None
    recurring_end_date: str | None
    recurring_end_after: int | None
    recurring_window_end_date: str | None

    # Notifications
    has_notification: bool
    notification_timings: list[NotificationTimingRecord]

    # State
    status: str
    completed: bool
    assigned_to: list[str]
    created_at: str | None
    updated_at: str | None


# Records read from storage may carry keys the engine does not know about
RawRecord = dict[str, Any]
