# File: helpers/format_helpers.py
"""English display text for recurrence rules and notification timings.

Thin adapter for hosts without their own localization. Everything here is
presentation only; the engines never depend on it.
"""

from __future__ import annotations

from datetime import timedelta

from .. import const
from ..models import (
    CustomMode,
    Frequency,
    NotificationTiming,
    RecurrenceRule,
    Reminder,
    TimingKind,
)
from ..utils.dt_utils import dt_format_duration

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 1440

_FREQUENCY_LABELS: dict[Frequency, str] = {
    Frequency.DAILY: "Daily",
    Frequency.WEEKDAYS: "Weekdays",
    Frequency.WEEKENDS: "Weekends",
    Frequency.WEEKLY: "Weekly",
    Frequency.MONTHLY: "Monthly",
    Frequency.YEARLY: "Yearly",
}


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count != 1 else ''}"


def day_names(days: frozenset[int] | set[int]) -> list[str]:
    """Return weekday names in week order (Sunday first), skipping bad values."""
    return [const.WEEKDAY_NAMES[day] for day in sorted(days) if 0 <= day <= 6]


def describe_recurrence(rule: RecurrenceRule | None) -> str:
    """Describe a rule, e.g. "Weekly every 2" or "Every Monday, Friday".

    Returns an empty string when there is no rule.
    """
    if rule is None:
        return ""

    freq = rule.frequency
    if freq in (Frequency.FIRST_MONDAY, Frequency.LAST_FRIDAY):
        day = "Monday" if freq == Frequency.FIRST_MONDAY else "Friday"
        position = "first" if freq == Frequency.FIRST_MONDAY else "last"
        if rule.interval <= 1:
            return f"{position.capitalize()} {day} of each month"
        return f"Every {rule.interval} months on the {position} {day}"

    interval_text = "" if rule.interval <= 1 else f" every {rule.interval}"

    if freq == Frequency.CUSTOM:
        if rule.effective_custom_mode == CustomMode.INTERVAL:
            return f"Every {_plural(max(1, rule.interval), 'day')}"
        names = day_names(rule.days_of_week)
        return f"Every {', '.join(names)}" if names else "Custom"

    label = _FREQUENCY_LABELS[freq]
    if freq == Frequency.WEEKLY and rule.days_of_week:
        return f"{label}{interval_text} on {', '.join(day_names(rule.days_of_week))}"
    return f"{label}{interval_text}"


def format_notification_timing(timing: NotificationTiming) -> str:
    """Describe a timing, e.g. "15 minutes before" or "Exactly on time"."""
    if timing.kind == TimingKind.EXACT:
        return "Exactly on time"

    value = timing.offset_minutes
    if value >= MINUTES_PER_DAY and value % MINUTES_PER_DAY == 0:
        amount = _plural(value // MINUTES_PER_DAY, "day")
    elif value >= MINUTES_PER_HOUR and value % MINUTES_PER_HOUR == 0:
        amount = _plural(value // MINUTES_PER_HOUR, "hour")
    else:
        amount = _plural(value, "minute")
    return f"{amount} {timing.kind.value}"


def notification_title(reminder: Reminder, timing: NotificationTiming) -> str:
    """Build a notification title such as "Call mom (in 1h 30m)"."""
    if timing.kind == TimingKind.EXACT or timing.offset_minutes <= 0:
        return reminder.title

    duration = dt_format_duration(timedelta(minutes=timing.offset_minutes))
    if timing.kind == TimingKind.BEFORE:
        return f"{reminder.title} (in {duration})"
    return f"{reminder.title} ({duration} ago)"
