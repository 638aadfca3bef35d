"""Reminder record conversion helpers.

This module is the single boundary between persisted reminder records
(plain dicts keyed by the DATA_REMINDER_* constants) and the immutable
Reminder model used by the engines.

### Build Functions
`build_reminder()` turns a stored record into a Reminder. Stored data may be
partial or corrupted, so by default it never raises: unparseable dates become
absent, malformed notification timings and weekday entries are dropped and
logged, unknown frequencies leave the rule out. Structural problems that
survive conversion (interval 0, day 7, both end conditions...) are kept on
purpose so the validator can report them.

With `strict=True` the first malformed field raises RecordValidationError
instead, for callers importing user input.

### Record Functions
`reminder_to_record()` is the inverse, producing a ReminderRecord with ISO
date strings and "HH:MM" times.

See Also:
- type_defs.py: TypedDict definitions of the record shape
- engines/validation_engine.py: Structural validation of built reminders
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Any, cast

import voluptuous as vol

from . import const
from .models import (
    AnchorInstant,
    CustomMode,
    Frequency,
    NotificationConfig,
    NotificationTiming,
    RecurrenceRule,
    RecurrenceWindow,
    Reminder,
    ReminderStatus,
    TimingKind,
)
from .type_defs import NotificationTimingRecord, RawRecord, ReminderRecord
from .utils.dt_utils import (
    as_local,
    dt_parse,
    dt_parse_time,
    get_default_timezone,
)

# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class RecordValidationError(Exception):
    """Malformed field found while building a reminder in strict mode.

    Attributes:
        field: The DATA_REMINDER_* key that failed
        value: The offending stored value
    """

    def __init__(self, field: str, value: Any, message: str) -> None:
        """Initialize RecordValidationError.

        Args:
            field: The DATA_REMINDER_* key that failed
            value: The offending stored value
            message: Human readable reason
        """
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} value {value!r}: {message}")


# ==============================================================================
# SCHEMAS
# ==============================================================================

TIMING_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_TIMING_TYPE): vol.All(
            str, vol.Lower, vol.In([kind.value for kind in TimingKind])
        ),
        vol.Required(const.DATA_TIMING_VALUE, default=0): vol.Coerce(int),
    },
    extra=vol.ALLOW_EXTRA,
)

WEEKDAY_SCHEMA = vol.Schema(vol.Coerce(int))

OPTIONAL_INT_SCHEMA = vol.Schema(vol.Any(None, vol.Coerce(int)))

FREQUENCY_SCHEMA = vol.Schema(vol.In([frequency.value for frequency in Frequency]))


# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_list_field(value: Any) -> list[Any]:
    """Normalize a field that should be a list.

    Handles cases where the value might be:
    - Already a list or tuple → return as list
    - None → return empty list
    - A single scalar → wrap it

    This prevents bugs like list("15") → ['1', '5']
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return [value] if value else []
    return [value]


def _reject(strict: bool, field: str, value: Any, message: str) -> None:
    """Raise in strict mode, otherwise log and let the caller drop the value."""
    if strict:
        raise RecordValidationError(field, value, message)
    const.LOGGER.warning("Ignoring invalid %s value %r: %s", field, value, message)


def parse_date_field(value: Any, tz: tzinfo) -> date | None:
    """Parse a stored date (ISO string, date or datetime) to a civil date."""
    if isinstance(value, datetime):
        return as_local(value, tz).date()
    if isinstance(value, date):
        return value
    parsed = dt_parse(value, default_tzinfo=tz)
    if parsed is None:
        return None
    return as_local(parsed, tz).date()


def date_field_is_unparseable(record: RawRecord, key: str) -> bool:
    """Check a date field is present but cannot be interpreted."""
    value = record.get(key)
    if value in (None, ""):
        return False
    return parse_date_field(value, get_default_timezone()) is None


def _parse_datetime_field(value: Any, tz: tzinfo) -> datetime | None:
    if not value:
        return None
    return dt_parse(value, default_tzinfo=tz)


def _parse_frequency(value: Any, strict: bool) -> Frequency | None:
    if not value:
        return None
    if not isinstance(value, str):
        _reject(strict, const.DATA_REMINDER_REPEAT_PATTERN, value, "expected a string")
        return None
    normalized = const.FREQUENCY_ALIASES.get(value, value)
    try:
        return Frequency(FREQUENCY_SCHEMA(normalized))
    except vol.Invalid as err:
        _reject(strict, const.DATA_REMINDER_REPEAT_PATTERN, value, str(err))
        return None


def _parse_optional_int(value: Any, field: str, strict: bool) -> int | None:
    try:
        return cast("int | None", OPTIONAL_INT_SCHEMA(value))
    except vol.Invalid as err:
        _reject(strict, field, value, str(err))
        return None


def _parse_weekdays(value: Any, strict: bool) -> frozenset[int]:
    days: set[int] = set()
    for entry in _normalize_list_field(value):
        try:
            days.add(WEEKDAY_SCHEMA(entry))
        except vol.Invalid as err:
            _reject(strict, const.DATA_REMINDER_REPEAT_DAYS, entry, str(err))
    return frozenset(days)


def _parse_timings(value: Any, strict: bool) -> tuple[NotificationTiming, ...]:
    timings: list[NotificationTiming] = []
    for entry in _normalize_list_field(value):
        try:
            data = TIMING_SCHEMA(entry)
        except vol.Invalid as err:
            _reject(strict, const.DATA_REMINDER_NOTIFICATION_TIMINGS, entry, str(err))
            continue
        timings.append(
            NotificationTiming(
                kind=TimingKind(data[const.DATA_TIMING_TYPE]),
                offset_minutes=data[const.DATA_TIMING_VALUE],
            )
        )
    return tuple(timings)


def _parse_text(value: Any, field: str, strict: bool) -> str | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        _reject(strict, field, value, "expected a string")
        return None
    return value


def _parse_status(value: Any, strict: bool) -> ReminderStatus:
    if not value:
        return ReminderStatus.PENDING
    try:
        return ReminderStatus(str(value).lower())
    except ValueError:
        _reject(strict, const.DATA_REMINDER_STATUS, value, "unknown status")
        return ReminderStatus.PENDING


def _parse_custom_mode(value: Any, strict: bool) -> CustomMode | None:
    if not value:
        return None
    try:
        return CustomMode(value)
    except ValueError:
        _reject(strict, const.DATA_REMINDER_CUSTOM_MODE, value, "unknown custom mode")
        return None


def _build_rule(
    record: RawRecord, frequency: Frequency, tz: tzinfo, strict: bool
) -> RecurrenceRule:
    interval = _parse_optional_int(
        record.get(const.DATA_REMINDER_CUSTOM_INTERVAL),
        const.DATA_REMINDER_CUSTOM_INTERVAL,
        strict,
    )
    window_start = parse_date_field(
        record.get(const.DATA_REMINDER_RECURRING_START_DATE), tz
    )
    window_end = parse_date_field(
        record.get(const.DATA_REMINDER_RECURRING_WINDOW_END_DATE), tz
    )
    window = (
        RecurrenceWindow(start_date=window_start, end_date=window_end)
        if window_start or window_end
        else None
    )
    return RecurrenceRule(
        frequency=frequency,
        interval=const.DEFAULT_INTERVAL if interval is None else interval,
        days_of_week=_parse_weekdays(
            record.get(const.DATA_REMINDER_REPEAT_DAYS), strict
        ),
        custom_mode=_parse_custom_mode(
            record.get(const.DATA_REMINDER_CUSTOM_MODE), strict
        ),
        end_date=parse_date_field(
            record.get(const.DATA_REMINDER_RECURRING_END_DATE), tz
        ),
        end_after_occurrences=_parse_optional_int(
            record.get(const.DATA_REMINDER_RECURRING_END_AFTER),
            const.DATA_REMINDER_RECURRING_END_AFTER,
            strict,
        ),
        window=window,
    )


# ==============================================================================
# BUILD FUNCTIONS
# ==============================================================================


def build_reminder(
    record: ReminderRecord | RawRecord,
    tz: tzinfo | None = None,
    *,
    strict: bool = False,
) -> Reminder:
    """Build a Reminder from a stored record.

    Args:
        record: Stored reminder dict (DATA_REMINDER_* keys)
        tz: Zone for civil dates. Uses the dt_utils default if not provided.
        strict: Raise RecordValidationError on malformed fields instead of
            dropping them

    Returns:
        Reminder. A recurring flag whose pattern could not be read leaves
        `recurrence` empty so validation reports it.
    """
    tz_info = tz or get_default_timezone()
    data = cast("RawRecord", record)

    due_date = parse_date_field(data.get(const.DATA_REMINDER_DUE_DATE), tz_info)
    anchor = (
        AnchorInstant(
            date=due_date,
            time=dt_parse_time(data.get(const.DATA_REMINDER_DUE_TIME)),
        )
        if due_date
        else None
    )

    frequency = _parse_frequency(data.get(const.DATA_REMINDER_REPEAT_PATTERN), strict)
    recurrence = _build_rule(data, frequency, tz_info, strict) if frequency else None

    notifications = NotificationConfig(
        enabled=bool(data.get(const.DATA_REMINDER_HAS_NOTIFICATION, False)),
        timings=_parse_timings(
            data.get(const.DATA_REMINDER_NOTIFICATION_TIMINGS), strict
        ),
    )

    return Reminder(
        reminder_id=str(data.get(const.DATA_REMINDER_ID) or ""),
        title=str(data.get(const.DATA_REMINDER_TITLE) or ""),
        owner_id=str(data.get(const.DATA_REMINDER_USER_ID) or ""),
        description=_parse_text(
            data.get(const.DATA_REMINDER_DESCRIPTION),
            const.DATA_REMINDER_DESCRIPTION,
            strict,
        ),
        anchor=anchor,
        is_recurring=bool(data.get(const.DATA_REMINDER_IS_RECURRING, False)),
        recurrence=recurrence,
        notifications=notifications,
        status=_parse_status(data.get(const.DATA_REMINDER_STATUS), strict),
        completed=bool(data.get(const.DATA_REMINDER_COMPLETED, False)),
        assigned_to=tuple(
            str(entry)
            for entry in _normalize_list_field(
                data.get(const.DATA_REMINDER_ASSIGNED_TO)
            )
        ),
        created_at=_parse_datetime_field(
            data.get(const.DATA_REMINDER_CREATED_AT), tz_info
        ),
        updated_at=_parse_datetime_field(
            data.get(const.DATA_REMINDER_UPDATED_AT), tz_info
        ),
    )


# ==============================================================================
# RECORD FUNCTIONS
# ==============================================================================


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def reminder_to_record(reminder: Reminder) -> ReminderRecord:
    """Convert a Reminder back to its stored record shape."""
    anchor = reminder.anchor
    rule = reminder.recurrence
    config = reminder.notifications or NotificationConfig()

    timings: list[NotificationTimingRecord] = [
        {
            const.DATA_TIMING_TYPE: timing.kind.value,
            const.DATA_TIMING_VALUE: timing.offset_minutes,
        }
        for timing in config.timings
    ]

    record: ReminderRecord = {
        const.DATA_REMINDER_ID: reminder.reminder_id,
        const.DATA_REMINDER_TITLE: reminder.title,
        const.DATA_REMINDER_DESCRIPTION: reminder.description,
        const.DATA_REMINDER_USER_ID: reminder.owner_id,
        const.DATA_REMINDER_DUE_DATE: _iso(anchor.date) if anchor else None,
        const.DATA_REMINDER_DUE_TIME: (
            anchor.time.strftime("%H:%M") if anchor and anchor.time else None
        ),
        const.DATA_REMINDER_IS_RECURRING: reminder.is_recurring,
        const.DATA_REMINDER_REPEAT_PATTERN: rule.frequency.value if rule else None,
        const.DATA_REMINDER_CUSTOM_INTERVAL: rule.interval if rule else None,
        const.DATA_REMINDER_CUSTOM_MODE: (
            rule.custom_mode.value if rule and rule.custom_mode else None
        ),
        const.DATA_REMINDER_REPEAT_DAYS: sorted(rule.days_of_week) if rule else [],
        const.DATA_REMINDER_RECURRING_START_DATE: (
            _iso(rule.window.start_date) if rule and rule.window else None
        ),
        const.DATA_REMINDER_RECURRING_WINDOW_END_DATE: (
            _iso(rule.window.end_date) if rule and rule.window else None
        ),
        const.DATA_REMINDER_RECURRING_END_DATE: _iso(rule.end_date) if rule else None,
        const.DATA_REMINDER_RECURRING_END_AFTER: (
            rule.end_after_occurrences if rule else None
        ),
        const.DATA_REMINDER_HAS_NOTIFICATION: config.enabled,
        const.DATA_REMINDER_NOTIFICATION_TIMINGS: timings,
        const.DATA_REMINDER_STATUS: reminder.status.value,
        const.DATA_REMINDER_COMPLETED: reminder.completed,
        const.DATA_REMINDER_ASSIGNED_TO: list(reminder.assigned_to),
        const.DATA_REMINDER_CREATED_AT: _iso(reminder.created_at),
        const.DATA_REMINDER_UPDATED_AT: _iso(reminder.updated_at),
    }
    return record
