"""Domain model for ClearCue reminders.

Reminders, rules and the values derived from them are immutable dataclasses.
Engines return new instances instead of mutating their inputs, which keeps a
reminder safe to share across threads once built.

Enumerations are string-valued so they compare equal to the persisted values
in const.py.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, tzinfo
from enum import StrEnum

from . import const
from .utils import dt_utils


# =============================================================================
# ENUMERATIONS
# =============================================================================


class Frequency(StrEnum):
    """Closed set of repetition patterns."""

    DAILY = const.FREQUENCY_DAILY
    WEEKDAYS = const.FREQUENCY_WEEKDAYS
    WEEKENDS = const.FREQUENCY_WEEKENDS
    WEEKLY = const.FREQUENCY_WEEKLY
    MONTHLY = const.FREQUENCY_MONTHLY
    YEARLY = const.FREQUENCY_YEARLY
    FIRST_MONDAY = const.FREQUENCY_FIRST_MONDAY
    LAST_FRIDAY = const.FREQUENCY_LAST_FRIDAY
    CUSTOM = const.FREQUENCY_CUSTOM


class CustomMode(StrEnum):
    """How a custom frequency picks its days."""

    DAYS_OF_WEEK = const.CUSTOM_MODE_DAYS_OF_WEEK
    INTERVAL = const.CUSTOM_MODE_INTERVAL


class EndCondition(StrEnum):
    """When a recurring series stops."""

    NEVER = const.END_CONDITION_NEVER
    ON_DATE = const.END_CONDITION_ON_DATE
    AFTER_OCCURRENCES = const.END_CONDITION_AFTER_OCCURRENCES


class TimingKind(StrEnum):
    """Direction of a notification offset relative to the due instant."""

    BEFORE = const.NOTIFICATION_TIMING_BEFORE
    AFTER = const.NOTIFICATION_TIMING_AFTER
    EXACT = const.NOTIFICATION_TIMING_EXACT


class ReminderStatus(StrEnum):
    """Lifecycle status of a reminder."""

    PENDING = const.STATUS_PENDING
    COMPLETED = const.STATUS_COMPLETED
    CANCELLED = const.STATUS_CANCELLED


# =============================================================================
# REMINDER
# =============================================================================


@dataclass(frozen=True)
class AnchorInstant:
    """Civil due date plus optional wall-clock time.

    Without a time of day the instant is the start of that day.
    """

    date: date
    time: time | None = None

    def to_datetime(self, tz: tzinfo | None = None) -> datetime:
        """Resolve the anchor to an aware datetime in the given zone."""
        return dt_utils.dt_at_time_of(self.date, self.time, tz)


@dataclass(frozen=True)
class RecurrenceWindow:
    """Inclusive civil-date bounds for a recurring series."""

    start_date: date | None = None
    end_date: date | None = None


@dataclass(frozen=True)
class RecurrenceRule:
    """Repetition rule of a recurring reminder.

    end_date and end_after_occurrences are stored separately so a record that
    sets both can still be represented and rejected by the validator.

    Attributes:
        frequency: Repetition pattern
        interval: Step between occurrences in the pattern's unit (>= 1)
        days_of_week: Allowed weekdays, 0 = Sunday .. 6 = Saturday
        custom_mode: Day selection for Frequency.CUSTOM
        end_date: Last civil date that may hold an occurrence
        end_after_occurrences: Total occurrences in the series, anchor included
        window: Optional start/end date bounds
    """

    frequency: Frequency
    interval: int = const.DEFAULT_INTERVAL
    days_of_week: frozenset[int] = frozenset()
    custom_mode: CustomMode | None = None
    end_date: date | None = None
    end_after_occurrences: int | None = None
    window: RecurrenceWindow | None = None

    @property
    def end_condition(self) -> EndCondition:
        """Return the effective end condition (end date wins on conflict)."""
        if self.end_date is not None:
            return EndCondition.ON_DATE
        if self.end_after_occurrences is not None:
            return EndCondition.AFTER_OCCURRENCES
        return EndCondition.NEVER

    @property
    def effective_custom_mode(self) -> CustomMode:
        """Resolve the custom mode when the record did not state one."""
        if self.custom_mode is not None:
            return self.custom_mode
        if self.days_of_week or self.interval == const.DEFAULT_INTERVAL:
            return CustomMode.DAYS_OF_WEEK
        return CustomMode.INTERVAL


@dataclass(frozen=True)
class NotificationTiming:
    """One notification trigger relative to an occurrence."""

    kind: TimingKind
    offset_minutes: int = 0


@dataclass(frozen=True)
class NotificationConfig:
    """Notification switch plus its ordered timings."""

    enabled: bool = False
    timings: tuple[NotificationTiming, ...] = ()


@dataclass(frozen=True)
class Reminder:
    """A personal reminder and everything needed to schedule it."""

    reminder_id: str
    title: str
    owner_id: str = ""
    description: str | None = None
    anchor: AnchorInstant | None = None
    is_recurring: bool = False
    recurrence: RecurrenceRule | None = None
    notifications: NotificationConfig | None = None
    status: ReminderStatus = ReminderStatus.PENDING
    completed: bool = False
    assigned_to: tuple[str, ...] = ()
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def with_anchor(self, anchor: AnchorInstant) -> Reminder:
        """Return a copy moved to another anchor."""
        return replace(self, anchor=anchor)


# =============================================================================
# DERIVED VALUES
# =============================================================================


@dataclass(frozen=True)
class Occurrence:
    """One concrete due instant of a reminder.

    The embedded reminder carries the occurrence as its anchor.
    """

    date: date
    time: time | None
    instant: datetime
    is_next: bool
    reminder: Reminder


@dataclass(frozen=True)
class NotificationInstant:
    """An absolute trigger instant for one timing of one occurrence."""

    instant: datetime
    occurrence: Occurrence
    timing: NotificationTiming

    @property
    def notification_id(self) -> str:
        """Stable id: "<reminder>-<kind>-<offset>-<YYYY-MM-DD>"."""
        return notification_id(
            self.occurrence.reminder.reminder_id, self.timing, self.occurrence.date
        )


def notification_id(
    reminder_id: str, timing: NotificationTiming, occurrence_date: date | None = None
) -> str:
    """Build the delivery id for a timing, optionally bound to one occurrence."""
    base_id = f"{reminder_id}-{timing.kind.value}-{timing.offset_minutes}"
    if occurrence_date is None:
        return base_id
    return f"{base_id}-{occurrence_date.isoformat()}"


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass(frozen=True)
class ScheduleContext:
    """The "now" and zone shared by every step of one top-level call.

    Capture it once per request so nested calls agree on the current instant.
    """

    now: datetime
    tz: tzinfo = field(default_factory=dt_utils.get_default_timezone)

    @classmethod
    def capture(
        cls,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> ScheduleContext:
        """Snapshot the clock.

        Args:
            tz: Zone for civil dates. Uses the dt_utils default if not provided.
            clock: Time provider returning an aware datetime (default: UTC now)
        """
        now = (clock or dt_utils.dt_now_utc)()
        return cls(now=now, tz=tz or dt_utils.get_default_timezone())

    @property
    def today(self) -> date:
        """Civil date of now in the context zone."""
        return dt_utils.as_local(self.now, self.tz).date()


@dataclass(frozen=True)
class ValidationLimits:
    """Size limits and warning thresholds used by the validator."""

    title_max_length: int = const.TITLE_MAX_LENGTH
    description_max_length: int = const.DESCRIPTION_MAX_LENGTH
    assigned_to_max_count: int = const.ASSIGNED_TO_MAX_COUNT
    notification_timings_max_count: int = const.NOTIFICATION_TIMINGS_MAX_COUNT
    interval_warn_threshold: int = const.INTERVAL_WARN_THRESHOLD
    notification_offset_warn_minutes: int = const.NOTIFICATION_OFFSET_WARN_MINUTES
    many_timings_warn_count: int = const.MANY_NOTIFICATION_TIMINGS_WARN_COUNT
