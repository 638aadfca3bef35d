"""Validation Engine for ClearCue.

Structural validation of a reminder and its recurrence/notification settings,
plus an explicit sanitizer that produces a corrected copy.

Validation never raises and never mutates its input: blocking problems come
back as ErrorKind values and advisory ones as WarningKind values. Sanitizing
is a separate, opt-in step whose output always validates.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum

from .. import const
from ..models import (
    CustomMode,
    Frequency,
    NotificationConfig,
    NotificationTiming,
    RecurrenceRule,
    Reminder,
    ReminderStatus,
    ScheduleContext,
    TimingKind,
    ValidationLimits,
)

# =============================================================================
# RESULT TYPES
# =============================================================================


class ErrorKind(StrEnum):
    """Blocking structural problems."""

    TITLE_EMPTY = "title_empty"
    TITLE_TOO_LONG = "title_too_long"
    DESCRIPTION_TOO_LONG = "description_too_long"
    RECURRING_MISSING_RULE = "recurring_missing_rule"
    RECURRING_MISSING_ANCHOR = "recurring_missing_anchor"
    CUSTOM_DAYS_REQUIRED = "custom_days_required"
    DAY_OF_WEEK_OUT_OF_RANGE = "day_of_week_out_of_range"
    INTERVAL_TOO_SMALL = "interval_too_small"
    END_DATE_NOT_AFTER_ANCHOR = "end_date_not_after_anchor"
    CONFLICTING_END_CONDITIONS = "conflicting_end_conditions"
    OCCURRENCE_COUNT_TOO_SMALL = "occurrence_count_too_small"
    WINDOW_END_NOT_AFTER_START = "window_end_not_after_start"
    NOTIFICATION_OFFSET_NEGATIVE = "notification_offset_negative"
    NOTIFICATION_OFFSET_ZERO = "notification_offset_zero"
    NOTIFICATION_DUPLICATE = "notification_duplicate"
    NOTIFICATION_TOO_MANY = "notification_too_many"
    NOTIFICATIONS_WITHOUT_TIMINGS = "notifications_without_timings"
    ASSIGNEES_OVER_LIMIT = "assignees_over_limit"
    ASSIGNEES_DUPLICATE = "assignees_duplicate"


class WarningKind(StrEnum):
    """Accepted but questionable configuration."""

    ANCHOR_IN_PAST = "anchor_in_past"
    INTERVAL_VERY_LARGE = "interval_very_large"
    NOTIFICATION_OFFSET_VERY_LARGE = "notification_offset_very_large"
    MANY_NOTIFICATION_TIMINGS = "many_notification_timings"
    STATUS_COMPLETED_FLAG_MISMATCH = "status_completed_flag_mismatch"


class CorrectionKind(StrEnum):
    """Fixes the sanitizer can apply."""

    DEFAULT_TITLE = "default_title"
    TRUNCATED_TITLE = "truncated_title"
    TRUNCATED_DESCRIPTION = "truncated_description"
    DROPPED_RECURRENCE = "dropped_recurrence"
    RESET_INTERVAL = "reset_interval"
    DROPPED_INVALID_DAYS = "dropped_invalid_days"
    SWITCHED_TO_INTERVAL_MODE = "switched_to_interval_mode"
    DROPPED_OCCURRENCE_COUNT = "dropped_occurrence_count"
    DROPPED_END_DATE = "dropped_end_date"
    DROPPED_WINDOW = "dropped_window"
    DROPPED_NEGATIVE_TIMING = "dropped_negative_timing"
    ZERO_OFFSET_TO_EXACT = "zero_offset_to_exact"
    DROPPED_DUPLICATE_TIMING = "dropped_duplicate_timing"
    CAPPED_TIMINGS = "capped_timings"
    DISABLED_NOTIFICATIONS = "disabled_notifications"
    DROPPED_DUPLICATE_ASSIGNEES = "dropped_duplicate_assignees"
    CAPPED_ASSIGNEES = "capped_assignees"


# Record field each error is reported against
ERROR_FIELDS: dict[ErrorKind, str] = {
    ErrorKind.TITLE_EMPTY: const.DATA_REMINDER_TITLE,
    ErrorKind.TITLE_TOO_LONG: const.DATA_REMINDER_TITLE,
    ErrorKind.DESCRIPTION_TOO_LONG: const.DATA_REMINDER_DESCRIPTION,
    ErrorKind.RECURRING_MISSING_RULE: const.DATA_REMINDER_REPEAT_PATTERN,
    ErrorKind.RECURRING_MISSING_ANCHOR: const.DATA_REMINDER_DUE_DATE,
    ErrorKind.CUSTOM_DAYS_REQUIRED: const.DATA_REMINDER_REPEAT_DAYS,
    ErrorKind.DAY_OF_WEEK_OUT_OF_RANGE: const.DATA_REMINDER_REPEAT_DAYS,
    ErrorKind.INTERVAL_TOO_SMALL: const.DATA_REMINDER_CUSTOM_INTERVAL,
    ErrorKind.END_DATE_NOT_AFTER_ANCHOR: const.DATA_REMINDER_RECURRING_END_DATE,
    ErrorKind.CONFLICTING_END_CONDITIONS: const.DATA_REMINDER_RECURRING_END_AFTER,
    ErrorKind.OCCURRENCE_COUNT_TOO_SMALL: const.DATA_REMINDER_RECURRING_END_AFTER,
    ErrorKind.WINDOW_END_NOT_AFTER_START: (
        const.DATA_REMINDER_RECURRING_WINDOW_END_DATE
    ),
    ErrorKind.NOTIFICATION_OFFSET_NEGATIVE: const.DATA_REMINDER_NOTIFICATION_TIMINGS,
    ErrorKind.NOTIFICATION_OFFSET_ZERO: const.DATA_REMINDER_NOTIFICATION_TIMINGS,
    ErrorKind.NOTIFICATION_DUPLICATE: const.DATA_REMINDER_NOTIFICATION_TIMINGS,
    ErrorKind.NOTIFICATION_TOO_MANY: const.DATA_REMINDER_NOTIFICATION_TIMINGS,
    ErrorKind.NOTIFICATIONS_WITHOUT_TIMINGS: const.DATA_REMINDER_NOTIFICATION_TIMINGS,
    ErrorKind.ASSIGNEES_OVER_LIMIT: const.DATA_REMINDER_ASSIGNED_TO,
    ErrorKind.ASSIGNEES_DUPLICATE: const.DATA_REMINDER_ASSIGNED_TO,
}


@dataclass
class ValidationResult:
    """Outcome of validate_reminder().

    Attributes:
        errors: Blocking problems, each kind listed once in detection order
        warnings: Advisory problems, each kind listed once
    """

    errors: list[ErrorKind] = field(default_factory=list)
    warnings: list[WarningKind] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, kind: ErrorKind) -> None:
        if kind not in self.errors:
            self.errors.append(kind)

    def add_warning(self, kind: WarningKind) -> None:
        if kind not in self.warnings:
            self.warnings.append(kind)

    def field_errors(self) -> dict[str, str]:
        """Map record fields to their first error, for form highlighting."""
        errors: dict[str, str] = {}
        for kind in self.errors:
            errors.setdefault(ERROR_FIELDS[kind], kind.value)
        return errors


@dataclass(frozen=True)
class Correction:
    """One change made by the sanitizer."""

    field: str
    kind: CorrectionKind


@dataclass(frozen=True)
class SanitizeResult:
    """Corrected reminder plus the list of changes applied."""

    reminder: Reminder
    corrections: tuple[Correction, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.corrections)


# =============================================================================
# VALIDATION
# =============================================================================


def _uses_day_list(rule: RecurrenceRule) -> bool:
    return (
        rule.frequency == Frequency.CUSTOM
        and rule.effective_custom_mode == CustomMode.DAYS_OF_WEEK
    )


def _validate_rule(
    reminder: Reminder,
    rule: RecurrenceRule,
    result: ValidationResult,
    limits: ValidationLimits,
) -> None:
    if rule.interval < 1:
        result.add_error(ErrorKind.INTERVAL_TOO_SMALL)
    elif rule.interval > limits.interval_warn_threshold:
        result.add_warning(WarningKind.INTERVAL_VERY_LARGE)

    if any(not 0 <= day <= 6 for day in rule.days_of_week):
        result.add_error(ErrorKind.DAY_OF_WEEK_OUT_OF_RANGE)

    if _uses_day_list(rule) and not rule.days_of_week:
        result.add_error(ErrorKind.CUSTOM_DAYS_REQUIRED)

    if rule.end_date is not None and rule.end_after_occurrences is not None:
        result.add_error(ErrorKind.CONFLICTING_END_CONDITIONS)

    if rule.end_after_occurrences is not None and rule.end_after_occurrences < 1:
        result.add_error(ErrorKind.OCCURRENCE_COUNT_TOO_SMALL)

    anchor = reminder.anchor
    if rule.end_date is not None and anchor is not None:
        if rule.end_date <= anchor.date:
            result.add_error(ErrorKind.END_DATE_NOT_AFTER_ANCHOR)

    window = rule.window
    if window is not None and window.start_date and window.end_date:
        if window.end_date <= window.start_date:
            result.add_error(ErrorKind.WINDOW_END_NOT_AFTER_START)


def _validate_notifications(
    config: NotificationConfig,
    result: ValidationResult,
    limits: ValidationLimits,
) -> None:
    if not config.enabled:
        return

    if not config.timings:
        result.add_error(ErrorKind.NOTIFICATIONS_WITHOUT_TIMINGS)
        return

    seen: set[NotificationTiming] = set()
    for timing in config.timings:
        if timing.offset_minutes < 0:
            result.add_error(ErrorKind.NOTIFICATION_OFFSET_NEGATIVE)
        elif timing.offset_minutes == 0 and timing.kind != TimingKind.EXACT:
            result.add_error(ErrorKind.NOTIFICATION_OFFSET_ZERO)
        elif timing.offset_minutes > limits.notification_offset_warn_minutes:
            result.add_warning(WarningKind.NOTIFICATION_OFFSET_VERY_LARGE)

        if timing in seen:
            result.add_error(ErrorKind.NOTIFICATION_DUPLICATE)
        seen.add(timing)

    if len(config.timings) > limits.notification_timings_max_count:
        result.add_error(ErrorKind.NOTIFICATION_TOO_MANY)
    elif len(config.timings) > limits.many_timings_warn_count:
        result.add_warning(WarningKind.MANY_NOTIFICATION_TIMINGS)


def validate_reminder(
    reminder: Reminder,
    *,
    context: ScheduleContext | None = None,
    limits: ValidationLimits | None = None,
) -> ValidationResult:
    """Check a reminder for structural errors and configuration warnings.

    Args:
        reminder: Reminder to check (left untouched)
        context: Shared now/zone snapshot, used for the past-anchor warning.
            Captured here if not provided.
        limits: Size limits and thresholds. Defaults to the const values.

    Returns:
        ValidationResult; `valid` is True when no blocking error was found.
    """
    context = context or ScheduleContext.capture()
    limits = limits or ValidationLimits()
    result = ValidationResult()

    # Title / description
    if not reminder.title or not reminder.title.strip():
        result.add_error(ErrorKind.TITLE_EMPTY)
    elif len(reminder.title) > limits.title_max_length:
        result.add_error(ErrorKind.TITLE_TOO_LONG)

    if (
        reminder.description is not None
        and len(reminder.description) > limits.description_max_length
    ):
        result.add_error(ErrorKind.DESCRIPTION_TOO_LONG)

    # Recurrence
    if reminder.is_recurring:
        if reminder.recurrence is None:
            result.add_error(ErrorKind.RECURRING_MISSING_RULE)
        if reminder.anchor is None:
            result.add_error(ErrorKind.RECURRING_MISSING_ANCHOR)
        if reminder.recurrence is not None:
            _validate_rule(reminder, reminder.recurrence, result, limits)
    elif reminder.anchor is not None and reminder.status == ReminderStatus.PENDING:
        if reminder.anchor.to_datetime(context.tz) < context.now:
            result.add_warning(WarningKind.ANCHOR_IN_PAST)

    # Notifications
    if reminder.notifications is not None:
        _validate_notifications(reminder.notifications, result, limits)

    # Assignment
    if len(reminder.assigned_to) > limits.assigned_to_max_count:
        result.add_error(ErrorKind.ASSIGNEES_OVER_LIMIT)
    if len(set(reminder.assigned_to)) != len(reminder.assigned_to):
        result.add_error(ErrorKind.ASSIGNEES_DUPLICATE)

    # Status
    if (reminder.status == ReminderStatus.COMPLETED) != reminder.completed:
        result.add_warning(WarningKind.STATUS_COMPLETED_FLAG_MISMATCH)

    if result.errors:
        const.LOGGER.debug(
            "Reminder %s failed validation: %s",
            reminder.reminder_id,
            ", ".join(result.errors),
        )
    return result


# =============================================================================
# SANITIZING
# =============================================================================


def _sanitize_rule(
    reminder: Reminder, rule: RecurrenceRule, corrections: list[Correction]
) -> RecurrenceRule:
    if rule.interval < 1:
        rule = replace(rule, interval=const.DEFAULT_INTERVAL)
        corrections.append(
            Correction(
                const.DATA_REMINDER_CUSTOM_INTERVAL, CorrectionKind.RESET_INTERVAL
            )
        )

    valid_days = frozenset(day for day in rule.days_of_week if 0 <= day <= 6)
    if valid_days != rule.days_of_week:
        rule = replace(rule, days_of_week=valid_days)
        corrections.append(
            Correction(
                const.DATA_REMINDER_REPEAT_DAYS, CorrectionKind.DROPPED_INVALID_DAYS
            )
        )

    if _uses_day_list(rule) and not rule.days_of_week:
        rule = replace(rule, custom_mode=CustomMode.INTERVAL)
        corrections.append(
            Correction(
                const.DATA_REMINDER_CUSTOM_MODE,
                CorrectionKind.SWITCHED_TO_INTERVAL_MODE,
            )
        )

    count = rule.end_after_occurrences
    if count is not None and (rule.end_date is not None or count < 1):
        rule = replace(rule, end_after_occurrences=None)
        corrections.append(
            Correction(
                const.DATA_REMINDER_RECURRING_END_AFTER,
                CorrectionKind.DROPPED_OCCURRENCE_COUNT,
            )
        )

    anchor = reminder.anchor
    if (
        rule.end_date is not None
        and anchor is not None
        and rule.end_date <= anchor.date
    ):
        rule = replace(rule, end_date=None)
        corrections.append(
            Correction(
                const.DATA_REMINDER_RECURRING_END_DATE, CorrectionKind.DROPPED_END_DATE
            )
        )

    window = rule.window
    if (
        window is not None
        and window.start_date
        and window.end_date
        and window.end_date <= window.start_date
    ):
        rule = replace(rule, window=None)
        corrections.append(
            Correction(
                const.DATA_REMINDER_RECURRING_WINDOW_END_DATE,
                CorrectionKind.DROPPED_WINDOW,
            )
        )

    return rule


def _sanitize_notifications(
    config: NotificationConfig,
    limits: ValidationLimits,
    corrections: list[Correction],
) -> NotificationConfig:
    if not config.enabled:
        return config

    key = const.DATA_REMINDER_NOTIFICATION_TIMINGS
    timings: list[NotificationTiming] = []
    for timing in config.timings:
        if timing.offset_minutes < 0:
            corrections.append(Correction(key, CorrectionKind.DROPPED_NEGATIVE_TIMING))
            continue
        if timing.offset_minutes == 0 and timing.kind != TimingKind.EXACT:
            timing = NotificationTiming(TimingKind.EXACT, 0)
            corrections.append(Correction(key, CorrectionKind.ZERO_OFFSET_TO_EXACT))
        if timing in timings:
            corrections.append(Correction(key, CorrectionKind.DROPPED_DUPLICATE_TIMING))
            continue
        timings.append(timing)

    if len(timings) > limits.notification_timings_max_count:
        timings = timings[: limits.notification_timings_max_count]
        corrections.append(Correction(key, CorrectionKind.CAPPED_TIMINGS))

    if not timings:
        corrections.append(
            Correction(
                const.DATA_REMINDER_HAS_NOTIFICATION,
                CorrectionKind.DISABLED_NOTIFICATIONS,
            )
        )
        return NotificationConfig(enabled=False, timings=())

    if tuple(timings) == config.timings:
        return config
    return replace(config, timings=tuple(timings))


def sanitize_reminder(
    reminder: Reminder,
    *,
    limits: ValidationLimits | None = None,
) -> SanitizeResult:
    """Return a corrected copy of a reminder that passes validation.

    Each blocking error is repaired with the least destructive change:
    conflicting end conditions keep the end date, an empty custom day list
    switches to interval mode, and zero-offset before/after timings become
    exact ones. Applying it to its own output changes nothing.

    Args:
        reminder: Reminder to correct (left untouched)
        limits: Size limits. Defaults to the const values.

    Returns:
        SanitizeResult with the corrected reminder and applied corrections.
    """
    limits = limits or ValidationLimits()
    corrections: list[Correction] = []
    changes: dict[str, object] = {}

    title = reminder.title or ""
    if len(title) > limits.title_max_length:
        title = title[: limits.title_max_length]
        corrections.append(
            Correction(const.DATA_REMINDER_TITLE, CorrectionKind.TRUNCATED_TITLE)
        )
    if not title.strip():
        title = const.DEFAULT_REMINDER_TITLE[: limits.title_max_length]
        corrections.append(
            Correction(const.DATA_REMINDER_TITLE, CorrectionKind.DEFAULT_TITLE)
        )
    if title != reminder.title:
        changes["title"] = title

    description = reminder.description
    if description is not None and len(description) > limits.description_max_length:
        changes["description"] = description[: limits.description_max_length]
        corrections.append(
            Correction(
                const.DATA_REMINDER_DESCRIPTION, CorrectionKind.TRUNCATED_DESCRIPTION
            )
        )

    if reminder.is_recurring:
        if reminder.recurrence is None or reminder.anchor is None:
            changes["is_recurring"] = False
            changes["recurrence"] = None
            corrections.append(
                Correction(
                    const.DATA_REMINDER_IS_RECURRING, CorrectionKind.DROPPED_RECURRENCE
                )
            )
        else:
            rule = _sanitize_rule(reminder, reminder.recurrence, corrections)
            if rule != reminder.recurrence:
                changes["recurrence"] = rule

    if reminder.notifications is not None:
        config = _sanitize_notifications(reminder.notifications, limits, corrections)
        if config != reminder.notifications:
            changes["notifications"] = config

    assignees = list(dict.fromkeys(reminder.assigned_to))
    if len(assignees) != len(reminder.assigned_to):
        corrections.append(
            Correction(
                const.DATA_REMINDER_ASSIGNED_TO,
                CorrectionKind.DROPPED_DUPLICATE_ASSIGNEES,
            )
        )
    if len(assignees) > limits.assigned_to_max_count:
        assignees = assignees[: limits.assigned_to_max_count]
        corrections.append(
            Correction(const.DATA_REMINDER_ASSIGNED_TO, CorrectionKind.CAPPED_ASSIGNEES)
        )
    if tuple(assignees) != reminder.assigned_to:
        changes["assigned_to"] = tuple(assignees)

    if not changes:
        return SanitizeResult(reminder=reminder)

    const.LOGGER.debug(
        "Sanitized reminder %s: %s",
        reminder.reminder_id,
        ", ".join(correction.kind for correction in corrections),
    )
    return SanitizeResult(
        reminder=replace(reminder, **changes), corrections=tuple(corrections)
    )
