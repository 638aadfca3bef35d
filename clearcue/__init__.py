"""ClearCue reminder recurrence engine.

Computes occurrences and notification instants for personal reminders,
validates and sanitizes their rules, and audits stored reminder records.

The host sets its IANA zone once with `set_default_timezone()` and captures a
`ScheduleContext` per request; everything else is pure computation.
"""

from .data_builders import RecordValidationError, build_reminder, reminder_to_record
from .engines import (
    AuditIssue,
    AuditReport,
    ErrorKind,
    NonMonotonicOccurrenceError,
    RecurrenceEngine,
    ValidationResult,
    WarningKind,
    audit_reminders,
    expand,
    generate_occurrences,
    next_notification,
    next_occurrence_after,
    repair_reminder,
    sanitize_reminder,
    schedule_notifications,
    validate_reminder,
)
from .models import (
    AnchorInstant,
    CustomMode,
    EndCondition,
    Frequency,
    NotificationConfig,
    NotificationInstant,
    NotificationTiming,
    Occurrence,
    RecurrenceRule,
    RecurrenceWindow,
    Reminder,
    ReminderStatus,
    ScheduleContext,
    TimingKind,
    ValidationLimits,
)
from .utils.dt_utils import get_default_timezone, set_default_timezone

__all__ = [
    "AnchorInstant",
    "AuditIssue",
    "AuditReport",
    "CustomMode",
    "EndCondition",
    "ErrorKind",
    "Frequency",
    "NonMonotonicOccurrenceError",
    "NotificationConfig",
    "NotificationInstant",
    "NotificationTiming",
    "Occurrence",
    "RecordValidationError",
    "RecurrenceEngine",
    "RecurrenceRule",
    "RecurrenceWindow",
    "Reminder",
    "ReminderStatus",
    "ScheduleContext",
    "TimingKind",
    "ValidationLimits",
    "ValidationResult",
    "WarningKind",
    "audit_reminders",
    "build_reminder",
    "expand",
    "generate_occurrences",
    "get_default_timezone",
    "next_notification",
    "next_occurrence_after",
    "reminder_to_record",
    "repair_reminder",
    "sanitize_reminder",
    "schedule_notifications",
    "set_default_timezone",
    "validate_reminder",
]
