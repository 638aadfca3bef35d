"""Engine modules for ClearCue.

Contains the computation engines:
- schedule_engine: Next-occurrence calculation and RRULE export
- occurrence_engine: Bounded expansion of a reminder into occurrences
- notification_engine: Notification trigger instants per occurrence
- validation_engine: Structural validation and sanitizing
- audit_engine: Batch consistency diagnostics and record repair
"""

# Use relative imports within package to avoid mypy module resolution issues
from .audit_engine import (
    AuditIssue,
    AuditReport,
    RepairResult,
    audit_reminders,
    repair_reminder,
)
from .notification_engine import expand, next_notification, schedule_notifications
from .occurrence_engine import (
    estimate_occurrences,
    generate_occurrences,
    next_occurrence,
)
from .schedule_engine import (
    NonMonotonicOccurrenceError,
    RecurrenceEngine,
    is_occurrence_date,
    next_occurrence_after,
)
from .validation_engine import (
    Correction,
    CorrectionKind,
    ErrorKind,
    SanitizeResult,
    ValidationResult,
    WarningKind,
    sanitize_reminder,
    validate_reminder,
)

__all__ = [
    "AuditIssue",
    "AuditReport",
    "Correction",
    "CorrectionKind",
    "ErrorKind",
    "NonMonotonicOccurrenceError",
    "RecurrenceEngine",
    "RepairResult",
    "SanitizeResult",
    "ValidationResult",
    "WarningKind",
    "audit_reminders",
    "estimate_occurrences",
    "expand",
    "generate_occurrences",
    "is_occurrence_date",
    "next_notification",
    "next_occurrence",
    "next_occurrence_after",
    "repair_reminder",
    "sanitize_reminder",
    "schedule_notifications",
    "validate_reminder",
]
