"""Audit Engine for ClearCue.

Batch consistency diagnostics over persisted reminder records, and an
explicit per-record repair step.

`audit_reminders()` is read-only: it reports which records show which issue
and leaves every record untouched. `repair_reminder()` fixes record-level
corruption, runs the validator's sanitizer and hands the corrected record to
the caller's commit callback only when the sanitized reminder validates.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

from .. import const
from ..data_builders import (
    build_reminder,
    date_field_is_unparseable,
    parse_date_field,
    reminder_to_record,
)
from ..models import Reminder, ReminderStatus, ScheduleContext
from ..type_defs import RawRecord
from .notification_engine import next_notification
from .occurrence_engine import generate_occurrences
from .validation_engine import (
    Correction,
    ValidationResult,
    sanitize_reminder,
    validate_reminder,
)


class AuditIssue(StrEnum):
    """Consistency problems found in stored records."""

    RECURRING_WITHOUT_RULE = "recurring_without_rule"
    NOTIFICATIONS_WITHOUT_TIMINGS = "notifications_without_timings"
    STATUS_COMPLETED_MISMATCH = "status_completed_mismatch"
    UNPARSEABLE_DUE_DATE = "unparseable_due_date"
    UNPARSEABLE_START_DATE = "unparseable_start_date"
    UNPARSEABLE_END_DATE = "unparseable_end_date"
    INVALID_DATE_RANGE = "invalid_date_range"
    PENDING_PAST_DUE = "pending_past_due"
    COMPLETED_FUTURE_DUE = "completed_future_due"
    RECURRING_SERIES_EXHAUSTED = "recurring_series_exhausted"
    NO_UPCOMING_NOTIFICATION = "no_upcoming_notification"
    VALIDATION_FAILED = "validation_failed"


class RepairKind(StrEnum):
    """Record-level fixes applied before sanitizing."""

    CLEARED_UNPARSEABLE_DATE = "cleared_unparseable_date"
    CLEARED_INVALID_END_DATE = "cleared_invalid_end_date"
    SYNCED_COMPLETED_FLAG = "synced_completed_flag"
    CLEARED_RECURRING_FLAG = "cleared_recurring_flag"
    DISABLED_NOTIFICATIONS = "disabled_notifications"


UNPARSEABLE_DATE_ISSUES: dict[str, AuditIssue] = {
    const.DATA_REMINDER_DUE_DATE: AuditIssue.UNPARSEABLE_DUE_DATE,
    const.DATA_REMINDER_START_DATE: AuditIssue.UNPARSEABLE_START_DATE,
    const.DATA_REMINDER_END_DATE: AuditIssue.UNPARSEABLE_END_DATE,
}


# =============================================================================
# RESULT TYPES
# =============================================================================


@dataclass
class AuditReport:
    """Issues found by audit_reminders(), keyed by issue kind.

    Attributes:
        issues: Affected record ids per issue kind, in input order
        checked: Number of records inspected
    """

    issues: dict[AuditIssue, list[str]] = field(default_factory=dict)
    checked: int = 0

    @property
    def is_clean(self) -> bool:
        return not self.issues

    def add(self, kind: AuditIssue, record_id: str) -> None:
        affected = self.issues.setdefault(kind, [])
        if record_id not in affected:
            affected.append(record_id)

    def affected_ids(self, kind: AuditIssue) -> list[str]:
        return list(self.issues.get(kind, []))

    def issue_counts(self) -> dict[str, int]:
        """Summarize as {issue: count}, e.g. for diagnostics output."""
        return {kind.value: len(ids) for kind, ids in self.issues.items()}


@dataclass(frozen=True)
class RecordRepair:
    """One record-level fix made by repair_reminder()."""

    field: str
    kind: RepairKind


@dataclass
class RepairResult:
    """Outcome of repair_reminder().

    Attributes:
        record: Corrected record (input keys preserved, engine keys rewritten)
        reminder: Sanitized reminder built from the corrected record
        repairs: Record-level fixes
        corrections: Sanitizer corrections
        validation: Validation of the sanitized reminder
        committed: True when the commit callback was invoked
    """

    record: RawRecord
    reminder: Reminder
    repairs: list[RecordRepair] = field(default_factory=list)
    corrections: tuple[Correction, ...] = ()
    validation: ValidationResult = field(default_factory=ValidationResult)
    committed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.repairs or self.corrections)


# =============================================================================
# AUDIT
# =============================================================================


def _record_id(record: RawRecord, index: int) -> str:
    return str(record.get(const.DATA_REMINDER_ID) or f"#{index}")


def _record_range(
    record: RawRecord, context: ScheduleContext
) -> tuple[date | None, date | None]:
    start = parse_date_field(record.get(const.DATA_REMINDER_START_DATE), context.tz)
    end = parse_date_field(record.get(const.DATA_REMINDER_END_DATE), context.tz)
    return start, end


def _audit_record(
    record: RawRecord,
    record_id: str,
    report: AuditReport,
    context: ScheduleContext,
) -> None:
    reminder = build_reminder(record, context.tz)

    if reminder.is_recurring and reminder.recurrence is None:
        report.add(AuditIssue.RECURRING_WITHOUT_RULE, record_id)

    notifications = reminder.notifications
    if (
        notifications is not None
        and notifications.enabled
        and not notifications.timings
    ):
        report.add(AuditIssue.NOTIFICATIONS_WITHOUT_TIMINGS, record_id)

    if (reminder.status == ReminderStatus.COMPLETED) != reminder.completed:
        report.add(AuditIssue.STATUS_COMPLETED_MISMATCH, record_id)

    for key, issue in UNPARSEABLE_DATE_ISSUES.items():
        if date_field_is_unparseable(record, key):
            report.add(issue, record_id)

    start, end = _record_range(record, context)
    if start is not None and end is not None and end <= start:
        report.add(AuditIssue.INVALID_DATE_RANGE, record_id)

    anchor = reminder.anchor
    if anchor is not None and not reminder.is_recurring:
        due = anchor.to_datetime(context.tz)
        if reminder.status == ReminderStatus.PENDING and due < context.now:
            report.add(AuditIssue.PENDING_PAST_DUE, record_id)
        if reminder.status == ReminderStatus.COMPLETED and anchor.date > context.today:
            report.add(AuditIssue.COMPLETED_FUTURE_DUE, record_id)

    validation = validate_reminder(reminder, context=context)
    if not validation.valid:
        report.add(AuditIssue.VALIDATION_FAILED, record_id)
        return

    # Series checks only make sense for structurally valid pending reminders
    if (
        reminder.is_recurring
        and reminder.recurrence is not None
        and reminder.status == ReminderStatus.PENDING
    ):
        if not generate_occurrences(reminder, 1, context.now, context=context):
            report.add(AuditIssue.RECURRING_SERIES_EXHAUSTED, record_id)
        elif (
            notifications is not None
            and notifications.enabled
            and next_notification(reminder, context=context) is None
        ):
            report.add(AuditIssue.NO_UPCOMING_NOTIFICATION, record_id)


def audit_reminders(
    records: Iterable[RawRecord],
    *,
    context: ScheduleContext | None = None,
) -> AuditReport:
    """Diagnose consistency problems across stored reminder records.

    Args:
        records: Stored reminder dicts. Left untouched.
        context: Shared now/zone snapshot. Captured once here if not provided.

    Returns:
        AuditReport mapping each issue to the ids of the affected records.
        Records without an id are reported as "#<position>".
    """
    context = context or ScheduleContext.capture()
    report = AuditReport()

    for index, record in enumerate(records):
        report.checked += 1
        _audit_record(record, _record_id(record, index), report, context)

    if report.is_clean:
        const.LOGGER.debug("Audit of %d reminders found no issues", report.checked)
    else:
        const.LOGGER.info(
            "Audit of %d reminders found issues: %s",
            report.checked,
            report.issue_counts(),
        )
    return report


# =============================================================================
# REPAIR
# =============================================================================


def _fix_record(
    record: RawRecord, context: ScheduleContext
) -> tuple[RawRecord, list[RecordRepair]]:
    """Apply record-level fixes that the Reminder model cannot express."""
    fixed = dict(record)
    repairs: list[RecordRepair] = []

    for key in UNPARSEABLE_DATE_ISSUES:
        if date_field_is_unparseable(fixed, key):
            fixed[key] = None
            repairs.append(RecordRepair(key, RepairKind.CLEARED_UNPARSEABLE_DATE))

    start, end = _record_range(fixed, context)
    if start is not None and end is not None and end <= start:
        fixed[const.DATA_REMINDER_END_DATE] = None
        repairs.append(
            RecordRepair(
                const.DATA_REMINDER_END_DATE, RepairKind.CLEARED_INVALID_END_DATE
            )
        )

    is_completed = fixed.get(const.DATA_REMINDER_STATUS) == const.STATUS_COMPLETED
    if bool(fixed.get(const.DATA_REMINDER_COMPLETED, False)) != is_completed:
        fixed[const.DATA_REMINDER_COMPLETED] = is_completed
        repairs.append(
            RecordRepair(
                const.DATA_REMINDER_COMPLETED, RepairKind.SYNCED_COMPLETED_FLAG
            )
        )

    return fixed, repairs


def repair_reminder(
    record: RawRecord,
    commit: Callable[[RawRecord], None] | None = None,
    *,
    context: ScheduleContext | None = None,
) -> RepairResult:
    """Repair one stored record and commit it if the result validates.

    Fixes unparseable dates, an end date not after the start date and a
    completed flag out of sync with the status, then sanitizes the built
    reminder (dangling recurring flag, notifications without timings and
    every other structural error).

    Args:
        record: Stored reminder dict. Left untouched.
        commit: Callback receiving the corrected record. Only called when
            something changed and the sanitized reminder validates.
        context: Shared now/zone snapshot. Captured here if not provided.

    Returns:
        RepairResult describing the corrected record and what was changed.
    """
    context = context or ScheduleContext.capture()
    fixed, repairs = _fix_record(record, context)

    built = build_reminder(fixed, context.tz)
    sanitized = sanitize_reminder(built)
    reminder = sanitized.reminder

    for correction in sanitized.corrections:
        if correction.field == const.DATA_REMINDER_IS_RECURRING:
            repairs.append(
                RecordRepair(correction.field, RepairKind.CLEARED_RECURRING_FLAG)
            )
        elif correction.field == const.DATA_REMINDER_HAS_NOTIFICATION:
            repairs.append(
                RecordRepair(correction.field, RepairKind.DISABLED_NOTIFICATIONS)
            )

    corrected: RawRecord = {**fixed, **reminder_to_record(reminder)}
    validation = validate_reminder(reminder, context=context)
    result = RepairResult(
        record=corrected,
        reminder=reminder,
        repairs=repairs,
        corrections=sanitized.corrections,
        validation=validation,
    )

    if not validation.valid:
        const.LOGGER.warning(
            "Reminder %s still invalid after repair: %s",
            reminder.reminder_id,
            ", ".join(validation.errors),
        )
        return result

    if result.changed and commit is not None:
        commit(corrected)
        result.committed = True
        const.LOGGER.info(
            "Repaired reminder %s (%d fixes)",
            reminder.reminder_id,
            len(repairs) + len(sanitized.corrections),
        )
    return result
