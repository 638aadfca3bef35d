"""Notification Engine for ClearCue.

Turns occurrences into absolute notification trigger instants.

Per timing the trigger is the occurrence instant shifted by the offset:
before subtracts, after adds, exact keeps it. Triggers earlier than the
context's "now" are dropped; a trigger exactly at "now" is still delivered.
Results are sorted ascending, ties kept in timing order.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

from .. import const
from ..models import (
    NotificationConfig,
    NotificationInstant,
    NotificationTiming,
    Occurrence,
    Reminder,
    ScheduleContext,
    TimingKind,
)
from ..utils.dt_utils import dt_at_time_of, start_of_local_day
from .occurrence_engine import generate_occurrences


def trigger_instant(
    occurrence_instant: datetime, timing: NotificationTiming
) -> datetime | None:
    """Shift an occurrence instant by one timing's offset.

    Returns None when the shifted instant is not representable.
    """
    try:
        offset = timedelta(minutes=timing.offset_minutes)
        if timing.kind == TimingKind.BEFORE:
            return occurrence_instant - offset
        if timing.kind == TimingKind.AFTER:
            return occurrence_instant + offset
    except OverflowError:
        const.LOGGER.debug(
            "Trigger for %s shifted by %s is out of range", occurrence_instant, timing
        )
        return None
    return occurrence_instant


def expand(
    occurrence: Occurrence,
    notification_config: NotificationConfig | None,
    *,
    context: ScheduleContext | None = None,
) -> list[NotificationInstant]:
    """Expand one occurrence into its future notification instants.

    Args:
        occurrence: The due instant to notify about
        notification_config: Timings to apply. Disabled or empty yields nothing.
        context: Shared now/zone snapshot. Captured here if not provided.

    Returns:
        NotificationInstants not before now, sorted ascending.
    """
    if notification_config is None or not notification_config.enabled:
        return []

    context = context or ScheduleContext.capture()
    instants: list[NotificationInstant] = []
    for timing in notification_config.timings:
        instant = trigger_instant(occurrence.instant, timing)
        if instant is not None:
            instants.append(
                NotificationInstant(
                    instant=instant, occurrence=occurrence, timing=timing
                )
            )
    # sorted() is stable, so equal instants keep timing order
    return sorted(
        (item for item in instants if item.instant >= context.now),
        key=lambda item: item.instant,
    )


def _lookahead_start(reminder: Reminder, context: ScheduleContext) -> datetime:
    """Start early enough that a recent occurrence's "after" timing is seen."""
    config = reminder.notifications
    longest_after = max(
        (
            timing.offset_minutes
            for timing in (config.timings if config else ())
            if timing.kind == TimingKind.AFTER and timing.offset_minutes > 0
        ),
        default=0,
    )
    try:
        earliest = context.now - timedelta(minutes=longest_after)
    except OverflowError:
        # Reaches back before year 1, so every occurrence is in range
        return dt_at_time_of(date.min, None, context.tz)
    return start_of_local_day(earliest, context.tz)


def _occurrences_to_notify(
    reminder: Reminder, max_occurrences: int, context: ScheduleContext
) -> list[Occurrence]:
    if reminder.anchor is None:
        return []
    if not reminder.is_recurring or reminder.recurrence is None:
        # A single reminder keeps its anchor even when already past
        return generate_occurrences(
            reminder,
            1,
            reminder.anchor.to_datetime(context.tz),
            context=context,
        )
    return generate_occurrences(
        reminder,
        max_occurrences,
        _lookahead_start(reminder, context),
        context=context,
    )


def schedule_notifications(
    reminder: Reminder,
    max_occurrences: int = const.NOTIFICATION_LOOKAHEAD_OCCURRENCES,
    *,
    context: ScheduleContext | None = None,
) -> list[NotificationInstant]:
    """List every pending notification across the next occurrences.

    Returns:
        NotificationInstants sorted ascending, ready for delivery scheduling.
    """
    config = reminder.notifications
    if config is None or not config.enabled or not config.timings:
        return []

    context = context or ScheduleContext.capture()
    instants: list[NotificationInstant] = []
    for occurrence in _occurrences_to_notify(reminder, max_occurrences, context):
        instants.extend(expand(occurrence, config, context=context))
    return sorted(instants, key=lambda item: item.instant)


def next_notification(
    reminder: Reminder,
    *,
    context: ScheduleContext | None = None,
) -> NotificationInstant | None:
    """Return the earliest pending notification, or None.

    For recurring reminders the next few occurrences are all inspected,
    because a near occurrence's "after" trigger may fire sooner than a far
    occurrence's "before" trigger, and vice versa.
    """
    context = context or ScheduleContext.capture()
    pending = schedule_notifications(
        reminder, const.NOTIFICATION_LOOKAHEAD_OCCURRENCES, context=context
    )
    if not pending:
        const.LOGGER.debug(
            "No pending notification for reminder %s", reminder.reminder_id
        )
        return None
    return pending[0]
