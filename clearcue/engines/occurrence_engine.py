"""Occurrence Engine for ClearCue.

Expands a reminder into its ordered list of concrete occurrences by repeatedly
asking the schedule engine for the next instant. Applies the series end
conditions (end date, occurrence count), the optional window and the
caller's maximum, and guards the walk with an iteration ceiling.

The output is strictly increasing. A non-increasing interpreter result is an
engine defect and raises NonMonotonicOccurrenceError.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from .. import const
from ..models import AnchorInstant, Occurrence, Reminder, ScheduleContext
from ..utils.dt_utils import as_local, dt_at_time_of, start_of_local_day
from .schedule_engine import (
    NonMonotonicOccurrenceError,
    RecurrenceEngine,
    occurrence_gap,
)


def _build_occurrence(
    reminder: Reminder, instant: datetime, context: ScheduleContext, is_next: bool
) -> Occurrence:
    """Wrap an instant, moving the reminder's anchor onto it."""
    local = as_local(instant, context.tz)
    anchor_time = reminder.anchor.time if reminder.anchor else None
    occurrence_time = local.time() if anchor_time else None
    return Occurrence(
        date=local.date(),
        time=occurrence_time,
        instant=instant,
        is_next=is_next,
        reminder=reminder.with_anchor(AnchorInstant(local.date(), occurrence_time)),
    )


def _effective_search_start(
    reminder: Reminder, search_start: datetime | None, context: ScheduleContext
) -> datetime:
    """Default to the start of today, then respect the window's first date."""
    start = search_start or start_of_local_day(context.now, context.tz)
    rule = reminder.recurrence
    if rule is not None and rule.window is not None and rule.window.start_date:
        window_start = dt_at_time_of(rule.window.start_date, None, context.tz)
        start = max(start, window_start)
    return start


def generate_occurrences(
    reminder: Reminder,
    max_occurrences: int = const.DEFAULT_MAX_OCCURRENCES,
    search_start: datetime | None = None,
    *,
    context: ScheduleContext | None = None,
) -> list[Occurrence]:
    """Generate up to `max_occurrences` occurrences at or after `search_start`.

    Args:
        reminder: Reminder to expand. A non-recurring reminder yields its anchor
            (when not before the search start).
        max_occurrences: Upper bound on the returned list
        search_start: First instant of interest. Defaults to the start of
            today in the context zone, so an occurrence earlier today is kept.
        context: Shared now/zone snapshot. Captured here if not provided.

    Returns:
        Occurrences in strictly increasing order; the first has is_next=True.
        An exhausted or unbounded-but-empty series returns an empty list.
    """
    context = context or ScheduleContext.capture()
    anchor = reminder.anchor
    if anchor is None or max_occurrences <= 0:
        return []

    start = _effective_search_start(reminder, search_start, context)

    rule = reminder.recurrence
    if not reminder.is_recurring or rule is None:
        instant = anchor.to_datetime(context.tz)
        if instant < start:
            return []
        return [_build_occurrence(reminder, instant, context, is_next=True)]

    engine = RecurrenceEngine(rule, anchor, context.tz)
    count_limit = rule.end_after_occurrences
    window_end = rule.window.end_date if rule.window else None

    iterations = 0
    series_index = 1
    current = engine.get_next_occurrence(start, inclusive=True)
    if count_limit is not None and current is not None:
        # A count limit is measured from the anchor
        elapsed = engine.count_before(current)
        if elapsed is None or elapsed >= count_limit:
            current = None
        else:
            series_index = elapsed + 1

    occurrences: list[Occurrence] = []
    while current is not None and len(occurrences) < max_occurrences:
        if iterations >= const.MAX_SERIES_ITERATIONS:
            const.LOGGER.debug(
                "Occurrence generation ceiling reached for reminder %s",
                reminder.reminder_id,
            )
            break

        current_date = as_local(current, context.tz).date()
        if rule.end_date is not None and current_date > rule.end_date:
            break
        if count_limit is not None and series_index > count_limit:
            break
        if window_end is not None and current_date > window_end:
            break

        occurrences.append(
            _build_occurrence(reminder, current, context, is_next=not occurrences)
        )
        current = _advance(engine, current)
        series_index += 1
        iterations += 1

    if not occurrences:
        const.LOGGER.debug(
            "No upcoming occurrences for reminder %s", reminder.reminder_id
        )
    return occurrences


def _advance(engine: RecurrenceEngine, current: datetime) -> datetime | None:
    """Step to the next occurrence and enforce strict monotonicity."""
    candidate = engine.get_next_occurrence(current)
    if candidate is not None and candidate <= current:
        raise NonMonotonicOccurrenceError(current, candidate)
    return candidate


def next_occurrence(
    reminder: Reminder,
    *,
    context: ScheduleContext | None = None,
) -> Occurrence | None:
    """Return the first occurrence at or after the current instant, if any."""
    context = context or ScheduleContext.capture()
    found = generate_occurrences(reminder, 1, context.now, context=context)
    return found[0] if found else None


def estimate_occurrences(
    reminder: Reminder,
    days_ahead: int = const.DEFAULT_ESTIMATE_DAYS_AHEAD,
) -> int:
    """Roughly estimate how many occurrences fall within `days_ahead` days.

    Uses the rule's nominal spacing and caps by the occurrence count. Useful
    for previews; not exact around month ends or windows.
    """
    rule = reminder.recurrence
    if not reminder.is_recurring or rule is None:
        return 1 if reminder.anchor is not None else 0

    estimate = int(timedelta(days=days_ahead) / occurrence_gap(rule))
    if rule.end_after_occurrences is not None:
        estimate = min(estimate, rule.end_after_occurrences)
    return max(0, estimate)
