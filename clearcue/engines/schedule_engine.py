"""Schedule Engine for ClearCue.

Pattern interpreter that answers "what is the next occurrence after this
instant" for a recurrence rule and its anchor. Two strategies:
- `dateutil.rrule` for daily, weekly, weekday sets, custom rules and the
  first Monday / last Friday month patterns
- anchored `dateutil.relativedelta` stepping for monthly/yearly, which need
  clamping (Jan 31 + 1 month = Feb 28, then Mar 31)

Every lookup is bounded: rrule sets carry a COUNT ceiling and the stepping
loop an iteration ceiling. Running out, or running past year 9999, is a
normal outcome and yields None.

IMPORTANT: This module must NOT import from the occurrence, notification,
validation or audit engines. Only import from const.py, models.py and utils.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import ClassVar

from dateutil.rrule import DAILY, FR, MO, MONTHLY, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..models import AnchorInstant, CustomMode, Frequency, RecurrenceRule
from ..utils.dt_utils import (
    as_local,
    dt_add_days,
    dt_add_months,
    dt_add_weeks,
    dt_add_years,
    dt_at_time_of,
    dt_months_between,
    dt_week_start,
    get_default_timezone,
)


class NonMonotonicOccurrenceError(RuntimeError):
    """Raised when the interpreter returns an instant that is not later.

    This is an engine defect, never a data problem.

    Attributes:
        previous: The occurrence the lookup started from
        candidate: The offending result
    """

    def __init__(self, previous: datetime, candidate: datetime) -> None:
        """Initialize NonMonotonicOccurrenceError."""
        self.previous = previous
        self.candidate = candidate
        super().__init__(
            f"Next occurrence {candidate.isoformat()} is not after "
            f"{previous.isoformat()}"
        )


class RecurrenceEngine:
    """Next-occurrence calculator for one rule anchored at one instant.

    Results keep the anchor's wall-clock time, are never before the anchor,
    and are strictly after the reference instant unless `inclusive` is set.
    """

    # Weekday sets for the fixed day-set frequencies (0 = Sunday)
    FIXED_DAY_SETS: ClassVar[dict[Frequency, frozenset[int]]] = {
        Frequency.WEEKDAYS: const.WORKING_DAYS,
        Frequency.WEEKENDS: const.WEEKEND_DAYS,
    }

    # Frequencies that need clamping (relativedelta instead of rrule)
    CLAMPING_FREQUENCIES: ClassVar[frozenset[Frequency]] = frozenset(
        {Frequency.MONTHLY, Frequency.YEARLY}
    )

    MONTH_PATTERNS: ClassVar[frozenset[Frequency]] = frozenset(
        {Frequency.FIRST_MONDAY, Frequency.LAST_FRIDAY}
    )

    # rrule weekday constants indexed by 0 = Sunday
    RRULE_WEEKDAYS: ClassVar[list] = [SU, MO, TU, WE, TH, FR, SA]

    RRULE_DAY_CODES: ClassVar[list[str]] = ["SU", "MO", "TU", "WE", "TH", "FR", "SA"]

    def __init__(
        self,
        rule: RecurrenceRule,
        anchor: AnchorInstant,
        tz: tzinfo | None = None,
    ) -> None:
        """Initialize the recurrence engine.

        Args:
            rule: Recurrence rule to interpret
            anchor: First due instant of the series
            tz: Zone for civil dates. Uses the dt_utils default if not provided.

        Note:
            Interval values below 1 are treated as 1 and weekdays outside
            0-6 are ignored. The validator reports both as errors.
        """
        self._rule = rule
        self._anchor = anchor
        self._tz = tz or get_default_timezone()
        self._interval = max(1, rule.interval or 1)
        self._days = frozenset(d for d in rule.days_of_week if 0 <= d <= 6)
        self._anchor_dt = anchor.to_datetime(self._tz)

    @property
    def anchor_datetime(self) -> datetime:
        """Anchor resolved in the engine's zone."""
        return self._anchor_dt

    def get_next_occurrence(
        self, after: datetime, inclusive: bool = False
    ) -> datetime | None:
        """Calculate the next occurrence after a reference instant.

        Args:
            after: Reference instant (timezone-aware)
            inclusive: If True, an occurrence exactly at `after` qualifies

        Returns:
            Next occurrence as an aware datetime in the engine's zone, or None
            when no occurrence is found within the iteration ceiling.
        """
        # Nothing precedes the anchor
        if after < self._anchor_dt:
            after = self._anchor_dt
            inclusive = True

        try:
            if self._rule.frequency in self.CLAMPING_FREQUENCIES:
                result = self._calculate_with_relativedelta(after, inclusive)
            else:
                result = self._calculate_with_rrule(after, inclusive)
        except (ValueError, OverflowError) as exc:
            const.LOGGER.debug(
                "RecurrenceEngine: %s series ran out of range: %s",
                self._rule.frequency,
                exc,
            )
            return None

        if result is None:
            const.LOGGER.debug(
                "RecurrenceEngine: No occurrence found for %s after %s",
                self._rule.frequency,
                after.isoformat(),
            )
        return result

    def count_before(self, instant: datetime) -> int | None:
        """Count the occurrences of the series strictly before an instant.

        Stepped series (daily, weekly without days, monthly, yearly, custom
        interval) are counted arithmetically from the anchor; day-set and
        month patterns are counted by rrule.

        Returns:
            Occurrence count, or None if it could not be established within
            the iteration ceiling.
        """
        if instant <= self._anchor_dt:
            return 0
        try:
            if self._steps_from_anchor():
                return self._count_steps_before(instant)
            return self._count_rrule_before(instant)
        except (ValueError, OverflowError) as exc:
            const.LOGGER.debug(
                "RecurrenceEngine: Cannot count %s series: %s",
                self._rule.frequency,
                exc,
            )
            return None

    def is_occurrence_date(self, day: date) -> bool:
        """Check whether a civil date holds an occurrence of the series."""
        if day < self._anchor.date:
            return False
        start = dt_at_time_of(day, self._anchor.time, self._tz)
        found = self.get_next_occurrence(start, inclusive=True)
        return found is not None and as_local(found, self._tz).date() == day

    def to_rrule_string(self) -> str:
        """Generate RFC 5545 RRULE string for iCal export.

        Returns:
            RRULE string (e.g., "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE;WKST=SU")
            or empty string if not representable.
        """
        freq = self._rule.frequency
        interval = self._interval
        body = ""

        if freq == Frequency.DAILY:
            body = f"FREQ=DAILY;INTERVAL={interval}"
        elif freq == Frequency.WEEKDAYS:
            body = "FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR"
        elif freq == Frequency.WEEKENDS:
            body = "FREQ=WEEKLY;BYDAY=SA,SU"
        elif freq == Frequency.WEEKLY:
            body = self._rrule_string_with_weekdays(interval)
        elif freq == Frequency.MONTHLY:
            body = f"FREQ=MONTHLY;INTERVAL={interval}"
        elif freq == Frequency.YEARLY:
            body = f"FREQ=YEARLY;INTERVAL={interval}"
        elif freq in self.MONTH_PATTERNS:
            byday = "1MO" if freq == Frequency.FIRST_MONDAY else "-1FR"
            body = "FREQ=MONTHLY"
            if interval > 1:
                body += f";INTERVAL={interval}"
            body += f";BYDAY={byday}"
        elif freq == Frequency.CUSTOM:
            if self._custom_mode() == CustomMode.INTERVAL:
                body = f"FREQ=DAILY;INTERVAL={interval}"
            elif self._days:
                body = self._rrule_string_with_weekdays(interval)

        if not body:
            return ""

        if self._rule.end_date is not None:
            body += f";UNTIL={self._rule.end_date.strftime('%Y%m%d')}"
        elif self._rule.end_after_occurrences is not None:
            body += f";COUNT={self._rule.end_after_occurrences}"
        return body

    # =========================================================================
    # Private: rule shape
    # =========================================================================

    def _custom_mode(self) -> CustomMode:
        return self._rule.effective_custom_mode

    def _uses_day_set(self) -> bool:
        """Check whether occurrences are picked from a set of weekdays."""
        freq = self._rule.frequency
        if freq in self.FIXED_DAY_SETS:
            return True
        if freq == Frequency.WEEKLY:
            return bool(self._days)
        return (
            freq == Frequency.CUSTOM
            and self._custom_mode() == CustomMode.DAYS_OF_WEEK
        )

    def _steps_from_anchor(self) -> bool:
        """Check whether every occurrence is anchor + k * interval units."""
        return (
            self._rule.frequency not in self.MONTH_PATTERNS
            and not self._uses_day_set()
        )

    def _allowed_days(self) -> frozenset[int]:
        freq = self._rule.frequency
        if freq in self.FIXED_DAY_SETS:
            return self.FIXED_DAY_SETS[freq]
        return self._days

    def _rrule_interval(self) -> int:
        # Fixed weekday sets repeat every week
        if self._rule.frequency in self.FIXED_DAY_SETS:
            return 1
        return self._interval

    def _candidate(self, day: date) -> datetime:
        """Resolve a civil date to an instant at the anchor's wall-clock time."""
        return dt_at_time_of(day, self._anchor.time, self._tz)

    @staticmethod
    def _qualifies(candidate: datetime, after: datetime, inclusive: bool) -> bool:
        return candidate >= after if inclusive else candidate > after

    # =========================================================================
    # Private: rrule-based calculation (daily, weekly, day sets, month patterns)
    # =========================================================================

    def _build_rrule(self, dtstart: date, count: int | None = None) -> rrule:
        """Build the rrule over civil dates (naive midnights) from dtstart.

        Weeks start on Sunday so interval parity matches the day numbering.
        """
        freq = self._rule.frequency
        start = datetime.combine(dtstart, time.min)
        interval = self._rrule_interval()

        if freq in self.MONTH_PATTERNS:
            byweekday = (
                self.RRULE_WEEKDAYS[const.MONDAY](+1)
                if freq == Frequency.FIRST_MONDAY
                else self.RRULE_WEEKDAYS[const.FRIDAY](-1)
            )
            return rrule(
                MONTHLY,
                interval=interval,
                dtstart=start,
                byweekday=byweekday,
                count=count,
            )

        if self._uses_day_set():
            days = sorted(self._allowed_days())
            return rrule(
                WEEKLY,
                interval=interval,
                dtstart=start,
                byweekday=[self.RRULE_WEEKDAYS[d] for d in days],
                wkst=SU,
                count=count,
            )

        rrule_freq = WEEKLY if freq == Frequency.WEEKLY else DAILY
        return rrule(rrule_freq, interval=interval, dtstart=start, count=count)

    def _rrule_start(self, ref_day: date) -> date | None:
        """Return the last period start at or before ref_day.

        Periods are whole intervals counted from the anchor's day, week or
        month, so starting the rrule there keeps the series' parity while
        skipping everything before the reference.
        """
        anchor_date = self._anchor.date
        freq = self._rule.frequency
        interval = self._rrule_interval()

        if freq in self.MONTH_PATTERNS:
            base = anchor_date.replace(day=1)
            months = dt_months_between(base, ref_day)
            return dt_add_months(base, months // interval * interval)

        if self._uses_day_set():
            base = dt_week_start(anchor_date)
            weeks = (dt_week_start(ref_day) - base).days // 7
            return dt_add_weeks(base, weeks // interval * interval)

        if freq == Frequency.WEEKLY:
            weeks = (ref_day - anchor_date).days // 7
            return dt_add_weeks(anchor_date, weeks // interval * interval)

        days = (ref_day - anchor_date).days
        return dt_add_days(anchor_date, days // interval * interval)

    def _scan_ceiling(self) -> int:
        if self._rule.frequency in self.MONTH_PATTERNS:
            return const.MAX_MONTH_SCAN_ITERATIONS
        if self._uses_day_set():
            return const.MAX_DAY_SCAN_ITERATIONS
        return const.MAX_DATE_CALCULATION_ITERATIONS

    def _calculate_with_rrule(
        self, after: datetime, inclusive: bool
    ) -> datetime | None:
        """Return the first rrule date whose anchored instant qualifies."""
        if self._uses_day_set() and not self._allowed_days():
            return None

        ref_day = as_local(after, self._tz).date()
        dtstart = self._rrule_start(ref_day)
        if dtstart is None:
            return None

        rule = self._build_rrule(dtstart, count=self._scan_ceiling())
        found = rule.after(datetime.combine(ref_day, time.min), inc=True)
        while found is not None:
            candidate = self._candidate(found.date())
            if self._qualifies(candidate, after, inclusive):
                return candidate
            found = rule.after(found)
        return None

    def _count_rrule_before(self, instant: datetime) -> int:
        if self._uses_day_set() and not self._allowed_days():
            return 0
        ref_day = as_local(instant, self._tz).date()
        rule = self._build_rrule(self._anchor.date)
        found = rule.between(
            datetime.combine(self._anchor.date, time.min),
            datetime.combine(ref_day, time.min),
            inc=True,
        )
        return sum(1 for day in found if self._candidate(day.date()) < instant)

    # =========================================================================
    # Private: relativedelta-based calculation (monthly, yearly)
    # =========================================================================

    def _step(self, k: int) -> date | None:
        """Return the civil date of the k-th step from the anchor.

        Always computed from the anchor so month clamping never drifts.
        None once the step leaves the representable years.
        """
        freq = self._rule.frequency
        anchor_date = self._anchor.date
        amount = k * self._interval
        if freq == Frequency.MONTHLY:
            return dt_add_months(anchor_date, amount)
        if freq == Frequency.YEARLY:
            return dt_add_years(anchor_date, amount)
        if freq == Frequency.WEEKLY:
            return dt_add_weeks(anchor_date, amount)
        return dt_add_days(anchor_date, amount)

    def _estimate_steps(self, after: datetime) -> int:
        """Estimate how many steps fit between the anchor and `after`.

        The estimate errs low by one step so the bounded loop finishes it.
        """
        after_date = as_local(after, self._tz).date()
        anchor_date = self._anchor.date
        if after_date <= anchor_date:
            return 0

        freq = self._rule.frequency
        if freq == Frequency.MONTHLY:
            units = dt_months_between(anchor_date, after_date)
        elif freq == Frequency.YEARLY:
            units = after_date.year - anchor_date.year
        elif freq == Frequency.WEEKLY:
            units = (after_date - anchor_date).days // 7
        else:
            units = (after_date - anchor_date).days
        return max(0, units // self._interval - 1)

    def _calculate_with_relativedelta(
        self, after: datetime, inclusive: bool
    ) -> datetime | None:
        """Return the first anchor + k * interval step that qualifies."""
        k = self._estimate_steps(after)
        for _ in range(const.MAX_DATE_CALCULATION_ITERATIONS):
            day = self._step(k)
            if day is None:
                return None
            candidate = self._candidate(day)
            if self._qualifies(candidate, after, inclusive):
                return candidate
            k += 1

        const.LOGGER.debug(
            "RecurrenceEngine: Max iterations reached for %s", self._rule.frequency
        )
        return None

    def _count_steps_before(self, instant: datetime) -> int | None:
        k = self._estimate_steps(instant)
        for _ in range(const.MAX_DATE_CALCULATION_ITERATIONS):
            day = self._step(k)
            if day is None or self._candidate(day) >= instant:
                return k
            k += 1
        return None

    # =========================================================================
    # Private: RRULE helpers
    # =========================================================================

    def _rrule_string_with_weekdays(self, interval: int) -> str:
        """Build a WEEKLY RRULE, adding BYDAY when days are configured."""
        body = f"FREQ=WEEKLY;INTERVAL={interval}"
        if self._days:
            codes = [self.RRULE_DAY_CODES[d] for d in sorted(self._days)]
            body += f";BYDAY={','.join(codes)}"
            if interval > 1:
                body += ";WKST=SU"
        return body


# =============================================================================
# Convenience functions
# =============================================================================


def next_occurrence_after(
    rule: RecurrenceRule,
    anchor: AnchorInstant,
    from_instant: datetime,
    tz: tzinfo | None = None,
) -> datetime | None:
    """Return the first occurrence strictly after `from_instant`, or None."""
    return RecurrenceEngine(rule, anchor, tz).get_next_occurrence(from_instant)


def is_occurrence_date(
    rule: RecurrenceRule,
    anchor: AnchorInstant,
    day: date,
    tz: tzinfo | None = None,
) -> bool:
    """Check whether `day` holds an occurrence of the series."""
    return RecurrenceEngine(rule, anchor, tz).is_occurrence_date(day)


def occurrence_gap(rule: RecurrenceRule) -> timedelta:
    """Return the nominal spacing between occurrences (for estimates)."""
    interval = max(1, rule.interval or 1)
    freq = rule.frequency
    if freq == Frequency.WEEKDAYS:
        return timedelta(days=7) / len(const.WORKING_DAYS)
    if freq == Frequency.WEEKENDS:
        return timedelta(days=7) / len(const.WEEKEND_DAYS)
    if freq in (Frequency.MONTHLY, Frequency.FIRST_MONDAY, Frequency.LAST_FRIDAY):
        return timedelta(days=30 * interval)
    if freq == Frequency.YEARLY:
        return timedelta(days=365 * interval)
    if freq == Frequency.WEEKLY or (
        freq == Frequency.CUSTOM
        and rule.effective_custom_mode == CustomMode.DAYS_OF_WEEK
    ):
        per_week = len([d for d in rule.days_of_week if 0 <= d <= 6]) or 1
        return timedelta(days=7 * interval) / per_week
    return timedelta(days=interval)
