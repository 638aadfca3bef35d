# File: utils/dt_utils.py
"""Date and time utilities for ClearCue.

Pure calendar arithmetic and parsing with no dependency on the rest of the
package, so every function can be unit tested in isolation.

Uses standard library datetime/zoneinfo plus dateutil for month arithmetic.

Functions:
    - set_default_timezone / get_default_timezone: Host-configured zone
    - dt_now_utc: The single wall-clock read (default time provider)
    - as_utc / as_local: Timezone conversion
    - start_of_local_day / end_of_local_day: Day boundaries in a zone
    - dt_at_time_of: Combine a civil date with a wall-clock time in a zone
    - dt_parse_date / dt_parse_time / dt_parse: Tolerant parsing
    - dt_format_duration: Format timedelta to "1d 6h 30m"
    - dt_add_days / dt_add_weeks / dt_add_months / dt_add_years: Clamped addition
      (None when the result leaves the representable range)
    - dt_day_of_week: 0 = Sunday .. 6 = Saturday
    - dt_first_weekday_of_month / dt_last_weekday_of_month: Month-anchored days
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
import logging
import re
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

if TYPE_CHECKING:
    from datetime import tzinfo

# Module-level logger (kept free of package imports)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default timezone - can be overridden by the host
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# dateutil weekday objects indexed by 0 = Sunday
_RELATIVE_WEEKDAYS = [SU, MO, TU, WE, TH, FR, SA]

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this once during host setup with the user's IANA zone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware).

    Returns:
        Current UTC datetime.
    """
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Naive values are assumed to be in the default timezone.
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object (naive values are assumed to be UTC)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    local_dt = as_local(dt_obj, tz_info)
    return dt_at_time_of(local_dt.date(), None, tz_info)


def end_of_local_day(dt_obj: datetime, tz: tzinfo | None = None) -> datetime:
    """Get the last representable instant (23:59:59.999999) of the local day."""
    tz_info = tz or DEFAULT_TIME_ZONE
    local_dt = as_local(dt_obj, tz_info)
    return datetime.combine(local_dt.date(), time.max, tzinfo=tz_info)


def dt_at_time_of(
    day: date,
    time_of_day: time | None = None,
    tz: tzinfo | None = None,
) -> datetime:
    """Combine a civil date and an optional wall-clock time in a timezone.

    Without a time of day the result is the start of that day.

    Args:
        day: Civil date
        time_of_day: Wall-clock time, or None for midnight
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Timezone-aware datetime.

    Example:
        dt_at_time_of(date(2025, 3, 1), time(9, 30)) → 2025-03-01 09:30 local
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.combine(day, time_of_day or time.min, tzinfo=tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T09:00:00Z" (ISO datetime, date portion kept)
    - "04/07/2025" (US format)
    - "07/04/2025" (European format - attempted if US fails)
    - "2025/04/07"

    Args:
        date_str: Date string to parse, or None

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    cleaned = date_str.strip()

    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(cleaned).date()
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    return None


def dt_parse_time(time_str: str | None) -> time | None:
    """Parse a wall-clock "HH:MM" (or "HH:MM:SS") string.

    Returns:
        datetime.time, or None for empty or out-of-range input.

    Examples:
        dt_parse_time("09:30") → time(9, 30)
        dt_parse_time("25:00") → None
    """
    if not time_str or not isinstance(time_str, str):
        return None

    match = _TIME_PATTERN.match(time_str)
    if not match:
        _LOGGER.debug("Invalid time format: %s - expected 'HH:MM'", time_str)
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3)) if match.group(3) else 0
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: tzinfo | None = None,
) -> datetime | None:
    """Normalize various datetime input formats to an aware datetime.

    Never raises: anything that cannot be interpreted yields None.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)

    Returns:
        Timezone-aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-04-15", ZoneInfo("UTC"))
        datetime.datetime(2025, 4, 15, 0, 0, tzinfo=zoneinfo.ZoneInfo(key='UTC'))
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input.strip())
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, time.min)

    elif isinstance(dt_input, datetime):
        result = dt_input

    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, time.min)

    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)

    return result


# ==============================================================================
# Date/Time Formatting
# ==============================================================================


def dt_format_duration(td: timedelta | None) -> str:
    """Format a timedelta into a compact duration string.

    Examples:
        dt_format_duration(timedelta(days=1, hours=6)) → "1d 6h"
        dt_format_duration(timedelta(minutes=30)) → "30m"
        dt_format_duration(None) → "0"
    """
    if td is None or td <= timedelta():
        return "0"

    total_seconds = int(td.total_seconds())
    days, remainder = divmod(total_seconds, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes = remainder // 60

    parts: list[str] = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    return " ".join(parts) if parts else "0"


# ==============================================================================
# Calendar Arithmetic
# ==============================================================================


def dt_add_days(day: date, days: int) -> date | None:
    """Add (or subtract) whole civil days.

    Returns None when the result falls outside the supported years (1-9999).
    """
    try:
        return day + timedelta(days=days)
    except OverflowError as exc:
        _LOGGER.warning("Error adding %s days to %s: %s", days, day, exc)
        return None


def dt_add_weeks(day: date, weeks: int) -> date | None:
    """Add (or subtract) whole weeks. None when out of range."""
    return dt_add_days(day, weeks * 7)


def dt_add_months(day: date, months: int) -> date | None:
    """Add months, clamping to the last valid day of the target month.

    Examples:
        dt_add_months(date(2025, 1, 31), 1) → date(2025, 2, 28)
        dt_add_months(date(2024, 1, 31), 1) → date(2024, 2, 29)
        dt_add_months(date(9999, 12, 1), 1) → None
    """
    try:
        return day + relativedelta(months=months)
    except (ValueError, OverflowError) as exc:
        _LOGGER.warning("Error adding %s months to %s: %s", months, day, exc)
        return None


def dt_add_years(day: date, years: int) -> date | None:
    """Add years, clamping Feb 29 to Feb 28 in non-leap years (never March)."""
    try:
        return day + relativedelta(years=years)
    except (ValueError, OverflowError) as exc:
        _LOGGER.warning("Error adding %s years to %s: %s", years, day, exc)
        return None


def dt_day_of_week(day: date) -> int:
    """Return the weekday index with 0 = Sunday .. 6 = Saturday."""
    return (day.weekday() + 1) % 7


def dt_first_weekday_of_month(weekday: int, month_ref: date) -> date:
    """Return the first given weekday (0 = Sunday) of month_ref's month.

    Example:
        dt_first_weekday_of_month(1, date(2024, 2, 20)) → date(2024, 2, 5)
    """
    return month_ref + relativedelta(day=1, weekday=_RELATIVE_WEEKDAYS[weekday](+1))


def dt_last_weekday_of_month(weekday: int, month_ref: date) -> date:
    """Return the last given weekday (0 = Sunday) of month_ref's month.

    Example:
        dt_last_weekday_of_month(5, date(2024, 2, 1)) → date(2024, 2, 23)
    """
    return month_ref + relativedelta(day=31, weekday=_RELATIVE_WEEKDAYS[weekday](-1))


def dt_months_between(start: date, end: date) -> int:
    """Return the number of calendar-month boundaries from start to end."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def dt_week_start(day: date) -> date:
    """Return the Sunday that starts day's week."""
    return day - timedelta(days=dt_day_of_week(day))
