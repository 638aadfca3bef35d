"""Unit tests for utils/dt_utils.py calendar arithmetic and parsing."""

from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from clearcue.utils import dt_utils
from clearcue.utils.dt_utils import (
    as_local,
    dt_add_days,
    dt_add_months,
    dt_add_weeks,
    dt_add_years,
    dt_at_time_of,
    dt_day_of_week,
    dt_first_weekday_of_month,
    dt_format_duration,
    dt_last_weekday_of_month,
    dt_now_utc,
    dt_parse,
    dt_parse_date,
    dt_parse_time,
    dt_week_start,
    end_of_local_day,
    start_of_local_day,
)

UTC = ZoneInfo("UTC")
BERLIN = ZoneInfo("Europe/Berlin")


# =============================================================================
# Calendar arithmetic
# =============================================================================


class TestClampedAddition:
    """Month and year addition clamp to the last valid day."""

    @pytest.mark.parametrize(
        ("start", "months", "expected"),
        [
            (date(2025, 1, 31), 1, date(2025, 2, 28)),
            (date(2024, 1, 31), 1, date(2024, 2, 29)),
            (date(2025, 3, 31), 1, date(2025, 4, 30)),
            (date(2025, 12, 15), 1, date(2026, 1, 15)),
            (date(2025, 1, 31), 13, date(2026, 2, 28)),
        ],
    )
    def test_add_months(self, start: date, months: int, expected: date) -> None:
        """Adding months never spills into the following month."""
        assert dt_add_months(start, months) == expected

    def test_feb29_plus_one_year_is_feb28(self) -> None:
        """Feb 29 + 1 year lands on Feb 28, never March 1."""
        assert dt_add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)

    def test_feb29_plus_four_years_stays_feb29(self) -> None:
        """Adding from the original date keeps Feb 29 in leap years."""
        assert dt_add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)

    def test_days_and_weeks(self) -> None:
        """Day and week addition cross month and year boundaries."""
        assert dt_add_days(date(2024, 12, 31), 1) == date(2025, 1, 1)
        assert dt_add_weeks(date(2025, 1, 1), 2) == date(2025, 1, 15)
        assert dt_add_days(date(2025, 3, 1), -1) == date(2025, 2, 28)

    @pytest.mark.parametrize(
        "result",
        [
            pytest.param(lambda: dt_add_days(date(9999, 12, 31), 1), id="days"),
            pytest.param(lambda: dt_add_weeks(date(1, 1, 1), -1), id="weeks"),
            pytest.param(lambda: dt_add_months(date(9999, 12, 1), 1), id="months"),
            pytest.param(lambda: dt_add_years(date(2024, 1, 1), 8000), id="years"),
            pytest.param(lambda: dt_add_days(date(2024, 1, 1), 10**12), id="huge"),
        ],
    )
    def test_out_of_range_is_none(self, result: Callable[[], date | None]) -> None:
        """Results past year 9999 or before year 1 are absent, not errors."""
        assert result() is None


class TestWeekdays:
    """Weekday numbering is 0 = Sunday .. 6 = Saturday."""

    def test_day_of_week_sunday_is_zero(self) -> None:
        assert dt_day_of_week(date(2024, 1, 14)) == 0  # Sunday
        assert dt_day_of_week(date(2024, 1, 15)) == 1  # Monday
        assert dt_day_of_week(date(2024, 1, 20)) == 6  # Saturday

    def test_week_start_is_previous_sunday(self) -> None:
        assert dt_week_start(date(2024, 1, 17)) == date(2024, 1, 14)
        assert dt_week_start(date(2024, 1, 14)) == date(2024, 1, 14)

    def test_first_monday_of_month(self) -> None:
        assert dt_first_weekday_of_month(1, date(2024, 2, 20)) == date(2024, 2, 5)
        assert dt_first_weekday_of_month(1, date(2024, 1, 31)) == date(2024, 1, 1)

    def test_last_friday_of_month(self) -> None:
        assert dt_last_weekday_of_month(5, date(2024, 2, 1)) == date(2024, 2, 23)
        assert dt_last_weekday_of_month(5, date(2025, 5, 2)) == date(2025, 5, 30)
        assert dt_last_weekday_of_month(5, date(2025, 1, 10)) == date(2025, 1, 31)


# =============================================================================
# Day boundaries and zones
# =============================================================================


class TestDayBoundaries:
    """Local day boundaries respect the requested zone."""

    def test_start_of_local_day_in_other_zone(self) -> None:
        """23:30 UTC is already the next day in Berlin."""
        instant = datetime(2025, 1, 14, 23, 30, tzinfo=UTC)
        start = start_of_local_day(instant, BERLIN)
        assert start == datetime(2025, 1, 15, 0, 0, tzinfo=BERLIN)

    def test_start_of_day_on_dst_change(self) -> None:
        """The spring-forward day still starts at midnight local time."""
        instant = datetime(2025, 3, 30, 12, 0, tzinfo=UTC)
        start = start_of_local_day(instant, BERLIN)
        assert start.date() == date(2025, 3, 30)
        assert (start.hour, start.minute) == (0, 0)

    def test_end_of_local_day(self) -> None:
        end = end_of_local_day(datetime(2025, 1, 15, 8, 0, tzinfo=UTC), UTC)
        assert end == datetime.combine(date(2025, 1, 15), time.max, tzinfo=UTC)

    def test_at_time_of_without_time_is_midnight(self) -> None:
        assert dt_at_time_of(date(2025, 3, 1), None, UTC) == datetime(
            2025, 3, 1, tzinfo=UTC
        )

    def test_default_timezone_is_used(self) -> None:
        """Functions fall back to the host-configured zone."""
        dt_utils.set_default_timezone(BERLIN)
        assert dt_utils.get_default_timezone() is BERLIN
        local = as_local(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))
        assert local.hour == 13

    @freeze_time("2025-01-15 12:00:00", tz_offset=0)
    def test_now_utc_is_aware(self) -> None:
        now = dt_now_utc()
        assert now == datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


# =============================================================================
# Parsing
# =============================================================================


class TestParsing:
    """Parsing is tolerant and never raises."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("2025-04-07", date(2025, 4, 7)),
            ("2025-04-07T09:00:00+00:00", date(2025, 4, 7)),
            ("04/07/2025", date(2025, 4, 7)),
            ("25/12/2025", date(2025, 12, 25)),
            ("2025/04/07", date(2025, 4, 7)),
        ],
    )
    def test_parse_date_formats(self, raw: str, expected: date) -> None:
        assert dt_parse_date(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "not a date", "2025-13-45"])
    def test_parse_date_rejects_garbage(self, raw: str | None) -> None:
        assert dt_parse_date(raw) is None

    def test_parse_time(self) -> None:
        assert dt_parse_time("09:30") == time(9, 30)
        assert dt_parse_time("7:05") == time(7, 5)
        assert dt_parse_time("23:59:30") == time(23, 59, 30)

    @pytest.mark.parametrize("raw", [None, "", "25:00", "12:60", "noon", "9"])
    def test_parse_time_rejects_garbage(self, raw: str | None) -> None:
        assert dt_parse_time(raw) is None

    def test_parse_date_only_string(self) -> None:
        assert dt_parse("2025-04-15", UTC) == datetime(2025, 4, 15, tzinfo=UTC)
        assert dt_parse("04/15/2025", UTC) == datetime(2025, 4, 15, tzinfo=UTC)

    def test_parse_naive_uses_default_zone(self) -> None:
        parsed = dt_parse("2025-04-15T10:00:00", BERLIN)
        assert isinstance(parsed, datetime)
        assert parsed.tzinfo is BERLIN

    def test_parse_native_values(self) -> None:
        assert dt_parse(date(2025, 4, 15), UTC) == datetime(2025, 4, 15, tzinfo=UTC)
        aware = datetime(2025, 4, 15, 8, 0, tzinfo=BERLIN)
        assert dt_parse(aware) is aware

    @pytest.mark.parametrize("raw", [None, "", "yesterday-ish", 12345])
    def test_parse_unparseable_is_none(self, raw: object) -> None:
        assert dt_parse(raw) is None  # type: ignore[arg-type]


class TestFormatDuration:
    """Compact duration strings."""

    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(minutes=30), "30m"),
            (timedelta(hours=1, minutes=30), "1h 30m"),
            (timedelta(days=1, hours=6), "1d 6h"),
            (timedelta(0), "0"),
            (None, "0"),
        ],
    )
    def test_format_duration(self, delta: timedelta | None, expected: str) -> None:
        assert dt_format_duration(delta) == expected
