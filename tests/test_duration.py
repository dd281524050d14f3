"""Tests for working-minute accounting: weekends, lunch break and display units."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from fieldops.services.duration import (
    MIN_LEAVE_MINUTES,
    WORK_MINUTES_PER_DAY,
    calculate_leave_minutes,
    calculate_lunch_overlap,
    count_work_days,
    days_to_minutes,
    format_minutes,
    format_minutes_full,
    generate_time_options,
    is_weekend,
    minutes_to_days,
    minutes_to_hours_minutes,
    validate_leave_time,
)

MONDAY = date(2026, 1, 5)
SATURDAY = date(2026, 1, 3)
SUNDAY = date(2026, 1, 4)


class TestCalendar:
    def test_weekend_detection(self) -> None:
        assert is_weekend(SATURDAY)
        assert is_weekend(SUNDAY)
        assert not is_weekend(MONDAY)

    def test_accepts_datetimes(self) -> None:
        assert is_weekend(datetime(2026, 1, 3, 15, 0))

    def test_count_work_days_is_inclusive(self) -> None:
        assert count_work_days(MONDAY, MONDAY) == 1
        assert count_work_days(MONDAY, MONDAY + timedelta(days=6)) == 5

    def test_count_work_days_empty_when_reversed(self) -> None:
        assert count_work_days(MONDAY, MONDAY - timedelta(days=1)) == 0


class TestFullDayMinutes:
    @pytest.mark.parametrize("week", range(8))
    def test_weekday_run_of_five_days(self, week: int) -> None:
        start = MONDAY + timedelta(weeks=week)
        assert calculate_leave_minutes(start, start + timedelta(days=4), True) == 5 * WORK_MINUTES_PER_DAY

    def test_five_weekdays_spanning_a_weekend(self) -> None:
        # Wednesday to the following Tuesday.
        start = MONDAY + timedelta(days=2)
        assert calculate_leave_minutes(start, start + timedelta(days=6), True) == 5 * WORK_MINUTES_PER_DAY

    def test_weekend_only_is_zero(self) -> None:
        assert calculate_leave_minutes(SATURDAY, SUNDAY, True) == 0
        assert calculate_leave_minutes(SUNDAY, SUNDAY, True) == 0

    def test_full_day_ignores_clock_times(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, True, "09:00", "10:00") == WORK_MINUTES_PER_DAY


class TestPartialDayMinutes:
    def test_morning_span(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "08:00", "10:30") == 150

    def test_span_across_lunch_is_net_of_lunch(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "11:00", "14:00") == 120

    def test_span_inside_lunch_is_zero(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "12:00", "13:00") == 0
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "12:15", "12:45") == 0

    def test_accepts_time_objects(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, False, time(13, 0), time(15, 0)) == 120

    def test_missing_clock_times_is_zero(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "09:00", None) == 0

    def test_reversed_clock_times_is_zero(self) -> None:
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "15:00", "09:00") == 0

    def test_lunch_overlap(self) -> None:
        assert calculate_lunch_overlap(11, 30, 12, 30) == 30
        assert calculate_lunch_overlap(9, 0, 11, 0) == 0
        assert calculate_lunch_overlap(11, 0, 14, 0) == 60


class TestValidateLeaveTime:
    def test_twenty_minutes_is_too_short(self) -> None:
        result = validate_leave_time("09:00", "09:20")
        assert not result.valid
        assert result.error == f"Minimum leave duration is {MIN_LEAVE_MINUTES} minutes (after lunch break)"

    def test_span_across_lunch_nets_enough(self) -> None:
        # 90 raw minutes, 60 of them lunch.
        assert calculate_leave_minutes(MONDAY, MONDAY, False, "11:45", "13:15") == 30
        assert validate_leave_time("11:45", "13:15").valid

    def test_end_before_start(self) -> None:
        result = validate_leave_time("10:00", "09:00")
        assert not result.valid
        assert result.error == "End time must be after start time"

    def test_equal_times(self) -> None:
        assert not validate_leave_time("10:00", "10:00").valid

    def test_inside_lunch_is_too_short(self) -> None:
        assert not validate_leave_time("12:00", "13:00").valid


class TestConversions:
    @pytest.mark.parametrize("days", [0, 1, 2, 5, 30, 365])
    def test_days_minutes_round_trip(self, days: int) -> None:
        assert minutes_to_days(days_to_minutes(days)) == days

    def test_fractional_days(self) -> None:
        assert minutes_to_days(240) == 0.5

    def test_hours_minutes(self) -> None:
        assert minutes_to_hours_minutes(150) == (2, 30)

    def test_format_minutes(self) -> None:
        assert format_minutes(0) == "0 minutes"
        assert format_minutes(60) == "1 hour"
        assert format_minutes(150) == "2 hours 30 minutes"
        assert format_minutes(1) == "1 minute"

    def test_format_minutes_full(self) -> None:
        assert format_minutes_full(WORK_MINUTES_PER_DAY) == "1 day"
        assert format_minutes_full(2 * WORK_MINUTES_PER_DAY + 90) == "2 days 1 hour 30 minutes"
        assert format_minutes_full(-5) == "0 minutes"


class TestTimeOptions:
    def test_slots_cover_working_day(self) -> None:
        options = generate_time_options()
        assert options[0].value == "08:00"
        assert options[-1].value == "17:30"
        assert len(options) == 39
        assert not any(o.disabled for o in options)

    def test_slots_before_minimum_are_disabled(self) -> None:
        options = {o.value: o for o in generate_time_options("09:00")}
        assert options["09:15"].disabled
        assert not options["09:30"].disabled
