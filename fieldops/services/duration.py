"""Working-minute accounting for leave: weekends, lunch break and display units.

Minutes are the unit of record. Full-day leave is valued at a fixed
``WORK_MINUTES_PER_DAY`` per weekday; partial-day leave is the clock span net
of any overlap with the lunch window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

WORK_MINUTES_PER_DAY = 480
LUNCH_START_HOUR = 12
LUNCH_END_HOUR = 13
WORK_START_HOUR = 8
WORK_END_HOUR = 17
MIN_LEAVE_MINUTES = 30

_PICKER_STEP_MINUTES = 15
_PICKER_LAST_MINUTE = 30  # last slot is 17:30


@dataclass(frozen=True)
class LeaveTimeValidation:
    """Outcome of validating a partial-day clock range."""

    valid: bool
    error: str | None = None


@dataclass(frozen=True)
class TimeOption:
    value: str
    label: str
    disabled: bool = False


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def _parse_clock(value: time | str) -> time:
    """Accept a ``time`` or an ``"HH:MM"`` string."""
    if isinstance(value, time):
        return value
    return time.fromisoformat(value)


def _clock_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


def is_weekend(day: date | datetime) -> bool:
    """Saturday and Sunday are non-working days."""
    return _as_date(day).weekday() >= 5


def count_work_days(start: date | datetime, end: date | datetime) -> int:
    """Count weekdays in the inclusive range [start, end]."""
    current = _as_date(start)
    last = _as_date(end)
    one_day = timedelta(days=1)

    count = 0
    while current <= last:
        if not is_weekend(current):
            count += 1
        current += one_day
    return count


# ---------------------------------------------------------------------------
# Minutes
# ---------------------------------------------------------------------------


def calculate_lunch_overlap(start_hour: int, start_minute: int, end_hour: int, end_minute: int) -> int:
    """Minutes of the clock range that fall inside the 12:00-13:00 lunch window."""
    start_total = start_hour * 60 + start_minute
    end_total = end_hour * 60 + end_minute
    lunch_start = LUNCH_START_HOUR * 60
    lunch_end = LUNCH_END_HOUR * 60

    overlap_start = max(start_total, lunch_start)
    overlap_end = min(end_total, lunch_end)
    if overlap_start < overlap_end:
        return overlap_end - overlap_start
    return 0


def calculate_leave_minutes(
    start: date | datetime,
    end: date | datetime,
    is_full_day: bool,
    start_time: time | str | None = None,
    end_time: time | str | None = None,
) -> int:
    """Working minutes consumed by a leave request.

    Full-day leave counts ``WORK_MINUTES_PER_DAY`` for every weekday in the
    range. Partial-day leave uses the clock times only; without both times it
    is worth 0 minutes and callers must validate beforehand.
    """
    if is_full_day:
        return count_work_days(start, end) * WORK_MINUTES_PER_DAY

    if start_time is None or end_time is None:
        return 0

    clock_start = _parse_clock(start_time)
    clock_end = _parse_clock(end_time)
    total = _clock_minutes(clock_end) - _clock_minutes(clock_start)
    if total <= 0:
        return 0

    lunch = calculate_lunch_overlap(clock_start.hour, clock_start.minute, clock_end.hour, clock_end.minute)
    return max(total - lunch, 0)


def validate_leave_time(start_time: time | str, end_time: time | str) -> LeaveTimeValidation:
    """Check a partial-day range: ordered, and at least 30 minutes after lunch."""
    clock_start = _parse_clock(start_time)
    clock_end = _parse_clock(end_time)

    if _clock_minutes(clock_start) >= _clock_minutes(clock_end):
        return LeaveTimeValidation(valid=False, error="End time must be after start time")

    today = date.today()
    net_minutes = calculate_leave_minutes(today, today, False, clock_start, clock_end)
    if net_minutes < MIN_LEAVE_MINUTES:
        return LeaveTimeValidation(
            valid=False,
            error=f"Minimum leave duration is {MIN_LEAVE_MINUTES} minutes (after lunch break)",
        )
    return LeaveTimeValidation(valid=True)


# ---------------------------------------------------------------------------
# Unit conversion and display
# ---------------------------------------------------------------------------


def minutes_to_hours_minutes(minutes: int) -> tuple[int, int]:
    return divmod(minutes, 60)


def minutes_to_days(minutes: float) -> float:
    return minutes / WORK_MINUTES_PER_DAY


def days_to_minutes(days: float) -> float:
    return days * WORK_MINUTES_PER_DAY


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_minutes(total_minutes: int) -> str:
    """Render minutes as hours and minutes, e.g. ``"2 hours 30 minutes"``."""
    if total_minutes <= 0:
        return "0 minutes"
    hours, minutes = minutes_to_hours_minutes(total_minutes)
    parts = []
    if hours > 0:
        parts.append(_plural(hours, "hour"))
    if minutes > 0:
        parts.append(_plural(minutes, "minute"))
    return " ".join(parts)


def format_minutes_full(total_minutes: int) -> str:
    """Render minutes as working days, hours and minutes."""
    if total_minutes <= 0:
        return "0 minutes"
    days, remainder = divmod(total_minutes, WORK_MINUTES_PER_DAY)
    hours, minutes = minutes_to_hours_minutes(remainder)
    parts = []
    if days > 0:
        parts.append(_plural(days, "day"))
    if hours > 0:
        parts.append(_plural(hours, "hour"))
    if minutes > 0:
        parts.append(_plural(minutes, "minute"))
    return " ".join(parts)


def generate_time_options(min_time: time | str | None = None) -> list[TimeOption]:
    """Clock slots for leave pickers, every 15 minutes from 08:00 to 17:30.

    When ``min_time`` is given (the chosen start), slots closer than the
    minimum leave duration are disabled.
    """
    floor = None
    if min_time is not None:
        floor = _clock_minutes(_parse_clock(min_time)) + MIN_LEAVE_MINUTES

    options: list[TimeOption] = []
    for hour in range(WORK_START_HOUR, WORK_END_HOUR + 1):
        for minute in range(0, 60, _PICKER_STEP_MINUTES):
            if hour == WORK_END_HOUR and minute > _PICKER_LAST_MINUTE:
                continue
            label = f"{hour:02d}:{minute:02d}"
            too_early = floor is not None and hour * 60 + minute < floor
            options.append(TimeOption(value=label, label=label, disabled=too_early))
    return options
