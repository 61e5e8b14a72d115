"""
Period time table.

Teaching periods are fixed 50 minute slots:
- periods 1-5:  07:00 - 11:50 (10 minutes between periods)
- a 30 minute lunch break after period 5 (rendered, not a period)
- periods 6-10: 12:30 - 17:20

Lookups never raise; unknown input returns an empty sentinel.
"""

from __future__ import annotations

from dataclasses import dataclass

from studyplanner.clock import minutes_to_time
from studyplanner.days import DomainDay

FIRST_PERIOD = 1
LAST_PERIOD = 10
PERIOD_MINUTES = 50
PERIOD_STEP_MINUTES = 60
BREAK_AFTER_PERIOD = 5

_MORNING_START = 7 * 60
_AFTERNOON_START = 12 * 60 + 30


@dataclass(frozen=True)
class PeriodTime:
    start: str
    end: str

    @property
    def is_known(self) -> bool:
        return bool(self.start and self.end)


UNKNOWN_PERIOD = PeriodTime("", "")

DAY_NAMES: dict[int, str] = {
    DomainDay.MONDAY: "Thứ 2",
    DomainDay.TUESDAY: "Thứ 3",
    DomainDay.WEDNESDAY: "Thứ 4",
    DomainDay.THURSDAY: "Thứ 5",
    DomainDay.FRIDAY: "Thứ 6",
    DomainDay.SATURDAY: "Thứ 7",
}


def is_period(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and FIRST_PERIOD <= value <= LAST_PERIOD


def period_boundary(period: int) -> int:
    """
    Minute of day at which `period` starts.

    period == LAST_PERIOD + 1 is accepted and yields the end of the teaching
    day (17:30), so "max period + 1" is always defined for class end times.
    """
    if not (FIRST_PERIOD <= period <= LAST_PERIOD + 1):
        raise ValueError(f"Invalid period: {period!r}")
    if period <= BREAK_AFTER_PERIOD:
        return _MORNING_START + (period - 1) * PERIOD_STEP_MINUTES
    return _AFTERNOON_START + (period - BREAK_AFTER_PERIOD - 1) * PERIOD_STEP_MINUTES


# Static table built once from the rules above
PERIOD_TIMES: dict[int, PeriodTime] = {
    p: PeriodTime(
        start=minutes_to_time(period_boundary(p)),
        end=minutes_to_time(period_boundary(p) + PERIOD_MINUTES),
    )
    for p in range(FIRST_PERIOD, LAST_PERIOD + 1)
}


def time_for_period(period: int) -> PeriodTime:
    """Start/end wall-clock time of a period, or UNKNOWN_PERIOD."""
    return PERIOD_TIMES.get(period, UNKNOWN_PERIOD) if is_period(period) else UNKNOWN_PERIOD


def day_name(day: int) -> str:
    """Vietnamese display name of a domain day (2..7), or '' if unknown."""
    return DAY_NAMES.get(day, "") if isinstance(day, int) else ""
