"""
Domain day numbering.

The source institution numbers weekdays 2..7 (Thứ 2 = Monday ... Thứ 7 = Saturday).
There is no Sunday value in that system, so this module is the single place
where a calendar date is mapped onto it.
"""

from __future__ import annotations

from datetime import date
from enum import IntEnum
from typing import Optional

from studyplanner.config import SundayPolicy


class DomainDay(IntEnum):
    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7


FIRST_DAY = int(DomainDay.MONDAY)
LAST_DAY = int(DomainDay.SATURDAY)


def is_domain_day(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and FIRST_DAY <= value <= LAST_DAY


def day_of_week_for_date(d: date) -> DomainDay:
    """
    Day number stored on a daily schedule.

    date.weekday() is 0 for Monday, so Monday..Saturday map to 2..7.
    Sunday has no value of its own and is recorded as 7.
    """
    wd = d.weekday()
    if wd == 6:
        return DomainDay.SATURDAY
    return DomainDay(wd + 2)


def domain_day_for_date(d: date, sunday_policy: SundayPolicy = SundayPolicy.AS_SATURDAY) -> Optional[DomainDay]:
    """
    Day number used to look up classes for a date.

    Returns None when the date cannot have classes (Sunday under FREE_DAY).
    """
    if d.weekday() == 6 and sunday_policy == SundayPolicy.FREE_DAY:
        return None
    return day_of_week_for_date(d)
