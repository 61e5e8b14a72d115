"""
Daily time slots.

For one calendar date:
1. find the courses of the latest class import that meet on that weekday
2. turn each into a class occurrence with a start and end time
3. derive the free "morning" and "afternoon" windows around them

Fixed bounds: wake 05:00, sleep 23:00, 30 minutes transit before the first
and after the last class. Without classes the day is split at 12:00.
A window may come out empty or negative; that is a valid result meaning
"no usable time", not an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, List, Optional, Sequence, Tuple

from studyplanner.clock import duration_between, minutes_to_time, time_to_minutes
from studyplanner.config import SundayPolicy
from studyplanner.days import domain_day_for_date
from studyplanner.model import CLASS_SCHEDULE, Course, ScheduleEntry, ScheduleImport, TimeSlot
from studyplanner.periods import PERIOD_MINUTES, is_period, period_boundary

WAKE_TIME = "05:00"
SLEEP_TIME = "23:00"
NO_CLASS_SPLIT = "12:00"
TRANSIT_BUFFER_MINUTES = 30


@dataclass(frozen=True)
class CourseOccurrence:
    """A course as it meets on one particular day."""

    course: Course
    day: int
    entries: Tuple[ScheduleEntry, ...]
    periods: Tuple[int, ...]
    start_time: str
    end_time: str

    @property
    def duration(self) -> int:
        # Teaching minutes only, breaks between periods excluded
        return len(set(self.periods)) * PERIOD_MINUTES


@dataclass(frozen=True)
class DayTimeSlots:
    has_class_today: bool
    morning_slot: TimeSlot
    afternoon_slot: TimeSlot
    class_courses: Tuple[CourseOccurrence, ...] = field(default_factory=tuple)


def make_slot(start: str, end: str) -> TimeSlot:
    return TimeSlot(start_time=start, end_time=end, duration_minutes=duration_between(start, end))


def _created_key(record: ScheduleImport) -> Tuple[int, Any]:
    # ISO timestamps compared as UTC instants (naive ones are taken as UTC);
    # unparsable ones sort first
    try:
        stamp = datetime.fromisoformat(record.created_at)
    except ValueError:
        return 0, record.created_at
    if stamp.tzinfo is None:
        stamp = stamp.replace(tzinfo=timezone.utc)
    return 1, stamp.astimezone(timezone.utc)


def latest_class_import(imports: Sequence[ScheduleImport]) -> Optional[ScheduleImport]:
    """The most recently created class-type import, or None."""
    classes = [s for s in imports if s.type == CLASS_SCHEDULE]
    if not classes:
        return None
    return max(classes, key=_created_key)


def occurrence_for_day(course: Course, day: int) -> Optional[CourseOccurrence]:
    """
    Start is the first period's start; end is the start of the period after
    the last one, reflecting back-to-back scheduling.
    """
    entries = tuple(e for e in course.schedule_entries if e.day == day and e.periods)
    # Out-of-range periods (hand-edited records) are ignored
    periods = tuple(p for e in entries for p in e.periods if is_period(p))
    if not periods:
        return None

    start = period_boundary(min(periods))
    end = period_boundary(max(periods) + 1)

    return CourseOccurrence(
        course=course,
        day=day,
        entries=entries,
        periods=periods,
        start_time=minutes_to_time(start),
        end_time=minutes_to_time(end),
    )


def classes_for_date(
    d: date,
    imports: Sequence[ScheduleImport],
    sunday_policy: SundayPolicy = SundayPolicy.AS_SATURDAY,
) -> List[CourseOccurrence]:
    """
    Class occurrences on date `d` according to the latest class import.
    """
    day = domain_day_for_date(d, sunday_policy)
    if day is None:
        return []

    latest = latest_class_import(imports)
    if latest is None:
        return []

    out: List[CourseOccurrence] = []
    for course in latest.courses:
        occurrence = occurrence_for_day(course, int(day))
        if occurrence:
            out.append(occurrence)
    return out


def compute_slots(
    occurrences: Sequence[CourseOccurrence],
    wake_time: str = WAKE_TIME,
    sleep_time: str = SLEEP_TIME,
    transit_buffer: int = TRANSIT_BUFFER_MINUTES,
) -> DayTimeSlots:
    """
    Morning and afternoon windows around the day's classes.
    """
    if not occurrences:
        return DayTimeSlots(
            has_class_today=False,
            morning_slot=make_slot(wake_time, NO_CLASS_SPLIT),
            afternoon_slot=make_slot(NO_CLASS_SPLIT, sleep_time),
        )

    earliest = min(time_to_minutes(o.start_time) for o in occurrences)
    latest = max(time_to_minutes(o.end_time) for o in occurrences)

    morning_end = minutes_to_time(earliest - transit_buffer)
    afternoon_start = minutes_to_time(latest + transit_buffer)

    return DayTimeSlots(
        has_class_today=True,
        morning_slot=make_slot(wake_time, morning_end),
        afternoon_slot=make_slot(afternoon_start, sleep_time),
        class_courses=tuple(occurrences),
    )


def calculate_time_slots(
    d: date,
    imports: Sequence[ScheduleImport],
    sunday_policy: SundayPolicy = SundayPolicy.AS_SATURDAY,
    wake_time: str = WAKE_TIME,
    sleep_time: str = SLEEP_TIME,
    transit_buffer: int = TRANSIT_BUFFER_MINUTES,
) -> DayTimeSlots:
    return compute_slots(
        classes_for_date(d, imports, sunday_policy),
        wake_time=wake_time,
        sleep_time=sleep_time,
        transit_buffer=transit_buffer,
    )
