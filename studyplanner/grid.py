"""
Weekly grid projection.

Given the courses of one import, build the period x day lookup table:

    cell(period, day) -> courses meeting in that period on that day

The grid is a pure function of the course list. It is rebuilt on every
render or query and never stored, so it cannot drift from the courses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Sequence, Tuple

from studyplanner.days import FIRST_DAY, LAST_DAY, is_domain_day
from studyplanner.logging import get_logger
from studyplanner.model import Course
from studyplanner.periods import FIRST_PERIOD, LAST_PERIOD, is_period

log = get_logger(__name__)

PERIODS: Tuple[int, ...] = tuple(range(FIRST_PERIOD, LAST_PERIOD + 1))
DAYS: Tuple[int, ...] = tuple(range(FIRST_DAY, LAST_DAY + 1))


@dataclass(frozen=True)
class WeekGrid:
    """
    10 x 6 matrix of course lists, keyed by (period, day).
    """

    cells: Dict[Tuple[int, int], Tuple[Course, ...]]

    def cell(self, period: int, day: int) -> Tuple[Course, ...]:
        return self.cells.get((period, day), ())

    def row(self, period: int) -> List[Tuple[Course, ...]]:
        return [self.cell(period, day) for day in DAYS]

    def placements(self) -> Iterator[Tuple[int, int, Course]]:
        """Yield every (period, day, course) placement in row-major order."""
        for period in PERIODS:
            for day in DAYS:
                for course in self.cell(period, day):
                    yield period, day, course

    def courses_on_day(self, day: int) -> List[Course]:
        """Distinct courses meeting on `day`, in first-placement order."""
        seen: set[int] = set()
        out: List[Course] = []
        for period in PERIODS:
            for course in self.cell(period, day):
                if id(course) not in seen:
                    seen.add(id(course))
                    out.append(course)
        return out

    @property
    def is_empty(self) -> bool:
        return not any(self.cells.values())


def project_week_grid(courses: Iterable[Course]) -> WeekGrid:
    """
    Place every course into each (period, day) cell one of its entries covers.

    Courses without entries are skipped; an out-of-range day or period skips
    only that placement. Within a cell, courses keep the order of `courses`.
    """
    matrix: Dict[Tuple[int, int], List[Course]] = {(p, d): [] for p in PERIODS for d in DAYS}

    skipped = 0
    for course in courses:
        for entry in course.schedule_entries:
            if not is_domain_day(entry.day):
                skipped += len(entry.periods)
                continue
            for period in entry.periods:
                if not is_period(period):
                    skipped += 1
                    continue
                bucket = matrix[(period, entry.day)]
                # A course listed twice for the same slot still occupies it once
                if not any(c is course for c in bucket):
                    bucket.append(course)

    if skipped:
        log.warning("grid_placements_skipped", count=skipped)

    return WeekGrid(cells={key: tuple(value) for key, value in matrix.items()})


def courses_meeting_on(courses: Sequence[Course], day: int) -> List[Course]:
    """
    Courses with at least one entry on `day`, in list order.

    This queries the entries directly; it agrees with
    project_week_grid(courses).courses_on_day(day) as a set.
    """
    return [c for c in courses if any(e.day == day and e.periods for e in c.schedule_entries)]
