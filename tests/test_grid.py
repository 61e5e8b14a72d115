"""
Unit tests for the weekly grid projection.

Invariant: a course is in cell (p, d) iff one of its entries has day d and
contains period p.
"""

import copy
import unittest

from studyplanner.grid import DAYS, PERIODS, courses_meeting_on, project_week_grid
from studyplanner.model import Course, ScheduleEntry


def _course(cid: str, *entries: ScheduleEntry) -> Course:
    return Course(id=cid, name=cid.upper(), code=cid, schedule_entries=list(entries))


class TestWeekGrid(unittest.TestCase):
    def setUp(self) -> None:
        self.java = _course(
            "java",
            ScheduleEntry(day=4, periods=(1, 2), room="E2.403"),
            ScheduleEntry(day=5, periods=(6, 7), room="A141"),
        )
        self.math = _course("math", ScheduleEntry(day=4, periods=(2, 3, 4), room="C303"))
        self.free = _course("free")
        self.courses = [self.java, self.math, self.free]

    def test_grid_shape(self) -> None:
        grid = project_week_grid([])
        self.assertEqual(len(grid.cells), 10 * 6)
        self.assertTrue(grid.is_empty)

    def test_placements_match_entries(self) -> None:
        grid = project_week_grid(self.courses)

        # every placement is traceable to an entry
        for period, day, course in grid.placements():
            self.assertTrue(
                any(e.day == day and period in e.periods for e in course.schedule_entries),
                (period, day, course.id),
            )

        # every entry period shows up in the grid
        for course in self.courses:
            for entry in course.schedule_entries:
                for period in entry.periods:
                    self.assertIn(course, grid.cell(period, entry.day))

        self.assertEqual(len(list(grid.placements())), 2 + 2 + 3)

    def test_cell_keeps_course_order(self) -> None:
        grid = project_week_grid(self.courses)
        self.assertEqual([c.id for c in grid.cell(2, 4)], ["java", "math"])

    def test_out_of_range_values_are_skipped(self) -> None:
        odd = _course(
            "odd",
            ScheduleEntry(day=8, periods=(1,), room=""),
            ScheduleEntry(day=3, periods=(0, 1, 11), room=""),
        )
        grid = project_week_grid([odd])
        self.assertEqual([(p, d) for p, d, _ in grid.placements()], [(1, 3)])

    def test_projection_is_deterministic_and_pure(self) -> None:
        before = copy.deepcopy(self.courses)
        first = project_week_grid(self.courses)
        second = project_week_grid(self.courses)
        self.assertEqual(
            [(p, d, c.id) for p, d, c in first.placements()],
            [(p, d, c.id) for p, d, c in second.placements()],
        )
        self.assertEqual(self.courses, before)

    def test_courses_on_day_agrees_with_entry_query(self) -> None:
        grid = project_week_grid(self.courses)
        for day in DAYS:
            self.assertEqual(
                {c.id for c in grid.courses_on_day(day)},
                {c.id for c in courses_meeting_on(self.courses, day)},
            )
        self.assertEqual([c.id for c in courses_meeting_on(self.courses, 4)], ["java", "math"])

    def test_rows_have_six_days(self) -> None:
        grid = project_week_grid(self.courses)
        for period in PERIODS:
            self.assertEqual(len(grid.row(period)), 6)


if __name__ == "__main__":
    unittest.main()
