"""
Tests for daily schedule assembly and the stored daily plans.

All tests use a temporary record store and a fixed "today" so that the date
checks do not depend on the real calendar.
"""

import tempfile
import unittest
from datetime import date
from pathlib import Path

from studyplanner.config import PlannerConfig
from studyplanner.errors import ScheduleNotFound, ScheduleValidationError, StructuralFailure
from studyplanner.model import Activity, Course, ScheduleEntry, ScheduleImport
from studyplanner.planner import (
    create_daily_schedule,
    delete_daily_schedule,
    get_daily_schedule,
    list_daily_schedules,
    plan_day,
    preferred_slot,
    update_activity_status,
)
from studyplanner.schedules import create_class_schedule
from studyplanner.storage import JsonRecordStore
from studyplanner.timeslots import calculate_time_slots

TODAY = date(2025, 10, 20)
WEDNESDAY = "2025-10-22"


def _imports():
    # Wednesday: periods 1-2 -> class 07:00-09:00, morning 05:00-06:30, afternoon 09:30-23:00
    course = Course(
        id="course-1-0",
        name="Java",
        code="JAVA01",
        schedule_entries=[ScheduleEntry(day=4, periods=(1, 2), room="E2.403")],
    )
    stamp = "2025-10-01T08:00:00+00:00"
    return [ScheduleImport(name="HK1", courses=[course], created_at=stamp, updated_at=stamp)]


def _activities():
    return [
        {"id": "ex", "type": "exercise", "estimated_duration": 30},
        {"id": "meal", "type": "meal", "estimated_duration": 30},
        {"id": "st", "type": "study", "course_name": "Java", "estimated_duration": 90, "priority": "high"},
        {"id": "rd", "type": "reading", "estimated_duration": 45, "priority": "low"},
    ]


class TestPlanDay(unittest.TestCase):
    def setUp(self) -> None:
        self.config = PlannerConfig()

    def test_activities_are_placed_around_classes(self) -> None:
        plan = plan_day(WEDNESDAY, _activities(), _imports(), config=self.config, today=TODAY)
        schedule = plan.schedule

        self.assertEqual(schedule.date, WEDNESDAY)
        self.assertEqual(schedule.day_of_week, 4)
        self.assertTrue(schedule.has_class_today)
        self.assertEqual((schedule.morning_schedule.start_time, schedule.morning_schedule.end_time), ("05:00", "06:30"))
        self.assertEqual(schedule.afternoon_schedule.start_time, "09:30")

        morning = [(a.id, a.scheduled_time, a.scheduled_end_time) for a in schedule.morning_schedule.activities]
        afternoon = [(a.id, a.scheduled_time, a.scheduled_end_time) for a in schedule.afternoon_schedule.activities]
        self.assertEqual(morning, [("ex", "05:00", "05:30"), ("meal", "05:40", "06:10")])
        self.assertEqual(afternoon, [("st", "09:30", "11:00"), ("rd", "11:10", "11:55")])

        self.assertEqual(schedule.total_activities, 4)
        self.assertEqual(schedule.completed_activities, 0)
        self.assertEqual(schedule.total_study_time, 90)
        self.assertEqual(plan.omitted, [])
        self.assertEqual(plan.warnings, [])

    def test_overflow_is_a_warning(self) -> None:
        activities = [
            {"id": f"m{i}", "type": "reading", "estimated_duration": 60, "time_slot": "morning"}
            for i in range(1, 4)
        ]
        plan = plan_day(WEDNESDAY, activities, _imports(), config=self.config, today=TODAY)

        self.assertEqual([a.id for a in plan.omitted], ["m2", "m3"])
        self.assertEqual(len(plan.warnings), 1)
        self.assertTrue(plan.warnings[0].startswith("Morning: "))

        morning = plan.schedule.morning_schedule.activities
        self.assertEqual([a.id for a in morning], ["m1", "m2", "m3"])
        self.assertEqual(morning[0].scheduled_time, "05:00")
        self.assertIsNone(morning[1].scheduled_time)
        self.assertEqual(plan.schedule.total_activities, 3)

    def test_input_times_are_recomputed(self) -> None:
        activities = [{"id": "a", "type": "reading", "estimated_duration": 30, "scheduled_time": "20:00"}]
        plan = plan_day(WEDNESDAY, activities, [], config=self.config, today=TODAY)
        self.assertEqual(plan.schedule.afternoon_schedule.activities[0].scheduled_time, "12:00")

    def test_validation_errors_are_aggregated(self) -> None:
        activities = [
            {"id": "a", "type": "reading", "estimated_duration": 5},
            {"id": "a", "type": "study", "estimated_duration": 30},
        ]
        with self.assertRaises(ScheduleValidationError) as ctx:
            plan_day(WEDNESDAY, activities, [], notes="x" * 1001, config=self.config, today=TODAY)

        errors = ctx.exception.errors
        self.assertEqual(len(errors), 4)
        self.assertIn("Duplicate activity IDs: a", errors)
        self.assertEqual(ctx.exception.as_notification()[1], "warning")

    def test_past_date(self) -> None:
        with self.assertRaises(ScheduleValidationError) as ctx:
            plan_day("2025-10-19", _activities(), [], config=self.config, today=TODAY)
        self.assertEqual(ctx.exception.errors, ["Date cannot be in the past"])

    def test_unusable_window_for_explicit_activity(self) -> None:
        # wake at 07:00 leaves no morning before a 07:00 class
        config = PlannerConfig(wake_time="07:00")
        activities = [{"id": "a", "type": "reading", "estimated_duration": 30, "time_slot": "morning"}]
        with self.assertRaises(StructuralFailure):
            plan_day(WEDNESDAY, activities, _imports(), config=config, today=TODAY)

    def test_auto_activity_falls_back_to_usable_window(self) -> None:
        config = PlannerConfig(wake_time="07:00")
        slots = calculate_time_slots(date(2025, 10, 22), _imports(), wake_time="07:00")
        self.assertFalse(slots.morning_slot.is_usable)
        self.assertEqual(preferred_slot(Activity(id="ex", type="exercise"), slots), "afternoon")

        plan = plan_day(WEDNESDAY, [{"id": "ex", "type": "exercise", "estimated_duration": 30}],
                        _imports(), config=config, today=TODAY)
        self.assertEqual(plan.schedule.afternoon_schedule.activities[0].scheduled_time, "09:30")


class TestStoredDailySchedules(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.store = JsonRecordStore(Path(self._tmp.name) / "store.json")
        self.config = PlannerConfig()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _create(self, day: str = WEDNESDAY, activities=None, **kwargs):
        return create_daily_schedule(
            self.store,
            day,
            activities if activities is not None else _activities(),
            imports=kwargs.pop("imports", _imports()),
            config=self.config,
            today=TODAY,
            **kwargs,
        )

    def test_create_and_get(self) -> None:
        plan = self._create(notes="exam week")
        self.assertIsNotNone(plan.schedule.id)

        loaded = get_daily_schedule(self.store, WEDNESDAY)
        self.assertEqual(loaded.id, plan.schedule.id)
        self.assertEqual(loaded.notes, "exam week")
        self.assertEqual([a.id for a in loaded.all_activities()], ["ex", "meal", "st", "rd"])
        self.assertIsNone(get_daily_schedule(self.store, "2025-10-23"))
        self.assertIsNone(get_daily_schedule(self.store, "not a date"))

    def test_imports_default_to_stored_class_schedules(self) -> None:
        rows = [{"code": "JAVA01", "name": "Java", "schedule": "Thứ 4,1-2,E2.403"}]
        create_class_schedule(self.store, rows)
        plan = create_daily_schedule(self.store, WEDNESDAY, _activities(), config=self.config, today=TODAY)
        self.assertTrue(plan.schedule.has_class_today)
        self.assertEqual(plan.schedule.morning_schedule.end_time, "06:30")

    def test_overflow_can_be_refused(self) -> None:
        activities = [
            {"id": f"m{i}", "type": "reading", "estimated_duration": 60, "time_slot": "morning"}
            for i in range(1, 4)
        ]
        with self.assertRaises(ScheduleValidationError):
            self._create(activities=activities, allow_overflow=False)
        self.assertEqual(list_daily_schedules(self.store), [])

        plan = self._create(activities=activities)
        self.assertEqual(len(plan.omitted), 2)

    def test_list_newest_first(self) -> None:
        self._create("2025-10-21")
        self._create("2025-10-24")
        self._create(WEDNESDAY)
        self.assertEqual(
            [s.date for s in list_daily_schedules(self.store)],
            ["2025-10-24", "2025-10-22", "2025-10-21"],
        )

    def test_update_activity_status(self) -> None:
        schedule_id = self._create().schedule.id

        updated = update_activity_status(self.store, schedule_id, "st", "completed")
        self.assertEqual(updated.completed_activities, 1)

        loaded = get_daily_schedule(self.store, WEDNESDAY)
        self.assertEqual(loaded.find_activity("st").status, "completed")
        self.assertEqual(loaded.completed_activities, 1)

    def test_update_activity_status_errors(self) -> None:
        schedule_id = self._create().schedule.id

        with self.assertRaises(ScheduleValidationError):
            update_activity_status(self.store, schedule_id, "st", "done")
        with self.assertRaises(ScheduleValidationError):
            update_activity_status(self.store, schedule_id, "missing", "completed")
        with self.assertRaises(ScheduleNotFound):
            update_activity_status(self.store, schedule_id + 100, "st", "completed")

    def test_delete(self) -> None:
        schedule_id = self._create().schedule.id
        self.assertTrue(delete_daily_schedule(self.store, schedule_id))
        self.assertFalse(delete_daily_schedule(self.store, schedule_id))
        self.assertIsNone(get_daily_schedule(self.store, WEDNESDAY))


if __name__ == "__main__":
    unittest.main()
