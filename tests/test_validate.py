"""
Unit tests for input validation and sanitization.

Validators collect messages instead of raising; sanitization is idempotent.
"""

import unittest
from datetime import date, timedelta

from studyplanner.model import Activity, TimeSlot
from studyplanner.validate import (
    clamp_duration,
    parse_int,
    sanitize_activity,
    sanitize_string,
    validate_activities,
    validate_activity,
    validate_date,
    validate_notes,
    validate_time_slot_capacity,
)

TODAY = date(2025, 10, 20)


def _activity(**overrides):
    data = {"id": "a1", "type": "reading", "estimated_duration": 30, "priority": "medium"}
    data.update(overrides)
    return data


class TestValidateActivity(unittest.TestCase):
    def test_valid_activity(self) -> None:
        result = validate_activity(_activity())
        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])

    def test_missing_fields(self) -> None:
        result = validate_activity({})
        self.assertFalse(result.is_valid)
        self.assertIn("Activity must have an ID", result.errors)
        self.assertIn("Activity must have a type", result.errors)
        self.assertIn("Activity must have estimated duration", result.errors)

    def test_duration_bounds(self) -> None:
        self.assertTrue(validate_activity(_activity(estimated_duration=15)).is_valid)
        self.assertTrue(validate_activity(_activity(estimated_duration=480)).is_valid)
        self.assertFalse(validate_activity(_activity(estimated_duration=14)).is_valid)
        self.assertFalse(validate_activity(_activity(estimated_duration=481)).is_valid)
        self.assertEqual(
            validate_activity(_activity(estimated_duration="abc")).errors,
            ["Duration must be a valid number"],
        )

    def test_enumerations(self) -> None:
        self.assertFalse(validate_activity(_activity(priority="urgent")).is_valid)
        self.assertFalse(validate_activity(_activity(time_slot="evening")).is_valid)
        self.assertTrue(validate_activity(_activity(time_slot="auto")).is_valid)
        self.assertTrue(validate_activity(_activity(time_slot=None)).is_valid)

    def test_study_needs_course_name(self) -> None:
        self.assertFalse(validate_activity(_activity(type="study")).is_valid)
        self.assertTrue(validate_activity(_activity(type="study", course_name="Java")).is_valid)

    def test_text_limits(self) -> None:
        self.assertFalse(validate_activity(_activity(topic="x" * 201)).is_valid)
        self.assertFalse(validate_activity(_activity(content="x" * 2001)).is_valid)

    def test_accepts_activity_objects(self) -> None:
        self.assertTrue(validate_activity(Activity(id="a1", type="meal")).is_valid)


class TestValidateActivities(unittest.TestCase):
    def test_not_a_list(self) -> None:
        self.assertEqual(validate_activities("nope").errors, ["Activities must be a list"])

    def test_empty_list(self) -> None:
        self.assertEqual(validate_activities([]).errors, ["At least one activity is required"])

    def test_errors_are_numbered(self) -> None:
        result = validate_activities([_activity(), _activity(id="a2", priority="bad")])
        self.assertFalse(result.is_valid)
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith("Activity 2: "))

    def test_duplicate_ids_reported_once(self) -> None:
        result = validate_activities([_activity(), _activity(), _activity(), _activity(id="b")])
        self.assertEqual(result.errors, ["Duplicate activity IDs: a1"])

    def test_unhashable_id_is_reported(self) -> None:
        result = validate_activities([_activity(id=["a"]), _activity(id={"k": 1}), _activity()])
        self.assertFalse(result.is_valid)
        self.assertEqual(
            result.errors,
            [
                "Activity 1: Activity ID must be a string or number",
                "Activity 2: Activity ID must be a string or number",
            ],
        )


class TestValidateDateAndNotes(unittest.TestCase):
    def test_today_is_allowed(self) -> None:
        self.assertTrue(validate_date(TODAY, today=TODAY).is_valid)
        self.assertTrue(validate_date("2025-10-20", today=TODAY).is_valid)

    def test_past_is_rejected(self) -> None:
        self.assertEqual(
            validate_date(TODAY - timedelta(days=1), today=TODAY).errors,
            ["Date cannot be in the past"],
        )

    def test_one_year_ahead(self) -> None:
        self.assertTrue(validate_date(TODAY + timedelta(days=365), today=TODAY).is_valid)
        self.assertFalse(validate_date(TODAY + timedelta(days=366), today=TODAY).is_valid)

    def test_invalid_date(self) -> None:
        self.assertEqual(validate_date("2025-13-40", today=TODAY).errors, ["Date is invalid"])
        self.assertEqual(validate_date(None, today=TODAY).errors, ["Date is invalid"])

    def test_notes(self) -> None:
        self.assertTrue(validate_notes(None).is_valid)
        self.assertTrue(validate_notes("x" * 1000).is_valid)
        self.assertFalse(validate_notes("x" * 1001).is_valid)
        self.assertEqual(validate_notes(42).errors, ["Notes must be a string"])


class TestCapacity(unittest.TestCase):
    def test_overflow(self) -> None:
        slot = TimeSlot(start_time="08:00", end_time="09:40", duration_minutes=100)
        report = validate_time_slot_capacity(
            [_activity(estimated_duration=50), _activity(id="a2", estimated_duration=50)],
            slot,
        )
        self.assertTrue(report.is_valid)
        self.assertEqual(report.required_time, 110)
        self.assertFalse(report.can_fit)
        self.assertEqual(report.overflow, 10)
        self.assertEqual(report.remaining_time, -10)
        self.assertEqual(len(report.errors), 1)

    def test_breaks_count_between_activities(self) -> None:
        slot = TimeSlot(start_time="08:00", end_time="09:40", duration_minutes=100)
        activities = [_activity(id=f"a{i}", estimated_duration=30) for i in range(3)]
        report = validate_time_slot_capacity(activities, slot)
        self.assertEqual(report.total_duration, 90)
        self.assertEqual(report.break_time, 20)
        self.assertEqual(report.required_time, 110)
        self.assertFalse(report.can_fit)
        self.assertEqual(report.overflow, 10)

    def test_exact_fit(self) -> None:
        slot = {"start_time": "08:00", "end_time": "09:50"}
        report = validate_time_slot_capacity(
            [_activity(estimated_duration=50), _activity(id="a2", estimated_duration=50)],
            slot,
        )
        self.assertTrue(report.can_fit)
        self.assertEqual(report.break_time, 10)
        self.assertEqual(report.overflow, 0)

    def test_bad_slot(self) -> None:
        self.assertFalse(validate_time_slot_capacity([_activity()], None).is_valid)
        report = validate_time_slot_capacity([_activity()], {"start_time": "10:00", "end_time": "09:00"})
        self.assertFalse(report.is_valid)
        self.assertFalse(report.can_fit)

    def test_no_activities_fit(self) -> None:
        report = validate_time_slot_capacity([], {"start_time": "10:00", "end_time": "11:00"})
        self.assertTrue(report.can_fit)
        self.assertEqual(report.required_time, 0)


class TestSanitize(unittest.TestCase):
    def test_script_tags_and_brackets(self) -> None:
        self.assertEqual(sanitize_string("  <script>alert(1)</script>Hello <b>x</b> "), "Hello bx/b")
        self.assertEqual(sanitize_string(None), "")

    def test_sanitize_is_idempotent(self) -> None:
        raw = _activity(topic=" <i>Chapter 2</i> ", name="<<x>>", estimated_duration="999")
        once = sanitize_activity(raw)
        self.assertEqual(sanitize_activity(once), once)
        self.assertEqual(once["estimated_duration"], 480)
        self.assertNotIn("<", once["topic"])

    def test_input_is_not_modified(self) -> None:
        raw = _activity(topic="<b>x</b>")
        sanitize_activity(raw)
        self.assertEqual(raw["topic"], "<b>x</b>")

    def test_activity_objects(self) -> None:
        activity = Activity(id="a1", type="reading", estimated_duration=5, topic="<b>x</b>")
        cleaned = sanitize_activity(activity)
        self.assertIsInstance(cleaned, Activity)
        self.assertEqual(cleaned.estimated_duration, 15)
        self.assertEqual(cleaned.topic, "bx/b")
        self.assertEqual(activity.estimated_duration, 5)

    def test_helpers(self) -> None:
        self.assertEqual(parse_int("60 min"), 60)
        self.assertEqual(parse_int(45.9), 45)
        self.assertIsNone(parse_int("abc"))
        self.assertIsNone(parse_int(True))
        self.assertEqual(clamp_duration("abc"), 15)
        self.assertEqual(clamp_duration(1000), 480)

    def test_non_finite_numbers(self) -> None:
        self.assertIsNone(parse_int(float("inf")))
        self.assertIsNone(parse_int(float("-inf")))
        self.assertIsNone(parse_int(float("nan")))
        self.assertEqual(clamp_duration(float("inf")), 15)

        result = validate_activity(_activity(estimated_duration=float("inf")))
        self.assertEqual(result.errors, ["Duration must be a valid number"])


if __name__ == "__main__":
    unittest.main()
