"""
Validation and sanitization of user input for daily schedules.

Validators never raise on bad input. They collect every problem into a list of
human-readable messages so the caller can show them all at once and decide
whether to block (invalid activity) or just warn (capacity overflow).

Activities may be given as plain dicts (raw user input) or Activity objects.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from typing import Any, List, Mapping, Optional, Sequence, Union

from studyplanner.clock import time_to_minutes
from studyplanner.model import PRIORITIES, TIME_SLOTS, Activity, TimeSlot

MIN_DURATION = 15
MAX_DURATION = 480
MAX_NOTES_LENGTH = 1000
MAX_TOPIC_LENGTH = 200
MAX_CONTENT_LENGTH = 2000
MAX_DAYS_AHEAD = 365
BREAK_MINUTES = 10

SANITIZED_FIELDS = ("topic", "content", "course_name", "name")

_SCRIPT_TAG = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_ANGLE_BRACKETS = re.compile(r"[<>]")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

ActivityLike = Union[Activity, Mapping[str, Any]]


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class CapacityReport:
    is_valid: bool
    can_fit: bool
    total_duration: int = 0
    available_time: int = 0
    break_time: int = 0
    required_time: int = 0
    remaining_time: int = 0
    overflow: int = 0
    errors: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_mapping(activity: ActivityLike) -> Mapping[str, Any]:
    if isinstance(activity, Activity):
        return activity.to_dict()
    if isinstance(activity, Mapping):
        return activity
    return {}


def parse_int(value: Any) -> Optional[int]:
    """
    Lenient integer parsing: 60, 60.0, "60", "60 min" -> 60.
    Returns None when no leading integer is present.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _is_scalar_id(value: Any) -> bool:
    return isinstance(value, (str, int)) and not isinstance(value, bool)


def _result(errors: List[str]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


# ---------------------------------------------------------------------------
# Activities
# ---------------------------------------------------------------------------


def validate_activity(activity: ActivityLike) -> ValidationResult:
    a = _as_mapping(activity)
    errors: List[str] = []

    activity_id = a.get("id")
    if not activity_id:
        errors.append("Activity must have an ID")
    elif not _is_scalar_id(activity_id):
        errors.append("Activity ID must be a string or number")

    if not a.get("type"):
        errors.append("Activity must have a type")

    duration = a.get("estimated_duration")
    if duration is None:
        errors.append("Activity must have estimated duration")
    else:
        minutes = parse_int(duration)
        if minutes is None:
            errors.append("Duration must be a valid number")
        elif minutes < MIN_DURATION:
            errors.append(f"Duration must be at least {MIN_DURATION} minutes")
        elif minutes > MAX_DURATION:
            errors.append(f"Duration must not exceed {MAX_DURATION} minutes")

    priority = a.get("priority")
    if priority and priority not in PRIORITIES:
        errors.append("Priority must be high, medium, or low")

    time_slot = a.get("time_slot")
    if time_slot and time_slot not in TIME_SLOTS:
        errors.append("Time slot must be morning, afternoon, auto, or null")

    topic = a.get("topic")
    if topic and len(str(topic)) > MAX_TOPIC_LENGTH:
        errors.append(f"Topic must not exceed {MAX_TOPIC_LENGTH} characters")

    content = a.get("content")
    if content and len(str(content)) > MAX_CONTENT_LENGTH:
        errors.append(f"Content must not exceed {MAX_CONTENT_LENGTH} characters")

    if a.get("type") == "study" and not a.get("course_name"):
        errors.append("Study activity must have a course name")

    return _result(errors)


def validate_activities(activities: Any) -> ValidationResult:
    """
    Validates every activity and reports all duplicate ids together.
    """
    if not isinstance(activities, (list, tuple)):
        return _result(["Activities must be a list"])

    if not activities:
        return _result(["At least one activity is required"])

    errors: List[str] = []
    seen: set[str] = set()
    duplicates: List[str] = []

    for index, activity in enumerate(activities, start=1):
        result = validate_activity(activity)
        if not result.is_valid:
            errors.append(f"Activity {index}: {', '.join(result.errors)}")

        activity_id = _as_mapping(activity).get("id")
        if activity_id and _is_scalar_id(activity_id):
            if activity_id in seen:
                if activity_id not in duplicates:
                    duplicates.append(activity_id)
            else:
                seen.add(activity_id)

    if duplicates:
        errors.append(f"Duplicate activity IDs: {', '.join(str(d) for d in duplicates)}")

    return _result(errors)


# ---------------------------------------------------------------------------
# Date / notes
# ---------------------------------------------------------------------------


def coerce_date(value: Any) -> Optional[date]:
    """date, datetime or 'YYYY-MM-DD' -> date; anything else -> None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            return None
    return None


def validate_date(value: Any, today: Optional[date] = None) -> ValidationResult:
    """
    Date-only comparison: today is allowed, the past is not, and at most
    one year ahead.
    """
    d = coerce_date(value)
    if d is None:
        return _result(["Date is invalid"])

    today = today or date.today()
    if d < today:
        return _result(["Date cannot be in the past"])

    if d > today + timedelta(days=MAX_DAYS_AHEAD):
        return _result(["Date cannot be more than 1 year in the future"])

    return _result([])


def validate_notes(notes: Any) -> ValidationResult:
    if notes is None:
        return _result([])

    if not isinstance(notes, str):
        return _result(["Notes must be a string"])

    if len(notes) > MAX_NOTES_LENGTH:
        return _result([f"Notes must not exceed {MAX_NOTES_LENGTH} characters"])

    return _result([])


# ---------------------------------------------------------------------------
# Capacity
# ---------------------------------------------------------------------------


def _slot_bounds(slot: Union[TimeSlot, Mapping[str, Any], None]) -> tuple[str, str]:
    if isinstance(slot, TimeSlot):
        return slot.start_time, slot.end_time
    if isinstance(slot, Mapping):
        return str(slot.get("start_time") or ""), str(slot.get("end_time") or "")
    return "", ""


def validate_time_slot_capacity(
    activities: Sequence[ActivityLike],
    slot: Union[TimeSlot, Mapping[str, Any], None],
    break_minutes: int = BREAK_MINUTES,
) -> CapacityReport:
    """
    required = sum(durations) + (count - 1) * break; fits when required <= available.
    """
    start, end = _slot_bounds(slot)
    if not start or not end:
        return CapacityReport(is_valid=False, can_fit=False, errors=["Time slot must have start_time and end_time"])

    try:
        available = time_to_minutes(end) - time_to_minutes(start)
    except ValueError as exc:
        return CapacityReport(is_valid=False, can_fit=False, errors=[str(exc)])

    if available <= 0:
        return CapacityReport(
            is_valid=False,
            can_fit=False,
            available_time=available,
            errors=["Time slot end time must be after start time"],
        )

    total = sum(parse_int(_as_mapping(a).get("estimated_duration")) or 0 for a in activities)
    breaks = max(0, (len(activities) - 1) * break_minutes)
    required = total + breaks
    can_fit = required <= available
    overflow = max(0, required - available)

    errors: List[str] = []
    if not can_fit:
        errors.append(
            "Time slot cannot accommodate all activities. "
            f"Required: {required} minutes, Available: {available} minutes, Overflow: {overflow} minutes"
        )

    return CapacityReport(
        is_valid=True,
        can_fit=can_fit,
        total_duration=total,
        available_time=available,
        break_time=breaks,
        required_time=required,
        remaining_time=available - required,
        overflow=overflow,
        errors=errors,
    )


# ---------------------------------------------------------------------------
# Sanitization
# ---------------------------------------------------------------------------


def sanitize_string(value: Any) -> str:
    """
    Removes script tags and angle brackets, then trims. Idempotent: the
    output contains no '<' or '>' so a second pass changes nothing.
    """
    if not isinstance(value, str):
        return ""
    value = _SCRIPT_TAG.sub("", value)
    value = _ANGLE_BRACKETS.sub("", value)
    return value.strip()


def clamp_duration(value: Any) -> int:
    minutes = parse_int(value) or MIN_DURATION
    return max(MIN_DURATION, min(MAX_DURATION, minutes))


def sanitize_activity(activity: ActivityLike) -> ActivityLike:
    """
    Returns a sanitized copy of the same kind (dict in, dict out; Activity in,
    Activity out). The input is left untouched.
    """
    if isinstance(activity, Activity):
        changes: dict[str, Any] = {"estimated_duration": clamp_duration(activity.estimated_duration)}
        for name in SANITIZED_FIELDS:
            if getattr(activity, name):
                changes[name] = sanitize_string(getattr(activity, name))
        return replace(activity, **changes)

    sanitized = dict(activity)
    for name in SANITIZED_FIELDS:
        if sanitized.get(name):
            sanitized[name] = sanitize_string(sanitized[name])

    if "estimated_duration" in sanitized:
        sanitized["estimated_duration"] = clamp_duration(sanitized["estimated_duration"])

    return sanitized
