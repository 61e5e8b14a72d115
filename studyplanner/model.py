"""
Central data model definitions used across the project.

This module defines the canonical structure of courses, imports, activities and
daily schedules so that:
- all modules share the same field names
- records can be written to / read from the JSON record store unchanged
- the weekly grid is never part of a stored record (it is always derived)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, List, Optional, Tuple

PRIORITIES = ("high", "medium", "low")
TIME_SLOTS = ("morning", "afternoon", "auto", None)
STATUSES = ("planned", "in-progress", "completed", "skipped")

CLASS_SCHEDULE = "class"
DAILY_SCHEDULE = "daily-activity"


def _str(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ScheduleEntry:
    """
    One weekly meeting of a course: a day (2..7), a contiguous run of periods
    and an optional room.
    """

    day: int
    periods: Tuple[int, ...]
    room: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"day": self.day, "periods": list(self.periods), "room": self.room}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleEntry":
        return cls(
            day=int(data.get("day", 0)),
            periods=tuple(int(p) for p in data.get("periods", []) or []),
            room=_str(data.get("room")),
        )


@dataclass
class Course:
    """
    Represents one row of an imported class schedule.

    schedule_entries is always a list (possibly empty): a course may meet
    several times per week, or not at all if its schedule text was unusable.
    """

    id: str
    name: str
    code: str
    credits: str = ""
    instructor: str = ""
    schedule_entries: List[ScheduleEntry] = field(default_factory=list)
    week_ranges: List[Tuple[int, int]] = field(default_factory=list)
    color: str = ""
    integration: str = ""
    clc: str = ""
    raw_schedule: str = ""
    raw_weeks: str = ""

    @property
    def label(self) -> str:
        return self.name or self.code or self.id

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["schedule_entries"] = [e.to_dict() for e in self.schedule_entries]
        data["week_ranges"] = [list(r) for r in self.week_ranges]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Course":
        entries = data.get("schedule_entries") or []
        ranges = data.get("week_ranges") or []
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            code=_str(data.get("code")),
            credits=_str(data.get("credits")),
            instructor=_str(data.get("instructor")),
            schedule_entries=[ScheduleEntry.from_dict(e) for e in entries if isinstance(e, dict)],
            week_ranges=[(int(r[0]), int(r[1])) for r in ranges if isinstance(r, (list, tuple)) and len(r) == 2],
            color=_str(data.get("color")),
            integration=_str(data.get("integration")),
            clc=_str(data.get("clc")),
            raw_schedule=_str(data.get("raw_schedule")),
            raw_weeks=_str(data.get("raw_weeks")),
        )


@dataclass
class ScheduleImport:
    """
    One imported weekly class timetable (one spreadsheet upload).
    """

    name: str
    courses: List[Course]
    created_at: str
    updated_at: str
    type: str = CLASS_SCHEDULE
    id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type,
            "courses": [c.to_dict() for c in self.courses],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduleImport":
        courses = data.get("courses") or []
        return cls(
            id=data.get("id"),
            name=_str(data.get("name")),
            type=_str(data.get("type")) or CLASS_SCHEDULE,
            courses=[Course.from_dict(c) for c in courses if isinstance(c, dict)],
            created_at=_str(data.get("created_at")),
            updated_at=_str(data.get("updated_at")),
        )


@dataclass(frozen=True)
class TimeSlot:
    """A contiguous window of the day. duration_minutes <= 0 means unusable."""

    start_time: str
    end_time: str
    duration_minutes: int

    @property
    def is_usable(self) -> bool:
        return self.duration_minutes > 0


@dataclass
class Activity:
    """
    A user task to be placed in a morning or afternoon window.

    scheduled_time / scheduled_end_time are filled in by the scheduler.
    """

    id: str
    type: str
    estimated_duration: int = 30
    priority: str = "medium"
    time_slot: Optional[str] = None
    status: str = "planned"
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    name: Optional[str] = None
    topic: Optional[str] = None
    content: Optional[str] = None
    scheduled_time: Optional[str] = None
    scheduled_end_time: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Activity":
        known = {f for f in cls.__dataclass_fields__}
        kwargs = {k: v for k, v in data.items() if k in known}
        kwargs["id"] = _str(kwargs.get("id"))
        kwargs["type"] = _str(kwargs.get("type"))
        try:
            kwargs["estimated_duration"] = int(kwargs.get("estimated_duration", 30))
        except (TypeError, ValueError, OverflowError):
            kwargs["estimated_duration"] = 30
        if kwargs.get("priority") is None:
            kwargs.pop("priority", None)
        if kwargs.get("status") is None:
            kwargs.pop("status", None)
        return cls(**kwargs)


@dataclass
class SlotSchedule:
    start_time: str
    end_time: str
    activities: List[Activity] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "activities": [a.to_dict() for a in self.activities],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SlotSchedule":
        return cls(
            start_time=_str(data.get("start_time")),
            end_time=_str(data.get("end_time")),
            activities=[Activity.from_dict(a) for a in data.get("activities") or [] if isinstance(a, dict)],
        )


@dataclass
class DailyActivitySchedule:
    """
    The plan for one calendar date: a morning and an afternoon window, each
    with its activities.
    """

    date: str
    day_of_week: int
    has_class_today: bool
    morning_schedule: SlotSchedule
    afternoon_schedule: SlotSchedule
    created_at: str
    updated_at: str
    notes: str = ""
    total_study_time: int = 0
    completed_activities: int = 0
    total_activities: int = 0
    type: str = DAILY_SCHEDULE
    id: Optional[int] = None

    def all_activities(self) -> List[Activity]:
        return [*self.morning_schedule.activities, *self.afternoon_schedule.activities]

    def find_activity(self, activity_id: str) -> Optional[Activity]:
        for activity in self.all_activities():
            if activity.id == activity_id:
                return activity
        return None

    def recount(self) -> None:
        """Recompute the derived counters from the activity lists."""
        activities = self.all_activities()
        self.total_activities = len(activities)
        self.completed_activities = sum(1 for a in activities if a.status == "completed")
        self.total_study_time = sum(a.estimated_duration for a in activities if a.type == "study")

    def to_dict(self) -> dict[str, Any]:
        data = {
            "type": self.type,
            "date": self.date,
            "day_of_week": self.day_of_week,
            "has_class_today": self.has_class_today,
            "morning_schedule": self.morning_schedule.to_dict(),
            "afternoon_schedule": self.afternoon_schedule.to_dict(),
            "notes": self.notes,
            "total_study_time": self.total_study_time,
            "completed_activities": self.completed_activities,
            "total_activities": self.total_activities,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailyActivitySchedule":
        return cls(
            id=data.get("id"),
            type=_str(data.get("type")) or DAILY_SCHEDULE,
            date=_str(data.get("date")),
            day_of_week=int(data.get("day_of_week", 0)),
            has_class_today=bool(data.get("has_class_today", False)),
            morning_schedule=SlotSchedule.from_dict(data.get("morning_schedule") or {}),
            afternoon_schedule=SlotSchedule.from_dict(data.get("afternoon_schedule") or {}),
            notes=_str(data.get("notes")),
            total_study_time=int(data.get("total_study_time", 0)),
            completed_activities=int(data.get("completed_activities", 0)),
            total_activities=int(data.get("total_activities", 0)),
            created_at=_str(data.get("created_at")),
            updated_at=_str(data.get("updated_at")),
        )
