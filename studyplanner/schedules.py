"""
Class schedule imports.

Turns the raw rows of a class-schedule spreadsheet into Course records and
stores them as one ScheduleImport:

    rows -> build_courses() -> create_class_schedule() -> record store

Only the courses are stored. The weekly grid is derived from them whenever
it is needed (see studyplanner.grid).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from studyplanner.errors import ScheduleNotFound, StructuralFailure
from studyplanner.logging import get_logger
from studyplanner.model import CLASS_SCHEDULE, Course, ScheduleImport
from studyplanner.parse import parse_schedule_string, parse_week_ranges
from studyplanner.storage import SCHEDULES, JsonRecordStore

log = get_logger(__name__)

PALETTE = (
    "#667eea", "#764ba2", "#f093fb", "#4facfe", "#00f2fe",
    "#43e97b", "#fa709a", "#fee140", "#30cfd0", "#330867",
    "#a8edea", "#fed6e3", "#ffecd2", "#fcb69f", "#ff9a9e",
)

NO_COURSES_MESSAGE = "No course data found in the file."
NO_SCHEDULE_MESSAGE = "No valid course schedule data found."


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _cell(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value).strip()


def build_courses(rows: Iterable[Mapping[str, Any]], token: Optional[str] = None) -> List[Course]:
    """
    One Course per row that has a name or a code.

    Colors are assigned by position among the kept rows, cycling through
    PALETTE. Ids are "course-<token>-<index>", unique within one import.
    """
    token = token or str(int(_now().timestamp() * 1000))
    courses: List[Course] = []

    for row in rows:
        name = _cell(row, "name")
        code = _cell(row, "code")
        if not name and not code:
            continue

        index = len(courses)
        raw_schedule = _cell(row, "schedule")
        entries = parse_schedule_string(raw_schedule)
        if raw_schedule and not entries:
            log.warning("course_without_schedule", course=name or code, schedule=raw_schedule)

        courses.append(
            Course(
                id=f"course-{token}-{index}",
                name=name,
                code=code,
                credits=_cell(row, "credits"),
                instructor=_cell(row, "instructor"),
                schedule_entries=entries,
                week_ranges=parse_week_ranges(_cell(row, "weeks")),
                color=PALETTE[index % len(PALETTE)],
                integration=_cell(row, "integration"),
                clc=_cell(row, "clc"),
                raw_schedule=raw_schedule,
                raw_weeks=_cell(row, "weeks"),
            )
        )

    return courses


def create_class_schedule(
    store: JsonRecordStore,
    rows: Iterable[Mapping[str, Any]],
    name: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ScheduleImport:
    """
    Parse and persist one class schedule import.

    Raises StructuralFailure (and stores nothing) when the rows hold no
    courses, or when none of the courses has a usable schedule entry.
    """
    now = now or _now()
    courses = build_courses(rows, token=str(int(now.timestamp() * 1000)))

    if not courses:
        raise StructuralFailure(NO_COURSES_MESSAGE)

    if not any(c.schedule_entries for c in courses):
        raise StructuralFailure(NO_SCHEDULE_MESSAGE)

    stamp = now.isoformat()
    record = ScheduleImport(
        name=(name or "").strip() or f"Lịch học {now:%d/%m/%Y}",
        type=CLASS_SCHEDULE,
        courses=courses,
        created_at=stamp,
        updated_at=stamp,
    )

    try:
        record.id = store.add_item(SCHEDULES, record.to_dict())
    except OSError as exc:
        raise StructuralFailure(f"Could not save the schedule: {exc}") from exc

    log.info(
        "class_schedule_created",
        schedule_id=record.id,
        courses=len(courses),
        scheduled=sum(1 for c in courses if c.schedule_entries),
    )
    return record


def load_class_schedules(store: JsonRecordStore) -> List[ScheduleImport]:
    return [
        ScheduleImport.from_dict(r)
        for r in store.get_all_items(SCHEDULES)
        if r.get("type") == CLASS_SCHEDULE
    ]


def get_class_schedule(store: JsonRecordStore, schedule_id: int) -> Optional[ScheduleImport]:
    record = store.get_item(SCHEDULES, schedule_id)
    if not record or record.get("type") != CLASS_SCHEDULE:
        return None
    return ScheduleImport.from_dict(record)


def update_class_schedule(store: JsonRecordStore, schedule: ScheduleImport) -> ScheduleImport:
    """
    Save changes to an existing import. The record must still exist.
    """
    if schedule.id is None:
        raise StructuralFailure("Cannot update a schedule that was never saved")

    schedule.updated_at = _now().isoformat()
    if not store.update_item(SCHEDULES, schedule.to_dict()):
        raise ScheduleNotFound(schedule.id)
    return schedule


def delete_class_schedule(store: JsonRecordStore, schedule_id: int) -> bool:
    if get_class_schedule(store, schedule_id) is None:
        return False
    return store.delete_item(SCHEDULES, schedule_id)
