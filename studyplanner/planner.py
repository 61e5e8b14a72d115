"""
Daily schedule assembly.

Ties the pipeline together for one date:

    validate input -> sanitize -> time slots -> bucket -> schedule -> assemble -> store

Validation problems are raised together as one ScheduleValidationError.
A capacity overflow is only a warning: the activities that do not fit stay in
their bucket without scheduled times and are listed in DayPlan.omitted.
Structural problems raise StructuralFailure before anything is stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from studyplanner.clock import time_to_minutes
from studyplanner.config import PlannerConfig, get_config
from studyplanner.days import day_of_week_for_date
from studyplanner.errors import ScheduleNotFound, ScheduleValidationError, StructuralFailure
from studyplanner.logging import get_logger
from studyplanner.model import (
    DAILY_SCHEDULE,
    STATUSES,
    Activity,
    DailyActivitySchedule,
    ScheduleImport,
    SlotSchedule,
    TimeSlot,
)
from studyplanner.scheduler import schedule_activities
from studyplanner.schedules import load_class_schedules
from studyplanner.storage import SCHEDULES, JsonRecordStore
from studyplanner.timeslots import DayTimeSlots, calculate_time_slots
from studyplanner.validate import (
    coerce_date,
    sanitize_activity,
    validate_activities,
    validate_date,
    validate_notes,
    validate_time_slot_capacity,
)

log = get_logger(__name__)

MORNING = "morning"
AFTERNOON = "afternoon"

# Activity types that default to the morning when the slot is "auto"
MORNING_TYPES = ("exercise", "meal")

ActivityInput = Union[Activity, Mapping[str, Any]]


@dataclass
class DayPlan:
    schedule: DailyActivitySchedule
    slots: DayTimeSlots
    omitted: List[Activity] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Bucketing / classification
# ---------------------------------------------------------------------------


def preferred_slot(activity: Activity, slots: DayTimeSlots) -> str:
    """
    Explicit morning/afternoon wins. Otherwise exercise and meals go to the
    morning and everything else to the afternoon, falling back to the other
    window when the preferred one has no usable time.
    """
    if activity.time_slot in (MORNING, AFTERNOON):
        return activity.time_slot

    choice = MORNING if activity.type in MORNING_TYPES else AFTERNOON
    chosen = slots.morning_slot if choice == MORNING else slots.afternoon_slot
    if not chosen.is_usable:
        other = AFTERNOON if choice == MORNING else MORNING
        other_slot = slots.afternoon_slot if other == AFTERNOON else slots.morning_slot
        if other_slot.is_usable:
            return other
    return choice


def classify_activities(
    activities: Sequence[Activity],
    slots: DayTimeSlots,
) -> Tuple[List[Activity], List[Activity]]:
    """
    Split activities into (morning, afternoon).

    A scheduled activity belongs to the morning iff it starts before the
    morning window ends; unscheduled ones follow preferred_slot().
    """
    morning: List[Activity] = []
    afternoon: List[Activity] = []
    morning_end = time_to_minutes(slots.morning_slot.end_time)

    for activity in activities:
        if activity.scheduled_time:
            target = morning if time_to_minutes(activity.scheduled_time) < morning_end else afternoon
        else:
            target = morning if preferred_slot(activity, slots) == MORNING else afternoon
        target.append(activity)

    return morning, afternoon


def assemble_daily_schedule(
    d: date,
    activities: Sequence[Activity],
    slots: DayTimeSlots,
    notes: str = "",
    now: Optional[str] = None,
) -> DailyActivitySchedule:
    """
    Build the in-memory record for one date from already placed activities.
    """
    morning, afternoon = classify_activities(activities, slots)
    stamp = now or _now()

    schedule = DailyActivitySchedule(
        date=d.isoformat(),
        day_of_week=int(day_of_week_for_date(d)),
        has_class_today=slots.has_class_today,
        morning_schedule=SlotSchedule(
            start_time=slots.morning_slot.start_time,
            end_time=slots.morning_slot.end_time,
            activities=morning,
        ),
        afternoon_schedule=SlotSchedule(
            start_time=slots.afternoon_slot.start_time,
            end_time=slots.afternoon_slot.end_time,
            activities=afternoon,
        ),
        notes=notes or "",
        created_at=stamp,
        updated_at=stamp,
    )
    schedule.recount()
    return schedule


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def _validated_date(value: Any, today: Optional[date]) -> date:
    result = validate_date(value, today=today)
    if not result.is_valid:
        raise ScheduleValidationError(result.errors)
    d = coerce_date(value)
    if d is None:
        raise ScheduleValidationError(["Date is invalid"])
    return d


def _place_bucket(
    name: str,
    bucket: List[Activity],
    slot: TimeSlot,
    break_minutes: int,
    warnings: List[str],
) -> List[Activity]:
    """Schedule one bucket and return the activities that did not fit."""
    if not bucket:
        return []

    if not slot.is_usable:
        raise StructuralFailure(
            f"The {name} window ({slot.start_time}-{slot.end_time}) has no free time for {len(bucket)} activities"
        )

    capacity = validate_time_slot_capacity(bucket, slot, break_minutes)
    if not capacity.can_fit:
        warnings.extend(f"{name.capitalize()}: {e}" for e in capacity.errors)

    placed = schedule_activities(bucket, slot, break_minutes)
    placed_ids = {id(a) for a in placed}
    return [a for a in bucket if id(a) not in placed_ids]


def plan_day(
    day: Any,
    activities: Sequence[ActivityInput],
    imports: Sequence[ScheduleImport],
    notes: Optional[str] = "",
    config: Optional[PlannerConfig] = None,
    today: Optional[date] = None,
) -> DayPlan:
    """
    Validate, place and assemble the activities of one date. Nothing is stored.
    """
    cfg = config or get_config()
    d = _validated_date(day, today)

    errors: List[str] = []
    errors.extend(validate_notes(notes).errors)
    errors.extend(validate_activities(list(activities)).errors)
    if errors:
        raise ScheduleValidationError(errors)

    cleaned: List[Activity] = []
    for raw in activities:
        item = sanitize_activity(raw)
        activity = item if isinstance(item, Activity) else Activity.from_dict(dict(item))
        # Times from an earlier plan are recomputed below
        activity.scheduled_time = None
        activity.scheduled_end_time = None
        cleaned.append(activity)

    slots = calculate_time_slots(
        d,
        imports,
        sunday_policy=cfg.sunday_policy,
        wake_time=cfg.wake_time,
        sleep_time=cfg.sleep_time,
        transit_buffer=cfg.transit_buffer_minutes,
    )

    morning_bucket = [a for a in cleaned if preferred_slot(a, slots) == MORNING]
    afternoon_bucket = [a for a in cleaned if preferred_slot(a, slots) == AFTERNOON]

    warnings: List[str] = []
    omitted = _place_bucket(MORNING, morning_bucket, slots.morning_slot, cfg.break_minutes, warnings)
    omitted += _place_bucket(AFTERNOON, afternoon_bucket, slots.afternoon_slot, cfg.break_minutes, warnings)

    for activity in omitted:
        log.info("activity_omitted", date=d.isoformat(), activity_id=activity.id)

    # Placed activities first (in placement order), then the ones left over
    ordered = [a for a in cleaned if a.scheduled_time]
    ordered.sort(key=lambda a: time_to_minutes(a.scheduled_time or "00:00"))
    ordered += omitted

    schedule = assemble_daily_schedule(d, ordered, slots, notes=notes or "")
    return DayPlan(schedule=schedule, slots=slots, omitted=omitted, warnings=warnings)


def create_daily_schedule(
    store: JsonRecordStore,
    day: Any,
    activities: Sequence[ActivityInput],
    notes: Optional[str] = "",
    imports: Optional[Sequence[ScheduleImport]] = None,
    config: Optional[PlannerConfig] = None,
    today: Optional[date] = None,
    allow_overflow: bool = True,
) -> DayPlan:
    """
    Plan one date and persist the result.

    With allow_overflow=False, capacity warnings are raised as a
    ScheduleValidationError instead of being accepted.
    """
    if imports is None:
        imports = load_class_schedules(store)

    plan = plan_day(day, activities, imports, notes=notes, config=config, today=today)

    if plan.warnings and not allow_overflow:
        raise ScheduleValidationError(plan.warnings)

    try:
        plan.schedule.id = store.add_item(SCHEDULES, plan.schedule.to_dict())
    except OSError as exc:
        raise StructuralFailure(f"Could not save the schedule: {exc}") from exc

    log.info(
        "daily_schedule_created",
        schedule_id=plan.schedule.id,
        date=plan.schedule.date,
        activities=plan.schedule.total_activities,
        omitted=len(plan.omitted),
    )
    return plan


# ---------------------------------------------------------------------------
# Stored daily schedules
# ---------------------------------------------------------------------------


def _daily_records(store: JsonRecordStore) -> List[DailyActivitySchedule]:
    return [
        DailyActivitySchedule.from_dict(r)
        for r in store.get_all_items(SCHEDULES)
        if r.get("type") == DAILY_SCHEDULE
    ]


def get_daily_schedule(store: JsonRecordStore, day: Any) -> Optional[DailyActivitySchedule]:
    d = coerce_date(day)
    if d is None:
        return None
    for schedule in _daily_records(store):
        if schedule.date == d.isoformat():
            return schedule
    return None


def list_daily_schedules(store: JsonRecordStore) -> List[DailyActivitySchedule]:
    """All daily schedules, newest date first."""
    return sorted(_daily_records(store), key=lambda s: s.date, reverse=True)


def update_activity_status(
    store: JsonRecordStore,
    schedule_id: int,
    activity_id: str,
    status: str,
) -> DailyActivitySchedule:
    if status not in STATUSES:
        raise ScheduleValidationError([f"Status must be one of: {', '.join(STATUSES)}"])

    record = store.get_item(SCHEDULES, schedule_id)
    if not record or record.get("type") != DAILY_SCHEDULE:
        raise ScheduleNotFound(schedule_id)

    schedule = DailyActivitySchedule.from_dict(record)
    activity = schedule.find_activity(activity_id)
    if activity is None:
        raise ScheduleValidationError([f"Activity not found: {activity_id}"])

    activity.status = status
    schedule.recount()
    schedule.updated_at = _now()

    # The record may have been deleted between load and save
    if not store.update_item(SCHEDULES, schedule.to_dict()):
        raise ScheduleNotFound(schedule_id)
    return schedule


def delete_daily_schedule(store: JsonRecordStore, schedule_id: int) -> bool:
    record = store.get_item(SCHEDULES, schedule_id)
    if not record or record.get("type") != DAILY_SCHEDULE:
        return False
    return store.delete_item(SCHEDULES, schedule_id)
