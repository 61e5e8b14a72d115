"""
Greedy activity placement.

Activities are placed one after another inside a time slot:
- highest priority first (stable among equal priorities)
- a fixed break after every placed activity
- the first activity that does not fit ends the pass; a short one
  (<= 15 minutes) is still placed, clipped to the end of the slot

Activities that do not fit are simply absent from the result. Callers
compare counts to detect omissions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import List, Sequence

from studyplanner.clock import minutes_to_time, time_to_minutes
from studyplanner.logging import get_logger
from studyplanner.model import Activity, TimeSlot
from studyplanner.validate import BREAK_MINUTES, MIN_DURATION, CapacityReport, validate_time_slot_capacity

log = get_logger(__name__)

PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
DEFAULT_DURATION = 30


@dataclass
class Suggestion:
    type: str
    message: str
    activities: List[Activity] = field(default_factory=list)
    count: int = 0


@dataclass
class AllocationPlan:
    can_fit: bool
    scheduled: List[Activity] = field(default_factory=list)
    capacity: CapacityReport | None = None
    suggestions: List[Suggestion] = field(default_factory=list)


def priority_weight(activity: Activity) -> int:
    return PRIORITY_WEIGHTS.get(activity.priority, 0)


def sort_by_priority(activities: Sequence[Activity]) -> List[Activity]:
    # sorted() is stable, so equal priorities keep their input order
    return sorted(activities, key=priority_weight, reverse=True)


def schedule_activities(
    activities: Sequence[Activity],
    slot: TimeSlot,
    break_minutes: int = BREAK_MINUTES,
) -> List[Activity]:
    """
    Stamps scheduled_time / scheduled_end_time on the activities that fit
    and returns them in placement order. The input objects are updated in place.
    """
    if not activities:
        return []

    start = time_to_minutes(slot.start_time)
    end = time_to_minutes(slot.end_time)

    scheduled: List[Activity] = []
    cursor = start

    for activity in sort_by_priority(activities):
        duration = activity.estimated_duration or DEFAULT_DURATION

        if cursor + duration > end:
            # Short activities may be squeezed into what is left
            if duration <= MIN_DURATION and cursor < end:
                activity.scheduled_time = minutes_to_time(cursor)
                activity.scheduled_end_time = minutes_to_time(min(cursor + duration, end))
                scheduled.append(activity)
            break

        activity.scheduled_time = minutes_to_time(cursor)
        activity.scheduled_end_time = minutes_to_time(cursor + duration)
        scheduled.append(activity)

        cursor += duration + break_minutes

    if len(scheduled) < len(activities):
        log.info(
            "activities_omitted",
            slot=f"{slot.start_time}-{slot.end_time}",
            placed=len(scheduled),
            requested=len(activities),
        )

    return scheduled


def suggest_time_allocation(
    activities: Sequence[Activity],
    slot: TimeSlot,
    break_minutes: int = BREAK_MINUTES,
) -> AllocationPlan:
    """
    Schedules everything when it fits; otherwise proposes how to make it fit:
    shorten the low-priority activities, or move some to the other slot.
    The input activities are not modified when they do not fit.
    """
    capacity = validate_time_slot_capacity(activities, slot, break_minutes)

    if capacity.can_fit:
        return AllocationPlan(
            can_fit=True,
            scheduled=schedule_activities(activities, slot, break_minutes),
            capacity=capacity,
        )

    # Unusable slot: nothing can be suggested inside it
    shortage = capacity.overflow if capacity.is_valid else sum(a.estimated_duration for a in activities)
    suggestions: List[Suggestion] = []

    low = [a for a in activities if a.priority == "low"]
    if low and capacity.is_valid:
        per_activity = math.ceil(shortage / len(low))
        suggestions.append(
            Suggestion(
                type="reduce-low-priority",
                message=f"Reduce each low-priority activity by {per_activity} minutes",
                activities=[
                    replace(a, estimated_duration=max(MIN_DURATION, a.estimated_duration - per_activity))
                    for a in low
                ],
            )
        )

    if len(activities) > 1:
        count = min(len(activities), math.ceil(shortage / 60))
        suggestions.append(
            Suggestion(
                type="move-activities",
                message=f"Move {count} activities to another time slot",
                count=count,
            )
        )

    return AllocationPlan(can_fit=False, capacity=capacity, suggestions=suggestions)
