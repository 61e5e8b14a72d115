"""
Terminal rendering with rich.

- the weekly grid of a class import (periods x Thứ 2..Thứ 7)
- the time slots of a date
- a stored daily schedule
- the Pomodoro statistics

Everything here only reads model objects; the grid is projected on the fly.
User text (course names, rooms, activity fields) is escaped before it goes
into rich markup.
"""

from __future__ import annotations

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from studyplanner.grid import DAYS, PERIODS, project_week_grid
from studyplanner.model import Activity, DailyActivitySchedule, ScheduleImport
from studyplanner.periods import BREAK_AFTER_PERIOD, day_name, time_for_period
from studyplanner.pomodoro import SESSION_NAMES, TimerStats, format_minutes
from studyplanner.timeslots import DayTimeSlots

STATUS_ICONS = {
    "planned": "⏳",
    "in-progress": "🔄",
    "completed": "✅",
    "skipped": "⏭️",
}

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "green"}


def _course_cell(name: str, room: str, color: str) -> str:
    # Names and rooms come from the spreadsheet and may contain "[...]"
    label = f"[bold {color}]{escape(name)}[/]" if color else f"[bold]{escape(name)}[/]"
    return f"{label}\n{escape(room)}" if room else label


def week_grid_table(schedule: ScheduleImport) -> Table:
    grid = project_week_grid(schedule.courses)

    table = Table(title=escape(schedule.name), box=box.SIMPLE, show_lines=True)
    table.add_column("Tiết", justify="right")
    table.add_column("Giờ")
    for day in DAYS:
        table.add_column(day_name(day))

    for period in PERIODS:
        slot = time_for_period(period)
        row = [str(period), f"{slot.start}-{slot.end}"]
        for day in DAYS:
            parts: List[str] = []
            for course in grid.cell(period, day):
                rooms = [e.room for e in course.schedule_entries if e.day == day and period in e.periods and e.room]
                parts.append(_course_cell(course.label, rooms[0] if rooms else "", course.color))
            row.append("\n".join(parts))
        table.add_row(*row)

        if period == BREAK_AFTER_PERIOD:
            table.add_row("", "[dim]Break (30')[/]", *["" for _ in DAYS])

    return table


def time_slots_table(date_text: str, slots: DayTimeSlots) -> Table:
    title = f"{date_text} - {'classes today' if slots.has_class_today else 'no classes'}"
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Window")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Minutes", justify="right")

    for name, slot in (("Morning", slots.morning_slot), ("Afternoon", slots.afternoon_slot)):
        minutes = str(slot.duration_minutes) if slot.is_usable else f"[red]{slot.duration_minutes}[/]"
        table.add_row(name, slot.start_time, slot.end_time, minutes)

    for occurrence in slots.class_courses:
        table.add_row(f"[cyan]{escape(occurrence.course.label)}[/]", occurrence.start_time, occurrence.end_time, "")

    return table


def _activity_label(activity: Activity) -> str:
    label = activity.name or activity.topic or activity.type or "Activity"
    if activity.course_name:
        label = f"{activity.course_name}: {label}" if label != activity.type else activity.course_name
    return escape(label)


def daily_schedule_table(schedule: DailyActivitySchedule) -> Table:
    table = Table(
        title=f"{schedule.date} ({day_name(schedule.day_of_week)}) #{schedule.id}",
        box=box.SIMPLE,
    )
    table.add_column("")
    table.add_column("Time")
    table.add_column("Activity")
    table.add_column("Priority")
    table.add_column("Id", style="dim")

    for title, part in (("Morning", schedule.morning_schedule), ("Afternoon", schedule.afternoon_schedule)):
        table.add_row("", f"[bold]{title} {part.start_time}-{part.end_time}[/]", "", "", "")
        for activity in part.activities:
            when = (
                f"{activity.scheduled_time}-{activity.scheduled_end_time}"
                if activity.scheduled_time
                else "[dim]unscheduled[/]"
            )
            style = PRIORITY_STYLES.get(activity.priority, "")
            priority = f"[{style}]{activity.priority}[/]" if style else escape(activity.priority)
            table.add_row(
                STATUS_ICONS.get(activity.status, "⏳"),
                when,
                _activity_label(activity),
                priority,
                escape(activity.id),
            )

    table.caption = (
        f"{schedule.completed_activities}/{schedule.total_activities} completed, "
        f"{schedule.total_study_time} min study"
    )
    return table


def timer_stats_table(stats: TimerStats, history: int = 5) -> Table:
    table = Table(title="Pomodoro", box=box.SIMPLE)
    table.add_column("")
    table.add_column("", justify="right")

    table.add_row("Completed pomodoros", str(stats.completed_pomodoros))
    table.add_row("Work time", format_minutes(stats.total_work_time))
    table.add_row("Break time", format_minutes(stats.total_break_time))
    table.add_row("Streak (days)", str(stats.current_streak))

    for session in stats.session_history[:history]:
        mark = "✅" if session.completed else "⏭️"
        table.add_row(
            f"[dim]{escape(session.timestamp[:16].replace('T', ' '))}[/]",
            f"{mark} {SESSION_NAMES.get(session.type, escape(session.type))} {session.duration}'",
        )

    return table


def print_table(table: Table, console: Optional[Console] = None) -> None:
    (console or Console()).print(table)
