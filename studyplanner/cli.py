"""
CLI (Command Line Interface).

Terminal commands for importing a class timetable and planning days, e.g.:

    studyplanner import timetable.xlsx --name "HK1 2025"
    studyplanner list
    studyplanner week
    studyplanner slots 2025-10-22
    studyplanner plan 2025-10-22 activities.json --notes "exam week"
    studyplanner show 2025-10-22
    studyplanner status <schedule_id> <activity_id> completed
    studyplanner delete <schedule_id>
    studyplanner timer --cycles 4
    studyplanner stats

Errors are printed as "<severity>: <message>" on stderr with a nonzero exit code.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from rich.progress import BarColumn, Progress, TextColumn, TimeRemainingColumn

from studyplanner.config import get_config
from studyplanner.errors import PlannerError, ScheduleValidationError
from studyplanner.logging import setup_logging
from studyplanner.model import STATUSES
from studyplanner.planner import (
    create_daily_schedule,
    delete_daily_schedule,
    get_daily_schedule,
    list_daily_schedules,
    update_activity_status,
)
from studyplanner.pomodoro import (
    SESSION_TYPES,
    PomodoroSession,
    PomodoroTimer,
    TimerStats,
    load_timer_stats,
    run_countdown,
    save_timer_stats,
)
from studyplanner.render import (
    daily_schedule_table,
    print_table,
    time_slots_table,
    timer_stats_table,
    week_grid_table,
)
from studyplanner.schedules import (
    create_class_schedule,
    delete_class_schedule,
    get_class_schedule,
    load_class_schedules,
)
from studyplanner.spreadsheet import read_class_rows
from studyplanner.storage import JsonRecordStore
from studyplanner.timeslots import calculate_time_slots, latest_class_import
from studyplanner.validate import coerce_date


def _notify(message: str, severity: str = "error") -> None:
    print(f"{severity}: {message}", file=sys.stderr)


def _load_activities(path: Path) -> Any:
    """
    Load the activity list of a plan from a JSON file.
    Returns None if the file is missing or broken.
    """
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None


def _cmd_import(args: argparse.Namespace, store: JsonRecordStore) -> int:
    """
    Import an .xlsx class timetable.
    """
    rows = read_class_rows(args.file)
    schedule = create_class_schedule(store, rows, name=args.name)

    scheduled = sum(1 for c in schedule.courses if c.schedule_entries)
    print(f"Imported #{schedule.id} '{schedule.name}': {len(schedule.courses)} courses ({scheduled} with a timetable)")
    return 0


def _cmd_list(args: argparse.Namespace, store: JsonRecordStore) -> int:
    """
    List class imports and daily plans.
    """
    imports = load_class_schedules(store)
    dailies = list_daily_schedules(store)

    if not imports and not dailies:
        print("Nothing stored yet.")
        return 0

    for s in sorted(imports, key=lambda x: x.created_at, reverse=True):
        print(f"#{s.id} class | {s.name} | {len(s.courses)} courses | {s.created_at[:10]}")
    for d in dailies:
        print(f"#{d.id} daily | {d.date} | {d.completed_activities}/{d.total_activities} completed")

    return 0


def _cmd_week(args: argparse.Namespace, store: JsonRecordStore) -> int:
    """
    Show the weekly grid of one import (default: the latest).
    """
    if args.id is not None:
        schedule = get_class_schedule(store, args.id)
    else:
        schedule = latest_class_import(load_class_schedules(store))

    if schedule is None:
        print("No class schedule found.")
        return 1

    print_table(week_grid_table(schedule))
    return 0


def _cmd_slots(args: argparse.Namespace, store: JsonRecordStore) -> int:
    """
    Show the free morning/afternoon windows of a date.
    """
    d = coerce_date(args.date)
    if d is None:
        _notify(f"Invalid date: {args.date!r} (expected YYYY-MM-DD)")
        return 1

    cfg = get_config()
    slots = calculate_time_slots(
        d,
        load_class_schedules(store),
        sunday_policy=cfg.sunday_policy,
        wake_time=cfg.wake_time,
        sleep_time=cfg.sleep_time,
        transit_buffer=cfg.transit_buffer_minutes,
    )
    print_table(time_slots_table(d.isoformat(), slots))
    return 0


def _cmd_plan(args: argparse.Namespace, store: JsonRecordStore) -> int:
    """
    Build and store the daily plan of a date from a JSON activity list.
    """
    activities = _load_activities(Path(args.activities))
    if not isinstance(activities, list):
        _notify(f"Could not read an activity list from {args.activities}")
        return 1

    # One plan per date
    existing = get_daily_schedule(store, args.date)
    if existing is not None:
        _notify(f"{args.date} is already planned (#{existing.id}); delete it first")
        return 1

    try:
        plan = create_daily_schedule(
            store,
            args.date,
            activities,
            notes=args.notes,
            allow_overflow=args.force,
        )
    except ScheduleValidationError as exc:
        for message in exc.errors:
            _notify(message, exc.severity)
        print("Nothing saved.")
        if not args.force:
            print("Fix the input, or re-run with --force to accept activities that overflow a window.")
        return 1

    for message in plan.warnings:
        _notify(message, "warning")

    print_table(daily_schedule_table(plan.schedule))
    if plan.omitted:
        print(f"{len(plan.omitted)} activities did not fit and were left unscheduled.")
    return 0


def _cmd_show(args: argparse.Namespace, store: JsonRecordStore) -> int:
    schedule = get_daily_schedule(store, args.date)
    if schedule is None:
        print(f"No plan for {args.date}.")
        return 1

    print_table(daily_schedule_table(schedule))
    return 0


def _cmd_status(args: argparse.Namespace, store: JsonRecordStore) -> int:
    schedule = update_activity_status(store, args.schedule_id, args.activity_id, args.status)
    print(f"Updated {args.activity_id}: {args.status} ({schedule.completed_activities}/{schedule.total_activities} completed)")
    return 0


def _cmd_delete(args: argparse.Namespace, store: JsonRecordStore) -> int:
    if delete_daily_schedule(store, args.schedule_id) or delete_class_schedule(store, args.schedule_id):
        print(f"Deleted #{args.schedule_id}")
        return 0

    print(f"Not found: #{args.schedule_id}")
    return 1


def _countdown(timer: PomodoroTimer) -> PomodoroSession:
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TimeRemainingColumn(),
        transient=True,
    ) as progress:
        task = progress.add_task(timer.session_name, total=timer.total_seconds)
        return run_countdown(
            timer,
            on_tick=lambda t: progress.update(task, completed=t.total_seconds - t.remaining),
        )


def _cmd_timer(args: argparse.Namespace, store: JsonRecordStore) -> int:
    """
    Run Pomodoro sessions back to back. Ctrl+C skips the running session
    and stops; the skipped session is still recorded.
    """
    timer = PomodoroTimer(get_config(), load_timer_stats(store), session=args.session)
    if args.minutes is not None:
        timer.set_quick_timer(args.minutes, args.session)

    for _ in range(args.cycles):
        print(f"{timer.session_name} ({timer.total_seconds // 60} min), pomodoro {timer.session_in_cycle}")
        try:
            session = _countdown(timer)
        except KeyboardInterrupt:
            session = timer.skip()
            save_timer_stats(store, timer.stats)
            print(f"Skipped after {session.duration} min.")
            return 130

        save_timer_stats(store, timer.stats)
        print(f"Done ({session.duration} min). Next: {timer.session_name}")

    return 0


def _cmd_stats(args: argparse.Namespace, store: JsonRecordStore) -> int:
    stats = load_timer_stats(store)
    if args.reset:
        save_timer_stats(store, TimerStats(id=stats.id))
        print("Pomodoro statistics cleared.")
        return 0

    print_table(timer_stats_table(stats, history=args.history))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="studyplanner", description="Class timetable + daily study planner")
    parser.add_argument("--store", type=Path, default=None, help="Path of the JSON record store")
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import a class timetable (.xlsx)")
    p_import.add_argument("file", type=Path, help="Excel file exported from the student portal")
    p_import.add_argument("--name", type=str, default=None, help="Display name of the timetable")

    sub.add_parser("list", help="List stored timetables and daily plans")

    p_week = sub.add_parser("week", help="Show the weekly grid")
    p_week.add_argument("--id", type=int, default=None, help="Timetable id (default: latest)")

    p_slots = sub.add_parser("slots", help="Show free time windows of a date")
    p_slots.add_argument("date", type=str, help="Date (YYYY-MM-DD)")

    p_plan = sub.add_parser("plan", help="Plan a date from a JSON activity list")
    p_plan.add_argument("date", type=str, help="Date (YYYY-MM-DD)")
    p_plan.add_argument("activities", type=str, help="JSON file with a list of activities")
    p_plan.add_argument("--notes", type=str, default="", help="Free-text notes")
    p_plan.add_argument("--force", action="store_true", help="Save even if activities overflow a window")

    p_show = sub.add_parser("show", help="Show the plan of a date")
    p_show.add_argument("date", type=str, help="Date (YYYY-MM-DD)")

    p_status = sub.add_parser("status", help="Update the status of an activity")
    p_status.add_argument("schedule_id", type=int)
    p_status.add_argument("activity_id", type=str)
    p_status.add_argument("status", choices=STATUSES)

    p_delete = sub.add_parser("delete", help="Delete a timetable or daily plan")
    p_delete.add_argument("schedule_id", type=int)

    p_timer = sub.add_parser("timer", help="Run Pomodoro sessions")
    p_timer.add_argument("--session", choices=SESSION_TYPES, default="work", help="Session to start with")
    p_timer.add_argument("--minutes", type=int, default=None, help="Custom length of the first session")
    p_timer.add_argument("--cycles", type=int, default=1, help="Number of sessions to run")

    p_stats = sub.add_parser("stats", help="Show Pomodoro statistics")
    p_stats.add_argument("--history", type=int, default=5, help="Number of recent sessions to list")
    p_stats.add_argument("--reset", action="store_true", help="Clear the statistics and history")

    return parser


COMMANDS = {
    "import": _cmd_import,
    "list": _cmd_list,
    "week": _cmd_week,
    "slots": _cmd_slots,
    "plan": _cmd_plan,
    "show": _cmd_show,
    "status": _cmd_status,
    "delete": _cmd_delete,
    "timer": _cmd_timer,
    "stats": _cmd_stats,
}


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = get_config()
    setup_logging(json_output=cfg.log_json, log_level=cfg.log_level)

    store = JsonRecordStore(args.store)
    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    try:
        code = handler(args, store)
    except PlannerError as exc:
        message, severity = exc.as_notification()
        _notify(message, severity)
        code = 1

    raise SystemExit(code)
