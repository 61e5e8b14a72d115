"""
Pomodoro timer.

A countdown state machine cycling through sessions:

    work -> short-break -> work -> ... -> work -> long-break -> work ...

A long break follows every `long_break_interval` completed work sessions.
Finished sessions are appended to a history (newest first, last 100 kept)
from which the statistics are derived:
- completed pomodoros and total work minutes (completed work sessions only)
- total break minutes (every break, finished or skipped)
- the streak of consecutive days with at least one completed work session

The timer itself never sleeps. tick() advances it by a number of seconds;
run_countdown() drives it in real time for the CLI.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, List, Optional

from studyplanner.config import PlannerConfig
from studyplanner.errors import ScheduleValidationError
from studyplanner.logging import get_logger
from studyplanner.storage import TIMER, JsonRecordStore

log = get_logger(__name__)

WORK = "work"
SHORT_BREAK = "short-break"
LONG_BREAK = "long-break"
SESSION_TYPES = (WORK, SHORT_BREAK, LONG_BREAK)

SESSION_NAMES = {
    WORK: "Làm việc",
    SHORT_BREAK: "Nghỉ ngắn",
    LONG_BREAK: "Nghỉ dài",
}

MAX_HISTORY = 100


def _now() -> datetime:
    # Local time with offset, so the stamp's date is the user's calendar day
    return datetime.now().astimezone()


def format_minutes(minutes: int) -> str:
    """90 -> '1h 30m', 25 -> '25m'."""
    hours, mins = divmod(int(minutes), 60)
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


@dataclass
class PomodoroSession:
    type: str
    duration: int
    completed: bool
    timestamp: str
    work_duration: int = 0

    @property
    def day(self) -> Optional[date]:
        try:
            return datetime.fromisoformat(self.timestamp).date()
        except ValueError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "duration": self.duration,
            "completed": self.completed,
            "timestamp": self.timestamp,
            "work_duration": self.work_duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PomodoroSession":
        return cls(
            type=str(data.get("type") or WORK),
            duration=int(data.get("duration") or 0),
            completed=bool(data.get("completed", False)),
            timestamp=str(data.get("timestamp") or ""),
            work_duration=int(data.get("work_duration") or 0),
        )


@dataclass
class TimerStats:
    completed_pomodoros: int = 0
    total_work_time: int = 0
    total_break_time: int = 0
    current_streak: int = 0
    session_history: List[PomodoroSession] = field(default_factory=list)
    id: Optional[int] = None

    def add_session(self, session: PomodoroSession, today: Optional[date] = None) -> None:
        self.session_history.insert(0, session)
        del self.session_history[MAX_HISTORY:]

        if session.type == WORK:
            if session.completed:
                self.completed_pomodoros += 1
                self.total_work_time += session.duration
        else:
            self.total_break_time += session.duration

        self.current_streak = streak_for(self.session_history, today or _now().date())

    def to_dict(self) -> dict[str, Any]:
        data = {
            "completed_pomodoros": self.completed_pomodoros,
            "total_work_time": self.total_work_time,
            "total_break_time": self.total_break_time,
            "current_streak": self.current_streak,
            "session_history": [s.to_dict() for s in self.session_history],
        }
        if self.id is not None:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimerStats":
        history = data.get("session_history") or []
        return cls(
            id=data.get("id"),
            completed_pomodoros=int(data.get("completed_pomodoros") or 0),
            total_work_time=int(data.get("total_work_time") or 0),
            total_break_time=int(data.get("total_break_time") or 0),
            current_streak=int(data.get("current_streak") or 0),
            session_history=[PomodoroSession.from_dict(s) for s in history if isinstance(s, dict)],
        )


def streak_for(history: List[PomodoroSession], today: date) -> int:
    """
    Consecutive days with a completed work session, counted back from today,
    or from yesterday when nothing is completed yet today.
    """
    days = {s.day for s in history if s.type == WORK and s.completed and s.day}

    if today in days:
        day = today
    elif today - timedelta(days=1) in days:
        day = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


class PomodoroTimer:
    """
    Session state machine. `stats` is updated in place on every finished
    session; persisting it is up to the caller (see save_timer_stats).
    """

    def __init__(
        self,
        config: PlannerConfig,
        stats: Optional[TimerStats] = None,
        session: str = WORK,
    ) -> None:
        if session not in SESSION_TYPES:
            raise ScheduleValidationError([f"Session must be one of: {', '.join(SESSION_TYPES)}"])

        self.config = config
        self.stats = stats or TimerStats()
        self.current_session = session
        self.is_running = False
        self.is_paused = False
        self.total_seconds = self.session_minutes() * 60
        self.remaining = self.total_seconds

    # -----------------------------------------------------------------------
    # Durations
    # -----------------------------------------------------------------------

    def session_minutes(self, session: Optional[str] = None) -> int:
        session = session or self.current_session
        if session == SHORT_BREAK:
            return self.config.short_break_minutes
        if session == LONG_BREAK:
            return self.config.long_break_minutes
        return self.config.work_minutes

    @property
    def session_name(self) -> str:
        return SESSION_NAMES[self.current_session]

    @property
    def session_in_cycle(self) -> int:
        return self.stats.completed_pomodoros % self.config.long_break_interval + 1

    def _load_session(self) -> None:
        self.total_seconds = self.session_minutes() * 60
        self.remaining = self.total_seconds

    # -----------------------------------------------------------------------
    # Controls
    # -----------------------------------------------------------------------

    def start(self) -> None:
        if self.remaining <= 0:
            self._load_session()
        self.is_running = True
        self.is_paused = False

    def pause(self) -> None:
        self.is_running = False
        self.is_paused = True

    def reset(self) -> None:
        """Back to the full length of the current session."""
        self.is_running = False
        self.is_paused = False
        self._load_session()

    def set_quick_timer(self, minutes: int, session: str = WORK) -> None:
        if session not in SESSION_TYPES:
            raise ScheduleValidationError([f"Session must be one of: {', '.join(SESSION_TYPES)}"])
        if minutes < 1:
            raise ScheduleValidationError(["Timer must run for at least 1 minute"])
        self.reset()
        self.current_session = session
        self.total_seconds = minutes * 60
        self.remaining = self.total_seconds

    def tick(self, seconds: int = 1) -> Optional[PomodoroSession]:
        """
        Advance a running timer. Returns the finished session when the
        countdown reaches zero, otherwise None.
        """
        if not self.is_running:
            return None
        self.remaining -= seconds
        if self.remaining <= 0:
            return self.complete()
        return None

    def skip(self, now: Optional[datetime] = None) -> PomodoroSession:
        """
        End the current session early. Only the elapsed time is recorded and
        the session does not count as completed.
        """
        return self.complete(now=now)

    def complete(self, now: Optional[datetime] = None) -> PomodoroSession:
        self.is_running = False
        self.is_paused = False

        elapsed = self.total_seconds - max(self.remaining, 0)
        session = PomodoroSession(
            type=self.current_session,
            duration=round(elapsed / 60),
            completed=self.remaining <= 0,
            timestamp=(now or _now()).isoformat(),
            work_duration=self.config.work_minutes,
        )
        self.stats.add_session(session, today=now.date() if now else None)

        log.info(
            "pomodoro_session_finished",
            session=session.type,
            minutes=session.duration,
            completed=session.completed,
        )

        self._advance()
        return session

    def _advance(self) -> None:
        if self.current_session == WORK:
            done = self.stats.completed_pomodoros
            if done > 0 and done % self.config.long_break_interval == 0:
                self.current_session = LONG_BREAK
            else:
                self.current_session = SHORT_BREAK
        else:
            self.current_session = WORK
        self._load_session()


def run_countdown(
    timer: PomodoroTimer,
    sleep: Optional[Callable[[float], None]] = None,
    on_tick: Optional[Callable[[PomodoroTimer], None]] = None,
) -> PomodoroSession:
    """
    Run the current session in real time until it finishes.
    KeyboardInterrupt propagates; the caller decides whether to skip.
    """
    sleep = sleep or time.sleep
    timer.start()
    while True:
        sleep(1)
        finished = timer.tick()
        if finished is not None:
            return finished
        if on_tick is not None:
            on_tick(timer)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def load_timer_stats(store: JsonRecordStore) -> TimerStats:
    records = store.get_all_items(TIMER)
    return TimerStats.from_dict(records[0]) if records else TimerStats()


def save_timer_stats(store: JsonRecordStore, stats: TimerStats) -> TimerStats:
    if stats.id is None or not store.update_item(TIMER, stats.to_dict()):
        stats.id = store.add_item(TIMER, stats.to_dict())
    return stats
