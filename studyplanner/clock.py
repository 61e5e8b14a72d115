"""
Wall-clock helpers.

All planner arithmetic works on minutes since midnight within one day:
- "HH:MM" strings are the exchange format (records, CLI, tests)
- there is no midnight rollover; anything past 23:59 is out of contract
"""

from __future__ import annotations


def time_to_minutes(hhmm: str) -> int:
    """
    Convert 'HH:MM' (or 'H:MM') to minutes since midnight.
    Raises ValueError for invalid formats.
    """
    if not isinstance(hhmm, str):
        raise ValueError(f"Invalid time format: {hhmm!r}")
    parts = hhmm.strip().split(":")
    if len(parts) != 2:
        raise ValueError(f"Invalid time format: {hhmm!r}")
    try:
        h = int(parts[0])
        m = int(parts[1])
    except ValueError:
        raise ValueError(f"Invalid time format: {hhmm!r}") from None
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"Invalid time value: {hhmm!r}")
    return h * 60 + m


def minutes_to_time(minutes: int) -> str:
    """
    Convert minutes since midnight back to a zero-padded 'HH:MM' string.
    """
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"


def duration_between(start: str, end: str) -> int:
    """
    Minutes from start to end. Negative when end lies before start.
    """
    return time_to_minutes(end) - time_to_minutes(start)
