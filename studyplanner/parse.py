"""
Parsing (spreadsheet cell text -> structured schedule entries).

- Reads the free-text "Thời khóa biểu" cell of one course row
- Extracts EACH meeting time ("Thứ 4,1-2,E2.403") as exactly ONE ScheduleEntry
- Parses the "Tuần học" cell ("22-27;31-40") into week ranges

Important rules:
- Entries are separated by ';' or newlines
- An entry needs BOTH a day (2..7) and a period range (1..10); the room is optional
- Unusable candidates are logged and skipped, never raised
"""

from __future__ import annotations

import re
import unicodedata
from typing import List, Optional, Tuple

from studyplanner.days import is_domain_day
from studyplanner.logging import get_logger
from studyplanner.model import ScheduleEntry
from studyplanner.periods import is_period

log = get_logger(__name__)


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# "Thứ 4" (also the unaccented "Thu 4"), case-insensitive
DAY_PATTERN = re.compile(r"th(?:ứ|u)\s*(\d+)", re.IGNORECASE)

# "1-2", "8 - 10", "6–7" (en dash)
RANGE_PATTERN = re.compile(r"(\d+)\s*[-–]\s*(\d+)")

# "E2.403", "A141", "C303"
ROOM_PATTERN = re.compile(r"[A-Z]\d+(?:\.\d+)?")

ENTRY_SEPARATOR = re.compile(r"[;\n]")
WEEK_SEPARATOR = re.compile(r"[;,]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalize(text: str) -> str:
    # Spreadsheets exported on macOS often carry decomposed accents
    return unicodedata.normalize("NFC", text)


def _extract_day(candidate: str) -> Tuple[Optional[int], int]:
    """
    Returns (day, end offset of the day match). day is None if missing or
    outside 2..7.
    """
    match = DAY_PATTERN.search(candidate)
    if not match:
        return None, 0
    day = int(match.group(1))
    if not is_domain_day(day):
        return None, match.end()
    return day, match.end()


def _extract_periods(candidate: str, day_end: int) -> List[int]:
    """
    Finds the period range after the first comma so the day number itself is
    never mistaken for a period. Without a comma, searching starts right after
    the day keyword.
    """
    comma = candidate.find(",")
    offset = comma + 1 if comma != -1 else day_end

    match = RANGE_PATTERN.search(candidate, offset)
    if not match:
        return []

    start = int(match.group(1))
    end = int(match.group(2))
    if not (is_period(start) and is_period(end)) or start > end:
        return []

    return list(range(start, end + 1))


def _extract_room(candidate: str) -> str:
    match = ROOM_PATTERN.search(candidate)
    return match.group(0) if match else ""


# ---------------------------------------------------------------------------
# Schedule string parsing (CORE LOGIC)
# ---------------------------------------------------------------------------


def parse_schedule_candidate(candidate: str) -> Optional[ScheduleEntry]:
    """
    Parses exactly one meeting time into exactly one entry.
    """
    raw = candidate.strip()
    if not raw:
        return None

    day, day_end = _extract_day(raw)
    periods = _extract_periods(raw, day_end)

    if day is None or not periods:
        log.warning(
            "schedule_candidate_dropped",
            candidate=raw,
            reason="missing day" if day is None else "missing periods",
        )
        return None

    return ScheduleEntry(day=day, periods=tuple(periods), room=_extract_room(raw))


def parse_schedule_string(text: Optional[str]) -> List[ScheduleEntry]:
    """
    Parses one schedule cell into zero or more entries.

    An empty result means "no usable schedule", not an error.
    """
    if not text or not str(text).strip():
        return []

    entries: List[ScheduleEntry] = []
    for candidate in ENTRY_SEPARATOR.split(_normalize(str(text))):
        entry = parse_schedule_candidate(candidate)
        if entry:
            entries.append(entry)

    return entries


# ---------------------------------------------------------------------------
# Week ranges
# ---------------------------------------------------------------------------


def parse_week_ranges(text: Optional[str]) -> List[Tuple[int, int]]:
    """
    "22-27;31-40" -> [(22, 27), (31, 40)]; a single "5" becomes (5, 5).
    Parts that contain no number are skipped.
    """
    if not text or not str(text).strip():
        return []

    ranges: List[Tuple[int, int]] = []
    for part in WEEK_SEPARATOR.split(str(text)):
        part = part.strip()
        if not part:
            continue

        match = RANGE_PATTERN.search(part)
        if match:
            ranges.append((int(match.group(1)), int(match.group(2))))
            continue

        # Single week number
        single = re.match(r"\d+", part)
        if single:
            week = int(single.group(0))
            ranges.append((week, week))

    return ranges
