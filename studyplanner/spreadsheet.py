"""
Spreadsheet adapter (XLSX -> raw course rows).

Reads the first sheet of a class-schedule export. The first row holds the
headers, e.g.

    TT | Mã lớp học phần | Tên lớp học phần | Số TC | Tích hợp | CLC | Giảng viên | Thời khóa biểu | Tuần học

Columns are found by flexible, case-insensitive header matching. Cell text is
returned untouched apart from trimming; interpreting the schedule and week
cells is the job of studyplanner.parse.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Sequence

import pandas as pd

from studyplanner.errors import SpreadsheetError
from studyplanner.logging import get_logger

log = get_logger(__name__)

# field -> accepted header spellings
COLUMN_ALIASES: Dict[str, Sequence[str]] = {
    "tt": ("TT", "Thứ tự"),
    "code": ("Mã lớp học phần", "Mã lớp", "Code"),
    "name": ("Tên lớp học phần", "Tên lớp", "Name"),
    "credits": ("Số TC", "TC", "Credits", "Tín chỉ"),
    "integration": ("Tích hợp", "Integration"),
    "clc": ("CLC",),
    "instructor": ("Giảng viên", "Instructor", "GV"),
    "schedule": ("Thời khóa biểu", "Schedule", "Lịch học"),
    "weeks": ("Tuần học", "Weeks", "Tuần"),
}

REQUIRED_HEADERS = (
    "TT", "Mã lớp học phần", "Tên lớp học phần", "Số TC", "Tích hợp",
    "CLC", "Giảng viên", "Thời khóa biểu", "Tuần học",
)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def find_column(headers: Sequence[Any], aliases: Sequence[str]) -> int:
    """
    Index of the first header that contains an alias (or is contained in
    one), ignoring case. -1 if none matches.
    """
    for index, header in enumerate(headers):
        h = _text(header).lower()
        if not h:
            continue
        for alias in aliases:
            a = alias.lower()
            if a in h or h in a:
                return index
    return -1


def looks_like_class_schedule(headers: Sequence[Any]) -> bool:
    header_text = " ".join(_text(h) for h in headers).lower()
    return any(required.lower() in header_text for required in REQUIRED_HEADERS)


def rows_from_table(table: Sequence[Sequence[Any]]) -> List[Dict[str, str]]:
    """
    Convert a header row + data rows into course row dicts.

    Empty rows and rows with neither a name nor a code are skipped.
    """
    if len(table) < 2:
        raise SpreadsheetError("The sheet has no data rows.")

    headers = list(table[0])
    if not looks_like_class_schedule(headers):
        raise SpreadsheetError("Unexpected file structure. Please check the Excel file.")

    columns = {field: find_column(headers, aliases) for field, aliases in COLUMN_ALIASES.items()}
    missing = [field for field, index in columns.items() if index == -1]
    if missing:
        log.info("spreadsheet_columns_missing", columns=missing)

    rows: List[Dict[str, str]] = []
    for raw in table[1:]:
        cells = [_text(c) for c in raw]
        if not any(cells):
            continue

        row = {
            field: (cells[index] if 0 <= index < len(cells) else "")
            for field, index in columns.items()
        }
        if row["name"] or row["code"]:
            rows.append(row)

    return rows


def read_class_rows(path: str | Path) -> List[Dict[str, str]]:
    """
    Read the first sheet of an .xlsx file and return its course rows.
    """
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise SpreadsheetError(f"File not found: {file_path}")

    try:
        frame = pd.read_excel(file_path, sheet_name=0, header=None, dtype=str, engine="openpyxl")
    except Exception as exc:
        raise SpreadsheetError(f"Could not read the Excel file. Reason: {exc}") from exc

    table = frame.fillna("").values.tolist()
    rows = rows_from_table(table)
    log.info("spreadsheet_read", path=str(file_path), rows=len(rows))
    return rows
