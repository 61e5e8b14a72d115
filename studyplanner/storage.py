"""
Persistent storage for imported class schedules and daily plans.

This module manages the file:

    <data_dir>/studyplanner.json

It behaves like a tiny key-value record store:
- records live in named collections ("schedules", "timer")
- every added record gets an auto-incremented integer id
- read returns the latest committed value or None
- each write replaces the file atomically

Loading never fails: a missing or corrupted file is treated as
an empty store instead of crashing the application.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any

from studyplanner.config import get_config
from studyplanner.logging import get_logger

log = get_logger(__name__)

SCHEDULES = "schedules"
TIMER = "timer"
STORE_FILENAME = "studyplanner.json"


def _default_store_path() -> Path:
    """
    Return the default path of the store file.

    Using a function instead of a constant makes testing easier,
    because tests can override the path (or the data_dir setting).
    """
    return Path(get_config().data_dir).expanduser() / STORE_FILENAME


def _empty_state() -> dict[str, Any]:
    return {"collections": {}, "next_ids": {}}


class JsonRecordStore:
    """
    Record store backed by one JSON file.

    Records are plain dicts; callers convert them from/to model objects.
    Returned records are copies, so mutating them never changes the store
    until update_item() is called.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_store_path()

    # -----------------------------------------------------------------------
    # File access
    # -----------------------------------------------------------------------

    def _load(self) -> dict[str, Any]:
        # First run: file does not exist yet -> empty store
        if not self.path.exists():
            return _empty_state()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            log.warning("store_unreadable", path=str(self.path), error=str(exc))
            return _empty_state()

        if not isinstance(data, dict):
            return _empty_state()

        collections = data.get("collections")
        next_ids = data.get("next_ids")
        return {
            "collections": collections if isinstance(collections, dict) else {},
            "next_ids": next_ids if isinstance(next_ids, dict) else {},
        }

    def _save(self, state: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temp file in the same directory, then swap it in
        fd, tmp_name = tempfile.mkstemp(prefix=".studyplanner-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _records(state: dict[str, Any], collection: str) -> list[dict[str, Any]]:
        records = state["collections"].setdefault(collection, [])
        if not isinstance(records, list):
            records = state["collections"][collection] = []
        return records

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def add_item(self, collection: str, record: dict[str, Any]) -> int:
        """
        Insert a record and return its new id. Any id already on the record
        is ignored.
        """
        state = self._load()
        records = self._records(state, collection)

        existing = [r.get("id", 0) for r in records if isinstance(r.get("id"), int)]
        next_id = max([int(state["next_ids"].get(collection, 1)), *(i + 1 for i in existing)])

        stored = copy.deepcopy(record)
        stored["id"] = next_id
        records.append(stored)
        state["next_ids"][collection] = next_id + 1

        self._save(state)
        return next_id

    def get_item(self, collection: str, record_id: int) -> dict[str, Any] | None:
        state = self._load()
        for record in self._records(state, collection):
            if record.get("id") == record_id:
                return copy.deepcopy(record)
        return None

    def get_all_items(self, collection: str) -> list[dict[str, Any]]:
        state = self._load()
        return [copy.deepcopy(r) for r in self._records(state, collection) if isinstance(r, dict)]

    def update_item(self, collection: str, record: dict[str, Any]) -> bool:
        """
        Replace the stored record with the same id. Returns False if there is
        no such record.
        """
        state = self._load()
        records = self._records(state, collection)
        for index, existing in enumerate(records):
            if existing.get("id") == record.get("id"):
                records[index] = copy.deepcopy(record)
                self._save(state)
                return True
        return False

    def delete_item(self, collection: str, record_id: int) -> bool:
        state = self._load()
        records = self._records(state, collection)
        kept = [r for r in records if r.get("id") != record_id]
        if len(kept) == len(records):
            return False
        state["collections"][collection] = kept
        self._save(state)
        return True
