"""
Unit tests for the JSON record store.

Storage contract:
- Missing/invalid file -> empty store
- ids are auto-incremented per collection and never reused
- returned records are copies
"""

import json
import tempfile
import unittest
from pathlib import Path

from studyplanner.storage import SCHEDULES, JsonRecordStore


class TestJsonRecordStore(unittest.TestCase):
    def test_load_missing_file_returns_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = JsonRecordStore(Path(d) / "missing.json")
            self.assertEqual(store.get_all_items(SCHEDULES), [])
            self.assertIsNone(store.get_item(SCHEDULES, 1))

    def test_corrupted_file_is_treated_as_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "store.json"
            p.write_text("{not json", encoding="utf-8")
            store = JsonRecordStore(p)
            self.assertEqual(store.get_all_items(SCHEDULES), [])
            self.assertEqual(store.add_item(SCHEDULES, {"name": "x"}), 1)

    def test_add_and_get_roundtrip(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "nested" / "store.json"
            store = JsonRecordStore(p)
            first = store.add_item(SCHEDULES, {"name": "Lịch học", "id": 99})
            second = store.add_item(SCHEDULES, {"name": "second"})
            self.assertEqual((first, second), (1, 2))

            self.assertEqual(store.get_item(SCHEDULES, 1), {"name": "Lịch học", "id": 1})

            # persisted as readable UTF-8 JSON
            data = json.loads(p.read_text(encoding="utf-8"))
            self.assertEqual(data["next_ids"][SCHEDULES], 3)
            self.assertIn("Lịch học", p.read_text(encoding="utf-8"))

    def test_ids_are_not_reused_after_delete(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = JsonRecordStore(Path(d) / "store.json")
            store.add_item(SCHEDULES, {"name": "a"})
            store.add_item(SCHEDULES, {"name": "b"})
            self.assertTrue(store.delete_item(SCHEDULES, 2))
            self.assertFalse(store.delete_item(SCHEDULES, 2))
            self.assertEqual(store.add_item(SCHEDULES, {"name": "c"}), 3)

    def test_update(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = JsonRecordStore(Path(d) / "store.json")
            record_id = store.add_item(SCHEDULES, {"name": "a"})

            record = store.get_item(SCHEDULES, record_id)
            record["name"] = "changed"
            # a returned copy does not change the store by itself
            self.assertEqual(store.get_item(SCHEDULES, record_id)["name"], "a")

            self.assertTrue(store.update_item(SCHEDULES, record))
            self.assertEqual(store.get_item(SCHEDULES, record_id)["name"], "changed")
            self.assertFalse(store.update_item(SCHEDULES, {"id": 42, "name": "ghost"}))

    def test_collections_are_independent(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = JsonRecordStore(Path(d) / "store.json")
            store.add_item(SCHEDULES, {"name": "a"})
            self.assertEqual(store.add_item("other", {"name": "b"}), 1)
            self.assertEqual(len(store.get_all_items(SCHEDULES)), 1)


if __name__ == "__main__":
    unittest.main()
