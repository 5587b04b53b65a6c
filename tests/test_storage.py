"""
Tests for storage.py - JSON file backed collections.

These tests verify:
- Documents survive a reload from disk
- Ids and timestamps are assigned on insert, kept when supplied
- A failed disk write leaves both memory and file untouched
"""

import json
import re
from unittest.mock import patch

import pytest

from bm.server.storage import JsonCollection, new_object_id


class TestJsonCollection:

    def test_object_id_shape(self):
        assert re.fullmatch(r"[0-9a-f]{24}", new_object_id())

    def test_persists_and_reloads(self, tmp_path):
        path = tmp_path / "markers.json"
        coll = JsonCollection(path)
        doc = coll.insert({"position": [37.5, 127.0], "location": "Gate"})

        again = JsonCollection(path)

        assert again.find() == [doc]
        assert json.loads(path.read_text(encoding="utf-8"))[0]["_id"] == doc["_id"]

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonCollection(tmp_path / "nope.json").find() == []

    def test_non_list_file_rejected(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text('{"not": "a list"}', encoding="utf-8")
        with pytest.raises(ValueError):
            JsonCollection(path)

    def test_corrupt_file_rejected_and_kept(self, tmp_path):
        """A truncated file is not read as empty; its bytes stay on disk."""
        path = tmp_path / "markers.json"
        path.write_text('[{"_id": "a"', encoding="utf-8")

        with pytest.raises(ValueError):
            JsonCollection(path)
        assert path.read_text(encoding="utf-8") == '[{"_id": "a"'

    def test_insert_keeps_supplied_timestamps(self):
        coll = JsonCollection()
        doc = coll.insert({"position": [0, 0], "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-01-02T00:00:00.000Z"})
        assert doc["createdAt"] == "2024-01-01T00:00:00.000Z"
        assert doc["updatedAt"] == "2024-01-02T00:00:00.000Z"

    def test_insert_fills_null_timestamps(self):
        doc = JsonCollection().insert({"position": [0, 0], "createdAt": None, "updatedAt": None})
        assert doc["createdAt"] and doc["updatedAt"]

    def test_returned_docs_are_copies(self):
        coll = JsonCollection()
        doc = coll.insert({"position": [0, 0], "comments": []})
        doc["comments"].append("sneaky")
        coll.find()[0]["comments"].append("sneaky")
        assert coll.find_by_id(doc["_id"])["comments"] == []

    def test_update_refreshes_updated_at_only(self):
        coll = JsonCollection()
        doc = coll.insert({"position": [0, 0], "createdAt": "2024-01-01T00:00:00.000Z", "updatedAt": "2024-01-01T00:00:00.000Z"})

        updated = coll.update_by_id(doc["_id"], {"location": "Gate", "_id": "hijack"})

        assert updated["_id"] == doc["_id"]
        assert updated["location"] == "Gate"
        assert updated["createdAt"] == "2024-01-01T00:00:00.000Z"
        assert updated["updatedAt"] != "2024-01-01T00:00:00.000Z"

    def test_update_missing_returns_none(self):
        assert JsonCollection().update_by_id("x", {"location": "Gate"}) is None

    def test_delete_by_id(self):
        coll = JsonCollection()
        doc = coll.insert({"position": [0, 0]})
        assert coll.delete_by_id(doc["_id"]) is True
        assert coll.delete_by_id(doc["_id"]) is False
        assert len(coll) == 0

    def test_delete_many_selected_ids(self):
        coll = JsonCollection()
        a, b, c = (coll.insert({"position": [0, i]}) for i in range(3))
        assert coll.delete_many([a["_id"], c["_id"]]) == 2
        assert coll.find() == [b]

    def test_delete_many_all(self):
        coll = JsonCollection()
        coll.insert_many([{"position": [0, i]} for i in range(3)])
        assert coll.delete_many() == 3
        assert coll.find() == []

    def test_failed_write_changes_nothing(self, tmp_path):
        path = tmp_path / "trash.json"
        coll = JsonCollection(path)
        coll.insert({"position": [0, 0]})
        before_disk = path.read_text(encoding="utf-8")

        with patch("bm.server.storage.save_json", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                coll.insert_many([{"position": [1, 1]}, {"position": [2, 2]}])

        assert len(coll) == 1
        assert path.read_text(encoding="utf-8") == before_disk
