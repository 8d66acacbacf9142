"""Tests for key-value stores."""

import json

import pytest

from ux_tracker.storage.base import KeyValueStore
from ux_tracker.storage.file import JsonFileStore
from ux_tracker.storage.memory import InMemoryStore


class TestInMemoryStore:
    def test_get_set_remove(self):
        store = InMemoryStore()
        assert store.get("k") is None

        store.set("k", "v")
        assert store.get("k") == "v"

        store.remove("k")
        store.remove("k")
        assert store.get("k") is None

    def test_initial_is_copied(self):
        initial = {"k": "v"}
        store = InMemoryStore(initial=initial)
        store.set("k", "changed")
        assert initial["k"] == "v"


class TestJsonFileStore:
    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "state" / "store.json"
        JsonFileStore(path=str(path)).set("analytics_consent", "accepted")

        assert JsonFileStore(path=str(path)).get("analytics_consent") == "accepted"
        assert json.loads(path.read_text()) == {"analytics_consent": "accepted"}

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonFileStore(path=str(tmp_path / "nope.json"))
        assert store.get("anything") is None

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        store = JsonFileStore(path=str(path))
        assert store.get("analytics_consent") is None

        # Writing recovers the file
        store.set("analytics_consent", "declined")
        assert json.loads(path.read_text()) == {"analytics_consent": "declined"}

    def test_non_object_file_is_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2, 3]")
        assert JsonFileStore(path=str(path)).get("0") is None

    def test_remove_and_clear(self, tmp_path):
        path = tmp_path / "store.json"
        store = JsonFileStore(path=str(path))
        store.set("a", "1")
        store.set("b", "2")

        store.remove("a")
        assert JsonFileStore(path=str(path)).get("a") is None

        store.clear()
        assert json.loads(path.read_text()) == {}

    def test_failed_write_leaves_no_temp_file(self, tmp_path):
        path = tmp_path / "store.json"
        path.mkdir()
        store = JsonFileStore(path=str(path))

        store.set("analytics_consent", "accepted")

        assert not (tmp_path / "store.json.tmp").exists()
        assert store.get("analytics_consent") == "accepted"


class TestKeyValueStore:
    def test_backend_must_implement_clear(self):
        class NoClear(KeyValueStore):
            def get(self, key):
                return None

            def set(self, key, value):
                pass

            def remove(self, key):
                pass

        with pytest.raises(TypeError):
            NoClear()
