"""Tests for the JSON file cache, the record store and its change events."""
import json

import pytest

from interview_insights.cache import FileCache
from interview_insights.models import Interview
from interview_insights.store import ChangeEvent, RecordStore


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "interviews", Interview)


@pytest.fixture
def events(store):
    received: list[ChangeEvent] = []
    store.subscribe(received.append)
    return received


class TestFileCache:

    @pytest.fixture
    def json_cache(self, tmp_path):
        return FileCache(tmp_path / "cache", loader=json.loads, serializer=json.dumps)

    def test_put_get_and_membership(self, json_cache):
        json_cache.put("a", {"n": 1})
        assert "a" in json_cache
        assert "b" not in json_cache
        assert json_cache.get("a") == {"n": 1}
        assert json_cache.get("b") is None

    def test_put_overwrites(self, json_cache):
        json_cache.put("a", [1])
        json_cache.put("a", [2])
        assert json_cache.get("a") == [2]

    def test_keys_and_items_are_sorted(self, json_cache):
        json_cache.put("b", 2)
        json_cache.put("a", 1)
        assert list(json_cache.keys()) == ["a", "b"]
        assert list(json_cache.items()) == [("a", 1), ("b", 2)]

    def test_discard(self, json_cache):
        json_cache.put("a", 1)
        assert json_cache.discard("a") is True
        assert json_cache.discard("a") is False
        assert list(json_cache.keys()) == []

    def test_failed_write_leaves_no_files(self, tmp_path):
        def explode(value):
            raise TypeError("not serializable")

        broken = FileCache(tmp_path / "cache", loader=json.loads, serializer=explode)
        with pytest.raises(TypeError):
            broken.put("a", object())
        assert list((tmp_path / "cache").iterdir()) == []
        assert "a" not in broken

    def test_failed_write_keeps_the_previous_value(self, json_cache, monkeypatch):
        json_cache.put("a", {"n": 1})
        monkeypatch.setattr(json_cache, "serializer", lambda value: 1 / 0)
        with pytest.raises(ZeroDivisionError):
            json_cache.put("a", {"n": 2})
        assert json_cache.get("a") == {"n": 1}
        assert [p.name for p in json_cache.cache_dir.iterdir()] == ["a.json"]


class TestRecordStore:

    def test_insert_and_get(self, store):
        interview = store.insert(Interview(id="i1", title="Kickoff", transcript_text="Hello"))
        loaded = store.get("i1")
        assert loaded == interview
        assert store.get("missing") is None

    def test_insert_rejects_duplicate_ids(self, store):
        store.insert(Interview(id="i1"))
        with pytest.raises(ValueError):
            store.insert(Interview(id="i1"))

    def test_records_round_trip_analysis_columns(self, store):
        store.insert(Interview(id="i1", workflows=[{"name": "Billing", "steps": ["Send"]}]))
        [record] = store.records()
        assert record.workflows == [{"name": "Billing", "steps": ["Send"]}]

    def test_update_merges_changes(self, store):
        original = store.insert(Interview(id="i1", title="Old", updated_at="2025-01-01T00:00:00+00:00"))
        updated = store.update("i1", title="New")
        assert updated.title == "New"
        assert updated.transcript_text == original.transcript_text
        assert updated.updated_at != original.updated_at
        assert store.get("i1").title == "New"

    def test_update_and_delete_missing_raise(self, store):
        with pytest.raises(KeyError):
            store.update("missing", title="x")
        with pytest.raises(KeyError):
            store.delete("missing")

    def test_delete(self, store):
        store.insert(Interview(id="i1"))
        store.delete("i1")
        assert store.get("i1") is None
        assert store.records() == []


class TestChangeEvents:

    def test_events_for_each_write(self, store, events):
        store.insert(Interview(id="i1", title="A"))
        store.update("i1", title="B")
        store.delete("i1")

        assert [e.event_type for e in events] == ["INSERT", "UPDATE", "DELETE"]
        insert, update, delete = events
        assert insert.new.title == "A" and insert.old is None
        assert (update.old.title, update.new.title) == ("A", "B")
        assert delete.old.title == "B" and delete.new is None

    def test_unsubscribe(self, store):
        received = []
        unsubscribe = store.subscribe(received.append)
        store.insert(Interview(id="i1"))
        unsubscribe()
        store.insert(Interview(id="i2"))
        assert len(received) == 1

    def test_listener_can_recompute_from_scratch(self, store):
        counts = []
        store.subscribe(lambda event: counts.append(len(store.records())))
        store.insert(Interview(id="i1"))
        store.insert(Interview(id="i2"))
        store.delete("i1")
        assert counts == [1, 2, 1]
