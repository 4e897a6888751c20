"""Tests for the JSON read-state store."""

from __future__ import annotations

from datetime import datetime, timezone

from frontpage.models import ReadState
from frontpage.state import ReadStateStore


def test_missing_file_gives_empty_state(tmp_path):
    store = ReadStateStore(tmp_path / "state.json")
    state = store.get("sub")
    assert state == ReadState(subscription_id="sub")
    assert store.all() == {}


def test_save_and_reload(tmp_path):
    path = tmp_path / "nested" / "state.json"
    store = ReadStateStore(path)
    when = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    store.put(ReadState(subscription_id="sub", last_read_at=when, read_guids=frozenset({"b", "a"})))
    store.save()

    reloaded = ReadStateStore(path).get("sub")
    assert reloaded.last_read_at == when
    assert reloaded.read_guids == frozenset({"a", "b"})


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")
    assert ReadStateStore(path).all() == {}


def test_non_object_file_is_ignored(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[1, 2]")
    assert ReadStateStore(path).all() == {}
