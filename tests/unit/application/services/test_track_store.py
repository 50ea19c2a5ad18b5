"""Tests for TrackStore, the single write path for tracks."""

import pytest

from discogs_radio.application.services.track_store import StoreChange, TrackStore
from discogs_radio.domain.entities import TrackSource, WorkingStatus
from discogs_radio.domain.exceptions import ValidationError


class TestMerge:
    """merge(): replace by id, append new ids in input order."""

    def test_appends_in_input_order(self, make_track) -> None:
        store = TrackStore()
        appended = store.merge([make_track("b"), make_track("a")])
        assert appended == 2
        assert [t.id for t in store] == ["b", "a"]

    def test_replaces_existing_in_place(self, make_track) -> None:
        store = TrackStore([make_track("a"), make_track("b")])
        appended = store.merge([make_track("a", title="New"), make_track("c")])
        assert appended == 1
        assert [t.id for t in store] == ["a", "b", "c"]
        assert store.get("a").title == "New"

    def test_empty_merge_does_not_notify(self, make_track) -> None:
        store = TrackStore()
        calls = []
        store.subscribe(lambda change, ids: calls.append(change))
        assert store.merge([]) == 0
        assert calls == []


class TestUpdateAndPatch:
    """update() never inserts; patch() reads the latest entry."""

    def test_update_missing_is_noop(self, make_track) -> None:
        store = TrackStore()
        assert store.update(make_track("x")) is False
        assert len(store) == 0

    def test_update_rejects_source_change(self, make_track) -> None:
        store = TrackStore([make_track("x")])
        with pytest.raises(ValidationError):
            store.update(make_track("x", source=TrackSource.WANTLIST))

    def test_patch_ignores_none_values(self, make_track) -> None:
        store = TrackStore([make_track("x", youtube_id="keep")])
        updated = store.patch("x", youtube_id=None, working_status=WorkingStatus.WORKING)
        assert updated.youtube_id == "keep"
        assert updated.working_status == WorkingStatus.WORKING

    def test_patch_uses_latest_entry(self, make_track) -> None:
        store = TrackStore([make_track("x")])
        store.patch("x", youtube_id="v1")
        store.patch("x", cover_url="https://img/1.jpg")
        latest = store.get("x")
        assert latest.youtube_id == "v1"
        assert latest.cover_url == "https://img/1.jpg"

    def test_patch_rejects_immutable_and_unknown_fields(self, make_track) -> None:
        store = TrackStore([make_track("x")])
        with pytest.raises(ValidationError):
            store.patch("x", source=TrackSource.WANTLIST)
        with pytest.raises(ValidationError):
            store.patch("x", not_a_field=1)

    def test_patch_unknown_id_returns_none(self) -> None:
        assert TrackStore().patch("missing", youtube_id="v") is None


class TestRemoveAndClear:
    def test_remove(self, make_track) -> None:
        store = TrackStore([make_track("a")])
        assert store.remove("a") is True
        assert store.remove("a") is False
        assert "a" not in store

    def test_clear_by_source_and_csv_only(self, make_track) -> None:
        store = TrackStore(
            [
                make_track("csv-collection-1"),
                make_track("csv-wantlist-1", source=TrackSource.WANTLIST),
                make_track("collection-9-A1"),
            ]
        )
        removed = store.clear(source=TrackSource.COLLECTION, csv_only=True)
        assert removed == 1
        assert [t.id for t in store] == ["csv-wantlist-1", "collection-9-A1"]


class TestListeners:
    """Listeners run synchronously after every mutation."""

    def test_update_visible_to_listener(self, make_track) -> None:
        store = TrackStore([make_track("a")])
        seen = []

        def listener(change: StoreChange, ids: list[str]) -> None:
            seen.append((change, ids, store.get("a").youtube_id))

        store.subscribe(listener)
        store.patch("a", youtube_id="v1")
        assert seen == [(StoreChange.UPDATED, ["a"], "v1")]

    def test_broken_listener_does_not_block_others(self, make_track) -> None:
        store = TrackStore()
        calls = []

        def broken(change: StoreChange, ids: list[str]) -> None:
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(lambda change, ids: calls.append(ids))
        store.merge([make_track("a")])
        assert calls == [["a"]]

    def test_unsubscribe(self, make_track) -> None:
        store = TrackStore()
        calls = []
        unsubscribe = store.subscribe(lambda change, ids: calls.append(ids))
        unsubscribe()
        store.merge([make_track("a")])
        assert calls == []
        assert store.version == 1
