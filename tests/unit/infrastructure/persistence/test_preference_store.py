"""Tests for the JSON preference store."""

import json
from pathlib import Path

from discogs_radio.infrastructure.persistence.preference_store import JsonPreferenceStore


async def test_likes_and_dislikes_persist(tmp_path: Path) -> None:
    path = tmp_path / "prefs" / "preferences.json"
    store = JsonPreferenceStore(path)
    await store.set_liked("a", True)
    await store.set_liked("b", True)
    await store.set_liked("b", False)
    await store.add_dislike("c")

    reloaded = JsonPreferenceStore(path)
    assert await reloaded.get_liked_ids() == {"a"}
    assert await reloaded.get_disliked_ids() == {"c"}
    assert json.loads(path.read_text()) == {"liked": ["a"], "disliked": ["c"]}


async def test_dislike_drops_like(tmp_path: Path) -> None:
    store = JsonPreferenceStore(tmp_path / "preferences.json")
    await store.set_liked("a", True)
    await store.add_dislike("a")
    assert await store.get_liked_ids() == set()
    assert await store.get_disliked_ids() == {"a"}


async def test_unreadable_file_is_ignored(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text("not json")
    store = JsonPreferenceStore(path)
    assert await store.get_disliked_ids() == set()
