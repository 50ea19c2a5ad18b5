"""Likes / dislikes kept in a local JSON file."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from discogs_radio.domain.ports import IPreferenceStore

logger = logging.getLogger(__name__)


class JsonPreferenceStore(IPreferenceStore):
    """``{"liked": [...], "disliked": [...]}`` keyed by track id.

    Hey future me - a dislike wins over a like. Disliking a liked track drops the like so the
    track can't be in both sets.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._liked: set[str] = set()
        self._disliked: set[str] = set()
        self._lock = asyncio.Lock()
        self._loaded = False

    def _load(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self._path.exists():
            return
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            self._liked = {str(item) for item in payload.get("liked", [])}
            self._disliked = {str(item) for item in payload.get("disliked", [])}
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self._path, e)

    def _persist(self) -> None:
        payload = {"liked": sorted(self._liked), "disliked": sorted(self._disliked)}
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(suffix=".tmp", dir=self._path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.warning("Could not write preferences to %s: %s", self._path, e)

    async def get_disliked_ids(self) -> set[str]:
        async with self._lock:
            self._load()
            return set(self._disliked)

    async def get_liked_ids(self) -> set[str]:
        async with self._lock:
            self._load()
            return set(self._liked)

    async def add_dislike(self, track_id: str) -> None:
        async with self._lock:
            self._load()
            self._disliked.add(track_id)
            self._liked.discard(track_id)
            self._persist()

    async def set_liked(self, track_id: str, liked: bool) -> None:
        async with self._lock:
            self._load()
            if liked:
                self._liked.add(track_id)
            else:
                self._liked.discard(track_id)
            self._persist()
