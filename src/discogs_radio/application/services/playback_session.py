"""Playback Session / Playlist Controller.

Hey future me - this owns "what is playing" and NOTHING about track data. Tracks live in the
TrackStore; the playlist here is a derived, filtered, ordered view that gets rebuilt on every
store change. The one piece of state that has to survive rebuilds is the CURRENT TRACK ID, the
numeric index is recomputed from it every time (an insert or removal shifts every index after
it).

Track changes kick off a resolution task guarded by a CancellationToken. If the listener skips
again before it finishes, the old result is thrown away before it touches any state. A timeout
guard abandons resolutions that hang, marks the track non_working and moves on.

The actual audio is played by whatever binds to this session (web UI, embedded player). It
reports back through report_position/report_duration/handle_ended/handle_player_error.
"""

import asyncio
import logging
import random
from collections.abc import Callable, Coroutine, Iterable
from typing import Any

from discogs_radio.application.services.media_resolution import (
    MediaResolutionService,
    media_fields,
)
from discogs_radio.application.services.playlist import (
    filter_tracks,
    locate,
    reconcile,
    sequential_order,
    shuffled,
    upcoming,
)
from discogs_radio.application.services.track_store import StoreChange, TrackStore
from discogs_radio.domain.entities import (
    DEFAULT_DURATION,
    PlaybackProvider,
    PlaybackState,
    Track,
    TrackSource,
    WorkingStatus,
)
from discogs_radio.domain.exceptions import EntityNotFoundException, ValidationError
from discogs_radio.domain.ports import IPreferenceStore

logger = logging.getLogger(__name__)

# YouTube IFrame player error codes
PERMANENT_ERROR_CODES = frozenset({2, 5, 100})
EMBED_BLOCKED_ERROR_CODES = frozenset({101, 150})

DEFAULT_SOURCES = frozenset({TrackSource.COLLECTION, TrackSource.WANTLIST})


class CancellationToken:
    """Flag checked by a resolution attempt before it commits anything."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class HoldToScrub:
    """Press-and-hold seeking.

    A press does one coarse step right away. Holding past ``hold_delay`` switches to fine steps
    every ``repeat_interval`` until release.
    """

    def __init__(
        self,
        step: Callable[[float], None],
        coarse_seconds: float = 5.0,
        fine_seconds: float = 1.0,
        hold_delay: float = 0.3,
        repeat_interval: float = 0.1,
    ) -> None:
        self._step = step
        self._coarse_seconds = coarse_seconds
        self._fine_seconds = fine_seconds
        self._hold_delay = hold_delay
        self._repeat_interval = repeat_interval
        self._task: asyncio.Task[None] | None = None

    @property
    def holding(self) -> bool:
        return self._task is not None and not self._task.done()

    def press(self, direction: int) -> None:
        """Start scrubbing; direction is +1 (forward) or -1 (backward)."""
        self.release()
        sign = 1 if direction >= 0 else -1
        self._step(sign * self._coarse_seconds)
        self._task = asyncio.get_running_loop().create_task(self._repeat(sign))

    async def _repeat(self, sign: int) -> None:
        await asyncio.sleep(self._hold_delay)
        while True:
            self._step(sign * self._fine_seconds)
            await asyncio.sleep(self._repeat_interval)

    def release(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None


class PlaybackSession:
    """Playlist controller bound to a TrackStore."""

    def __init__(
        self,
        store: TrackStore,
        resolver: MediaResolutionService,
        preferences: IPreferenceStore | None = None,
        resolve_timeout: float = 3.0,
        prefetch_count: int = 4,
        skip_seconds: float = 5.0,
        bandcamp_min_seconds: float = 5.0,
        shuffle: bool = True,
        scrub_hold_delay: float = 0.3,
        scrub_repeat_interval: float = 0.1,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._preferences = preferences
        self._resolve_timeout = resolve_timeout
        self._prefetch_count = prefetch_count
        self._skip_seconds = skip_seconds
        self._bandcamp_min_seconds = bandcamp_min_seconds
        self._rng = rng or random.Random()

        self._playlist: list[Track] = []
        self._current_id: str | None = None
        self._current_index = -1
        self._state = PlaybackState.IDLE
        self._position = 0.0
        self._shuffle = shuffle
        self._autoplay = False
        self._active_sources: set[TrackSource] = set(DEFAULT_SOURCES)
        self._disliked_ids: set[str] = set()

        self._fallback_attempted: set[str] = set()
        self._prefetched: set[str] = set()
        self._prefetch_base_size = len(store)
        self._consecutive_failures = 0

        self._token: CancellationToken | None = None
        self._resolution_task: asyncio.Task[None] | None = None
        self._bandcamp_task: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

        self._unsubscribe = store.subscribe(self._on_store_change)
        self.scrubber = HoldToScrub(
            self.skip,
            coarse_seconds=skip_seconds,
            hold_delay=scrub_hold_delay,
            repeat_interval=scrub_repeat_interval,
        )

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def playlist(self) -> list[Track]:
        return list(self._playlist)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_track(self) -> Track | None:
        if 0 <= self._current_index < len(self._playlist):
            return self._playlist[self._current_index]
        return None

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def position(self) -> float:
        return self._position

    @property
    def shuffle(self) -> bool:
        return self._shuffle

    @property
    def active_sources(self) -> set[TrackSource]:
        return set(self._active_sources)

    @property
    def disliked_ids(self) -> set[str]:
        return set(self._disliked_ids)

    @property
    def fallback_attempted(self) -> set[str]:
        return set(self._fallback_attempted)

    @property
    def prefetched_ids(self) -> set[str]:
        return set(self._prefetched)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Load the disliked set and build the initial playlist."""
        if self._preferences is not None:
            self._disliked_ids = set(await self._preferences.get_disliked_ids())
        self.rebuild()

    async def close(self) -> None:
        self._unsubscribe()
        self.scrubber.release()
        self._cancel_resolution()
        self._cancel_bandcamp_timer()
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # =========================================================================
    # PLAYLIST
    # =========================================================================

    def _on_store_change(self, change: StoreChange, ids: list[str]) -> None:
        self.rebuild()

    def rebuild(self) -> None:
        """Re-derive the playlist from the store, keeping the current track id."""
        if len(self._store) != self._prefetch_base_size:
            self._prefetch_base_size = len(self._store)
            self._prefetched.clear()

        filtered = filter_tracks(self._store.snapshot(), self._active_sources, self._disliked_ids)
        self._playlist = reconcile(self._playlist, filtered, self._shuffle, self._rng)
        self._relocate()

    def _relocate(self, fallback_id: str | None = None) -> None:
        previous_id = self._current_id
        wanted = previous_id
        if fallback_id is not None and not any(t.id == previous_id for t in self._playlist):
            wanted = fallback_id
        self._current_index = locate(self._playlist, wanted)
        current = self.current_track
        self._current_id = current.id if current else None
        if self._current_id != previous_id:
            self._on_track_changed()

    def set_shuffle(self, enabled: bool) -> None:
        """Shuffle on randomizes everything, off restores album order from the full set."""
        if enabled == self._shuffle:
            return
        self._shuffle = enabled
        filtered = filter_tracks(self._store.snapshot(), self._active_sources, self._disliked_ids)
        self._playlist = shuffled(filtered, self._rng) if enabled else sequential_order(filtered)
        self._relocate()

    def toggle_shuffle(self) -> bool:
        self.set_shuffle(not self._shuffle)
        return self._shuffle

    def set_active_sources(self, sources: Iterable[TrackSource | str]) -> None:
        """Select which sources feed the playlist.

        Raises:
            ValidationError: no source selected
        """
        wanted = {TrackSource(source) for source in sources}
        if not wanted:
            raise ValidationError("At least one source must stay active")
        self._active_sources = wanted
        self.rebuild()

    def toggle_source(self, source: TrackSource | str) -> set[TrackSource]:
        """Flip one source; deselecting the last active source is ignored."""
        source = TrackSource(source)
        if source in self._active_sources:
            if len(self._active_sources) == 1:
                return self.active_sources
            self.set_active_sources(self._active_sources - {source})
        else:
            self.set_active_sources(self._active_sources | {source})
        return self.active_sources

    def track_counts(self) -> dict[str, int]:
        counts = {source.value: 0 for source in TrackSource}
        for track in self._store:
            if track.id in self._disliked_ids:
                continue
            counts[track.source.value] += 1
        return counts

    # =========================================================================
    # NAVIGATION
    # =========================================================================

    def select(self, index: int, autoplay: bool = True) -> Track:
        """Jump to a playlist index.

        Raises:
            EntityNotFoundException: index outside the playlist
        """
        if not 0 <= index < len(self._playlist):
            raise EntityNotFoundException("PlaylistEntry", str(index))
        self._autoplay = autoplay
        target = self._playlist[index]
        self._current_index = index
        # Re-selecting the current track restarts it
        self._current_id = target.id
        self._on_track_changed()
        return target

    def select_track(self, track_id: str, autoplay: bool = True) -> Track:
        for idx, track in enumerate(self._playlist):
            if track.id == track_id:
                return self.select(idx, autoplay=autoplay)
        raise EntityNotFoundException("Track", track_id)

    def next(self) -> Track | None:
        if not self._playlist:
            return None
        return self.select((self._current_index + 1) % len(self._playlist))

    def previous(self) -> Track | None:
        if not self._playlist:
            return None
        return self.select((self._current_index - 1) % len(self._playlist))

    def pick_random_playable_index(self) -> int:
        """Random index, preferring tracks that already have media. -1 when empty."""
        if not self._playlist:
            return -1
        playable = [idx for idx, track in enumerate(self._playlist) if track.has_media]
        pool = playable or list(range(len(self._playlist)))
        return self._rng.choice(pool)

    def start_listening(self) -> Track | None:
        """Jump to a random (preferably playable) track and play it."""
        idx = self.pick_random_playable_index()
        if idx < 0:
            return None
        return self.select(idx, autoplay=True)

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    def play(self) -> PlaybackState:
        if self._state in (PlaybackState.READY, PlaybackState.PAUSED, PlaybackState.ENDED):
            if self._state == PlaybackState.ENDED:
                self._position = 0.0
            self._set_state(PlaybackState.PLAYING)
        elif self._state in (PlaybackState.IDLE, PlaybackState.RESOLVING):
            self._autoplay = True
            if self._state == PlaybackState.IDLE and self.current_track is not None:
                self._on_track_changed()
        return self._state

    def pause(self) -> PlaybackState:
        self._autoplay = False
        if self._state == PlaybackState.PLAYING:
            self._set_state(PlaybackState.PAUSED)
        return self._state

    def toggle_play(self) -> PlaybackState:
        if self._state == PlaybackState.PLAYING:
            return self.pause()
        return self.play()

    def _set_state(self, state: PlaybackState) -> None:
        self._state = state
        if state == PlaybackState.PLAYING:
            self._schedule_bandcamp_advance()
        else:
            self._cancel_bandcamp_timer()

    def seek(self, seconds: float) -> float:
        """Move to an absolute position, clamped to [0, duration]."""
        track = self.current_track
        duration = float(track.duration) if track else 0.0
        self._position = min(max(seconds, 0.0), duration)
        return self._position

    def skip(self, delta: float) -> float:
        return self.seek(self._position + delta)

    def skip_forward(self, seconds: float | None = None) -> float:
        return self.skip(seconds if seconds is not None else self._skip_seconds)

    def skip_backward(self, seconds: float | None = None) -> float:
        return self.skip(-(seconds if seconds is not None else self._skip_seconds))

    def report_position(self, seconds: float) -> None:
        self._position = max(0.0, seconds)

    def report_duration(self, seconds: float) -> None:
        """Replace the placeholder duration with the one the player knows."""
        track = self.current_track
        duration = int(round(seconds))
        if track is None or duration <= 0 or duration == track.duration:
            return
        self._store.patch(track.id, duration=duration)
        if self._state == PlaybackState.PLAYING:
            self._schedule_bandcamp_advance()

    def handle_ended(self) -> Track | None:
        self._set_state(PlaybackState.ENDED)
        return self.next()

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    async def like(self, track_id: str, liked: bool = True) -> None:
        if self._preferences is not None:
            await self._preferences.set_liked(track_id, liked)

    async def dislike(self, track_id: str) -> None:
        """Exclude a track; when it is the current one, land on the next track (wrapping)."""
        next_id: str | None = None
        if track_id == self._current_id and len(self._playlist) > 1:
            next_id = self._playlist[(self._current_index + 1) % len(self._playlist)].id
        self._disliked_ids.add(track_id)
        if self._preferences is not None:
            await self._preferences.add_dislike(track_id)

        filtered = filter_tracks(self._store.snapshot(), self._active_sources, self._disliked_ids)
        self._playlist = reconcile(self._playlist, filtered, self._shuffle, self._rng)
        if next_id is not None:
            self._autoplay = True
        self._relocate(fallback_id=next_id)

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _cancel_resolution(self) -> None:
        if self._token is not None:
            self._token.cancel()
        self._token = None
        if self._resolution_task is not None and not self._resolution_task.done():
            self._resolution_task.cancel()
        self._resolution_task = None

    def _on_track_changed(self) -> None:
        self._cancel_resolution()
        self._cancel_bandcamp_timer()
        self.scrubber.release()
        self._position = 0.0
        track = self.current_track
        if track is None:
            self._state = PlaybackState.IDLE
            return
        # A new episode for every track change
        self._fallback_attempted.discard(track.id)
        self._state = PlaybackState.RESOLVING
        token = CancellationToken()
        self._token = token
        self._resolution_task = self._spawn(self._resolve_current(track.id, token))
        self._schedule_prefetch()

    async def _resolve_current(self, track_id: str, token: CancellationToken) -> None:
        track = self._store.get(track_id)
        if track is None or token.cancelled:
            return

        # Older rows may carry a payload without the pointer
        if track.playback_provider is None and track.has_media:
            provider = (
                PlaybackProvider.YOUTUBE if track.youtube_id else PlaybackProvider.BANDCAMP
            )
            track = self._store.patch(track_id, playback_provider=provider) or track

        try:
            media = await asyncio.wait_for(
                self._resolver.resolve_media_for_track(track), timeout=self._resolve_timeout
            )
        except TimeoutError:
            if token.cancelled:
                return
            logger.warning("Resolution timed out for '%s', skipping", track.title)
            self._mark_failed_and_skip(track_id)
            return

        if token.cancelled:
            return

        latest = self._store.get(track_id) or track
        self._store.patch(track_id, **media_fields(latest, media))
        if not media.is_playable:
            logger.info("No playable media for '%s', skipping", track.title)
            self._mark_failed_and_skip(track_id)
            return

        self._consecutive_failures = 0
        self._mark_ready()

    def _mark_ready(self) -> None:
        if self._autoplay:
            self._set_state(PlaybackState.PLAYING)
        else:
            self._set_state(PlaybackState.READY)

    def _mark_failed_and_skip(self, track_id: str) -> None:
        self._store.patch(track_id, working_status=WorkingStatus.NON_WORKING)
        self._consecutive_failures += 1
        if self._consecutive_failures >= max(len(self._playlist), 1):
            # Whole playlist failed in a row, stop instead of spinning
            logger.warning("No track in the playlist could be resolved, stopping playback")
            self._consecutive_failures = 0
            self._set_state(PlaybackState.IDLE)
            return
        if self._current_id == track_id:
            self.next()

    async def handle_player_error(self, code: int) -> Track | None:
        """React to an embedded-player error for the current track.

        Returns:
            The track that is current afterwards
        """
        track = self.current_track
        if track is None:
            return None
        latest = self._store.get(track.id) or track
        logger.warning("Player error %s for '%s'", code, latest.title)

        if code in PERMANENT_ERROR_CODES:
            self._mark_failed_and_skip(latest.id)
            return self.current_track

        if code not in EMBED_BLOCKED_ERROR_CODES:
            return self.current_track

        if latest.id in self._fallback_attempted:
            logger.warning("Fallback already attempted for '%s', skipping", latest.title)
            self._mark_failed_and_skip(latest.id)
            return self.current_track

        self._fallback_attempted.add(latest.id)
        self._cancel_resolution()
        token = CancellationToken()
        self._token = token
        self._state = PlaybackState.RESOLVING
        try:
            alternate = await asyncio.wait_for(
                self._resolver.resolve_media_for_track(
                    latest, prefer_different_from=latest.youtube_id or None
                ),
                timeout=self._resolve_timeout,
            )
        except TimeoutError:
            if token.cancelled:
                return self.current_track
            logger.warning("Alternate lookup timed out for '%s', skipping", latest.title)
            self._mark_failed_and_skip(latest.id)
            return self.current_track
        if token.cancelled:
            return self.current_track

        if alternate.is_playable:
            current = self._store.get(latest.id) or latest
            self._store.patch(latest.id, **media_fields(current, alternate))
            logger.info("Switched '%s' to an alternate source", latest.title)
            self._autoplay = True
            self._mark_ready()
        else:
            self._mark_failed_and_skip(latest.id)
        return self.current_track

    # =========================================================================
    # PREFETCH
    # =========================================================================

    def _schedule_prefetch(self) -> None:
        if self._current_index < 0 or self._prefetch_count <= 0:
            return
        # Wraps past the end, the radio loops
        window = upcoming(self._playlist, self._current_index, self._prefetch_count)
        wanted = [
            track
            for track in window
            if not track.has_media
            and track.discogs_release_id
            and track.id not in self._prefetched
        ]
        if not wanted:
            return
        self._prefetched.update(track.id for track in wanted)
        logger.debug("Prefetching media for %d upcoming tracks", len(wanted))
        self._spawn(self._prefetch(wanted))

    async def _prefetch(self, tracks: list[Track]) -> None:
        await self._resolver.prefetch_for_tracks(tracks)
        results = await asyncio.gather(
            *(self._resolver.resolve_media_for_track(track, use_search=False) for track in tracks)
        )
        for track, media in zip(tracks, results, strict=True):
            latest = self._store.get(track.id)
            if latest is None or latest.has_media:
                continue
            if media.is_playable or media.cover_url:
                self._store.patch(track.id, **media_fields(latest, media))

    # =========================================================================
    # BANDCAMP
    # =========================================================================

    def _cancel_bandcamp_timer(self) -> None:
        if self._bandcamp_task is not None and not self._bandcamp_task.done():
            self._bandcamp_task.cancel()
        self._bandcamp_task = None

    def _schedule_bandcamp_advance(self) -> None:
        """Bandcamp widgets report nothing back, so advance after the track duration."""
        self._cancel_bandcamp_timer()
        track = self.current_track
        if track is None or track.playback_provider != PlaybackProvider.BANDCAMP:
            return
        delay = max(self._bandcamp_min_seconds, float(track.duration or DEFAULT_DURATION))
        self._bandcamp_task = self._spawn(self._advance_after(track.id, delay))

    async def _advance_after(self, track_id: str, delay: float) -> None:
        await asyncio.sleep(delay)
        if self._current_id == track_id and self._state == PlaybackState.PLAYING:
            self._bandcamp_task = None
            self.handle_ended()

    # =========================================================================
    # STATE
    # =========================================================================

    def get_state(self) -> dict[str, Any]:
        track = self.current_track
        return {
            "state": self._state.value,
            "current_index": self._current_index,
            "current_track": track.to_dict() if track else None,
            "position": self._position,
            "shuffle": self._shuffle,
            "active_sources": sorted(source.value for source in self._active_sources),
            "playlist_length": len(self._playlist),
            "quota_exceeded": self._resolver.search_rate_limited,
        }

