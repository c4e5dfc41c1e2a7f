"""Playout scheduling engine."""

import logging
import threading
from datetime import datetime
from functools import partial
from typing import Callable, Iterable, List, Optional

from .broadcast import BroadcastSink
from .catalog import CatalogCache
from .state import Item, PlayoutState, ScheduledAd
from .timers import ThreadingTimers

logger = logging.getLogger(__name__)

class RadioEngine:
    """Decides what is on air and advances it on wall-clock timers.

    All transitions run under one lock and replace `state` with a new
    snapshot. Exactly one expiry timer is pending for the active item;
    arming a new one cancels the previous handle.
    """

    def __init__(
        self,
        catalog: Optional[CatalogCache] = None,
        sink: Optional[BroadcastSink] = None,
        timers=None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.catalog = catalog or CatalogCache()
        self.sink = sink or BroadcastSink()
        self.timers = timers or ThreadingTimers()
        self.clock = clock
        self.state = PlayoutState()
        self.ad_schedule: List[ScheduledAd] = []
        self.is_initialized = False

        self._lock = threading.RLock()
        # Held across fetch and apply so reloads land in request order.
        # Never taken while holding _lock.
        self._reload_lock = threading.Lock()
        self._pending_timer = None
        self._timer_token = 0

    def initialize(self):
        """Load the catalog and start playout."""
        self.reload_playlist()
        self.reload_ad_schedule()
        self.is_initialized = True
        logger.info("📻 Radio engine started")

    def snapshot(self) -> PlayoutState:
        return self.state

    # Catalog loads

    def reload_playlist(self) -> bool:
        """Refresh the playlist from the catalog. False if the fetch failed."""
        with self._reload_lock:
            songs = self.catalog.load_playlist()
            if songs is None:
                logger.warning("Keeping previous playlist after failed reload")
                return False
            self.set_playlist(songs)
            return True

    def reload_ad_schedule(self):
        with self._reload_lock:
            self.set_ad_schedule(self.catalog.load_ad_schedule())

    def set_ad_schedule(self, entries: Iterable[ScheduledAd]):
        entries = list(entries)
        with self._lock:
            self.ad_schedule = entries

    def set_playlist(self, songs: Iterable[Item]):
        """Swap in a freshly loaded playlist."""
        songs = tuple(songs)
        with self._lock:
            state = self.state

            if not songs:
                self._cancel_timer()
                if state.current_track is None and not state.playlist:
                    return
                logger.warning("⚠️ Playlist is empty, playout stopped until songs are added")
                self._transition(PlayoutState(is_playing=state.is_playing))
                return

            if state.current_track is None:
                self._transition(state.evolve(
                    playlist=songs,
                    current_track_index=0,
                    current_track=songs[0],
                    current_ad=None,
                    is_playing_ad=False,
                    started_at=self.clock(),
                ))
                self._arm_timer()
                return

            # The on-air item keeps playing; only the index is realigned.
            index = next(
                (i for i, song in enumerate(songs) if song.id == state.current_track.id),
                min(state.current_track_index, len(songs) - 1),
            )
            self._transition(state.evolve(playlist=songs, current_track_index=index))

    # Transitions

    def next_track(self) -> bool:
        """Skip the active item, exactly as if its timer had expired."""
        with self._lock:
            return self._advance()

    def play_ad(self, ad: Item) -> bool:
        """Interrupt with `ad` now, replacing any ad already on air."""
        with self._lock:
            if self.state.current_track is None:
                logger.warning(f"Cannot play ad '{ad.title}': nothing is on air")
                return False
            self._start_ad(ad)
            return True

    def check_scheduled_ads(self, now: Optional[datetime] = None) -> Optional[ScheduledAd]:
        """Start the first ad due this minute. Returns the entry that fired."""
        now = now or self.clock()
        with self._lock:
            state = self.state
            if state.is_playing_ad or not state.is_playing or state.current_track is None:
                return None
            for entry in self.ad_schedule:
                if entry.matches(now):
                    logger.info(f"⏰ Ad schedule {entry.id} fired at {entry.time_label}")
                    self._start_ad(entry.ad)
                    return entry
        return None

    def pause(self) -> bool:
        with self._lock:
            if not self.state.is_playing:
                return False
            self._cancel_timer()
            self._transition(self.state.evolve(is_playing=False))
            logger.info("⏸ Playout paused")
            return True

    def resume(self) -> bool:
        """Resume playout, restarting the active item from the top."""
        with self._lock:
            if self.state.is_playing:
                return False
            started_at = self.clock() if self.state.active_item else self.state.started_at
            self._transition(self.state.evolve(is_playing=True, started_at=started_at))
            self._arm_timer()
            logger.info("▶️ Playout resumed")
            return True

    def stop(self):
        """Cancel the pending timer, leaving state as is."""
        with self._lock:
            self._cancel_timer()

    def _advance(self) -> bool:
        state = self.state
        if not state.playlist or state.current_track is None:
            logger.warning("Nothing to advance: playlist is empty")
            self._cancel_timer()
            return False

        now = self.clock()
        if state.is_playing_ad:
            # The interrupted song restarts with its full duration.
            new_state = state.evolve(current_ad=None, is_playing_ad=False, started_at=now)
        else:
            index = (state.current_track_index + 1) % len(state.playlist)
            new_state = state.evolve(
                current_track_index=index,
                current_track=state.playlist[index],
                started_at=now,
            )
        self._transition(new_state)
        self._arm_timer()
        return True

    def _start_ad(self, ad: Item):
        logger.info(f"📢 Playing ad: {ad.title}")
        self._transition(self.state.evolve(
            current_ad=ad,
            is_playing_ad=True,
            started_at=self.clock(),
        ))
        self._arm_timer()

    def _transition(self, new_state: PlayoutState):
        self.state = new_state
        self.sink.publish(new_state)
        self.sink.persist(new_state)

    # Timers

    def _arm_timer(self):
        self._cancel_timer()
        state = self.state
        item = state.active_item
        if item is None or not state.is_playing:
            return
        self._timer_token += 1
        self._pending_timer = self.timers.call_later(
            item.duration, partial(self._on_expiry, self._timer_token)
        )
        logger.info(f"🎵 Now playing: {item.title} ({item.duration}s)")

    def _cancel_timer(self):
        if self._pending_timer is not None:
            self._pending_timer.cancel()
            self._pending_timer = None
        self._timer_token += 1

    def _on_expiry(self, token: int):
        with self._lock:
            if token != self._timer_token:
                logger.debug(f"Ignoring stale timer {token}")
                return
            self._pending_timer = None
            self._advance()
