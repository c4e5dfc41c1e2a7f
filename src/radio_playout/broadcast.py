"""Fan-out of playout snapshots to listeners and the database."""

import itertools
import logging
import queue
import threading
from datetime import datetime
from typing import Optional, Dict, Any

from .models import get_session, RadioStateRecord, SINGLETON_ID
from .state import PlayoutState

logger = logging.getLogger(__name__)

STATE_EVENT = "radio-state"

class BroadcastSink:
    """Publishes snapshots over Socket.IO and persists them.

    Delivery is best effort: a failed emit or write is logged and dropped.
    Durable writes go through a background thread once `start()` has been
    called, and are written inline before that.
    """

    def __init__(self, socketio=None, session_factory=get_session):
        self.socketio = socketio
        self._session_factory = session_factory
        self._sequence = itertools.count(1)
        self._listeners = 0
        self._listeners_lock = threading.Lock()
        self._persist_queue: "queue.Queue[Optional[PlayoutState]]" = queue.Queue()
        self._writer: Optional[threading.Thread] = None

    # Listener accounting

    @property
    def listener_count(self) -> int:
        return self._listeners

    def listener_connected(self) -> int:
        with self._listeners_lock:
            self._listeners += 1
            return self._listeners

    def listener_disconnected(self) -> int:
        with self._listeners_lock:
            self._listeners = max(0, self._listeners - 1)
            return self._listeners

    # Fan-out

    def payload(self, snapshot: PlayoutState) -> Dict[str, Any]:
        data = snapshot.to_dict()
        data['timestamp'] = datetime.now().isoformat()
        data['sequence'] = next(self._sequence)
        data['listeners'] = self._listeners
        return data

    def publish(self, snapshot: PlayoutState):
        """Send the snapshot to every connected listener."""
        if self.socketio is None:
            return
        try:
            self.socketio.emit(STATE_EVENT, self.payload(snapshot))
        except Exception as e:
            logger.error(f"Error broadcasting state: {e}")

    # Durable snapshot

    def persist(self, snapshot: PlayoutState):
        if self._writer is not None and self._writer.is_alive():
            self._persist_queue.put(snapshot)
        else:
            self.write_snapshot(snapshot)

    def write_snapshot(self, snapshot: PlayoutState) -> bool:
        """Upsert the singleton state row. Returns False on failure."""
        try:
            with self._session_factory() as session:
                session.merge(RadioStateRecord(
                    id=SINGLETON_ID,
                    current_song_id=snapshot.current_track.id if snapshot.current_track else None,
                    current_ad_id=snapshot.current_ad.id if snapshot.current_ad else None,
                    current_track_index=snapshot.current_track_index,
                    is_playing_ad=snapshot.is_playing_ad,
                    is_playing=snapshot.is_playing,
                    started_at=snapshot.started_at,
                ))
            return True
        except Exception as e:
            logger.error(f"Error persisting radio state: {e}")
            return False

    def start(self):
        """Start the background writer thread."""
        if self._writer is None or not self._writer.is_alive():
            self._writer = threading.Thread(target=self._writer_loop, daemon=True)
            self._writer.start()
            logger.info("State writer started")

    def stop(self, timeout: float = 5.0):
        """Flush pending writes and stop the writer thread."""
        writer, self._writer = self._writer, None
        if writer is not None and writer.is_alive():
            self._persist_queue.put(None)
            writer.join(timeout)
            logger.info("State writer stopped")
        self.flush()

    def flush(self):
        """Write anything still queued, inline."""
        while True:
            try:
                snapshot = self._persist_queue.get_nowait()
            except queue.Empty:
                break
            if snapshot is not None:
                self.write_snapshot(snapshot)

    def _writer_loop(self):
        while True:
            snapshot = self._persist_queue.get()
            if snapshot is None:
                break
            self.write_snapshot(snapshot)
