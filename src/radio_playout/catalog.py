"""In-memory mirror of the song catalog and ad schedule."""

import logging
from typing import List, Optional

from sqlalchemy.orm import joinedload

from .models import get_session, Track, AdScheduleEntry, ROLE_SONG, ROLE_AD
from .state import Item, ScheduledAd

logger = logging.getLogger(__name__)

class CatalogCache:
    """Loads active songs and ad schedule entries from the database.

    The last successful load is kept in `playlist` and `ad_schedule` so a
    failing refresh never wipes what the engine is already playing.
    """

    def __init__(self, session_factory=get_session):
        self._session_factory = session_factory
        self.playlist: List[Item] = []
        self.ad_schedule: List[ScheduledAd] = []

    def load_playlist(self) -> Optional[List[Item]]:
        """Fetch active songs oldest first. Returns None if the fetch failed."""
        try:
            with self._session_factory() as session:
                tracks = (
                    session.query(Track)
                    .filter_by(role=ROLE_SONG, is_active=True)
                    .order_by(Track.created_at, Track.id)
                    .all()
                )
                songs = []
                for track in tracks:
                    try:
                        songs.append(Item.from_track(track))
                    except (TypeError, ValueError) as e:
                        logger.warning(f"Skipping song {track.id}: {e}")
        except Exception as e:
            logger.error(f"Error loading playlist: {e}")
            return None

        self.playlist = songs
        logger.info(f"🎵 Loaded {len(songs)} songs")
        return list(songs)

    def load_ad_schedule(self) -> List[ScheduledAd]:
        """Fetch active schedule entries with their ads joined in."""
        try:
            with self._session_factory() as session:
                rows = (
                    session.query(AdScheduleEntry)
                    .options(joinedload(AdScheduleEntry.ad))
                    .filter(AdScheduleEntry.is_active.is_(True))
                    .order_by(AdScheduleEntry.scheduled_time, AdScheduleEntry.id)
                    .all()
                )
                entries = []
                for row in rows:
                    entry = self._to_scheduled_ad(row)
                    if entry:
                        entries.append(entry)
        except Exception as e:
            logger.error(f"Error loading ad schedule: {e}")
            return list(self.ad_schedule)

        self.ad_schedule = entries
        logger.info(f"📢 Loaded {len(entries)} ad schedule entries")
        return list(entries)

    def get_ad(self, ad_id) -> Optional[Item]:
        """Look up a single active ad by id."""
        with self._session_factory() as session:
            track = session.get(Track, ad_id)
            if not track or track.role != ROLE_AD or not track.is_active:
                return None
            try:
                return Item.from_track(track)
            except (TypeError, ValueError) as e:
                logger.warning(f"Ad {ad_id} is not playable: {e}")
                return None

    @staticmethod
    def _to_scheduled_ad(row) -> Optional[ScheduledAd]:
        ad = row.ad
        if ad is None or ad.role != ROLE_AD or not ad.is_active:
            logger.warning(f"Schedule entry {row.id} has no active ad, skipping")
            return None
        try:
            return ScheduledAd(
                id=row.id,
                ad=Item.from_track(ad),
                hour=row.scheduled_time.hour,
                minute=row.scheduled_time.minute,
                weekdays=frozenset(row.weekdays),
            )
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Invalid schedule entry {row.id}: {e}")
            return None
