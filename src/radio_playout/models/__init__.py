"""Database models for the radio playout controller."""

from .base import Base, get_session, init_db
from .track import Track, ROLE_SONG, ROLE_AD, ROLES
from .ad_schedule import AdScheduleEntry, parse_weekdays, format_weekdays
from .radio_state import RadioStateRecord, SINGLETON_ID

__all__ = [
    "Base", "get_session", "init_db",
    "Track", "ROLE_SONG", "ROLE_AD", "ROLES",
    "AdScheduleEntry", "parse_weekdays", "format_weekdays",
    "RadioStateRecord", "SINGLETON_ID",
]
