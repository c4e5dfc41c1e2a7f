"""Durable playout snapshot model."""

from sqlalchemy import Column, Integer, Boolean, DateTime
from sqlalchemy.sql import func
from .base import Base

SINGLETON_ID = 1

class RadioStateRecord(Base):
    """Last known playout state, one row keyed by SINGLETON_ID."""

    __tablename__ = "radio_state"

    id = Column(Integer, primary_key=True)
    current_song_id = Column(Integer)
    current_ad_id = Column(Integer)
    current_track_index = Column(Integer, default=0)
    is_playing_ad = Column(Boolean, default=False)
    is_playing = Column(Boolean, default=True)
    started_at = Column(DateTime)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<RadioStateRecord(song={self.current_song_id}, ad={self.current_ad_id})>"
