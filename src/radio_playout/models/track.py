"""Track model shared by songs and ads."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base

ROLE_SONG = "song"
ROLE_AD = "ad"
ROLES = (ROLE_SONG, ROLE_AD)

class Track(Base):
    """A playable item: a playlist song or an advertisement."""

    __tablename__ = "tracks"

    id = Column(Integer, primary_key=True)
    role = Column(String(10), nullable=False, default=ROLE_SONG, index=True)
    title = Column(String(300), nullable=False)
    artist = Column(String(200))
    genre = Column(String(100))
    file_url = Column(String(1000), nullable=False)
    duration = Column(Integer, nullable=False)  # whole seconds
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    schedule_entries = relationship(
        "AdScheduleEntry", back_populates="ad", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Track(role='{self.role}', title='{self.title}', duration={self.duration})>"

    def to_dict(self):
        return {
            'id': self.id,
            'role': self.role,
            'title': self.title,
            'artist': self.artist,
            'genre': self.genre,
            'file_url': self.file_url,
            'duration': self.duration,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
