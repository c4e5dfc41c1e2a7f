"""Playout state snapshots and the items they refer to."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple, FrozenSet, Dict, Any

from .models import ROLE_SONG, ROLE_AD

STATUS_EMPTY = "empty"
STATUS_PLAYING_SONG = "playing_song"
STATUS_PLAYING_AD = "playing_ad"

@dataclass(frozen=True)
class Item:
    """A playable song or ad, detached from the database session."""

    id: int
    title: str
    file_url: str
    duration: int
    role: str = ROLE_SONG
    artist: Optional[str] = None
    genre: Optional[str] = None

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError(f"Duration must be positive, got {self.duration} for '{self.title}'")

    @property
    def is_ad(self) -> bool:
        return self.role == ROLE_AD

    @classmethod
    def from_track(cls, track) -> "Item":
        return cls(
            id=track.id,
            title=track.title,
            file_url=track.file_url,
            duration=track.duration,
            role=track.role,
            artist=track.artist,
            genre=track.genre,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'artist': self.artist,
            'genre': self.genre,
            'file_url': self.file_url,
            'duration': self.duration,
            'role': self.role,
        }

@dataclass(frozen=True)
class ScheduledAd:
    """An ad break that fires at hour:minute on the given ISO weekdays."""

    id: int
    ad: Item
    hour: int
    minute: int
    weekdays: FrozenSet[int]

    def __post_init__(self):
        if not self.weekdays:
            raise ValueError(f"Schedule entry {self.id} has no weekdays")
        if not (0 <= self.hour < 24 and 0 <= self.minute < 60):
            raise ValueError(f"Schedule entry {self.id} has invalid time {self.hour}:{self.minute}")

    @property
    def time_label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def matches(self, now: datetime) -> bool:
        """True if this entry is due in the minute containing `now`."""
        return (
            now.hour == self.hour
            and now.minute == self.minute
            and now.isoweekday() in self.weekdays
        )

@dataclass(frozen=True)
class PlayoutState:
    """Immutable view of what is on air.

    The engine never edits a PlayoutState; every transition builds a new one
    with `evolve()` and swaps it in, so readers always see a consistent
    combination of track, ad and flags.
    """

    current_track: Optional[Item] = None
    current_ad: Optional[Item] = None
    is_playing_ad: bool = False
    playlist: Tuple[Item, ...] = field(default_factory=tuple)
    current_track_index: int = 0
    started_at: Optional[datetime] = None
    is_playing: bool = True

    def __post_init__(self):
        if self.is_playing_ad != (self.current_ad is not None):
            raise ValueError("is_playing_ad must be set exactly when current_ad is present")
        if self.playlist and not 0 <= self.current_track_index < len(self.playlist):
            raise ValueError(
                f"Track index {self.current_track_index} out of range for "
                f"playlist of {len(self.playlist)}"
            )

    @property
    def status(self) -> str:
        if not self.playlist or self.current_track is None:
            return STATUS_EMPTY
        if self.is_playing_ad:
            return STATUS_PLAYING_AD
        return STATUS_PLAYING_SONG

    @property
    def active_item(self) -> Optional[Item]:
        """The item whose duration is currently running."""
        return self.current_ad if self.is_playing_ad else self.current_track

    def evolve(self, **changes) -> "PlayoutState":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currentTrack': self.current_track.to_dict() if self.current_track else None,
            'currentAd': self.current_ad.to_dict() if self.current_ad else None,
            'isPlayingAd': self.is_playing_ad,
            'playlist': [item.to_dict() for item in self.playlist],
            'currentTrackIndex': self.current_track_index,
            'startedAt': self.started_at.isoformat() if self.started_at else None,
            'isPlaying': self.is_playing,
            'status': self.status,
        }
