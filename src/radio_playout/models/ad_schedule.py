"""Ad schedule model for timed ad breaks."""

from typing import Iterable, Set, Union

from sqlalchemy import Column, Integer, String, Time, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base

ALL_DAYS = "1,2,3,4,5,6,7"

def parse_weekdays(value: Union[str, Iterable[int], None]) -> Set[int]:
    """Parse a weekday set, 1=Monday..7=Sunday.

    Accepts a comma separated string or an iterable of ints. A 0 is read as
    Sunday and normalized to 7. Raises ValueError for anything outside 0-7.
    """
    if value is None:
        return set()
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",") if p.strip()]
    else:
        parts = list(value)

    days = set()
    for part in parts:
        day = int(part)
        if day == 0:
            day = 7
        if not 1 <= day <= 7:
            raise ValueError(f"Invalid weekday: {part}")
        days.add(day)
    return days

def format_weekdays(days: Iterable[int]) -> str:
    return ",".join(str(d) for d in sorted(days))

class AdScheduleEntry(Base):
    """A time of day and set of weekdays when an ad should air."""

    __tablename__ = "ad_schedule"

    id = Column(Integer, primary_key=True)
    ad_id = Column(Integer, ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False)
    scheduled_time = Column(Time, nullable=False)
    days_of_week = Column(String(20), default=ALL_DAYS)  # 1=Monday, 7=Sunday
    is_active = Column(Boolean, default=True)

    ad = relationship("Track", back_populates="schedule_entries")

    def __repr__(self):
        return f"<AdScheduleEntry(ad_id={self.ad_id}, at={self.scheduled_time}, days={self.days_of_week})>"

    @property
    def weekdays(self) -> Set[int]:
        return parse_weekdays(self.days_of_week)

    def to_dict(self):
        return {
            'id': self.id,
            'ad_id': self.ad_id,
            'scheduled_time': self.scheduled_time.strftime('%H:%M') if self.scheduled_time else None,
            'days_of_week': sorted(self.weekdays),
            'is_active': self.is_active,
            'ad': {
                'id': self.ad.id,
                'title': self.ad.title,
                'duration': self.ad.duration,
            } if self.ad else None,
        }
