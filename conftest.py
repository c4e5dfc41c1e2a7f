"""Shared pytest fixtures."""

import os
import tempfile
from datetime import datetime, timedelta

_DB_DIR = tempfile.mkdtemp(prefix="radio-playout-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"

import pytest

from radio_playout.models import Base
from radio_playout.models.base import engine as db_engine
from radio_playout.state import Item, ScheduledAd
from radio_playout.engine import RadioEngine

# Wednesday
T0 = datetime(2024, 5, 15, 9, 58, 0)

class FakeClock:
    def __init__(self, start=T0):
        self.current = start

    def now(self):
        return self.current

class FakeTimer:
    def __init__(self, due, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

class FakeTimers:
    """Timer facility driven by `advance()` instead of real threads."""

    def __init__(self, clock):
        self.clock = clock
        self.timers = []

    def call_later(self, seconds, callback):
        timer = FakeTimer(self.clock.now() + timedelta(seconds=seconds), callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds):
        target = self.clock.now() + timedelta(seconds=seconds)
        while True:
            due = [t for t in self.pending if t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due)
            self.clock.current = timer.due
            timer.fired = True
            timer.callback()
        self.clock.current = target

class RecordingSink:
    def __init__(self):
        self.published = []
        self.persisted = []
        self.listener_count = 0

    def publish(self, snapshot):
        self.published.append(snapshot)

    def persist(self, snapshot):
        self.persisted.append(snapshot)

    def payload(self, snapshot):
        data = snapshot.to_dict()
        data['listeners'] = self.listener_count
        return data

    def listener_connected(self):
        self.listener_count += 1
        return self.listener_count

    def listener_disconnected(self):
        self.listener_count -= 1
        return self.listener_count

class StubCatalog:
    def __init__(self, playlist=None, ad_schedule=None, ads=None):
        self.playlist = playlist
        self.ad_schedule = ad_schedule or []
        self.ads = {ad.id: ad for ad in (ads or [])}

    def load_playlist(self):
        return None if self.playlist is None else list(self.playlist)

    def load_ad_schedule(self):
        return list(self.ad_schedule)

    def get_ad(self, ad_id):
        return self.ads.get(ad_id)

def song(id, duration, title=None):
    return Item(id=id, title=title or f"Song {id}", file_url=f"https://media.test/song{id}.mp3",
                duration=duration, role="song", artist="Artist")

def ad(id, duration, title=None):
    return Item(id=id, title=title or f"Ad {id}", file_url=f"https://media.test/ad{id}.mp3",
                duration=duration, role="ad")

def scheduled(id, item, hour, minute, weekdays=(1, 2, 3, 4, 5, 6, 7)):
    return ScheduledAd(id=id, ad=item, hour=hour, minute=minute, weekdays=frozenset(weekdays))

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def timers(clock):
    return FakeTimers(clock)

@pytest.fixture
def sink():
    return RecordingSink()

@pytest.fixture
def make_engine(clock, timers, sink):
    def factory(catalog=None):
        return RadioEngine(catalog=catalog or StubCatalog(), sink=sink, timers=timers, clock=clock.now)
    return factory

@pytest.fixture
def db():
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)
    yield db_engine
    Base.metadata.drop_all(bind=db_engine)
