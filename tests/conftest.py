"""Shared fixtures: in-memory database, pinned clock, seeded randomness"""

import random
from datetime import datetime, timedelta

import pytest
import pytz

from database import build_engine, build_session_factory, init_db
from schemas import Habit, User, UserProfile, DailyStatus, Mood
from storage import StateStore, StateSession
from tracker import HabitTracker

TZ = pytz.timezone("Europe/Madrid")


class FixedClock:
    """Clock that only moves when told to"""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self):
        return self.current.date()

    def advance(self, days: int = 0, hours: int = 0, minutes: int = 0):
        self.current = self.current + timedelta(days=days, hours=hours, minutes=minutes)

    def set_time(self, hour: int, minute: int = 0):
        self.current = self.current.replace(hour=hour, minute=minute)


@pytest.fixture
def clock():
    # Monday 10 March 2025, 12:00 in Madrid
    return FixedClock(TZ.localize(datetime(2025, 3, 10, 12, 0)))


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine, clock):
    return StateStore(build_session_factory(engine), key="test-state", clock=clock)


@pytest.fixture
def session(store):
    session = StateSession(store)
    session.load()
    return session


@pytest.fixture
def tracker(store, clock, rng):
    tracker = HabitTracker(store, clock, rng)
    tracker.ensure_initialized()
    return tracker


@pytest.fixture
def make_habit(clock):
    """Factory for habits that are not attached to any user"""
    counter = {"next_id": 1}

    def _make(**overrides):
        data = {
            "id": counter["next_id"],
            "name": f"Habit {counter['next_id']}",
            "is_reduce_habit": False,
            "target_value": 30,
            "target_unit": "minutes",
            "created_at": clock.now(),
        }
        data.update(overrides)
        counter["next_id"] += 1
        return Habit(**data)

    return _make


@pytest.fixture
def make_user(clock):
    def _make(user_id: int, habits=None, **profile):
        data = {"id": user_id, "name": f"User {user_id}", "created_at": clock.now()}
        data.update(profile)
        return User(id=user_id, profile=UserProfile(**data), habits=habits or [])

    return _make


@pytest.fixture
def make_status():
    def _make(day, done=True, value=0, points=0, mood=Mood.neutral, replacement_done=False, frozen=None):
        return DailyStatus(
            date=day,
            done=done,
            value=value,
            mood=mood,
            points_earned=points,
            replacement_done=replacement_done,
            streak_frozen=frozen,
        )

    return _make
