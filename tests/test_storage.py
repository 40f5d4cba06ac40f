"""StateStore / StateSession: loading, saving, corrupt data"""

import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import build_session_factory
from models import StateRecord
from storage import StateStore, StateSession
from errors import NotFoundError


def test_missing_snapshot_gives_default(store):
    state = store.load()
    assert [u.profile.name for u in state.users] == ["Player 1", "Player 2"]
    assert [u.profile.avatar for u in state.users] == ["🦸", "🧙"]
    assert state.current_user_id == 1
    assert state.battles == []
    assert state.active_battle is None


def test_save_and_load(store, make_habit, make_status, clock):
    state = store.load()
    habit = make_habit(name="Read", current_streak=3)
    habit.daily_status.append(make_status(clock.today(), value=25, points=12))
    state.users[0].habits.append(habit)
    state.users[1].profile.total_points = 40

    assert store.save(state) is True
    assert store.load().model_dump() == state.model_dump()


def test_save_overwrites_same_key(store):
    state = store.load()
    store.save(state)
    state.current_user_id = 2
    store.save(state)
    assert store.load().current_user_id == 2


def test_keys_are_independent(engine, store, clock):
    other = StateStore(build_session_factory(engine), key="other", clock=clock)
    state = store.load()
    state.current_user_id = 2
    store.save(state)
    assert other.load().current_user_id == 1


def test_corrupt_snapshot_gives_default(store, caplog):
    db = store.session_factory()
    db.add(StateRecord(key=store.key, payload="{not json"))
    db.commit()
    db.close()

    with caplog.at_level(logging.WARNING, logger="habitduel.storage"):
        state = store.load()
    assert len(state.users) == 2
    assert "corrupt" in caplog.text


def test_wrong_shape_gives_default(store):
    db = store.session_factory()
    db.add(StateRecord(key=store.key, payload='{"users": "nobody"}'))
    db.commit()
    db.close()
    assert len(store.load().users) == 2


def test_database_errors_are_not_raised(clock, caplog):
    # no tables created on this engine
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    broken = StateStore(sessionmaker(bind=engine), key="x", clock=clock)

    with caplog.at_level(logging.ERROR, logger="habitduel.storage"):
        assert broken.save(broken.default_state()) is False
        assert len(broken.load().users) == 2
    assert "Could not save" in caplog.text
    engine.dispose()


def test_clear(store):
    state = store.load()
    state.current_user_id = 2
    store.save(state)
    assert store.clear() is True
    assert store.load().current_user_id == 1


class TestSession:

    def test_commit_notifies_even_when_save_fails(self, clock):
        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        session = StateSession(StateStore(sessionmaker(bind=engine), key="x", clock=clock))
        calls = []
        session.subscribe(calls.append)

        assert session.commit() is False
        assert calls == [session.state]
        engine.dispose()

    def test_lookups(self, session):
        assert session.current_user().id == 1
        assert session.resolve_user(2).id == 2
        with pytest.raises(NotFoundError):
            session.get_user(9)
        with pytest.raises(NotFoundError):
            session.get_habit(1)
