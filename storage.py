"""
=============================================================================
STORAGE.PY — State persistence
=============================================================================
The whole application lives in ONE snapshot (schemas.AppState).

  StateStore   → reads/writes the snapshot in the app_state table
                 load() never fails: missing or damaged data → default snapshot
                 save() is best effort: a database error is logged and
                 reported as False, never raised

  StateSession → the in-memory copy the engines work on
                 load once, mutate in place, commit() after each change

Single writer per process: two processes sharing a snapshot key would
overwrite each other (last write wins on the whole document). Inside one
process the API serves requests from a threadpool, so every read and write
of the in-memory state goes through StateSession.lock.
"""

import os
import logging
import threading
from typing import Callable, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from database import SessionLocal
from models import StateRecord
from schemas import AppState, User, UserProfile, Habit
from errors import NotFoundError
from clock import SystemClock

logger = logging.getLogger("habitduel.storage")

STATE_KEY = os.getenv("HABITDUEL_STATE_KEY", "habit-tracker-multi-user")

DEFAULT_USERS = [
    {"id": 1, "name": "Player 1", "avatar": "🦸", "color": "#667eea"},
    {"id": 2, "name": "Player 2", "avatar": "🧙", "color": "#f093fb"},
]


# =============================================================================
# ===================== STORE =================================================
# =============================================================================

class StateStore:
    """Key-value store of whole snapshots, backed by SQLAlchemy"""

    def __init__(self, session_factory=SessionLocal, key: str = STATE_KEY, clock=None):
        self.session_factory = session_factory
        self.key = key
        self.clock = clock or SystemClock()

    def default_state(self) -> AppState:
        """Two empty players, player 1 selected"""
        now = self.clock.now()
        users = [
            User(id=u["id"], profile=UserProfile(created_at=now, **u))
            for u in DEFAULT_USERS
        ]
        return AppState(users=users, current_user_id=users[0].id)

    def load(self) -> AppState:
        db = self.session_factory()
        try:
            record = db.get(StateRecord, self.key)
            if record is None:
                logger.info(f"No snapshot stored under '{self.key}', starting fresh")
                return self.default_state()
            return AppState.model_validate_json(record.payload)
        except (ValidationError, ValueError) as e:
            logger.warning(f"⚠️ Snapshot '{self.key}' is corrupt, using default: {e}")
            return self.default_state()
        except SQLAlchemyError as e:
            logger.error(f"❌ Could not read snapshot '{self.key}': {e}")
            return self.default_state()
        finally:
            db.close()

    def save(self, state: AppState) -> bool:
        db = self.session_factory()
        try:
            payload = state.model_dump_json()
            record = db.get(StateRecord, self.key)
            if record is None:
                db.add(StateRecord(key=self.key, payload=payload))
            else:
                record.payload = payload
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Could not save snapshot '{self.key}': {e}")
            return False
        finally:
            db.close()

    def clear(self) -> bool:
        """Drops the stored snapshot (next load() returns the default)"""
        db = self.session_factory()
        try:
            db.query(StateRecord).filter(StateRecord.key == self.key).delete()
            db.commit()
            return True
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Could not clear snapshot '{self.key}': {e}")
            return False
        finally:
            db.close()


# =============================================================================
# ===================== SESSION ===============================================
# =============================================================================

class StateSession:
    """
    In-memory snapshot shared by every engine.

    The engines mutate self.state directly and call commit() when done.
    Subscribers are called after every commit with the current state, even
    when the save failed (memory stays the source of truth for the session).
    """

    def __init__(self, store: StateStore):
        self.store = store
        self.state: Optional[AppState] = None
        self.lock = threading.RLock()
        self._subscribers: list[Callable[[AppState], None]] = []

    def load(self) -> AppState:
        self.state = self.store.load()
        return self.state

    def ensure_loaded(self) -> AppState:
        if self.state is None:
            return self.load()
        return self.state

    def commit(self) -> bool:
        with self.lock:
            saved = self.store.save(self.ensure_loaded())
            for callback in list(self._subscribers):
                callback(self.state)
            return saved

    def subscribe(self, callback: Callable[[AppState], None]) -> Callable[[], None]:
        """Registers a change listener. Returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ─────────────────────────────────────────────────────────────────────────
    # LOOKUPS
    # ─────────────────────────────────────────────────────────────────────────

    def get_user(self, user_id: int) -> User:
        state = self.ensure_loaded()
        user = next((u for u in state.users if u.id == user_id), None)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def current_user(self) -> User:
        return self.get_user(self.ensure_loaded().current_user_id)

    def resolve_user(self, user_id: Optional[int] = None) -> User:
        """The given user, or the current one when user_id is None"""
        if user_id is None:
            return self.current_user()
        return self.get_user(user_id)

    def get_habit(self, habit_id: int, user_id: Optional[int] = None) -> Habit:
        user = self.resolve_user(user_id)
        habit = next((h for h in user.habits if h.id == habit_id), None)
        if habit is None:
            raise NotFoundError("Habit", habit_id)
        return habit
