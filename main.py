"""
=============================================================================
MAIN.PY — HabitDuel API
=============================================================================
REST endpoints over the rules engine (tracker.HabitTracker).

Sections:
  1. USERS       → players, switch current player, profile
  2. HABITS      → CRUD, suggestions, check-in, streak freeze
  3. STATS       → points, streaks, habit leaderboard
  4. CHALLENGES  → weekly mini challenges
  5. BADGES      → earned + available
  6. COMPARE     → player vs player
  7. BATTLES     → daily habit battle
  8. COACH       → tips and quotes

Endpoints with an optional ?user_id= act on the current player when omitted.
"""

import os
import logging
import traceback
from datetime import datetime
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from database import init_db
from schemas import (
    User, UserProfile, UserCreate, UserUpdate, Habit, HabitCreate, HabitUpdate, Mood,
    HabitFromSuggestion, CheckinCreate, CheckinSummary, FreezeResponse,
    UserComparison, HabitComparisonItem, HabitBattle, BattleCreate,
    BattleProgressUpdate, BattleRecord,
)
from constants import HABIT_SUGGESTIONS, BADGE_DEFINITIONS
from storage import StateStore
from tracker import HabitTracker
from errors import NotFoundError

# ─────────────────────────────────────────────────────────────────────────────
# LOGGING
# ─────────────────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s"
)
logger = logging.getLogger("habitduel.api")


# ─────────────────────────────────────────────────────────────────────────────
# LIFESPAN (startup / shutdown)
# ─────────────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      1. Create the tables
      2. Load the snapshot and catch up (missed days, challenges, old battle)
    """
    logger.info("🚀 Starting HabitDuel...")

    init_db()
    logger.info("✅ Database ready")

    tracker = HabitTracker(StateStore())
    tracker.ensure_initialized()
    app.state.tracker = tracker

    logger.info("🎉 HabitDuel running")
    yield
    logger.info("👋 HabitDuel stopped")


# ─────────────────────────────────────────────────────────────────────────────
# FASTAPI APPLICATION
# ─────────────────────────────────────────────────────────────────────────────

app = FastAPI(
    title="HabitDuel API",
    description="Two-player habit tracker: streaks, points, badges, challenges and battles",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_tracker(request: Request) -> HabitTracker:
    """The tracker built at startup (tests override this dependency)"""
    return request.app.state.tracker


# ─────────────────────────────────────────────────────────────────────────────
# ERROR HANDLERS
# ─────────────────────────────────────────────────────────────────────────────
# NotFoundError → 404, ValueError → 400, anything else → 500 with details

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Unhandled errors come back as JSON with the real message"""
    error_msg = str(exc)
    error_trace = traceback.format_exc()
    logger.error(f"❌ Unhandled error on {request.url}: {error_msg}\n{error_trace}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": error_msg,
            "type": type(exc).__name__,
            "path": str(request.url)
        }
    )


# =============================================================================
# ===================== HEALTH CHECK ==========================================
# =============================================================================

@app.get("/", tags=["Health"])
def health_check():
    """Is the API alive?"""
    return {
        "status": "ok",
        "app": "HabitDuel",
        "version": "1.0.0",
        "timestamp": datetime.utcnow().isoformat()
    }


# =============================================================================
# ===================== SECTION 1: USERS ======================================
# =============================================================================

@app.get("/users", response_model=list[User], tags=["Users"])
def list_users(tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_users()


@app.post("/users", response_model=User, tags=["Users"])
def create_user(data: UserCreate, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.add_user(data.name, data.avatar, data.color)


@app.get("/users/current", response_model=User, tags=["Users"])
def get_current_user(tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_current_user()


@app.patch("/users/{user_id}", response_model=UserProfile, tags=["Users"])
def update_user(user_id: int, data: UserUpdate, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.update_profile(user_id, data.name, data.avatar, data.color)


@app.post("/users/{user_id}/switch", response_model=User, tags=["Users"])
def switch_user(user_id: int, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.switch_user(user_id)


# =============================================================================
# ===================== SECTION 2: HABITS =====================================
# =============================================================================

@app.get("/habits/suggestions", tags=["Habits"])
def list_suggestions():
    """Ready-made habits (also the battle templates)"""
    return HABIT_SUGGESTIONS


@app.post("/habits/from-suggestion", response_model=Habit, tags=["Habits"])
def create_habit_from_suggestion(
    data: HabitFromSuggestion,
    user_id: Optional[int] = Query(None),
    tracker: HabitTracker = Depends(get_tracker)
):
    return tracker.create_from_suggestion(data.name, data.target_value, user_id)


@app.post("/habits", response_model=Habit, tags=["Habits"])
def create_habit(
    data: HabitCreate,
    user_id: Optional[int] = Query(None),
    tracker: HabitTracker = Depends(get_tracker)
):
    return tracker.create_habit(data, user_id)


@app.get("/habits", response_model=list[Habit], tags=["Habits"])
def list_habits(
    active_only: bool = False,
    user_id: Optional[int] = Query(None),
    tracker: HabitTracker = Depends(get_tracker)
):
    habits = tracker.get_habits(user_id)
    if active_only:
        habits = [h for h in habits if h.is_active]
    return habits


@app.get("/habits/{habit_id}", response_model=Habit, tags=["Habits"])
def get_habit(habit_id: int, user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_habit(habit_id, user_id)


@app.patch("/habits/{habit_id}", response_model=Habit, tags=["Habits"])
def update_habit(
    habit_id: int, data: HabitUpdate,
    user_id: Optional[int] = Query(None),
    tracker: HabitTracker = Depends(get_tracker)
):
    return tracker.update_habit(habit_id, data, user_id)


@app.delete("/habits/{habit_id}", tags=["Habits"])
def delete_habit(habit_id: int, user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    tracker.delete_habit(habit_id, user_id)
    return {"message": "Habit deleted"}


@app.post("/habits/{habit_id}/checkin", response_model=CheckinSummary, tags=["Habits"])
def check_in(
    habit_id: int, data: CheckinCreate,
    user_id: Optional[int] = Query(None),
    tracker: HabitTracker = Depends(get_tracker)
):
    """
    Daily check-in. A second check-in on the same day replaces the first.

    Returns the points, whether the streak advanced, and any badge or
    challenge unlocked by it.
    """
    return tracker.check_in(habit_id, data.value, data.mood, data.replacement_done, user_id)


@app.post("/habits/{habit_id}/freeze", response_model=FreezeResponse, tags=["Habits"])
def freeze_streak(habit_id: int, user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    """applied=False → still in the 7 day cooldown (not an error)"""
    applied = tracker.use_freeze(habit_id, user_id)
    return FreezeResponse(
        applied=applied,
        days_until_available=tracker.days_until_freeze(habit_id, user_id),
    )


# =============================================================================
# ===================== SECTION 3: STATS ======================================
# =============================================================================

@app.get("/stats/points", tags=["Stats"])
def points_stats(user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_points_summary(user_id)


@app.get("/stats/streaks", tags=["Stats"])
def streak_stats(user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_streak_summary(user_id)


@app.get("/stats/leaderboard", tags=["Stats"])
def habit_leaderboard(user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_leaderboard(user_id)


# =============================================================================
# ===================== SECTION 4: CHALLENGES =================================
# =============================================================================

@app.get("/challenges", tags=["Challenges"])
def list_challenges(user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_challenge_overview(user_id)


@app.post("/challenges/refresh", tags=["Challenges"])
def refresh_challenges(user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    """Draws a brand new batch (the current progress is lost)"""
    tracker.regenerate_challenges(user_id)
    return tracker.get_challenge_overview(user_id)


# =============================================================================
# ===================== SECTION 5: BADGES =====================================
# =============================================================================

@app.get("/badges", tags=["Badges"])
def list_badges(user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    user = tracker.get_current_user() if user_id is None else tracker.get_user(user_id)
    earned_ids = {b.id for b in user.profile.badges}
    return {
        "earned": user.profile.badges,
        "locked": [b for b in BADGE_DEFINITIONS if b["id"] not in earned_ids],
    }


# =============================================================================
# ===================== SECTION 6: COMPARE ====================================
# =============================================================================

@app.get("/compare/{user1_id}/{user2_id}", response_model=UserComparison, tags=["Compare"])
def compare_users(user1_id: int, user2_id: int, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.compare_users(user1_id, user2_id)


@app.get("/compare/{user1_id}/{user2_id}/habits", response_model=list[HabitComparisonItem], tags=["Compare"])
def compare_habits(user1_id: int, user2_id: int, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_habit_comparison(user1_id, user2_id)


# =============================================================================
# ===================== SECTION 7: BATTLES ====================================
# =============================================================================

@app.post("/battles", response_model=HabitBattle, tags=["Battles"])
def create_battle(data: BattleCreate, tracker: HabitTracker = Depends(get_tracker)):
    """Starts today's battle (or returns it if one is already running)"""
    return tracker.create_battle(data.user1_id, data.user2_id, data.habit_name)


@app.get("/battles/today", response_model=Optional[HabitBattle], tags=["Battles"])
def todays_battle(tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_todays_battle()


@app.get("/battles/history", response_model=list[HabitBattle], tags=["Battles"])
def battle_history(tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_battle_history()


@app.get("/battles/record/{user_id}", response_model=BattleRecord, tags=["Battles"])
def battle_record(user_id: int, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.get_user_battle_record(user_id)


@app.patch("/battles/{battle_id}/progress", response_model=HabitBattle, tags=["Battles"])
def update_battle_progress(battle_id: str, data: BattleProgressUpdate, tracker: HabitTracker = Depends(get_tracker)):
    return tracker.update_battle_progress(battle_id, data.user_id, data.value)


# =============================================================================
# ===================== SECTION 8: COACH ======================================
# =============================================================================

@app.get("/coach/quote", tags=["Coach"])
def random_quote(tracker: HabitTracker = Depends(get_tracker)):
    return tracker.coach.get_random_quote()


@app.get("/coach/{habit_id}", tags=["Coach"])
def coach_message(habit_id: int, user_id: Optional[int] = Query(None), tracker: HabitTracker = Depends(get_tracker)):
    message = tracker.get_coach_message(habit_id, user_id)
    habit = tracker.get_habit(habit_id, user_id)
    mood = habit.daily_status[-1].mood if habit.daily_status else Mood.neutral
    return {
        **message,
        "replacement": tracker.coach.get_replacement_suggestion(habit.name, mood),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
