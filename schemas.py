"""
=============================================================================
SCHEMAS.PY — Data model and API schemas (Pydantic)
=============================================================================
Two families of schemas live here:

  1. ENTITIES → the shapes stored in the JSON snapshot
     (Habit, DailyStatus, UserProfile, Badge, MiniChallenge, HabitBattle...)
     The engines mutate these objects in place; the store serializes them
     with model_dump_json() and reads them back with model_validate_json().

  2. API SCHEMAS → what the HTTP layer accepts/returns

Naming convention for the API:
  XxxCreate → to create something (POST)
  XxxUpdate → to update something (PATCH)
  XxxResponse → what the API returns
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional
from enum import Enum


# =============================================================================
# ===================== ENUMS =================================================
# =============================================================================

class Mood(str, Enum):
    """Mood recorded with each check-in"""
    happy = "Happy"
    sad = "Sad"
    stressed = "Stressed"
    neutral = "Neutral"

class HabitCategory(str, Enum):
    health = "health"
    fitness = "fitness"
    mindfulness = "mindfulness"
    productivity = "productivity"
    social = "social"
    learning = "learning"
    finance = "finance"
    other = "other"

class BadgeType(str, Enum):
    streak = "streak"              # 3, 7, 14, 30, 60, 100 days
    points = "points"              # 100, 500, 1000, 5000 points
    habits = "habits"              # 1, 3, 5 habits tracked
    perfect_week = "perfect-week"  # 7 perfect days in a row
    early_bird = "early-bird"      # check-in before the time window
    comeback = "comeback"          # back after a 3+ day break
    challenger = "challenger"      # a mini challenge completed

class ChallengeType(str, Enum):
    streak = "streak"
    points = "points"
    perfect_day = "perfect-day"
    early = "early"
    replacement = "replacement"

class BattleStatus(str, Enum):
    active = "active"
    completed = "completed"
    draw = "draw"


# =============================================================================
# ===================== HABITS ================================================
# =============================================================================

class TimeWindow(BaseModel):
    """Local time window, both ends inclusive, "HH:mm" """
    start: str = Field(pattern=r"^\d{2}:\d{2}$")
    end: str = Field(pattern=r"^\d{2}:\d{2}$")

class TargetOption(BaseModel):
    label: str
    value: float

class DailyStatus(BaseModel):
    """What happened with a habit on one day. At most one per date."""
    date: date
    done: bool
    value: float
    mood: Mood
    points_earned: int = Field(default=0, ge=0)
    replacement_done: bool
    streak_frozen: Optional[bool] = None

class Habit(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: HabitCategory = HabitCategory.other
    icon: str = "🎯"
    is_reduce_habit: bool
    # True  → success means value <= target (cigarettes)
    # False → success means value >= target (minutes of exercise)
    target_options: list[TargetOption] = []
    target_value: float
    target_unit: str = ""
    replacement: str = ""
    time_window: Optional[TimeWindow] = None
    current_streak: int = Field(default=0, ge=0)
    best_streak: int = Field(default=0, ge=0)
    total_points: int = Field(default=0, ge=0)
    daily_status: list[DailyStatus] = []
    created_at: datetime
    last_streak_freeze_date: Optional[date] = None
    is_active: bool = True


# =============================================================================
# ===================== BADGES, PROFILES, CHALLENGES ==========================
# =============================================================================

class Badge(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    type: BadgeType
    requirement: int
    earned_at: Optional[datetime] = None

class UserProfile(BaseModel):
    id: int
    name: str
    avatar: str = "👤"
    color: str = "#667eea"
    total_points: int = Field(default=0, ge=0)
    total_habits: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    badges: list[Badge] = []
    created_at: datetime
    last_perfect_day: Optional[date] = None
    # last_perfect_day → the perfect-day bonus is paid once per day

class MiniChallenge(BaseModel):
    id: str
    title: str
    description: str
    type: ChallengeType
    target_value: int
    current_value: int = 0
    reward: int
    start_date: date
    end_date: date
    is_completed: bool = False
    habit_id: Optional[int] = None

class User(BaseModel):
    """A user together with everything they own"""
    id: int
    profile: UserProfile
    habits: list[Habit] = []
    challenges: list[MiniChallenge] = []


# =============================================================================
# ===================== BATTLES ===============================================
# =============================================================================

class BattleParticipant(BaseModel):
    user_id: int
    user_name: str
    user_avatar: str
    value: float = 0
    completed: bool = False
    points_earned: int = 0

class HabitBattle(BaseModel):
    """
    One-day duel between two users on a habit template.
    The habit fields are a snapshot: the battle never touches a live habit.
    """
    id: str
    date: date
    habit_name: str
    habit_category: HabitCategory
    target_value: float
    target_unit: str
    is_reduce_habit: bool
    participants: list[BattleParticipant] = Field(min_length=2, max_length=2)
    winner_id: Optional[int] = None
    bonus_points: int
    status: BattleStatus = BattleStatus.active


# =============================================================================
# ===================== SNAPSHOT ==============================================
# =============================================================================

class AppSettings(BaseModel):
    theme: str = "dark"
    notifications: bool = True
    reminder_time: str = "09:00"

class AppState(BaseModel):
    """The whole persisted state. Loaded whole, saved whole."""
    users: list[User] = []
    current_user_id: int = 1
    battles: list[HabitBattle] = []
    # battles → finished battles, append-only
    active_battle: Optional[HabitBattle] = None
    settings: AppSettings = AppSettings()


# =============================================================================
# ===================== COMPARISON ============================================
# =============================================================================

class UserComparisonData(BaseModel):
    user_id: int
    user_name: str
    user_avatar: str
    user_color: str
    total_points: int
    points_today: int
    total_streaks: int
    longest_streak: int
    habits_completed_today: int
    habits_total: int
    completion_rate: int

class UserComparison(BaseModel):
    user1: UserComparisonData
    user2: UserComparisonData
    today_winner: Optional[int] = None
    overall_winner: Optional[int] = None
    streak_winner: Optional[int] = None

class HabitComparisonSide(BaseModel):
    has_habit: bool
    streak: int = 0
    points: int = 0
    completed_today: bool = False
    today_value: float = 0

class HabitComparisonItem(BaseModel):
    habit_name: str
    icon: str
    user1: HabitComparisonSide
    user2: HabitComparisonSide
    winner: Optional[int] = None
    # winner → 1, 2 or None (draw)

class BattleRecord(BaseModel):
    wins: int = 0
    losses: int = 0
    draws: int = 0


# =============================================================================
# ===================== CHECK-IN RESULTS ======================================
# =============================================================================

class CheckinResult(BaseModel):
    """What record_daily_progress returns"""
    habit: Habit
    points_earned: int
    streak_updated: bool
    target_met: bool
    is_early: bool = False

class CheckinSummary(CheckinResult):
    """Full outcome of a check-in, after badges and challenges"""
    perfect_day_bonus: int = 0
    new_badges: list[Badge] = []
    completed_challenges: list[MiniChallenge] = []


# =============================================================================
# ===================== API: USERS ============================================
# =============================================================================

class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    avatar: Optional[str] = None
    color: Optional[str] = None

class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    avatar: Optional[str] = None
    color: Optional[str] = None


# =============================================================================
# ===================== API: HABITS ===========================================
# =============================================================================

class HabitCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    category: HabitCategory = HabitCategory.other
    icon: str = "🎯"
    is_reduce_habit: bool = False
    target_options: list[TargetOption] = []
    target_value: float = Field(ge=0)
    target_unit: str = ""
    replacement: str = ""
    time_window: Optional[TimeWindow] = None

class HabitFromSuggestion(BaseModel):
    name: str
    target_value: Optional[float] = Field(default=None, ge=0)

class HabitUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[HabitCategory] = None
    icon: Optional[str] = None
    target_value: Optional[float] = Field(default=None, ge=0)
    target_unit: Optional[str] = None
    replacement: Optional[str] = None
    time_window: Optional[TimeWindow] = None
    is_active: Optional[bool] = None

class CheckinCreate(BaseModel):
    value: float = Field(ge=0)
    mood: Mood = Mood.neutral
    replacement_done: bool = False

class FreezeResponse(BaseModel):
    applied: bool
    days_until_available: int


# =============================================================================
# ===================== API: BATTLES ==========================================
# =============================================================================

class BattleCreate(BaseModel):
    user1_id: int
    user2_id: int
    habit_name: Optional[str] = None

class BattleProgressUpdate(BaseModel):
    user_id: int
    value: float = Field(ge=0)
