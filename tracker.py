"""
=============================================================================
TRACKER.PY — Check-in orchestrator
=============================================================================
The single entry point the API (or any other front end) talks to.

  HabitTracker
  ├── session     → in-memory snapshot + persistence (storage.StateSession)
  ├── challenges  → challenges.ChallengeEngine
  ├── battles     → comparison.BattleEngine
  └── coach       → coach.Coach

Every public method that changes something ends with session.commit().
The engines below never commit on their own.

Public methods run under the session lock and start with catch_up():
the first call on a new calendar day applies the rollover (missed days,
expired challenges, yesterday's battle) before doing anything else.

Startup:
  tracker = HabitTracker(StateStore())
  tracker.ensure_initialized()   ← once, before anything else
"""

import random
import logging
import functools
from datetime import date
from typing import Optional

from schemas import (
    AppState, User, UserProfile, Habit, DailyStatus, Mood, ChallengeType,
    CheckinResult, CheckinSummary, HabitCreate, HabitUpdate, UserComparison,
    HabitComparisonItem, HabitBattle, BattleRecord, MiniChallenge,
)
from constants import DEFAULT_AVATARS, DEFAULT_COLORS, find_suggestion
from gamification import (
    is_target_met, get_status, upsert_status, advance_streak, check_missed_days,
    use_freeze, days_until_freeze_available, get_streak_summary,
    calculate_points, calculate_perfect_day_bonus, is_early_completion,
    is_perfect_day, points_today, points_this_week, habit_leaderboard,
    check_streak_badges, check_points_badges, check_habit_badges,
    check_perfect_week_badge, check_comeback_badge, check_early_bird_badge,
)
from challenges import ChallengeEngine
from comparison import BattleEngine, compare_users, get_habit_comparison
from coach import Coach
from storage import StateStore, StateSession
from errors import NotFoundError
from clock import SystemClock

logger = logging.getLogger("habitduel.tracker")

# Fields of a habit that can be cleared with an explicit null
NULLABLE_HABIT_FIELDS = ("description", "time_window")


def synced(method):
    """Runs a tracker method under the session lock, after the day catch-up"""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.session.lock:
            self.catch_up()
            return method(self, *args, **kwargs)
    return wrapper


class HabitTracker:

    def __init__(self, store: StateStore, clock=None, rng: Optional[random.Random] = None):
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.session = StateSession(store)
        self.challenges = ChallengeEngine(self.session, self.clock, self.rng)
        self.battles = BattleEngine(self.session, self.clock, self.rng)
        self.coach = Coach(self.rng)
        self.last_catch_up: Optional[date] = None

    @property
    def state(self) -> AppState:
        return self.session.ensure_loaded()

    def subscribe(self, callback):
        """Calls callback(state) after every commit. Returns an unsubscribe function."""
        return self.session.subscribe(callback)

    # =========================================================================
    # ===================== STARTUP & DAY ROLLOVER ============================
    # =========================================================================

    def ensure_initialized(self) -> AppState:
        """Loads the snapshot and applies everything that happened while the app was closed"""
        with self.session.lock:
            state = self.session.load()
            self.last_catch_up = None
            self.catch_up()
            logger.info(f"✅ State ready: {len(state.users)} users, today is {self.last_catch_up.isoformat()}")
            return state

    def catch_up(self) -> bool:
        """
        Once per calendar day:
          - expired challenge batches are replaced
          - streaks of habits missed yesterday go back to 0
          - a battle from a previous day is finalized

        Returns True (after saving) when the rollover ran.
        """
        with self.session.lock:
            today = self.clock.today()
            if self.last_catch_up is not None and self.last_catch_up >= today:
                return False

            state = self.session.ensure_loaded()
            for user in state.users:
                self.challenges.refresh_challenges_if_needed(user.id)
                check_missed_days(user.habits, today)
            self.battles.get_todays_battle()

            self.last_catch_up = today
            self.session.commit()
            logger.info(f"📅 Day rollover applied for {today.isoformat()}")
            return True

    # =========================================================================
    # ===================== USERS =============================================
    # =========================================================================

    @synced
    def get_users(self) -> list[User]:
        return self.state.users

    @synced
    def get_user(self, user_id: int) -> User:
        return self.session.get_user(user_id)

    @synced
    def get_current_user(self) -> User:
        return self.session.current_user()

    @synced
    def add_user(self, name: str, avatar: Optional[str] = None, color: Optional[str] = None) -> User:
        state = self.state
        user_id = max((u.id for u in state.users), default=0) + 1
        index = len(state.users)
        user = User(
            id=user_id,
            profile=UserProfile(
                id=user_id,
                name=name,
                avatar=avatar or DEFAULT_AVATARS[index % len(DEFAULT_AVATARS)],
                color=color or DEFAULT_COLORS[index % len(DEFAULT_COLORS)],
                created_at=self.clock.now(),
            ),
        )
        state.users.append(user)
        self.challenges.generate_weekly_challenges(user.id)
        self.session.commit()
        logger.info(f"👤 User added: {name} (id={user_id})")
        return user

    @synced
    def switch_user(self, user_id: int) -> User:
        user = self.session.get_user(user_id)
        self.state.current_user_id = user.id
        self.session.commit()
        return user

    @synced
    def update_profile(self, user_id: int, name: Optional[str] = None,
                       avatar: Optional[str] = None, color: Optional[str] = None) -> UserProfile:
        profile = self.session.get_user(user_id).profile
        if name is not None:
            profile.name = name
        if avatar is not None:
            profile.avatar = avatar
        if color is not None:
            profile.color = color
        self.session.commit()
        return profile

    # =========================================================================
    # ===================== HABITS ============================================
    # =========================================================================

    @synced
    def get_habits(self, user_id: Optional[int] = None) -> list[Habit]:
        return self.session.resolve_user(user_id).habits

    @synced
    def get_habit(self, habit_id: int, user_id: Optional[int] = None) -> Habit:
        return self.session.get_habit(habit_id, user_id)

    def _new_habit_id(self) -> int:
        """Creation time in ms, bumped until it is unique across all users"""
        taken = {h.id for u in self.state.users for h in u.habits}
        habit_id = int(self.clock.now().timestamp() * 1000)
        while habit_id in taken:
            habit_id += 1
        return habit_id

    @synced
    def create_habit(self, data: HabitCreate, user_id: Optional[int] = None) -> Habit:
        user = self.session.resolve_user(user_id)
        habit = Habit(
            id=self._new_habit_id(),
            created_at=self.clock.now(),
            **data.model_dump(),
        )
        user.habits.append(habit)
        user.profile.total_habits += 1
        check_habit_badges(user.profile, self.clock.now())
        self.session.commit()
        logger.info(f"✅ Habit created for {user.profile.name}: {habit.name}")
        return habit

    @synced
    def create_from_suggestion(self, name: str, target_value: Optional[float] = None,
                               user_id: Optional[int] = None) -> Habit:
        suggestion = find_suggestion(name)
        if suggestion is None:
            raise NotFoundError("Habit suggestion", name)
        data = HabitCreate(
            name=suggestion["name"],
            description=suggestion["description"],
            category=suggestion["category"],
            icon=suggestion["icon"],
            is_reduce_habit=suggestion["is_reduce_habit"],
            target_options=suggestion["target_options"],
            target_value=suggestion["default_target"] if target_value is None else target_value,
            target_unit=suggestion["target_unit"],
            replacement=suggestion["suggested_replacements"][0],
        )
        return self.create_habit(data, user_id)

    @synced
    def update_habit(self, habit_id: int, data: HabitUpdate, user_id: Optional[int] = None) -> Habit:
        habit = self.session.get_habit(habit_id, user_id)
        for field in data.model_fields_set:
            value = getattr(data, field)
            if value is None and field not in NULLABLE_HABIT_FIELDS:
                continue
            setattr(habit, field, value)
        self.session.commit()
        return habit

    @synced
    def delete_habit(self, habit_id: int, user_id: Optional[int] = None) -> None:
        user = self.session.resolve_user(user_id)
        habit = self.session.get_habit(habit_id, user.id)
        user.habits.remove(habit)
        user.profile.total_habits = max(0, user.profile.total_habits - 1)
        self.session.commit()
        logger.info(f"🗑️ Habit deleted for {user.profile.name}: {habit.name}")

    @synced
    def use_freeze(self, habit_id: int, user_id: Optional[int] = None) -> bool:
        """False while the 7 day cooldown is running"""
        habit = self.session.get_habit(habit_id, user_id)
        applied = use_freeze(habit, self.clock.today())
        if applied:
            self.session.commit()
        return applied

    @synced
    def days_until_freeze(self, habit_id: int, user_id: Optional[int] = None) -> int:
        habit = self.session.get_habit(habit_id, user_id)
        return days_until_freeze_available(habit, self.clock.today())

    # =========================================================================
    # ===================== CHECK-IN ==========================================
    # =========================================================================

    def _apply_progress(self, habit: Habit, value: float, mood: Mood, replacement_done: bool) -> CheckinResult:
        """
        Writes today's entry and moves streak and points.

        A second check-in on the same day replaces the first one: the streak
        step and the points of the earlier entry are undone before the new
        entry is applied.
        """
        today = self.clock.today()
        mood = Mood(mood)
        target_met = is_target_met(habit, value)
        previous = get_status(habit, today)

        # ── Streak before today's check-in ──
        base_streak = habit.current_streak
        if previous and previous.done and previous.replacement_done:
            base_streak = max(0, habit.current_streak - 1)

        early = target_met and is_early_completion(habit, self.clock.now())
        points = calculate_points(habit, target_met, replacement_done, mood, early, streak=base_streak)

        upsert_status(habit, DailyStatus(
            date=today,
            done=target_met,
            value=value,
            mood=mood,
            points_earned=points,
            replacement_done=replacement_done,
            streak_frozen=previous.streak_frozen if previous else None,
        ))

        habit.current_streak = base_streak
        streak_updated = advance_streak(habit, target_met, replacement_done, today)

        previous_points = previous.points_earned if previous else 0
        habit.total_points = max(0, habit.total_points + points - previous_points)

        return CheckinResult(
            habit=habit,
            points_earned=points,
            streak_updated=streak_updated,
            target_met=target_met,
            is_early=early,
        )

    @synced
    def record_daily_progress(self, habit_id: int, value: float, mood: Mood,
                              replacement_done: bool, user_id: Optional[int] = None) -> CheckinResult:
        """Entry + streak + habit points, saved. Profile, badges and challenges are left alone."""
        habit = self.session.get_habit(habit_id, user_id)
        result = self._apply_progress(habit, value, mood, replacement_done)
        self.session.commit()
        return result

    @synced
    def check_in(self, habit_id: int, value: float, mood: Mood = Mood.neutral,
                 replacement_done: bool = False, user_id: Optional[int] = None) -> CheckinSummary:
        """
        Full check-in:
          1. entry, streak and habit points (record_daily_progress)
          2. profile points
          3. perfect-day bonus (paid once per day, taken back if the day
             stops being perfect)
          4. badges
          5. challenge progress (+ challenger badge)
        """
        user = self.session.resolve_user(user_id)
        habit = self.session.get_habit(habit_id, user.id)
        profile = user.profile
        today = self.clock.today()
        now = self.clock.now()

        self.challenges.refresh_challenges_if_needed(user.id)

        previous = get_status(habit, today)
        previous_points = previous.points_earned if previous else 0
        was_done = bool(previous and previous.done)
        had_replacement = bool(previous and previous.replacement_done)

        new_badges = []
        comeback = check_comeback_badge(profile, habit, today, now)
        if comeback:
            new_badges.append(comeback)

        result = self._apply_progress(habit, value, mood, replacement_done)
        points_delta = result.points_earned - previous_points
        profile.total_points = max(0, profile.total_points + points_delta)

        # ── Perfect day ──
        active_habits = [h for h in user.habits if h.is_active]
        perfect_day_bonus = 0
        if is_perfect_day(active_habits, today):
            if profile.last_perfect_day != today:
                perfect_day_bonus = calculate_perfect_day_bonus()
                profile.total_points += perfect_day_bonus
                profile.last_perfect_day = today
                logger.info(f"🌈 Perfect day for {profile.name} (+{perfect_day_bonus})")
        elif profile.last_perfect_day == today:
            perfect_day_bonus = -calculate_perfect_day_bonus()
            profile.total_points = max(0, profile.total_points + perfect_day_bonus)
            profile.last_perfect_day = None
            logger.info(f"↩️ Perfect day of {profile.name} undone ({perfect_day_bonus})")

        # ── Badges ──
        new_badges += check_streak_badges(habit, profile, now)
        new_badges += check_points_badges(profile, now)
        for badge in (
            check_early_bird_badge(profile, result.is_early, now),
            check_perfect_week_badge(profile, active_habits, today, now),
        ):
            if badge:
                new_badges.append(badge)

        # ── Challenges ──
        completed = []
        if result.target_met and not was_done:
            completed += self.challenges.update_challenge_progress(ChallengeType.streak, 1, active_habits, user.id)
            if result.is_early:
                completed += self.challenges.update_challenge_progress(ChallengeType.early, 1, active_habits, user.id)
        if replacement_done and not had_replacement:
            completed += self.challenges.update_challenge_progress(ChallengeType.replacement, 1, active_habits, user.id)
        completed += self.challenges.update_challenge_progress(
            ChallengeType.points, max(0, points_delta), active_habits, user.id
        )
        challenger = self.challenges.check_challenger_badge(user.id)
        if challenger:
            new_badges.append(challenger)

        self.session.commit()
        logger.info(
            f"📝 {profile.name} checked in '{habit.name}': value={value} "
            f"met={result.target_met} +{result.points_earned} pts, streak {habit.current_streak}"
        )
        return CheckinSummary(
            habit=result.habit,
            points_earned=result.points_earned,
            streak_updated=result.streak_updated,
            target_met=result.target_met,
            is_early=result.is_early,
            perfect_day_bonus=perfect_day_bonus,
            new_badges=new_badges,
            completed_challenges=completed,
        )

    # =========================================================================
    # ===================== STATS =============================================
    # =========================================================================

    @synced
    def get_points_summary(self, user_id: Optional[int] = None) -> dict:
        user = self.session.resolve_user(user_id)
        today = self.clock.today()
        return {
            "user_id": user.id,
            "today": points_today(user.habits, today),
            "this_week": points_this_week(user.habits, today),
            "total": user.profile.total_points,
            "challenge_rewards": self.challenges.get_completed_challenge_rewards(user.id),
        }

    @synced
    def get_streak_summary(self, user_id: Optional[int] = None) -> dict:
        return get_streak_summary(self.session.resolve_user(user_id).habits)

    @synced
    def get_leaderboard(self, user_id: Optional[int] = None) -> list[dict]:
        return habit_leaderboard(self.session.resolve_user(user_id).habits)

    # =========================================================================
    # ===================== CHALLENGES ========================================
    # =========================================================================

    @synced
    def get_challenges(self, user_id: Optional[int] = None) -> list[MiniChallenge]:
        """Current batch, replaced first if it expired"""
        user = self.session.resolve_user(user_id)
        if self.challenges.refresh_challenges_if_needed(user.id):
            self.session.commit()
        return self.challenges.get_all_challenges(user.id)

    @synced
    def get_challenge_overview(self, user_id: Optional[int] = None) -> dict:
        """The batch with its progress %, days left and rewards earned so far"""
        challenges = self.get_challenges(user_id)
        return {
            "challenges": [
                {**c.model_dump(mode="json"), "progress": self.challenges.get_challenge_progress(c)}
                for c in challenges
            ],
            "days_remaining": self.challenges.get_days_remaining(user_id),
            "completed_rewards": self.challenges.get_completed_challenge_rewards(user_id),
        }

    @synced
    def regenerate_challenges(self, user_id: Optional[int] = None) -> list[MiniChallenge]:
        challenges = self.challenges.generate_weekly_challenges(user_id)
        self.session.commit()
        return challenges

    # =========================================================================
    # ===================== COMPARISON & BATTLES ==============================
    # =========================================================================

    def _pair(self, user1_id: int, user2_id: int) -> tuple[User, User]:
        if user1_id == user2_id:
            raise ValueError("Pick two different users")
        return self.session.get_user(user1_id), self.session.get_user(user2_id)

    @synced
    def compare_users(self, user1_id: int, user2_id: int) -> UserComparison:
        user1, user2 = self._pair(user1_id, user2_id)
        return compare_users(user1, user2, self.clock.today())

    @synced
    def get_habit_comparison(self, user1_id: int, user2_id: int) -> list[HabitComparisonItem]:
        user1, user2 = self._pair(user1_id, user2_id)
        return get_habit_comparison(user1, user2, self.clock.today())

    @synced
    def create_battle(self, user1_id: int, user2_id: int, habit_name: Optional[str] = None) -> HabitBattle:
        battle = self.battles.create_battle(user1_id, user2_id, habit_name)
        self.session.commit()
        return battle

    @synced
    def update_battle_progress(self, battle_id: str, user_id: int, value: float) -> HabitBattle:
        battle = self.battles.update_battle_progress(battle_id, user_id, value)
        self.session.commit()
        return battle

    @synced
    def get_todays_battle(self) -> Optional[HabitBattle]:
        had_battle = self.state.active_battle is not None
        battle = self.battles.get_todays_battle()
        if had_battle and battle is None:
            self.session.commit()
        return battle

    @synced
    def get_battle_history(self) -> list[HabitBattle]:
        return self.battles.get_battle_history()

    @synced
    def get_user_battle_record(self, user_id: int) -> BattleRecord:
        self.session.get_user(user_id)
        return self.battles.get_user_battle_record(user_id)

    # =========================================================================
    # ===================== COACH =============================================
    # =========================================================================

    @synced
    def get_coach_message(self, habit_id: int, user_id: Optional[int] = None) -> dict:
        habit = self.session.get_habit(habit_id, user_id)
        return self.coach.get_coach_message(habit, self.clock.now())
