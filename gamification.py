"""
=============================================================================
GAMIFICATION.PY — Streaks, points and badges
=============================================================================
Handles:
  - Streaks (advance / reset / freeze / missed days)
  - Points (per check-in formula + aggregates)
  - Badges (threshold tables, granted once, never revoked)

Every function here is plain computation on the schemas objects: they
mutate the habit/profile they receive and return what changed. Nothing is
saved here; the caller commits the session.

"Today" and "now" always come from the caller (the clock), never from
datetime.now(), so the rules can be tested at any date.
"""

import math
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from schemas import Habit, DailyStatus, UserProfile, Badge, Mood
from constants import (
    POINTS_CONFIG, BADGE_DEFINITIONS, FREEZE_COOLDOWN_DAYS,
    COMEBACK_BREAK_DAYS, PERFECT_WEEK_DAYS, find_badge_definition,
)

logger = logging.getLogger("habitduel.gamification")


# =============================================================================
# ===================== DAILY STATUS ==========================================
# =============================================================================

def is_target_met(habit: Habit, value: float) -> bool:
    """
    Reduce habit → value <= target (3 cigarettes with a target of 5 is a success)
    Build habit  → value >= target
    """
    if habit.is_reduce_habit:
        return value <= habit.target_value
    return value >= habit.target_value


def get_status(habit: Habit, day: date) -> Optional[DailyStatus]:
    """The habit's entry for that day, if any"""
    return next((s for s in habit.daily_status if s.date == day), None)


def upsert_status(habit: Habit, status: DailyStatus) -> DailyStatus:
    """Replaces the entry for status.date or inserts it, keeping date order"""
    for i, existing in enumerate(habit.daily_status):
        if existing.date == status.date:
            habit.daily_status[i] = status
            return status
    habit.daily_status.append(status)
    habit.daily_status.sort(key=lambda s: s.date)
    return status


# =============================================================================
# ===================== STREAKS ===============================================
# =============================================================================

def is_streak_frozen(habit: Habit, day: date) -> bool:
    status = get_status(habit, day)
    return bool(status and status.streak_frozen)


def advance_streak(habit: Habit, target_met: bool, replacement_done: bool, today: date) -> bool:
    """
    Moves the streak after a check-in.

      target met AND replacement done → streak +1 (and best streak follows)
      otherwise, day frozen           → streak unchanged
      otherwise                       → streak = 0

    Returns True when the streak advanced.
    """
    if target_met and replacement_done:
        habit.current_streak += 1
        if habit.current_streak > habit.best_streak:
            habit.best_streak = habit.current_streak
        return True

    if not is_streak_frozen(habit, today):
        if habit.current_streak > 0:
            logger.info(f"💔 Streak of '{habit.name}' reset (was {habit.current_streak})")
        habit.current_streak = 0
    return False


def days_since_last_freeze(habit: Habit, today: date) -> Optional[int]:
    if habit.last_streak_freeze_date is None:
        return None
    return (today - habit.last_streak_freeze_date).days


def is_freeze_available(habit: Habit, today: date) -> bool:
    elapsed = days_since_last_freeze(habit, today)
    return elapsed is None or elapsed >= FREEZE_COOLDOWN_DAYS


def days_until_freeze_available(habit: Habit, today: date) -> int:
    elapsed = days_since_last_freeze(habit, today)
    if elapsed is None:
        return 0
    return max(0, FREEZE_COOLDOWN_DAYS - elapsed)


def use_freeze(habit: Habit, today: date) -> bool:
    """
    Protects today's streak from a reset. Once every 7 days.

    Returns False (and changes nothing) during the cooldown.
    A frozen day never adds to the streak, it only prevents the reset.
    """
    if not is_freeze_available(habit, today):
        return False

    habit.last_streak_freeze_date = today
    status = get_status(habit, today)
    if status:
        status.streak_frozen = True
    else:
        upsert_status(habit, DailyStatus(
            date=today,
            done=False,
            value=0,
            mood=Mood.neutral,
            points_earned=0,
            replacement_done=False,
            streak_frozen=True,
        ))

    logger.info(f"🧊 Streak freeze used on '{habit.name}' ({today.isoformat()})")
    return True


def check_missed_days(habits: list[Habit], today: date) -> list[Habit]:
    """
    Resets the streak of every habit that was missed yesterday.

    Missed = no entry for yesterday, or an entry not done and not frozen.
    Has to run at startup: it is the only place that notices a day in which
    the app was never opened.
    Returns the habits whose streak went back to zero.
    """
    yesterday = today - timedelta(days=1)
    reset = []
    for habit in habits:
        status = get_status(habit, yesterday)
        missed = status is None or (not status.done and not status.streak_frozen)
        if missed and habit.current_streak > 0:
            logger.info(f"⏰ '{habit.name}' missed on {yesterday.isoformat()}, streak {habit.current_streak} → 0")
            habit.current_streak = 0
            reset.append(habit)
    return reset


def get_streak_summary(habits: list[Habit]) -> dict:
    if not habits:
        return {
            "longest_current": 0,
            "best_ever": 0,
            "total_active_streaks": 0,
            "habits_with_streaks": 0,
        }
    return {
        "longest_current": max(h.current_streak for h in habits),
        "best_ever": max(h.best_streak for h in habits),
        "total_active_streaks": sum(h.current_streak for h in habits),
        "habits_with_streaks": sum(1 for h in habits if h.current_streak > 0),
    }


# =============================================================================
# ===================== POINTS ================================================
# =============================================================================

def calculate_points(
    habit: Habit,
    target_met: bool,
    replacement_done: bool,
    mood: Mood,
    is_early_completion: bool = False,
    streak: Optional[int] = None,
) -> int:
    """
    Points for one check-in:

      target missed → 0, whatever the rest
      otherwise     → 10
                      + 5 if the replacement was done
                      + floor(streak * 0.5)
                      + mood bonus (Happy 2, Neutral 0, Sad 3, Stressed 3)
                      + 5 if completed before the time window

    The streak is the one BEFORE this check-in advances it. `streak`
    overrides habit.current_streak when the caller already moved it.
    """
    if not target_met:
        return 0

    if streak is None:
        streak = habit.current_streak

    points = POINTS_CONFIG["base_complete"]
    if replacement_done:
        points += POINTS_CONFIG["replacement_bonus"]
    points += math.floor(streak * POINTS_CONFIG["streak_multiplier"])
    points += POINTS_CONFIG["mood_bonus"].get(Mood(mood).value, 0)
    if is_early_completion:
        points += POINTS_CONFIG["early_bonus"]
    return points


def calculate_perfect_day_bonus() -> int:
    return POINTS_CONFIG["perfect_day_bonus"]


def is_early_completion(habit: Habit, now: datetime) -> bool:
    """Checked in strictly before the habit's time window opens"""
    if habit.time_window is None:
        return False
    return now.strftime("%H:%M") < habit.time_window.start


def is_in_time_window(habit: Habit, now: datetime) -> bool:
    if habit.time_window is None:
        return False
    current = now.strftime("%H:%M")
    return habit.time_window.start <= current <= habit.time_window.end


def is_perfect_day(habits: list[Habit], day: date) -> bool:
    """Every active habit done that day (and at least one active habit)"""
    active = [h for h in habits if h.is_active]
    if not active:
        return False
    for habit in active:
        status = get_status(habit, day)
        if not status or not status.done:
            return False
    return True


def points_today(habits: list[Habit], today: date) -> int:
    total = 0
    for habit in habits:
        status = get_status(habit, today)
        if status:
            total += status.points_earned
    return total


def points_this_week(habits: list[Habit], today: date) -> int:
    """Trailing 7 days, today included"""
    week_start = today - timedelta(days=6)
    return sum(
        s.points_earned
        for h in habits
        for s in h.daily_status
        if week_start <= s.date <= today
    )


def habit_leaderboard(habits: list[Habit]) -> list[dict]:
    """Habits by total points, highest first. Ties keep their order."""
    ranked = sorted(habits, key=lambda h: h.total_points, reverse=True)
    return [
        {
            "rank": i + 1,
            "habit_id": h.id,
            "name": h.name,
            "icon": h.icon,
            "total_points": h.total_points,
            "current_streak": h.current_streak,
        }
        for i, h in enumerate(ranked)
    ]


# =============================================================================
# ===================== BADGES ================================================
# =============================================================================

def has_badge(profile: UserProfile, badge_id: str) -> bool:
    return any(b.id == badge_id for b in profile.badges)


def grant_badge(profile: UserProfile, badge_id: str, now: datetime) -> Optional[Badge]:
    """
    Copies a badge definition into the profile.
    Already earned → None (earned_at of the first grant is kept).
    """
    if has_badge(profile, badge_id):
        return None
    definition = find_badge_definition(badge_id)
    if definition is None:
        raise KeyError(f"Unknown badge: {badge_id}")

    badge = Badge(**definition, earned_at=now)
    profile.badges.append(badge)
    logger.info(f"🏆 {profile.name} earned: {badge.name}")
    return badge


def _grant_thresholds(profile: UserProfile, badge_type: str, current: int, now: datetime) -> list[Badge]:
    new_badges = []
    for definition in BADGE_DEFINITIONS:
        if definition["type"] != badge_type:
            continue
        if current >= definition["requirement"]:
            badge = grant_badge(profile, definition["id"], now)
            if badge:
                new_badges.append(badge)
    return new_badges


def check_streak_badges(habit: Habit, profile: UserProfile, now: datetime) -> list[Badge]:
    """Streak badges for this habit's current streak. Also raises longest_streak."""
    if habit.current_streak > profile.longest_streak:
        profile.longest_streak = habit.current_streak
    return _grant_thresholds(profile, "streak", habit.current_streak, now)


def check_points_badges(profile: UserProfile, now: datetime) -> list[Badge]:
    return _grant_thresholds(profile, "points", profile.total_points, now)


def check_habit_badges(profile: UserProfile, now: datetime) -> list[Badge]:
    return _grant_thresholds(profile, "habits", profile.total_habits, now)


def check_perfect_week_badge(profile: UserProfile, habits: list[Habit], today: date, now: datetime) -> Optional[Badge]:
    """Seven perfect days in a row, ending today"""
    if has_badge(profile, "perfect-week"):
        return None
    for offset in range(PERFECT_WEEK_DAYS):
        if not is_perfect_day(habits, today - timedelta(days=offset)):
            return None
    return grant_badge(profile, "perfect-week", now)


def check_comeback_badge(profile: UserProfile, habit: Habit, today: date, now: datetime) -> Optional[Badge]:
    """
    Back after a break: the previous entry of this habit is followed by
    3 or more days without any entry before today.
    A habit with no history yet is a start, not a comeback.
    """
    if has_badge(profile, "comeback"):
        return None
    previous = [s.date for s in habit.daily_status if s.date < today]
    if not previous:
        return None
    days_without_entry = (today - max(previous)).days - 1
    if days_without_entry < COMEBACK_BREAK_DAYS:
        return None
    return grant_badge(profile, "comeback", now)


def check_early_bird_badge(profile: UserProfile, was_early: bool, now: datetime) -> Optional[Badge]:
    if not was_early:
        return None
    return grant_badge(profile, "early-bird", now)
