"""
=============================================================================
COMPARISON.PY — Head-to-head between two users
=============================================================================
Two parts:

  1. COMPARISON → read-only: who is ahead today, overall, on streaks
                  and habit by habit
  2. BATTLES    → one timed duel per day on a habit template

Battle lifecycle:
  create_battle()          → active, both participants at 0
  update_battle_progress() → sets a value, recomputes "completed"
  complete_battle()        → completed (winner) or draw, moved to history

A battle auto-finalizes when both participants complete, when a progress
update arrives at 22:00 or later, or when it is read on a later day.
"""

import random
import logging
from datetime import date
from typing import Optional

from schemas import (
    User, Habit, HabitBattle, BattleParticipant, BattleStatus, BattleRecord,
    UserComparison, UserComparisonData, HabitComparisonItem, HabitComparisonSide,
)
from constants import (
    HABIT_SUGGESTIONS, BATTLE_BONUS_POINTS, BATTLE_CUTOFF_HOUR,
    BATTLE_REDUCE_EXCEPTION, find_suggestion,
)
from gamification import get_status, points_today
from errors import NotFoundError
from storage import StateSession

logger = logging.getLogger("habitduel.battles")


# =============================================================================
# ===================== COMPARISON ============================================
# =============================================================================

def _round_half_up(x: float) -> int:
    return int(x + 0.5)


def build_comparison_data(user: User, today: date) -> UserComparisonData:
    """Totals across every habit of the user, paused ones included"""
    habits = user.habits
    completed = 0
    for habit in habits:
        status = get_status(habit, today)
        if status and status.done:
            completed += 1

    return UserComparisonData(
        user_id=user.id,
        user_name=user.profile.name,
        user_avatar=user.profile.avatar,
        user_color=user.profile.color,
        total_points=user.profile.total_points,
        points_today=points_today(habits, today),
        total_streaks=sum(h.current_streak for h in habits),
        longest_streak=user.profile.longest_streak,
        habits_completed_today=completed,
        habits_total=len(habits),
        completion_rate=_round_half_up(completed * 100 / len(habits)) if habits else 0,
    )


def _higher(a_id: int, a: float, b_id: int, b: float) -> Optional[int]:
    if a > b:
        return a_id
    if b > a:
        return b_id
    return None


def compare_users(user1: User, user2: User, today: date) -> UserComparison:
    """
    today_winner   → more points today, then better completion rate
    overall_winner → more total points
    streak_winner  → longer longest streak
    A tie on everything → None
    """
    d1 = build_comparison_data(user1, today)
    d2 = build_comparison_data(user2, today)

    today_winner = _higher(d1.user_id, d1.points_today, d2.user_id, d2.points_today)
    if today_winner is None:
        today_winner = _higher(d1.user_id, d1.completion_rate, d2.user_id, d2.completion_rate)

    return UserComparison(
        user1=d1,
        user2=d2,
        today_winner=today_winner,
        overall_winner=_higher(d1.user_id, d1.total_points, d2.user_id, d2.total_points),
        streak_winner=_higher(d1.user_id, d1.longest_streak, d2.user_id, d2.longest_streak),
    )


def _comparison_side(habit: Optional[Habit], today: date) -> HabitComparisonSide:
    if habit is None:
        return HabitComparisonSide(has_habit=False)
    status = get_status(habit, today)
    return HabitComparisonSide(
        has_habit=True,
        streak=habit.current_streak,
        points=habit.total_points,
        completed_today=bool(status and status.done),
        today_value=status.value if status else 0,
    )


def _habit_winner(side1: HabitComparisonSide, side2: HabitComparisonSide) -> Optional[int]:
    # ── Only one of them tracks it ──
    if side1.has_habit != side2.has_habit:
        return 1 if side1.has_habit else 2
    # ── Done today beats not done ──
    if side1.completed_today != side2.completed_today:
        return 1 if side1.completed_today else 2
    # ── Then the streak ──
    return _higher(1, side1.streak, 2, side2.streak)


def get_habit_comparison(user1: User, user2: User, today: date) -> list[HabitComparisonItem]:
    """One row per habit name tracked by either user. winner is 1, 2 or None."""
    names = []
    for habit in user1.habits + user2.habits:
        if habit.name not in names:
            names.append(habit.name)

    items = []
    for name in names:
        h1 = next((h for h in user1.habits if h.name == name), None)
        h2 = next((h for h in user2.habits if h.name == name), None)
        side1 = _comparison_side(h1, today)
        side2 = _comparison_side(h2, today)
        items.append(HabitComparisonItem(
            habit_name=name,
            icon=(h1 or h2).icon,
            user1=side1,
            user2=side2,
            winner=_habit_winner(side1, side2),
        ))
    return items


# =============================================================================
# ===================== BATTLES ===============================================
# =============================================================================

def is_battle_eligible(template: dict) -> bool:
    """Build habits, plus the one reduce habit that races well"""
    return not template["is_reduce_habit"] or template["name"] == BATTLE_REDUCE_EXCEPTION


BATTLE_TEMPLATES = [s for s in HABIT_SUGGESTIONS if is_battle_eligible(s)]


def participant_completed(battle: HabitBattle, value: float) -> bool:
    if battle.is_reduce_habit:
        return value <= battle.target_value
    return value >= battle.target_value


class BattleEngine:
    """The daily battle and its history. Mutates the session state, never commits."""

    def __init__(self, session: StateSession, clock, rng: Optional[random.Random] = None):
        self.session = session
        self.clock = clock
        self.rng = rng or random.Random()

    def random_battle_template(self) -> dict:
        return self.rng.choice(BATTLE_TEMPLATES)

    def create_battle(self, user1_id: int, user2_id: int, habit_name: Optional[str] = None) -> HabitBattle:
        """
        Starts today's battle. One battle per day: if today's is still
        running it is returned as is.
        An unknown habit_name falls back to a random eligible template.
        """
        if user1_id == user2_id:
            raise ValueError("A battle needs two different users")
        user1 = self.session.get_user(user1_id)
        user2 = self.session.get_user(user2_id)

        current = self.get_todays_battle()
        if current is not None:
            return current

        template = (find_suggestion(habit_name) if habit_name else None) or self.random_battle_template()
        stamp = int(self.clock.now().timestamp() * 1000)

        battle = HabitBattle(
            id=f"battle-{stamp}",
            date=self.clock.today(),
            habit_name=template["name"],
            habit_category=template["category"],
            target_value=template["default_target"],
            target_unit=template["target_unit"],
            is_reduce_habit=template["is_reduce_habit"],
            participants=[
                BattleParticipant(user_id=u.id, user_name=u.profile.name, user_avatar=u.profile.avatar)
                for u in (user1, user2)
            ],
            bonus_points=BATTLE_BONUS_POINTS,
            status=BattleStatus.active,
        )
        self.session.ensure_loaded().active_battle = battle
        logger.info(f"⚔️ Battle '{battle.habit_name}': {user1.profile.name} vs {user2.profile.name}")
        return battle

    def update_battle_progress(self, battle_id: str, user_id: int, value: float) -> HabitBattle:
        battle = self.get_todays_battle()
        if battle is None or battle.id != battle_id:
            raise NotFoundError("Battle", battle_id)

        participant = next((p for p in battle.participants if p.user_id == user_id), None)
        if participant is None:
            raise NotFoundError("Battle participant", user_id)

        participant.value = value
        participant.completed = participant_completed(battle, value)

        all_done = all(p.completed for p in battle.participants)
        if all_done or self.clock.now().hour >= BATTLE_CUTOFF_HOUR:
            self.complete_battle(battle)
        return battle

    def complete_battle(self, battle: HabitBattle) -> HabitBattle:
        """
        Picks the winner and archives the battle:
          only one completed → that one
          both completed     → better value (lower when reducing), equal → draw
          none completed     → draw
        """
        p1, p2 = battle.participants
        winner = None
        if p1.completed and not p2.completed:
            winner = p1
        elif p2.completed and not p1.completed:
            winner = p2
        elif p1.completed and p2.completed and p1.value != p2.value:
            p1_better = p1.value < p2.value if battle.is_reduce_habit else p1.value > p2.value
            winner = p1 if p1_better else p2

        if winner is not None:
            battle.winner_id = winner.user_id
            battle.status = BattleStatus.completed
            winner.points_earned = battle.bonus_points
            self.session.get_user(winner.user_id).profile.total_points += battle.bonus_points
            logger.info(f"🏆 {winner.user_name} won the '{battle.habit_name}' battle (+{battle.bonus_points})")
        else:
            battle.winner_id = None
            battle.status = BattleStatus.draw
            logger.info(f"🤝 '{battle.habit_name}' battle ended in a draw")

        state = self.session.ensure_loaded()
        state.battles.append(battle)
        if state.active_battle is not None and state.active_battle.id == battle.id:
            state.active_battle = None
        return battle

    def get_todays_battle(self) -> Optional[HabitBattle]:
        """Today's battle. A battle left over from another day is finalized here."""
        state = self.session.ensure_loaded()
        battle = state.active_battle
        if battle is None:
            return None
        if battle.date != self.clock.today():
            self.complete_battle(battle)
            return None
        return battle

    def get_battle_history(self) -> list[HabitBattle]:
        return self.session.ensure_loaded().battles

    def get_user_battle_record(self, user_id: int) -> BattleRecord:
        record = BattleRecord()
        for battle in self.get_battle_history():
            if battle.status == BattleStatus.draw:
                record.draws += 1
            elif battle.winner_id == user_id:
                record.wins += 1
            elif any(p.user_id == user_id for p in battle.participants):
                record.losses += 1
        return record
