"""Streak rules: advance, reset, freeze, missed days"""

from datetime import timedelta

import pytest

from gamification import (
    is_target_met, advance_streak, use_freeze, check_missed_days,
    is_freeze_available, days_until_freeze_available, get_streak_summary,
    get_status, upsert_status,
)


# ─────────────────────────────────────────────────────────────────────────────
# TARGET POLARITY
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("is_reduce, target, value, expected", [
    (True, 5, 3, True),
    (True, 5, 5, True),
    (True, 5, 6, False),
    (True, 0, 0, True),
    (False, 30, 35, True),
    (False, 30, 30, True),
    (False, 30, 20, False),
])
def test_target_met_follows_polarity(make_habit, is_reduce, target, value, expected):
    habit = make_habit(is_reduce_habit=is_reduce, target_value=target)
    assert is_target_met(habit, value) is expected


# ─────────────────────────────────────────────────────────────────────────────
# ADVANCE
# ─────────────────────────────────────────────────────────────────────────────

class TestAdvanceStreak:

    def test_target_and_replacement_advance(self, make_habit, clock):
        habit = make_habit(current_streak=2, best_streak=2)
        assert advance_streak(habit, True, True, clock.today()) is True
        assert habit.current_streak == 3
        assert habit.best_streak == 3

    def test_best_streak_not_lowered(self, make_habit, clock):
        habit = make_habit(current_streak=1, best_streak=10)
        advance_streak(habit, True, True, clock.today())
        assert habit.current_streak == 2
        assert habit.best_streak == 10

    def test_target_without_replacement_resets(self, make_habit, clock):
        habit = make_habit(current_streak=4, best_streak=4)
        assert advance_streak(habit, True, False, clock.today()) is False
        assert habit.current_streak == 0
        assert habit.best_streak == 4

    def test_missed_target_resets(self, make_habit, clock):
        habit = make_habit(current_streak=4, best_streak=6)
        advance_streak(habit, False, True, clock.today())
        assert habit.current_streak == 0

    def test_frozen_day_keeps_streak(self, make_habit, make_status, clock):
        habit = make_habit(current_streak=4, best_streak=4)
        upsert_status(habit, make_status(clock.today(), done=False, frozen=True))
        assert advance_streak(habit, False, False, clock.today()) is False
        assert habit.current_streak == 4

    def test_best_streak_never_below_current(self, make_habit, clock):
        habit = make_habit()
        outcomes = [(True, True), (True, True), (False, True), (True, True),
                    (True, False), (True, True), (True, True), (True, True)]
        for target_met, replacement in outcomes:
            advance_streak(habit, target_met, replacement, clock.today())
            assert habit.best_streak >= habit.current_streak
        assert habit.current_streak == 3
        assert habit.best_streak == 3


# ─────────────────────────────────────────────────────────────────────────────
# FREEZE
# ─────────────────────────────────────────────────────────────────────────────

class TestFreeze:

    def test_freeze_creates_frozen_entry(self, make_habit, clock):
        habit = make_habit(current_streak=5)
        assert use_freeze(habit, clock.today()) is True

        status = get_status(habit, clock.today())
        assert status.streak_frozen is True
        assert status.done is False
        assert status.value == 0
        assert status.points_earned == 0
        assert habit.last_streak_freeze_date == clock.today()
        assert habit.current_streak == 5

    def test_freeze_marks_existing_entry(self, make_habit, make_status, clock):
        habit = make_habit()
        upsert_status(habit, make_status(clock.today(), done=False, value=10))
        use_freeze(habit, clock.today())

        assert len(habit.daily_status) == 1
        assert habit.daily_status[0].streak_frozen is True
        assert habit.daily_status[0].value == 10

    def test_second_freeze_within_cooldown_denied(self, make_habit, clock):
        habit = make_habit()
        first_day = clock.today()
        assert use_freeze(habit, first_day) is True
        assert use_freeze(habit, first_day + timedelta(days=6)) is False
        assert habit.last_streak_freeze_date == first_day
        assert get_status(habit, first_day + timedelta(days=6)) is None

    def test_freeze_available_after_seven_days(self, make_habit, clock):
        habit = make_habit()
        use_freeze(habit, clock.today())
        assert use_freeze(habit, clock.today() + timedelta(days=7)) is True

    def test_days_until_available(self, make_habit, clock):
        habit = make_habit()
        assert is_freeze_available(habit, clock.today())
        assert days_until_freeze_available(habit, clock.today()) == 0

        use_freeze(habit, clock.today())
        assert days_until_freeze_available(habit, clock.today()) == 7
        assert days_until_freeze_available(habit, clock.today() + timedelta(days=5)) == 2
        assert days_until_freeze_available(habit, clock.today() + timedelta(days=30)) == 0


# ─────────────────────────────────────────────────────────────────────────────
# MISSED DAYS
# ─────────────────────────────────────────────────────────────────────────────

class TestMissedDays:

    def test_no_entry_yesterday_resets(self, make_habit, clock):
        habit = make_habit(current_streak=5, best_streak=5)
        reset = check_missed_days([habit], clock.today())
        assert habit.current_streak == 0
        assert habit.best_streak == 5
        assert reset == [habit]

    def test_done_yesterday_keeps(self, make_habit, make_status, clock):
        habit = make_habit(current_streak=5, best_streak=5)
        upsert_status(habit, make_status(clock.today() - timedelta(days=1), done=True))
        assert check_missed_days([habit], clock.today()) == []
        assert habit.current_streak == 5

    def test_failed_yesterday_resets(self, make_habit, make_status, clock):
        habit = make_habit(current_streak=5, best_streak=5)
        upsert_status(habit, make_status(clock.today() - timedelta(days=1), done=False))
        check_missed_days([habit], clock.today())
        assert habit.current_streak == 0

    def test_frozen_yesterday_keeps(self, make_habit, make_status, clock):
        habit = make_habit(current_streak=5, best_streak=5)
        upsert_status(habit, make_status(clock.today() - timedelta(days=1), done=False, frozen=True))
        check_missed_days([habit], clock.today())
        assert habit.current_streak == 5


def test_daily_status_unique_and_ordered(make_habit, make_status, clock):
    habit = make_habit()
    today = clock.today()
    upsert_status(habit, make_status(today, value=1))
    upsert_status(habit, make_status(today - timedelta(days=2), value=2))
    upsert_status(habit, make_status(today, value=3))

    assert [s.date for s in habit.daily_status] == [today - timedelta(days=2), today]
    assert get_status(habit, today).value == 3


def test_streak_summary(make_habit):
    assert get_streak_summary([]) == {
        "longest_current": 0, "best_ever": 0,
        "total_active_streaks": 0, "habits_with_streaks": 0,
    }
    habits = [
        make_habit(current_streak=3, best_streak=8),
        make_habit(current_streak=0, best_streak=2),
        make_habit(current_streak=5, best_streak=5),
    ]
    assert get_streak_summary(habits) == {
        "longest_current": 5, "best_ever": 8,
        "total_active_streaks": 8, "habits_with_streaks": 2,
    }
