"""Coach messages and replacement suggestions"""

import random

import pytest

from schemas import Mood
from coach import Coach, FALLBACK_TIP, get_streak_encouragement
from constants import COACH_TIPS
from gamification import upsert_status


@pytest.fixture
def coach():
    return Coach(random.Random(7))


def test_new_habit_gets_a_tip(coach, make_habit, clock):
    message = coach.get_coach_message(make_habit(), clock.now())
    assert message["type"] == "tip"
    assert message["message"] in COACH_TIPS["new-habit"]


def test_milestone_is_celebrated(coach, make_habit, make_status, clock):
    habit = make_habit(current_streak=7, best_streak=7)
    upsert_status(habit, make_status(clock.today()))
    message = coach.get_coach_message(habit, clock.now())
    assert message["type"] == "celebration"
    assert "7-day streak" in message["message"]


def test_broken_streak_is_encouraged(coach, make_habit, make_status, clock):
    habit = make_habit(current_streak=0, best_streak=5)
    upsert_status(habit, make_status(clock.today(), done=False))
    assert coach.get_coach_message(habit, clock.now())["type"] == "encouragement"


def test_stressed_mood(coach, make_habit, make_status, clock):
    habit = make_habit(current_streak=2, best_streak=2)
    upsert_status(habit, make_status(clock.today(), mood=Mood.stressed))
    message = coach.get_coach_message(habit, clock.now())
    assert message["message"] in COACH_TIPS["mood-stressed"]


def test_unknown_situation_falls_back(coach):
    assert coach.get_tip("nothing-like-this") == FALLBACK_TIP


@pytest.mark.parametrize("mood, expected", [
    (Mood.stressed, "Read a book"),
    (Mood.sad, "Go outside"),
    (Mood.happy, "Do a hobby"),
    (Mood.neutral, "Read a book"),
])
def test_replacement_by_mood(coach, mood, expected):
    assert coach.get_replacement_suggestion("reduce screen time", mood) == expected


def test_replacement_for_custom_habit(coach):
    assert coach.get_replacement_suggestion("Juggling", Mood.sad) == "Take a short walk or call a friend"


@pytest.mark.parametrize("streak, fragment", [
    (0, "Start your streak"),
    (1, "1 day down"),
    (10, "One week+"),
    (150, "LEGENDARY"),
])
def test_streak_encouragement(streak, fragment):
    assert fragment in get_streak_encouragement(streak)
