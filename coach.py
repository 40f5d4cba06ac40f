"""
=============================================================================
COACH.PY — Rule-based habit coach
=============================================================================
Short messages picked from constants.COACH_TIPS according to what is going
on with a habit (new, milestone, broken streak, mood, time window...).

No external service: fixed rules + a random pick from a pool.
The random generator is injected so the picks can be reproduced.
"""

import random
from datetime import datetime
from typing import Optional

from schemas import Habit, Mood
from constants import (
    COACH_TIPS, DEFAULT_QUOTES, REPLACEMENT_ACTIVITIES, HABIT_SUGGESTIONS,
)
from gamification import get_status, is_in_time_window

FALLBACK_TIP = "Keep going! Every small step counts."

STREAK_MILESTONES = [3, 7, 14, 30, 60, 100]

MOOD_REPLACEMENTS = {
    "Happy": "Challenge yourself with something new!",
    "Sad": "Take a short walk or call a friend",
    "Stressed": "Take 5 deep breaths",
    "Neutral": "Drink a glass of water",
}

# Keywords that make a replacement fit a mood
CALMING_WORDS = ("breath", "walk", "water")
UPLIFTING_WORDS = ("talk", "call", "outside")


class Coach:

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def get_tip(self, situation: str, mood: Optional[Mood] = None) -> str:
        """A tip for the situation. A mood with its own pool takes priority."""
        tips = COACH_TIPS.get(situation)
        if mood is not None:
            tips = COACH_TIPS.get(f"mood-{Mood(mood).value.lower()}", tips)
        if not tips:
            return FALLBACK_TIP
        return self.rng.choice(tips)

    def get_coach_message(self, habit: Habit, now: datetime) -> dict:
        """
        First matching rule wins:
          no history        → tip for new habits
          streak milestone  → celebration
          streak lost       → encouragement
          mood of today     → mood tip
          inside the window → reminder
          otherwise         → generic tip
        """
        if not habit.daily_status:
            return {"type": "tip", "message": self.get_tip("new-habit"), "icon": "💡"}

        if habit.current_streak in STREAK_MILESTONES:
            return {
                "type": "celebration",
                "message": f"🎉 Amazing! {habit.current_streak}-day streak! {self.get_tip('streak-milestone')}",
                "icon": "🏆",
            }

        if habit.current_streak == 0 and habit.best_streak > 0:
            return {"type": "encouragement", "message": self.get_tip("streak-broken"), "icon": "💪"}

        status = get_status(habit, now.date())
        if status is not None:
            if status.mood in (Mood.stressed, Mood.sad):
                return {
                    "type": "tip",
                    "message": self.get_tip(f"mood-{status.mood.value.lower()}", status.mood),
                    "icon": "🌿" if status.mood == Mood.stressed else "💙",
                }
            if status.mood == Mood.happy:
                return {"type": "encouragement", "message": self.get_tip("mood-happy", Mood.happy), "icon": "☀️"}

        if is_in_time_window(habit, now):
            return {"type": "tip", "message": self.get_tip("time-window-active"), "icon": "⏰"}

        return {"type": "tip", "message": self.get_default_tip(habit), "icon": "✨"}

    def get_default_tip(self, habit: Habit) -> str:
        return self.rng.choice([
            f'You\'ve got this! Keep working on "{habit.name}"',
            f'Small progress is still progress with "{habit.name}"',
            f'Every day is a new chance to improve "{habit.name}"',
            f'Stay consistent with "{habit.name}" - results will follow!',
        ])

    def get_replacement_suggestion(self, habit_name: str, mood: Mood) -> str:
        """Replacement action for a suggested habit, chosen by mood"""
        mood = Mood(mood)
        suggestion = _find_suggestion_ignoring_case(habit_name)
        if suggestion is None:
            return MOOD_REPLACEMENTS[mood.value]

        replacements = suggestion["suggested_replacements"]
        if mood == Mood.stressed:
            return _first_with(replacements, CALMING_WORDS) or replacements[0]
        if mood == Mood.sad:
            return _first_with(replacements, UPLIFTING_WORDS) or replacements[0]
        if mood == Mood.happy:
            return replacements[-1]
        return replacements[0]

    def get_random_activity(self, kind: str = "calming") -> str:
        return self.rng.choice(REPLACEMENT_ACTIVITIES.get(kind, REPLACEMENT_ACTIVITIES["calming"]))

    def get_random_quote(self) -> dict:
        text, author = self.rng.choice(DEFAULT_QUOTES)
        return {"text": text, "author": author}


def _find_suggestion_ignoring_case(name: str):
    return next((s for s in HABIT_SUGGESTIONS if s["name"].lower() == name.lower()), None)


def _first_with(options: list[str], words: tuple) -> Optional[str]:
    return next((o for o in options if any(w in o.lower() for w in words)), None)


def get_streak_encouragement(streak: int) -> str:
    if streak == 0:
        return "Start your streak today! 🚀"
    if streak < 3:
        return f"{streak} day{'s' if streak > 1 else ''} down! Keep it going! 🌱"
    if streak < 7:
        return f"{streak} days! You're building momentum! 🔥"
    if streak < 14:
        return f"{streak} days! One week+ champion! ⚡"
    if streak < 30:
        return f"{streak} days! You're unstoppable! 🏆"
    if streak < 60:
        return f"{streak} days! Monthly master! 👑"
    return f"{streak} days! LEGENDARY! 💎"
