"""
=============================================================================
CHALLENGES.PY — Weekly mini challenges
=============================================================================
Every user has a batch of 3 challenges drawn from constants.DEFAULT_CHALLENGES.

Life of a batch:
  generate → 3 distinct templates, progress 0, window [today, today + 7)
  progress → check-ins feed update_challenge_progress()
  expiry   → once the window has passed, the whole batch is replaced
             (progress is discarded, completed or not)

Nothing here runs on a timer: expiry is noticed the next time someone
asks for the challenges (refresh_challenges_if_needed).
"""

import random
import logging
from datetime import timedelta
from typing import Optional

from schemas import MiniChallenge, ChallengeType, Habit, Badge
from constants import DEFAULT_CHALLENGES, CHALLENGES_PER_WEEK, CHALLENGE_WINDOW_DAYS
from gamification import is_perfect_day, grant_badge
from storage import StateSession

logger = logging.getLogger("habitduel.challenges")


class ChallengeEngine:
    """Mini challenges of each user. Mutates the session state, never commits."""

    def __init__(self, session: StateSession, clock, rng: Optional[random.Random] = None):
        self.session = session
        self.clock = clock
        self.rng = rng or random.Random()

    # ─────────────────────────────────────────────────────────────────────────
    # BATCHES
    # ─────────────────────────────────────────────────────────────────────────

    def generate_weekly_challenges(self, user_id: Optional[int] = None) -> list[MiniChallenge]:
        user = self.session.resolve_user(user_id)
        today = self.clock.today()
        stamp = int(self.clock.now().timestamp() * 1000)

        templates = self.rng.sample(DEFAULT_CHALLENGES, CHALLENGES_PER_WEEK)
        user.challenges = [
            MiniChallenge(
                id=f"challenge-{stamp}-{i}",
                start_date=today,
                end_date=today + timedelta(days=CHALLENGE_WINDOW_DAYS),
                current_value=0,
                is_completed=False,
                **template,
            )
            for i, template in enumerate(templates)
        ]
        logger.info(
            f"🎲 New challenges for {user.profile.name}: "
            f"{', '.join(c.title for c in user.challenges)}"
        )
        return user.challenges

    def refresh_challenges_if_needed(self, user_id: Optional[int] = None) -> bool:
        """
        Replaces the batch when there is none or its window is over.
        end_date is exclusive, so the batch expires ON end_date.
        Returns True when a new batch was generated.
        """
        user = self.session.resolve_user(user_id)
        if user.challenges and self.clock.today() < user.challenges[0].end_date:
            return False
        self.generate_weekly_challenges(user.id)
        return True

    def get_active_challenges(self, user_id: Optional[int] = None) -> list[MiniChallenge]:
        return [c for c in self.get_all_challenges(user_id) if not c.is_completed]

    def get_all_challenges(self, user_id: Optional[int] = None) -> list[MiniChallenge]:
        return self.session.resolve_user(user_id).challenges

    # ─────────────────────────────────────────────────────────────────────────
    # PROGRESS
    # ─────────────────────────────────────────────────────────────────────────

    def update_challenge_progress(
        self,
        challenge_type: ChallengeType,
        value: int = 1,
        habits: Optional[list[Habit]] = None,
        user_id: Optional[int] = None,
    ) -> list[MiniChallenge]:
        """
        Feeds an event into the challenges. Returns the ones completed by it.

        Two independent paths:
          1. challenges of `challenge_type` get `value` added
          2. perfect-day challenges complete whenever every given habit is
             done today, whatever `challenge_type` is
        """
        user = self.session.resolve_user(user_id)
        today = self.clock.today()
        challenge_type = ChallengeType(challenge_type)
        completed = []

        for challenge in user.challenges:
            if challenge.is_completed:
                continue

            if challenge.type == challenge_type:
                challenge.current_value += value
                if challenge.current_value >= challenge.target_value:
                    challenge.is_completed = True
                    completed.append(challenge)
                    continue

            if challenge.type == ChallengeType.perfect_day and habits and is_perfect_day(habits, today):
                challenge.current_value = 1
                challenge.is_completed = True
                completed.append(challenge)

        for challenge in completed:
            logger.info(f"🎖️ {user.profile.name} completed challenge '{challenge.title}' (+{challenge.reward})")
        return completed

    @staticmethod
    def get_challenge_progress(challenge: MiniChallenge) -> float:
        """Percentage, capped at 100"""
        if challenge.target_value <= 0:
            return 100.0
        return min(100.0, challenge.current_value * 100 / challenge.target_value)

    def get_days_remaining(self, user_id: Optional[int] = None) -> int:
        challenges = self.get_all_challenges(user_id)
        if not challenges:
            return 0
        remaining = (challenges[0].end_date - self.clock.today()).days
        return max(0, remaining)

    def get_completed_challenge_rewards(self, user_id: Optional[int] = None) -> int:
        return sum(c.reward for c in self.get_all_challenges(user_id) if c.is_completed)

    def check_challenger_badge(self, user_id: Optional[int] = None) -> Optional[Badge]:
        """Challenge Accepted → as soon as any challenge has been completed"""
        user = self.session.resolve_user(user_id)
        if not any(c.is_completed for c in user.challenges):
            return None
        return grant_badge(user.profile, "challenger", self.clock.now())
