"""Weekly mini challenges"""

import random
from datetime import timedelta

import pytest

from schemas import MiniChallenge, ChallengeType
from challenges import ChallengeEngine
from gamification import upsert_status


@pytest.fixture
def challenges(session, clock, rng):
    return ChallengeEngine(session, clock, rng)


@pytest.fixture
def set_challenges(session, clock):
    """Replaces the current user's batch with hand-picked challenges"""
    def _set(*specs):
        today = clock.today()
        session.current_user().challenges = [
            MiniChallenge(
                id=f"c-{i}",
                title=f"Challenge {i}",
                description="",
                type=challenge_type,
                target_value=target,
                reward=reward,
                start_date=today,
                end_date=today + timedelta(days=7),
            )
            for i, (challenge_type, target, reward) in enumerate(specs)
        ]
        return session.current_user().challenges

    return _set


class TestGeneration:

    def test_three_fresh_distinct_challenges(self, challenges, clock):
        batch = challenges.generate_weekly_challenges()
        assert len(batch) == 3
        assert len({c.title for c in batch}) == 3
        assert len({c.id for c in batch}) == 3
        for c in batch:
            assert c.start_date == clock.today()
            assert c.end_date == c.start_date + timedelta(days=7)
            assert c.current_value == 0
            assert c.is_completed is False

    def test_always_three_for_any_seed(self, session, clock):
        for seed in range(20):
            engine = ChallengeEngine(session, clock, random.Random(seed))
            batch = engine.generate_weekly_challenges()
            assert len(batch) == 3
            assert len({c.type for c in batch}) == 3

    def test_generation_is_per_user(self, challenges, session):
        challenges.generate_weekly_challenges(user_id=2)
        assert len(session.get_user(2).challenges) == 3
        assert session.get_user(1).challenges == []


class TestRefresh:

    def test_empty_batch_is_generated(self, challenges, session):
        assert challenges.refresh_challenges_if_needed() is True
        assert len(session.current_user().challenges) == 3

    def test_batch_kept_inside_window(self, challenges, clock):
        batch = challenges.generate_weekly_challenges()
        ids = [c.id for c in batch]
        clock.advance(days=6)
        assert challenges.refresh_challenges_if_needed() is False
        assert [c.id for c in challenges.get_all_challenges()] == ids

    def test_expired_batch_replaced(self, challenges, clock):
        batch = challenges.generate_weekly_challenges()
        batch[0].current_value = 2
        clock.advance(days=7)
        assert challenges.refresh_challenges_if_needed() is True
        fresh = challenges.get_all_challenges()
        assert all(c.start_date == clock.today() for c in fresh)
        assert all(c.current_value == 0 for c in fresh)


class TestProgress:

    def test_matching_type_advances(self, challenges, set_challenges):
        set_challenges((ChallengeType.replacement, 5, 40), (ChallengeType.streak, 3, 50))
        assert challenges.update_challenge_progress(ChallengeType.replacement, 1) == []
        replacement, streak = challenges.get_all_challenges()
        assert replacement.current_value == 1
        assert streak.current_value == 0

    def test_completion_reported_once(self, challenges, set_challenges):
        set_challenges((ChallengeType.points, 50, 25))
        done = challenges.update_challenge_progress(ChallengeType.points, 60)
        assert [c.id for c in done] == ["c-0"]
        assert done[0].is_completed is True

        assert challenges.update_challenge_progress(ChallengeType.points, 10) == []
        assert challenges.get_all_challenges()[0].current_value == 60

    def test_perfect_day_completes_on_any_event(self, challenges, set_challenges, make_habit, make_status, clock):
        set_challenges((ChallengeType.perfect_day, 1, 30), (ChallengeType.early, 1, 20))
        habit = make_habit()
        upsert_status(habit, make_status(clock.today(), done=True))

        done = challenges.update_challenge_progress(ChallengeType.replacement, 1, [habit])
        assert [c.type for c in done] == [ChallengeType.perfect_day]
        assert done[0].current_value == 1

    def test_perfect_day_needs_every_habit(self, challenges, set_challenges, make_habit, make_status, clock):
        set_challenges((ChallengeType.perfect_day, 1, 30))
        done_habit = make_habit()
        upsert_status(done_habit, make_status(clock.today(), done=True))
        pending = make_habit()

        assert challenges.update_challenge_progress(ChallengeType.points, 0, [done_habit, pending]) == []
        assert challenges.update_challenge_progress(ChallengeType.points, 0, []) == []

    def test_one_call_can_complete_several(self, challenges, set_challenges, make_habit, make_status, clock):
        set_challenges((ChallengeType.early, 1, 20), (ChallengeType.perfect_day, 1, 30))
        habit = make_habit()
        upsert_status(habit, make_status(clock.today(), done=True))
        done = challenges.update_challenge_progress(ChallengeType.early, 1, [habit])
        assert {c.type for c in done} == {ChallengeType.early, ChallengeType.perfect_day}


def test_progress_percentage():
    challenge = MiniChallenge(
        id="x", title="t", description="", type=ChallengeType.replacement,
        target_value=5, current_value=2, reward=40,
        start_date="2025-03-10", end_date="2025-03-17",
    )
    assert ChallengeEngine.get_challenge_progress(challenge) == 40
    challenge.current_value = 9
    assert ChallengeEngine.get_challenge_progress(challenge) == 100


def test_days_remaining(challenges, clock):
    assert challenges.get_days_remaining() == 0
    challenges.generate_weekly_challenges()
    assert challenges.get_days_remaining() == 7
    clock.advance(days=5)
    assert challenges.get_days_remaining() == 2
    clock.advance(days=10)
    assert challenges.get_days_remaining() == 0


def test_rewards_and_challenger_badge(challenges, set_challenges, session):
    set_challenges((ChallengeType.early, 1, 20), (ChallengeType.points, 50, 25))
    assert challenges.check_challenger_badge() is None
    assert challenges.get_completed_challenge_rewards() == 0

    challenges.update_challenge_progress(ChallengeType.early, 1)
    assert challenges.get_completed_challenge_rewards() == 20

    badge = challenges.check_challenger_badge()
    assert badge.id == "challenger"
    assert challenges.check_challenger_badge() is None
    assert [b.id for b in session.current_user().profile.badges] == ["challenger"]
