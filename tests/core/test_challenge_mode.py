"""Tests for timed challenges."""

from datetime import datetime, timedelta, timezone

import pytest

from examprep.core import challenge, users
from examprep.core.errors import DailyLimitReachedError, NotFoundError, ValidationError

NOW = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)


def _play(uid, exam_id, answers, minutes=10):
    """Start a challenge and submit it `minutes` later."""
    challenge.start_challenge(uid, exam_id, now=NOW)
    return challenge.submit_challenge(uid, exam_id, answers, now=NOW + timedelta(minutes=minutes))


class TestStartChallenge:
    """Tests for start_challenge."""

    def test_questions_hide_answer_key(self, user, exam):
        """Challenge questions carry no correct option or explanation."""
        session = challenge.start_challenge(user.uid, exam.id)

        assert session.exam.id == exam.id
        assert len(session.questions) == 4
        assert session.time_limit_minutes == 90
        assert not hasattr(session.questions[0], "correct_option")
        assert not hasattr(session.questions[0], "explanation")

    def test_questions_in_order(self, user, exam):
        session = challenge.start_challenge(user.uid, exam.id)
        assert [q.order_index for q in session.questions] == sorted(q.order_index for q in session.questions)

    def test_inactive_exam_hidden_from_users(self, user, make_exam):
        exam = make_exam(is_active=False)
        with pytest.raises(NotFoundError):
            challenge.start_challenge(user.uid, exam.id)

    def test_inactive_exam_visible_to_admins(self, admin, make_exam):
        exam = make_exam(is_active=False)
        session = challenge.start_challenge(admin.uid, exam.id)
        assert session.exam.id == exam.id

    def test_exam_without_questions(self, user, make_exam):
        exam = make_exam(count=0)
        with pytest.raises(ValidationError):
            challenge.start_challenge(user.uid, exam.id)


class TestSubmitChallenge:
    """Tests for submit_challenge."""

    def test_all_correct(self, user, exam, discipline, answer_key):
        """Perfect score earns the max grade, XP, points and the first badge."""
        result = _play(user.uid, exam.id, answer_key)

        assert result.correct_count == 4
        assert result.total_questions == 4
        assert result.grade == 20
        assert result.percentage == 100
        assert result.xp_earned == 40
        assert result.elapsed_seconds == 600
        assert result.timed_out is False
        assert "first_win" in result.new_badges

        updated = users.get_user(user.uid)
        assert updated.challenges_completed == 1
        assert updated.score == 3
        assert updated.xp == 40
        assert updated.discipline_scores == {discipline.id: 4}
        assert updated.last_challenge_date is not None

    def test_unanswered_questions_count_as_wrong(self, user, exam, exam_questions):
        first = exam_questions[0]
        result = _play(user.uid, exam.id, {first.id: first.correct_option})

        assert result.correct_count == 1
        assert result.grade == 5
        assert result.outcomes[1].selected_option is None
        assert result.outcomes[1].is_correct is False

    def test_outcomes_hide_answer_key(self, user, exam, answer_key):
        result = _play(user.uid, exam.id, answer_key)
        assert not hasattr(result.outcomes[0], "correct_option")

    def test_zero_correct_gives_no_xp(self, user, exam, exam_questions):
        wrong = {q.id: (q.correct_option + 1) % 4 for q in exam_questions}
        result = _play(user.uid, exam.id, wrong)

        assert result.grade == 0
        assert result.xp_earned == 0
        assert users.get_user(user.uid).discipline_scores == {}

    def test_timed_out_measured_from_start(self, user, exam, answer_key):
        result = _play(user.uid, exam.id, answer_key, minutes=91)

        assert result.elapsed_seconds == 91 * 60
        assert result.timed_out is True
        assert result.correct_count == 4

    def test_submit_without_start_refused(self, user, exam, answer_key):
        with pytest.raises(ValidationError, match="Start it first"):
            challenge.submit_challenge(user.uid, exam.id, answer_key, now=NOW)

        assert users.get_user(user.uid).challenges_completed == 0

    def test_submit_closes_the_challenge(self, premium_user, exam, answer_key):
        _play(premium_user.uid, exam.id, answer_key)

        with pytest.raises(ValidationError):
            challenge.submit_challenge(premium_user.uid, exam.id, answer_key, now=NOW)

    def test_restart_keeps_running_start(self, premium_user, exam, answer_key):
        first = challenge.start_challenge(premium_user.uid, exam.id, now=NOW)
        again = challenge.start_challenge(premium_user.uid, exam.id, now=NOW + timedelta(minutes=30))

        assert again.started_at == first.started_at
        result = challenge.submit_challenge(
            premium_user.uid, exam.id, answer_key, now=NOW + timedelta(minutes=40)
        )
        assert result.elapsed_seconds == 40 * 60

    def test_restart_after_time_limit_starts_over(self, premium_user, exam):
        challenge.start_challenge(premium_user.uid, exam.id, now=NOW)
        later = NOW + timedelta(minutes=120)

        session = challenge.start_challenge(premium_user.uid, exam.id, now=later)

        assert session.started_at == later.isoformat()

    def test_activity_recorded(self, user, exam, answer_key):
        _play(user.uid, exam.id, answer_key)

        activity = users.recent_activity(user.uid)
        assert len(activity) == 1
        assert activity[0].activity_type == "challenge"
        assert activity[0].score == 20
        assert activity[0].xp_earned == 40


class TestDailyLimit:
    """Free users get one challenge per day."""

    def test_second_challenge_same_day_refused(self, user, exam, answer_key):
        _play(user.uid, exam.id, answer_key)

        with pytest.raises(DailyLimitReachedError):
            challenge.start_challenge(user.uid, exam.id, now=NOW)

    def test_submit_rechecks_limit(self, user, exam, answer_key):
        _play(user.uid, exam.id, answer_key)

        with pytest.raises(DailyLimitReachedError):
            challenge.submit_challenge(user.uid, exam.id, answer_key, now=NOW)

    def test_next_day_allowed(self, user, exam, answer_key):
        _play(user.uid, exam.id, answer_key)

        session = challenge.start_challenge(user.uid, exam.id, now=NOW + timedelta(days=1))
        assert session.exam.id == exam.id

    def test_premium_users_unlimited(self, premium_user, exam, answer_key):
        _play(premium_user.uid, exam.id, answer_key)
        _play(premium_user.uid, exam.id, answer_key)

        assert users.get_user(premium_user.uid).challenges_completed == 2

    def test_admins_unlimited(self, admin, exam, answer_key):
        _play(admin.uid, exam.id, answer_key)
        session = challenge.start_challenge(admin.uid, exam.id, now=NOW)
        assert session.questions
