"""Tests for premium study mode."""

import pytest

from examprep.core import exams, study, tracking, users
from examprep.core.errors import NotFoundError, PremiumRequiredError, ValidationError


class TestPremiumGate:
    def test_free_user_cannot_start(self, user, exam):
        with pytest.raises(PremiumRequiredError):
            study.start_study(user.uid, exam.id)

    def test_free_user_cannot_check(self, user, exam, exam_questions):
        with pytest.raises(PremiumRequiredError):
            study.check_exam_answer(user.uid, exam.id, exam_questions[0].id, 0)

    def test_admin_allowed(self, admin, exam):
        view = study.start_study(admin.uid, exam.id)
        assert len(view.questions) == 4


class TestStartStudy:
    def test_hides_answer_key(self, premium_user, exam):
        view = study.start_study(premium_user.uid, exam.id)
        assert view.exam.id == exam.id
        assert not hasattr(view.questions[0], "correct_option")

    def test_empty_exam(self, premium_user, make_exam):
        exam = make_exam(count=0)
        with pytest.raises(ValidationError):
            study.start_study(premium_user.uid, exam.id)


class TestCheckAnswer:
    def test_correct_answer_with_explanation(self, premium_user, exam, exam_questions):
        question = exam_questions[2]
        feedback = study.check_exam_answer(premium_user.uid, exam.id, question.id, question.correct_option)

        assert feedback.is_correct is True
        assert feedback.correct_option == question.correct_option
        assert feedback.explanation == question.explanation

    def test_wrong_answer(self, premium_user, exam, exam_questions):
        question = exam_questions[0]
        feedback = study.check_exam_answer(premium_user.uid, exam.id, question.id, question.correct_option + 1)
        assert feedback.is_correct is False

    def test_question_from_another_exam(self, premium_user, exam, make_exam):
        other = make_exam(name="Other")
        foreign = exams.questions_by_exam(other.id)[0]
        with pytest.raises(NotFoundError):
            study.check_exam_answer(premium_user.uid, exam.id, foreign.id, 0)


class TestCompleteStudySession:
    def test_running_average(self, premium_user, exam):
        first = study.complete_study_session(premium_user.uid, exam.id, 3, 4)
        assert first.grade == 75
        assert first.average_grade == 75

        second = study.complete_study_session(premium_user.uid, exam.id, 4, 4)
        assert second.grade == 100
        assert second.average_grade == 88
        assert second.exams_completed == 2
        assert second.daily_exercises_count == 8

    def test_updates_profile_and_activity(self, premium_user, exam):
        study.complete_study_session(premium_user.uid, exam.id, 2, 4, time_spent=12)

        user = users.get_user(premium_user.uid)
        assert user.exams_completed == 1
        assert user.last_exam_date is not None

        activity = users.recent_activity(premium_user.uid)
        assert activity[0].activity_type == "exam"
        assert activity[0].score == 50

        profile = tracking.get_profile(premium_user.uid)
        assert profile.total_questions_answered == 4
        assert profile.total_study_time == 12

    def test_first_question_achievement(self, premium_user, exam):
        """Answering exactly one question unlocks the first achievement."""
        completion = study.complete_study_session(premium_user.uid, exam.id, 1, 1)
        assert completion.achievements == ["First Question"]

    @pytest.mark.parametrize("correct,total", [(1, 0), (-1, 4), (5, 4)])
    def test_inconsistent_counts(self, premium_user, exam, correct, total):
        with pytest.raises(ValidationError):
            study.complete_study_session(premium_user.uid, exam.id, correct, total)
