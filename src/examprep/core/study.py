"""Study mode: self-paced exam practice with immediate feedback.

Study mode is reserved to premium members and admins. Answers are checked
one at a time; the finished session updates the user's averages and is
recorded in the academic tracking history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

import structlog

from examprep.core import exams, tracking, users
from examprep.core.challenge import PublicQuestion
from examprep.core.errors import NotFoundError, PremiumRequiredError, ValidationError
from examprep.db import users_repository
from examprep.db.database import utc_now
from examprep.db.exams_repository import ExamRecord, QuestionRecord
from examprep.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)


@dataclass
class StudySessionView:
    exam: ExamRecord
    questions: list[PublicQuestion]


@dataclass
class AnswerFeedback:
    """Immediate feedback for one answered question."""

    question_id: str
    is_correct: bool
    correct_option: int
    explanation: str | None


@dataclass
class StudyCompletion:
    grade: int
    average_grade: int
    exams_completed: int
    daily_exercises_count: int
    achievements: list[str]


def require_premium(user: UserRecord) -> None:
    """Raises PremiumRequiredError unless the user is premium or admin."""
    if not user.has_premium_access:
        raise PremiumRequiredError("Study mode is available to premium members only")


def start_study(uid: str, exam_id: str) -> StudySessionView:
    """Load an exam for study (questions without the answer key)."""
    user = users.get_user(uid)
    require_premium(user)
    exam = exams.get_exam(exam_id, include_inactive=user.is_admin)
    questions = exams.questions_by_exam(exam_id)
    if not questions:
        raise ValidationError(f"Exam '{exam_id}' has no questions")
    return StudySessionView(
        exam=exam,
        questions=[PublicQuestion.from_record(q) for q in questions],
    )


def check_answer(question: QuestionRecord, selected: int) -> AnswerFeedback:
    return AnswerFeedback(
        question_id=question.id,
        is_correct=selected == question.correct_option,
        correct_option=question.correct_option,
        explanation=question.explanation,
    )


def check_exam_answer(uid: str, exam_id: str, question_id: str, selected: int) -> AnswerFeedback:
    """Check one answer of an exam being studied.

    Raises:
        PremiumRequiredError: If the user is not premium
        NotFoundError: If the question is not part of the exam
    """
    require_premium(users.get_user(uid))
    question = next((q for q in exams.questions_by_exam(exam_id) if q.id == question_id), None)
    if question is None:
        raise NotFoundError("Question", question_id)
    return check_answer(question, selected)


def complete_study_session(
    uid: str,
    exam_id: str,
    correct_count: int,
    total_questions: int,
    time_spent: int = 0,
    now: datetime | None = None,
) -> StudyCompletion:
    """Record a finished study session.

    Args:
        time_spent: Minutes spent on the session.

    Raises:
        PremiumRequiredError: If the user is not premium
        ValidationError: If the counts are inconsistent
    """
    if total_questions <= 0:
        raise ValidationError("total_questions must be positive")
    if not 0 <= correct_count <= total_questions:
        raise ValidationError("correct_count must be between 0 and total_questions")

    now = now or utc_now()
    user = users.get_user(uid)
    require_premium(user)
    exam = exams.get_exam(exam_id, include_inactive=user.is_admin)

    grade = round(correct_count / total_questions * 100)
    completed = user.exams_completed
    average = round((user.average_grade * completed + grade) / (completed + 1))

    users_repository.update_user(
        uid,
        exams_completed=completed + 1,
        average_grade=average,
        daily_exercises_count=user.daily_exercises_count + total_questions,
        last_exam_date=now.isoformat(),
    )
    users.update_user_score(uid)
    users.add_user_activity(uid, "exam", f"Study: {exam.name}", score=grade)

    unlocked = tracking.record_study_session(
        uid,
        exam.discipline_id,
        tracking.StudySession(
            score=grade,
            questions_answered=total_questions,
            correct_answers=correct_count,
            time_spent=time_spent,
        ),
        now=now,
    )

    logger.info("study.completed", uid=uid, exam_id=exam_id, grade=grade, average=average)
    return StudyCompletion(
        grade=grade,
        average_grade=average,
        exams_completed=completed + 1,
        daily_exercises_count=user.daily_exercises_count + total_questions,
        achievements=[a.title for a in unlocked],
    )
