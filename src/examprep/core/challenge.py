"""Challenge mode: timed, once-daily exam runs that feed the ranking.

Rules:
- Free users may take one challenge per calendar day (UTC); premium
  members and admins are unlimited
- Time limit is quiz.challenge_minutes (90), measured from the start time
  recorded by start_challenge; late submissions are graded with whatever
  was answered and flagged as timed out. Submitting needs an open start
- Grade = round(accuracy x challenge_max_grade), on the 0-20 scale
- Each correct answer earns quiz.xp_per_correct_answer XP and one point
  in the exam's discipline score
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

import structlog

from examprep.config import load_app_config
from examprep.core import exams, users
from examprep.core.errors import DailyLimitReachedError, ValidationError
from examprep.db import exams_repository, users_repository
from examprep.db.database import utc_now
from examprep.db.exams_repository import ExamRecord, QuestionRecord
from examprep.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class PublicQuestion:
    """Question as shown during a challenge (no answer key)."""

    id: str
    statement: str
    options: list[str]
    order_index: int

    @classmethod
    def from_record(cls, question: QuestionRecord) -> PublicQuestion:
        return cls(
            id=question.id,
            statement=question.statement,
            options=question.options,
            order_index=question.order_index,
        )


@dataclass
class ChallengeSession:
    exam: ExamRecord
    questions: list[PublicQuestion]
    time_limit_minutes: int
    started_at: str


@dataclass
class QuestionOutcome:
    """Per-question result (the answer key is not revealed)."""

    question_id: str
    selected_option: int | None
    is_correct: bool


@dataclass
class ChallengeResult:
    """Graded challenge."""

    exam_id: str
    correct_count: int
    total_questions: int
    accuracy: float
    grade: int
    percentage: int
    xp_earned: int
    elapsed_seconds: int
    timed_out: bool
    new_badges: list[str] = field(default_factory=list)
    outcomes: list[QuestionOutcome] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "exam_id": self.exam_id,
            "correct_count": self.correct_count,
            "total_questions": self.total_questions,
            "accuracy": self.accuracy,
            "grade": self.grade,
            "percentage": self.percentage,
            "xp_earned": self.xp_earned,
            "elapsed_seconds": self.elapsed_seconds,
            "timed_out": self.timed_out,
            "new_badges": self.new_badges,
        }


# =============================================================================
# RULES
# =============================================================================


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    return datetime.fromisoformat(value).date()


def check_daily_limit(user: UserRecord, today: date | None = None) -> None:
    """Raise if a free user already took a challenge today.

    Raises:
        DailyLimitReachedError: If the limit is reached
    """
    if user.has_premium_access:
        return

    today = today or utc_now().date()
    if _parse_day(user.last_challenge_date) == today:
        raise DailyLimitReachedError()


def grade_answers(
    questions: list[QuestionRecord],
    answers: dict[str, int],
) -> tuple[int, list[QuestionOutcome]]:
    """Count correct answers. Unanswered questions count as wrong."""
    outcomes = []
    correct = 0
    for question in questions:
        selected = answers.get(question.id)
        is_correct = selected is not None and selected == question.correct_option
        correct += int(is_correct)
        outcomes.append(
            QuestionOutcome(
                question_id=question.id,
                selected_option=selected,
                is_correct=is_correct,
            )
        )
    return correct, outcomes


# =============================================================================
# OPERATIONS
# =============================================================================


def _load_exam_for(user: UserRecord, exam_id: str) -> tuple[ExamRecord, list[QuestionRecord]]:
    exam = exams.get_exam(exam_id, include_inactive=user.is_admin)
    questions = exams.questions_by_exam(exam_id)
    if not questions:
        raise ValidationError(f"Exam '{exam_id}' has no questions")
    return exam, questions


def _elapsed_seconds(started_at: str, now: datetime) -> int:
    return max(0, int((now - datetime.fromisoformat(started_at)).total_seconds()))


def start_challenge(uid: str, exam_id: str, now: datetime | None = None) -> ChallengeSession:
    """Open a challenge for the user and record when it started.

    Starting again while a challenge on the same exam is still within its
    time limit keeps the original start time.

    Raises:
        DailyLimitReachedError: If a free user already played today
        NotFoundError: If the exam is missing (or inactive for non-admins)
        ValidationError: If the exam has no questions
    """
    now = now or utc_now()
    limit_minutes = load_app_config().quiz.challenge_minutes
    user = users.get_user(uid)
    check_daily_limit(user, now.date())
    exam, questions = _load_exam_for(user, exam_id)

    started_at = exams_repository.get_challenge_start(uid, exam_id)
    if started_at is None or _elapsed_seconds(started_at, now) > limit_minutes * 60:
        started_at = now.isoformat()
        exams_repository.save_challenge_start(uid, exam_id, started_at)

    logger.info("challenge.started", uid=uid, exam_id=exam_id, questions=len(questions))
    return ChallengeSession(
        exam=exam,
        questions=[PublicQuestion.from_record(q) for q in questions],
        time_limit_minutes=limit_minutes,
        started_at=started_at,
    )


def submit_challenge(
    uid: str,
    exam_id: str,
    answers: dict[str, int],
    now: datetime | None = None,
) -> ChallengeResult:
    """Grade a challenge and update the user's progress.

    Elapsed time is measured from the recorded start; a submission past
    the time limit is still graded and flagged as timed out.

    Args:
        answers: Selected option index per question id.

    Raises:
        DailyLimitReachedError: If a free user already played today
        ValidationError: If no challenge on this exam was started
    """
    quiz = load_app_config().quiz
    now = now or utc_now()
    user = users.get_user(uid)
    check_daily_limit(user, now.date())
    exam, questions = _load_exam_for(user, exam_id)

    started_at = exams_repository.get_challenge_start(uid, exam_id)
    if started_at is None:
        raise ValidationError("No challenge in progress for this exam. Start it first.")
    elapsed = _elapsed_seconds(started_at, now)
    timed_out = elapsed > quiz.challenge_minutes * 60
    exams_repository.close_challenge(uid, exam_id)

    correct, outcomes = grade_answers(questions, answers)
    accuracy = correct / len(questions)
    grade = round(accuracy * quiz.challenge_max_grade)
    xp_earned = correct * quiz.xp_per_correct_answer

    users_repository.update_user(
        uid,
        challenges_completed=user.challenges_completed + 1,
        last_challenge_date=now.isoformat(),
    )
    users.update_user_score(uid)
    users.add_user_activity(
        uid,
        "challenge",
        f"Challenge: {exam.name}",
        score=grade,
        xp_earned=xp_earned,
    )
    if xp_earned:
        users.add_xp(uid, xp_earned)
    if correct:
        users.update_user_discipline_score(uid, exam.discipline_id, correct)

    before = set(user.badges)
    new_badges = [b for b in users.get_user(uid).badges if b not in before]

    logger.info(
        "challenge.submitted",
        uid=uid,
        exam_id=exam_id,
        grade=grade,
        correct=correct,
        total=len(questions),
        elapsed_seconds=elapsed,
        timed_out=timed_out,
    )
    return ChallengeResult(
        exam_id=exam_id,
        correct_count=correct,
        total_questions=len(questions),
        accuracy=accuracy,
        grade=grade,
        percentage=round(accuracy * 100),
        xp_earned=xp_earned,
        elapsed_seconds=elapsed,
        timed_out=timed_out,
        new_badges=new_badges,
        outcomes=outcomes,
    )
