"""Practice path: short lessons with graded practice questions.

Each discipline has a path of sections, each holding ordered steps.
A step holds a lesson text and a few practice questions worth XP.

Rules:
- Steps unlock in path order: the first step is open, every other step
  opens once the previous one is completed; completed steps stay open
- Free users play the first FREE_STEPS steps of a path; the rest needs
  premium access
- Answers are graded on the server; the score is the share of XP earned
- A first completion grants the XP of every correct answer; a replay
  grants REPLAY_XP_FACTOR of it, and only when it beats the best score
- A step linked to a syllabus topic records a study session for that
  topic, which feeds topic progress and knowledge gaps
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from examprep.core import content, tracking, users
from examprep.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    PremiumRequiredError,
    ValidationError,
)
from examprep.core.exams import validate_question
from examprep.db import practice_repository, tracking_repository
from examprep.db.database import utc_now
from examprep.db.exams_repository import NewQuestion
from examprep.db.practice_repository import (
    PracticeQuestionRecord,
    SectionRecord,
    StepRecord,
)
from examprep.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

FREE_STEPS = 3
REPLAY_XP_FACTOR = 0.5


@dataclass
class PathStep:
    """A step as listed on the path, with the user's state."""

    id: str
    title: str
    description: str
    topic_id: str | None
    position: int
    completed: bool = False
    best_score: int = 0
    locked: bool = False
    premium_only: bool = False


@dataclass
class PathSection:
    id: str
    title: str
    description: str
    steps: list[PathStep] = field(default_factory=list)


@dataclass
class PracticePath:
    discipline_id: str
    discipline_title: str
    completed_steps: int
    total_steps: int
    sections: list[PathSection] = field(default_factory=list)


@dataclass
class PublicPracticeQuestion:
    """Practice question without its answer key."""

    id: str
    statement: str
    options: list[str]
    xp: int

    @classmethod
    def from_record(cls, record: PracticeQuestionRecord) -> PublicPracticeQuestion:
        return cls(id=record.id, statement=record.statement, options=record.options, xp=record.xp)


@dataclass
class StepSession:
    step: StepRecord
    questions: list[PublicPracticeQuestion]


@dataclass
class PracticeOutcome:
    question_id: str
    selected_option: int | None
    is_correct: bool


@dataclass
class StepResult:
    step_id: str
    correct_count: int
    total_questions: int
    score: int
    best_score: int
    xp_earned: int
    first_completion: bool
    new_badges: list[str] = field(default_factory=list)
    outcomes: list[PracticeOutcome] = field(default_factory=list)


# =============================================================================
# SECTIONS
# =============================================================================


def create_section(
    discipline_id: str,
    title: str,
    description: str = "",
    order_index: int = 0,
    is_active: bool = True,
) -> SectionRecord:
    """Add a section to a discipline's path.

    Raises:
        NotFoundError: If the discipline does not exist
        ValidationError: If the title is empty
    """
    content.get_discipline(discipline_id)
    if not title.strip():
        raise ValidationError("title is empty")
    section = practice_repository.insert_section(
        discipline_id, title.strip(), description, order_index, is_active
    )
    logger.info("practice.section_created", section_id=section.id, discipline_id=discipline_id)
    return section


def get_section(section_id: str) -> SectionRecord:
    section = practice_repository.get_section(section_id)
    if section is None:
        raise NotFoundError("Section", section_id)
    return section


def list_sections(discipline_id: str, include_inactive: bool = False) -> list[SectionRecord]:
    return practice_repository.list_sections(discipline_id, active_only=not include_inactive)


def update_section(section_id: str, **fields: Any) -> SectionRecord:
    if "title" in fields and not fields["title"].strip():
        raise ValidationError("title is empty")
    if not practice_repository.update_section(section_id, **fields):
        raise NotFoundError("Section", section_id)
    return practice_repository.get_section(section_id)


def delete_section(section_id: str) -> None:
    """Delete a section with its steps, questions and progress."""
    if not practice_repository.delete_section(section_id):
        raise NotFoundError("Section", section_id)
    logger.info("practice.section_deleted", section_id=section_id)


# =============================================================================
# STEPS
# =============================================================================


def _check_topic(topic_id: str | None) -> None:
    if topic_id is not None and tracking_repository.get_syllabus_topic(topic_id) is None:
        raise NotFoundError("Syllabus topic", topic_id)


def create_step(
    section_id: str,
    title: str,
    description: str = "",
    content: str = "",
    topic_id: str | None = None,
    order_index: int = 0,
    is_active: bool = True,
) -> StepRecord:
    """Add a step to a section.

    Raises:
        NotFoundError: If the section or the linked topic does not exist
        ValidationError: If the title is empty
    """
    get_section(section_id)
    _check_topic(topic_id)
    if not title.strip():
        raise ValidationError("title is empty")
    step = practice_repository.insert_step(
        title.strip(),
        section_id=section_id,
        topic_id=topic_id,
        description=description,
        content=content,
        order_index=order_index,
        is_active=is_active,
    )
    logger.info("practice.step_created", step_id=step.id, section_id=section_id)
    return step


def get_step(step_id: str) -> StepRecord:
    step = practice_repository.get_step(step_id)
    if step is None:
        raise NotFoundError("Step", step_id)
    return step


def list_steps(section_id: str, include_inactive: bool = False) -> list[StepRecord]:
    get_section(section_id)
    return practice_repository.list_steps(section_id, active_only=not include_inactive)


def update_step(step_id: str, **fields: Any) -> StepRecord:
    if "section_id" in fields:
        get_section(fields["section_id"])
    if "topic_id" in fields:
        _check_topic(fields["topic_id"])
    if "title" in fields and not fields["title"].strip():
        raise ValidationError("title is empty")
    if not practice_repository.update_step(step_id, **fields):
        raise NotFoundError("Step", step_id)
    return practice_repository.get_step(step_id)


def delete_step(step_id: str) -> None:
    if not practice_repository.delete_step(step_id):
        raise NotFoundError("Step", step_id)
    logger.info("practice.step_deleted", step_id=step_id)


# =============================================================================
# PRACTICE QUESTIONS
# =============================================================================


def _validate_practice_question(statement: str, options: list[str], correct_option: int, xp: int) -> None:
    validate_question(NewQuestion(statement=statement, options=options, correct_option=correct_option))
    if xp <= 0:
        raise ValidationError("xp must be positive")


def create_question(
    step_id: str,
    statement: str,
    options: list[str],
    correct_option: int,
    explanation: str | None = None,
    xp: int = 10,
    order_index: int = 0,
) -> PracticeQuestionRecord:
    get_step(step_id)
    _validate_practice_question(statement, options, correct_option, xp)
    return practice_repository.insert_practice_question(
        step_id, statement, options, correct_option, explanation, xp, order_index
    )


def list_questions(step_id: str) -> list[PracticeQuestionRecord]:
    """Questions with answer keys (for admins)."""
    get_step(step_id)
    return practice_repository.list_practice_questions(step_id)


def update_question(question_id: str, **fields: Any) -> PracticeQuestionRecord:
    current = practice_repository.get_practice_question(question_id)
    if current is None:
        raise NotFoundError("Practice question", question_id)
    _validate_practice_question(
        fields.get("statement", current.statement),
        fields.get("options", current.options),
        fields.get("correct_option", current.correct_option),
        fields.get("xp", current.xp),
    )
    practice_repository.update_practice_question(question_id, **fields)
    return practice_repository.get_practice_question(question_id)


def delete_question(question_id: str) -> None:
    if not practice_repository.delete_practice_question(question_id):
        raise NotFoundError("Practice question", question_id)


# =============================================================================
# PATH
# =============================================================================


def practice_path(uid: str, discipline_id: str) -> PracticePath:
    """The discipline's path with the user's progress and locks."""
    user = users.get_user(uid)
    discipline = content.get_discipline(discipline_id)
    progress = practice_repository.list_progress(uid, discipline_id)
    steps = practice_repository.list_discipline_steps(discipline_id)
    by_section: dict[str, list[StepRecord]] = {}
    for step in steps:
        by_section.setdefault(step.section_id, []).append(step)

    position = 0
    previous_done = True
    sections = []
    for section in practice_repository.list_sections(discipline_id, active_only=True):
        entry = PathSection(id=section.id, title=section.title, description=section.description)
        for step in by_section.get(section.id, []):
            done = step.id in progress and progress[step.id].completed
            premium_only = position >= FREE_STEPS and not user.has_premium_access
            entry.steps.append(
                PathStep(
                    id=step.id,
                    title=step.title,
                    description=step.description,
                    topic_id=step.topic_id,
                    position=position,
                    completed=done,
                    best_score=progress[step.id].best_score if step.id in progress else 0,
                    locked=premium_only or not (done or previous_done),
                    premium_only=premium_only,
                )
            )
            previous_done = done
            position += 1
        sections.append(entry)

    return PracticePath(
        discipline_id=discipline_id,
        discipline_title=discipline.title,
        completed_steps=sum(1 for step in steps if step.id in progress and progress[step.id].completed),
        total_steps=len(steps),
        sections=sections,
    )


def _playable_step(user: UserRecord, step_id: str) -> tuple[StepRecord, SectionRecord]:
    """Load a step the user may play.

    Raises:
        NotFoundError: If the step or its section is missing or inactive
        PremiumRequiredError: If the step is past the free part of the path
        PermissionDeniedError: If the previous step is not completed
    """
    step = practice_repository.get_step(step_id)
    section = practice_repository.get_section(step.section_id) if step and step.section_id else None
    if step is None or section is None or not (step.is_active and section.is_active):
        raise NotFoundError("Step", step_id)

    steps = practice_repository.list_discipline_steps(section.discipline_id)
    position = next(i for i, s in enumerate(steps) if s.id == step_id)
    if position >= FREE_STEPS and not user.has_premium_access:
        raise PremiumRequiredError("This step is reserved to premium members")

    if position > 0:
        progress = practice_repository.list_progress(user.uid, section.discipline_id)
        done = step_id in progress and progress[step_id].completed
        previous = progress.get(steps[position - 1].id)
        if not done and not (previous and previous.completed):
            raise PermissionDeniedError("Complete the previous step first")
    return step, section


def start_step(uid: str, step_id: str) -> StepSession:
    """Lesson and questions of a step, without answer keys."""
    step, _ = _playable_step(users.get_user(uid), step_id)
    questions = practice_repository.list_practice_questions(step_id)
    logger.info("practice.step_started", uid=uid, step_id=step_id, questions=len(questions))
    return StepSession(step=step, questions=[PublicPracticeQuestion.from_record(q) for q in questions])


def submit_step(
    uid: str,
    step_id: str,
    answers: dict[str, int],
    time_spent: int = 0,
    now: datetime | None = None,
) -> StepResult:
    """Grade a step and record the user's progress.

    Args:
        answers: Selected option per practice question id.
        time_spent: Minutes spent on the step.

    Raises:
        ValidationError: If the step has no questions
    """
    now = now or utc_now()
    user = users.get_user(uid)
    step, section = _playable_step(user, step_id)
    questions = practice_repository.list_practice_questions(step_id)
    if not questions:
        raise ValidationError(f"Step '{step_id}' has no questions")

    outcomes = []
    for question in questions:
        selected = answers.get(question.id)
        outcomes.append(
            PracticeOutcome(
                question_id=question.id,
                selected_option=selected,
                is_correct=selected is not None and selected == question.correct_option,
            )
        )
    correct = sum(1 for o in outcomes if o.is_correct)
    total_xp = sum(q.xp for q in questions)
    answered_xp = sum(q.xp for q, o in zip(questions, outcomes) if o.is_correct)
    score = round(answered_xp / total_xp * 100) if total_xp else round(correct / len(questions) * 100)

    previous = practice_repository.get_progress(uid, step_id)
    first_completion = previous is None or not previous.completed
    if first_completion:
        xp = answered_xp
    elif score > previous.best_score:
        xp = math.floor(answered_xp * REPLAY_XP_FACTOR)
    else:
        xp = 0

    progress = practice_repository.save_progress(
        uid, step_id, section.id, section.discipline_id, score, xp
    )
    users.add_user_activity(uid, "module", f"Practice: {step.title}", score=score, xp_earned=xp)
    if xp:
        users.add_xp(uid, xp)
    if step.topic_id:
        tracking.record_study_session(
            uid,
            section.discipline_id,
            tracking.StudySession(
                score=score,
                questions_answered=len(questions),
                correct_answers=correct,
                time_spent=time_spent,
                topics_studied=[step.topic_id],
            ),
            now=now,
        )

    before = set(user.badges)
    new_badges = [b for b in users.get_user(uid).badges if b not in before]

    logger.info(
        "practice.step_submitted",
        uid=uid,
        step_id=step_id,
        score=score,
        xp=xp,
        first_completion=first_completion,
    )
    return StepResult(
        step_id=step_id,
        correct_count=correct,
        total_questions=len(questions),
        score=score,
        best_score=progress.best_score,
        xp_earned=xp,
        first_completion=first_completion,
        new_badges=new_badges,
        outcomes=outcomes,
    )
