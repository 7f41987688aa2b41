"""Exams and multiple-choice questions.

Responsibilities:
- Admin CRUD for exams and questions
- Bulk question import (validated, single transaction)
- Visibility rule: inactive exams are hidden from non-admin users
"""

from __future__ import annotations

from typing import Any

import structlog

from examprep.core import content
from examprep.core.errors import NotFoundError, ValidationError
from examprep.db import exams_repository
from examprep.db.exams_repository import ExamRecord, NewQuestion, QuestionRecord

logger = structlog.get_logger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 5


# =============================================================================
# EXAMS
# =============================================================================


def create_exam(
    discipline_id: str,
    name: str,
    year: int,
    season: str = "",
    description: str | None = None,
    university: str | None = None,
    is_active: bool = True,
) -> ExamRecord:
    """Create an exam.

    Raises:
        NotFoundError: If the discipline does not exist
    """
    content.get_discipline(discipline_id)
    exam = exams_repository.insert_exam(
        discipline_id=discipline_id,
        name=name,
        year=year,
        season=season,
        description=description,
        university=university,
        is_active=is_active,
    )
    logger.info("exams.created", exam_id=exam.id, discipline_id=discipline_id)
    return exam


def get_exam(exam_id: str, include_inactive: bool = True) -> ExamRecord:
    """Get an exam.

    Args:
        include_inactive: When False, inactive exams are reported as missing.

    Raises:
        NotFoundError: If the exam does not exist or is hidden
    """
    exam = exams_repository.get_exam(exam_id)
    if exam is None or (not include_inactive and not exam.is_active):
        raise NotFoundError("Exam", exam_id)
    return exam


def update_exam(exam_id: str, **fields: Any) -> ExamRecord:
    if not exams_repository.update_exam(exam_id, **fields):
        raise NotFoundError("Exam", exam_id)
    return exams_repository.get_exam(exam_id)


def delete_exam(exam_id: str) -> None:
    """Delete an exam and all its questions."""
    if not exams_repository.delete_exam(exam_id):
        raise NotFoundError("Exam", exam_id)
    logger.info("exams.deleted", exam_id=exam_id)


def exams_by_discipline(discipline_id: str, active_only: bool = True) -> list[ExamRecord]:
    return exams_repository.list_exams(discipline_id=discipline_id, active_only=active_only)


def list_all_exams() -> list[ExamRecord]:
    return exams_repository.list_exams()


def list_active_exams() -> list[ExamRecord]:
    return exams_repository.list_exams(active_only=True)


# =============================================================================
# QUESTIONS
# =============================================================================


def validate_question(question: NewQuestion, position: int | None = None) -> None:
    """Check option count and correct option index.

    Raises:
        ValidationError: If the question cannot be answered as stored
    """
    where = f"Question {position}: " if position is not None else ""
    if not question.statement.strip():
        raise ValidationError(f"{where}statement is empty")
    if not MIN_OPTIONS <= len(question.options) <= MAX_OPTIONS:
        raise ValidationError(
            f"{where}expected {MIN_OPTIONS}-{MAX_OPTIONS} options, got {len(question.options)}"
        )
    if not 0 <= question.correct_option < len(question.options):
        raise ValidationError(
            f"{where}correct_option {question.correct_option} is out of range"
        )


def create_question(exam_id: str, question: NewQuestion) -> QuestionRecord:
    exam = get_exam(exam_id)
    validate_question(question)
    if question.discipline_id is None:
        question.discipline_id = exam.discipline_id
    return exams_repository.insert_question(exam_id, question)


def update_question(question_id: str, **fields: Any) -> QuestionRecord:
    """Update a question, re-validating options against the correct index."""
    current = exams_repository.get_question(question_id)
    if current is None:
        raise NotFoundError("Question", question_id)

    if "options" in fields or "correct_option" in fields or "statement" in fields:
        validate_question(
            NewQuestion(
                statement=fields.get("statement", current.statement),
                options=fields.get("options", current.options),
                correct_option=fields.get("correct_option", current.correct_option),
            )
        )

    exams_repository.update_question(question_id, **fields)
    return exams_repository.get_question(question_id)


def delete_question(question_id: str) -> None:
    if not exams_repository.delete_question(question_id):
        raise NotFoundError("Question", question_id)


def questions_by_exam(exam_id: str) -> list[QuestionRecord]:
    """Questions of an exam ordered by order_index."""
    return exams_repository.list_questions_by_exam(exam_id)


def bulk_import_questions(exam_id: str, questions: list[NewQuestion]) -> list[QuestionRecord]:
    """Import many questions into an exam at once.

    Every item is validated before anything is written; the exam's
    questions_count becomes the number imported.

    Raises:
        NotFoundError: If the exam does not exist
        ValidationError: If any question is invalid (nothing is imported)
    """
    exam = get_exam(exam_id)
    if not questions:
        raise ValidationError("No questions to import")

    for position, question in enumerate(questions, start=1):
        validate_question(question, position)
        if question.discipline_id is None:
            question.discipline_id = exam.discipline_id

    records = exams_repository.bulk_insert_questions(exam_id, questions)
    logger.info("exams.questions_imported", exam_id=exam_id, count=len(records))
    return records
