"""Repository functions for exams and their questions.

Questions store options as a JSON list and the correct answer as an
index into that list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examprep.db.database import (
    build_update,
    from_json,
    generate_id,
    get_db,
    to_json,
    utc_now_iso,
)

logger = structlog.get_logger(__name__)

EXAM_COLUMNS = frozenset(
    {
        "discipline_id",
        "name",
        "year",
        "season",
        "questions_count",
        "description",
        "university",
        "is_active",
    }
)
QUESTION_COLUMNS = frozenset(
    {
        "discipline_id",
        "statement",
        "options",
        "correct_option",
        "explanation",
        "difficulty",
        "order_index",
    }
)


@dataclass
class ExamRecord:
    """Exam from database."""

    id: str
    discipline_id: str
    name: str
    year: int
    season: str
    questions_count: int
    description: str | None
    university: str | None
    is_active: bool
    created_at: str


@dataclass
class QuestionRecord:
    """Multiple-choice question."""

    id: str
    exam_id: str
    statement: str
    options: list[str]
    correct_option: int
    discipline_id: str | None = None
    explanation: str | None = None
    difficulty: int | None = None
    order_index: int = 0


@dataclass
class NewQuestion:
    """Question payload before insertion."""

    statement: str
    options: list[str]
    correct_option: int
    explanation: str | None = None
    difficulty: int | None = None
    order_index: int | None = None
    discipline_id: str | None = None


# =============================================================================
# EXAMS
# =============================================================================


def insert_exam(
    discipline_id: str,
    name: str,
    year: int,
    season: str = "",
    description: str | None = None,
    university: str | None = None,
    is_active: bool = True,
) -> ExamRecord:
    """Insert an exam and return it with its generated id."""
    record = ExamRecord(
        id=generate_id(),
        discipline_id=discipline_id,
        name=name,
        year=year,
        season=season,
        questions_count=0,
        description=description,
        university=university,
        is_active=is_active,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO exams (
                id, discipline_id, name, year, season, questions_count,
                description, university, is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                discipline_id,
                name,
                year,
                season,
                0,
                description,
                university,
                int(is_active),
                record.created_at,
            ),
        )

    logger.debug("exams.inserted", exam_id=record.id, name=name)
    return record


def get_exam(exam_id: str) -> ExamRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM exams WHERE id = ?", (exam_id,)).fetchone()
    return _row_to_exam(row) if row else None


def list_exams(
    discipline_id: str | None = None,
    active_only: bool = False,
) -> list[ExamRecord]:
    """List exams, newest year first."""
    clauses = []
    params: list[Any] = []
    if discipline_id is not None:
        clauses.append("discipline_id = ?")
        params.append(discipline_id)
    if active_only:
        clauses.append("is_active = 1")

    sql = "SELECT * FROM exams"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY year DESC, name"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_exam(row) for row in rows]


def update_exam(exam_id: str, **fields: Any) -> bool:
    statement = build_update("exams", "id", exam_id, fields, EXAM_COLUMNS)
    if statement is None:
        return get_exam(exam_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_exam(exam_id: str) -> bool:
    """Delete an exam together with all its questions."""
    with get_db() as conn:
        conn.execute("DELETE FROM questions WHERE exam_id = ?", (exam_id,))
        cursor = conn.execute("DELETE FROM exams WHERE id = ?", (exam_id,))

    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("exams.deleted", exam_id=exam_id)
    return deleted


# =============================================================================
# QUESTIONS
# =============================================================================


def insert_question(exam_id: str, question: NewQuestion) -> QuestionRecord:
    """Insert one question and bump the exam's question counter."""
    with get_db() as conn:
        record = _insert_question(conn, exam_id, question)
        conn.execute(
            "UPDATE exams SET questions_count = questions_count + 1 WHERE id = ?",
            (exam_id,),
        )
    return record


def bulk_insert_questions(exam_id: str, questions: list[NewQuestion]) -> list[QuestionRecord]:
    """Insert many questions in one transaction.

    The exam's questions_count is set to the number imported.
    """
    with get_db() as conn:
        records = [_insert_question(conn, exam_id, q, i + 1) for i, q in enumerate(questions)]
        conn.execute(
            "UPDATE exams SET questions_count = ? WHERE id = ?",
            (len(records), exam_id),
        )

    logger.info("questions.bulk_inserted", exam_id=exam_id, count=len(records))
    return records


def get_question(question_id: str) -> QuestionRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM questions WHERE id = ?", (question_id,)
        ).fetchone()
    return _row_to_question(row) if row else None


def get_questions(question_ids: list[str]) -> list[QuestionRecord]:
    """Fetch several questions by id, preserving the requested order."""
    if not question_ids:
        return []
    placeholders = ", ".join("?" for _ in question_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"SELECT * FROM questions WHERE id IN ({placeholders})", question_ids
        ).fetchall()
    by_id = {row["id"]: _row_to_question(row) for row in rows}
    return [by_id[qid] for qid in question_ids if qid in by_id]


def list_questions_by_exam(exam_id: str) -> list[QuestionRecord]:
    """Questions of an exam in presentation order."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM questions WHERE exam_id = ? ORDER BY order_index, rowid",
            (exam_id,),
        ).fetchall()
    return [_row_to_question(row) for row in rows]


def list_questions(
    discipline_ids: list[str] | None = None,
    min_difficulty: int | None = None,
    university: str | None = None,
) -> list[QuestionRecord]:
    """Question pool for simulations.

    A question's discipline is its own discipline_id, falling back to the
    discipline of its exam.
    """
    clauses = ["e.is_active = 1"]
    params: list[Any] = []
    if discipline_ids:
        placeholders = ", ".join("?" for _ in discipline_ids)
        clauses.append(f"COALESCE(q.discipline_id, e.discipline_id) IN ({placeholders})")
        params.extend(discipline_ids)
    if min_difficulty is not None:
        clauses.append("q.difficulty >= ?")
        params.append(min_difficulty)
    if university is not None:
        clauses.append("e.university = ?")
        params.append(university)

    sql = f"""
        SELECT q.id, q.exam_id, q.statement, q.options, q.correct_option,
               q.explanation, q.difficulty, q.order_index,
               COALESCE(q.discipline_id, e.discipline_id) AS discipline_id
        FROM questions q JOIN exams e ON e.id = q.exam_id
        WHERE {' AND '.join(clauses)}
        ORDER BY q.rowid
    """
    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_question(row) for row in rows]


def update_question(question_id: str, **fields: Any) -> bool:
    statement = build_update(
        "questions", "id", question_id, fields, QUESTION_COLUMNS, {"options"}
    )
    if statement is None:
        return get_question(question_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_question(question_id: str) -> bool:
    """Delete a question and decrement its exam's counter."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT exam_id FROM questions WHERE id = ?", (question_id,)
        ).fetchone()
        if row is None:
            return False
        conn.execute("DELETE FROM questions WHERE id = ?", (question_id,))
        conn.execute(
            "UPDATE exams SET questions_count = MAX(questions_count - 1, 0) WHERE id = ?",
            (row["exam_id"],),
        )
    return True


def _insert_question(conn, exam_id: str, question: NewQuestion, default_order: int = 0) -> QuestionRecord:
    record = QuestionRecord(
        id=generate_id(),
        exam_id=exam_id,
        statement=question.statement,
        options=list(question.options),
        correct_option=question.correct_option,
        discipline_id=question.discipline_id,
        explanation=question.explanation,
        difficulty=question.difficulty,
        order_index=question.order_index if question.order_index is not None else default_order,
    )
    conn.execute(
        """
        INSERT INTO questions (
            id, exam_id, discipline_id, statement, options, correct_option,
            explanation, difficulty, order_index
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            record.id,
            exam_id,
            record.discipline_id,
            record.statement,
            to_json(record.options),
            record.correct_option,
            record.explanation,
            record.difficulty,
            record.order_index,
        ),
    )
    return record


# =============================================================================
# CHALLENGE SESSIONS
# =============================================================================


def get_challenge_start(user_id: str, exam_id: str) -> str | None:
    """Start time (ISO) of the user's open challenge on an exam."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT started_at FROM challenge_sessions WHERE user_id = ? AND exam_id = ?",
            (user_id, exam_id),
        ).fetchone()
    return row["started_at"] if row else None


def save_challenge_start(user_id: str, exam_id: str, started_at: str) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO challenge_sessions (user_id, exam_id, started_at) VALUES (?, ?, ?)
            ON CONFLICT(user_id, exam_id) DO UPDATE SET started_at = excluded.started_at
            """,
            (user_id, exam_id, started_at),
        )


def close_challenge(user_id: str, exam_id: str) -> bool:
    """Remove the open challenge. Returns False if there was none."""
    with get_db() as conn:
        cursor = conn.execute(
            "DELETE FROM challenge_sessions WHERE user_id = ? AND exam_id = ?",
            (user_id, exam_id),
        )
    return cursor.rowcount > 0



def _row_to_exam(row) -> ExamRecord:
    return ExamRecord(
        id=row["id"],
        discipline_id=row["discipline_id"],
        name=row["name"],
        year=row["year"],
        season=row["season"],
        questions_count=row["questions_count"],
        description=row["description"],
        university=row["university"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )


def _row_to_question(row) -> QuestionRecord:
    return QuestionRecord(
        id=row["id"],
        exam_id=row["exam_id"],
        statement=row["statement"],
        options=from_json(row["options"], []),
        correct_option=row["correct_option"],
        discipline_id=row["discipline_id"],
        explanation=row["explanation"],
        difficulty=row["difficulty"],
        order_index=row["order_index"],
    )
