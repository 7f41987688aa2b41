"""Repository functions for the practice path.

A discipline's path is made of sections, each holding ordered steps
(short lessons, optionally linked to a syllabus topic) with their own
practice questions. Progress is kept per user and step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examprep.db.database import (
    build_update,
    escape_like,
    from_json,
    generate_id,
    get_db,
    to_json,
    utc_now_iso,
)

logger = structlog.get_logger(__name__)

SECTION_COLUMNS = frozenset({"title", "description", "order_index", "is_active"})
STEP_COLUMNS = frozenset(
    {"section_id", "topic_id", "title", "description", "content", "order_index", "is_active"}
)
PRACTICE_QUESTION_COLUMNS = frozenset(
    {"statement", "options", "correct_option", "explanation", "xp", "order_index"}
)


@dataclass
class SectionRecord:
    id: str
    discipline_id: str
    title: str
    description: str
    order_index: int
    is_active: bool
    created_at: str


@dataclass
class StepRecord:
    """One lesson of the path."""

    id: str
    section_id: str | None
    topic_id: str | None
    title: str
    description: str
    content: str
    order_index: int
    is_active: bool
    created_at: str


@dataclass
class PracticeQuestionRecord:
    id: str
    step_id: str
    statement: str
    options: list[str]
    correct_option: int
    explanation: str | None
    xp: int
    order_index: int


@dataclass
class PracticeProgressRecord:
    """Best result of a user on one step."""

    user_id: str
    step_id: str
    section_id: str | None
    discipline_id: str
    completed: bool
    best_score: int
    last_score: int
    attempts: int
    xp_earned: int
    last_active: str


# =============================================================================
# SECTIONS
# =============================================================================


def insert_section(
    discipline_id: str,
    title: str,
    description: str = "",
    order_index: int = 0,
    is_active: bool = True,
) -> SectionRecord:
    record = SectionRecord(
        id=generate_id(),
        discipline_id=discipline_id,
        title=title,
        description=description,
        order_index=order_index,
        is_active=is_active,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO learning_sections (
                id, discipline_id, title, description, order_index, is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                discipline_id,
                title,
                description,
                order_index,
                int(is_active),
                record.created_at,
            ),
        )
    logger.debug("practice.section_inserted", section_id=record.id, discipline_id=discipline_id)
    return record


def get_section(section_id: str) -> SectionRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM learning_sections WHERE id = ?", (section_id,)).fetchone()
    return _row_to_section(row) if row else None


def list_sections(discipline_id: str, active_only: bool = False) -> list[SectionRecord]:
    sql = "SELECT * FROM learning_sections WHERE discipline_id = ?"
    if active_only:
        sql += " AND is_active = 1"
    sql += " ORDER BY order_index, rowid"

    with get_db() as conn:
        rows = conn.execute(sql, (discipline_id,)).fetchall()
    return [_row_to_section(row) for row in rows]


def update_section(section_id: str, **fields: Any) -> bool:
    statement = build_update("learning_sections", "id", section_id, fields, SECTION_COLUMNS)
    if statement is None:
        return get_section(section_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_section(section_id: str) -> bool:
    """Delete a section with its steps, questions and progress."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM learning_sections WHERE id = ?", (section_id,))
    return cursor.rowcount > 0


# =============================================================================
# STEPS
# =============================================================================


def insert_step(
    title: str,
    section_id: str | None = None,
    topic_id: str | None = None,
    description: str = "",
    content: str = "",
    order_index: int = 0,
    is_active: bool = True,
) -> StepRecord:
    record = StepRecord(
        id=generate_id(),
        section_id=section_id,
        topic_id=topic_id,
        title=title,
        description=description,
        content=content,
        order_index=order_index,
        is_active=is_active,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO learning_steps (
                id, section_id, topic_id, title, description, content,
                order_index, is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                section_id,
                topic_id,
                title,
                description,
                content,
                order_index,
                int(is_active),
                record.created_at,
            ),
        )
    return record


def get_step(step_id: str) -> StepRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM learning_steps WHERE id = ?", (step_id,)).fetchone()
    return _row_to_step(row) if row else None


def list_steps(section_id: str, active_only: bool = False) -> list[StepRecord]:
    sql = "SELECT * FROM learning_steps WHERE section_id = ?"
    if active_only:
        sql += " AND is_active = 1"
    sql += " ORDER BY order_index, rowid"

    with get_db() as conn:
        rows = conn.execute(sql, (section_id,)).fetchall()
    return [_row_to_step(row) for row in rows]


def list_discipline_steps(discipline_id: str, active_only: bool = True) -> list[StepRecord]:
    """Every step of a discipline's path, in section then step order."""
    sql = """
        SELECT st.* FROM learning_steps st
        JOIN learning_sections se ON se.id = st.section_id
        WHERE se.discipline_id = ?
    """
    if active_only:
        sql += " AND se.is_active = 1 AND st.is_active = 1"
    sql += " ORDER BY se.order_index, se.rowid, st.order_index, st.rowid"

    with get_db() as conn:
        rows = conn.execute(sql, (discipline_id,)).fetchall()
    return [_row_to_step(row) for row in rows]


def update_step(step_id: str, **fields: Any) -> bool:
    statement = build_update("learning_steps", "id", step_id, fields, STEP_COLUMNS)
    if statement is None:
        return get_step(step_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_step(step_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM learning_steps WHERE id = ?", (step_id,))
    return cursor.rowcount > 0


def find_step_for_topic(topic_id: str, topic_name: str) -> StepRecord | None:
    """Learning step for a topic, falling back to a title match."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM learning_steps WHERE topic_id = ? ORDER BY order_index LIMIT 1",
            (topic_id,),
        ).fetchone()
        if row is None:
            row = conn.execute(
                """
                SELECT * FROM learning_steps WHERE LOWER(title) LIKE ? ESCAPE '\\'
                ORDER BY order_index LIMIT 1
                """,
                (f"%{escape_like(topic_name.lower())}%",),
            ).fetchone()
    return _row_to_step(row) if row else None


def count_steps_by_discipline(discipline_ids: list[str]) -> dict[str, int]:
    """Active steps of active sections per discipline."""
    if not discipline_ids:
        return {}
    placeholders = ", ".join("?" for _ in discipline_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"""
            SELECT se.discipline_id, COUNT(st.id) AS total
            FROM learning_steps st
            JOIN learning_sections se ON se.id = st.section_id
            WHERE se.discipline_id IN ({placeholders})
              AND se.is_active = 1 AND st.is_active = 1
            GROUP BY se.discipline_id
            """,
            discipline_ids,
        ).fetchall()
    return {row["discipline_id"]: row["total"] for row in rows}


# =============================================================================
# PRACTICE QUESTIONS
# =============================================================================


def insert_practice_question(
    step_id: str,
    statement: str,
    options: list[str],
    correct_option: int,
    explanation: str | None = None,
    xp: int = 10,
    order_index: int = 0,
) -> PracticeQuestionRecord:
    record = PracticeQuestionRecord(
        id=generate_id(),
        step_id=step_id,
        statement=statement,
        options=options,
        correct_option=correct_option,
        explanation=explanation,
        xp=xp,
        order_index=order_index,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO learning_questions (
                id, step_id, statement, options, correct_option, explanation, xp, order_index
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                step_id,
                statement,
                to_json(options),
                correct_option,
                explanation,
                xp,
                order_index,
            ),
        )
    return record


def get_practice_question(question_id: str) -> PracticeQuestionRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM learning_questions WHERE id = ?", (question_id,)).fetchone()
    return _row_to_practice_question(row) if row else None


def list_practice_questions(step_id: str) -> list[PracticeQuestionRecord]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM learning_questions WHERE step_id = ? ORDER BY order_index, rowid",
            (step_id,),
        ).fetchall()
    return [_row_to_practice_question(row) for row in rows]


def update_practice_question(question_id: str, **fields: Any) -> bool:
    statement = build_update(
        "learning_questions", "id", question_id, fields, PRACTICE_QUESTION_COLUMNS, {"options"}
    )
    if statement is None:
        return get_practice_question(question_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_practice_question(question_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM learning_questions WHERE id = ?", (question_id,))
    return cursor.rowcount > 0


# =============================================================================
# PROGRESS
# =============================================================================


def get_progress(user_id: str, step_id: str) -> PracticeProgressRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM practice_progress WHERE user_id = ? AND step_id = ?",
            (user_id, step_id),
        ).fetchone()
    return _row_to_progress(row) if row else None


def list_progress(user_id: str, discipline_id: str) -> dict[str, PracticeProgressRecord]:
    """Progress of a user in one discipline, keyed by step id."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM practice_progress WHERE user_id = ? AND discipline_id = ?",
            (user_id, discipline_id),
        ).fetchall()
    return {row["step_id"]: _row_to_progress(row) for row in rows}


def save_progress(
    user_id: str,
    step_id: str,
    section_id: str | None,
    discipline_id: str,
    score: int,
    xp_granted: int,
) -> PracticeProgressRecord:
    """Record an attempt; the best score is kept."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO practice_progress (
                user_id, step_id, section_id, discipline_id, completed,
                best_score, last_score, attempts, xp_earned, last_active
            ) VALUES (?, ?, ?, ?, 1, ?, ?, 1, ?, ?)
            ON CONFLICT(user_id, step_id) DO UPDATE SET
                completed = 1,
                best_score = MAX(practice_progress.best_score, excluded.best_score),
                last_score = excluded.last_score,
                attempts = practice_progress.attempts + 1,
                xp_earned = practice_progress.xp_earned + excluded.xp_earned,
                last_active = excluded.last_active
            """,
            (user_id, step_id, section_id, discipline_id, score, score, xp_granted, utc_now_iso()),
        )
    return get_progress(user_id, step_id)


def count_completed_by_discipline(user_id: str, discipline_ids: list[str]) -> dict[str, int]:
    """Completed active steps per discipline."""
    if not discipline_ids:
        return {}
    placeholders = ", ".join("?" for _ in discipline_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"""
            SELECT p.discipline_id, COUNT(*) AS completed
            FROM practice_progress p
            JOIN learning_steps st ON st.id = p.step_id
            JOIN learning_sections se ON se.id = st.section_id
            WHERE p.user_id = ? AND p.completed = 1
              AND p.discipline_id IN ({placeholders})
              AND se.is_active = 1 AND st.is_active = 1
            GROUP BY p.discipline_id
            """,
            [user_id, *discipline_ids],
        ).fetchall()
    return {row["discipline_id"]: row["completed"] for row in rows}


# =============================================================================
# HELPERS
# =============================================================================


def _row_to_section(row) -> SectionRecord:
    return SectionRecord(
        id=row["id"],
        discipline_id=row["discipline_id"],
        title=row["title"],
        description=row["description"],
        order_index=row["order_index"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )


def _row_to_step(row) -> StepRecord:
    return StepRecord(
        id=row["id"],
        section_id=row["section_id"],
        topic_id=row["topic_id"],
        title=row["title"],
        description=row["description"],
        content=row["content"],
        order_index=row["order_index"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )


def _row_to_practice_question(row) -> PracticeQuestionRecord:
    return PracticeQuestionRecord(
        id=row["id"],
        step_id=row["step_id"],
        statement=row["statement"],
        options=from_json(row["options"], []),
        correct_option=row["correct_option"],
        explanation=row["explanation"],
        xp=row["xp"],
        order_index=row["order_index"],
    )


def _row_to_progress(row) -> PracticeProgressRecord:
    return PracticeProgressRecord(
        user_id=row["user_id"],
        step_id=row["step_id"],
        section_id=row["section_id"],
        discipline_id=row["discipline_id"],
        completed=bool(row["completed"]),
        best_score=row["best_score"],
        last_score=row["last_score"],
        attempts=row["attempts"],
        xp_earned=row["xp_earned"],
        last_active=row["last_active"],
    )
