"""Repository functions for simulations, question history and milestones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examprep.db.database import from_json, generate_id, get_db, to_json, utc_now_iso

logger = structlog.get_logger(__name__)


@dataclass
class SimulationRecord:
    """Stored result of a completed simulation."""

    id: str
    user_id: str
    config: dict[str, Any]
    score: int
    correct_count: int
    total_questions: int
    time_spent: int
    answers: dict[str, int]
    created_at: str


@dataclass
class SimulationSessionRecord:
    """Generated simulation waiting for its answers."""

    id: str
    user_id: str
    config: dict[str, Any]
    question_ids: list[str]
    started_at: str
    completed_at: str | None = None


@dataclass
class QuestionHistoryRecord:
    user_id: str
    question_id: str
    was_correct: bool
    attempts: int
    last_attempt: str


# =============================================================================
# SIMULATIONS
# =============================================================================


def insert_simulation_session(
    user_id: str,
    config: dict[str, Any],
    question_ids: list[str],
) -> SimulationSessionRecord:
    record = SimulationSessionRecord(
        id=generate_id(),
        user_id=user_id,
        config=config,
        question_ids=question_ids,
        started_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO simulation_sessions (id, user_id, config, question_ids, started_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (record.id, user_id, to_json(config), to_json(question_ids), record.started_at),
        )
    return record


def get_simulation_session(session_id: str) -> SimulationSessionRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM simulation_sessions WHERE id = ?", (session_id,)
        ).fetchone()
    if row is None:
        return None
    return SimulationSessionRecord(
        id=row["id"],
        user_id=row["user_id"],
        config=from_json(row["config"], {}),
        question_ids=from_json(row["question_ids"], []),
        started_at=row["started_at"],
        completed_at=row["completed_at"],
    )


def insert_simulation(
    simulation_id: str,
    user_id: str,
    config: dict[str, Any],
    score: int,
    correct_count: int,
    total_questions: int,
    time_spent: int,
    answers: dict[str, int],
    history: list[tuple[str, bool]],
) -> SimulationRecord:
    """Store a simulation result, close its session and update question history atomically.

    Args:
        simulation_id: Id of the generated simulation session.
        history: (question_id, was_correct) for every question of the simulation.
    """
    record = SimulationRecord(
        id=simulation_id,
        user_id=user_id,
        config=config,
        score=score,
        correct_count=correct_count,
        total_questions=total_questions,
        time_spent=time_spent,
        answers=answers,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO simulations (
                id, user_id, config, score, correct_count, total_questions,
                time_spent, answers, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                user_id,
                to_json(config),
                score,
                correct_count,
                total_questions,
                time_spent,
                to_json(answers),
                record.created_at,
            ),
        )
        conn.execute(
            "UPDATE simulation_sessions SET completed_at = ? WHERE id = ?",
            (record.created_at, simulation_id),
        )
        for question_id, was_correct in history:
            conn.execute(
                """
                INSERT INTO question_history (user_id, question_id, was_correct, attempts, last_attempt)
                VALUES (?, ?, ?, 1, ?)
                ON CONFLICT(user_id, question_id) DO UPDATE SET
                    was_correct = excluded.was_correct,
                    attempts = question_history.attempts + 1,
                    last_attempt = excluded.last_attempt
                """,
                (user_id, question_id, int(was_correct), record.created_at),
            )

    logger.debug(
        "simulations.inserted",
        simulation_id=record.id,
        user_id=user_id,
        answered=len(history),
    )
    return record


def list_simulations(user_id: str, limit: int = 10) -> list[SimulationRecord]:
    """Most recent simulations first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM simulations WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()

    return [
        SimulationRecord(
            id=row["id"],
            user_id=row["user_id"],
            config=from_json(row["config"], {}),
            score=row["score"],
            correct_count=row["correct_count"],
            total_questions=row["total_questions"],
            time_spent=row["time_spent"],
            answers=from_json(row["answers"], {}),
            created_at=row["created_at"],
        )
        for row in rows
    ]


def count_simulations(user_id: str) -> int:
    with get_db() as conn:
        return conn.execute(
            "SELECT COUNT(*) FROM simulations WHERE user_id = ?", (user_id,)
        ).fetchone()[0]


def average_simulation_score(user_id: str) -> float:
    with get_db() as conn:
        value = conn.execute(
            "SELECT AVG(score) FROM simulations WHERE user_id = ?", (user_id,)
        ).fetchone()[0]
    return float(value or 0)


# =============================================================================
# QUESTION HISTORY
# =============================================================================


def get_question_history(user_id: str, question_ids: list[str]) -> dict[str, QuestionHistoryRecord]:
    """History entries for the given questions, keyed by question id."""
    if not question_ids:
        return {}
    placeholders = ", ".join("?" for _ in question_ids)
    with get_db() as conn:
        rows = conn.execute(
            f"""
            SELECT * FROM question_history
            WHERE user_id = ? AND question_id IN ({placeholders})
            """,
            [user_id, *question_ids],
        ).fetchall()

    return {
        row["question_id"]: QuestionHistoryRecord(
            user_id=row["user_id"],
            question_id=row["question_id"],
            was_correct=bool(row["was_correct"]),
            attempts=row["attempts"],
            last_attempt=row["last_attempt"],
        )
        for row in rows
    }


def list_wrong_question_ids(user_id: str, limit: int) -> list[str]:
    """Questions whose last attempt was wrong, most recent first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT question_id FROM question_history
            WHERE user_id = ? AND was_correct = 0
            ORDER BY last_attempt DESC LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
    return [row["question_id"] for row in rows]


# =============================================================================
# MILESTONES
# =============================================================================


def list_milestone_ids(user_id: str) -> set[str]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT milestone_id FROM user_milestones WHERE user_id = ?", (user_id,)
        ).fetchall()
    return {row["milestone_id"] for row in rows}


def save_milestone(user_id: str, milestone_id: str) -> bool:
    """Persist an achieved milestone. Returns False on duplicates."""
    with get_db() as conn:
        cursor = conn.execute(
            "INSERT OR IGNORE INTO user_milestones (user_id, milestone_id, earned_at) VALUES (?, ?, ?)",
            (user_id, milestone_id, utc_now_iso()),
        )
    return cursor.rowcount > 0
