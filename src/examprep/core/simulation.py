"""Exam simulations assembled from the whole question bank.

Modes:
- weaknesses: questions from the 3 disciplines with the lowest score
- revision: questions the user last answered wrong
- difficult: questions with difficulty >= 4
- random / custom: random questions from the selected disciplines

When a mode yields fewer questions than requested, the set is topped up
with random questions (never duplicated), shuffled and cut to the
requested size.

The generated set is stored under a simulation id and answer keys never
leave the server: results are graded against the stored set, unanswered
questions count as wrong, and a simulation can be submitted once.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass, field
from typing import Any

import structlog

from examprep.core import users
from examprep.core.errors import ConflictError, NotFoundError, ValidationError
from examprep.db import exams_repository, simulation_repository
from examprep.db.exams_repository import QuestionRecord
from examprep.db.simulation_repository import SimulationRecord

logger = structlog.get_logger(__name__)

MODES = ("weaknesses", "revision", "difficult", "random", "custom")
QUESTION_COUNTS = (10, 20, 30, 40, 50, 60)
DIFFICULT_THRESHOLD = 4
WEAK_DISCIPLINES = 3


@dataclass
class SimulationConfig:
    mode: str = "random"
    question_count: int = 20
    discipline_ids: list[str] = field(default_factory=list)
    university: str | None = None
    time_limit: int | None = None  # minutes

    def validate(self) -> None:
        if self.mode not in MODES:
            raise ValidationError(f"Unknown simulation mode '{self.mode}'. Valid: {', '.join(MODES)}")
        if self.question_count not in QUESTION_COUNTS:
            raise ValidationError(
                f"question_count must be one of {', '.join(str(c) for c in QUESTION_COUNTS)}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SimulationQuestion:
    """Question as shown during a simulation (no answer key)."""

    id: str
    exam_id: str
    discipline_id: str | None
    statement: str
    options: list[str]
    difficulty: int | None
    previously_answered: bool = False
    previously_correct: bool = False


@dataclass
class GeneratedSimulation:
    id: str
    config: SimulationConfig
    questions: list[SimulationQuestion]
    started_at: str


# =============================================================================
# QUESTION SELECTION
# =============================================================================


def _pool(config: SimulationConfig, discipline_ids: list[str] | None = None, min_difficulty: int | None = None) -> list[QuestionRecord]:
    return exams_repository.list_questions(
        discipline_ids=discipline_ids if discipline_ids is not None else config.discipline_ids or None,
        min_difficulty=min_difficulty,
        university=config.university,
    )


def _weakness_questions(uid: str, config: SimulationConfig, rng: random.Random) -> list[QuestionRecord]:
    scores = users.get_user(uid).discipline_scores
    weakest = [d for d, _ in sorted(scores.items(), key=lambda item: item[1])[:WEAK_DISCIPLINES]]
    targets = weakest or config.discipline_ids
    if not targets:
        return []

    per_discipline = -(-config.question_count // len(targets))
    selected = []
    for discipline_id in targets:
        pool = _pool(config, discipline_ids=[discipline_id])
        selected.extend(rng.sample(pool, min(per_discipline, len(pool))))
    return selected


def _revision_questions(uid: str, config: SimulationConfig) -> list[QuestionRecord]:
    wrong_ids = simulation_repository.list_wrong_question_ids(uid, limit=config.question_count * 2)
    return exams_repository.get_questions(wrong_ids)


def _mode_questions(uid: str, config: SimulationConfig, rng: random.Random) -> list[QuestionRecord]:
    if config.mode == "weaknesses":
        return _weakness_questions(uid, config, rng)
    if config.mode == "revision":
        return _revision_questions(uid, config)
    if config.mode == "difficult":
        return _pool(config, min_difficulty=DIFFICULT_THRESHOLD)
    return _pool(config)


def generate_simulation(
    uid: str,
    config: SimulationConfig,
    rng: random.Random | None = None,
) -> GeneratedSimulation:
    """Pick the questions of a new simulation and open it.

    The question set is stored under the simulation id; results are
    graded against it, never against ids sent by the client.

    Raises:
        ValidationError: If the config is invalid or no question matches
    """
    config.validate()
    rng = rng or random.Random()

    questions = _mode_questions(uid, config, rng)
    if len(questions) < config.question_count:
        seen = {q.id for q in questions}
        extra = [q for q in _pool(config) if q.id not in seen]
        rng.shuffle(extra)
        questions.extend(extra[: config.question_count - len(questions)])

    unique: dict[str, QuestionRecord] = {}
    for question in questions:
        unique.setdefault(question.id, question)
    selected = list(unique.values())
    rng.shuffle(selected)
    selected = selected[: config.question_count]
    if not selected:
        raise ValidationError("No questions match this simulation")

    session = simulation_repository.insert_simulation_session(
        uid, config.to_dict(), [q.id for q in selected]
    )
    history = simulation_repository.get_question_history(uid, [q.id for q in selected])
    logger.info(
        "simulations.generated",
        uid=uid,
        simulation_id=session.id,
        mode=config.mode,
        questions=len(selected),
    )
    return GeneratedSimulation(
        id=session.id,
        config=config,
        started_at=session.started_at,
        questions=[
            SimulationQuestion(
                id=q.id,
                exam_id=q.exam_id,
                discipline_id=q.discipline_id,
                statement=q.statement,
                options=q.options,
                difficulty=q.difficulty,
                previously_answered=q.id in history,
                previously_correct=history[q.id].was_correct if q.id in history else False,
            )
            for q in selected
        ],
    )


# =============================================================================
# RESULTS
# =============================================================================


def save_simulation_result(
    uid: str,
    simulation_id: str,
    answers: dict[str, int],
    time_spent: int = 0,
) -> SimulationRecord:
    """Grade a generated simulation against its stored questions and save it.

    Every question of the simulation counts; unanswered ones are wrong.
    Question history is updated for the answered ones.

    Args:
        answers: Selected option per question id.
        time_spent: Seconds spent.

    Raises:
        NotFoundError: If the simulation is unknown or another user's
        ConflictError: If the simulation was already submitted
        ValidationError: If an answer names a question outside the simulation
    """
    session = simulation_repository.get_simulation_session(simulation_id)
    if session is None or session.user_id != uid:
        raise NotFoundError("Simulation", simulation_id)
    if session.completed_at is not None:
        raise ConflictError("This simulation was already submitted")

    outside = sorted(qid for qid in answers if qid not in session.question_ids)
    if outside:
        raise ValidationError(f"Question(s) not in this simulation: {', '.join(outside)}")

    questions = exams_repository.get_questions(session.question_ids)
    if not questions:
        raise ValidationError("The questions of this simulation no longer exist")

    correct = sum(1 for q in questions if answers.get(q.id) == q.correct_option)
    history = [(q.id, answers[q.id] == q.correct_option) for q in questions if q.id in answers]
    score = round(correct / len(questions) * 100)

    record = simulation_repository.insert_simulation(
        simulation_id=session.id,
        user_id=uid,
        config=session.config,
        score=score,
        correct_count=correct,
        total_questions=len(questions),
        time_spent=time_spent,
        answers=answers,
        history=history,
    )
    mode = session.config.get("mode", "random")
    users.add_user_activity(uid, "simulation", f"Simulation ({mode})", score=score)

    logger.info("simulations.saved", uid=uid, simulation_id=record.id, score=score)
    return record


def simulation_history(uid: str, limit: int = 10) -> list[SimulationRecord]:
    """Newest first."""
    return simulation_repository.list_simulations(uid, limit=limit)
