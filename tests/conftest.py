"""Shared fixtures.

Every test runs against its own SQLite file under tmp_path (through
EXAMPREP_DB_PATH), with the config and in-process caches reset.
"""

import itertools

import pytest

from examprep.config import clear_config_cache
from examprep.core import content, exams, users
from examprep.core.content_cache import reset_stores
from examprep.db.database import generate_id, init_db, reset_db_path
from examprep.db.exams_repository import NewQuestion

_counter = itertools.count(1)


@pytest.fixture(autouse=True)
def isolated_db(tmp_path, monkeypatch):
    """Point the database at a temporary file for the duration of a test."""
    db_path = tmp_path / "examprep_test.db"
    monkeypatch.setenv("EXAMPREP_DB_PATH", str(db_path))
    clear_config_cache()
    reset_db_path()
    reset_stores()
    init_db(db_path)
    yield db_path
    reset_stores()
    reset_db_path()
    clear_config_cache()


@pytest.fixture
def make_user():
    """Factory creating user profiles with unique names."""

    def _make(role: str = "user", is_premium: bool = False, display_name: str | None = None):
        n = next(_counter)
        return users.register_user(
            generate_id(),
            f"user{n}@example.com",
            display_name or f"User {n}",
            role=role,
            is_premium=is_premium,
        )

    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def premium_user(make_user):
    return make_user(is_premium=True)


@pytest.fixture
def admin(make_user):
    return make_user(role="admin")


@pytest.fixture
def university():
    return content.create_university("University of Testing", "UT")


@pytest.fixture
def discipline(university):
    return content.create_discipline("Mathematics", "calculator", "blue", university.id)


@pytest.fixture
def make_exam(discipline):
    """Factory creating an exam with `count` questions.

    Question i has options A-D and correct option i % 4.
    """

    def _make(count: int = 4, is_active: bool = True, name: str = "Admission 2023", discipline_id: str | None = None):
        exam = exams.create_exam(
            discipline_id=discipline_id or discipline.id,
            name=name,
            year=2023,
            season="1st season",
            is_active=is_active,
        )
        if count:
            exams.bulk_import_questions(
                exam.id,
                [
                    NewQuestion(
                        statement=f"Question {i}?",
                        options=["A", "B", "C", "D"],
                        correct_option=i % 4,
                        explanation=f"Because {i}",
                        difficulty=(i % 5) + 1,
                    )
                    for i in range(count)
                ],
            )
        return exams.get_exam(exam.id)

    return _make


@pytest.fixture
def exam(make_exam):
    return make_exam()


@pytest.fixture
def exam_questions(exam):
    return exams.questions_by_exam(exam.id)


@pytest.fixture
def answer_key(exam_questions):
    """Answer map with every question of `exam` right."""
    return {q.id: q.correct_option for q in exam_questions}
