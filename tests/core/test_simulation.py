"""Tests for exam simulations built from the question bank."""

import random

import pytest

from examprep.core import content, exams, simulation, users
from examprep.core.errors import ConflictError, NotFoundError, ValidationError
from examprep.core.simulation import SimulationConfig
from examprep.db import simulation_repository


def _generate(uid, config=None, seed=0):
    return simulation.generate_simulation(uid, config or SimulationConfig(question_count=10), rng=random.Random(seed))


class TestSimulationConfig:
    def test_unknown_mode(self):
        with pytest.raises(ValidationError, match="Unknown simulation mode"):
            SimulationConfig(mode="marathon").validate()

    def test_question_count_must_be_a_step(self):
        with pytest.raises(ValidationError, match="question_count"):
            SimulationConfig(question_count=15).validate()


class TestGenerateSimulation:
    def test_random_mode_unique_questions(self, user, make_exam):
        make_exam(count=12)

        generated = _generate(user.uid, SimulationConfig(mode="random", question_count=10), seed=1)

        assert len(generated.questions) == 10
        assert len({q.id for q in generated.questions}) == 10
        assert all(not q.previously_answered for q in generated.questions)

    def test_answer_keys_stay_on_the_server(self, user, exam):
        generated = _generate(user.uid)

        assert not hasattr(generated.questions[0], "correct_option")
        assert not hasattr(generated.questions[0], "explanation")

    def test_question_set_stored_under_id(self, user, exam):
        generated = _generate(user.uid)

        session = simulation_repository.get_simulation_session(generated.id)
        assert session.user_id == user.uid
        assert session.question_ids == [q.id for q in generated.questions]
        assert session.completed_at is None

    def test_small_bank_returns_what_exists(self, user, exam):
        assert len(_generate(user.uid).questions) == 4

    def test_empty_bank_rejected(self, user):
        with pytest.raises(ValidationError, match="No questions"):
            _generate(user.uid)

    def test_same_seed_same_selection(self, user, make_exam):
        make_exam(count=30)

        first = _generate(user.uid, seed=7)
        second = _generate(user.uid, seed=7)

        assert [q.id for q in first.questions] == [q.id for q in second.questions]
        assert first.id != second.id

    def test_difficult_mode_topped_up(self, user, make_exam):
        exam = make_exam(count=12)
        difficult = {q.id for q in exams.questions_by_exam(exam.id) if q.difficulty >= 4}

        generated = _generate(user.uid, SimulationConfig(mode="difficult", question_count=10), seed=3)

        assert len(difficult) == 4
        assert len(generated.questions) == 10
        assert difficult <= {q.id for q in generated.questions}

    def test_weaknesses_use_lowest_scored_discipline(self, user, university, discipline, make_exam):
        physics = content.create_discipline("Physics", "atom", "red", university.id)
        make_exam(count=12)
        physics_exam = make_exam(count=12, name="Physics 2023", discipline_id=physics.id)
        users.update_user_discipline_score(user.uid, physics.id, 1)

        generated = _generate(user.uid, SimulationConfig(mode="weaknesses", question_count=10), seed=5)

        physics_ids = {q.id for q in exams.questions_by_exam(physics_exam.id)}
        assert len(generated.questions) == 10
        assert all(q.id in physics_ids for q in generated.questions)

    def test_revision_mode_returns_wrong_answers(self, user, exam, exam_questions):
        wrong = exam_questions[:2]
        answers = {q.id: q.correct_option for q in exam_questions}
        for q in wrong:
            answers[q.id] = (q.correct_option + 1) % 4
        simulation.save_simulation_result(user.uid, _generate(user.uid).id, answers)

        generated = _generate(user.uid, SimulationConfig(mode="revision", question_count=10))

        by_id = {q.id: q for q in generated.questions}
        for q in wrong:
            assert by_id[q.id].previously_answered is True
            assert by_id[q.id].previously_correct is False
        right = exam_questions[2]
        assert by_id[right.id].previously_correct is True


class TestSaveSimulationResult:
    def test_grades_against_stored_set(self, user, exam_questions, answer_key):
        generated = _generate(user.uid, SimulationConfig(mode="custom", question_count=10))
        answers = dict(answer_key)
        first = exam_questions[0]
        answers[first.id] = (first.correct_option + 1) % 4

        record = simulation.save_simulation_result(user.uid, generated.id, answers, time_spent=600)

        assert record.id == generated.id
        assert record.correct_count == 3
        assert record.total_questions == 4
        assert record.score == 75
        assert record.config["mode"] == "custom"
        assert users.recent_activity(user.uid)[0].activity_type == "simulation"

    def test_unanswered_questions_count_as_wrong(self, user, exam_questions):
        generated = _generate(user.uid)
        first = exam_questions[0]

        record = simulation.save_simulation_result(user.uid, generated.id, {first.id: first.correct_option})

        assert record.correct_count == 1
        assert record.total_questions == 4
        assert record.score == 25

    def test_empty_answers_score_zero(self, user, exam):
        record = simulation.save_simulation_result(user.uid, _generate(user.uid).id, {})

        assert record.score == 0
        assert record.total_questions == 4

    def test_question_outside_simulation_rejected(self, user, answer_key):
        generated = _generate(user.uid)

        with pytest.raises(ValidationError, match="missing-question"):
            simulation.save_simulation_result(user.uid, generated.id, {**answer_key, "missing-question": 0})

        assert simulation.simulation_history(user.uid) == []

    def test_submitted_once(self, user, answer_key):
        generated = _generate(user.uid)
        simulation.save_simulation_result(user.uid, generated.id, answer_key)

        with pytest.raises(ConflictError):
            simulation.save_simulation_result(user.uid, generated.id, answer_key)

    def test_other_users_simulation_hidden(self, make_user, answer_key):
        owner, other = make_user(), make_user()
        generated = _generate(owner.uid)

        with pytest.raises(NotFoundError):
            simulation.save_simulation_result(other.uid, generated.id, answer_key)

    def test_unknown_simulation(self, user):
        with pytest.raises(NotFoundError):
            simulation.save_simulation_result(user.uid, "ghost", {})

    def test_history_newest_first(self, user, answer_key):
        first = simulation.save_simulation_result(
            user.uid, _generate(user.uid, SimulationConfig(mode="random", question_count=10)).id, answer_key
        )
        second = simulation.save_simulation_result(
            user.uid, _generate(user.uid, SimulationConfig(mode="difficult", question_count=10)).id, answer_key
        )

        history = simulation.simulation_history(user.uid, limit=5)

        assert [r.id for r in history] == [second.id, first.id]
