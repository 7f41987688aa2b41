"""Tests for universities, disciplines, exams and questions."""

import pytest

from examprep.core import content, exams
from examprep.core.errors import NotFoundError, ValidationError
from examprep.db.exams_repository import NewQuestion


def _question(**overrides):
    data = {"statement": "2 + 2?", "options": ["3", "4", "5"], "correct_option": 1}
    data.update(overrides)
    return NewQuestion(**data)


class TestUniversities:
    def test_create_and_list(self):
        content.create_university("Zeta University", "ZU")
        content.create_university("Alpha University", "AU")

        names = [u.name for u in content.list_universities()]
        assert names == ["Alpha University", "Zeta University"]

    def test_active_only(self):
        content.create_university("Closed", "CL", is_active=False)
        assert content.list_universities(active_only=True) == []

    def test_update_missing(self):
        with pytest.raises(NotFoundError):
            content.update_university("missing", name="X")

    def test_delete(self, university):
        content.delete_university(university.id)
        with pytest.raises(NotFoundError):
            content.delete_university(university.id)


class TestDisciplines:
    def test_university_name_denormalised(self, university):
        discipline = content.create_discipline("Physics", university_id=university.id)
        assert discipline.university_name == "University of Testing"

    def test_unknown_university(self):
        with pytest.raises(NotFoundError):
            content.create_discipline("Physics", university_id="missing")

    def test_moving_to_other_university_refreshes_name(self, discipline):
        other = content.create_university("Other University", "OU")
        updated = content.update_discipline(discipline.id, university_id=other.id)
        assert updated.university_name == "Other University"

    def test_by_university_sorted_by_title(self, university):
        content.create_discipline("Physics", university_id=university.id)
        content.create_discipline("Chemistry", university_id=university.id)
        content.create_discipline("Biology", university_id=university.id, is_active=False)

        titles = [d.title for d in content.disciplines_by_university(university.id)]
        assert titles == ["Chemistry", "Physics"]

    def test_default_content_seeded_once(self):
        assert content.initialize_default_content() is True
        assert content.list_universities()
        assert content.list_disciplines()
        assert content.initialize_default_content() is False


class TestExams:
    def test_create_requires_discipline(self):
        with pytest.raises(NotFoundError):
            exams.create_exam("missing", "Exam", 2023)

    def test_get_inactive_hidden(self, make_exam):
        exam = make_exam(is_active=False)
        assert exams.get_exam(exam.id).id == exam.id
        with pytest.raises(NotFoundError):
            exams.get_exam(exam.id, include_inactive=False)

    def test_list_active_exams(self, make_exam):
        make_exam(name="Active")
        make_exam(name="Hidden", is_active=False)

        assert [e.name for e in exams.list_active_exams()] == ["Active"]
        assert len(exams.list_all_exams()) == 2

    def test_delete_removes_questions(self, exam, exam_questions):
        exams.delete_exam(exam.id)
        assert exams.questions_by_exam(exam.id) == []


class TestQuestions:
    def test_create_counts_and_inherits_discipline(self, make_exam, discipline):
        exam = make_exam(count=0)
        question = exams.create_question(exam.id, _question())

        assert question.discipline_id == discipline.id
        assert exams.get_exam(exam.id).questions_count == 1

    @pytest.mark.parametrize(
        "overrides",
        [
            {"statement": "  "},
            {"options": ["only one"]},
            {"options": ["a", "b", "c", "d", "e", "f"]},
            {"correct_option": 3},
        ],
    )
    def test_invalid_questions(self, exam, overrides):
        with pytest.raises(ValidationError):
            exams.create_question(exam.id, _question(**overrides))

    def test_update_revalidates(self, exam_questions):
        question = exam_questions[0]
        with pytest.raises(ValidationError):
            exams.update_question(question.id, options=["x", "y"], correct_option=3)

    def test_update(self, exam_questions):
        question = exam_questions[0]
        updated = exams.update_question(question.id, explanation="New explanation")
        assert updated.explanation == "New explanation"

    def test_delete_decrements_count(self, exam, exam_questions):
        exams.delete_question(exam_questions[0].id)
        assert exams.get_exam(exam.id).questions_count == 3


class TestBulkImport:
    def test_sets_count_and_order(self, make_exam):
        exam = make_exam(count=0)
        records = exams.bulk_import_questions(exam.id, [_question(), _question(), _question()])

        assert len(records) == 3
        assert exams.get_exam(exam.id).questions_count == 3
        assert [q.order_index for q in exams.questions_by_exam(exam.id)] == [1, 2, 3]

    def test_one_invalid_item_rejects_all(self, make_exam):
        exam = make_exam(count=0)
        with pytest.raises(ValidationError, match="Question 2"):
            exams.bulk_import_questions(exam.id, [_question(), _question(correct_option=9)])

        assert exams.questions_by_exam(exam.id) == []

    def test_empty_list(self, exam):
        with pytest.raises(ValidationError):
            exams.bulk_import_questions(exam.id, [])

    def test_unknown_exam(self):
        with pytest.raises(NotFoundError):
            exams.bulk_import_questions("missing", [_question()])
