"""Tests for syllabus topics, course requirements and coverage."""

import pytest

from examprep.core import content, practice, syllabus, tracking, users
from examprep.core.errors import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def physics(university):
    return content.create_discipline("Physics", "atom", "red", university.id)


@pytest.fixture
def course(university, discipline, physics):
    return syllabus.create_course(
        "Engineering",
        university.id,
        [{"discipline_id": discipline.id, "weight": 0.6}, {"discipline_id": physics.id, "weight": 0.4}],
        minimum_score=70,
    )


def _steps(discipline_id, count):
    section = practice.create_section(discipline_id, "Basics")
    steps = []
    for i in range(count):
        step = practice.create_step(section.id, f"Step {i}", order_index=i)
        practice.create_question(step.id, "Q?", ["A", "B"], correct_option=0)
        steps.append(step)
    return steps


class TestTopics:
    def test_discipline_name_filled(self, discipline):
        topic = syllabus.create_topic(discipline.id, " Limits ", importance=1, subtopics=["one-sided"])

        assert topic.topic_name == "Limits"
        assert topic.discipline_name == "Mathematics"
        assert topic.subtopics == ["one-sided"]

    def test_unknown_discipline(self):
        with pytest.raises(NotFoundError):
            syllabus.create_topic("ghost", "Limits")

    @pytest.mark.parametrize("fields", [{"importance": 0}, {"importance": 6}, {"estimated_hours": 0}, {"topic_name": " "}])
    def test_invalid_fields(self, discipline, fields):
        topic = syllabus.create_topic(discipline.id, "Limits")

        with pytest.raises(ValidationError):
            syllabus.update_topic(topic.id, **fields)

    def test_list_by_discipline(self, discipline, physics):
        syllabus.create_topic(discipline.id, "Limits")
        syllabus.create_topic(physics.id, "Optics")

        assert [t.topic_name for t in syllabus.list_topics(physics.id)] == ["Optics"]
        assert len(syllabus.list_topics()) == 2

    def test_update_and_delete(self, discipline):
        topic = syllabus.create_topic(discipline.id, "Limits")

        assert syllabus.update_topic(topic.id, importance=2).importance == 2
        syllabus.delete_topic(topic.id)
        with pytest.raises(NotFoundError):
            syllabus.get_topic(topic.id)
        with pytest.raises(NotFoundError):
            syllabus.delete_topic(topic.id)


class TestCourses:
    def test_disciplines_normalised(self, course):
        assert course.university_name == "University of Testing"
        assert [d["discipline_name"] for d in course.disciplines] == ["Mathematics", "Physics"]
        assert all(d["is_required"] for d in course.disciplines)

    @pytest.mark.parametrize("weights", [(0.5, 0.4), (0.7, 0.4), (1.0, 0)])
    def test_weights_must_sum_to_one(self, university, discipline, physics, weights):
        with pytest.raises(ValidationError):
            syllabus.create_course(
                "Medicine",
                university.id,
                [
                    {"discipline_id": discipline.id, "weight": weights[0]},
                    {"discipline_id": physics.id, "weight": weights[1]},
                ],
            )

    def test_needs_a_discipline(self, university):
        with pytest.raises(ValidationError):
            syllabus.create_course("Medicine", university.id, [])

    def test_unknown_discipline(self, university):
        with pytest.raises(NotFoundError):
            syllabus.create_course("Medicine", university.id, [{"discipline_id": "ghost", "weight": 1}])

    def test_duplicate_name(self, course, university, discipline):
        with pytest.raises(ConflictError):
            syllabus.create_course("Engineering", university.id, [{"discipline_id": discipline.id, "weight": 1}])

    def test_rename_onto_other_course(self, course, university, discipline):
        other = syllabus.create_course("Medicine", university.id, [{"discipline_id": discipline.id, "weight": 1}])

        with pytest.raises(ConflictError):
            syllabus.update_course(other.id, course_name="Engineering")
        assert syllabus.update_course(other.id, course_name="Medicine ").course_name == "Medicine"

    def test_update_revalidates_weights(self, course, discipline):
        with pytest.raises(ValidationError):
            syllabus.update_course(course.id, disciplines=[{"discipline_id": discipline.id, "weight": 0.5}])

        updated = syllabus.update_course(course.id, disciplines=[{"discipline_id": discipline.id, "weight": 1}])
        assert [d["discipline_id"] for d in updated.disciplines] == [discipline.id]

    def test_delete(self, course):
        syllabus.delete_course(course.id)

        assert syllabus.list_courses() == []
        with pytest.raises(NotFoundError):
            syllabus.get_course(course.id)


class TestImport:
    def test_topics_and_courses(self, university, discipline, physics):
        document = {
            "topics": [
                {"discipline_id": discipline.id, "topic_name": "Limits", "importance": 1},
                {"discipline_id": physics.id, "topic_name": "Optics", "estimated_hours": 4},
            ],
            "courses": [
                {
                    "course_name": "Engineering",
                    "university_id": university.id,
                    "disciplines": [{"discipline_id": discipline.id, "weight": 1}],
                }
            ],
        }

        assert syllabus.import_syllabus(document) == (2, 1)
        assert {t.topic_name for t in syllabus.list_topics()} == {"Limits", "Optics"}
        assert syllabus.list_courses()[0].course_name == "Engineering"

    def test_existing_course_replaced(self, course, university, discipline):
        document = {
            "courses": [
                {
                    "course_name": "Engineering",
                    "university_id": university.id,
                    "disciplines": [{"discipline_id": discipline.id, "weight": 1}],
                    "minimum_score": 80,
                }
            ]
        }

        syllabus.import_syllabus(document)

        [updated] = syllabus.list_courses()
        assert updated.id == course.id
        assert updated.minimum_score == 80

    def test_invalid_entry_writes_nothing(self, university, discipline):
        document = {
            "topics": [{"discipline_id": discipline.id, "topic_name": "Limits"}],
            "courses": [
                {
                    "course_name": "Engineering",
                    "university_id": university.id,
                    "disciplines": [{"discipline_id": discipline.id, "weight": 0.3}],
                }
            ],
        }

        with pytest.raises(ValidationError):
            syllabus.import_syllabus(document)
        assert syllabus.list_topics() == []

    def test_unknown_topic_field(self, discipline):
        with pytest.raises(ValidationError, match="colour"):
            syllabus.import_syllabus({"topics": [{"discipline_id": discipline.id, "topic_name": "X", "colour": "red"}]})

    def test_empty_document(self):
        with pytest.raises(ValidationError, match="Nothing to import"):
            syllabus.import_syllabus({})


class TestCoverage:
    def test_target_course_disciplines(self, user, course, discipline, physics):
        tracking.upsert_profile(user.uid, target_course="Engineering")

        assert syllabus.target_disciplines(user.uid) == [discipline.id, physics.id]

    def test_falls_back_to_study_plan(self, user, discipline):
        users.save_study_plan(user.uid, {"subjects": [discipline.id]})

        assert syllabus.target_disciplines(user.uid) == [discipline.id]

    def test_completed_share_of_steps(self, user, course, discipline, physics):
        tracking.upsert_profile(user.uid, target_course="Engineering")
        steps = _steps(discipline.id, 4)
        practice.submit_step(user.uid, steps[0].id, {})

        coverage = {c.discipline_id: c for c in syllabus.syllabus_coverage(user.uid)}

        assert coverage[discipline.id].total_steps == 4
        assert coverage[discipline.id].completed_steps == 1
        assert coverage[discipline.id].percentage == 25
        assert coverage[physics.id].total_steps == 0
        assert coverage[physics.id].percentage == 0
        assert syllabus.coverage_by_discipline(user.uid) == {discipline.id: 25, physics.id: 0}

    def test_inactive_steps_not_counted(self, user, discipline):
        steps = _steps(discipline.id, 2)
        practice.submit_step(user.uid, steps[0].id, {})
        practice.update_step(steps[0].id, is_active=False)

        [coverage] = syllabus.syllabus_coverage(user.uid, [discipline.id])

        assert coverage.total_steps == 1
        assert coverage.completed_steps == 0

    def test_no_targets(self, user):
        assert syllabus.syllabus_coverage(user.uid) == []
