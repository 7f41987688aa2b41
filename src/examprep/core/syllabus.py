"""Syllabus topics, course requirements and syllabus coverage.

Responsibilities:
- Admin CRUD for the syllabus topics of each discipline
- Admin CRUD for course requirements (disciplines a course demands, with
  weights summing to 1)
- Bulk import of a syllabus document (validated before anything is written)
- Coverage: share of a discipline's practice path the user has completed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examprep.core import content, users
from examprep.core.errors import ConflictError, NotFoundError, ValidationError
from examprep.db import content_repository, practice_repository, tracking_repository
from examprep.db.tracking_repository import CourseRequirementsRecord, SyllabusTopicRecord

logger = structlog.get_logger(__name__)

MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 5
WEIGHT_TOLERANCE = 0.01
TOPIC_FIELDS = frozenset(
    {
        "discipline_id",
        "topic_name",
        "importance",
        "estimated_hours",
        "order_index",
        "subtopics",
        "prerequisites",
        "description",
        "university_id",
        "course_name",
    }
)


@dataclass
class DisciplineCoverage:
    """Completed steps of a discipline's practice path."""

    discipline_id: str
    discipline_title: str
    total_steps: int
    completed_steps: int
    percentage: int


# =============================================================================
# TOPICS
# =============================================================================


def _validate_topic_fields(fields: dict[str, Any]) -> None:
    if "topic_name" in fields and not str(fields["topic_name"]).strip():
        raise ValidationError("topic_name is empty")
    importance = fields.get("importance")
    if importance is not None and not MIN_IMPORTANCE <= importance <= MAX_IMPORTANCE:
        raise ValidationError(
            f"importance must be between {MIN_IMPORTANCE} and {MAX_IMPORTANCE}, got {importance}"
        )
    hours = fields.get("estimated_hours")
    if hours is not None and hours <= 0:
        raise ValidationError("estimated_hours must be positive")


def create_topic(
    discipline_id: str,
    topic_name: str,
    importance: int = 3,
    estimated_hours: float = 1.0,
    order_index: int = 0,
    subtopics: list[str] | None = None,
    prerequisites: list[str] | None = None,
    description: str | None = None,
    university_id: str | None = None,
    course_name: str | None = None,
) -> SyllabusTopicRecord:
    """Add a topic to a discipline's syllabus.

    Raises:
        NotFoundError: If the discipline does not exist
        ValidationError: If importance or hours are out of range
    """
    discipline = content.get_discipline(discipline_id)
    _validate_topic_fields(
        {"topic_name": topic_name, "importance": importance, "estimated_hours": estimated_hours}
    )
    topic = tracking_repository.insert_syllabus_topic(
        discipline_id,
        topic_name.strip(),
        importance=importance,
        estimated_hours=estimated_hours,
        discipline_name=discipline.title,
        order_index=order_index,
        subtopics=subtopics,
        prerequisites=prerequisites,
        description=description,
        university_id=university_id,
        course_name=course_name,
    )
    logger.info("syllabus.topic_created", topic_id=topic.id, discipline_id=discipline_id)
    return topic


def get_topic(topic_id: str) -> SyllabusTopicRecord:
    topic = tracking_repository.get_syllabus_topic(topic_id)
    if topic is None:
        raise NotFoundError("Syllabus topic", topic_id)
    return topic


def list_topics(discipline_id: str | None = None) -> list[SyllabusTopicRecord]:
    return tracking_repository.list_syllabus_topics(discipline_id)


def update_topic(topic_id: str, **fields: Any) -> SyllabusTopicRecord:
    _validate_topic_fields(fields)
    if not tracking_repository.update_syllabus_topic(topic_id, **fields):
        raise NotFoundError("Syllabus topic", topic_id)
    return tracking_repository.get_syllabus_topic(topic_id)


def delete_topic(topic_id: str) -> None:
    if not tracking_repository.delete_syllabus_topic(topic_id):
        raise NotFoundError("Syllabus topic", topic_id)
    logger.info("syllabus.topic_deleted", topic_id=topic_id)


# =============================================================================
# COURSES
# =============================================================================


def _normalize_disciplines(disciplines: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Check the discipline entries of a course and fill their names.

    Raises:
        ValidationError: If the list is empty or the weights do not sum to 1
        NotFoundError: If a discipline does not exist
    """
    if not disciplines:
        raise ValidationError("A course needs at least one discipline")

    normalized = []
    for entry in disciplines:
        discipline_id = entry.get("discipline_id")
        if not discipline_id:
            raise ValidationError("Every course discipline needs a discipline_id")
        weight = float(entry.get("weight", 0))
        if weight <= 0:
            raise ValidationError(f"Weight of '{discipline_id}' must be positive")
        discipline = content.get_discipline(discipline_id)
        normalized.append(
            {
                "discipline_id": discipline_id,
                "discipline_name": discipline.title,
                "weight": weight,
                "is_required": bool(entry.get("is_required", True)),
            }
        )

    total = sum(entry["weight"] for entry in normalized)
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise ValidationError(f"Discipline weights must sum to 1, got {total:.2f}")
    return normalized


def _university_name(university_id: str) -> str:
    university = content_repository.get_university(university_id)
    if university is None:
        raise NotFoundError("University", university_id)
    return university.name


def create_course(
    course_name: str,
    university_id: str,
    disciplines: list[dict[str, Any]],
    minimum_score: float = 0,
    estimated_study_hours: float = 0,
) -> CourseRequirementsRecord:
    """Register the requirements of a university course.

    Raises:
        ConflictError: If a course with this name already exists
        NotFoundError: If the university or a discipline does not exist
        ValidationError: If the name is empty or the weights are wrong
    """
    course_name = course_name.strip()
    if not course_name:
        raise ValidationError("course_name is empty")
    if tracking_repository.get_course_requirements(course_name) is not None:
        raise ConflictError(f"Course '{course_name}' already exists")

    university_name = _university_name(university_id)
    course = tracking_repository.upsert_course_requirements(
        course_name,
        _normalize_disciplines(disciplines),
        minimum_score=minimum_score,
        estimated_study_hours=estimated_study_hours,
        university_id=university_id,
        university_name=university_name,
    )
    logger.info("syllabus.course_created", course_id=course.id, course_name=course_name)
    return course


def get_course(course_id: str) -> CourseRequirementsRecord:
    course = tracking_repository.get_course_by_id(course_id)
    if course is None:
        raise NotFoundError("Course", course_id)
    return course


def list_courses(university_id: str | None = None) -> list[CourseRequirementsRecord]:
    return tracking_repository.list_course_requirements(university_id)


def update_course(course_id: str, **fields: Any) -> CourseRequirementsRecord:
    """Update a course; disciplines are re-validated when given.

    Raises:
        NotFoundError: If the course, university or a discipline is missing
        ConflictError: If the new name belongs to another course
    """
    current = get_course(course_id)
    if "disciplines" in fields:
        fields["disciplines"] = _normalize_disciplines(fields["disciplines"])
    if "university_id" in fields:
        fields["university_name"] = _university_name(fields["university_id"])
    if "course_name" in fields:
        fields["course_name"] = fields["course_name"].strip()
        if not fields["course_name"]:
            raise ValidationError("course_name is empty")
        other = tracking_repository.get_course_requirements(fields["course_name"])
        if other is not None and other.id != current.id:
            raise ConflictError(f"Course '{fields['course_name']}' already exists")

    tracking_repository.update_course_requirements(course_id, **fields)
    return tracking_repository.get_course_by_id(course_id)


def delete_course(course_id: str) -> None:
    if not tracking_repository.delete_course_requirements(course_id):
        raise NotFoundError("Course", course_id)
    logger.info("syllabus.course_deleted", course_id=course_id)


# =============================================================================
# IMPORT
# =============================================================================


def import_syllabus(document: dict[str, Any]) -> tuple[int, int]:
    """Import topics and courses from a parsed YAML or JSON document.

    The document holds a "topics" list (create_topic arguments) and a
    "courses" list (create_course arguments). Courses that already exist
    are replaced. Every entry is checked before anything is written.

    Returns:
        Number of topics and courses imported.

    Raises:
        ValidationError: If an entry is malformed
        NotFoundError: If a referenced discipline or university is missing
    """
    topics = document.get("topics") or []
    courses = document.get("courses") or []
    if not topics and not courses:
        raise ValidationError("Nothing to import: no topics or courses")

    for position, topic in enumerate(topics, start=1):
        if not topic.get("discipline_id") or not topic.get("topic_name"):
            raise ValidationError(f"Topic {position}: discipline_id and topic_name are required")
        unknown = sorted(set(topic) - TOPIC_FIELDS)
        if unknown:
            raise ValidationError(f"Topic {position}: unknown field(s) {', '.join(unknown)}")
        content.get_discipline(topic["discipline_id"])
        _validate_topic_fields(topic)

    prepared = []
    for position, course in enumerate(courses, start=1):
        if not course.get("course_name") or not course.get("university_id"):
            raise ValidationError(f"Course {position}: course_name and university_id are required")
        prepared.append(
            {
                **course,
                "university_name": _university_name(course["university_id"]),
                "disciplines": _normalize_disciplines(course.get("disciplines") or []),
            }
        )

    for topic in topics:
        create_topic(**topic)
    for course in prepared:
        tracking_repository.upsert_course_requirements(
            course["course_name"].strip(),
            course["disciplines"],
            minimum_score=course.get("minimum_score", 0),
            estimated_study_hours=course.get("estimated_study_hours", 0),
            university_id=course["university_id"],
            university_name=course["university_name"],
        )

    logger.info("syllabus.imported", topics=len(topics), courses=len(courses))
    return len(topics), len(courses)


# =============================================================================
# COVERAGE
# =============================================================================


def target_disciplines(uid: str) -> list[str]:
    """Disciplines of the user's target course, else of the study plan."""
    profile = tracking_repository.get_profile(uid)
    if profile is not None and profile.target_course:
        course = tracking_repository.get_course_requirements(profile.target_course)
        if course is not None:
            return [d["discipline_id"] for d in course.disciplines if d.get("discipline_id")]

    plan = users.get_user(uid).study_plan or {}
    return [subject for subject in plan.get("subjects", []) if subject]


def syllabus_coverage(uid: str, discipline_ids: list[str] | None = None) -> list[DisciplineCoverage]:
    """Completed steps over active steps, per discipline (0 when no steps)."""
    if discipline_ids is None:
        discipline_ids = target_disciplines(uid)
    if not discipline_ids:
        return []

    totals = practice_repository.count_steps_by_discipline(discipline_ids)
    completed = practice_repository.count_completed_by_discipline(uid, discipline_ids)

    coverage = []
    for discipline_id in discipline_ids:
        discipline = content_repository.get_discipline(discipline_id)
        total = totals.get(discipline_id, 0)
        done = completed.get(discipline_id, 0)
        coverage.append(
            DisciplineCoverage(
                discipline_id=discipline_id,
                discipline_title=discipline.title if discipline else discipline_id,
                total_steps=total,
                completed_steps=done,
                percentage=round(done / total * 100) if total else 0,
            )
        )
    return coverage


def coverage_by_discipline(uid: str) -> dict[str, float]:
    return {c.discipline_id: c.percentage for c in syllabus_coverage(uid)}
