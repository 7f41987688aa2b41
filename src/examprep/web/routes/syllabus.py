"""Syllabus topics, course requirements and the caller's coverage."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import syllabus
from examprep.core.syllabus import DisciplineCoverage
from examprep.db.tracking_repository import CourseRequirementsRecord, SyllabusTopicRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user, require_admin
from examprep.web.schemas import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    CoverageResponse,
    SyllabusTopicCreate,
    SyllabusTopicResponse,
    SyllabusTopicUpdate,
)

router = APIRouter(prefix="/api/syllabus", tags=["syllabus"])


@router.get("/topics", response_model=list[SyllabusTopicResponse])
def list_topics(discipline_id: str | None = Query(default=None)) -> list[SyllabusTopicRecord]:
    return syllabus.list_topics(discipline_id)


@router.post("/topics", response_model=SyllabusTopicResponse, status_code=status.HTTP_201_CREATED)
def create_topic(
    data: SyllabusTopicCreate,
    admin: UserRecord = Depends(require_admin),
) -> SyllabusTopicRecord:
    return syllabus.create_topic(**data.model_dump())


@router.get("/topics/{topic_id}", response_model=SyllabusTopicResponse)
def get_topic(topic_id: str) -> SyllabusTopicRecord:
    return syllabus.get_topic(topic_id)


@router.patch("/topics/{topic_id}", response_model=SyllabusTopicResponse)
def update_topic(
    topic_id: str,
    data: SyllabusTopicUpdate,
    admin: UserRecord = Depends(require_admin),
) -> SyllabusTopicRecord:
    return syllabus.update_topic(topic_id, **data.model_dump(exclude_unset=True))


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_topic(topic_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    """Delete a topic; linked practice steps keep their content."""
    syllabus.delete_topic(topic_id)


@router.get("/courses", response_model=list[CourseResponse])
def list_courses(university_id: str | None = Query(default=None)) -> list[CourseRequirementsRecord]:
    """Courses sorted by name, optionally of one university."""
    return syllabus.list_courses(university_id)


@router.post("/courses", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseCreate,
    admin: UserRecord = Depends(require_admin),
) -> CourseRequirementsRecord:
    return syllabus.create_course(**data.model_dump())


@router.get("/courses/{course_id}", response_model=CourseResponse)
def get_course(course_id: str) -> CourseRequirementsRecord:
    return syllabus.get_course(course_id)


@router.patch("/courses/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: str,
    data: CourseUpdate,
    admin: UserRecord = Depends(require_admin),
) -> CourseRequirementsRecord:
    return syllabus.update_course(course_id, **data.model_dump(exclude_unset=True))


@router.delete("/courses/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    syllabus.delete_course(course_id)


@router.get("/coverage", response_model=list[CoverageResponse])
def my_coverage(user: UserRecord = Depends(get_current_user)) -> list[DisciplineCoverage]:
    """Coverage of the target course disciplines (or the study plan's)."""
    return syllabus.syllabus_coverage(user.uid)
