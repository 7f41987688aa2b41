"""Practice path: sections, steps and their practice questions."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import practice
from examprep.core.practice import PracticePath, StepResult, StepSession
from examprep.db.practice_repository import PracticeQuestionRecord, SectionRecord, StepRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user, require_admin
from examprep.web.schemas import (
    PracticePathResponse,
    PracticeQuestionCreate,
    PracticeQuestionResponse,
    PracticeQuestionUpdate,
    SectionCreate,
    SectionResponse,
    SectionUpdate,
    StepCreate,
    StepResponse,
    StepResultResponse,
    StepSessionResponse,
    StepSubmitRequest,
    StepUpdate,
)

router = APIRouter(prefix="/api/practice", tags=["practice"])


# =============================================================================
# LEARNER
# =============================================================================


@router.get("/disciplines/{discipline_id}/path", response_model=PracticePathResponse)
def get_path(discipline_id: str, user: UserRecord = Depends(get_current_user)) -> PracticePath:
    """The discipline's path with the caller's progress and locks."""
    return practice.practice_path(user.uid, discipline_id)


@router.post("/steps/{step_id}/start", response_model=StepSessionResponse)
def start_step(step_id: str, user: UserRecord = Depends(get_current_user)) -> StepSession:
    return practice.start_step(user.uid, step_id)


@router.post("/steps/{step_id}/submit", response_model=StepResultResponse)
def submit_step(
    step_id: str,
    data: StepSubmitRequest,
    user: UserRecord = Depends(get_current_user),
) -> StepResult:
    return practice.submit_step(user.uid, step_id, data.answers, data.time_spent)


# =============================================================================
# ADMIN
# =============================================================================


@router.get("/sections", response_model=list[SectionResponse])
def list_sections(
    discipline_id: str = Query(...),
    admin: UserRecord = Depends(require_admin),
) -> list[SectionRecord]:
    return practice.list_sections(discipline_id, include_inactive=True)


@router.post("/sections", response_model=SectionResponse, status_code=status.HTTP_201_CREATED)
def create_section(data: SectionCreate, admin: UserRecord = Depends(require_admin)) -> SectionRecord:
    return practice.create_section(**data.model_dump())


@router.patch("/sections/{section_id}", response_model=SectionResponse)
def update_section(
    section_id: str,
    data: SectionUpdate,
    admin: UserRecord = Depends(require_admin),
) -> SectionRecord:
    return practice.update_section(section_id, **data.model_dump(exclude_unset=True))


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(section_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    """Delete a section with its steps, questions and progress."""
    practice.delete_section(section_id)


@router.get("/sections/{section_id}/steps", response_model=list[StepResponse])
def list_steps(section_id: str, admin: UserRecord = Depends(require_admin)) -> list[StepRecord]:
    return practice.list_steps(section_id, include_inactive=True)


@router.post(
    "/sections/{section_id}/steps",
    response_model=StepResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_step(
    section_id: str,
    data: StepCreate,
    admin: UserRecord = Depends(require_admin),
) -> StepRecord:
    return practice.create_step(section_id, **data.model_dump())


@router.patch("/steps/{step_id}", response_model=StepResponse)
def update_step(
    step_id: str,
    data: StepUpdate,
    admin: UserRecord = Depends(require_admin),
) -> StepRecord:
    return practice.update_step(step_id, **data.model_dump(exclude_unset=True))


@router.delete("/steps/{step_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_step(step_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    practice.delete_step(step_id)


@router.get("/steps/{step_id}/questions", response_model=list[PracticeQuestionResponse])
def list_questions(step_id: str, admin: UserRecord = Depends(require_admin)) -> list[PracticeQuestionRecord]:
    """Practice questions with answer keys (admins only)."""
    return practice.list_questions(step_id)


@router.post(
    "/steps/{step_id}/questions",
    response_model=PracticeQuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_question(
    step_id: str,
    data: PracticeQuestionCreate,
    admin: UserRecord = Depends(require_admin),
) -> PracticeQuestionRecord:
    return practice.create_question(step_id, **data.model_dump())


@router.patch("/questions/{question_id}", response_model=PracticeQuestionResponse)
def update_question(
    question_id: str,
    data: PracticeQuestionUpdate,
    admin: UserRecord = Depends(require_admin),
) -> PracticeQuestionRecord:
    return practice.update_question(question_id, **data.model_dump(exclude_unset=True))


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(question_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    practice.delete_question(question_id)
