"""Exams and their questions."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import exams
from examprep.db.exams_repository import ExamRecord, NewQuestion, QuestionRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import require_admin
from examprep.web.schemas import (
    BulkImportRequest,
    BulkImportResponse,
    ExamCreate,
    ExamResponse,
    ExamUpdate,
    QuestionCreate,
    QuestionResponse,
)

router = APIRouter(prefix="/api/exams", tags=["exams"])


def _new_question(data: QuestionCreate) -> NewQuestion:
    return NewQuestion(**data.model_dump())


@router.get("", response_model=list[ExamResponse])
def list_exams(discipline_id: str | None = Query(default=None)) -> list[ExamRecord]:
    """Active exams, optionally of one discipline."""
    if discipline_id is not None:
        return exams.exams_by_discipline(discipline_id)
    return exams.list_active_exams()


@router.post("", response_model=ExamResponse, status_code=status.HTTP_201_CREATED)
def create_exam(data: ExamCreate, admin: UserRecord = Depends(require_admin)) -> ExamRecord:
    return exams.create_exam(**data.model_dump())


@router.get("/{exam_id}", response_model=ExamResponse)
def get_exam(exam_id: str) -> ExamRecord:
    return exams.get_exam(exam_id, include_inactive=False)


@router.patch("/{exam_id}", response_model=ExamResponse)
def update_exam(
    exam_id: str,
    data: ExamUpdate,
    admin: UserRecord = Depends(require_admin),
) -> ExamRecord:
    return exams.update_exam(exam_id, **data.model_dump(exclude_unset=True))


@router.delete("/{exam_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exam(exam_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    """Delete an exam together with its questions."""
    exams.delete_exam(exam_id)


@router.get("/{exam_id}/questions", response_model=list[QuestionResponse])
def list_questions(exam_id: str, admin: UserRecord = Depends(require_admin)) -> list[QuestionRecord]:
    """Questions with answer keys (admins only)."""
    exams.get_exam(exam_id)
    return exams.questions_by_exam(exam_id)


@router.post(
    "/{exam_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_question(
    exam_id: str,
    data: QuestionCreate,
    admin: UserRecord = Depends(require_admin),
) -> QuestionRecord:
    return exams.create_question(exam_id, _new_question(data))


@router.post(
    "/{exam_id}/questions/bulk",
    response_model=BulkImportResponse,
    status_code=status.HTTP_201_CREATED,
)
def bulk_import(
    exam_id: str,
    data: BulkImportRequest,
    admin: UserRecord = Depends(require_admin),
) -> BulkImportResponse:
    """Import many questions at once; nothing is written if any is invalid."""
    records = exams.bulk_import_questions(exam_id, [_new_question(q) for q in data.questions])
    return BulkImportResponse(exam_id=exam_id, imported=len(records))
