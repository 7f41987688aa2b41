"""Single-question edits."""

from fastapi import APIRouter, Depends, status

from examprep.core import exams
from examprep.db.exams_repository import QuestionRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import require_admin
from examprep.web.schemas import QuestionResponse, QuestionUpdate

router = APIRouter(prefix="/api/questions", tags=["questions"])


@router.patch("/{question_id}", response_model=QuestionResponse)
def update_question(
    question_id: str,
    data: QuestionUpdate,
    admin: UserRecord = Depends(require_admin),
) -> QuestionRecord:
    return exams.update_question(question_id, **data.model_dump(exclude_unset=True))


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_question(question_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    exams.delete_question(question_id)
