"""Self-paced study mode (premium)."""

from fastapi import APIRouter, Depends

from examprep.core import study
from examprep.core.content_cache import get_dashboard_store
from examprep.core.study import AnswerFeedback, StudyCompletion, StudySessionView
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user
from examprep.web.schemas import (
    AnswerCheckRequest,
    AnswerFeedbackResponse,
    StudyCompleteRequest,
    StudyCompletionResponse,
    StudyStartResponse,
)

router = APIRouter(prefix="/api/study", tags=["study"])


@router.post("/{exam_id}/start", response_model=StudyStartResponse)
def start(exam_id: str, user: UserRecord = Depends(get_current_user)) -> StudySessionView:
    return study.start_study(user.uid, exam_id)


@router.post("/{exam_id}/check", response_model=AnswerFeedbackResponse)
def check(
    exam_id: str,
    data: AnswerCheckRequest,
    user: UserRecord = Depends(get_current_user),
) -> AnswerFeedback:
    """Immediate feedback with the explanation."""
    return study.check_exam_answer(user.uid, exam_id, data.question_id, data.selected_option)


@router.post("/{exam_id}/complete", response_model=StudyCompletionResponse)
def complete(
    exam_id: str,
    data: StudyCompleteRequest,
    user: UserRecord = Depends(get_current_user),
) -> StudyCompletion:
    completion = study.complete_study_session(
        user.uid,
        exam_id,
        data.correct_count,
        data.total_questions,
        time_spent=data.time_spent,
    )
    get_dashboard_store().invalidate(user.uid)
    return completion
