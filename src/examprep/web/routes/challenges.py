"""Timed challenges."""

from fastapi import APIRouter, Depends

from examprep.core import challenge
from examprep.core.challenge import ChallengeResult, ChallengeSession
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user
from examprep.web.schemas import (
    ChallengeResultResponse,
    ChallengeStartResponse,
    ChallengeSubmitRequest,
)

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


@router.post("/{exam_id}/start", response_model=ChallengeStartResponse)
def start(exam_id: str, user: UserRecord = Depends(get_current_user)) -> ChallengeSession:
    """Open a challenge; free users get one per day."""
    return challenge.start_challenge(user.uid, exam_id)


@router.post("/{exam_id}/submit", response_model=ChallengeResultResponse)
def submit(
    exam_id: str,
    data: ChallengeSubmitRequest,
    user: UserRecord = Depends(get_current_user),
) -> ChallengeResult:
    """Grade a started challenge; elapsed time is measured on the server."""
    return challenge.submit_challenge(user.uid, exam_id, data.answers)
