"""Academic tracking: sessions, goals and the dashboard."""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from examprep.core import tracking
from examprep.core.content_cache import get_dashboard_store
from examprep.db.tracking_repository import AcademicProfileRecord, AchievementRecord, DailyGoalRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user
from examprep.web.schemas import (
    AcademicProfileResponse,
    AchievementResponse,
    DailyGoalResponse,
    DashboardResponse,
    ProfileUpdate,
    SessionRecordedResponse,
    StudySessionRequest,
)

router = APIRouter(prefix="/api/tracking", tags=["tracking"])


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    force_refresh: bool = Query(default=False),
    user: UserRecord = Depends(get_current_user),
) -> dict[str, Any]:
    """Profile, analysis, recommendations, today's goal and knowledge gaps."""
    return get_dashboard_store().fetch(user.uid, force_refresh=force_refresh)


@router.post("/sessions", response_model=SessionRecordedResponse)
def record_session(
    data: StudySessionRequest,
    user: UserRecord = Depends(get_current_user),
) -> SessionRecordedResponse:
    session = tracking.StudySession(
        score=data.score,
        questions_answered=data.questions_answered,
        correct_answers=data.correct_answers,
        time_spent=data.time_spent,
        topics_studied=data.topics_studied,
    )
    unlocked = tracking.record_study_session(user.uid, data.discipline_id, session)
    get_dashboard_store().invalidate(user.uid)
    return SessionRecordedResponse(
        achievements=[AchievementResponse.model_validate(a) for a in unlocked]
    )


@router.get("/daily-goal", response_model=DailyGoalResponse)
def daily_goal(user: UserRecord = Depends(get_current_user)) -> DailyGoalRecord:
    return tracking.get_daily_goal(user.uid)


@router.put("/profile", response_model=AcademicProfileResponse)
def update_profile(
    data: ProfileUpdate,
    user: UserRecord = Depends(get_current_user),
) -> AcademicProfileRecord:
    """Set the admission target (university, course, year, exam date)."""
    profile = tracking.upsert_profile(user.uid, **data.model_dump(exclude_unset=True))
    get_dashboard_store().invalidate(user.uid)
    return profile


@router.post("/recommendations", response_model=dict[str, int])
def refresh_recommendations(user: UserRecord = Depends(get_current_user)) -> dict[str, int]:
    """Regenerate stored recommendations from the current gaps."""
    created = tracking.generate_recommendations(user.uid)
    get_dashboard_store().invalidate(user.uid)
    return {"created": created}


@router.post("/recommendations/{recommendation_id}/complete", status_code=status.HTTP_204_NO_CONTENT)
def complete_recommendation(
    recommendation_id: str,
    user: UserRecord = Depends(get_current_user),
) -> None:
    tracking.complete_recommendation(user.uid, recommendation_id)
    get_dashboard_store().invalidate(user.uid)


@router.get("/achievements", response_model=list[AchievementResponse])
def achievements(user: UserRecord = Depends(get_current_user)) -> list[AchievementRecord]:
    return tracking.list_achievements(user.uid)
