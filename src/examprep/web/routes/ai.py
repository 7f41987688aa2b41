"""Academic AI: predictions, plateaus, patterns, schedules and coaching."""

from fastapi import APIRouter, Depends

from examprep.core import academic_ai, study_coach
from examprep.core.academic_ai import (
    OptimizedSchedule,
    PerformancePrediction,
    PlateauDetection,
    ScenarioSimulation,
    SmartRecommendation,
    StudyPattern,
    StudyScenario,
)
from examprep.core.study_coach import CoachAdvice
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user
from examprep.web.schemas import (
    CoachResponse,
    PlateauResponse,
    PredictionResponse,
    ScenarioRequest,
    ScenarioResponse,
    ScheduleRequest,
    ScheduleResponse,
    SmartRecommendationResponse,
    StudyPatternResponse,
)

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.get("/prediction", response_model=PredictionResponse)
def prediction(user: UserRecord = Depends(get_current_user)) -> PerformancePrediction:
    """Score expected 30 days after the latest session."""
    return academic_ai.predict_future_performance(user.uid)


@router.get("/plateau", response_model=PlateauResponse)
def plateau(user: UserRecord = Depends(get_current_user)) -> PlateauDetection:
    return academic_ai.detect_learning_plateau(user.uid)


@router.get("/patterns", response_model=StudyPatternResponse)
def patterns(user: UserRecord = Depends(get_current_user)) -> StudyPattern:
    return academic_ai.analyze_study_patterns(user.uid)


@router.get("/recommendations", response_model=list[SmartRecommendationResponse])
def recommendations(user: UserRecord = Depends(get_current_user)) -> list[SmartRecommendation]:
    return academic_ai.generate_smart_recommendations(user.uid)


@router.get("/coach", response_model=CoachResponse)
def coach(user: UserRecord = Depends(get_current_user)) -> CoachAdvice:
    return study_coach.get_coach_advice(user.uid)


@router.post("/scenarios", response_model=list[ScenarioResponse])
def scenarios(
    data: ScenarioRequest,
    user: UserRecord = Depends(get_current_user),
) -> list[ScenarioSimulation]:
    return academic_ai.simulate_study_scenarios(
        user.uid,
        [StudyScenario(hours_per_day=s.hours_per_day, days=s.days) for s in data.scenarios],
    )


@router.post("/schedule", response_model=ScheduleResponse)
def schedule(
    data: ScheduleRequest,
    user: UserRecord = Depends(get_current_user),
) -> OptimizedSchedule:
    return academic_ai.optimize_schedule(user.uid, data.hours_per_day, data.target_date)
