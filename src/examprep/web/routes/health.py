"""Health check endpoints."""

from fastapi import APIRouter

from examprep.core import study_coach
from examprep.web.schemas import CoachStatusResponse, HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse()


@router.get("/health/llm", response_model=CoachStatusResponse)
def llm_health() -> dict:
    """Whether the study coach can reach its model server."""
    return study_coach.coach_status()
