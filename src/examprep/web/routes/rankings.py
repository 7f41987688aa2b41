"""Leaderboards."""

from fastapi import APIRouter, Query

from examprep.core import ranking
from examprep.web.schemas import RankingEntryResponse, RankingResponse

router = APIRouter(prefix="/api/rankings", tags=["rankings"])


@router.get("", response_model=RankingResponse)
def get_ranking(
    discipline_id: str | None = Query(default=None),
    university_id: str | None = Query(default=None),
    limit: int = Query(default=ranking.RANKING_SIZE, ge=1, le=100),
) -> RankingResponse:
    """Top users overall, or by one discipline's score."""
    entries = ranking.get_ranking(discipline_id, university_id, limit)
    return RankingResponse(
        entries=[RankingEntryResponse.model_validate(e) for e in entries],
        count=len(entries),
    )
