"""Leaderboard of the top students, overall or per discipline."""

from __future__ import annotations

from dataclasses import dataclass

from examprep.core import content
from examprep.core.errors import ValidationError
from examprep.db import users_repository
from examprep.db.users_repository import UserRecord

RANKING_SIZE = 50


@dataclass
class RankingEntry:
    position: int
    uid: str
    display_name: str
    photo_url: str | None
    score: int
    level: int
    badges: list[str]


def _score_of(user: UserRecord, discipline_id: str | None) -> int:
    if discipline_id is None:
        return user.score
    return user.discipline_scores.get(discipline_id, 0)


def get_ranking(
    discipline_id: str | None = None,
    university_id: str | None = None,
    limit: int = RANKING_SIZE,
) -> list[RankingEntry]:
    """Top users ordered by score, highest first.

    Args:
        discipline_id: Rank by this discipline's score instead of the
            overall score.
        university_id: When given with a discipline, the discipline must
            belong to this university.

    Users with a zero score are left out.

    Raises:
        NotFoundError: If the discipline does not exist
        ValidationError: If the discipline is not offered by the university
    """
    if discipline_id is not None:
        discipline = content.get_discipline(discipline_id)
        if university_id is not None and discipline.university_id != university_id:
            raise ValidationError(
                f"Discipline '{discipline_id}' does not belong to university '{university_id}'"
            )

    scored = [
        (user, _score_of(user, discipline_id))
        for user in users_repository.list_users()
    ]
    scored = [item for item in scored if item[1] > 0]
    scored.sort(key=lambda item: item[1], reverse=True)

    return [
        RankingEntry(
            position=position,
            uid=user.uid,
            display_name=user.display_name,
            photo_url=user.photo_url,
            score=score,
            level=user.level,
            badges=user.badges,
        )
        for position, (user, score) in enumerate(scored[: min(limit, RANKING_SIZE)], start=1)
    ]
