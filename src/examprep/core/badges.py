"""Gamification badges.

Each badge has a condition over the user profile; badges are awarded once
and never revoked.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import structlog

from examprep.db import users_repository
from examprep.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Badge:
    """Badge definition."""

    id: str
    name: str
    description: str
    icon: str
    condition: Callable[[UserRecord], bool]

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
        }


BADGES: tuple[Badge, ...] = (
    Badge(
        id="first_win",
        name="First Victory",
        description="Complete your first challenge",
        icon="trophy",
        condition=lambda user: user.challenges_completed >= 1,
    ),
    Badge(
        id="streak_master",
        name="Streak Master",
        description="Reach a 7-day study streak",
        icon="flame",
        condition=lambda user: user.streak >= 7,
    ),
    Badge(
        id="dedicated_learner",
        name="Dedicated Learner",
        description="Reach level 5",
        icon="book-open",
        condition=lambda user: user.level >= 5,
    ),
    Badge(
        id="xp_hunter",
        name="XP Hunter",
        description="Earn a total of 1000 XP",
        icon="star",
        condition=lambda user: user.xp >= 1000,
    ),
    Badge(
        id="exam_ready",
        name="Exam Ready",
        description="Complete 5 full exams",
        icon="target",
        condition=lambda user: user.exams_completed >= 5,
    ),
    Badge(
        id="fast_learner",
        name="Fast Learner",
        description="Complete 50 daily exercises",
        icon="zap",
        condition=lambda user: user.daily_exercises_count >= 50,
    ),
)


def get_badge(badge_id: str) -> Badge | None:
    for badge in BADGES:
        if badge.id == badge_id:
            return badge
    return None


def check_new_badges(user: UserRecord) -> list[str]:
    """Ids of badges the user qualifies for but does not own yet."""
    owned = set(user.badges)
    return [badge.id for badge in BADGES if badge.id not in owned and badge.condition(user)]


def check_and_award_badges(uid: str) -> list[str]:
    """Persist newly earned badges. Returns the ids awarded now."""
    user = users_repository.get_user(uid)
    if user is None:
        return []

    new_badges = check_new_badges(user)
    if new_badges:
        users_repository.update_user(uid, badges=[*user.badges, *new_badges])
        logger.info("badges.awarded", uid=uid, badges=new_badges)
    return new_badges


def badge_overview(user: UserRecord) -> list[dict[str, object]]:
    """Owned badges first (in the order earned), then the ones still open."""
    owned = [badge for badge in map(get_badge, user.badges) if badge is not None]
    owned_ids = {badge.id for badge in owned}
    return [
        *({**badge.to_dict(), "earned": True} for badge in owned),
        *({**badge.to_dict(), "earned": False} for badge in BADGES if badge.id not in owned_ids),
    ]
