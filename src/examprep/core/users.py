"""User profiles, activity feed, XP and scores.

Score rules:
- Ranking score = challenges_completed x points_per_challenge (default 3)
- Level = xp // 100 + 1
- Discipline scores accumulate points per discipline id
"""

from __future__ import annotations

import sqlite3
from typing import Any

import structlog

from examprep.config import load_app_config
from examprep.core.badges import check_and_award_badges
from examprep.core.errors import ConflictError, NotFoundError, ValidationError
from examprep.db import users_repository
from examprep.db.database import utc_now_iso
from examprep.db.users_repository import ActivityRecord, UserRecord

logger = structlog.get_logger(__name__)

XP_PER_LEVEL = 100

ACTIVITY_TYPES = ("exam", "challenge", "module", "consistency_bonus", "simulation")


def level_for_xp(xp: int) -> int:
    return xp // XP_PER_LEVEL + 1


def register_user(
    uid: str,
    email: str,
    display_name: str,
    role: str = "user",
    is_premium: bool = False,
    password_hash: str | None = None,
) -> UserRecord:
    """Create a profile with zeroed counters.

    Args:
        password_hash: When given, login credentials are stored with the
            profile in the same transaction.

    Raises:
        ConflictError: If the display name (or email) is already taken
    """
    if users_repository.display_name_exists(display_name):
        raise ConflictError("This name is already taken. Please choose a different name.")

    try:
        user = users_repository.insert_user(
            uid=uid,
            email=email,
            display_name=display_name,
            role=role,
            is_premium=is_premium,
            password_hash=password_hash,
        )
    except sqlite3.IntegrityError as e:
        raise ConflictError("This email or name is already registered") from e
    logger.info("users.registered", uid=uid, role=role)
    return user


def get_user(uid: str) -> UserRecord:
    user = users_repository.get_user(uid)
    if user is None:
        raise NotFoundError("User", uid)
    return user


def update_user(uid: str, **fields: Any) -> UserRecord:
    """Update profile fields.

    Raises:
        NotFoundError: If the user does not exist
        ConflictError: If a new display name is already taken
    """
    current = get_user(uid)
    new_name = fields.get("display_name")
    if new_name and new_name != current.display_name and users_repository.display_name_exists(new_name):
        raise ConflictError("This name is already taken. Please choose a different name.")

    users_repository.update_user(uid, **fields)
    return get_user(uid)


def list_users() -> list[UserRecord]:
    """All users ordered by display name."""
    return users_repository.list_users()


def set_premium(uid: str, is_premium: bool, premium_until: str | None = None) -> UserRecord:
    """Promote to (or demote from) premium."""
    user = update_user(uid, is_premium=is_premium, premium_until=premium_until if is_premium else None)
    logger.info("users.premium_changed", uid=uid, is_premium=is_premium)
    return user


# =============================================================================
# ACTIVITY
# =============================================================================


def add_user_activity(
    uid: str,
    activity_type: str,
    title: str,
    score: int = 0,
    xp_earned: int = 0,
) -> ActivityRecord:
    if activity_type not in ACTIVITY_TYPES:
        raise ValidationError(f"Unknown activity type: {activity_type}")
    return users_repository.add_activity(
        user_id=uid,
        activity_type=activity_type,
        title=title,
        score=score,
        xp_earned=xp_earned,
    )


def recent_activity(uid: str, limit: int = 10) -> list[ActivityRecord]:
    return users_repository.list_activities(uid, limit=limit)


def save_study_plan(uid: str, plan: dict[str, Any]) -> UserRecord:
    return update_user(uid, study_plan=plan)


# =============================================================================
# SCORES AND XP
# =============================================================================


def add_xp(uid: str, amount: int) -> UserRecord:
    """Grant XP and recompute the level."""
    user = get_user(uid)
    new_xp = user.xp + amount
    users_repository.update_user(uid, xp=new_xp, level=level_for_xp(new_xp))
    check_and_award_badges(uid)
    return get_user(uid)


def update_user_discipline_score(uid: str, discipline_id: str, points: int) -> UserRecord:
    """Add points to one discipline's score, then check badges."""
    user = get_user(uid)
    scores = dict(user.discipline_scores)
    scores[discipline_id] = scores.get(discipline_id, 0) + points
    users_repository.update_user(uid, discipline_scores=scores)
    check_and_award_badges(uid)
    return get_user(uid)


def update_user_score(uid: str) -> UserRecord:
    """Recompute the ranking score from completed challenges."""
    user = get_user(uid)
    points = load_app_config().quiz.points_per_challenge
    score = round(user.challenges_completed * points)
    users_repository.update_user(uid, score=score, last_active=utc_now_iso())
    check_and_award_badges(uid)
    logger.debug("users.score_updated", uid=uid, score=score)
    return get_user(uid)
