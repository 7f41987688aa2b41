"""Repository functions for users, activities and auth credentials.

Provides CRUD operations for the users, user_activities, auth_accounts
and auth_tokens tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from examprep.db.database import (
    build_update,
    from_json,
    generate_id,
    get_db,
    utc_now_iso,
)

logger = structlog.get_logger(__name__)

USER_UPDATABLE_COLUMNS = frozenset(
    {
        "email",
        "display_name",
        "photo_url",
        "role",
        "streak",
        "is_premium",
        "premium_until",
        "last_study_date",
        "last_exam_date",
        "last_challenge_date",
        "daily_exercises_count",
        "exams_completed",
        "challenges_completed",
        "average_grade",
        "score",
        "xp",
        "level",
        "badges",
        "discipline_scores",
        "study_plan",
        "data_saver_mode",
        "last_active",
    }
)
USER_JSON_COLUMNS = frozenset({"badges", "discipline_scores", "study_plan"})


@dataclass
class UserRecord:
    """User profile from database."""

    uid: str
    email: str
    display_name: str
    role: str = "user"
    photo_url: str | None = None
    streak: int = 0
    is_premium: bool = False
    premium_until: str | None = None
    last_study_date: str | None = None
    last_exam_date: str | None = None
    last_challenge_date: str | None = None
    daily_exercises_count: int = 0
    exams_completed: int = 0
    challenges_completed: int = 0
    average_grade: int = 0
    score: int = 0
    xp: int = 0
    level: int = 1
    badges: list[str] = field(default_factory=list)
    discipline_scores: dict[str, int] = field(default_factory=dict)
    study_plan: dict[str, Any] | None = None
    data_saver_mode: bool = False
    last_active: str | None = None
    created_at: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def has_premium_access(self) -> bool:
        """Premium members and admins unlock every gated feature."""
        return self.is_premium or self.is_admin


@dataclass
class ActivityRecord:
    """An entry of the user's recent activity feed."""

    id: str
    user_id: str
    activity_type: str
    title: str
    score: int
    xp_earned: int
    created_at: str


@dataclass
class AccountRecord:
    """Login credentials for a user."""

    uid: str
    email: str
    password_hash: str
    created_at: str


# =============================================================================
# USERS
# =============================================================================


def display_name_exists(display_name: str) -> bool:
    """Check whether a display name is already taken."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT 1 FROM users WHERE display_name = ?", (display_name,)
        ).fetchone()
    return row is not None


def insert_user(
    uid: str,
    email: str,
    display_name: str,
    role: str = "user",
    is_premium: bool = False,
    password_hash: str | None = None,
) -> UserRecord:
    """Insert a new user profile with zeroed counters.

    With a password hash the login credentials are written in the same
    transaction, so a clash leaves neither row behind.

    Raises:
        sqlite3.IntegrityError: If uid, display_name or email already exists
    """
    created_at = utc_now_iso()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO users (uid, email, display_name, role, is_premium, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (uid, email, display_name, role, int(is_premium), created_at),
        )
        if password_hash is not None:
            conn.execute(
                "INSERT INTO auth_accounts (uid, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (uid, email.lower(), password_hash, created_at),
            )

    logger.debug("users.inserted", uid=uid, with_account=password_hash is not None)
    return UserRecord(
        uid=uid,
        email=email,
        display_name=display_name,
        role=role,
        is_premium=is_premium,
        created_at=created_at,
    )


def get_user(uid: str) -> UserRecord | None:
    """Get user by uid."""
    with get_db() as conn:
        row = conn.execute("SELECT * FROM users WHERE uid = ?", (uid,)).fetchone()

    if row is None:
        return None
    return _row_to_user(row)


def list_users() -> list[UserRecord]:
    """Get all users ordered by display name."""
    with get_db() as conn:
        rows = conn.execute("SELECT * FROM users ORDER BY display_name").fetchall()
    return [_row_to_user(row) for row in rows]


def update_user(uid: str, **fields: Any) -> bool:
    """Update profile columns.

    Returns:
        True if a row was updated, False if the user does not exist.

    Raises:
        ValueError: If a field is not an updatable column
    """
    statement = build_update(
        "users", "uid", uid, fields, USER_UPDATABLE_COLUMNS, USER_JSON_COLUMNS
    )
    if statement is None:
        return get_user(uid) is not None

    sql, params = statement
    with get_db() as conn:
        cursor = conn.execute(sql, params)

    updated = cursor.rowcount > 0
    if updated:
        logger.debug("users.updated", uid=uid, fields=sorted(fields))
    return updated


def delete_user_and_account(uid: str) -> tuple[bool, bool]:
    """Delete profile and credentials in a single transaction.

    Returns:
        (profile_deleted, account_deleted)
    """
    with get_db() as conn:
        profile = conn.execute("DELETE FROM users WHERE uid = ?", (uid,))
        account = conn.execute("DELETE FROM auth_accounts WHERE uid = ?", (uid,))

    return profile.rowcount > 0, account.rowcount > 0


# =============================================================================
# ACTIVITIES
# =============================================================================


def add_activity(
    user_id: str,
    activity_type: str,
    title: str,
    score: int = 0,
    xp_earned: int = 0,
) -> ActivityRecord:
    """Append an entry to the user's activity feed."""
    record = ActivityRecord(
        id=generate_id(),
        user_id=user_id,
        activity_type=activity_type,
        title=title,
        score=score,
        xp_earned=xp_earned,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO user_activities (id, user_id, activity_type, title, score, xp_earned, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.user_id,
                record.activity_type,
                record.title,
                record.score,
                record.xp_earned,
                record.created_at,
            ),
        )
    return record


def list_activities(user_id: str, limit: int = 10) -> list[ActivityRecord]:
    """Most recent activities first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM user_activities WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()

    return [
        ActivityRecord(
            id=row["id"],
            user_id=row["user_id"],
            activity_type=row["activity_type"],
            title=row["title"],
            score=row["score"],
            xp_earned=row["xp_earned"],
            created_at=row["created_at"],
        )
        for row in rows
    ]


# =============================================================================
# AUTH ACCOUNTS AND TOKENS
# =============================================================================


def get_account_by_email(email: str) -> AccountRecord | None:
    """Look up credentials by (case-insensitive) email."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM auth_accounts WHERE email = ?", (email.lower(),)
        ).fetchone()

    if row is None:
        return None
    return AccountRecord(
        uid=row["uid"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=row["created_at"],
    )


def store_token(uid: str, token_hash: str, expires_at: str) -> None:
    """Persist a hashed bearer token."""
    with get_db() as conn:
        conn.execute(
            "INSERT INTO auth_tokens (uid, token_hash, created_at, expires_at) VALUES (?, ?, ?, ?)",
            (uid, token_hash, utc_now_iso(), expires_at),
        )


def get_token_owner(token_hash: str, now_iso: str) -> str | None:
    """Return the uid owning a valid (not revoked, not expired) token."""
    with get_db() as conn:
        row = conn.execute(
            """
            SELECT uid FROM auth_tokens
            WHERE token_hash = ? AND revoked_at IS NULL AND expires_at > ?
            """,
            (token_hash, now_iso),
        ).fetchone()
    return row["uid"] if row else None


def revoke_token(token_hash: str) -> bool:
    """Revoke a token. Returns False if it was unknown or already revoked."""
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE auth_tokens SET revoked_at = ? WHERE token_hash = ? AND revoked_at IS NULL",
            (utc_now_iso(), token_hash),
        )
    return cursor.rowcount > 0


def _row_to_user(row) -> UserRecord:
    """Convert database row to UserRecord."""
    return UserRecord(
        uid=row["uid"],
        email=row["email"],
        display_name=row["display_name"],
        role=row["role"],
        photo_url=row["photo_url"],
        streak=row["streak"],
        is_premium=bool(row["is_premium"]),
        premium_until=row["premium_until"],
        last_study_date=row["last_study_date"],
        last_exam_date=row["last_exam_date"],
        last_challenge_date=row["last_challenge_date"],
        daily_exercises_count=row["daily_exercises_count"],
        exams_completed=row["exams_completed"],
        challenges_completed=row["challenges_completed"],
        average_grade=row["average_grade"],
        score=row["score"],
        xp=row["xp"],
        level=row["level"],
        badges=from_json(row["badges"], []),
        discipline_scores=from_json(row["discipline_scores"], {}),
        study_plan=from_json(row["study_plan"], None),
        data_saver_mode=bool(row["data_saver_mode"]),
        last_active=row["last_active"],
        created_at=row["created_at"],
    )

