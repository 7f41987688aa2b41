"""User administration and the caller's own profile."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import accounts, badges, milestones, users
from examprep.db.users_repository import ActivityRecord, UserRecord
from examprep.web.deps import get_current_user, require_admin
from examprep.web.schemas import (
    ActivityResponse,
    BadgeResponse,
    MilestoneResponse,
    PremiumUpdate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(admin: UserRecord = Depends(require_admin)) -> UserListResponse:
    """List every user (admins only)."""
    records = users.list_users()
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in records],
        count=len(records),
    )


@router.patch("/me", response_model=UserResponse)
def update_me(data: UserUpdate, user: UserRecord = Depends(get_current_user)) -> UserRecord:
    fields = data.model_dump(exclude_unset=True)
    study_plan = fields.pop("study_plan", None)
    if study_plan is not None:
        users.save_study_plan(user.uid, study_plan)
    if fields:
        return users.update_user(user.uid, **fields)
    return users.get_user(user.uid)


@router.get("/me/activity", response_model=list[ActivityResponse])
def my_activity(
    limit: int = Query(default=10, ge=1, le=50),
    user: UserRecord = Depends(get_current_user),
) -> list[ActivityRecord]:
    return users.recent_activity(user.uid, limit=limit)


@router.get("/me/badges", response_model=list[BadgeResponse])
def my_badges(user: UserRecord = Depends(get_current_user)) -> list[dict]:
    """Earned badges first, then the ones still to earn."""
    return badges.badge_overview(user)


@router.get("/me/milestones", response_model=list[MilestoneResponse])
def my_milestones(user: UserRecord = Depends(get_current_user)) -> list[dict]:
    """Preparation milestones with progress; newly reached ones are saved."""
    return milestones.milestone_overview(user.uid)


@router.put("/{uid}/premium", response_model=UserResponse)
def set_premium(
    uid: str,
    data: PremiumUpdate,
    admin: UserRecord = Depends(require_admin),
) -> UserRecord:
    return users.set_premium(uid, data.is_premium, data.premium_until)


@router.delete("/{uid}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(uid: str, admin: UserRecord = Depends(require_admin)) -> None:
    """Delete a user's profile and credentials (admins only)."""
    accounts.delete_user_account(admin.uid, uid)
