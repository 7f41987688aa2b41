"""Registration, login and logout."""

from fastapi import APIRouter, Depends, status

from examprep.core import accounts
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user, get_token
from examprep.web.schemas import LoginRequest, RegisterRequest, TokenResponse, UserResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest) -> UserRecord:
    return accounts.register(data.email, data.password, data.display_name)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    result = accounts.login(data.email, data.password)
    return TokenResponse(
        token=result.token,
        expires_at=result.expires_at,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(token: str = Depends(get_token)) -> None:
    accounts.logout(token)


@router.get("/me", response_model=UserResponse)
def me(user: UserRecord = Depends(get_current_user)) -> UserRecord:
    return user
