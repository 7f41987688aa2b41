"""Request dependencies: bearer-token authentication and role checks."""

from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from examprep.core import accounts
from examprep.core.errors import AuthenticationError, PermissionDeniedError
from examprep.db.users_repository import UserRecord

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserRecord:
    """User owning the bearer token of the request."""
    if credentials is None:
        raise AuthenticationError("User not authenticated")
    return accounts.authenticate(credentials.credentials)


def require_admin(user: UserRecord = Depends(get_current_user)) -> UserRecord:
    if not user.is_admin:
        raise PermissionDeniedError("Administrator role required")
    return user


def get_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise AuthenticationError("User not authenticated")
    return credentials.credentials
