"""Accounts: registration, bearer-token login and account deletion.

Passwords are hashed with bcrypt. Login issues an opaque random token;
only its SHA-256 digest is stored, with an expiry of auth.token_ttl_days.
"""

from __future__ import annotations

import hashlib
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta

import bcrypt
import structlog

from examprep.config import load_app_config
from examprep.core import users
from examprep.core.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from examprep.db import users_repository
from examprep.db.database import generate_id, utc_now, utc_now_iso
from examprep.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


@dataclass
class LoginResult:
    token: str
    expires_at: str
    user: UserRecord


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def register(
    email: str,
    password: str,
    display_name: str,
    role: str = "user",
) -> UserRecord:
    """Create a user profile and its credentials in one transaction.

    Raises:
        ValidationError: If the email or password is unacceptable
        ConflictError: If the email or display name is taken
    """
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
    if not display_name.strip():
        raise ValidationError("Display name is required")
    if users_repository.get_account_by_email(email) is not None:
        raise ConflictError("This email is already registered")

    uid = generate_id()
    user = users.register_user(
        uid,
        email.lower(),
        display_name.strip(),
        role=role,
        password_hash=hash_password(password),
    )
    logger.info("accounts.registered", uid=uid)
    return user


def login(email: str, password: str) -> LoginResult:
    """Check credentials and issue a bearer token.

    Raises:
        AuthenticationError: If the email or password is wrong
    """
    account = users_repository.get_account_by_email(email)
    if account is None or not verify_password(password, account.password_hash):
        logger.info("accounts.login_failed", email=email.lower())
        raise AuthenticationError("Invalid email or password")

    token = secrets.token_urlsafe(32)
    ttl = timedelta(days=load_app_config().auth.token_ttl_days)
    expires_at = (utc_now() + ttl).isoformat()
    users_repository.store_token(account.uid, hash_token(token), expires_at)

    logger.info("accounts.logged_in", uid=account.uid)
    return LoginResult(token=token, expires_at=expires_at, user=users.get_user(account.uid))


def logout(token: str) -> bool:
    return users_repository.revoke_token(hash_token(token))


def authenticate(token: str) -> UserRecord:
    """User owning a valid bearer token.

    Raises:
        AuthenticationError: If the token is unknown, revoked or expired
    """
    uid = users_repository.get_token_owner(hash_token(token), utc_now_iso())
    if uid is None:
        raise AuthenticationError("Invalid or expired token")

    user = users_repository.get_user(uid)
    if user is None:
        raise AuthenticationError("Account no longer exists")
    return user


def delete_user_account(caller_uid: str | None, target_uid: str | None) -> None:
    """Delete a user's profile and credentials together (admins only).

    Raises:
        AuthenticationError: If there is no caller
        PermissionDeniedError: If the caller is not an admin
        ValidationError: If no target uid is given
        NotFoundError: If the target has neither profile nor account
    """
    if not caller_uid:
        raise AuthenticationError("User not authenticated")

    caller = users_repository.get_user(caller_uid)
    if caller is None or not caller.is_admin:
        raise PermissionDeniedError("Only administrators can delete users")

    if not target_uid:
        raise ValidationError("The uid of the user to delete is required")

    profile_deleted, account_deleted = users_repository.delete_user_and_account(target_uid)
    if not profile_deleted and not account_deleted:
        raise NotFoundError("User", target_uid)

    logger.info(
        "accounts.deleted",
        caller=caller_uid,
        uid=target_uid,
        profile=profile_deleted,
        account=account_deleted,
    )
