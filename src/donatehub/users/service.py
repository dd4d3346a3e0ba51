"""
Account business logic.

Registration, credential checks, session token issuing/rotation, logout,
profile and password changes. Services flush; routers commit.
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import jwt
import structlog
from sqlalchemy import func, or_, select

from donatehub.auth.jwt import create_access_token, create_refresh_token, verify_token
from donatehub.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from donatehub.config import get_settings
from donatehub.db.models import ROLES, User
from donatehub.errors import AuthenticationError, ValidationError

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    expires_in: int


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def serialize_user(user: User) -> dict[str, Any]:
    """Public view of a user; credentials and token references never leave the service."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "role": user.role,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: str) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_login(db: AsyncSession, identifier: str) -> User | None:
    """Fetch a user whose username or email equals ``identifier`` (case-insensitive)."""
    value = identifier.lower().strip()
    result = await db.execute(
        select(User).where(or_(func.lower(User.username) == value, func.lower(User.email) == value))
    )
    return result.scalars().first()


# ---------------------------------------------------------------------------
# Registration and login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    full_name: str,
    password: str,
    role: str = "donor",
) -> User:
    """
    Create a new account.

    Raises:
        ValidationError: blank fields, unknown role, weak password, or a
            username/email that is already taken.
    """
    if any(not (value or "").strip() for value in (username, email, full_name, password)):
        msg = "All fields are required"
        raise ValidationError(msg)
    if role not in ROLES:
        msg = "Invalid role. Role must be either 'ngo' or 'donor'"
        raise ValidationError(msg)
    validate_password_strength(password)

    username = username.lower().strip()
    email = email.lower().strip()
    existing = await db.execute(
        select(User.id).where(or_(func.lower(User.username) == username, func.lower(User.email) == email))
    )
    if existing.first() is not None:
        msg = "User with the email or username already exists"
        raise ValidationError(msg)

    user = User(
        username=username,
        email=email,
        full_name=full_name.strip(),
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    await db.flush()
    logger.info("user_registered", user_id=user.id, role=role)
    return user


async def authenticate_user(db: AsyncSession, identifier: str, password: str) -> User:
    """
    Check credentials for a username or email.

    Raises:
        ValidationError: no such user.
        AuthenticationError: wrong password.
    """
    user = await get_user_by_login(db, identifier)
    if user is None:
        msg = "User does not exist"
        raise ValidationError(msg)
    if not verify_password(password, user.password_hash):
        logger.info("login_failed", user_id=user.id)
        msg = "Incorrect password"
        raise AuthenticationError(msg)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        await db.flush()
        logger.info("password_rehashed", user_id=user.id)
    return user


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


async def issue_session(db: AsyncSession, user: User) -> SessionTokens:
    """Create an access/refresh pair and remember the refresh token's hash on the user."""
    settings = get_settings()
    access_token = create_access_token(user.id, user.role)
    refresh_token = create_refresh_token(user.id, user.role, token_id=str(uuid.uuid4()))
    user.refresh_token_hash = _hash_token(refresh_token)
    await db.flush()
    return SessionTokens(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.jwt_access_token_expire_minutes * 60,
    )


async def refresh_session(db: AsyncSession, refresh_token: str | None) -> tuple[User, SessionTokens]:
    """
    Rotate a session: the presented refresh token must match the stored one.

    Raises:
        AuthenticationError: missing, invalid, expired, reused or revoked token.
    """
    if not refresh_token:
        msg = "Refresh token is required"
        raise AuthenticationError(msg)
    try:
        payload = verify_token(refresh_token, expected_type="refresh")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e) or "Invalid refresh token") from e

    user = await get_user_by_id(db, str(payload.get("sub", "")))
    if user is None or user.refresh_token_hash != _hash_token(refresh_token):
        msg = "Refresh token is expired or already used"
        raise AuthenticationError(msg)

    tokens = await issue_session(db, user)
    logger.info("session_refreshed", user_id=user.id)
    return user, tokens


async def logout_user(db: AsyncSession, user: User) -> None:
    """Invalidate the user's refresh token."""
    user.refresh_token_hash = None
    await db.flush()
    logger.info("user_logged_out", user_id=user.id)


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


async def update_details(db: AsyncSession, user: User, full_name: str) -> User:
    """Change the display name."""
    if not (full_name or "").strip():
        msg = "Full name is required"
        raise ValidationError(msg)
    user.full_name = full_name.strip()
    await db.flush()
    return user


async def change_password(
    db: AsyncSession,
    user: User,
    old_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    """
    Replace the password and end other sessions.

    Raises:
        ValidationError: confirmation mismatch, wrong current password or weak new password.
    """
    if new_password != confirm_password:
        msg = "Confirm password does not match"
        raise ValidationError(msg)
    if not verify_password(old_password, user.password_hash):
        msg = "Incorrect current password"
        raise ValidationError(msg)
    validate_password_strength(new_password)

    user.password_hash = hash_password(new_password)
    user.refresh_token_hash = None
    await db.flush()
    logger.info("password_changed", user_id=user.id)
