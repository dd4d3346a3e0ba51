"""Account endpoints for /api/v1/users/* routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from donatehub.auth.dependencies import ACCESS_COOKIE, get_current_user
from donatehub.database import get_session
from donatehub.db.models import User
from donatehub.responses import api_response
from donatehub.users.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    UpdateDetailsRequest,
)
from donatehub.users.service import (
    SessionTokens,
    authenticate_user,
    change_password,
    issue_session,
    logout_user,
    refresh_session,
    register_user,
    serialize_user,
    update_details,
)

router = APIRouter(prefix="/api/v1/users", tags=["Users"])

REFRESH_COOKIE = "refresh_token"
_COOKIE_OPTIONS: dict[str, Any] = {"httponly": True, "secure": True, "samesite": "lax"}


def _session_payload(user: User, tokens: SessionTokens) -> dict[str, Any]:
    return {
        "user": serialize_user(user),
        "access_token": tokens.access_token,
        "refresh_token": tokens.refresh_token,
        "token_type": "bearer",
        "expires_in": tokens.expires_in,
    }


def _set_session_cookies(response: Response, tokens: SessionTokens) -> None:
    response.set_cookie(ACCESS_COOKIE, tokens.access_token, **_COOKIE_OPTIONS)
    response.set_cookie(REFRESH_COOKIE, tokens.refresh_token, **_COOKIE_OPTIONS)


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Create an NGO or donor account."""
    user = await register_user(
        db,
        username=body.username,
        email=body.email,
        full_name=body.full_name,
        password=body.password,
        role=body.role,
    )
    await db.commit()
    return api_response(serialize_user(user), "User registered successfully", 201)


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Login with username or email; returns tokens and sets httpOnly cookies."""
    user = await authenticate_user(db, body.identifier, body.password)
    tokens = await issue_session(db, user)
    await db.commit()
    _set_session_cookies(response, tokens)
    return api_response(_session_payload(user, tokens), "User logged in successfully")


@router.post("/refresh-token")
async def refresh_token(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Rotate the refresh token and issue a new access token."""
    presented = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    user, tokens = await refresh_session(db, presented)
    await db.commit()
    _set_session_cookies(response, tokens)
    return api_response(_session_payload(user, tokens), "Access token refreshed")


@router.post("/logout")
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Invalidate the refresh token and clear session cookies."""
    await logout_user(db, user)
    await db.commit()
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return api_response({}, "User logged out successfully")


@router.get("/current-user")
async def current_user(user: User = Depends(get_current_user)) -> dict[str, Any]:
    """Profile of the authenticated user."""
    return api_response(serialize_user(user), "User fetched successfully")


@router.patch("/update-details")
async def update_my_details(
    body: UpdateDetailsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Update the display name."""
    await update_details(db, user, body.full_name)
    await db.commit()
    return api_response(serialize_user(user), "User updated successfully")


@router.post("/change-password")
async def change_my_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Change password; other sessions lose their refresh token."""
    await change_password(db, user, body.old_password, body.new_password, body.confirm_password)
    await db.commit()
    return api_response({}, "Password changed successfully")
