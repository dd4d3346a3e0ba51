"""FastAPI authentication dependencies.

Tokens are read from the ``Authorization: Bearer`` header or the
``access_token`` cookie set at login.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import jwt
from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from donatehub.auth.access import check_role
from donatehub.auth.jwt import verify_token
from donatehub.auth.principal import Principal
from donatehub.database import get_session
from donatehub.db.models import User
from donatehub.errors import AuthenticationError
from donatehub.users.service import get_user_by_id

_bearer = HTTPBearer(auto_error=False)

ACCESS_COOKIE = "access_token"


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_COOKIE)


async def _resolve_user(db: AsyncSession, token: str) -> User:
    try:
        payload = verify_token(token, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(str(e) or "Invalid access token") from e

    user = await get_user_by_id(db, str(payload.get("sub", "")))
    if user is None:
        msg = "Invalid access token"
        raise AuthenticationError(msg)
    return user


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Verify the access token and return the User. Raises 401 when missing or invalid."""
    token = _extract_token(request, credentials)
    if not token:
        msg = "Unauthorized access"
        raise AuthenticationError(msg)
    return await _resolve_user(db, token)


async def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    """Principal of an authenticated request."""
    return Principal.from_user(user)


async def get_optional_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> Principal | None:
    """Principal when a token is present, ``None`` for anonymous callers.

    A token that is present but invalid is still rejected with 401.
    """
    token = _extract_token(request, credentials)
    if not token:
        return None
    return Principal.from_user(await _resolve_user(db, token))


def require_role(*roles: str) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory: authenticated principal whose role is one of ``roles``."""

    async def _dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return check_role(principal, *roles)

    return _dependency
