"""
RS256 JWT session tokens.

Access tokens carry the user's role so the per-request principal can be
resolved; refresh tokens additionally carry a ``jti`` so a rotated token can
be told apart from the one stored on the user.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Literal

import jwt

from donatehub.config import get_settings

_private_key: str | None = None
_public_key: str | None = None

TokenType = Literal["access", "refresh"]


def _load_keys() -> tuple[str, str]:
    """Load RSA keys from disk (cached after first call)."""
    global _private_key, _public_key  # noqa: PLW0603
    if _private_key is None or _public_key is None:
        settings = get_settings()
        _private_key = Path(settings.jwt_private_key_path).read_text()
        _public_key = Path(settings.jwt_public_key_path).read_text()
    return _private_key, _public_key


def reset_keys() -> None:
    """Forget cached keys so the next call re-reads the configured paths."""
    global _private_key, _public_key  # noqa: PLW0603
    _private_key = None
    _public_key = None


def _encode(claims: dict[str, Any], lifetime: timedelta) -> str:
    private_key, _ = _load_keys()
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": now,
        "exp": now + lifetime,
        "iss": settings.jwt_issuer,
    }
    return jwt.encode(payload, private_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str, role: str) -> str:
    """Create a short-lived access token for ``user_id`` acting as ``role``."""
    settings = get_settings()
    return _encode(
        {"sub": user_id, "role": role, "type": "access"},
        timedelta(minutes=settings.jwt_access_token_expire_minutes),
    )


def create_refresh_token(user_id: str, role: str, *, token_id: str) -> str:
    """Create a long-lived refresh token identified by ``token_id``."""
    settings = get_settings()
    return _encode(
        {"sub": user_id, "role": role, "type": "refresh", "jti": token_id},
        timedelta(days=settings.jwt_refresh_token_expire_days),
    )


def verify_token(token: str, expected_type: TokenType = "access") -> dict[str, Any]:
    """
    Verify and decode a JWT.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, or of the wrong type.
    """
    _, public_key = _load_keys()
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            public_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if payload.get("type") != expected_type:
        msg = f"Expected token type '{expected_type}', got '{payload.get('type')}'"
        raise jwt.InvalidTokenError(msg)

    return payload
