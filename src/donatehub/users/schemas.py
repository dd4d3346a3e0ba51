"""Request schemas for account endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class RegisterRequest(BaseModel):
    """Account registration. Role defaults to donor."""

    username: str = Field(..., min_length=3, max_length=64)
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=128)
    password: str = Field(..., min_length=1, max_length=128)
    role: Literal["ngo", "donor"] = "donor"

    @field_validator("username", "email")
    @classmethod
    def normalize_identifier(cls, v: str) -> str:
        """Usernames and emails are matched case-insensitively."""
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class LoginRequest(BaseModel):
    """Login with username or email plus password."""

    username: str | None = None
    email: EmailStr | None = None
    password: str = Field(..., min_length=1, max_length=128)

    @model_validator(mode="after")
    def require_identifier(self) -> LoginRequest:
        if not (self.username or self.email):
            msg = "Username or email is required"
            raise ValueError(msg)
        return self

    @property
    def identifier(self) -> str:
        return (self.email or self.username or "").lower().strip()


class RefreshRequest(BaseModel):
    """Refresh-token rotation. Falls back to the refresh cookie when omitted."""

    refresh_token: str | None = None


class UpdateDetailsRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=128)


class ChangePasswordRequest(BaseModel):
    """Change password; the new password must be typed twice."""

    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str = Field(..., min_length=1, max_length=128)
