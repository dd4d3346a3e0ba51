"""Password hashing (argon2id) and strength validation."""

from __future__ import annotations

import argon2

from donatehub.config import get_settings
from donatehub.errors import ValidationError

_hasher = argon2.PasswordHasher(
    time_cost=2,
    memory_cost=65536,  # 64 MB
    parallelism=1,
    hash_len=32,
    salt_len=16,
    type=argon2.Type.ID,
)


class PasswordStrengthError(ValidationError):
    """Raised when a password does not meet strength requirements."""


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt. Returns the encoded hash."""
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against its hash. Never raises on mismatch or a corrupt hash."""
    try:
        return _hasher.verify(password_hash, password)
    except (argon2.exceptions.VerifyMismatchError, argon2.exceptions.InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """True when the hash was produced with outdated parameters."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> None:
    """
    Raise PasswordStrengthError unless the password has:

    - between the configured minimum and maximum length
    - at least one uppercase letter, one lowercase letter and one digit
    """
    settings = get_settings()
    if not password or not password.strip():
        msg = "Password cannot be empty"
        raise PasswordStrengthError(msg)
    if len(password) < settings.password_min_length:
        msg = f"Password must be at least {settings.password_min_length} characters"
        raise PasswordStrengthError(msg)
    if len(password) > settings.password_max_length:
        msg = f"Password must not exceed {settings.password_max_length} characters"
        raise PasswordStrengthError(msg)
    if not any(c.isupper() for c in password):
        msg = "Password must contain at least one uppercase letter"
        raise PasswordStrengthError(msg)
    if not any(c.islower() for c in password):
        msg = "Password must contain at least one lowercase letter"
        raise PasswordStrengthError(msg)
    if not any(c.isdigit() for c in password):
        msg = "Password must contain at least one digit"
        raise PasswordStrengthError(msg)
