"""Tests for password hashing and strength rules."""

import pytest

from donatehub.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from donatehub.errors import ValidationError


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("SecurePass1")
        assert verify_password("SecurePass1", hashed) is True
        assert verify_password("SecurePass2", hashed) is False

    def test_hash_is_argon2id_and_salted(self):
        first = hash_password("SecurePass1")
        assert first.startswith("$argon2id$")
        assert first != hash_password("SecurePass1")

    def test_corrupt_hash_does_not_raise(self):
        assert verify_password("SecurePass1", "not-a-hash") is False

    def test_fresh_hash_needs_no_rehash(self):
        assert check_needs_rehash(hash_password("SecurePass1")) is False


class TestPasswordStrength:
    def test_strong_password_accepted(self):
        validate_password_strength("StrongPass1")

    @pytest.mark.parametrize(
        ("password", "reason"),
        [
            ("", "empty"),
            ("   ", "empty"),
            ("Short1", "at least 8"),
            ("nouppercase1", "uppercase"),
            ("NOLOWERCASE1", "lowercase"),
            ("NoDigitHere", "digit"),
            ("A" * 100 + "a" * 28 + "1", "exceed"),
        ],
    )
    def test_weak_password_rejected(self, password: str, reason: str):
        with pytest.raises(PasswordStrengthError, match=reason):
            validate_password_strength(password)

    def test_strength_error_renders_as_validation_error(self):
        assert issubclass(PasswordStrengthError, ValidationError)
        assert PasswordStrengthError.status_code == 400
