"""Input checks applied before persistence."""

from decimal import Decimal

import pytest

from donatehub.errors import ValidationError
from donatehub.validation import parse_amount, parse_entity_id, require_text


class TestEntityId:
    def test_canonical_form(self):
        value = "3F1C2B7E-0000-4000-8000-000000000001"
        assert parse_entity_id(value, "campaign") == value.lower()

    @pytest.mark.parametrize("value", ["123", "", None, "not-a-uuid", 42])
    def test_malformed(self, value):
        with pytest.raises(ValidationError, match="Invalid campaign ID"):
            parse_entity_id(value, "campaign")


class TestAmount:
    def test_valid(self):
        assert parse_amount("250.50", "Donation amount") == Decimal("250.50")
        assert parse_amount(100, "Donation amount") == Decimal("100")

    @pytest.mark.parametrize(
        ("value", "message"),
        [
            (None, "is required"),
            ("", "is required"),
            ("ten", "must be a number"),
            ("NaN", "must be a number"),
            (0, "greater than 0"),
            (-5, "greater than 0"),
            ("1.005", "2 decimal places"),
            ("1e15", "too large"),
        ],
    )
    def test_rejected(self, value, message):
        with pytest.raises(ValidationError, match=message):
            parse_amount(value, "Donation amount")


class TestText:
    def test_stripped(self):
        assert require_text("  Title  ", "Title") == "Title"

    def test_blank(self):
        with pytest.raises(ValidationError, match="Title is required"):
            require_text("   ", "Title")

    def test_too_long(self):
        with pytest.raises(ValidationError, match="must not exceed 5"):
            require_text("abcdef", "Title", max_length=5)
