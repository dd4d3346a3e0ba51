"""Input checks shared by the services, applied before anything is persisted."""

from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from donatehub.errors import ValidationError

MAX_AMOUNT = Decimal("999999999999.99")

RawId = str | uuid.UUID | None
RawAmount = str | int | float | Decimal | None


def parse_entity_id(value: RawId, label: str) -> str:
    """Return the canonical UUID string or raise ``ValidationError("Invalid <label> ID")``."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError) as e:
        msg = f"Invalid {label} ID"
        raise ValidationError(msg) from e


def parse_amount(value: RawAmount, label: str) -> Decimal:
    """Positive amount with at most two decimals."""
    if value is None or value == "" or isinstance(value, bool):
        msg = f"{label} is required"
        raise ValidationError(msg)
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        msg = f"{label} must be a number"
        raise ValidationError(msg) from e
    if not amount.is_finite():
        msg = f"{label} must be a number"
        raise ValidationError(msg)
    if amount <= 0:
        msg = f"{label} must be greater than 0"
        raise ValidationError(msg)
    if amount > MAX_AMOUNT:
        msg = f"{label} is too large"
        raise ValidationError(msg)
    if amount != amount.quantize(Decimal("0.01")):
        msg = f"{label} cannot have more than 2 decimal places"
        raise ValidationError(msg)
    return amount


def require_text(value: str | None, label: str, max_length: int | None = None) -> str:
    """Non-blank, stripped text."""
    text = (value or "").strip()
    if not text:
        msg = f"{label} is required"
        raise ValidationError(msg)
    if max_length is not None and len(text) > max_length:
        msg = f"{label} must not exceed {max_length} characters"
        raise ValidationError(msg)
    return text
