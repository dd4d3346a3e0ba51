"""Request schemas for donation endpoints."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel


class DonateRequest(BaseModel):
    """Both fields are optional here; the ledger reports what is missing."""

    campaign_id: str | None = None
    amount: Decimal | None = None
