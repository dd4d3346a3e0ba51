"""Request schemas for campaign endpoints.

Business rules (positive goal, known category, status transitions) are
checked by the service so direct callers get the same errors.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class CampaignCreateRequest(BaseModel):
    title: str = Field(..., max_length=200)
    description: str
    category: str
    goal_amount: Decimal = Field(..., max_digits=14, decimal_places=2)


class CampaignUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    title: str | None = Field(None, max_length=200)
    description: str | None = None
    category: str | None = None
    goal_amount: Decimal | None = Field(None, max_digits=14, decimal_places=2)
    status: str | None = None
