"""Donation endpoints for /api/v1/donations/* routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from donatehub.auth.dependencies import get_current_principal, get_optional_principal
from donatehub.auth.principal import Principal
from donatehub.database import get_session
from donatehub.donations.ledger import record_donation
from donatehub.donations.schemas import DonateRequest
from donatehub.donations.service import campaign_donations, donation_history, get_donation, supported_campaigns
from donatehub.responses import api_response

router = APIRouter(prefix="/api/v1/donations", tags=["Donations"])


@router.post("/donate", status_code=201)
async def donate(
    body: DonateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Record a donation (donor only). Payment is assumed to have succeeded."""
    donation = await record_donation(db, principal, body.campaign_id, body.amount)
    return api_response(donation, "Donation made successfully", 201)


@router.get("/history")
async def history(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    sort_by: str | None = Query("donated_at"),
    sort_order: str | None = Query("desc"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    data = await donation_history(db, principal, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order)
    return api_response(data, "Donation history fetched successfully")


@router.get("/supported-campaigns")
async def get_supported_campaigns(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    status: str | None = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    data = await supported_campaigns(db, principal, status=status, page=page, limit=limit)
    return api_response(data, "Supported campaigns fetched successfully")


@router.get("/campaign/{campaign_id}")
async def get_campaign_donations(
    campaign_id: str,
    page: str | None = Query(None),
    limit: str | None = Query(None),
    principal: Principal | None = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Donations to a campaign. Donor identities are shown to the campaign owner only."""
    data = await campaign_donations(db, principal, campaign_id, page=page, limit=limit)
    return api_response(data, "Campaign donations fetched successfully")


@router.get("/{donation_id}")
async def get_donation_detail(
    donation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    return api_response(await get_donation(db, principal, donation_id), "Donation details fetched successfully")
