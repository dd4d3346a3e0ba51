"""Campaign endpoints for /api/v1/campaigns/* routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from donatehub.auth.dependencies import get_current_principal
from donatehub.auth.principal import Principal
from donatehub.campaigns.schemas import CampaignCreateRequest, CampaignUpdateRequest
from donatehub.campaigns.service import (
    build_campaign_query,
    category_stats,
    create_campaign,
    delete_campaign,
    get_campaign_detail,
    list_campaigns,
    list_my_campaigns,
    update_campaign,
)
from donatehub.database import get_session
from donatehub.responses import api_response

router = APIRouter(prefix="/api/v1/campaigns", tags=["Campaigns"])


@router.get("")
async def get_campaigns(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    status: str | None = Query("active"),
    category: str | None = Query(None),
    search: str | None = Query(None),
    min_amount: str | None = Query(None),
    max_amount: str | None = Query(None),
    start_date: str | None = Query(None),
    end_date: str | None = Query(None),
    sort_by: str | None = Query("created_at"),
    sort_order: str | None = Query("desc"),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Public, paginated and filterable campaign list."""
    query = build_campaign_query(
        status=status,
        category=category,
        search=search,
        min_amount=min_amount,
        max_amount=max_amount,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return api_response(await list_campaigns(db, query), "Campaigns fetched successfully")


@router.get("/categories")
async def get_categories(db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Per-category campaign statistics."""
    return api_response(await category_stats(db), "Categories with statistics fetched successfully")


@router.get("/my-campaigns")
async def get_my_campaigns(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    status: str | None = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """The calling NGO's own campaigns."""
    data = await list_my_campaigns(db, principal, status=status, page=page, limit=limit)
    return api_response(data, "Your campaigns fetched successfully")


@router.post("/create", status_code=201)
async def create(
    body: CampaignCreateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Create a campaign (NGO only)."""
    campaign = await create_campaign(
        db,
        principal,
        title=body.title,
        description=body.description,
        category=body.category,
        goal_amount=body.goal_amount,
    )
    await db.commit()
    return api_response(await get_campaign_detail(db, campaign.id), "Campaign created successfully", 201)


@router.get("/{campaign_id}")
async def get_campaign(campaign_id: str, db: AsyncSession = Depends(get_session)) -> dict[str, Any]:
    """Campaign detail with creator and donation count."""
    return api_response(await get_campaign_detail(db, campaign_id), "Campaign fetched successfully")


@router.put("/{campaign_id}")
async def update(
    campaign_id: str,
    body: CampaignUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Update an owned campaign; closing is one-way."""
    campaign = await update_campaign(db, principal, campaign_id, **body.model_dump(exclude_none=True))
    await db.commit()
    return api_response(await get_campaign_detail(db, campaign.id), "Campaign updated successfully")


@router.delete("/{campaign_id}")
async def delete(
    campaign_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """Delete an owned campaign that has no donations."""
    await delete_campaign(db, principal, campaign_id)
    await db.commit()
    return api_response({}, "Campaign deleted successfully")
