"""Campaign lifecycle and campaign listings.

Writes are gated twice: by role (only NGOs manage campaigns) and by ownership
(only the creator may change or delete one). Status only moves
``active -> closed``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import case, func, select

from donatehub.auth.access import check_owner, check_role
from donatehub.db.models import CAMPAIGN_STATUSES, CATEGORIES, Campaign, Donation, User
from donatehub.errors import NotFoundError, StateConflictError, ValidationError
from donatehub.reporting.metrics import is_goal_reached, progress_percentage
from donatehub.reporting.pagination import paginated
from donatehub.reporting.query import (
    ListQuery,
    PageRequest,
    amount_range_filters,
    category_filter,
    date_range_filters,
    equals,
    search_filter,
    sort_spec,
    status_filter,
)
from donatehub.reporting.sql import fetch_page
from donatehub.validation import RawAmount, parse_amount, parse_entity_id, require_text

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from donatehub.auth.principal import Principal

logger = structlog.get_logger()

SORTABLE_FIELDS = ("created_at", "updated_at", "title", "goal_amount", "raised_amount")
SEARCH_FIELDS = ("title", "description")

CAMPAIGN_COLUMNS = {
    "title": Campaign.title,
    "description": Campaign.description,
    "category": Campaign.category,
    "status": Campaign.status,
    "goal_amount": Campaign.goal_amount,
    "raised_amount": Campaign.raised_amount,
    "created_at": Campaign.created_at,
    "updated_at": Campaign.updated_at,
    "created_by": Campaign.created_by,
}


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def creator_summary(user_id: str, username: str | None, full_name: str | None) -> dict[str, Any]:
    return {"id": user_id, "username": username, "full_name": full_name}


def serialize_campaign(campaign: Campaign, **extra: Any) -> dict[str, Any]:
    """Campaign fields plus card-level progress (integer percentage)."""
    return {
        "id": campaign.id,
        "title": campaign.title,
        "description": campaign.description,
        "category": campaign.category,
        "goal_amount": campaign.goal_amount,
        "raised_amount": campaign.raised_amount,
        "status": campaign.status,
        "created_by": campaign.created_by,
        "created_at": campaign.created_at,
        "updated_at": campaign.updated_at,
        "progress_percentage": progress_percentage(campaign.raised_amount, campaign.goal_amount),
        "is_goal_reached": is_goal_reached(campaign.raised_amount, campaign.goal_amount),
        **extra,
    }


def _validate_category(category: str | None) -> str:
    if category not in CATEGORIES:
        msg = f"Category must be one of: {', '.join(CATEGORIES)}"
        raise ValidationError(msg)
    return category


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_campaign_or_404(db: AsyncSession, campaign_id: str | None, *, for_update: bool = False) -> Campaign:
    """Load a campaign by (unparsed) id. Malformed id -> ValidationError, absent -> NotFoundError."""
    cid = parse_entity_id(campaign_id, "campaign")
    stmt = select(Campaign).where(Campaign.id == cid)
    if for_update:
        stmt = stmt.with_for_update()
    campaign = (await db.execute(stmt)).scalar_one_or_none()
    if campaign is None:
        msg = "Campaign not found"
        raise NotFoundError(msg)
    return campaign


async def count_donations(db: AsyncSession, campaign_id: str) -> int:
    result = await db.execute(select(func.count(Donation.id)).where(Donation.campaign_id == campaign_id))
    return int(result.scalar_one())


async def _creator_of(db: AsyncSession, campaign: Campaign) -> dict[str, Any]:
    row = (await db.execute(select(User.username, User.full_name).where(User.id == campaign.created_by))).one_or_none()
    if row is None:
        return creator_summary(campaign.created_by, None, None)
    return creator_summary(campaign.created_by, row.username, row.full_name)


async def get_campaign_detail(db: AsyncSession, campaign_id: str) -> dict[str, Any]:
    """Campaign with creator info and a live donation count."""
    campaign = await get_campaign_or_404(db, campaign_id)
    return serialize_campaign(
        campaign,
        creator=await _creator_of(db, campaign),
        donations_count=await count_donations(db, campaign.id),
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def create_campaign(
    db: AsyncSession,
    principal: Principal | None,
    title: str | None,
    description: str | None,
    category: str | None,
    goal_amount: RawAmount,
) -> Campaign:
    """Create an active campaign owned by the calling NGO."""
    ngo = check_role(principal, "ngo", message="Only NGOs can create campaigns")

    campaign = Campaign(
        title=require_text(title, "Title", max_length=200),
        description=require_text(description, "Description"),
        category=_validate_category(category),
        goal_amount=parse_amount(goal_amount, "Goal amount"),
        raised_amount=Decimal("0"),
        status="active",
        created_by=ngo.id,
    )
    db.add(campaign)
    await db.flush()
    logger.info("campaign_created", campaign_id=campaign.id, ngo_id=ngo.id, goal_amount=str(campaign.goal_amount))
    return campaign


async def update_campaign(
    db: AsyncSession,
    principal: Principal | None,
    campaign_id: str | None,
    *,
    title: str | None = None,
    description: str | None = None,
    category: str | None = None,
    goal_amount: RawAmount = None,
    status: str | None = None,
) -> Campaign:
    """Owner-only partial update. ``raised_amount`` is never writable here."""
    check_role(principal, "ngo", message="Only NGOs can update campaigns")
    campaign = await get_campaign_or_404(db, campaign_id)
    check_owner(principal, campaign.created_by, "You can only update your own campaigns")

    if title is not None:
        campaign.title = require_text(title, "Title", max_length=200)
    if description is not None:
        campaign.description = require_text(description, "Description")
    if category is not None:
        campaign.category = _validate_category(category)
    if goal_amount is not None:
        campaign.goal_amount = parse_amount(goal_amount, "Goal amount")
    if status is not None and status != campaign.status:
        if status not in CAMPAIGN_STATUSES:
            msg = "Status must be either active or closed"
            raise ValidationError(msg)
        if campaign.status == "closed":
            msg = "Closed campaigns cannot be reopened"
            raise StateConflictError(msg)
        campaign.status = status
        logger.info("campaign_closed", campaign_id=campaign.id)

    await db.flush()
    return campaign


async def delete_campaign(db: AsyncSession, principal: Principal | None, campaign_id: str) -> None:
    """Owner-only delete, allowed only while the campaign has no donations."""
    check_role(principal, "ngo", message="Only NGOs can delete campaigns")
    campaign = await get_campaign_or_404(db, campaign_id, for_update=True)
    check_owner(principal, campaign.created_by, "You can only delete your own campaigns")

    if await count_donations(db, campaign.id) > 0:
        msg = "Cannot delete campaign that has received donations"
        raise StateConflictError(msg)

    await db.delete(campaign)
    await db.flush()
    logger.info("campaign_deleted", campaign_id=campaign.id)


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def build_campaign_query(
    *,
    status: str | None = "active",
    category: str | None = None,
    search: str | None = None,
    min_amount: RawAmount = None,
    max_amount: RawAmount = None,
    start_date: str | None = None,
    end_date: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> ListQuery:
    """Public listing parameters -> query value."""
    return (
        ListQuery()
        .where(
            status_filter(status),
            category_filter(category),
            search_filter(search, SEARCH_FIELDS),
            *amount_range_filters("goal_amount", min_amount, max_amount),
            *date_range_filters("created_at", start_date, end_date),
        )
        .sorted_by(sort_spec(sort_by, sort_order, SORTABLE_FIELDS, "created_at"))
        .paged(PageRequest.parse(page, limit))
    )


async def list_campaigns(db: AsyncSession, query: ListQuery) -> dict[str, Any]:
    """Filtered, sorted page of campaigns with creator info and progress."""
    stmt = select(Campaign, User.username, User.full_name).join(User, User.id == Campaign.created_by)
    rows, total = await fetch_page(db, stmt, query, CAMPAIGN_COLUMNS, Campaign.id)
    items = [
        serialize_campaign(campaign, creator=creator_summary(campaign.created_by, username, full_name))
        for campaign, username, full_name in rows
    ]
    return paginated(items, query.page, total)


async def list_my_campaigns(
    db: AsyncSession,
    principal: Principal | None,
    status: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> dict[str, Any]:
    """The calling NGO's campaigns, newest first, each with its donation count."""
    ngo = check_role(principal, "ngo", message="Only NGOs can access this endpoint")

    query = (
        ListQuery()
        .where(equals("created_by", ngo.id), status_filter(status, default=None))
        .sorted_by(sort_spec("created_at", "desc", SORTABLE_FIELDS, "created_at"))
        .paged(PageRequest.parse(page, limit))
    )
    donations_count = (
        select(func.count(Donation.id)).where(Donation.campaign_id == Campaign.id).correlate(Campaign).scalar_subquery()
    )
    stmt = select(Campaign, donations_count.label("donations_count"))
    rows, total = await fetch_page(db, stmt, query, CAMPAIGN_COLUMNS, Campaign.id)
    items = [serialize_campaign(campaign, donations_count=int(count)) for campaign, count in rows]
    return paginated(items, query.page, total)


async def category_stats(db: AsyncSession) -> list[dict[str, Any]]:
    """Campaign count, total raised and total goal for every category, in fixed order."""
    result = await db.execute(
        select(
            Campaign.category,
            func.count(Campaign.id).label("count"),
            func.coalesce(func.sum(Campaign.raised_amount), 0).label("total_raised"),
            func.coalesce(func.sum(Campaign.goal_amount), 0).label("total_goal"),
            func.sum(case((Campaign.status == "active", 1), else_=0)).label("active"),
        ).group_by(Campaign.category)
    )
    by_category = {row.category: row for row in result}
    stats = []
    for name in CATEGORIES:
        row = by_category.get(name)
        stats.append(
            {
                "name": name,
                "count": int(row.count) if row else 0,
                "active": int(row.active or 0) if row else 0,
                "total_raised": row.total_raised if row else Decimal("0"),
                "total_goal": row.total_goal if row else Decimal("0"),
            }
        )
    return stats
