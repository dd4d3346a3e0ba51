"""Donation read side: history, per-campaign listings, supported campaigns, detail.

All reads are side-effect free. Writes live in ``donations.ledger``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import distinct, func, select
from sqlalchemy.orm import aliased

from donatehub.auth.access import check_role, is_owner
from donatehub.campaigns.service import creator_summary, get_campaign_or_404, serialize_campaign
from donatehub.db.models import Campaign, Donation, User
from donatehub.errors import NotFoundError, OwnershipError
from donatehub.reporting.metrics import average, is_goal_reached, progress_percentage
from donatehub.reporting.pagination import paginated
from donatehub.reporting.query import ListQuery, PageRequest, Sort, equals, sort_spec, status_filter
from donatehub.reporting.sql import fetch_page
from donatehub.validation import parse_entity_id

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from donatehub.auth.principal import Principal

HISTORY_SORT_FIELDS = ("donated_at", "amount")

DONATION_COLUMNS = {
    "donor_id": Donation.donor_id,
    "campaign_id": Donation.campaign_id,
    "amount": Donation.amount,
    "donated_at": Donation.donated_at,
}


def _person(user_id: str, username: str | None, full_name: str | None) -> dict[str, Any]:
    return {"id": user_id, "username": username, "full_name": full_name}


# ---------------------------------------------------------------------------
# Single donation
# ---------------------------------------------------------------------------


async def donation_detail(db: AsyncSession, donation_id: str) -> dict[str, Any]:
    """Donation with donor and campaign display fields (campaign includes its owner)."""
    ngo = aliased(User, name="ngo")
    row = (
        await db.execute(
            select(Donation, User.username, User.full_name, Campaign, ngo.username, ngo.full_name)
            .join(User, User.id == Donation.donor_id)
            .join(Campaign, Campaign.id == Donation.campaign_id)
            .join(ngo, ngo.id == Campaign.created_by)
            .where(Donation.id == donation_id)
            # Campaign totals change in SQL only; identity-mapped copies are stale.
            .execution_options(populate_existing=True)
        )
    ).one_or_none()
    if row is None:
        msg = "Donation not found"
        raise NotFoundError(msg)

    donation, donor_username, donor_full_name, campaign, ngo_username, ngo_full_name = row
    return {
        "id": donation.id,
        "amount": donation.amount,
        "donated_at": donation.donated_at,
        "created_at": donation.created_at,
        "donor": _person(donation.donor_id, donor_username, donor_full_name),
        "campaign": {
            "id": campaign.id,
            "title": campaign.title,
            "description": campaign.description,
            "category": campaign.category,
            "goal_amount": campaign.goal_amount,
            "raised_amount": campaign.raised_amount,
            "status": campaign.status,
            "created_by": creator_summary(campaign.created_by, ngo_username, ngo_full_name),
        },
    }


async def get_donation(db: AsyncSession, principal: Principal | None, donation_id: str) -> dict[str, Any]:
    """One donation, visible to the donor who made it and to the owner of its campaign."""
    check_role(principal, "donor", "ngo")
    did = parse_entity_id(donation_id, "donation")
    detail = await donation_detail(db, did)
    owner_id = detail["campaign"]["created_by"]["id"]
    if not (is_owner(principal, detail["donor"]["id"]) or is_owner(principal, owner_id)):
        msg = "You can only view your own donations or donations to your campaigns"
        raise OwnershipError(msg)
    return detail


# ---------------------------------------------------------------------------
# Donor views
# ---------------------------------------------------------------------------


async def donor_totals(db: AsyncSession, donor_id: str) -> dict[str, Any]:
    """Total donated and number of distinct campaigns supported."""
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(Donation.amount), 0).label("total_donated"),
                func.count(distinct(Donation.campaign_id)).label("campaigns_supported"),
            ).where(Donation.donor_id == donor_id)
        )
    ).one()
    return {"total_donated": row.total_donated, "campaigns_supported": int(row.campaigns_supported)}


async def donation_history(
    db: AsyncSession,
    principal: Principal | None,
    page: str | None = None,
    limit: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
) -> dict[str, Any]:
    """The calling donor's donations with campaign and NGO display info."""
    donor = check_role(principal, "donor", message="Only donors can access donation history")

    query = (
        ListQuery()
        .where(equals("donor_id", donor.id))
        .sorted_by(sort_spec(sort_by, sort_order, HISTORY_SORT_FIELDS, "donated_at"))
        .paged(PageRequest.parse(page, limit))
    )
    stmt = (
        select(Donation, Campaign, User.username, User.full_name)
        .join(Campaign, Campaign.id == Donation.campaign_id)
        .join(User, User.id == Campaign.created_by)
    )
    rows, total = await fetch_page(db, stmt, query, DONATION_COLUMNS, Donation.id)
    items = [
        {
            "id": donation.id,
            "amount": donation.amount,
            "donated_at": donation.donated_at,
            "campaign": {
                "id": campaign.id,
                "title": campaign.title,
                "description": campaign.description,
                "category": campaign.category,
                "goal_amount": campaign.goal_amount,
                "raised_amount": campaign.raised_amount,
                "status": campaign.status,
            },
            "ngo": _person(campaign.created_by, username, full_name),
        }
        for donation, campaign, username, full_name in rows
    ]
    return paginated(items, query.page, total, stats=await donor_totals(db, donor.id))


async def supported_campaigns(
    db: AsyncSession,
    principal: Principal | None,
    status: str | None = None,
    page: str | None = None,
    limit: str | None = None,
) -> dict[str, Any]:
    """Campaigns the calling donor gave to, one entry per campaign, most recent first.

    ``status`` (``active``/``closed``) filters on the campaign's current status;
    the total count honours the filter.
    """
    donor = check_role(principal, "donor", message="Only donors can access supported campaigns")

    grouped = (
        select(
            Donation.campaign_id,
            func.sum(Donation.amount).label("total_donated"),
            func.count(Donation.id).label("donation_count"),
            func.max(Donation.donated_at).label("last_donation"),
        )
        .where(Donation.donor_id == donor.id)
        .group_by(Donation.campaign_id)
        .subquery("contributions")
    )
    stmt = (
        select(
            Campaign,
            User.username,
            User.full_name,
            grouped.c.total_donated,
            grouped.c.donation_count,
            grouped.c.last_donation,
        )
        .join(grouped, grouped.c.campaign_id == Campaign.id)
        .join(User, User.id == Campaign.created_by)
    )
    columns = {"status": Campaign.status, "last_donation": grouped.c.last_donation}
    query = (
        ListQuery()
        .where(status_filter(status, default=None))
        .sorted_by(Sort("last_donation", descending=True))
        .paged(PageRequest.parse(page, limit))
    )
    rows, total = await fetch_page(db, stmt, query, columns, Campaign.id)
    items = [
        {
            "campaign": serialize_campaign(campaign, creator=creator_summary(campaign.created_by, username, full_name)),
            "total_donated": total_donated,
            "donation_count": int(donation_count),
            "last_donation": last_donation,
        }
        for campaign, username, full_name, total_donated, donation_count, last_donation in rows
    ]
    return paginated(items, query.page, total)


# ---------------------------------------------------------------------------
# Campaign view
# ---------------------------------------------------------------------------


async def campaign_donation_stats(db: AsyncSession, campaign_id: str) -> dict[str, Any]:
    """Total, distinct donors, average (2 dp), min and max; zeros when there are none."""
    row = (
        await db.execute(
            select(
                func.coalesce(func.sum(Donation.amount), 0).label("total_amount"),
                func.count(distinct(Donation.donor_id)).label("total_donors"),
                func.avg(Donation.amount).label("avg_donation"),
                func.coalesce(func.min(Donation.amount), 0).label("min_donation"),
                func.coalesce(func.max(Donation.amount), 0).label("max_donation"),
            ).where(Donation.campaign_id == campaign_id)
        )
    ).one()
    return {
        "total_amount": row.total_amount,
        "total_donors": int(row.total_donors),
        "avg_donation": average(row.avg_donation),
        "min_donation": row.min_donation,
        "max_donation": row.max_donation,
    }


async def campaign_donations(
    db: AsyncSession,
    principal: Principal | None,
    campaign_id: str | None,
    page: str | None = None,
    limit: str | None = None,
) -> dict[str, Any]:
    """Donations to one campaign, newest first.

    The campaign owner sees who donated; everyone else, anonymous callers
    included, gets amounts and dates only.
    """
    campaign = await get_campaign_or_404(db, campaign_id)
    show_donors = is_owner(principal, campaign.created_by)

    query = (
        ListQuery()
        .where(equals("campaign_id", campaign.id))
        .sorted_by(Sort("donated_at", descending=True))
        .paged(PageRequest.parse(page, limit))
    )
    stmt = select(Donation, User.username, User.full_name).join(User, User.id == Donation.donor_id)
    rows, total = await fetch_page(db, stmt, query, DONATION_COLUMNS, Donation.id)

    items = []
    for donation, username, full_name in rows:
        item: dict[str, Any] = {"id": donation.id, "amount": donation.amount, "donated_at": donation.donated_at}
        if show_donors:
            item["donor"] = _person(donation.donor_id, username, full_name)
        items.append(item)

    return paginated(
        items,
        query.page,
        total,
        stats=await campaign_donation_stats(db, campaign.id),
        campaign={
            "id": campaign.id,
            "title": campaign.title,
            "status": campaign.status,
            "goal_amount": campaign.goal_amount,
            "raised_amount": campaign.raised_amount,
            "progress_percentage": progress_percentage(campaign.raised_amount, campaign.goal_amount),
            "is_goal_reached": is_goal_reached(campaign.raised_amount, campaign.goal_amount),
        },
    )

