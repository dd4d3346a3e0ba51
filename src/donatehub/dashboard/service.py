"""Dashboard aggregation.

Each dashboard is a handful of independent aggregate queries run one after
another on the request's session; an ``AsyncSession`` cannot run statements
concurrently. Sums stay exact, display rounding goes through
``reporting.metrics``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, desc, distinct, extract, func, select

from donatehub.auth.access import check_role
from donatehub.campaigns.service import category_stats, creator_summary
from donatehub.db.models import Campaign, Donation, User
from donatehub.reporting.metrics import average, is_goal_reached, progress_percentage, round_half_up

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import ColumnElement

    from donatehub.auth.principal import Principal

RECENT_LIMIT = 5
TOP_LIMIT = 10
TRAILING_MONTHS = 12


def trailing_window_start(now: datetime | None = None, months: int = TRAILING_MONTHS) -> datetime:
    """First instant of the month ``months - 1`` months before ``now`` (UTC)."""
    now = now or datetime.now(timezone.utc)
    index = now.year * 12 + (now.month - 1) - (months - 1)
    return datetime(index // 12, index % 12 + 1, 1, tzinfo=timezone.utc)


async def monthly_donations(db: AsyncSession, *conditions: ColumnElement[bool]) -> list[dict[str, Any]]:
    """Donation totals per (year, month) over the trailing window, oldest first."""
    year = extract("year", Donation.donated_at)
    month = extract("month", Donation.donated_at)
    result = await db.execute(
        select(
            year.label("year"),
            month.label("month"),
            func.sum(Donation.amount).label("total_amount"),
            func.count(Donation.id).label("total_donations"),
        )
        .select_from(Donation)
        .join(Campaign, Campaign.id == Donation.campaign_id)
        .where(Donation.donated_at >= trailing_window_start(), *conditions)
        .group_by(year, month)
        .order_by(year, month)
    )
    return [
        {
            "year": int(row.year),
            "month": int(row.month),
            "total_amount": row.total_amount,
            "total_donations": int(row.total_donations),
        }
        for row in result
    ]


# ---------------------------------------------------------------------------
# NGO
# ---------------------------------------------------------------------------


async def ngo_dashboard(db: AsyncSession, principal: Principal | None) -> dict[str, Any]:
    """Overall stats, recent campaigns, campaign performance and monthly trend for one NGO."""
    ngo = check_role(principal, "ngo", message="Only NGOs can access this dashboard")
    owned = Campaign.created_by == ngo.id

    campaigns = (
        await db.execute(
            select(
                func.count(Campaign.id).label("total"),
                func.coalesce(func.sum(case((Campaign.status == "active", 1), else_=0)), 0).label("active"),
                func.coalesce(func.sum(case((Campaign.status == "closed", 1), else_=0)), 0).label("closed"),
                func.coalesce(func.sum(Campaign.goal_amount), 0).label("total_goal"),
                func.coalesce(func.sum(Campaign.raised_amount), 0).label("total_raised"),
            ).where(owned)
        )
    ).one()

    donations = (
        await db.execute(
            select(
                func.count(Donation.id).label("total"),
                func.coalesce(func.sum(Donation.amount), 0).label("amount"),
                func.count(distinct(Donation.donor_id)).label("donors"),
                func.avg(Donation.amount).label("avg"),
            )
            .select_from(Donation)
            .join(Campaign, Campaign.id == Donation.campaign_id)
            .where(owned)
        )
    ).one()

    overall_stats = {
        "total_campaigns": int(campaigns.total),
        "active_campaigns": int(campaigns.active),
        "closed_campaigns": int(campaigns.closed),
        "total_goal_amount": campaigns.total_goal,
        "total_raised_amount": campaigns.total_raised,
        "total_donations": int(donations.total),
        "total_donation_amount": donations.amount,
        "unique_donors": int(donations.donors),
        "avg_donation": average(donations.avg),
        "progress_percentage": progress_percentage(campaigns.total_raised, campaigns.total_goal),
    }

    recent = await db.execute(
        select(Campaign).where(owned).order_by(desc(Campaign.created_at), desc(Campaign.id)).limit(RECENT_LIMIT)
    )
    recent_campaigns = [
        {
            "id": c.id,
            "title": c.title,
            "goal_amount": c.goal_amount,
            "raised_amount": c.raised_amount,
            "status": c.status,
            "created_at": c.created_at,
            "progress_percentage": progress_percentage(c.raised_amount, c.goal_amount),
        }
        for c in recent.scalars()
    ]

    donations_count = (
        select(func.count(Donation.id)).where(Donation.campaign_id == Campaign.id).correlate(Campaign).scalar_subquery()
    )
    performance = await db.execute(
        select(Campaign, donations_count.label("donations_count"))
        .where(owned)
        .order_by(desc(Campaign.raised_amount), desc(Campaign.id))
        .limit(TOP_LIMIT)
    )
    campaign_performance = [
        {
            "id": c.id,
            "title": c.title,
            "goal_amount": c.goal_amount,
            "raised_amount": c.raised_amount,
            "status": c.status,
            "created_at": c.created_at,
            "donations_count": int(count),
            "progress_percentage": progress_percentage(c.raised_amount, c.goal_amount, places=1),
        }
        for c, count in performance
    ]

    return {
        "overall_stats": overall_stats,
        "recent_campaigns": recent_campaigns,
        "campaign_performance": campaign_performance,
        "monthly_donations": await monthly_donations(db, owned),
    }


# ---------------------------------------------------------------------------
# Donor
# ---------------------------------------------------------------------------


async def donor_dashboard(db: AsyncSession, principal: Principal | None) -> dict[str, Any]:
    """Giving stats, recent donations, top supported campaigns, category split and monthly trend."""
    donor = check_role(principal, "donor", message="Only donors can access this dashboard")
    mine = Donation.donor_id == donor.id

    totals = (
        await db.execute(
            select(
                func.count(Donation.id).label("total"),
                func.coalesce(func.sum(Donation.amount), 0).label("amount"),
                func.avg(Donation.amount).label("avg"),
                func.count(distinct(Donation.campaign_id)).label("campaigns"),
            ).where(mine)
        )
    ).one()

    # Impact counts distinct campaigns, not donations.
    impact = (
        await db.execute(
            select(
                func.count(distinct(case((Campaign.raised_amount >= Campaign.goal_amount, Campaign.id)))).label(
                    "completed"
                ),
                func.count(distinct(case((Campaign.status == "active", Campaign.id)))).label("active"),
            )
            .select_from(Donation)
            .join(Campaign, Campaign.id == Donation.campaign_id)
            .where(mine)
        )
    ).one()

    stats = {
        "total_donations": int(totals.total),
        "total_donated": totals.amount,
        "avg_donation": average(totals.avg),
        "campaigns_supported": int(totals.campaigns),
        "campaigns_helped_complete": int(impact.completed),
        "active_campaigns_supported": int(impact.active),
    }

    recent = await db.execute(
        select(Donation, Campaign)
        .join(Campaign, Campaign.id == Donation.campaign_id)
        .where(mine)
        .order_by(desc(Donation.donated_at), desc(Donation.id))
        .limit(RECENT_LIMIT)
    )
    recent_donations = [
        {
            "id": d.id,
            "amount": d.amount,
            "donated_at": d.donated_at,
            "campaign": {
                "id": c.id,
                "title": c.title,
                "description": c.description,
                "category": c.category,
                "status": c.status,
            },
        }
        for d, c in recent
    ]

    grouped = (
        select(
            Donation.campaign_id,
            func.sum(Donation.amount).label("total_donated"),
            func.count(Donation.id).label("donation_count"),
            func.max(Donation.donated_at).label("last_donation"),
        )
        .where(mine)
        .group_by(Donation.campaign_id)
        .subquery("contributions")
    )
    top = await db.execute(
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
        .order_by(desc(grouped.c.total_donated), desc(Campaign.id))
        .limit(TOP_LIMIT)
    )
    supported_campaigns = [
        {
            "campaign": {
                "id": c.id,
                "title": c.title,
                "category": c.category,
                "status": c.status,
                "goal_amount": c.goal_amount,
                "raised_amount": c.raised_amount,
                "progress_percentage": progress_percentage(c.raised_amount, c.goal_amount),
                "is_goal_reached": is_goal_reached(c.raised_amount, c.goal_amount),
                "creator": creator_summary(c.created_by, username, full_name),
            },
            "total_donated": total_donated,
            "donation_count": int(count),
            "last_donation": last_donation,
        }
        for c, username, full_name, total_donated, count, last_donation in top
    ]

    total_by_category = func.sum(Donation.amount)
    by_category = await db.execute(
        select(
            Campaign.category,
            total_by_category.label("total_donated"),
            func.count(Donation.id).label("donation_count"),
        )
        .join(Campaign, Campaign.id == Donation.campaign_id)
        .where(mine)
        .group_by(Campaign.category)
        .order_by(desc(total_by_category), Campaign.category)
    )
    donations_by_category = [
        {"category": row.category, "total_donated": row.total_donated, "donation_count": int(row.donation_count)}
        for row in by_category
    ]

    return {
        "stats": stats,
        "recent_donations": recent_donations,
        "supported_campaigns": supported_campaigns,
        "donations_by_category": donations_by_category,
        "monthly_donations": await monthly_donations(db, mine),
    }


# ---------------------------------------------------------------------------
# Platform
# ---------------------------------------------------------------------------


async def platform_stats(db: AsyncSession) -> dict[str, Any]:
    """Public platform-wide totals."""
    users = (
        await db.execute(
            select(
                func.count(User.id).label("total"),
                func.coalesce(func.sum(case((User.role == "ngo", 1), else_=0)), 0).label("ngos"),
                func.coalesce(func.sum(case((User.role == "donor", 1), else_=0)), 0).label("donors"),
            )
        )
    ).one()

    campaigns = (
        await db.execute(
            select(
                func.count(Campaign.id).label("total"),
                func.coalesce(func.sum(case((Campaign.status == "active", 1), else_=0)), 0).label("active"),
                func.coalesce(func.sum(Campaign.goal_amount), 0).label("total_goal"),
                func.coalesce(func.sum(Campaign.raised_amount), 0).label("total_raised"),
            )
        )
    ).one()

    donations = (
        await db.execute(
            select(
                func.count(Donation.id).label("total"),
                func.coalesce(func.sum(Donation.amount), 0).label("amount"),
                func.avg(Donation.amount).label("avg"),
            )
        )
    ).one()

    categories = sorted(await category_stats(db), key=lambda item: item["count"], reverse=True)

    return {
        "users": {"total": int(users.total), "ngos": int(users.ngos), "donors": int(users.donors)},
        "campaigns": {
            "total": int(campaigns.total),
            "active": int(campaigns.active),
            "closed": int(campaigns.total) - int(campaigns.active),
            "total_goal": campaigns.total_goal,
            "total_raised": campaigns.total_raised,
        },
        "donations": {
            "total": int(donations.total),
            "total_amount": donations.amount,
            "average": int(round_half_up(donations.avg)) if donations.avg is not None else 0,
        },
        "categories": categories,
    }
