"""Donation ledger.

Recording a donation is one unit of work: the donation row is inserted and the
campaign's ``raised_amount`` is bumped by the same amount, or neither happens.
The bump is a server-side delta guarded by ``status = 'active'``, so
concurrent donations to one campaign never lose updates and a campaign closed
mid-flight rejects the donation.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import update

from donatehub.auth.access import check_role
from donatehub.campaigns.service import get_campaign_or_404
from donatehub.db.models import Campaign, Donation
from donatehub.donations.service import donation_detail
from donatehub.errors import DonateHubError, StateConflictError, TransactionError, ValidationError
from donatehub.validation import RawAmount, parse_amount

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from donatehub.auth.principal import Principal

logger = structlog.get_logger()

CLOSED_CAMPAIGN_MESSAGE = "Cannot donate to a closed campaign"


async def _increment_raised_amount(db: AsyncSession, campaign_id: str, amount: Decimal) -> int:
    """Add ``amount`` to an active campaign. Returns the number of rows updated (0 or 1)."""
    result = await db.execute(
        update(Campaign)
        .where(Campaign.id == campaign_id, Campaign.status == "active")
        .values(raised_amount=Campaign.raised_amount + amount)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


async def record_donation(
    db: AsyncSession,
    principal: Principal | None,
    campaign_id: str | None,
    amount: RawAmount,
) -> dict[str, Any]:
    """
    Record a donation from the calling donor and return it with display fields.

    Commits on success. On failure the unit is rolled back first.

    Raises:
        AuthenticationError / AuthorizationError: caller is not a donor.
        ValidationError: missing or malformed campaign id, missing or non-positive amount.
        NotFoundError: no such campaign.
        StateConflictError: the campaign is (or just became) closed.
        TransactionError: the insert or the increment failed.
    """
    donor = check_role(principal, "donor", message="Only donors can make donations")
    if campaign_id is None or campaign_id == "" or amount is None or amount == "":
        msg = "Campaign ID and donation amount are required"
        raise ValidationError(msg)
    value = parse_amount(amount, "Donation amount")

    campaign = await get_campaign_or_404(db, campaign_id)
    if campaign.status != "active":
        raise StateConflictError(CLOSED_CAMPAIGN_MESSAGE)

    donation = Donation(donor_id=donor.id, campaign_id=campaign.id, amount=value)
    try:
        db.add(donation)
        await db.flush()
        if await _increment_raised_amount(db, campaign.id, value) == 0:
            raise StateConflictError(CLOSED_CAMPAIGN_MESSAGE)
        await db.commit()
    except DonateHubError as e:
        await db.rollback()
        logger.warning("donation_rolled_back", campaign_id=campaign_id, donor_id=donor.id, reason=e.message)
        raise
    except Exception as e:
        await db.rollback()
        logger.exception("donation_rolled_back", campaign_id=campaign_id, donor_id=donor.id)
        msg = "Failed to process donation"
        raise TransactionError(msg) from e

    logger.info(
        "donation_recorded",
        donation_id=donation.id,
        campaign_id=donation.campaign_id,
        donor_id=donor.id,
        amount=str(value),
    )
    return await donation_detail(db, donation.id)
