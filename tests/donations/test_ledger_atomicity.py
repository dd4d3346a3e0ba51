"""The ledger insert and the raised-amount increment commit together or not at all."""

from __future__ import annotations

from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from donatehub.auth.principal import Principal
from donatehub.database import get_session
from donatehub.db.models import Campaign, Donation, User
from donatehub.donations import ledger
from donatehub.errors import AuthorizationError, StateConflictError, ValidationError


async def _ledger_state(client: AsyncClient, campaign_id: str) -> tuple[float, int]:
    data = (await client.get(f"/api/v1/campaigns/{campaign_id}")).json()["data"]
    return data["raised_amount"], data["donations_count"]


class TestRollback:
    async def test_failed_increment_discards_the_donation(
        self, client: AsyncClient, ngo: dict, donor: dict, make_campaign, donate, monkeypatch: pytest.MonkeyPatch
    ):
        campaign = await make_campaign(ngo)
        await donate(donor, campaign["id"], 40)

        async def broken_increment(*_args, **_kwargs) -> int:
            raise RuntimeError("connection reset")

        monkeypatch.setattr(ledger, "_increment_raised_amount", broken_increment)
        response = await donate(donor, campaign["id"], 60)

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to process donation"
        assert await _ledger_state(client, campaign["id"]) == (40, 1)

        history = (await client.get("/api/v1/donations/history", headers=donor["headers"])).json()["data"]
        assert [d["amount"] for d in history["items"]] == [40]

    async def test_campaign_closed_mid_flight(
        self, client: AsyncClient, ngo: dict, donor: dict, make_campaign, donate, monkeypatch: pytest.MonkeyPatch
    ):
        campaign = await make_campaign(ngo)

        async def no_rows(*_args, **_kwargs) -> int:
            return 0

        monkeypatch.setattr(ledger, "_increment_raised_amount", no_rows)
        response = await donate(donor, campaign["id"], 60)

        assert response.status_code == 409
        assert response.json()["message"] == "Cannot donate to a closed campaign"
        assert await _ledger_state(client, campaign["id"]) == (0, 0)


class TestInvariant:
    async def test_raised_amount_matches_ledger_sum(
        self,
        client: AsyncClient,
        ngo: dict,
        donor: dict,
        other_donor: dict,
        make_campaign,
        donate,
        db_session: AsyncSession,
    ):
        first = await make_campaign(ngo, goal_amount=500)
        second = await make_campaign(ngo, goal_amount=50)
        for account, campaign, amount in (
            (donor, first, "10.10"),
            (other_donor, first, "0.90"),
            (donor, second, 50),
            (other_donor, second, "0.01"),
            (donor, first, 99),
        ):
            assert (await donate(account, campaign["id"], amount)).status_code == 201
        await donate(donor, first["id"], 0)

        totals = dict(
            (
                await db_session.execute(
                    select(Donation.campaign_id, func.sum(Donation.amount)).group_by(Donation.campaign_id)
                )
            ).all()
        )
        campaigns = (await db_session.execute(select(Campaign))).scalars().all()
        for campaign in campaigns:
            assert campaign.raised_amount == totals.get(campaign.id, Decimal("0"))
        assert {c.id: c.raised_amount for c in campaigns} == {
            first["id"]: Decimal("110.00"),
            second["id"]: Decimal("50.01"),
        }


class TestRecordDonationDirect:
    """Service-level calls with an explicit principal, no HTTP involved."""

    async def _seed(self, db: AsyncSession, status: str = "active") -> tuple[Principal, Principal, Campaign]:
        ngo = User(username="ngo1", email="ngo1@example.com", full_name="Ngo One", password_hash="x", role="ngo")
        donor = User(username="don1", email="don1@example.com", full_name="Don One", password_hash="x", role="donor")
        db.add_all([ngo, donor])
        await db.flush()
        campaign = Campaign(
            title="Direct",
            description="Seeded",
            category="others",
            goal_amount=Decimal("100"),
            raised_amount=Decimal("0"),
            status=status,
            created_by=ngo.id,
        )
        db.add(campaign)
        await db.commit()
        return Principal.from_user(ngo), Principal.from_user(donor), campaign

    async def test_records_and_commits(self, db_session: AsyncSession):
        _, donor, campaign = await self._seed(db_session)

        result = await ledger.record_donation(db_session, donor, campaign.id, "25.50")

        assert result["amount"] == Decimal("25.50")
        assert result["donor"]["id"] == donor.id
        stored = (
            await db_session.execute(select(Campaign.raised_amount).where(Campaign.id == campaign.id))
        ).scalar_one()
        assert stored == Decimal("25.50")

    async def test_role_is_checked_before_anything_else(self, db_session: AsyncSession):
        ngo, _, campaign = await self._seed(db_session)
        with pytest.raises(AuthorizationError):
            await ledger.record_donation(db_session, ngo, campaign.id, None)

    async def test_validation_precedes_lookup(self, db_session: AsyncSession):
        _, donor, _ = await self._seed(db_session)
        with pytest.raises(ValidationError, match="greater than 0"):
            await ledger.record_donation(db_session, donor, "00000000-0000-4000-8000-000000000000", "-1")

    async def test_closed_campaign(self, db_session: AsyncSession):
        _, donor, campaign = await self._seed(db_session, status="closed")
        with pytest.raises(StateConflictError):
            await ledger.record_donation(db_session, donor, campaign.id, 10)
        count = (await db_session.execute(select(func.count(Donation.id)))).scalar_one()
        assert count == 0


class TestOverlappingDonations:
    """A second donation committed between another donation's lookup and its increment."""

    async def _seed(self, db: AsyncSession) -> tuple[Principal, Principal, Campaign]:
        ngo = User(username="ngo2", email="ngo2@example.com", full_name="Ngo Two", password_hash="x", role="ngo")
        first = User(username="first", email="first@example.com", full_name="First", password_hash="x", role="donor")
        second = User(
            username="second", email="second@example.com", full_name="Second", password_hash="x", role="donor"
        )
        db.add_all([ngo, first, second])
        await db.flush()
        campaign = Campaign(
            title="Shared",
            description="Two donors at once",
            category="health",
            goal_amount=Decimal("1000"),
            raised_amount=Decimal("0"),
            status="active",
            created_by=ngo.id,
        )
        db.add(campaign)
        await db.commit()
        return Principal.from_user(first), Principal.from_user(second), campaign

    async def test_no_lost_update_and_fresh_total(self, db_session: AsyncSession, monkeypatch: pytest.MonkeyPatch):
        first, second, campaign = await self._seed(db_session)
        lookup = ledger.get_campaign_or_404
        interleaved = False

        async def lookup_then_let_other_donor_in(db: AsyncSession, campaign_id: str, **kwargs) -> Campaign:
            nonlocal interleaved
            found = await lookup(db, campaign_id, **kwargs)
            if not interleaved:
                interleaved = True
                sessions = get_session()
                other = await anext(sessions)
                try:
                    await ledger.record_donation(other, second, campaign_id, 100)
                finally:
                    await sessions.aclose()
            return found

        monkeypatch.setattr(ledger, "get_campaign_or_404", lookup_then_let_other_donor_in)
        result = await ledger.record_donation(db_session, first, campaign.id, 250)

        assert interleaved
        stored = (
            await db_session.execute(select(Campaign.raised_amount).where(Campaign.id == campaign.id))
        ).scalar_one()
        ledger_sum = (
            await db_session.execute(select(func.sum(Donation.amount)).where(Donation.campaign_id == campaign.id))
        ).scalar_one()
        assert stored == ledger_sum == Decimal("350.00")
        assert result["campaign"]["raised_amount"] == Decimal("350.00")
