"""ORM models for users, campaigns and the donation ledger.

Schema-level invariants (enumerated values, numeric bounds) are mirrored as
CHECK constraints; services validate the same rules before flushing so callers
get a ValidationError instead of an IntegrityError.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from donatehub.db.base import Base

ROLES = ("ngo", "donor")
CATEGORIES = ("health", "education", "disaster", "others")
CAMPAIGN_STATUSES = ("active", "closed")

# Fixed-point money: sums stay exact, rounding happens only for display.
Money = Numeric(14, 2)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Registered account. Role decides which side of the platform it uses."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(_in_clause("role", ROLES), name="role"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    full_name: Mapped[str] = mapped_column(String(128), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(256), nullable=False)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="donor")
    refresh_token_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    campaigns: Mapped[list[Campaign]] = relationship("Campaign", back_populates="creator")
    donations: Mapped[list[Donation]] = relationship("Donation", back_populates="donor")


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


class Campaign(Base):
    """Fundraising goal owned by an NGO.

    ``raised_amount`` is a materialized sum of the campaign's donations. It is
    only ever changed by the ledger, inside the transaction that inserts the
    donation.
    """

    __tablename__ = "campaigns"
    __table_args__ = (
        CheckConstraint(_in_clause("category", CATEGORIES), name="category"),
        CheckConstraint(_in_clause("status", CAMPAIGN_STATUSES), name="status"),
        CheckConstraint("goal_amount > 0", name="goal_amount_positive"),
        CheckConstraint("raised_amount >= 0", name="raised_amount_non_negative"),
        Index("ix_campaigns_created_by", "created_by"),
        Index("ix_campaigns_status_category", "status", "category"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    goal_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    raised_amount: Mapped[Decimal] = mapped_column(Money, nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    creator: Mapped[User] = relationship("User", back_populates="campaigns")
    donations: Mapped[list[Donation]] = relationship("Donation", back_populates="campaign")


# ---------------------------------------------------------------------------
# Donations (append-only ledger)
# ---------------------------------------------------------------------------


class Donation(Base):
    """Immutable record of a donor's contribution to a campaign."""

    __tablename__ = "donations"
    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
        Index("ix_donations_donor_campaign", "donor_id", "campaign_id"),
        Index("ix_donations_campaign_id", "campaign_id"),
        Index("ix_donations_donated_at", "donated_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    donor_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    campaign_id: Mapped[str] = mapped_column(String(36), ForeignKey("campaigns.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    donated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)

    donor: Mapped[User] = relationship("User", back_populates="donations")
    campaign: Mapped[Campaign] = relationship("Campaign", back_populates="donations")
