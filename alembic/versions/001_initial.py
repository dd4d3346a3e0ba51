"""Users, campaigns and the donation ledger.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users, campaigns and donations."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(128), nullable=False),
        sa.Column("password_hash", sa.String(256), nullable=False),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("refresh_token_hash", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("role IN ('ngo', 'donor')", name="ck_users_role"),
    )

    op.create_table(
        "campaigns",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("goal_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("raised_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_campaigns"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], name="fk_campaigns_created_by_users"),
        sa.CheckConstraint(
            "category IN ('health', 'education', 'disaster', 'others')", name="ck_campaigns_category"
        ),
        sa.CheckConstraint("status IN ('active', 'closed')", name="ck_campaigns_status"),
        sa.CheckConstraint("goal_amount > 0", name="ck_campaigns_goal_amount_positive"),
        sa.CheckConstraint("raised_amount >= 0", name="ck_campaigns_raised_amount_non_negative"),
    )
    op.create_index("ix_campaigns_created_by", "campaigns", ["created_by"])
    op.create_index("ix_campaigns_status_category", "campaigns", ["status", "category"])

    op.create_table(
        "donations",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("donor_id", sa.String(36), nullable=False),
        sa.Column("campaign_id", sa.String(36), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("donated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_donations"),
        sa.ForeignKeyConstraint(["donor_id"], ["users.id"], name="fk_donations_donor_id_users"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], name="fk_donations_campaign_id_campaigns"),
        sa.CheckConstraint("amount > 0", name="ck_donations_amount_positive"),
    )
    op.create_index("ix_donations_donor_campaign", "donations", ["donor_id", "campaign_id"])
    op.create_index("ix_donations_campaign_id", "donations", ["campaign_id"])
    op.create_index("ix_donations_donated_at", "donations", ["donated_at"])


def downgrade() -> None:
    op.drop_table("donations")
    op.drop_table("campaigns")
    op.drop_table("users")
