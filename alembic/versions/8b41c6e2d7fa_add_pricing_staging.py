"""add pricing_staging table

Revision ID: 8b41c6e2d7fa
Revises: 5d2e8f1a9c03
Create Date: 2026-09-15 09:03:27.540917

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b41c6e2d7fa'
down_revision: Union[str, Sequence[str], None] = '5d2e8f1a9c03'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(12, 2)


def upgrade() -> None:
    op.create_table(
        "pricing_staging",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("listing_id", sa.Integer, nullable=False, index=True),
        sa.Column("variation_sku", sa.Text, nullable=False, index=True),
        sa.Column("internal_sku", sa.Text, nullable=True),
        sa.Column("current_price", MONEY, server_default="0"),
        # Cost snapshot
        sa.Column("weight_grams", sa.Numeric(12, 4), nullable=True),
        sa.Column("material_id", sa.Text, nullable=True),
        sa.Column("material_cost", MONEY, server_default="0"),
        sa.Column("postage_cost", MONEY, server_default="0"),
        sa.Column("margin_modifier", MONEY, server_default="0"),
        sa.Column("base_calculated_price", MONEY, server_default="0"),
        sa.Column("calculated_price", MONEY, server_default="0"),
        # Fee snapshot
        sa.Column("transaction_fee", MONEY, server_default="0"),
        sa.Column("payment_fee", MONEY, server_default="0"),
        sa.Column("ad_fee", MONEY, server_default="0"),
        sa.Column("listing_fee", MONEY, server_default="0"),
        sa.Column("total_fees", MONEY, server_default="0"),
        sa.Column("profit", MONEY, server_default="0"),
        sa.Column("profit_margin_pct", MONEY, server_default="0"),
        sa.Column("status", sa.Text, server_default="pending", nullable=False, index=True),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pushed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("listing_id", "variation_sku", name="uq_staging_listing_sku"),
    )


def downgrade() -> None:
    raise NotImplementedError("Migrations are forward-only")
