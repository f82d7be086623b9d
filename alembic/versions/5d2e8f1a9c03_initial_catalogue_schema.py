"""initial catalogue schema

Revision ID: 5d2e8f1a9c03
Revises:
Create Date: 2026-09-14 10:12:40.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5d2e8f1a9c03'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "materials",
        sa.Column("material_id", sa.Text, primary_key=True),
        sa.Column("name", sa.Text, server_default=""),
        sa.Column("cost_per_gram", sa.Numeric(12, 4), nullable=True),
        sa.Column("sell_price_per_gram", sa.Numeric(12, 4), nullable=True),
    )

    op.create_table(
        "master_products",
        sa.Column("internal_sku", sa.Text, primary_key=True),
        sa.Column("product_type", sa.Text, server_default=""),
        sa.Column("length", sa.Numeric(12, 4), nullable=True),
        sa.Column("weight_grams", sa.Numeric(12, 4), nullable=True),
        sa.Column("material_id", sa.Text, sa.ForeignKey("materials.material_id"), nullable=True),
        sa.Column("postage_cost", sa.Numeric(12, 2), server_default="0"),
    )

    op.create_table(
        "listings",
        sa.Column("listing_id", sa.Integer, primary_key=True, autoincrement=False),
        sa.Column("title", sa.Text, server_default=""),
        sa.Column("sku", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(12, 2), server_default="0"),
        sa.Column("quantity", sa.Integer, server_default="0"),
        sa.Column("state", sa.Text, server_default="active"),
        sa.Column("has_variations", sa.Boolean, server_default="0"),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "variations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("listing_id", sa.Integer, sa.ForeignKey("listings.listing_id"), nullable=False, index=True),
        sa.Column("product_id", sa.Integer, nullable=True),
        sa.Column("variation_sku", sa.Text, nullable=False, index=True),
        sa.Column("price", sa.Numeric(12, 2), server_default="0"),
        sa.Column("quantity", sa.Integer, server_default="0"),
        sa.Column("property_values", sa.Text, server_default=""),
        sa.Column("last_synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("listing_id", "product_id", name="uq_variation_product"),
    )

    op.create_table(
        "sku_mappings",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("marketplace", sa.Text, server_default="etsy", nullable=False),
        sa.Column("variation_sku", sa.Text, nullable=False, index=True),
        sa.Column("internal_sku", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default="1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("marketplace", "variation_sku", name="uq_sku_mapping"),
    )


def downgrade() -> None:
    raise NotImplementedError("Migrations are forward-only")
