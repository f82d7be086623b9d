"""add staging_events table and push error columns

Revision ID: c7f03a95e4b1
Revises: 8b41c6e2d7fa
Create Date: 2026-09-22 14:41:09.302655

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'c7f03a95e4b1'
down_revision: Union[str, Sequence[str], None] = '8b41c6e2d7fa'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    with op.batch_alter_table("pricing_staging") as batch_op:
        batch_op.add_column(
            sa.Column("last_push_error", sa.Text, server_default="", nullable=False)
        )
        batch_op.add_column(
            sa.Column("last_push_attempt_at", sa.DateTime(timezone=True), nullable=True)
        )

    op.create_table(
        "staging_events",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("record_id", sa.Integer, sa.ForeignKey("pricing_staging.id"), nullable=False, index=True),
        sa.Column("variation_sku", sa.Text, nullable=False),
        sa.Column("event_type", sa.Text, nullable=False),
        sa.Column("old_status", sa.Text, nullable=True),
        sa.Column("new_status", sa.Text, nullable=True),
        sa.Column("old_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("new_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("message", sa.Text, server_default=""),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    raise NotImplementedError("Migrations are forward-only")
