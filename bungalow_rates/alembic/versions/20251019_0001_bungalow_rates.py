"""Create the bungalow rate timeline table."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20251019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "bungalow_rates",
        sa.Column("rate_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("bungalow_id", sa.Integer(), nullable=False),
        sa.Column("stay_date_from", sa.Date(), nullable=False),
        sa.Column("stay_date_to", sa.Date(), nullable=False),
        sa.Column("booking_date_from", sa.Date(), nullable=False),
        sa.Column("booking_date_to", sa.Date(), nullable=True),
        sa.Column("nights", sa.Integer(), nullable=False),
        sa.Column("value", sa.Numeric(12, 4), nullable=False),
        sa.CheckConstraint(
            "stay_date_to >= stay_date_from", name="ck_bungalow_rates_stay_range"
        ),
        sa.CheckConstraint("nights >= 1", name="ck_bungalow_rates_nights_positive"),
        sa.CheckConstraint("value > 0", name="ck_bungalow_rates_value_positive"),
    )
    op.create_index(
        "ix_bungalow_rates_bungalow_id", "bungalow_rates", ["bungalow_id"]
    )
    op.create_index(
        "bungalow_rates_unit_active_idx",
        "bungalow_rates",
        ["bungalow_id", "booking_date_to", "stay_date_from"],
    )


def downgrade() -> None:
    op.drop_index("bungalow_rates_unit_active_idx", table_name="bungalow_rates")
    op.drop_index("ix_bungalow_rates_bungalow_id", table_name="bungalow_rates")
    op.drop_table("bungalow_rates")
