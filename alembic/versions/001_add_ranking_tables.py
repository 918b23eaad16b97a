"""Add ranking tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Adds ratings (one row per user, LP/MMR ladder position) and
weekly_scores (one row per user per week, upserted on resubmission).
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

rank_tier = sa.Enum(
    "UNTRAINED", "CONDITIONED", "STRONG", "ATHLETIC", "ELITE", "FORGED", name="rank_tier"
)


def upgrade() -> None:
    # ============================================
    # Create ratings table
    # ============================================
    op.create_table(
        "ratings",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("mmr", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("lp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rank", rank_tier, nullable=False, server_default="UNTRAINED"),
        sa.Column("division", sa.Integer(), nullable=True, server_default="3"),
        # Baseline before the last scored week's delta
        sa.Column("scored_week_start", sa.Date(), nullable=True),
        sa.Column("base_mmr", sa.Integer(), nullable=False, server_default="1000"),
        sa.Column("base_lp", sa.Integer(), nullable=False, server_default="0"),
        # Optimistic concurrency
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("lp >= 0", name="ck_rating_lp_non_negative"),
    )

    # ============================================
    # Create weekly_scores table
    # ============================================
    op.create_table(
        "weekly_scores",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, index=True),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        # Components
        sa.Column("consistency", sa.Integer(), nullable=False),
        sa.Column("volume", sa.Integer(), nullable=False),
        sa.Column("intensity", sa.Integer(), nullable=False),
        sa.Column("recovery", sa.Integer(), nullable=False),
        # Timestamps
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        # One score per user per week
        sa.UniqueConstraint("user_id", "week_start", name="uq_weekly_score_user_week"),
    )


def downgrade() -> None:
    op.drop_table("weekly_scores")
    op.drop_table("ratings")
    rank_tier.drop(op.get_bind(), checkfirst=True)
