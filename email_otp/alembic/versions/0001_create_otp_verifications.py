"""Create otp verifications table.

Revision ID: 0001_create_otp_verifications
Revises: 
Create Date: 2026-10-18
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0001_create_otp_verifications"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "otp_verifications",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("otp", sa.String(length=10), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_otp_verifications_email"),
    )
    op.create_index(
        "ix_otp_verifications_created_at",
        "otp_verifications",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_otp_verifications_created_at", table_name="otp_verifications")
    op.drop_table("otp_verifications")
