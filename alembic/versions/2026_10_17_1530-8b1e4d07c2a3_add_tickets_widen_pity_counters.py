# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""add tickets, widen pity counters

Revision ID: 8b1e4d07c2a3
Revises: 3f7c2a91b4de
Create Date: 2026-10-17 15:30:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8b1e4d07c2a3"
down_revision: str | None = "3f7c2a91b4de"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

PITY_COUNTERS = ("pulls_since_rare", "pulls_since_epic", "total_pulls")


def upgrade() -> None:
    """Upgrade schema."""
    op.add_column(
        "players", sa.Column("tickets", sa.Integer(), nullable=False, server_default="0")
    )
    # Counters go up to 2**32 - 1, past the range of a 4 byte integer
    for column in PITY_COUNTERS:
        op.alter_column(
            "gacha_pity", column, type_=sa.BigInteger(), existing_type=sa.Integer(), nullable=False
        )


def downgrade() -> None:
    """Downgrade schema."""
    for column in PITY_COUNTERS:
        op.alter_column(
            "gacha_pity", column, type_=sa.Integer(), existing_type=sa.BigInteger(), nullable=False
        )
    op.drop_column("players", "tickets")
