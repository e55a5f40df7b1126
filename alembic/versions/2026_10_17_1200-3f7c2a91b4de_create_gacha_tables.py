# pyright: reportAttributeAccessIssue=false, reportUndefinedVariable=false
"""create gacha tables

Revision ID: 3f7c2a91b4de
Revises:
Create Date: 2026-10-17 12:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel.sql.sqltypes

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f7c2a91b4de"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

RARITY_ENUM = sa.Enum("COMMON", "UNCOMMON", "RARE", "EPIC", "LEGENDARY", name="raritytier")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "players",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("id", sa.BigInteger(), autoincrement=False, nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("is_admin", sa.Boolean(), nullable=False),
        sa.Column("gems", sa.Integer(), nullable=False),
        sa.Column("coins", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_players_id"), "players", ["id"], unique=False)

    op.create_table(
        "gacha_pity",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("pulls_since_rare", sa.Integer(), nullable=False),
        sa.Column("pulls_since_epic", sa.Integer(), nullable=False),
        sa.Column("total_pulls", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_gacha_pity_id"), "gacha_pity", ["id"], unique=False)
    op.create_index(op.f("ix_gacha_pity_player_id"), "gacha_pity", ["player_id"], unique=True)

    op.create_table(
        "owned_spirits",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("spirit_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("player_id", "spirit_id", name="uq_owned_spirit"),
    )
    op.create_index(op.f("ix_owned_spirits_id"), "owned_spirits", ["id"], unique=False)
    op.create_index(
        op.f("ix_owned_spirits_player_id"), "owned_spirits", ["player_id"], unique=False
    )
    op.create_index(
        op.f("ix_owned_spirits_spirit_id"), "owned_spirits", ["spirit_id"], unique=False
    )

    op.create_table(
        "gacha_pulls",
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("player_id", sa.BigInteger(), nullable=False),
        sa.Column("spirit_id", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("rarity", RARITY_ENUM, nullable=False),
        sa.Column("is_new", sa.Boolean(), nullable=False),
        sa.Column("was_guaranteed", sa.Boolean(), nullable=False),
        sa.Column("duplicate_reward", sa.Integer(), nullable=False),
        sa.Column("confirmed", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["player_id"], ["players.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_gacha_pulls_id"), "gacha_pulls", ["id"], unique=False)
    op.create_index(op.f("ix_gacha_pulls_player_id"), "gacha_pulls", ["player_id"], unique=False)
    op.create_index(op.f("ix_gacha_pulls_spirit_id"), "gacha_pulls", ["spirit_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_gacha_pulls_spirit_id"), table_name="gacha_pulls")
    op.drop_index(op.f("ix_gacha_pulls_player_id"), table_name="gacha_pulls")
    op.drop_index(op.f("ix_gacha_pulls_id"), table_name="gacha_pulls")
    op.drop_table("gacha_pulls")
    RARITY_ENUM.drop(op.get_bind(), checkfirst=True)

    op.drop_index(op.f("ix_owned_spirits_spirit_id"), table_name="owned_spirits")
    op.drop_index(op.f("ix_owned_spirits_player_id"), table_name="owned_spirits")
    op.drop_index(op.f("ix_owned_spirits_id"), table_name="owned_spirits")
    op.drop_table("owned_spirits")

    op.drop_index(op.f("ix_gacha_pity_player_id"), table_name="gacha_pity")
    op.drop_index(op.f("ix_gacha_pity_id"), table_name="gacha_pity")
    op.drop_table("gacha_pity")

    op.drop_index(op.f("ix_players_id"), table_name="players")
    op.drop_table("players")
