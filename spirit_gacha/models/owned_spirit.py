import sqlmodel

from ._base import BaseModel


class OwnedSpirit(BaseModel, table=True):
    """A spirit a player has acquired. Rows are never deleted by the gacha."""

    __tablename__: str = "owned_spirits"
    __table_args__ = (
        sqlmodel.UniqueConstraint("player_id", "spirit_id", name="uq_owned_spirit"),
    )

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(
        foreign_key="players.id", index=True, sa_type=sqlmodel.BigInteger
    )
    spirit_id: str = sqlmodel.Field(max_length=64, index=True)
