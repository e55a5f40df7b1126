import sqlmodel

from spirit_gacha.core.enums import RarityTier

from ._base import BaseModel


class GachaPull(BaseModel, table=True):
    """Log each individual gacha pull made by a player."""

    __tablename__: str = "gacha_pulls"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(
        foreign_key="players.id", index=True, sa_type=sqlmodel.BigInteger
    )
    spirit_id: str = sqlmodel.Field(max_length=64, index=True)
    rarity: RarityTier
    is_new: bool = sqlmodel.Field(default=False)
    was_guaranteed: bool = sqlmodel.Field(default=False)
    """Whether this pull was produced by a pity or batch guarantee"""
    duplicate_reward: int = sqlmodel.Field(default=0, ge=0)
    confirmed: bool = sqlmodel.Field(default=True)
