import sqlmodel

from spirit_gacha.engine.state import UINT32_MAX, PityState

from ._base import BaseModel


class GachaPity(BaseModel, table=True):
    """Track a player's pity counters."""

    __tablename__: str = "gacha_pity"

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    player_id: int = sqlmodel.Field(
        foreign_key="players.id", index=True, unique=True, sa_type=sqlmodel.BigInteger
    )
    pulls_since_rare: int = sqlmodel.Field(
        default=0, ge=0, le=UINT32_MAX, sa_type=sqlmodel.BigInteger
    )
    """Number of pulls since last rare or higher rarity spirit"""
    pulls_since_epic: int = sqlmodel.Field(
        default=0, ge=0, le=UINT32_MAX, sa_type=sqlmodel.BigInteger
    )
    """Number of pulls since last epic or higher rarity spirit"""
    total_pulls: int = sqlmodel.Field(
        default=0, ge=0, le=UINT32_MAX, sa_type=sqlmodel.BigInteger
    )

    def to_state(self) -> PityState:
        return PityState(
            pulls_since_rare=self.pulls_since_rare,
            pulls_since_epic=self.pulls_since_epic,
            total_pulls=self.total_pulls,
        )

    def apply_state(self, state: PityState) -> None:
        self.pulls_since_rare = state.pulls_since_rare
        self.pulls_since_epic = state.pulls_since_epic
        self.total_pulls = state.total_pulls
