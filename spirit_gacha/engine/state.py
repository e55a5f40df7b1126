from pydantic import BaseModel, Field

from spirit_gacha.core.enums import RarityTier

UINT32_MAX = 2**32 - 1


class PityState(BaseModel):
    """Per-player counters that bias the next draw."""

    pulls_since_rare: int = Field(default=0, ge=0, le=UINT32_MAX)
    """Draws since the last rare-or-better result"""
    pulls_since_epic: int = Field(default=0, ge=0, le=UINT32_MAX)
    """Draws since the last epic-or-better result"""
    total_pulls: int = Field(default=0, ge=0, le=UINT32_MAX)
    """Lifetime draws, never reset by gameplay"""

    def count_pull(self) -> None:
        """Count a pending draw. Runs before the draw's tier is known."""
        self.pulls_since_rare += 1
        self.pulls_since_epic += 1
        self.total_pulls += 1

    def register_result(self, tier: RarityTier) -> None:
        if tier >= RarityTier.EPIC:
            self.pulls_since_epic = 0
            self.pulls_since_rare = 0
        elif tier == RarityTier.RARE:
            self.pulls_since_rare = 0


class PullResult(BaseModel):
    spirit_id: str
    rarity: RarityTier
    is_new_acquisition: bool
    is_guaranteed: bool = False
    """Produced by a guarantee rather than a natural roll"""
    duplicate_reward: int = Field(default=0, ge=0)
    confirmed: bool = True
    """False when the pity state after this draw could not be persisted"""
