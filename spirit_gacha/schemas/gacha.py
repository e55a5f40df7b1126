from typing import Literal

from pydantic import BaseModel, Field

from spirit_gacha.core.enums import RarityTier
from spirit_gacha.engine.state import PullResult

PullKind = Literal["single", "batch", "ticket"]
Currency = Literal["gems", "tickets"]


class GachaPullRequest(BaseModel):
    """Request to pull from the spirit gacha."""

    kind: PullKind = Field(
        default="single",
        description="Single pull, a batch with a rare guarantee, or a single pull paid with a ticket",
    )


class GachaPullResponse(BaseModel):
    """Response containing all pull results."""

    pulls: list[PullResult]
    cost: int
    currency: Currency
    remaining_gems: int
    remaining_tickets: int
    coins: int
    duplicate_coins: int
    """Coins credited for duplicates in this request"""
    confirmed: bool


class GachaPityResponse(BaseModel):
    """Pity counters plus how far the player is from each guarantee."""

    pulls_since_rare: int
    pulls_since_epic: int
    total_pulls: int
    pulls_until_hard_pity: int
    pulls_until_guaranteed_rare: int
    soft_pity_active: bool
    hard_pity: int
    guaranteed_rare_interval: int
    unconfirmed: bool = False
    """Counters come from a pull that has not been written to the database yet"""


class SpiritResponse(BaseModel):
    id: str
    name: str
    rarity: RarityTier
    element: str
    description: str
    max_level: int


class OwnedSpiritsResponse(BaseModel):
    spirit_ids: list[str]
    owned_count: int
    catalog_count: int


class UnconfirmedStateResponse(BaseModel):
    player_id: int
    confirmed: bool
