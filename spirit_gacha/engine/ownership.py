from collections.abc import Mapping
from typing import NamedTuple

from spirit_gacha.core.enums import RarityTier
from spirit_gacha.engine.catalog import SpiritDefinition


class Acquisition(NamedTuple):
    is_new: bool
    duplicate_reward: int


class OwnershipResolver:
    """Decides between a new acquisition and a duplicate payout.

    The payout is only reported. Crediting it is up to the wallet.
    """

    def __init__(self, duplicate_values: Mapping[RarityTier, int]) -> None:
        self.duplicate_values = dict(duplicate_values)

    def duplicate_value(self, rarity: RarityTier) -> int:
        return self.duplicate_values.get(rarity, self.duplicate_values.get(RarityTier.COMMON, 0))

    def resolve(self, spirit: SpiritDefinition, owned: set[str]) -> Acquisition:
        if spirit.id not in owned:
            owned.add(spirit.id)
            return Acquisition(is_new=True, duplicate_reward=0)
        return Acquisition(is_new=False, duplicate_reward=self.duplicate_value(spirit.rarity))
