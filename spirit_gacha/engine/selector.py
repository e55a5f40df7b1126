from collections.abc import Sequence
from typing import Protocol, TypeVar

from loguru import logger

from spirit_gacha.core.enums import RarityTier
from spirit_gacha.engine.catalog import CatalogView, SpiritDefinition
from spirit_gacha.engine.errors import CatalogEmptyError

T = TypeVar("T")


class RandomSource(Protocol):
    """The subset of `random.Random` the engine relies on."""

    def random(self) -> float: ...

    def choice(self, seq: Sequence[T]) -> T: ...


class ItemSelector:
    def __init__(self, catalog: CatalogView, rng: RandomSource) -> None:
        self.catalog = catalog
        self.rng = rng

    def select(self, rarity: RarityTier) -> SpiritDefinition:
        """Pick a spirit of `rarity` uniformly, falling back to any gacha spirit."""
        candidates = self.catalog.gacha_spirits(rarity)
        if not candidates:
            logger.warning(f"No gacha spirits of rarity {rarity.name}, falling back to full pool")
            candidates = self.catalog.gacha_spirits()

        if not candidates:
            logger.error("Spirit catalog has no gacha spirits, aborting draw")
            raise CatalogEmptyError

        return self.rng.choice(candidates)
