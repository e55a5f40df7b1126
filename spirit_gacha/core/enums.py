from enum import IntEnum, StrEnum


class RarityTier(IntEnum):
    """Rarity of a spirit. Ordered, so `tier >= RarityTier.RARE` means rare or better."""

    COMMON = 1
    UNCOMMON = 2
    RARE = 3
    EPIC = 4
    LEGENDARY = 5

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "RarityTier":
        return cls[label.strip().upper()]


class Element(StrEnum):
    FIRE = "fire"
    WATER = "water"
    EARTH = "earth"
    AIR = "air"
    NATURE = "nature"
    MOON = "moon"
    SUN = "sun"
    SMOKE = "smoke"
