from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter, field_validator

from spirit_gacha.core.enums import Element, RarityTier


class SpiritAbility(BaseModel):
    name: str
    description: str = ""
    type: str
    base_value: float = 0.0
    value_per_level: float = 0.0


class SpiritDefinition(BaseModel):
    """A collectible spirit as defined by the catalog."""

    id: str
    name: str
    rarity: RarityTier
    element: Element
    description: str = ""
    exclusive: bool = False
    """Only obtainable outside the gacha, never drawn at random"""
    max_level: int = Field(default=10, ge=1)
    abilities: list[SpiritAbility] = Field(default_factory=list)

    @field_validator("rarity", mode="before")
    @classmethod
    def parse_rarity_label(cls, value: object) -> object:
        if isinstance(value, str) and not value.isdigit():
            try:
                return RarityTier.from_label(value)
            except KeyError:
                msg = f"Unknown rarity: {value}"
                raise ValueError(msg) from None
        return value


class CatalogFile(BaseModel):
    spirits: list[SpiritDefinition]


class CatalogView(Protocol):
    def gacha_spirits(self, rarity: RarityTier | None = None) -> Sequence[SpiritDefinition]:
        """Non-exclusive spirits, optionally restricted to one rarity."""
        ...

    def get(self, spirit_id: str) -> SpiritDefinition | None: ...


class SpiritCatalog:
    """Read-only, in-memory catalog view."""

    def __init__(self, spirits: Sequence[SpiritDefinition]) -> None:
        self._spirits = list(spirits)
        self._lookup = {spirit.id: spirit for spirit in self._spirits}
        if len(self._lookup) != len(self._spirits):
            msg = "Spirit catalog contains duplicate ids"
            raise ValueError(msg)

    @classmethod
    def from_json(cls, path: str | Path) -> "SpiritCatalog":
        data = TypeAdapter(CatalogFile).validate_json(Path(path).read_bytes())
        logger.info(f"Loaded {len(data.spirits)} spirits from {path}")
        return cls(data.spirits)

    def __len__(self) -> int:
        return len(self._spirits)

    def all_spirits(self) -> Sequence[SpiritDefinition]:
        return tuple(self._spirits)

    def gacha_spirits(self, rarity: RarityTier | None = None) -> Sequence[SpiritDefinition]:
        return tuple(
            spirit
            for spirit in self._spirits
            if not spirit.exclusive and (rarity is None or spirit.rarity == rarity)
        )

    def exclusive_spirits(self) -> Sequence[SpiritDefinition]:
        return tuple(spirit for spirit in self._spirits if spirit.exclusive)

    def get(self, spirit_id: str) -> SpiritDefinition | None:
        return self._lookup.get(spirit_id)
