from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spirit_gacha.core.enums import RarityTier

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parent.parent / "data" / "spirits.json"


class GachaSettings(BaseSettings):
    """Tuning for the pull engine. Every field can be overridden with a `GACHA_` env var."""

    model_config = SettingsConfigDict(env_prefix="GACHA_")

    # Base rates, remaining mass is common
    legendary_base: float = Field(default=0.01, ge=0, le=1)
    epic_base: float = Field(default=0.04, ge=0, le=1)
    rare_base: float = Field(default=0.10, ge=0, le=1)
    uncommon_base: float = Field(default=0.25, ge=0, le=1)

    # Pity
    soft_pity_start: int = Field(default=70, ge=0)
    hard_pity: int = Field(default=90, ge=1)
    soft_pity_step: float = Field(default=0.06, ge=0)
    guaranteed_rare_interval: int = Field(default=10, ge=1)

    # Pull sizes
    single_pull_count: int = Field(default=1, ge=1)
    batch_pull_count: int = Field(default=10, ge=1)

    # Payout per duplicate, keyed by rarity label
    duplicate_value_table: dict[str, int] = Field(
        default_factory=lambda: {
            "common": 25,
            "uncommon": 50,
            "rare": 100,
            "epic": 250,
            "legendary": 500,
        }
    )

    # Prices charged by the wallet, not by the engine
    single_pull_cost: int = Field(default=100, ge=0)
    batch_pull_cost: int = Field(default=900, ge=0)
    ticket_pull_cost: int = Field(default=1, ge=1)

    catalog_path: Path = DEFAULT_CATALOG_PATH

    @model_validator(mode="after")
    def check_pity_thresholds(self) -> Self:
        if self.hard_pity < self.soft_pity_start:
            msg = f"hard_pity ({self.hard_pity}) must be >= soft_pity_start ({self.soft_pity_start})"
            raise ValueError(msg)
        for label, value in self.duplicate_value_table.items():
            try:
                RarityTier.from_label(label)
            except KeyError:
                msg = f"Unknown rarity in duplicate_value_table: {label}"
                raise ValueError(msg) from None
            if value < 0:
                msg = f"Duplicate value for {label} must be non-negative"
                raise ValueError(msg)
        return self

    @property
    def duplicate_values(self) -> dict[RarityTier, int]:
        return {
            RarityTier.from_label(label): value
            for label, value in self.duplicate_value_table.items()
        }
