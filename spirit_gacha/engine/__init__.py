from spirit_gacha.engine.catalog import CatalogView, SpiritCatalog, SpiritDefinition
from spirit_gacha.engine.errors import (
    CatalogEmptyError,
    InvalidBatchSizeError,
    PersistenceUnavailableError,
    PullError,
)
from spirit_gacha.engine.orchestrator import PullEngine
from spirit_gacha.engine.rates import Thresholds, resolve_thresholds
from spirit_gacha.engine.sampler import TierRoll, TierSampler, sample_tier
from spirit_gacha.engine.selector import ItemSelector, RandomSource
from spirit_gacha.engine.state import PityState, PullResult
from spirit_gacha.engine.store import GachaStore, InMemoryGachaStore

__all__ = (
    "CatalogEmptyError",
    "CatalogView",
    "GachaStore",
    "InMemoryGachaStore",
    "InvalidBatchSizeError",
    "ItemSelector",
    "PersistenceUnavailableError",
    "PityState",
    "PullEngine",
    "PullError",
    "PullResult",
    "RandomSource",
    "SpiritCatalog",
    "SpiritDefinition",
    "Thresholds",
    "TierRoll",
    "TierSampler",
    "resolve_thresholds",
    "sample_tier",
)
