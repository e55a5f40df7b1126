import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

import random
from collections.abc import AsyncIterator, Iterable, Sequence
from typing import TypeVar

import pytest
import sqlmodel
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

import spirit_gacha.models  # noqa: F401
from spirit_gacha.core.enums import Element, RarityTier
from spirit_gacha.core.gacha_settings import GachaSettings
from spirit_gacha.engine.catalog import SpiritCatalog, SpiritDefinition
from spirit_gacha.engine.errors import PersistenceUnavailableError
from spirit_gacha.engine.orchestrator import PullEngine
from spirit_gacha.engine.selector import RandomSource
from spirit_gacha.engine.state import PityState
from spirit_gacha.engine.store import InMemoryGachaStore

T = TypeVar("T")

PLAYER_ID = 123456789


class ScriptedRandom:
    """Returns scripted values from `random()`, then falls back to a seeded generator."""

    def __init__(self, values: Iterable[float] = (), seed: int = 0) -> None:
        self.values = list(values)
        self.calls = 0
        self._rng = random.Random(seed)

    def random(self) -> float:
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        return self._rng.random()

    def choice(self, seq: Sequence[T]) -> T:
        self.calls += 1
        return self._rng.choice(seq)


class FlakyStore(InMemoryGachaStore):
    def __init__(self) -> None:
        super().__init__()
        self.fail_loads = False
        self.fail_saves = False

    async def load(self, player_id: int) -> PityState:
        if self.fail_loads:
            raise PersistenceUnavailableError(player_id, "load")
        return await super().load(player_id)

    async def save(self, player_id: int, state: PityState) -> None:
        if self.fail_saves:
            raise PersistenceUnavailableError(player_id, "save")
        await super().save(player_id, state)


def spirit(
    spirit_id: str, rarity: RarityTier, *, exclusive: bool = False, element: Element = Element.FIRE
) -> SpiritDefinition:
    return SpiritDefinition(
        id=spirit_id, name=spirit_id.title(), rarity=rarity, element=element, exclusive=exclusive
    )


@pytest.fixture
def config() -> GachaSettings:
    return GachaSettings()


@pytest.fixture
def catalog() -> SpiritCatalog:
    return SpiritCatalog(
        [
            spirit("ember", RarityTier.COMMON),
            spirit("drizzle", RarityTier.COMMON, element=Element.WATER),
            spirit("aqua", RarityTier.UNCOMMON, element=Element.WATER),
            spirit("zephyr", RarityTier.UNCOMMON, element=Element.AIR),
            spirit("lunara", RarityTier.RARE, element=Element.MOON),
            spirit("solis", RarityTier.RARE, element=Element.SUN),
            spirit("tidecaller", RarityTier.EPIC, element=Element.WATER),
            spirit("eclipse", RarityTier.LEGENDARY, element=Element.MOON),
            spirit("smoke_sage", RarityTier.EPIC, exclusive=True, element=Element.SMOKE),
            spirit("island_heart", RarityTier.LEGENDARY, exclusive=True, element=Element.NATURE),
        ]
    )


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


def make_engine(
    *,
    catalog: SpiritCatalog,
    config: GachaSettings,
    rng: RandomSource,
    store: InMemoryGachaStore | None = None,
) -> PullEngine:
    if store is None:
        store = InMemoryGachaStore()
    return PullEngine(catalog=catalog, store=store, rng=rng, config=config)


@pytest.fixture
async def db_engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(sqlmodel.SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()
