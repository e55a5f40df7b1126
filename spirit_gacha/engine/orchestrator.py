from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

from loguru import logger

from spirit_gacha.core.enums import RarityTier
from spirit_gacha.core.gacha_settings import GachaSettings
from spirit_gacha.engine.catalog import CatalogView, SpiritDefinition
from spirit_gacha.engine.errors import InvalidBatchSizeError, PersistenceUnavailableError
from spirit_gacha.engine.locks import PlayerLocks
from spirit_gacha.engine.ownership import OwnershipResolver
from spirit_gacha.engine.sampler import TierSampler
from spirit_gacha.engine.selector import ItemSelector, RandomSource
from spirit_gacha.engine.state import PityState, PullResult
from spirit_gacha.engine.store import GachaStore


class Draw(NamedTuple):
    spirit: SpiritDefinition
    guaranteed: bool


@dataclass
class Snapshot:
    """Player state after a draw, kept in memory until it is persisted."""

    pity: PityState
    owned: set[str]
    acquired: list[str] = field(default_factory=list)


class PullEngine:
    """Resolves single and batch pulls for players.

    Every operation for a given player runs under that player's lock, from
    loading the counters to persisting them. If persisting fails the results
    are still returned, marked unconfirmed, and the player is blocked from
    further pulls until the state is written.
    """

    def __init__(
        self,
        *,
        catalog: CatalogView,
        store: GachaStore,
        rng: RandomSource,
        config: GachaSettings,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.rng = rng
        self.config = config

        self.sampler = TierSampler(config)
        self.selector = ItemSelector(catalog, rng)
        self.ownership = OwnershipResolver(config.duplicate_values)

        self._locks = PlayerLocks()
        self._unconfirmed: dict[int, Snapshot] = {}

    async def single_pull(self, player_id: int) -> PullResult:
        async with self._locks.get(player_id):
            pity, owned = await self._checkout(player_id)
            draws = [self._draw(player_id, pity)]
            results = await self._finish(player_id, pity, owned, draws)
        return results[0]

    async def batch_pull(self, player_id: int, count: int) -> list[PullResult]:
        """Pull `count` times in a row with at least one rare-or-better result.

        Draws share the player's pity state, so each one sees the counters left
        by the previous one. When no natural roll reaches rare, the last slot is
        replaced by a rare spirit. The replacement does not touch the counters.
        """
        if count <= 0:
            raise InvalidBatchSizeError(count)

        async with self._locks.get(player_id):
            pity, owned = await self._checkout(player_id)
            draws = [self._draw(player_id, pity) for _ in range(count)]

            if not any(draw.spirit.rarity >= RarityTier.RARE for draw in draws):
                replacement = self.selector.select(RarityTier.RARE)
                logger.info(
                    f"Player {player_id} batch of {count} had no rare, "
                    f"slot {count - 1} replaced with {replacement.id}"
                )
                draws[-1] = Draw(spirit=replacement, guaranteed=True)

            return await self._finish(player_id, pity, owned, draws)

    async def get_pity_status(self, player_id: int) -> PityState:
        async with self._locks.get(player_id):
            pending = self._unconfirmed.get(player_id)
            if pending is not None:
                return pending.pity.model_copy()
            return await self._load_pity(player_id)

    async def reset(self, player_id: int) -> PityState:
        """Zero all pity counters of a player. Support tooling only."""
        async with self._locks.get(player_id):
            if player_id in self._unconfirmed:
                await self._flush(player_id)
            state = await self.store.reset(player_id)
            logger.warning(f"Pity counters reset for player {player_id}")
            return state

    def has_unconfirmed(self, player_id: int) -> bool:
        return player_id in self._unconfirmed

    async def confirm(self, player_id: int) -> bool:
        """Retry persisting a player's unconfirmed state. Returns whether it succeeded."""
        async with self._locks.get(player_id):
            if player_id not in self._unconfirmed:
                return True
            try:
                await self._flush(player_id)
            except PersistenceUnavailableError:
                return False
            return True

    def _draw(self, player_id: int, pity: PityState) -> Draw:
        tier_roll = self.sampler.draw(pity, self.rng.random())
        spirit = self.selector.select(tier_roll.tier)
        logger.debug(
            f"Player {player_id} pull #{pity.total_pulls}: {spirit.id} "
            f"({tier_roll.tier.name}{', guaranteed' if tier_roll.guaranteed else ''})"
        )
        return Draw(spirit=spirit, guaranteed=tier_roll.guaranteed)

    def _resolve_ownership(
        self, draws: Sequence[Draw], owned: set[str]
    ) -> tuple[list[PullResult], list[str]]:
        results: list[PullResult] = []
        acquired: list[str] = []
        for draw in draws:
            acquisition = self.ownership.resolve(draw.spirit, owned)
            if acquisition.is_new:
                acquired.append(draw.spirit.id)
            results.append(
                PullResult(
                    spirit_id=draw.spirit.id,
                    rarity=draw.spirit.rarity,
                    is_new_acquisition=acquisition.is_new,
                    is_guaranteed=draw.guaranteed,
                    duplicate_reward=acquisition.duplicate_reward,
                )
            )
        return results, acquired

    async def _finish(
        self, player_id: int, pity: PityState, owned: set[str], draws: Sequence[Draw]
    ) -> list[PullResult]:
        results, acquired = self._resolve_ownership(draws, owned)
        snapshot = Snapshot(pity=pity, owned=owned, acquired=acquired)

        try:
            await self._persist(player_id, snapshot)
        except PersistenceUnavailableError:
            logger.error(
                f"Could not persist gacha state for player {player_id}; durable pity counters "
                "are stale until the pending state is written"
            )
            self._unconfirmed[player_id] = snapshot
            return [result.model_copy(update={"confirmed": False}) for result in results]

        return results

    async def _checkout(self, player_id: int) -> tuple[PityState, set[str]]:
        """Get working copies of the player's state, writing any unconfirmed state first."""
        pending = self._unconfirmed.get(player_id)
        if pending is not None:
            await self._flush(player_id)
            return pending.pity.model_copy(), set(pending.owned)

        pity = await self._load_pity(player_id)
        try:
            owned = await self.store.load_owned(player_id)
        except PersistenceUnavailableError:
            logger.error(f"Could not load owned spirits for player {player_id}")
            raise
        return pity, owned

    async def _load_pity(self, player_id: int) -> PityState:
        try:
            return await self.store.load(player_id)
        except PersistenceUnavailableError:
            logger.error(f"Could not load pity counters for player {player_id}")
            raise

    async def _persist(self, player_id: int, snapshot: Snapshot) -> None:
        await self.store.save(player_id, snapshot.pity)
        if snapshot.acquired:
            await self.store.add_owned(player_id, snapshot.acquired)

    async def _flush(self, player_id: int) -> None:
        snapshot = self._unconfirmed[player_id]
        try:
            await self._persist(player_id, snapshot)
        except PersistenceUnavailableError:
            logger.error(f"Player {player_id} still has unconfirmed gacha state, refusing to pull")
            raise
        del self._unconfirmed[player_id]
        logger.info(f"Unconfirmed gacha state for player {player_id} persisted")
