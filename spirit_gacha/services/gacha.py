import functools
import random
from collections.abc import Sequence
from typing import Annotated, Literal, NamedTuple

from fastapi import Depends, HTTPException
from loguru import logger
from sqlalchemy import func, update
from sqlmodel import col, desc, select
from sqlmodel.ext.asyncio.session import AsyncSession

from spirit_gacha.core.config import settings
from spirit_gacha.core.db import engine, get_db
from spirit_gacha.core.gacha_settings import GachaSettings
from spirit_gacha.engine.catalog import SpiritCatalog
from spirit_gacha.engine.errors import PullError
from spirit_gacha.engine.orchestrator import PullEngine
from spirit_gacha.engine.state import PityState, PullResult
from spirit_gacha.models.gacha_pull import GachaPull
from spirit_gacha.models.owned_spirit import OwnedSpirit
from spirit_gacha.models.player import Player
from spirit_gacha.schemas.common import PaginationData
from spirit_gacha.schemas.gacha import (
    Currency,
    GachaPityResponse,
    GachaPullResponse,
    OwnedSpiritsResponse,
    PullKind,
    SpiritResponse,
    UnconfirmedStateResponse,
)
from spirit_gacha.services.gacha_store import SqlGachaStore

Balance = Literal["gems", "tickets", "coins"]


class PullPlan(NamedTuple):
    count: int
    currency: Currency
    cost: int


@functools.cache
def get_catalog() -> SpiritCatalog:
    return SpiritCatalog.from_json(settings.gacha.catalog_path)


@functools.cache
def get_pull_engine() -> PullEngine:
    """The process-wide engine. It owns the per-player locks, so there must be only one."""
    return PullEngine(
        catalog=get_catalog(),
        store=SqlGachaStore(engine),
        rng=random.SystemRandom(),
        config=settings.gacha,
    )


def build_pity_response(
    state: PityState, config: GachaSettings, *, unconfirmed: bool = False
) -> GachaPityResponse:
    return GachaPityResponse(
        pulls_since_rare=state.pulls_since_rare,
        pulls_since_epic=state.pulls_since_epic,
        total_pulls=state.total_pulls,
        pulls_until_hard_pity=max(0, config.hard_pity - state.pulls_since_epic),
        pulls_until_guaranteed_rare=max(
            0, config.guaranteed_rare_interval - state.pulls_since_rare
        ),
        soft_pity_active=state.pulls_since_epic >= config.soft_pity_start,
        hard_pity=config.hard_pity,
        guaranteed_rare_interval=config.guaranteed_rare_interval,
        unconfirmed=unconfirmed,
    )


class GachaService:
    """Wallet side of a pull: charges gems or tickets, runs the engine, pays out duplicates."""

    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db)],
        pull_engine: Annotated[PullEngine, Depends(get_pull_engine)],
        catalog: Annotated[SpiritCatalog, Depends(get_catalog)],
    ) -> None:
        self.db = db
        self.pull_engine = pull_engine
        self.catalog = catalog

    @property
    def config(self) -> GachaSettings:
        return self.pull_engine.config

    def get_pull_plan(self, kind: PullKind) -> PullPlan:
        """Return how many draws a purchase option makes and what it costs."""
        if kind == "single":
            return PullPlan(self.config.single_pull_count, "gems", self.config.single_pull_cost)
        if kind == "ticket":
            return PullPlan(1, "tickets", self.config.ticket_pull_cost)
        return PullPlan(self.config.batch_pull_count, "gems", self.config.batch_pull_cost)

    async def _adjust_balance(self, player_id: int, balance: Balance, amount: int) -> bool:
        """Add `amount` to one of the player's balances in a single UPDATE.

        A negative amount only applies if the balance covers it. Returns whether
        the row was updated. The caller commits.
        """
        column = getattr(Player, balance)
        statement = (
            update(Player)
            .where(col(Player.id) == player_id)
            .values({balance: column + amount})
            .execution_options(synchronize_session=False)
        )
        if amount < 0:
            statement = statement.where(column >= -amount)

        result = await self.db.execute(statement)
        return result.rowcount == 1  # pyright: ignore[reportAttributeAccessIssue]

    def get_spirits(self) -> list[SpiritResponse]:
        return [
            SpiritResponse(
                id=spirit.id,
                name=spirit.name,
                rarity=spirit.rarity,
                element=spirit.element,
                description=spirit.description,
                max_level=spirit.max_level,
            )
            for spirit in self.catalog.gacha_spirits()
        ]

    async def get_pity(self, player_id: int) -> GachaPityResponse:
        state = await self.pull_engine.get_pity_status(player_id)
        return build_pity_response(
            state, self.config, unconfirmed=self.pull_engine.has_unconfirmed(player_id)
        )

    async def _get_player(self, player_id: int) -> Player:
        player = await self.db.get(Player, player_id)
        if not player:
            raise HTTPException(status_code=404, detail="Player not found")
        return player

    async def reset_pity(self, player_id: int) -> GachaPityResponse:
        await self._get_player(player_id)
        state = await self.pull_engine.reset(player_id)
        return build_pity_response(state, self.config)

    async def confirm_pending(self, player_id: int) -> UnconfirmedStateResponse:
        """Retry writing a player's unconfirmed gacha state."""
        await self._get_player(player_id)
        confirmed = await self.pull_engine.confirm(player_id)
        if not confirmed:
            logger.warning(f"Pending gacha state for player {player_id} is still unconfirmed")
        return UnconfirmedStateResponse(player_id=player_id, confirmed=confirmed)

    async def pull(self, player: Player, kind: PullKind) -> GachaPullResponse:
        """Perform a purchase of single, batch or ticket pulls for a player.

        The price is debited before the engine runs and refunded if the engine
        fails. Duplicate rewards are credited as coins.
        """
        plan = self.get_pull_plan(kind)
        player_id = player.id

        if not await self._adjust_balance(player_id, plan.currency, -plan.cost):
            await self.db.rollback()
            raise HTTPException(status_code=400, detail=f"Not enough {plan.currency}")
        await self.db.commit()

        try:
            if plan.count == 1 and kind != "batch":
                results = [await self.pull_engine.single_pull(player_id)]
            else:
                results = await self.pull_engine.batch_pull(player_id, plan.count)
        except PullError:
            logger.warning(
                f"Pull failed for player {player_id}, refunding {plan.cost} {plan.currency}"
            )
            await self._adjust_balance(player_id, plan.currency, plan.cost)
            await self.db.commit()
            raise

        duplicate_coins = sum(result.duplicate_reward for result in results)
        if duplicate_coins:
            await self._adjust_balance(player_id, "coins", duplicate_coins)
        for result in results:
            self.db.add(self._to_log(player_id, result))
        await self.db.commit()
        await self.db.refresh(player)

        return GachaPullResponse(
            pulls=results,
            cost=plan.cost,
            currency=plan.currency,
            remaining_gems=player.gems,
            remaining_tickets=player.tickets,
            coins=player.coins,
            duplicate_coins=duplicate_coins,
            confirmed=all(result.confirmed for result in results),
        )

    @staticmethod
    def _to_log(player_id: int, result: PullResult) -> GachaPull:
        return GachaPull(
            player_id=player_id,
            spirit_id=result.spirit_id,
            rarity=result.rarity,
            is_new=result.is_new_acquisition,
            was_guaranteed=result.is_guaranteed,
            duplicate_reward=result.duplicate_reward,
            confirmed=result.confirmed,
        )

    async def get_history(
        self, player_id: int, *, page: int, page_size: int
    ) -> tuple[Sequence[GachaPull], PaginationData]:
        offset = (page - 1) * page_size

        total_items_result = await self.db.exec(
            select(func.count()).select_from(GachaPull).where(GachaPull.player_id == player_id)
        )
        total_items = total_items_result.one()
        total_pages = (total_items + page_size - 1) // page_size

        result = await self.db.exec(
            select(GachaPull)
            .where(GachaPull.player_id == player_id)
            .order_by(desc(col(GachaPull.id)))
            .offset(offset)
            .limit(page_size)
        )
        pulls = result.all()

        pagination = PaginationData(
            page=page, page_size=page_size, total_items=total_items, total_pages=total_pages
        )
        return pulls, pagination

    async def get_owned(self, player_id: int) -> OwnedSpiritsResponse:
        result = await self.db.exec(
            select(OwnedSpirit.spirit_id)
            .where(OwnedSpirit.player_id == player_id)
            .order_by(col(OwnedSpirit.spirit_id))
        )
        spirit_ids = list(result.all())
        return OwnedSpiritsResponse(
            spirit_ids=spirit_ids,
            owned_count=len(spirit_ids),
            catalog_count=len(self.catalog),
        )
