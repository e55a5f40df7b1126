from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from spirit_gacha.engine.errors import PersistenceUnavailableError
from spirit_gacha.engine.state import PityState
from spirit_gacha.models.gacha_pity import GachaPity
from spirit_gacha.models.owned_spirit import OwnedSpirit


class SqlGachaStore:
    """Persist pity counters and owned spirits with SQLModel.

    The store outlives any request, so every operation opens and commits its
    own session. Database failures surface as `PersistenceUnavailableError`.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine

    @asynccontextmanager
    async def _session(self, player_id: int, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with AsyncSession(self.engine, expire_on_commit=False) as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            raise PersistenceUnavailableError(player_id, operation) from e

    @staticmethod
    async def _get_pity(session: AsyncSession, player_id: int) -> GachaPity | None:
        result = await session.exec(select(GachaPity).where(GachaPity.player_id == player_id))
        return result.first()

    async def load(self, player_id: int) -> PityState:
        async with self._session(player_id, "load") as session:
            pity = await self._get_pity(session, player_id)
        return pity.to_state() if pity else PityState()

    async def save(self, player_id: int, state: PityState) -> None:
        async with self._session(player_id, "save") as session:
            pity = await self._get_pity(session, player_id)
            if not pity:
                pity = GachaPity(player_id=player_id)
            pity.apply_state(state)
            session.add(pity)
            await session.commit()

    async def reset(self, player_id: int) -> PityState:
        state = PityState()
        async with self._session(player_id, "reset") as session:
            pity = await self._get_pity(session, player_id)
            if pity:
                pity.apply_state(state)
                session.add(pity)
                await session.commit()
        return state

    async def load_owned(self, player_id: int) -> set[str]:
        async with self._session(player_id, "load_owned") as session:
            result = await session.exec(
                select(OwnedSpirit.spirit_id).where(OwnedSpirit.player_id == player_id)
            )
            return set(result.all())

    async def add_owned(self, player_id: int, spirit_ids: Iterable[str]) -> None:
        spirit_ids = set(spirit_ids)
        if not spirit_ids:
            return

        async with self._session(player_id, "add_owned") as session:
            result = await session.exec(
                select(OwnedSpirit.spirit_id).where(
                    OwnedSpirit.player_id == player_id, col(OwnedSpirit.spirit_id).in_(spirit_ids)
                )
            )
            missing = spirit_ids - set(result.all())
            for spirit_id in sorted(missing):
                session.add(OwnedSpirit(player_id=player_id, spirit_id=spirit_id))
            await session.commit()
