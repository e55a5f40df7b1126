import random
from collections.abc import AsyncIterator

import pytest
from fastapi import HTTPException
from httpx import ASGITransport, AsyncClient, Response
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from spirit_gacha.core.db import get_db
from spirit_gacha.core.enums import RarityTier
from spirit_gacha.core.gacha_settings import GachaSettings
from spirit_gacha.core.security import create_access_token
from spirit_gacha.engine.catalog import SpiritCatalog
from spirit_gacha.engine.orchestrator import PullEngine
from spirit_gacha.main import app
from spirit_gacha.models.gacha_pull import GachaPull
from spirit_gacha.models.player import Player
from spirit_gacha.services.gacha import GachaService, get_catalog, get_pull_engine
from spirit_gacha.services.gacha_store import SqlGachaStore

from .conftest import PLAYER_ID, FlakyStore, spirit

ADMIN_ID = 1


def auth(player_id: int, *, is_admin: bool = False) -> dict[str, str]:
    token = create_access_token(sub=str(player_id), is_admin=is_admin)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def pull_engine(db_engine: AsyncEngine) -> PullEngine:
    return PullEngine(
        catalog=get_catalog(),
        store=SqlGachaStore(db_engine),
        rng=random.Random(2024),
        config=GachaSettings(),
    )


@pytest.fixture
async def client(db_engine: AsyncEngine, pull_engine: PullEngine) -> AsyncIterator[AsyncClient]:
    async def override_get_db() -> AsyncIterator[AsyncSession]:
        async with AsyncSession(db_engine, expire_on_commit=False) as session:
            yield session

    async with AsyncSession(db_engine) as session:
        session.add(Player(id=PLAYER_ID, name="player", gems=1000))
        session.add(Player(id=ADMIN_ID, name="admin", is_admin=True))
        await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pull_engine] = lambda: pull_engine

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def pull(client: AsyncClient, kind: str, player_id: int = PLAYER_ID) -> Response:
    return await client.post("/api/gacha/pull", json={"kind": kind}, headers=auth(player_id))


async def get_gems(db_engine: AsyncEngine, player_id: int = PLAYER_ID) -> tuple[int, int]:
    async with AsyncSession(db_engine) as session:
        player = await session.get(Player, player_id)
        assert player is not None
        return player.gems, player.coins


async def set_balance(db_engine: AsyncEngine, **balances: int) -> None:
    async with AsyncSession(db_engine) as session:
        player = await session.get(Player, PLAYER_ID)
        assert player is not None
        player.sqlmodel_update(balances)
        session.add(player)
        await session.commit()


async def count_pull_logs(db_engine: AsyncEngine) -> int:
    async with AsyncSession(db_engine) as session:
        result = await session.exec(select(func.count()).select_from(GachaPull))
        return result.one()


async def test_healthz(client: AsyncClient) -> None:
    response = await client.get("/")

    assert response.status_code == 200


async def test_list_spirits_hides_exclusive(client: AsyncClient) -> None:
    response = await client.get("/api/gacha/spirits")

    assert response.status_code == 200
    ids = {s["id"] for s in response.json()["data"]}
    assert ids == {s.id for s in get_catalog().gacha_spirits()}
    assert "island_heart" not in ids


async def test_pull_requires_authentication(client: AsyncClient) -> None:
    response = await client.post("/api/gacha/pull", json={"kind": "single"})

    assert response.status_code == 401
    assert response.json()["status"] == "error"


async def test_single_pull_charges_gems(client: AsyncClient, db_engine: AsyncEngine) -> None:
    response = await pull(client, "single")

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["pulls"]) == 1
    assert data["cost"] == 100
    assert data["remaining_gems"] == 900
    assert data["confirmed"] is True
    assert await get_gems(db_engine) == (900, 0)

    history = await client.get("/api/gacha/history", headers=auth(PLAYER_ID))
    assert history.json()["pagination"]["total_items"] == 1
    assert history.json()["data"][0]["spirit_id"] == data["pulls"][0]["spirit_id"]


async def test_batch_pull_guarantees_rare(client: AsyncClient) -> None:
    response = await pull(client, "batch")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["cost"] == 900
    assert len(data["pulls"]) == 10
    assert any(p["rarity"] >= RarityTier.RARE for p in data["pulls"])

    pity = (await client.get("/api/gacha/pity", headers=auth(PLAYER_ID))).json()["data"]
    assert pity["total_pulls"] == 10
    assert pity["pulls_until_hard_pity"] == 90 - pity["pulls_since_epic"]

    owned = (await client.get("/api/gacha/spirits/owned", headers=auth(PLAYER_ID))).json()["data"]
    new_ids = {p["spirit_id"] for p in data["pulls"] if p["is_new_acquisition"]}
    assert set(owned["spirit_ids"]) == new_ids


async def test_not_enough_gems(client: AsyncClient, db_engine: AsyncEngine) -> None:
    await pull(client, "batch")

    response = await pull(client, "batch")

    assert response.status_code == 400
    assert response.json()["message"] == "Not enough gems"
    assert (await get_gems(db_engine))[0] == 100


async def test_duplicates_are_paid_in_coins(client: AsyncClient, db_engine: AsyncEngine) -> None:
    pull_engine = PullEngine(
        catalog=SpiritCatalog([spirit("ember", RarityTier.COMMON)]),
        store=SqlGachaStore(db_engine),
        rng=random.Random(1),
        config=GachaSettings(),
    )
    app.dependency_overrides[get_pull_engine] = lambda: pull_engine

    response = await pull(client, "batch")

    data = response.json()["data"]
    assert data["duplicate_coins"] == 9 * 25
    assert await get_gems(db_engine) == (100, 225)


async def test_invalid_pull_kind(client: AsyncClient) -> None:
    response = await pull(client, "triple")

    assert response.status_code == 422


async def test_reset_requires_admin(client: AsyncClient) -> None:
    await pull(client, "batch")

    forbidden = await client.post(f"/api/gacha/{PLAYER_ID}/pity/reset", headers=auth(PLAYER_ID))
    assert forbidden.status_code == 403

    response = await client.post(f"/api/gacha/{PLAYER_ID}/pity/reset", headers=auth(ADMIN_ID))
    assert response.status_code == 200
    assert response.json()["data"]["total_pulls"] == 0

    pity = (await client.get("/api/gacha/pity", headers=auth(PLAYER_ID))).json()["data"]
    assert pity["total_pulls"] == 0


async def test_reset_unknown_player(client: AsyncClient) -> None:
    response = await client.post("/api/gacha/424242/pity/reset", headers=auth(ADMIN_ID))

    assert response.status_code == 404


async def test_stale_balance_cannot_pay_twice(
    client: AsyncClient, db_engine: AsyncEngine, pull_engine: PullEngine
) -> None:
    await set_balance(db_engine, gems=100)

    async with (
        AsyncSession(db_engine, expire_on_commit=False) as first,
        AsyncSession(db_engine, expire_on_commit=False) as second,
    ):
        # Both requests loaded the player before either one was charged
        first_player = await first.get(Player, PLAYER_ID)
        second_player = await second.get(Player, PLAYER_ID)
        assert first_player is not None and second_player is not None
        assert first_player.gems == second_player.gems == 100

        await GachaService(first, pull_engine, get_catalog()).pull(first_player, "single")
        with pytest.raises(HTTPException) as exc_info:
            await GachaService(second, pull_engine, get_catalog()).pull(second_player, "single")

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Not enough gems"
    assert (await get_gems(db_engine))[0] == 0
    assert await count_pull_logs(db_engine) == 1
    assert (await pull_engine.get_pity_status(PLAYER_ID)).total_pulls == 1


async def test_failed_pull_refunds_gems(client: AsyncClient, db_engine: AsyncEngine) -> None:
    broken_catalog = SpiritCatalog([spirit("island_heart", RarityTier.LEGENDARY, exclusive=True)])
    app.dependency_overrides[get_pull_engine] = lambda: PullEngine(
        catalog=broken_catalog,
        store=SqlGachaStore(db_engine),
        rng=random.Random(3),
        config=GachaSettings(),
    )

    response = await pull(client, "batch")

    assert response.status_code == 500
    assert response.json()["status"] == "error"
    assert await get_gems(db_engine) == (1000, 0)
    assert await count_pull_logs(db_engine) == 0


async def test_unavailable_store_refunds_gems(client: AsyncClient, db_engine: AsyncEngine) -> None:
    store = FlakyStore()
    store.fail_loads = True
    app.dependency_overrides[get_pull_engine] = lambda: PullEngine(
        catalog=get_catalog(), store=store, rng=random.Random(3), config=GachaSettings()
    )

    response = await pull(client, "single")

    assert response.status_code == 503
    assert await get_gems(db_engine) == (1000, 0)
    assert await count_pull_logs(db_engine) == 0


async def test_ticket_pull(client: AsyncClient, db_engine: AsyncEngine) -> None:
    await set_balance(db_engine, tickets=1)

    response = await pull(client, "ticket")

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["pulls"]) == 1
    assert data["currency"] == "tickets"
    assert data["cost"] == 1
    assert data["remaining_tickets"] == 0
    assert data["remaining_gems"] == 1000

    response = await pull(client, "ticket")

    assert response.status_code == 400
    assert response.json()["message"] == "Not enough tickets"
    assert (await get_gems(db_engine))[0] == 1000


async def test_admin_confirms_pending_state(client: AsyncClient) -> None:
    store = FlakyStore()
    store.fail_saves = True
    engine = PullEngine(
        catalog=get_catalog(), store=store, rng=random.Random(5), config=GachaSettings()
    )
    app.dependency_overrides[get_pull_engine] = lambda: engine
    confirm_url = f"/api/gacha/{PLAYER_ID}/pity/confirm"

    response = await pull(client, "single")
    assert response.status_code == 200
    assert response.json()["data"]["confirmed"] is False

    pity = (await client.get("/api/gacha/pity", headers=auth(PLAYER_ID))).json()["data"]
    assert pity["unconfirmed"] is True
    assert pity["total_pulls"] == 1

    forbidden = await client.post(confirm_url, headers=auth(PLAYER_ID))
    assert forbidden.status_code == 403

    still_failing = await client.post(confirm_url, headers=auth(ADMIN_ID))
    assert still_failing.status_code == 200
    assert still_failing.json()["data"]["confirmed"] is False

    store.fail_saves = False
    confirmed = await client.post(confirm_url, headers=auth(ADMIN_ID))
    assert confirmed.json()["data"] == {"player_id": PLAYER_ID, "confirmed": True}
    assert store.pity[PLAYER_ID].total_pulls == 1

    pity = (await client.get("/api/gacha/pity", headers=auth(PLAYER_ID))).json()["data"]
    assert pity["unconfirmed"] is False
