from collections.abc import Sequence
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from spirit_gacha.core.security import get_current_player, require_admin
from spirit_gacha.models.gacha_pull import GachaPull
from spirit_gacha.models.player import Player
from spirit_gacha.schemas.common import APIResponse, PaginatedResponse
from spirit_gacha.schemas.gacha import (
    GachaPityResponse,
    GachaPullRequest,
    GachaPullResponse,
    OwnedSpiritsResponse,
    SpiritResponse,
    UnconfirmedStateResponse,
)
from spirit_gacha.services.gacha import GachaService

router = APIRouter(prefix="/gacha", tags=["gacha"])


@router.get("/spirits")
async def get_spirits(
    service: Annotated[GachaService, Depends()],
) -> APIResponse[list[SpiritResponse]]:
    """List the spirits that can be drawn."""
    return APIResponse(data=service.get_spirits())


@router.get("/spirits/owned")
async def get_owned_spirits(
    service: Annotated[GachaService, Depends()],
    player: Annotated[Player, Depends(get_current_player)],
) -> APIResponse[OwnedSpiritsResponse]:
    return APIResponse(data=await service.get_owned(player.id))


@router.get("/pity")
async def get_pity(
    service: Annotated[GachaService, Depends()],
    player: Annotated[Player, Depends(get_current_player)],
) -> APIResponse[GachaPityResponse]:
    return APIResponse(data=await service.get_pity(player.id))


@router.post("/pull")
async def pull(
    request: GachaPullRequest,
    service: Annotated[GachaService, Depends()],
    player: Annotated[Player, Depends(get_current_player)],
) -> APIResponse[GachaPullResponse]:
    response = await service.pull(player, request.kind)
    message = None if response.confirmed else "Pull recorded but not yet saved, retry later"
    return APIResponse(data=response, message=message)


@router.get("/history")
async def get_history(
    service: Annotated[GachaService, Depends()],
    player: Annotated[Player, Depends(get_current_player)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> PaginatedResponse[Sequence[GachaPull]]:
    pulls, pagination = await service.get_history(player.id, page=page, page_size=page_size)
    return PaginatedResponse(data=pulls, pagination=pagination)


@router.post("/{player_id}/pity/reset")
async def reset_pity(
    player_id: int,
    service: Annotated[GachaService, Depends()],
    _admin: Annotated[Player, Depends(require_admin)],
) -> APIResponse[GachaPityResponse]:
    """Zero a player's pity counters (admin only)."""
    pity = await service.reset_pity(player_id)
    return APIResponse(data=pity, message="Pity counters reset")


@router.post("/{player_id}/pity/confirm")
async def confirm_pity(
    player_id: int,
    service: Annotated[GachaService, Depends()],
    _admin: Annotated[Player, Depends(require_admin)],
) -> APIResponse[UnconfirmedStateResponse]:
    """Retry saving a player's pending pull state (admin only)."""
    response = await service.confirm_pending(player_id)
    message = None if response.confirmed else "Pending state could not be saved, retry later"
    return APIResponse(data=response, message=message)
