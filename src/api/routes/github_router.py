# src/api/routes/github_router.py
from fastapi import APIRouter, Depends
from dependency_injector.wiring import Provide, inject

from core.containers.app_containers import AppContainer
from game.models import AccountSummary, GitHubPlayer
from game.repository import PlayerRepository
from game.service import PlayerProfileService

router = APIRouter(prefix="/github", tags=["GitHub"])


@router.get("/{username}", response_model=GitHubPlayer)
@inject
async def get_github_player(
    username: str,
    service: PlayerProfileService = Depends(Provide[AppContainer.player_service]),
):
    return await service.get_player(username)


@router.post("/{username}/refresh", response_model=GitHubPlayer)
@inject
async def refresh_github_player(
    username: str,
    service: PlayerProfileService = Depends(Provide[AppContainer.player_service]),
    repository: PlayerRepository = Depends(Provide[AppContainer.player_repository]),
):
    player = await service.get_player(username, force_refresh=True)
    await repository.upsert(player)
    return player


@router.get("/{username}/raw", response_model=AccountSummary)
@inject
async def get_github_raw_data(
    username: str,
    service: PlayerProfileService = Depends(Provide[AppContainer.player_service]),
):
    return await service.get_raw_data(username)
