from datetime import timedelta

from dependency_injector import containers, providers
from motor.motor_asyncio import AsyncIOMotorClient

from core.config.settings import settings
from game.composer import BaselineStatsStrategy, ProfileComposer
from game.repository import PlayerRepository
from game.service import PlayerProfileService
from game.stream_token import StreamTokenService
from ingest.sources.github.aggregator import GitHubAggregator
from ingest.sources.github.client import GitHubClient


class AppContainer(containers.DeclarativeContainer):

    mongo_client = providers.Singleton(
        AsyncIOMotorClient,
        settings.MONGO_URL
    )

    player_repository = providers.Singleton(
        PlayerRepository,
        mongo=mongo_client,
        db_name=settings.MONGO_DB_NAME,
    )

    github_aggregator = providers.Singleton(
        GitHubAggregator,
        client_factory=providers.Object(GitHubClient),
        page_size=settings.GITHUB_PAGE_SIZE,
        max_repo_pages=settings.GITHUB_MAX_REPO_PAGES,
        request_timeout=settings.GITHUB_REQUEST_TIMEOUT,
    )

    profile_composer = providers.Singleton(
        ProfileComposer,
        strategy=providers.Singleton(BaselineStatsStrategy),
    )

    player_service = providers.Singleton(
        PlayerProfileService,
        aggregator=github_aggregator,
        composer=profile_composer,
        default_token=settings.GITHUB_TOKEN,
        cache_ttl=settings.PROFILE_CACHE_TTL_SECONDS,
    )

    stream_token_service = providers.Singleton(
        StreamTokenService,
        base_url=settings.S2_BASE_URL,
        basin=settings.S2_BASIN,
        token=settings.S2_TOKEN,
        timeout=settings.S2_TIMEOUT_SECONDS,
        default_ttl=timedelta(hours=settings.S2_TOKEN_TTL_HOURS),
    )
