import time
from datetime import datetime, timezone
from typing import Dict, Optional, Tuple

from core.logging.logger import get_logger
from game.classifier import classify
from game.composer import ProfileComposer
from game.models import AccountSummary, GitHubPlayer, PlayerProfile
from ingest.sources.github.aggregator import GitHubAggregator


CACHE_KEY_PREFIX = "github_player_"


class PlayerProfileService:
    """
    GitHub data -> kingdom -> player profile, cached per username.
    """

    def __init__(
        self,
        aggregator: GitHubAggregator,
        composer: ProfileComposer,
        default_token: Optional[str] = None,
        cache_ttl: int = 3600,
    ):
        self.aggregator = aggregator
        self.composer = composer
        self.default_token = default_token
        self.cache_ttl = cache_ttl
        self.logger = get_logger(__name__)
        self._cache: Dict[str, Tuple[float, GitHubPlayer]] = {}

        if default_token:
            self.logger.info("GitHub token configured - rate limit: 5000 req/hour")
        else:
            self.logger.warning("GITHUB_TOKEN not configured - rate limit: 60 req/hour")

    async def get_player(
        self, username: str, token: Optional[str] = None, force_refresh: bool = False
    ) -> GitHubPlayer:
        cache_key = self._cache_key(username)

        if not force_refresh:
            cached = self._cache_get(cache_key)
            if cached is not None:
                self.logger.debug(f"[{username}] Cache hit")
                return cached

        self.logger.info(f"[{username}] Fetching GitHub data")

        summary = await self.aggregator.aggregate(username, token or self.default_token)
        kingdom = classify(summary)
        profile = self.composer.compose(summary, kingdom)

        player = GitHubPlayer(
            username=summary.username,
            github_id=summary.github_id,
            avatar_url=summary.avatar_url,
            stats=profile,
            last_sync=datetime.now(timezone.utc),
            total_projects=summary.total_repos,
            total_commits=summary.commits,
        )

        self._evict_expired()
        self._cache[cache_key] = (time.monotonic() + self.cache_ttl, player)
        self.logger.info(f"[{username}] Cached for {self.cache_ttl}s. Kingdom: {kingdom}")

        return player

    async def get_player_profile(
        self, username: str, token: Optional[str] = None, force_refresh: bool = False
    ) -> PlayerProfile:
        player = await self.get_player(username, token, force_refresh)
        return player.stats

    async def get_raw_data(self, username: str, token: Optional[str] = None) -> AccountSummary:
        return await self.aggregator.aggregate(username, token or self.default_token)

    def invalidate_cache(self, username: str):
        self._cache.pop(self._cache_key(username), None)
        self.logger.info(f"[{username}] Cache invalidated")

    def _cache_get(self, cache_key: str) -> Optional[GitHubPlayer]:
        entry = self._cache.get(cache_key)
        if entry is None:
            return None
        expires_at, player = entry
        if time.monotonic() >= expires_at:
            del self._cache[cache_key]
            return None
        return player

    def _evict_expired(self):
        now = time.monotonic()
        for key in [key for key, (expires_at, _) in self._cache.items() if now >= expires_at]:
            del self._cache[key]

    @staticmethod
    def _cache_key(username: str) -> str:
        return f"{CACHE_KEY_PREFIX}{username.lower()}"
