from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from core.logging.logger import get_logger
from game.models import GitHubPlayer


PLAYERS_COLLECTION = "players"


async def ensure_player_indexes(db: AsyncIOMotorDatabase):
    col = db[PLAYERS_COLLECTION]

    await col.create_index(
        [("username_lower", 1)],
        unique=True,
        name="username_lower_unique",
    )


class PlayerRepository:
    """
    Stores synced players. No game state (gold, items) lives here.
    """

    def __init__(self, mongo, db_name: str):
        self.collection = mongo[db_name][PLAYERS_COLLECTION]
        self.logger = get_logger(__name__)

    async def upsert(self, player: GitHubPlayer):
        key = player.username.lower()
        document = {
            "username": player.username,
            "username_lower": key,
            "github_id": player.github_id,
            "avatar_url": player.avatar_url,
            "stats": player.stats.model_dump(),
            "last_sync": player.last_sync,
            "total_projects": player.total_projects,
            "total_commits": player.total_commits,
        }
        await self.collection.replace_one({"username_lower": key}, document, upsert=True)
        self.logger.info(f"[{player.username}] Player saved (kingdom={player.stats.kingdom})")

    async def find_by_username(self, username: str) -> Optional[dict]:
        return await self.collection.find_one({"username_lower": username.lower()}, {"_id": 0})
