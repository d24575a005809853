from pydantic_settings import BaseSettings
from typing import Optional


class AppSettings(BaseSettings):
    APP_NAME: str = "GitWorld"
    DEBUG: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8000

    MONGO_URL: str = "mongodb://localhost:27017"
    MONGO_DB_NAME: str = "gitworld"

    # ===== GitHub =====
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_API_VERSION: str = "2022-11-28"
    GITHUB_USER_AGENT: str = "GitWorld/1.0"
    GITHUB_REQUEST_TIMEOUT: float = 10.0
    GITHUB_PAGE_SIZE: int = 100
    GITHUB_MAX_REPO_PAGES: int = 5
    GITHUB_POOL_SIZE: int = 10

    PROFILE_CACHE_TTL_SECONDS: int = 3600

    # ===== S2 stream =====
    S2_BASE_URL: str = "https://aws.s2.dev"
    S2_BASIN: str = "gitworld"
    S2_TOKEN: Optional[str] = None
    S2_TIMEOUT_SECONDS: float = 10.0
    S2_TOKEN_TTL_HOURS: int = 24

    class Config:
        # docker-compose env_file
        pass


settings = AppSettings()
