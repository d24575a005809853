from datetime import datetime
from types import MappingProxyType
from typing import Annotated, Mapping, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, NonNegativeInt, PlainSerializer


def _read_only(value: Mapping) -> Mapping:
    return MappingProxyType(dict(value))


# validated as a dict, stored read-only, dumped back as a plain dict
LanguageCounts = Annotated[
    Mapping[str, NonNegativeInt],
    AfterValidator(_read_only),
    PlainSerializer(lambda value: dict(value)),
]


class AccountSummary(BaseModel):
    """
    Everything one aggregate call learned about a GitHub account.

    Windowed counters are sampled from a single search page while the totals
    are reported by the source, so `commits_7d <= commits_30d <= commits`
    is expected but not guaranteed.
    """

    model_config = ConfigDict(frozen=True)

    # Identity
    username: str
    github_id: int = 0
    avatar_url: str = ""
    created_at: Optional[datetime] = None
    followers: NonNegativeInt = 0
    following: NonNegativeInt = 0
    public_repos: NonNegativeInt = 0

    # Repositories
    language_repo_count: LanguageCounts = Field(default_factory=dict, validate_default=True)
    languages: NonNegativeInt = 0
    main_language: Optional[str] = None
    total_repos: NonNegativeInt = 0
    external_repos: NonNegativeInt = 0
    stars: NonNegativeInt = 0
    forks: NonNegativeInt = 0
    avg_stars: float = 0.0

    # Commits
    commits: NonNegativeInt = 0
    commits_30d: NonNegativeInt = 0
    commits_7d: NonNegativeInt = 0

    # Pull requests
    prs_total: NonNegativeInt = 0
    prs_merged: NonNegativeInt = 0
    prs_30d: NonNegativeInt = 0

    # Issues
    issues_total: NonNegativeInt = 0
    issues_closed: NonNegativeInt = 0
    issues_30d: NonNegativeInt = 0


class PlayerStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    hp: int
    damage: int
    attack_speed: int
    move_speed: int
    crit: int
    evasion: int
    armor: int


class PlayerProfile(PlayerStats):
    """Combat stats plus the kingdom the account was classified into"""

    kingdom: str


class GitHubPlayer(BaseModel):
    username: str
    github_id: int = 0
    avatar_url: str = ""
    stats: PlayerProfile
    last_sync: datetime

    # activity numbers shown next to the stats
    total_projects: int = 0
    total_commits: int = 0
