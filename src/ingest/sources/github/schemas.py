# src/ingest/sources/github/schemas.py

from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, field_validator, model_validator


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): v for k, v in value.items()}
    return value


class GitHubPayload(BaseModel):
    """
    Base for upstream payloads.
    Field names are matched case-insensitively, unknown fields are ignored.
    """

    @model_validator(mode="before")
    @classmethod
    def case_insensitive_keys(cls, data: Any) -> Any:
        return _lower_keys(data)

    @field_validator("*")
    @classmethod
    def ensure_utc(cls, value: Any) -> Any:
        # naive timestamps are UTC on the wire
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class GitHubProfile(GitHubPayload):
    id: int = 0
    login: str = ""
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    followers: int = 0
    following: int = 0
    public_repos: int = 0


class GitHubRepo(GitHubPayload):
    id: int = 0
    name: str = ""
    language: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    fork: bool = False
    updated_at: Optional[datetime] = None


class CommitAuthor(GitHubPayload):
    date: Optional[datetime] = None


class CommitDetail(GitHubPayload):
    author: Optional[CommitAuthor] = None


class CommitItem(GitHubPayload):
    commit: Optional[CommitDetail] = None

    @property
    def authored_at(self) -> Optional[datetime]:
        if self.commit and self.commit.author:
            return self.commit.author.date
        return None


class PullRequestInfo(GitHubPayload):
    merged_at: Optional[datetime] = None


class PullRequestItem(GitHubPayload):
    created_at: Optional[datetime] = None
    state: Optional[str] = None
    pull_request: Optional[PullRequestInfo] = None


class IssueItem(GitHubPayload):
    created_at: Optional[datetime] = None
    state: Optional[str] = None


ItemT = TypeVar("ItemT", bound=GitHubPayload)


class SearchResult(GitHubPayload, Generic[ItemT]):
    """`{total_count, items[]}` envelope shared by the search endpoints"""

    total_count: int = 0
    incomplete_results: bool = False
    items: List[ItemT] = []
