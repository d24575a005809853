# src/ingest/sources/github/client.py

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from github import Github, GithubException
from pydantic import ValidationError
from requests.exceptions import RequestException

from core.config.settings import settings
from core.logging.logger import get_logger
from ingest.sources.github.schemas import (
    CommitItem,
    GitHubProfile,
    GitHubRepo,
    IssueItem,
    PullRequestItem,
    SearchResult,
)


class ResourceKind(str, Enum):
    PROFILE = "profile"
    REPOSITORIES = "repositories"
    COMMITS = "commits"
    PULL_REQUESTS = "pull_requests"
    ISSUES = "issues"


RATE_LIMIT_STATUSES = (403, 429)


def _parse_repo_page(data: Any):
    if not isinstance(data, list):
        raise ValueError(f"expected a list of repositories, got {type(data).__name__}")
    return [GitHubRepo.model_validate(item) for item in data]


PARSERS: Dict[ResourceKind, Callable[[Any], Any]] = {
    ResourceKind.PROFILE: GitHubProfile.model_validate,
    ResourceKind.REPOSITORIES: _parse_repo_page,
    ResourceKind.COMMITS: SearchResult[CommitItem].model_validate,
    ResourceKind.PULL_REQUESTS: SearchResult[PullRequestItem].model_validate,
    ResourceKind.ISSUES: SearchResult[IssueItem].model_validate,
}


class GitHubClient:
    """
    Low-level GitHub API wrapper.
    Only responsible for HTTP communication and payload parsing.

    `fetch` never raises: any failure is logged and collapses to None.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = settings.GITHUB_API_URL,
        user_agent: str = settings.GITHUB_USER_AGENT,
        api_version: str = settings.GITHUB_API_VERSION,
        timeout: float = settings.GITHUB_REQUEST_TIMEOUT,
        page_size: int = settings.GITHUB_PAGE_SIZE,
        pool_size: int = settings.GITHUB_POOL_SIZE,
    ):
        self.client = Github(
            base_url=base_url,
            # PyGithub only takes whole seconds; never round a deadline down to 0
            timeout=max(1, math.ceil(timeout)),
            user_agent=user_agent,
            per_page=page_size,
            pool_size=pool_size,
            retry=None,
        )
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": api_version,
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self.page_size = page_size
        self.logger = get_logger(__name__)

    def close(self):
        """Release the pooled HTTP connections"""
        self.client.close()

    def request(self, kind: ResourceKind, handle: str, page: int = 1) -> Tuple[str, dict]:
        """
        Build (path, query parameters) for one resource kind
        """
        if kind is ResourceKind.PROFILE:
            return f"/users/{handle}", {}
        if kind is ResourceKind.REPOSITORIES:
            return f"/users/{handle}/repos", {
                "per_page": self.page_size,
                "page": page,
                "sort": "updated",
            }
        if kind is ResourceKind.COMMITS:
            return "/search/commits", {
                "q": f"author:{handle}",
                "per_page": self.page_size,
                "sort": "author-date",
                "order": "desc",
            }
        if kind is ResourceKind.PULL_REQUESTS:
            return "/search/issues", {"q": f"author:{handle} type:pr", "per_page": self.page_size}
        if kind is ResourceKind.ISSUES:
            return "/search/issues", {"q": f"author:{handle} type:issue", "per_page": self.page_size}
        raise ValueError(f"Unsupported resource kind: {kind}")

    def fetch(self, kind: ResourceKind, handle: str, page: int = 1) -> Optional[Any]:
        """
        Blocking call; run it through asyncio.to_thread from async code.

        Returns:
            GitHubProfile, list[GitHubRepo] or SearchResult depending on kind,
            None if the source is unavailable
        """
        path, parameters = self.request(kind, handle, page)
        try:
            _, data = self.client.requester.requestJsonAndCheck(
                "GET", path, parameters=parameters, headers=dict(self.headers)
            )
            return PARSERS[kind](data)
        except GithubException as e:
            self._log_github_error(kind, handle, e)
        except RequestException as e:
            self.logger.error(f"[{handle}] {kind.value} transport error: {e}")
        except (ValidationError, ValueError) as e:
            self.logger.error(f"[{handle}] {kind.value} malformed payload: {e}")
        except Exception as e:
            self.logger.error(f"[{handle}] {kind.value} unexpected error: {e}", exc_info=True)
        return None

    def _log_github_error(self, kind: ResourceKind, handle: str, error: GithubException):
        headers = error.headers or {}
        if error.status in RATE_LIMIT_STATUSES:
            remaining = headers.get("x-ratelimit-remaining", "?")
            reset_timestamp = int(headers.get("x-ratelimit-reset", 0) or 0)
            reset_at = (
                datetime.fromtimestamp(reset_timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
                if reset_timestamp > 0
                else "unknown"
            )
            self.logger.warning(
                f"[{handle}] {kind.value} rate limited ({error.status}). "
                f"Remaining {remaining}, reset at {reset_at}"
            )
            return

        message = error.data.get("message", str(error)) if isinstance(error.data, dict) else str(error)
        self.logger.error(f"[{handle}] {kind.value} GitHub API error ({error.status}): {message}")
