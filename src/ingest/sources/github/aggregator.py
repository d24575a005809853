# src/ingest/sources/github/aggregator.py

import asyncio
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.config.settings import settings
from core.logging.logger import get_logger
from game.models import AccountSummary
from ingest.sources.github.client import GitHubClient, ResourceKind
from ingest.sources.github.schemas import (
    CommitItem,
    GitHubProfile,
    GitHubRepo,
    IssueItem,
    PullRequestItem,
    SearchResult,
)


CLOSED_STATE = "closed"


# --------------------
# Folding (pure, one pass each)
# --------------------

def fold_profile(profile: Optional[GitHubProfile]) -> dict:
    if profile is None:
        return {}
    return {
        "github_id": profile.id,
        "avatar_url": profile.avatar_url or "",
        "created_at": profile.created_at,
        "followers": profile.followers,
        "following": profile.following,
        "public_repos": profile.public_repos,
    }


def count_languages(repos: List[GitHubRepo]) -> Dict[str, int]:
    # Counter keeps first-seen order, most_common() is stable on ties
    return dict(Counter(repo.language for repo in repos if repo.language))


def main_language(language_repo_count: Dict[str, int]) -> Optional[str]:
    if not language_repo_count:
        return None
    return Counter(language_repo_count).most_common(1)[0][0]


def fold_repositories(repos: List[GitHubRepo]) -> dict:
    total = len(repos)
    stars = sum(repo.stargazers_count for repo in repos)
    languages = count_languages(repos)
    return {
        "total_repos": total,
        "external_repos": sum(1 for repo in repos if repo.fork),
        "stars": stars,
        "forks": sum(repo.forks_count for repo in repos),
        "avg_stars": stars / total if total else 0.0,
        "language_repo_count": languages,
        "languages": len(languages),
        "main_language": main_language(languages),
    }


def fold_commits(result: SearchResult[CommitItem], now: datetime) -> dict:
    thirty_days_ago = now - timedelta(days=30)
    seven_days_ago = now - timedelta(days=7)

    commits_30d = 0
    commits_7d = 0
    for item in result.items:
        authored_at = item.authored_at
        if authored_at is None:
            continue
        if authored_at >= thirty_days_ago:
            commits_30d += 1
        if authored_at >= seven_days_ago:
            commits_7d += 1

    return {
        "commits": result.total_count,
        "commits_30d": commits_30d,
        "commits_7d": commits_7d,
    }


def fold_pull_requests(result: SearchResult[PullRequestItem], now: datetime) -> dict:
    thirty_days_ago = now - timedelta(days=30)

    merged = 0
    recent = 0
    for item in result.items:
        if item.pull_request and item.pull_request.merged_at is not None:
            merged += 1
        if item.created_at and item.created_at >= thirty_days_ago:
            recent += 1

    return {
        "prs_total": result.total_count,
        "prs_merged": merged,
        "prs_30d": recent,
    }


def fold_issues(result: SearchResult[IssueItem], now: datetime) -> dict:
    thirty_days_ago = now - timedelta(days=30)

    closed = 0
    recent = 0
    for item in result.items:
        if item.state == CLOSED_STATE:
            closed += 1
        if item.created_at and item.created_at >= thirty_days_ago:
            recent += 1

    return {
        "issues_total": result.total_count,
        "issues_closed": closed,
        "issues_30d": recent,
    }


# --------------------
# Aggregation use-case
# --------------------

class GitHubAggregator:
    """
    Builds an AccountSummary from five independent GitHub branches
    (profile, repositories, commits, pull requests, issues).

    Branches run concurrently; a failing branch only zeroes its own part
    of the summary.
    """

    def __init__(
        self,
        client_factory: Callable[[Optional[str]], GitHubClient] = GitHubClient,
        page_size: int = settings.GITHUB_PAGE_SIZE,
        max_repo_pages: int = settings.GITHUB_MAX_REPO_PAGES,
        request_timeout: float = settings.GITHUB_REQUEST_TIMEOUT,
    ):
        self.client_factory = client_factory
        self.page_size = page_size
        self.max_repo_pages = max_repo_pages
        self.request_timeout = request_timeout
        self.logger = get_logger(__name__)

    async def aggregate(self, handle: str, token: Optional[str] = None) -> AccountSummary:
        client = self.client_factory(token)
        try:
            return await self._aggregate(client, handle)
        finally:
            client.close()

    async def _aggregate(self, client: GitHubClient, handle: str) -> AccountSummary:
        # one reference time for every windowed counter
        now = datetime.now(timezone.utc)

        self.logger.info(f"[{handle}] Aggregating GitHub data")

        profile, repos, commits, prs, issues = await asyncio.gather(
            self._isolated(handle, ResourceKind.PROFILE, self._fetch_profile(client, handle), None),
            self._isolated(handle, ResourceKind.REPOSITORIES, self._fetch_repositories(client, handle), []),
            self._isolated(
                handle, ResourceKind.COMMITS,
                self._fetch_search(client, handle, ResourceKind.COMMITS), SearchResult[CommitItem](),
            ),
            self._isolated(
                handle, ResourceKind.PULL_REQUESTS,
                self._fetch_search(client, handle, ResourceKind.PULL_REQUESTS), SearchResult[PullRequestItem](),
            ),
            self._isolated(
                handle, ResourceKind.ISSUES,
                self._fetch_search(client, handle, ResourceKind.ISSUES), SearchResult[IssueItem](),
            ),
        )

        summary = AccountSummary(
            username=handle,
            **fold_profile(profile),
            **fold_repositories(repos),
            **fold_commits(commits, now),
            **fold_pull_requests(prs, now),
            **fold_issues(issues, now),
        )

        self.logger.info(
            f"[{handle}] Aggregated {summary.total_repos} repos, {summary.commits} commits, "
            f"main language={summary.main_language}"
        )
        return summary

    async def _isolated(self, handle: str, kind: ResourceKind, branch: Awaitable[Any], default: Any) -> Any:
        """
        Error boundary of one branch: None or any exception -> default
        """
        try:
            result = await branch
        except Exception as e:
            self.logger.error(f"[{handle}] {kind.value} branch failed: {e}", exc_info=True)
            return default

        if result is None:
            self.logger.warning(f"[{handle}] {kind.value} unavailable, using defaults")
            return default
        return result

    async def _call(self, client: GitHubClient, kind: ResourceKind, handle: str, page: int = 1) -> Optional[Any]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(client.fetch, kind, handle, page),
                timeout=self.request_timeout,
            )
        except asyncio.TimeoutError:
            self.logger.warning(
                f"[{handle}] {kind.value} page {page} timed out after {self.request_timeout}s"
            )
            return None

    async def _fetch_profile(self, client: GitHubClient, handle: str) -> Optional[GitHubProfile]:
        return await self._call(client, ResourceKind.PROFILE, handle)

    async def _fetch_search(self, client: GitHubClient, handle: str, kind: ResourceKind) -> Optional[SearchResult]:
        return await self._call(client, kind, handle)

    async def _fetch_repositories(self, client: GitHubClient, handle: str) -> Optional[List[GitHubRepo]]:
        """
        Pages are fetched one after another while they come back full,
        up to max_repo_pages. A failed page keeps what was already fetched.
        """
        repos: List[GitHubRepo] = []
        page = 1

        while page <= self.max_repo_pages:
            page_repos = await self._call(client, ResourceKind.REPOSITORIES, handle, page)
            if page_repos is None:
                if page == 1:
                    return None
                self.logger.warning(
                    f"[{handle}] repositories page {page} unavailable, keeping {len(repos)} repos"
                )
                break
            if not page_repos:
                break

            repos.extend(page_repos)

            if len(page_repos) < self.page_size:
                break
            page += 1

        if page > self.max_repo_pages:
            self.logger.info(
                f"[{handle}] Repository listing capped at {self.max_repo_pages} pages ({len(repos)} repos)"
            )
        return repos
