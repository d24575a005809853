import asyncio
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from ingest.sources.github.aggregator import (
    GitHubAggregator,
    count_languages,
    fold_commits,
    fold_issues,
    fold_pull_requests,
    fold_repositories,
    main_language,
)
from ingest.sources.github.client import ResourceKind
from ingest.sources.github.schemas import (
    CommitItem,
    GitHubProfile,
    GitHubRepo,
    IssueItem,
    PullRequestItem,
    SearchResult,
)


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def make_repo(language=None, stars=0, forks=0, fork=False, **overrides):
    return GitHubRepo(language=language, stargazers_count=stars, forks_count=forks, fork=fork, **overrides)


def make_commits(total_count=0, dates=()):
    return SearchResult[CommitItem].model_validate({
        "total_count": total_count,
        "items": [{"commit": {"author": {"date": d}}} for d in dates],
    })


def make_prs(total_count=0, items=()):
    return SearchResult[PullRequestItem].model_validate({"total_count": total_count, "items": list(items)})


def make_issues(total_count=0, items=()):
    return SearchResult[IssueItem].model_validate({"total_count": total_count, "items": list(items)})


class FakeClient:
    """Scripted stand-in for GitHubClient.fetch"""

    def __init__(self, profile=None, pages=None, commits=None, prs=None, issues=None, fail=()):
        self.responses = {
            ResourceKind.PROFILE: profile if profile is not None else GitHubProfile(id=1, login="alice"),
            ResourceKind.COMMITS: commits if commits is not None else make_commits(),
            ResourceKind.PULL_REQUESTS: prs if prs is not None else make_prs(),
            ResourceKind.ISSUES: issues if issues is not None else make_issues(),
        }
        self.pages = pages if pages is not None else []
        self.fail = set(fail)
        self.calls = []
        self.closed = False

    def close(self):
        self.closed = True

    def fetch(self, kind, handle, page=1):
        self.calls.append((kind, page))
        if kind in self.fail:
            return None
        if kind is ResourceKind.REPOSITORIES:
            if callable(self.pages):
                return self.pages(page)
            return self.pages[page - 1] if page <= len(self.pages) else []
        return self.responses[kind]

    def page_calls(self):
        return [page for kind, page in self.calls if kind is ResourceKind.REPOSITORIES]


def make_aggregator(client, **kwargs):
    aggregator = GitHubAggregator(client_factory=lambda token: client, **kwargs)
    aggregator.logger = MagicMock()
    return aggregator


class TestRepositoryFolding:
    def test_totals_and_average(self):
        repos = [make_repo("Python", stars=10, forks=2), make_repo("Go", stars=5, forks=1, fork=True)]
        folded = fold_repositories(repos)
        assert folded["total_repos"] == 2
        assert folded["external_repos"] == 1
        assert folded["stars"] == 15
        assert folded["forks"] == 3
        assert folded["avg_stars"] == 7.5

    def test_zero_repositories_average_is_zero(self):
        folded = fold_repositories([])
        assert folded["avg_stars"] == 0
        assert folded["main_language"] is None
        assert folded["language_repo_count"] == {}

    def test_language_counts_skip_untagged(self):
        repos = [make_repo("Python"), make_repo(None), make_repo(""), make_repo("Python"), make_repo("Rust")]
        assert count_languages(repos) == {"Python": 2, "Rust": 1}

    def test_main_language_tie_keeps_first_seen(self):
        assert main_language({"Rust": 2, "Go": 2, "C": 1}) == "Rust"
        assert main_language({"C": 1, "Go": 3}) == "Go"


class TestWindowedCounters:
    def test_commit_windows(self):
        commits = make_commits(
            total_count=900,
            dates=[
                (NOW - timedelta(days=1)).isoformat(),
                (NOW - timedelta(days=10)).isoformat(),
                (NOW - timedelta(days=40)).isoformat(),
            ],
        )
        folded = fold_commits(commits, NOW)
        assert folded == {"commits": 900, "commits_30d": 2, "commits_7d": 1}

    def test_commit_without_date_is_ignored(self):
        commits = SearchResult[CommitItem].model_validate({"total_count": 1, "items": [{"commit": None}]})
        assert fold_commits(commits, NOW)["commits_30d"] == 0

    def test_total_is_not_derived_from_items(self):
        commits = make_commits(total_count=0, dates=[NOW.isoformat()])
        folded = fold_commits(commits, NOW)
        assert folded["commits"] == 0
        assert folded["commits_30d"] == 1

    def test_merged_requires_merge_timestamp(self):
        prs = make_prs(3, [
            {"created_at": (NOW - timedelta(days=2)).isoformat(), "pull_request": {"merged_at": NOW.isoformat()}},
            {"created_at": (NOW - timedelta(days=60)).isoformat(), "pull_request": {"merged_at": None}},
            {"created_at": (NOW - timedelta(days=5)).isoformat(), "state": "closed"},
        ])
        assert fold_pull_requests(prs, NOW) == {"prs_total": 3, "prs_merged": 1, "prs_30d": 2}

    def test_closed_issue_state(self):
        issues = make_issues(4, [
            {"created_at": (NOW - timedelta(days=1)).isoformat(), "state": "closed"},
            {"created_at": (NOW - timedelta(days=100)).isoformat(), "state": "open"},
            {"created_at": (NOW - timedelta(days=3)).isoformat(), "state": "CLOSED"},
        ])
        assert fold_issues(issues, NOW) == {"issues_total": 4, "issues_closed": 1, "issues_30d": 2}


class TestPagination:
    @pytest.mark.asyncio
    async def test_stops_at_page_cap_when_pages_stay_full(self):
        client = FakeClient(pages=lambda page: [make_repo("Python") for _ in range(2)])
        summary = await make_aggregator(client, page_size=2, max_repo_pages=5).aggregate("alice")
        assert client.page_calls() == [1, 2, 3, 4, 5]
        assert summary.total_repos == 10

    @pytest.mark.asyncio
    async def test_stops_after_short_page(self):
        client = FakeClient(pages=[[make_repo("Go")] * 3, [make_repo("Go")]])
        summary = await make_aggregator(client, page_size=3).aggregate("alice")
        assert client.page_calls() == [1, 2]
        assert summary.total_repos == 4

    @pytest.mark.asyncio
    async def test_failed_later_page_keeps_earlier_pages(self):
        def pages(page):
            return [make_repo("Go")] * 2 if page == 1 else None

        client = FakeClient(pages=pages)
        summary = await make_aggregator(client, page_size=2).aggregate("alice")
        assert client.page_calls() == [1, 2]
        assert summary.total_repos == 2


class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_commit_branch_failure_only_zeroes_commits(self):
        client = FakeClient(
            profile=GitHubProfile(id=7, login="alice", followers=3, public_repos=2),
            pages=[[make_repo("Python", stars=4), make_repo("Rust", stars=2)]],
            prs=make_prs(5, [{"created_at": days_ago(1), "pull_request": {"merged_at": days_ago(1)}}]),
            issues=make_issues(2, [{"created_at": days_ago(2), "state": "closed"}]),
            fail={ResourceKind.COMMITS},
        )
        aggregator = make_aggregator(client)
        summary = await aggregator.aggregate("alice")

        assert (summary.commits, summary.commits_30d, summary.commits_7d) == (0, 0, 0)
        assert summary.github_id == 7
        assert summary.followers == 3
        assert summary.total_repos == 2
        assert summary.stars == 6
        assert (summary.prs_total, summary.prs_merged, summary.prs_30d) == (5, 1, 1)
        assert (summary.issues_total, summary.issues_closed, summary.issues_30d) == (2, 1, 1)
        aggregator.logger.warning.assert_called()

    @pytest.mark.asyncio
    async def test_every_branch_failing_still_returns_summary(self):
        client = FakeClient(fail=set(ResourceKind))
        summary = await make_aggregator(client).aggregate("ghost")
        assert summary.username == "ghost"
        assert summary.total_repos == 0
        assert summary.avg_stars == 0
        assert summary.main_language is None

    @pytest.mark.asyncio
    async def test_branch_exception_is_contained(self):
        client = FakeClient(pages=[[make_repo("Go")]])
        original_fetch = client.fetch

        def fetch(kind, handle, page=1):
            if kind is ResourceKind.PROFILE:
                raise RuntimeError("boom")
            return original_fetch(kind, handle, page)

        client.fetch = fetch
        aggregator = make_aggregator(client)
        summary = await aggregator.aggregate("alice")
        assert summary.github_id == 0
        assert summary.total_repos == 1
        aggregator.logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_slow_branch_times_out_to_default(self):
        client = FakeClient(pages=[[make_repo("Go")]])
        original_fetch = client.fetch

        def fetch(kind, handle, page=1):
            if kind is ResourceKind.ISSUES:
                time.sleep(0.3)
            return original_fetch(kind, handle, page)

        client.fetch = fetch
        summary = await make_aggregator(client, request_timeout=0.05).aggregate("alice")
        assert summary.issues_total == 0
        assert summary.total_repos == 1


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_branches_run_concurrently(self):
        client = FakeClient(pages=[[make_repo("Go")]])
        original_fetch = client.fetch

        def fetch(kind, handle, page=1):
            time.sleep(0.2)
            return original_fetch(kind, handle, page)

        client.fetch = fetch
        started = time.monotonic()
        await make_aggregator(client).aggregate("alice")
        # five sequential calls would take ~1s
        assert time.monotonic() - started < 0.8

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        client = FakeClient()
        client.fetch = lambda kind, handle, page=1: time.sleep(0.2)
        task = asyncio.ensure_future(make_aggregator(client).aggregate("alice"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_token_is_passed_to_client_factory(self):
        factory = MagicMock(return_value=FakeClient())
        aggregator = GitHubAggregator(client_factory=factory)
        await aggregator.aggregate("alice", "secret")
        factory.assert_called_once_with("secret")


class TestClientLifecycle:
    @pytest.mark.asyncio
    async def test_client_is_closed_after_aggregate(self):
        client = FakeClient(pages=[[make_repo("Go")]])
        await make_aggregator(client).aggregate("alice")
        assert client.closed

    @pytest.mark.asyncio
    async def test_client_is_closed_when_every_branch_fails(self):
        client = FakeClient(fail=set(ResourceKind))
        await make_aggregator(client).aggregate("ghost")
        assert client.closed

    @pytest.mark.asyncio
    async def test_client_is_closed_when_cancelled(self):
        client = FakeClient()
        client.fetch = lambda kind, handle, page=1: time.sleep(0.2)
        task = asyncio.ensure_future(make_aggregator(client).aggregate("alice"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.closed

    @pytest.mark.asyncio
    async def test_every_aggregate_gets_its_own_client(self):
        clients = []

        def factory(token):
            clients.append(FakeClient())
            return clients[-1]

        aggregator = GitHubAggregator(client_factory=factory)
        await aggregator.aggregate("alice")
        await aggregator.aggregate("bob")
        assert len(clients) == 2
        assert all(client.closed for client in clients)
