"""Search pipeline: quota check -> cache -> GitHub -> fallback.

Repository search always runs. A user search joins it when the repository
list is sparse or the query is short; users already seen as repository owners
are not repeated. The merged list keeps repositories in GitHub's order (most
stars first), then owners in first-seen order, then the remaining users.
"""

import asyncio
import logging
from pathlib import Path

import httpx

from .cache import ResultCache
from .client import GitHubSearchClient, load_token
from .errors import (
    GENERIC_MESSAGE,
    NETWORK_MESSAGE,
    RATE_LIMIT_MESSAGE,
    NetworkError,
    RateLimitExceeded,
    RemoteError,
    SearchError,
)
from .fallback import FallbackCatalog
from .models import (
    AUTHENTICATED_LIMIT,
    MAX_RESULTS,
    SHORT_QUERY_LENGTH,
    SPARSE_REPO_THRESHOLD,
    ResultItem,
)
from .rate_limit import RateLimitTracker, get_tracker, is_rate_limit_error
from .settings import get_settings
from .storage import Storage

logger = logging.getLogger(__name__)


def merge_results(
    repositories: list[dict],
    users: list[dict],
    limit: int = MAX_RESULTS,
) -> list[ResultItem]:
    """Combine repository and user search items, deduplicating users by login."""
    repo_results = [ResultItem.from_repository(repo) for repo in repositories]

    seen: set[str] = set()
    user_results = []
    owners = [repo["owner"] for repo in repositories if repo.get("owner")]
    for user in owners + users:
        login = user["login"].lower()
        if login in seen:
            continue
        seen.add(login)
        user_results.append(ResultItem.from_user(user))

    return (repo_results + user_results)[:limit]


def error_message(exc: BaseException) -> str:
    """The one string shown to the user for a failed search."""
    if isinstance(exc, RateLimitExceeded) or is_rate_limit_error(str(exc)):
        return RATE_LIMIT_MESSAGE
    if isinstance(exc, NetworkError):
        return NETWORK_MESSAGE
    if isinstance(exc, SearchError) and str(exc):
        return f"Error: {exc}"
    return GENERIC_MESSAGE


class SearchOrchestrator:
    def __init__(
        self,
        client: GitHubSearchClient,
        cache: ResultCache,
        tracker: RateLimitTracker,
        fallback: FallbackCatalog | None = None,
        min_chars: int = 3,
    ):
        self.client = client
        self.cache = cache
        self.tracker = tracker
        self.fallback = fallback or FallbackCatalog()
        self.min_chars = min_chars

    async def search(self, query: str) -> list[ResultItem]:
        """Run one search for a committed query.

        Raises:
            SearchError: when GitHub fails and the fallback catalog has nothing
                for the query. Convert with ``error_message`` for display.
        """
        query = query.strip()
        if len(query) < self.min_chars:
            return []

        self.tracker.check_reset()
        if self.tracker.exceeded:
            results = self.fallback.get(query)
            if results:
                logger.info("Rate limited, serving fallback results for %r", query)
                return results
            raise RateLimitExceeded()

        cached = self.cache.get(query)
        if cached is not None:
            return cached

        try:
            results = await self._search_remote(query)
        except SearchError as e:
            self._classify(e)
            results = self.fallback.get(query)
            if results:
                logger.warning("Search for %r failed (%s), serving fallback results", query, e)
                return results
            raise

        self.cache.put(query, results)
        return results

    async def _search_remote(self, query: str) -> list[ResultItem]:
        user_task: asyncio.Task | None = None
        if len(query) < SHORT_QUERY_LENGTH:
            user_task = asyncio.create_task(self.client.search_users(query))
        try:
            repos = await self.client.search_repositories(query)
            if user_task is None and len(repos.items) < SPARSE_REPO_THRESHOLD:
                user_task = asyncio.create_task(self.client.search_users(query))
            users = await self._collect_users(user_task)
        finally:
            if user_task is not None:
                user_task.cancel()
                await asyncio.gather(user_task, return_exceptions=True)
        try:
            return merge_results(repos.items, users)
        except (KeyError, TypeError, AttributeError) as e:
            raise RemoteError(200, f"Invalid search result from GitHub: {e!r}") from e

    async def _collect_users(self, task: asyncio.Task | None) -> list[dict]:
        if task is None:
            return []
        try:
            response = await task
        except SearchError as e:
            # Keep the repository results
            logger.warning("User search failed, continuing with limited results: %s", e)
            self._classify(e)
            return []
        return response.items

    def _classify(self, exc: SearchError) -> None:
        if isinstance(exc, RateLimitExceeded) or self.tracker.exceeded:
            return
        self.tracker.report_error(str(exc))


def create_orchestrator(
    storage_dir: Path | None = None,
    skip_cache: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SearchOrchestrator:
    """Build an orchestrator wired to the process-wide tracker and on-disk storage."""
    settings = get_settings()
    root = Path(storage_dir or settings.storage_dir)
    storage = Storage(root)
    tracker = get_tracker(root)

    token = load_token(storage) or settings.github_token
    if token and not tracker.exceeded and tracker.snapshot.limit < AUTHENTICATED_LIMIT:
        tracker.update(limit=AUTHENTICATED_LIMIT, remaining=AUTHENTICATED_LIMIT)

    client = GitHubSearchClient(tracker, token=token, transport=transport)
    cache = ResultCache(storage, skip_cache=skip_cache)
    return SearchOrchestrator(client, cache, tracker, min_chars=settings.min_chars)
