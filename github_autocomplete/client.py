"""Async client for the GitHub user and repository search endpoints."""

import logging

import httpx

from .errors import NetworkError, RateLimitExceeded, RemoteError, StorageUnavailable
from .models import REPO_PAGE_SIZE, SearchResponse
from .rate_limit import RateLimitTracker
from .settings import get_settings
from .storage import Storage

logger = logging.getLogger(__name__)

API_BASE = "https://api.github.com"
TOKEN_KEY = "github_api_token"


class GitHubSearchClient:
    """Thin search client that reports every completed response to the tracker.

    No retries; failures surface to the orchestrator.
    """

    def __init__(
        self,
        tracker: RateLimitTracker,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        base_url: str = API_BASE,
    ):
        self.tracker = tracker
        self._token = token or None
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/vnd.github.v3+json"},
            timeout=timeout if timeout is not None else get_settings().request_timeout,
            transport=transport,
        )

    @property
    def token(self) -> str | None:
        return self._token

    def configure_token(self, token: str | None) -> None:
        """Attach (or drop) the credential and restart the quota at the matching limit."""
        self._token = token.strip() if token and token.strip() else None
        self.tracker.configure_credential(self._token)

    def _auth_headers(self) -> dict:
        if self._token:
            return {"Authorization": f"token {self._token}"}
        return {}

    async def _search(self, kind: str, params: dict) -> SearchResponse:
        self.tracker.check_reset()
        if self.tracker.exceeded:
            raise RateLimitExceeded()

        try:
            resp = await self._client.get(f"/search/{kind}", params=params, headers=self._auth_headers())
        except httpx.TransportError as e:
            raise NetworkError(f"Network Error: {e}") from e

        self.tracker.observe_response(str(resp.url), resp.headers)

        if not resp.is_success:
            message = _error_message(resp, kind)
            self.tracker.report_error(message)
            raise RemoteError(resp.status_code, message)

        try:
            return SearchResponse.from_json(resp.json())
        except ValueError as e:
            raise RemoteError(resp.status_code, f"Invalid response from GitHub for {kind}") from e

    async def search_repositories(self, query: str) -> SearchResponse:
        """Repositories matching ``query``, most starred first."""
        return await self._search(
            "repositories",
            {"q": query, "sort": "stars", "order": "desc", "per_page": REPO_PAGE_SIZE},
        )

    async def search_users(self, query: str) -> SearchResponse:
        return await self._search("users", {"q": query})

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "GitHubSearchClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


def _error_message(resp: httpx.Response, kind: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"Error fetching {kind}: {resp.status_code}"


def load_token(storage: Storage) -> str | None:
    try:
        return storage.read(TOKEN_KEY) or None
    except StorageUnavailable as e:
        logger.warning("Could not read saved token: %s", e)
        return None


def save_token(storage: Storage, token: str | None) -> None:
    """Persist ``token``, or forget the saved one when it is empty."""
    try:
        if token:
            storage.write(TOKEN_KEY, token)
        else:
            storage.remove(TOKEN_KEY)
    except StorageUnavailable as e:
        logger.warning("Could not save token: %s", e)
